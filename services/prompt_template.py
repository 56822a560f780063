"""Prompt template rendering: literal placeholder substitution.

Templates contain bare placeholder tokens (``THEIR_ANSWER``, ``QUESTION``,
``CATEGORY``) rather than ``{braces}``, so question authors can write JSON
examples in prompts without escaping.
"""

from __future__ import annotations

import re
from collections.abc import Mapping


def render(template: str, substitutions: Mapping[str, str]) -> str:
    """Replace every occurrence of every key in *template* with its value.

    Substitution is a single left-to-right pass: inserted values are never
    scanned again, and when keys overlap the longest one wins.  Placeholders
    with no entry in *substitutions* are left as they are.  Values are not
    escaped.
    """
    keys = [k for k in substitutions if k]
    if not keys:
        return template
    keys.sort(key=len, reverse=True)
    pattern = re.compile("|".join(re.escape(k) for k in keys))
    return pattern.sub(lambda m: substitutions[m.group(0)], template)
