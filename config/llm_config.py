"""Reusable LLM generation parameters.

LLMConfig is a standalone Pydantic model that can be:
- embedded in Settings as the global default,
- passed per-call for one-off overrides (e.g. the reply mode of one chat).

Priority chain (low → high):
    .env global defaults  →  per-call overrides
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

ResponseFormat = Literal["json_object", "text"]


class LLMConfig(BaseModel):
    """LLM generation parameters.

    All fields are optional.  ``None`` means "use the model's default".
    """

    model: str | None = Field(default=None, description="LiteLLM model identifier")
    max_tokens: int | None = Field(default=None, gt=0, description="Max tokens to generate")
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    response_format: ResponseFormat | None = Field(
        default=None, description="'json_object' for structured output, 'text' for free text"
    )

    def merge(self, overrides: LLMConfig) -> LLMConfig:
        """Return a new LLMConfig: *self* as base, *overrides* wins on non-None fields."""
        base = self.model_dump(exclude_none=True)
        over = overrides.model_dump(exclude_none=True)
        base.update(over)
        return LLMConfig(**base)

    def to_litellm_kwargs(self) -> dict:
        """Convert to ``litellm.acompletion()``-compatible keyword arguments.

        ``model`` is not included; callers pass it explicitly.
        """
        kw: dict = {}
        for field in ("max_tokens", "temperature"):
            val = getattr(self, field)
            if val is not None:
                kw[field] = val
        if self.response_format:
            kw["response_format"] = {"type": self.response_format}
        return kw
