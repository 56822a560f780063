"""Unified LLM service powered by LiteLLM.

Supports any provider LiteLLM supports via model name prefix:
    - openai/gpt-3.5-turbo-1106
    - openai/gpt-4o
    - anthropic/claude-sonnet-4-20250514
"""

from __future__ import annotations

import litellm

from config.llm_config import LLMConfig
from config.settings import get_settings


# Model prefix → Settings field holding that provider's key
_PROVIDER_KEY_FIELDS = {
    "openai": "openai_api_key",
    "anthropic": "anthropic_api_key",
}


class LLMService:
    """Thin wrapper around ``litellm.acompletion()``.

    Accepts an optional :class:`LLMConfig` that is merged on top of the
    global defaults from Settings.  Individual calls can still override
    parameters through ``config``.
    """

    def __init__(self, config: LLMConfig | None = None, model: str | None = None):
        settings = get_settings()
        self._settings = settings
        self._config = settings.get_default_llm_config()

        if config:
            self._config = self._config.merge(config)
        if model:
            self._config = self._config.merge(LLMConfig(model=model))

    @property
    def model(self) -> str | None:
        return self._config.model

    async def achat(
        self,
        messages: list[dict],
        config: LLMConfig | None = None,
    ) -> dict:
        """Send one conversation turn to the LLM.

        Args:
            messages: Conversation in OpenAI message format.
            config:   Per-call overrides (e.g. ``response_format="json_object"``).

        Returns:
            Parsed response dict with keys:
                content, model, finish_reason, usage.

        Provider and transport errors propagate unchanged.
        """
        call_config = self._config.merge(config) if config else self._config
        response = await litellm.acompletion(
            model=call_config.model,
            messages=messages,
            **call_config.to_litellm_kwargs(),
            **self._credentials(call_config.model),
        )
        return self._parse_response(response, call_config.model)

    def _credentials(self, model: str | None) -> dict:
        """Provider API key from Settings for the model's prefix, if configured."""
        prefix = model.split("/", 1)[0] if model and "/" in model else "openai"
        field = _PROVIDER_KEY_FIELDS.get(prefix)
        api_key = getattr(self._settings, field, "") if field else ""
        return {"api_key": api_key} if api_key else {}

    def _parse_response(self, response, model: str | None) -> dict:
        """Parse LiteLLM ModelResponse into a simple dict."""
        choice = response.choices[0]
        usage = getattr(response, "usage", None)
        return {
            "content": choice.message.content or "",
            "model": getattr(response, "model", None) or model or "",
            "finish_reason": choice.finish_reason,
            "usage": {
                "input_tokens": usage.prompt_tokens if usage else 0,
                "output_tokens": usage.completion_tokens if usage else 0,
            },
        }
