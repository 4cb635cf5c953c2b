from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any

import httpx

from app.core.config import Settings
from app.services.ai_errors import UpstreamError, UpstreamTimeout, UpstreamUnavailable

SUPPORTED_LLM_PROVIDERS = {"groq", "openai"}


@dataclass
class RawCompletion:
    text: str
    model: str
    usage: dict[str, Any] = field(default_factory=dict)
    latency_ms: float = 0.0


def normalize_provider(settings: Settings) -> str:
    provider = (settings.llm_provider or "groq").strip().lower()
    if provider not in SUPPORTED_LLM_PROVIDERS:
        return "groq"
    return provider


def provider_config(settings: Settings) -> tuple[str, str | None, str, str]:
    provider = normalize_provider(settings)
    if provider == "openai":
        return (
            provider,
            settings.openai_api_key,
            settings.openai_model,
            settings.openai_api_base.rstrip("/"),
        )
    return (
        "groq",
        settings.groq_api_key,
        settings.groq_model,
        settings.groq_api_base.rstrip("/"),
    )


class CompletionClient:
    """Single-shot chat completion call against an OpenAI-compatible API."""

    def __init__(self, settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None):
        self.settings = settings
        self._transport = transport

    @property
    def provider(self) -> str:
        return provider_config(self.settings)[0]

    @property
    def model(self) -> str:
        return provider_config(self.settings)[2]

    def is_configured(self) -> bool:
        _, api_key, model, _ = provider_config(self.settings)
        return bool(self.settings.ai_enabled and api_key and model)

    def ensure_configured(self) -> None:
        provider, api_key, model, _ = provider_config(self.settings)
        if not self.settings.ai_enabled:
            raise UpstreamUnavailable("AI is disabled. Set AI_ENABLED=true to enable insight generation.")
        if not api_key:
            env_name = "OPENAI_API_KEY" if provider == "openai" else "GROQ_API_KEY"
            raise UpstreamUnavailable(
                f"{env_name} is missing in environment variables. Add it to your .env file and restart the server."
            )
        if not model:
            raise UpstreamUnavailable(f"No model configured for provider '{provider}'.")

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        temperature: float,
        max_tokens: int,
        expect_json: bool = True,
    ) -> RawCompletion:
        self.ensure_configured()
        _, api_key, model, api_base = provider_config(self.settings)

        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        body: dict[str, Any] = {
            "model": model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if expect_json:
            body["response_format"] = {"type": "json_object"}

        started = time.perf_counter()
        try:
            async with httpx.AsyncClient(
                timeout=self.settings.llm_timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.post(f"{api_base}/chat/completions", headers=headers, json=body)
                response.raise_for_status()
                data = response.json()
        except httpx.TimeoutException as exc:
            raise UpstreamTimeout(f"LLM call timed out after {self.settings.llm_timeout_seconds:g}s") from exc
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            raise UpstreamError(f"LLM API error ({status}): {exc.response.text[:500]}") from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise UpstreamError(f"LLM call failed: {exc}") from exc
        latency_ms = (time.perf_counter() - started) * 1000

        if isinstance(data, dict) and data.get("error"):
            error = data["error"]
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise UpstreamError(f"LLM API error: {message}")
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise UpstreamError("LLM response did not include a message") from exc
        if not isinstance(content, str) or not content.strip():
            raise UpstreamError("No content received from the LLM")

        return RawCompletion(
            text=content,
            model=str(data.get("model") or model),
            usage=data.get("usage") or {},
            latency_ms=round(latency_ms, 1),
        )
