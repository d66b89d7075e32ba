"""
llm_client.py
=============
Provider request adapters for the four supported LLM services.

Each provider gets one small adapter with build_request() / parse_response();
call_provider() looks the adapter up by provider id, sends the request with
httpx and returns the extracted completion text.

The adapter never retries. Moving through a provider's fallback models is the
caller's job (see resume_ai/agent_loop.py).
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx
from dotenv import load_dotenv

from resume_ai.errors import ProviderError

load_dotenv()

logger = logging.getLogger(__name__)

_TIMEOUT: float     = float(os.getenv("RESUME_AI_TIMEOUT", "60"))
_TEMPERATURE: float = float(os.getenv("RESUME_AI_TEMPERATURE", "0.7"))
_MAX_TOKENS: int    = int(os.getenv("RESUME_AI_MAX_TOKENS", "1000"))

OPENAI_URL    = "https://api.openai.com/v1/chat/completions"
GROQ_URL      = "https://api.groq.com/openai/v1/chat/completions"
ANTHROPIC_URL = "https://api.anthropic.com/v1/messages"
GOOGLE_URL    = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

ANTHROPIC_VERSION = "2023-06-01"
DEFAULT_SYSTEM_PROMPT = "You are an AI assistant specializing in resume optimization."


@dataclass(frozen=True)
class ProviderRequest:
    url: str
    headers: dict[str, str]
    json: dict[str, Any]
    params: dict[str, str] = field(default_factory=dict)


class ChatCompletionsAdapter:
    """OpenAI-style /chat/completions (OpenAI and Groq)."""

    def __init__(self, name: str, url: str) -> None:
        self.name = name
        self.url = url

    def build_request(
        self, api_key: str, model: str, prompt: str, system_prompt: str, max_tokens: int
    ) -> ProviderRequest:
        return ProviderRequest(
            url=self.url,
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {api_key}",
            },
            json={
                "model": model,
                "messages": [
                    {"role": "system", "content": system_prompt},
                    {"role": "user",   "content": prompt},
                ],
                "temperature": _TEMPERATURE,
                "max_tokens": max_tokens,
            },
        )

    def parse_response(self, data: dict) -> str:
        # content is null when the model stops before emitting text
        return data["choices"][0]["message"]["content"] or ""


class AnthropicAdapter:
    name = "anthropic"

    def build_request(
        self, api_key: str, model: str, prompt: str, system_prompt: str, max_tokens: int
    ) -> ProviderRequest:
        return ProviderRequest(
            url=ANTHROPIC_URL,
            headers={
                "Content-Type": "application/json",
                "x-api-key": api_key,
                "anthropic-version": ANTHROPIC_VERSION,
            },
            json={
                "model": model,
                "system": system_prompt,
                "messages": [{"role": "user", "content": prompt}],
                "max_tokens": max_tokens,
                "temperature": _TEMPERATURE,
            },
        )

    def parse_response(self, data: dict) -> str:
        for block in data["content"]:
            if block.get("type") == "text":
                return block["text"]
        raise KeyError("text")


class GoogleAdapter:
    """Gemini generateContent. The key travels as a query parameter."""

    name = "google"

    def build_request(
        self, api_key: str, model: str, prompt: str, system_prompt: str, max_tokens: int
    ) -> ProviderRequest:
        return ProviderRequest(
            url=GOOGLE_URL.format(model=model),
            headers={"Content-Type": "application/json"},
            params={"key": api_key},
            json={
                "systemInstruction": {"parts": [{"text": system_prompt}]},
                "contents": [{"role": "user", "parts": [{"text": prompt}]}],
                "generationConfig": {
                    "temperature": _TEMPERATURE,
                    "maxOutputTokens": max_tokens,
                },
            },
        )

    def parse_response(self, data: dict) -> str:
        return data["candidates"][0]["content"]["parts"][0]["text"]


ADAPTERS = {
    "openai":    ChatCompletionsAdapter("openai", OPENAI_URL),
    "groq":      ChatCompletionsAdapter("groq", GROQ_URL),
    "anthropic": AnthropicAdapter(),
    "google":    GoogleAdapter(),
}


def _error_message(response: httpx.Response, provider_id: str) -> str:
    """Prefer the provider's own error.message, fall back to the reason phrase."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        err = body.get("error")
        if isinstance(err, dict) and err.get("message"):
            return str(err["message"])
        if isinstance(err, str) and err:
            return err
    return f"{provider_id} API error: {response.reason_phrase or 'request failed'}"


async def _send(request: ProviderRequest, http_client: Optional[httpx.AsyncClient]) -> httpx.Response:
    if http_client is not None:
        return await http_client.post(
            request.url, headers=request.headers, params=request.params, json=request.json
        )
    async with httpx.AsyncClient(timeout=_TIMEOUT) as client:
        return await client.post(
            request.url, headers=request.headers, params=request.params, json=request.json
        )


async def call_provider(
    provider_id: str,
    api_key: str,
    model: str,
    prompt: str,
    *,
    system_prompt: Optional[str] = None,
    max_tokens: Optional[int] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> str:
    """
    Send one completion request and return the generated text.

    Raises:
        ProviderError: non-2xx status, unreadable body, missing text field,
            unsupported provider, or a transport failure (status=None).
    """
    adapter = ADAPTERS.get(provider_id)
    if adapter is None:
        raise ProviderError(None, f"Unsupported AI service: {provider_id!r}")

    request = adapter.build_request(
        api_key, model, prompt, system_prompt or DEFAULT_SYSTEM_PROMPT, max_tokens or _MAX_TOKENS
    )
    logger.debug("[LLM] POST %s model=%s", request.url, model)

    try:
        response = await _send(request, http_client)
    except httpx.HTTPError as exc:
        raise ProviderError(None, f"{provider_id} connection error: {exc}") from exc

    if not response.is_success:
        message = _error_message(response, provider_id)
        logger.warning("[LLM] %s/%s returned %s: %s", provider_id, model, response.status_code, message)
        raise ProviderError(response.status_code, message)

    try:
        text = adapter.parse_response(response.json())
    except (ValueError, KeyError, IndexError, TypeError) as exc:
        raise ProviderError(
            response.status_code, f"Unexpected {provider_id} response format"
        ) from exc

    if not isinstance(text, str):
        raise ProviderError(response.status_code, f"Unexpected {provider_id} response format")
    return text.strip()
