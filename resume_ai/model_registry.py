"""
resume_ai/model_registry.py
===========================
Static per-provider model configuration.

Each provider has one preferred model followed by an ordered fallback chain.
Unknown providers resolve to an empty list / empty string, never an error.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional

from openai import AsyncOpenAI, OpenAIError
from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

AvailabilityCheck = Callable[[str], Awaitable[bool]]


class ProviderConfig(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    provider_id: str
    label: str
    preferred: str
    fallbacks: tuple[str, ...] = ()
    availability_check: Optional[AvailabilityCheck] = None

    @property
    def models(self) -> list[str]:
        return [self.preferred, *self.fallbacks]


async def _openai_has_preferred(api_key: str) -> bool:
    """Probe whether the key can see the preferred OpenAI model."""
    try:
        async with AsyncOpenAI(api_key=api_key, max_retries=0) as client:
            await client.models.retrieve(AI_MODELS["openai"].preferred)
        return True
    except OpenAIError as exc:
        logger.info("[Registry] openai availability check failed: %s", exc)
        return False


AI_MODELS: dict[str, ProviderConfig] = {
    "openai": ProviderConfig(
        provider_id="openai",
        label="OpenAI",
        preferred="gpt-4o",
        fallbacks=("gpt-4-turbo", "gpt-4", "gpt-3.5-turbo"),
        availability_check=_openai_has_preferred,
    ),
    "anthropic": ProviderConfig(
        provider_id="anthropic",
        label="Anthropic",
        preferred="claude-3-5-sonnet-20241022",
        fallbacks=(
            "claude-3-opus-20240229",
            "claude-3-sonnet-20240229",
            "claude-3-haiku-20240307",
        ),
    ),
    "groq": ProviderConfig(
        provider_id="groq",
        label="Groq",
        preferred="llama-3.3-70b-versatile",
        fallbacks=("llama-3.1-8b-instant", "llama3-70b-8192", "gemma2-9b-it"),
    ),
    "google": ProviderConfig(
        provider_id="google",
        label="Google Gemini",
        preferred="gemini-1.5-flash-002",
        fallbacks=("gemini-1.5-pro-latest", "gemini-pro"),
    ),
}

PROVIDER_IDS: tuple[str, ...] = tuple(AI_MODELS)


def get_models_for_service(provider_id: str) -> list[str]:
    config = AI_MODELS.get(provider_id)
    return config.models if config else []


def get_preferred_model(provider_id: str) -> str:
    config = AI_MODELS.get(provider_id)
    return config.preferred if config else ""


def get_fallback_models(provider_id: str) -> list[str]:
    config = AI_MODELS.get(provider_id)
    return list(config.fallbacks) if config else []


def next_model(provider_id: str, current: str) -> str | None:
    """
    Model that follows ``current`` in the provider's chain.

    A model outside the chain (e.g. one picked from live discovery) is
    followed by the preferred model. Returns None at the end of the chain.
    """
    chain = get_models_for_service(provider_id)
    if not chain:
        return None
    if current not in chain:
        return chain[0]
    idx = chain.index(current)
    return chain[idx + 1] if idx + 1 < len(chain) else None


async def is_model_available(provider_id: str, api_key: str) -> bool:
    """Run the provider's availability check; providers without one report True."""
    config = AI_MODELS.get(provider_id)
    if config is None:
        return False
    if config.availability_check is None:
        return True
    return await config.availability_check(api_key)
