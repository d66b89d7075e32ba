"""
resume_ai/model_discovery.py
============================
Live model listing for providers that expose a list-models endpoint.

fetch_available_models() never raises: every failure path degrades to the
static registry list and is only logged.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional

import httpx
from groq import AsyncGroq
from openai import AsyncOpenAI

from resume_ai.model_registry import get_models_for_service

logger = logging.getLogger(__name__)

ModelLister = Callable[[str, Optional[httpx.AsyncClient]], Awaitable[list[str]]]

# Substrings that mark models unusable for text completion.
_OPENAI_EXCLUDE = ("instruct", "0301", "0314")
_GROQ_EXCLUDE = ("whisper", "tts", "guard")


async def _list_openai(api_key: str, http_client: Optional[httpx.AsyncClient]) -> list[str]:
    client = AsyncOpenAI(api_key=api_key, max_retries=0, http_client=http_client)
    try:
        page = await client.models.list()
    finally:
        if http_client is None:
            await client.close()
    return [m.id for m in page.data]


async def _list_groq(api_key: str, http_client: Optional[httpx.AsyncClient]) -> list[str]:
    client = AsyncGroq(api_key=api_key, max_retries=0, http_client=http_client)
    try:
        listing = await client.models.list()
    finally:
        if http_client is None:
            await client.close()
    return [m.id for m in listing.data]


def _keep_openai(model_id: str) -> bool:
    return "gpt" in model_id and not any(tag in model_id for tag in _OPENAI_EXCLUDE)


def _keep_groq(model_id: str) -> bool:
    return not any(tag in model_id for tag in _GROQ_EXCLUDE)


_LISTERS: dict[str, tuple[ModelLister, Callable[[str], bool]]] = {
    "openai": (_list_openai, _keep_openai),
    "groq":   (_list_groq,   _keep_groq),
}


async def fetch_available_models(
    provider_id: str,
    api_key: str,
    *,
    http_client: Optional[httpx.AsyncClient] = None,
) -> list[str]:
    """
    Return the provider's usable model ids, de-duplicated and sorted.

    Providers without a list endpoint (anthropic, google) and every error
    path return the static registry list instead.
    """
    static = get_models_for_service(provider_id)
    entry = _LISTERS.get(provider_id)
    if entry is None or not api_key:
        return static

    lister, keep = entry
    try:
        model_ids = await lister(api_key, http_client)
    except Exception as exc:  # any SDK, HTTP or transport failure degrades
        logger.warning(
            "[Discovery] Listing %s models failed, using static list: %s",
            provider_id, exc,
        )
        return static

    usable = sorted({m for m in model_ids if isinstance(m, str) and keep(m)})
    if not usable:
        logger.warning("[Discovery] No usable %s models listed, using static list.", provider_id)
        return static

    logger.info("[Discovery] %d %s model(s) available.", len(usable), provider_id)
    return usable
