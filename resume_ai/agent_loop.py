"""
resume_ai/agent_loop.py
=======================
Capped automatic fallback through a provider's model chain.

One policy for both paths:
  1. Start from the context's current model
  2. Call the orchestrator once
  3. ProviderError (other than 401/403) or EmptyResponse → next model in
     the registry chain, up to max_attempts
  4. Anything else (success, credential error, validator rejection) → stop
  5. On success, persist the working model via update_current_model()

Every attempt is recorded in the result's attempt_log.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional, TypeVar

import httpx

from resume_ai import generator
from resume_ai.context import AIContext
from resume_ai.errors import EmptyResponse, GenerationError, ProviderError
from resume_ai.model_registry import next_model
from resume_ai.models import ContentAction, ContentResult, GenerationRequest, TemplatePreferences, TemplateResult

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3

# a bad key stays bad on every model
_NON_RETRYABLE_STATUSES = frozenset({401, 403})

R = TypeVar("R", ContentResult, TemplateResult)


def should_fall_back(error: Optional[GenerationError]) -> bool:
    if isinstance(error, EmptyResponse):
        return True
    if isinstance(error, ProviderError):
        return error.status not in _NON_RETRYABLE_STATUSES
    return False


async def _run_with_fallback(
    context: AIContext,
    attempt: Callable[[str], Awaitable[R]],
    phase: str,
    max_attempts: int,
) -> R:
    attempt_log: list[dict] = []
    model: Optional[str] = context.model
    result: Optional[R] = None

    for number in range(1, max(1, max_attempts) + 1):
        result = await attempt(model)
        attempt_log.append({
            "attempt": number,
            "phase": phase,
            "model": model,
            "success": result.success,
            "error": None if result.error is None else f"{result.error.kind}: {result.error}",
        })

        if result.success:
            context.update_current_model(model)
            break
        if not should_fall_back(result.error):
            break

        model = next_model(context.provider_id, model)
        if model is None:
            logger.info("[AgentLoop] %s: fallback chain exhausted", phase)
            break
        logger.info("[AgentLoop] %s: retrying with %s", phase, model)

    result.attempt_log = attempt_log
    return result


async def run_content_with_fallback(
    context: AIContext,
    prompt: str,
    field: str = "",
    resume_context: str = "",
    action: ContentAction = "suggest",
    *,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    http_client: Optional[httpx.AsyncClient] = None,
) -> ContentResult:
    request = GenerationRequest(prompt=prompt, field=field, context=resume_context, action=action)

    async def attempt(model: str) -> ContentResult:
        return await generator.improve_content(
            context.api_key, context.provider_id, request,
            current_model=model, http_client=http_client,
        )

    return await _run_with_fallback(context, attempt, action, max_attempts)


async def run_template_with_fallback(
    context: AIContext,
    preferences: TemplatePreferences,
    *,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    http_client: Optional[httpx.AsyncClient] = None,
) -> TemplateResult:
    async def attempt(model: str) -> TemplateResult:
        return await generator.generate_template(
            preferences, context.api_key, context.provider_id,
            current_model=model, http_client=http_client,
        )

    return await _run_with_fallback(context, attempt, "generate-template", max_attempts)
