"""
resume_ai/generator.py
======================
Generation Orchestrator.

  generate_ai_content()  - raising primitive for the content path
  improve_content()      - same, returned as a tagged ContentResult
  generate_template()    - template path, threaded through the validator

A single call uses exactly one model: the caller's current model or the
provider's preferred one. Walking the fallback chain is done by
resume_ai/agent_loop.py or by the caller via AIContext.update_current_model.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

import httpx

import prompts
from llm_client import call_provider
from resume_ai.errors import EmptyResponse, GenerationError, MissingCredential
from resume_ai.model_registry import get_preferred_model
from resume_ai.models import ContentAction, ContentResult, GenerationRequest, TemplatePreferences, TemplateResult
from resume_ai.parser import parse_llm_output
from resume_ai.utils import format_prompt, sanitize_prompt, validate_prompt
from resume_ai.validator import validate_template_code

logger = logging.getLogger(__name__)

TEMPLATE_MAX_TOKENS = int(os.getenv("RESUME_AI_TEMPLATE_MAX_TOKENS", "4000"))


def _resolve_model(provider_id: str, current_model: Optional[str]) -> str:
    return current_model or get_preferred_model(provider_id)


def _require_credential(api_key: str, provider_id: str) -> None:
    if not api_key or not provider_id:
        raise MissingCredential()


# ── Content improvement ───────────────────────────────────────────────────────

def build_content_prompts(prompt: str, field: str, context: str, action: ContentAction) -> tuple[str, str]:
    """Return (system_prompt, user_prompt) for a content action."""
    if action not in prompts.SYSTEM_PROMPTS:
        raise ValueError(f"Unsupported content action: {action!r}")
    field_prompt = prompts.FIELD_PROMPTS.get(field.lower(), prompts.DEFAULT_FIELD_PROMPT)
    user_prompt = prompts.USER_PROMPTS[action].format(
        field=field or "resume",
        context=context or "Not provided",
        field_prompt=field_prompt,
        text=prompt,
    )
    return prompts.SYSTEM_PROMPTS[action], format_prompt(user_prompt)


async def generate_ai_content(
    api_key: str,
    provider_id: str,
    prompt: str,
    field: str = "",
    context: str = "",
    action: ContentAction = "suggest",
    *,
    current_model: Optional[str] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> list[str]:
    """
    Ask the provider to improve one resume field.

    Returns:
        Ordered, distinct, non-empty suggestions (at most three; one for grammar).

    Raises:
        MissingCredential: api_key or provider_id is empty. No I/O happens.
        ProviderError: the provider call failed.
        EmptyResponse: the provider answered with nothing usable.
    """
    _require_credential(api_key, provider_id)
    model = _resolve_model(provider_id, current_model)
    system_prompt, user_prompt = build_content_prompts(prompt, field, context, action)

    logger.info("[Generator] %s for %r via %s/%s", action, field, provider_id, model)
    text = await call_provider(
        provider_id, api_key, model, user_prompt,
        system_prompt=system_prompt, http_client=http_client,
    )
    if not text.strip():
        raise EmptyResponse()

    suggestions = parse_llm_output(text, action, field)
    if not suggestions:
        raise EmptyResponse("The model response contained no usable suggestions")
    return suggestions


async def improve_content(
    api_key: str,
    provider_id: str,
    request: GenerationRequest,
    *,
    current_model: Optional[str] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> ContentResult:
    """Tagged form of generate_ai_content(); generation errors come back in ``error``."""
    if request.action == "generate-template":
        raise ValueError("Template requests go through generate_template()")
    model = _resolve_model(provider_id, current_model)
    try:
        suggestions = await generate_ai_content(
            api_key, provider_id, request.prompt, request.field, request.context, request.action,
            current_model=model, http_client=http_client,
        )
    except GenerationError as exc:
        logger.warning("[Generator] %s failed: %s", exc.kind, exc)
        return ContentResult(success=False, model=model, error=exc)
    return ContentResult(success=True, suggestions=suggestions, model=model)


# ── Template generation ───────────────────────────────────────────────────────

def _grid_instructions(preferences: TemplatePreferences) -> str:
    grid = preferences.grid_configuration
    if grid is None or grid.columns <= 1:
        return prompts.SINGLE_COLUMN_INSTRUCTIONS
    return prompts.GRID_INSTRUCTIONS.format(columns=grid.columns)


def create_template_prompt(preferences: TemplatePreferences) -> tuple[str, list[str]]:
    """
    Fill the template prompt from user preferences.

    Returns:
        (prompt, warnings) where warnings come from sanitising the freeform
        description.
    """
    description, warnings = sanitize_prompt(
        preferences.freeform_description or prompts.DEFAULT_FREEFORM_DESCRIPTION
    )
    visual = preferences.visual_elements
    custom = visual.custom_elements
    colors = preferences.color_scheme
    header = preferences.header_style

    custom_css = ""
    if preferences.custom_css:
        css, css_warnings = sanitize_prompt(preferences.custom_css)
        warnings.extend(css_warnings)
        custom_css = f"Custom CSS requirements: {css}"

    text = prompts.TEMPLATE_PROMPT_TEMPLATE.format(
        freeform_description=description or prompts.DEFAULT_FREEFORM_DESCRIPTION,
        layout=preferences.layout,
        use_icons="Include" if visual.use_icons else "Exclude",
        use_dividers="Include" if visual.use_dividers else "Exclude",
        border_style=visual.border_style,
        header_size=header.size,
        spacing=preferences.spacing,
        header_position=header.position,
        header_alignment=header.alignment,
        primary_color=colors.primary,
        secondary_color=colors.secondary,
        accent_color=colors.accent,
        background_color=colors.background,
        section_order=", ".join(preferences.section_order) or "default order",
        divider_style=(custom.divider_style if custom else None) or "default",
        icon_set=(custom.icon_set if custom else None) or "default",
        custom_borders=(custom.custom_borders if custom else None) or "default",
        custom_css=custom_css,
        grid_instructions=_grid_instructions(preferences),
    )
    return format_prompt(text), warnings


def validate_template_prompt(prompt: str) -> list[str]:
    return validate_prompt(
        prompt, min_length=50, required_phrases=prompts.TEMPLATE_PROMPT_REQUIRED_PHRASES
    )


async def generate_template(
    preferences: TemplatePreferences,
    api_key: str,
    provider_id: str,
    *,
    current_model: Optional[str] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> TemplateResult:
    """
    Generate a template and gate it through the Template Code Validator.

    Every failure is returned as TemplateResult(success=False, error=...).
    On a validator rejection the cleaned code is still returned so the user
    can inspect or edit it.
    """
    model = _resolve_model(provider_id, current_model)
    try:
        _require_credential(api_key, provider_id)
    except MissingCredential as exc:
        return TemplateResult(success=False, model=model, error=exc)

    prompt, warnings = create_template_prompt(preferences)
    for warning in warnings:
        logger.warning("[Generator] %s", warning)
    prompt_errors = validate_template_prompt(prompt)
    if prompt_errors:
        # the prompt is built from our own constants, so this is a programming error
        raise ValueError("; ".join(prompt_errors))

    logger.info("[Generator] template via %s/%s", provider_id, model)
    try:
        raw = await call_provider(
            provider_id, api_key, model, prompt,
            system_prompt=prompts.TEMPLATE_SYSTEM_PROMPT,
            max_tokens=TEMPLATE_MAX_TOKENS,
            http_client=http_client,
        )
        if not raw.strip():
            raise EmptyResponse()
    except GenerationError as exc:
        logger.warning("[Generator] %s failed: %s", exc.kind, exc)
        return TemplateResult(success=False, model=model, error=exc, warnings=warnings)

    result = validate_template_code(raw)
    warnings = warnings + result.warnings
    if not result.is_valid:
        logger.warning("[Generator] template rejected (%s): %s", result.kind, result.reason)
        return TemplateResult(
            success=False, template_code=result.code, model=model,
            error=result.to_error(), warnings=warnings,
        )

    return TemplateResult(success=True, template_code=result.code, model=model, warnings=warnings)
