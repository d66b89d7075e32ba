"""
main.py
=======
Command-line entry point for the resume AI layer.

Flow:
    Credential (env RESUME_AI_API_KEY / RESUME_AI_SERVICE, else local store,
    else prompted and saved)
        |
        v
    [1] Improve a field   -->  provider (with capped model fallback)
    [2] Generate template -->  provider  -->  Template Code Validator
        |                                       |
        |                                       |-- VALID   --> saved + preview.html
        |                                       |-- INVALID --> raw saved, exit(2)
    [3] List models       -->  live discovery (falls back to static list)

Exit codes: 1 on credential/provider failure, 2 on a rejected template.

Usage:
    python main.py
"""

from __future__ import annotations

import asyncio
import os
import sys
from pathlib import Path

from resume_ai.agent_loop import run_content_with_fallback, run_template_with_fallback
from resume_ai.context import AIContext
from resume_ai.errors import InvalidTemplateStructure, ValidationSyntaxError
from resume_ai.model_discovery import fetch_available_models
from resume_ai.model_registry import AI_MODELS, PROVIDER_IDS
from resume_ai.models import Credential, CustomTemplate, GridConfiguration, TemplatePreferences
from resume_ai.renderer import TemplateRenderError, render_template
from resume_ai.resume_io import sample_resume_data
from resume_ai.storage import CustomTemplateStore, LocalStore, save_credential
from resume_ai.utils import description_to_template_name, new_template_id

OUTPUT_DIR = Path(__file__).resolve().parent / "output_template"

_ACTIONS = ("suggest", "optimize", "grammar")


def _print_banner(context: AIContext) -> None:
    print("=" * 60)
    print("   Resume AI")
    print(f"   Service : {context.provider_id}")
    print(f"   Model   : {context.model}")
    print("=" * 60)


def _print_attempts(attempt_log: list[dict]) -> None:
    for entry in attempt_log:
        status = "ok" if entry["success"] else entry["error"]
        print(f"    • attempt {entry['attempt']} [{entry['model']}]: {status}")


def _load_context(store: LocalStore) -> AIContext:
    env_key = os.getenv("RESUME_AI_API_KEY", "")
    env_service = os.getenv("RESUME_AI_SERVICE", "")
    if env_key and env_service:
        return AIContext(provider_id=env_service, api_key=env_key, store=store)

    context = AIContext.from_store(store)
    if context.is_configured:
        return context

    print(f"\n[Setup] No AI credential configured. Services: {', '.join(PROVIDER_IDS)}")
    service = input("Service: ").strip().lower()
    if service not in AI_MODELS:
        print(f"\n[Error] Unknown service {service!r}. Exiting.")
        sys.exit(1)
    api_key = input("API key: ").strip()
    if not api_key:
        print("\n[Error] No API key provided. Exiting.")
        sys.exit(1)

    save_credential(store, Credential(api_key=api_key, provider_id=service))
    print(f"[Setup] Credential saved to {store.path}")
    return AIContext.from_store(store)


def _improve(context: AIContext) -> None:
    field = input("\nField (e.g. work experience, skill): ").strip()
    action = input(f"Action {_ACTIONS} [suggest]: ").strip().lower() or "suggest"
    if action not in _ACTIONS:
        print(f"\n[Error] Unknown action {action!r}. Exiting.")
        sys.exit(1)
    text = input("Text to improve: ").strip()
    if not text:
        print("\n[Error] No text provided. Exiting.")
        sys.exit(1)

    print(f"\n[Generator] {action} via {context.provider_id}/{context.model} ...")
    result = asyncio.run(run_content_with_fallback(context, text, field, "", action))

    if not result.success:
        print(f"\n[Generator] ❌  {result.error.kind}: {result.error}")
        _print_attempts(result.attempt_log)
        sys.exit(1)

    print(f"[Generator] ✅  {len(result.suggestions)} suggestion(s) from {result.model}:\n")
    for idx, suggestion in enumerate(result.suggestions, start=1):
        print(f"  {idx}. {suggestion}")


def _generate_template(context: AIContext, store: LocalStore) -> None:
    description = input("\nDescribe the template: ").strip()
    columns = input("Columns (1-3) [1]: ").strip() or "1"
    if columns not in ("1", "2", "3"):
        print("\n[Error] Columns must be 1, 2 or 3. Exiting.")
        sys.exit(1)

    preferences = TemplatePreferences(
        name=description_to_template_name(description),
        freeform_description=description or None,
        grid_configuration=GridConfiguration(columns=int(columns)),
    )

    print(f"\n[Generator] Template via {context.provider_id}/{context.model} ...")
    result = asyncio.run(run_template_with_fallback(context, preferences))
    for warning in result.warnings:
        print(f"[Security] {warning}")

    if not result.success:
        print(f"\n[Validator] ❌  {result.error.kind}: {result.error}")
        _print_attempts(result.attempt_log)
        if isinstance(result.error, (InvalidTemplateStructure, ValidationSyntaxError)):
            OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
            failed_path = OUTPUT_DIR / "template_rejected.txt"
            failed_path.write_text(result.template_code, encoding="utf-8")
            print(f"\n[Main] Template rejected. Saved for review: {failed_path}")
            sys.exit(2)
        sys.exit(1)

    print("[Validator] ✅  Template passed all checks.")
    template = CustomTemplateStore(store).add_template(CustomTemplate(
        id=new_template_id(),
        name=preferences.name,
        code=result.template_code,
        preferences=preferences,
    ))
    print(f"[Storage] Saved as {template.name!r} ({template.id})")

    try:
        html = render_template(template.code, sample_resume_data())
    except TemplateRenderError as exc:
        print(f"[Renderer] Preview failed: {exc}")
        return
    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    preview_path = OUTPUT_DIR / "preview.html"
    preview_path.write_text(f"<!doctype html>\n<html><body>{html}</body></html>\n", encoding="utf-8")
    print(f"[Renderer] Preview written: {preview_path}")


def _list_models(context: AIContext) -> None:
    print(f"\n[Discovery] Fetching models for {context.provider_id} ...")
    models = asyncio.run(fetch_available_models(context.provider_id, context.api_key))
    for model in models:
        marker = "*" if model == context.model else " "
        print(f"  {marker} {model}")


def main() -> None:
    store = LocalStore()
    context = _load_context(store)
    _print_banner(context)

    print("\n  1. Improve a resume field")
    print("  2. Generate a template")
    print("  3. List available models")
    choice = input("\nChoose: ").strip()

    if choice == "1":
        _improve(context)
    elif choice == "2":
        _generate_template(context, store)
    elif choice == "3":
        _list_models(context)
    else:
        print("\n[Error] Unknown choice. Exiting.")
        sys.exit(1)


if __name__ == "__main__":
    main()
