"""
resume_ai/storage.py
====================
Local persistence for credentials and custom templates.

LocalStore is a small JSON-file key/value store shaped like browser
localStorage: string keys, string values, whole-file replace on every write
(last write wins, no locking).

Keys:
  aiApiKey, aiService, aiCurrentModel   - the user's credential
  customTemplates                        - JSON list of CustomTemplate records
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from resume_ai.models import Credential, CustomTemplate
from resume_ai.validator import validate_template_code

logger = logging.getLogger(__name__)

DEFAULT_STORE_PATH = Path.home() / ".resume_ai" / "local_storage.json"

API_KEY_KEY       = "aiApiKey"
SERVICE_KEY       = "aiService"
CURRENT_MODEL_KEY = "aiCurrentModel"
TEMPLATES_KEY     = "customTemplates"


class LocalStore:
    def __init__(self, path: Union[str, Path, None] = None) -> None:
        if path is None:
            path = os.getenv("RESUME_AI_STORE") or DEFAULT_STORE_PATH
        self.path = Path(path).expanduser()

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning("[Storage] %s is not valid JSON; starting empty", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")

    def get_item(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove_item(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)


# ── Credentials ───────────────────────────────────────────────────────────────

def load_credential(store: LocalStore) -> Credential:
    """Missing entries mean "not configured", which is not an error."""
    return Credential(
        api_key=store.get_item(API_KEY_KEY) or "",
        provider_id=store.get_item(SERVICE_KEY) or "",
        current_model=store.get_item(CURRENT_MODEL_KEY) or "",
    )


def save_credential(store: LocalStore, credential: Credential) -> None:
    store.set_item(API_KEY_KEY, credential.api_key)
    store.set_item(SERVICE_KEY, credential.provider_id)
    if credential.current_model:
        store.set_item(CURRENT_MODEL_KEY, credential.current_model)
    else:
        store.remove_item(CURRENT_MODEL_KEY)


def save_current_model(store: LocalStore, model: str) -> None:
    store.set_item(CURRENT_MODEL_KEY, model)


def clear_credential(store: LocalStore) -> None:
    for key in (API_KEY_KEY, SERVICE_KEY, CURRENT_MODEL_KEY):
        store.remove_item(key)


# ── Custom templates ──────────────────────────────────────────────────────────

class CustomTemplateStore:
    """
    CustomTemplate records kept under ``customTemplates``.

    Every write goes through validate_template_code(); code that fails is
    never persisted and the validator's error is raised instead.
    """

    def __init__(self, store: LocalStore) -> None:
        self.store = store

    def list_templates(self) -> list[CustomTemplate]:
        raw = self.store.get_item(TEMPLATES_KEY)
        if not raw:
            return []
        try:
            items = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("[Storage] customTemplates is not valid JSON; ignoring it")
            return []

        templates = []
        for item in items if isinstance(items, list) else []:
            try:
                templates.append(CustomTemplate.model_validate(item))
            except ValidationError as exc:
                logger.warning("[Storage] skipping malformed template: %s", exc.errors()[0]["msg"])
        return templates

    def get_template(self, template_id: str) -> Optional[CustomTemplate]:
        for template in self.list_templates():
            if template.id == template_id:
                return template
        return None

    def _write_all(self, templates: list[CustomTemplate]) -> None:
        self.store.set_item(TEMPLATES_KEY, json.dumps([t.to_json_dict() for t in templates]))

    def _validated(self, template: CustomTemplate) -> CustomTemplate:
        result = validate_template_code(template.code)
        if not result.is_valid:
            raise result.to_error()
        return template

    def add_template(self, template: CustomTemplate) -> CustomTemplate:
        template = self._validated(template)
        templates = self.list_templates()
        if any(t.id == template.id for t in templates):
            raise ValueError(f"A template with id {template.id!r} already exists")
        templates.append(template)
        self._write_all(templates)
        logger.info("[Storage] saved template %s (%s)", template.id, template.name)
        return template

    def save_template(self, template: CustomTemplate) -> CustomTemplate:
        template = self._validated(template)
        templates = self.list_templates()
        for idx, existing in enumerate(templates):
            if existing.id == template.id:
                templates[idx] = template
                break
        else:
            templates.append(template)
        self._write_all(templates)
        return template

    def delete_template(self, template_id: str) -> bool:
        templates = self.list_templates()
        kept = [t for t in templates if t.id != template_id]
        if len(kept) == len(templates):
            return False
        self._write_all(kept)
        return True
