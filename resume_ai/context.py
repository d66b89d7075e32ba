"""
resume_ai/context.py
====================
AIContext: the capability object handed to UI code that needs the AI layer.

It carries the provider id, key and current model, and the one mutation UI
code may perform: update_current_model(), which also persists the choice.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from resume_ai import generator
from resume_ai.model_registry import get_preferred_model, next_model
from resume_ai.models import ContentResult, Credential, GenerationRequest, TemplatePreferences, TemplateResult
from resume_ai.storage import LocalStore, load_credential, save_current_model

logger = logging.getLogger(__name__)


@dataclass
class AIContext:
    provider_id: str = ""
    api_key: str = ""
    current_model: str = ""
    store: Optional[LocalStore] = None

    @classmethod
    def from_store(cls, store: LocalStore) -> "AIContext":
        credential = load_credential(store)
        return cls(
            provider_id=credential.provider_id,
            api_key=credential.api_key,
            current_model=credential.current_model,
            store=store,
        )

    @property
    def credential(self) -> Credential:
        return Credential(
            api_key=self.api_key, provider_id=self.provider_id, current_model=self.current_model
        )

    @property
    def is_configured(self) -> bool:
        return self.credential.is_configured

    @property
    def model(self) -> str:
        return self.current_model or get_preferred_model(self.provider_id)

    def update_current_model(self, model: str) -> None:
        if model == self.current_model:
            return
        logger.info("[Context] current model %s -> %s", self.model, model)
        self.current_model = model
        if self.store is not None:
            save_current_model(self.store, model)

    def next_fallback_model(self) -> Optional[str]:
        return next_model(self.provider_id, self.model)

    async def improve(
        self,
        request: GenerationRequest,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> ContentResult:
        return await generator.improve_content(
            self.api_key, self.provider_id, request,
            current_model=self.model, http_client=http_client,
        )

    async def generate_template(
        self,
        preferences: TemplatePreferences,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> TemplateResult:
        return await generator.generate_template(
            preferences, self.api_key, self.provider_id,
            current_model=self.model, http_client=http_client,
        )
