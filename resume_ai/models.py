"""
resume_ai/models.py
===================
Pydantic v2 records for the AI layer.

Persisted records (CustomTemplate, TemplatePreferences, ResumeData) serialise
with camelCase keys so the JSON written to the local store keeps the same
shape as the browser's localStorage entries.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from resume_ai.errors import GenerationError

ContentAction = Literal["suggest", "optimize", "grammar"]
Action = Literal["suggest", "optimize", "grammar", "generate-template"]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


# ── Credentials & requests ────────────────────────────────────────────────────

class Credential(BaseModel):
    api_key: str = ""
    provider_id: str = ""
    current_model: str = ""

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.provider_id)


class GenerationRequest(BaseModel):
    prompt: str
    field: str = ""
    context: str = ""
    action: Action = "suggest"


# ── Template preferences ──────────────────────────────────────────────────────

class CustomStyles(_CamelModel):
    padding: Optional[str] = None
    margin: Optional[str] = None
    background: Optional[str] = None
    border_radius: Optional[str] = None


class HeaderStyle(_CamelModel):
    position: Literal["top", "side", "custom"] = "top"
    alignment: Literal["left", "center", "right", "custom"] = "left"
    size: Literal["small", "medium", "large", "custom"] = "medium"
    custom_styles: Optional[CustomStyles] = None


class ColorScheme(_CamelModel):
    primary: str = "#000000"
    secondary: str = "#666666"
    accent: str = "#0066cc"
    background: str = "#ffffff"
    custom: Optional[dict[str, str]] = None


class CustomElements(_CamelModel):
    divider_style: Optional[str] = None
    icon_set: Optional[str] = None
    custom_borders: Optional[str] = None


class VisualElements(_CamelModel):
    use_dividers: bool = True
    use_icons: bool = False
    border_style: Literal["none", "solid", "dashed", "custom"] = "none"
    use_shapes: bool = False
    custom_elements: Optional[CustomElements] = None


class GridConfiguration(_CamelModel):
    columns: Literal[1, 2, 3] = 1


class TemplatePreferences(_CamelModel):
    layout: Literal["single-column", "two-column", "mixed", "custom"] = "single-column"
    name: str = ""
    header_style: HeaderStyle = Field(default_factory=HeaderStyle)
    section_order: list[str] = Field(default_factory=list)
    color_scheme: ColorScheme = Field(default_factory=ColorScheme)
    visual_elements: VisualElements = Field(default_factory=VisualElements)
    spacing: Literal["compact", "balanced", "spacious", "custom"] = "balanced"
    custom_css: Optional[str] = None
    freeform_description: Optional[str] = None
    grid_configuration: Optional[GridConfiguration] = None


class CustomTemplate(_CamelModel):
    id: str
    name: str
    code: str
    preferences: TemplatePreferences = Field(default_factory=TemplatePreferences)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    is_custom: bool = True


# ── Resume data ───────────────────────────────────────────────────────────────

class PersonalInfo(_CamelModel):
    name: str = ""
    title: str = ""
    email: str = ""
    phone: str = ""
    location: str = ""
    summary: str = ""


class WorkExperience(_CamelModel):
    id: str
    company: str = ""
    position: str = ""
    start_date: str = ""
    end_date: str = ""
    description: str = ""


class Education(_CamelModel):
    id: str
    institution: str = ""
    degree: str = ""
    field_of_study: str = ""
    start_date: str = ""
    end_date: str = ""
    description: str = ""


class Project(_CamelModel):
    id: str
    name: str = ""
    description: str = ""
    technologies: str = ""
    link: str = ""
    github: str = ""


class AdditionalSection(_CamelModel):
    id: str
    title: str = ""
    content: str = ""


class ResumeColors(_CamelModel):
    primary: str = ""
    secondary: str = ""
    accent: str = ""


class ResumeData(_CamelModel):
    personal_info: PersonalInfo = Field(default_factory=PersonalInfo)
    work_experience: list[WorkExperience] = Field(default_factory=list)
    education: list[Education] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    projects: list[Project] = Field(default_factory=list)
    additional_sections: list[AdditionalSection] = Field(default_factory=list)
    colors: ResumeColors = Field(default_factory=ResumeColors)


# ── Transient results ─────────────────────────────────────────────────────────

class ContentResult(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    success: bool
    suggestions: list[str] = Field(default_factory=list)
    model: str = ""
    error: Optional[GenerationError] = None
    attempt_log: list[dict] = Field(default_factory=list)


class TemplateResult(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    success: bool
    template_code: str = ""
    model: str = ""
    error: Optional[GenerationError] = None
    warnings: list[str] = Field(default_factory=list)
    attempt_log: list[dict] = Field(default_factory=list)
