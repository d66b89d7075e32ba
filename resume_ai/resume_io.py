"""
resume_ai/resume_io.py
======================
Resume JSON export/import and the sample resume used for template previews.
"""

from __future__ import annotations

import json

from pydantic import ValidationError

from resume_ai.models import (
    AdditionalSection, Education, PersonalInfo, Project, ResumeColors,
    ResumeData, WorkExperience,
)


class ResumeImportError(ValueError):
    """The uploaded file is not a resume exported by this tool."""


def export_resume_json(resume: ResumeData) -> str:
    return json.dumps(resume.to_json_dict(), indent=2)


def import_resume_json(text: str) -> ResumeData:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ResumeImportError(f"Invalid JSON: {exc.msg} (line {exc.lineno})") from exc
    if not isinstance(data, dict):
        raise ResumeImportError("Resume file must contain a JSON object")
    try:
        return ResumeData.model_validate(data)
    except ValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        raise ResumeImportError(f"Invalid resume data at {location}: {first['msg']}") from exc


def sample_resume_data() -> ResumeData:
    return ResumeData(
        personal_info=PersonalInfo(
            name="Jordan Rivera",
            title="Senior Software Engineer",
            email="jordan.rivera@example.com",
            phone="+1 555 010 2030",
            location="Austin, TX",
            summary=(
                "Backend engineer with eight years of experience building reliable "
                "data platforms and developer tooling."
            ),
        ),
        work_experience=[
            WorkExperience(
                id="work-1",
                company="Northwind Analytics",
                position="Senior Software Engineer",
                start_date="2021-03",
                end_date="Present",
                description="Led the migration of batch pipelines to streaming, cutting report latency by 80%.",
            ),
            WorkExperience(
                id="work-2",
                company="Contoso Labs",
                position="Software Engineer",
                start_date="2017-06",
                end_date="2021-02",
                description="Built internal APIs used by 40 product teams.",
            ),
        ],
        education=[
            Education(
                id="edu-1",
                institution="University of Texas",
                degree="B.S.",
                field_of_study="Computer Science",
                start_date="2013",
                end_date="2017",
            ),
        ],
        skills=["Python", "PostgreSQL", "Kubernetes", "System Design"],
        projects=[
            Project(
                id="proj-1",
                name="pipeline-lint",
                description="Static checker for data pipeline configs.",
                technologies="Python, AST",
                link="https://example.com/pipeline-lint",
            ),
        ],
        additional_sections=[
            AdditionalSection(id="extra-1", title="Languages", content="English, Spanish"),
        ],
        colors=ResumeColors(primary="#1f2937", secondary="#4b5563", accent="#2563eb"),
    )
