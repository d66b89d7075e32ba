import json

import pytest

from resume_ai.models import ResumeData
from resume_ai.resume_io import ResumeImportError, export_resume_json, import_resume_json, sample_resume_data


def test_export_import_roundtrip():
    resume = sample_resume_data()
    text = export_resume_json(resume)

    assert json.loads(text)["personalInfo"]["name"] == "Jordan Rivera"
    assert "fieldOfStudy" in json.loads(text)["education"][0]
    assert import_resume_json(text) == resume


def test_partial_file_gets_defaults():
    resume = import_resume_json('{"personalInfo": {"name": "Sam"}, "skills": ["Go"]}')
    assert resume.personal_info.name == "Sam"
    assert resume.skills == ["Go"]
    assert resume.work_experience == []


def test_malformed_json_raises():
    with pytest.raises(ResumeImportError, match="Invalid JSON"):
        import_resume_json("{nope")


def test_non_object_raises():
    with pytest.raises(ResumeImportError):
        import_resume_json("[1, 2]")


def test_schema_mismatch_names_the_field():
    with pytest.raises(ResumeImportError, match="workExperience"):
        import_resume_json('{"workExperience": [{"company": "No id"}]}')


def test_snake_case_keys_also_accepted():
    assert import_resume_json('{"personal_info": {"title": "Dev"}}') == ResumeData.model_validate(
        {"personalInfo": {"title": "Dev"}}
    )
