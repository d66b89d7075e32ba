import json

import pytest

from conftest import VALID_TEMPLATE
from resume_ai.context import AIContext
from resume_ai.errors import InvalidTemplateStructure, ValidationSyntaxError
from resume_ai.models import Credential, CustomTemplate
from resume_ai.storage import (
    TEMPLATES_KEY,
    CustomTemplateStore,
    LocalStore,
    clear_credential,
    load_credential,
    save_credential,
    save_current_model,
)


def test_local_store_roundtrip_and_persistence(store):
    store.set_item("a", "1")
    store.set_item("b", "2")
    store.remove_item("a")
    store.remove_item("missing")

    reopened = LocalStore(store.path)
    assert reopened.get_item("a") is None
    assert reopened.get_item("b") == "2"


def test_store_path_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("RESUME_AI_STORE", str(tmp_path / "custom.json"))
    assert LocalStore().path == tmp_path / "custom.json"


def test_corrupt_store_reads_as_empty(store):
    store.path.write_text("{not json", encoding="utf-8")
    assert store.get_item("aiApiKey") is None


def test_no_credential_is_a_valid_state(store):
    credential = load_credential(store)
    assert credential == Credential()
    assert not credential.is_configured


def test_credential_lifecycle(store):
    save_credential(store, Credential(api_key="sk", provider_id="groq"))
    save_current_model(store, "gemma2-9b-it")
    assert load_credential(store) == Credential(api_key="sk", provider_id="groq", current_model="gemma2-9b-it")
    assert store.get_item("aiService") == "groq"

    clear_credential(store)
    assert load_credential(store) == Credential()


def test_context_from_store_and_model_update(store):
    save_credential(store, Credential(api_key="sk", provider_id="anthropic"))
    context = AIContext.from_store(store)

    assert context.is_configured
    assert context.model == "claude-3-5-sonnet-20241022"
    assert context.next_fallback_model() == "claude-3-opus-20240229"

    context.update_current_model("claude-3-haiku-20240307")
    assert AIContext.from_store(store).model == "claude-3-haiku-20240307"
    assert context.next_fallback_model() is None


def test_template_roundtrip_is_identical(store):
    templates = CustomTemplateStore(store)
    original = CustomTemplate(id="custom-abc", name="Clean Two Column", code=VALID_TEMPLATE)
    templates.add_template(original)

    loaded = CustomTemplateStore(LocalStore(store.path)).get_template("custom-abc")
    assert loaded.id == original.id
    assert loaded.name == original.name
    assert loaded.code == original.code
    assert loaded.created_at == original.created_at
    assert loaded.is_custom


def test_persisted_format_is_camel_case(store):
    CustomTemplateStore(store).add_template(CustomTemplate(id="t1", name="T", code=VALID_TEMPLATE))
    record = json.loads(store.get_item(TEMPLATES_KEY))[0]
    assert {"id", "name", "code", "preferences", "createdAt", "isCustom"} <= set(record)
    assert "colorScheme" in record["preferences"]


@pytest.mark.parametrize("code, error_type", [
    ("document.body.innerHTML = 'x'", InvalidTemplateStructure),
    ("React.createElement('div', null))", ValidationSyntaxError),
])
def test_invalid_code_is_never_persisted(store, code, error_type):
    templates = CustomTemplateStore(store)
    with pytest.raises(error_type):
        templates.add_template(CustomTemplate(id="bad", name="Bad", code=code))
    assert templates.list_templates() == []
    assert store.get_item(TEMPLATES_KEY) is None


def test_duplicate_id_rejected(store):
    templates = CustomTemplateStore(store)
    templates.add_template(CustomTemplate(id="t1", name="One", code=VALID_TEMPLATE))
    with pytest.raises(ValueError):
        templates.add_template(CustomTemplate(id="t1", name="Again", code=VALID_TEMPLATE))


def test_save_template_upserts_in_place(store):
    templates = CustomTemplateStore(store)
    templates.add_template(CustomTemplate(id="t1", name="One", code=VALID_TEMPLATE))
    templates.add_template(CustomTemplate(id="t2", name="Two", code=VALID_TEMPLATE))

    templates.save_template(CustomTemplate(id="t1", name="One v2", code="React.createElement('div', null)"))

    assert [t.name for t in templates.list_templates()] == ["One v2", "Two"]
    assert templates.get_template("t1").code == "React.createElement('div', null)"


def test_delete_template(store):
    templates = CustomTemplateStore(store)
    templates.add_template(CustomTemplate(id="t1", name="One", code=VALID_TEMPLATE))

    assert templates.delete_template("t1") is True
    assert templates.delete_template("t1") is False
    assert templates.list_templates() == []


def test_code_is_stored_byte_for_byte(store):
    code = f"\n  {VALID_TEMPLATE}\n"
    templates = CustomTemplateStore(store)
    templates.add_template(CustomTemplate(id="t1", name="One", code=code))

    assert CustomTemplateStore(LocalStore(store.path)).get_template("t1").code == code


def test_fenced_code_validates_but_is_kept_as_given(store):
    code = f"```jsx\n{VALID_TEMPLATE}\n```"
    saved = CustomTemplateStore(store).add_template(CustomTemplate(id="t1", name="One", code=code))
    assert saved.code == code


def test_malformed_records_are_skipped(store):
    store.set_item(TEMPLATES_KEY, json.dumps([{"id": "x"}, {"id": "ok", "name": "Ok", "code": VALID_TEMPLATE}]))
    assert [t.id for t in CustomTemplateStore(store).list_templates()] == ["ok"]


def test_edited_code_that_fails_validation_keeps_previous_version(store):
    templates = CustomTemplateStore(store)
    templates.add_template(CustomTemplate(id="t1", name="One", code=VALID_TEMPLATE))

    with pytest.raises(ValidationSyntaxError):
        templates.save_template(CustomTemplate(id="t1", name="One", code=VALID_TEMPLATE[:-1]))
    assert templates.get_template("t1").code == VALID_TEMPLATE


def test_rejected_draft_can_be_fixed_and_saved(store):
    templates = CustomTemplateStore(store)
    draft = CustomTemplate(id="draft", name="Draft", code="React.createElement('div', null, personalInfo.name")
    with pytest.raises(ValidationSyntaxError):
        templates.save_template(draft)

    fixed = templates.save_template(draft.model_copy(update={"code": draft.code + ")"}))
    assert templates.list_templates() == [fixed]
