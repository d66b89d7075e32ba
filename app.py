import asyncio

import streamlit as st
import streamlit.components.v1 as components

from resume_ai.agent_loop import run_content_with_fallback, run_template_with_fallback
from resume_ai.context import AIContext
from resume_ai.model_discovery import fetch_available_models
from resume_ai.model_registry import AI_MODELS, PROVIDER_IDS
from resume_ai.models import (
    ColorScheme, Credential, CustomTemplate, GridConfiguration, HeaderStyle,
    TemplatePreferences, VisualElements,
)
from resume_ai.renderer import TemplateRenderError, render_template
from resume_ai.resume_io import ResumeImportError, export_resume_json, import_resume_json, sample_resume_data
from resume_ai.storage import CustomTemplateStore, LocalStore, clear_credential, save_credential
from resume_ai.utils import description_to_template_name, new_template_id
from resume_ai.validator import validate_template_code

st.set_page_config(
    page_title="Resume AI",
    page_icon="📝",
    layout="wide"
)

st.title("📝 Resume AI")
st.caption("Improve resume text and generate custom resume templates with your own AI key.")

store = LocalStore()
template_store = CustomTemplateStore(store)

# ── Session state init ──────────────────────────────────────────────────────
if "resume" not in st.session_state:
    st.session_state.resume = sample_resume_data()
if "suggestions" not in st.session_state:
    st.session_state.suggestions = None
if "template_result" not in st.session_state:
    st.session_state.template_result = None
if "models" not in st.session_state:
    st.session_state.models = {}
if "gen_id" not in st.session_state:
    st.session_state.gen_id = 0
if "draft_id" not in st.session_state:
    st.session_state.draft_id = new_template_id()

context = AIContext.from_store(store)


def _preview(code: str, height: int = 700) -> None:
    try:
        html = render_template(code, st.session_state.resume)
    except TemplateRenderError as exc:
        st.error(f"⛔ Preview failed: {exc}")
        return
    components.html(html, height=height, scrolling=True)


def _edit_and_save(template: CustomTemplate, key: str) -> None:
    edited = st.text_area("Template code", value=template.code, height=400, key=f"code_{key}")
    if st.button("✅ Validate & save", key=f"resave_{key}"):
        check = validate_template_code(edited)
        if not check.is_valid:
            st.error(f"⛔ {check.kind}: {check.reason}")
            return
        template_store.save_template(template.model_copy(update={"code": check.code}))
        st.toast(f"Saved {template.name!r}.")
        st.rerun()


def _show_attempts(attempt_log: list[dict]) -> None:
    with st.expander("🔍 Attempt Log", expanded=False):
        for log in attempt_log:
            status = "✅ Passed" if log["success"] else "❌ Failed"
            st.markdown(f"**Attempt {log['attempt']} ({log['model']})** - {status}")
            if log["error"]:
                st.error(log["error"])


# ── Sidebar: credential and model ───────────────────────────────────────────
with st.sidebar:
    st.header("🔑 AI Service")
    service_index = PROVIDER_IDS.index(context.provider_id) if context.provider_id in PROVIDER_IDS else 0
    service = st.selectbox(
        "Service",
        PROVIDER_IDS,
        index=service_index,
        format_func=lambda p: AI_MODELS[p].label,
    )
    api_key = st.text_input("API key", value=context.api_key, type="password")

    col_save, col_clear = st.columns(2)
    if col_save.button("Save", use_container_width=True):
        save_credential(store, Credential(api_key=api_key, provider_id=service))
        st.session_state.models.pop(service, None)
        st.rerun()
    if col_clear.button("Clear", use_container_width=True):
        clear_credential(store)
        st.rerun()

    if context.is_configured:
        if context.provider_id not in st.session_state.models:
            with st.spinner("Fetching models..."):
                st.session_state.models[context.provider_id] = asyncio.run(
                    fetch_available_models(context.provider_id, context.api_key)
                )
        models = st.session_state.models[context.provider_id]
        if context.model not in models:
            models = [context.model, *models]
        chosen = st.selectbox("Model", models, index=models.index(context.model))
        if chosen != context.model:
            context.update_current_model(chosen)
            st.rerun()
    else:
        st.info("No AI credential configured.")

    st.divider()
    st.header("📄 Resume Data")
    st.download_button(
        label="⬇️ Export resume JSON",
        data=export_resume_json(st.session_state.resume),
        file_name="resume.json",
        mime="application/json",
    )
    uploaded = st.file_uploader("Import resume JSON", type=["json"])
    if uploaded is not None:
        try:
            st.session_state.resume = import_resume_json(uploaded.getvalue().decode("utf-8"))
            st.success("Resume imported.")
        except (ResumeImportError, UnicodeDecodeError) as exc:
            st.error(f"⛔ {exc}")

tab_improve, tab_generate, tab_saved = st.tabs([
    "✍️ Improve Text",
    "🎨 Generate Template",
    "💾 Saved Templates",
])

# ── Improve text ────────────────────────────────────────────────────────────
with tab_improve:
    field = st.selectbox("Field", [
        "personal info", "work experience", "education", "skill",
        "project name", "project description",
        "additional section title", "additional section content",
    ])
    action = st.radio("Action", ["suggest", "optimize", "grammar"], horizontal=True)
    text = st.text_area("Text to improve")
    resume_context = st.text_input("Resume context (target role, industry)")

    if st.button("Improve", disabled=not context.is_configured or not text.strip()):
        with st.spinner("🔄 Asking the model..."):
            st.session_state.suggestions = asyncio.run(
                run_content_with_fallback(context, text, field, resume_context, action)
            )

    result = st.session_state.suggestions
    if result is not None:
        if result.success:
            st.success(f"✅ {len(result.suggestions)} suggestion(s) from {result.model}")
            for suggestion in result.suggestions:
                st.code(suggestion, language=None)
        else:
            st.error(f"⛔ {result.error.kind}: {result.error}")
        _show_attempts(result.attempt_log)

# ── Generate template ───────────────────────────────────────────────────────
with tab_generate:
    description = st.text_area(
        "Describe your template",
        placeholder="e.g. 'A minimal two-column layout with a bold header and teal accents'",
    )
    col1, col2, col3 = st.columns(3)
    columns = col1.selectbox("Columns", [1, 2, 3])
    spacing = col2.selectbox("Spacing", ["compact", "balanced", "spacious"], index=1)
    header_alignment = col3.selectbox("Header alignment", ["left", "center", "right"])

    col4, col5, col6 = st.columns(3)
    primary = col4.color_picker("Primary", "#000000")
    secondary = col5.color_picker("Secondary", "#666666")
    accent = col6.color_picker("Accent", "#0066cc")
    use_icons = st.checkbox("Use icons")
    use_dividers = st.checkbox("Use dividers", value=True)

    preferences = TemplatePreferences(
        layout="single-column" if columns == 1 else "two-column",
        name=description_to_template_name(description),
        header_style=HeaderStyle(alignment=header_alignment),
        color_scheme=ColorScheme(primary=primary, secondary=secondary, accent=accent),
        visual_elements=VisualElements(use_icons=use_icons, use_dividers=use_dividers),
        spacing=spacing,
        freeform_description=description or None,
        grid_configuration=GridConfiguration(columns=columns),
    )

    if st.button("Generate", disabled=not context.is_configured):
        with st.spinner("🔄 Generating template..."):
            st.session_state.template_result = asyncio.run(
                run_template_with_fallback(context, preferences)
            )
        st.session_state.gen_id += 1
        st.session_state.draft_id = new_template_id()

    result = st.session_state.template_result
    if result is not None:
        gen_id = st.session_state.gen_id
        for warning in result.warnings:
            st.warning(f"⚠️ {warning}")

        if result.success:
            st.success(f"✅ Template generated by {result.model}")
            _preview(result.template_code)
        else:
            st.error(f"⛔ {result.error.kind}: {result.error}")

        _show_attempts(result.attempt_log)
        if result.template_code:
            # rejected code is kept for hand editing; saving re-validates it
            name = st.text_input("Template name", value=preferences.name, key=f"name_{gen_id}")
            with st.expander("📄 Template code", expanded=not result.success):
                _edit_and_save(CustomTemplate(
                    id=st.session_state.draft_id,
                    name=name,
                    code=result.template_code,
                    preferences=preferences,
                ), key=f"draft_{gen_id}")

# ── Saved templates ─────────────────────────────────────────────────────────
with tab_saved:
    templates = template_store.list_templates()
    if not templates:
        st.info("No saved templates yet.")

    for template in templates:
        with st.expander(f"{template.name} - {template.created_at:%Y-%m-%d}"):
            check = validate_template_code(template.code)
            if check.is_valid:
                _preview(template.code, height=500)
            else:
                st.error(f"⛔ {check.kind}: {check.reason}")
            _edit_and_save(template, key=template.id)
            if st.button("🗑️ Delete", key=f"delete_{template.id}"):
                template_store.delete_template(template.id)
                st.rerun()
