import re
import uuid

# Freeform template descriptions and custom CSS are pasted into the template
# prompt, so they are screened for instruction overrides and for requests
# that would steer the model toward code the validator rejects anyway.
INJECTION_PATTERNS: list[tuple[str, re.Pattern]] = [
    ("instruction override", re.compile(r"(ignore|disregard|forget)\s+(all\s+)?(previous|prior|above|the)\b.{0,20}(instructions|rules|prompt)", re.I)),
    ("role change", re.compile(r"\byou are now\b|\bpretend (to be|you)\b", re.I)),
    ("chat markup", re.compile(r"<\|.*?\|>|\[/?INST\]|^\s*(system|assistant)\s*:", re.I | re.M)),
    ("script request", re.compile(r"<\s*script|javascript:|\beval\s*\(|\bnew Function\b", re.I)),
    ("module request", re.compile(r"(?<![@\w])import\s+[\w{}*,\s]+?\s+from\b|(?<![@\w])(import|require)\s*\(?\s*['\"]|\bexport default\b", re.I)),
    ("network request", re.compile(r"\bfetch\s*\(|XMLHttpRequest|\bwindow\.location\b|document\.cookie", re.I)),
    ("raw HTML injection", re.compile(r"dangerouslySetInnerHTML|\binnerHTML\b", re.I)),
    ("css escape", re.compile(r"expression\s*\(|@import|url\s*\(\s*['\"]?\s*javascript", re.I)),
]

MAX_DESCRIPTION_CHARS = 1000


def sanitize_prompt(user_input: str, max_chars: int = MAX_DESCRIPTION_CHARS) -> tuple[str, list[str]]:
    warnings = []
    cleaned = user_input
    for label, pattern in INJECTION_PATTERNS:
        cleaned, count = pattern.subn("[REDACTED]", cleaned)
        if count:
            warnings.append(f"Removed {label} from the description.")
    if len(cleaned) > max_chars:
        cleaned = cleaned[:max_chars]
        warnings.append(f"Description truncated to {max_chars} characters.")
    return cleaned.strip(), warnings


def format_prompt(prompt: str) -> str:
    """Collapse runs of blank lines and trim."""
    return re.sub(r"\n{3,}", "\n\n", prompt).strip()


def validate_prompt(prompt: str, min_length: int = 10, required_phrases: tuple[str, ...] = ()) -> list[str]:
    errors = []
    if len(prompt) < min_length:
        errors.append(f"Prompt is too short. Minimum length is {min_length} characters.")
    for phrase in required_phrases:
        if phrase not in prompt:
            errors.append(f'Prompt must include the phrase: "{phrase}"')
    return errors


def description_to_template_name(description: str) -> str:
    """Turn a freeform description into a short Title Case template name."""
    stop_words = {"a", "an", "the", "with", "and", "for", "of", "in", "on", "at", "to", "create"}
    words = re.sub(r"[^a-zA-Z0-9\s]", "", description).lower().split()
    filtered = [w for w in words if w not in stop_words][:4]
    return " ".join(w.capitalize() for w in filtered) if filtered else "Custom Template"


def new_template_id() -> str:
    return f"custom-{uuid.uuid4().hex[:12]}"
