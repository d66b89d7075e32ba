import re

from prompts import SUGGESTION_SEPARATOR

MAX_SUGGESTIONS = 3

_FENCED_BLOCK_RE = re.compile(r"```[a-zA-Z]*\n?(.*?)```", re.DOTALL)
_NUMBERED_RE     = re.compile(r"^\s*\d+[.)]\s+", re.MULTILINE)
_BULLET_RE       = re.compile(r"^\s*[•\-*]\s+", re.MULTILINE)
_PREAMBLE_RE     = re.compile(
    r"^(?:Here(?:'s| is)(?: an?| the| your)?|I've created an?) "
    r"(?:improved|optimized|enhanced|suggested|corrected|grammar-checked|better) "
    r"(?:version|text|content|suggestion|draft|copy|example)(?: for you)?[:.]?\s*",
    re.IGNORECASE,
)


def clean_ai_response(content: str, field: str = "") -> str:
    """
    Tidy one completion for direct use in a resume field.

    Unwraps code fences and wrapping quotes, drops "Here's an improved
    version:" preambles, and trims skills / titles to their short form.
    """
    content = _FENCED_BLOCK_RE.sub(lambda m: m.group(1), content).strip()
    content = _PREAMBLE_RE.sub("", content).strip()

    if len(content) >= 2 and content[0] == content[-1] and content[0] in "\"'":
        content = content[1:-1].strip()

    field_lower = field.lower()
    if field_lower == "skill":
        content = " ".join(content.split()[:3])
        content = re.sub(r"[.,;:!?].*$", "", content)
    elif "title" in field_lower or "name" in field_lower:
        content = content.split("\n")[0].split(". ")[0].strip()
        content = content.split(":")[0].strip() if ":" in content else content
        content = " ".join(content.split()[:10])

    return content.strip()


def _split_structured(content: str) -> list[str]:
    if SUGGESTION_SEPARATOR in content:
        return content.split(SUGGESTION_SEPARATOR)

    # text before the first marker is a preamble, not a suggestion
    if len(_NUMBERED_RE.findall(content)) > 1:
        return _NUMBERED_RE.split(content)[1:]

    if len(_BULLET_RE.findall(content)) > 1:
        return _BULLET_RE.split(content)[1:]

    paragraphs = [p for p in re.split(r"\n\s*\n", content) if p.strip()]
    if len(paragraphs) > 1:
        return paragraphs

    return content.splitlines()


def parse_suggestions(content: str, field: str = "", limit: int = MAX_SUGGESTIONS) -> list[str]:
    """
    Split a multi-suggestion completion into an ordered list.

    Delimiters are tried in order: '|||', numbered items, bullets, blank-line
    paragraphs, then single lines. Empties and duplicates are dropped and the
    result is capped at ``limit``.
    """
    suggestions: list[str] = []
    for part in _split_structured(content):
        cleaned = clean_ai_response(part, field)
        if cleaned and cleaned not in suggestions:
            suggestions.append(cleaned)
        if len(suggestions) >= limit:
            break
    return suggestions


def parse_llm_output(content: str, action: str, field: str = "") -> list[str]:
    """Grammar checks yield one corrected text; suggest/optimize yield up to three."""
    if action == "grammar":
        cleaned = clean_ai_response(content, field)
        return [cleaned] if cleaned else []
    return parse_suggestions(content, field)
