"""
resume_ai/validator.py
======================
Template Code Validator. Deterministic, zero LLM calls, fail closed.

Checks run in order and stop at the first failure:
  1. Entry point        - must start with React.createElement(
  2. Forbidden syntax   - import/export, require(), comments, ``` fences
  3. Bracket balance    - (), [], {} outside string literals
  4. Completion         - last character is ')' (catches truncated output)
  5. Restricted parse   - full parse with template_parser's allow-list

A single wrapping code fence is tolerated and stripped before step 1; any
fence left after that is a forbidden construct.
"""

from __future__ import annotations

import re
from typing import Optional

from pydantic import BaseModel, Field

from resume_ai.errors import GenerationError, InvalidTemplateStructure, ValidationSyntaxError
from resume_ai.template_parser import (
    Arrow, CreateElement, MethodCall, TemplateSyntaxError, UnsafeTemplateError,
    iter_nodes, parse_template,
)

ENTRY_POINT = "React.createElement("

_WRAPPING_FENCE_RE = re.compile(r"^```[a-zA-Z]*[ \t]*\n?(.*?)\n?```$", re.DOTALL)
_IMPORT_EXPORT_RE  = re.compile(r"(?:^|[;\s])(?:import|export)\b(?!\s*[:.(])")
_REQUIRE_RE        = re.compile(r"\brequire\s*\(")

_ERROR_CLASSES: dict[str, type[GenerationError]] = {
    InvalidTemplateStructure.kind: InvalidTemplateStructure,
    ValidationSyntaxError.kind:    ValidationSyntaxError,
}


class ValidationResult(BaseModel):
    is_valid: bool = Field(description="True when every check passed.")
    kind: Optional[str] = Field(
        default=None,
        description="InvalidTemplateStructure or ValidationSyntaxError when rejected.",
    )
    reason: str = ""
    code: str = Field(default="", description="The cleaned template source that was checked.")
    warnings: list[str] = Field(default_factory=list)

    def to_error(self) -> Optional[GenerationError]:
        if self.is_valid or self.kind is None:
            return None
        return _ERROR_CLASSES[self.kind](self.reason)


# ── Helpers ───────────────────────────────────────────────────────────────────

def strip_code_fences(text: str) -> str:
    """Trim whitespace and one wrapping ```lang ... ``` fence."""
    text = text.strip()
    match = _WRAPPING_FENCE_RE.match(text)
    if match:
        return match.group(1).strip()
    return text


def mask_string_literals(code: str) -> str:
    """
    Blank out the contents of '...', "..." and `...` literals.

    The result has the same length as ``code``, so positions stay valid, and
    brackets or slashes inside strings no longer count as code.
    """
    out = list(code)
    quote: Optional[str] = None
    i = 0
    while i < len(code):
        ch = code[i]
        if quote is None:
            if ch in "'\"`":
                quote = ch
        elif ch == "\\":
            out[i] = " "
            if i + 1 < len(code):
                out[i + 1] = " "
            i += 2
            continue
        elif ch == quote:
            quote = None
        else:
            out[i] = " " if ch != "\n" else "\n"
        i += 1
    return "".join(out)


def _reject(kind: type[GenerationError], reason: str, code: str) -> ValidationResult:
    return ValidationResult(is_valid=False, kind=kind.kind, reason=reason, code=code)


# ── Individual checks ─────────────────────────────────────────────────────────

def _check_entry_point(code: str) -> Optional[str]:
    if not code:
        return "Template code is empty."
    if not code.startswith(ENTRY_POINT):
        return f"Template must start with {ENTRY_POINT}"
    return None


def _check_forbidden_constructs(code: str, masked: str) -> Optional[str]:
    if "```" in code:
        return "Markdown code fences are not allowed inside the template."
    if _IMPORT_EXPORT_RE.search(masked):
        return "Import and export statements are not allowed."
    if _REQUIRE_RE.search(masked):
        return "require() is not allowed."
    if "//" in masked or "/*" in masked:
        return "Comments are not allowed."
    return None


def _check_bracket_balance(masked: str) -> Optional[str]:
    pairs = {"}": "{", ")": "(", "]": "["}
    stack: list[tuple[str, int]] = []
    for i, ch in enumerate(masked):
        if ch in "{([":
            stack.append((ch, i))
        elif ch in "})]":
            if not stack:
                return f"Unexpected '{ch}' at position {i} with nothing open."
            if stack[-1][0] != pairs[ch]:
                return f"Mismatch at position {i}: expected closer for '{stack[-1][0]}', got '{ch}'."
            stack.pop()
    if stack:
        ch, pos = stack[-1]
        return f"Unclosed '{ch}' opened at position {pos}."
    return None


def _check_completion(code: str) -> Optional[str]:
    if not code.endswith(")"):
        return "Template must end with a closing parenthesis; the output looks truncated."
    return None


def _missing_key_warnings(root: CreateElement) -> list[str]:
    warnings = []
    for node in iter_nodes(root):
        if not (isinstance(node, MethodCall) and node.method == "map" and node.args):
            continue
        callback = node.args[0]
        if not isinstance(callback, Arrow) or not isinstance(callback.body, CreateElement):
            continue
        element = callback.body
        if element.props is None or "key" not in element.props.keys():
            warnings.append(f"<{element.tag}> created inside .map() has no key prop.")
    return warnings


# ── Public API ────────────────────────────────────────────────────────────────

def validate_template_code(source: str) -> ValidationResult:
    """
    Decide whether LLM output is an acceptable template.

    Returns:
        ValidationResult with is_valid=True and the cleaned code, or
        is_valid=False with kind/reason describing the first failed check.
    """
    code = strip_code_fences(source or "")

    reason = _check_entry_point(code)
    if reason:
        return _reject(InvalidTemplateStructure, reason, code)

    masked = mask_string_literals(code)

    reason = _check_forbidden_constructs(code, masked)
    if reason:
        return _reject(InvalidTemplateStructure, reason, code)

    reason = _check_bracket_balance(masked)
    if reason:
        return _reject(ValidationSyntaxError, reason, code)

    reason = _check_completion(code)
    if reason:
        return _reject(ValidationSyntaxError, reason, code)

    try:
        root = parse_template(code)
    except TemplateSyntaxError as exc:
        return _reject(ValidationSyntaxError, str(exc), code)
    except UnsafeTemplateError as exc:
        return _reject(InvalidTemplateStructure, str(exc), code)
    except RecursionError:
        return _reject(ValidationSyntaxError, "Template is nested too deeply", code)

    return ValidationResult(is_valid=True, code=code, warnings=_missing_key_warnings(root))
