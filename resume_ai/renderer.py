"""
resume_ai/renderer.py
=====================
Evaluates a parsed template against resume data and renders static HTML.

The evaluator walks the restricted tree from template_parser; no template
text is ever executed. Values follow JavaScript truthiness closely enough for
the idioms templates use ("arr.length > 0 && ...", "a || b", ternaries), and
missing data resolves to None, which renders as nothing.
"""

from __future__ import annotations

import html
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Union

from resume_ai.models import ColorScheme, ResumeData
from resume_ai.template_parser import (
    Arrow, ArrayLit, Binary, Conditional, CreateElement, Literal, Member,
    MethodCall, Name, Node, ObjectLit, TemplateLit, TemplateSyntaxError,
    Unary, UnsafeTemplateError, parse_template,
)
from resume_ai.validator import strip_code_fences

logger = logging.getLogger(__name__)

VOID_TAGS = frozenset({"br", "hr", "img"})

UNITLESS_STYLES = frozenset({
    "flex", "flexGrow", "flexShrink", "fontWeight", "lineHeight",
    "opacity", "order", "zIndex", "zoom",
})

_ATTR_NAME_RE   = re.compile(r"^[a-zA-Z][a-zA-Z0-9\-:]*$")
_UNSAFE_CSS_RE  = re.compile(r"url\s*\(|expression\s*\(|javascript:|@import", re.IGNORECASE)
_SAFE_URL_RE    = re.compile(r"^(?:https?:|mailto:|tel:|#|/(?!/)|\.{1,2}/|[\w\-.]+(?:/|$))", re.IGNORECASE)
_URL_ATTRS      = frozenset({"href", "src"})
_ATTR_RENAMES   = {"className": "class", "htmlFor": "for"}


class TemplateRenderError(Exception):
    """A template could not be parsed or evaluated against the given data."""


@dataclass
class Element:
    tag: str
    props: dict[str, Any] = field(default_factory=dict)
    children: list[Any] = field(default_factory=list)


# ── Value semantics ───────────────────────────────────────────────────────────

def is_truthy(value: Any) -> bool:
    if value is None or value is False:
        return False
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value != 0 and value == value
    if isinstance(value, str):
        return value != ""
    # arrays, objects and elements are truthy even when empty
    return True


def to_js_string(value: Any) -> str:
    if value is None:
        return ""
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, list):
        return ",".join(to_js_string(v) for v in value)
    if isinstance(value, dict):
        return "[object Object]"
    return str(value)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _get_member(obj: Any, prop: Union[str, int, float]) -> Any:
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(str(prop) if not isinstance(prop, str) else prop)
    if isinstance(obj, (list, str)):
        if prop == "length":
            return len(obj)
        if _is_number(prop) and float(prop).is_integer():
            idx = int(prop)
            return obj[idx] if 0 <= idx < len(obj) else None
        if isinstance(prop, str) and prop.isdigit():
            idx = int(prop)
            return obj[idx] if idx < len(obj) else None
    return None


def _call_method(obj: Any, method: str, args: list[Any]) -> Any:
    if obj is None:
        return None

    if isinstance(obj, list):
        if method == "map":
            fn = _callable_arg(args, method)
            return [fn(item, idx) for idx, item in enumerate(obj)]
        if method == "filter":
            fn = _callable_arg(args, method)
            return [item for idx, item in enumerate(obj) if is_truthy(fn(item, idx))]
        if method == "join":
            sep = to_js_string(args[0]) if args and args[0] is not None else ","
            return sep.join(to_js_string(item) for item in obj)
        if method == "slice":
            return obj[_slice(args, len(obj))]
        if method == "includes":
            return bool(args) and args[0] in obj

    if isinstance(obj, str):
        if method == "trim":
            return obj.strip()
        if method == "toUpperCase":
            return obj.upper()
        if method == "toLowerCase":
            return obj.lower()
        if method == "slice":
            return obj[_slice(args, len(obj))]
        if method == "includes":
            return bool(args) and to_js_string(args[0]) in obj
        if method == "split":
            if not args or args[0] is None:
                return [obj]
            sep = to_js_string(args[0])
            return list(obj) if sep == "" else obj.split(sep)

    raise TemplateRenderError(f".{method}() is not supported on {type(obj).__name__} values")


def _callable_arg(args: list[Any], method: str) -> Callable[..., Any]:
    if not args or not callable(args[0]):
        raise TemplateRenderError(f".{method}() expects a function argument")
    return args[0]


def _slice(args: list[Any], length: int) -> slice:
    def bound(value: Any, default: int) -> int:
        if not _is_number(value):
            return default
        return int(value)
    start = bound(args[0], 0) if args else 0
    end = bound(args[1], length) if len(args) > 1 else length
    return slice(start, end)


def _compare(op: str, left: Any, right: Any) -> bool:
    if op in ("===", "=="):
        return left == right
    if op in ("!==", "!="):
        return left != right
    if not ((_is_number(left) and _is_number(right)) or (isinstance(left, str) and isinstance(right, str))):
        return False
    if op == ">":
        return left > right
    if op == "<":
        return left < right
    if op == ">=":
        return left >= right
    return left <= right


# ── Evaluator ─────────────────────────────────────────────────────────────────

class _Evaluator:
    def __init__(self, scope: dict[str, Any]) -> None:
        self.scope = scope

    def eval(self, node: Node, env: dict[str, Any]) -> Any:
        if isinstance(node, Literal):
            return node.value
        if isinstance(node, Name):
            if node.id in env:
                return env[node.id]
            return self.scope.get(node.id)
        if isinstance(node, Member):
            return _get_member(self.eval(node.obj, env), node.prop)
        if isinstance(node, MethodCall):
            obj = self.eval(node.obj, env)
            args = [self.eval(arg, env) for arg in node.args]
            return _call_method(obj, node.method, args)
        if isinstance(node, Arrow):
            return self._make_function(node, env)
        if isinstance(node, ArrayLit):
            return [self.eval(item, env) for item in node.items]
        if isinstance(node, ObjectLit):
            return {key: self.eval(value, env) for key, value in node.entries}
        if isinstance(node, TemplateLit):
            return "".join(
                part if isinstance(part, str) else to_js_string(self.eval(part, env))
                for part in node.parts
            )
        if isinstance(node, Unary):
            return not is_truthy(self.eval(node.operand, env))
        if isinstance(node, Binary):
            return self._binary(node, env)
        if isinstance(node, Conditional):
            if is_truthy(self.eval(node.test, env)):
                return self.eval(node.consequent, env)
            return self.eval(node.alternate, env)
        if isinstance(node, CreateElement):
            return self._element(node, env)
        raise TemplateRenderError(f"Cannot evaluate {type(node).__name__}")

    def _binary(self, node: Binary, env: dict[str, Any]) -> Any:
        left = self.eval(node.left, env)
        if node.op == "&&":
            return self.eval(node.right, env) if is_truthy(left) else left
        if node.op == "||":
            return left if is_truthy(left) else self.eval(node.right, env)
        if node.op == "??":
            return left if left is not None else self.eval(node.right, env)
        right = self.eval(node.right, env)
        if node.op == "+":
            if _is_number(left) and _is_number(right):
                return left + right
            return to_js_string(left) + to_js_string(right)
        return _compare(node.op, left, right)

    def _make_function(self, node: Arrow, env: dict[str, Any]) -> Callable[..., Any]:
        def fn(*args: Any) -> Any:
            local = dict(env)
            for idx, param in enumerate(node.params):
                local[param] = args[idx] if idx < len(args) else None
            return self.eval(node.body, local)
        return fn

    def _element(self, node: CreateElement, env: dict[str, Any]) -> Element:
        props = self.eval(node.props, env) if node.props is not None else {}
        children: list[Any] = []
        for child in node.children:
            _flatten_into(children, self.eval(child, env))
        return Element(node.tag, props, children)


def _flatten_into(out: list[Any], value: Any) -> None:
    if isinstance(value, list):
        for item in value:
            _flatten_into(out, item)
    else:
        out.append(value)


def build_element_tree(
    root: Union[CreateElement, str],
    resume_data: Union[ResumeData, dict, None] = None,
    template_colors: Optional[dict[str, str]] = None,
) -> Element:
    """Evaluate a parsed template (or template source) into an Element tree."""
    if isinstance(root, str):
        try:
            root = parse_template(strip_code_fences(root))
        except (TemplateSyntaxError, UnsafeTemplateError) as exc:
            raise TemplateRenderError(str(exc)) from exc

    if isinstance(resume_data, ResumeData):
        data = resume_data.to_json_dict()
    else:
        data = dict(resume_data or {})

    scope = {
        "personalInfo":       data.get("personalInfo") or {},
        "workExperience":     data.get("workExperience") or [],
        "education":          data.get("education") or [],
        "skills":             data.get("skills") or [],
        "projects":           data.get("projects") or [],
        "additionalSections": data.get("additionalSections") or [],
        "templateColors":     template_colors or _default_colors(data),
    }
    try:
        return _Evaluator(scope).eval(root, {})
    except RecursionError as exc:
        raise TemplateRenderError("Template nesting is too deep to render") from exc


def _default_colors(data: dict) -> dict[str, str]:
    defaults = ColorScheme()
    colors = data.get("colors") or {}
    return {
        "primary":   colors.get("primary") or defaults.primary,
        "secondary": colors.get("secondary") or defaults.secondary,
        "accent":    colors.get("accent") or defaults.accent,
    }


# ── HTML output ───────────────────────────────────────────────────────────────

def _kebab(name: str) -> str:
    return re.sub(r"([A-Z])", lambda m: "-" + m.group(1).lower(), name)


def style_to_css(style: Any) -> str:
    if isinstance(style, str):
        return "" if _UNSAFE_CSS_RE.search(style) else style
    if not isinstance(style, dict):
        return ""
    rules = []
    for prop, value in style.items():
        if value is None or value is False or value == "":
            continue
        if _is_number(value):
            text = to_js_string(value)
            if prop not in UNITLESS_STYLES and value != 0:
                text += "px"
        else:
            text = to_js_string(value)
        if _UNSAFE_CSS_RE.search(text):
            logger.debug("[Renderer] dropped style %s=%r", prop, text)
            continue
        rules.append(f"{_kebab(prop)}: {text}")
    return "; ".join(rules)


def _is_safe_url(value: str) -> bool:
    return bool(_SAFE_URL_RE.match(value.strip()))


def _render_attrs(props: dict[str, Any]) -> str:
    parts = []
    for name, value in props.items():
        if name in ("key", "children", "cols") or value is None or value is False:
            continue
        attr = _ATTR_RENAMES.get(name, name)
        if not _ATTR_NAME_RE.match(attr):
            continue
        if attr == "style":
            css = style_to_css(value)
            if css:
                parts.append(f' style="{html.escape(css, quote=True)}"')
            continue
        if value is True:
            parts.append(f" {attr}")
            continue
        text = to_js_string(value)
        if attr in _URL_ATTRS and not _is_safe_url(text):
            logger.debug("[Renderer] dropped unsafe %s=%r", attr, text)
            continue
        parts.append(f' {attr}="{html.escape(text, quote=True)}"')
    return "".join(parts)


def _grid_columns(cols: Any) -> int:
    if _is_number(cols):
        return max(1, int(cols))
    if isinstance(cols, dict):
        counts = [int(v) for v in cols.values() if _is_number(v)]
        if counts:
            return max(1, max(counts))
    return 1


def _render_node(node: Any, out: list[str]) -> None:
    if node is None or isinstance(node, bool) or callable(node):
        return
    if isinstance(node, list):
        for item in node:
            _render_node(item, out)
        return
    if not isinstance(node, Element):
        out.append(html.escape(to_js_string(node), quote=False))
        return

    if node.tag == "Fragment":
        _render_node(node.children, out)
        return

    if node.tag == "ResponsiveGrid":
        columns = _grid_columns(node.props.get("cols"))
        grid_style = {
            "display": "grid",
            "gridTemplateColumns": f"repeat({columns}, minmax(0, 1fr))",
            "gap": node.props.get("gap", "1rem"),
        }
        props = {"className": node.props.get("className"), "style": grid_style}
        out.append(f"<div{_render_attrs(props)}>")
        _render_node(node.children, out)
        out.append("</div>")
        return

    out.append(f"<{node.tag}{_render_attrs(node.props)}>")
    if node.tag in VOID_TAGS:
        return
    _render_node(node.children, out)
    out.append(f"</{node.tag}>")


def render_html(element: Element) -> str:
    out: list[str] = []
    _render_node(element, out)
    return "".join(out)


def render_template(
    code: str,
    resume_data: Union[ResumeData, dict, None] = None,
    template_colors: Optional[dict[str, str]] = None,
) -> str:
    """
    Parse, evaluate and render template source to an HTML string.

    Raises:
        TemplateRenderError: the code is outside the supported subset or
            fails while evaluating against ``resume_data``.
    """
    return render_html(build_element_tree(code, resume_data, template_colors))
