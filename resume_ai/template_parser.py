"""
resume_ai/template_parser.py
============================
Restricted parser for AI-generated React.createElement templates.

Generated templates are never evaluated as code. They are tokenised and parsed
into a small expression tree that only admits:

  - literals, template literals with ${...}, array and object literals
  - identifiers from an allow-list (resume data, templateColors,
    ResponsiveGrid) plus parameters bound by arrow functions
  - member access with "." / "?." / literal index
  - React.createElement / React.Fragment and a short list of data methods
  - !, +, comparisons, &&, ||, ??, ?: and arrow functions

Anything else raises UnsafeTemplateError (disallowed construct) or
TemplateSyntaxError (not parseable). Both are fail-closed.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, Optional, Union

MAX_SOURCE_CHARS = 100_000
MAX_DEPTH = 60

ALLOWED_GLOBALS = frozenset({
    "React", "ResponsiveGrid", "templateColors",
    "personalInfo", "workExperience", "education",
    "skills", "projects", "additionalSections",
})

ALLOWED_METHODS = frozenset({
    "map", "filter", "join", "slice", "trim",
    "toUpperCase", "toLowerCase", "includes", "split",
})

ALLOWED_TAGS = frozenset({
    "div", "span", "p", "h1", "h2", "h3", "h4", "h5", "h6",
    "section", "header", "footer", "main", "article", "aside", "nav",
    "ul", "ol", "li", "dl", "dt", "dd",
    "strong", "em", "b", "i", "u", "small", "sup", "sub", "code", "pre",
    "a", "br", "hr", "img", "label", "time", "address", "blockquote",
    "figure", "figcaption", "table", "thead", "tbody", "tr", "th", "td",
})

COMPONENT_TAGS = frozenset({"ResponsiveGrid", "Fragment"})

FORBIDDEN_MEMBERS = frozenset({
    "constructor", "prototype", "__proto__",
    "__defineGetter__", "__defineSetter__", "__lookupGetter__", "__lookupSetter__",
})

FORBIDDEN_PROPS = frozenset({"dangerouslySetInnerHTML", "ref", "srcDoc", "formAction"})
_EVENT_PROP_RE = re.compile(r"^on[A-Z]")

_KEYWORD_LITERALS = {"true": True, "false": False, "null": None, "undefined": None}

_TOKEN_RE = re.compile(
    r"""
      (?P<ws>\s+)
    | (?P<num>\d+(?:\.\d+)?)
    | (?P<str>'(?:[^'\\\n]|\\.)*'|"(?:[^"\\\n]|\\.)*")
    | (?P<tmpl>`(?:[^`\\]|\\.)*`)
    | (?P<name>[A-Za-z_$][A-Za-z0-9_$]*)
    | (?P<punct>=>|\?\.|\?\?|&&|\|\||===|!==|==|!=|>=|<=|[()\[\]{},.:;?!+<>])
    """,
    re.VERBOSE | re.DOTALL,
)

_ESCAPE_RE = re.compile(r"\\(u[0-9a-fA-F]{4}|.)", re.DOTALL)
_SIMPLE_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v", "0": "\0"}


class TemplateSyntaxError(ValueError):
    def __init__(self, message: str, pos: int | None = None) -> None:
        if pos is not None:
            message = f"{message} at position {pos}"
        super().__init__(message)
        self.pos = pos


class UnsafeTemplateError(ValueError):
    """The template parses but uses a construct outside the allow-list."""


# ── Tree ──────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Literal:
    value: object


@dataclass(frozen=True)
class Name:
    id: str


@dataclass(frozen=True)
class Member:
    obj: "Node"
    prop: Union[str, int, float]
    optional: bool = False


@dataclass(frozen=True)
class MethodCall:
    obj: "Node"
    method: str
    args: tuple["Node", ...]


@dataclass(frozen=True)
class Arrow:
    params: tuple[str, ...]
    body: "Node"


@dataclass(frozen=True)
class ArrayLit:
    items: tuple["Node", ...]


@dataclass(frozen=True)
class ObjectLit:
    entries: tuple[tuple[str, "Node"], ...]

    def keys(self) -> list[str]:
        return [k for k, _ in self.entries]


@dataclass(frozen=True)
class TemplateLit:
    parts: tuple[Union[str, "Node"], ...]


@dataclass(frozen=True)
class Unary:
    op: str
    operand: "Node"


@dataclass(frozen=True)
class Binary:
    op: str
    left: "Node"
    right: "Node"


@dataclass(frozen=True)
class Conditional:
    test: "Node"
    consequent: "Node"
    alternate: "Node"


@dataclass(frozen=True)
class CreateElement:
    tag: str
    props: Optional[ObjectLit]
    children: tuple["Node", ...]


Node = Union[
    Literal, Name, Member, MethodCall, Arrow, ArrayLit, ObjectLit,
    TemplateLit, Unary, Binary, Conditional, CreateElement,
]


# ── Tokenizer ─────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Token:
    kind: str
    value: str
    pos: int


def _unescape(body: str) -> str:
    def repl(match: re.Match) -> str:
        esc = match.group(1)
        if esc.startswith("u") and len(esc) == 5:
            return chr(int(esc[1:], 16))
        return _SIMPLE_ESCAPES.get(esc, esc)
    return _ESCAPE_RE.sub(repl, body)


def tokenize(source: str) -> list[Token]:
    tokens: list[Token] = []
    pos = 0
    while pos < len(source):
        match = _TOKEN_RE.match(source, pos)
        if match is None:
            raise TemplateSyntaxError(f"Unexpected character {source[pos]!r}", pos)
        kind = match.lastgroup or ""
        if kind != "ws":
            tokens.append(Token(kind, match.group(), pos))
        pos = match.end()
    tokens.append(Token("eof", "", pos))
    return tokens


# ── Parser ────────────────────────────────────────────────────────────────────

class _Parser:
    def __init__(self, source: str, scope: frozenset[str] = frozenset(), offset: int = 0) -> None:
        self.source = source
        self.tokens = tokenize(source)
        self.i = 0
        self.scopes: list[frozenset[str]] = [scope]
        self.depth = 0
        self.offset = offset

    # token helpers
    @property
    def tok(self) -> Token:
        return self.tokens[self.i]

    def _peek(self, ahead: int = 1) -> Token:
        return self.tokens[min(self.i + ahead, len(self.tokens) - 1)]

    def _advance(self) -> Token:
        tok = self.tokens[self.i]
        self.i += 1
        return tok

    def _at(self, value: str) -> bool:
        return self.tok.kind == "punct" and self.tok.value == value

    def _expect(self, value: str) -> Token:
        if not self._at(value):
            self._fail(f"Expected '{value}' but found {self.tok.value or 'end of input'!r}")
        return self._advance()

    def _fail(self, message: str) -> None:
        raise TemplateSyntaxError(message, self.tok.pos + self.offset)

    def _bound(self, name: str) -> bool:
        return any(name in scope for scope in self.scopes)

    # entry
    def parse(self) -> Node:
        node = self.parse_expression()
        if self.tok.kind != "eof":
            self._fail(f"Unexpected trailing {self.tok.value!r}")
        return node

    def parse_expression(self) -> Node:
        self.depth += 1
        if self.depth > MAX_DEPTH:
            self._fail("Template is nested too deeply")
        try:
            if self._at_arrow():
                return self._parse_arrow()
            return self._parse_conditional()
        finally:
            self.depth -= 1

    # arrows
    def _at_arrow(self) -> bool:
        if self.tok.kind == "name":
            return self._peek().value == "=>"
        if not self._at("("):
            return False
        j = self.i + 1
        expect_name = True
        while True:
            t = self.tokens[j]
            if t.kind == "punct" and t.value == ")":
                nxt = self.tokens[j + 1]
                return nxt.kind == "punct" and nxt.value == "=>"
            if expect_name and t.kind != "name":
                return False
            if not expect_name and not (t.kind == "punct" and t.value == ","):
                return False
            expect_name = not expect_name
            j += 1

    def _parse_arrow(self) -> Arrow:
        params: list[str] = []
        if self.tok.kind == "name":
            params.append(self._advance().value)
        else:
            self._expect("(")
            while not self._at(")"):
                params.append(self._advance().value)
                if self._at(","):
                    self._advance()
            self._expect(")")
        self._expect("=>")
        for p in params:
            if p in FORBIDDEN_MEMBERS or p in _KEYWORD_LITERALS:
                raise UnsafeTemplateError(f"Parameter name {p!r} is not allowed")

        self.scopes.append(frozenset(params))
        try:
            if self._at("{"):
                # block body: exactly one return statement
                self._advance()
                if not (self.tok.kind == "name" and self.tok.value == "return"):
                    raise UnsafeTemplateError("Arrow function bodies may only contain a return statement")
                self._advance()
                body = self.parse_expression()
                if self._at(";"):
                    self._advance()
                self._expect("}")
            else:
                body = self.parse_expression()
        finally:
            self.scopes.pop()
        return Arrow(tuple(params), body)

    # operators, lowest precedence first
    def _parse_conditional(self) -> Node:
        test = self._parse_logical_or()
        if self._at("?"):
            self._advance()
            consequent = self.parse_expression()
            self._expect(":")
            alternate = self.parse_expression()
            return Conditional(test, consequent, alternate)
        return test

    def _parse_logical_or(self) -> Node:
        node = self._parse_logical_and()
        while self._at("||") or self._at("??"):
            op = self._advance().value
            node = Binary(op, node, self._parse_logical_and())
        return node

    def _parse_logical_and(self) -> Node:
        node = self._parse_equality()
        while self._at("&&"):
            self._advance()
            node = Binary("&&", node, self._parse_equality())
        return node

    def _parse_equality(self) -> Node:
        node = self._parse_comparison()
        while self.tok.kind == "punct" and self.tok.value in ("===", "!==", "==", "!="):
            op = self._advance().value
            node = Binary(op, node, self._parse_comparison())
        return node

    def _parse_comparison(self) -> Node:
        node = self._parse_additive()
        while self.tok.kind == "punct" and self.tok.value in (">", "<", ">=", "<="):
            op = self._advance().value
            node = Binary(op, node, self._parse_additive())
        return node

    def _parse_additive(self) -> Node:
        node = self._parse_unary()
        while self._at("+"):
            self._advance()
            node = Binary("+", node, self._parse_unary())
        return node

    def _parse_unary(self) -> Node:
        negations = 0
        while self._at("!"):
            self._advance()
            negations += 1
            if self.depth + negations > MAX_DEPTH:
                self._fail("Template is nested too deeply")
        node = self._parse_postfix()
        for _ in range(negations):
            node = Unary("!", node)
        return node

    def _parse_postfix(self) -> Node:
        node = self._parse_primary()
        while True:
            if self._at(".") or self._at("?."):
                optional = self._advance().value == "?."
                if self.tok.kind != "name":
                    self._fail("Expected a property name")
                prop = self._advance().value
                if prop in FORBIDDEN_MEMBERS:
                    raise UnsafeTemplateError(f"Access to {prop!r} is not allowed")
                node = Member(node, prop, optional)
            elif self._at("["):
                self._advance()
                index = self.parse_expression()
                self._expect("]")
                if not isinstance(index, Literal) or not isinstance(index.value, (str, int, float)):
                    raise UnsafeTemplateError("Computed member access is not allowed")
                if index.value in FORBIDDEN_MEMBERS:
                    raise UnsafeTemplateError(f"Access to {index.value!r} is not allowed")
                node = Member(node, index.value)
            elif self._at("("):
                node = self._make_call(node, self._parse_args())
            else:
                return node

    def _parse_args(self) -> list[Node]:
        self._expect("(")
        args: list[Node] = []
        while not self._at(")"):
            args.append(self.parse_expression())
            if not self._at(")"):
                self._expect(",")
        self._expect(")")
        return args

    def _make_call(self, callee: Node, args: list[Node]) -> Node:
        if callee == Member(Name("React"), "createElement"):
            return self._make_element(args)
        if (
            isinstance(callee, Member)
            and isinstance(callee.prop, str)
            and callee.prop in ALLOWED_METHODS
            and callee.obj != Name("React")
        ):
            return MethodCall(callee.obj, callee.prop, tuple(args))
        raise UnsafeTemplateError(f"Call to {_describe(callee)} is not allowed")

    def _make_element(self, args: list[Node]) -> CreateElement:
        if not args:
            self._fail("React.createElement requires a tag")
        tag_node = args[0]
        if isinstance(tag_node, Literal) and isinstance(tag_node.value, str):
            tag = tag_node.value.lower()
            if tag not in ALLOWED_TAGS:
                raise UnsafeTemplateError(f"Element <{tag_node.value}> is not allowed")
        elif tag_node == Name("ResponsiveGrid"):
            tag = "ResponsiveGrid"
        elif tag_node == Member(Name("React"), "Fragment"):
            tag = "Fragment"
        else:
            raise UnsafeTemplateError(f"Element type {_describe(tag_node)} is not allowed")

        props: Optional[ObjectLit] = None
        if len(args) > 1:
            raw = args[1]
            if isinstance(raw, ObjectLit):
                for key in raw.keys():
                    if key in FORBIDDEN_PROPS or _EVENT_PROP_RE.match(key):
                        raise UnsafeTemplateError(f"Prop {key!r} is not allowed")
                props = raw
            elif not (isinstance(raw, Literal) and raw.value is None):
                raise UnsafeTemplateError("Element props must be an object literal or null")
        return CreateElement(tag, props, tuple(args[2:]))

    def _parse_primary(self) -> Node:
        tok = self.tok
        if tok.kind == "num":
            self._advance()
            return Literal(float(tok.value) if "." in tok.value else int(tok.value))
        if tok.kind == "str":
            self._advance()
            return Literal(_unescape(tok.value[1:-1]))
        if tok.kind == "tmpl":
            self._advance()
            return self._parse_template_literal(tok)
        if tok.kind == "name":
            return self._parse_name()
        if self._at("("):
            self._advance()
            node = self.parse_expression()
            self._expect(")")
            return node
        if self._at("["):
            return self._parse_array()
        if self._at("{"):
            return self._parse_object()
        self._fail(f"Unexpected {tok.value or 'end of input'!r}")
        raise AssertionError("unreachable")

    def _parse_name(self) -> Node:
        name = self._advance().value
        if name in _KEYWORD_LITERALS:
            return Literal(_KEYWORD_LITERALS[name])
        if name == "React":
            if not self._at("."):
                raise UnsafeTemplateError("React may only be used as React.createElement or React.Fragment")
            self._advance()
            prop = self._advance().value
            if prop not in ("createElement", "Fragment"):
                raise UnsafeTemplateError(f"React.{prop} is not allowed")
            return Member(Name("React"), prop)
        if not (self._bound(name) or name in ALLOWED_GLOBALS):
            raise UnsafeTemplateError(f"Unknown identifier {name!r}")
        return Name(name)

    def _parse_array(self) -> ArrayLit:
        self._expect("[")
        items: list[Node] = []
        while not self._at("]"):
            items.append(self.parse_expression())
            if not self._at("]"):
                self._expect(",")
        self._expect("]")
        return ArrayLit(tuple(items))

    def _parse_object(self) -> ObjectLit:
        self._expect("{")
        entries: list[tuple[str, Node]] = []
        while not self._at("}"):
            tok = self._advance()
            if tok.kind == "name" or tok.kind == "num":
                key = tok.value
            elif tok.kind == "str":
                key = _unescape(tok.value[1:-1])
            else:
                raise TemplateSyntaxError(f"Invalid object key {tok.value!r}", tok.pos + self.offset)
            if key in FORBIDDEN_MEMBERS:
                raise UnsafeTemplateError(f"Object key {key!r} is not allowed")
            if self._at(":"):
                self._advance()
                value = self.parse_expression()
            elif tok.kind == "name" and (self._at(",") or self._at("}")):
                if not (self._bound(key) or key in ALLOWED_GLOBALS) or key == "React":
                    raise UnsafeTemplateError(f"Unknown identifier {key!r}")
                value = Name(key)
            else:
                self._fail("Expected ':' in object literal")
            entries.append((key, value))
            if not self._at("}"):
                self._expect(",")
        self._expect("}")
        return ObjectLit(tuple(entries))

    def _parse_template_literal(self, tok: Token) -> TemplateLit:
        body = tok.value[1:-1]
        parts: list[Union[str, Node]] = []
        pos = 0
        while True:
            start = body.find("${", pos)
            if start == -1:
                if body[pos:]:
                    parts.append(_unescape(body[pos:]))
                break
            if start > pos:
                parts.append(_unescape(body[pos:start]))
            end = _matching_brace(body, start + 2)
            if end == -1:
                raise TemplateSyntaxError("Unterminated ${ in template literal", tok.pos + self.offset)
            inner = _Parser(body[start + 2:end], self._all_bound(), tok.pos + start + 2 + self.offset)
            inner.depth = self.depth
            parts.append(inner.parse())
            pos = end + 1
        return TemplateLit(tuple(parts))

    def _all_bound(self) -> frozenset[str]:
        bound: frozenset[str] = frozenset()
        for scope in self.scopes:
            bound |= scope
        return bound


def _matching_brace(text: str, start: int) -> int:
    depth = 1
    for idx in range(start, len(text)):
        if text[idx] == "{":
            depth += 1
        elif text[idx] == "}":
            depth -= 1
            if depth == 0:
                return idx
    return -1


def _describe(node: Node) -> str:
    if isinstance(node, Name):
        return node.id
    if isinstance(node, Member):
        return f"{_describe(node.obj)}.{node.prop}"
    if isinstance(node, Literal):
        return repr(node.value)
    return type(node).__name__


# ── Public API ────────────────────────────────────────────────────────────────

def parse_template(source: str) -> CreateElement:
    """Parse template source into a restricted tree rooted at React.createElement."""
    if len(source) > MAX_SOURCE_CHARS:
        raise UnsafeTemplateError(f"Template exceeds {MAX_SOURCE_CHARS} characters")
    root = _Parser(source.strip()).parse()
    if not isinstance(root, CreateElement):
        raise UnsafeTemplateError("Template root must be a React.createElement call")
    return root


def iter_nodes(node: Node) -> Iterator[Node]:
    """Depth-first walk over every node in the tree."""
    yield node
    if isinstance(node, Member):
        yield from iter_nodes(node.obj)
    elif isinstance(node, MethodCall):
        yield from iter_nodes(node.obj)
        for arg in node.args:
            yield from iter_nodes(arg)
    elif isinstance(node, Arrow):
        yield from iter_nodes(node.body)
    elif isinstance(node, ArrayLit):
        for item in node.items:
            yield from iter_nodes(item)
    elif isinstance(node, ObjectLit):
        for _, value in node.entries:
            yield from iter_nodes(value)
    elif isinstance(node, TemplateLit):
        for part in node.parts:
            if not isinstance(part, str):
                yield from iter_nodes(part)
    elif isinstance(node, Unary):
        yield from iter_nodes(node.operand)
    elif isinstance(node, Binary):
        yield from iter_nodes(node.left)
        yield from iter_nodes(node.right)
    elif isinstance(node, Conditional):
        yield from iter_nodes(node.test)
        yield from iter_nodes(node.consequent)
        yield from iter_nodes(node.alternate)
    elif isinstance(node, CreateElement):
        if node.props is not None:
            yield from iter_nodes(node.props)
        for child in node.children:
            yield from iter_nodes(child)
