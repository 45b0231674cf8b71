"""Interpreter for driver code templates.

Rendering runs in two passes so that substitution never sees a block tag:

1. :func:`resolve_conditionals` keeps or drops ``{{#if name}}`` /
   ``{{else}}`` / ``{{/if}}`` regions against a flag mapping.
2. :func:`substitute` replaces every remaining ``{{...}}`` placeholder,
   either a plain name or an inline choice such as
   ``{{mode == "above" ? ">" : "<"}}``.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_PLACEHOLDER_RE = re.compile(r"\{\{(.+?)\}\}")
_BLOCK_TAG_RE = re.compile(r"\{\{\s*(?:#if\s+(?P<name>[A-Za-z_][A-Za-z0-9_]*)|(?P<else>else)|(?P<end>/if))\s*\}\}")


class TemplateError(ValueError):
    """Raised when a template cannot be rendered."""

    def __init__(self, message: str, line: int | None = None) -> None:
        super().__init__(message if line is None else f"{message} (line {line})")
        self.message = message
        self.line = line


@dataclass
class _Frame:
    name: str
    condition: bool
    in_else: bool = False

    @property
    def active(self) -> bool:
        return self.condition != self.in_else


def render_template(
    text: str,
    *,
    flags: Mapping[str, bool],
    literals: Mapping[str, str],
    values: Mapping[str, Any],
) -> str:
    """Run both passes over *text*."""
    return substitute(resolve_conditionals(text, flags), literals, values)


def resolve_conditionals(text: str, flags: Mapping[str, bool]) -> str:
    """Return *text* with every conditional block resolved.

    A block tag that sits alone on its line removes the whole line, so the
    surviving code keeps its original indentation and line structure.
    """
    out: list[str] = []
    stack: list[_Frame] = []
    pos = 0
    for match in _BLOCK_TAG_RE.finditer(text):
        if match.start() < pos:
            continue
        start, end = _tag_span(text, match)
        if all(frame.active for frame in stack):
            out.append(text[pos:start])
        pos = end
        line = text.count("\n", 0, match.start()) + 1

        name = match.group("name")
        if name is not None:
            if name not in flags:
                raise TemplateError(f"Unknown condition {name!r} in {{{{#if}}}}", line)
            stack.append(_Frame(name, bool(flags[name])))
        elif match.group("else") is not None:
            if not stack:
                raise TemplateError("{{else}} without a matching {{#if}}", line)
            if stack[-1].in_else:
                raise TemplateError(f"Second {{{{else}}}} in {{{{#if {stack[-1].name}}}}}", line)
            stack[-1].in_else = True
        else:
            if not stack:
                raise TemplateError("{{/if}} without a matching {{#if}}", line)
            stack.pop()

    if stack:
        raise TemplateError(f"Unclosed {{{{#if {stack[-1].name}}}}}")
    out.append(text[pos:])
    return "".join(out)


def substitute(text: str, literals: Mapping[str, str], values: Mapping[str, Any]) -> str:
    """Replace every placeholder in a conditional-free template.

    Plain ``{{name}}`` placeholders take their text from *literals*.  Inline
    choices test a name from *values* and emit the chosen literal verbatim.
    """

    def _replace(match: re.Match[str]) -> str:
        expr = match.group(1).strip()
        if _NAME_RE.fullmatch(expr):
            if expr not in literals:
                line = text.count("\n", 0, match.start()) + 1
                raise TemplateError(f"No value for placeholder {{{{{expr}}}}}", line)
            return literals[expr]
        try:
            return _InlineParser(expr).evaluate(values)
        except TemplateError as exc:
            line = text.count("\n", 0, match.start()) + 1
            raise TemplateError(f"{{{{{expr}}}}}: {exc.message}", line) from exc

    return _PLACEHOLDER_RE.sub(_replace, text)


def unguarded_inputs(text: str) -> list[str]:
    """Names of ``{{input_*}}`` placeholders not inside their own ``{{#if}}`` block."""
    problems: list[str] = []
    stack: list[_Frame] = []
    for match in _PLACEHOLDER_RE.finditer(text):
        tag = _BLOCK_TAG_RE.fullmatch(match.group(0))
        if tag is not None:
            if tag.group("name") is not None:
                stack.append(_Frame(tag.group("name"), True))
            elif tag.group("else") is not None and stack:
                stack[-1].in_else = True
            elif stack:
                stack.pop()
            continue
        expr = match.group(1).strip()
        if not expr.startswith("input_"):
            continue
        guarded = any(frame.name == expr and not frame.in_else for frame in stack)
        if not guarded:
            problems.append(expr)
    return problems


def _tag_span(text: str, match: re.Match[str]) -> tuple[int, int]:
    line_start = text.rfind("\n", 0, match.start()) + 1
    line_end = text.find("\n", match.end())
    if line_end == -1:
        line_end = len(text)
    before = text[line_start : match.start()]
    after = text[match.end() : line_end]
    if before.strip() or after.strip():
        return match.start(), match.end()
    return line_start, min(line_end + 1, len(text))


class _InlineParser:
    """``name [== | != literal] ? literal : literal``"""

    _COMP_OPS = ("==", "!=")

    def __init__(self, source: str) -> None:
        self._source = source
        self._pos = 0

    def evaluate(self, values: Mapping[str, Any]) -> str:
        self._skip_ws()
        if self._eof():
            self._error("Expression cannot be empty")
        name = self._parse_name()
        if name not in values:
            self._error(f"Unknown name {name!r}")
        left = values[name]

        op = self._parse_comp_op()
        if op is None:
            condition = bool(left)
        else:
            right, _ = self._parse_value()
            condition = (left == right) if op == "==" else (left != right)

        self._skip_ws()
        self._expect("?")
        _, when_true = self._parse_value()
        self._skip_ws()
        self._expect(":")
        _, when_false = self._parse_value()
        self._skip_ws()
        if not self._eof():
            self._error(f"Expected end of expression, got {self._peek_snippet()!r}")
        return when_true if condition else when_false

    def _parse_name(self) -> str:
        self._skip_ws()
        match = _NAME_RE.match(self._source, self._pos)
        if match is None:
            self._error(f"Expected a name, got {self._peek_snippet()!r}")
        assert match is not None
        self._pos = match.end()
        return match.group(0)

    def _parse_comp_op(self) -> str | None:
        self._skip_ws()
        for op in self._COMP_OPS:
            if self._source.startswith(op, self._pos):
                self._pos += len(op)
                return op
        return None

    def _parse_value(self) -> tuple[Any, str]:
        """Return ``(value, emitted text)`` for the next literal."""
        self._skip_ws()
        if self._eof():
            self._error("Expected a literal")
        if self._peek() in {"'", '"'}:
            text = self._parse_string()
            return text, text

        start = self._pos
        while not self._eof() and not self._peek().isspace() and self._peek() not in {"?", ":"}:
            self._pos += 1
        token = self._source[start : self._pos]
        if not token:
            self._error(f"Expected a literal, got {self._peek_snippet()!r}")
        if token in {"True", "False"}:
            return token == "True", token
        try:
            return int(token), token
        except ValueError:
            pass
        try:
            return float(token), token
        except ValueError:
            self._error(f"Expected a literal, got {token!r}")
        raise AssertionError("unreachable")

    def _parse_string(self) -> str:
        quote = self._peek()
        self._pos += 1
        parts: list[str] = []
        while not self._eof():
            ch = self._peek()
            if ch == quote:
                self._pos += 1
                return "".join(parts)
            if ch == "\\":
                self._pos += 1
                if self._eof():
                    self._error("Unterminated escape sequence")
                parts.append(self._peek())
                self._pos += 1
                continue
            parts.append(ch)
            self._pos += 1
        self._error("Unterminated string literal")
        raise AssertionError("unreachable")

    def _skip_ws(self) -> None:
        while not self._eof() and self._source[self._pos].isspace():
            self._pos += 1

    def _peek(self) -> str:
        return self._source[self._pos]

    def _expect(self, token: str) -> None:
        if not self._source.startswith(token, self._pos):
            self._error(f"Expected {token!r}, got {self._peek_snippet()!r}")
        self._pos += len(token)

    def _peek_snippet(self) -> str:
        if self._eof():
            return "<end>"
        return self._source[self._pos : self._pos + 8]

    def _eof(self) -> bool:
        return self._pos >= len(self._source)

    def _error(self, message: str) -> None:
        raise TemplateError(f"{message} at position {self._pos + 1}")


__all__ = [
    "TemplateError",
    "render_template",
    "resolve_conditionals",
    "substitute",
    "unguarded_inputs",
]
