from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Union

from .errors import TemplateError

_TAG_RE = re.compile(
    r"\{\{\{\s*(\w+)\s*\}\}\}"
    r"|\{\{\s*([#/]?)\s*(\w+)(?:\s+(\w+))?\s*\}\}"
)
_STANDALONE_RE = re.compile(r"^[ \t]*(\{\{[#/][^{}]*\}\})[ \t]*(?:\r?\n|\Z)", re.MULTILINE)
_BLOCKS = ("if", "each")
_MISSING = object()

@dataclass(frozen=True)
class _Var:
    name: str

@dataclass(frozen=True)
class _Block:
    kind: str
    name: str
    body: tuple

_Node = Union[str, _Var, _Block]

def _parse(text: str) -> tuple[_Node, ...]:
    text = _STANDALONE_RE.sub(r"\1", text)
    stack: list[tuple[str, str, list]] = [("", "", [])]
    pos = 0
    for m in _TAG_RE.finditer(text):
        if m.start() > pos:
            stack[-1][2].append(text[pos:m.start()])
        pos = m.end()
        triple, sigil, word, arg = m.groups()
        if triple:
            stack[-1][2].append(_Var(triple))
        elif sigil == "#":
            if word not in _BLOCKS or not arg:
                raise TemplateError(f"unknown directive {m.group(0)!r}")
            stack.append((word, arg, []))
        elif sigil == "/":
            if len(stack) == 1:
                raise TemplateError(f"unexpected {m.group(0)!r}")
            kind, name, body = stack.pop()
            if word != kind:
                raise TemplateError(f"{m.group(0)!r} closes {{{{#{kind} {name}}}}}")
            stack[-1][2].append(_Block(kind, name, tuple(body)))
        else:
            if arg:
                raise TemplateError(f"unknown directive {m.group(0)!r}")
            stack[-1][2].append(_Var(word))
    if pos < len(text):
        stack[-1][2].append(text[pos:])
    if len(stack) > 1:
        kind, name, _ = stack[-1]
        raise TemplateError(f"unclosed {{{{#{kind} {name}}}}}")
    for node in _iter_text(stack[0][2]):
        if "{{" in node:
            raise TemplateError(f"unrecognised tag near {node[node.index('{{'):][:40]!r}")
    return tuple(stack[0][2])

def _iter_text(nodes):
    for node in nodes:
        if isinstance(node, str):
            yield node
        elif isinstance(node, _Block):
            yield from _iter_text(node.body)

def _lookup(name: str, scopes: list[Any]) -> Any:
    if name == "this":
        return scopes[-1]
    for scope in reversed(scopes):
        if isinstance(scope, Mapping) and name in scope:
            return scope[name]
    return _MISSING

class Template:
    """A compiled ``{{name}}`` / ``{{#if}}`` / ``{{#each}}`` template.

    A directive alone on its line consumes the whole line, so a suppressed
    block leaves no blank lines behind. Rendering is pure.
    """

    def __init__(self, text: str) -> None:
        self.text = text
        self._nodes = _parse(text)

    def render(self, context: Mapping[str, Any]) -> str:
        out: list[str] = []
        self._render(self._nodes, [context], out)
        return "".join(out)

    def _render(self, nodes, scopes: list[Any], out: list[str]) -> None:
        for node in nodes:
            if isinstance(node, str):
                out.append(node)
            elif isinstance(node, _Var):
                value = _lookup(node.name, scopes)
                if value is _MISSING or value is None:
                    raise TemplateError(f"missing value for {{{{{node.name}}}}}")
                out.append(str(value))
            elif node.kind == "if":
                value = _lookup(node.name, scopes)
                if value is not _MISSING and value:
                    self._render(node.body, scopes, out)
            else:
                value = _lookup(node.name, scopes)
                if value is _MISSING or value is None:
                    continue
                if isinstance(value, (str, bytes, Mapping)):
                    raise TemplateError(f"{{{{#each {node.name}}}}} needs a list")
                for element in value:
                    self._render(node.body, scopes + [element], out)
