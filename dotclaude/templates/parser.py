"""Directive parser for ``.claude`` templates.

Supported syntax::

    {{#if condition}}...{{/if}}
    {{#unless condition}}...{{/unless}}
    {{#each items}}...{{/each}}
    {{#section name}}...{{/section}}
    {{> partialName}}
    {{variable}}
    {{variable | transform}}

Templates are tokenised once and folded into a tree of text, variable,
include and block nodes.  Blocks of the same type nest by depth, so
``{{#each a}}{{#each b}}..{{/each}}..{{/each}}`` closes the inner loop first.
"""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field

from dotclaude.templates.evaluator import parse_expression
from dotclaude.templates.models import (
    BLOCK_TYPES,
    BlockNode,
    Directive,
    DirectiveType,
    IncludeNode,
    Node,
    TextNode,
    ValidationResult,
    VariableNode,
    VariableRef,
)

__all__ = [
    "find_variables",
    "has_directives",
    "parse_directives",
    "parse_expression",
    "parse_template",
    "parse_variable",
    "validate_template",
]

_TOKEN_RE = re.compile(
    r"\{\{#(?P<open>if|unless|each|section)\s+(?P<expression>[^}]+)\}\}"
    r"|\{\{/(?P<close>if|unless|each|section)\}\}"
    r"|\{\{>\s*(?P<include>[^}]+)\}\}"
    r"|\{\{(?P<variable>[^#/>][^}|]*?)(?:\s*\|\s*(?P<transform>\w+))?\s*\}\}"
)
_OPEN_RE = re.compile(r"\{\{#(if|unless|each|section)\s+[^}]+\}\}")
_CLOSE_RE = re.compile(r"\{\{/(if|unless|each|section)\}\}")
_UNCLOSED_RE = re.compile(r"\{\{(?![^}]*\}\})")
_HAS_DIRECTIVES_RE = re.compile(r"\{\{[#/>]?\s*\w")


# ---------------------------------------------------------------------------
# Tree construction
# ---------------------------------------------------------------------------


@dataclass
class _Frame:
    """An open block waiting for its closing tag."""

    type: str
    expression: str
    open_tag: str
    start: int
    content_start: int
    children: list[Node] = field(default_factory=list)


def parse_template(content: str) -> list[Node]:
    """Parse *content* into a list of top-level nodes.

    A closing tag that does not match the innermost open block is kept as
    text, and blocks left open at the end of input are unwound into their
    opening tag text followed by their body.  ``validate_template`` reports
    both situations as errors.
    """
    root: list[Node] = []
    stack: list[_Frame] = []
    position = 0

    def children() -> list[Node]:
        return stack[-1].children if stack else root

    def add_text(text: str) -> None:
        if not text:
            return
        nodes = children()
        if nodes and isinstance(nodes[-1], TextNode):
            nodes[-1] = TextNode(nodes[-1].text + text)
        else:
            nodes.append(TextNode(text))

    for match in _TOKEN_RE.finditer(content):
        add_text(content[position:match.start()])
        position = match.end()
        token = match.group(0)

        if match.group("open"):
            stack.append(
                _Frame(
                    type=match.group("open"),
                    expression=match.group("expression").strip(),
                    open_tag=token,
                    start=match.start(),
                    content_start=match.end(),
                )
            )
        elif match.group("close"):
            if stack and stack[-1].type == match.group("close"):
                frame = stack.pop()
                children().append(
                    BlockNode(
                        type=DirectiveType(frame.type),
                        expression=frame.expression,
                        content=content[frame.content_start:match.start()],
                        match=content[frame.start:match.end()],
                        start_index=frame.start,
                        end_index=match.end(),
                        children=frame.children,
                    )
                )
            else:
                add_text(token)
        elif match.group("include") is not None:
            children().append(IncludeNode(match=token, name=match.group("include").strip()))
        else:
            variable = match.group("variable").strip()
            if not variable:
                add_text(token)
                continue
            transform = match.group("transform")
            children().append(
                VariableNode(
                    match=token,
                    variable=variable,
                    transform=transform.strip() if transform else None,
                )
            )

    add_text(content[position:])

    # Unwind blocks that never closed.
    while stack:
        frame = stack.pop()
        orphaned = frame.children
        add_text(frame.open_tag)
        for node in orphaned:
            if isinstance(node, TextNode):
                add_text(node.text)
            else:
                children().append(node)

    return root


# ---------------------------------------------------------------------------
# Span views
# ---------------------------------------------------------------------------


def parse_directives(content: str) -> list[Directive]:
    """Return the top-level block and include directives in *content*.

    Each block's ``nested`` list holds the directives inside its body, with
    offsets relative to that body.
    """
    directives: list[Directive] = []
    for start, node in _with_offsets(parse_template(content)):
        if isinstance(node, BlockNode):
            directives.append(
                Directive(
                    type=node.type,
                    expression=node.expression,
                    start_index=node.start_index,
                    end_index=node.end_index,
                    match=node.match,
                    content=node.content,
                    nested=parse_directives(node.content),
                )
            )
        elif isinstance(node, IncludeNode):
            directives.append(
                Directive(
                    type=DirectiveType.INCLUDE,
                    expression=node.name,
                    start_index=start,
                    end_index=start + len(node.match),
                    match=node.match,
                )
            )
    return directives


def _with_offsets(nodes: list[Node]) -> list[tuple[int, Node]]:
    """Pair each top-level node with its start offset in the source."""
    positioned: list[tuple[int, Node]] = []
    offset = 0
    for node in nodes:
        positioned.append((offset, node))
        offset += len(node.text if isinstance(node, TextNode) else node.match)
    return positioned


def find_variables(content: str) -> list[VariableRef]:
    """Return variable references in the top-level text of *content*.

    References inside block bodies are not included; they surface when the
    block body itself is processed.
    """
    return [
        VariableRef(
            match=node.match,
            variable=node.variable,
            index=start,
            transform=node.transform,
        )
        for start, node in _with_offsets(parse_template(content))
        if isinstance(node, VariableNode)
    ]


def parse_variable(token: str) -> VariableRef:
    """Parse a single ``{{path|transform}}`` token."""
    inner = token[2:-2].strip()
    variable, sep, transform = inner.partition("|")
    return VariableRef(
        match=token,
        variable=variable.strip(),
        index=0,
        transform=transform.strip() if sep else None,
    )


# ---------------------------------------------------------------------------
# Checks
# ---------------------------------------------------------------------------


def has_directives(content: str) -> bool:
    """Fast check for anything that looks like template syntax."""
    return _HAS_DIRECTIVES_RE.search(content) is not None


def validate_template(content: str) -> ValidationResult:
    """Pre-flight syntax check.

    Reports per-type open/close count mismatches, closing tags that do not
    match the innermost open block, and ``{{`` with no terminating ``}}``.
    """
    errors: list[str] = []

    opened = Counter(m.group(1) for m in _OPEN_RE.finditer(content))
    closed = Counter(m.group(1) for m in _CLOSE_RE.finditer(content))
    balanced = True
    for block_type in BLOCK_TYPES:
        if opened[block_type] != closed[block_type]:
            balanced = False
            errors.append(
                f"Mismatched {block_type} directives: "
                f"{opened[block_type]} opening, {closed[block_type]} closing"
            )

    if balanced:
        stack: list[str] = []
        for match in _TOKEN_RE.finditer(content):
            if match.group("open"):
                stack.append(match.group("open"))
            elif match.group("close"):
                closing = match.group("close")
                expected = stack.pop() if stack else None
                if expected is None:
                    errors.append(
                        f"Closing {closing} directive at offset {match.start()} has no opening"
                    )
                    break
                if expected != closing:
                    errors.append(
                        f"Closing {closing} directive at offset {match.start()} "
                        f"does not match open {expected} directive"
                    )
                    break

    unclosed = _UNCLOSED_RE.findall(content)
    if unclosed:
        errors.append(f"Found {len(unclosed)} unclosed variable reference(s)")

    return ValidationResult(valid=not errors, errors=errors)
