"""Data models for the template directive engine.

Parsed spans and tree nodes are light dataclasses that live for the duration
of a single processing call.  Processing results and directory reports are
Pydantic v2 models so the CLI can serialise them with ``model_dump_json``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class DirectiveType(str, Enum):
    """Kinds of directive spans recognised by the parser."""
    IF = "if"
    UNLESS = "unless"
    EACH = "each"
    SECTION = "section"
    INCLUDE = "include"


BLOCK_TYPES: tuple[str, ...] = ("if", "unless", "each", "section")


# ---------------------------------------------------------------------------
# Parsed spans
# ---------------------------------------------------------------------------

@dataclass
class Directive:
    """A balanced directive span in template source.

    Offsets are relative to the string that was parsed.  ``nested`` holds the
    directives found inside ``content`` with offsets relative to ``content``.
    """

    type: DirectiveType
    expression: str
    start_index: int
    end_index: int
    match: str
    content: Optional[str] = None
    nested: list[Directive] = field(default_factory=list)


@dataclass
class VariableRef:
    """A ``{{path}}`` or ``{{path|transform}}`` interpolation span."""

    match: str
    variable: str
    index: int
    transform: Optional[str] = None


@dataclass
class ValidationResult:
    """Outcome of the pre-flight syntax check."""

    valid: bool
    errors: list[str] = field(default_factory=list)


@dataclass
class ParsedExpression:
    """A condition expression split into its path and optional comparison."""

    variable: str
    path: list[str]
    operator: Optional[str] = None
    compare_value: Optional[str] = None


@dataclass
class LoopItem:
    """One iteration of an ``each`` block."""

    item: Any
    index: int
    key: Optional[str] = None


# ---------------------------------------------------------------------------
# Template tree
# ---------------------------------------------------------------------------

@dataclass
class TextNode:
    text: str


@dataclass
class VariableNode:
    match: str
    variable: str
    transform: Optional[str] = None


@dataclass
class IncludeNode:
    match: str
    name: str


@dataclass
class BlockNode:
    """An ``if``/``unless``/``each``/``section`` block and its parsed body."""

    type: DirectiveType
    expression: str
    content: str
    match: str
    start_index: int
    end_index: int
    children: list[Node] = field(default_factory=list)


Node = Union[TextNode, VariableNode, IncludeNode, BlockNode]


# ---------------------------------------------------------------------------
# Processing results
# ---------------------------------------------------------------------------

class TemplateResult(BaseModel):
    """Result of processing a single template string."""

    content: str
    modified: bool = False
    directives_processed: int = 0
    warnings: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)


class TemplateProcessingReport(BaseModel):
    """Aggregate report for a directory-wide processing run."""

    total_files: int = 0
    files_modified: int = 0
    total_directives: int = 0
    files_with_errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.files_with_errors)


# ---------------------------------------------------------------------------
# Flat placeholder scanning and replacement
# ---------------------------------------------------------------------------

class PlaceholderScanResult(BaseModel):
    """Configurable ``{{UPPER_SNAKE}}`` placeholders found under a directory."""

    placeholders: list[str] = Field(default_factory=list)
    by_category: dict[str, list[str]] = Field(default_factory=dict)
    files_by_placeholder: dict[str, list[str]] = Field(default_factory=dict)
    counts: dict[str, int] = Field(default_factory=dict)
    unrecognized: list[str] = Field(
        default_factory=list, description="UPPER_SNAKE tokens with no registry entry"
    )
    files_with_errors: list[str] = Field(default_factory=list)


class ReplacementResult(BaseModel):
    """Outcome of replacing flat placeholders in one string."""

    content: str
    replaced: list[str] = Field(default_factory=list)
    unused: list[str] = Field(default_factory=list)

    @property
    def modified(self) -> bool:
        return bool(self.replaced)


class PlaceholderReplacement(BaseModel):
    """A single definition-driven replacement, with its location."""

    file: str = ""
    line: int
    original: str
    replacement: str
    key: str


class ReplacementReport(BaseModel):
    """Aggregate report for a directory-wide flat replacement run."""

    total_files: int = 0
    files_modified: list[str] = Field(default_factory=list)
    replaced_placeholders: list[str] = Field(default_factory=list)
    unused_placeholders: list[str] = Field(default_factory=list)
    unreplaced: dict[str, list[str]] = Field(
        default_factory=dict, description="File -> placeholders left in it after replacement"
    )
    files_with_errors: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
