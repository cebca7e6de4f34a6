"""Unified declaration model shared by every extractor and renderer."""

from __future__ import annotations

from dataclasses import dataclass, field
import enum
from pathlib import Path
from typing import Dict, List, Optional, Union

from .languages import Language


class Visibility(str, enum.Enum):
    """Visibility of a declaration; meaning depends on the source grammar."""

    PUBLIC = "pub"
    PRIVATE = "private"
    CRATE = "pub(crate)"
    PROTECTED = "protected"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Location:
    """1-indexed inclusive line span."""
    start_line: int
    end_line: int

    def __post_init__(self):
        if self.start_line > self.end_line:
            raise ValueError(
                f"start_line {self.start_line} is after end_line {self.end_line}"
            )

    @classmethod
    def single_line(cls, line: int) -> "Location":
        return cls(line, line)

    def __str__(self) -> str:
        if self.start_line == self.end_line:
            return f"line {self.start_line}"
        return f"lines {self.start_line}-{self.end_line}"


@dataclass
class Field:
    name: str
    type_text: str
    visibility: Visibility = Visibility.PRIVATE


@dataclass
class Import:
    """An import statement.  Empty ``items`` means wildcard / whole module."""
    source: str
    items: List[str] = field(default_factory=list)


# ===================================================================
# Declarations
# ===================================================================

class _DeclarationMixin:
    """Behaviour shared by every declaration variant."""

    kind: str = ""
    visibility: Visibility

    def is_public(self) -> bool:
        return self.visibility == Visibility.PUBLIC


@dataclass
class Function(_DeclarationMixin):
    name: str
    signature: str
    visibility: Visibility
    location: Location
    is_async: bool = False
    doc: Optional[str] = None

    kind = "function"


@dataclass
class Struct(_DeclarationMixin):
    name: str
    fields: List[Field]
    visibility: Visibility
    location: Location
    # Only the merge pass fills this in.
    methods: List["Declaration"] = field(default_factory=list)
    doc: Optional[str] = None

    kind = "struct"


@dataclass
class Enum(_DeclarationMixin):
    name: str
    variants: List[str]
    visibility: Visibility
    location: Location
    doc: Optional[str] = None

    kind = "enum"


@dataclass
class Trait(_DeclarationMixin):
    name: str
    method_signatures: List[str]
    visibility: Visibility
    location: Location
    doc: Optional[str] = None

    kind = "trait"


@dataclass
class TypeAlias(_DeclarationMixin):
    name: str
    target: str
    visibility: Visibility
    location: Location

    kind = "type_alias"


@dataclass
class Const(_DeclarationMixin):
    name: str
    type_text: str
    visibility: Visibility
    location: Location

    kind = "const"


@dataclass
class Interface(_DeclarationMixin):
    name: str
    members: List[str]
    visibility: Visibility
    location: Location
    doc: Optional[str] = None

    kind = "interface"


@dataclass
class Class(_DeclarationMixin):
    name: str
    members: List["Declaration"]
    visibility: Visibility
    location: Location
    doc: Optional[str] = None

    kind = "class"


Declaration = Union[Function, Struct, Enum, Trait, TypeAlias, Const, Interface, Class]


# ===================================================================
# Per-file result
# ===================================================================

@dataclass
class MethodBlock:
    """Methods declared apart from their type (a Rust ``impl`` block)."""
    type_name: str
    methods: List[Declaration] = field(default_factory=list)


@dataclass
class ExtractResult:
    """What one extractor pulled out of one file, before merging."""
    imports: List[Import] = field(default_factory=list)
    declarations: List[Declaration] = field(default_factory=list)
    method_blocks: List[MethodBlock] = field(default_factory=list)


@dataclass
class ExtractOptions:
    include_docs: bool = False
    include_private: bool = False

    @classmethod
    def with_docs(cls) -> "ExtractOptions":
        return cls(include_docs=True, include_private=True)

    @classmethod
    def public_only(cls) -> "ExtractOptions":
        return cls(include_docs=False, include_private=False)


@dataclass
class Codemap:
    """Imports and declarations extracted from one source file.

    A set ``parse_error`` means ``declarations`` may be partial; whatever
    was extracted before the failure is kept.
    """
    path: Path
    language: Language
    imports: List[Import] = field(default_factory=list)
    declarations: List[Declaration] = field(default_factory=list)
    parse_error: Optional[str] = None

    def public_declarations(self) -> List[Declaration]:
        return [d for d in self.declarations if d.is_public()]

    def declaration_count(self) -> int:
        """Count declarations including struct methods and class members."""

        def _count(decl: Declaration) -> int:
            if isinstance(decl, Struct):
                return 1 + sum(_count(m) for m in decl.methods)
            if isinstance(decl, Class):
                return 1 + sum(_count(m) for m in decl.members)
            return 1

        return sum(_count(d) for d in self.declarations)


# ===================================================================
# Output accounting
# ===================================================================

@dataclass
class SelectedFile:
    path: Path
    content: str
    lines: int
    tokens: int


@dataclass
class FileTokenInfo:
    tokens: int
    selected: bool
    has_codemap: bool


@dataclass
class TokenSummary:
    total: int
    tree_tokens: int = 0
    codemap_tokens: int = 0
    selected_tokens: int = 0
    file_breakdown: Dict[str, FileTokenInfo] = field(default_factory=dict)
