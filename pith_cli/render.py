"""Declaration rendering: markdown blocks and JSON-ready records.

Both forms keep source order and apply the same ``public_only`` filter to
top-level declarations, struct fields and methods, and class members.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Set

from .models import (
    Class,
    Codemap,
    Const,
    Declaration,
    Enum,
    Function,
    Interface,
    Struct,
    Trait,
    TypeAlias,
    Visibility,
)
from .tree import FileNode, format_number

INDENT = "    "


def _visible(decls: List[Declaration], public_only: bool) -> List[Declaration]:
    if not public_only:
        return list(decls)
    return [d for d in decls if d.is_public()]


# ===================================================================
# Structured document (markdown inside XML-style tags)
# ===================================================================

def render_codemap(codemap: Codemap, public_only: bool = True) -> str:
    """Render one codemap as a markdown block."""
    out: List[str] = [f"## {codemap.path.as_posix()}\n\n"]

    if codemap.parse_error:
        out.append(f"**Parse error:** {codemap.parse_error}\n\n")

    if codemap.imports:
        out.append("### Imports\n")
        for imp in codemap.imports:
            if imp.items:
                out.append(f"- use {imp.source}::{{{', '.join(imp.items)}}}\n")
            else:
                out.append(f"- use {imp.source}\n")
        out.append("\n")

    decls = _visible(codemap.declarations, public_only)
    if decls:
        out.append("### Declarations\n\n")
        for decl in decls:
            out.append(render_declaration(decl, public_only))

    return "".join(out)


def render_declaration(decl: Declaration, public_only: bool = True, indent: int = 0) -> str:
    prefix = INDENT * indent
    out: List[str] = []

    def header(text: str) -> None:
        out.append(f"{prefix}#### {text} ({decl.location})\n")

    def doc(text: Optional[str]) -> None:
        if text:
            out.append(f"{prefix}{text}\n")

    if isinstance(decl, Function):
        header(decl.signature)
        doc(decl.doc)
        out.append("\n")

    elif isinstance(decl, Struct):
        header(f"struct {decl.name}")
        doc(decl.doc)
        fields = [
            f for f in decl.fields
            if not public_only or f.visibility == Visibility.PUBLIC
        ]
        if fields:
            out.append(f"{prefix}Fields:\n")
            for f in fields:
                vis = "pub " if f.visibility == Visibility.PUBLIC else ""
                out.append(f"{prefix}- {vis}{f.name}: {f.type_text}\n")
        methods = [m for m in _visible(decl.methods, public_only) if isinstance(m, Function)]
        if methods:
            out.append(f"{prefix}Methods:\n")
            for m in methods:
                out.append(f"{prefix}- {m.signature} ({m.location})\n")
        out.append("\n")

    elif isinstance(decl, Enum):
        header(f"enum {decl.name}")
        doc(decl.doc)
        out.append(f"{prefix}Variants: {', '.join(decl.variants)}\n\n")

    elif isinstance(decl, Trait):
        header(f"trait {decl.name}")
        doc(decl.doc)
        if decl.method_signatures:
            out.append(f"{prefix}Methods:\n")
            for sig in decl.method_signatures:
                out.append(f"{prefix}- {sig}\n")
        out.append("\n")

    elif isinstance(decl, TypeAlias):
        out.append(f"{prefix}#### type {decl.name} = {decl.target} ({decl.location})\n\n")

    elif isinstance(decl, Const):
        out.append(f"{prefix}#### const {decl.name}: {decl.type_text} ({decl.location})\n\n")

    elif isinstance(decl, Interface):
        header(f"interface {decl.name}")
        doc(decl.doc)
        if decl.members:
            out.append(f"{prefix}Members:\n")
            for member in decl.members:
                out.append(f"{prefix}- {member}\n")
        out.append("\n")

    elif isinstance(decl, Class):
        header(f"class {decl.name}")
        doc(decl.doc)
        for member in _visible(decl.members, public_only):
            out.append(render_declaration(member, public_only, indent + 1))

    return "".join(out)


def render_selected_file(path: str, content: str, lines: int, tokens: int) -> str:
    """One ``--- path (N lines, M tokens) ---`` block of the selected-files section."""
    block = f"--- {path} ({format_number(lines)} lines, {format_number(tokens)} tokens) ---\n"
    block += content
    if not content.endswith("\n"):
        block += "\n"
    return block + "\n"


# ===================================================================
# Records (JSON form)
# ===================================================================

def _location_record(decl: Declaration) -> Dict[str, int]:
    return {"start_line": decl.location.start_line, "end_line": decl.location.end_line}


def declaration_record(decl: Declaration, public_only: bool = True) -> Dict[str, Any]:
    """The tagged record for one declaration.  Empty lists and unset values are omitted."""
    record: Dict[str, Any] = {"kind": decl.kind, "name": decl.name}
    if isinstance(decl, Function):
        record["signature"] = decl.signature
    record["visibility"] = str(decl.visibility)
    record["location"] = _location_record(decl)
    if isinstance(decl, Function):
        record["is_async"] = decl.is_async

    doc = getattr(decl, "doc", None)
    if doc is not None:
        record["doc"] = doc

    if isinstance(decl, Struct):
        fields = [
            {"name": f.name, "type": f.type_text, "visibility": str(f.visibility)}
            for f in decl.fields
            if not public_only or f.visibility == Visibility.PUBLIC
        ]
        methods = [declaration_record(m, public_only) for m in _visible(decl.methods, public_only)]
        if fields:
            record["fields"] = fields
        if methods:
            record["methods"] = methods
    elif isinstance(decl, Class):
        methods = [declaration_record(m, public_only) for m in _visible(decl.members, public_only)]
        if methods:
            record["methods"] = methods
    elif isinstance(decl, Enum):
        if decl.variants:
            record["variants"] = list(decl.variants)
    elif isinstance(decl, Trait):
        if decl.method_signatures:
            record["members"] = list(decl.method_signatures)
    elif isinstance(decl, Interface):
        if decl.members:
            record["members"] = list(decl.members)
    elif isinstance(decl, TypeAlias):
        record["target"] = decl.target
    elif isinstance(decl, Const):
        record["type"] = decl.type_text
    return record


def codemap_record(codemap: Codemap, public_only: bool = True) -> Dict[str, Any]:
    record: Dict[str, Any] = {
        "path": codemap.path.as_posix(),
        "language": str(codemap.language),
        "imports": [{"source": i.source, "items": list(i.items)} for i in codemap.imports],
        "declarations": [
            declaration_record(d, public_only)
            for d in _visible(codemap.declarations, public_only)
        ],
    }
    if codemap.parse_error is not None:
        record["parse_error"] = codemap.parse_error
    return record


def tree_record(
    node: FileNode,
    selected: Optional[Set[Any]] = None,
    has_codemap: Optional[Set[Any]] = None,
    with_language: bool = True,
) -> Dict[str, Any]:
    """Nested record for a file tree; ``selected``/``has_codemap`` appear only when true."""
    selected = selected or set()
    has_codemap = has_codemap or set()
    record: Dict[str, Any] = {
        "name": node.name,
        "path": node.path.as_posix(),
        "kind": "directory" if node.is_dir else "file",
    }
    if node.is_file:
        if node.extension is not None:
            record["extension"] = node.extension
        record["size"] = node.size or 0
        if node.lines is not None:
            record["lines"] = node.lines
        if with_language and node.language is not None:
            record["language"] = node.language
    if node.path in selected:
        record["selected"] = True
    if node.path in has_codemap:
        record["has_codemap"] = True
    children = [tree_record(c, selected, has_codemap, with_language) for c in node.children]
    if children:
        record["children"] = children
    return record
