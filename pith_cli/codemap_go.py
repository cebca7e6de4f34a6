"""Declaration extractor for Go sources.

Go has no visibility keywords: an identifier starting with an upper-case
letter is exported, everything else is package-private.  Methods are
declared outside their type and are reported as standalone functions with
the receiver kept in the signature.
"""

from __future__ import annotations

from typing import Any, List, Optional

from .models import (
    Const,
    Declaration,
    ExtractOptions,
    ExtractResult,
    Field,
    Function,
    Import,
    Interface,
    Struct,
    TypeAlias,
    Visibility,
)
from .parser import (
    ParserPool,
    build_signature,
    check_syntax,
    collapse_whitespace,
    location_of,
    node_text,
    parser_pool,
    preceding_comments,
)


def extract(
    source: str,
    options: ExtractOptions,
    pool: Optional[ParserPool] = None,
) -> ExtractResult:
    tree = (pool or parser_pool).parse("go", source)
    result = ExtractResult()

    for child in tree.root_node.children:
        kind = child.type
        if kind == "import_declaration":
            result.imports.extend(_extract_imports(child))
            continue

        found: List[Declaration] = []
        if kind in ("function_declaration", "method_declaration"):
            func = _extract_function(child, options)
            if func is not None:
                found.append(func)
        elif kind == "type_declaration":
            found.extend(_extract_types(child, options))
        elif kind in ("const_declaration", "var_declaration"):
            found.extend(_extract_consts(child))

        result.declarations.extend(
            d for d in found if options.include_private or d.is_public()
        )

    return check_syntax(tree, result)


def visibility_of(name: str) -> Visibility:
    """Exported (upper-case first letter) names are public."""
    if name and name[0].isupper():
        return Visibility.PUBLIC
    return Visibility.PRIVATE


# ===================================================================
# Imports
# ===================================================================

def _extract_imports(node: Any) -> List[Import]:
    imports: List[Import] = []
    stack = list(node.children)
    while stack:
        child = stack.pop(0)
        if child.type == "import_spec_list":
            stack = list(child.children) + stack
        elif child.type == "import_spec":
            path = child.child_by_field_name("path")
            if path is not None:
                imports.append(Import(source=node_text(path).strip("\"`"), items=[]))
    return imports


# ===================================================================
# Functions and methods
# ===================================================================

def _extract_function(node: Any, options: ExtractOptions) -> Optional[Function]:
    name_node = node.child_by_field_name("name")
    if name_node is None:
        return None
    name = node_text(name_node)
    return Function(
        name=name,
        signature=build_signature(node),
        visibility=visibility_of(name),
        location=location_of(node),
        is_async=False,
        doc=_doc_comment(node) if options.include_docs else None,
    )


# ===================================================================
# Types
# ===================================================================

def _extract_types(node: Any, options: ExtractOptions) -> List[Declaration]:
    specs = [c for c in node.children if c.type in ("type_spec", "type_alias")]
    grouped = len(specs) > 1 or any(c.type == "(" for c in node.children)
    decls: List[Declaration] = []
    for spec in specs:
        # A lone spec takes its doc and span from the whole declaration.
        anchor = spec if grouped else node
        decl = _extract_type_spec(spec, anchor, options)
        if decl is not None:
            decls.append(decl)
    return decls


def _extract_type_spec(spec: Any, anchor: Any, options: ExtractOptions) -> Optional[Declaration]:
    name_node = spec.child_by_field_name("name")
    type_node = spec.child_by_field_name("type")
    if name_node is None or type_node is None:
        return None

    name = node_text(name_node)
    visibility = visibility_of(name)
    location = location_of(anchor)
    doc = _doc_comment(anchor) if options.include_docs else None

    if spec.type == "type_spec" and type_node.type == "struct_type":
        fields = _struct_fields(type_node)
        if not options.include_private:
            fields = [f for f in fields if f.visibility == Visibility.PUBLIC]
        return Struct(name=name, fields=fields, visibility=visibility, location=location, doc=doc)

    if spec.type == "type_spec" and type_node.type == "interface_type":
        return Interface(
            name=name,
            members=_interface_members(type_node),
            visibility=visibility,
            location=location,
            doc=doc,
        )

    return TypeAlias(
        name=name,
        target=collapse_whitespace(node_text(type_node)),
        visibility=visibility,
        location=location,
    )


def _struct_fields(struct_node: Any) -> List[Field]:
    fields: List[Field] = []
    field_list = next(
        (c for c in struct_node.children if c.type == "field_declaration_list"), None
    )
    if field_list is None:
        return fields

    for decl in field_list.children:
        if decl.type != "field_declaration":
            continue
        type_node = decl.child_by_field_name("type")
        type_text = collapse_whitespace(node_text(type_node)) if type_node is not None else ""
        names = decl.children_by_field_name("name")
        if not names:
            # Embedded field: named after its type.
            embedded = type_text.lstrip("*").rsplit(".", 1)[-1]
            fields.append(Field(embedded, type_text, visibility_of(embedded)))
            continue
        for name_node in names:
            name = node_text(name_node)
            fields.append(Field(name, type_text, visibility_of(name)))
    return fields


def _interface_members(iface: Any) -> List[str]:
    members: List[str] = []
    for child in iface.children:
        if child.type in ("method_elem", "method_spec", "type_elem", "constraint_elem"):
            members.append(collapse_whitespace(node_text(child)))
    return members


# ===================================================================
# Constants and variables
# ===================================================================

def _extract_consts(node: Any) -> List[Const]:
    consts: List[Const] = []
    stack = list(node.children)
    while stack:
        child = stack.pop(0)
        if child.type == "var_spec_list":
            stack = list(child.children) + stack
            continue
        if child.type not in ("const_spec", "var_spec"):
            continue
        type_node = child.child_by_field_name("type")
        type_text = collapse_whitespace(node_text(type_node)) if type_node is not None else ""
        for name_node in child.children_by_field_name("name"):
            name = node_text(name_node)
            if name == "_":
                continue
            consts.append(Const(
                name=name,
                type_text=type_text,
                visibility=visibility_of(name),
                location=location_of(child),
            ))
    return consts


# ===================================================================
# Docs
# ===================================================================

def _doc_comment(node: Any) -> Optional[str]:
    comments = preceding_comments(
        node,
        is_comment=lambda n: n.type == "comment",
        is_doc=lambda text: text.startswith("//"),
    )
    if not comments:
        return None
    return "\n".join(c[2:].strip() for c in comments) or None
