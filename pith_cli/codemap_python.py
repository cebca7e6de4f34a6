"""Declaration extractor for Python sources.

Visibility follows the underscore naming convention:

* ``__name`` (not ending in ``__``) is private,
* ``_name`` is protected,
* everything else is public.
"""

from __future__ import annotations

import inspect
import re
from typing import Any, List, Optional

from .models import (
    Class,
    Const,
    Declaration,
    ExtractOptions,
    ExtractResult,
    Function,
    Import,
    TypeAlias,
    Visibility,
)
from .parser import (
    ParserPool,
    build_signature,
    check_syntax,
    collapse_whitespace,
    find_child,
    has_async_token,
    location_of,
    node_text,
    parser_pool,
)

_CONSTANT_RE = re.compile(r"^_*[A-Z][A-Z0-9_]*$")
_STRING_PREFIX_RE = re.compile(r"^[rRuUbBfF]+")


def extract(
    source: str,
    options: ExtractOptions,
    pool: Optional[ParserPool] = None,
) -> ExtractResult:
    tree = (pool or parser_pool).parse("python", source)
    result = ExtractResult()

    for child in tree.root_node.children:
        if child.type == "import_statement":
            result.imports.extend(_extract_import(child))
        elif child.type in ("import_from_statement", "future_import_statement"):
            imp = _extract_from_import(child)
            if imp is not None:
                result.imports.append(imp)
        else:
            decl = _extract_declaration(child, options, top_level=True)
            if decl is not None:
                result.declarations.append(decl)

    return check_syntax(tree, result)


def visibility_of(name: str) -> Visibility:
    if name.startswith("__") and not name.endswith("__"):
        return Visibility.PRIVATE
    if name.startswith("_"):
        return Visibility.PROTECTED
    return Visibility.PUBLIC


# ===================================================================
# Imports
# ===================================================================

def _extract_import(node: Any) -> List[Import]:
    """``import a.b, c as d`` -> one whole-module import per name."""
    imports: List[Import] = []
    for name_node in node.children_by_field_name("name"):
        if name_node.type == "aliased_import":
            name_node = name_node.child_by_field_name("name")
        if name_node is not None:
            imports.append(Import(source=node_text(name_node), items=[]))
    return imports


def _extract_from_import(node: Any) -> Optional[Import]:
    if node.type == "future_import_statement":
        source = "__future__"
    else:
        module = node.child_by_field_name("module_name")
        if module is None:
            return None
        source = node_text(module)

    if find_child(node, "wildcard_import") is not None:
        return Import(source=source, items=[])

    items: List[str] = []
    for name_node in node.children_by_field_name("name"):
        if name_node.type == "aliased_import":
            name_node = name_node.child_by_field_name("name")
        if name_node is not None:
            items.append(node_text(name_node))
    return Import(source=source, items=items)


# ===================================================================
# Declarations
# ===================================================================

def _extract_declaration(node: Any, options: ExtractOptions, top_level: bool) -> Optional[Declaration]:
    """Return the declaration for *node*, or None if it is not one or is filtered out."""
    outer = node
    if node.type == "decorated_definition":
        node = node.child_by_field_name("definition")
        if node is None:
            return None

    decl: Optional[Declaration] = None
    if node.type == "function_definition":
        decl = _extract_function(outer, node, options)
    elif node.type == "class_definition":
        decl = _extract_class(outer, node, options)
    elif top_level and node.type == "expression_statement":
        decl = _extract_constant(node)
    elif top_level and node.type == "type_alias_statement":
        decl = _extract_type_alias(node)

    if decl is None or not (options.include_private or decl.is_public()):
        return None
    return decl


def _extract_function(outer: Any, node: Any, options: ExtractOptions) -> Optional[Function]:
    name_node = node.child_by_field_name("name")
    if name_node is None:
        return None
    name = node_text(name_node)
    signature = build_signature(node, stop_types=(":",))
    is_async = find_child(node, "async") is not None or has_async_token(signature)
    return Function(
        name=name,
        signature=signature,
        visibility=visibility_of(name),
        location=location_of(outer),
        is_async=is_async,
        doc=_docstring(node) if options.include_docs else None,
    )


def _extract_class(outer: Any, node: Any, options: ExtractOptions) -> Optional[Class]:
    name_node = node.child_by_field_name("name")
    if name_node is None:
        return None

    members: List[Declaration] = []
    body = node.child_by_field_name("body")
    if body is not None:
        for child in body.children:
            member = _extract_declaration(child, options, top_level=False)
            if member is not None:
                members.append(member)

    name = node_text(name_node)
    return Class(
        name=name,
        members=members,
        visibility=visibility_of(name),
        location=location_of(outer),
        doc=_docstring(node) if options.include_docs else None,
    )


def _extract_constant(stmt: Any) -> Optional[Const]:
    """Module-level ``NAME = ...`` or ``NAME: T = ...`` with an upper-case name."""
    assign = find_child(stmt, "assignment")
    if assign is None:
        return None
    left = assign.child_by_field_name("left")
    if left is None or left.type != "identifier":
        return None
    name = node_text(left)
    if not _CONSTANT_RE.match(name):
        return None
    type_node = assign.child_by_field_name("type")
    return Const(
        name=name,
        type_text=collapse_whitespace(node_text(type_node)) if type_node is not None else "",
        visibility=visibility_of(name),
        location=location_of(stmt),
    )


def _extract_type_alias(node: Any) -> Optional[TypeAlias]:
    """``type Name = target`` (Python 3.12)."""
    left = node.child_by_field_name("left")
    right = node.child_by_field_name("right")
    if left is None or right is None:
        return None
    name = node_text(left)
    return TypeAlias(
        name=name,
        target=collapse_whitespace(node_text(right)),
        visibility=visibility_of(name.split("[", 1)[0]),
        location=location_of(node),
    )


# ===================================================================
# Docs
# ===================================================================

def _docstring(node: Any) -> Optional[str]:
    """The string literal that opens the body of a function or class."""
    body = node.child_by_field_name("body")
    if body is None or not body.children:
        return None
    first = body.children[0]
    if first.type != "expression_statement" or not first.children:
        return None
    string = first.children[0]
    if string.type != "string":
        return None

    text = _STRING_PREFIX_RE.sub("", node_text(string))
    for quote in ('"""', "'''", '"', "'"):
        if text.startswith(quote) and text.endswith(quote) and len(text) >= 2 * len(quote):
            text = text[len(quote):-len(quote)]
            break
    return inspect.cleandoc(text) or None
