"""Declaration extractor for TypeScript and TSX sources.

A top-level declaration is public when it is exported.  Interfaces are
always reported as public.  Class members are public unless marked
``private``/``protected`` or named with a ``#`` prefix.
"""

from __future__ import annotations

from typing import Any, List, Optional

from .languages import Language
from .models import (
    Class,
    Const,
    Declaration,
    Enum,
    ExtractOptions,
    ExtractResult,
    Function,
    Import,
    Interface,
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
    preceding_comments,
    strip_block_comment,
)

_FUNCTION_TYPES = ("function_declaration", "generator_function_declaration")
_CLASS_TYPES = ("class_declaration", "abstract_class_declaration")
_FUNCTION_VALUE_TYPES = ("arrow_function", "function_expression", "function", "generator_function")
_INTERFACE_MEMBER_TYPES = (
    "property_signature", "method_signature", "call_signature",
    "construct_signature", "index_signature",
)


def extract(
    source: str,
    options: ExtractOptions,
    language: Language = Language.TYPESCRIPT,
    pool: Optional[ParserPool] = None,
) -> ExtractResult:
    """Extract from TypeScript, or TSX when *language* is :attr:`Language.TSX`."""
    grammar = "tsx" if language in (Language.TSX, Language.JSX) else "typescript"
    tree = (pool or parser_pool).parse(grammar, source)
    result = ExtractResult()

    for child in tree.root_node.children:
        if child.type == "import_statement":
            imp = _extract_import(child)
            if imp is not None:
                result.imports.append(imp)
            continue

        exported = False
        outer = child
        node = child
        if child.type == "export_statement":
            node = child.child_by_field_name("declaration")
            if node is None:
                continue
            exported = True

        for decl in _extract_statement(outer, node, exported, options):
            if options.include_private or decl.is_public():
                result.declarations.append(decl)

    return check_syntax(tree, result)


def _export_visibility(exported: bool) -> Visibility:
    return Visibility.PUBLIC if exported else Visibility.PRIVATE


# ===================================================================
# Imports
# ===================================================================

def _extract_import(node: Any) -> Optional[Import]:
    source_node = node.child_by_field_name("source")
    if source_node is None:
        return None
    source = node_text(source_node).strip("\"'`")

    items: List[str] = []
    clause = find_child(node, "import_clause")
    if clause is not None:
        for part in clause.children:
            if part.type == "identifier":
                items.append(node_text(part))
            elif part.type == "namespace_import":
                items.append(collapse_whitespace(node_text(part)))
            elif part.type == "named_imports":
                for spec in part.children:
                    if spec.type != "import_specifier":
                        continue
                    name = spec.child_by_field_name("name")
                    if name is not None:
                        items.append(node_text(name))
    return Import(source=source, items=items)


# ===================================================================
# Declarations
# ===================================================================

def _extract_statement(outer: Any, node: Any, exported: bool, options: ExtractOptions) -> List[Declaration]:
    kind = node.type
    doc = _jsdoc(outer) if options.include_docs else None
    visibility = _export_visibility(exported)

    if kind in _FUNCTION_TYPES:
        func = _extract_function(node, visibility, doc)
        return [func] if func is not None else []
    if kind in _CLASS_TYPES:
        cls = _extract_class(node, visibility, doc, options)
        return [cls] if cls is not None else []
    if kind == "interface_declaration":
        iface = _extract_interface(node, doc)
        return [iface] if iface is not None else []
    if kind == "type_alias_declaration":
        alias = _extract_type_alias(node, visibility)
        return [alias] if alias is not None else []
    if kind == "enum_declaration":
        enum = _extract_enum(node, visibility, doc)
        return [enum] if enum is not None else []
    if kind in ("lexical_declaration", "variable_declaration"):
        return _extract_variables(node, visibility, doc)
    return []


def _extract_function(node: Any, visibility: Visibility, doc: Optional[str]) -> Optional[Function]:
    name_node = node.child_by_field_name("name")
    if name_node is None:
        return None
    signature = build_signature(node)
    return Function(
        name=node_text(name_node),
        signature=signature,
        visibility=visibility,
        location=location_of(node),
        is_async=find_child(node, "async") is not None or has_async_token(signature),
        doc=doc,
    )


def _extract_class(
    node: Any,
    visibility: Visibility,
    doc: Optional[str],
    options: ExtractOptions,
) -> Optional[Class]:
    name_node = node.child_by_field_name("name")
    if name_node is None:
        return None

    members: List[Declaration] = []
    body = node.child_by_field_name("body")
    if body is not None:
        for child in body.children:
            if child.type not in ("method_definition", "abstract_method_signature", "method_signature"):
                continue
            method = _extract_method(child, options)
            if method is not None and (options.include_private or method.is_public()):
                members.append(method)

    return Class(
        name=node_text(name_node),
        members=members,
        visibility=visibility,
        location=location_of(node),
        doc=doc,
    )


def _extract_method(node: Any, options: ExtractOptions) -> Optional[Function]:
    name_node = node.child_by_field_name("name")
    if name_node is None:
        return None
    name = node_text(name_node)
    signature = build_signature(node).rstrip(";").rstrip()
    return Function(
        name=name,
        signature=signature,
        visibility=_member_visibility(node, name),
        location=location_of(node),
        is_async=find_child(node, "async") is not None or has_async_token(signature),
        doc=_jsdoc(node) if options.include_docs else None,
    )


def _member_visibility(node: Any, name: str) -> Visibility:
    if name.startswith("#"):
        return Visibility.PRIVATE
    modifier = find_child(node, "accessibility_modifier")
    if modifier is not None:
        text = node_text(modifier)
        if text == "private":
            return Visibility.PRIVATE
        if text == "protected":
            return Visibility.PROTECTED
    return Visibility.PUBLIC


def _extract_interface(node: Any, doc: Optional[str]) -> Optional[Interface]:
    name_node = node.child_by_field_name("name")
    if name_node is None:
        return None

    members: List[str] = []
    body = node.child_by_field_name("body")
    if body is not None:
        for child in body.children:
            if child.type in _INTERFACE_MEMBER_TYPES:
                members.append(collapse_whitespace(node_text(child)).rstrip(";,").rstrip())

    return Interface(
        name=node_text(name_node),
        members=members,
        visibility=Visibility.PUBLIC,
        location=location_of(node),
        doc=doc,
    )


def _extract_type_alias(node: Any, visibility: Visibility) -> Optional[TypeAlias]:
    name_node = node.child_by_field_name("name")
    value = node.child_by_field_name("value")
    if name_node is None or value is None:
        return None
    return TypeAlias(
        name=node_text(name_node),
        target=collapse_whitespace(node_text(value)),
        visibility=visibility,
        location=location_of(node),
    )


def _extract_enum(node: Any, visibility: Visibility, doc: Optional[str]) -> Optional[Enum]:
    name_node = node.child_by_field_name("name")
    if name_node is None:
        return None

    variants: List[str] = []
    body = node.child_by_field_name("body")
    if body is not None:
        for child in body.children:
            if child.type in ("property_identifier", "enum_assignment", "string"):
                variants.append(collapse_whitespace(node_text(child)))

    return Enum(
        name=node_text(name_node),
        variants=variants,
        visibility=visibility,
        location=location_of(node),
        doc=doc,
    )


def _extract_variables(node: Any, visibility: Visibility, doc: Optional[str]) -> List[Declaration]:
    """``const f = (...) => ...`` becomes a Function; an annotated ``const`` a Const."""
    keyword = node.children[0].type if node.children else "const"
    decls: List[Declaration] = []
    for declarator in node.children:
        if declarator.type != "variable_declarator":
            continue
        name_node = declarator.child_by_field_name("name")
        if name_node is None or name_node.type != "identifier":
            continue
        name = node_text(name_node)
        type_node = declarator.child_by_field_name("type")
        value = declarator.child_by_field_name("value")

        if value is not None and value.type in _FUNCTION_VALUE_TYPES:
            head = f"{keyword} {name}"
            if type_node is not None:
                head += collapse_whitespace(node_text(type_node))
            signature = f"{head} = {build_signature(value, stop_types=('=>',))}"
            decls.append(Function(
                name=name,
                signature=signature,
                visibility=visibility,
                location=location_of(declarator),
                is_async=find_child(value, "async") is not None or has_async_token(signature),
                doc=doc,
            ))
        elif keyword == "const" and type_node is not None:
            decls.append(Const(
                name=name,
                type_text=collapse_whitespace(node_text(type_node)).lstrip(":").strip(),
                visibility=visibility,
                location=location_of(declarator),
            ))
    return decls


# ===================================================================
# Docs
# ===================================================================

def _jsdoc(node: Any) -> Optional[str]:
    """The ``/** ... */`` block directly above *node*."""
    comments = preceding_comments(
        node,
        is_comment=lambda n: n.type == "comment",
        is_doc=lambda text: text.startswith("/**"),
    )
    if not comments:
        return None
    return strip_block_comment(comments[-1]) or None
