"""Declaration extractor for Rust sources.

Methods live in ``impl`` blocks that are separate from the type they belong
to.  The walker returns those blocks as :class:`MethodBlock` entries; the
codemap assembler folds them into their structs once the file is done.
"""

from __future__ import annotations

from typing import Any, List, Optional

from .models import (
    Const,
    Declaration,
    Enum,
    ExtractOptions,
    ExtractResult,
    Field,
    Function,
    Import,
    MethodBlock,
    Struct,
    Trait,
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
    split_top_level,
    strip_block_comment,
)


def extract(
    source: str,
    options: ExtractOptions,
    pool: Optional[ParserPool] = None,
) -> ExtractResult:
    tree = (pool or parser_pool).parse("rust", source)
    result = ExtractResult()
    _walk(tree.root_node, options, result)
    return check_syntax(tree, result)


# ===================================================================
# Traversal
# ===================================================================

def _walk(node: Any, options: ExtractOptions, result: ExtractResult) -> None:
    for child in node.children:
        kind = child.type
        decl: Optional[Declaration] = None

        if kind == "use_declaration":
            imp = _extract_use(child)
            if imp is not None:
                result.imports.append(imp)
            continue
        if kind == "impl_item":
            block = _extract_impl(child, options)
            if block is not None:
                result.method_blocks.append(block)
            continue

        if kind == "function_item":
            decl = _extract_function(child, options)
        elif kind == "struct_item":
            decl = _extract_struct(child, options)
        elif kind == "enum_item":
            decl = _extract_enum(child, options)
        elif kind == "trait_item":
            decl = _extract_trait(child, options)
        elif kind == "type_item":
            decl = _extract_type_alias(child)
        elif kind in ("const_item", "static_item"):
            decl = _extract_const(child)

        if decl is not None and (options.include_private or decl.is_public()):
            result.declarations.append(decl)


# ===================================================================
# Items
# ===================================================================

def _extract_use(node: Any) -> Optional[Import]:
    arg = node.child_by_field_name("argument")
    if arg is None:
        return None
    text = collapse_whitespace(node_text(arg))

    brace = text.find("{")
    if brace != -1:
        source = text[:brace].rstrip()
        if source.endswith("::"):
            source = source[:-2]
        close = text.rfind("}")
        inner = text[brace + 1:close if close > brace else len(text)]
        return Import(source=source.strip(), items=split_top_level(inner))

    if text.endswith("::*"):
        return Import(source=text[:-3], items=[])
    if "::" in text:
        source, item = text.rsplit("::", 1)
        return Import(source=source, items=[item.strip()])
    return Import(source=text, items=[])


def _extract_function(node: Any, options: ExtractOptions) -> Optional[Function]:
    name_node = node.child_by_field_name("name")
    if name_node is None:
        return None

    signature = build_signature(node)
    modifiers = find_child(node, "function_modifiers")
    is_async = (
        modifiers is not None and any(c.type == "async" for c in modifiers.children)
    ) or has_async_token(signature)

    return Function(
        name=node_text(name_node),
        signature=signature,
        visibility=_visibility(node),
        location=location_of(node),
        is_async=is_async,
        doc=_doc_comment(node) if options.include_docs else None,
    )


def _extract_struct(node: Any, options: ExtractOptions) -> Optional[Struct]:
    name_node = node.child_by_field_name("name")
    if name_node is None:
        return None

    fields: List[Field] = []
    body = node.child_by_field_name("body")
    if body is not None and body.type == "field_declaration_list":
        for field_node in body.children:
            if field_node.type != "field_declaration":
                continue
            fname = field_node.child_by_field_name("name")
            ftype = field_node.child_by_field_name("type")
            if fname is None:
                continue
            fields.append(Field(
                name=node_text(fname),
                type_text=collapse_whitespace(node_text(ftype)) if ftype is not None else "",
                visibility=_visibility(field_node),
            ))
    elif body is not None and body.type == "ordered_field_declaration_list":
        fields = _tuple_fields(body)

    if not options.include_private:
        fields = [f for f in fields if f.visibility == Visibility.PUBLIC]

    return Struct(
        name=node_text(name_node),
        fields=fields,
        visibility=_visibility(node),
        location=location_of(node),
        doc=_doc_comment(node) if options.include_docs else None,
    )


def _tuple_fields(body: Any) -> List[Field]:
    """Fields of a tuple struct, named by position."""
    fields: List[Field] = []
    pending = Visibility.PRIVATE
    for child in body.children:
        if child.type == "visibility_modifier":
            pending = _modifier_visibility(node_text(child))
        elif child.is_named and child.type not in ("attribute_item", "line_comment", "block_comment"):
            fields.append(Field(
                name=str(len(fields)),
                type_text=collapse_whitespace(node_text(child)),
                visibility=pending,
            ))
            pending = Visibility.PRIVATE
    return fields


def _extract_enum(node: Any, options: ExtractOptions) -> Optional[Enum]:
    name_node = node.child_by_field_name("name")
    if name_node is None:
        return None

    variants: List[str] = []
    body = node.child_by_field_name("body")
    if body is not None:
        for variant in body.children:
            if variant.type == "enum_variant":
                variants.append(collapse_whitespace(node_text(variant)))

    return Enum(
        name=node_text(name_node),
        variants=variants,
        visibility=_visibility(node),
        location=location_of(node),
        doc=_doc_comment(node) if options.include_docs else None,
    )


def _extract_trait(node: Any, options: ExtractOptions) -> Optional[Trait]:
    name_node = node.child_by_field_name("name")
    if name_node is None:
        return None

    methods: List[str] = []
    body = node.child_by_field_name("body")
    if body is not None:
        for item in body.children:
            if item.type == "function_signature_item":
                methods.append(collapse_whitespace(node_text(item)).rstrip(";").rstrip())
            elif item.type == "function_item":
                # Provided method: signature without its default body.
                methods.append(build_signature(item))

    return Trait(
        name=node_text(name_node),
        method_signatures=methods,
        visibility=_visibility(node),
        location=location_of(node),
        doc=_doc_comment(node) if options.include_docs else None,
    )


def _extract_type_alias(node: Any) -> Optional[TypeAlias]:
    name_node = node.child_by_field_name("name")
    if name_node is None:
        return None
    target = node.child_by_field_name("type")
    return TypeAlias(
        name=node_text(name_node),
        target=collapse_whitespace(node_text(target)) if target is not None else "",
        visibility=_visibility(node),
        location=location_of(node),
    )


def _extract_const(node: Any) -> Optional[Const]:
    name_node = node.child_by_field_name("name")
    if name_node is None:
        return None
    type_node = node.child_by_field_name("type")
    return Const(
        name=node_text(name_node),
        type_text=collapse_whitespace(node_text(type_node)) if type_node is not None else "",
        visibility=_visibility(node),
        location=location_of(node),
    )


def _extract_impl(node: Any, options: ExtractOptions) -> Optional[MethodBlock]:
    type_name = _impl_type_name(node.child_by_field_name("type"))
    if type_name is None:
        return None

    methods: List[Declaration] = []
    body = node.child_by_field_name("body")
    if body is not None:
        for item in body.children:
            if item.type != "function_item":
                continue
            func = _extract_function(item, options)
            if func is not None and (options.include_private or func.is_public()):
                methods.append(func)

    if not methods:
        return None
    return MethodBlock(type_name, methods)


def _impl_type_name(type_node: Any) -> Optional[str]:
    """Bare name of the implemented type: ``Foo`` for ``Foo<T>`` or ``a::Foo``."""
    while type_node is not None:
        if type_node.type == "type_identifier":
            return node_text(type_node)
        if type_node.type == "generic_type":
            type_node = type_node.child_by_field_name("type")
        elif type_node.type == "scoped_type_identifier":
            type_node = type_node.child_by_field_name("name")
        elif type_node.type == "reference_type":
            type_node = type_node.child_by_field_name("type")
        else:
            return collapse_whitespace(node_text(type_node))
    return None


# ===================================================================
# Visibility and docs
# ===================================================================

def _modifier_visibility(text: str) -> Visibility:
    text = text.replace(" ", "")
    if text.startswith("pub(crate)"):
        return Visibility.CRATE
    if text.startswith("pub"):
        return Visibility.PUBLIC
    return Visibility.PRIVATE


def _visibility(node: Any) -> Visibility:
    modifier = find_child(node, "visibility_modifier")
    if modifier is None:
        return Visibility.PRIVATE
    return _modifier_visibility(node_text(modifier))


def _is_doc(text: str) -> bool:
    if text.startswith("///"):
        return not text.startswith("////")
    return text.startswith("/**") and not text.startswith("/***")


def _doc_comment(node: Any) -> Optional[str]:
    comments = preceding_comments(
        node,
        is_comment=lambda n: n.type in ("line_comment", "block_comment"),
        is_doc=_is_doc,
        skip_types=("attribute_item",),
    )
    if not comments:
        return None

    # A block doc closest to the item wins; otherwise join the trailing run
    # of line docs.
    if comments[-1].startswith("/**"):
        return strip_block_comment(comments[-1]) or None
    lines: List[str] = []
    for text in reversed(comments):
        if not text.startswith("///"):
            break
        lines.append(text[3:].strip())
    lines.reverse()
    return "\n".join(lines) or None
