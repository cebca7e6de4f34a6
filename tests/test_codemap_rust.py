"""Tests for the Rust declaration extractor."""

from pathlib import Path

import pytest

from pith_cli.codemap import extract_codemap
from pith_cli.codemap_rust import extract
from pith_cli.languages import Language
from pith_cli.models import (
    Const,
    Enum,
    ExtractOptions,
    Function,
    Struct,
    Trait,
    TypeAlias,
    Visibility,
)


def _codemap(source: str, options: ExtractOptions = None):
    return extract_codemap(Path("src/store.rs"), source, Language.RUST, options)


def test_imports(sample_rust_code: str):
    result = extract(sample_rust_code, ExtractOptions())

    assert [(i.source, i.items) for i in result.imports] == [
        ("std::collections", ["HashMap"]),
        ("std::io", ["self", "Read"]),
    ]


def test_wildcard_and_plain_use():
    result = extract("use super::*;\nuse serde;\n", ExtractOptions())

    assert result.imports[0].source == "super"
    assert result.imports[0].items == []
    assert result.imports[1].source == "serde"
    assert result.imports[1].items == []


def test_public_only_declarations_in_source_order(sample_rust_code: str):
    codemap = _codemap(sample_rust_code)

    assert codemap.parse_error is None
    kinds = [(type(d).__name__, d.name) for d in codemap.declarations]
    assert kinds == [
        ("Struct", "Store"),
        ("Enum", "Mode"),
        ("Trait", "Backend"),
        ("TypeAlias", "Map"),
        ("Const", "LIMIT"),
        ("Function", "render"),
    ]


def test_include_private_keeps_private_and_crate_items(sample_rust_code: str):
    codemap = _codemap(sample_rust_code, ExtractOptions(include_private=True))

    names = [d.name for d in codemap.declarations]
    assert names == ["Store", "Mode", "Backend", "Map", "LIMIT", "helper", "internal", "render"]

    by_name = {d.name: d for d in codemap.declarations}
    assert by_name["helper"].visibility == Visibility.PRIVATE
    assert by_name["internal"].visibility == Visibility.CRATE
    assert not by_name["internal"].is_public()


def test_impl_methods_merge_into_struct(sample_rust_code: str):
    codemap = _codemap(sample_rust_code)
    store = codemap.declarations[0]

    assert isinstance(store, Struct)
    assert [m.name for m in store.methods] == ["new", "load"]
    assert store.methods[0].signature == "pub fn new(name: String) -> Self"


def test_impl_without_struct_becomes_standalone(sample_rust_code: str):
    codemap = _codemap(sample_rust_code)
    last = codemap.declarations[-1]

    assert isinstance(last, Function)
    assert last.name == "render"
    assert last.signature == "pub fn render(&self) -> String"


def test_struct_fields_filtered_by_visibility(sample_rust_code: str):
    public = _codemap(sample_rust_code).declarations[0]
    everything = _codemap(sample_rust_code, ExtractOptions(include_private=True)).declarations[0]

    assert [f.name for f in public.fields] == ["name"]
    assert public.fields[0].type_text == "String"
    assert [f.name for f in everything.fields] == ["name", "entries"]
    assert everything.fields[1].visibility == Visibility.PRIVATE


def test_async_detected(sample_rust_code: str):
    store = _codemap(sample_rust_code).declarations[0]
    load = store.methods[1]

    assert load.is_async
    assert load.signature.startswith("pub async fn load(&mut self)")
    assert not store.methods[0].is_async


def test_enum_trait_alias_const(sample_rust_code: str):
    decls = {d.name: d for d in _codemap(sample_rust_code).declarations}

    mode = decls["Mode"]
    assert isinstance(mode, Enum)
    assert mode.variants == ["Fast", "Slow(u32)"]

    backend = decls["Backend"]
    assert isinstance(backend, Trait)
    assert backend.method_signatures == [
        "fn get(&self, key: &str) -> Option<String>",
        "fn put(&mut self, key: String, value: String)",
    ]

    alias = decls["Map"]
    assert isinstance(alias, TypeAlias)
    assert alias.target == "HashMap<String, String>"

    limit = decls["LIMIT"]
    assert isinstance(limit, Const)
    assert limit.type_text == "usize"


def test_locations(sample_rust_code: str):
    store = _codemap(sample_rust_code).declarations[0]

    assert store.location.start_line == 5
    assert store.location.end_line == 8


def test_docs_only_when_requested(sample_rust_code: str):
    without = _codemap(sample_rust_code).declarations[0]
    with_docs = _codemap(sample_rust_code, ExtractOptions.with_docs()).declarations[0]

    assert without.doc is None
    assert with_docs.doc == "A key-value store."
    assert with_docs.methods[0].doc == "Create an empty store."


def test_single_public_field_end_to_end():
    source = "pub struct Point {\n    pub x: i32,\n    y: i32,\n}\n"
    codemap = _codemap(source)

    assert len(codemap.declarations) == 1
    point = codemap.declarations[0]
    assert isinstance(point, Struct)
    assert len(point.fields) == 1
    assert point.fields[0].name == "x"


def test_tuple_struct_fields():
    codemap = _codemap("pub struct Meters(pub f64, u8);\n", ExtractOptions(include_private=True))
    meters = codemap.declarations[0]

    assert [(f.name, f.type_text, f.visibility) for f in meters.fields] == [
        ("0", "f64", Visibility.PUBLIC),
        ("1", "u8", Visibility.PRIVATE),
    ]


def test_generic_impl_merges():
    source = (
        "pub struct Wrapper<T> { pub inner: T }\n"
        "impl<T: Clone> Wrapper<T> {\n"
        "    pub fn get(&self) -> T { self.inner.clone() }\n"
        "}\n"
    )
    wrapper = _codemap(source).declarations[0]

    assert isinstance(wrapper, Struct)
    assert [m.name for m in wrapper.methods] == ["get"]


@pytest.mark.parametrize("source", [
    "pub fn broken(x: i32 {\n",
    "pub struct Good { pub a: i32 }\nfn oops( {\n",
])
def test_malformed_source_sets_parse_error(source: str):
    codemap = _codemap(source)

    assert codemap.parse_error is not None
    assert codemap.parse_error.startswith("syntax error at line")
