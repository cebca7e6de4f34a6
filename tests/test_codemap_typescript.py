"""Tests for the TypeScript/TSX extractor and the JavaScript delegate."""

from pith_cli import codemap_javascript
from pith_cli.codemap_typescript import extract
from pith_cli.languages import Language
from pith_cli.models import Class, Const, Enum, ExtractOptions, Function, Interface, TypeAlias, Visibility


def test_imports(sample_typescript_code: str):
    result = extract(sample_typescript_code, ExtractOptions())

    assert [(i.source, i.items) for i in result.imports] == [
        ("fs", ["readFile"]),
        ("path", ["* as path"]),
        ("react", ["React", "useState", "useEffect"]),
    ]


def test_single_named_import():
    result = extract('import { useState } from "react";\n', ExtractOptions())

    assert len(result.imports) == 1
    assert result.imports[0].source == "react"
    assert result.imports[0].items == ["useState"]


def test_exported_declarations_in_source_order(sample_typescript_code: str):
    result = extract(sample_typescript_code, ExtractOptions())

    assert [(type(d).__name__, d.name) for d in result.declarations] == [
        ("Interface", "User"),
        ("TypeAlias", "ID"),
        ("Enum", "Color"),
        ("Function", "greet"),
        ("Function", "load"),
        ("Class", "Service"),
        ("Function", "handler"),
        ("Const", "VERSION"),
    ]


def test_unexported_declarations_are_private(sample_typescript_code: str):
    result = extract(sample_typescript_code, ExtractOptions(include_private=True))
    internal = result.declarations[-1]

    assert internal.name == "internal"
    assert internal.visibility == Visibility.PRIVATE


def test_function_signatures(sample_typescript_code: str):
    decls = {d.name: d for d in extract(sample_typescript_code, ExtractOptions()).declarations}

    greet = decls["greet"]
    assert isinstance(greet, Function)
    assert greet.signature == "function greet(user: User): string"
    assert not greet.is_async

    load = decls["load"]
    assert load.is_async
    assert load.signature == "async function load(id: ID): Promise<User>"


def test_generator_star_attaches_to_function_keyword():
    source = "export async function* stream(n: number): AsyncGenerator<number> {\n  yield n;\n}\n"
    gen = extract(source, ExtractOptions()).declarations[0]

    assert gen.name == "stream"
    assert gen.signature == "async function* stream(n: number): AsyncGenerator<number>"
    assert gen.is_async


def test_arrow_function_becomes_function(sample_typescript_code: str):
    decls = {d.name: d for d in extract(sample_typescript_code, ExtractOptions()).declarations}

    handler = decls["handler"]
    assert isinstance(handler, Function)
    assert handler.signature == "const handler = async (req: Request): Promise<Response>"
    assert handler.is_async


def test_class_members_and_visibility(sample_typescript_code: str):
    public = {d.name: d for d in extract(sample_typescript_code, ExtractOptions()).declarations}
    everything = {
        d.name: d
        for d in extract(sample_typescript_code, ExtractOptions(include_private=True)).declarations
    }

    service = public["Service"]
    assert isinstance(service, Class)
    assert [m.name for m in service.members] == ["constructor", "fetch"]
    assert service.members[1].signature == "async fetch(id: number): Promise<User>"

    members = {m.name: m for m in everything["Service"].members}
    assert members["reset"].visibility == Visibility.PRIVATE
    assert members["log"].visibility == Visibility.PROTECTED


def test_interface_alias_enum_const(sample_typescript_code: str):
    decls = {d.name: d for d in extract(sample_typescript_code, ExtractOptions()).declarations}

    user = decls["User"]
    assert isinstance(user, Interface)
    assert user.visibility == Visibility.PUBLIC
    assert user.members == ["id: number", "name: string"]

    alias = decls["ID"]
    assert isinstance(alias, TypeAlias)
    assert alias.target == "string | number"

    color = decls["Color"]
    assert isinstance(color, Enum)
    assert color.variants == ["Red", 'Green = "green"']

    version = decls["VERSION"]
    assert isinstance(version, Const)
    assert version.type_text == "string"


def test_unexported_interface_is_public():
    result = extract("interface Shape {\n  area(): number;\n}\n", ExtractOptions())

    assert [d.name for d in result.declarations] == ["Shape"]
    assert result.declarations[0].members == ["area(): number"]


def test_jsdoc(sample_typescript_code: str):
    decls = {d.name: d for d in extract(sample_typescript_code, ExtractOptions.with_docs()).declarations}

    assert decls["User"].doc == "A user record."
    assert decls["greet"].doc == "Greets a user."
    assert decls["load"].doc is None


def test_tsx_component():
    source = "export function App(): JSX.Element {\n  return <div>hi</div>;\n}\n"
    result = extract(source, ExtractOptions(), language=Language.TSX)

    assert [d.name for d in result.declarations] == ["App"]


# ===================================================================
# JavaScript
# ===================================================================

def test_javascript_delegates(sample_javascript_code: str):
    result = codemap_javascript.extract(sample_javascript_code, ExtractOptions())

    assert [(i.source, i.items) for i in result.imports] == [("preact", ["h"])]
    assert [(type(d).__name__, d.name) for d in result.declarations] == [
        ("Function", "render"),
        ("Class", "Widget"),
        ("Function", "add"),
    ]
    assert result.declarations[2].signature == "const add = (a, b)"


def test_jsx_uses_tsx_grammar():
    source = "export const App = () => <div className=\"x\">hi</div>;\n"
    result = codemap_javascript.extract(source, ExtractOptions(), language=Language.JSX)

    assert [d.name for d in result.declarations] == ["App"]
    assert isinstance(result.declarations[0], Function)
