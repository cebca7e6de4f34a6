"""Tests for the content classifier and language detection."""

import pytest

from pith_cli.filters import is_binary, is_generated, is_minified, passes_extension_filter, should_process
from pith_cli.languages import Language, detect_language


@pytest.mark.parametrize("name,expected", [
    ("main.rs", Language.RUST),
    ("index.ts", Language.TYPESCRIPT),
    ("mod.mts", Language.TYPESCRIPT),
    ("App.tsx", Language.TSX),
    ("app.js", Language.JAVASCRIPT),
    ("lib.cjs", Language.JAVASCRIPT),
    ("App.jsx", Language.JSX),
    ("utils.py", Language.PYTHON),
    ("stubs.pyi", Language.PYTHON),
    ("server.go", Language.GO),
    ("README.md", None),
    ("Makefile", None),
])
def test_detect_language(name, expected):
    assert detect_language(name) == expected


def test_language_parse():
    assert Language.parse("Rust") == Language.RUST
    assert Language.parse("py") == Language.PYTHON
    assert Language.parse(".tsx") == Language.TSX
    with pytest.raises(ValueError):
        Language.parse("cobol")


def test_javascript_uses_typescript_grammar():
    assert Language.JAVASCRIPT.grammar == "typescript"
    assert Language.JSX.grammar == "tsx"
    assert Language.GO.grammar == "go"


def test_minified_names_fail_extension_filter():
    assert passes_extension_filter("vendor/jquery.min.js") is None
    assert passes_extension_filter("dist/app.bundle.js") is None
    assert passes_extension_filter("src/app.js") == Language.JAVASCRIPT


@pytest.mark.parametrize("name", ["Cargo.lock", "package-lock.json", "yarn.lock", "go.sum"])
def test_lock_files_rejected(name):
    result = should_process(name)

    assert not result.accepted
    assert result.reason == "lock file"


def test_binary_extension_rejected():
    assert not should_process("logo.png").accepted


def test_binary_content_rejected():
    assert is_binary(b"abc\x00def")
    assert not should_process("data.py", b"\x00\x01\x02").accepted


def test_generated_marker_rejected():
    prefix = b"// Code generated by protoc-gen-go. DO NOT EDIT.\npackage pb\n"

    assert is_generated(prefix)
    result = should_process("api.pb.go", prefix)
    assert not result.accepted
    assert result.reason == "generated"


def test_generated_marker_only_checked_near_top():
    prefix = b"\n".join([b"x = 1"] * 10) + b"\n# @generated\n"

    assert not is_generated(prefix)


def test_long_first_line_is_minified():
    prefix = b"var a=" + b"1," * 400 + b"\n"

    assert is_minified(prefix)
    assert not should_process("app.js", prefix).accepted


def test_normal_source_accepted():
    result = should_process("src/lib.rs", b"pub fn main() {}\n")

    assert result.accepted
    assert result.language == Language.RUST


def test_non_source_text_accepted_without_language():
    result = should_process("notes.txt", b"hello\n")

    assert result.accepted
    assert result.language is None
