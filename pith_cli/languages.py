"""Supported languages and file-extension detection."""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union


class Language(str, enum.Enum):
    RUST = "rust"
    TYPESCRIPT = "typescript"
    TSX = "tsx"
    JAVASCRIPT = "javascript"
    JSX = "jsx"
    PYTHON = "python"
    GO = "go"

    def __str__(self) -> str:
        return self.value

    @property
    def extensions(self) -> Tuple[str, ...]:
        return _EXTENSIONS[self]

    @property
    def grammar(self) -> str:
        """Name of the tree-sitter grammar used to parse this language."""
        return _GRAMMARS[self]

    @classmethod
    def all(cls) -> List["Language"]:
        return list(cls)

    @classmethod
    def parse(cls, value: str) -> "Language":
        """Parse a language name or file extension (``"rs"``, ``".py"``)."""
        key = value.strip().lower()
        try:
            return cls(key)
        except ValueError:
            pass
        lang = EXTENSION_MAP.get(key.lstrip("."))
        if lang is None:
            raise ValueError(f"unknown language: {value}")
        return lang


# ---------------------------------------------------------------------------
# Language <-> file-extension mapping
# ---------------------------------------------------------------------------
_EXTENSIONS: Dict[Language, Tuple[str, ...]] = {
    Language.RUST: ("rs",),
    Language.TYPESCRIPT: ("ts", "mts", "cts"),
    Language.TSX: ("tsx",),
    Language.JAVASCRIPT: ("js", "mjs", "cjs"),
    Language.JSX: ("jsx",),
    Language.PYTHON: ("py", "pyi"),
    Language.GO: ("go",),
}

# JavaScript and JSX are read through the TypeScript grammars.
_GRAMMARS: Dict[Language, str] = {
    Language.RUST: "rust",
    Language.TYPESCRIPT: "typescript",
    Language.TSX: "tsx",
    Language.JAVASCRIPT: "typescript",
    Language.JSX: "tsx",
    Language.PYTHON: "python",
    Language.GO: "go",
}

EXTENSION_MAP: Dict[str, Language] = {
    ext: lang for lang, exts in _EXTENSIONS.items() for ext in exts
}


def language_for_extension(extension: Optional[str]) -> Optional[Language]:
    if not extension:
        return None
    return EXTENSION_MAP.get(extension.lower().lstrip("."))


def detect_language(path: Union[str, Path]) -> Optional[Language]:
    """Return the language for *path* based on its extension, if supported."""
    return language_for_extension(Path(path).suffix)
