"""Content classification: decide whether a file is worth extracting.

Only the file name and its first kilobyte are consulted, so the check runs
before the full read.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from .languages import Language, detect_language

LOCK_FILES = {
    "package-lock.json", "yarn.lock", "pnpm-lock.yaml", "bun.lockb",
    "poetry.lock", "Cargo.lock", "go.sum", "Gemfile.lock",
    "composer.lock", "Pipfile.lock", "uv.lock",
}

BINARY_EXTENSIONS = {
    # Images
    ".png", ".jpg", ".jpeg", ".gif", ".bmp", ".ico", ".webp", ".tiff",
    # Fonts
    ".woff", ".woff2", ".ttf", ".otf", ".eot",
    # Archives
    ".zip", ".tar", ".gz", ".bz2", ".xz", ".rar", ".7z",
    # Compiled / binary
    ".pyc", ".pyo", ".class", ".o", ".a", ".so", ".dylib", ".dll", ".exe",
    ".wasm", ".jar", ".war",
    # Media
    ".mp3", ".mp4", ".avi", ".mov", ".wav", ".flac",
    # Other binary
    ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx",
    ".db", ".sqlite", ".sqlite3",
}

MINIFIED_SUFFIXES = (".min.js", ".min.mjs", ".min.css", ".bundle.js", ".js.map", ".css.map")

GENERATED_MARKERS = ("@generated", "DO NOT EDIT", "auto-generated", "autogenerated")

# Lines checked for a generated-code marker.
GENERATED_MARKER_LINES = 5
MINIFIED_LINE_LENGTH = 500


@dataclass(frozen=True)
class FilterResult:
    accepted: bool
    reason: str = ""
    language: Optional[Language] = None

    @classmethod
    def accept(cls, language: Optional[Language] = None) -> "FilterResult":
        return cls(True, "", language)

    @classmethod
    def reject(cls, reason: str) -> "FilterResult":
        return cls(False, reason)


def passes_extension_filter(path: Union[str, Path]) -> Optional[Language]:
    """Return the language of *path* when it is a supported, non-minified source file."""
    name = Path(path).name
    if name.lower().endswith(MINIFIED_SUFFIXES):
        return None
    return detect_language(path)


def is_binary(prefix: bytes) -> bool:
    """A NUL byte in the first kilobyte marks the file as binary."""
    return b"\x00" in prefix


def is_generated(prefix: bytes) -> bool:
    head = prefix.split(b"\n", GENERATED_MARKER_LINES)[:GENERATED_MARKER_LINES]
    text = b"\n".join(head).decode("utf-8", errors="ignore")
    return any(marker in text for marker in GENERATED_MARKERS)


def is_minified(prefix: bytes) -> bool:
    """A very long first line means minified output."""
    first_line = prefix.split(b"\n", 1)[0]
    return len(first_line) > MINIFIED_LINE_LENGTH


def should_process(path: Union[str, Path], prefix: Optional[bytes] = None) -> FilterResult:
    """Classify *path* using its name and, if given, its first kilobyte."""
    path = Path(path)
    name = path.name
    if name in LOCK_FILES:
        return FilterResult.reject("lock file")
    if path.suffix.lower() in BINARY_EXTENSIONS:
        return FilterResult.reject("binary extension")
    if name.lower().endswith(MINIFIED_SUFFIXES):
        return FilterResult.reject("minified")

    if prefix is not None:
        if is_binary(prefix):
            return FilterResult.reject("binary content")
        if is_generated(prefix):
            return FilterResult.reject("generated")
        if is_minified(prefix):
            return FilterResult.reject("minified")

    return FilterResult.accept(detect_language(path))
