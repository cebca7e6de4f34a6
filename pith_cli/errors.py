"""Error types surfaced to callers of pith, and their process exit codes."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Union

PathLike = Union[str, Path]


class PithError(Exception):
    """Base class for every error pith reports to its caller."""

    exit_code: int = 1


class PathNotFoundError(PithError):
    """Raised when the requested root path does not exist."""
    exit_code = 3

    def __init__(self, path: PathLike):
        self.path = Path(path)
        super().__init__(f"path not found: {path}")


class PermissionDeniedError(PithError):
    """Raised when the requested root path cannot be read."""
    exit_code = 4

    def __init__(self, path: PathLike):
        self.path = Path(path)
        super().__init__(f"permission denied: {path}")


class NoFilesFoundError(PithError):
    """Raised when a run finds no file of any supported language."""
    exit_code = 5

    def __init__(self, path: PathLike):
        self.path = Path(path)
        super().__init__(f"no supported files found in {path}")


class PithIOError(PithError):
    exit_code = 1

    def __init__(self, message: str, path: Optional[PathLike] = None):
        self.path = Path(path) if path is not None else None
        super().__init__(f"IO error: {message}")


class WalkError(PithError):
    """Raised when directory traversal fails for a reason other than a missing root."""
    exit_code = 2

    def __init__(self, message: str, path: Optional[PathLike] = None):
        self.path = Path(path) if path is not None else None
        super().__init__(f"walk error: {message}")


class CodemapError(PithError):
    exit_code = 1


class ParserInitError(CodemapError):
    """Raised when a tree-sitter grammar cannot be loaded."""

    def __init__(self, grammar: str, error: Optional[BaseException] = None):
        self.grammar = grammar
        self.original_error = error
        message = f"failed to initialize {grammar} parser"
        if error is not None:
            message = f"{message}: {error}"
        super().__init__(message)


class UnsupportedLanguageError(CodemapError):
    def __init__(self, path: PathLike):
        self.path = Path(path)
        super().__init__(f"unsupported language for file: {path}")


def exit_code(error: BaseException) -> int:
    """Map an error to the process exit code the CLI should return."""
    if isinstance(error, PithError):
        return error.exit_code
    return 1


class ParseError(CodemapError):
    """Raised by an extractor when the source does not parse cleanly.

    ``partial`` holds whatever was extracted anyway so the caller can keep it.
    """

    def __init__(self, message: str, partial: Any = None):
        self.partial = partial
        super().__init__(message)
