"""Codemap assembly: run the right extractor per file and merge method blocks.

A file that fails to parse never aborts the batch.  Its codemap records the
error in ``parse_error`` and keeps whatever declarations were extracted.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

from . import codemap_go, codemap_javascript, codemap_python, codemap_rust, codemap_typescript
from .errors import ParseError, ParserInitError, PathNotFoundError, PithIOError, UnsupportedLanguageError
from .languages import Language, detect_language
from .models import Codemap, Declaration, ExtractOptions, ExtractResult, MethodBlock, Struct
from .parser import ParserPool, parser_pool

logger = logging.getLogger(__name__)

# (path, source text, language)
SourceFile = Tuple[Union[str, Path], str, Language]


def run_extractor(
    source: str,
    language: Language,
    options: ExtractOptions,
    pool: Optional[ParserPool] = None,
) -> ExtractResult:
    """Dispatch *source* to the extractor for *language*."""
    pool = pool or parser_pool
    if language == Language.RUST:
        return codemap_rust.extract(source, options, pool=pool)
    if language == Language.GO:
        return codemap_go.extract(source, options, pool=pool)
    if language == Language.PYTHON:
        return codemap_python.extract(source, options, pool=pool)
    if language in (Language.TYPESCRIPT, Language.TSX):
        return codemap_typescript.extract(source, options, language=language, pool=pool)
    return codemap_javascript.extract(source, options, language=language, pool=pool)


def merge_method_blocks(declarations: List[Declaration], method_blocks: List[MethodBlock]) -> None:
    """Move detached methods into the struct they were declared for.

    Blocks whose type is not a struct in *declarations* are appended to the
    end of *declarations* as standalone entries.
    """
    if not method_blocks:
        return
    struct_index: Dict[str, int] = {}
    for i, decl in enumerate(declarations):
        if isinstance(decl, Struct):
            struct_index.setdefault(decl.name, i)

    for block in method_blocks:
        idx = struct_index.get(block.type_name)
        if idx is None:
            declarations.extend(block.methods)
        else:
            declarations[idx].methods.extend(block.methods)


def extract_codemap(
    path: Union[str, Path],
    content: str,
    language: Language,
    options: Optional[ExtractOptions] = None,
    pool: Optional[ParserPool] = None,
) -> Codemap:
    """Extract one file's codemap.  Never raises for a bad file."""
    options = options or ExtractOptions()
    codemap = Codemap(path=Path(path), language=language)

    result: Optional[ExtractResult] = None
    try:
        result = run_extractor(content, language, options, pool)
    except ParseError as exc:
        result = exc.partial
        codemap.parse_error = str(exc)
        logger.debug("Partial parse of %s: %s", path, exc)
    except ParserInitError as exc:
        codemap.parse_error = str(exc)
    except Exception as exc:
        logger.warning("Failed to extract %s: %s", path, exc)
        codemap.parse_error = f"extraction failed: {exc}"

    if result is not None:
        merge_method_blocks(result.declarations, result.method_blocks)
        codemap.imports = result.imports
        codemap.declarations = result.declarations
    return codemap


def extract_file(
    path: Union[str, Path],
    options: Optional[ExtractOptions] = None,
    pool: Optional[ParserPool] = None,
) -> Codemap:
    """Read and extract a single source file, detecting its language from the extension."""
    path = Path(path)
    language = detect_language(path)
    if language is None:
        raise UnsupportedLanguageError(path)
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise PathNotFoundError(path) from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise PithIOError(str(exc), path) from exc
    return extract_codemap(path, content, language, options, pool)


def extract_codemaps(
    sources: Iterable[SourceFile],
    options: Optional[ExtractOptions] = None,
    max_workers: Optional[int] = None,
) -> List[Codemap]:
    """Extract codemaps for in-memory sources in parallel, preserving input order."""
    options = options or ExtractOptions()
    items = list(sources)
    if not items:
        return []
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = [
            executor.submit(extract_codemap, path, content, language, options)
            for path, content, language in items
        ]
        return [f.result() for f in futures]
