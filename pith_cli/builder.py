"""Fluent builder and functional API for extracting codemaps from a codebase.

Example::

    result = (
        Pith("./project")
        .languages([Language.RUST])
        .include_docs(True)
        .build()
    )
    for codemap in result.codemaps:
        print(codemap.path, codemap.declaration_count())
"""

from __future__ import annotations

import logging
import mmap
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from . import config
from .codemap import extract_codemap
from .filters import passes_extension_filter, should_process
from .languages import Language
from .models import Codemap, ExtractOptions
from .tree import FileNode, RenderOptions
from .walker import WalkOptions, build_tree, walk

logger = logging.getLogger(__name__)


# ===================================================================
# Reading
# ===================================================================

def read_source(
    path: Path,
    size: Optional[int] = None,
    mmap_threshold: Optional[int] = None,
) -> Optional[str]:
    """Read *path* as UTF-8 text if the classifier accepts it.

    The first kilobyte is read once: it feeds the classifier and is reused
    as the start of the content (or as all of it, for small files).  Files
    above *mmap_threshold* bytes are memory-mapped.  Returns None for
    rejected, unreadable or non-UTF-8 files.
    """
    threshold = config.MMAP_THRESHOLD if mmap_threshold is None else mmap_threshold
    try:
        with path.open("rb") as f:
            prefix = f.read(config.PREFIX_BYTES)
            verdict = should_process(path, prefix)
            if not verdict.accepted:
                logger.debug("Skipping %s: %s", path, verdict.reason)
                return None

            if size is None:
                size = path.stat().st_size
            if size <= len(prefix):
                return prefix.decode("utf-8")
            if size > threshold:
                return _read_mapped(f, prefix)
            return (prefix + f.read()).decode("utf-8")
    except UnicodeDecodeError:
        logger.debug("Skipping %s: not valid UTF-8", path)
        return None
    except OSError as exc:
        logger.debug("Cannot read %s: %s", path, exc)
        return None


def _read_mapped(f, prefix: bytes) -> str:
    """Decode the whole file straight from a read-only mapping."""
    try:
        with mmap.mmap(f.fileno(), 0, access=mmap.ACCESS_READ) as mapped:
            return str(mapped, "utf-8")
    except UnicodeDecodeError:
        raise
    except (OSError, ValueError) as exc:
        logger.debug("mmap failed for %s (%s); reading instead", getattr(f, "name", "?"), exc)
        f.seek(len(prefix))
        return (prefix + f.read()).decode("utf-8")


# ===================================================================
# Parallel extraction
# ===================================================================

def collect_candidates(
    root: Path,
    walk_options: WalkOptions,
    language_filter: Optional[Sequence[Language]] = None,
) -> List[Tuple[Path, Language, Optional[int]]]:
    """Files under *root* with a supported extension and an allowed language."""
    candidates: List[Tuple[Path, Language, Optional[int]]] = []
    for entry in walk(root, walk_options):
        if not entry.is_file:
            continue
        lang = passes_extension_filter(entry.path)
        if lang is None:
            continue
        if language_filter and lang not in language_filter:
            continue
        candidates.append((entry.path, lang, entry.size))
    return candidates


def _extract_one(
    path: Path,
    language: Language,
    size: Optional[int],
    options: ExtractOptions,
) -> Optional[Codemap]:
    content = read_source(path, size)
    if content is None:
        return None
    return extract_codemap(path, content, language, options)


def extract_codemaps_parallel(
    root: Union[str, Path],
    walk_options: Optional[WalkOptions] = None,
    extract_options: Optional[ExtractOptions] = None,
    language_filter: Optional[Sequence[Language]] = None,
    max_workers: Optional[int] = None,
) -> List[Codemap]:
    """Extract codemaps for every qualifying file under *root*, in walk order."""
    root = Path(root)
    walk_options = walk_options or WalkOptions()
    extract_options = extract_options or ExtractOptions()
    candidates = collect_candidates(root, walk_options, language_filter)
    if not candidates:
        return []

    workers = max_workers if max_workers is not None else config.MAX_WORKERS
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="pith-extract") as executor:
        futures = [
            executor.submit(_extract_one, path, lang, size, extract_options)
            for path, lang, size in candidates
        ]
        results = [f.result() for f in futures]
    return [codemap for codemap in results if codemap is not None]


# ===================================================================
# Builder
# ===================================================================

@dataclass
class PithResult:
    tree: FileNode
    codemaps: List[Codemap] = field(default_factory=list)

    def codemap_paths(self) -> List[Path]:
        return [c.path for c in self.codemaps]

    def codemap_for(self, path: Union[str, Path]) -> Optional[Codemap]:
        path = Path(path)
        return next((c for c in self.codemaps if c.path == path), None)

    def render_options(self) -> RenderOptions:
        return RenderOptions.with_metadata(has_codemap=self.codemap_paths())


class Pith:
    """Builder for extracting codemaps from a codebase."""

    def __init__(self, root: Union[str, Path]) -> None:
        self.root = Path(root)
        self._languages: Optional[List[Language]] = None
        self._include_docs = False
        self._include_private = True
        self._walk_options = WalkOptions()
        self._max_workers: Optional[int] = None

    def languages(self, langs: Iterable[Language]) -> "Pith":
        self._languages = list(langs)
        return self

    def include_docs(self, include: bool = True) -> "Pith":
        self._include_docs = include
        return self

    def include_private(self, include: bool = True) -> "Pith":
        self._include_private = include
        return self

    def include_hidden(self, include: bool = True) -> "Pith":
        self._walk_options.include_hidden = include
        return self

    def max_depth(self, depth: int) -> "Pith":
        self._walk_options.max_depth = depth
        return self

    def max_workers(self, workers: int) -> "Pith":
        self._max_workers = workers
        return self

    def _extract_options(self) -> ExtractOptions:
        return ExtractOptions(
            include_docs=self._include_docs,
            include_private=self._include_private,
        )

    def build(self) -> PithResult:
        tree = build_tree(self.root, self._walk_options)
        return PithResult(tree=tree, codemaps=self.extract())

    def extract(self) -> List[Codemap]:
        return extract_codemaps_parallel(
            self.root,
            self._walk_options,
            self._extract_options(),
            self._languages,
            self._max_workers,
        )

    def tree(self) -> FileNode:
        return build_tree(self.root, self._walk_options)


# ===================================================================
# Functional API
# ===================================================================

def extract_from_path(root: Union[str, Path], options: Optional[ExtractOptions] = None) -> List[Codemap]:
    return extract_codemaps_parallel(root, extract_options=options)


def extract_languages(
    root: Union[str, Path],
    languages: Sequence[Language],
    options: Optional[ExtractOptions] = None,
) -> List[Codemap]:
    return extract_codemaps_parallel(root, extract_options=options, language_filter=languages)


def tree_from_path(root: Union[str, Path]) -> FileNode:
    return build_tree(root)
