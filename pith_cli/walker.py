"""Directory traversal honouring .gitignore, .git/info/exclude and .pithignore."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Union

import pathspec

from . import config
from .errors import PathNotFoundError, PermissionDeniedError, WalkError
from .tree import FileNode

logger = logging.getLogger(__name__)

ALWAYS_SKIP_DIRS = {".git"}
_LINE_COUNT_CHUNK = 8192


@dataclass
class WalkOptions:
    max_depth: Optional[int] = None
    include_hidden: bool = False
    respect_gitignore: bool = True
    follow_symlinks: bool = False
    custom_ignores: List[Path] = field(default_factory=list)


@dataclass
class WalkEntry:
    path: Path
    depth: int
    is_file: bool
    size: Optional[int] = None


# ===================================================================
# Ignore rules
# ===================================================================

def read_ignore_file(path: Path) -> List[str]:
    try:
        return path.read_text(encoding="utf-8", errors="ignore").splitlines()
    except OSError:
        return []


class IgnoreRules:
    """Gitignore-style rules, each scoped to the directory that declared it."""

    def __init__(self, root: Path, options: WalkOptions) -> None:
        self.root = root
        self.options = options
        self._specs: Dict[str, pathspec.GitIgnoreSpec] = {}

        root_lines: List[str] = []
        if options.respect_gitignore:
            root_lines.extend(read_ignore_file(root / ".git" / "info" / "exclude"))
        root_lines.extend(read_ignore_file(root / config.IGNORE_FILE_NAME))
        for extra in options.custom_ignores:
            root_lines.extend(read_ignore_file(Path(extra)))
        if root_lines:
            self._specs["\0root"] = pathspec.GitIgnoreSpec.from_lines(root_lines)

    def load_directory(self, rel_dir: str, abs_dir: Path) -> None:
        """Pick up a ``.gitignore`` declared in *abs_dir*."""
        if not self.options.respect_gitignore:
            return
        gitignore = abs_dir / ".gitignore"
        if gitignore.is_file():
            lines = read_ignore_file(gitignore)
            if lines:
                self._specs[rel_dir] = pathspec.GitIgnoreSpec.from_lines(lines)

    def is_ignored(self, rel_path: str, is_dir: bool) -> bool:
        candidate = rel_path + "/" if is_dir else rel_path
        for base, spec in self._specs.items():
            if base == "\0root" or base == "":
                local = candidate
            elif candidate.startswith(base + "/"):
                local = candidate[len(base) + 1:]
            else:
                continue
            if spec.match_file(local):
                return True
        return False


# ===================================================================
# Walking
# ===================================================================

def _check_root(root: Path) -> None:
    if not root.exists():
        raise PathNotFoundError(root)
    if root.is_dir():
        try:
            with os.scandir(root):
                pass
        except PermissionError as exc:
            raise PermissionDeniedError(root) from exc
        except OSError as exc:
            raise WalkError(str(exc), root) from exc
    elif not os.access(root, os.R_OK):
        raise PermissionDeniedError(root)


def walk(root: Union[str, Path], options: Optional[WalkOptions] = None) -> Iterator[WalkEntry]:
    """Yield the entries below *root* in sorted, top-down order.

    *root* itself is not yielded unless it is a file.  Raises
    :class:`PathNotFoundError` or :class:`PermissionDeniedError` for a bad
    root; unreadable subdirectories are logged and skipped.
    """
    root = Path(root)
    options = options or WalkOptions()
    _check_root(root)

    if root.is_file():
        yield WalkEntry(root, 0, True, root.stat().st_size)
        return

    rules = IgnoreRules(root, options)

    def _on_error(exc: OSError) -> None:
        logger.warning("Skipping unreadable path %s: %s", exc.filename, exc)

    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error, followlinks=options.follow_symlinks):
        abs_dir = Path(dirpath)
        rel_dir = os.path.relpath(dirpath, root)
        rel_dir = "" if rel_dir == "." else rel_dir.replace(os.sep, "/")
        depth = 0 if not rel_dir else rel_dir.count("/") + 1
        rules.load_directory(rel_dir, abs_dir)

        kept_dirs: List[str] = []
        for name in sorted(dirnames, key=str.lower):
            if name in ALWAYS_SKIP_DIRS or (name.startswith(".") and not options.include_hidden):
                continue
            rel_path = f"{rel_dir}/{name}" if rel_dir else name
            if rules.is_ignored(rel_path, is_dir=True):
                continue
            if options.max_depth is not None and depth + 1 > options.max_depth:
                continue
            kept_dirs.append(name)
        dirnames[:] = kept_dirs

        for name in kept_dirs:
            yield WalkEntry(abs_dir / name, depth + 1, False, None)

        if options.max_depth is not None and depth + 1 > options.max_depth:
            continue
        for name in sorted(filenames, key=str.lower):
            if name.startswith(".") and not options.include_hidden:
                continue
            rel_path = f"{rel_dir}/{name}" if rel_dir else name
            if rules.is_ignored(rel_path, is_dir=False):
                continue
            file_path = abs_dir / name
            try:
                st = file_path.stat()
            except OSError as exc:
                logger.debug("Cannot stat %s: %s", file_path, exc)
                continue
            if not os.path.isfile(file_path):
                continue
            yield WalkEntry(file_path, depth + 1, True, st.st_size)


def count_lines(path: Path) -> Optional[int]:
    """Count lines by streaming the file; a trailing unterminated line counts."""
    try:
        count = 0
        last = b""
        with path.open("rb") as f:
            while True:
                chunk = f.read(_LINE_COUNT_CHUNK)
                if not chunk:
                    break
                count += chunk.count(b"\n")
                last = chunk[-1:]
        if last and last != b"\n":
            count += 1
        return count
    except OSError:
        return None


# ===================================================================
# Tree building
# ===================================================================

def _file_node(path: Path, size: int) -> FileNode:
    ext = path.suffix[1:].lower() if path.suffix else None
    return FileNode.file(path.name, path, ext, size, count_lines(path))


def build_tree(root: Union[str, Path], options: Optional[WalkOptions] = None) -> FileNode:
    """Build the sorted :class:`FileNode` tree for *root*."""
    root = Path(root)
    options = options or WalkOptions()
    _check_root(root)

    if root.is_file():
        return _file_node(root, root.stat().st_size)

    name = root.resolve().name or str(root)
    tree = FileNode.directory(name, root)
    nodes: Dict[Path, FileNode] = {root: tree}

    for entry in walk(root, options):
        if entry.is_file:
            node = _file_node(entry.path, entry.size or 0)
        else:
            node = FileNode.directory(entry.path.name, entry.path)
        parent = nodes.get(entry.path.parent)
        if parent is None:
            continue
        parent.add_child(node)
        if not entry.is_file:
            nodes[entry.path] = node

    tree.sort_children()
    return tree
