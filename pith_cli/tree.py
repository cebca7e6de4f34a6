"""File tree model and box-drawing rendering."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Set

from .languages import language_for_extension

BRANCH = "├── "
LAST_BRANCH = "└── "
VERTICAL = "│   "
SPACE = "    "


@dataclass
class FileNode:
    """A directory or a file in the rendered tree."""
    name: str
    path: Path
    is_dir: bool = True
    extension: Optional[str] = None
    size: Optional[int] = None
    lines: Optional[int] = None
    children: List["FileNode"] = field(default_factory=list)

    @classmethod
    def directory(cls, name: str, path: Path) -> "FileNode":
        return cls(name=name, path=Path(path), is_dir=True)

    @classmethod
    def file(
        cls,
        name: str,
        path: Path,
        extension: Optional[str],
        size: int,
        lines: Optional[int],
    ) -> "FileNode":
        return cls(
            name=name, path=Path(path), is_dir=False,
            extension=extension, size=size, lines=lines,
        )

    @property
    def is_file(self) -> bool:
        return not self.is_dir

    @property
    def language(self) -> Optional[str]:
        lang = language_for_extension(self.extension) if self.is_file else None
        return str(lang) if lang is not None else None

    def add_child(self, child: "FileNode") -> None:
        self.children.append(child)

    def sort_children(self) -> None:
        """Directories first, then case-insensitive name; applied recursively."""
        self.children.sort(key=lambda c: (not c.is_dir, c.name.lower()))
        for child in self.children:
            child.sort_children()

    def file_count(self) -> int:
        if self.is_file:
            return 1
        return sum(c.file_count() for c in self.children)

    def directory_count(self) -> int:
        if self.is_file:
            return 0
        return 1 + sum(c.directory_count() for c in self.children)


@dataclass
class RenderOptions:
    show_size: bool = False
    show_lines: bool = False
    show_language: bool = False
    selected: Set[Path] = field(default_factory=set)
    has_codemap: Set[Path] = field(default_factory=set)

    @classmethod
    def with_metadata(
        cls,
        selected: Iterable[Path] = (),
        has_codemap: Iterable[Path] = (),
    ) -> "RenderOptions":
        return cls(
            show_size=True, show_lines=True, show_language=True,
            selected=set(selected), has_codemap=set(has_codemap),
        )


# ===================================================================
# Rendering
# ===================================================================

def render_tree(root: FileNode, options: Optional[RenderOptions] = None) -> str:
    options = options or RenderOptions()
    out: List[str] = []
    _render_node(out, root, "", True, True, options)
    return "".join(out)


def _render_node(
    out: List[str],
    node: FileNode,
    prefix: str,
    is_last: bool,
    is_root: bool,
    options: RenderOptions,
) -> None:
    branch = "" if is_root else (LAST_BRANCH if is_last else BRANCH)
    out.append(prefix + branch + node.name)
    if node.is_dir:
        out.append("/")
    else:
        metadata: List[str] = []
        if options.show_language and node.language:
            metadata.append(node.language)
        if options.show_lines and node.lines is not None:
            metadata.append(f"{node.lines} lines")
        if options.show_size and node.size is not None:
            metadata.append(format_size(node.size))
        if metadata:
            out.append(f" [{', '.join(metadata)}]")

    selected = node.path in options.selected
    mapped = node.path in options.has_codemap
    if selected or mapped:
        out.append(" " + ("*" if selected else "") + ("+" if mapped else ""))
    out.append("\n")

    if is_root:
        child_prefix = ""
    else:
        child_prefix = prefix + (SPACE if is_last else VERTICAL)
    last = len(node.children) - 1
    for i, child in enumerate(node.children):
        _render_node(out, child, child_prefix, i == last, False, options)


def format_size(size: int) -> str:
    kb = 1024
    mb = kb * 1024
    if size < kb:
        return f"{size}B"
    if size < mb:
        return f"{size / kb:.1f}KB"
    return f"{size / mb:.1f}MB"


def format_number(n: int) -> str:
    return f"{n:,}"
