"""Document assembly with a self-consistent token summary.

The summary states the token count of the whole document, itself included.
Since the summary's own size depends on that number, the total is found by
fixed-point iteration: render the summary with a trial total, re-count the
full document, and repeat until the two agree.  After
``config.MAX_FIXED_POINT_ITERATIONS`` rounds the last candidate is returned
as is.
"""

from __future__ import annotations

import enum
import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

from . import config
from .models import Codemap, FileTokenInfo, SelectedFile, TokenSummary
from .render import codemap_record, render_codemap, render_selected_file, tree_record
from .tokens import Encoding, TokenCounter
from .tree import FileNode, RenderOptions, format_number, render_tree

logger = logging.getLogger(__name__)

CODEMAP_SEPARATOR = "\n---\n\n"
LEGEND = "\nLegend: * = selected, + = has codemap\n"


class OutputFormat(str, enum.Enum):
    XML = "xml"
    JSON = "json"

    def __str__(self) -> str:
        return self.value


@dataclass
class OutputOptions:
    format: OutputFormat = OutputFormat.XML
    include_tree: bool = True
    include_codemaps: bool = True
    include_selected_files: bool = True
    include_summary: bool = True
    public_only: bool = True

    @classmethod
    def full_context(cls, format: OutputFormat = OutputFormat.XML) -> "OutputOptions":
        return cls(format=format)

    @classmethod
    def tree_only(cls, format: OutputFormat = OutputFormat.XML) -> "OutputOptions":
        return cls(
            format=format, include_codemaps=False,
            include_selected_files=False, include_summary=False,
        )

    @classmethod
    def codemap_only(cls, format: OutputFormat = OutputFormat.XML) -> "OutputOptions":
        return cls(format=format, include_tree=False, include_selected_files=False)


def format_output(
    tree: Optional[FileNode],
    codemaps: Sequence[Codemap],
    selected_files: Sequence[SelectedFile],
    options: Optional[OutputOptions] = None,
    encoding: Encoding = Encoding.CL100K_BASE,
) -> str:
    """Assemble the final document in the requested format."""
    options = options or OutputOptions()
    counter = TokenCounter(encoding)
    if options.format == OutputFormat.JSON:
        return format_json(tree, codemaps, selected_files, options, counter)
    return format_xml(tree, codemaps, selected_files, options, counter)


def solve_fixed_point(render: Callable[[int], str], count: Callable[[str], int]) -> str:
    """Return ``render(total)`` for a total that equals ``count`` of the result.

    Stops silently after the configured number of rounds, returning the last
    candidate.
    """
    trial = 0
    candidate = ""
    for _ in range(config.MAX_FIXED_POINT_ITERATIONS):
        candidate = render(trial)
        actual = count(candidate)
        if actual == trial:
            return candidate
        trial = actual
    logger.debug("Token total did not converge; emitting last candidate (%d)", trial)
    return candidate


# ===================================================================
# Per-file accounting
# ===================================================================

def _file_breakdown(
    codemap_blocks: Dict[str, str],
    selected_blocks: Dict[str, str],
    counter: TokenCounter,
) -> Dict[str, FileTokenInfo]:
    """Token count of the exact block(s) emitted for each file."""
    breakdown: Dict[str, FileTokenInfo] = {}
    for path in sorted(set(codemap_blocks) | set(selected_blocks)):
        mapped = path in codemap_blocks
        selected = path in selected_blocks
        block = codemap_blocks.get(path, "") + selected_blocks.get(path, "")
        breakdown[path] = FileTokenInfo(
            tokens=counter.count(block), selected=selected, has_codemap=mapped,
        )
    return breakdown


# ===================================================================
# Structured document
# ===================================================================

def format_summary_xml(summary: TokenSummary) -> str:
    out: List[str] = ["<token_summary>\n", f"Total: {format_number(summary.total)} tokens\n"]

    components = [
        ("File tree", summary.tree_tokens),
        ("Codemaps", summary.codemap_tokens),
        ("Selected files", summary.selected_tokens),
    ]
    if any(n > 0 for _, n in components):
        out.append("\nComponent breakdown:\n")
        for label, n in components:
            if n > 0:
                out.append(f"- {label}: {format_number(n)} tokens\n")

    if summary.file_breakdown:
        out.append("\nPer-file breakdown:\n")
        for path in sorted(summary.file_breakdown):
            info = summary.file_breakdown[path]
            if info.selected and info.has_codemap:
                marker = " (selected, codemap)"
            elif info.selected:
                marker = " (selected)"
            elif info.has_codemap:
                marker = " (codemap only)"
            else:
                marker = ""
            out.append(f"- {path}: {format_number(info.tokens)} tokens{marker}\n")

    out.append("</token_summary>\n")
    return "".join(out)


def format_xml(
    tree: Optional[FileNode],
    codemaps: Sequence[Codemap],
    selected_files: Sequence[SelectedFile],
    options: OutputOptions,
    counter: TokenCounter,
) -> str:
    codemaps = list(codemaps) if options.include_codemaps else []
    selected_files = list(selected_files) if options.include_selected_files else []

    tree_section = ""
    if options.include_tree and tree is not None:
        render_options = RenderOptions.with_metadata(
            selected=[f.path for f in selected_files],
            has_codemap=[c.path for c in codemaps],
        )
        tree_section = "<file_map>\n" + render_tree(tree, render_options)
        if selected_files or codemaps:
            tree_section += LEGEND
        tree_section += "</file_map>\n\n"

    codemap_blocks: Dict[str, str] = {
        c.path.as_posix(): render_codemap(c, options.public_only) for c in codemaps
    }
    codemap_section = ""
    if codemaps:
        codemap_section = (
            "<codemaps>\n"
            + CODEMAP_SEPARATOR.join(codemap_blocks[c.path.as_posix()] for c in codemaps)
            + "</codemaps>\n\n"
        )

    selected_blocks: Dict[str, str] = {
        f.path.as_posix(): render_selected_file(f.path.as_posix(), f.content, f.lines, f.tokens)
        for f in selected_files
    }
    selected_section = ""
    if selected_files:
        selected_section = (
            "<selected_files>\n"
            + "".join(selected_blocks[f.path.as_posix()] for f in selected_files)
            + "</selected_files>\n\n"
        )

    body = tree_section + codemap_section + selected_section
    if not options.include_summary:
        return body

    tree_tokens = counter.count(tree_section)
    codemap_tokens = counter.count(codemap_section)
    selected_tokens = counter.count(selected_section)
    breakdown = _file_breakdown(codemap_blocks, selected_blocks, counter)

    def render(total: int) -> str:
        summary = TokenSummary(
            total=total,
            tree_tokens=tree_tokens,
            codemap_tokens=codemap_tokens,
            selected_tokens=selected_tokens,
            file_breakdown=breakdown,
        )
        return body + format_summary_xml(summary)

    return solve_fixed_point(render, counter.count)


# ===================================================================
# Record form
# ===================================================================

def dump_json(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False)


def selected_file_record(f: SelectedFile) -> Dict[str, Any]:
    return {"path": f.path.as_posix(), "content": f.content, "lines": f.lines, "tokens": f.tokens}


def summary_record(summary: TokenSummary) -> Dict[str, Any]:
    return {
        "total_tokens": summary.total,
        "tree_tokens": summary.tree_tokens,
        "codemap_tokens": summary.codemap_tokens,
        "selected_tokens": summary.selected_tokens,
        "file_breakdown": {
            path: {"tokens": info.tokens, "selected": info.selected, "has_codemap": info.has_codemap}
            for path, info in sorted(summary.file_breakdown.items())
        },
    }


def format_json(
    tree: Optional[FileNode],
    codemaps: Sequence[Codemap],
    selected_files: Sequence[SelectedFile],
    options: OutputOptions,
    counter: TokenCounter,
) -> str:
    codemaps = list(codemaps) if options.include_codemaps else []
    selected_files = list(selected_files) if options.include_selected_files else []

    document: Dict[str, Any] = {}
    if options.include_tree and tree is not None:
        document["tree"] = tree_record(
            tree,
            selected={f.path for f in selected_files},
            has_codemap={c.path for c in codemaps},
        )

    codemap_records = {c.path.as_posix(): codemap_record(c, options.public_only) for c in codemaps}
    if codemaps:
        document["codemaps"] = [codemap_records[c.path.as_posix()] for c in codemaps]

    selected_records = {f.path.as_posix(): selected_file_record(f) for f in selected_files}
    if selected_files:
        document["selected_files"] = [selected_records[f.path.as_posix()] for f in selected_files]

    if not options.include_summary:
        return dump_json(document) + "\n"

    tree_tokens = counter.count(dump_json(document["tree"])) if "tree" in document else 0
    codemap_tokens = counter.count(dump_json(document["codemaps"])) if "codemaps" in document else 0
    selected_tokens = (
        counter.count(dump_json(document["selected_files"])) if "selected_files" in document else 0
    )
    breakdown = _file_breakdown(
        {path: dump_json(r) for path, r in codemap_records.items()},
        {path: dump_json(r) for path, r in selected_records.items()},
        counter,
    )

    def render(total: int) -> str:
        summary = TokenSummary(
            total=total,
            tree_tokens=tree_tokens,
            codemap_tokens=codemap_tokens,
            selected_tokens=selected_tokens,
            file_breakdown=breakdown,
        )
        return dump_json({**document, "summary": summary_record(summary)}) + "\n"

    return solve_fixed_point(render, counter.count)
