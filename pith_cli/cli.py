"""Typer-based CLI for pith: token-budgeted codebase context for LLMs."""

from __future__ import annotations

import fnmatch
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from . import __version__, config, config_manager
from .builder import Pith, read_source
from .errors import NoFilesFoundError, PithError, exit_code
from .languages import Language
from .models import SelectedFile
from .output import OutputFormat, OutputOptions, format_output
from .render import tree_record
from .tokens import Encoding, TokenCounter
from .tree import RenderOptions, render_tree
from .walker import WalkOptions, build_tree, walk

app = typer.Typer(
    help="pith: extract codemaps and token-exact context documents for LLMs.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

logger = logging.getLogger(__name__)


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"pith v{__version__}")
        raise typer.Exit()


def _setup_logging(verbose: bool) -> None:
    handler = RichHandler(console=Console(stderr=True), show_path=False)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[handler],
        force=True,
    )


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Log progress to stderr."),
):
    """pith: codebase context generator with exact token accounting."""
    _setup_logging(verbose)


# ===================================================================
# Helpers
# ===================================================================

def _fail(error: PithError, as_json: bool) -> None:
    if as_json:
        typer.echo(json.dumps({"error": str(error)}), err=True)
    else:
        typer.echo(f"error: {error}", err=True)
    raise typer.Exit(code=exit_code(error))


def _parse_encoding(value: str) -> Encoding:
    try:
        return Encoding.parse(value)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--encoding")


def _parse_languages(value: Optional[str]) -> Optional[List[Language]]:
    if not value:
        return None
    try:
        return [Language.parse(part) for part in value.split(",") if part.strip()]
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--lang")


def _relative(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()


def _builder(
    path: Path,
    include_docs: bool,
    include_private: bool,
    include_hidden: bool,
    lang: Optional[str],
) -> Pith:
    builder = (
        Pith(path)
        .include_docs(include_docs)
        .include_private(include_private)
        .include_hidden(include_hidden)
    )
    languages = _parse_languages(lang)
    if languages:
        builder.languages(languages)
    if config.MAX_WORKERS:
        builder.max_workers(config.MAX_WORKERS)
    return builder


def _select_files(
    root: Path,
    patterns: List[str],
    counter: TokenCounter,
    include_hidden: bool,
) -> List[SelectedFile]:
    """Read every file whose path relative to *root* matches one of *patterns*."""
    selected: List[SelectedFile] = []
    if not patterns:
        return selected
    for entry in walk(root, WalkOptions(include_hidden=include_hidden)):
        if not entry.is_file:
            continue
        rel = _relative(entry.path, root)
        if not any(fnmatch.fnmatch(rel, pattern) for pattern in patterns):
            continue
        content = read_source(entry.path, entry.size)
        if content is None:
            continue
        selected.append(SelectedFile(
            path=entry.path,
            content=content,
            lines=len(content.splitlines()),
            tokens=counter.count(content),
        ))
    return selected


# ===================================================================
# Commands
# ===================================================================

@app.command("tree")
def tree_command(
    path: Path = typer.Argument(Path("."), help="Directory to display."),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON."),
    no_metadata: bool = typer.Option(False, "--no-metadata", help="Hide language, line count and size."),
    include_hidden: bool = typer.Option(config.INCLUDE_HIDDEN, "--include-hidden", help="Include dotfiles."),
    max_depth: Optional[int] = typer.Option(None, "--max-depth", min=1, help="Limit traversal depth."),
):
    """Show the file tree of PATH."""
    try:
        tree = build_tree(path, WalkOptions(max_depth=max_depth, include_hidden=include_hidden))
    except PithError as exc:
        _fail(exc, as_json)

    if as_json:
        typer.echo(json.dumps(tree_record(tree, with_language=False), indent=2, ensure_ascii=False))
        return
    options = RenderOptions() if no_metadata else RenderOptions.with_metadata()
    typer.echo(render_tree(tree, options), nl=False)


@app.command("codemap")
def codemap_command(
    path: Path = typer.Argument(Path("."), help="Directory or file to extract."),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON."),
    include_docs: bool = typer.Option(config.INCLUDE_DOCS, "--include-docs", help="Attach doc comments."),
    include_private: bool = typer.Option(config.INCLUDE_PRIVATE, "--include-private", help="Keep non-public declarations."),
    include_hidden: bool = typer.Option(config.INCLUDE_HIDDEN, "--include-hidden", help="Include dotfiles."),
    encoding: str = typer.Option(config.DEFAULT_ENCODING, "--encoding", help="Token encoding: cl100k or o200k."),
    lang: Optional[str] = typer.Option(None, "--lang", help="Comma-separated languages, e.g. rust,go."),
):
    """Extract codemaps (signatures, types, imports) with a token summary."""
    enc = _parse_encoding(encoding)
    try:
        codemaps = _builder(path, include_docs, include_private, include_hidden, lang).extract()
        if not codemaps:
            raise NoFilesFoundError(path)
    except PithError as exc:
        _fail(exc, as_json)

    fmt = OutputFormat.JSON if as_json else OutputFormat.XML
    options = OutputOptions.codemap_only(fmt)
    options.public_only = not include_private
    typer.echo(format_output(None, codemaps, [], options, enc), nl=False)


@app.command("context")
def context_command(
    path: Path = typer.Argument(Path("."), help="Directory to assemble context for."),
    select: Optional[List[str]] = typer.Option(None, "--select", "-s", help="Glob of files to include in full (repeatable)."),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON."),
    include_docs: bool = typer.Option(config.INCLUDE_DOCS, "--include-docs", help="Attach doc comments."),
    include_private: bool = typer.Option(config.INCLUDE_PRIVATE, "--include-private", help="Keep non-public declarations."),
    include_hidden: bool = typer.Option(config.INCLUDE_HIDDEN, "--include-hidden", help="Include dotfiles."),
    encoding: str = typer.Option(config.DEFAULT_ENCODING, "--encoding", help="Token encoding: cl100k or o200k."),
    lang: Optional[str] = typer.Option(None, "--lang", help="Comma-separated languages, e.g. rust,go."),
):
    """Assemble tree, codemaps and selected files into one document."""
    enc = _parse_encoding(encoding)
    counter = TokenCounter(enc)
    try:
        builder = _builder(path, include_docs, include_private, include_hidden, lang)
        result = builder.build()
        if not result.codemaps:
            raise NoFilesFoundError(path)
        selected = _select_files(path, select or [], counter, include_hidden)
    except PithError as exc:
        _fail(exc, as_json)

    fmt = OutputFormat.JSON if as_json else OutputFormat.XML
    options = OutputOptions.full_context(fmt)
    options.public_only = not include_private
    options.include_selected_files = bool(selected)
    typer.echo(format_output(result.tree, result.codemaps, selected, options, enc), nl=False)


@app.command("tokens")
def tokens_command(
    path: Path = typer.Argument(Path("."), help="Directory or file to count."),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON."),
    encoding: str = typer.Option(config.DEFAULT_ENCODING, "--encoding", help="Token encoding: cl100k or o200k."),
    per_file: bool = typer.Option(False, "--per-file", help="List the count for every file."),
    include_hidden: bool = typer.Option(config.INCLUDE_HIDDEN, "--include-hidden", help="Include dotfiles."),
):
    """Count tokens across every readable text file under PATH."""
    enc = _parse_encoding(encoding)
    counter = TokenCounter(enc)
    files: Dict[str, int] = {}
    try:
        for entry in walk(path, WalkOptions(include_hidden=include_hidden)):
            if not entry.is_file:
                continue
            content = read_source(entry.path, entry.size)
            if content is None:
                continue
            files[_relative(entry.path, path)] = counter.count(content)
    except PithError as exc:
        _fail(exc, as_json)

    total = sum(files.values())
    if as_json:
        payload: Dict[str, Any] = {"total": total, "encoding": str(enc)}
        if per_file:
            payload["files"] = files
        typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))
        return
    if per_file:
        for rel, n in files.items():
            typer.echo(f"{rel}: {n} tokens")
    typer.echo(f"Total: {total} tokens")


@app.command("languages")
def languages_command(
    as_json: bool = typer.Option(False, "--json", help="Emit JSON."),
):
    """List supported languages and their file extensions."""
    if as_json:
        payload = {
            "languages": [
                {"name": str(lang), "extensions": [f".{ext}" for ext in lang.extensions]}
                for lang in Language.all()
            ]
        }
        typer.echo(json.dumps(payload, indent=2))
        return
    typer.echo("Supported languages:")
    for lang in Language.all():
        exts = ", ".join(f".{ext}" for ext in lang.extensions)
        typer.echo(f"  {str(lang):12} {exts}")


@app.command("config")
def config_command(
    init: bool = typer.Option(False, "--init", help="Write a default config file if none exists."),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON."),
):
    """Show the resolved defaults and where they are read from."""
    config_file = config_manager.CONFIG_FILE
    if init:
        if config_file.exists():
            typer.echo(f"Config already exists at {config_file}")
        elif config_manager.save_config(config_manager.DEFAULT_CONFIG, config_file):
            typer.echo(typer.style(f"Wrote {config_file}", fg=typer.colors.GREEN))
        else:
            typer.echo(f"error: could not write {config_file}", err=True)
            raise typer.Exit(code=1)
        return

    defaults = config_manager.load_defaults(config_file)
    if as_json:
        payload = {"config_file": str(config_file), "defaults": defaults.model_dump()}
        typer.echo(json.dumps(payload, indent=2))
        return
    typer.echo(f"Config file: {config_file}" + ("" if config_file.exists() else " (not found)"))
    for key, value in defaults.model_dump().items():
        typer.echo(f"  {key:16} {value}")


if __name__ == "__main__":
    app()
