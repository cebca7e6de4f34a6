"""Tree-sitter grammar loading and syntax-node helpers shared by the extractors.

Parsers are cached per worker thread: each thread builds at most one parser
per grammar, on first use, and keeps it for its lifetime.  A grammar that
fails to load is remembered as a :class:`ParserInitError` so later files in
the same worker fail fast instead of retrying the import.
"""

from __future__ import annotations

import importlib
import logging
import re
import threading
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

from tree_sitter import Language as TSLanguage, Parser as TSParser

from .errors import ParseError, ParserInitError
from .models import ExtractResult, Location

logger = logging.getLogger(__name__)


# ===================================================================
# Grammar registry
# ===================================================================

# grammar name -> (module providing the tree-sitter Language, factory attribute)
_GRAMMAR_MODULES: Dict[str, Tuple[str, str]] = {
    "rust": ("tree_sitter_rust", "language"),
    "go": ("tree_sitter_go", "language"),
    "python": ("tree_sitter_python", "language"),
    "typescript": ("tree_sitter_typescript", "language_typescript"),
    "tsx": ("tree_sitter_typescript", "language_tsx"),
}


def _load_parser(grammar: str) -> TSParser:
    spec = _GRAMMAR_MODULES.get(grammar)
    if spec is None:
        raise ParserInitError(grammar, KeyError(f"no grammar module mapped for '{grammar}'"))
    mod_name, factory = spec
    try:
        mod = importlib.import_module(mod_name)
        # tree-sitter >=0.22 per-language packages expose a function that
        # returns the Language capsule.
        ts_lang = TSLanguage(getattr(mod, factory)())
        return TSParser(ts_lang)
    except ImportError as exc:
        logger.warning(
            "Grammar package '%s' not installed for '%s'. Install with: pip install %s",
            mod_name, grammar, mod_name.replace("_", "-"),
        )
        raise ParserInitError(grammar, exc) from exc
    except Exception as exc:
        logger.warning("Could not load tree-sitter grammar for %s: %s", grammar, exc)
        raise ParserInitError(grammar, exc) from exc


class ParserPool:
    """Worker-scoped cache of tree-sitter parsers, one per grammar per thread."""

    def __init__(self) -> None:
        self._local = threading.local()

    def _cache(self) -> Dict[str, Union[TSParser, ParserInitError]]:
        cache = getattr(self._local, "parsers", None)
        if cache is None:
            cache = {}
            self._local.parsers = cache
        return cache

    def get(self, grammar: str) -> TSParser:
        """Return this thread's parser for *grammar*, building it on first use.

        Raises :class:`ParserInitError` if the grammar cannot be loaded.
        """
        cache = self._cache()
        cached = cache.get(grammar)
        if cached is None:
            try:
                cached = _load_parser(grammar)
                logger.debug(
                    "Loaded tree-sitter parser for %s in %s",
                    grammar, threading.current_thread().name,
                )
            except ParserInitError as exc:
                cached = exc
            cache[grammar] = cached
        if isinstance(cached, ParserInitError):
            raise cached
        return cached

    def parse(self, grammar: str, source: str) -> Any:
        """Parse *source* with the cached parser for *grammar*; returns the tree."""
        return self.get(grammar).parse(source.encode("utf-8"))


parser_pool = ParserPool()


# ===================================================================
# Node helpers
# ===================================================================

_WS_RE = re.compile(r"\s+")

# Node types after which an opening bracket attaches without a space.
_NAME_NODE_TYPES = {
    "identifier", "field_identifier", "type_identifier", "property_identifier",
    "private_property_identifier", "type_parameters", "type_parameter_list",
}


def node_text(node: Any) -> str:
    return node.text.decode("utf-8", errors="replace")


def collapse_whitespace(text: str) -> str:
    return _WS_RE.sub(" ", text).strip()


def location_of(node: Any) -> Location:
    return Location(node.start_point[0] + 1, node.end_point[0] + 1)


def find_child(node: Any, *types: str) -> Optional[Any]:
    """Return the first direct child whose type is one of *types*."""
    for child in node.children:
        if child.type in types:
            return child
    return None


def build_signature(
    node: Any,
    stop_types: Iterable[str] = (),
    skip_types: Iterable[str] = (),
) -> str:
    """Join the tokens of *node* up to its body into one normalised line.

    Children are concatenated in order until the ``body`` field or a child
    whose type is in *stop_types*; children in *skip_types* are left out.
    """
    stop = set(stop_types)
    skip = set(skip_types)
    body = node.child_by_field_name("body")
    body_id = body.id if body is not None else None

    parts: List[str] = []
    prev_type: Optional[str] = None
    for child in node.children:
        if child.id == body_id or child.type in stop:
            break
        if child.type in skip or child.type.endswith("comment"):
            continue
        text = collapse_whitespace(node_text(child))
        if not text:
            continue
        if parts and not _attaches_left(text, prev_type):
            parts.append(" ")
        parts.append(text)
        prev_type = child.type
    return collapse_whitespace("".join(parts))


def _attaches_left(text: str, prev_type: Optional[str]) -> bool:
    if text[0] in ",);:?":
        return True
    if text == "*" and prev_type == "function":
        return True
    return text[0] in "(<[" and prev_type in _NAME_NODE_TYPES


def has_async_token(signature: str) -> bool:
    """True when ``async`` appears as a standalone word in *signature*."""
    return re.search(r"(?<![\w$])async(?![\w$])", signature) is not None


def first_error_line(root: Any) -> Optional[int]:
    """Return the 1-indexed line of the first ERROR or MISSING node, if any."""
    if not root.has_error:
        return None
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            return node.start_point[0] + 1
        # Depth-first, left to right.
        stack.extend(reversed([c for c in node.children if c.has_error or c.is_missing]))
    return root.start_point[0] + 1


def preceding_comments(
    node: Any,
    is_comment: Callable[[Any], bool],
    is_doc: Callable[[str], bool],
    skip_types: Iterable[str] = (),
) -> List[str]:
    """Collect the doc comments directly above *node*, in source order.

    Scanning walks backwards over siblings and stops at the first
    non-comment, at a comment that is not a doc comment, or at a blank line
    between the comment and what follows it.  Siblings in *skip_types*
    (attributes, decorators) are stepped over.
    """
    skip = set(skip_types)
    found: List[str] = []
    next_start = node.start_point[0]
    sibling = node.prev_sibling
    while sibling is not None:
        if sibling.type in skip:
            next_start = sibling.start_point[0]
            sibling = sibling.prev_sibling
            continue
        if not is_comment(sibling):
            break
        # Line comments in some grammars include the trailing newline.
        end_row = sibling.end_point[0]
        if sibling.end_point[1] == 0 and end_row > sibling.start_point[0]:
            end_row -= 1
        if end_row < next_start - 1:
            break
        text = node_text(sibling).rstrip("\r\n")
        if not is_doc(text):
            break
        found.append(text)
        next_start = sibling.start_point[0]
        sibling = sibling.prev_sibling
    found.reverse()
    return found


def strip_block_comment(text: str, opener: str = "/**") -> str:
    """Trim block-comment delimiters and leading ``*`` gutters."""
    inner = text
    if inner.startswith(opener):
        inner = inner[len(opener):]
    if inner.endswith("*/"):
        inner = inner[:-2]
    lines = [line.strip().lstrip("*").strip() for line in inner.splitlines()]
    return "\n".join(line for line in lines if line)


def split_top_level(text: str, sep: str = ",") -> List[str]:
    """Split *text* on *sep* ignoring separators nested in brackets."""
    parts: List[str] = []
    depth = 0
    current: List[str] = []
    for ch in text:
        if ch in "([{<":
            depth += 1
        elif ch in ")]}>":
            depth = max(depth - 1, 0)
        if ch == sep and depth == 0:
            parts.append("".join(current).strip())
            current = []
            continue
        current.append(ch)
    tail = "".join(current).strip()
    if tail:
        parts.append(tail)
    return [p for p in parts if p]


def check_syntax(tree: Any, result: ExtractResult) -> ExtractResult:
    """Return *result*, or raise :class:`ParseError` carrying it if *tree* has errors."""
    line = first_error_line(tree.root_node)
    if line is not None:
        raise ParseError(f"syntax error at line {line}", result)
    return result
