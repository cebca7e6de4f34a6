"""Configuration paths and defaults for pith."""

from __future__ import annotations

from .config_manager import BASE_DIR, load_defaults  # noqa: F401

IGNORE_FILE_NAME = ".pithignore"
PREFIX_BYTES = 1024
MAX_FIXED_POINT_ITERATIONS = 10

_defaults = load_defaults()

# Defaults set in ~/.pith/config.toml under [defaults]
DEFAULT_ENCODING = _defaults.encoding
INCLUDE_DOCS = _defaults.include_docs
INCLUDE_PRIVATE = _defaults.include_private
INCLUDE_HIDDEN = _defaults.include_hidden
MAX_WORKERS = _defaults.max_workers
# Files larger than this many bytes are memory-mapped instead of read.
MMAP_THRESHOLD = _defaults.mmap_threshold
