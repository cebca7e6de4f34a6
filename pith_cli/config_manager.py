"""Configuration manager for pith using TOML files."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import toml
from pydantic import BaseModel, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

BASE_DIR = Path(os.environ.get("PITH_HOME", str(Path.home() / ".pith"))).expanduser()
CONFIG_FILE = BASE_DIR / "config.toml"

VALID_ENCODINGS = ("cl100k", "cl100k_base", "o200k", "o200k_base")


class PithDefaults(BaseModel):
    """Values from the ``[defaults]`` table of ``config.toml``."""

    encoding: str = "cl100k_base"
    include_docs: bool = False
    include_private: bool = False
    include_hidden: bool = False
    max_workers: Optional[int] = Field(default=None, ge=1)
    mmap_threshold: int = Field(default=5_000_000, ge=1)

    @field_validator("encoding")
    @classmethod
    def _check_encoding(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in VALID_ENCODINGS:
            raise ValueError(f"unknown encoding '{value}'")
        return value


DEFAULT_CONFIG: Dict[str, Any] = {"defaults": PithDefaults().model_dump(exclude_none=True)}


def load_config(config_file: Optional[Path] = None) -> Dict[str, Any]:
    """Load the raw configuration dictionary.

    Returns an empty dict if the file does not exist or cannot be parsed.
    """
    path = config_file or CONFIG_FILE
    if not path.exists():
        return {}
    try:
        with open(path, "r") as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.warning("Could not read %s: %s", path, exc)
        return {}


def load_defaults(config_file: Optional[Path] = None) -> PithDefaults:
    """Load and validate the ``[defaults]`` table.

    Falls back to built-in defaults when the table is missing or invalid.
    """
    raw = load_config(config_file).get("defaults", {})
    try:
        return PithDefaults(**raw)
    except (ValidationError, TypeError) as exc:
        logger.warning("Ignoring invalid [defaults] in %s: %s", config_file or CONFIG_FILE, exc)
        return PithDefaults()


def save_config(config: Dict[str, Any], config_file: Optional[Path] = None) -> bool:
    """Write *config* to the TOML file, creating the directory if needed."""
    path = config_file or CONFIG_FILE
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            toml.dump(config, f)
        return True
    except OSError as exc:
        logger.warning("Could not write %s: %s", path, exc)
        return False
