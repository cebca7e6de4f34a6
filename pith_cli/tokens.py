"""Token counting backed by tiktoken.

``count`` never raises: when an encoder cannot be loaded the counter falls
back to a four-characters-per-token estimate.
"""

from __future__ import annotations

import enum
import logging
import threading
from typing import Any, Dict, Iterable, Optional

import tiktoken

logger = logging.getLogger(__name__)


class Encoding(str, enum.Enum):
    CL100K_BASE = "cl100k_base"
    O200K_BASE = "o200k_base"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: str) -> "Encoding":
        key = value.strip().lower()
        if key in ("cl100k", "cl100k_base"):
            return cls.CL100K_BASE
        if key in ("o200k", "o200k_base"):
            return cls.O200K_BASE
        raise ValueError(f"unknown encoding: {value} (expected cl100k or o200k)")


_ENCODER_CACHE: Dict[Encoding, Optional[Any]] = {}
_ENCODER_LOCK = threading.Lock()


def _get_encoder(encoding: Encoding) -> Optional[Any]:
    with _ENCODER_LOCK:
        if encoding not in _ENCODER_CACHE:
            try:
                _ENCODER_CACHE[encoding] = tiktoken.get_encoding(encoding.value)
            except Exception as exc:
                logger.warning(
                    "Could not load tiktoken encoding %s (%s); using approximate counts",
                    encoding.value, exc,
                )
                _ENCODER_CACHE[encoding] = None
        return _ENCODER_CACHE[encoding]


def approx_token_count(text: str) -> int:
    return (len(text) + 3) // 4


class TokenCounter:
    """Counts tokens for one encoding, reusing the cached encoder."""

    def __init__(self, encoding: Encoding = Encoding.CL100K_BASE) -> None:
        self.encoding = encoding
        self._encoder = _get_encoder(encoding)

    @property
    def is_exact(self) -> bool:
        return self._encoder is not None

    def count(self, text: str) -> int:
        if not text:
            return 0
        if self._encoder is None:
            return approx_token_count(text)
        return len(self._encoder.encode_ordinary(text))

    def count_many(self, texts: Iterable[str]) -> int:
        return sum(self.count(t) for t in texts)


def count_tokens(text: str, encoding: Encoding = Encoding.CL100K_BASE) -> int:
    return TokenCounter(encoding).count(text)
