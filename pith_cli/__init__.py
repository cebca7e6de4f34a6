"""Pith: condense a source tree into token-budgeted LLM context."""

__version__ = "0.3.0"
