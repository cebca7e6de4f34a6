"""Declaration extractor for JavaScript and JSX sources.

JavaScript is read with the TypeScript grammar, which accepts it as a
subset; JSX goes through the TSX grammar.  Extraction is then identical to
TypeScript.
"""

from __future__ import annotations

from typing import Optional

from . import codemap_typescript
from .languages import Language
from .models import ExtractOptions, ExtractResult
from .parser import ParserPool


def extract(
    source: str,
    options: ExtractOptions,
    language: Language = Language.JAVASCRIPT,
    pool: Optional[ParserPool] = None,
) -> ExtractResult:
    typed = Language.TSX if language == Language.JSX else Language.TYPESCRIPT
    return codemap_typescript.extract(source, options, language=typed, pool=pool)
