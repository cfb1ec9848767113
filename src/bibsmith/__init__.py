"""Primary public API for bibsmith."""

from __future__ import annotations

from bibsmith.core.bibliography import (
    Bibliography,
    BibliographyIssue,
    Comment,
    Element,
    Entry,
    MetaContent,
    Preamble,
    StringConstant,
    Symbol,
    Value,
    parse_elements,
    parse_query,
)
from bibsmith.core.config import BRACES, DOUBLE_QUOTES, ParserOptions, QuoteStyle
from bibsmith.core.exceptions import (
    BibliographyError,
    CoercionError,
    ElementAttachedError,
    MalformedQueryError,
    NoSuchAttributeError,
)
from bibsmith.version import get_version


__version__ = get_version()

__all__ = [
    "BRACES",
    "DOUBLE_QUOTES",
    "Bibliography",
    "BibliographyError",
    "BibliographyIssue",
    "CoercionError",
    "Comment",
    "Element",
    "ElementAttachedError",
    "Entry",
    "MalformedQueryError",
    "MetaContent",
    "NoSuchAttributeError",
    "ParserOptions",
    "Preamble",
    "QuoteStyle",
    "StringConstant",
    "Symbol",
    "Value",
    "__version__",
    "parse_elements",
    "parse_query",
]
