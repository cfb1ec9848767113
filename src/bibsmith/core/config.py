"""Configuration models used by the element model and the parser.

QuoteStyle

`open` (`str`)
: Delimiter written before every literal when a value is rendered. BibTeX
  accepts either a double quote or an opening brace.

`close` (`str`)
: Delimiter written after every literal.

ParserOptions

`include_comments` (`bool`)
: Keep `@comment` blocks as `Comment` elements. When `False` they are dropped
  like BibTeX itself does.

`include_meta_content` (`bool`)
: Surface text found outside any `@` block as `MetaContent` elements so it can
  be post-processed. Off by default because such text is commentary.

`include_preambles` (`bool`)
: Keep `@preamble` blocks as `Preamble` elements.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class QuoteStyle(BaseModel):
    """Pair of delimiters wrapped around literals when rendering values."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    open: str = Field(default='"', description="Opening delimiter")
    close: str = Field(default='"', description="Closing delimiter")

    def wrap(self, text: str) -> str:
        """Return ``text`` surrounded by the delimiters."""
        return f"{self.open}{text}{self.close}"


DOUBLE_QUOTES = QuoteStyle(open='"', close='"')
BRACES = QuoteStyle(open="{", close="}")


class ParserOptions(BaseModel):
    """Selection of the optional block kinds the parser should keep."""

    model_config = ConfigDict(extra="forbid")

    include_comments: bool = True
    include_meta_content: bool = False
    include_preambles: bool = True


__all__ = ["BRACES", "DOUBLE_QUOTES", "ParserOptions", "QuoteStyle"]
