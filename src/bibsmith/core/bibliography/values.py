"""Symbolic names and BibTeX value expressions.

A BibTeX value is a concatenation of literals and references to string
constants, for example ``"Proc. of " # acm``. `Value` keeps that token list
intact so it can be rendered back verbatim, expanded against a table of
constants, or collapsed once every reference is resolved.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
import re
from typing import Any

from bibsmith.core.config import QuoteStyle
from bibsmith.core.exceptions import CoercionError


_FORBIDDEN_SYMBOL_CHARS = re.compile(r'[\s{}(),="#%]')


class Symbol(str):
    """Text marking a symbolic token such as an element id or a constant name."""

    __slots__ = ()

    def __repr__(self) -> str:
        return f"Symbol({str.__repr__(self)})"


def coerce_symbol(value: object) -> Symbol:
    """Return ``value`` as a `Symbol`, raising `CoercionError` when impossible."""
    if not isinstance(value, str):
        raise CoercionError(
            f"keys must be convertible to a symbol; was: {type(value).__name__}."
        )
    candidate = value.strip()
    if not candidate:
        raise CoercionError("keys must not be empty.")
    if _FORBIDDEN_SYMBOL_CHARS.search(candidate):
        raise CoercionError(f"'{candidate}' is not a valid symbolic name.")
    if isinstance(value, Symbol) and candidate == value:
        return value
    return Symbol(candidate)


class Value:
    """Literal, string constant reference, or concatenation of both."""

    __slots__ = ("_tokens",)

    def __init__(self, *tokens: object) -> None:
        self._tokens: tuple[str, ...] = tuple(_normalise_tokens(tokens))

    @classmethod
    def coerce(cls, value: object) -> Value:
        """Wrap arbitrary input (text, numbers, token lists) into a `Value`."""
        if isinstance(value, Value):
            return value
        if value is None:
            return cls()
        if isinstance(value, (str, int)):
            return cls(value)
        if isinstance(value, Iterable):
            return cls(*value)
        return cls(str(value))

    @property
    def tokens(self) -> tuple[str, ...]:
        return self._tokens

    @property
    def symbols(self) -> tuple[Symbol, ...]:
        """Return the constant references in order of appearance."""
        return tuple(token for token in self._tokens if isinstance(token, Symbol))

    def render(self, quotes: QuoteStyle | None = None) -> str:
        """Return the value as text.

        Without a quote style the token texts are simply concatenated. With one,
        literals are wrapped in its delimiters and tokens are joined with BibTeX's
        ``#`` concatenation operator.
        """
        if quotes is None:
            return "".join(self._tokens)
        if not self._tokens:
            return quotes.wrap("")
        return " # ".join(
            token if isinstance(token, Symbol) else quotes.wrap(token) for token in self._tokens
        )

    def replace(self, *strings: Mapping[str, Any]) -> Value:
        """Return a copy where known constant references are substituted."""
        tokens: list[str] = []
        for token in self._tokens:
            if isinstance(token, Symbol):
                replacement = _lookup(token, strings)
                if replacement is not None:
                    tokens.extend(replacement.tokens)
                    continue
            tokens.append(token)
        return Value(*tokens)

    def join(self) -> Value:
        """Return a copy where adjacent literals are merged into one."""
        tokens: list[str] = []
        for token in self._tokens:
            if tokens and not isinstance(token, Symbol) and not isinstance(tokens[-1], Symbol):
                tokens[-1] = tokens[-1] + token
            else:
                tokens.append(token)
        return Value(*tokens)

    def _signature(self) -> tuple[tuple[bool, str], ...]:
        return tuple((isinstance(token, Symbol), str(token)) for token in self._tokens)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        return self._signature() == other._signature()

    def __hash__(self) -> int:
        return hash(self._signature())

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        return f"Value({', '.join(repr(token) for token in self._tokens)})"


def _normalise_tokens(tokens: Iterable[object]) -> Iterable[str]:
    for token in tokens:
        if token is None:
            continue
        if isinstance(token, Value):
            yield from token.tokens
        elif isinstance(token, str):
            yield token
        else:
            yield str(token)


def _lookup(name: Symbol, strings: Iterable[Mapping[str, Any]]) -> Value | None:
    for table in strings:
        if name not in table:
            continue
        found = table[name]
        if found is None:
            continue
        # String constants expose their expression through ``value``.
        return Value.coerce(getattr(found, "value", found))
    return None


__all__ = ["Symbol", "Value", "coerce_symbol"]
