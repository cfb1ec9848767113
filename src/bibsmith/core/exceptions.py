"""Custom exception hierarchy for the BibTeX element model."""

from __future__ import annotations


class BibliographyError(Exception):
    """Base exception for element model failures."""


class CoercionError(BibliographyError, TypeError):
    """Raised when a value cannot be turned into a symbolic name."""


class NoSuchAttributeError(BibliographyError, AttributeError):
    """Raised when a query condition references an unknown property."""

    def __init__(self, name: str, element: object | None = None) -> None:
        self.name = name
        self.element = element
        owner = type(element).__name__ if element is not None else "element"
        super().__init__(f"{owner} has no queryable property '{name}'.")


class MalformedQueryError(BibliographyError, ValueError):
    """Raised when a query string cannot be interpreted."""


class ElementAttachedError(BibliographyError):
    """Raised when an element is added to a second bibliography."""


def exception_messages(exc: BaseException) -> list[str]:
    """Return the collected message chain for an exception and its causes."""
    messages: list[str] = []
    visited: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in visited:
        visited.add(id(current))
        text = str(current).strip()
        if text:
            first_line = text.splitlines()[0].strip()
            if first_line:
                messages.append(first_line)
        current = current.__cause__ or current.__context__
    return messages


def exception_hint(exc: BaseException) -> str | None:
    """Return the most specific message available for an exception chain."""
    messages = exception_messages(exc)
    return messages[-1] if messages else None


__all__ = [
    "BibliographyError",
    "CoercionError",
    "ElementAttachedError",
    "MalformedQueryError",
    "NoSuchAttributeError",
    "exception_hint",
    "exception_messages",
]
