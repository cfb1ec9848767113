"""Selection language used to filter bibliography elements.

A query is parsed once into one of the kinds below and then matched against
elements. Parsing follows a fixed priority:

1. ``None`` or an empty value selects everything (`MatchAll`).
2. An element selects elements comparing equal to it (`ByElement`).
3. A `Symbol` selects the element with that id (`ById`).
4. A compiled pattern, or text shaped like ``/pattern/``, is searched in the
   element text (`ByPattern`).
5. Text with ``@type[cond, ...]`` clauses selects elements of one of the
   types whose conditions all hold (`ByTypeClauses`).
6. Anything else is compared with the element id (`ByRawId`).

Conditions have the form ``property = value``. The property is resolved with
`Element.get_field`; an unknown property raises `NoSuchAttributeError`.

```pycon
>>> from bibsmith.core.bibliography import Entry
>>> entry = Entry("article", "knuth1984", {"year": "1984"})
>>> entry.matches("@article[year=1984]")
True
>>> entry.matches("@book @article[year=2020]")
False
```
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sized
from dataclasses import dataclass
import re
from typing import TYPE_CHECKING, Union

from bibsmith.core.exceptions import MalformedQueryError, NoSuchAttributeError

from .values import Symbol


if TYPE_CHECKING:
    from .elements import Element


_PATTERN_LITERAL_RE = re.compile(r"^/(.+)/$", re.DOTALL)
_TYPE_CLAUSE_RE = re.compile(r"@(\w+)(?:\[([^\]]*)\])?")
_UNCLOSED_CLAUSE_RE = re.compile(r"@\w+\[[^\]]*$")
_CONDITION_SEPARATOR_RE = re.compile(r",\s*")


@dataclass(frozen=True, slots=True)
class MatchAll:
    """Selects every element."""


@dataclass(frozen=True, slots=True)
class ByElement:
    element: Element


@dataclass(frozen=True, slots=True)
class ById:
    identifier: Symbol


@dataclass(frozen=True, slots=True)
class ByPattern:
    pattern: re.Pattern[str]


@dataclass(frozen=True, slots=True)
class TypeClause:
    """One ``@type[...]`` clause; ``conditions`` is ``None`` without brackets."""

    type_name: str
    conditions: tuple[str, ...] | None = None


@dataclass(frozen=True, slots=True)
class ByTypeClauses:
    clauses: tuple[TypeClause, ...]


@dataclass(frozen=True, slots=True)
class ByRawId:
    identifier: str


Query = Union[MatchAll, ByElement, ById, ByPattern, ByTypeClauses, ByRawId]
_QUERY_KINDS = (MatchAll, ByElement, ById, ByPattern, ByTypeClauses, ByRawId)


def parse_query(query: object) -> Query:
    """Classify ``query`` into one of the query kinds."""
    from .elements import Element

    if isinstance(query, _QUERY_KINDS):
        return query
    if query is None or (isinstance(query, Sized) and len(query) == 0):
        return MatchAll()
    if isinstance(query, Element):
        return ByElement(query)
    if isinstance(query, Symbol):
        return ById(query)
    if isinstance(query, re.Pattern):
        return ByPattern(query)
    if not isinstance(query, str):
        return ByRawId(str(query))

    literal = _PATTERN_LITERAL_RE.match(query)
    if literal is not None:
        try:
            return ByPattern(re.compile(literal.group(1)))
        except re.error as exc:
            raise MalformedQueryError(f"Invalid pattern in query '{query}': {exc}") from exc

    if _UNCLOSED_CLAUSE_RE.search(query):
        raise MalformedQueryError(f"Unterminated condition list in query '{query}'.")
    clauses = tuple(
        TypeClause(
            match.group(1),
            None if match.group(2) is None else split_conditions(match.group(2)),
        )
        for match in _TYPE_CLAUSE_RE.finditer(query)
    )
    if clauses:
        return ByTypeClauses(clauses)
    return ByRawId(query)


def split_conditions(text: str) -> tuple[str, ...]:
    """Split a bracketed condition list on commas."""
    parts = (part.strip() for part in _CONDITION_SEPARATOR_RE.split(text))
    return tuple(part for part in parts if part)


def evaluate_query(query: Query, element: Element) -> bool:
    """Return whether ``element`` is selected by a parsed query."""
    match query:
        case MatchAll():
            return True
        case ByElement(element=other):
            return element.compare(other) == 0
        case ById(identifier=identifier) | ByRawId(identifier=identifier):
            return element.id == identifier
        case ByPattern(pattern=pattern):
            return pattern.search(element.to_text()) is not None
        case ByTypeClauses(clauses=clauses):
            return any(_clause_matches(clause, element) for clause in clauses)
    raise TypeError(f"Unsupported query kind: {query!r}")


def _clause_matches(clause: TypeClause, element: Element) -> bool:
    if not element.has_type(clause.type_name):
        return False
    return clause.conditions is None or evaluate_conditions(element, clause.conditions)


def evaluate_conditions(element: Element, conditions: Iterable[object]) -> bool:
    """Return whether every condition holds for ``element``.

    Nested sequences are flattened. A condition without ``=`` holds when the
    property renders non-empty text. bibtex-ruby's ``meets?`` never accepts
    such a condition.
    """
    return all(_condition_holds(element, condition) for condition in _flatten(conditions))


def _condition_holds(element: Element, condition: str) -> bool:
    name, separator, expected = condition.partition("=")
    name = name.strip()
    if not name:
        return True
    actual = element.get_field(name)
    if actual is None:
        raise NoSuchAttributeError(name, element)
    if not separator:
        return bool(actual)
    return actual == expected.strip()


def _flatten(items: Iterable[object]) -> Iterator[str]:
    for item in items:
        if isinstance(item, str):
            yield item
        elif isinstance(item, Iterable):
            yield from _flatten(item)
        else:
            yield str(item)


__all__ = [
    "ByElement",
    "ById",
    "ByPattern",
    "ByRawId",
    "ByTypeClauses",
    "MatchAll",
    "Query",
    "TypeClause",
    "evaluate_conditions",
    "evaluate_query",
    "parse_query",
    "split_conditions",
]
