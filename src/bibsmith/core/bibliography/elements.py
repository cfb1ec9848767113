"""Record variants of a parsed BibTeX database.

Architecture
: `Element` is the capability contract every record honours: identity, a
  derived type name, textual content, ordering, structured serialization, and
  the hooks a `Bibliography` calls when it gains or loses the element.
: Variants only override `content()` and, where BibTeX wraps the payload in a
  block, `to_text()`. Every output format is derived from `to_structured()`,
  so overriding that single method changes JSON, YAML, and XML consistently.
: `StringConstant` and `Preamble` carry a `Value` that may reference string
  constants. They share the `Expandable` mixin, which forwards `replace()` and
  `join()` to the value.

Implementation Rationale
: Elements keep a weak reference to their bibliography. The container owns
  the elements; the back-reference only mirrors current membership.
: Query conditions resolve properties through `get_field()` rather than
  attribute reflection, so an unknown property is reported instead of
  silently failing the match.
"""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping
import itertools
import logging
import re
from typing import TYPE_CHECKING, Any, ClassVar, Protocol
import weakref
from xml.etree import ElementTree

from bibsmith.core.config import DOUBLE_QUOTES, ParserOptions
from bibsmith.core.exceptions import ElementAttachedError

from .serialization import dump_json, dump_yaml, structured_to_xml, xml_to_string
from .values import Symbol, Value, coerce_symbol


if TYPE_CHECKING:
    from .query import Query


logger = logging.getLogger(__name__)

_ID_SEQUENCE = itertools.count(1)
_CASE_BOUNDARY_RE = re.compile(r"([a-z])([A-Z])")
_VARIANTS: dict[str, type[Element]] = {}


class SymbolTableOwner(Protocol):
    """Container side of the membership hooks."""

    strings: MutableMapping[str, Any]


def snake_case(name: str) -> str:
    """Return ``name`` with ``_`` inserted at lower/upper boundaries, lower-cased."""
    return _CASE_BOUNDARY_RE.sub(r"\1_\2", name).lower()


def _register_variant(cls: type[Element]) -> None:
    _VARIANTS[cls.__name__.lower()] = cls
    _VARIANTS[snake_case(cls.__name__)] = cls


def resolve_variant(name: str) -> type[Element] | None:
    """Return the element class registered under ``name``, if any."""
    return _VARIANTS.get(name.lower())


class Element:
    """Base class for BibTeX objects."""

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        _register_variant(cls)

    def __init__(self) -> None:
        self._id: Symbol | None = None
        self._bibliography: weakref.ReferenceType[Any] | None = None

    @classmethod
    def parse(cls, text: str, options: ParserOptions | None = None) -> list[Element]:
        """Return the elements found in a BibTeX payload."""
        from .parsing import parse_elements

        return parse_elements(text, options)

    # ------------------------------------------------------------------ identity

    @property
    def id(self) -> Symbol:
        if self._id is None:
            self._id = Symbol(f"{self.type}-{next(_ID_SEQUENCE)}")
        return self._id

    @id.setter
    def id(self, value: object) -> None:
        self._id = coerce_symbol(value)

    @property
    def type(self) -> str:
        """Return the BibTeX type, or the class name in snake case."""
        return snake_case(type(self).__name__)

    def has_type(self, candidate: object) -> bool:
        """Return whether ``candidate`` names this element's type or one of its classes."""
        if isinstance(candidate, type):
            return issubclass(candidate, Element) and isinstance(self, candidate)
        name = str(candidate)
        if self.type == name:
            return True
        variant = resolve_variant(name)
        return variant is not None and isinstance(self, variant)

    @property
    def bibliography(self) -> Any | None:
        if self._bibliography is None:
            return None
        return self._bibliography()

    # ------------------------------------------------------------------ content

    def content(self) -> str:
        return ""

    def to_text(self) -> str:
        return self.content()

    def get_field(self, name: str) -> str | None:
        """Return the text of a queryable property, or ``None`` when unknown."""
        if name == "id":
            return str(self.id)
        if name == "type":
            return self.type
        if name == "content":
            return self.content()
        if name == "text":
            return self.to_text()
        return None

    def replace(self, *strings: Mapping[str, Any]) -> Element:
        return self

    def join(self) -> Element:
        return self

    # ------------------------------------------------------------------ queries

    def matches(self, query: object | Query = None) -> bool:
        """Return whether the element is selected by ``query``."""
        from .query import evaluate_query, parse_query

        return evaluate_query(parse_query(query), self)

    match = matches

    def meets(self, *conditions: object) -> bool:
        """Return whether every ``property = value`` condition holds."""
        from .query import evaluate_conditions

        return evaluate_conditions(self, conditions)

    meet = meets

    # ------------------------------------------------------------------ ordering

    def compare(self, other: Element) -> int:
        mine = (self.type, self.to_text())
        theirs = (other.type, other.to_text())
        return (mine > theirs) - (mine < theirs)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Element):
            return NotImplemented
        return self.compare(other) == 0

    def __lt__(self, other: Element) -> bool:
        return self.compare(other) < 0

    def __le__(self, other: Element) -> bool:
        return self.compare(other) <= 0

    def __gt__(self, other: Element) -> bool:
        return self.compare(other) > 0

    def __ge__(self, other: Element) -> bool:
        return self.compare(other) >= 0

    __hash__ = None  # type: ignore[assignment]

    # ------------------------------------------------------------------ serialization

    def to_structured(self) -> dict[str, Any]:
        return {type(self).__name__.lower(): self.content()}

    def to_json(self, **kwargs: Any) -> str:
        return dump_json(self.to_structured(), **kwargs)

    def to_yaml(self) -> str:
        return dump_yaml(self.to_structured())

    def to_xml_element(self) -> ElementTree.Element:
        return structured_to_xml(self.to_structured())

    def to_xml(self) -> str:
        return xml_to_string(self.to_xml_element())

    # ------------------------------------------------------------------ membership

    def added_to_bibliography(self, bibliography: SymbolTableOwner) -> Element:
        """Called when the element was added to a bibliography.

        Adding the element to the bibliography it already belongs to is a no-op.
        Adding it to another one raises `ElementAttachedError`.
        """
        current = self.bibliography
        if current is bibliography:
            return self
        if current is not None:
            raise ElementAttachedError(
                f"{type(self).__name__} '{self.id}' already belongs to a bibliography; "
                "remove it before adding it elsewhere."
            )
        self._bibliography = weakref.ref(bibliography)
        logger.debug("Attached %s '%s' to bibliography.", self.type, self.id)
        return self

    def removed_from_bibliography(self, bibliography: SymbolTableOwner) -> Element:
        """Called when the element was removed from a bibliography.

        Removing it from a bibliography it does not belong to is a no-op.
        """
        if self.bibliography is not bibliography:
            return self
        self._bibliography = None
        logger.debug("Detached %s '%s' from bibliography.", self.type, self.id)
        return self

    def __str__(self) -> str:
        return self.to_text()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.to_text()!r})"


_register_variant(Element)


class Expandable:
    """Mixin for variants whose value may reference string constants."""

    value: Value
    bibliography: Any

    def replace(self, *strings: Mapping[str, Any]) -> Any:
        """Substitute string constants in the value.

        Without explicit tables, the strings of the owning bibliography are used.
        """
        if not strings:
            owner = self.bibliography
            if owner is None:
                return self
            strings = (owner.strings,)
        self.value = self.value.replace(*strings)
        return self

    def join(self) -> Any:
        """Merge adjacent literals of the value."""
        self.value = self.value.join()
        return self


class StringConstant(Expandable, Element):
    """Represents a @string object.

    A @string object holds a single constant assignment. For example,
    ``@string{ foo = "bar" }`` defines the constant ``foo``, which later
    @string and @preamble objects and entry fields can reference through
    BibTeX's concatenation syntax.
    """

    def __init__(self, key: object, value: object = None) -> None:
        super().__init__()
        self._key = coerce_symbol(key)
        self.value = Value.coerce(value)

    @property
    def type(self) -> str:
        return "string"

    @property
    def key(self) -> Symbol:
        return self._key

    @key.setter
    def key(self, key: object) -> None:
        new_key = coerce_symbol(key)
        owner = self.bibliography
        if owner is not None and new_key != self._key:
            strings = owner.strings
            strings[new_key] = self
            if strings.get(self._key) is self:
                del strings[self._key]
            logger.debug("Renamed string constant '%s' to '%s'.", self._key, new_key)
        self._key = new_key

    def __getitem__(self, key: str) -> Value | None:
        """Return the value when ``key`` names this constant, else ``None``."""
        return self.value if key == self._key else None

    def added_to_bibliography(self, bibliography: SymbolTableOwner) -> StringConstant:
        super().added_to_bibliography(bibliography)
        bibliography.strings[self._key] = self
        return self

    def removed_from_bibliography(self, bibliography: SymbolTableOwner) -> StringConstant:
        attached = self.bibliography is bibliography
        super().removed_from_bibliography(bibliography)
        if attached and bibliography.strings.get(self._key) is self:
            del bibliography.strings[self._key]
        return self

    def get_field(self, name: str) -> str | None:
        if name == "key":
            return str(self._key)
        if name == "value":
            return self.value.render()
        return super().get_field(name)

    def content(self) -> str:
        return f"{self._key} = {self.value.render(DOUBLE_QUOTES)}"

    def to_text(self) -> str:
        return f"@string{{ {self.content()} }}"

    def to_structured(self) -> dict[str, Any]:
        return {"string": {str(self._key): self.value.render(DOUBLE_QUOTES)}}


class Preamble(Expandable, Element):
    """Represents a @preamble object.

    A @preamble holds a single string literal, a single constant, or a
    concatenation of both, emitted verbatim ahead of the bibliography.
    """

    def __init__(self, value: object = "") -> None:
        super().__init__()
        self.value = Value.coerce(value)

    def get_field(self, name: str) -> str | None:
        if name == "value":
            return self.value.render()
        return super().get_field(name)

    def content(self) -> str:
        return self.value.render(DOUBLE_QUOTES)

    def to_text(self) -> str:
        return f"@preamble{{ {self.content()} }}"


class Comment(Element):
    """Represents a @comment object."""

    def __init__(self, content: str = "") -> None:
        super().__init__()
        self.body = content

    def content(self) -> str:
        return self.body

    def to_text(self) -> str:
        return f"@comment{{ {self.body} }}"


class MetaContent(Element):
    """Text of a ``.bib`` file found outside any BibTeX object.

    Such text is treated as a comment and dropped by the parser unless
    `ParserOptions.include_meta_content` is set, in which case it is kept for
    post-processing.
    """

    def __init__(self, content: str = "") -> None:
        super().__init__()
        self.body = content

    def content(self) -> str:
        return self.body


__all__ = [
    "Comment",
    "Element",
    "Expandable",
    "MetaContent",
    "Preamble",
    "StringConstant",
    "SymbolTableOwner",
    "resolve_variant",
    "snake_case",
]
