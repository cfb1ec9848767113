"""Bibliography entries (``@article``, ``@book``, ...) as elements."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import TYPE_CHECKING, Any

from bibsmith.core.config import BRACES
from bibsmith.core.exceptions import CoercionError

from .elements import Element
from .values import Symbol, Value, coerce_symbol


if TYPE_CHECKING:
    from pybtex.database import Entry as PybtexEntry


STANDARD_FIELDS = frozenset(
    {
        "address",
        "annote",
        "author",
        "booktitle",
        "chapter",
        "crossref",
        "doi",
        "edition",
        "editor",
        "howpublished",
        "institution",
        "isbn",
        "issn",
        "journal",
        "keywords",
        "month",
        "note",
        "number",
        "organization",
        "pages",
        "publisher",
        "school",
        "series",
        "title",
        "url",
        "volume",
        "year",
    }
)


class Entry(Element):
    """A BibTeX entry whose type is the entry type declared in the source."""

    def __init__(
        self,
        entry_type: str,
        key: object,
        fields: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__()
        if not isinstance(entry_type, str) or not entry_type.strip():
            raise CoercionError("entry type must be a non-empty string.")
        self._entry_type = entry_type.strip().lower()
        self._key = coerce_symbol(key)
        self.fields: dict[str, Value] = {}
        for name, value in (fields or {}).items():
            self[name] = value

    @classmethod
    def from_pybtex(cls, key: str, entry: PybtexEntry) -> Entry:
        """Build an entry from pybtex data, flattening persons into name lists."""
        fields: dict[str, object] = {}
        for role, persons in entry.persons.items():
            fields[role] = " and ".join(str(person) for person in persons)
        for name, value in entry.fields.items():
            fields[name] = value
        return cls(entry.type, key, fields)

    @property
    def key(self) -> Symbol:
        return self._key

    @key.setter
    def key(self, key: object) -> None:
        self._key = coerce_symbol(key)

    @property
    def id(self) -> Symbol:
        return self._id if self._id is not None else self.key

    @id.setter
    def id(self, value: object) -> None:
        self._id = coerce_symbol(value)

    @property
    def type(self) -> str:
        return self._entry_type

    def __getitem__(self, name: str) -> Value:
        return self.fields[name.lower()]

    def __setitem__(self, name: str, value: object) -> None:
        self.fields[name.lower()] = Value.coerce(value)

    def __delitem__(self, name: str) -> None:
        del self.fields[name.lower()]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self.fields

    def __iter__(self) -> Iterator[str]:
        return iter(self.fields)

    def get_field(self, name: str) -> str | None:
        """Resolve element properties, the key, and field values.

        Standard BibTeX fields the entry does not define read as empty text.
        """
        known = super().get_field(name)
        if known is not None:
            return known
        if name == "key":
            return str(self.key)
        lowered = name.lower()
        if lowered in self.fields:
            return self.fields[lowered].render()
        if lowered in STANDARD_FIELDS:
            return ""
        return None

    def content(self) -> str:
        lines = [f"{self.key},"]
        rendered = [f"  {name} = {value.render(BRACES)}" for name, value in self.fields.items()]
        if rendered:
            lines.append(",\n".join(rendered))
        return "\n".join(lines)

    def to_text(self) -> str:
        return f"@{self.type}{{{self.content()}\n}}"

    def to_structured(self) -> dict[str, Any]:
        return {
            "entry": {
                "key": str(self.key),
                "type": self.type,
                "fields": {name: value.render() for name, value in self.fields.items()},
            }
        }


__all__ = ["STANDARD_FIELDS", "Entry"]
