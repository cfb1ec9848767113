"""Container holding the elements of one or more BibTeX sources."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
import logging
from pathlib import Path
from typing import Any
from xml.etree import ElementTree

from pybtex.exceptions import PybtexError

from bibsmith.core.config import ParserOptions
from bibsmith.core.diagnostics import DiagnosticEmitter, LoggingEmitter

from .elements import Element, StringConstant
from .entry import Entry
from .issues import BibliographyIssue
from .parsing import parse_elements
from .serialization import dump_json, dump_yaml, xml_to_string


logger = logging.getLogger(__name__)


class Bibliography:
    """Ordered collection of elements with a table of string constants.

    Elements are owned by the bibliography; each one is told about membership
    changes through ``added_to_bibliography`` and ``removed_from_bibliography``.
    ``strings`` maps constant names to the attached `StringConstant` objects.
    """

    def __init__(
        self,
        elements: Iterable[Element] = (),
        *,
        options: ParserOptions | None = None,
        emitter: DiagnosticEmitter | None = None,
    ) -> None:
        self.strings: dict[str, StringConstant] = {}
        self.options = options or ParserOptions()
        self._elements: list[Element] = []
        self._issues: list[BibliographyIssue] = []
        self._file_element_counts: dict[Path, int] = {}
        self._file_order: list[Path] = []
        self._emitter: DiagnosticEmitter = emitter or LoggingEmitter(logger_obj=logger)
        self.extend(elements)

    @classmethod
    def parse(cls, payload: str, options: ParserOptions | None = None) -> Bibliography:
        """Build a bibliography from a BibTeX payload, raising on parse errors."""
        options = options or ParserOptions()
        return cls(parse_elements(payload, options), options=options)

    @property
    def issues(self) -> Sequence[BibliographyIssue]:
        """Return the list of issues discovered while loading sources."""
        return tuple(self._issues)

    @property
    def file_stats(self) -> Sequence[tuple[Path, int]]:
        """Return (file, element_count) pairs in the order files were processed."""
        return tuple((path, self._file_element_counts.get(path, 0)) for path in self._file_order)

    @property
    def entries(self) -> list[Entry]:
        return [element for element in self._elements if isinstance(element, Entry)]

    # ------------------------------------------------------------------ membership

    def add(self, *elements: Element) -> Bibliography:
        """Append elements, rejecting ones that belong to another bibliography."""
        for element in elements:
            element.added_to_bibliography(self)
            if not self._contains(element):
                self._elements.append(element)
        return self

    def extend(self, elements: Iterable[Element]) -> Bibliography:
        return self.add(*elements)

    def remove(self, element: Element) -> Element:
        """Detach ``element``; raise `ValueError` if it is not part of the bibliography."""
        for index, candidate in enumerate(self._elements):
            if candidate is element:
                del self._elements[index]
                element.removed_from_bibliography(self)
                return element
        raise ValueError(f"{type(element).__name__} '{element.id}' is not in this bibliography.")

    def delete(self, query: object = None) -> list[Element]:
        """Remove and return every element matching ``query``."""
        removed = self.query(query)
        for element in removed:
            self.remove(element)
        return removed

    def _contains(self, element: Element) -> bool:
        return any(candidate is element for candidate in self._elements)

    def __contains__(self, element: object) -> bool:
        return isinstance(element, Element) and self._contains(element)

    def __iter__(self) -> Iterator[Element]:
        return iter(list(self._elements))

    def __len__(self) -> int:
        return len(self._elements)

    def __getitem__(self, index: int | str) -> Element:
        if isinstance(index, int):
            return self._elements[index]
        found = self.find(index)
        if found is None:
            raise KeyError(index)
        return found

    # ------------------------------------------------------------------ queries

    def query(self, selector: object = None) -> list[Element]:
        """Return the elements matching ``selector`` in bibliography order."""
        return [element for element in self._elements if element.matches(selector)]

    def find(self, selector: object = None) -> Element | None:
        """Return the first element matching ``selector``."""
        for element in self._elements:
            if element.matches(selector):
                return element
        return None

    def replace_strings(self, query: object = "@string @preamble") -> Bibliography:
        """Expand string constants in the selected elements, in source order."""
        for element in self.query(query):
            element.replace(self.strings)
        return self

    def join_strings(self, query: object = "@string @preamble") -> Bibliography:
        for element in self.query(query):
            element.join()
        return self

    def sort(self) -> Bibliography:
        self._elements.sort()
        return self

    # ------------------------------------------------------------------ loading

    def load_files(self, files: Iterable[Path | str]) -> None:
        """Load BibTeX elements from one or more files."""
        for file_path in files:
            self._load_file(Path(file_path))

    def _load_file(self, file_path: Path) -> None:
        file_path = file_path.resolve()
        self._file_order.append(file_path)
        try:
            payload = file_path.read_text(encoding="utf-8")
            elements = parse_elements(payload, self.options)
        except (OSError, PybtexError) as exc:
            self._report(f"Failed to parse '{file_path}': {exc}", source=file_path, exc=exc)
            self._file_element_counts[file_path] = 0
            return

        self._file_element_counts[file_path] = len(elements)
        if not elements:
            self._report("No elements found in file.", source=file_path)
        self._merge(elements, file_path)

    def load_string(self, payload: str, *, source: Path | str | None = None) -> None:
        """Parse an inline payload and merge its elements."""
        source_path = Path(source) if source is not None else Path("inline-bibliography.bib")
        if source_path not in self._file_order:
            self._file_order.append(source_path)
        try:
            elements = parse_elements(payload, self.options)
        except PybtexError as exc:
            self._report(f"Failed to parse inline payload: {exc}", source=source_path, exc=exc)
            return

        self._file_element_counts[source_path] = (
            self._file_element_counts.get(source_path, 0) + len(elements)
        )
        if not elements:
            self._report("No elements found in inline payload.", source=source_path)
        self._merge(elements, source_path)

    def _merge(self, elements: Sequence[Element], source: Path) -> None:
        added = 0
        for element in elements:
            if isinstance(element, Entry):
                existing = self._find_entry(element.key)
                if existing is not None:
                    if existing.compare(element) != 0:
                        self._report(
                            "Duplicate entry conflicts with an existing "
                            "reference; ignoring the newer definition.",
                            key=str(element.key),
                            source=source,
                        )
                    continue
            self.add(element)
            added += 1
        self._emitter.event("bibliography_loaded", {"source": str(source), "elements": added})

    def _find_entry(self, key: str) -> Entry | None:
        for element in self._elements:
            if isinstance(element, Entry) and element.key == key:
                return element
        return None

    def _report(
        self,
        message: str,
        *,
        key: str | None = None,
        source: Path | None = None,
        exc: BaseException | None = None,
    ) -> None:
        issue = BibliographyIssue(message=message, key=key, source=source)
        self._issues.append(issue)
        self._emitter.warning(issue.describe(), exc)

    # ------------------------------------------------------------------ export

    def to_string(self) -> str:
        """Return the bibliography as BibTeX text."""
        return "\n\n".join(element.to_text() for element in self._elements) + "\n"

    def to_structured(self) -> list[dict[str, Any]]:
        return [element.to_structured() for element in self._elements]

    def to_json(self, **kwargs: Any) -> str:
        return dump_json(self.to_structured(), **kwargs)

    def to_yaml(self) -> str:
        return dump_yaml(self.to_structured())

    def to_xml(self) -> str:
        root = ElementTree.Element("bibliography")
        for element in self._elements:
            root.append(element.to_xml_element())
        return xml_to_string(root)

    def write_bibtex(self, target: Path | str) -> None:
        """Persist the bibliography, leaving the file untouched when unchanged."""
        path = Path(target)
        payload = self.to_string()
        try:
            existing = path.read_text(encoding="utf-8")
        except OSError:
            existing = None
        if existing == payload:
            return
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(payload, encoding="utf-8")


__all__ = ["Bibliography"]
