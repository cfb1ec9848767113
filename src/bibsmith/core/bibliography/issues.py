"""Shared data structures for bibliography processing."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(slots=True)
class BibliographyIssue:
    """Represents a problem encountered while loading bibliography elements."""

    message: str
    key: str | None = None
    source: Path | None = None

    def describe(self) -> str:
        """Return the message prefixed with its key and source, when known."""
        context = [str(part) for part in (self.source, self.key) if part]
        if not context:
            return self.message
        return f"{': '.join(context)}: {self.message}"
