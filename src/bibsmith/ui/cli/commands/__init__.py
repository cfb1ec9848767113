"""CLI command implementations."""

from __future__ import annotations

from .query import OutputFormat, format_bibliography, query


__all__ = ["OutputFormat", "format_bibliography", "query"]
