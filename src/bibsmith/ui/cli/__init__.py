"""Public CLI exports for bibsmith."""

from __future__ import annotations

from .app import app, main
from .commands import OutputFormat, query
from .state import debug_enabled, emit_error, emit_warning, get_cli_state


__all__ = [
    "OutputFormat",
    "app",
    "debug_enabled",
    "emit_error",
    "emit_warning",
    "get_cli_state",
    "main",
    "query",
]
