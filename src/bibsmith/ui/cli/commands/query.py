"""Implementation of the primary ``bibsmith`` CLI command."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Annotated

import typer

from bibsmith.core.bibliography import Bibliography
from bibsmith.core.config import ParserOptions
from bibsmith.core.diagnostics import NullEmitter
from bibsmith.core.exceptions import BibliographyError, exception_hint

from ..state import configure_logging, emit_error, emit_warning, set_cli_state


class OutputFormat(str, Enum):
    TEXT = "text"
    JSON = "json"
    YAML = "yaml"
    XML = "xml"


def format_bibliography(selection: Bibliography, output_format: OutputFormat) -> str:
    """Serialise the elements of a bibliography in the requested format."""
    if output_format is OutputFormat.JSON:
        return selection.to_json(indent=2)
    if output_format is OutputFormat.YAML:
        return selection.to_yaml().rstrip("\n")
    if output_format is OutputFormat.XML:
        return selection.to_xml()
    return selection.to_string().rstrip("\n")


def query(
    ctx: typer.Context,
    files: Annotated[
        list[Path],
        typer.Argument(
            help="BibTeX files to load.",
            exists=True,
            dir_okay=False,
            readable=True,
        ),
    ],
    selector: Annotated[
        str | None,
        typer.Option(
            "--query",
            "-q",
            help="Selector such as 'knuth1984', '/Knuth/' or '@article[year=1984]'.",
        ),
    ] = None,
    output_format: Annotated[
        OutputFormat,
        typer.Option("--format", "-f", help="Output format for the selected elements."),
    ] = OutputFormat.TEXT,
    meta: Annotated[
        bool,
        typer.Option("--meta", help="Keep text found outside BibTeX blocks."),
    ] = False,
    comments: Annotated[
        bool,
        typer.Option("--comments/--no-comments", help="Keep @comment blocks."),
    ] = True,
    sort: Annotated[
        bool,
        typer.Option("--sort", help="Sort the selection by type and text."),
    ] = False,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            count=True,
            help="Increase diagnostic verbosity (repeat for more detail).",
        ),
    ] = 0,
    debug: Annotated[
        bool,
        typer.Option("--debug", help="Show full tracebacks on unexpected errors."),
    ] = False,
) -> None:
    """Load BibTeX files and print the elements matching a query."""
    state = set_cli_state(ctx=ctx, verbosity=verbose, debug=debug)
    configure_logging(state)

    options = ParserOptions(include_comments=comments, include_meta_content=meta)
    bibliography = Bibliography(options=options, emitter=NullEmitter())
    bibliography.load_files(files)
    for issue in bibliography.issues:
        emit_warning(issue.describe())

    try:
        selected = bibliography.query(selector)
    except BibliographyError as exc:
        emit_error(f"Invalid query: {exception_hint(exc) or exc}", exception=exc)
        raise typer.Exit(code=1) from exc

    for element in bibliography:
        if not any(element is candidate for candidate in selected):
            bibliography.remove(element)
    if sort:
        bibliography.sort()

    if len(bibliography):
        typer.echo(format_bibliography(bibliography, output_format))
