"""Parsing helpers turning BibTeX payloads into elements.

Entries are parsed by pybtex, which also expands string constants inside
their fields. pybtex discards everything else, so a lightweight block scanner
walks the payload to recover the source order, the unexpanded expressions of
@string and @preamble blocks, @comment bodies, and stray text.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
import io
import logging
from pathlib import Path
import re

from pybtex.database import BibliographyData
from pybtex.database.input import bibtex
from pybtex.exceptions import PybtexError

from bibsmith.core.config import ParserOptions

from .elements import Comment, Element, MetaContent, Preamble, StringConstant
from .entry import Entry
from .values import Symbol, Value


logger = logging.getLogger(__name__)

_COMMAND_RE = re.compile(r"@\s*([A-Za-z_][\w:-]*)\s*([{(])")
_ASSIGNMENT_RE = re.compile(r"\s*([^\s=]+)\s*=(.*)$", re.DOTALL)
_BARE_TOKEN_RE = re.compile(r"[^\s#{}\",]+")


@dataclass(frozen=True, slots=True)
class Block:
    """Raw top-level chunk of a BibTeX payload."""

    kind: str
    command: str
    body: str
    offset: int


def parse_elements(payload: str, options: ParserOptions | None = None) -> list[Element]:
    """Return the elements of a BibTeX payload in source order."""
    options = options or ParserOptions()
    blocks = list(scan_blocks(payload))
    data = _parse_entries(payload) if any(block.kind == "entry" for block in blocks) else None

    elements: list[Element] = []
    for block in blocks:
        element = _element_from_block(block, data, options)
        if element is not None:
            elements.append(element)

    logger.debug("Parsed %d element(s) from %d block(s).", len(elements), len(blocks))
    return elements


def parse_file(path: Path | str, options: ParserOptions | None = None) -> list[Element]:
    """Read a ``.bib`` file and return its elements."""
    payload = Path(path).read_text(encoding="utf-8")
    return parse_elements(payload, options)


def scan_blocks(payload: str) -> Iterator[Block]:
    """Split a payload into @-blocks and the stray text between them."""
    position = 0
    while True:
        match = _COMMAND_RE.search(payload, position)
        if match is None:
            break
        if payload[position : match.start()].strip():
            yield Block("meta", "", payload[position : match.start()].strip(), position)

        command = match.group(1)
        closer = "}" if match.group(2) == "{" else ")"
        end = _find_closing(payload, match.end(), closer, quoted=True)
        if end is None:
            raise PybtexError(f"Unbalanced @{command} block at offset {match.start()}.")
        yield Block(_block_kind(command), command, payload[match.end() : end], match.start())
        position = end + 1

    if payload[position:].strip():
        yield Block("meta", "", payload[position:].strip(), position)


def parse_value(expression: str) -> Value:
    """Parse a BibTeX value expression such as ``"Proc. " # acm # {2020}``."""
    tokens: list[str] = []
    position = 0
    while position < len(expression):
        char = expression[position]
        if char.isspace() or char in "#,":
            position += 1
            continue
        if char == '"':
            end = _find_quote(expression, position + 1)
            tokens.append(expression[position + 1 : end])
            position = end + 1
        elif char == "{":
            end = _find_closing(expression, position + 1, "}")
            if end is None:
                raise PybtexError(f"Unbalanced braces in value: {expression!r}")
            tokens.append(expression[position + 1 : end])
            position = end + 1
        else:
            bare = _BARE_TOKEN_RE.match(expression, position)
            if bare is None:
                raise PybtexError(f"Unexpected '{char}' in value: {expression!r}")
            token = bare.group(0)
            tokens.append(token if token.isdigit() else Symbol(token))
            position = bare.end()
    return Value(*tokens)


def _block_kind(command: str) -> str:
    lowered = command.lower()
    if lowered in {"string", "preamble", "comment"}:
        return lowered
    return "entry"


def _find_closing(text: str, start: int, closer: str, *, quoted: bool = False) -> int | None:
    """Return the index of ``closer`` at brace depth 0.

    With ``quoted``, a ``"`` at depth 0 opens or closes a literal, and a ``)``
    closer is ignored inside it.
    """
    depth = 0
    in_literal = False
    for index in range(start, len(text)):
        char = text[index]
        if char == "{":
            depth += 1
        elif char == "}":
            if depth == 0 and closer == "}":
                return index
            depth -= 1
        elif char == '"' and quoted and depth == 0:
            in_literal = not in_literal
        elif char == closer and depth == 0 and not in_literal:
            return index
    return None


def _find_quote(text: str, start: int) -> int:
    depth = 0
    for index in range(start, len(text)):
        char = text[index]
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
        elif char == '"' and depth == 0:
            return index
    raise PybtexError(f"Unterminated quoted literal in value: {text!r}")


def _parse_entries(payload: str) -> BibliographyData:
    parser = bibtex.Parser()
    try:
        return parser.parse_stream(io.StringIO(payload))
    except PybtexError as exc:
        raise PybtexError(f"Failed to parse BibTeX payload: {exc}") from exc


def _element_from_block(
    block: Block,
    data: BibliographyData | None,
    options: ParserOptions,
) -> Element | None:
    if block.kind == "string":
        assignment = _ASSIGNMENT_RE.match(block.body)
        if assignment is None:
            raise PybtexError(f"Malformed @string body: {block.body.strip()!r}")
        return StringConstant(assignment.group(1), parse_value(assignment.group(2)))

    if block.kind == "preamble":
        if not options.include_preambles:
            return None
        return Preamble(parse_value(block.body))

    if block.kind == "comment":
        if not options.include_comments:
            return None
        return Comment(block.body.strip())

    if block.kind == "meta":
        if not options.include_meta_content:
            return None
        return MetaContent(block.body)

    key = block.body.split(",", 1)[0].strip()
    entry = data.entries.get(key) if data is not None and key else None
    if entry is None:
        logger.warning(
            "Skipping @%s block at offset %d without a parsed entry.",
            block.command,
            block.offset,
        )
        return None
    return Entry.from_pybtex(key, entry)


__all__ = ["Block", "parse_elements", "parse_file", "parse_value", "scan_blocks"]
