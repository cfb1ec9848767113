import json
from pathlib import Path
import textwrap

import pytest
import yaml

from bibsmith.core.bibliography import (
    Bibliography,
    Comment,
    Entry,
    Preamble,
    StringConstant,
    Symbol,
    Value,
)
from bibsmith.core.diagnostics import NullEmitter


def _write(
    tmp_path: Path,
    filename: str,
    payload: str,
) -> Path:
    file_path = tmp_path / filename
    file_path.write_text(textwrap.dedent(payload).strip() + "\n", encoding="utf-8")
    return file_path


class RecordingEmitter:
    debug_enabled = False

    def __init__(self) -> None:
        self.warnings: list[str] = []
        self.events: list[tuple[str, dict]] = []

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        self.warnings.append(message)

    def error(self, message: str, exc: BaseException | None = None) -> None:
        self.warnings.append(message)

    def event(self, name: str, payload) -> None:
        self.events.append((name, dict(payload)))


def test_bibliography_loads_multiple_files(tmp_path: Path) -> None:
    file_one = _write(
        tmp_path,
        "first.bib",
        """
        @article{smith2020,
            title = {Example Article},
            author = {Smith, John},
            year = {2020},
            journal = {Journal of Testing},
        }
        """,
    )
    file_two = _write(
        tmp_path,
        "second.bib",
        """
        @string{ ph = "Publishing House" }
        @book{doe2021,
            title = {Example Book},
            author = {Doe, Jane},
            year = {2021},
            publisher = ph,
        }
        """,
    )

    emitter = RecordingEmitter()
    bibliography = Bibliography(emitter=emitter)
    bibliography.load_files([file_one, file_two])

    smith = bibliography.find("smith2020")
    assert isinstance(smith, Entry)
    assert smith["title"].render() == "Example Article"
    assert {entry.key for entry in bibliography.entries} == {"doe2021", "smith2020"}
    assert bibliography.file_stats == (
        (file_one.resolve(), 1),
        (file_two.resolve(), 2),
    )
    assert "ph" in bibliography.strings
    assert not bibliography.issues
    assert [name for name, _ in emitter.events] == ["bibliography_loaded"] * 2
    assert emitter.events[1][1]["elements"] == 2


def test_bibliography_reports_conflicting_duplicates(tmp_path: Path) -> None:
    original = _write(
        tmp_path,
        "one.bib",
        """
        @book{refkey,
            title = {Original Title},
        }
        """,
    )
    conflicting = _write(
        tmp_path,
        "two.bib",
        """
        @book{refkey,
            title = {Changed Title},
        }
        """,
    )

    emitter = RecordingEmitter()
    bibliography = Bibliography(emitter=emitter)
    bibliography.load_files([original, conflicting])

    assert len(bibliography) == 1
    assert bibliography["refkey"].get_field("title") == "Original Title"
    assert len(bibliography.issues) == 1
    issue = bibliography.issues[0]
    assert issue.key == "refkey"
    assert issue.source == conflicting.resolve()
    assert "Duplicate entry" in issue.message
    assert emitter.warnings == [issue.describe()]


def test_identical_duplicates_are_silently_skipped(tmp_path: Path) -> None:
    payload = """
        @misc{same,
            note = {Identical},
        }
        """
    first = _write(tmp_path, "a.bib", payload)
    second = _write(tmp_path, "b.bib", payload)

    bibliography = Bibliography(emitter=NullEmitter())
    bibliography.load_files([first, second])

    assert len(bibliography) == 1
    assert not bibliography.issues


def test_bibliography_reports_empty_and_broken_files(tmp_path: Path) -> None:
    empty = _write(tmp_path, "empty.bib", "% nothing here")
    broken = _write(tmp_path, "broken.bib", "@article{oops, title = {Unclosed")
    missing = tmp_path / "missing.bib"

    bibliography = Bibliography(emitter=NullEmitter())
    bibliography.load_files([empty, broken, missing])

    messages = [issue.message for issue in bibliography.issues]
    assert messages[0] == "No elements found in file."
    assert messages[1].startswith("Failed to parse")
    assert messages[2].startswith("Failed to parse")
    assert dict(bibliography.file_stats)[broken.resolve()] == 0
    assert len(bibliography) == 0


def test_load_string_merges_inline_payload() -> None:
    bibliography = Bibliography(emitter=NullEmitter())

    bibliography.load_string('@string{ foo = "bar" }', source="inline.bib")

    assert bibliography.strings["foo"].value == Value("bar")
    assert bibliography.file_stats == ((Path("inline.bib"), 1),)


def test_parse_classmethod_builds_string_table() -> None:
    bibliography = Bibliography.parse(
        '@string{ acm = "ACM Press" }\n@preamble{ "Published by " # acm }'
    )

    assert len(bibliography) == 2
    assert bibliography.strings["acm"] is bibliography[0]
    assert bibliography[1].bibliography is bibliography


def test_replace_and_join_strings() -> None:
    bibliography = Bibliography.parse(
        textwrap.dedent(
            """
            @string{ acm = "ACM" }
            @string{ press = acm # " Press" }
            @preamble{ "Published by " # press }
            """
        )
    )

    bibliography.replace_strings()

    preamble = bibliography.find("@preamble")
    assert isinstance(preamble, Preamble)
    assert preamble.value == Value("Published by ", "ACM", " Press")

    bibliography.join_strings()

    assert preamble.to_text() == '@preamble{ "Published by ACM Press" }'
    assert bibliography.strings["press"].to_text() == '@string{ press = "ACM Press" }'


def test_replace_strings_with_custom_query() -> None:
    bibliography = Bibliography(
        [
            StringConstant("a", "A"),
            Preamble(Symbol("a")),
        ]
    )

    bibliography.replace_strings("@string")

    assert bibliography[1].to_text() == "@preamble{ a }"


def test_query_delete_and_lookup() -> None:
    bibliography = Bibliography(
        [
            Entry("article", "a1", {"year": "2020"}),
            Entry("book", "b1", {"year": "2020"}),
            Comment("keep"),
        ]
    )

    assert [element.id for element in bibliography.query("@article @book")] == ["a1", "b1"]
    assert bibliography.find("/keep/") is bibliography[2]
    assert bibliography.find("nothing") is None
    with pytest.raises(KeyError):
        bibliography["nothing"]

    removed = bibliography.delete("@book[year=2020]")

    assert [element.id for element in removed] == ["b1"]
    assert removed[0].bibliography is None
    assert len(bibliography) == 2


def test_sort_orders_by_type_then_text() -> None:
    bibliography = Bibliography(
        [
            StringConstant("b", "x"),
            Comment("note"),
            StringConstant("a", "x"),
        ]
    )

    bibliography.sort()

    assert [element.type for element in bibliography] == ["comment", "string", "string"]
    assert bibliography[1].get_field("key") == "a"


def test_iteration_allows_removal() -> None:
    bibliography = Bibliography([Comment("one"), Comment("two")])

    for element in bibliography:
        bibliography.remove(element)

    assert len(bibliography) == 0


def test_exports() -> None:
    bibliography = Bibliography(
        [
            StringConstant("foo", "bar"),
            Entry("misc", "note1", {"note": "Ünïcode"}),
        ]
    )

    assert bibliography.to_string() == (
        '@string{ foo = "bar" }\n\n@misc{note1,\n  note = {Ünïcode}\n}\n'
    )
    structured = [
        {"string": {"foo": '"bar"'}},
        {"entry": {"key": "note1", "type": "misc", "fields": {"note": "Ünïcode"}}},
    ]
    assert bibliography.to_structured() == structured
    assert json.loads(bibliography.to_json()) == structured
    assert "Ünïcode" in bibliography.to_json()
    assert yaml.safe_load(bibliography.to_yaml()) == structured
    assert bibliography.to_xml().startswith('<bibliography><string><foo>"bar"</foo></string>')


def test_write_bibtex_skips_unchanged_content(tmp_path: Path) -> None:
    target = tmp_path / "out" / "refs.bib"
    bibliography = Bibliography([Comment("hi")])

    bibliography.write_bibtex(target)
    first_mtime = target.stat().st_mtime_ns
    bibliography.write_bibtex(target)

    assert target.read_text(encoding="utf-8") == "@comment{ hi }\n"
    assert target.stat().st_mtime_ns == first_mtime
