import re

import pytest

from bibsmith.core.bibliography import (
    ByElement,
    ById,
    ByPattern,
    ByRawId,
    ByTypeClauses,
    Comment,
    Entry,
    MatchAll,
    Preamble,
    StringConstant,
    Symbol,
    TypeClause,
    parse_query,
)
from bibsmith.core.exceptions import MalformedQueryError, NoSuchAttributeError


@pytest.fixture
def article() -> Entry:
    return Entry(
        "article",
        "knuth1984",
        {"author": "Donald E. Knuth", "title": "Literate Programming", "year": "1984"},
    )


@pytest.mark.parametrize("query", [None, "", [], ()])
def test_empty_queries_match_everything(query: object) -> None:
    assert parse_query(query) == MatchAll()
    assert Comment("hi").matches(query)


def test_parse_query_classifies_inputs() -> None:
    comment = Comment("hi")
    compiled = re.compile("hi")

    assert parse_query(comment) == ByElement(comment)
    assert parse_query(Symbol("knuth1984")) == ById(Symbol("knuth1984"))
    assert parse_query(compiled) == ByPattern(compiled)
    assert parse_query("/Kn.th/") == ByPattern(re.compile("Kn.th"))
    assert parse_query("knuth1984") == ByRawId("knuth1984")
    assert parse_query(42) == ByRawId("42")
    assert parse_query("@article[year=1984, author] @book") == ByTypeClauses(
        (
            TypeClause("article", ("year=1984", "author")),
            TypeClause("book", None),
        )
    )


def test_parsed_query_is_returned_unchanged() -> None:
    query = ByRawId("knuth1984")

    assert parse_query(query) is query


def test_match_by_id(article: Entry) -> None:
    assert article.matches("knuth1984")
    assert article.matches(Symbol("knuth1984"))
    assert not article.matches("knuth1985")


def test_match_by_element_compares_content(article: Entry) -> None:
    twin = Entry(
        "article",
        "knuth1984",
        {"author": "Donald E. Knuth", "title": "Literate Programming", "year": "1984"},
    )

    assert article.matches(twin)
    assert not article.matches(Comment("hi"))


def test_match_by_pattern(article: Entry) -> None:
    assert article.matches("/Literate/")
    assert article.matches(re.compile(r"year = \{19\d\d\}"))
    assert not article.matches("/Structured/")


def test_match_by_type(article: Entry) -> None:
    assert article.matches("@article")
    assert article.matches("@book @article")
    assert not article.matches("@book")
    assert StringConstant("foo", "bar").matches("@string")
    assert Preamble("x").matches("@string @preamble")


def test_match_by_type_with_conditions(article: Entry) -> None:
    assert article.matches("@article[year=1984]")
    assert article.matches("@article[year = 1984, title=Literate Programming]")
    assert not article.matches("@article[year=2020]")
    assert not article.matches("@book[year=1984]")
    assert article.matches("@article[]")


def test_meets_conditions(article: Entry) -> None:
    assert article.meets("year = 1984")
    assert article.meets("year=1984", "author=Donald E. Knuth")
    assert article.meets(["year=1984", ["title=Literate Programming"]])
    assert not article.meets("year=1984", "author=Leslie Lamport")
    assert article.meets()
    assert article.meet("type=article")


def test_condition_without_value_checks_presence(article: Entry) -> None:
    assert article.meets("author")
    assert not article.meets("publisher")


def test_unknown_property_raises(article: Entry) -> None:
    with pytest.raises(NoSuchAttributeError) as excinfo:
        article.meets("mood=happy")

    assert excinfo.value.name == "mood"
    assert isinstance(excinfo.value, AttributeError)

    with pytest.raises(NoSuchAttributeError):
        Comment("hi").matches("@comment[year=1984]")


def test_string_constant_conditions() -> None:
    constant = StringConstant("acm", "ACM Press")

    assert constant.matches("@string[key=acm]")
    assert constant.matches("@string[value=ACM Press]")
    assert not constant.matches("@string[key=ieee]")


@pytest.mark.parametrize("query", ["/[/", "@article[year=2020"])
def test_malformed_queries_raise(query: str) -> None:
    with pytest.raises(MalformedQueryError):
        parse_query(query)


def test_malformed_query_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        Comment("hi").matches("/(/")
