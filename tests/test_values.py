import pytest

from bibsmith.core.bibliography import StringConstant, Symbol, Value, coerce_symbol
from bibsmith.core.config import BRACES, DOUBLE_QUOTES, QuoteStyle
from bibsmith.core.exceptions import CoercionError


def test_single_literal_is_wrapped_in_quotes() -> None:
    assert Value("bar").render(DOUBLE_QUOTES) == '"bar"'
    assert Value("bar").render(BRACES) == "{bar}"
    assert Value("bar").render() == "bar"


def test_symbol_renders_bare() -> None:
    assert Value(Symbol("acm")).render(DOUBLE_QUOTES) == "acm"


def test_concatenation_uses_hash_operator() -> None:
    value = Value("Proc. of ", Symbol("acm"), 2020)

    assert value.render(DOUBLE_QUOTES) == '"Proc. of " # acm # "2020"'
    assert value.render() == "Proc. of acm2020"
    assert value.symbols == (Symbol("acm"),)


def test_empty_value_renders_empty_quotes() -> None:
    assert Value().render(DOUBLE_QUOTES) == '""'
    assert Value.coerce(None) == Value()


def test_custom_quote_style() -> None:
    style = QuoteStyle(open="<<", close=">>")

    assert Value("x").render(style) == "<<x>>"


def test_replace_substitutes_known_constants_only() -> None:
    value = Value("Proc. ", Symbol("acm"), " and ", Symbol("ieee"))
    strings = {"acm": StringConstant("acm", "ACM Press")}

    replaced = value.replace(strings)

    assert replaced.tokens == ("Proc. ", "ACM Press", " and ", "ieee")
    assert replaced.symbols == (Symbol("ieee"),)
    assert value.symbols == (Symbol("acm"), Symbol("ieee"))


def test_join_merges_adjacent_literals() -> None:
    value = Value("Proc. ", "ACM", Symbol("x"), "a", "b")

    assert value.join() == Value("Proc. ACM", Symbol("x"), "ab")


def test_values_distinguish_symbols_from_literals() -> None:
    assert Value("acm") != Value(Symbol("acm"))
    assert Value("acm") == Value.coerce("acm")


def test_coerce_symbol_accepts_text() -> None:
    symbol = coerce_symbol("  knuth1984 ")

    assert isinstance(symbol, Symbol)
    assert symbol == "knuth1984"


@pytest.mark.parametrize("candidate", [42, None, "", "   ", "two words", "a{b"])
def test_coerce_symbol_rejects_invalid_names(candidate: object) -> None:
    with pytest.raises(CoercionError):
        coerce_symbol(candidate)


def test_coercion_error_is_a_type_error() -> None:
    with pytest.raises(TypeError):
        coerce_symbol(3.5)
