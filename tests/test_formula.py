import math
import sys

import pytest

from character_vault.formula import (
    FormulaError,
    evaluate_arithmetic,
    evaluate_formula,
    parse_flat_bonus,
    substitute_tokens,
)

int_digit_limit = pytest.mark.skipif(
    not hasattr(sys, "get_int_max_str_digits"), reason="interpreter has no integer string conversion limit"
)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("1d4", 0),
        ("2D6 + 1", 0),
        ("+2", 2),
        ("-1 +3", 2),
        ("  +1  ", 1),
        ("bonus 4", 4),
        ("", 0),
        ("abc", 0),
        (None, 0),
        (3, 3),
        (-2, -2),
        (1.5, 1.5),
        (math.nan, 0),
        (math.inf, 0),
        (True, 0),
        ([1, 2], 0),
    ],
)
def test_parse_flat_bonus(value, expected):
    assert parse_flat_bonus(value) == expected


@pytest.mark.parametrize(
    "expression, expected",
    [
        ("2 + 3 * 4", 14),
        ("(2 + 3) * 4", 20),
        ("-3 + 5", 2),
        ("10 / 4", 2.5),
        ("3--1", 4),
        ("+7", 7),
        ("1.5 * 2", 3.0),
        (" 18 + 0 ", 18),
        ("((1))", 1),
    ],
)
def test_evaluate_arithmetic(expression, expected):
    assert evaluate_arithmetic(expression) == expected


@pytest.mark.parametrize("expression", ["", "   ", "2 +", "(1", "1)", "1 / 0", ".", "1 2", "* 3", "1..2"])
def test_evaluate_arithmetic_rejects_malformed_input(expression):
    with pytest.raises(FormulaError):
        evaluate_arithmetic(expression)


def test_substitute_tokens_replaces_every_occurrence():
    assert substitute_tokens("@x + @x", {"@x": 3}) == "3 + 3"


def test_substitute_tokens_prefers_longer_tokens():
    assert substitute_tokens("@ab + @a", {"@a": 1, "@ab": 5}) == "5 + 1"


def test_substitute_tokens_writes_whole_floats_as_integers():
    assert substitute_tokens("@x", {"@x": 12.0}) == "12"


def test_evaluate_formula_with_known_tokens():
    assert evaluate_formula("@x + 1", {"@x": 2}) == 3


def test_evaluate_formula_leftover_token_fails():
    assert evaluate_formula("@y + 1", {"@x": 2}) is None


def test_evaluate_formula_rejects_code():
    assert evaluate_formula("__import__('os').getcwd()", {}) is None


def test_evaluate_formula_division_by_zero_fails():
    assert evaluate_formula("@x / 0", {"@x": 4}) is None


def test_evaluate_formula_negative_values_substitute_cleanly():
    assert evaluate_formula("10 - @x", {"@x": -2}) == 12


def test_parse_flat_bonus_keeps_huge_integers():
    assert parse_flat_bonus(10**400) == 10**400


@int_digit_limit
def test_parse_flat_bonus_skips_terms_past_the_digit_limit():
    assert parse_flat_bonus("+" + "1" * 5000) == 0
    assert parse_flat_bonus("+2 " + "9" * 5000) == 2


@int_digit_limit
def test_evaluate_formula_oversized_literal_fails():
    assert evaluate_formula("9" * 5000, {}) is None


def test_evaluate_formula_deep_nesting_fails():
    assert evaluate_formula("(" * 5000 + "1" + ")" * 5000, {}) is None


def test_evaluate_formula_overflowing_division_fails():
    assert evaluate_formula("@x / 3", {"@x": 10**400}) is None


def test_substitute_tokens_avoids_exponent_notation():
    assert substitute_tokens("@x", {"@x": 0.00001}) == "0.00001"
    assert evaluate_formula("@x * 100000", {"@x": 0.00001}) == pytest.approx(1.0)
