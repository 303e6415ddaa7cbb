from __future__ import annotations

import logging
import re
from decimal import Decimal
from typing import Any, List, Mapping, Optional, Union

from .data.snapshot import finite_number

__all__ = [
    "FormulaError",
    "evaluate_arithmetic",
    "evaluate_formula",
    "parse_flat_bonus",
    "substitute_tokens",
]

logger = logging.getLogger(__name__)

Number = Union[int, float]

DICE_PATTERN = re.compile(r"\d+d\d", re.IGNORECASE)
SIGNED_INT_PATTERN = re.compile(r"[+-]?\d+")
ARITHMETIC_ONLY = re.compile(r"^[0-9+\-*/().\s]+$")
_TOKEN_PATTERN = re.compile(r"\s*(?:(\d+\.?\d*|\.\d+)|(.))")


class FormulaError(ValueError):
    """Raised when an expression is not plain arithmetic."""


def parse_flat_bonus(value: Any) -> Number:
    """Sum the signed integers in a bonus field such as ``"+1 -2"``.

    Dice expressions (``"1d4"``) are not flat and count as zero.
    """

    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        number = finite_number(value)
        return number if number is not None else 0
    if not isinstance(value, str):
        return 0
    text = value.strip()
    if not text or DICE_PATTERN.search(text):
        return 0
    total = 0
    for match in SIGNED_INT_PATTERN.findall(text):
        try:
            total += int(match)
        except ValueError:
            # past the interpreter's integer string conversion limit
            continue
    return total


def substitute_tokens(formula: str, context: Mapping[str, Number]) -> str:
    expression = formula
    # Longest first so a token never clobbers a longer one sharing its prefix.
    for token in sorted(context, key=len, reverse=True):
        expression = expression.replace(token, _format_number(context[token]))
    return expression


def evaluate_formula(formula: str, context: Mapping[str, Number]) -> Optional[Number]:
    """Substitute ``context`` into ``formula`` and evaluate it.

    Returns ``None`` when unknown tokens survive substitution or the arithmetic
    cannot be evaluated to a finite number.
    """

    try:
        expression = substitute_tokens(formula, context)
        if not ARITHMETIC_ONLY.match(expression):
            logger.debug("Formula %r left non-arithmetic text: %r", formula, expression)
            return None
        result = evaluate_arithmetic(expression)
    except (ValueError, ArithmeticError, RecursionError) as exc:
        logger.debug("Formula %r could not be evaluated: %s", formula, exc)
        return None
    return result


def evaluate_arithmetic(expression: str) -> Number:
    parser = _ArithmeticParser(_tokenize(expression))
    result = parser.parse()
    if finite_number(result) is None:
        raise FormulaError(f"Non-finite result for {expression!r}")
    return result


def _format_number(value: Number) -> str:
    number = finite_number(value)
    if number is None:
        return "0"
    if isinstance(number, float):
        if number.is_integer():
            return str(int(number))
        # fixed point; repr would give "1e-05", which the whitelist rejects
        return format(Decimal(repr(number)), "f")
    return str(number)


def _tokenize(expression: str) -> List[str]:
    tokens: List[str] = []
    position = 0
    stripped = expression.rstrip()
    while position < len(stripped):
        match = _TOKEN_PATTERN.match(stripped, position)
        if match is None:  # pragma: no cover - pattern always matches one char
            raise FormulaError(f"Unreadable expression {expression!r}")
        number, symbol = match.groups()
        if number is not None:
            tokens.append(number)
        elif symbol in "+-*/()":
            tokens.append(symbol)
        else:
            raise FormulaError(f"Unexpected character {symbol!r}")
        position = match.end()
    return tokens


class _ArithmeticParser:
    """expr := term (('+'|'-') term)* ; term := factor (('*'|'/') factor)* ;
    factor := ('+'|'-') factor | number | '(' expr ')'"""

    def __init__(self, tokens: List[str]) -> None:
        self.tokens = tokens
        self.position = 0

    def parse(self) -> Number:
        if not self.tokens:
            raise FormulaError("Empty expression")
        value = self._expression()
        if self.position != len(self.tokens):
            raise FormulaError(f"Unexpected token {self.tokens[self.position]!r}")
        return value

    def _peek(self) -> Optional[str]:
        if self.position < len(self.tokens):
            return self.tokens[self.position]
        return None

    def _advance(self) -> str:
        token = self._peek()
        if token is None:
            raise FormulaError("Unexpected end of expression")
        self.position += 1
        return token

    def _expression(self) -> Number:
        value = self._term()
        while self._peek() in ("+", "-"):
            if self._advance() == "+":
                value = value + self._term()
            else:
                value = value - self._term()
        return value

    def _term(self) -> Number:
        value = self._factor()
        while self._peek() in ("*", "/"):
            operator = self._advance()
            right = self._factor()
            if operator == "*":
                value = value * right
            elif right == 0:
                raise FormulaError("Division by zero")
            else:
                value = value / right
        return value

    def _factor(self) -> Number:
        token = self._advance()
        if token == "+":
            return self._factor()
        if token == "-":
            return -self._factor()
        if token == "(":
            value = self._expression()
            if self._advance() != ")":
                raise FormulaError("Unbalanced parentheses")
            return value
        if token in ("*", "/", ")"):
            raise FormulaError(f"Unexpected token {token!r}")
        return _parse_number(token)


def _parse_number(token: str) -> Number:
    if "." in token:
        return float(token)
    return int(token)
