"""Calculator front door: ordinary arithmetic, plus secret codes that open games."""

from __future__ import annotations

import logging
import math
import re

from data.kv_store import KeyValueStore
from games.platformer.progress import GLITCH_FIXED_KEY


LOGGER = logging.getLogger(__name__)

ERROR_DISPLAY = "Error"
OPERATORS = "+-*/"

SECRET_CODES = {
    "1+1": "snake",
    "2+2": "sky_gift",
    "3+3": "danger",
    "4+4": "racing",
    "5+5": "platformer",
    "6+6": "shooter",
    "7+7": "keepup",
    "8+8": "dot_runner",
}

GAME_TITLES = {
    "snake": "Snake Game",
    "sky_gift": "Sky Gift",
    "danger": "Danger Zone",
    "racing": "Asphalt Fury",
    "platformer": "Pixel Adventure",
    "shooter": "Neon Shield",
    "keepup": "Balloon Keep Up",
    "dot_runner": "Dot Runner",
}

_TOKEN = re.compile(r"\s*(?:(\d+\.?\d*|\.\d+)|(\*\*|[-+*/()]))")


class ExpressionError(ValueError):
    """Raised for malformed or non-finite arithmetic."""


def _tokenize(text: str) -> list[str]:
    tokens: list[str] = []
    pos = 0
    text = text.rstrip()
    while pos < len(text):
        match = _TOKEN.match(text, pos)
        if match is None:
            raise ExpressionError(f"Unexpected character at {pos}: {text[pos]!r}")
        tokens.append(match.group(1) or match.group(2))
        pos = match.end()
    return tokens


class _Parser:
    """Recursive-descent evaluator.

    expr   := term (('+' | '-') term)*
    term   := unary (('*' | '/') unary)*
    unary  := ('+' | '-') unary | power
    power  := atom ('**' unary)?
    atom   := number | '(' expr ')'
    """

    def __init__(self, tokens: list[str]) -> None:
        self.tokens = tokens
        self.pos = 0

    def _peek(self) -> str | None:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def _take(self) -> str:
        token = self._peek()
        if token is None:
            raise ExpressionError("Unexpected end of expression.")
        self.pos += 1
        return token

    def parse(self) -> float:
        if not self.tokens:
            raise ExpressionError("Empty expression.")
        value = self._expr()
        if self._peek() is not None:
            raise ExpressionError(f"Unexpected token {self._peek()!r}.")
        return value

    def _expr(self) -> float:
        value = self._term()
        while self._peek() in ("+", "-"):
            if self._take() == "+":
                value += self._term()
            else:
                value -= self._term()
        return value

    def _term(self) -> float:
        value = self._unary()
        while self._peek() in ("*", "/"):
            op = self._take()
            rhs = self._unary()
            if op == "*":
                value *= rhs
            elif rhs == 0:
                raise ExpressionError("Division by zero.")
            else:
                value /= rhs
        return value

    def _unary(self) -> float:
        if self._peek() in ("+", "-"):
            sign = self._take()
            value = self._unary()
            return -value if sign == "-" else value
        return self._power()

    def _power(self) -> float:
        base = self._atom()
        if self._peek() == "**":
            self._take()
            try:
                return float(base ** self._unary())
            except (OverflowError, ZeroDivisionError) as exc:
                raise ExpressionError(str(exc)) from exc
        return base

    def _atom(self) -> float:
        token = self._take()
        if token == "(":
            value = self._expr()
            if self._take() != ")":
                raise ExpressionError("Missing ')'.")
            return value
        if token[0].isdigit() or token[0] == ".":
            return float(token)
        raise ExpressionError(f"Unexpected token {token!r}.")


def format_number(value: float) -> str:
    """Round to 10 decimals and drop a trailing ``.0``."""
    rounded = round(value, 10)
    if rounded == 0:
        return "0"
    if rounded.is_integer() and abs(rounded) < 1e21:
        return str(int(rounded))
    return repr(rounded)


def evaluate(expression: str) -> str:
    """Evaluate ``expression`` and return the display text.

    Raises ``ExpressionError`` for syntax errors, division by zero and
    non-finite results.
    """
    value = _Parser(_tokenize(expression)).parse()
    if math.isnan(value) or math.isinf(value):
        raise ExpressionError("Result is not finite.")
    return format_number(value)


class Calculator:
    """Display-driven calculator state machine.

    ``equals`` returns a game name when the display holds a secret code and
    ``None`` after an ordinary calculation.
    """

    def __init__(self, store: KeyValueStore | None = None) -> None:
        self.store = store
        self.display = "0"

    @property
    def glitched(self) -> bool:
        """The title glitches until the platformer terminal has been solved."""
        if self.store is None:
            return False
        return not self.store.get_bool(GLITCH_FIXED_KEY, False)

    def press_digit(self, digit: str) -> None:
        if len(digit) != 1 or not digit.isdigit():
            raise ValueError(f"Not a digit: {digit!r}")
        if self.display in ("0", ERROR_DISPLAY):
            self.display = digit
        else:
            self.display += digit

    def press_operator(self, op: str) -> None:
        if op not in OPERATORS:
            raise ValueError(f"Unknown operator: {op!r}")
        if self.display == ERROR_DISPLAY:
            return
        self.display += op

    def press_decimal(self) -> None:
        if self.display == ERROR_DISPLAY:
            self.display = "0"
        last_operand = re.split(r"[-+*/]", self.display)[-1]
        if "." not in last_operand:
            self.display += "."

    def clear(self) -> None:
        self.display = "0"

    def press(self, key: str) -> str | None:
        """Dispatch one button label; returns a game name when one opens."""
        if key in ("C", "c"):
            self.clear()
        elif key == "=":
            return self.equals()
        elif key == ".":
            self.press_decimal()
        elif key in OPERATORS:
            self.press_operator(key)
        else:
            self.press_digit(key)
        return None

    def equals(self) -> str | None:
        game = SECRET_CODES.get(self.display)
        if game is not None:
            LOGGER.info("Secret code %s opens '%s'.", self.display, game)
            return game
        try:
            self.display = evaluate(self.display)
        except ExpressionError as exc:
            LOGGER.debug("Calculation failed for %r: %s", self.display, exc)
            self.display = ERROR_DISPLAY
        return None


def run_keys(keys: str, calculator: Calculator | None = None) -> tuple[str, str | None]:
    """Feed every character of ``keys`` and report the display and any opened game."""
    calculator = calculator or Calculator()
    opened = None
    for key in keys:
        if key.isspace():
            continue
        result = calculator.press(key)
        if result is not None:
            opened = result
            break
    return calculator.display, opened
