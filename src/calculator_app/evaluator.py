"""
Arithmetic expression evaluator for the calculator.

Takes the equation string assembled from button presses (e.g. "12 + 4"),
strips anything that is not part of plain arithmetic, and evaluates it with
a small recursive-descent parser. No general code execution is involved.

Grammar:
    expr   := term (("+" | "-") term)*
    term   := unary (("*" | "/" | "%") unary)*
    unary  := ("+" | "-") unary | atom
    atom   := NUMBER | "(" expr ")"

Percent is a binary operator: a % b == a * (b / 100).
"""

import math
import re
from decimal import Decimal
from typing import List, Tuple

ERROR_MARKER = "Error"
DECIMAL_PLACES = 8

_DISALLOWED = re.compile(r"[^0-9.()\-+*/%]")
_TOKEN = re.compile(r"[0-9]+\.?[0-9]*|\.[0-9]+|[()+\-*/%]")


class ExpressionError(ValueError):
    """Raised for any expression that cannot be parsed or evaluated."""


def sanitize(expression: str) -> str:
    """Drop every character outside digits, '.', parentheses and operators."""
    return _DISALLOWED.sub("", expression)


def tokenize(expression: str) -> List[Tuple[str, object]]:
    """
    Split a sanitized expression into (kind, value) tokens.

    Args:
        expression: Sanitized expression text

    Returns:
        List of ("num", float) and ("op", str) tokens

    Raises:
        ExpressionError: If a number is malformed (e.g. "1.2.3")
    """
    tokens: List[Tuple[str, object]] = []
    pos = 0
    while pos < len(expression):
        match = _TOKEN.match(expression, pos)
        if not match:
            raise ExpressionError(f"Unexpected character at {pos}")
        text = match.group()
        if text in "()+-*/%":
            tokens.append(("op", text))
        else:
            tokens.append(("num", float(text)))
        pos = match.end()
        # "1.2.3" splits into "1.2" and ".3"
        if len(tokens) >= 2 and tokens[-1][0] == "num" and tokens[-2][0] == "num":
            raise ExpressionError("Malformed number")
    return tokens


class _Parser:
    def __init__(self, tokens: List[Tuple[str, object]]):
        self.tokens = tokens
        self.pos = 0

    def peek(self):
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return (None, None)

    def take(self):
        token = self.peek()
        self.pos += 1
        return token

    def parse(self) -> float:
        if not self.tokens:
            raise ExpressionError("Empty expression")
        value = self.expr()
        if self.pos != len(self.tokens):
            raise ExpressionError(f"Unexpected token {self.peek()[1]!r}")
        return value

    def expr(self) -> float:
        value = self.term()
        while self.peek() in (("op", "+"), ("op", "-")):
            op = self.take()[1]
            rhs = self.term()
            value = value + rhs if op == "+" else value - rhs
        return value

    def term(self) -> float:
        value = self.unary()
        while self.peek() in (("op", "*"), ("op", "/"), ("op", "%")):
            op = self.take()[1]
            rhs = self.unary()
            if op == "*":
                value = value * rhs
            elif op == "/":
                value = _divide(value, rhs)
            else:
                value = value * (rhs / 100)
        return value

    def unary(self) -> float:
        kind, value = self.peek()
        if (kind, value) == ("op", "-"):
            self.take()
            return -self.unary()
        if (kind, value) == ("op", "+"):
            self.take()
            return self.unary()
        return self.atom()

    def atom(self) -> float:
        kind, value = self.take()
        if kind == "num":
            return value
        if (kind, value) == ("op", "("):
            inner = self.expr()
            if self.take() != ("op", ")"):
                raise ExpressionError("Unbalanced parentheses")
            return inner
        if kind is None:
            raise ExpressionError("Unexpected end of expression")
        raise ExpressionError(f"Unexpected token {value!r}")


def _divide(lhs: float, rhs: float) -> float:
    # IEEE semantics instead of ZeroDivisionError
    if rhs == 0:
        if lhs == 0 or math.isnan(lhs):
            return math.nan
        sign = math.copysign(1.0, lhs) * math.copysign(1.0, rhs)
        return math.copysign(math.inf, sign)
    return lhs / rhs


def evaluate(expression: str) -> float:
    """
    Evaluate an equation string numerically.

    Args:
        expression: Equation text as assembled by the calculator

    Returns:
        Numeric result

    Raises:
        ExpressionError: On any parse or evaluation failure
    """
    try:
        return _Parser(tokenize(sanitize(expression))).parse()
    except ExpressionError:
        raise
    except (ArithmeticError, RecursionError) as e:
        raise ExpressionError(str(e)) from e


def format_result(value: float) -> str:
    """Round to 8 decimals and render the shortest round-tripping text."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"

    rounded = round(value, DECIMAL_PLACES)
    if rounded == 0:
        return "0"

    if 1e-6 <= abs(rounded) < 1e21:
        # repr() is the shortest round-tripping form; normalize() drops the trailing ".0"
        return format(Decimal(repr(rounded)).normalize(), "f")

    mantissa, _, exponent = repr(rounded).partition("e")
    return f"{mantissa}e{int(exponent):+d}"


def calculate(expression: str) -> str:
    """Evaluate and format in one step."""
    return format_result(evaluate(expression))
