"""
Bounded arithmetic evaluator.

Only digits, whitespace, the operators + - * x / and parentheses are
accepted. Operators are applied strictly left to right over a flat
operand/operator list, so ``2 + 3 * 4`` is 20, not 14. Taught equations are
validated with the same rule, which keeps stored math facts consistent with
what the evaluator answers. A parenthesized group is reduced to a single
operand (itself evaluated left to right) before it joins the outer list.
"""

import math
import re
import logging
from typing import List, Optional, Tuple, Union

logger = logging.getLogger(__name__)

Number = Union[int, float]


class InvalidExpression(ValueError):
    """Raised when an expression cannot be parsed or has no finite value"""


_ALLOWED_RE = re.compile(r"^[\d\s+\-*xX/()]+$")
_TOKEN_RE = re.compile(r"\d+|[+\-*xX/()]")

# A run of expression characters that starts and ends on an operand
_CANDIDATE_RE = re.compile(r"[\d(][\d\s+\-*xX/()]*[\d)]")
_HAS_OPERATION_RE = re.compile(r"\d\s*\)*\s*[+\-*xX/]\s*\(*\s*\d")

# Integers beyond this have no float counterpart
_MAX_INT_BITS = 1024

OPERATION_NAMES = {
    "+": "addition",
    "-": "subtraction",
    "*": "multiplication",
    "/": "division",
}


def _divide(a: Number, b: Number) -> float:
    # IEEE semantics instead of ZeroDivisionError; callers reject non-finite results
    if b == 0:
        if a == 0:
            return math.nan
        return math.copysign(math.inf, a)
    return a / b


def _apply(op: str, a: Number, b: Number) -> Number:
    if op == "+":
        return a + b
    if op == "-":
        return a - b
    if op in ("*", "x", "X"):
        return a * b
    return _divide(a, b)


def tokenize_expression(expression: str) -> List[str]:
    """Split an expression into operand/operator/parenthesis tokens"""
    if expression is None or not _ALLOWED_RE.match(expression):
        raise InvalidExpression(f"Unsupported characters in expression: {expression!r}")
    tokens = _TOKEN_RE.findall(expression)
    if not tokens:
        raise InvalidExpression("Empty expression")
    return tokens


def _operand(tokens: List[str], pos: int) -> Tuple[Number, int]:
    if pos >= len(tokens):
        raise InvalidExpression("Expression ends with an operator")
    token = tokens[pos]
    if token.isdigit():
        return int(token), pos + 1
    if token == "(":
        value, pos = _sequence(tokens, pos + 1)
        if pos >= len(tokens) or tokens[pos] != ")":
            raise InvalidExpression("Unbalanced parentheses")
        return value, pos + 1
    raise InvalidExpression(f"Expected a number, got {token!r}")


def _sequence(tokens: List[str], pos: int) -> Tuple[Number, int]:
    value, pos = _operand(tokens, pos)
    while pos < len(tokens) and tokens[pos] != ")":
        op = tokens[pos]
        if op.isdigit() or op == "(":
            raise InvalidExpression(f"Missing operator before {op!r}")
        rhs, pos = _operand(tokens, pos + 1)
        value = _apply(op, value, rhs)
    return value, pos


def evaluate(expression: str) -> Number:
    """
    Evaluate an expression left to right.

    Division by zero gives inf or nan rather than raising; use
    :func:`calculate` when only finite results are acceptable.

    Raises:
        InvalidExpression: disallowed characters or malformed expression
    """
    tokens = tokenize_expression(expression)
    try:
        value, pos = _sequence(tokens, 0)
    except InvalidExpression:
        raise
    except (OverflowError, ValueError) as e:
        # Operands past the int conversion limit, or float results out of range
        raise InvalidExpression(f"Cannot evaluate {expression!r}: {e}") from e
    if pos != len(tokens):
        raise InvalidExpression("Unbalanced parentheses")
    return value


def calculate(expression: str) -> Number:
    """Evaluate and reject non-finite results"""
    value = evaluate(expression)
    if isinstance(value, float) and not math.isfinite(value):
        raise InvalidExpression(f"No finite value for {expression!r}")
    if isinstance(value, int):
        try:
            float(value)
        except OverflowError as e:
            raise InvalidExpression(f"Result of {expression!r} is out of range") from e
    return value


def validate_equation(lhs: str, rhs: str) -> bool:
    """Check that ``lhs`` evaluates exactly to the number written in ``rhs``"""
    try:
        expected = float(rhs)
        actual = calculate(lhs)
    except (InvalidExpression, ValueError):
        return False
    return float(actual) == expected


def canonical_expression(expression: str) -> str:
    """Single-spaced rendering with ``x`` written as ``*``: '5+3' -> '5 + 3'"""
    tokens = ["*" if t in ("x", "X") else t for t in tokenize_expression(expression)]
    out = []
    for token in tokens:
        if token == ")" or (out and out[-1] == "("):
            out.append(token)
        else:
            out.append(" " + token if out else token)
    return "".join(out)


def operation_path(expression: str) -> str:
    """Logical grouping key for a math fact: addition, division, ... or combined"""
    ops = {("*" if t in ("x", "X") else t) for t in tokenize_expression(expression)} & set(OPERATION_NAMES)
    if len(ops) == 1 and "(" not in expression:
        return OPERATION_NAMES[ops.pop()]
    return "combined"


def find_expression(text: str) -> Optional[str]:
    """Return the first bare arithmetic expression embedded in free text"""
    if not text:
        return None
    for match in _CANDIDATE_RE.finditer(text):
        candidate = match.group(0).strip()
        if _HAS_OPERATION_RE.search(candidate):
            return candidate
    return None


def _format_big_int(val: int) -> str:
    # str() on huge ints hits the interpreter's digit limit; keep 10 significant digits
    n = abs(val)
    exp = int(math.log10(n))
    head = n // 10 ** (exp - 9)
    if head >= 10 ** 10:
        exp += 1
        head //= 10
    elif head < 10 ** 9:
        exp -= 1
        head = n // 10 ** (exp - 9)
    mantissa = f"{head // 10 ** 9}.{head % 10 ** 9:09d}".rstrip("0").rstrip(".")
    return f"{'-' if val < 0 else ''}{mantissa}e+{exp}"


def format_number(val: Number) -> str:
    """Format number: drop unnecessary trailing decimals."""
    if isinstance(val, float) and math.isfinite(val) and val == int(val) and abs(val) < 1e15:
        return str(int(val))
    if isinstance(val, float):
        return f"{val:.10g}"
    if val.bit_length() > _MAX_INT_BITS:
        return _format_big_int(val)
    return str(val)


def format_distinct(val: Number, other: str) -> str:
    """
    Format ``val`` so it never reads the same as ``other``.

    ``format_number`` keeps 10 significant digits, which can hide the
    difference from a claimed result such as ``0.3333333333``.
    """
    text = format_number(val)
    try:
        same = text == other.strip() or float(text) == float(other)
    except ValueError:
        return text
    return repr(float(val)) if same else text
