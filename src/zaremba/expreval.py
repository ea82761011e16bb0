# src/zaremba/expreval.py
"""
Integer input parsing for the command line.

Accepts plain literals (``1_000_000``, ``1 000 000``, ``0xFF``), scientific
notation (``1e6``) and a safe subset of integer arithmetic (``10**6 + 1``,
``2*3*5*7``). Everything is evaluated on the AST; names, calls, attributes
and floats are rejected.
"""

from __future__ import annotations

import ast
import operator as op
import re

from zaremba.runtime import CFG
from zaremba.utility import UserInputError, dec_digits

_THIN_SPACES = ("\u2009", "\u202F", "\u00A0")  # thin, narrow no-break, no-break
_SEP_CLASS = r"[ ,._\u00A0\u2009\u202F]"      # spaces/commas/dots/underscores & NBSP variants
_GROUPED_RE = re.compile(rf"^[+-]?\d{{1,3}}(?:{_SEP_CLASS}\d{{3}})+$")

_ALLOWED_BINOPS = {
    ast.Add:      op.add,
    ast.Sub:      op.sub,
    ast.Mult:     op.mul,
    ast.FloorDiv: op.floordiv,
    ast.Mod:      op.mod,
}
_ALLOWED_UNARYOPS = {
    ast.UAdd: op.pos,
    ast.USub: op.neg,
}

_MAX_NODES = 256  # sanity guard

_SCI_NOTATION_TOKEN = re.compile(
    r"""
    (?<![\w.])          # not immediately after a word char or dot
    (\d+)               # mantissa (digits)
    [eE]
    ([+\-]?\d+)         # exponent (optional sign + digits)
    (?![\w.])           # not immediately before a word char or dot
    """,
    re.VERBOSE,
)


class _IntExprError(Exception):
    pass


def _max_digits() -> int:
    return int(CFG("BEHAVIOUR.MAX_DIGITS", 100_000))


def _too_many_digits(limit: int) -> UserInputError:
    return UserInputError(
        f"number has more than {limit} decimal digits. "
        "Increase the limit in the profile or pass a smaller value."
    )


def _would_exceed_digit_limit_for_pow(base: int, exp: int, limit: int) -> bool:
    """Cheap lower bound on digits(base**exp) without building it."""
    b = abs(base)
    if b <= 1 or exp <= 1:
        return False
    # b >= 2**(bitlen-1), so digits(b**exp) >= 1 + floor(exp*(bitlen-1)*log10(2))
    digits_lb = 1 + (exp * (b.bit_length() - 1) * 30103) // 100000
    return digits_lb > limit


def _rewrite_scientific_notation(expr: str) -> str:
    """
    Rewrite base-10 scientific notation into exact integer math:

        1e3   -> 10**(3)
        2e5   -> (2)*10**(5)

    Negative exponents are not integers and are rejected.
    """

    def repl(m: re.Match) -> str:
        mant, exp = m.group(1), int(m.group(2))
        if exp < 0:
            raise _IntExprError("scientific notation with negative exponent is not an integer")
        if int(mant) == 0:
            return "0"
        if mant == "1":
            return f"10**({exp})"
        return f"({mant})*10**({exp})"

    return _SCI_NOTATION_TOKEN.sub(repl, expr)


def _eval_int_expr(expr: str) -> int:
    """
    Evaluate a *safe* integer expression.

    Allowed: integers (incl. underscores), parentheses, + - * // % **,
             unary +/-. Negative exponents are rejected.
    BEHAVIOUR.MAX_DIGITS is enforced on powers and on the final result.
    """
    limit = _max_digits()
    expr = _rewrite_scientific_notation(expr)

    try:
        tree = ast.parse(expr.strip(), mode="eval")
    except SyntaxError as e:
        raise _IntExprError("invalid integer expression") from e

    if sum(1 for _ in ast.walk(tree)) > _MAX_NODES:
        raise _IntExprError("expression too large")

    def _eval(node) -> int:
        if isinstance(node, ast.Constant):
            # bool is an int subclass; True/False are not numbers here
            if isinstance(node.value, int) and not isinstance(node.value, bool):
                return node.value
            raise _IntExprError("only integer literals are allowed")

        if isinstance(node, ast.UnaryOp) and type(node.op) in _ALLOWED_UNARYOPS:
            return _ALLOWED_UNARYOPS[type(node.op)](_eval(node.operand))

        if isinstance(node, ast.BinOp):
            op_type = type(node.op)
            if op_type is ast.Pow:
                base, exp = _eval(node.left), _eval(node.right)
                if exp < 0:
                    raise UserInputError("negative exponents are not allowed in integer expressions")
                if _would_exceed_digit_limit_for_pow(base, exp, limit):
                    raise _too_many_digits(limit)
                return base ** exp

            if op_type in _ALLOWED_BINOPS:
                left, right = _eval(node.left), _eval(node.right)
                if op_type in (ast.FloorDiv, ast.Mod) and right == 0:
                    raise UserInputError("division by zero in integer expression")
                return _ALLOWED_BINOPS[op_type](left, right)

        raise _IntExprError(f"unsupported syntax: {type(node).__name__}")

    value = _eval(tree.body)
    if dec_digits(value) > limit:
        raise _too_many_digits(limit)
    return value


def _parse_int_literal(text: str) -> int | None:
    """Accepts: 42  -7  1_000_000  0xFF  0b1010  123.456.789  123 456 789
       Rejects: 3.14  1,23  12.34.56  0xG1"""
    if text is None:
        return None

    s = text.strip()
    if not s:
        return None

    for ch in _THIN_SPACES:
        s = s.replace(ch, " ")

    if s.lower().startswith(("0x", "0b", "0o")):
        try:
            return int(s.replace("_", ""), 0)
        except ValueError:
            return None

    if re.fullmatch(r"[+-]?\d[\d_]*", s):
        try:
            return int(s.replace("_", ""))
        except ValueError:
            return None

    if _GROUPED_RE.match(s):
        try:
            return int(re.sub(_SEP_CLASS, "", s))
        except ValueError:
            return None

    return None


def parse_int_or_expr(s: str) -> int | None:
    """Return the integer value of `s`, or None if it is not an integer input."""
    n = _parse_int_literal(s)
    if n is not None:
        return n
    try:
        return _eval_int_expr(s)
    except _IntExprError:
        return None


def parse_positive_int(s: str, *, what: str = "n") -> int:
    """parse_int_or_expr() for CLI arguments that must be >= 1."""
    n = parse_int_or_expr(s)
    if n is None:
        raise UserInputError(f"Invalid input: {what} must be an integer, got {s!r}.")
    if n < 1:
        raise UserInputError(f"Invalid input: {what} must be a positive integer, got {n}.")
    return n
