"""
Kaleid source printer.

Renders AST nodes back into Kaleid source text. The output is meant to be
re-parsed, not to preserve the original formatting:

- binary expressions are always parenthesized, so no precedence is needed
- numbers are written in plain positional notation (no exponent), so each one
  lexes back as a single NUMBER token
- units of a program are separated by `;` so a trailing `(` can never be read
  as a call on the previous unit

Parsing `to_source(node)` yields a node equal to `node`; anonymous functions
print as their bare body, which parses back to the same anonymous Function.
"""

import math
from collections.abc import Iterable
from decimal import Decimal

from kaleid.kaleid_ast import (
    BinaryExpr,
    CallExpr,
    Function,
    Node,
    NumberExpr,
    Prototype,
    VariableExpr,
)


def format_number(value: float) -> str:
    """Writes a float so that the lexer reads back exactly the same value.

    Raises:
        ValueError: For negative numbers, infinities and NaN, which have no
            literal form (the language has no unary minus).
    """
    if not math.isfinite(value) or math.copysign(1.0, value) < 0:
        raise ValueError(f"Number has no literal form: {value!r}")
    text = repr(value)
    if "e" in text or "E" in text:
        text = format(Decimal(value), "f")
    return text


def to_source(node: Node) -> str:
    """Renders any AST node as Kaleid source text."""
    if isinstance(node, NumberExpr):
        return format_number(node.value)
    if isinstance(node, VariableExpr):
        return node.name
    if isinstance(node, BinaryExpr):
        # one "(" per link of the left spine, closed after each right operand
        spine, bottom = node.left_spine()
        tail = "".join(f" {b.op} {to_source(b.rhs)})" for b in reversed(spine))
        return "(" * len(spine) + to_source(bottom) + tail
    if isinstance(node, CallExpr):
        args = ", ".join(to_source(a) for a in node.args)
        return f"{node.callee}({args})"
    if isinstance(node, Prototype):
        return f"{node.name}({' '.join(node.params)})"
    if isinstance(node, Function):
        if node.is_anonymous:
            return to_source(node.body)
        return f"def {to_source(node.proto)} {to_source(node.body)}"
    raise TypeError(f"Unsupported AST node: {node!r}")  # pragma: no cover


def unit_to_source(node: Function | Prototype) -> str:
    """Renders a top-level unit; a bare Prototype is an extern declaration."""
    if isinstance(node, Prototype):
        return f"extern {to_source(node)}"
    return to_source(node)


def program_to_source(units: Iterable[Function | Prototype]) -> str:
    """Renders a sequence of top-level units, one per line, each ending in `;`."""
    return "".join(f"{unit_to_source(u)};\n" for u in units)


__all__ = ["format_number", "program_to_source", "to_source", "unit_to_source"]
