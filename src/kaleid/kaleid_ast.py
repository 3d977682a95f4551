"""
Defines the abstract syntax tree (AST) node structure for the Kaleid language.

The tree is a closed set of six immutable node classes:

Expressions:
    NumberExpr:   a numeric literal (float value)
    VariableExpr: a reference to a name (unresolved)
    BinaryExpr:   an operator character applied to two sub-expressions
    CallExpr:     a callee name applied to zero or more argument expressions

Top-level:
    Prototype:    a function name and its parameter names
    Function:     a prototype plus one body expression

Every node exclusively owns its children and holds no reference to its parent.
Nodes are frozen dataclasses, so equality is structural and nodes are hashable.

Each node tracks:
    kind (str): The syntactic construct type (e.g., "number", "call", "function").

Usage:
    The parser produces these nodes; the printer, the CLI and the test suites
    consume them. ``to_dict()`` converts any node to plain Python data for
    JSON output or debugging.

Example:
    Function(Prototype("add", ("a", "b")), BinaryExpr("+", VariableExpr("a"), VariableExpr("b")))
"""

from dataclasses import dataclass
from typing import ClassVar, TypedDict, Union

from kaleid.kaleid_constants import ANONYMOUS_FUNCTION_NAME


class ASTDict(TypedDict, total=False):
    """
    TypedDict representation of a node used for serialization.

    Fields:
        kind (str): The type of AST node (e.g., "number", "binary", "function").
        value (float): Literal value of a "number" node.
        name (str): Name of a "variable" or "prototype" node.
        op (str): Operator character of a "binary" node.
        lhs (ASTDict): Left operand of a "binary" node.
        rhs (ASTDict): Right operand of a "binary" node.
        callee (str): Callee name of a "call" node.
        args (list[ASTDict]): Arguments of a "call" node.
        params (list[str]): Parameter names of a "prototype" node.
        proto (ASTDict): Prototype of a "function" node.
        body (ASTDict): Body expression of a "function" node.
    """

    kind: str
    value: float
    name: str
    op: str
    lhs: "ASTDict"
    rhs: "ASTDict"
    callee: str
    args: list["ASTDict"]
    params: list[str]
    proto: "ASTDict"
    body: "ASTDict"


@dataclass(frozen=True)
class NumberExpr:
    value: float

    kind: ClassVar[str] = "number"

    def to_dict(self) -> ASTDict:
        return {"kind": self.kind, "value": self.value}


@dataclass(frozen=True)
class VariableExpr:
    name: str

    kind: ClassVar[str] = "variable"

    def to_dict(self) -> ASTDict:
        return {"kind": self.kind, "name": self.name}


@dataclass(frozen=True, eq=False, repr=False)
class BinaryExpr:
    """An operator applied to two operands.

    A chain such as ``1 + 2 + ... + n`` is a left spine of BinaryExpr nodes
    as long as the chain. Equality, hashing, repr and `to_dict` walk that
    spine in a loop, so long chains do not hit the recursion limit.
    """

    op: str
    lhs: "Expr"
    rhs: "Expr"

    kind: ClassVar[str] = "binary"

    def left_spine(self) -> tuple[list["BinaryExpr"], "Expr"]:
        """Returns the chain of BinaryExpr down the left side, outermost
        first, and the non-binary operand at its bottom."""
        spine: list[BinaryExpr] = []
        node: Expr = self
        while isinstance(node, BinaryExpr):
            spine.append(node)
            node = node.lhs
        return spine, node

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BinaryExpr):
            return NotImplemented
        a: Expr = self
        b: Expr = other
        while isinstance(a, BinaryExpr) and isinstance(b, BinaryExpr):
            if a is b:
                return True
            if a.op != b.op or a.rhs != b.rhs:
                return False
            a, b = a.lhs, b.lhs
        return a == b

    def __hash__(self) -> int:
        spine, bottom = self.left_spine()
        h = hash(bottom)
        for node in reversed(spine):
            h = hash((node.op, h, node.rhs))
        return h

    def __repr__(self) -> str:
        spine, bottom = self.left_spine()
        head = "".join(f"BinaryExpr(op={node.op!r}, lhs=" for node in spine)
        tail = "".join(f", rhs={node.rhs!r})" for node in reversed(spine))
        return head + repr(bottom) + tail

    def to_dict(self) -> ASTDict:
        spine, bottom = self.left_spine()
        result = bottom.to_dict()
        for node in reversed(spine):
            result = {
                "kind": node.kind,
                "op": node.op,
                "lhs": result,
                "rhs": node.rhs.to_dict(),
            }
        return result


@dataclass(frozen=True)
class CallExpr:
    callee: str
    args: tuple["Expr", ...] = ()

    kind: ClassVar[str] = "call"

    def to_dict(self) -> ASTDict:
        return {
            "kind": self.kind,
            "callee": self.callee,
            "args": [a.to_dict() for a in self.args],
        }


@dataclass(frozen=True)
class Prototype:
    """The name and parameter names of a function.

    An empty name marks the anonymous function wrapped around a bare
    top-level expression. Parameter names are not checked for duplicates.
    """

    name: str
    params: tuple[str, ...] = ()

    kind: ClassVar[str] = "prototype"

    @property
    def is_anonymous(self) -> bool:
        return self.name == ANONYMOUS_FUNCTION_NAME

    def to_dict(self) -> ASTDict:
        return {"kind": self.kind, "name": self.name, "params": list(self.params)}


@dataclass(frozen=True)
class Function:
    proto: Prototype
    body: "Expr"

    kind: ClassVar[str] = "function"

    @property
    def is_anonymous(self) -> bool:
        return self.proto.is_anonymous

    def to_dict(self) -> ASTDict:
        return {
            "kind": self.kind,
            "proto": self.proto.to_dict(),
            "body": self.body.to_dict(),
        }


Expr = Union[NumberExpr, VariableExpr, BinaryExpr, CallExpr]
Node = Union[NumberExpr, VariableExpr, BinaryExpr, CallExpr, Prototype, Function]


__all__ = [
    "ASTDict",
    "BinaryExpr",
    "CallExpr",
    "Expr",
    "Function",
    "Node",
    "NumberExpr",
    "Prototype",
    "VariableExpr",
]
