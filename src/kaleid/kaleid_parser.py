"""
Kaleid Language Parser

Parses Kaleid tokens into abstract syntax trees (ASTs), one top-level unit at a time.

The parser pulls tokens from a `Lexer` on demand and keeps a single token of
lookahead in `current`. Primary expressions are parsed by recursive descent and
binary operators by precedence climbing over a per-instance precedence table.

Supported Constructs
--------------------
- Expressions:
    * Numbers: `4`, `3.14`
    * Variables: `x`
    * Calls: `foo()`, `foo(1, x + 2)`
    * Parentheses: `(a + b) * c`
    * Binary operators: `<` (10), `+` `-` (20), `*` (40); higher binds tighter,
      equal precedence associates to the left
- Top-level units:
    * Definitions: `def name(a b) body`
    * Extern declarations: `extern name(a b)`
    * Bare expressions, wrapped in an anonymous zero-parameter function

Parser Behavior
---------------
- No backtracking: every decision is made from the current token.
- A syntax error is raised as `KaleidSyntaxError` where it is found and turned
  into a failed `ParseResult` by the public entry point; no exception escapes.
  Nesting deeper than the interpreter stack allows fails the same way, with
  "expression nested too deeply" reported at the token reached.
- On failure nothing is returned and `current` is left at the offending token.
  Resynchronizing is the caller's job (see `kaleid_repl.main_loop`).

Entry Points
------------
- `parse_definition()`: Parse `def` prototype expression.
- `parse_extern()`: Parse `extern` prototype.
- `parse_top_level_expr()`: Parse a bare expression as an anonymous function.
- `parse_top_level()`: Skip `;` and dispatch on the current token (None at EOF).
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Generic, TypeVar

from kaleid.kaleid_ast import (
    BinaryExpr,
    CallExpr,
    Expr,
    Function,
    NumberExpr,
    Prototype,
    VariableExpr,
)
from kaleid.kaleid_constants import (
    ANONYMOUS_FUNCTION_NAME,
    BINOP_PRECEDENCE,
    ERR_ARG_LIST,
    ERR_EXPECTED_RPAREN,
    ERR_PROTO_LPAREN,
    ERR_PROTO_NAME,
    ERR_PROTO_RPAREN,
    ERR_TOO_DEEP,
    ERR_UNKNOWN_TOKEN,
    NOT_AN_OPERATOR,
)
from kaleid.kaleid_errors import KaleidSyntaxError
from kaleid.kaleid_lexer import Lexer, Token

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ParseResult(Generic[T]):
    """Outcome of parsing one construct: a node, or the error that stopped it.

    Exactly one of `node` and `error` is set. The result is truthy on success.
    """

    node: T | None = None
    error: KaleidSyntaxError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def message(self) -> str | None:
        return self.error.message if self.error is not None else None

    def __bool__(self) -> bool:
        return self.ok

    def unwrap(self) -> T:
        """Returns the node, or raises the stored error."""
        if self.error is not None:
            raise self.error
        assert self.node is not None  # for mypy
        return self.node


class Parser:
    """
    Kaleid Parser Class

    Transforms the token stream of a `Lexer` into AST nodes, one top-level unit
    per call. Each instance owns its lookahead and its precedence table, so
    independent parsers never share state.

    Attributes
    ----------
    lexer : Lexer
        The token source.
    current : Token
        The single token of lookahead.
    binop_precedence : dict[str, int]
        Operator character to precedence; higher binds tighter.

    Methods
    -------
    parse_definition() -> ParseResult[Function]
    parse_extern() -> ParseResult[Prototype]
    parse_top_level_expr() -> ParseResult[Function]
    parse_top_level() -> ParseResult | None
    """

    def __init__(self, lexer: Lexer, precedence: Mapping[str, int] | None = None) -> None:
        self.lexer = lexer
        self.binop_precedence: dict[str, int] = dict(
            BINOP_PRECEDENCE if precedence is None else precedence
        )
        self.current: Token = self.lexer.next_token()

    def advance(self) -> Token:
        """Reads the next token into the lookahead and returns it."""
        self.current = self.lexer.next_token()
        return self.current

    def error(self, message: str) -> KaleidSyntaxError:
        tok = self.current
        return KaleidSyntaxError(message, line=tok.line, col=tok.col)

    def precedence(self) -> int:
        """Precedence of the current token as a binary operator, or -1 if it is not one."""
        tok = self.current
        if tok.type != "CHAR":
            return NOT_AN_OPERATOR
        prec = self.binop_precedence.get(str(tok.value), NOT_AN_OPERATOR)
        if prec <= 0:
            return NOT_AN_OPERATOR
        return prec

    # Public entry points

    def parse_definition(self) -> ParseResult[Function]:
        """Parse `def` prototype expression into a Function."""
        return self._run(self._definition, "definition")

    def parse_extern(self) -> ParseResult[Prototype]:
        """Parse `extern` prototype into a Prototype."""
        return self._run(self._extern, "extern")

    def parse_top_level_expr(self) -> ParseResult[Function]:
        """Parse a bare expression and wrap it in an anonymous Function."""
        return self._run(self._top_level_expr, "top-level expression")

    def parse_top_level(self) -> ParseResult[Function] | ParseResult[Prototype] | None:
        """Parse the next top-level unit.

        Skips any `;` separators first. Returns None at end of input, otherwise
        the result of parse_definition, parse_extern or parse_top_level_expr
        depending on the current token.
        """
        while self.current.is_char(";"):
            self.advance()
        tok = self.current
        if tok.type == "EOF":
            return None
        if tok.type == "DEF":
            return self.parse_definition()
        if tok.type == "EXTERN":
            return self.parse_extern()
        return self.parse_top_level_expr()

    def _run(self, rule: Callable[[], T], what: str) -> ParseResult[T]:
        try:
            node = rule()
        except KaleidSyntaxError as e:
            logger.debug(
                "failed to parse %s at %d:%d: %s", what, e.line, e.col, e.message
            )
            return ParseResult(error=e)
        except RecursionError:
            error = self.error(ERR_TOO_DEEP)
            logger.debug("gave up on %s at %d:%d: too deep", what, error.line, error.col)
            return ParseResult(error=error)
        logger.debug("parsed %s: %r", what, node)
        return ParseResult(node=node)

    # Top-level rules

    def _definition(self) -> Function:
        self.advance()  # eat 'def'
        proto = self.parse_prototype()
        body = self.parse_expression()
        return Function(proto, body)

    def _extern(self) -> Prototype:
        self.advance()  # eat 'extern'
        return self.parse_prototype()

    def _top_level_expr(self) -> Function:
        body = self.parse_expression()
        return Function(Prototype(ANONYMOUS_FUNCTION_NAME, ()), body)

    # Grammar rules; each raises KaleidSyntaxError on failure

    def parse_prototype(self) -> Prototype:
        """Parse `name ( param* )`."""
        if self.current.type != "IDENT":
            raise self.error(ERR_PROTO_NAME)
        name = str(self.current.value)
        self.advance()

        if not self.current.is_char("("):
            raise self.error(ERR_PROTO_LPAREN)

        params: list[str] = []
        while self.advance().type == "IDENT":
            params.append(str(self.current.value))

        if not self.current.is_char(")"):
            raise self.error(ERR_PROTO_RPAREN)
        self.advance()

        return Prototype(name, tuple(params))

    def parse_expression(self) -> Expr:
        """Parse a primary expression followed by any binary operators."""
        lhs = self.parse_primary()
        return self.parse_binop_rhs(0, lhs)

    def parse_binop_rhs(self, min_prec: int, lhs: Expr) -> Expr:
        """Precedence climbing: fold operators binding at least `min_prec` into `lhs`."""
        while True:
            prec = self.precedence()
            if prec < min_prec:
                return lhs

            op = str(self.current.value)
            self.advance()

            rhs = self.parse_primary()

            # A tighter operator after rhs takes rhs as its left operand
            if prec < self.precedence():
                rhs = self.parse_binop_rhs(prec + 1, rhs)

            lhs = BinaryExpr(op, lhs, rhs)

    def parse_primary(self) -> Expr:
        tok = self.current
        if tok.type == "IDENT":
            return self.parse_identifier_expr()
        if tok.type == "NUMBER":
            return self.parse_number_expr()
        if tok.is_char("("):
            return self.parse_paren_expr()
        raise self.error(ERR_UNKNOWN_TOKEN)

    def parse_number_expr(self) -> NumberExpr:
        node = NumberExpr(float(self.current.value))
        self.advance()
        return node

    def parse_paren_expr(self) -> Expr:
        self.advance()  # eat '('
        expr = self.parse_expression()
        if not self.current.is_char(")"):
            raise self.error(ERR_EXPECTED_RPAREN)
        self.advance()
        return expr

    def parse_identifier_expr(self) -> Expr:
        """Parse a variable reference, or a call when the name is followed by `(`."""
        name = str(self.current.value)
        self.advance()

        if not self.current.is_char("("):
            return VariableExpr(name)

        self.advance()  # eat '('
        args: list[Expr] = []
        if not self.current.is_char(")"):
            while True:
                args.append(self.parse_expression())
                if self.current.is_char(")"):
                    break
                if not self.current.is_char(","):
                    raise self.error(ERR_ARG_LIST)
                self.advance()
        self.advance()  # eat ')'

        return CallExpr(name, tuple(args))


__all__ = ["ParseResult", "Parser"]
