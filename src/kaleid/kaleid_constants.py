"""
Shared tables for the Kaleid lexer and parser.

Exports:
    - keyword_tokens: reserved words mapped to their token types
    - BINOP_PRECEDENCE: default binary operator precedence (higher binds tighter)
    - ANONYMOUS_FUNCTION_NAME: prototype name given to bare top-level expressions
    - diagnostic messages reported by the parser
"""

keyword_tokens: dict[str, str] = {
    "def": "DEF",
    "extern": "EXTERN",
}

BINOP_PRECEDENCE: dict[str, int] = {
    "<": 10,
    "+": 20,
    "-": 20,
    "*": 40,
}

NOT_AN_OPERATOR = -1

ANONYMOUS_FUNCTION_NAME = ""

# Diagnostics (kept verbatim for tools that match on them)
ERR_EXPECTED_RPAREN = "expected: ')'"
ERR_ARG_LIST = "expected ')' or ',' in argument list"
ERR_UNKNOWN_TOKEN = "unknown token when expecting an expression"
ERR_PROTO_NAME = "expected function name in prototype"
ERR_PROTO_LPAREN = "expected '(' in prototype"
ERR_PROTO_RPAREN = "expected ')' in prototype"
ERR_TOO_DEEP = "expression nested too deeply"

SOURCE_SUFFIX = ".kl"
