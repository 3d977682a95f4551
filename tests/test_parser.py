from functools import reduce

import pytest
from hypothesis import given
from hypothesis import strategies as st

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
    ERR_ARG_LIST,
    ERR_EXPECTED_RPAREN,
    ERR_PROTO_LPAREN,
    ERR_PROTO_NAME,
    ERR_PROTO_RPAREN,
    ERR_TOO_DEEP,
    ERR_UNKNOWN_TOKEN,
)
from kaleid.kaleid_errors import KaleidSyntaxError
from kaleid.kaleid_lexer import CharacterStream, Lexer
from kaleid.kaleid_parser import ParseResult, Parser


def make_parser(source: str) -> Parser:
    return Parser(Lexer(CharacterStream(source)))


def parse_expr(source: str) -> Expr:
    return make_parser(source).parse_top_level_expr().unwrap().body


def num(value: float) -> NumberExpr:
    return NumberExpr(float(value))


def var(name: str) -> VariableExpr:
    return VariableExpr(name)


# Expressions


@pytest.mark.parametrize(
    "source,expected",
    [
        ("42", num(42)),
        ("x", var("x")),
        ("(x)", var("x")),
        ("((1))", num(1)),
        ("foo()", CallExpr("foo", ())),
        ("foo(1)", CallExpr("foo", (num(1),))),
        (
            "foo(1, x+2)",
            CallExpr("foo", (num(1), BinaryExpr("+", var("x"), num(2)))),
        ),
        ("f(g(x))", CallExpr("f", (CallExpr("g", (var("x"),)),))),
        (
            "1+2*3",
            BinaryExpr("+", num(1), BinaryExpr("*", num(2), num(3))),
        ),
        (
            "1-2-3",
            BinaryExpr("-", BinaryExpr("-", num(1), num(2)), num(3)),
        ),
        (
            "1*2+3",
            BinaryExpr("+", BinaryExpr("*", num(1), num(2)), num(3)),
        ),
        (
            "(1+2)*3",
            BinaryExpr("*", BinaryExpr("+", num(1), num(2)), num(3)),
        ),
        (
            "1+2*3-4",
            BinaryExpr(
                "-",
                BinaryExpr("+", num(1), BinaryExpr("*", num(2), num(3))),
                num(4),
            ),
        ),
        (
            "a < b + c",
            BinaryExpr("<", var("a"), BinaryExpr("+", var("b"), var("c"))),
        ),
        (
            "a + b < c * d",
            BinaryExpr(
                "<",
                BinaryExpr("+", var("a"), var("b")),
                BinaryExpr("*", var("c"), var("d")),
            ),
        ),
        (
            "a < b < c",
            BinaryExpr("<", BinaryExpr("<", var("a"), var("b")), var("c")),
        ),
        (
            "1 + 2 * 3 * 4 + 5",
            BinaryExpr(
                "+",
                BinaryExpr(
                    "+",
                    num(1),
                    BinaryExpr("*", BinaryExpr("*", num(2), num(3)), num(4)),
                ),
                num(5),
            ),
        ),
    ],
)
def test_expressions(source: str, expected: Expr) -> None:
    assert parse_expr(source) == expected


def test_expression_stops_at_non_operator() -> None:
    parser = make_parser("a b")
    assert parser.parse_top_level_expr().unwrap().body == var("a")
    assert parser.current.type == "IDENT"
    assert parser.current.value == "b"


def test_unlisted_character_is_not_an_operator() -> None:
    parser = make_parser("a / b")
    assert parser.parse_top_level_expr().unwrap().body == var("a")
    assert parser.current.is_char("/")


@given(st.lists(st.integers(min_value=0, max_value=999), min_size=1, max_size=8))  # type: ignore[misc]
def test_equal_precedence_is_left_associative(values: list[int]) -> None:
    source = " - ".join(str(v) for v in values)
    expected = reduce(
        lambda lhs, v: BinaryExpr("-", lhs, num(v)), values[1:], num(values[0])
    )
    assert parse_expr(source) == expected


@given(
    st.lists(st.integers(min_value=0, max_value=99), min_size=2, max_size=6),
    st.integers(min_value=0, max_value=99),
)  # type: ignore[misc]
def test_product_binds_tighter_than_sum(factors: list[int], addend: int) -> None:
    source = f"{addend} + " + " * ".join(str(f) for f in factors)
    product = reduce(
        lambda lhs, v: BinaryExpr("*", lhs, num(v)), factors[1:], num(factors[0])
    )
    assert parse_expr(source) == BinaryExpr("+", num(addend), product)


# Top-level units


def test_definition() -> None:
    result = make_parser("def foo(a b) a+b").parse_definition()
    assert result.ok
    assert result.node == Function(
        Prototype("foo", ("a", "b")),
        BinaryExpr("+", var("a"), var("b")),
    )


def test_definition_without_parameters() -> None:
    fn = make_parser("def answer() 42").parse_definition().unwrap()
    assert fn.proto == Prototype("answer", ())
    assert fn.body == num(42)


def test_duplicate_parameters_are_kept() -> None:
    fn = make_parser("def f(a a) a").parse_definition().unwrap()
    assert fn.proto.params == ("a", "a")


def test_extern() -> None:
    result = make_parser("extern foo(a)").parse_extern()
    assert result.node == Prototype("foo", ("a",))
    assert result.node.kind == "prototype"


def test_top_level_expression_is_anonymous_function() -> None:
    fn = make_parser("x * 2").parse_top_level_expr().unwrap()
    assert fn.proto == Prototype("", ())
    assert fn.is_anonymous
    assert fn.body == BinaryExpr("*", var("x"), num(2))


def test_lookahead_after_success() -> None:
    parser = make_parser("def f(x) x;")
    parser.parse_definition().unwrap()
    assert parser.current.is_char(";")


def test_parse_top_level_dispatch() -> None:
    parser = make_parser(";; def f(x) x; extern g(a b); f(1) ;")
    first = parser.parse_top_level()
    second = parser.parse_top_level()
    third = parser.parse_top_level()
    assert first is not None and second is not None and third is not None
    assert first.node == Function(Prototype("f", ("x",)), var("x"))
    assert second.node == Prototype("g", ("a", "b"))
    assert third.node == Function(Prototype(""), CallExpr("f", (num(1),)))
    assert parser.parse_top_level() is None


def test_parse_top_level_empty_input() -> None:
    assert make_parser("").parse_top_level() is None
    assert make_parser(" ; ;\n# nothing\n").parse_top_level() is None


# Errors


@pytest.mark.parametrize(
    "source,message,stop_type,stop_value",
    [
        ("foo(1,2", ERR_ARG_LIST, "EOF", "EOF"),
        ("foo(1 2)", ERR_ARG_LIST, "NUMBER", 2.0),
        ("", ERR_UNKNOWN_TOKEN, "EOF", "EOF"),
        ("1 + )", ERR_UNKNOWN_TOKEN, "CHAR", ")"),
        ("def", ERR_UNKNOWN_TOKEN, "DEF", "def"),
        ("(1+2", ERR_EXPECTED_RPAREN, "EOF", "EOF"),
        ("(1 2)", ERR_EXPECTED_RPAREN, "NUMBER", 2.0),
        ("foo(,)", ERR_UNKNOWN_TOKEN, "CHAR", ","),
    ],
)
def test_expression_errors(
    source: str, message: str, stop_type: str, stop_value: str | float
) -> None:
    parser = make_parser(source)
    result = parser.parse_top_level_expr()
    assert not result
    assert result.node is None
    assert result.message == message
    assert (parser.current.type, parser.current.value) == (stop_type, stop_value)


@pytest.mark.parametrize(
    "source,message",
    [
        ("def (x) x", ERR_PROTO_NAME),
        ("def 1(x) x", ERR_PROTO_NAME),
        ("def foo x", ERR_PROTO_LPAREN),
        ("def foo(a, b) a", ERR_PROTO_RPAREN),
        ("def foo(a", ERR_PROTO_RPAREN),
        ("def foo(a) )", ERR_UNKNOWN_TOKEN),
    ],
)
def test_definition_errors(source: str, message: str) -> None:
    result = make_parser(source).parse_definition()
    assert not result.ok
    assert result.message == message


@pytest.mark.parametrize(
    "source,message",
    [
        ("extern", ERR_PROTO_NAME),
        ("extern 1", ERR_PROTO_NAME),
        ("extern f", ERR_PROTO_LPAREN),
        ("extern f(1)", ERR_PROTO_RPAREN),
    ],
)
def test_extern_errors(source: str, message: str) -> None:
    result = make_parser(source).parse_extern()
    assert not result.ok
    assert result.message == message


def test_prototype_error_leaves_lookahead_on_offender() -> None:
    parser = make_parser("def foo(a, b) a")
    parser.parse_definition()
    assert parser.current.is_char(",")


def test_error_location() -> None:
    result = make_parser("x +\n  )").parse_top_level_expr()
    assert result.error is not None
    assert (result.error.line, result.error.col) == (2, 3)
    assert result.error.describe() == f"2:3: error: {ERR_UNKNOWN_TOKEN}"


def test_deeply_nested_parens_fail_without_raising() -> None:
    depth = 1000
    result = make_parser("(" * depth + "1" + ")" * depth).parse_top_level_expr()
    assert not result.ok
    assert result.message == ERR_TOO_DEEP


def test_deeply_nested_calls_fail_without_raising() -> None:
    depth = 1000
    result = make_parser("f(" * depth + "x" + ")" * depth).parse_top_level()
    assert result is not None
    assert result.message == ERR_TOO_DEEP


def test_deep_definition_body_fails_without_raising() -> None:
    result = make_parser("def f(x) " + "(" * 1000 + "x").parse_definition()
    assert result.message == ERR_TOO_DEEP


def test_moderate_nesting_parses() -> None:
    assert parse_expr("(" * 50 + "1" + ")" * 50) == num(1)
    assert parse_expr("f(" * 50 + "1" + ")" * 50).to_dict()["kind"] == "call"


def test_long_operator_chain_is_a_left_spine() -> None:
    body = parse_expr("+".join(["1"] * 1500))
    assert isinstance(body, BinaryExpr)
    spine, bottom = body.left_spine()
    assert len(spine) == 1499
    assert bottom == num(1)


def test_unwrap_raises_stored_error() -> None:
    result = make_parser("foo(1,2").parse_top_level_expr()
    with pytest.raises(KaleidSyntaxError, match="argument list"):
        result.unwrap()


def test_errors_are_syntax_errors() -> None:
    err = KaleidSyntaxError("boom")
    assert isinstance(err, SyntaxError)
    assert str(err) == "boom"
    assert err.describe() == "error: boom"


def test_parse_result_truthiness() -> None:
    good: ParseResult[Prototype] = ParseResult(node=Prototype("f"))
    bad: ParseResult[Prototype] = ParseResult(error=KaleidSyntaxError("x"))
    assert good and good.ok and good.message is None
    assert not bad and bad.message == "x"


# Precedence table


def test_custom_precedence_table() -> None:
    parser = Parser(Lexer("1+2*3"), precedence={"+": 50, "*": 10})
    assert parser.parse_top_level_expr().unwrap().body == BinaryExpr(
        "*", BinaryExpr("+", num(1), num(2)), num(3)
    )


def test_custom_operator() -> None:
    parser = Parser(Lexer("a / b - c"), precedence={"/": 40, "-": 20})
    assert parser.parse_top_level_expr().unwrap().body == BinaryExpr(
        "-", BinaryExpr("/", var("a"), var("b")), var("c")
    )


def test_non_positive_precedence_is_not_an_operator() -> None:
    parser = Parser(Lexer("1 + 2"), precedence={"+": 0})
    assert parser.parse_top_level_expr().unwrap().body == num(1)
    assert parser.current.is_char("+")


def test_precedence_table_is_per_instance() -> None:
    first = make_parser("1")
    second = make_parser("2")
    first.binop_precedence["+"] = 99
    assert second.binop_precedence["+"] == 20


def test_independent_parsers_interleave() -> None:
    left = make_parser("def f(x) x; 1+2")
    right = make_parser("extern g(); 3*4")
    a1 = left.parse_top_level()
    b1 = right.parse_top_level()
    a2 = left.parse_top_level()
    b2 = right.parse_top_level()
    assert a1 is not None and a1.node == Function(Prototype("f", ("x",)), var("x"))
    assert b1 is not None and b1.node == Prototype("g", ())
    assert a2 is not None and a2.node.body == BinaryExpr("+", num(1), num(2))
    assert b2 is not None and b2.node.body == BinaryExpr("*", num(3), num(4))
