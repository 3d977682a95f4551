"""
Read loop for Kaleid.

Drives a Parser over a whole input, one top-level unit at a time:

    - end of input stops the loop
    - a `;` is discarded
    - `def`, `extern` or anything else is parsed as a definition, an extern,
      or a top-level expression
    - after a failed parse exactly one token is discarded before the next try

The single-token discard is deliberately crude: an error spanning several
tokens can produce follow-on errors before the loop gets back in step.

Functions:
    main_loop(parser, on_result, on_ready=None) -> None
    parse_program(source) -> list[ParseResult]
    describe_unit(node) -> str
    start_repl(stream=None, err=None, verbose=False) -> None
"""

import logging
import sys
from collections.abc import Callable
from typing import Any, TextIO

from kaleid.kaleid_ast import Function, Prototype
from kaleid.kaleid_lexer import Lexer, TextIOCharacterSource
from kaleid.kaleid_parser import ParseResult, Parser

logger = logging.getLogger(__name__)


def main_loop(
    parser: Parser,
    on_result: Callable[[ParseResult[Any]], None],
    on_ready: Callable[[], None] | None = None,
) -> None:
    """Parses top-level units until end of input, reporting each outcome.

    Args:
        parser (Parser): The parser to drive; its lookahead must already be primed.
        on_result (Callable): Called with the ParseResult of every unit attempted.
        on_ready (Callable, optional): Called before each unit, e.g. to show a prompt.
    """
    while True:
        if on_ready is not None:
            on_ready()

        tok = parser.current
        if tok.type == "EOF":
            return
        if tok.is_char(";"):
            parser.advance()
            continue

        result = parser.parse_top_level()
        if result is None:
            return
        on_result(result)

        if not result:
            logger.debug("discarding %r to resynchronize", parser.current)
            parser.advance()


def parse_program(source: str) -> list[ParseResult[Any]]:
    """Parses every top-level unit in ``source`` and returns all outcomes in order."""
    results: list[ParseResult[Any]] = []
    main_loop(Parser(Lexer(source)), results.append)
    return results


def describe_unit(node: Function | Prototype) -> str:
    if isinstance(node, Prototype):
        return "an extern"
    if node.is_anonymous:
        return "a top-level expr"
    return "a function definition"


def start_repl(
    stream: TextIO | None = None, err: TextIO | None = None, verbose: bool = False
) -> None:
    """Runs the interactive read loop.

    Characters are read one at a time from ``stream`` (stdin by default).
    Prompts, parse reports and diagnostics go to ``err`` (stderr by default).
    End of input leaves the loop.
    """
    stream = stream if stream is not None else sys.stdin
    err = err if err is not None else sys.stderr

    def ready() -> None:
        print("ready> ", end="", file=err, flush=True)

    def report(result: ParseResult[Any]) -> None:
        if result.ok:
            print(f"parsed {describe_unit(result.node)}", file=err)
            if verbose:
                print(f"[ast] >>> {result.node!r}", file=err)
        else:
            print(f"error: {result.message}", file=err)

    print("Kaleid REPL. Press Ctrl-D to exit.", file=err)
    try:
        ready()
        parser = Parser(Lexer(TextIOCharacterSource(stream)))
        main_loop(parser, report, on_ready=ready)
        print(file=err)
    except KeyboardInterrupt:
        print("\nExiting Kaleid REPL.", file=err)


def main() -> None:
    start_repl()


if __name__ == "__main__":
    main()
