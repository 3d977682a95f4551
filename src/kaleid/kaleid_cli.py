"""
Kaleid CLI Entrypoint.

This module provides the command-line interface for the Kaleid front-end.
It parses source files or inline strings and reports what it found.

Features:
    - Read source from `.kl` files or inline strings.
    - Print the token stream, the AST as JSON, or the parsed program re-printed as source.
    - Report every syntax error to stderr and keep going, as the REPL does.
    - Launch the interactive REPL.

Example usage:
    kaleid hello.kl
    kaleid -s "def add(a b) a + b"
    kaleid -s "foo(1, 2)" --json
    kaleid hello.kl --tokens -o tokens.txt
    kaleid --repl --verbose

Functions:
    dump_json(value: object, indent: int = 2) -> str:
        Formats JSON like `json.dumps(..., indent=2)` at any nesting depth.

    run_kaleid(source: str, is_string: bool = False, output: str = "source", out: str | None = None) -> bool:
        Lexes and parses the source, writes the chosen output, and returns True if every unit parsed.

    main() -> None:
        Parses CLI arguments and invokes the appropriate action (REPL or parse).
"""

import argparse
import json
import logging
import sys

from kaleid.kaleid_constants import SOURCE_SUFFIX
from kaleid.kaleid_lexer import tokenize
from kaleid.kaleid_printer import program_to_source
from kaleid.kaleid_repl import parse_program, start_repl

logger = logging.getLogger(__name__)

OUTPUT_CHOICES = ("source", "tokens", "json")


def dump_json(value: object, indent: int = 2) -> str:
    """
    Same text as `json.dumps(value, indent=indent)`, built with an explicit stack.

    `json.dumps` recurses once per nesting level, and a long operator chain
    nests one level per operator.
    """
    parts: list[str] = []
    # str items are finished text; tuples are (value, depth) still to encode
    stack: list[str | tuple[object, int]] = [(value, 0)]
    while stack:
        item = stack.pop()
        if isinstance(item, str):
            parts.append(item)
            continue
        obj, depth = item
        if isinstance(obj, dict):
            entries = [(json.dumps(k) + ": ", v) for k, v in obj.items()]
            opener, closer = "{", "}"
        elif isinstance(obj, list):
            entries = [("", v) for v in obj]
            opener, closer = "[", "]"
        else:
            parts.append(json.dumps(obj))
            continue
        if not entries:
            parts.append(opener + closer)
            continue
        inner = "\n" + " " * (indent * (depth + 1))
        todo: list[str | tuple[object, int]] = []
        for i, (prefix, v) in enumerate(entries):
            todo.append(("," if i else "") + inner + prefix)
            todo.append((v, depth + 1))
        todo.append("\n" + " " * (indent * depth) + closer)
        parts.append(opener)
        stack.extend(reversed(todo))
    return "".join(parts)


def run_kaleid(
    source: str,
    is_string: bool = False,
    output: str = "source",
    out: str | None = None,
) -> bool:
    """
    Run the Kaleid front-end: lex, parse, and print or write the result.

    Args:
        source (str): Kaleid source code or path to a `.kl` file.
        is_string (bool): If True, treats `source` as raw code instead of a file path.
        output (str): What to produce: 'source' (re-printed program), 'tokens', or 'json'.
        out (str | None): Optional path to write the output to. If None, prints to stdout.

    Returns:
        bool: True if every top-level unit parsed, False if any syntax error was reported.

    Raises:
        ValueError: If `is_string` is False and the source does not end with '.kl',
            or if `output` is not a known choice.

    Side Effects:
        - Prints results to stdout (or writes them to `out`).
        - Prints one line per syntax error to stderr.
    """
    if output not in OUTPUT_CHOICES:
        raise ValueError(f"Unknown output kind: {output}")
    if not is_string and not source.endswith(SOURCE_SUFFIX):
        raise ValueError(f"Only {SOURCE_SUFFIX} files are supported.")

    # 1. Read source
    if not is_string:
        with open(source, encoding="utf-8") as f:
            source = f.read()

    ok = True

    # 2. Tokens only
    if output == "tokens":
        text = "".join(
            f"{tok.line}:{tok.col}\t{tok.type}\t{tok.value}\n" for tok in tokenize(source)
        )
    else:
        # 3. Parsing, with the REPL's recovery policy
        results = parse_program(source)
        nodes = []
        for result in results:
            if result.error is not None:
                ok = False
                print(result.error.describe(), file=sys.stderr)
            else:
                nodes.append(result.node)
        logger.info("parsed %d of %d top-level units", len(nodes), len(results))

        if output == "json":
            text = dump_json([n.to_dict() for n in nodes]) + "\n"
        else:
            text = program_to_source(nodes)

    # 4. Output result
    if out:
        with open(out, "w", encoding="utf-8") as f:
            f.write(text)
        logger.info("wrote %s", out)
    else:
        print(text, end="")

    return ok


def main() -> None:
    """
    Entry point for the Kaleid CLI.

    Parses command-line arguments and dispatches to the appropriate mode:
    - Launches the REPL if no arguments are passed or `--repl` is specified.
    - Otherwise, parses the source and prints the selected output.

    Supported flags:
        - `-s`, `--string`: Interpret source as a raw string instead of a file path.
        - `--tokens`: Print the token stream instead of parsing.
        - `--json`: Print the AST as JSON.
        - `-o`, `--out`: Write output to a file.
        - `--repl`: Launch the interactive REPL.
        - `--verbose`: Show the AST of each unit in the REPL.
        - `--log-level`: Logging level (default: WARNING).

    Exits with status 1 if any syntax error was reported, and 2 if the source
    cannot be read or is nested too deeply to process.
    """
    if len(sys.argv) == 1:
        # No args passed: open REPL instead
        start_repl()
        return
    parser = argparse.ArgumentParser(prog="kaleid")
    parser.add_argument("source", nargs="?", help="Filename or raw source (with -s)")
    parser.add_argument(
        "-s", "--string", action="store_true", help="Interpret source as literal string"
    )
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "--tokens",
        dest="output",
        action="store_const",
        const="tokens",
        help="Print the token stream",
    )
    group.add_argument(
        "--json",
        dest="output",
        action="store_const",
        const="json",
        help="Print the AST as JSON",
    )
    parser.set_defaults(output="source")
    parser.add_argument("-o", "--out", metavar="OUTFILE", help="Output to file")
    parser.add_argument(
        "--repl",
        action="store_true",
        help="Launch interactive REPL instead of parsing",
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Verbose REPL mode (if --repl)"
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Logging level (default: WARNING)",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.repl or args.source is None:
        start_repl(verbose=args.verbose)
        return

    try:
        ok = run_kaleid(
            source=args.source,
            is_string=args.string,
            output=args.output,
            out=args.out,
        )
    except (OSError, ValueError) as e:
        print(f"kaleid: {e}", file=sys.stderr)
        sys.exit(2)
    except RecursionError:
        print("kaleid: program is nested too deeply to process", file=sys.stderr)
        sys.exit(2)
    if not ok:
        sys.exit(1)


if __name__ == "__main__" and not any("pytest" in arg for arg in sys.argv):
    main()
