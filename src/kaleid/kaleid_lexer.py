"""
Lexical analyzer for the Kaleid language.

This module turns a character source into tokens, one token per request:

Classes:
    CharacterSource: Protocol for anything that yields one character per call.
    CharacterStream: Character source over an in-memory string.
    TextIOCharacterSource: Character source over a text stream (e.g. stdin).
    Token: A single token with type, value, and source location.
    Lexer: Converts a character source into tokens on demand.

Token types:
    - EOF: input exhausted (returned again on every later call)
    - DEF / EXTERN: the two keywords
    - IDENT: an identifier; value is the name
    - NUMBER: a numeric literal; value is a float
    - CHAR: any other single character; value is that character

Features:
    - Skips whitespace and single-line comments (`#` to end of line)
    - Numbers are read leniently: `3.14.5` is the number 3.14, never an error
    - Keeps exactly one character of lookahead between calls

Example:
    >>> lexer = Lexer(CharacterStream("def foo(x) x * 2"))
    >>> lexer.next_token()
    Token(DEF, def)

Exports:
    - CharacterSource
    - CharacterStream
    - TextIOCharacterSource
    - Token
    - Lexer
    - tokenize
"""

import re
from collections.abc import Iterator
from typing import Any, Protocol, TextIO

from kaleid.kaleid_constants import keyword_tokens

NUMBER_CHARS = "0123456789."

_NUMERAL_PREFIX = re.compile(r"[0-9]*\.?[0-9]*")


class CharacterSource(Protocol):
    """Anything the lexer can pull characters from.

    ``next()`` returns one character, or ``None`` once the input is exhausted
    (and keeps returning ``None`` afterwards). ``line`` and ``column`` give the
    1-based location of the character the next call will return.
    """

    line: int
    column: int

    def next(self) -> str | None: ...


class CharacterStream:
    """
    Reads characters from a string with line and column tracking.

    Attributes:
        source (str): The input source string.
        position (int): Current index in the source.
        line (int): Current line number (1-indexed).
        column (int): Current column number (1-indexed).
    """

    def __init__(self, source: str, position: int = 0, line: int = 1, column: int = 1):
        self.source = source
        self.position = position
        self.line = line
        self.column = column

    def next(self) -> str | None:
        """
        Consumes and returns the next character in the stream.

        Returns:
            str | None: The next character, or None past the end of the source.
        """
        if self.position >= len(self.source):
            return None
        char = self.source[self.position]
        if char == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        self.position += 1
        return char

    def end_of_file(self) -> bool:
        """Checks if the stream has consumed all characters."""
        return self.position >= len(self.source)


class TextIOCharacterSource:
    """Reads characters one at a time from a text stream such as ``sys.stdin``.

    Nothing is read ahead of the lexer's request, so an interactive stream
    only blocks when the lexer actually needs the next character.
    """

    def __init__(self, stream: TextIO) -> None:
        self.stream = stream
        self.line = 1
        self.column = 1
        self._exhausted = False

    def next(self) -> str | None:
        if self._exhausted:
            return None
        char = self.stream.read(1)
        if char == "":
            self._exhausted = True
            return None
        if char == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return char


class Token:
    """Represents a single lexical token in the Kaleid language.

    Attributes:
        type (str): The token type ('EOF', 'DEF', 'EXTERN', 'IDENT', 'NUMBER', 'CHAR').
        value (str | float): The name, numeric value, or character of the token.
        line (int): The 1-based line number where the token starts.
        col (int): The 1-based column number where the token starts.
    """

    def __init__(self, type_: str, value: str | float, line: int = 0, col: int = 0):
        self.type = type_
        self.value = value
        self.line = line
        self.col = col

    def is_char(self, char: str) -> bool:
        """Returns True if this is the single-character token ``char``."""
        return self.type == "CHAR" and self.value == char

    def __repr__(self) -> str:
        return f"Token({self.type}, {self.value})"

    def __eq__(self, other: Any) -> bool:
        return (
            isinstance(other, Token)
            and self.type == other.type
            and self.value == other.value
            and self.line == other.line
            and self.col == other.col
        )

    def __hash__(self) -> int:
        return hash((self.type, self.value, self.line, self.col))


def parse_numeral(text: str) -> float:
    """Converts a run of digits and dots to a float, keeping the longest valid prefix.

    ``"3.14.5"`` gives 3.14 and ``"."`` gives 0.0, the way C's ``strtod`` reads them.
    """
    prefix = _NUMERAL_PREFIX.match(text).group()  # type: ignore[union-attr]
    if prefix in ("", "."):
        return 0.0
    return float(prefix)


class Lexer:
    """Lexical analyzer for the Kaleid language.

    The Lexer pulls characters from a CharacterSource and produces one Token
    per call to ``next_token()``. The last character read but not yet
    classified is kept in ``last_char`` between calls.

    Attributes:
        stream (CharacterSource): The source to tokenize.
        last_char (str | None): One character of lookahead; None once exhausted.
    """

    def __init__(self, stream: CharacterSource | str) -> None:
        """Initializes the Lexer.

        Args:
            stream (CharacterSource | str): A character source, or a string to
                wrap in a CharacterStream.
        """
        if isinstance(stream, str):
            stream = CharacterStream(stream)
        self.stream: CharacterSource = stream
        self.last_char: str | None = " "
        self.line = stream.line
        self.col = stream.column

    def advance(self) -> str | None:
        """Reads the next character into the lookahead and returns it."""
        self.line, self.col = self.stream.line, self.stream.column
        self.last_char = self.stream.next()
        return self.last_char

    def skip_whitespace(self) -> None:
        while self.last_char is not None and self.last_char.isspace():
            self.advance()

    def skip_comment(self) -> None:
        """Discards characters up to the end of the line or the end of input."""
        while self.last_char is not None and self.last_char not in "\n\r":
            self.advance()

    def next_token(self) -> Token:
        """Consumes characters until one complete token is identified.

        Returns:
            Token: The next token. Never raises for any input.
        """
        while True:
            self.skip_whitespace()

            ch = self.last_char
            line, col = self.line, self.col

            if ch is None:
                return Token("EOF", "EOF", line, col)

            # 1. Identifier or keyword
            if ch.isalpha():
                name = ""
                while self.last_char is not None and self.last_char.isalnum():
                    name += self.last_char
                    self.advance()
                return Token(keyword_tokens.get(name, "IDENT"), name, line, col)

            # 2. Number, read without validating the number of dots
            if ch in NUMBER_CHARS:
                text = ""
                while self.last_char is not None and self.last_char in NUMBER_CHARS:
                    text += self.last_char
                    self.advance()
                return Token("NUMBER", parse_numeral(text), line, col)

            # 3. Comment; start over unless it ran into the end of input
            if ch == "#":
                self.skip_comment()
                if self.last_char is not None:
                    continue
                return Token("EOF", "EOF", self.line, self.col)

            # 4. Any other character stands for itself
            self.advance()
            return Token("CHAR", ch, line, col)

    def __iter__(self) -> Iterator[Token]:
        """Yields tokens up to, but not including, EOF."""
        while True:
            tok = self.next_token()
            if tok.type == "EOF":
                return
            yield tok


def tokenize(source: str) -> list[Token]:
    """Tokenizes a whole string; the returned list always ends with EOF."""
    lexer = Lexer(CharacterStream(source))
    tokens = []
    while True:
        tok = lexer.next_token()
        tokens.append(tok)
        if tok.type == "EOF":
            break
    return tokens


__all__ = [
    "CharacterSource",
    "CharacterStream",
    "Lexer",
    "TextIOCharacterSource",
    "Token",
    "parse_numeral",
    "tokenize",
]
