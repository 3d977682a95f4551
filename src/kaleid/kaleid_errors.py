"""
Error type for the Kaleid front-end.

There is exactly one error kind: a syntax error. It is raised inside the
parser where a problem is detected and converted into a failed
``ParseResult`` by the public parse operations, so callers never have to
catch it unless they ask for it via ``ParseResult.unwrap()``.
"""


class KaleidSyntaxError(SyntaxError):
    """A syntax error found while parsing one top-level unit.

    Attributes:
        message (str): The diagnostic text, without location.
        line (int): 1-based line of the offending token (0 if unknown).
        col (int): 1-based column of the offending token (0 if unknown).
    """

    def __init__(self, message: str, line: int = 0, col: int = 0) -> None:
        super().__init__(message)
        self.message = message
        self.line = line
        self.col = col

    def __str__(self) -> str:
        return self.message

    def describe(self) -> str:
        """Returns the message prefixed with its source location, when known."""
        if self.line:
            return f"{self.line}:{self.col}: error: {self.message}"
        return f"error: {self.message}"
