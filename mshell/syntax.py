"""Syntax checks run on a tokenized line before it is parsed."""

from __future__ import annotations

from collections.abc import Sequence

from mshell.tokens import Token, TokenType

_WHITESPACE = " \t\n\v\f\r"


class ShellSyntaxError(Exception):
    """A line that cannot be run.

    ``to_stdout`` tells whether the shell reports it on standard output
    rather than standard error.
    """

    def __init__(self, message: str, to_stdout: bool = False) -> None:
        super().__init__(message)
        self.message = message
        self.to_stdout = to_stdout

    def __str__(self) -> str:
        return self.message


def check_redirections(tokens: Sequence[Token]) -> None:
    """Raise ShellSyntaxError for a redirection without a word or a trailing pipe."""
    for token, following in zip(tokens, [*tokens[1:], None]):
        if token.is_redirection:
            if following is None or following.type is not TokenType.WORD:
                raise ShellSyntaxError("syntax error near unexpected token `newline'")
        elif token.type is TokenType.PIPE and following is None:
            raise ShellSyntaxError("syntax error near unexpected token ")


def check_syntax(line: str, tokens: Sequence[Token]) -> None:
    """Raise ShellSyntaxError if the line starts with a pipe or misuses operators."""
    if line.lstrip(_WHITESPACE).startswith("|"):
        raise ShellSyntaxError("syntax error near unexpected token `|'", to_stdout=True)
    check_redirections(tokens)