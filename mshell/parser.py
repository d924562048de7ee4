"""Grouping tokens into the commands of a pipeline."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field

from mshell.tokens import Token, TokenType


@dataclass
class Command:
    """One simple command with its redirections.

    ``append`` holds the target of the last ``>>``; when set, every output
    file is opened for appending.  ``heredoc`` receives the text collected
    for ``limiter`` before the command runs.
    """

    args: list[str] = field(default_factory=list)
    infile: str | None = None
    out_files: list[str] = field(default_factory=list)
    append: str | None = None
    limiter: str | None = None
    heredoc: str | None = None

    @property
    def name(self) -> str | None:
        """The command name, or None when there are no arguments."""
        return self.args[0] if self.args else None


def _apply_redirection(command: Command, operator: Token, target: str) -> None:
    kind = operator.type
    if kind is TokenType.REDIR_IN:
        command.infile = target
    elif kind is TokenType.REDIR_APPEND:
        command.append = target
        command.out_files.append(target)
    elif kind is TokenType.REDIR_OUT:
        command.out_files.append(target)
    elif kind is TokenType.REDIR_HEREDOC:
        command.limiter = target


def _parse_command(tokens: Iterator[Token]) -> Command:
    """Consume tokens up to and including the next pipe."""
    command = Command()
    for token in tokens:
        if token.type is TokenType.PIPE:
            break
        if token.is_redirection:
            target = next(tokens, None)
            if target is None:
                break
            _apply_redirection(command, token, target.value)
        elif token.type is TokenType.WORD and token.value:
            command.args.append(token.value)
    return command


def parse(tokens: Sequence[Token]) -> list[Command]:
    """Split ``tokens`` at pipes into commands.

    Empty words are not arguments; a redirection with nothing after it is
    ignored.  A trailing pipe does not start a new command.
    """
    commands: list[Command] = []
    stream = iter(tokens)
    remaining = len(tokens)
    consumed = 0

    def counted() -> Iterator[Token]:
        nonlocal consumed
        for token in stream:
            consumed += 1
            yield token

    source = counted()
    while consumed < remaining:
        commands.append(_parse_command(source))
    return commands