"""The interactive read-and-run loop."""

from __future__ import annotations

import os
import sys
from collections.abc import Sequence

from mshell.builtins import ShellExit
from mshell.environment import Environment
from mshell.executor import execute
from mshell.expansion import expand_tokens, strip_quotes
from mshell.lexer import tokenize
from mshell.parser import parse
from mshell.syntax import ShellSyntaxError, check_syntax

PROMPT = "\033[36mmini\033[31mshell$ \033[0m"


def process_line(line: str, env: Environment) -> int:
    """Tokenize, check, parse and run one input line; return the exit status.

    ShellExit from the ``exit`` builtin is left to the caller.
    """
    tokens = tokenize(line, env)
    strip_quotes(tokens)
    expand_tokens(tokens, env)
    try:
        check_syntax(line, tokens)
    except ShellSyntaxError as exc:
        stream = sys.stdout if exc.to_stdout else sys.stderr
        stream.write(f"{exc.message}\n")
        return env.exit_status
    commands = parse(tokens)
    if commands:
        execute(commands, env)
    return env.exit_status


def main(argv: Sequence[str] | None = None) -> int:
    """Run the shell until end of input or ``exit``; return the exit status."""
    env = Environment(os.environ.items())
    env.increment_shlvl()
    interactive = sys.stdin.isatty()
    if interactive:
        try:
            import readline  # noqa: F401  (line editing and history for input())
        except ImportError:
            pass
    while True:
        try:
            line = input(PROMPT)
        except EOFError:
            if interactive:
                sys.stderr.write("exit\n")
            return env.exit_status
        try:
            process_line(line, env)
        except ShellExit as exc:
            return exc.status


if __name__ == "__main__":
    sys.exit(main())