"""Splitting an input line into tokens."""

from __future__ import annotations

import sys

from mshell.environment import Environment
from mshell.expansion import expand_variables
from mshell.tokens import Token, TokenType, operator_at

_SKIPPED = " \t\n\v\f\r"
_WORD_END = " \t\n|<>"
_QUOTES = "'\""
_UNCLOSED_QUOTE = "syntax error near unexpected token \n"


def _read_word(line: str, pos: int, env: Environment) -> tuple[Token, int]:
    """Read one word starting at ``pos``; return it and the position after it.

    Quotes are removed while reading.  Double-quoted text is expanded at
    once; single-quoted text is kept literally and marks the word so that
    later expansion leaves it alone.
    """
    parts: list[str] = []
    single_quoted = False
    end = len(line)
    while pos < end and line[pos] not in _WORD_END:
        ch = line[pos]
        if ch not in _QUOTES:
            parts.append(ch)
            pos += 1
            continue
        close = line.find(ch, pos + 1)
        if close == -1:
            content = line[pos + 1 :]
            sys.stderr.write(_UNCLOSED_QUOTE)
            pos = end
        else:
            content = line[pos + 1 : close]
            pos = close + 1
        if ch == "'":
            single_quoted = True
            parts.append(content)
        else:
            parts.append(expand_variables(content, env))
    token = Token("".join(parts), TokenType.WORD, "'" if single_quoted else None)
    return token, pos


def tokenize(line: str, env: Environment) -> list[Token]:
    """Split ``line`` into words and operators.

    A backslash that starts a word is dropped.  An unclosed quote is
    reported on standard error and the word runs to the end of the line.
    """
    tokens: list[Token] = []
    pos = 0
    end = len(line)
    while pos < end:
        ch = line[pos]
        if ch in _SKIPPED:
            pos += 1
            continue
        kind, text = operator_at(line, pos)
        if kind is not TokenType.WORD:
            tokens.append(Token(text, kind))
            pos += len(text)
            continue
        if ch == "\\":
            pos += 1
            continue
        token, pos = _read_word(line, pos, env)
        tokens.append(token)
    return tokens