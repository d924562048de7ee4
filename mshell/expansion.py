"""Variable expansion and token clean-up."""

from __future__ import annotations

import re

from mshell.environment import Environment
from mshell.tokens import Token, TokenType

_VARIABLE = re.compile(r"\$(\?|[A-Za-z_][A-Za-z0-9_]*)")
_QUOTES = ("'", '"')


def expand_variables(text: str, env: Environment) -> str:
    """Replace ``$?`` and ``$NAME`` in ``text``; unknown names become empty."""

    def replace(match: re.Match[str]) -> str:
        name = match.group(1)
        if name == "?":
            return str(env.exit_status)
        return env.get(name) or ""

    return _VARIABLE.sub(replace, text)


def expand_tokens(tokens: list[Token], env: Environment) -> None:
    """Expand variables in every word that was not single-quoted."""
    for token in tokens:
        if token.type is TokenType.WORD and token.quote_type != "'" and "$" in token.value:
            token.value = expand_variables(token.value, env)


def strip_quotes(tokens: list[Token]) -> None:
    """Drop a matching pair of quotes that encloses a whole word."""
    for token in tokens:
        value = token.value
        if (
            token.type is TokenType.WORD
            and len(value) >= 2
            and value[0] in _QUOTES
            and value[-1] == value[0]
        ):
            token.value = value[1:-1]


def remove_empty_words(tokens: list[Token]) -> list[Token]:
    """Return the tokens without empty words."""
    return [t for t in tokens if not (t.type is TokenType.WORD and t.value == "")]