"""Token kinds and operator recognition."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


class TokenType(Enum):
    """Kinds of token produced by the lexer."""

    WORD = auto()
    PIPE = auto()
    REDIR_IN = auto()
    REDIR_OUT = auto()
    REDIR_APPEND = auto()
    REDIR_HEREDOC = auto()


_REDIRECTIONS = frozenset(
    {TokenType.REDIR_IN, TokenType.REDIR_OUT, TokenType.REDIR_APPEND, TokenType.REDIR_HEREDOC}
)

_OPERATORS = (
    (">>", TokenType.REDIR_APPEND),
    ("<<", TokenType.REDIR_HEREDOC),
    ("|", TokenType.PIPE),
    ("<", TokenType.REDIR_IN),
    (">", TokenType.REDIR_OUT),
)


@dataclass
class Token:
    """One lexical unit; ``quote_type`` is ``"'"`` when expansion must not apply."""

    value: str
    type: TokenType = TokenType.WORD
    quote_type: str | None = None

    @property
    def is_redirection(self) -> bool:
        return self.type in _REDIRECTIONS


def operator_at(line: str, index: int) -> tuple[TokenType, str]:
    """Return the operator starting at ``index`` and its text.

    When no operator starts there, returns ``(TokenType.WORD, "")``.
    """
    for text, kind in _OPERATORS:
        if line.startswith(text, index):
            return kind, text
    return TokenType.WORD, ""