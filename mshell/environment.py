"""Shell variables, kept in the order they were defined."""

from __future__ import annotations

import itertools
import os
from collections.abc import Iterable, Iterator, Mapping

_U64 = 1 << 64
_OVERFLOW_THRESHOLD = 922337203685477580
_WHITESPACE = " \t\n\v\f\r"


def _to_int32(value: int) -> int:
    """Wrap an integer into the signed 32-bit range."""
    value &= 0xFFFFFFFF
    return value - (1 << 32) if value >= 1 << 31 else value


def _is_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


def atoi(text: str) -> int:
    """Parse a leading integer the way the shell does.

    Leading whitespace is skipped, one sign is accepted, and parsing stops
    at the first non-digit.  A value past the 64-bit range gives -1 when
    positive and 0 when negative; the result is wrapped to 32 bits.
    """
    rest = text.lstrip(_WHITESPACE)
    sign = 1
    if rest[:1] in ("-", "+"):
        if rest[0] == "-":
            sign = -1
        rest = rest[1:]
    result = 0
    for ch in itertools.takewhile(_is_digit, rest):
        digit = ord(ch) - ord("0")
        if result >= _OVERFLOW_THRESHOLD:
            if sign == 1 and digit > 7:
                return -1
            if sign == -1 and digit > 8:
                return 0
        result = (result * 10 + digit) % _U64
    return _to_int32(result * sign)


class Environment:
    """Ordered shell variables plus the status of the last command.

    A variable may exist without a value (``None``), as after
    ``export NAME``.
    """

    def __init__(
        self,
        variables: Mapping[str, str | None] | Iterable[tuple[str, str | None]] | None = None,
    ) -> None:
        self._vars: dict[str, str | None] = dict(variables or {})
        self.exit_status = 0

    @classmethod
    def from_strings(cls, strings: Iterable[str]) -> Environment:
        """Build from ``KEY=VALUE`` strings; a string without ``=`` has no value."""
        env = cls()
        for entry in strings:
            key, sep, value = entry.partition("=")
            env._vars[key] = value if sep else None
        return env

    def get(self, key: str) -> str | None:
        """Return the value of ``key``, or None if it is unset or has no value."""
        return self._vars.get(key)

    def set(self, key: str, value: str | None) -> None:
        """Set ``key``; an existing variable keeps its position."""
        self._vars[key] = value

    def append(self, key: str, value: str) -> None:
        """Append ``value`` to ``key``, creating it if it does not exist."""
        if key in self._vars:
            self._vars[key] = (self._vars[key] or "") + value
        else:
            self.set(key, value)

    def unset(self, name: str | None) -> bool:
        """Remove the first variable whose name starts with ``name``.

        Returns whether a variable was removed.
        """
        if name is None:
            return False
        for key in self._vars:
            if key.startswith(name):
                del self._vars[key]
                return True
        return False

    def to_envp(self) -> list[str]:
        """Return ``KEY=VALUE`` strings; variables without a value are left out."""
        return [f"{key}={value}" for key, value in self._vars.items() if value is not None]

    def increment_shlvl(self) -> None:
        """Raise SHLVL by one, or seed a minimal environment if empty."""
        if not self._vars:
            try:
                cwd = os.getcwd()
            except OSError:
                return
            self._vars.update(PWD=cwd, SHLVL="1", _="/usr/bin/env")
            return
        if "SHLVL" in self._vars:
            level = _to_int32(atoi(self._vars["SHLVL"] or "") + 1)
            self._vars["SHLVL"] = str(level)

    def __contains__(self, key: object) -> bool:
        return key in self._vars

    def __iter__(self) -> Iterator[tuple[str, str | None]]:
        """Yield ``(key, value)`` pairs in definition order."""
        return iter(list(self._vars.items()))

    def __len__(self) -> int:
        return len(self._vars)

    def __repr__(self) -> str:
        return f"Environment({self._vars!r}, exit_status={self.exit_status})"