"""Commands the shell runs itself rather than starting a program."""

from __future__ import annotations

import os
import sys
from collections.abc import Sequence
from typing import TextIO

from mshell.environment import Environment, atoi

BUILTINS = frozenset({"cd", "exit", "env", "unset", "echo", "pwd", "export"})

_HOME_NOT_SET = "minishell: cd: HOME not set\n"


class ShellExit(Exception):
    """Raised by ``exit``: the shell should stop with ``status``."""

    def __init__(self, status: int) -> None:
        super().__init__(status)
        self.status = status & 0xFF


def _stdout(out: TextIO | None) -> TextIO:
    return sys.stdout if out is None else out


def is_builtin(name: str | None) -> bool:
    """Tell whether ``name`` is run by the shell itself."""
    return name in BUILTINS


def is_n_option(text: str | None) -> bool:
    """Tell whether ``text`` is a ``-n`` option, such as ``-n`` or ``-nnn``."""
    if not text or text[0] != "-":
        return False
    return all(ch == "n" for ch in text[1:])


def is_number(text: str) -> bool:
    """Tell whether ``text`` is an optional ``-`` followed by digits only."""
    digits = text[1:] if text.startswith("-") else text
    return all("0" <= ch <= "9" for ch in digits)


def _is_ascii_alpha(ch: str) -> bool:
    return "a" <= ch <= "z" or "A" <= ch <= "Z"


def _is_ascii_alnum(ch: str) -> bool:
    return _is_ascii_alpha(ch) or "0" <= ch <= "9"


def is_valid_key(key: str | None) -> bool:
    """Tell whether ``key`` is a valid variable name."""
    if not key or not (_is_ascii_alpha(key[0]) or key[0] == "_"):
        return False
    return all(_is_ascii_alnum(ch) or ch == "_" for ch in key)


def echo(args: Sequence[str], out: TextIO | None = None) -> int:
    """Print the arguments separated by spaces; leading ``-n`` options drop the newline."""
    stream = _stdout(out)
    words = list(args[1:])
    newline = True
    while words and is_n_option(words[0]):
        newline = False
        words.pop(0)
    stream.write(" ".join(words))
    if newline:
        stream.write("\n")
    return 0


def _change_dir(path: str) -> int:
    try:
        os.chdir(path)
    except OSError as exc:
        sys.stderr.write(f"cd: {exc.strerror}\n")
        return 1
    return 0


def _current_dir() -> str | None:
    try:
        return os.getcwd()
    except OSError:
        return None


def cd(args: Sequence[str], env: Environment) -> int:
    """Change directory, to HOME when no argument is given.

    A leading ``~`` alone or before ``/`` stands for HOME.  On success
    OLDPWD is set and an existing PWD is updated.
    """
    old = _current_dir()
    home = env.get("HOME")
    if len(args) > 1:
        target = args[1]
        if target.startswith("~"):
            if home is None:
                sys.stderr.write(_HOME_NOT_SET)
                return 1
            if target == "~":
                target = home
            elif target[1] == "/":
                target = home + target[1:]
        status = _change_dir(target)
    else:
        if home is None:
            sys.stderr.write(_HOME_NOT_SET)
            return 1
        status = _change_dir(home)
    if status == 0:
        env.set("OLDPWD", old if old is not None else "")
        if "PWD" in env:
            env.set("PWD", _current_dir() or "")
    return status


def pwd(out: TextIO | None = None) -> int:
    """Print the current directory."""
    path = _current_dir()
    if path is None:
        sys.stderr.write("error to path\n")
        return 1
    _stdout(out).write(path + "\n")
    return 0


def print_env(env: Environment, out: TextIO | None = None) -> int:
    """Print ``KEY=VALUE`` for every variable that has a value."""
    stream = _stdout(out)
    for key, value in env:
        if value is not None:
            stream.write(f"{key}={value}\n")
    return 0


def _print_export(env: Environment, stream: TextIO) -> int:
    for key, value in sorted(env, key=lambda item: item[0]):
        if value is not None:
            stream.write(f'declare -x {key}="{value}"\n')
        else:
            stream.write(f"declare -x {key}\n")
    return 0


def export(env: Environment, args: Sequence[str], out: TextIO | None = None) -> int:
    """Set variables from ``KEY=VALUE``, ``KEY+=VALUE`` or ``KEY`` arguments.

    With no arguments, list every variable sorted by name.  Invalid names
    are reported and skipped; the status is always 0.
    """
    stream = _stdout(out)
    if len(args) < 2:
        return _print_export(env, stream)
    for arg in args[1:]:
        eq = arg.find("=")
        appending = eq > 0 and arg[eq - 1] == "+"
        if eq >= 0:
            key = arg[: eq - 1] if appending else arg[:eq]
            value: str | None = arg[eq + 1 :]
        else:
            key, value = arg, None
        if not is_valid_key(key):
            stream.write(f"minishell: export: `{arg}': not a valid identifier\n")
            continue
        if appending and value is not None:
            env.append(key, value)
        else:
            env.set(key, value)
    return 0


def unset(env: Environment, name: str | None) -> int:
    """Remove the first variable whose name starts with ``name``."""
    env.unset(name)
    return 0


def exit_builtin(args: Sequence[str]) -> int:
    """Leave the shell by raising ShellExit.

    A non-numeric argument exits with 255.  More than one argument is
    reported and returns 1 without exiting.
    """
    code = 0
    if len(args) > 1:
        arg = args[1]
        if not is_number(arg):
            sys.stderr.write(f"exit: {arg}:numeric argument required\n")
            raise ShellExit(255)
        if len(args) > 2:
            sys.stderr.write("exit: too many arguments\n")
            return 1
        code = atoi(arg)
    else:
        sys.stderr.write("exit\n")
    raise ShellExit(code)


def run_builtin(args: Sequence[str], env: Environment, out: TextIO | None = None) -> int:
    """Run the builtin named by ``args[0]`` and return its status."""
    name = args[0] if args else None
    if name == "echo":
        return echo(args, out)
    if name == "cd":
        return cd(args, env)
    if name == "pwd":
        return pwd(out)
    if name == "env":
        return print_env(env, out)
    if name == "unset":
        return unset(env, args[1] if len(args) > 1 else None)
    if name == "export":
        return export(env, args, out)
    if name == "exit":
        return exit_builtin(args)
    return 1