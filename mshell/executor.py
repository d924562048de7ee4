"""Running parsed commands: redirections, heredocs and pipelines."""

from __future__ import annotations

import io
import os
import subprocess
import sys
import threading
from collections.abc import Iterable, Iterator, Sequence

from mshell.builtins import ShellExit, is_builtin, run_builtin
from mshell.environment import Environment
from mshell.expansion import expand_variables
from mshell.parser import Command

_HEREDOC_PROMPT = "> "


def split_path(text: str | None) -> list[str]:
    """Split a PATH value at colons, dropping empty entries."""
    if text is None:
        return []
    return [part for part in text.split(":") if part]


def _path_value(env: Environment) -> str | None:
    # Only the first four characters of "KEY=" are compared with "PATH".
    for key, value in env:
        if value is not None and (key + "=")[:4] == "PATH":
            return value
    return None


def find_command(name: str, env: Environment) -> str:
    """Return the first executable ``dir/name`` along PATH, else ``name``."""
    for directory in split_path(_path_value(env)):
        candidate = f"{directory}/{name}"
        if os.access(candidate, os.F_OK | os.X_OK):
            return candidate
    return name


def _prompted_lines() -> Iterator[str]:
    while True:
        try:
            yield input(_HEREDOC_PROMPT)
        except EOFError:
            return


def read_heredoc(
    limiter: str, env: Environment, lines: Iterable[str] | None = None
) -> str:
    """Collect lines up to ``limiter``, expanding variables in each.

    Lines come from ``lines`` or, when it is None, from standard input
    with a ``> `` prompt.  The limiter is compared after expansion.
    """
    source = _prompted_lines() if lines is None else lines
    collected: list[str] = []
    for raw in source:
        line = expand_variables(raw.removesuffix("\n"), env)
        if line == limiter:
            break
        collected.append(line + "\n")
    return "".join(collected)


def prepare_heredocs(
    commands: Sequence[Command], env: Environment, lines: Iterable[str] | None = None
) -> None:
    """Read the heredoc text of every command that has a limiter."""
    source = None if lines is None else iter(lines)
    for command in commands:
        if command.limiter is not None:
            command.heredoc = read_heredoc(command.limiter, env, source)


def _report(prefix: str, exc: OSError) -> None:
    sys.stderr.write(f"{prefix}: {exc.strerror or exc}\n")


def _not_found(name: str | None) -> None:
    sys.stderr.write(f"minishell: {name or ''}: command not found\n")


def _status(returncode: int) -> int:
    return 128 - returncode if returncode < 0 else returncode


def _close_all(fds: Iterable[int]) -> None:
    for fd in fds:
        os.close(fd)


def _open_outputs(command: Command) -> int:
    """Open every output file in order and return the descriptor of the last."""
    mode = os.O_APPEND if command.append is not None else os.O_TRUNC
    flags = os.O_RDWR | os.O_CREAT | mode
    fd: int | None = None
    for path in command.out_files:
        if fd is not None:
            os.close(fd)
            fd = None
        fd = os.open(path, flags, 0o777)
    assert fd is not None
    return fd


def _write_in_background(fd: int, data: bytes, threads: list[threading.Thread]) -> None:
    def pump() -> None:
        try:
            view = memoryview(data)
            while view:
                view = view[os.write(fd, view):]
        except OSError:
            pass
        finally:
            os.close(fd)

    thread = threading.Thread(target=pump, daemon=True)
    thread.start()
    threads.append(thread)


def _feed(data: bytes, threads: list[threading.Thread]) -> int:
    read_end, write_end = os.pipe()
    _write_in_background(write_end, data, threads)
    return read_end


def _closed_pipe() -> int:
    read_end, write_end = os.pipe()
    os.close(write_end)
    return read_end


def _process_env(env: Environment) -> dict[str, str]:
    return {key: value for key, value in env if value is not None}


def _current_dir() -> str | None:
    try:
        return os.getcwd()
    except OSError:
        return None


def _spawn(
    command: Command,
    env: Environment,
    envp: dict[str, str],
    stdin: int | None,
    stdout: int | None,
) -> subprocess.Popen[bytes] | None:
    path = find_command(command.args[0], env)
    executable = path if "/" in path else os.path.join(".", path)
    sys.stdout.flush()
    try:
        return subprocess.Popen(
            command.args, executable=executable, stdin=stdin, stdout=stdout, env=envp
        )
    except (OSError, ValueError):
        _not_found(command.name)
        return None


def _run_builtin_detached(
    command: Command,
    env: Environment,
    stdout: int | None,
    threads: list[threading.Thread],
) -> int:
    """Run a builtin as a pipeline stage: its changes do not reach the shell."""
    scratch = Environment(list(env))
    scratch.exit_status = env.exit_status
    buffer = io.StringIO()
    saved = _current_dir()
    try:
        status = run_builtin(command.args, scratch, buffer)
    except ShellExit as exc:
        status = exc.status
    finally:
        if saved is not None:
            try:
                os.chdir(saved)
            except OSError:
                pass
    text = buffer.getvalue()
    if stdout is None:
        sys.stdout.write(text)
        sys.stdout.flush()
    else:
        _write_in_background(stdout, text.encode(), threads)
    return status


def _start_stage(
    command: Command,
    env: Environment,
    envp: dict[str, str],
    upstream: int | None,
    piped: bool,
    threads: list[threading.Thread],
) -> tuple[subprocess.Popen[bytes] | None, int, int | None]:
    """Start one stage; return its process, its status if already known, and
    the descriptor the next stage reads from."""
    owned: list[int] = []
    try:
        if command.limiter is not None:
            stdin = _feed((command.heredoc or "").encode(), threads)
            owned.append(stdin)
        elif command.infile is not None:
            stdin = os.open(command.infile, os.O_RDONLY)
            owned.append(stdin)
        else:
            stdin = upstream
    except OSError as exc:
        _report("infile error", exc)
        return None, 1, _closed_pipe() if piped else None

    downstream: int | None = None
    stdout: int | None = None
    if piped and not command.out_files:
        downstream, stdout = os.pipe()
    elif command.out_files:
        try:
            stdout = _open_outputs(command)
        except OSError as exc:
            _close_all(owned)
            _report("outfile error", exc)
            return None, 1, _closed_pipe() if piped else None
    if piped and downstream is None:
        downstream = _closed_pipe()

    if not command.args:
        _close_all(owned)
        if stdout is not None:
            os.close(stdout)
        _not_found(None)
        return None, 127, downstream
    if is_builtin(command.name):
        _close_all(owned)
        return None, _run_builtin_detached(command, env, stdout, threads), downstream

    process = _spawn(command, env, envp, stdin, stdout)
    _close_all(owned)
    if stdout is not None:
        os.close(stdout)
    return process, 127 if process is None else 0, downstream


def _run_stages(commands: Sequence[Command], env: Environment) -> int:
    envp = _process_env(env)
    threads: list[threading.Thread] = []
    processes: list[subprocess.Popen[bytes]] = []
    upstream: int | None = None
    last_process: subprocess.Popen[bytes] | None = None
    last_status = 0
    for index, command in enumerate(commands):
        piped = index < len(commands) - 1
        process, status, downstream = _start_stage(
            command, env, envp, upstream, piped, threads
        )
        if upstream is not None:
            os.close(upstream)
        upstream = downstream
        if process is not None:
            processes.append(process)
        last_process, last_status = process, status
    if upstream is not None:
        os.close(upstream)
    for process in processes:
        process.wait()
    for thread in threads:
        thread.join()
    if last_process is not None:
        return _status(last_process.returncode)
    return last_status


def _run_builtin_here(command: Command, env: Environment) -> None:
    """Run a builtin in the shell itself, with its redirections applied."""
    if command.limiter is None and command.infile is not None:
        try:
            os.close(os.open(command.infile, os.O_RDONLY))
        except OSError as exc:
            _report("infile error", exc)
            return
    out_fd: int | None = None
    if command.out_files:
        try:
            out_fd = _open_outputs(command)
        except OSError as exc:
            _report("outfile error", exc)
            return
    if out_fd is None:
        status = run_builtin(command.args, env)
    else:
        with os.fdopen(out_fd, "w") as out:
            status = run_builtin(command.args, env, out)
    env.exit_status = status


def execute_one(command: Command, env: Environment) -> None:
    """Run a single command and record its status in ``env``."""
    if not command.args:
        return
    if is_builtin(command.name):
        _run_builtin_here(command, env)
        return
    env.exit_status = _run_stages([command], env)


def execute_pipeline(commands: Sequence[Command], env: Environment) -> None:
    """Run commands connected by pipes; the last one gives the status."""
    env.exit_status = _run_stages(commands, env)


def execute(commands: Sequence[Command], env: Environment) -> None:
    """Read heredocs, then run one command or a pipeline."""
    if not commands:
        return
    prepare_heredocs(commands, env)
    if len(commands) > 1:
        execute_pipeline(commands, env)
    else:
        execute_one(commands[0], env)