import io
import os

import pytest

from mshell.builtins import (
    ShellExit,
    cd,
    echo,
    exit_builtin,
    export,
    is_builtin,
    is_n_option,
    is_number,
    is_valid_key,
    print_env,
    pwd,
    run_builtin,
    unset,
)
from mshell.environment import Environment


def _real(path):
    return os.path.realpath(str(path))


@pytest.mark.parametrize("name", ["cd", "exit", "env", "unset", "echo", "pwd", "export"])
def test_is_builtin_true(name):
    assert is_builtin(name) is True


@pytest.mark.parametrize("name", ["ls", "", None, "ECHO"])
def test_is_builtin_false(name):
    assert is_builtin(name) is False


@pytest.mark.parametrize("text,expected", [
    ("-n", True), ("-nnn", True), ("-", True), ("-na", False), ("n", False), ("", False),
])
def test_is_n_option(text, expected):
    assert is_n_option(text) is expected


@pytest.mark.parametrize("text,expected", [
    ("42", True), ("-7", True), ("", True), ("+5", False), ("4a", False),
])
def test_is_number(text, expected):
    assert is_number(text) is expected


@pytest.mark.parametrize("key,expected", [
    ("_A1", True), ("PATH", True), ("1A", False), ("", False), ("A-B", False), (None, False),
])
def test_is_valid_key(key, expected):
    assert is_valid_key(key) is expected


def test_echo_joins_words():
    out = io.StringIO()
    assert echo(["echo", "a", "b"], out) == 0
    assert out.getvalue() == "a b\n"


def test_echo_n_options_suppress_newline():
    out = io.StringIO()
    echo(["echo", "-n", "-nn", "x", "-n"], out)
    assert out.getvalue() == "x -n"


def test_echo_no_args_prints_newline():
    out = io.StringIO()
    echo(["echo"], out)
    assert out.getvalue() == "\n"


def test_cd_changes_directory_and_sets_pwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    start = os.getcwd()
    target = tmp_path / "sub"
    target.mkdir()
    env = Environment({"PWD": start})
    assert cd(["cd", str(target)], env) == 0
    assert _real(os.getcwd()) == _real(target)
    assert env.get("OLDPWD") == start
    assert _real(env.get("PWD")) == _real(target)


def test_cd_does_not_create_pwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    env = Environment()
    assert cd(["cd", str(tmp_path)], env) == 0
    assert "PWD" not in env
    assert "OLDPWD" in env


def test_cd_missing_directory_fails(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    env = Environment()
    assert cd(["cd", str(tmp_path / "missing")], env) == 1
    assert capsys.readouterr().err.startswith("cd: ")
    assert "OLDPWD" not in env


def test_cd_without_home(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    assert cd(["cd"], Environment()) == 1
    assert capsys.readouterr().err == "minishell: cd: HOME not set\n"


def test_cd_tilde_without_home(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    assert cd(["cd", "~"], Environment()) == 1
    assert "HOME not set" in capsys.readouterr().err


def test_cd_home_and_tilde(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "sub").mkdir()
    env = Environment({"HOME": str(tmp_path)})
    assert cd(["cd", "~/sub"], env) == 0
    assert _real(os.getcwd()) == _real(tmp_path / "sub")
    assert cd(["cd"], env) == 0
    assert _real(os.getcwd()) == _real(tmp_path)
    assert cd(["cd", "~"], env) == 0
    assert _real(os.getcwd()) == _real(tmp_path)


def test_pwd_prints_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    out = io.StringIO()
    assert pwd(out) == 0
    assert out.getvalue() == os.getcwd() + "\n"


def test_print_env_skips_unset_values():
    out = io.StringIO()
    env = Environment({"A": "1", "B": None, "C": ""})
    assert print_env(env, out) == 0
    assert out.getvalue() == "A=1\nC=\n"


def test_export_lists_sorted():
    out = io.StringIO()
    env = Environment({"B": "2", "A": None})
    assert export(env, ["export"], out) == 0
    assert out.getvalue() == 'declare -x A\ndeclare -x B="2"\n'


def test_export_sets_and_appends():
    env = Environment({"A": "x"})
    out = io.StringIO()
    assert export(env, ["export", "A+=y", "B=1", "C", "D+=z"], out) == 0
    assert env.get("A") == "xy"
    assert env.get("B") == "1"
    assert "C" in env and env.get("C") is None
    assert env.get("D") == "z"
    assert out.getvalue() == ""


def test_export_without_value_clears_existing():
    env = Environment({"A": "x"})
    export(env, ["export", "A"], io.StringIO())
    assert "A" in env
    assert env.get("A") is None


def test_export_invalid_identifier():
    env = Environment()
    out = io.StringIO()
    assert export(env, ["export", "1X=2"], out) == 0
    assert out.getvalue() == "minishell: export: `1X=2': not a valid identifier\n"
    assert len(env) == 0


def test_unset_removes_first_prefix_match():
    env = Environment({"AB": "1", "A": "2"})
    assert unset(env, "A") == 0
    assert list(env) == [("A", "2")]


def test_unset_none_is_noop():
    env = Environment({"A": "1"})
    assert unset(env, None) == 0
    assert len(env) == 1


def test_exit_without_args(capsys):
    with pytest.raises(ShellExit) as info:
        exit_builtin(["exit"])
    assert info.value.status == 0
    assert capsys.readouterr().err == "exit\n"


@pytest.mark.parametrize("arg,status", [("42", 42), ("-1", 255), ("256", 0)])
def test_exit_with_code(arg, status):
    with pytest.raises(ShellExit) as info:
        exit_builtin(["exit", arg])
    assert info.value.status == status


def test_exit_non_numeric(capsys):
    with pytest.raises(ShellExit) as info:
        exit_builtin(["exit", "abc"])
    assert info.value.status == 255
    assert capsys.readouterr().err == "exit: abc:numeric argument required\n"


def test_exit_too_many_arguments(capsys):
    assert exit_builtin(["exit", "1", "2"]) == 1
    assert capsys.readouterr().err == "exit: too many arguments\n"


def test_run_builtin_dispatch():
    out = io.StringIO()
    env = Environment({"A": "1"})
    assert run_builtin(["echo", "hi"], env, out) == 0
    assert run_builtin(["env"], env, out) == 0
    assert out.getvalue() == "hi\nA=1\n"
    assert run_builtin(["unset", "A"], env, out) == 0
    assert "A" not in env


def test_run_builtin_unknown_returns_one():
    assert run_builtin(["ls"], Environment(), io.StringIO()) == 1


def test_run_builtin_exit_raises():
    with pytest.raises(ShellExit) as info:
        run_builtin(["exit", "3"], Environment(), io.StringIO())
    assert info.value.status == 3