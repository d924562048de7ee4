# mshell

A small interactive command shell. It reads a line, splits it into words and
operators, expands variables, and runs the resulting commands, either alone or
joined into a pipeline.

## Installing

```
pip install .
```

## Running

```
mshell
```

The prompt reads `minishell$ `. End input with Ctrl-D; on a terminal the shell
prints `exit` first. The shell leaves with the status of the last command, or
with the status given to the `exit` built-in.

## What the shell understands

- Words, with `'single'` quotes kept literally and `"double"` quotes expanding
  variables inside them. A backslash at the start of a word is dropped.
- `$NAME` and `$?` (the last exit status). Unknown names expand to nothing.
- Pipes: `ls | grep py | wc -l`. The last command of a pipeline gives the
  status.
- Redirections: `< file`, `> file`, `>> file`, and here-documents `<< LIMITER`.
  Every output file is created in turn and the last one receives the output;
  if any `>>` appears in a command, all its output files are opened for
  appending. A here-document's lines have variables expanded, and the limiter
  is compared after expansion.
- Built-in commands: `echo` (with `-n`, `-nnn`, ...), `cd` (with `~` and
  `~/path`; updates `OLDPWD` and an existing `PWD`), `pwd`, `env`, `export`
  (`KEY=value`, `KEY+=value`, `KEY`, or no argument to list variables sorted by
  name), `unset` and `exit`.
- Other commands are looked up along `PATH` and run as child processes.
- `SHLVL` is increased by one when the shell starts; with an empty environment
  the shell starts with `PWD`, `SHLVL=1` and `_`.

A line that begins with `|`, that ends with a pipe, or that has a redirection
not followed by a word, is reported as a syntax error and not run.

## Behaviour worth knowing

- `unset NAME` removes only its first argument, and removes the first variable
  whose name *starts with* `NAME`.
- A built-in used inside a pipeline runs on a copy of the variables, so
  `export`, `unset` and `cd` there do not change the shell.
- `exit` with a non-numeric argument leaves with status 255; with more than
  one argument it reports "too many arguments" and does not leave.

## What it does not do

There are no command lists (`;`, `&&`, `||`), no background jobs, no
subshells, no wildcard expansion and no signal handling of its own. History
and line editing come from Python's `readline` module when it is available.

## Using it from Python

```python
from mshell.environment import Environment
from mshell.shell import process_line

env = Environment.from_strings(["PATH=/usr/bin:/bin", "HOME=/tmp"])
process_line("export GREETING=hello", env)
process_line('echo "$GREETING world" > out.txt', env)
print(env.get("GREETING"))
```

`process_line` returns the exit status; an `exit` in the line raises
`mshell.builtins.ShellExit`, whose `status` holds the code.

The parts can also be used on their own: `mshell.lexer.tokenize` turns a line
into tokens, `mshell.syntax.check_syntax` validates them (raising
`ShellSyntaxError`), `mshell.parser.parse` builds `Command` objects, and
`mshell.executor.execute` runs them.

## Tests

```
pip install .[test]
pytest
```