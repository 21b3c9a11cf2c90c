# minishell

A small interactive command shell. It reads command lines, checks their
syntax, expands variables and quotes, and runs the commands it finds.
Commands are joined with pipes, and redirections are applied to them.

## Installing

    pip install .

For the tests:

    pip install ".[test]"
    pytest

## Running

    minishell

The prompt is `minishell-1.0$ `. End the session with `exit` or Ctrl-D.
Ctrl-D prints `exit` and leaves with the last exit status. Ctrl-C at the
prompt starts a fresh line and sets the status to 1.

## What it understands

- Pipelines: `ls -l | grep py | wc -l`
- Redirections: `<` input, `>` output, `>>` append, `<<` here-document.
  A here-document reads lines until the delimiter, prompting with `> `.
  Every file named is opened in order, so output files are created even
  when a later redirection wins.
- Single quotes keep their contents literal. Double quotes still expand
  `$` and accept `\"`, `\$` and `\\`.
- Variables: `$NAME`, `${NAME}`, and `$?` for the last exit status. An
  unset variable expands to nothing. Redirection targets are expanded in
  the first stage of a pipeline only.
- External programs are found through `PATH`, or given by a path that
  contains `/`. An unknown command sets status 127. A path that exists
  but cannot be run sets status 126.

Some lines are reported as syntax errors and set the exit status to 2:

- a line that starts with `|` or `;`
- a doubled `||` or `;;`
- an unclosed quote
- a redirection with no target, or followed by another operator

## Builtins

| Command  | Behaviour |
|----------|-----------|
| `cd`     | With no argument or `~`, goes to `$HOME`. With `-`, goes to `$OLDPWD` and prints it. Updates `PWD` and `OLDPWD`. |
| `echo`   | Prints its arguments. Any number of `-n`/`-nnn` options suppress the newline. A space is printed between two arguments only where the command line had blank space between them. |
| `env`    | Prints `KEY=value` for each variable that has a non-empty value. |
| `export` | With no arguments, lists variables as `declare -x NAME="value"` in sorted order. `NAME=value` sets a variable, `NAME+=value` appends to it, and `NAME` declares it with an empty value. |
| `pwd`    | Prints the working directory. |
| `unset`  | Removes variables. Invalid names are reported and set the status to 1. |
| `exit`   | Prints `exit`. Exits with the last status, or with a numeric argument taken modulo 256. A non-numeric argument exits with 255. With more than one argument it reports an error and does not exit. |

A builtin that runs on its own acts on the shell itself. A builtin in a
pipeline works on its own copy of the shell state, so for example `cd` or
`export` there has no lasting effect.

`OLDPWD` inherited from the starting environment starts without a value.

## Using it from Python

    from minishell.shell import Shell

    shell = Shell(env={"PATH": "/usr/bin:/bin"})
    shell.run_line("export GREETING=hello")
    shell.run_line("echo $GREETING | tr a-z A-Z")

`Shell.run_line` returns the new exit status. `Shell.loop` runs the prompt
until `exit` or end of input. `exit` raises `minishell.builtins.ShellExit`
from `run_line`.

The pieces can also be used on their own:

- `minishell.validator.validate` raises `ShellSyntaxError` for bad input.
- `minishell.lexer.tokenize`, `split_commands` and `parse_line` turn a line
  into `Token` and `Command` objects.
- `minishell.expand.expand_word` applies quote removal and variable
  expansion to one word.
- `minishell.env.copy_envp` builds an `Environment` from `KEY=value`
  strings or a mapping.
- `minishell.executor.execute_commands` runs parsed commands against a
  `ShellState`.
- `minishell.lookup.find_executable` searches `PATH`.

## What it does not do

There is no `;` sequencing, and no `&&` or `||` lists. There is no
globbing, no job control or background `&`, and no backslash escaping
outside double quotes. It does not read script files or take options; it
only runs interactively, or through `Shell.run_line` from Python.