"""Commands the shell runs itself: cd, echo, env, exit, pwd and unset."""

from __future__ import annotations

import os
from collections.abc import Sequence
from typing import Optional, TextIO

from minishell.env import Environment, ShellState, validate_var_name
from minishell.lexer import Token

_PREFIX = "minishell: "


class ShellExit(Exception):
    """Raised by ``exit``: the shell should stop with ``status``."""

    def __init__(self, status: int) -> None:
        super().__init__(status)
        self.status = status


def _error(stderr: TextIO, message: str) -> int:
    stderr.write(f"{_PREFIX}{message}\n")
    return 1


def _is_numeric(text: str) -> bool:
    digits = text[1:] if text[:1] in ("+", "-") else text
    return bool(digits) and all("0" <= char <= "9" for char in digits)


def parse_exit_code(text: str) -> int:
    """Turn an ``exit`` argument into a status between 0 and 255.

    Raises :class:`ValueError` if ``text`` is not an optionally signed
    run of decimal digits.
    """
    if not _is_numeric(text):
        raise ValueError(f"{text}: numeric argument required")
    return int(text) % 256


def _cd_target(argv: Sequence[str], env: Environment, stdout: TextIO) -> Optional[str]:
    if len(argv) == 1 or argv[1] == "~":
        return env.get("HOME")
    if argv[1] == "-":
        target = env.get("OLDPWD")
        if target is None:
            return None
        if target.startswith("OLDPWD="):
            target = target[len("OLDPWD="):]
        stdout.write(f"{target}\n")
        return target
    return argv[1]


def builtin_cd(argv: Sequence[str], env: Environment, stdout: TextIO, stderr: TextIO) -> int:
    """Change the working directory and update ``OLDPWD`` and ``PWD``."""
    if len(argv) > 2:
        return _error(stderr, "cd: too many arguments")
    try:
        old_cwd = os.getcwd()
    except OSError as exc:
        return _error(stderr, exc.strerror or str(exc))
    target = _cd_target(argv, env, stdout)
    if target is None:
        if len(argv) == 1 or argv[1] == "~":
            return _error(stderr, "cd: HOME not set")
        return _error(stderr, "cd: OLDPWD not set")
    try:
        os.chdir(target)
    except OSError as exc:
        return _error(stderr, f"cd: {target}: {exc.strerror or exc}")
    env.set("OLDPWD", old_cwd)
    try:
        new_cwd = os.getcwd()
    except OSError as exc:
        return _error(stderr, exc.strerror or str(exc))
    env.set("PWD", new_cwd)
    return 0


def _is_n_option(arg: str) -> bool:
    return arg.startswith("-n") and set(arg[1:]) == {"n"}


def builtin_echo(argv: Sequence[str], tokens: Optional[Sequence[Token]], stdout: TextIO) -> int:
    """Print the arguments; ``-n`` (or ``-nnn``) suppresses the newline.

    ``tokens`` are the words the arguments came from; a space is printed
    between two arguments only where the first was followed by blank space
    on the command line. Without tokens every argument is separated by one.
    """
    start = 1
    while start < len(argv) and _is_n_option(argv[start]):
        start += 1
    newline = start == 1
    words = list(argv[start:])
    if tokens is None:
        gaps = [True] * len(words)
    else:
        following = list(tokens[start:])
        gaps = [
            following[pos].space_after if pos < len(following) else False
            for pos in range(len(words))
        ]
    pieces: list[str] = []
    for pos, word in enumerate(words):
        pieces.append(word)
        if pos + 1 < len(words) and gaps[pos]:
            pieces.append(" ")
    if newline:
        pieces.append("\n")
    stdout.write("".join(pieces))
    return 0


def builtin_env(env: Environment, stdout: TextIO, stderr: TextIO) -> int:
    """Print every variable that has a non-empty value as ``KEY=value``."""
    if len(env) == 0:
        return _error(stderr, "env: environment not set")
    for var in env:
        if var.value:
            stdout.write(f"{var.key}={var.value}\n")
    return 0


def builtin_pwd(stdout: TextIO, stderr: TextIO) -> int:
    """Print the current working directory."""
    try:
        cwd = os.getcwd()
    except OSError as exc:
        stderr.write(f"{exc.strerror or exc}\n")
        return 1
    stdout.write(f"{cwd}\n")
    return 0


def builtin_unset(argv: Sequence[str], env: Environment, stderr: TextIO) -> int:
    """Remove the named variables; invalid names are reported and skipped."""
    status = 0
    for name in argv[1:]:
        if not validate_var_name(name):
            _error(stderr, f"unset: `{name}': not a valid identifier")
            status = 1
            continue
        env.unset(name)
    return status


def builtin_exit(argv: Sequence[str], state: ShellState, stdout: TextIO, stderr: TextIO) -> int:
    """Announce ``exit`` and raise :class:`ShellExit` with the chosen status.

    With more than one argument nothing happens beyond an error and a
    return value of 1.
    """
    stdout.write("exit\n")
    if len(argv) == 1:
        raise ShellExit(state.exit_status)
    if len(argv) > 2:
        return _error(stderr, "exit: too many arguments")
    try:
        status = parse_exit_code(argv[1])
    except ValueError:
        _error(stderr, f"exit: {argv[1]}: numeric argument required")
        state.exit_status = 255
        raise ShellExit(255) from None
    state.exit_status = status
    raise ShellExit(status)