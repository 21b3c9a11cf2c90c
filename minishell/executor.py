"""Running parsed commands: builtins in-process, programs as child processes."""

from __future__ import annotations

import copy
import io
import os
import subprocess
import sys
import threading
from collections.abc import Callable, Iterable, Iterator, Sequence
from contextlib import ExitStack, contextmanager, suppress
from typing import BinaryIO, Optional, TextIO, Union

from minishell.builtins import (
    ShellExit,
    builtin_cd,
    builtin_echo,
    builtin_env,
    builtin_exit,
    builtin_pwd,
    builtin_unset,
)
from minishell.env import Environment, ShellState
from minishell.exporting import builtin_export
from minishell.lexer import Command
from minishell.lookup import find_executable
from minishell.redirection import RedirectionError, open_redirections, read_heredoc

_PREFIX = "minishell: "

_BUILTINS = {
    "cd": lambda cmd, state, out, err: builtin_cd(cmd.argv, state.env, out, err),
    "echo": lambda cmd, state, out, err: builtin_echo(cmd.argv, cmd.tokens, out),
    "env": lambda cmd, state, out, err: builtin_env(state.env, out, err),
    "exit": lambda cmd, state, out, err: builtin_exit(cmd.argv, state, out, err),
    "export": lambda cmd, state, out, err: builtin_export(cmd.argv, state.env, out, err),
    "pwd": lambda cmd, state, out, err: builtin_pwd(out, err),
    "unset": lambda cmd, state, out, err: builtin_unset(cmd.argv, state.env, err),
}

_Stream = Union[BinaryIO, int, None]
_Waiter = Callable[[], int]


class _LaunchError(Exception):
    """A program could not be started; ``message`` is reported as is."""

    def __init__(self, message: str, status: int) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


def is_builtin(name: str) -> bool:
    """Tell whether ``name`` is a command the shell runs itself."""
    return name in _BUILTINS


def run_builtin(command: Command, state: ShellState, stdout: TextIO, stderr: TextIO) -> int:
    """Run a builtin command, record its status in ``state`` and return it.

    ``exit`` raises :class:`ShellExit`. Raises :class:`ValueError` if the
    command is not a builtin.
    """
    if not command.argv or not is_builtin(command.argv[0]):
        name = command.argv[0] if command.argv else ""
        raise ValueError(f"{name}: not a builtin command")
    status = _BUILTINS[command.argv[0]](command, state, stdout, stderr)
    state.exit_status = status
    return status


def _flush_std() -> None:
    for stream in (sys.stdout, sys.stderr):
        with suppress(OSError, ValueError):
            stream.flush()


def _child_env(env: Environment) -> dict[str, str]:
    result: dict[str, str] = {}
    for line in env.to_envp():
        key, sep, value = line.partition("=")
        if sep:
            result[key] = value
    return result


def _resolve(name: str, env: Environment) -> str:
    if "/" in name:
        if not os.access(name, os.F_OK):
            raise _LaunchError(f"{_PREFIX}{name}: No such file or directory", 127)
        if not os.access(name, os.X_OK):
            raise _LaunchError(f"{_PREFIX}{name}: Permission denied", 126)
        return name
    path = find_executable(name, env)
    if path is None:
        raise _LaunchError(f"{_PREFIX}{name}: command not found", 127)
    return path


def _spawn(
    command: Command,
    state: ShellState,
    stdin: _Stream,
    stdout: _Stream,
    cwd: Optional[str] = None,
) -> subprocess.Popen:
    path = _resolve(command.argv[0], state.env)
    _flush_std()
    try:
        return subprocess.Popen(
            command.argv,
            executable=path,
            stdin=stdin,
            stdout=stdout,
            env=_child_env(state.env),
            cwd=cwd,
        )
    except OSError as exc:
        raise _LaunchError(f"execve: {exc.strerror or exc}", 1) from None


def _wait(process: subprocess.Popen) -> int:
    code = process.wait()
    return 128 - code if code < 0 else code


@contextmanager
def _text_output(
    stream: Optional[BinaryIO], fd: Optional[int], fallback: TextIO
) -> Iterator[TextIO]:
    if stream is not None:
        wrapper = io.TextIOWrapper(stream, encoding="utf-8", write_through=True)
        try:
            yield wrapper
        finally:
            with suppress(OSError, ValueError):
                wrapper.detach()
    elif fd is not None:
        wrapper = open(fd, "w", encoding="utf-8")
        try:
            yield wrapper
        finally:
            with suppress(OSError):
                wrapper.close()
    else:
        yield fallback


def _collect_heredoc(command: Command, read_line: Callable[[str], Optional[str]]) -> Optional[str]:
    text: Optional[str] = None
    for redirection in command.redirections:
        if redirection.kind == "<<":
            text = read_heredoc(redirection.target, read_line)
    return text


def _report(message: str) -> None:
    sys.stderr.write(f"{message}\n")
    _flush_std()


def _run_single(command: Command, heredoc: Optional[str], state: ShellState) -> int:
    try:
        with open_redirections(command, heredoc) as (stdin, stdout):
            if is_builtin(command.argv[0]):
                with _text_output(stdout, None, sys.stdout) as out:
                    return run_builtin(command, state, out, sys.stderr)
            try:
                process = _spawn(command, state, stdin, stdout)
            except _LaunchError as exc:
                _report(exc.message)
                return exc.status
            return _wait(process)
    except RedirectionError as exc:
        _report(f"{_PREFIX}{exc.message}")
        return exc.exit_status


def _done(status: int) -> _Waiter:
    return lambda: status


def _start_builtin(
    command: Command, state: ShellState, stream: Optional[BinaryIO], fd: Optional[int]
) -> _Waiter:
    stage_state = copy.deepcopy(state)
    results: list[int] = []

    def work() -> None:
        try:
            with _text_output(stream, fd, sys.stdout) as out:
                results.append(run_builtin(command, stage_state, out, sys.stderr))
        except ShellExit as exc:
            results.append(exc.status)
        except OSError:
            results.append(1)

    thread = threading.Thread(target=work, daemon=True)
    thread.start()

    def wait() -> int:
        thread.join()
        return results[0] if results else 1

    return wait


def _start_stage(
    command: Command,
    heredoc: Optional[str],
    state: ShellState,
    read_fd: Optional[int],
    write_fd: Optional[int],
    stack: ExitStack,
    cwd: str,
) -> _Waiter:
    try:
        stdin, stdout = stack.enter_context(open_redirections(command, heredoc))
    except RedirectionError as exc:
        _report(f"{_PREFIX}{exc.message}")
        return _done(exc.exit_status)
    if not command.argv:
        return _done(0)
    if is_builtin(command.argv[0]):
        own_fd = os.dup(write_fd) if stdout is None and write_fd is not None else None
        return _start_builtin(command, state, stdout, own_fd)
    source = stdin if stdin is not None else read_fd
    target = stdout if stdout is not None else write_fd
    try:
        process = _spawn(command, state, source, target, cwd)
    except _LaunchError as exc:
        _report(exc.message)
        return _done(exc.status)
    return lambda: _wait(process)


def _run_pipeline(
    commands: Sequence[Command], heredocs: Sequence[Optional[str]], state: ShellState
) -> int:
    original_cwd = os.getcwd()
    pipes = [os.pipe() for _ in commands[1:]]
    waiters: list[_Waiter] = []
    try:
        with ExitStack() as stack:
            for index, (command, heredoc) in enumerate(zip(commands, heredocs)):
                read_fd = pipes[index - 1][0] if index > 0 else None
                write_fd = pipes[index][1] if index < len(pipes) else None
                try:
                    waiters.append(
                        _start_stage(
                            command, heredoc, state, read_fd, write_fd, stack, original_cwd
                        )
                    )
                finally:
                    for fd in (read_fd, write_fd):
                        if fd is not None:
                            os.close(fd)
            statuses = [wait() for wait in waiters]
    finally:
        if os.getcwd() != original_cwd:
            os.chdir(original_cwd)
    return statuses[-1]


def execute_commands(
    commands: Iterable[Command],
    state: ShellState,
    read_line: Optional[Callable[[str], Optional[str]]] = None,
) -> int:
    """Run a pipeline of commands and return the resulting exit status.

    Here-documents are read first with ``read_line``. A single builtin runs
    in the shell itself and may raise :class:`ShellExit`; in a pipeline each
    builtin works on its own copy of the shell state.
    """
    commands = list(commands)
    if not commands:
        return state.exit_status
    reader = read_line if read_line is not None else input
    try:
        heredocs = [_collect_heredoc(command, reader) for command in commands]
    except RedirectionError:
        state.exit_status = 1
        return 1
    if len(commands) == 1:
        if commands[0].argv:
            state.exit_status = _run_single(commands[0], heredocs[0], state)
    else:
        state.exit_status = _run_pipeline(commands, heredocs, state)
    _flush_std()
    return state.exit_status