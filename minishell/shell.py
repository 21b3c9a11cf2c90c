"""The interactive shell: prompt, line handling and signal setup."""

from __future__ import annotations

import os
import signal
import sys
import threading
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from typing import Optional

from minishell.builtins import ShellExit
from minishell.env import ShellState, copy_envp
from minishell.executor import execute_commands
from minishell.lexer import parse_line
from minishell.validator import ShellSyntaxError

PROMPT = "minishell-1.0$ "


def _in_main_thread() -> bool:
    return threading.current_thread() is threading.main_thread()


@contextmanager
def _handlers(handlers: Mapping[str, object]) -> Iterator[None]:
    saved = {}
    if _in_main_thread():
        for name, handler in handlers.items():
            signum = getattr(signal, name, None)
            if signum is not None:
                saved[signum] = signal.signal(signum, handler)
    try:
        yield
    finally:
        for signum, handler in saved.items():
            signal.signal(signum, handler)


def _hide_control_echo() -> None:
    try:
        import termios
    except ImportError:
        return
    try:
        if not sys.stdin.isatty():
            return
        fd = sys.stdin.fileno()
        attrs = termios.tcgetattr(fd)
        attrs[3] &= ~getattr(termios, "ECHOCTL", 0)
        termios.tcsetattr(fd, termios.TCSANOW, attrs)
    except (OSError, ValueError, termios.error):
        return


@contextmanager
def _interactive_signals() -> Iterator[None]:
    _hide_control_echo()
    with _handlers(
        {
            "SIGTERM": signal.SIG_IGN,
            "SIGINT": signal.default_int_handler,
            "SIGQUIT": signal.SIG_IGN,
        }
    ):
        yield


@contextmanager
def _executing_signals(state: ShellState) -> Iterator[None]:
    def on_interrupt(signum, frame) -> None:
        os.write(1, b"^C\n")

    def on_quit(signum, frame) -> None:
        os.write(2, f"^\\Quit: {signum}\n".encode())
        state.exit_status = 131

    with _handlers({"SIGINT": on_interrupt, "SIGQUIT": on_quit}):
        yield


class Shell:
    """A shell reading lines, parsing them and running the commands."""

    def __init__(
        self,
        env: Optional[Mapping[str, str]] = None,
        read_line: Optional[Callable[[str], Optional[str]]] = None,
    ) -> None:
        self.state = ShellState(copy_envp(os.environ if env is None else env))
        self.read_line = read_line if read_line is not None else input

    def run_line(self, line: str) -> int:
        """Parse and run one command line; return the new exit status.

        An empty line leaves the status unchanged; a syntax error sets it
        to 2. ``exit`` raises :class:`ShellExit`.
        """
        if not line:
            return self.state.exit_status
        try:
            commands = parse_line(line, self.state.env, self.state.exit_status)
        except ShellSyntaxError as exc:
            sys.stderr.write(f"minishell: {exc.message}\n")
            sys.stderr.flush()
            self.state.exit_status = exc.exit_status
            return exc.exit_status
        if commands:
            execute_commands(commands, self.state, self.read_line)
        return self.state.exit_status

    def loop(self) -> int:
        """Prompt for lines until ``exit`` or end of input; return the status."""
        while True:
            with _interactive_signals():
                try:
                    line = self.read_line(PROMPT)
                except KeyboardInterrupt:
                    sys.stderr.write("\n")
                    self.state.exit_status = 1
                    continue
                except EOFError:
                    line = None
            if line is None:
                sys.stdout.write("exit\n")
                sys.stdout.flush()
                return self.state.exit_status
            try:
                with _executing_signals(self.state):
                    self.run_line(line)
            except ShellExit as exc:
                return exc.status


def main(argv: Optional[list[str]] = None) -> int:
    """Start an interactive shell on the current environment."""
    try:
        import readline  # noqa: F401  (line editing and history for input())
    except ImportError:
        pass
    return Shell().loop()


if __name__ == "__main__":
    raise SystemExit(main())