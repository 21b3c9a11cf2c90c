"""Here-documents and file redirections for a command."""

from __future__ import annotations

import os
import tempfile
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import BinaryIO, Optional

from minishell.lexer import Command

_FILE_MODE = 0o644


class RedirectionError(Exception):
    """A redirection could not be set up."""

    def __init__(self, message: str, exit_status: int = 1) -> None:
        super().__init__(message)
        self.message = message
        self.exit_status = exit_status


def read_heredoc(delimiter: str, read_line: Callable[[str], Optional[str]]) -> str:
    """Read lines with the ``> `` prompt until ``delimiter`` or end of input.

    ``read_line`` returns ``None`` or raises :class:`EOFError` at end of
    input. An interrupt raises :class:`RedirectionError` with status 130.
    """
    lines: list[str] = []
    while True:
        try:
            line = read_line("> ")
        except EOFError:
            break
        except KeyboardInterrupt:
            raise RedirectionError("here-document interrupted", 130) from None
        if line is None or line == delimiter:
            break
        lines.append(f"{line}\n")
    return "".join(lines)


def _heredoc_stream(text: str) -> BinaryIO:
    stream = tempfile.TemporaryFile()
    stream.write(text.encode())
    stream.seek(0)
    return stream


def _open(target: str, flags: int, mode: str) -> BinaryIO:
    try:
        fd = os.open(target, flags, _FILE_MODE)
    except OSError as exc:
        raise RedirectionError(f"{target}: {exc.strerror or exc}") from None
    return os.fdopen(fd, mode)


_OPENERS = {
    "<": (os.O_RDONLY, "rb"),
    ">": (os.O_CREAT | os.O_WRONLY | os.O_TRUNC, "wb"),
    ">>": (os.O_CREAT | os.O_WRONLY | os.O_APPEND, "ab"),
}


@contextmanager
def open_redirections(
    command: Command, heredoc_text: Optional[str] = None
) -> Iterator[tuple[Optional[BinaryIO], Optional[BinaryIO]]]:
    """Open a command's files and yield its ``(stdin, stdout)`` streams.

    ``heredoc_text`` is the input read for the command's here-document;
    ``<`` redirections replace it. ``None`` means the stream is inherited.
    Every file named is opened in order, so outputs are created even when
    a later redirection wins. All streams are closed on leaving.
    """
    stdin: Optional[BinaryIO] = None
    stdout: Optional[BinaryIO] = None
    try:
        if heredoc_text is not None:
            stdin = _heredoc_stream(heredoc_text)
        for redirection in command.redirections:
            opener = _OPENERS.get(redirection.kind)
            if opener is None:
                continue
            stream = _open(redirection.target, *opener)
            if redirection.kind == "<":
                if stdin is not None:
                    stdin.close()
                stdin = stream
            else:
                if stdout is not None:
                    stdout.close()
                stdout = stream
        yield stdin, stdout
    finally:
        for stream in (stdin, stdout):
            if stream is not None:
                stream.close()