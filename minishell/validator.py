"""Syntax checks run on a command line before it is parsed."""

from __future__ import annotations


class ShellSyntaxError(Exception):
    """A command line was rejected; the message is what the shell reports."""

    exit_status = 2

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


def _unexpected(token: str) -> ShellSyntaxError:
    return ShellSyntaxError(f"syntax error near unexpected token `{token}'")


def _char(line: str, index: int) -> str:
    return line[index] if 0 <= index < len(line) else ""


def _skip_blanks(line: str, index: int) -> int:
    while index < len(line) and line[index] in " \t":
        index += 1
    return index


def _check_start(line: str, index: int) -> None:
    char, following = line[index], _char(line, index + 1)
    if char == "|":
        raise _unexpected("||" if following == "|" else "|")
    raise _unexpected(";;" if following == ";" else ";")


def _check_after_separator(line: str, index: int) -> None:
    index = _skip_blanks(line, index)
    char = _char(line, index)
    if char == "|":
        raise _unexpected("||" if _char(line, index + 1) == "|" else "|")
    if char == ";":
        doubled = _char(line, index + 1) == ";" or _char(line, index - 1) == ";"
        raise _unexpected(";;" if doubled else ";")


def _closing_quote(line: str, index: int) -> int:
    closing = line.find(line[index], index + 1)
    if closing == -1:
        raise ShellSyntaxError("syntax error - unclosed quotes")
    return closing


def _check_target(line: str, index: int) -> int:
    index = _skip_blanks(line, index)
    char = _char(line, index)
    if char == "":
        raise _unexpected("newline")
    if char in "|><;":
        raise _unexpected(char)
    return index


def _check_redirection(line: str, index: int) -> int:
    """Check the operator at ``index``; return the index before its target."""
    operator = line[index]
    index += 1
    char = _char(line, index)
    if operator == ">":
        if char in ("", "|"):
            raise _unexpected("newline")
        if char == "<":
            raise _unexpected("<")
        if char == ">":
            index += 1
    else:
        if char in ("", ">"):
            raise _unexpected("newline")
        if char == "|":
            raise _unexpected("|")
        if char == "<":
            index += 1
    return _check_target(line, index) - 1


def validate(line: str) -> None:
    """Raise :class:`ShellSyntaxError` if ``line`` is not well formed."""
    index = _skip_blanks(line, 0)
    if _char(line, index) in ("|", ";"):
        _check_start(line, index)
    while index < len(line):
        if line[index] in "|;":
            _check_after_separator(line, index + 1)
        if line[index] == "'":
            index = _closing_quote(line, index)
        if line[index] == '"':
            index = _closing_quote(line, index)
        if line[index] in "<>":
            index = _check_redirection(line, index)
        index += 1