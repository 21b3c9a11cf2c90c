"""Splitting a command line into tokens and the tokens into commands."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from minishell.expand import expand_word
from minishell.validator import ShellSyntaxError, validate

_BOUNDARY_CHARS = " \t<|>"
_OPERATOR_CHARS = "<|>"
_REDIRECT_OPERATORS = frozenset({">", ">>", "<", "<<"})


@dataclass
class Token:
    """A piece of the command line.

    ``space_after`` tells whether blank space or the end of the line follows
    the token; the redirect flags mark an operator and the file it names.
    """

    value: str
    space_after: bool = True
    redirect_operator: bool = False
    redirect_target: bool = False


@dataclass
class Redirection:
    """A redirection such as ``> file`` or ``<< EOF``."""

    kind: str
    target: str


@dataclass
class Command:
    """One stage of a pipeline: its arguments and redirections."""

    argv: list[str] = field(default_factory=list)
    redirections: list[Redirection] = field(default_factory=list)
    tokens: list[Token] = field(default_factory=list)


def _at(line: str, index: int) -> str:
    return line[index] if 0 <= index < len(line) else ""


def _skip_blanks(line: str, index: int) -> int:
    while index < len(line) and line[index] in " \t":
        index += 1
    return index


def _find_boundary(line: str, pos: int) -> tuple[int, int]:
    """Return where the word at ``pos`` ends and the width of an operator there."""
    while pos < len(line):
        char = line[pos]
        if char in "'\"":
            closing = line.find(char, pos + 1)
            return (len(line) if closing == -1 else closing + 1), 0
        if char in _BOUNDARY_CHARS:
            width = 0
            if char in _OPERATOR_CHARS:
                width = 1
            if char in "<>" and _at(line, pos + 1) in ("<", ">", ""):
                width = 2
            return pos, width
        pos += 1
    return pos, 0


def _mark_redirections(tokens: list[Token]) -> None:
    index = 0
    while index < len(tokens):
        token = tokens[index]
        if token.value not in _REDIRECT_OPERATORS:
            index += 1
            continue
        if index + 1 >= len(tokens):
            raise ShellSyntaxError("syntax error near unexpected token `newline'")
        token.redirect_operator = True
        tokens[index + 1].redirect_target = True
        index += 2


def tokenize(line: str) -> list[Token]:
    """Split ``line`` into words and operators, marking redirections."""
    tokens: list[Token] = []
    pos = 0
    while pos < len(line):
        pos = _skip_blanks(line, pos)
        if pos >= len(line):
            break
        start = pos
        end, width = _find_boundary(line, pos)
        space_after = _at(line, end) in ("", " ", "\t")
        if width:
            if end > start:
                tokens.append(Token(line[start:end], space_after))
            tokens.append(Token(line[end:end + width], False))
            pos = end + width
        else:
            tokens.append(Token(line[start:end], space_after))
            pos = end
    _mark_redirections(tokens)
    return tokens


def _build_command(segment: list[Token]) -> Command:
    if segment and segment[0].value == "|":
        return Command()
    redirections: list[Redirection] = []
    words: list[Token] = []
    remaining = iter(segment)
    for token in remaining:
        if not token.redirect_operator:
            words.append(token)
            continue
        target = next(remaining, None)
        if target is None:
            raise ShellSyntaxError("syntax error near unexpected token `newline'")
        redirections.append(Redirection(token.value, target.value))
    return Command([token.value for token in words], redirections, words)


def split_commands(tokens: Iterable[Token]) -> list[Command]:
    """Group tokens into pipeline stages split at ``|``; nothing is expanded."""
    tokens = list(tokens)
    if not tokens:
        return []
    segments: list[list[Token]] = []
    current: list[Token] = []
    for index, token in enumerate(tokens):
        if token.value == "|" and index > 0:
            segments.append(current)
            current = []
        else:
            current.append(token)
    if tokens[-1].value == "|" and len(tokens) > 1:
        raise ShellSyntaxError("syntax error near unexpected token `|'")
    segments.append(current)
    return [_build_command(segment) for segment in segments]


def parse_line(line: str, env, exit_status: int) -> list[Command]:
    """Validate, tokenize and expand ``line`` into a list of commands.

    Raises :class:`ShellSyntaxError` when the line is malformed.
    """
    validate(line)
    commands = split_commands(tokenize(line))
    for command in commands:
        command.argv = [expand_word(word, env, exit_status) for word in command.argv]
    if commands:
        for redirection in commands[0].redirections:
            redirection.target = expand_word(redirection.target, env, exit_status)
    return commands