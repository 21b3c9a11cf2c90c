"""Expansion of quotes, escapes and ``$`` references inside a word."""

from __future__ import annotations

from typing import Optional, Protocol


class _Lookup(Protocol):
    def get(self, key: str) -> Optional[str]: ...


_SEPARATORS = frozenset(" \t|<>")
_ESCAPABLE = ('"', "$", "\\")


def is_token_separator(char: str) -> bool:
    """Tell whether ``char`` ends a word on the command line."""
    return char in _SEPARATORS


def _is_name_char(char: str) -> bool:
    return char == "_" or (char.isascii() and char.isalnum())


class _Expander:
    """Rewrites a word in place while scanning it from left to right."""

    def __init__(self, text: str, env: _Lookup, exit_status: int) -> None:
        self.text = text
        self.pos = 0
        self.env = env
        self.exit_status = exit_status
        self.in_single_quotes = False

    def at(self, index: int) -> str:
        if 0 <= index < len(self.text):
            return self.text[index]
        return ""

    def run(self) -> str:
        if not self.text:
            return self.text
        while self.at(self.pos):
            self._special()
            if not self.at(self.pos):
                break
            self.pos += 1
        return self.text

    def _special(self) -> None:
        char = self.at(self.pos)
        if char == "'":
            self._single_quote()
        elif char == '"':
            self._double_quote()
        elif char == "$" and not self.in_single_quotes:
            self._dollar()
            if not self.at(self.pos):
                return
            self.pos -= 1

    def _strip_quotes(self, start: int, end: int) -> None:
        if start < 0 or end < start or end >= len(self.text):
            return
        self.text = (
            self.text[:start] + self.text[start + 1:end] + self.text[end + 1:]
        )

    def _single_quote(self) -> None:
        self.in_single_quotes = not self.in_single_quotes
        start = self.pos
        while True:
            self.pos += 1
            char = self.at(self.pos)
            if not char or char == "'":
                break
        self._strip_quotes(start, self.pos)
        current = self.at(self.pos)
        if not current:
            return
        if current in ("'", '"') and (
            self.pos == 0 or not is_token_separator(self.at(self.pos - 1))
        ):
            return
        self.in_single_quotes = False

    def _double_quote(self) -> None:
        start = self.pos
        while True:
            self.pos += 1
            if not self.at(self.pos):
                break
            if self.at(self.pos) == "\\" and self.at(self.pos + 1) in _ESCAPABLE:
                self.text = self.text[:self.pos] + self.text[self.pos + 1:]
                self.pos += 1
            if self.at(self.pos) == "$":
                self._dollar()
            if self.at(self.pos) == '"':
                break
        self._strip_quotes(start, self.pos)

    def _dollar(self) -> None:
        start = self.pos
        following = self.at(start + 1)
        if following in ("?", ""):
            self.pos += 2
            self.text = (
                self.text[:start] + str(self.exit_status) + self.text[self.pos:]
            )
            return
        if following == "{":
            self._curly(start)
            return
        self.pos = start + 1
        while self.at(self.pos) and _is_name_char(self.at(self.pos)):
            self.pos += 1
        if self.pos == start + 1:
            return
        self._replace(start, self.pos)

    def _curly(self, start: int) -> None:
        self.pos += 1
        while True:
            self.pos += 1
            char = self.at(self.pos)
            if not char:
                break
            if char == "}":
                self.pos += 1
                break
            if not _is_name_char(char):
                return
        if self.at(self.pos - 1) != "}":
            return
        if self.pos - 1 <= start + 2:
            return
        self._replace(start, self.pos)

    def _replace(self, start: int, end: int) -> None:
        if self.at(start + 1) == "{" and self.at(end - 1) == "}":
            key = self.text[start + 2:end - 1]
        else:
            key = self.text[start + 1:end]
        value = self.env.get(key) or ""
        self.text = self.text[:start] + value + self.text[end:]


def expand_word(word: str, env: _Lookup, exit_status: int) -> str:
    """Remove quotes and escapes from ``word`` and substitute ``$`` references.

    ``$NAME`` and ``${NAME}`` take their value from ``env`` (empty if unset),
    ``$?`` becomes ``exit_status``; nothing is substituted inside single quotes.
    """
    return _Expander(word, env, exit_status).run()