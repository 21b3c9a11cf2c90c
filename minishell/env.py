"""Shell environment variables and the state shared across commands."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class EnvVar:
    """One environment entry: its key, its value and its ``KEY=value`` line.

    A value of ``None`` marks a variable that is known but has no value.
    """

    key: str
    value: Optional[str]
    line: Optional[str] = None

    def __post_init__(self) -> None:
        if self.line is None:
            self.line = self._compose_line()

    def _compose_line(self) -> str:
        if self.value is None:
            return self.key
        return f"{self.key}={self.value}"

    def _assign(self, value: str) -> None:
        self.value = value
        self.line = f"{self.key}={value}"


class Environment:
    """Ordered collection of environment variables."""

    def __init__(self, variables: Iterable[EnvVar] = ()) -> None:
        self._vars: dict[str, EnvVar] = {}
        for var in variables:
            self._vars.setdefault(var.key, var)

    def __iter__(self) -> Iterator[EnvVar]:
        return iter(list(self._vars.values()))

    def __len__(self) -> int:
        return len(self._vars)

    def __contains__(self, key: object) -> bool:
        return key in self._vars

    def __repr__(self) -> str:
        return f"Environment({list(self._vars.values())!r})"

    def get(self, key: str) -> Optional[str]:
        """Return the value of ``key``, or ``None`` if it is unset or valueless."""
        var = self._vars.get(key)
        return None if var is None else var.value

    def set(self, key: str, value: str) -> None:
        """Give ``key`` the value ``value``, adding it at the end if new."""
        var = self._vars.get(key)
        if var is None:
            self._vars[key] = EnvVar(key, value)
        else:
            var._assign(value)

    def append_value(self, key: str, value: str) -> None:
        """Append ``value`` to the current value of ``key`` (``KEY+=value``)."""
        var = self._vars.get(key)
        if var is None:
            self._vars[key] = EnvVar(key, value)
        else:
            var._assign((var.value or "") + value)

    def unset(self, key: str) -> bool:
        """Remove ``key``; return whether it was present."""
        return self._vars.pop(key, None) is not None

    def to_envp(self) -> list[str]:
        """Return the ``KEY=value`` lines handed to child programs."""
        return [var.line for var in self._vars.values() if var.line is not None]


@dataclass
class ShellState:
    """Mutable state of a running shell: its environment and last exit status."""

    env: Environment = field(default_factory=Environment)
    exit_status: int = 0


def _parse_env_line(text: str) -> EnvVar:
    key, sep, value = text.partition("=")
    if key == "OLDPWD" or not sep:
        return EnvVar(key, None, text)
    return EnvVar(key, value, text)


def copy_envp(envp: Iterable[str] | Mapping[str, str]) -> Environment:
    """Build an :class:`Environment` from ``KEY=value`` strings or a mapping.

    ``OLDPWD`` is kept in the exported lines but starts without a value.
    """
    if isinstance(envp, Mapping):
        lines: Iterable[str] = (f"{key}={value}" for key, value in envp.items())
    else:
        lines = envp
    return Environment(_parse_env_line(line) for line in lines)


def _is_ascii_alpha(char: str) -> bool:
    return char.isascii() and char.isalpha()


def _is_ascii_alnum(char: str) -> bool:
    return char.isascii() and char.isalnum()


def validate_var_name(name: Optional[str]) -> bool:
    """Tell whether ``name`` is a valid shell identifier."""
    if not name:
        return False
    first, rest = name[0], name[1:]
    if not (_is_ascii_alpha(first) or first == "_"):
        return False
    return all(_is_ascii_alnum(char) or char == "_" for char in rest)