"""The ``export`` builtin: listing, assigning and appending variables."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TextIO

from minishell.env import Environment, EnvVar, validate_var_name


def _format_var(var: EnvVar) -> str:
    if var.value is None:
        return var.key
    return f'{var.key}="{var.value}"'


def format_export_listing(env: Environment) -> list[str]:
    """Return the ``declare -x`` lines for every variable, sorted."""
    return [f"declare -x {entry}" for entry in sorted(_format_var(var) for var in env)]


def _export_one(arg: str, env: Environment, stderr: TextIO) -> bool:
    if "+=" in arg:
        name, _, value = arg.partition("+=")
        apply = env.append_value
    elif "=" in arg:
        name, _, value = arg.partition("=")
        apply = env.set
    else:
        name, value, apply = arg, None, None
    if not validate_var_name(name):
        stderr.write(f"export: '{arg}': not a valid identifier\n")
        return False
    if apply is None:
        if name not in env:
            env.set(name, "")
    else:
        apply(name, value)
    return True


def builtin_export(argv: Sequence[str], env: Environment, stdout: TextIO, stderr: TextIO) -> int:
    """List the environment, or set ``NAME``, ``NAME=value`` and ``NAME+=value``.

    Returns 1 if any argument was not a valid identifier, 0 otherwise.
    """
    if len(argv) == 1:
        for line in format_export_listing(env):
            stdout.write(f"{line}\n")
        return 0
    status = 0
    for arg in argv[1:]:
        if not _export_one(arg, env, stderr):
            status = 1
    return status