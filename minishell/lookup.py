"""Finding the program a command name refers to."""

from __future__ import annotations

import os
from typing import Optional

from minishell.env import Environment


def _is_executable(path: str) -> bool:
    return os.access(path, os.X_OK)


def find_executable(name: str, env: Environment) -> Optional[str]:
    """Return the path to run for ``name``, or ``None`` if none is found.

    A name containing ``/`` is used as is when executable; otherwise each
    non-empty directory of ``PATH`` is tried in order.
    """
    if "/" in name and _is_executable(name):
        return name
    path_value = env.get("PATH")
    if path_value is None:
        return None
    for directory in filter(None, path_value.split(":")):
        candidate = f"{directory}/{name}"
        if _is_executable(candidate):
            return candidate
    return None