from __future__ import annotations

import os
import shlex
from pathlib import Path
from typing import Iterator, Union


def split_command(command: str) -> list[str]:
    return shlex.split(command, posix=os.name != "nt")


def engine_command(engine_path: Union[str, Path]) -> list[str]:
    """Turn the ``--engine`` value into an argv list.

    A path to an existing file is used as-is, so paths containing spaces need
    no quoting; anything else is split like a shell command line
    (``"python fake_engine.py"``).
    """
    path_str = str(engine_path)
    if Path(path_str).is_file():
        return [path_str]
    return split_command(path_str)


def count_positions(path: Union[str, Path]) -> int:
    with open(path, "r", encoding="utf-8") as f:
        return sum(1 for _ in f)


def iter_positions(path: Union[str, Path]) -> Iterator[str]:
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            yield line.rstrip("\r\n")


def display_name(path: Union[str, Path]) -> str:
    name = Path(path).name
    return name or str(path)


def engine_label(command: list[str]) -> str:
    """Short name for log lines: the last argv token naming an existing file.

    For ``python fake_engine.py --crash-after 1`` that is the script, not the
    trailing option value.
    """
    for token in reversed(command):
        if Path(token).is_file():
            return Path(token).name
    return Path(command[0]).name if command else "engine"
