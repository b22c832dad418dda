from __future__ import annotations

import os
import shlex
import sys
from pathlib import Path

import pytest

# Each position line is "<verdict> <nodes>", e.g. "mate 10". The fake engine
# answers "go" with a pv-less info (ignored), a pv info carrying <nodes>, and
# the checkmate verdict.
FAKE_ENGINE = """\
import sys

args = sys.argv[1:]
if "--exit-on-start" in args:
    sys.exit(1)
crash_after = int(args[args.index("--crash-after") + 1]) if "--crash-after" in args else None


def out(text):
    sys.stdout.write(text + "\\n")
    sys.stdout.flush()


current = []
solved = 0
for line in sys.stdin:
    tokens = line.split()
    if not tokens:
        continue
    cmd = tokens[0]
    if cmd == "usi":
        out("id name fake")
        out("usiok")
    elif cmd == "isready":
        out("readyok")
    elif cmd == "position":
        current = tokens[2:] if len(tokens) > 1 and tokens[1] == "sfen" else tokens[1:]
    elif cmd == "go":
        if crash_after is not None and solved >= crash_after:
            sys.exit(3)
        verdict = current[0] if current else "error"
        nodes = current[1] if len(current) > 1 else "0"
        out("info string searching")
        out("info depth 1 nodes 999")
        out("info depth 3 nodes " + nodes + " pv 1a1b")
        if verdict == "mate":
            out("checkmate 1a1b 2c2d")
        elif verdict == "nomate":
            out("checkmate nomate")
        else:
            out("checkmate timeout")
        solved += 1
    elif cmd == "quit":
        break
"""


def _quote_cmd_arg(value: str) -> str:
    if os.name == "nt":
        return f"\"{value}\"" if any(ch.isspace() for ch in value) else value
    return shlex.quote(value)


@pytest.fixture
def fake_engine(tmp_path: Path):
    script = tmp_path / "fake_engine.py"
    script.write_text(FAKE_ENGINE, encoding="utf-8")

    def command(*extra: str) -> str:
        parts = [sys.executable, str(script), *extra]
        return " ".join(_quote_cmd_arg(p) for p in parts)

    return command


@pytest.fixture
def sfen_file(tmp_path: Path):
    def write(name: str, lines: list[str]) -> Path:
        path = tmp_path / name
        path.write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")
        return path

    return write
