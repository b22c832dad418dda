from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Union

from .models import VerdictKind


# Tokens in an ``info`` line that carry a single integer value.
INFO_INT_KEYS = {"depth", "seldepth", "time", "nodes", "nps", "hashfull", "multipv"}


@dataclass(frozen=True)
class CheckmateResponse:
    kind: VerdictKind
    moves: tuple[str, ...] = ()
    raw: str = ""


@dataclass(frozen=True)
class InfoResponse:
    nodes: Optional[int] = None
    depth: Optional[int] = None
    pv: Optional[tuple[str, ...]] = None
    score: Optional[str] = None
    string: Optional[str] = None
    values: dict = field(default_factory=dict)

    @property
    def has_pv(self) -> bool:
        return self.pv is not None


@dataclass(frozen=True)
class OtherResponse:
    keyword: str
    raw: str = ""


EngineResponse = Union[CheckmateResponse, InfoResponse, OtherResponse]


def parse_checkmate(tokens: list[str], raw: str = "") -> CheckmateResponse:
    if not tokens:
        return CheckmateResponse(VerdictKind.ERROR, raw=raw)
    head = tokens[0].lower()
    if head == "nomate":
        return CheckmateResponse(VerdictKind.NO_MATE, raw=raw)
    if head in {"timeout", "notimplemented"}:
        return CheckmateResponse(VerdictKind.ERROR, raw=raw)
    return CheckmateResponse(VerdictKind.MATE, tuple(tokens), raw=raw)


def parse_info(tokens: list[str]) -> InfoResponse:
    values: dict = {}
    pv = None
    string = None
    score = None
    i = 0
    while i < len(tokens):
        key = tokens[i]
        if key == "pv":
            pv = tuple(tokens[i + 1 :])
            break
        if key == "string":
            string = " ".join(tokens[i + 1 :])
            break
        if key == "score" and i + 2 < len(tokens):
            score = f"{tokens[i + 1]} {tokens[i + 2]}"
            i += 3
            continue
        if key in INFO_INT_KEYS and i + 1 < len(tokens):
            try:
                values[key] = int(tokens[i + 1])
            except ValueError:
                pass
            i += 2
            continue
        if key == "currmove" and i + 1 < len(tokens):
            values[key] = tokens[i + 1]
            i += 2
            continue
        i += 1

    return InfoResponse(
        nodes=values.get("nodes"),
        depth=values.get("depth"),
        pv=pv,
        score=score,
        string=string,
        values=values,
    )


def parse_engine_line(line: str) -> Optional[EngineResponse]:
    stripped = line.strip()
    if not stripped:
        return None
    tokens = stripped.split()
    keyword = tokens[0]
    if keyword == "checkmate":
        return parse_checkmate(tokens[1:], raw=stripped)
    if keyword == "info":
        return parse_info(tokens[1:])
    return OtherResponse(keyword, raw=stripped)
