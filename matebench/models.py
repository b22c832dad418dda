from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Dict, Mapping, Optional

if TYPE_CHECKING:
    from .stats import RunStatistics


DEFAULT_ENGINE_FLAGS: Dict[str, str] = {
    "GenerateAllLegalMoves": "true",
    "PvInterval": "0",
    "RootIsAndNodeIfChecked": "false",
    "PostSearchLevel": "None",
}


class VerdictKind(str, Enum):
    MATE = "mate"
    NO_MATE = "nomate"
    ERROR = "error"


@dataclass(frozen=True)
class EngineOptions:
    threads: int = 1
    hash_mb: int = 16
    mate_timeout_s: float = 30.0
    flags: Mapping[str, str] = field(default_factory=lambda: dict(DEFAULT_ENGINE_FLAGS))

    def __post_init__(self) -> None:
        object.__setattr__(self, "flags", MappingProxyType(dict(self.flags)))
        if self.threads < 1:
            raise ValueError("Threads must be greater than 0")
        if self.hash_mb < 1:
            raise ValueError("Hash size must be greater than 0")

    def usi_options(self) -> list[tuple[str, str]]:
        options = [("Threads", str(self.threads)), ("USI_Hash", str(self.hash_mb))]
        options.extend(self.flags.items())
        return options


@dataclass(frozen=True)
class JobResult:
    """Outcome of one solve job.

    ``stats`` is copied on construction, so later updates to the statistics
    the job was built from never show up in a handed-off result.
    """

    file_path: str
    stats: RunStatistics
    error: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "stats", self.stats.snapshot())

    @property
    def failed(self) -> bool:
        return self.error is not None
