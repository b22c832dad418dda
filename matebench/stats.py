from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from typing import Callable, List, Optional

from .models import VerdictKind
from .parsers import InfoResponse


@dataclass
class RunStatistics:
    """Counters for one solve job.

    ``mate_count + nomate_count + error_count == positions_processed`` holds
    after every update. ``pending_nodes`` belongs to the position currently in
    flight and only reaches ``total_nodes`` once that position's verdict lands.
    """

    positions_processed: int = 0
    mate_count: int = 0
    nomate_count: int = 0
    error_count: int = 0
    total_nodes: int = 0
    pending_nodes: int = 0
    flagged_indices: List[int] = field(default_factory=list)
    elapsed: float = 0.0

    def on_verdict(self, kind: VerdictKind) -> None:
        index = self.positions_processed
        self.positions_processed += 1
        self.total_nodes += self.pending_nodes
        self.pending_nodes = 0
        if kind == VerdictKind.MATE:
            self.mate_count += 1
        elif kind == VerdictKind.NO_MATE:
            self.nomate_count += 1
            self.flagged_indices.append(index)
        else:
            self.error_count += 1
            self.flagged_indices.append(index)

    def on_progress(self, info: InfoResponse) -> None:
        # Only pv-carrying infos report the node count for the current search.
        if not info.has_pv:
            return
        self.pending_nodes = info.nodes or 0

    def snapshot(self) -> "RunStatistics":
        return replace(self, flagged_indices=list(self.flagged_indices))

    def nodes_per_second(self) -> float:
        if self.elapsed <= 0:
            return 0.0
        return self.total_nodes / self.elapsed


class StatsTracker:
    """Lock-guarded ``RunStatistics`` shared by a listener and a waiter.

    The listener thread calls :meth:`on_verdict` / :meth:`on_progress`; the
    submitting thread blocks in :meth:`wait_for_processed`. The waiter is woken
    by a notify as soon as the target count is reached and also re-checks every
    ``poll_interval`` seconds.
    """

    def __init__(self, poll_interval: float = 0.1):
        if poll_interval <= 0:
            raise ValueError("Poll interval must be greater than 0")
        self.poll_interval = poll_interval
        self._stats = RunStatistics()
        self._cond = threading.Condition()

    def on_verdict(self, kind: VerdictKind) -> int:
        with self._cond:
            self._stats.on_verdict(kind)
            processed = self._stats.positions_processed
            self._cond.notify_all()
        return processed

    def on_progress(self, info: InfoResponse) -> None:
        with self._cond:
            self._stats.on_progress(info)

    @property
    def processed(self) -> int:
        with self._cond:
            return self._stats.positions_processed

    def wait_for_processed(
        self,
        target: int,
        should_abort: Optional[Callable[[], bool]] = None,
    ) -> bool:
        """Block until at least ``target`` verdicts have been recorded.

        Returns ``False`` when ``should_abort`` reports true before the target
        is reached. ``should_abort`` is evaluated without the lock held.
        """
        while True:
            with self._cond:
                if self._cond.wait_for(
                    lambda: self._stats.positions_processed >= target,
                    timeout=self.poll_interval,
                ):
                    return True
            if should_abort is not None and should_abort():
                return self.processed >= target

    def finish(self, elapsed: float) -> RunStatistics:
        with self._cond:
            self._stats.elapsed = elapsed
            return self._stats.snapshot()
