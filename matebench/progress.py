from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator, List, Optional, TextIO

from tqdm import tqdm

BAR_FORMAT = "({elapsed})[{remaining:>5}] {bar:40} {n_fmt:>6}/{total_fmt:7} {desc}"


class ProgressHandle:
    """One job's bar. Updates are serialized through the owning board."""

    def __init__(self, board: "ProgressBoard", bar: tqdm, slot: int):
        self._board = board
        self._bar = bar
        self.slot = slot

    def advance(self, n: int = 1) -> None:
        with self._board._lock:
            self._bar.update(n)


class ProgressBoard:
    """Coordinates the live bars of concurrently running jobs.

    Every job gets its own terminal line (slot); freed slots are reused so the
    display never grows beyond the worker count.
    """

    def __init__(self, enabled: bool = True, file: Optional[TextIO] = None):
        self.enabled = enabled
        self.file = file
        self._lock = threading.RLock()
        self._free_slots: List[int] = []
        self._next_slot = 0

    def _acquire_slot(self) -> int:
        with self._lock:
            if self._free_slots:
                return self._free_slots.pop(0)
            slot = self._next_slot
            self._next_slot += 1
            return slot

    @contextmanager
    def track(self, total: int, desc: str) -> Iterator[ProgressHandle]:
        slot = self._acquire_slot()
        with self._lock:
            bar = tqdm(
                total=total,
                desc=desc,
                position=slot,
                leave=False,
                dynamic_ncols=True,
                bar_format=BAR_FORMAT,
                disable=not self.enabled,
                file=self.file,
            )
        try:
            yield ProgressHandle(self, bar, slot)
        finally:
            with self._lock:
                bar.close()
                self._free_slots.append(slot)
                self._free_slots.sort()

    def write(self, message: str) -> None:
        with self._lock:
            tqdm.write(message, file=self.file)
