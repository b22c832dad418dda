from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Iterable, Iterator, Optional, Union

from .models import EngineOptions, JobResult
from .parsers import CheckmateResponse, EngineResponse, InfoResponse
from .progress import ProgressBoard
from .session import EngineSession
from .stats import RunStatistics, StatsTracker
from .usi import CommandError, UsiError
from .utils import count_positions, display_name, iter_positions

logger = logging.getLogger(__name__)

DEFAULT_WORKERS = 4
DEFAULT_POLL_INTERVAL = 0.1


def _listener(tracker: StatsTracker, handle):
    def on_response(response: EngineResponse) -> None:
        if isinstance(response, CheckmateResponse):
            tracker.on_verdict(response.kind)
            handle.advance()
        elif isinstance(response, InfoResponse):
            tracker.on_progress(response)

    return on_response


def _wait(session: EngineSession, tracker: StatsTracker, target: int) -> None:
    if not tracker.wait_for_processed(target, should_abort=lambda: session.engine_exited):
        raise CommandError(
            f"Engine exited after {tracker.processed} of {target} verdicts"
        )


def solve_file(
    engine_path: Union[str, Path],
    options: EngineOptions,
    sfen_path: Union[str, Path],
    board: Optional[ProgressBoard] = None,
    cwd: Union[str, Path] = ".",
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    serial: bool = False,
) -> JobResult:
    """Solve every position in ``sfen_path`` with a fresh engine process.

    Spawn, command and file errors are contained here: the job then reports
    all-zero statistics and carries the reason in ``JobResult.error``.
    """
    board = board or ProgressBoard(enabled=False)
    path_str = str(sfen_path)
    try:
        stats = _solve(engine_path, options, path_str, board, cwd, poll_interval, serial)
    except (OSError, UnicodeDecodeError, UsiError) as exc:
        logger.warning("Job for %s failed: %s", path_str, exc)
        return JobResult(file_path=path_str, stats=RunStatistics(), error=str(exc))
    return JobResult(file_path=path_str, stats=stats)


def _solve(
    engine_path: Union[str, Path],
    options: EngineOptions,
    sfen_path: str,
    board: ProgressBoard,
    cwd: Union[str, Path],
    poll_interval: float,
    serial: bool,
) -> RunStatistics:
    num_positions = count_positions(sfen_path)
    tracker = StatsTracker(poll_interval=poll_interval)

    with board.track(num_positions, display_name(sfen_path)) as handle:
        with EngineSession.initialize(engine_path, options, cwd=cwd) as session:
            session.register_response_listener(_listener(tracker, handle))

            start_time = time.perf_counter()
            for index, sfen in enumerate(iter_positions(sfen_path)):
                if serial:
                    _wait(session, tracker, index)
                session.submit_position(sfen)

            _wait(session, tracker, num_positions)
            elapsed = time.perf_counter() - start_time

    stats = tracker.finish(elapsed)
    logger.debug(
        "%s: %d positions in %.2fs", sfen_path, stats.positions_processed, stats.elapsed
    )
    return stats


def run_jobs(
    engine_path: Union[str, Path],
    sfen_paths: Iterable[Union[str, Path]],
    options: EngineOptions,
    workers: int = DEFAULT_WORKERS,
    board: Optional[ProgressBoard] = None,
    cwd: Union[str, Path] = ".",
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    serial: bool = False,
) -> Iterator[JobResult]:
    """Run one solve job per file on at most ``workers`` threads.

    Results are yielded in completion order.
    """
    if workers < 1:
        raise ValueError("Workers must be greater than 0")
    if poll_interval <= 0:
        raise ValueError("Poll interval must be greater than 0")
    board = board or ProgressBoard(enabled=False)
    paths = [str(p) for p in sfen_paths]

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="solve") as executor:
        futures = {
            executor.submit(
                solve_file, engine_path, options, path, board, cwd, poll_interval, serial
            ): path
            for path in paths
        }
        for future in as_completed(futures):
            path = futures[future]
            try:
                result = future.result()
            except Exception as exc:
                logger.exception("Job for %s crashed", path)
                result = JobResult(file_path=path, stats=RunStatistics(), error=str(exc))
            yield result
