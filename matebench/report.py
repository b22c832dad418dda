from __future__ import annotations

from typing import Callable, Iterable, List, Optional

from .models import JobResult
from .stats import RunStatistics

MAX_LISTED_INDICES = 10


def format_indices(indices: List[int], limit: int = MAX_LISTED_INDICES) -> str:
    text = ", ".join(str(i) for i in indices[:limit])
    if len(indices) > limit:
        text += ", ..."
    return text


def format_stats(file_path: str, stats: RunStatistics) -> List[str]:
    lines = [
        f"[{file_path:>48}:{stats.elapsed:>6.1f}s] "
        f"nps: {stats.nodes_per_second():10.2f}, "
        f"nodes: {stats.total_nodes:10}, "
        f"pos: {stats.positions_processed:6}"
    ]
    if stats.nomate_count > 0:
        lines.append(f"  Nomate: {stats.nomate_count}")
    if stats.error_count > 0:
        lines.append(f"  Errors: {stats.error_count}")
    if stats.flagged_indices:
        lines.append(f"  Error or Nomate indices: {format_indices(stats.flagged_indices)}")
    return lines


def collect_results(
    results: Iterable[JobResult],
    emit: Optional[Callable[[str], None]] = None,
) -> int:
    """Print one report per finished job, then the grand total of nodes.

    ``results`` is consumed in arrival order; the grand total is returned.
    """
    emit = emit or print
    total_nodes = 0
    for result in results:
        total_nodes += result.stats.total_nodes
        for line in format_stats(result.file_path, result.stats):
            emit(line)
    emit(f"Total nodes: {total_nodes}")
    return total_nodes
