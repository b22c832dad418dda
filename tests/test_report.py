from matebench.models import JobResult
from matebench.report import collect_results, format_indices, format_stats
from matebench.stats import RunStatistics


def test_format_indices_truncates_after_ten():
    assert format_indices(list(range(15))) == "0, 1, 2, 3, 4, 5, 6, 7, 8, 9, ..."
    assert format_indices(list(range(10))) == "0, 1, 2, 3, 4, 5, 6, 7, 8, 9"
    assert format_indices([3]) == "3"


def test_format_stats_lists_outcomes():
    stats = RunStatistics(
        positions_processed=20,
        mate_count=5,
        nomate_count=12,
        error_count=3,
        total_nodes=1000,
        flagged_indices=list(range(15)),
        elapsed=2.0,
    )
    lines = format_stats("tests/a.sfen", stats)

    assert lines[0] == (
        f"[{'tests/a.sfen':>48}:   2.0s] nps:     500.00, nodes:       1000, pos:     20"
    )
    assert lines[1] == "  Nomate: 12"
    assert lines[2] == "  Errors: 3"
    assert lines[3] == "  Error or Nomate indices: 0, 1, 2, 3, 4, 5, 6, 7, 8, 9, ..."


def test_format_stats_zero_elapsed_and_clean_run():
    lines = format_stats("a.sfen", RunStatistics(positions_processed=1, mate_count=1, total_nodes=7))
    assert len(lines) == 1
    assert "nps:       0.00" in lines[0]


def test_collect_results_accumulates_grand_total():
    results = [
        JobResult("a.sfen", RunStatistics(positions_processed=1, mate_count=1, total_nodes=35, elapsed=1.0)),
        JobResult("b.sfen", RunStatistics(), error="Engine spawn error"),
        JobResult("c.sfen", RunStatistics(positions_processed=1, nomate_count=1, total_nodes=5, flagged_indices=[0])),
    ]
    out = []

    total = collect_results(iter(results), emit=out.append)

    assert total == 40
    assert out[-1] == "Total nodes: 40"
    assert sum(1 for line in out if line.startswith("[")) == 3
    assert "  Error or Nomate indices: 0" in out
