from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer

from .config import load_config, write_default_config
from .models import EngineOptions
from .progress import ProgressBoard
from .report import collect_results
from .runner import run_jobs

logger = logging.getLogger(__name__)

app = typer.Typer(no_args_is_help=True, help="A benchmarking tool for mate engines")


def setup_logging(debug: bool) -> None:
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
    )


@app.callback()
def main(debug: bool = typer.Option(False, "--debug", help="Enable debug logging")):
    setup_logging(debug)


def check_args(
    sfen_paths: List[Path], workers: int, threads: int, hash_mb: int, poll_interval_ms: int = 100
) -> None:
    if not sfen_paths:
        raise typer.BadParameter("No sfen files provided")
    if workers < 1:
        raise typer.BadParameter("Workers must be greater than 0")
    if threads < 1:
        raise typer.BadParameter("Threads must be greater than 0")
    if hash_mb < 1:
        raise typer.BadParameter("Hash size must be greater than 0")
    if poll_interval_ms < 1:
        raise typer.BadParameter("poll_interval_ms must be at least 1")


@app.command()
def init(force: bool = typer.Option(False, "--force", help="Overwrite an existing config.yaml")):
    cfg_path = Path.cwd() / "config.yaml"
    if cfg_path.exists() and not force:
        typer.echo(f"{cfg_path} already exists (use --force to overwrite)")
        raise typer.Exit(code=1)
    write_default_config(cfg_path)
    typer.echo(f"Wrote {cfg_path}")


@app.command()
def run(
    sfen_paths: Optional[List[Path]] = typer.Argument(
        None, help="SFEN files to solve, one position per line"
    ),
    engine_path: str = typer.Option(..., "--engine-path", "-e", help="Engine executable"),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", help="Files solved in parallel"),
    threads: Optional[int] = typer.Option(None, "--threads", "-t", help="Engine threads"),
    hash_mb: Optional[int] = typer.Option(None, "--hash", "-H", help="Engine hash size in MB"),
    serial: bool = typer.Option(
        False, "--serial", help="Wait for each verdict before sending the next position"
    ),
    progress: bool = typer.Option(True, "--progress/--no-progress", help="Show progress bars"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Path to config.yaml"),
):
    config = load_config(config_path)
    workers = workers if workers is not None else config.default_workers
    threads = threads if threads is not None else config.default_threads
    hash_mb = hash_mb if hash_mb is not None else config.default_hash_mb
    sfen_paths = sfen_paths or []
    check_args(sfen_paths, workers, threads, hash_mb, config.poll_interval_ms)

    options = EngineOptions(
        threads=threads,
        hash_mb=hash_mb,
        mate_timeout_s=config.mate_timeout_s,
        flags=config.engine_flags,
    )
    logger.debug(
        "Solving %d files with %d workers (%s)", len(sfen_paths), workers, options
    )

    board = ProgressBoard(enabled=progress)
    results = run_jobs(
        engine_path,
        sfen_paths,
        options,
        workers=workers,
        board=board,
        cwd=config.engine_workdir,
        poll_interval=config.poll_interval_ms / 1000.0,
        serial=serial,
    )
    collect_results(results, emit=board.write)
