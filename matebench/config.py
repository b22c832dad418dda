from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

import yaml

from .models import DEFAULT_ENGINE_FLAGS


@dataclass
class Config:
    base_dir: Path
    engine_workdir: Path
    default_workers: int
    default_threads: int
    default_hash_mb: int
    mate_timeout_s: float
    poll_interval_ms: int
    engine_flags: Dict[str, str] = field(default_factory=dict)


DEFAULT_CONFIG = {
    "defaults": {
        "workers": 4,
        "threads": 1,
        "hash_mb": 16,
    },
    "engine": {
        "workdir": ".",
        "mate_timeout_s": 30,
        "poll_interval_ms": 100,
        "options": dict(DEFAULT_ENGINE_FLAGS),
    },
}


def load_config(config_path: Path | None = None) -> Config:
    base_dir = Path.cwd()
    if config_path is None:
        config_path = base_dir / "config.yaml"

    if config_path.exists():
        data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    else:
        data = DEFAULT_CONFIG

    defaults: Dict[str, Any] = data.get("defaults", {})
    engine: Dict[str, Any] = data.get("engine", {})
    flags = engine.get("options")
    if flags is None:
        flags = DEFAULT_ENGINE_FLAGS

    return Config(
        base_dir=base_dir,
        engine_workdir=(base_dir / engine.get("workdir", ".")).resolve(),
        default_workers=int(defaults.get("workers", 4)),
        default_threads=int(defaults.get("threads", 1)),
        default_hash_mb=int(defaults.get("hash_mb", 16)),
        mate_timeout_s=float(engine.get("mate_timeout_s", 30)),
        poll_interval_ms=int(engine.get("poll_interval_ms", 100)),
        engine_flags={str(k): _option_value(v) for k, v in flags.items()},
    )


def _option_value(value: Any) -> str:
    # YAML turns `true` into a bool; USI wants the lowercase word back.
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def write_default_config(path: Path) -> None:
    path.write_text(yaml.safe_dump(DEFAULT_CONFIG, sort_keys=False), encoding="utf-8")
