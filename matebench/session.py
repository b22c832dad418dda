from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

from .models import EngineOptions
from .usi import (
    ResponseListener,
    SpawnError,
    UsiEngine,
    UsiError,
    go_mate,
    position,
    setoption,
)

logger = logging.getLogger(__name__)

HANDSHAKE_TIMEOUT = 10.0


class EngineSession:
    """One engine process driven for the lifetime of one solve job."""

    def __init__(self, engine: UsiEngine, options: EngineOptions):
        self.engine = engine
        self.options = options

    @classmethod
    def initialize(
        cls,
        engine_path: Union[str, Path],
        options: EngineOptions,
        cwd: Union[str, Path] = ".",
        handshake_timeout: float = HANDSHAKE_TIMEOUT,
    ) -> "EngineSession":
        engine = UsiEngine.spawn(engine_path, cwd)
        try:
            engine.send_command("usi")
            engine.expect("usiok", timeout=handshake_timeout)
            for name, value in options.usi_options():
                engine.send_command(setoption(name, value))
            engine.send_command("isready")
            engine.expect("readyok", timeout=handshake_timeout)
            engine.send_command("usinewgame")
        except UsiError as exc:
            engine.close()
            raise SpawnError(f"Engine initialization failed: {exc}") from exc
        logger.debug("Initialized %s with %s", engine_path, options)
        return cls(engine, options)

    def register_response_listener(self, listener: ResponseListener) -> None:
        self.engine.listen(listener)

    def submit_position(self, sfen: str) -> None:
        # Does not wait for the verdict; it arrives through the listener.
        self.engine.send_command(position(sfen))
        self.engine.send_command(go_mate(self.options.mate_timeout_s))

    @property
    def engine_exited(self) -> bool:
        return self.engine.drained

    def close(self) -> None:
        self.engine.close()

    def __enter__(self) -> "EngineSession":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
