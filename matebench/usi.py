from __future__ import annotations

import logging
import queue
import subprocess
import threading
import time
from pathlib import Path
from typing import Callable, Optional, Union

import psutil

from .parsers import EngineResponse, parse_engine_line
from .utils import engine_command, engine_label

logger = logging.getLogger(__name__)

ResponseListener = Callable[[EngineResponse], None]

_EOF = object()


class UsiError(RuntimeError):
    """Base class for failures talking to a USI engine."""


class SpawnError(UsiError):
    """The engine could not be started or refused its initial configuration."""


class CommandError(UsiError):
    """A command could not be delivered, or the engine went away mid-run."""


def setoption(name: str, value: Optional[str] = None) -> str:
    if value is None:
        return f"setoption name {name}"
    return f"setoption name {name} value {value}"


def position(sfen: str) -> str:
    sfen = sfen.strip()
    if sfen.startswith(("sfen ", "startpos")):
        return f"position {sfen}"
    return f"position sfen {sfen}"


def go_mate(timeout_s: Optional[float]) -> str:
    if timeout_s is None:
        return "go mate infinite"
    return f"go mate {int(round(timeout_s * 1000))}"


def kill_process_tree(proc: subprocess.Popen) -> None:
    try:
        parent = psutil.Process(proc.pid)
        children = parent.children(recursive=True)
    except psutil.NoSuchProcess:
        return
    for child in children:
        try:
            child.kill()
        except psutil.NoSuchProcess:
            pass
    try:
        parent.kill()
    except psutil.NoSuchProcess:
        pass


class UsiEngine:
    """A spawned USI engine process.

    Stdout is drained by a reader thread into a queue. Until a listener is
    registered, :meth:`expect` consumes that queue for handshakes; afterwards a
    dispatch thread parses each line and hands it to the listener, in the
    order the engine wrote them.
    """

    def __init__(self, proc: subprocess.Popen, name: str = "engine"):
        self.proc = proc
        self.name = name
        self._lines: queue.Queue = queue.Queue()
        self._write_lock = threading.Lock()
        self._listener: Optional[ResponseListener] = None
        self._dispatcher: Optional[threading.Thread] = None
        self._drained = threading.Event()
        self._reader = threading.Thread(
            target=self._read_stdout, name=f"{name}-reader", daemon=True
        )
        self._reader.start()

    @classmethod
    def spawn(cls, engine_path: Union[str, Path], cwd: Union[str, Path] = ".") -> "UsiEngine":
        command = engine_command(engine_path)
        if not command:
            raise SpawnError("Empty engine command")
        try:
            proc = subprocess.Popen(
                command,
                cwd=str(cwd),
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
            )
        except OSError as exc:
            raise SpawnError(f"Engine spawn error: {exc}") from exc
        logger.debug("Spawned %s (pid %s)", command, proc.pid)
        return cls(proc, name=engine_label(command))

    def _read_stdout(self) -> None:
        try:
            for line in self.proc.stdout:
                line = line.rstrip("\r\n")
                logger.debug("%s < %s", self.name, line)
                self._lines.put(line)
        finally:
            self._lines.put(_EOF)

    def _dispatch(self) -> None:
        try:
            while True:
                line = self._lines.get()
                if line is _EOF:
                    break
                response = parse_engine_line(line)
                if response is None:
                    continue
                try:
                    self._listener(response)
                except Exception:
                    logger.exception("%s listener failed on %r", self.name, line)
        finally:
            self._drained.set()

    @property
    def drained(self) -> bool:
        """True once the engine closed stdout and every line was dispatched."""
        return self._drained.is_set()

    def send_command(self, command: str) -> None:
        with self._write_lock:
            if self.proc.poll() is not None:
                raise CommandError(
                    f"{self.name} exited with code {self.proc.returncode} before {command!r}"
                )
            logger.debug("%s > %s", self.name, command)
            try:
                self.proc.stdin.write(command + "\n")
                self.proc.stdin.flush()
            except (OSError, ValueError) as exc:
                raise CommandError(f"Failed to send {command!r} to {self.name}: {exc}") from exc

    def expect(self, token: str, timeout: float = 10.0) -> str:
        """Read lines until one starts with ``token``; other lines are discarded."""
        if self._listener is not None:
            raise UsiError("expect() cannot be used once a listener is registered")
        deadline = time.monotonic() + timeout
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise UsiError(f"Timed out waiting for {token!r} from {self.name}")
            try:
                line = self._lines.get(timeout=remaining)
            except queue.Empty:
                continue
            if line is _EOF:
                self._drained.set()
                raise UsiError(f"{self.name} exited while waiting for {token!r}")
            if line.split(" ", 1)[0] == token:
                return line

    def listen(self, listener: ResponseListener) -> None:
        if self._listener is not None:
            raise UsiError("A response listener is already registered")
        self._listener = listener
        self._dispatcher = threading.Thread(
            target=self._dispatch, name=f"{self.name}-listener", daemon=True
        )
        self._dispatcher.start()

    def close(self, timeout: float = 1.0) -> None:
        if self.proc.poll() is None:
            try:
                self.send_command("quit")
            except CommandError as exc:
                logger.debug("%s", exc)
            try:
                self.proc.wait(timeout=timeout)
            except subprocess.TimeoutExpired:
                logger.debug("%s ignored quit; killing", self.name)
                kill_process_tree(self.proc)
                self.proc.wait()
        if self.proc.stdin is not None:
            try:
                self.proc.stdin.close()
            except OSError:
                pass
        self._reader.join(timeout=timeout)
        if self._dispatcher is not None:
            self._dispatcher.join(timeout=timeout)
        if self.proc.stdout is not None:
            self.proc.stdout.close()
