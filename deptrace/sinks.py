import gzip
import json
import logging
import struct
import sys
import threading
import time
from pathlib import Path
from typing import Optional, Set, TextIO

from deptrace.config import SinkConfig

log = logging.getLogger(__name__)

INPUT = "input"
OUTPUT = "output"


class DependencySink:
  """Receives the final input and output paths of a traced build step.

  Each path is reported once per session; the order is unspecified.
  """

  def add_input(self, path: str) -> None:
    raise NotImplementedError

  def add_output(self, path: str) -> None:
    raise NotImplementedError

  def close(self) -> None:
    pass

  def __enter__(self):
    return self

  def __exit__(self, exc_type, exc, tb):
    self.close()
    return False


class NullSink(DependencySink):
  def add_input(self, path: str) -> None:
    pass

  def add_output(self, path: str) -> None:
    pass


class MemorySink(DependencySink):
  def __init__(self):
    self.inputs: Set[str] = set()
    self.outputs: Set[str] = set()
    self.calls = 0

  def add_input(self, path: str) -> None:
    self.calls += 1
    self.inputs.add(path)

  def add_output(self, path: str) -> None:
    self.calls += 1
    self.outputs.add(path)


class StdoutSink(DependencySink):
  """Writes one JSON object per dependency, newline separated."""

  def __init__(self, stream: Optional[TextIO] = None):
    self.stream = stream or sys.stdout

  def _emit(self, kind: str, path: str) -> None:
    self.stream.write(json.dumps({"kind": kind, "path": path}))
    self.stream.write("\n")

  def add_input(self, path: str) -> None:
    self._emit(INPUT, path)

  def add_output(self, path: str) -> None:
    self._emit(OUTPUT, path)

  def close(self) -> None:
    self.stream.flush()


class FileSink(DependencySink):
  MAGIC = b"DEP1"

  def __init__(self, path: str, compress: bool = False):
    self.base_path = Path(path)
    self.compress = compress
    self.lock = threading.Lock()
    self.base_path.parent.mkdir(parents=True, exist_ok=True)
    self._fh = None
    self._open()

  def _open(self):
    mode = "ab"
    if self.compress:
      self._fh = gzip.open(self.base_path, mode)
    else:
      self._fh = open(self.base_path, mode)

  def _publish(self, kind: str, path: str) -> None:
    payload = {
      "kind": kind,
      "path": path,
      "ts_unix_nano": time.time_ns(),
    }
    blob = json.dumps(payload, separators=(",", ":")).encode("utf-8")
    record = self.MAGIC + struct.pack("<I", len(blob)) + blob
    with self.lock:
      if self._fh is None:
        raise ValueError(f"sink {self.base_path} is closed")
      self._fh.write(record)
      self._fh.flush()

  def add_input(self, path: str) -> None:
    self._publish(INPUT, path)

  def add_output(self, path: str) -> None:
    self._publish(OUTPUT, path)

  def close(self) -> None:
    with self.lock:
      if self._fh:
        self._fh.flush()
        self._fh.close()
        self._fh = None


def build_sink(cfg: SinkConfig) -> DependencySink:
  if cfg.mode == "stdout":
    return StdoutSink()
  if cfg.mode == "file":
    log.debug("recording dependencies to %s", cfg.file_path)
    return FileSink(path=cfg.file_path, compress=cfg.compress)
  if cfg.mode == "none":
    return NullSink()
  raise ValueError(f"Unsupported sink mode '{cfg.mode}'")
