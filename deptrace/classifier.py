"""Classifies traced filesystem operations into build inputs and outputs.

The classifier is fed syscall events in log order. Ordering matters: a path
written and later read back stays an output, and a path read and later
written moves from the inputs to the outputs. Relative paths are resolved
against the working directory of the traced process that issued the call.
"""

import logging
import os
from contextlib import contextmanager
from typing import Dict, Iterator, Set, Tuple

from deptrace.events import (
  ChangeDirectory,
  Create,
  MakeDirectory,
  Open,
  Rename,
  SyscallEvent,
)
from deptrace.open_flags import access_mode, is_read, is_write
from deptrace.sinks import DependencySink

log = logging.getLogger(__name__)

# Transient and system-owned trees never reported as dependencies.
IGNORED_PREFIXES: Tuple[str, ...] = (
  "/dev/",
  "/etc/",
  "/proc/",
  "/tmp/",
  "/usr/",
)


class PathClassifier:
  def __init__(self, ignored: Tuple[str, ...] = IGNORED_PREFIXES):
    self.ignored = tuple(ignored)
    self.processes: Dict[int, str] = {}
    self.inputs: Set[str] = set()
    self.outputs: Set[str] = set()

  def ignore_path(self, path: str) -> bool:
    return any(path.startswith(prefix) for prefix in self.ignored)

  def _ignored(self, pid: int, path: str) -> bool:
    # Relative paths can land under an ignored tree once resolved.
    return self.ignore_path(path) or self.ignore_path(self.file_path(pid, path))

  def file_path(self, pid: int, path: str) -> str:
    cwd = self.processes.get(pid)
    if cwd is not None:
      return os.path.normpath(os.path.join(cwd, path))
    return os.path.normpath(path)

  def _add_output(self, f: str) -> None:
    self.inputs.discard(f)
    self.outputs.add(f)

  def open(self, pid: int, path: str, flags: str) -> None:
    if self._ignored(pid, path):
      return
    mode = access_mode(flags)
    if is_write(mode):
      # Written at some point, so an output even if it was read earlier.
      self._add_output(self.file_path(pid, path))
    elif is_read(mode):
      # A file the step wrote and then read back is only an output.
      f = self.file_path(pid, path)
      if f not in self.outputs:
        self.inputs.add(f)

  def create(self, pid: int, path: str) -> None:
    if self._ignored(pid, path):
      return
    self._add_output(self.file_path(pid, path))

  def rename(self, pid: int, src: str, dst: str) -> None:
    if self._ignored(pid, dst):
      return
    self.outputs.discard(self.file_path(pid, src))
    self._add_output(self.file_path(pid, dst))

  def mkdir(self, pid: int, path: str) -> None:
    self._add_output(self.file_path(pid, path))

  def chdir(self, pid: int, path: str) -> None:
    self.processes[pid] = self.file_path(pid, path)

  def apply(self, event: SyscallEvent) -> None:
    if isinstance(event, Open):
      self.open(event.pid, event.path, event.flags)
    elif isinstance(event, Create):
      self.create(event.pid, event.path)
    elif isinstance(event, Rename):
      self.rename(event.pid, event.src, event.dst)
    elif isinstance(event, MakeDirectory):
      self.mkdir(event.pid, event.path)
    elif isinstance(event, ChangeDirectory):
      self.chdir(event.pid, event.path)
    else:
      raise TypeError(f"unsupported syscall event {event!r}")

  def flush(self, sink: DependencySink) -> None:
    log.info("discovered %d input(s), %d output(s)", len(self.inputs), len(self.outputs))
    for f in sorted(self.inputs):
      sink.add_input(f)
    for f in sorted(self.outputs):
      sink.add_output(f)


@contextmanager
def tracking(sink: DependencySink, ignored: Tuple[str, ...] = IGNORED_PREFIXES) -> Iterator[PathClassifier]:
  """Yield a fresh classifier whose sets are flushed to ``sink`` on exit."""
  classifier = PathClassifier(ignored=ignored)
  try:
    yield classifier
  finally:
    classifier.flush(sink)
