"""Syscall events decoded from a trace log and consumed by the classifier."""

from dataclasses import dataclass
from typing import List, Union

# Syscalls requested from the tracer. Anything else in the log is skipped.
TRACED_SYSCALLS: List[str] = [
  "open",
  "creat",
  "rename",
  "mkdir",
  "chdir",
]


@dataclass(frozen=True)
class Open:
  pid: int
  path: str
  flags: str


@dataclass(frozen=True)
class Create:
  pid: int
  path: str


@dataclass(frozen=True)
class Rename:
  pid: int
  src: str
  dst: str


@dataclass(frozen=True)
class MakeDirectory:
  pid: int
  path: str
  mode: int = 0o777


@dataclass(frozen=True)
class ChangeDirectory:
  pid: int
  path: str


SyscallEvent = Union[Open, Create, Rename, MakeDirectory, ChangeDirectory]


def trace_filter() -> str:
  """Return the strace ``-e`` expression selecting the traced syscalls."""
  return "trace=" + ",".join(TRACED_SYSCALLS)
