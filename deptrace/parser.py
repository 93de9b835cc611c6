"""Parse ``strace -f`` output into syscall events.

Every line starts with the pid of the calling process. Lines that cannot be
decoded are dropped: a partial trace must never abort dependency detection.
"""

import logging
import re
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from deptrace.classifier import PathClassifier
from deptrace.events import (
  ChangeDirectory,
  Create,
  MakeDirectory,
  Open,
  Rename,
  SyscallEvent,
)

log = logging.getLogger(__name__)

_line_re = re.compile(r"(?P<pid>\d+)\s+(?P<body>.*)")

# A call interrupted by another traced process is split over two lines.
_unfinished_re = re.compile(r"(?P<body>.*?)\s*<unfinished \.\.\.>$")
_resumed_re = re.compile(r"<\.\.\. (?P<call>\w+) resumed>(?P<rest>.*)")

_open_re = re.compile(r'open\("([^"]*)", ([^,)]*)')
_creat_re = re.compile(r'creat\("([^"]*)",')
_rename_re = re.compile(r'rename\("([^"]*)", "([^"]*)"\)')
_mkdir_re = re.compile(r'mkdir\("([^"]*)", (0[0-7]*)\)')
_chdir_re = re.compile(r'chdir\("([^"]*)"\)')


def _unescape(raw: str) -> str:
  """Decode the C escapes strace uses for non-printable bytes in strings."""
  if "\\" not in raw:
    return raw
  return raw.encode("utf-8").decode("unicode_escape").encode("latin-1").decode("utf-8")


def _open(pid: int, m: "re.Match") -> SyscallEvent:
  return Open(pid=pid, path=_unescape(m.group(1)), flags=m.group(2).strip())


def _creat(pid: int, m: "re.Match") -> SyscallEvent:
  return Create(pid=pid, path=_unescape(m.group(1)))


def _rename(pid: int, m: "re.Match") -> SyscallEvent:
  return Rename(pid=pid, src=_unescape(m.group(1)), dst=_unescape(m.group(2)))


def _mkdir(pid: int, m: "re.Match") -> SyscallEvent:
  return MakeDirectory(pid=pid, path=_unescape(m.group(1)), mode=int(m.group(2), 8))


def _chdir(pid: int, m: "re.Match") -> SyscallEvent:
  return ChangeDirectory(pid=pid, path=_unescape(m.group(1)))


# Checked in order against the start of the call fragment.
_CALLS: List[Tuple[str, "re.Pattern", Callable[[int, "re.Match"], SyscallEvent]]] = [
  ("open", _open_re, _open),
  ("creat", _creat_re, _creat),
  ("rename", _rename_re, _rename),
  ("mkdir", _mkdir_re, _mkdir),
  ("chdir", _chdir_re, _chdir),
]


def parse_call(pid: int, body: str) -> Optional[SyscallEvent]:
  """Decode one call fragment such as ``chdir("/src") = 0``."""
  for keyword, pattern, build in _CALLS:
    if not body.startswith(keyword):
      continue
    m = pattern.match(body)
    if m is None:
      log.debug("unmatched %s call from pid %d: %s", keyword, pid, body)
      return None
    try:
      return build(pid, m)
    except UnicodeError:
      log.debug("undecodable path in %s call from pid %d: %s", keyword, pid, body)
      return None
  return None


def parse_line(line: str) -> Optional[SyscallEvent]:
  m = _line_re.match(line.rstrip("\r\n"))
  if m is None:
    return None
  return parse_call(int(m.group("pid")), m.group("body"))


def iter_events(lines: Iterable[str]) -> Iterator[SyscallEvent]:
  """Yield events in log order, joining interrupted calls per pid."""
  interrupted: Dict[int, str] = {}
  for line in lines:
    m = _line_re.match(line.rstrip("\r\n"))
    if m is None:
      continue
    pid = int(m.group("pid"))
    body = m.group("body")

    unfinished = _unfinished_re.match(body)
    if unfinished:
      interrupted[pid] = unfinished.group("body")
      continue
    resumed = _resumed_re.match(body)
    if resumed:
      head = interrupted.pop(pid, None)
      if head is None:
        log.debug("resumed %s call from pid %d without a start", resumed.group("call"), pid)
        continue
      body = head + resumed.group("rest")

    event = parse_call(pid, body)
    if event is not None:
      yield event


def parse(lines: Iterable[str], classifier: PathClassifier) -> int:
  """Feed every decodable event in ``lines`` to ``classifier``."""
  count = 0
  for event in iter_events(lines):
    classifier.apply(event)
    count += 1
  log.debug("applied %d trace event(s)", count)
  return count
