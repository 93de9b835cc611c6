"""Run a build step under strace and report the files it read and wrote.

Used for build steps that no tool-specific dependency detector handles.
Tracing every process of the step makes this the slowest detector.
"""

import logging
import os
import subprocess
import tempfile
from typing import List, Optional, Sequence

from deptrace.classifier import IGNORED_PREFIXES, tracking
from deptrace.config import AppConfig
from deptrace.events import trace_filter
from deptrace.parser import parse
from deptrace.sinks import DependencySink

log = logging.getLogger(__name__)

# Shell convention for a command that could not be found or executed.
EXIT_NOT_FOUND = 127


def tracer_args(cfg: AppConfig, trace_log: str, args: Sequence[str]) -> List[str]:
  return [
    cfg.tracer.command,
    # Follow child processes
    "-f",
    # Write to a file so the step's own output stays clean
    "-o", trace_log,
    "-e", trace_filter(),
  ] + list(cfg.tracer.extra_args) + ["--"] + list(args)


def passthrough(args: Sequence[str]) -> int:
  """Run ``args`` directly, without any dependency detection."""
  try:
    return subprocess.call(list(args))
  except OSError as exc:
    log.error("failed to run %s: %s", args[0], exc)
    return EXIT_NOT_FOUND


def _remove_log(path: str) -> None:
  try:
    os.remove(path)
  except OSError as exc:
    log.warning("could not remove trace log %s: %s", path, exc)


def trace(sink: DependencySink, args: Sequence[str], cfg: Optional[AppConfig] = None) -> int:
  """Run ``args`` under the tracer and report its dependencies to ``sink``.

  Returns the exit code of the command. Dependencies are only reported when
  the command succeeds; a failed step's partial effects are irrelevant to
  the build. Without a usable tracer the command runs untraced.
  """
  if not args:
    raise ValueError("no command given")
  cfg = cfg or AppConfig()

  handle, trace_log = tempfile.mkstemp(prefix="deptrace-", suffix=".log")
  os.close(handle)
  try:
    try:
      exit_code = subprocess.call(tracer_args(cfg, trace_log, args))
    except OSError as exc:
      log.warning("%s unavailable (%s); running %s without dependency detection", cfg.tracer.command, exc, args[0])
      return passthrough(args)

    if exit_code != 0:
      log.info("%s exited with %d; skipping dependency detection", args[0], exit_code)
      return exit_code

    with tracking(sink, ignored=IGNORED_PREFIXES) as classifier:
      with open(trace_log, "r", encoding="utf-8", errors="replace") as f:
        parse(f, classifier)
    return 0
  finally:
    _remove_log(trace_log)
