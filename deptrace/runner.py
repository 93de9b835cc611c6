import argparse
import logging
import sys
from typing import List, Optional

from deptrace.config import load_config
from deptrace.session import trace
from deptrace.sinks import build_sink


def configure_logging(level: str):
  lvl = getattr(logging, level.upper(), logging.INFO)
  logging.basicConfig(level=lvl, format="%(asctime)s %(levelname)s %(message)s")


def build_parser() -> argparse.ArgumentParser:
  ap = argparse.ArgumentParser(
    prog="deptrace",
    description="Run a build command under strace and record the files it reads and writes",
  )
  ap.add_argument("--config", default=None, help="Path to config YAML (default: $DEPTRACE_CONFIG)")
  ap.add_argument("--sink", choices=["stdout", "file", "none"], default=None, help="Where to record dependencies")
  ap.add_argument("--output", default=None, help="Dependency ledger path for --sink file")
  ap.add_argument("--log-level", default=None, help="Logging level (debug, info, warning, error)")
  ap.add_argument("command", nargs=argparse.REMAINDER, help="Command to run, after --")
  return ap


def main(argv: Optional[List[str]] = None) -> int:
  ap = build_parser()
  args = ap.parse_args(argv)
  command = args.command
  if command and command[0] == "--":
    command = command[1:]
  if not command:
    ap.error("no command given")

  cfg = load_config(args.config)
  if args.sink:
    cfg.sink.mode = args.sink
  if args.output:
    cfg.sink.file_path = args.output
    if not args.sink:
      cfg.sink.mode = "file"
  if args.log_level:
    cfg.log_level = args.log_level
  configure_logging(cfg.log_level)

  with build_sink(cfg.sink) as sink:
    return trace(sink, command, cfg)


if __name__ == "__main__":
  sys.exit(main())
