#!/usr/bin/env python3
"""Dump a DEP1 dependency ledger written by deptrace as NDJSON."""
import argparse
import gzip
import json
import struct
import sys
from pathlib import Path
from typing import Any, BinaryIO, Dict, Iterator, Optional, TextIO

MAGIC = b"DEP1"
GZIP_MAGIC = b"\x1f\x8b"
_HEADER = struct.Struct("<4sI")


def open_stream(path: Path) -> BinaryIO:
  """Open ``path`` for reading, transparently un-gzipping a compressed ledger."""
  with path.open("rb") as f:
    compressed = f.read(len(GZIP_MAGIC)) == GZIP_MAGIC
  return gzip.open(path, "rb") if compressed else path.open("rb")


def _read_record(f: BinaryIO) -> Optional[Dict[str, Any]]:
  # None at end of file or on a record cut short by an interrupted writer
  offset = f.tell()
  header = f.read(_HEADER.size)
  if len(header) < _HEADER.size:
    if header and not MAGIC.startswith(header[:len(MAGIC)]):
      raise ValueError(f"bad magic at offset {offset}")
    return None
  magic, length = _HEADER.unpack(header)
  if magic != MAGIC:
    raise ValueError(f"bad magic at offset {offset}")
  payload = f.read(length)
  if len(payload) < length:
    return None
  return json.loads(payload.decode("utf-8"))


def iter_records(path: Path) -> Iterator[Dict[str, Any]]:
  with open_stream(path) as f:
    for record in iter(lambda: _read_record(f), None):
      yield record


def decode(path: Path, out: TextIO, kind: Optional[str] = None) -> int:
  """Write the records of ``path`` to ``out``; returns how many were written."""
  written = 0
  for record in iter_records(path):
    if kind is None or record.get("kind") == kind:
      out.write(json.dumps(record) + "\n")
      written += 1
  return written


def main():
  ap = argparse.ArgumentParser(description="Dump a DEP1 dependency ledger as NDJSON")
  ap.add_argument("ledger", help="Path to deps.bin (DEP1), supports .gz")
  ap.add_argument("output", nargs="?", default=None, help="Output file (default: stdout)")
  ap.add_argument("--kind", choices=["input", "output"], default=None, help="Only dump one kind of dependency")
  args = ap.parse_args()

  path = Path(args.ledger)
  if args.output:
    with open(args.output, "w", encoding="utf-8") as out:
      decode(path, out, kind=args.kind)
  else:
    decode(path, sys.stdout, kind=args.kind)


if __name__ == "__main__":
  main()
