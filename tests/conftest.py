"""Shared pytest fixtures."""
import tempfile
from pathlib import Path

import pytest

from deptrace.classifier import PathClassifier
from deptrace.sinks import MemorySink


@pytest.fixture
def temp_dir():
  """Create a temporary directory for test files."""
  with tempfile.TemporaryDirectory() as tmpdir:
    yield Path(tmpdir)


@pytest.fixture
def classifier():
  return PathClassifier()


@pytest.fixture
def sink():
  return MemorySink()


@pytest.fixture
def sample_trace():
  """strace -f output of a small compile-and-link step."""
  return """1200  chdir("/src") = 0
1200  open("main.c", O_RDONLY) = 3
1200  open("/etc/ld.so.cache", O_RDONLY|O_CLOEXEC) = 4
1200  open("main.o", O_WRONLY|O_CREAT|O_TRUNC, 0666) = 5
1200  mkdir("build", 0755) = 0
1201  open("/src/build/app.tmp", O_WRONLY|O_CREAT|O_TRUNC, 0666 <unfinished ...>
1200  open("main.o", O_RDONLY) = 6
1201  <... open resumed>) = 3
1201  rename("/src/build/app.tmp", "/src/build/app") = 0
1200  openat(AT_FDCWD, "ignored.h", O_RDONLY) = 7
1200  +++ exited with 0 +++
"""


@pytest.fixture
def sample_config_yaml(temp_dir):
  """Create a sample deptrace config.yaml file."""
  config_file = temp_dir / "config.yaml"
  config_file.write_text("""logLevel: debug
tracer:
  command: /usr/bin/strace
  extraArgs: ["-s", "4096"]
sink:
  mode: file
  file:
    path: /var/lib/deptrace/deps.bin
    compress: true
""")
  return config_file
