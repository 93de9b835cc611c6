import os
import yaml
from dataclasses import dataclass, field
from typing import List, Optional

DEFAULT_CONFIG_PATH = "/etc/deptrace/config.yaml"


@dataclass
class TracerConfig:
  command: str = "strace"
  extra_args: List[str] = field(default_factory=list)


@dataclass
class SinkConfig:
  mode: str = "file"  # file|stdout|none
  file_path: str = "deps.bin"
  compress: bool = False


@dataclass
class AppConfig:
  log_level: str = "warning"
  tracer: TracerConfig = field(default_factory=TracerConfig)
  sink: SinkConfig = field(default_factory=SinkConfig)


def _read_yaml(path: str) -> dict:
  with open(path, "r", encoding="utf-8") as f:
    data = yaml.safe_load(f) or {}
  if not isinstance(data, dict):
    raise ValueError(f"config file {path} must be a mapping")
  return data


def load_config(path: Optional[str] = None) -> AppConfig:
  """Load the application config.

  An explicit ``path`` or ``DEPTRACE_CONFIG`` must exist. The default
  location is optional; without it every setting keeps its default.
  """
  explicit = path or os.environ.get("DEPTRACE_CONFIG")
  if explicit:
    data = _read_yaml(explicit)
  elif os.path.exists(DEFAULT_CONFIG_PATH):
    data = _read_yaml(DEFAULT_CONFIG_PATH)
  else:
    data = {}

  tracer_cfg = data.get("tracer", {}) or {}
  sink_cfg = data.get("sink", {}) or {}
  file_cfg = sink_cfg.get("file", {}) or {}

  tracer = TracerConfig(
    command=str(tracer_cfg.get("command", "strace")),
    extra_args=[str(a) for a in tracer_cfg.get("extraArgs", [])],
  )

  sink = SinkConfig(
    mode=str(sink_cfg.get("mode", "file")),
    file_path=str(file_cfg.get("path", "deps.bin")),
    compress=bool(file_cfg.get("compress", False)),
  )

  return AppConfig(
    log_level=str(data.get("logLevel", "warning")),
    tracer=tracer,
    sink=sink,
  )
