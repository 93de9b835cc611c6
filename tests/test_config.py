"""Tests for deptrace/config.py."""
import os
from unittest.mock import patch

import pytest

from deptrace import config as config_mod
from deptrace.config import load_config


class TestLoadConfig:
  """Test configuration loading."""

  def test_load_sample_config(self, sample_config_yaml):
    cfg = load_config(str(sample_config_yaml))
    assert cfg.log_level == "debug"
    assert cfg.tracer.command == "/usr/bin/strace"
    assert cfg.tracer.extra_args == ["-s", "4096"]
    assert cfg.sink.mode == "file"
    assert cfg.sink.file_path == "/var/lib/deptrace/deps.bin"
    assert cfg.sink.compress is True

  def test_load_from_env(self, sample_config_yaml):
    os.environ["DEPTRACE_CONFIG"] = str(sample_config_yaml)
    try:
      cfg = load_config()
      assert cfg.sink.mode == "file"
    finally:
      del os.environ["DEPTRACE_CONFIG"]

  def test_default_values(self, temp_dir):
    config_file = temp_dir / "config.yaml"
    config_file.write_text("{}")
    cfg = load_config(str(config_file))
    assert cfg.log_level == "warning"
    assert cfg.tracer.command == "strace"
    assert cfg.tracer.extra_args == []
    assert cfg.sink.mode == "file"
    assert cfg.sink.file_path == "deps.bin"
    assert cfg.sink.compress is False

  def test_empty_file_uses_defaults(self, temp_dir):
    config_file = temp_dir / "config.yaml"
    config_file.write_text("")
    assert load_config(str(config_file)).sink.mode == "file"

  def test_partial_sink_section(self, temp_dir):
    config_file = temp_dir / "config.yaml"
    config_file.write_text("""sink:
  mode: none
""")
    cfg = load_config(str(config_file))
    assert cfg.sink.mode == "none"
    assert cfg.sink.file_path == "deps.bin"

  def test_missing_default_location_uses_defaults(self, temp_dir):
    os.environ.pop("DEPTRACE_CONFIG", None)
    with patch.object(config_mod, "DEFAULT_CONFIG_PATH", str(temp_dir / "absent.yaml")):
      cfg = load_config()
    assert cfg.tracer.command == "strace"

  def test_missing_explicit_path_raises(self, temp_dir):
    with pytest.raises(FileNotFoundError):
      load_config(str(temp_dir / "absent.yaml"))

  def test_non_mapping_is_rejected(self, temp_dir):
    config_file = temp_dir / "config.yaml"
    config_file.write_text("- just\n- a list\n")
    with pytest.raises(ValueError):
      load_config(str(config_file))
