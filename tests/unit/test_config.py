"""Tests for configuration loading."""

from vaultflow.config import load_config
from vaultflow.storage import SQLiteStorage, get_storage


def test_load_config_from_env(tmp_path, monkeypatch):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        """
storage:
  url: file:///var/lib/vaultflow/queue.json
queue:
  cleanup_max_age_hours: 6
  inter_transaction_delay: 0.5
  default_gas_limit: 300000
flow:
  auto_advance: false
log_level: debug
"""
    )
    monkeypatch.setenv("VAULTFLOW_CONFIG", str(config_path))

    config = load_config()
    assert config.storage.url == "file:///var/lib/vaultflow/queue.json"
    assert config.queue.cleanup_max_age_hours == 6
    assert config.queue.inter_transaction_delay == 0.5
    assert config.queue.default_gas_limit == 300000
    assert config.flow.auto_advance is False
    assert config.log_level == "debug"


def test_missing_file_gives_defaults():
    config = load_config()
    assert config.storage.url is None
    assert config.queue.cleanup_max_age_hours == 24
    assert config.queue.default_gas_limit == 200_000
    assert config.flow.auto_advance is True


def test_storage_url_env_overrides_file(tmp_path, monkeypatch):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("storage:\n  url: file:///tmp/ignored.json\n")
    monkeypatch.setenv("VAULTFLOW_CONFIG", str(config_path))
    monkeypatch.setenv("VAULTFLOW_STORAGE_URL", f"sqlite://{tmp_path / 'queue.db'}")

    assert load_config(str(config_path)).storage.url.startswith("sqlite://")
    assert isinstance(get_storage(), SQLiteStorage)
