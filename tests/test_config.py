"""Tests for engine configuration."""

import logging

from companion.config import (
    DEFAULT_CATALOG,
    DEFAULT_CONFIG,
    configure_logging,
    get_config_path,
    load_config,
    save_config,
)


class TestLoadConfig:

    def test_defaults(self, tmp_path, monkeypatch):
        for var in ("COMPANION_DATA_DIR", "COMPANION_CATALOG", "COMPANION_LOG_LEVEL"):
            monkeypatch.delenv(var, raising=False)

        config = load_config(tmp_path)
        assert config == DEFAULT_CONFIG
        assert config["catalog_path"] == str(DEFAULT_CATALOG)

    def test_file_overrides_defaults(self, tmp_path, monkeypatch):
        monkeypatch.delenv("COMPANION_LOG_LEVEL", raising=False)
        assert save_config({"log_level": "DEBUG"}, tmp_path)

        assert get_config_path(tmp_path).exists()
        assert load_config(tmp_path)["log_level"] == "DEBUG"

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        save_config({"data_dir": "from-file"}, tmp_path)
        monkeypatch.setenv("COMPANION_DATA_DIR", "from-env")

        assert load_config(tmp_path)["data_dir"] == "from-env"

    def test_file_only_view_skips_env(self, tmp_path, monkeypatch):
        save_config({"data_dir": "from-file"}, tmp_path)
        monkeypatch.setenv("COMPANION_DATA_DIR", "from-env")

        assert load_config(tmp_path, use_env=False)["data_dir"] == "from-file"

    def test_unreadable_file_ignored(self, tmp_path, monkeypatch):
        monkeypatch.delenv("COMPANION_LOG_LEVEL", raising=False)
        get_config_path(tmp_path).write_text("{broken", encoding="utf-8")

        assert load_config(tmp_path)["log_level"] == "INFO"


class TestConfigureLogging:

    def test_unknown_level_falls_back(self, monkeypatch):
        calls = []
        monkeypatch.setattr(logging, "basicConfig", lambda **kw: calls.append(kw))

        configure_logging("verbose")
        configure_logging("debug")

        assert calls[0]["level"] == logging.INFO
        assert calls[1]["level"] == logging.DEBUG
