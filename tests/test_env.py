"""
Tests for .env loading and LINKAGE_* settings.
"""

import os
import pytest
from pathlib import Path

from linkage.env import Settings, load_env, load_settings


class TestLoadSettings:

    def test_defaults(self):
        settings = load_settings({})
        assert settings == Settings()
        assert settings.input == Path("raw_data/linkage.csv")
        assert settings.workers == 1
        assert settings.on_error == "raise"
        assert settings.log_dir is None

    def test_overrides(self, tmp_path):
        settings = load_settings({
            "LINKAGE_INPUT": "data/x.csv",
            "LINKAGE_WORKERS": "4",
            "LINKAGE_SHARD_SIZE": "500",
            "LINKAGE_ON_ERROR": "SKIP",
            "LINKAGE_LOG_LEVEL": "debug",
            "LINKAGE_LOG_DIR": str(tmp_path),
        })
        assert settings.input == Path("data/x.csv")
        assert settings.workers == 4
        assert settings.shard_size == 500
        assert settings.on_error == "skip"
        assert settings.log_level == "DEBUG"
        assert settings.log_dir == tmp_path

    @pytest.mark.parametrize("env", [
        {"LINKAGE_WORKERS": "many"},
        {"LINKAGE_WORKERS": "0"},
        {"LINKAGE_SHARD_SIZE": "-5"},
        {"LINKAGE_ON_ERROR": "ignore"},
        {"LINKAGE_LOG_LEVEL": "loud"},
    ])
    def test_invalid_values_name_the_variable(self, env):
        with pytest.raises(ValueError) as exc:
            load_settings(env)
        assert next(iter(env)) in str(exc.value)


class TestLoadEnv:

    def test_reads_dotenv_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("LINKAGE_WORKERS", raising=False)
        (tmp_path / ".env").write_text("LINKAGE_WORKERS=3\n# comment\n")

        load_env()
        try:
            assert os.environ["LINKAGE_WORKERS"] == "3"
            assert load_settings().workers == 3
        finally:
            os.environ.pop("LINKAGE_WORKERS", None)

    def test_environment_wins_over_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("LINKAGE_ON_ERROR", "skip")
        (tmp_path / ".env").write_text("LINKAGE_ON_ERROR=raise\n")

        load_env()
        assert os.environ["LINKAGE_ON_ERROR"] == "skip"

    def test_missing_file_is_ignored(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        load_env()
