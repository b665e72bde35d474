"""Tests for sealjournal.core.config."""

import json
import os

import pytest
import yaml

from sealjournal.core.config import Config
from sealjournal.core.exceptions import ConfigurationError


class TestConfig:
    def test_defaults(self):
        config = Config()
        assert config.get("paths.data_dir").endswith(".sealjournal")
        assert config.get("logging.level") == "WARNING"
        assert config.get("journal.title") == "Journal"

    def test_custom_data_dir(self, tmp_dir):
        config = Config(data_dir=tmp_dir)
        assert config.get("paths.data_dir") == tmp_dir
        assert config.get("paths.data_file") == os.path.join(tmp_dir, "data.json")
        assert config.get("paths.public_key_file") == os.path.join(tmp_dir, "data.pub")

    def test_store_paths(self, tmp_dir):
        config = Config(data_dir=tmp_dir)
        assert config.get_store_paths() == (
            os.path.join(tmp_dir, "data.json"),
            os.path.join(tmp_dir, "data.pub"),
        )

    def test_yaml_config_file(self, tmp_config_file, tmp_dir):
        config = Config(config_file=tmp_config_file)
        assert config.get("journal.title") == "My Journal"
        assert config.get("paths.data_file") == os.path.join(tmp_dir, "data", "journal.json")
        # Levels are normalized to upper case
        assert config.get("logging.level") == "DEBUG"

    def test_json_config_file(self, tmp_dir):
        config_path = os.path.join(tmp_dir, "config.json")
        with open(config_path, "w") as f:
            json.dump({"journal": {"title": "Diary"}}, f)
        config = Config(config_file=config_path, data_dir=tmp_dir)
        assert config.get("journal.title") == "Diary"

    def test_env_overrides_file(self, tmp_config_file, monkeypatch):
        monkeypatch.setenv("SEALJOURNAL_JOURNAL__TITLE", "From Env")
        config = Config(config_file=tmp_config_file)
        assert config.get("journal.title") == "From Env"

    def test_custom_env_prefix(self, monkeypatch, tmp_dir):
        monkeypatch.setenv("MYAPP_LOGGING__LEVEL", "info")
        config = Config(env_prefix="MYAPP_", data_dir=tmp_dir)
        assert config.get("logging.level") == "INFO"

    def test_flat_env_vars_ignored(self, monkeypatch, tmp_dir):
        monkeypatch.setenv("SEALJOURNAL_PASSWORD", "hunter2")
        config = Config(data_dir=tmp_dir)
        assert config.get("password") is None

    def test_invalid_log_level(self, monkeypatch, tmp_dir):
        monkeypatch.setenv("SEALJOURNAL_LOGGING__LEVEL", "LOUD")
        with pytest.raises(ConfigurationError, match="logging.level"):
            Config(data_dir=tmp_dir)

    def test_unparseable_file(self, tmp_dir):
        config_path = os.path.join(tmp_dir, "broken.yaml")
        with open(config_path, "w") as f:
            f.write("paths: [unclosed")
        with pytest.raises(ConfigurationError):
            Config(config_file=config_path, data_dir=tmp_dir)

    def test_non_mapping_file(self, tmp_dir):
        config_path = os.path.join(tmp_dir, "list.yaml")
        with open(config_path, "w") as f:
            yaml.dump(["a", "b"], f)
        with pytest.raises(ConfigurationError, match="mapping"):
            Config(config_file=config_path, data_dir=tmp_dir)

    def test_missing_file_uses_defaults(self, tmp_dir):
        config = Config(config_file=os.path.join(tmp_dir, "nope.yaml"), data_dir=tmp_dir)
        assert config.get("journal.title") == "Journal"

    def test_get_missing_key(self, tmp_dir):
        config = Config(data_dir=tmp_dir)
        assert config.get("nonexistent.key") is None
        assert config.get("nonexistent.key", "fallback") == "fallback"

    def test_set(self, tmp_dir):
        config = Config(data_dir=tmp_dir)
        config.set("journal.title", "Renamed")
        assert config.get("journal.title") == "Renamed"
        config.set("new.nested.key", 1)
        assert config.get("new.nested.key") == 1

    def test_unsupported_file_type(self, tmp_dir):
        config_path = os.path.join(tmp_dir, "config.toml")
        with open(config_path, "w") as f:
            f.write("[journal]\n")
        with pytest.raises(ConfigurationError, match="Unsupported"):
            Config(config_file=config_path, data_dir=tmp_dir)

    def test_empty_file(self, tmp_dir):
        config_path = os.path.join(tmp_dir, "empty.yaml")
        open(config_path, "w").close()
        assert Config(config_file=config_path, data_dir=tmp_dir).get("journal.title") == "Journal"

    def test_env_overrides_store_path(self, monkeypatch, tmp_dir):
        target = os.path.join(tmp_dir, "elsewhere.json")
        monkeypatch.setenv("SEALJOURNAL_PATHS__DATA_FILE", target)
        config = Config(data_dir=tmp_dir)
        assert config.get_store_paths() == (target, os.path.join(tmp_dir, "data.pub"))

    def test_env_disabled_with_empty_prefix(self, monkeypatch, tmp_dir):
        monkeypatch.setenv("SEALJOURNAL_JOURNAL__TITLE", "ignored")
        assert Config(env_prefix="", data_dir=tmp_dir).get("journal.title") == "Journal"

    def test_extra_defaults(self, tmp_dir):
        config = Config(data_dir=tmp_dir, defaults={"journal": {"title": "Logbook"}})
        assert config.get("journal.title") == "Logbook"
        assert config.get("logging.level") == "WARNING"

    def test_env_data_dir_moves_store(self, monkeypatch, tmp_dir):
        monkeypatch.setenv("SEALJOURNAL_PATHS__DATA_DIR", tmp_dir)
        config = Config()
        assert config.get_store_paths() == (
            os.path.join(tmp_dir, "data.json"),
            os.path.join(tmp_dir, "data.pub"),
        )

    def test_file_data_dir_moves_store(self, tmp_dir):
        target = os.path.join(tmp_dir, "vault")
        config_path = os.path.join(tmp_dir, "config.yaml")
        with open(config_path, "w") as f:
            yaml.dump({"paths": {"data_dir": target, "public_key_file": "/keys/journal.pub"}}, f)
        config = Config(config_file=config_path)
        assert config.get_store_paths() == (os.path.join(target, "data.json"), "/keys/journal.pub")

    def test_paths_must_be_mapping(self, tmp_dir):
        config_path = os.path.join(tmp_dir, "config.yaml")
        with open(config_path, "w") as f:
            yaml.dump({"paths": "nowhere"}, f)
        with pytest.raises(ConfigurationError, match="paths"):
            Config(config_file=config_path, data_dir=tmp_dir)
