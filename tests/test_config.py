"""
Tests for gemmie_markdown.config.
"""

import json
import logging

import pytest
from pydantic import ValidationError as PydanticValidationError

from gemmie_markdown.config import ConfigManager, get_config_manager
from gemmie_markdown.models import ClientConfig


class TestConfigManager:
    def test_defaults_without_file(self, tmp_path):
        config = ConfigManager(tmp_path).load()
        assert config == ClientConfig()
        assert config.renderer.max_input_chars == 100_000
        assert config.editor.history_limit == 100

    def test_save_and_reload(self, tmp_path):
        manager = ConfigManager(tmp_path)
        manager.update_renderer_settings(link_text_limit=30, code_style="default")

        data = json.loads((tmp_path / "config.json").read_text(encoding="utf-8"))
        assert data["renderer"]["link_text_limit"] == 30

        renderer = ConfigManager(tmp_path).get_renderer_settings()
        assert renderer.link_text_limit == 30
        assert renderer.code_style == "default"

    def test_corrupt_file_falls_back_to_defaults(self, tmp_path, caplog):
        (tmp_path / "config.json").write_text("{broken", encoding="utf-8")
        with caplog.at_level(logging.ERROR, logger="gemmie_markdown.config"):
            config = ConfigManager(tmp_path).load()
        assert config == ClientConfig()
        assert "Broken config file" in caplog.text

    def test_invalid_values_fall_back_to_defaults(self, tmp_path):
        (tmp_path / "config.json").write_text(
            json.dumps({"editor": {"history_limit": 0}}), encoding="utf-8"
        )
        assert ConfigManager(tmp_path).get_editor_settings().history_limit == 100

    def test_invalid_update_is_rejected(self, tmp_path):
        manager = ConfigManager(tmp_path)
        with pytest.raises(PydanticValidationError):
            manager.update_renderer_settings(max_input_chars=0)
        assert manager.get_renderer_settings().max_input_chars == 100_000
        assert not (tmp_path / "config.json").exists()

    def test_data_dir(self, tmp_path):
        manager = ConfigManager(tmp_path)
        assert manager.get_data_dir() == tmp_path / "data"
        assert (tmp_path / "data").is_dir()

        custom = tmp_path / "elsewhere"
        manager.set_data_dir(str(custom))
        assert ConfigManager(tmp_path).get_data_dir() == custom
        assert custom.is_dir()

    def test_global_manager(self, tmp_path):
        manager = get_config_manager(tmp_path)
        assert manager.config_dir == tmp_path
        assert get_config_manager() is manager
