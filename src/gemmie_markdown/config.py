"""
Управление конфигурацией рендерера и редактора.

Хранит данные в файле в домашней директории пользователя.
"""

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from gemmie_markdown.models import ClientConfig, RendererSettings, EditorSettings

logger = logging.getLogger(__name__)


class ConfigManager:
    """Менеджер конфигурации клиента."""

    # Директория для хранения конфигурации
    CONFIG_DIR_NAME = ".gemmie"
    CONFIG_FILE_NAME = "config.json"

    def __init__(self, config_dir: Optional[Path] = None):
        """
        Инициализация менеджера конфигурации.

        Args:
            config_dir: Путь к директории конфигурации.
                        По умолчанию ~/.gemmie/
        """
        if config_dir is None:
            home = Path.home()
            self.config_dir = home / self.CONFIG_DIR_NAME
        else:
            self.config_dir = config_dir

        self.config_file = self.config_dir / self.CONFIG_FILE_NAME
        self._config: Optional[ClientConfig] = None

    def _ensure_config_dir(self) -> None:
        """Создать директорию конфигурации если не существует."""
        self.config_dir.mkdir(parents=True, exist_ok=True)

    def load(self) -> ClientConfig:
        """
        Загрузить конфигурацию из файла.

        Returns:
            Конфигурация клиента
        """
        if self._config is not None:
            return self._config

        if not self.config_file.exists():
            self._config = ClientConfig()
            return self._config

        try:
            with open(self.config_file, "r", encoding="utf-8") as f:
                data = json.load(f)
            self._config = ClientConfig.model_validate(data)
            return self._config

        except (json.JSONDecodeError, PydanticValidationError, OSError) as e:
            # Поврежденный файл - используем значения по умолчанию
            logger.error(f"Broken config file {self.config_file}, using defaults: {e}")
            self._config = ClientConfig()
            return self._config

    def save(self, config: Optional[ClientConfig] = None) -> None:
        """
        Сохранить конфигурацию в файл.

        Args:
            config: Конфигурация для сохранения.
                   Если не указана, сохраняет текущую.
        """
        if config is not None:
            self._config = config

        if self._config is None:
            return

        self._ensure_config_dir()

        with open(self.config_file, "w", encoding="utf-8") as f:
            json.dump(self._config.model_dump(mode="json"), f, indent=2, ensure_ascii=False)

    def get_config(self) -> ClientConfig:
        """Получить текущую конфигурацию."""
        if self._config is None:
            return self.load()
        return self._config

    def get_renderer_settings(self) -> RendererSettings:
        """Настройки рендерера."""
        return self.get_config().renderer

    def get_editor_settings(self) -> EditorSettings:
        """Настройки истории редактора."""
        return self.get_config().editor

    def update_renderer_settings(self, **changes) -> RendererSettings:
        """
        Изменить настройки рендерера и сохранить.

        Args:
            **changes: Поля RendererSettings

        Returns:
            Новые настройки
        """
        config = self.get_config()
        # model_copy(update=...) не валидирует, поэтому собираем заново
        config.renderer = RendererSettings.model_validate({**config.renderer.model_dump(), **changes})
        self.save(config)
        return config.renderer

    def set_data_dir(self, path: Optional[str]) -> None:
        """
        Установить папку для локальных данных.

        Args:
            path: Путь к папке или None для сброса к умолчанию
        """
        config = self.get_config()
        config.data_dir = path
        self.save(config)

    def get_data_dir(self) -> Path:
        """
        Получить папку для локальных данных.

        Returns:
            Path к папке данных (создаётся если не существует)
        """
        config = self.get_config()
        if config.data_dir:
            data_path = Path(config.data_dir)
        else:
            data_path = self.config_dir / "data"

        data_path.mkdir(parents=True, exist_ok=True)
        return data_path


# Глобальный экземпляр менеджера конфигурации
_config_manager: Optional[ConfigManager] = None


def get_config_manager(config_dir: Optional[Path] = None) -> ConfigManager:
    """
    Получить глобальный экземпляр менеджера конфигурации.

    Args:
        config_dir: Путь к директории конфигурации

    Returns:
        ConfigManager
    """
    global _config_manager

    if _config_manager is None or config_dir is not None:
        _config_manager = ConfigManager(config_dir)

    return _config_manager
