"""
Исключения для gemmie-markdown.

Рендерер и команды редактора на некорректном вводе не бросают исключений;
эти классы используются только на границах API (хранилище, документы,
неверные аргументы).
"""

from typing import Optional, Dict, Any


class GemmieMarkdownError(Exception):
    """Базовое исключение для gemmie-markdown."""
    
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class StorageError(GemmieMarkdownError):
    """Ошибка чтения/записи key-value хранилища."""
    
    def __init__(
        self,
        message: str,
        key: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.key = key
        super().__init__(message, details)


class DocumentNotFoundError(GemmieMarkdownError):
    """Документ или страница не найдены."""
    
    def __init__(self, message: str = "Document not found", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class ValidationError(GemmieMarkdownError):
    """Неверные аргументы команды или модели."""
    
    def __init__(self, message: str = "Validation error", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
