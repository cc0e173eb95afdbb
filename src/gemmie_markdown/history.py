"""
История правок: ограниченные стеки undo/redo и журнал действий.

EditHistory хранит снимки содержимого одной страницы. Применение снимка
(загрузка в документ) остаётся за вызывающим кодом, см. DocumentSession.
"""

import logging
from typing import List, Optional

from gemmie_markdown.models import EditLogEntry, HistoryEntry

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 100
DEFAULT_EDIT_LOG_LIMIT = 50


class EditHistory:
    """Стеки undo/redo с вытеснением самых старых снимков."""

    def __init__(self, max_size: int = DEFAULT_HISTORY_LIMIT):
        self.max_size = max_size
        self.undo_stack: List[HistoryEntry] = []
        self.redo_stack: List[HistoryEntry] = []

    @property
    def can_undo(self) -> bool:
        return bool(self.undo_stack)

    @property
    def can_redo(self) -> bool:
        return bool(self.redo_stack)

    def capture(self, content: str, action: Optional[str] = None) -> None:
        """
        Сохранить снимок перед изменением.

        Новая правка делает redo-ветку недействительной.
        """
        self.undo_stack.append(HistoryEntry(content=content, action=action))
        self.redo_stack.clear()

        overflow = len(self.undo_stack) - self.max_size
        if overflow > 0:
            del self.undo_stack[:overflow]

    def undo(self, current: str) -> Optional[str]:
        """
        Шаг назад.

        Args:
            current: Текущее содержимое, уходит в redo-стек

        Returns:
            Предыдущее содержимое или None, если отменять нечего
        """
        if not self.undo_stack:
            logger.debug("Nothing to undo")
            return None

        self.redo_stack.append(HistoryEntry(content=current))
        return self.undo_stack.pop().content

    def redo(self, current: str) -> Optional[str]:
        """Шаг вперёд, симметрично undo()."""
        if not self.redo_stack:
            logger.debug("Nothing to redo")
            return None

        self.undo_stack.append(HistoryEntry(content=current))
        # undo_stack мог быть заполнен до предела
        overflow = len(self.undo_stack) - self.max_size
        if overflow > 0:
            del self.undo_stack[:overflow]
        return self.redo_stack.pop().content

    def clear(self) -> None:
        self.undo_stack.clear()
        self.redo_stack.clear()


class EditLog:
    """Журнал действий для отображения, новые записи первыми."""

    def __init__(self, limit: int = DEFAULT_EDIT_LOG_LIMIT):
        self.limit = limit
        self._entries: List[EditLogEntry] = []

    def __len__(self) -> int:
        return len(self._entries)

    def add(self, action: str, page_num: int, preview: str = "") -> EditLogEntry:
        entry = EditLogEntry(action=action, page_num=page_num, preview=preview)
        self._entries.insert(0, entry)
        del self._entries[self.limit:]
        return entry

    def entries(self) -> List[EditLogEntry]:
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()
