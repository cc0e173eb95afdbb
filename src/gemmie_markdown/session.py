"""
Редактируемый документ: страницы, текущая страница, история правок.

У каждой страницы своя история undo/redo; журнал действий общий.
"""

import logging
from typing import Dict, List, Optional, Sequence

from gemmie_markdown.exceptions import DocumentNotFoundError
from gemmie_markdown.history import EditHistory, EditLog
from gemmie_markdown.models import Annotation, EditableContent, EditorSettings

logger = logging.getLogger(__name__)

PAGE_SEPARATOR = "\n\n---\n\n"


class DocumentSession:
    """Сессия редактирования одного документа."""

    def __init__(
        self,
        pages: Sequence[str] = (),
        settings: Optional[EditorSettings] = None,
        document_id: Optional[str] = None,
    ):
        """
        Args:
            pages: Исходный текст страниц по порядку
            settings: Лимиты истории (по умолчанию EditorSettings())
            document_id: ID документа в DocumentStore, если есть
        """
        self.settings = settings or EditorSettings()
        self.document_id = document_id
        self.pages: List[EditableContent] = [
            EditableContent(page_num=i, content=text, original_content=text)
            for i, text in enumerate(pages, start=1)
        ]
        self.current_page = 1 if self.pages else 0
        self.edit_log = EditLog(self.settings.edit_log_limit)
        self._histories: Dict[int, EditHistory] = {}

    # ===== PAGES =====

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def get_page(self, page_num: Optional[int] = None) -> EditableContent:
        """
        Получить страницу.

        Raises:
            DocumentNotFoundError: Страницы с таким номером нет
        """
        if page_num is None:
            page_num = self.current_page
        if not 1 <= page_num <= len(self.pages):
            raise DocumentNotFoundError(
                f"Page {page_num} not found",
                details={"page_num": page_num, "page_count": len(self.pages)},
            )
        return self.pages[page_num - 1]

    def set_current_page(self, page_num: int) -> None:
        self.get_page(page_num)
        self.current_page = page_num

    @property
    def current_content(self) -> Optional[str]:
        """Текст текущей страницы или None, если страниц нет."""
        if not 1 <= self.current_page <= len(self.pages):
            return None
        return self.pages[self.current_page - 1].content

    def history(self, page_num: Optional[int] = None) -> EditHistory:
        """История undo/redo страницы (создаётся при первом обращении)."""
        page = self.get_page(page_num)
        if page.page_num not in self._histories:
            self._histories[page.page_num] = EditHistory(self.settings.history_limit)
        return self._histories[page.page_num]

    @property
    def can_undo(self) -> bool:
        return self.current_content is not None and self.history().can_undo

    @property
    def can_redo(self) -> bool:
        return self.current_content is not None and self.history().can_redo

    # ===== EDITING =====

    def update_page_content(
        self,
        content: str,
        save_history: bool = True,
        action: Optional[str] = None,
    ) -> bool:
        """
        Заменить текст текущей страницы.

        Args:
            content: Новый текст
            save_history: Сохранить прежний текст в историю
            action: Название действия для журнала

        Returns:
            True если текст изменился
        """
        if self.current_content is None:
            logger.debug("No current page, update ignored")
            return False

        page = self.get_page()
        if page.content == content:
            return False

        if save_history:
            self.history().capture(page.content, action)
        page.content = content

        if action:
            self.edit_log.add(action, page.page_num, content[:50])
        return True

    def undo(self) -> bool:
        """Отменить последнюю правку текущей страницы."""
        if self.current_content is None:
            return False

        page = self.get_page()
        previous = self.history().undo(page.content)
        if previous is None:
            return False

        page.content = previous
        self.edit_log.add("Undo", page.page_num, "Undid last change")
        return True

    def redo(self) -> bool:
        """Повторить отменённую правку текущей страницы."""
        if self.current_content is None:
            return False

        page = self.get_page()
        following = self.history().redo(page.content)
        if following is None:
            return False

        page.content = following
        self.edit_log.add("Redo", page.page_num, "Redid last change")
        return True

    def reset_page(self, page_num: Optional[int] = None) -> bool:
        """Вернуть исходный текст страницы (действие можно отменить)."""
        page = self.get_page(page_num)
        if not page.is_modified:
            return False

        self.history(page.page_num).capture(page.content, "Reset")
        page.content = page.original_content
        self.edit_log.add("Reset", page.page_num, "Restored original content")
        return True

    # ===== ANNOTATIONS =====

    def add_annotation(self, annotation: Annotation, page_num: Optional[int] = None) -> None:
        self.get_page(page_num).annotations.append(annotation)

    def remove_annotation(self, annotation_id: str, page_num: Optional[int] = None) -> bool:
        page = self.get_page(page_num)
        for i, annotation in enumerate(page.annotations):
            if annotation.id == annotation_id:
                del page.annotations[i]
                return True
        return False

    # ===== EXPORT =====

    def modified_pages(self) -> List[int]:
        return [page.page_num for page in self.pages if page.is_modified]

    def to_markdown(self) -> str:
        """Все страницы одним текстом, разделённые горизонтальной линией."""
        return PAGE_SEPARATOR.join(page.content for page in self.pages)
