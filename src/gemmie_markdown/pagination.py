"""
Пагинация результатов глубокого поиска внутри сообщений чата.

Состояние хранится по паре (chat_id, индекс сообщения) и создаётся лениво
при первом обращении, только для сообщений с результатами поиска.
"""

import json
import logging
from typing import Callable, Dict, Optional

from pydantic import ValidationError as PydanticValidationError

from gemmie_markdown.models import DeepSearchResult, PaginationState, SearchResultItem

logger = logging.getLogger(__name__)

# (chat_id, message_index) -> текст ответа или None
MessageLookup = Callable[[str, int], Optional[str]]


def parse_deep_search_result(response: Optional[str]) -> Optional[DeepSearchResult]:
    """
    Разобрать ответ сообщения как результат глубокого поиска.

    Returns:
        DeepSearchResult или None, если это обычный ответ
    """
    if not response:
        return None
    try:
        data = json.loads(response)
    except (TypeError, ValueError):
        return None

    if not isinstance(data, dict) or not isinstance(data.get("results"), list):
        return None

    try:
        return DeepSearchResult.model_validate(data)
    except PydanticValidationError as e:
        logger.debug(f"Malformed deep search payload: {e}")
        return None


def is_deep_search_result(response: Optional[str]) -> bool:
    return parse_deep_search_result(response) is not None


class PaginationManager:
    """Текущая страница результатов для каждого сообщения."""

    def __init__(
        self,
        message_lookup: MessageLookup,
        is_paginated: Callable[[str], bool] = is_deep_search_result,
        on_change: Optional[Callable[[str, int], None]] = None,
    ):
        """
        Args:
            message_lookup: Возвращает текст ответа сообщения
            is_paginated: Признак сообщения с результатами поиска
            on_change: Вызывается после смены страницы (например, прокрутка)
        """
        self._message_lookup = message_lookup
        self._is_paginated = is_paginated
        self._on_change = on_change
        self._states: Dict[str, Dict[int, PaginationState]] = {}

    def get_pagination(self, chat_id: Optional[str], message_index: int) -> PaginationState:
        """
        Состояние пагинации сообщения.

        Для сообщений без результатов поиска возвращает пустое состояние и
        ничего не сохраняет.
        """
        if not chat_id:
            return PaginationState()

        stored = self._states.get(chat_id, {}).get(message_index)
        if stored is not None:
            return stored.model_copy()

        response = self._message_lookup(chat_id, message_index)
        if response is None or not self._is_paginated(response):
            return PaginationState()

        result = parse_deep_search_result(response)
        if result is None:
            return PaginationState()

        state = PaginationState(current_page=0, total_pages=len(result.results))
        self._states.setdefault(chat_id, {})[message_index] = state
        return state.model_copy()

    def _set_page(self, chat_id: str, message_index: int, page: int) -> None:
        self._states[chat_id][message_index].current_page = page
        if self._on_change is not None:
            self._on_change(chat_id, message_index)

    def next_page(self, chat_id: Optional[str], message_index: int) -> bool:
        state = self.get_pagination(chat_id, message_index)
        if state.current_page >= state.total_pages - 1:
            return False
        self._set_page(chat_id, message_index, state.current_page + 1)
        return True

    def prev_page(self, chat_id: Optional[str], message_index: int) -> bool:
        state = self.get_pagination(chat_id, message_index)
        if state.current_page <= 0:
            return False
        self._set_page(chat_id, message_index, state.current_page - 1)
        return True

    def go_to_page(self, chat_id: Optional[str], message_index: int, page: int) -> bool:
        state = self.get_pagination(chat_id, message_index)
        if not 0 <= page < state.total_pages or page == state.current_page:
            return False
        self._set_page(chat_id, message_index, page)
        return True

    def current_result(self, chat_id: Optional[str], message_index: int) -> Optional[SearchResultItem]:
        """Результат поиска на текущей странице."""
        state = self.get_pagination(chat_id, message_index)
        if state.total_pages == 0:
            return None
        result = parse_deep_search_result(self._message_lookup(chat_id, message_index))
        if result is None or state.current_page >= len(result.results):
            return None
        return result.results[state.current_page]

    def discard_chat(self, chat_id: str) -> None:
        """Забыть состояние чата (например, после удаления)."""
        self._states.pop(chat_id, None)
