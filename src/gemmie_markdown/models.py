"""
Pydantic модели редактора, истории и пагинации.

Модели ответов бэкенда (ApiResponse, DeepSearchResult) описывают данные,
которые ядро только читает.
"""

import time
from datetime import datetime
from typing import Optional, List, Dict, Any, Literal, Generic, TypeVar
from pydantic import BaseModel, Field

T = TypeVar("T")


def _now_ms() -> int:
    return int(time.time() * 1000)


# ===== DOCUMENT MODELS =====

class Annotation(BaseModel):
    """Пометка на странице документа."""
    id: str
    type: Literal["highlight", "note", "bookmark"]
    text: str
    start_index: int = Field(ge=0)
    end_index: int = Field(ge=0)
    color: str = "#fde68a"
    note: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.now)


class EditableContent(BaseModel):
    """Редактируемая страница документа."""
    page_num: int = Field(ge=1)
    content: str
    original_content: str
    annotations: List[Annotation] = Field(default_factory=list)

    @property
    def is_modified(self) -> bool:
        """Страница отличается от исходного содержимого."""
        return self.content != self.original_content


class UploadedFile(BaseModel):
    """Запись в списке документов."""
    id: str
    name: str
    url: str = ""
    type: str = "text/markdown"
    size: int = 0
    preview_url: Optional[str] = None
    pages: Optional[int] = None
    uploaded_at: datetime = Field(default_factory=datetime.now)
    is_custom: bool = False
    content: Optional[str] = Field(default=None, description="Весь текст одной строкой (экспорт)")
    pages_content: Optional[List[str]] = Field(default=None, description="Текст по страницам")


class DocumentTemplate(BaseModel):
    """Шаблон нового документа."""
    id: str
    name: str
    icon: str
    content: str


# ===== HISTORY MODELS =====

class HistoryEntry(BaseModel):
    """Снимок содержимого страницы для undo/redo."""
    content: str
    timestamp: int = Field(default_factory=_now_ms, description="Unix time, мс")
    action: Optional[str] = None


class EditLogEntry(BaseModel):
    """Запись журнала правок (только для отображения)."""
    action: str
    page_num: int
    timestamp: datetime = Field(default_factory=datetime.now)
    preview: str = ""


# ===== PAGINATION / SEARCH MODELS =====

class PaginationState(BaseModel):
    """Состояние пагинации одного сообщения."""
    current_page: int = Field(default=0, ge=0)
    total_pages: int = Field(default=0, ge=0)


class SearchResultItem(BaseModel):
    """Один результат глубокого поиска."""
    title: str = ""
    url: str = ""
    description: str = ""


class DeepSearchResult(BaseModel):
    """Ответ глубокого поиска, встроенный в сообщение чата."""
    results: List[SearchResultItem] = Field(default_factory=list)
    total_pages: Optional[int] = None
    content_depth: Optional[int] = None
    search_time: Optional[float] = None


# ===== BACKEND ENVELOPE =====

class ApiResponse(BaseModel, Generic[T]):
    """Общая обёртка ответа бэкенда."""
    success: bool
    message: str = ""
    data: Optional[T] = None


# ===== CACHE MODELS =====

class LinkPreview(BaseModel):
    """Превью ссылки из кэша."""
    url: str
    title: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    domain: Optional[str] = None


class ErrorRecord(BaseModel):
    """Запись журнала ошибок платформы."""
    message: str
    context: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=datetime.now)


# ===== LOCAL CONFIG MODELS =====

class RendererSettings(BaseModel):
    """Настройки рендерера markdown."""
    max_input_chars: int = Field(
        default=100_000,
        ge=1,
        description="Длиннее этого текст выводится без разметки (защита от backtracking)"
    )
    link_text_limit: int = Field(default=60, ge=1, description="Максимальная длина текста ссылки")
    highlight_code: bool = Field(default=True, description="Подсветка синтаксиса через Pygments")
    code_style: str = Field(default="monokai", description="Стиль Pygments")


class EditorSettings(BaseModel):
    """Настройки истории редактора."""
    history_limit: int = Field(default=100, ge=1)
    edit_log_limit: int = Field(default=50, ge=1)


class ClientConfig(BaseModel):
    """Конфигурация клиента."""
    renderer: RendererSettings = Field(default_factory=RendererSettings)
    editor: EditorSettings = Field(default_factory=EditorSettings)
    data_dir: Optional[str] = Field(
        default=None,
        description="Папка для локальных данных. None = ~/.gemmie/data"
    )
