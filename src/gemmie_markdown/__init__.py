"""
Gemmie Markdown.

Рендеринг markdown в HTML, команды редактора с историей правок
и пагинация результатов поиска в сообщениях.
"""

from gemmie_markdown.markdown_formatter import render_markdown
from gemmie_markdown.history import EditHistory, EditLog
from gemmie_markdown.session import DocumentSession
from gemmie_markdown.commands import EditResult
from gemmie_markdown.editor import MarkdownEditor, StringSurface, TextEditingSurface
from gemmie_markdown.pagination import PaginationManager, is_deep_search_result
from gemmie_markdown.config import ConfigManager, get_config_manager
from gemmie_markdown.models import (
    Annotation,
    EditableContent,
    HistoryEntry,
    PaginationState,
    DeepSearchResult,
    RendererSettings,
    EditorSettings,
)
from gemmie_markdown.exceptions import (
    GemmieMarkdownError,
    StorageError,
    DocumentNotFoundError,
    ValidationError,
)

__version__ = "1.0.0"

__all__ = [
    # Renderer
    "render_markdown",
    # Editing
    "EditHistory",
    "EditLog",
    "DocumentSession",
    "EditResult",
    "MarkdownEditor",
    "StringSurface",
    "TextEditingSurface",
    # Pagination
    "PaginationManager",
    "is_deep_search_result",
    # Config
    "ConfigManager",
    "get_config_manager",
    # Models
    "Annotation",
    "EditableContent",
    "HistoryEntry",
    "PaginationState",
    "DeepSearchResult",
    "RendererSettings",
    "EditorSettings",
    # Exceptions
    "GemmieMarkdownError",
    "StorageError",
    "DocumentNotFoundError",
    "ValidationError",
]
