"""
Локальное хранилище: key-value интерфейс и помощники над ним.

Значения хранятся как JSON-совместимые объекты под фиксированными ключами.
"""

import json
import logging
import re
import time
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

from pydantic import ValidationError as PydanticValidationError

from gemmie_markdown.exceptions import DocumentNotFoundError, StorageError
from gemmie_markdown.models import (
    DocumentTemplate,
    EditorSettings,
    ErrorRecord,
    LinkPreview,
    UploadedFile,
)
from gemmie_markdown.session import DocumentSession

logger = logging.getLogger(__name__)

# Фиксированные ключи хранилища
DOCUMENTS_KEY = "pdf_editor_documents"
CURRENT_DOCUMENT_KEY = "pdf_editor_current_document"
CHATS_KEY = "chats"
CURRENT_CHAT_KEY = "currentChatId"
CHAT_DRAFTS_KEY = "chatDrafts"
LINK_PREVIEWS_KEY = "linkPreviews"
PLATFORM_ERRORS_KEY = "platform_errors"

MAX_STORED_ERRORS = 100


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[Any]:
        ...

    def set(self, key: str, value: Any) -> None:
        ...

    def remove(self, key: str) -> None:
        ...


class MemoryStore:
    """Хранилище в памяти (тесты, временные сессии)."""

    def __init__(self):
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[Any]:
        raw = self._data.get(key)
        return None if raw is None else json.loads(raw)

    def set(self, key: str, value: Any) -> None:
        # Сериализуем сразу, чтобы ошибки проявлялись так же, как в файле
        try:
            self._data[key] = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Value is not JSON serialisable: {e}", key=key)

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore:
    """Хранилище на диске: один JSON-файл на ключ."""

    def __init__(self, directory: Path):
        """
        Args:
            directory: Папка данных, обычно ConfigManager.get_data_dir()
        """
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        safe_key = re.sub(r'[^\w.-]', '_', key)
        return self.directory / f"{safe_key}.json"

    def get(self, key: str) -> Optional[Any]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.error(f"Failed to read {path}: {e}")
            return None

    def set(self, key: str, value: Any) -> None:
        path = self._path(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            payload = json.dumps(value, indent=2, ensure_ascii=False)
            with open(path, "w", encoding="utf-8") as f:
                f.write(payload)
        except (TypeError, ValueError, OSError) as e:
            raise StorageError(f"Failed to write {path}: {e}", key=key)

    def remove(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


# ===== DOCUMENTS =====

DOCUMENT_TEMPLATES: List[DocumentTemplate] = [
    DocumentTemplate(
        id="blank",
        name="Blank Document",
        icon="📄",
        content="# New Document\n\nStart writing here...",
    ),
    DocumentTemplate(
        id="meeting-notes",
        name="Meeting Notes",
        icon="📝",
        content=(
            "# Meeting Notes\n\n**Date:** \n**Attendees:** \n\n## Agenda\n- \n\n"
            "## Discussion\n\n## Action Items\n- [ ] \n\n## Next Steps\n"
        ),
    ),
    DocumentTemplate(
        id="project-plan",
        name="Project Plan",
        icon="📋",
        content=(
            "# Project Plan\n\n## Overview\n\n## Objectives\n- \n\n## Timeline\n\n"
            "## Resources\n\n## Milestones\n- [ ] \n\n## Risks\n"
        ),
    ),
    DocumentTemplate(
        id="blog-post",
        name="Blog Post",
        icon="✍️",
        content=(
            "# Blog Post Title\n\n## Introduction\n\n## Main Content\n\n### Section 1\n\n"
            "### Section 2\n\n## Conclusion\n\n---\n*Published on [Date]*"
        ),
    ),
    DocumentTemplate(
        id="research-notes",
        name="Research Notes",
        icon="🔬",
        content=(
            "# Research Notes\n\n**Topic:** \n**Date:** \n**Sources:** \n\n## Key Findings\n\n"
            "## Quotes\n> \n\n## Questions\n- \n\n## Next Steps\n"
        ),
    ),
]


def _new_document_id() -> str:
    return f"doc-{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}"


class DocumentStore:
    """Список редактируемых документов и указатель на открытый документ."""

    def __init__(self, store: KeyValueStore):
        self.store = store
        self.files: List[UploadedFile] = []

    def load(self) -> List[UploadedFile]:
        """Загрузить список документов; повреждённые записи пропускаются."""
        self.files = []
        for raw in self.store.get(DOCUMENTS_KEY) or []:
            try:
                self.files.append(UploadedFile.model_validate(raw))
            except PydanticValidationError as e:
                logger.warning(f"Skipping broken document entry: {e}")
        return self.files

    def save(self) -> None:
        data = []
        for file in self.files:
            entry = file.model_dump(mode="json")
            # blob: ссылки живут только до перезапуска
            if file.url.startswith("blob:") and not file.is_custom:
                entry["url"] = ""
            if not file.is_custom:
                entry["content"] = None
                entry["pages_content"] = None
            data.append(entry)
        self.store.set(DOCUMENTS_KEY, data)

    def get_file(self, file_id: str) -> UploadedFile:
        for file in self.files:
            if file.id == file_id:
                return file
        raise DocumentNotFoundError(f"Document {file_id} not found", details={"id": file_id})

    def add_file(self, file: UploadedFile) -> None:
        self.files.append(file)
        self.save()

    def remove_file(self, file_id: str) -> bool:
        for i, file in enumerate(self.files):
            if file.id == file_id:
                del self.files[i]
                self.save()
                if self.get_current_id() == file_id:
                    self.clear_current()
                return True
        return False

    # ----- current document -----

    def set_current(self, file_id: str) -> None:
        self.get_file(file_id)
        self.store.set(CURRENT_DOCUMENT_KEY, file_id)

    def get_current_id(self) -> Optional[str]:
        return self.store.get(CURRENT_DOCUMENT_KEY)

    def clear_current(self) -> None:
        self.store.remove(CURRENT_DOCUMENT_KEY)

    # ----- templates and sessions -----

    def create_from_template(self, template_id: str) -> UploadedFile:
        """
        Создать документ из встроенного шаблона.

        Raises:
            DocumentNotFoundError: Неизвестный шаблон
        """
        template = next((t for t in DOCUMENT_TEMPLATES if t.id == template_id), None)
        if template is None:
            raise DocumentNotFoundError(f"Template {template_id} not found", details={"id": template_id})

        file = UploadedFile(
            id=_new_document_id(),
            name=f"{template.name}.md",
            url="custom",
            type="text/markdown",
            size=len(template.content.encode("utf-8")),
            is_custom=True,
            content=template.content,
            pages_content=[template.content],
        )
        self.add_file(file)
        return file

    def open_session(self, file_id: str, settings: Optional[EditorSettings] = None) -> DocumentSession:
        """
        Открыть документ для редактирования и сделать его текущим.

        Страницы берутся из pages_content. Документ без него (шаблон,
        старая запись) открывается одной страницей: content не делится по
        разделителю страниц, так как "---" может быть частью текста страницы.
        """
        file = self.get_file(file_id)
        pages = file.pages_content if file.pages_content else [file.content or ""]
        self.set_current(file_id)
        return DocumentSession(pages, settings=settings, document_id=file_id)

    def save_session(self, session: DocumentSession) -> UploadedFile:
        """Записать текст сессии обратно в документ."""
        if session.document_id is None:
            raise DocumentNotFoundError("Session is not bound to a document")
        file = self.get_file(session.document_id)
        file.pages_content = [page.content for page in session.pages]
        file.content = session.to_markdown()
        file.size = len(file.content.encode("utf-8"))
        file.pages = session.page_count
        self.save()
        return file


# ===== CHATS =====

class ChatStore:
    """
    Чтение сохранённых чатов.

    Формат записи: {"id", "title", "messages": [{"prompt", "response"}], ...}.
    Метод message_response подходит как MessageLookup для PaginationManager.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store

    def chats(self) -> List[Dict[str, Any]]:
        raw = self.store.get(CHATS_KEY)
        return [chat for chat in raw if isinstance(chat, dict)] if isinstance(raw, list) else []

    def message_response(self, chat_id: str, message_index: int) -> Optional[str]:
        for chat in self.chats():
            if chat.get("id") != chat_id:
                continue
            messages = chat.get("messages") or []
            if 0 <= message_index < len(messages) and isinstance(messages[message_index], dict):
                return messages[message_index].get("response")
            return None
        return None

    def get_current_chat_id(self) -> Optional[str]:
        return self.store.get(CURRENT_CHAT_KEY)

    def set_current_chat_id(self, chat_id: Optional[str]) -> None:
        if chat_id:
            self.store.set(CURRENT_CHAT_KEY, chat_id)
        else:
            self.store.remove(CURRENT_CHAT_KEY)


# ===== DRAFTS, CACHES, ERRORS =====

class ChatDrafts:
    """Черновики сообщений по чатам."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    def _all(self) -> Dict[str, str]:
        drafts = self.store.get(CHAT_DRAFTS_KEY)
        return drafts if isinstance(drafts, dict) else {}

    def get(self, chat_id: str) -> str:
        return self._all().get(chat_id, "")

    def set(self, chat_id: str, text: str) -> None:
        drafts = self._all()
        if text.strip():
            drafts[chat_id] = text
        else:
            drafts.pop(chat_id, None)
        self.store.set(CHAT_DRAFTS_KEY, drafts)

    def clear(self, chat_id: str) -> None:
        self.set(chat_id, "")


class LinkPreviewCache:
    """Кэш превью ссылок: url → LinkPreview."""

    def __init__(self, store: KeyValueStore, keep_on_overflow: int = 50):
        self.store = store
        self.keep_on_overflow = keep_on_overflow
        self._cache: Dict[str, LinkPreview] = {}
        self.load()

    def __len__(self) -> int:
        return len(self._cache)

    def load(self) -> None:
        raw = self.store.get(LINK_PREVIEWS_KEY)
        self._cache = {}
        if not isinstance(raw, dict):
            return
        try:
            self._cache = {url: LinkPreview.model_validate(item) for url, item in raw.items()}
        except PydanticValidationError as e:
            logger.error(f"Broken link preview cache, dropping it: {e}")
            self.store.remove(LINK_PREVIEWS_KEY)

    def get(self, url: str) -> Optional[LinkPreview]:
        return self._cache.get(url)

    def put(self, preview: LinkPreview) -> None:
        self._cache[preview.url] = preview
        try:
            self._save()
        except StorageError as e:
            # Хранилище переполнено: оставляем только свежие записи
            logger.error(f"Failed to save link preview cache, trimming: {e}")
            recent = list(self._cache.items())[-self.keep_on_overflow:]
            self._cache = dict(recent)
            self._save()

    def _save(self) -> None:
        self.store.set(
            LINK_PREVIEWS_KEY,
            {url: preview.model_dump(mode="json") for url, preview in self._cache.items()},
        )


class ErrorLog:
    """Журнал ошибок платформы, последние MAX_STORED_ERRORS записей."""

    def __init__(self, store: KeyValueStore, limit: int = MAX_STORED_ERRORS):
        self.store = store
        self.limit = limit

    def record(self, message: str, context: Optional[Dict[str, Any]] = None) -> ErrorRecord:
        entry = ErrorRecord(message=message, context=context or {})
        errors = self.store.get(PLATFORM_ERRORS_KEY) or []
        errors.append(entry.model_dump(mode="json"))
        self.store.set(PLATFORM_ERRORS_KEY, errors[-self.limit:])
        return entry

    def entries(self) -> List[ErrorRecord]:
        return [ErrorRecord.model_validate(raw) for raw in self.store.get(PLATFORM_ERRORS_KEY) or []]

    def clear(self) -> None:
        self.store.remove(PLATFORM_ERRORS_KEY)
