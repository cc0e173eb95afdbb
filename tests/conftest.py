"""
Shared fixtures for the gemmie_markdown test suite.
"""

import json

import pytest

from gemmie_markdown.editor import MarkdownEditor, StringSurface
from gemmie_markdown.models import RendererSettings
from gemmie_markdown.session import DocumentSession
from gemmie_markdown.storage import MemoryStore


@pytest.fixture
def plain_settings() -> RendererSettings:
    """Renderer settings without Pygments, so code output is predictable."""
    return RendererSettings(highlight_code=False)


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def session() -> DocumentSession:
    return DocumentSession(["hello world"])


@pytest.fixture
def surface() -> StringSurface:
    return StringSurface("hello world", 0, 5)


@pytest.fixture
def editor(session: DocumentSession, surface: StringSurface) -> MarkdownEditor:
    return MarkdownEditor(session, surface)


def search_payload(count: int) -> str:
    """A chat response holding ``count`` deep search results."""
    return json.dumps({
        "results": [
            {"title": f"Result {i}", "url": f"https://example.com/{i}", "description": f"Item {i}"}
            for i in range(count)
        ],
        "total_pages": count,
        "content_depth": 1,
        "search_time": 0.25,
    })


@pytest.fixture
def make_search_payload():
    return search_payload
