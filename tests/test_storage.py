"""
Tests for gemmie_markdown.storage.

Covers:
  - MemoryStore and JsonFileStore round trips and failures
  - DocumentStore persistence rules, templates, sessions
  - ChatStore, ChatDrafts, LinkPreviewCache, ErrorLog
"""

import logging

import pytest

from gemmie_markdown.exceptions import DocumentNotFoundError, StorageError
from gemmie_markdown.models import LinkPreview, UploadedFile
from gemmie_markdown.storage import (
    CHATS_KEY,
    DOCUMENT_TEMPLATES,
    DOCUMENTS_KEY,
    LINK_PREVIEWS_KEY,
    ChatDrafts,
    ChatStore,
    DocumentStore,
    ErrorLog,
    JsonFileStore,
    LinkPreviewCache,
    MemoryStore,
)


# ========================================================================
# Key-value stores
# ========================================================================


class TestMemoryStore:
    def test_round_trip_returns_copies(self, store):
        value = {"a": [1, 2]}
        store.set("k", value)
        value["a"].append(3)
        assert store.get("k") == {"a": [1, 2]}

    def test_missing_key(self, store):
        assert store.get("nope") is None
        store.remove("nope")

    def test_unserialisable_value(self, store):
        with pytest.raises(StorageError) as exc_info:
            store.set("k", {"s": {1, 2}})
        assert exc_info.value.key == "k"


class TestJsonFileStore:
    def test_round_trip(self, tmp_path):
        fs = JsonFileStore(tmp_path / "data")
        fs.set("chatDrafts", {"c1": "draft"})
        assert (tmp_path / "data" / "chatDrafts.json").exists()
        assert JsonFileStore(tmp_path / "data").get("chatDrafts") == {"c1": "draft"}

    def test_key_is_sanitised(self, tmp_path):
        fs = JsonFileStore(tmp_path)
        fs.set("../evil key", 1)
        assert fs.get("../evil key") == 1
        assert list(tmp_path.iterdir())[0].parent == tmp_path

    def test_corrupt_file_reads_as_missing(self, tmp_path, caplog):
        (tmp_path / "chats.json").write_text("{not json", encoding="utf-8")
        with caplog.at_level(logging.ERROR, logger="gemmie_markdown.storage"):
            assert JsonFileStore(tmp_path).get("chats") is None
        assert "Failed to read" in caplog.text

    def test_remove(self, tmp_path):
        fs = JsonFileStore(tmp_path)
        fs.set("k", 1)
        fs.remove("k")
        fs.remove("k")
        assert fs.get("k") is None

    def test_unserialisable_value(self, tmp_path):
        with pytest.raises(StorageError):
            JsonFileStore(tmp_path).set("k", object())


# ========================================================================
# Documents
# ========================================================================


class TestDocumentStore:
    def test_non_custom_files_drop_content_and_blob_url(self, store):
        docs = DocumentStore(store)
        docs.add_file(UploadedFile(id="f1", name="a.pdf", url="blob:abc", content="text"))
        saved = store.get(DOCUMENTS_KEY)[0]
        assert saved["url"] == ""
        assert saved["content"] is None

    def test_custom_files_keep_content(self, store):
        docs = DocumentStore(store)
        docs.add_file(UploadedFile(id="f1", name="a.md", url="custom", is_custom=True, content="# Hi"))
        reloaded = DocumentStore(store).load()
        assert reloaded[0].content == "# Hi"

    def test_broken_entries_are_skipped(self, store):
        store.set(DOCUMENTS_KEY, [{"id": "ok", "name": "a.md"}, {"name": "no id"}])
        files = DocumentStore(store).load()
        assert [f.id for f in files] == ["ok"]

    def test_current_document(self, store):
        docs = DocumentStore(store)
        docs.add_file(UploadedFile(id="f1", name="a.md"))
        docs.set_current("f1")
        assert docs.get_current_id() == "f1"
        assert docs.remove_file("f1")
        assert docs.get_current_id() is None
        assert not docs.remove_file("f1")

    def test_set_current_unknown(self, store):
        with pytest.raises(DocumentNotFoundError):
            DocumentStore(store).set_current("missing")

    def test_create_from_template(self, store):
        docs = DocumentStore(store)
        file = docs.create_from_template("meeting-notes")
        assert file.is_custom
        assert file.name == "Meeting Notes.md"
        assert file.content.startswith("# Meeting Notes")
        assert {t.id for t in DOCUMENT_TEMPLATES} >= {"blank", "blog-post"}

    def test_unknown_template(self, store):
        with pytest.raises(DocumentNotFoundError):
            DocumentStore(store).create_from_template("nope")

    def test_session_round_trip(self, store):
        docs = DocumentStore(store)
        docs.add_file(UploadedFile(
            id="f1", name="a.md", url="custom", is_custom=True,
            pages_content=["page one", "page two"],
        ))
        session = docs.open_session("f1")
        assert session.page_count == 2
        assert docs.get_current_id() == "f1"

        session.set_current_page(2)
        session.update_page_content("page 2")
        file = docs.save_session(session)
        assert file.content == "page one\n\n---\n\npage 2"
        assert file.pages == 2
        reloaded = DocumentStore(store).load()[0]
        assert reloaded.pages_content == ["page one", "page 2"]

    def test_page_with_its_own_rule_survives_reopen(self, store):
        docs = DocumentStore(store)
        file = docs.create_from_template("blank")
        session = docs.open_session(file.id)
        session.update_page_content("intro\n\n---\n\noutro")
        docs.save_session(session)

        reopened = DocumentStore(store)
        reopened.load()
        session = reopened.open_session(file.id)
        assert session.page_count == 1
        assert session.current_content == "intro\n\n---\n\noutro"

    def test_document_without_pages_opens_as_one_page(self, store):
        docs = DocumentStore(store)
        docs.add_file(UploadedFile(
            id="f1", name="a.md", url="custom", is_custom=True,
            content="a\n\n---\n\nb",
        ))
        assert docs.open_session("f1").page_count == 1

    def test_non_custom_files_drop_pages(self, store):
        docs = DocumentStore(store)
        docs.add_file(UploadedFile(id="f1", name="a.pdf", pages_content=["x"]))
        assert store.get(DOCUMENTS_KEY)[0]["pages_content"] is None

    def test_unbound_session_cannot_be_saved(self, store, session):
        with pytest.raises(DocumentNotFoundError):
            DocumentStore(store).save_session(session)


# ========================================================================
# Chats, drafts, caches
# ========================================================================


class TestChatStore:
    def test_message_response(self, store):
        store.set(CHATS_KEY, [{"id": "c1", "messages": [{"prompt": "p", "response": "r"}]}])
        chats = ChatStore(store)
        assert chats.message_response("c1", 0) == "r"
        assert chats.message_response("c1", 1) is None
        assert chats.message_response("c2", 0) is None

    def test_garbage_chat_list(self, store):
        store.set(CHATS_KEY, {"not": "a list"})
        assert ChatStore(store).chats() == []

    def test_current_chat(self, store):
        chats = ChatStore(store)
        chats.set_current_chat_id("c1")
        assert chats.get_current_chat_id() == "c1"
        chats.set_current_chat_id(None)
        assert chats.get_current_chat_id() is None


class TestChatDrafts:
    def test_set_get_clear(self, store):
        drafts = ChatDrafts(store)
        drafts.set("c1", "half a thought")
        assert drafts.get("c1") == "half a thought"
        drafts.set("c1", "   ")
        assert drafts.get("c1") == ""
        drafts.set("c2", "x")
        drafts.clear("c2")
        assert store.get("chatDrafts") == {}


class FullStore(MemoryStore):
    """Rejects link preview writes above a size, like a full browser quota."""

    def __init__(self, max_entries):
        super().__init__()
        self.max_entries = max_entries

    def set(self, key, value):
        if key == LINK_PREVIEWS_KEY and len(value) > self.max_entries:
            raise StorageError("quota exceeded", key=key)
        super().set(key, value)


class TestLinkPreviewCache:
    def test_put_and_reload(self, store):
        cache = LinkPreviewCache(store)
        cache.put(LinkPreview(url="https://a.com", title="A"))
        assert LinkPreviewCache(store).get("https://a.com").title == "A"

    def test_overflow_keeps_recent_entries(self):
        store = FullStore(max_entries=3)
        cache = LinkPreviewCache(store, keep_on_overflow=2)
        for i in range(4):
            cache.put(LinkPreview(url=f"https://{i}.com"))
        assert len(cache) == 2
        assert cache.get("https://3.com") is not None
        assert cache.get("https://0.com") is None

    def test_broken_cache_is_dropped(self, store):
        store.set(LINK_PREVIEWS_KEY, {"https://a.com": {"title": "no url"}})
        cache = LinkPreviewCache(store)
        assert len(cache) == 0
        assert store.get(LINK_PREVIEWS_KEY) is None


class TestErrorLog:
    def test_keeps_latest_entries(self, store):
        log = ErrorLog(store, limit=3)
        for i in range(5):
            log.record(f"error {i}", {"i": i})
        messages = [e.message for e in log.entries()]
        assert messages == ["error 2", "error 3", "error 4"]
        log.clear()
        assert log.entries() == []
