"""
Tests for gemmie_markdown.history and gemmie_markdown.session.

Covers:
  - Undo/redo law and redo invalidation
  - Bounded undo stack (oldest evicted)
  - Underflow is a no-op
  - Edit log cap and ordering
  - Per-page history in DocumentSession
  - Page lookup errors, reset, annotations, export
"""

import pytest

from gemmie_markdown.exceptions import DocumentNotFoundError
from gemmie_markdown.history import EditHistory, EditLog
from gemmie_markdown.models import Annotation, EditorSettings
from gemmie_markdown.session import DocumentSession


# ========================================================================
# EditHistory
# ========================================================================


class TestEditHistory:
    def test_undo_redo_law(self):
        history = EditHistory()
        content = "C0"

        history.capture(content)
        content = "C1"

        content = history.undo(content)
        assert content == "C0"
        content = history.redo(content)
        assert content == "C1"

    def test_new_edit_clears_redo(self):
        history = EditHistory()
        history.capture("C0")
        content = history.undo("C1")
        assert history.can_redo

        history.capture(content)
        assert not history.can_redo
        assert history.redo("C2") is None

    def test_bounded_history_evicts_oldest(self):
        history = EditHistory()
        for i in range(105):
            history.capture(f"v{i}")
        assert len(history.undo_stack) == 100
        assert history.undo_stack[0].content == "v5"
        assert history.undo_stack[-1].content == "v104"

    def test_custom_limit(self):
        history = EditHistory(max_size=3)
        for i in range(5):
            history.capture(str(i))
        assert [e.content for e in history.undo_stack] == ["2", "3", "4"]

    def test_underflow_is_noop(self):
        history = EditHistory()
        assert history.undo("x") is None
        assert history.redo("x") is None
        assert not history.redo_stack

    def test_redo_respects_limit(self):
        history = EditHistory(max_size=2)
        history.capture("a")
        history.capture("b")
        history.undo("c")
        history.capture("b2")
        history.undo("d")
        history.redo("b2")
        assert len(history.undo_stack) <= 2

    def test_entries_carry_timestamp_and_action(self):
        history = EditHistory()
        history.capture("x", action="Bold")
        entry = history.undo_stack[0]
        assert entry.action == "Bold"
        assert entry.timestamp > 0

    def test_clear(self):
        history = EditHistory()
        history.capture("a")
        history.undo("b")
        history.clear()
        assert not history.can_undo and not history.can_redo


class TestEditLog:
    def test_newest_first_and_capped(self):
        log = EditLog()
        for i in range(60):
            log.add(f"a{i}", page_num=1)
        entries = log.entries()
        assert len(entries) == 50
        assert entries[0].action == "a59"
        assert entries[-1].action == "a10"

    def test_clear(self):
        log = EditLog()
        log.add("x", page_num=1)
        log.clear()
        assert len(log) == 0


# ========================================================================
# DocumentSession
# ========================================================================


class TestDocumentSession:
    def test_undo_redo_through_session(self):
        session = DocumentSession(["C0"])
        session.update_page_content("C1")
        assert session.undo()
        assert session.current_content == "C0"
        assert session.redo()
        assert session.current_content == "C1"

        session.undo()
        session.update_page_content("C2")
        assert not session.redo()
        assert session.current_content == "C2"

    def test_undo_does_not_capture(self):
        session = DocumentSession(["a"])
        session.update_page_content("b")
        session.undo()
        assert len(session.history().undo_stack) == 0
        assert len(session.history().redo_stack) == 1

    def test_unchanged_content_is_not_captured(self):
        session = DocumentSession(["same"])
        assert not session.update_page_content("same")
        assert not session.can_undo

    def test_update_without_history(self):
        session = DocumentSession(["a"])
        session.update_page_content("b", save_history=False)
        assert session.current_content == "b"
        assert not session.can_undo

    def test_history_is_per_page(self):
        session = DocumentSession(["p1", "p2"])
        session.update_page_content("p1 edited")
        session.set_current_page(2)
        assert not session.can_undo
        session.update_page_content("p2 edited")
        session.undo()
        assert session.current_content == "p2"
        assert session.get_page(1).content == "p1 edited"

    def test_log_records_actions_and_undo(self):
        session = DocumentSession(["a"])
        session.update_page_content("b", action="Bold")
        session.undo()
        actions = [e.action for e in session.edit_log.entries()]
        assert actions == ["Undo", "Bold"]

    def test_history_limit_from_settings(self):
        session = DocumentSession(["0"], settings=EditorSettings(history_limit=2))
        for i in range(1, 5):
            session.update_page_content(str(i))
        assert len(session.history().undo_stack) == 2

    def test_empty_session_is_noop(self):
        session = DocumentSession()
        assert session.current_content is None
        assert not session.update_page_content("x")
        assert not session.undo()
        assert not session.redo()
        assert not session.can_undo

    @pytest.mark.parametrize("page_num", [0, 3, -1])
    def test_unknown_page_raises(self, page_num):
        session = DocumentSession(["a", "b"])
        with pytest.raises(DocumentNotFoundError):
            session.get_page(page_num)

    def test_set_current_page_validates(self):
        session = DocumentSession(["a"])
        with pytest.raises(DocumentNotFoundError):
            session.set_current_page(2)
        assert session.current_page == 1

    def test_reset_page_is_undoable(self):
        session = DocumentSession(["orig"])
        session.update_page_content("changed")
        assert session.modified_pages() == [1]
        assert session.reset_page()
        assert session.current_content == "orig"
        assert session.modified_pages() == []
        session.undo()
        assert session.current_content == "changed"

    def test_reset_unmodified_page_is_noop(self):
        assert not DocumentSession(["a"]).reset_page()

    def test_annotations(self):
        session = DocumentSession(["some text"])
        note = Annotation(id="n1", type="note", text="some", start_index=0, end_index=4, note="hi")
        session.add_annotation(note)
        assert session.get_page().annotations == [note]
        assert session.remove_annotation("n1")
        assert not session.remove_annotation("n1")

    def test_to_markdown_joins_pages(self):
        session = DocumentSession(["one", "two"])
        assert session.to_markdown() == "one\n\n---\n\ntwo"
