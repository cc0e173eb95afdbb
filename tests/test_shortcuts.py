"""
Tests for gemmie_markdown.shortcuts.

Covers:
  - Key combination lookup (basic, Alt, Shift+Z)
  - Dispatch into MarkdownEditor commands
  - Quote continuation and nesting on Enter / Tab
  - Save callback and tooltip hints
"""

import pytest

from gemmie_markdown.editor import MarkdownEditor, StringSurface
from gemmie_markdown.session import DocumentSession
from gemmie_markdown.shortcuts import ShortcutMap, continue_quote, nest_quote


@pytest.fixture
def shortcuts(editor):
    return ShortcutMap(editor, mac=False)


def quote_editor(text, cursor):
    surface = StringSurface(text, cursor)
    return MarkdownEditor(DocumentSession([text]), surface), surface


# ========================================================================
# Lookup
# ========================================================================


class TestActionLookup:
    @pytest.mark.parametrize("key, mod, alt, shift, expected", [
        ("b", True, False, False, "bold"),
        ("B", True, False, False, "bold"),
        ("k", True, False, False, "link"),
        ("1", True, True, False, "h1"),
        ("d", True, True, False, "table"),
        ("z", True, False, True, "redo"),
        ("b", False, False, False, None),
        ("x", True, False, False, None),
        ("b", True, True, True, None),
    ])
    def test_action_for(self, shortcuts, key, mod, alt, shift, expected):
        assert shortcuts.action_for(key, mod, alt, shift) == expected

    def test_unbound_key_not_consumed(self, shortcuts, surface):
        assert not shortcuts.handle_key("x", mod=True)
        assert surface.text == "hello world"


# ========================================================================
# Dispatch
# ========================================================================


class TestDispatch:
    def test_bold(self, shortcuts, surface):
        assert shortcuts.handle_key("b", mod=True)
        assert surface.text == "**hello** world"

    def test_heading(self, shortcuts, surface):
        shortcuts.handle_key("2", mod=True, alt=True)
        assert surface.text == "## hello world"

    def test_undo_redo(self, shortcuts, surface):
        shortcuts.handle_key("b", mod=True)
        shortcuts.handle_key("z", mod=True)
        assert surface.text == "hello world"
        shortcuts.handle_key("z", mod=True, shift=True)
        assert surface.text == "**hello** world"

    def test_save_without_callback(self, shortcuts):
        assert not shortcuts.handle_key("s", mod=True)

    def test_save_callback(self, editor):
        saved = []
        shortcuts = ShortcutMap(editor, on_save=lambda: saved.append(True), mac=False)
        assert shortcuts.handle_key("s", mod=True, alt=True)
        assert saved == [True]


# ========================================================================
# Quotes
# ========================================================================


class TestQuoteHelpers:
    def test_continue_quote(self):
        result = continue_quote("> abc", 5)
        assert result.text == "> abc\n> "
        assert result.selection_start == result.selection_end == 8

    def test_continue_nested_quote(self):
        assert continue_quote("text\n>> x", 9).text == "text\n>> x\n>> "

    def test_continue_outside_quote(self):
        assert continue_quote("plain", 5) is None

    def test_nest_and_outdent(self):
        assert nest_quote("> a", 3).text == ">> a"
        result = nest_quote(">> a", 4, outdent=True)
        assert (result.text, result.selection_start) == ("> a", 3)

    def test_outermost_level_kept(self):
        assert nest_quote("> a", 3, outdent=True) is None
        assert nest_quote("a", 1) is None


class TestQuoteKeys:
    def test_enter_continues_quote(self):
        editor, surface = quote_editor("> quote", 7)
        assert ShortcutMap(editor).handle_key("Enter")
        assert surface.text == "> quote\n> "
        assert editor.session.history().undo_stack[-1].content == "> quote"

    def test_enter_outside_quote_not_consumed(self):
        editor, surface = quote_editor("plain", 5)
        assert not ShortcutMap(editor).handle_key("Return")
        assert surface.text == "plain"

    def test_enter_with_selection_not_consumed(self):
        editor, surface = quote_editor("> quote", 2)
        surface.set_selection(2, 7)
        assert not ShortcutMap(editor).handle_key("Enter")

    def test_shift_tab_outdents(self):
        editor, surface = quote_editor(">> deep", 7)
        assert ShortcutMap(editor).handle_key("Tab", shift=True)
        assert surface.text == "> deep"


# ========================================================================
# Hints
# ========================================================================


class TestHints:
    def test_hints_ctrl(self, shortcuts):
        assert shortcuts.hint("bold") == "Ctrl+B"
        assert shortcuts.hint("h1") == "Ctrl+Alt+1"
        assert shortcuts.hint("redo") == "Ctrl+Y"
        assert shortcuts.hint("nothing") == ""

    def test_hints_mac(self, editor):
        shortcuts = ShortcutMap(editor, mac=True)
        assert shortcuts.hint("bold") == "⌘+B"
        assert shortcuts.hint("redo") == "⌘+Shift+Z"

    def test_description(self):
        assert ShortcutMap.description("bold") == "Make text bold"
        assert ShortcutMap.description("nothing") == ""
