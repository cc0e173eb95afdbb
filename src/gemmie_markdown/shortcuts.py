# -*- coding: utf-8 -*-
"""
Keyboard shortcuts of the markdown editor.

Ctrl (Cmd on macOS) + key runs the basic commands, Ctrl+Alt+key the block
and heading commands. Enter and Tab inside a ``>`` quote continue or change
the quote nesting.
"""

import logging
import re
import sys
from typing import Callable, Dict, Optional

from gemmie_markdown.commands import EditResult
from gemmie_markdown.editor import MarkdownEditor

logger = logging.getLogger(__name__)

_QUOTE_PREFIX_RE = re.compile(r'^>+')

BASIC_SHORTCUTS: Dict[str, str] = {
    'z': 'undo',
    'y': 'redo',
    'b': 'bold',
    'i': 'italic',
    'u': 'strikethrough',
    'e': 'code',
    'k': 'link',
    'q': 'quote',
    's': 'save',
}

ADVANCED_SHORTCUTS: Dict[str, str] = {
    '1': 'h1', '2': 'h2', '3': 'h3', '4': 'h4', '5': 'h5', '6': 'h6',
    'l': 'list',
    'n': 'numbered',
    't': 'task',
    'q': 'quote',
    'c': 'codeblock',
    'i': 'image',
    'h': 'highlight',
    'r': 'rule',
    'd': 'table',
    's': 'save',
}

DESCRIPTIONS: Dict[str, str] = {
    'bold': 'Make text bold',
    'italic': 'Make text italic',
    'strikethrough': 'Strikethrough text',
    'code': 'Insert inline code',
    'link': 'Insert link',
    'quote': 'Insert blockquote',
    'h1': 'Insert heading 1',
    'h2': 'Insert heading 2',
    'h3': 'Insert heading 3',
    'h4': 'Insert heading 4',
    'h5': 'Insert heading 5',
    'h6': 'Insert heading 6',
    'list': 'Insert bullet list',
    'numbered': 'Insert numbered list',
    'task': 'Insert task list',
    'codeblock': 'Insert code block',
    'image': 'Insert image',
    'highlight': 'Highlight text',
    'rule': 'Insert horizontal rule',
    'table': 'Insert table',
    'save': 'Save document',
    'undo': 'Undo last action',
    'redo': 'Redo last action',
}


def _line_start(text: str, pos: int) -> int:
    return text.rfind('\n', 0, pos) + 1


def continue_quote(text: str, cursor: int) -> Optional[EditResult]:
    """
    Enter inside a quote line: new line with the same ``>`` prefix.

    Returns None when the cursor is not on a quote line.
    """
    line = text[_line_start(text, cursor):cursor]
    m = _QUOTE_PREFIX_RE.match(line)
    if not m:
        return None
    insert = '\n' + m.group(0) + ' '
    new_cursor = cursor + len(insert)
    return EditResult(text[:cursor] + insert + text[cursor:], new_cursor, new_cursor)


def nest_quote(text: str, cursor: int, outdent: bool = False) -> Optional[EditResult]:
    """
    Tab / Shift+Tab on a quote line: add or remove one level of ``>``.

    The outermost level is never removed.
    """
    start = _line_start(text, cursor)
    if not text.startswith('>', start):
        return None
    if outdent:
        if not text.startswith('>>', start):
            return None
        return EditResult(text[:start] + text[start + 1:], cursor - 1, cursor - 1)
    return EditResult(text[:start] + '>' + text[start:], cursor + 1, cursor + 1)


class ShortcutMap:
    """Maps key presses to MarkdownEditor commands."""

    def __init__(
        self,
        editor: MarkdownEditor,
        on_save: Optional[Callable[[], None]] = None,
        mac: Optional[bool] = None,
    ):
        self.editor = editor
        self.on_save = on_save
        self.mac = sys.platform == 'darwin' if mac is None else mac
        self._actions: Dict[str, Callable[[], bool]] = {
            'undo': editor.undo,
            'redo': editor.redo,
            'bold': editor.insert_bold,
            'italic': editor.insert_italic,
            'strikethrough': editor.insert_strikethrough,
            'code': editor.insert_code,
            'link': editor.insert_link,
            'quote': editor.insert_quote,
            'list': editor.insert_list,
            'numbered': editor.insert_numbered_list,
            'task': editor.insert_task_list,
            'codeblock': editor.insert_code_block,
            'image': editor.insert_image,
            'highlight': editor.insert_highlight,
            'rule': editor.insert_horizontal_rule,
            'table': editor.insert_table,
            'save': self._save,
        }
        for level in range(1, 7):
            self._actions[f'h{level}'] = lambda level=level: editor.insert_header(level)

    def _save(self) -> bool:
        if self.on_save is None:
            return False
        self.on_save()
        return True

    def action_for(self, key: str, mod: bool, alt: bool = False, shift: bool = False) -> Optional[str]:
        """Name of the action bound to a key combination, if any."""
        if not mod:
            return None
        key = key.lower()
        if not alt and not shift:
            return BASIC_SHORTCUTS.get(key)
        if alt and not shift:
            return ADVANCED_SHORTCUTS.get(key)
        if shift and not alt and key == 'z':
            return 'redo'
        return None

    def handle_key(self, key: str, mod: bool = False, alt: bool = False, shift: bool = False) -> bool:
        """
        Handle a key press.

        Args:
            key: Key text ('b', '1', 'Enter', 'Tab', ...)
            mod: Ctrl, or Cmd on macOS
            alt: Alt / Option held
            shift: Shift held

        Returns:
            True if the key was consumed
        """
        if not mod and key in ('Enter', 'Return'):
            return self._special('Quote continuation', continue_quote)
        if not mod and key == 'Tab':
            return self._special('Quote nesting', lambda text, cursor: nest_quote(text, cursor, outdent=shift))

        action = self.action_for(key, mod, alt, shift)
        if action is None:
            return False
        logger.debug(f"Shortcut {key!r} -> {action}")
        return self._actions[action]()

    def _special(self, name: str, command: Callable[[str, int], Optional[EditResult]]) -> bool:
        surface = self.editor.surface
        if surface is None:
            return False
        text, start, end = surface.get_selection()
        if start != end or command(text, start) is None:
            return False
        return self.editor.apply(name, lambda text, start, end: command(text, start))

    def hint(self, action: str) -> str:
        """Shortcut text for tooltips, e.g. 'Ctrl+B'."""
        mod = '⌘' if self.mac else 'Ctrl'
        if action == 'redo':
            return '⌘+Shift+Z' if self.mac else 'Ctrl+Y'
        for key, name in BASIC_SHORTCUTS.items():
            if name == action:
                return f'{mod}+{key.upper()}'
        for key, name in ADVANCED_SHORTCUTS.items():
            if name == action:
                return f'{mod}+Alt+{key.upper()}'
        return ''

    @staticmethod
    def description(action: str) -> str:
        return DESCRIPTIONS.get(action, '')
