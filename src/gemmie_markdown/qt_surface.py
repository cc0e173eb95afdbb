# -*- coding: utf-8 -*-
"""
PyQt6 adapters: a text-editing surface over QPlainTextEdit / QTextEdit and
an event filter that feeds key presses to a ShortcutMap.

Qt cursor positions count UTF-16 code units, Python strings count code
points, so every offset is converted on the way in and out.
"""

import logging
from typing import Tuple, Union

from PyQt6.QtCore import QEvent, QObject, Qt
from PyQt6.QtGui import QKeySequence, QTextCursor
from PyQt6.QtWidgets import QPlainTextEdit, QTextEdit

from gemmie_markdown.shortcuts import ShortcutMap

logger = logging.getLogger(__name__)

TextWidget = Union[QPlainTextEdit, QTextEdit]


def to_utf16_offset(text: str, index: int) -> int:
    """Python string index → Qt cursor position."""
    return len(text[:index].encode('utf-16-le')) // 2


def from_utf16_offset(text: str, offset: int) -> int:
    """Qt cursor position → Python string index."""
    units = 0
    for index, char in enumerate(text):
        if units >= offset:
            return index
        units += 2 if ord(char) > 0xFFFF else 1
    return len(text)


class QtTextSurface:
    """TextEditingSurface над виджетом редактирования Qt."""

    def __init__(self, widget: TextWidget):
        self.widget = widget

    def get_selection(self) -> Tuple[str, int, int]:
        text = self.widget.toPlainText()
        cursor = self.widget.textCursor()
        return (
            text,
            from_utf16_offset(text, cursor.selectionStart()),
            from_utf16_offset(text, cursor.selectionEnd()),
        )

    def set_content(self, text: str) -> None:
        self.widget.setPlainText(text)

    def set_selection(self, start: int, end: int) -> None:
        text = self.widget.toPlainText()
        cursor = self.widget.textCursor()
        cursor.setPosition(to_utf16_offset(text, start))
        cursor.setPosition(to_utf16_offset(text, end), QTextCursor.MoveMode.KeepAnchor)
        self.widget.setTextCursor(cursor)


class ShortcutEventFilter(QObject):
    """Перехватывает нажатия клавиш виджета и передаёт их в ShortcutMap."""

    def __init__(self, shortcuts: ShortcutMap, parent=None):
        super().__init__(parent)
        self.shortcuts = shortcuts

    def eventFilter(self, obj, event) -> bool:
        if event.type() != QEvent.Type.KeyPress:
            return False

        modifiers = event.modifiers()
        # На macOS Qt отдаёт Cmd как ControlModifier
        mod = bool(modifiers & Qt.KeyboardModifier.ControlModifier)
        alt = bool(modifiers & Qt.KeyboardModifier.AltModifier)
        shift = bool(modifiers & Qt.KeyboardModifier.ShiftModifier)

        key = event.key()
        if key in (Qt.Key.Key_Return, Qt.Key.Key_Enter):
            name = 'Enter'
        elif key in (Qt.Key.Key_Tab, Qt.Key.Key_Backtab):
            name = 'Tab'
            shift = shift or key == Qt.Key.Key_Backtab
        else:
            name = QKeySequence(key).toString().lower()

        return self.shortcuts.handle_key(name, mod=mod, alt=alt, shift=shift)


def install_shortcuts(widget: TextWidget, shortcuts: ShortcutMap) -> ShortcutEventFilter:
    """Подключить ShortcutMap к виджету; фильтр принадлежит виджету."""
    event_filter = ShortcutEventFilter(shortcuts, widget)
    widget.installEventFilter(event_filter)
    return event_filter
