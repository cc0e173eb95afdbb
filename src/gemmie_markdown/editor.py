# -*- coding: utf-8 -*-
"""
Markdown toolbar commands bound to an editing surface and a document session.

The surface is whatever widget the host UI provides (see ``QtTextSurface``
for PyQt6, ``StringSurface`` for plain strings). Commands do nothing while
no surface is attached or the session has no page.
"""

import logging
from typing import Callable, Optional, Protocol, Tuple

from gemmie_markdown import commands
from gemmie_markdown.commands import EditResult
from gemmie_markdown.exceptions import ValidationError
from gemmie_markdown.session import DocumentSession

logger = logging.getLogger(__name__)

Command = Callable[[str, int, int], EditResult]


class TextEditingSurface(Protocol):
    def get_selection(self) -> Tuple[str, int, int]:
        """Full text and the selection offsets."""
        ...

    def set_content(self, text: str) -> None:
        ...

    def set_selection(self, start: int, end: int) -> None:
        ...


class StringSurface:
    """In-memory surface: a string and a selection."""

    def __init__(self, text: str = '', start: int = 0, end: Optional[int] = None):
        self.text = text
        self.start = start
        self.end = start if end is None else end

    def get_selection(self) -> Tuple[str, int, int]:
        return self.text, self.start, self.end

    def set_content(self, text: str) -> None:
        self.text = text
        self.start = min(self.start, len(text))
        self.end = min(self.end, len(text))

    def set_selection(self, start: int, end: int) -> None:
        self.start, self.end = start, end

    @property
    def selected_text(self) -> str:
        return self.text[self.start:self.end]


class MarkdownEditor:
    """Toolbar actions of the markdown editor."""

    def __init__(self, session: DocumentSession, surface: Optional[TextEditingSurface] = None):
        self.session = session
        self.surface = surface

    def attach(self, surface: TextEditingSurface) -> None:
        self.surface = surface

    def detach(self) -> None:
        self.surface = None

    def apply(self, action: str, command: Command) -> bool:
        """Run a command on the surface text, capturing history first."""
        if self.surface is None:
            logger.debug(f"{action}: no editing surface attached")
            return False
        if self.session.current_content is None:
            logger.debug(f"{action}: no page to edit")
            return False

        text, start, end = self.surface.get_selection()
        self._sync(text)

        result = command(text, start, end)
        self.session.update_page_content(result.text, action=action)
        self.surface.set_content(result.text)
        self.surface.set_selection(result.selection_start, result.selection_end)
        return True

    def _sync(self, text: str) -> None:
        # Text typed since the last command becomes its own undo step
        if text != self.session.current_content:
            self.session.update_page_content(text)

    def _wrap(self, action: str, prefix: str, suffix: str, placeholder: str) -> bool:
        return self.apply(
            action,
            lambda text, start, end: commands.wrap_selection(text, start, end, prefix, suffix, placeholder),
        )

    def _prefix(self, action: str, prefix: str, placeholder: str) -> bool:
        return self.apply(
            action,
            lambda text, start, end: commands.prefix_lines(text, start, end, prefix, placeholder),
        )

    # ------------------------------------------------------------------
    # Inline formatting
    # ------------------------------------------------------------------

    def insert_bold(self) -> bool:
        return self._wrap('Bold', '**', '**', 'bold text')

    def insert_italic(self) -> bool:
        return self._wrap('Italic', '*', '*', 'italic text')

    def insert_strikethrough(self) -> bool:
        return self._wrap('Strikethrough', '~~', '~~', 'strikethrough text')

    def insert_highlight(self) -> bool:
        return self._wrap('Highlight', '==', '==', 'highlighted text')

    def insert_code(self) -> bool:
        return self._wrap('Inline code', '`', '`', 'code')

    def insert_link(self) -> bool:
        return self._wrap('Link', '[', '](url)', 'link text')

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------

    def insert_image(self) -> bool:
        return self._wrap('Image', '![', '](image-url)', 'image description')

    def insert_image_with_title(self) -> bool:
        return self._wrap('Image', '![', '](image-url "optional title")', 'image description')

    def insert_image_with_dimensions(self) -> bool:
        return self._wrap('Image', '![', '](image-url =800x600)', 'image description')

    def insert_image_centered(self) -> bool:
        return self._wrap('Image', '![', '](image-url){.center}', 'image description')

    def insert_image_small(self) -> bool:
        return self._wrap('Image', '![', '](image-url){.small}', 'image description')

    def insert_image_with_border(self) -> bool:
        return self._wrap('Image', '![', '](image-url){.border}', 'image description')

    def insert_image_link(self) -> bool:
        return self._wrap('Image link', '[![', '](image-url)](https://example.com)', 'image description')

    # ------------------------------------------------------------------
    # Line prefixes
    # ------------------------------------------------------------------

    def insert_header(self, level: int) -> bool:
        if not 1 <= level <= 6:
            raise ValidationError(f"Header level must be 1-6, got {level}", details={"level": level})
        return self._prefix(f'Header {level}', '#' * level + ' ', f'Header {level}')

    def insert_list(self) -> bool:
        return self._prefix('Bullet list', '- ', 'List item')

    def insert_numbered_list(self) -> bool:
        return self._prefix('Numbered list', '1. ', 'List item')

    def insert_task_list(self) -> bool:
        return self._prefix('Task list', '- [ ] ', 'Task item')

    def insert_quote(self) -> bool:
        return self._prefix('Quote', '> ', 'Quote text')

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------

    def insert_code_block(self) -> bool:
        return self.apply(
            'Code block',
            lambda text, start, end: commands.insert_block(
                text, start, end, commands.code_block_template(text[start:end])
            ),
        )

    def insert_table(self) -> bool:
        # The selection is kept and the table goes in front of it
        return self.apply(
            'Table',
            lambda text, start, end: commands.insert_block(text, start, start, commands.TABLE_TEMPLATE),
        )

    def insert_horizontal_rule(self) -> bool:
        return self.apply(
            'Horizontal rule',
            lambda text, start, end: commands.insert_block(
                text, start, start, commands.HORIZONTAL_RULE_TEMPLATE
            ),
        )

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def undo(self) -> bool:
        return self._step(self.session.undo)

    def redo(self) -> bool:
        return self._step(self.session.redo)

    def _step(self, step: Callable[[], bool]) -> bool:
        if self.surface is not None and self.session.current_content is not None:
            self._sync(self.surface.get_selection()[0])
        if not step():
            return False
        if self.surface is not None:
            content = self.session.current_content or ''
            self.surface.set_content(content)
            self.surface.set_selection(len(content), len(content))
        return True
