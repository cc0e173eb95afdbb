# -*- coding: utf-8 -*-
"""
Markdown insertion commands.

Pure functions over ``(text, start, end)`` that return the new text and the
new selection. Offsets are Python string indices. Nothing here touches a
widget or the edit history; see ``gemmie_markdown.editor`` for that.
"""

from typing import NamedTuple, Tuple


class EditResult(NamedTuple):
    text: str
    selection_start: int
    selection_end: int


TABLE_TEMPLATE = (
    '| Column 1 | Column 2 | Column 3 |\n'
    '|----------|----------|----------|\n'
    '| Row 1    | Data     | Data     |\n'
    '| Row 2    | Data     | Data     |'
)
HORIZONTAL_RULE_TEMPLATE = '---\n'
CODE_BLOCK_PLACEHOLDER = 'code block'


def _clamp(text: str, start: int, end: int) -> Tuple[int, int]:
    start = max(0, min(start, len(text)))
    end = max(0, min(end, len(text)))
    return (start, end) if start <= end else (end, start)


def _leading_newline(text: str, pos: int) -> str:
    return '\n' if pos > 0 and text[pos - 1] != '\n' else ''


def wrap_selection(text: str, start: int, end: int,
                   prefix: str, suffix: str = '', placeholder: str = '') -> EditResult:
    """
    Wrap the selection in prefix/suffix.

    With an empty selection the placeholder is inserted instead and becomes
    the new selection, so typing replaces it.
    """
    start, end = _clamp(text, start, end)
    replacement = text[start:end] or placeholder
    new_text = text[:start] + prefix + replacement + suffix + text[end:]
    selection_start = start + len(prefix)
    return EditResult(new_text, selection_start, selection_start + len(replacement))


def prefix_lines(text: str, start: int, end: int, prefix: str, placeholder: str = '') -> EditResult:
    """
    Prefix every selected line, or insert prefix+placeholder at the cursor.

    A newline is added first when the cursor is not at the start of a line.
    """
    start, end = _clamp(text, start, end)
    selected = text[start:end]
    lead = _leading_newline(text, start)

    if '\n' in selected:
        body = '\n'.join(prefix + line for line in selected.split('\n'))
        new_text = text[:start] + lead + body + text[end:]
        return EditResult(new_text, start + len(lead), start + len(lead) + len(body))

    replacement = selected or placeholder
    new_text = text[:start] + lead + prefix + replacement + text[end:]
    selection_start = start + len(lead) + len(prefix)
    return EditResult(new_text, selection_start, selection_start + len(replacement))


def insert_block(text: str, start: int, end: int, template: str) -> EditResult:
    """Replace the selection with a block template and put the cursor after it."""
    start, end = _clamp(text, start, end)
    block = _leading_newline(text, start) + template
    cursor = start + len(block)
    return EditResult(text[:start] + block + text[end:], cursor, cursor)


def code_block_template(code: str = '', lang: str = '') -> str:
    return f'```{lang}\n{code or CODE_BLOCK_PLACEHOLDER}\n```\n'
