# -*- coding: utf-8 -*-
"""
Fenced code block and inline code extraction.

Code is rendered as soon as it is found and replaced with a placeholder, so
no later pass ever sees its content.
"""

import logging
import re
from typing import List, Optional, Tuple

from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name, guess_lexer
from pygments.util import ClassNotFound

from gemmie_markdown.models import RendererSettings
from gemmie_markdown.protector import PlaceholderKind, PlaceholderStore, escape_html

logger = logging.getLogger(__name__)

_FENCE_OPEN_RE = re.compile(r'^[ \t]{0,3}(`{3,}|~{3,})[ \t]*([\w+#.-]*)[^`\n]*$')
_INLINE_CODE_RE = re.compile(r'(?<!`)`([^`\n]+)`(?!`)')

_CODE_BLOCK_STYLE = (
    'background:#2d2d2d; color:#f8f8f2; padding:10px 12px; '
    'border-radius:6px; font-family:Consolas,\'Courier New\',monospace; '
    'font-size:12px; white-space:pre-wrap; margin:8px 0; '
    'border:1px solid #555;'
)
_CODE_LANG_STYLE = 'font-size:9px; color:#999; margin-bottom:4px;'
_INLINE_CODE_STYLE = (
    'background:#f0f0f0; padding:2px 5px; border-radius:3px; '
    'font-family:Consolas,\'Courier New\',monospace; font-size:12px; '
    'border:1px solid #ddd;'
)


def highlight_code(code: str, lang: str = '', style: str = 'monokai') -> Optional[str]:
    """
    Highlight ``code`` with Pygments.

    Tries the named lexer first and falls back to lexer guessing. Returns
    None when highlighting is not possible, and the caller then shows the
    code as escaped plain text.
    """
    try:
        lexer = None
        if lang:
            try:
                lexer = get_lexer_by_name(lang)
            except ClassNotFound:
                logger.debug(f"No lexer named {lang!r}, guessing")
        if lexer is None:
            lexer = guess_lexer(code)
        formatter = HtmlFormatter(nowrap=True, noclasses=True, style=style)
        return highlight(code, lexer, formatter).rstrip('\n')
    except Exception as e:
        logger.debug(f"Highlighting failed ({lang or 'auto'}): {e}")
        return None


def render_code_block(code: str, lang: str, settings: RendererSettings) -> str:
    body = None
    if settings.highlight_code:
        body = highlight_code(code, lang, settings.code_style)
    if body is None:
        body = escape_html(code)

    lang_label = f'<div style="{_CODE_LANG_STYLE}">{escape_html(lang)}</div>' if lang else ''
    lang_attr = f' data-lang="{escape_html(lang)}"' if lang else ''
    return (
        f'<pre style="{_CODE_BLOCK_STYLE}"{lang_attr}>'
        f'{lang_label}<code>{body}</code></pre>'
    )


def render_inline_code(code: str) -> str:
    return f'<code style="{_INLINE_CODE_STYLE}">{escape_html(code)}</code>'


def _is_fence_close(line: str, fence: str) -> bool:
    stripped = line.strip()
    return len(stripped) >= len(fence) and set(stripped) == {fence[0]}


def _closing_fence_index(lines: List[str], start: int, fence: str) -> Optional[int]:
    for j in range(start, len(lines)):
        if _is_fence_close(lines[j], fence):
            return j
    return None


def code_ranges(text: str) -> List[Tuple[int, int]]:
    """
    Offsets of fenced blocks and inline code spans in raw text.

    Literal HTML protection runs before extraction and must not pair a tag
    inside code with one outside it.
    """
    lines = text.split('\n')
    offsets: List[int] = []
    pos = 0
    for line in lines:
        offsets.append(pos)
        pos += len(line) + 1

    ranges: List[Tuple[int, int]] = []
    i = 0
    while i < len(lines):
        m = _FENCE_OPEN_RE.match(lines[i])
        j = _closing_fence_index(lines, i + 1, m.group(1)) if m else None
        if j is None:
            i += 1
            continue
        ranges.append((offsets[i], offsets[j] + len(lines[j])))
        i = j + 1

    ranges.extend(m.span() for m in _INLINE_CODE_RE.finditer(text))
    return ranges


def extract_code_blocks(text: str, store: PlaceholderStore, settings: RendererSettings) -> str:
    """
    Replace fenced code blocks with CODE_BLOCK placeholders.

    Unterminated fences are left untouched and end up as escaped text.
    """
    lines = text.split('\n')
    result: List[str] = []
    i = 0

    while i < len(lines):
        m = _FENCE_OPEN_RE.match(lines[i])
        if m:
            fence, lang = m.group(1), m.group(2)
            j = _closing_fence_index(lines, i + 1, fence)
            if j is not None:
                # Literal HTML stashed earlier is code here, show it as such
                code = store.expand('\n'.join(lines[i + 1:j]))
                html = render_code_block(code, lang, settings)
                result.append(store.stash(html, PlaceholderKind.CODE_BLOCK, block=True))
                i = j + 1
                continue

        result.append(lines[i])
        i += 1

    return '\n'.join(result)


def extract_inline_code(text: str, store: PlaceholderStore) -> str:
    """Replace `code` spans with INLINE_CODE placeholders."""
    def _replacer(m):
        code = store.expand(m.group(1))
        return store.stash(render_inline_code(code), PlaceholderKind.INLINE_CODE)

    return _INLINE_CODE_RE.sub(_replacer, text)
