# -*- coding: utf-8 -*-
"""
Placeholder system for protecting regions of a message during rendering.

Tokens look like ``___KIND_N___``. N comes from a single counter owned by one
``PlaceholderStore``, i.e. by one render call, so tokens never leak between
calls. Literal HTML blocks are kept verbatim: message text is assumed to be
sanitised upstream, and any markup it carries is trusted and passed through
unescaped.
"""

import html
import re
from bisect import bisect_right
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from itertools import count
from typing import Dict, List, Optional, Iterable, Tuple


class PlaceholderKind(str, Enum):
    CODE_BLOCK = "CODE_BLOCK"
    INLINE_CODE = "INLINE_CODE"
    HTML_TAG = "HTML_TAG"
    PROTECTED = "PROTECTED"


_KINDS_ALT = "|".join(kind.value for kind in PlaceholderKind)

_TOKEN_RE = re.compile(rf'___({_KINDS_ALT})_(\d+)___')
_SHIELDABLE_RE = re.compile(r'___(?:CODE_BLOCK|INLINE_CODE|HTML_TAG)_\d+___')
_PROTECTED_RE = re.compile(r'___PROTECTED_\d+___')

# Token-like text typed by the user. The first underscore is swapped for a
# NUL sentinel before rendering and emitted as an entity at the very end.
_LITERAL_TOKEN_RE = re.compile(rf'_(?=__(?:{_KINDS_ALT})_)')
SENTINEL = '\x00'

_OPEN_TAG_RE = re.compile(r'<([A-Za-z][A-Za-z0-9-]*)(?:\s[^<>]*)?/?>')

BLOCK_TAGS = frozenset({
    'address', 'article', 'aside', 'audio', 'blockquote', 'canvas', 'details',
    'dialog', 'div', 'dl', 'dd', 'dt', 'fieldset', 'figcaption', 'figure',
    'footer', 'form', 'h1', 'h2', 'h3', 'h4', 'h5', 'h6', 'header', 'hr',
    'iframe', 'li', 'main', 'nav', 'ol', 'p', 'pre', 'script', 'section',
    'style', 'summary', 'svg', 'table', 'tbody', 'td', 'tfoot', 'th', 'thead',
    'tr', 'ul', 'video',
})

VOID_TAGS = frozenset({
    'area', 'base', 'br', 'col', 'embed', 'hr', 'img', 'input', 'link',
    'meta', 'source', 'track', 'wbr',
})


@dataclass
class Placeholder:
    """A stashed fragment and the token that stands in for it."""
    kind: PlaceholderKind
    index: int
    value: str
    block: bool = False

    @property
    def token(self) -> str:
        return f'___{self.kind.value}_{self.index}___'


class PlaceholderStore:
    """Per-render registry of placeholders."""

    def __init__(self):
        self._counter = count()
        self._entries: Dict[str, Placeholder] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, token: str) -> bool:
        return token in self._entries

    def stash(self, value: str, kind: PlaceholderKind, block: bool = False) -> str:
        """Store ``value`` and return the token that replaces it."""
        placeholder = Placeholder(kind, next(self._counter), value, block)
        self._entries[placeholder.token] = placeholder
        return placeholder.token

    def get(self, token: str) -> Optional[Placeholder]:
        return self._entries.get(token)

    def entries(self, kind: Optional[PlaceholderKind] = None) -> List[Placeholder]:
        return [p for p in self._entries.values() if kind is None or p.kind == kind]

    def shield(self, text: str) -> str:
        """Wrap every code/html token in a second-order PROTECTED token."""
        return _SHIELDABLE_RE.sub(
            lambda m: self.stash(m.group(0), PlaceholderKind.PROTECTED),
            text,
        )

    def unshield(self, text: str) -> str:
        """Turn PROTECTED tokens back into the tokens they wrap."""
        def _replacer(m):
            placeholder = self._entries.pop(m.group(0), None)
            return placeholder.value if placeholder else m.group(0)

        return _PROTECTED_RE.sub(_replacer, text)

    def expand(self, text: str, kinds: Iterable[PlaceholderKind] = (PlaceholderKind.HTML_TAG,)) -> str:
        """Put the original value back for tokens of the given kinds."""
        wanted = set(kinds)

        def _replacer(m):
            placeholder = self._entries.get(m.group(0))
            if placeholder is None or placeholder.kind not in wanted:
                return m.group(0)
            return placeholder.value

        return _TOKEN_RE.sub(_replacer, text)

    def is_block_line(self, line: str) -> bool:
        """True if the line holds only block placeholders."""
        tokens = _TOKEN_RE.findall(line)
        if not tokens or _TOKEN_RE.sub('', line).strip():
            return False
        for kind, index in tokens:
            placeholder = self._entries.get(f'___{kind}_{index}___')
            if placeholder is None or not placeholder.block:
                return False
        return True

    def restore(self, text: str) -> str:
        """
        Replace all tokens with their stored markup.

        A stored value may itself contain older tokens (a link whose text
        holds inline code), so substitution repeats until nothing changes.
        """
        def _replacer(m):
            placeholder = self._entries.get(m.group(0))
            return placeholder.value if placeholder else m.group(0)

        for _ in range(len(self._entries) + 1):
            restored = _TOKEN_RE.sub(_replacer, text)
            if restored == text:
                break
            text = restored
        return text


# ---------------------------------------------------------------------------
# Literal HTML protection
# ---------------------------------------------------------------------------

@lru_cache(maxsize=128)
def _tag_pattern(name: str) -> "re.Pattern":
    return re.compile(rf'<(/?){re.escape(name)}(?=[\s/>])[^<>]*>', re.IGNORECASE)


class _Ranges:
    """Sorted, merged (start, end) offsets with a membership test."""

    def __init__(self, ranges: Iterable[Tuple[int, int]]):
        merged: List[List[int]] = []
        for start, end in sorted(ranges):
            if merged and start <= merged[-1][1]:
                merged[-1][1] = max(merged[-1][1], end)
            else:
                merged.append([start, end])
        self._starts = [start for start, _ in merged]
        self._ends = [end for _, end in merged]

    def __contains__(self, pos: int) -> bool:
        i = bisect_right(self._starts, pos) - 1
        return i >= 0 and pos < self._ends[i]


def _find_closing_tag(text: str, lowered: str, name: str, start: int, skip: _Ranges) -> Optional[int]:
    """End offset of the tag closing an element opened before ``start``."""
    if lowered.find(f'</{name}', start) == -1:
        return None

    depth = 1
    for m in _tag_pattern(name).finditer(text, start):
        if m.start() in skip:
            continue
        if m.group(1):
            depth -= 1
            if depth == 0:
                return m.end()
        elif not m.group(0).endswith('/>'):
            depth += 1
    return None


def protect_html_tags(text: str, store: PlaceholderStore,
                      skip: Iterable[Tuple[int, int]] = ()) -> str:
    """
    Stash literal HTML elements (balanced pairs or self-closing tags).

    Tags starting inside a ``skip`` range (code) neither open nor close an
    element and stay as text.
    """
    if '<' not in text:
        return text

    skip = _Ranges(skip)
    lowered = text.lower()
    parts: List[str] = []
    pos = 0

    while True:
        m = _OPEN_TAG_RE.search(text, pos)
        if not m:
            break
        name = m.group(1).lower()

        if m.start() in skip:
            parts.append(text[pos:m.end()])
            pos = m.end()
            continue

        if m.group(0).endswith('/>') or name in VOID_TAGS:
            end = m.end()
        else:
            end = _find_closing_tag(text, lowered, name, m.end(), skip)
            if end is None:
                parts.append(text[pos:m.end()])
                pos = m.end()
                continue

        parts.append(text[pos:m.start()])
        parts.append(store.stash(text[m.start():end], PlaceholderKind.HTML_TAG, block=name in BLOCK_TAGS))
        pos = end

    parts.append(text[pos:])
    return ''.join(parts)


# ---------------------------------------------------------------------------
# Escaping
# ---------------------------------------------------------------------------

def escape_html(text: str) -> str:
    """Escape ``& < > " '``."""
    return html.escape(text, quote=True)


def neutralize_literal_tokens(text: str) -> str:
    """Drop NUL characters and defuse token-like text typed by the user."""
    text = text.replace(SENTINEL, '')
    return _LITERAL_TOKEN_RE.sub(SENTINEL, text)


def finalize(text: str) -> str:
    """Emit defused token underscores as entities."""
    return text.replace(SENTINEL, '&#95;')
