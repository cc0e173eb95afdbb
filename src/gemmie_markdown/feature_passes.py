# -*- coding: utf-8 -*-
"""
Markdown feature passes.

Every pass takes already-escaped text plus the per-call ``RenderContext``
and returns new text. They run in the order of ``FEATURE_PASSES``. Leaf
markup that carries URLs or attributes is stashed in the placeholder store
as it is produced, so later passes only see the token. Block containers are
emitted as a single line so that the paragraph pass leaves them alone.
"""

import html
import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from gemmie_markdown.latex import latex_to_unicode
from gemmie_markdown.models import RendererSettings
from gemmie_markdown.protector import PlaceholderKind, PlaceholderStore, escape_html


@dataclass
class RenderContext:
    store: PlaceholderStore
    settings: RendererSettings

    def stash(self, markup: str, block: bool = False) -> str:
        return self.store.stash(markup, PlaceholderKind.HTML_TAG, block=block)


# ---------------------------------------------------------------------------
# Styles and lookup tables
# ---------------------------------------------------------------------------

PARAGRAPH_STYLE = 'margin:0 0 8px 0; line-height:1.5;'
_LINK_STYLE = 'color:#2980b9; text-decoration:underline;'
_IMAGE_STYLE = 'max-width:100%; height:auto; border-radius:6px;'
_FIGURE_STYLE = 'margin:8px 0; text-align:center;'
_FIGCAPTION_STYLE = 'font-size:11px; color:#666; margin-top:4px;'
_EMBED_STYLE = 'margin:8px 0;'
_IFRAME_STYLE = 'width:100%; max-width:640px; height:360px; border:none; border-radius:6px;'
_TABLE_STYLE = 'border-collapse:collapse; border:1px solid #ccc; margin:8px 0; width:auto;'
_TABLE_CELL_STYLE = 'border:1px solid #ccc; padding:6px 10px;'
_TABLE_HEADER_STYLE = 'border:1px solid #ccc; padding:6px 10px; font-weight:bold; background-color:#f0f0f0;'
_BLOCKQUOTE_STYLE = 'border-left:3px solid #ccc; padding-left:12px; color:#555; margin:6px 0; font-style:italic;'
_TASK_LIST_STYLE = 'list-style:none; margin:4px 0; padding-left:4px;'
_TASK_ITEM_STYLE = 'margin:2px 0;'
_DL_STYLE = 'margin:6px 0;'
_DT_STYLE = 'font-weight:bold;'
_DD_STYLE = 'margin:0 0 4px 20px;'
_HR_STYLE = 'border:none; border-top:1px solid #ccc; margin:10px 0;'
_MARK_STYLE = 'background:#fef08a; padding:0 2px;'
_KBD_STYLE = (
    'background:#f7f7f7; border:1px solid #ccc; border-radius:3px; '
    'padding:1px 5px; font-family:Consolas,monospace; font-size:11px;'
)
_MATH_INLINE_STYLE = 'font-family:\'Cambria Math\',\'Times New Roman\',serif; color:#1a5276;'
_MATH_BLOCK_STYLE = (
    'background:#f8f9fa; border:1px solid #dee2e6; border-radius:6px; '
    'padding:10px 14px; margin:8px 0; text-align:center; '
    'font-family:\'Cambria Math\',\'Times New Roman\',serif; font-size:14px; color:#1a5276;'
)
_LIST_STYLE = 'margin:4px 0 4px 20px; padding:0;'
_LIST_ITEM_STYLE = 'margin:2px 0;'
_FOOTNOTES_STYLE = 'border-top:1px solid #ddd; margin-top:12px; padding-top:6px; font-size:11px; color:#555;'
_HEADER_SIZES = {1: 20, 2: 17, 3: 15, 4: 14, 5: 13, 6: 12}

# type -> (icon, title, accent colour, background)
CALLOUT_TYPES: Dict[str, Tuple[str, str, str, str]] = {
    'NOTE': ('ℹ️', 'Note', '#2563eb', '#eff6ff'),
    'TIP': ('💡', 'Tip', '#16a34a', '#f0fdf4'),
    'IMPORTANT': ('❗', 'Important', '#9333ea', '#faf5ff'),
    'WARNING': ('⚠️', 'Warning', '#d97706', '#fffbeb'),
    'CAUTION': ('🛑', 'Caution', '#dc2626', '#fef2f2'),
}

EMOJI: Dict[str, str] = {
    'smile': '😄', 'grin': '😁', 'joy': '😂', 'laughing': '😆', 'wink': '😉',
    'blush': '😊', 'heart_eyes': '😍', 'thinking': '🤔', 'neutral_face': '😐',
    'cry': '😢', 'sob': '😭', 'angry': '😠', 'scream': '😱', 'sunglasses': '😎',
    'thumbsup': '👍', '+1': '👍', 'thumbsdown': '👎', '-1': '👎', 'clap': '👏',
    'wave': '👋', 'pray': '🙏', 'muscle': '💪', 'ok_hand': '👌', 'eyes': '👀',
    'heart': '❤️', 'broken_heart': '💔', 'fire': '🔥', 'star': '⭐',
    'sparkles': '✨', 'tada': '🎉', 'rocket': '🚀', 'bulb': '💡', 'warning': '⚠️',
    'check': '✔️', 'white_check_mark': '✅', 'x': '❌', 'question': '❓',
    'exclamation': '❗', 'zap': '⚡', 'bug': '🐛', 'memo': '📝', 'book': '📖',
    'calendar': '📅', 'link': '🔗', 'lock': '🔒', 'key': '🔑', 'gear': '⚙️',
    'hourglass': '⏳', 'coffee': '☕', '100': '💯',
}

# class -> (extra style, wraps in a block container)
IMAGE_CLASSES: Dict[str, Tuple[str, bool]] = {
    'center': ('display:block; margin:8px auto;', True),
    'left': ('float:left; margin:0 12px 8px 0;', False),
    'right': ('float:right; margin:0 0 8px 12px;', False),
    'small': ('width:150px;', False),
    'medium': ('width:300px;', False),
    'large': ('width:600px;', False),
    'full': ('width:100%;', True),
    'circle': ('width:150px; height:150px; object-fit:cover; border-radius:50%;', False),
    'rounded': ('border-radius:12px;', False),
    'border': ('border:2px solid #ccc; padding:2px;', False),
    'shadow': ('box-shadow:0 4px 12px rgba(0,0,0,0.25);', False),
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_TAG_SPLIT_RE = re.compile(r'(<[^<>]*>)')
# Inline formatting never spans table cells, list items or line breaks
_BOUNDARY_SPLIT_RE = re.compile(
    r'(</?(?:td|th|tr|thead|tbody|table|li|ul|ol|dt|dd|dl|div|section|blockquote|h[1-6])\b[^<>]*>|<br>)'
)
_SCHEME_RE = re.compile(r'^[A-Za-z][A-Za-z0-9+.-]*:')
_SAFE_SCHEMES = ('http:', 'https:', 'mailto:', 'tel:')


def _sub_outside_tags(pattern: "re.Pattern", repl, text: str) -> str:
    parts = _TAG_SPLIT_RE.split(text)
    for i in range(0, len(parts), 2):
        parts[i] = pattern.sub(repl, parts[i])
    return ''.join(parts)


def _sub_inline(pattern: "re.Pattern", repl, text: str) -> str:
    parts = _BOUNDARY_SPLIT_RE.split(text)
    for i in range(0, len(parts), 2):
        parts[i] = pattern.sub(repl, parts[i])
    return ''.join(parts)


def safe_url(url: str) -> str:
    """Allow relative URLs and http(s)/mailto/tel, map anything else to '#'."""
    url = url.strip()
    # Browsers decode entities and drop control characters before reading the scheme
    bare = re.sub(r'[\x00-\x20]', '', html.unescape(url)).lower()
    if _SCHEME_RE.match(bare) and not bare.startswith(_SAFE_SCHEMES):
        return '#'
    return url


def _title_attr(title: Optional[str]) -> str:
    return f' title="{title}"' if title else ''


# ---------------------------------------------------------------------------
# Footnotes and abbreviations
# ---------------------------------------------------------------------------

_FOOTNOTE_DEF_RE = re.compile(r'^\[\^([\w-]+)\]:[ \t]*(.+)$', re.MULTILINE)
_FOOTNOTE_REF_RE = re.compile(r'\[\^([\w-]+)\](?!:)')


def format_footnotes(text: str, ctx: RenderContext) -> str:
    """[^label] references and [^label]: definitions."""
    definitions: Dict[str, str] = {}

    def _collect(m):
        definitions.setdefault(m.group(1), m.group(2).strip())
        return ''

    text = _FOOTNOTE_DEF_RE.sub(_collect, text)
    if not definitions:
        return text

    numbers = {label: n for n, label in enumerate(definitions, start=1)}

    def _reference(m):
        label = m.group(1)
        if label not in numbers:
            return m.group(0)
        return ctx.stash(
            f'<sup id="fnref-{label}"><a href="#fn-{label}" style="{_LINK_STYLE}">{numbers[label]}</a></sup>'
        )

    text = _FOOTNOTE_REF_RE.sub(_reference, text)

    items = ''.join(
        f'<li id="fn-{label}">{body} '
        f'<a href="#fnref-{label}" style="{_LINK_STYLE}">↩</a></li>'
        for label, body in definitions.items()
    )
    section = f'<section style="{_FOOTNOTES_STYLE}"><ol style="{_LIST_STYLE}">{items}</ol></section>'
    return f'{text.rstrip()}\n\n{section}'


_ABBR_DEF_RE = re.compile(r'^\*\[([^\]\n]+)\]:[ \t]*(.+)$', re.MULTILINE)
# Tags, whole images (alt and src end up in attributes) and link destinations
_ABBR_GUARD_SPLIT_RE = re.compile(r'(<[^<>]*>|!\[[^\]\n]*\]\([^)\n]*\)|\]\([^)\n]*\))')


def format_abbreviations(text: str, ctx: RenderContext) -> str:
    """*[TERM]: expansion definitions, applied to every whole-word TERM."""
    abbreviations: Dict[str, str] = {}

    def _collect(m):
        abbreviations[m.group(1).strip()] = m.group(2).strip()
        return ''

    text = _ABBR_DEF_RE.sub(_collect, text)
    if not abbreviations:
        return text

    terms = sorted(abbreviations, key=len, reverse=True)
    pattern = re.compile(r'(?<!\w)(' + '|'.join(re.escape(t) for t in terms) + r')(?!\w)')

    def _replacer(m):
        term = m.group(1)
        return ctx.stash(
            f'<abbr title="{abbreviations[term]}" style="text-decoration:underline dotted;">{term}</abbr>'
        )

    parts = _ABBR_GUARD_SPLIT_RE.split(text)
    for i in range(0, len(parts), 2):
        parts[i] = pattern.sub(_replacer, parts[i])
    return ''.join(parts)


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------

_ALT = r'!\[([^\]\n]*)\]'
_SRC = r'([^\s)]+)'
_TITLE = r'(?:\s+&quot;(.*?)&quot;)?'

ImageRule = Tuple[str, "re.Pattern", Callable[["re.Match", RenderContext], Tuple[str, bool]]]


def _img(src: str, alt: str, title: Optional[str] = None, style: str = '', extra: str = '') -> str:
    css = f'{_IMAGE_STYLE} {style}'.strip()
    return f'<img src="{safe_url(src)}" alt="{alt}"{_title_attr(title)}{extra} style="{css}">'


def _linked_image(m, ctx: RenderContext) -> Tuple[str, bool]:
    alt, src, title, href = m.groups()
    return (
        f'<a href="{safe_url(href)}" target="_blank" rel="noopener noreferrer">'
        f'{_img(src, alt, title)}</a>'
    ), False


def _sized_image(m, ctx: RenderContext) -> Tuple[str, bool]:
    alt, src, width, height = m.groups()
    return _img(src, alt, extra=f' width="{width}" height="{height}"'), False


def _width_image(m, ctx: RenderContext) -> Tuple[str, bool]:
    alt, src, width = m.groups()
    return _img(src, alt, extra=f' width="{width}"'), False


def _class_image(name: str):
    style, block = IMAGE_CLASSES[name]

    def _handler(m, ctx: RenderContext) -> Tuple[str, bool]:
        alt, src, title = m.groups()
        tag = _img(src, alt, title, style)
        if block:
            return f'<div style="{_FIGURE_STYLE}">{tag}</div>', True
        return tag, False

    return _handler


def _generic_image(m, ctx: RenderContext) -> Tuple[str, bool]:
    alt, src, title = m.groups()
    if not title:
        return _img(src, alt), False
    caption = format_inline_fragment(title, ctx)
    return (
        f'<figure style="{_FIGURE_STYLE}">{_img(src, alt, title)}'
        f'<figcaption style="{_FIGCAPTION_STYLE}">{caption}</figcaption></figure>'
    ), True


IMAGE_RULES: List[ImageRule] = [
    ('linked', re.compile(r'\[' + _ALT + r'\(' + _SRC + _TITLE + r'\)\]\(' + _SRC + r'\)'), _linked_image),
    ('sized', re.compile(_ALT + r'\(' + _SRC + r'\s+=(\d+)x(\d+)\)'), _sized_image),
    ('width', re.compile(_ALT + r'\(' + _SRC + r'\s+=(\d+)x?\)'), _width_image),
] + [
    (name, re.compile(_ALT + r'\(' + _SRC + _TITLE + r'\)\{\.' + name + r'\}'), _class_image(name))
    for name in IMAGE_CLASSES
] + [
    # Must stay last: it would also match the decorated variants above
    ('generic', re.compile(_ALT + r'\(' + _SRC + _TITLE + r'\)'), _generic_image),
]


def format_images(text: str, ctx: RenderContext) -> str:
    for _name, pattern, handler in IMAGE_RULES:
        def _replacer(m, handler=handler):
            markup, block = handler(m, ctx)
            return ctx.stash(markup, block=block)

        text = pattern.sub(_replacer, text)
    return text


# ---------------------------------------------------------------------------
# Links and embeds
# ---------------------------------------------------------------------------

_LINK_RE = re.compile(r'\[(?![!^])([^\[\]\n]+)\]\(([^\s)]+)' + _TITLE + r'\)')
_ANY_TOKEN_RE = re.compile(r'___[A-Z_]+_\d+___')


def _truncate(label: str, limit: int) -> str:
    if _ANY_TOKEN_RE.search(label):
        return label
    raw = html.unescape(label)
    if len(raw) <= limit:
        return label
    return escape_html(raw[:limit]) + '…'


def format_links(text: str, ctx: RenderContext) -> str:
    """
    [text](url "title"), long link text is truncated.

    The label gets the inline formatting here, since the finished link is
    stashed and later passes never see it.
    """
    limit = ctx.settings.link_text_limit

    def _replacer(m):
        label, url, title = m.groups()
        label = format_inline_fragment(_truncate(label, limit), ctx)
        return ctx.stash(
            f'<a href="{safe_url(url)}"{_title_attr(title)} target="_blank" '
            f'rel="noopener noreferrer" style="{_LINK_STYLE}">{label}</a>'
        )

    return _LINK_RE.sub(_replacer, text)


_EMBED_RE = re.compile(r'\[!(youtube|vimeo|iframe|twitter|codepen)\]\(([^\s)]+)\)', re.IGNORECASE)
_YOUTUBE_RE = re.compile(r'(?:youtube\.com/(?:watch\?v=|embed/|shorts/)|youtu\.be/)([\w-]{11})')
_YOUTUBE_ID_RE = re.compile(r'^[\w-]{11}$')
_VIMEO_RE = re.compile(r'^(?:https?://(?:www\.|player\.)?vimeo\.com/(?:video/)?)?(\d+)/?$')
_TWEET_RE = re.compile(r'(?:twitter|x)\.com/\w+/status(?:es)?/(\d+)')
_CODEPEN_RE = re.compile(r'codepen\.io/([\w-]+)/(?:pen|embed)/(\w+)')


def _iframe(src: str, title: str, sandbox: bool = False) -> str:
    sandbox_attr = ' sandbox="allow-scripts allow-same-origin allow-popups"' if sandbox else ''
    return (
        f'<div style="{_EMBED_STYLE}"><iframe src="{src}" title="{title}" '
        f'style="{_IFRAME_STYLE}"{sandbox_attr} allowfullscreen loading="lazy"></iframe></div>'
    )


def _embed_markup(kind: str, target: str) -> Optional[str]:
    if kind == 'youtube':
        m = _YOUTUBE_RE.search(target)
        video_id = m.group(1) if m else (target if _YOUTUBE_ID_RE.match(target) else None)
        if video_id:
            return _iframe(f'https://www.youtube.com/embed/{video_id}', 'YouTube video')
    elif kind == 'vimeo':
        m = _VIMEO_RE.match(target)
        if m:
            return _iframe(f'https://player.vimeo.com/video/{m.group(1)}', 'Vimeo video')
    elif kind == 'iframe':
        if target.lower().startswith(('http://', 'https://')):
            return _iframe(target, 'Embedded content', sandbox=True)
    elif kind == 'twitter':
        m = _TWEET_RE.search(target)
        if m:
            return (
                f'<blockquote class="twitter-tweet" style="{_BLOCKQUOTE_STYLE}">'
                f'<a href="https://twitter.com/i/status/{m.group(1)}" target="_blank" '
                f'rel="noopener noreferrer" style="{_LINK_STYLE}">View post</a></blockquote>'
            )
    elif kind == 'codepen':
        m = _CODEPEN_RE.search(target)
        if m:
            return _iframe(
                f'https://codepen.io/{m.group(1)}/embed/{m.group(2)}?default-tab=result',
                'CodePen', sandbox=True,
            )
    return None


def format_embeds(text: str, ctx: RenderContext) -> str:
    """[!youtube](...), [!vimeo](...), [!iframe](...), [!twitter](...), [!codepen](...)."""
    def _replacer(m):
        markup = _embed_markup(m.group(1).lower(), m.group(2))
        if markup is None:
            return m.group(0)
        return ctx.stash(markup, block=True)

    return _EMBED_RE.sub(_replacer, text)


# ---------------------------------------------------------------------------
# Block-level elements
# ---------------------------------------------------------------------------

_CALLOUT_RE = re.compile(r'^\s*&gt;\s*\[!(NOTE|TIP|IMPORTANT|WARNING|CAUTION)\][ \t]*(.*)$', re.IGNORECASE)
_QUOTE_LINE_RE = re.compile(r'^\s*&gt;[ \t]?(.*)$')


def format_callouts(text: str, ctx: RenderContext) -> str:
    """> [!NOTE] style admonitions."""
    lines = text.split('\n')
    result: List[str] = []
    i = 0

    while i < len(lines):
        m = _CALLOUT_RE.match(lines[i])
        if not m:
            result.append(lines[i])
            i += 1
            continue

        icon, default_title, accent, background = CALLOUT_TYPES[m.group(1).upper()]
        title = m.group(2).strip() or default_title
        body: List[str] = []
        i += 1
        while i < len(lines):
            quote = _QUOTE_LINE_RE.match(lines[i])
            if not quote:
                break
            body.append(quote.group(1))
            i += 1

        result.append(
            f'<div style="border-left:4px solid {accent}; background:{background}; '
            f'padding:8px 12px; margin:8px 0; border-radius:4px;">'
            f'<div style="font-weight:bold; color:{accent}; margin-bottom:4px;">{icon} {title}</div>'
            f'<div>{"<br>".join(body)}</div></div>'
        )

    return '\n'.join(result)


_TABLE_SEPARATOR_RE = re.compile(
    r'^\s*(?:\|\s*:?-+:?\s*)+\|\s*$|^\s*:?-+:?\s*(?:\|\s*:?-+:?\s*)+\|?\s*$'
)


def _split_row(line: str) -> List[str]:
    row = line.strip()
    if row.startswith('|'):
        row = row[1:]
    if row.endswith('|'):
        row = row[:-1]
    return [cell.strip() for cell in row.split('|')]


def _alignment(cell: str) -> str:
    cell = cell.strip()
    if cell.startswith(':') and cell.endswith(':'):
        return 'center'
    if cell.endswith(':'):
        return 'right'
    return 'left'


def format_tables(text: str, ctx: RenderContext) -> str:
    """Convert markdown pipe tables to HTML tables."""
    lines = text.split('\n')
    result: List[str] = []
    i = 0

    while i < len(lines):
        # Detect table start: line with pipes, followed by separator line
        if not ('|' in lines[i]
                and i + 1 < len(lines)
                and _TABLE_SEPARATOR_RE.match(lines[i + 1])):
            result.append(lines[i])
            i += 1
            continue

        header = _split_row(lines[i])
        alignments = [_alignment(c) for c in _split_row(lines[i + 1])]
        columns = len(header)
        j = i + 2
        rows: List[List[str]] = []
        # Body rows, like the header, may omit the outer pipes
        while j < len(lines) and '|' in lines[j]:
            cells = _split_row(lines[j])[:columns]
            rows.append(cells + [''] * (columns - len(cells)))
            j += 1

        def _align(ci: int) -> str:
            return alignments[ci] if ci < len(alignments) else 'left'

        head = ''.join(
            f'<th style="{_TABLE_HEADER_STYLE} text-align:{_align(ci)};">{cell}</th>'
            for ci, cell in enumerate(header)
        )
        body = ''.join(
            '<tr>' + ''.join(
                f'<td style="{_TABLE_CELL_STYLE} text-align:{_align(ci)};">{cell}</td>'
                for ci, cell in enumerate(row)
            ) + '</tr>'
            for row in rows
        )
        result.append(
            f'<table style="{_TABLE_STYLE}"><thead><tr>{head}</tr></thead>'
            f'<tbody>{body}</tbody></table>'
        )
        i = j

    return '\n'.join(result)


def format_blockquotes(text: str, ctx: RenderContext) -> str:
    """Convert &gt; blockquotes (escaping already ran) to styled HTML."""
    lines = text.split('\n')
    result: List[str] = []
    quote_lines: List[str] = []

    def _flush():
        if not quote_lines:
            return
        # Nested quotes keep their own prefix at this point
        inner = format_blockquotes('\n'.join(quote_lines), ctx).replace('\n', '<br>')
        result.append(f'<blockquote style="{_BLOCKQUOTE_STYLE}">{inner}</blockquote>')
        quote_lines.clear()

    for line in lines:
        m = _QUOTE_LINE_RE.match(line)
        if m:
            quote_lines.append(m.group(1))
        else:
            _flush()
            result.append(line)
    _flush()

    return '\n'.join(result)


_TASK_RE = re.compile(r'^\s*[-*+]\s+\[([ xX])\]\s+(.+)$')


def format_task_lists(text: str, ctx: RenderContext) -> str:
    """- [ ] / - [x] items, grouped into one list per run."""
    lines = text.split('\n')
    result: List[str] = []
    i = 0

    while i < len(lines):
        if not _TASK_RE.match(lines[i]):
            result.append(lines[i])
            i += 1
            continue

        items = []
        while i < len(lines):
            m = _TASK_RE.match(lines[i])
            if not m:
                break
            checked = ' checked' if m.group(1).lower() == 'x' else ''
            items.append(
                f'<li style="{_TASK_ITEM_STYLE}"><input type="checkbox" disabled{checked}> {m.group(2)}</li>'
            )
            i += 1
        result.append(f'<ul style="{_TASK_LIST_STYLE}">{"".join(items)}</ul>')

    return '\n'.join(result)


_DEFINITION_RE = re.compile(r'^:[ \t]+(.+)$')


def format_definition_lists(text: str, ctx: RenderContext) -> str:
    """term\\n: definition pairs."""
    lines = text.split('\n')
    result: List[str] = []
    i = 0

    def _is_term(idx: int) -> bool:
        term = lines[idx].strip()
        return (bool(term)
                and not term.startswith('<')
                and not _DEFINITION_RE.match(term)
                and idx + 1 < len(lines)
                and bool(_DEFINITION_RE.match(lines[idx + 1])))

    while i < len(lines):
        if not _is_term(i):
            result.append(lines[i])
            i += 1
            continue

        parts: List[str] = []
        while i < len(lines) and _is_term(i):
            parts.append(f'<dt style="{_DT_STYLE}">{lines[i].strip()}</dt>')
            i += 1
            while i < len(lines):
                m = _DEFINITION_RE.match(lines[i])
                if not m:
                    break
                parts.append(f'<dd style="{_DD_STYLE}">{m.group(1).strip()}</dd>')
                i += 1
        result.append(f'<dl style="{_DL_STYLE}">{"".join(parts)}</dl>')

    return '\n'.join(result)


# Longest prefix first so that ###### lines are never taken as H1
_HEADER_RULES = [
    (level, re.compile(r'^' + '#' * level + r'[ \t]+(.+?)(?:[ \t]+#+)?[ \t]*$', re.MULTILINE))
    for level in range(6, 0, -1)
]


def format_headers(text: str, ctx: RenderContext) -> str:
    """Convert # headers to styled HTML."""
    for level, pattern in _HEADER_RULES:
        size = _HEADER_SIZES[level]
        text = pattern.sub(
            lambda m, level=level, size=size: (
                f'<h{level} style="font-size:{size}px; font-weight:bold; '
                f'margin:10px 0 6px 0; color:#222;">{m.group(1).strip()}</h{level}>'
            ),
            text,
        )
    return text


_HR_RE = re.compile(r'^[ \t]*([-*_])(?:[ \t]*\1){2,}[ \t]*$', re.MULTILINE)


def format_horizontal_rules(text: str, ctx: RenderContext) -> str:
    """---, *** or ___ alone on a line."""
    return _HR_RE.sub(f'<hr style="{_HR_STYLE}">', text)


# ---------------------------------------------------------------------------
# Inline elements
# ---------------------------------------------------------------------------

_STRIKE_RE = re.compile(r'~~(?=\S)(.+?)(?<=\S)~~')
_MARK_RE = re.compile(r'==(?=\S)(.+?)(?<=\S)==')
_SUB_RE = re.compile(r'(?<!~)~([^~\s<>]+)~(?!~)')
_SUP_RE = re.compile(r'\^([^\^\s<>]+)\^')
_KBD_RE = re.compile(r'\[\[([^\[\]\n]+)\]\]')
_EMOJI_RE = re.compile(r':([a-z0-9_+\-]+):')
_MATH_BLOCK_RE = re.compile(r'\$\$(.+?)\$\$', re.DOTALL)
_MATH_INLINE_RE = re.compile(r'(?<![\$\\])\$(?=[^\s$])([^$\n]+?)(?<=\S)\$(?![\$\d])')
_BOLD_ITALIC_RE = re.compile(r'\*\*\*(?=\S)(.+?)(?<=\S)\*\*\*')
_BOLD_RE = re.compile(r'\*\*(?=\S)(.+?)(?<=\S)\*\*')
_ITALIC_RE = re.compile(r'(?<![*\w])\*(?=[^\s*])(.+?)(?<=[^\s*])\*(?![*\w])')


def format_strikethrough(text: str, ctx: RenderContext) -> str:
    return _sub_inline(_STRIKE_RE, r'<del>\1</del>', text)


def format_highlight(text: str, ctx: RenderContext) -> str:
    return _sub_inline(_MARK_RE, rf'<mark style="{_MARK_STYLE}">\1</mark>', text)


def format_sub_superscript(text: str, ctx: RenderContext) -> str:
    text = _sub_inline(_SUB_RE, r'<sub>\1</sub>', text)
    return _sub_inline(_SUP_RE, r'<sup>\1</sup>', text)


def format_keyboard(text: str, ctx: RenderContext) -> str:
    """[[Ctrl]] → <kbd>."""
    return _KBD_RE.sub(
        lambda m: ctx.stash(f'<kbd style="{_KBD_STYLE}">{m.group(1).strip()}</kbd>'),
        text,
    )


def format_emoji(text: str, ctx: RenderContext) -> str:
    """:shortcode: from a fixed table, unknown codes stay as typed."""
    return _sub_outside_tags(_EMOJI_RE, lambda m: EMOJI.get(m.group(1), m.group(0)), text)


def format_math(text: str, ctx: RenderContext) -> str:
    """$$block$$ first, then $inline$. Shown as text, never evaluated."""
    text = _MATH_BLOCK_RE.sub(
        lambda m: ctx.stash(
            f'<div style="{_MATH_BLOCK_STYLE}">{latex_to_unicode(m.group(1))}</div>', block=True
        ),
        text,
    )
    return _MATH_INLINE_RE.sub(
        lambda m: ctx.stash(f'<span style="{_MATH_INLINE_STYLE}">{latex_to_unicode(m.group(1))}</span>'),
        text,
    )


def format_emphasis(text: str, ctx: RenderContext) -> str:
    """***bold italic***, **bold**, *italic*, longest delimiter first."""
    text = _sub_inline(_BOLD_ITALIC_RE, r'<strong><em>\1</em></strong>', text)
    text = _sub_inline(_BOLD_RE, r'<strong>\1</strong>', text)
    return _sub_inline(_ITALIC_RE, r'<em>\1</em>', text)


_INLINE_PASSES: Tuple[Callable[[str, RenderContext], str], ...] = (
    format_strikethrough,
    format_highlight,
    format_sub_superscript,
    format_keyboard,
    format_emoji,
    format_math,
    format_emphasis,
)


def format_inline_fragment(text: str, ctx: RenderContext) -> str:
    """Inline passes, in pipeline order, over a link label or caption."""
    for inline_pass in _INLINE_PASSES:
        text = inline_pass(text, ctx)
    return text


_UL_ITEM_RE = re.compile(r'^(\s*)[-*+]\s+(.+)$')
_OL_ITEM_RE = re.compile(r'^(\s*)(\d+)[.)]\s+(.+)$')


def format_lists(text: str, ctx: RenderContext) -> str:
    """Group runs of list item lines into <ul>/<ol>."""
    lines = text.split('\n')
    result: List[str] = []
    i = 0

    while i < len(lines):
        line = lines[i]

        if _UL_ITEM_RE.match(line):
            items = []
            while i < len(lines):
                m = _UL_ITEM_RE.match(lines[i])
                if not m:
                    break
                items.append(f'<li style="{_LIST_ITEM_STYLE}">{m.group(2)}</li>')
                i += 1
            result.append(f'<ul style="{_LIST_STYLE}">{"".join(items)}</ul>')
            continue

        first = _OL_ITEM_RE.match(line)
        if first:
            start = int(first.group(2))
            items = []
            while i < len(lines):
                m = _OL_ITEM_RE.match(lines[i])
                if not m:
                    break
                items.append(f'<li style="{_LIST_ITEM_STYLE}">{m.group(3)}</li>')
                i += 1
            start_attr = f' start="{start}"' if start != 1 else ''
            result.append(f'<ol style="{_LIST_STYLE}"{start_attr}>{"".join(items)}</ol>')
            continue

        result.append(line)
        i += 1

    return '\n'.join(result)


_BLOCK_START_RE = re.compile(
    r'^<(?:h[1-6]|ul|ol|li|dl|dt|dd|pre|div|blockquote|hr|table|section|figure|iframe|p)\b',
    re.IGNORECASE,
)


def format_paragraphs(text: str, ctx: RenderContext) -> str:
    """Wrap every remaining plain line in <p>, drop blank lines."""
    result: List[str] = []
    for line in text.split('\n'):
        stripped = line.strip()
        if not stripped:
            continue
        if _BLOCK_START_RE.match(stripped) or ctx.store.is_block_line(stripped):
            result.append(stripped)
        else:
            result.append(f'<p style="{PARAGRAPH_STYLE}">{stripped}</p>')
    return '\n'.join(result)


FeaturePass = Callable[[str, RenderContext], str]

FEATURE_PASSES: Tuple[Tuple[str, FeaturePass], ...] = (
    ('footnotes', format_footnotes),
    ('abbreviations', format_abbreviations),
    ('images', format_images),
    ('links', format_links),
    ('embeds', format_embeds),
    ('callouts', format_callouts),
    ('tables', format_tables),
    ('blockquotes', format_blockquotes),
    ('task_lists', format_task_lists),
    ('definition_lists', format_definition_lists),
    ('headers', format_headers),
    ('horizontal_rules', format_horizontal_rules),
    ('strikethrough', format_strikethrough),
    ('highlight', format_highlight),
    ('sub_superscript', format_sub_superscript),
    ('keyboard', format_keyboard),
    ('emoji', format_emoji),
    ('math', format_math),
    ('emphasis', format_emphasis),
    ('lists', format_lists),
    ('paragraphs', format_paragraphs),
)
