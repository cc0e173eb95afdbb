# -*- coding: utf-8 -*-
"""
Markdown → HTML renderer for chat messages and editable documents.

The output uses inline styles only, so it can be shown in a browser view as
well as in Qt's QTextBrowser.

Stages of one render call:
    protect literal HTML → extract code → shield → escape → unshield →
    feature passes (fixed order) → restore placeholders
"""

import logging
from typing import Optional

from gemmie_markdown.code_blocks import code_ranges, extract_code_blocks, extract_inline_code
from gemmie_markdown.feature_passes import FEATURE_PASSES, PARAGRAPH_STYLE, RenderContext
from gemmie_markdown.models import RendererSettings
from gemmie_markdown.protector import (
    PlaceholderStore,
    escape_html,
    finalize,
    neutralize_literal_tokens,
    protect_html_tags,
)

logger = logging.getLogger(__name__)


def render_plain(text: str) -> str:
    """Escaped text in a single paragraph, line breaks kept."""
    body = escape_html(text).replace('\n', '<br>')
    return f'<p style="{PARAGRAPH_STYLE}">{body}</p>'


def _run_pipeline(text: str, settings: RendererSettings) -> str:
    store = PlaceholderStore()
    context = RenderContext(store, settings)

    # 1. Literal HTML, before anything gets escaped
    text = protect_html_tags(text, store, skip=code_ranges(text))

    # 2. Code (``` / ~~~ fences, then `inline`)
    text = extract_code_blocks(text, store, settings)
    text = extract_inline_code(text, store)

    # 3. Escape everything except the placeholders
    text = store.shield(text)
    text = escape_html(text)
    text = store.unshield(text)

    # 4. Markdown features
    for _name, feature_pass in FEATURE_PASSES:
        text = feature_pass(text, context)

    # 5. Put the stashed markup back
    return store.restore(text)


def render_markdown(text: str, settings: Optional[RendererSettings] = None) -> str:
    """
    Convert markdown text to HTML.

    Never raises on malformed input: oversized or unexpected input is shown
    as escaped plain text instead.
    """
    if not text:
        return ''

    if settings is None:
        settings = RendererSettings()

    text = neutralize_literal_tokens(text.replace('\r\n', '\n'))

    if len(text) > settings.max_input_chars:
        logger.warning(
            f"Message of {len(text)} chars exceeds {settings.max_input_chars}, rendering as plain text"
        )
        return finalize(render_plain(text))

    try:
        html = _run_pipeline(text, settings)
    except Exception as e:
        logger.error(f"Markdown rendering failed, falling back to plain text: {e}")
        html = render_plain(text)

    return finalize(html)
