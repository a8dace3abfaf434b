from __future__ import annotations

from typing import Any

from reportlab.pdfbase import pdfmetrics

from ticketprint.adapters.assets import FontHandle


ELLIPSIS = '…'


def text_width(text: str, font: FontHandle, size: float) -> float:
    if not text:
        return 0.0
    return float(pdfmetrics.stringWidth(text, font.name, float(size)))


def _normalize_newlines(value: str) -> str:
    return value.replace('\r\n', '\n').replace('\r', '\n')


def wrap_text(text: Any, font: FontHandle, size: float, max_width: float) -> list[str]:
    """Wrap ``text`` into lines no wider than ``max_width``.

    Wrapping is per character, not per word, so it behaves the same for
    Japanese and Latin text. Explicit line breaks are kept: each paragraph
    starts a new line and an empty paragraph yields an empty line. The result
    always has at least one line.
    """
    if not isinstance(text, str) or not text:
        return ['']

    lines: list[str] = []
    for paragraph in _normalize_newlines(text).split('\n'):
        if paragraph == '':
            lines.append('')
            continue

        current = ''
        for char in paragraph:
            candidate = current + char
            if text_width(candidate, font, size) <= max_width:
                current = candidate
                continue
            if current:
                lines.append(current)
            current = char
        if current:
            lines.append(current)

    return lines or ['']


def clip_to_width(text: Any, font: FontHandle, size: float, max_width: float) -> str:
    """Fit ``text`` on one line, ending it with an ellipsis when it is cut.

    Callers must leave room for the ellipsis glyph itself.
    """
    value = '' if text is None else str(text)
    if not value:
        return ''
    if text_width(value, font, size) <= max_width:
        return value

    # Longer prefixes are never narrower, so the widest fitting prefix can be
    # found by bisection.
    lo = 0
    hi = len(value)
    while lo < hi:
        mid = (lo + hi + 1) // 2
        if text_width(value[:mid] + ELLIPSIS, font, size) <= max_width:
            lo = mid
        else:
            hi = mid - 1
    return value[:lo] + ELLIPSIS
