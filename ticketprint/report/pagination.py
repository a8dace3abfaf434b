from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Iterator, Sequence

from reportlab.lib.colors import Color

from ticketprint.adapters.assets import FontHandle, ImageHandle
from ticketprint.report.columns import BASE_COLUMNS, ColumnSpec, fit_columns, table_width
from ticketprint.report.pages import (
    BODY_INK,
    HEADER_LABEL_INK,
    INK,
    RULE,
    SOFT_RULE,
    SUBTLE_INK,
    TABLE_HEADER_BORDER,
    TABLE_HEADER_FILL,
    PageCanvas,
    PageRecord,
    draw_card,
    draw_header_bar,
    draw_label_value_block,
    draw_pill,
    draw_section_title,
    fit_image_size,
    footer_ops,
)
from ticketprint.report.text_layout import clip_to_width, wrap_text
from ticketprint.report.theme import BadgeTheme, priority_theme, status_theme
from ticketprint.types import Ticket


logger = logging.getLogger(__name__)

# ISO A4 in PDF user units.
PAGE_WIDTH = 595.28
PAGE_HEIGHT = 841.89

FOOTER_Y = 22

BADGE_NO_THEME = BadgeTheme(background=Color(0.93, 0.94, 0.96), foreground=Color(0.2, 0.22, 0.26))


@dataclass(frozen=True)
class ListGeometry:
    page_width: float = PAGE_WIDTH
    page_height: float = PAGE_HEIGHT
    margin_left: float = 48
    margin_right: float = 48
    margin_top: float = 48
    margin_bottom: float = 52
    header_height: float = 72
    table_header_height: float = 22
    body_gap: float = 12
    row_height: float = 18
    font_size: float = 10
    cell_padding: float = 4

    @property
    def usable_width(self) -> float:
        return self.page_width - self.margin_left - self.margin_right

    @property
    def first_row_y(self) -> float:
        return self.page_height - self.margin_top - self.header_height - self.body_gap


@dataclass(frozen=True)
class DetailGeometry:
    page_width: float = PAGE_WIDTH
    page_height: float = PAGE_HEIGHT
    margin_left: float = 52
    margin_right: float = 52
    margin_top: float = 46
    margin_bottom: float = 56
    header_bar_height: float = 98
    header_advance: float = 72
    meta_card_height: float = 170
    card_gap: float = 18
    body_min_height: float = 380
    body_font_size: float = 11
    body_line_height: float = 16

    @property
    def content_width(self) -> float:
        return self.page_width - self.margin_left - self.margin_right


LIST_GEOMETRY = ListGeometry()
DETAIL_GEOMETRY = DetailGeometry()


class BuildPhase(str, Enum):
    empty = 'empty'
    paginating = 'paginating'
    finalizing = 'finalizing'
    serialized = 'serialized'


_TRANSITIONS: dict[BuildPhase, frozenset[BuildPhase]] = {
    BuildPhase.empty: frozenset({BuildPhase.paginating}),
    BuildPhase.paginating: frozenset({BuildPhase.finalizing}),
    BuildPhase.finalizing: frozenset({BuildPhase.serialized}),
    BuildPhase.serialized: frozenset(),
}


class DocumentBuild:
    """Page sequence and lifecycle of a single document build.

    Phases only move forward: empty -> paginating -> finalizing -> serialized.
    Pages are appended while paginating; finalizing replaces the sequence with
    a mapped copy (footers stamped) and nothing is appended after that.
    """

    def __init__(self) -> None:
        self.phase = BuildPhase.empty
        self._pages: list[PageRecord] = []

    @property
    def pages(self) -> tuple[PageRecord, ...]:
        return tuple(self._pages)

    @property
    def page_count(self) -> int:
        return len(self._pages)

    def _advance(self, target: BuildPhase) -> None:
        if target not in _TRANSITIONS[self.phase]:
            raise RuntimeError(f'invalid build transition: {self.phase.value} -> {target.value}')
        self.phase = target

    def extend(self, pages: Iterable[PageRecord]) -> None:
        if self.phase is BuildPhase.empty:
            self._advance(BuildPhase.paginating)
        if self.phase is not BuildPhase.paginating:
            raise RuntimeError(f'cannot add pages while {self.phase.value}')
        for page in pages:
            self._pages.append(page)

    def finalize(self, stamp: Callable[[Sequence[PageRecord]], list[PageRecord]]) -> None:
        if self.phase is BuildPhase.empty:
            self._advance(BuildPhase.paginating)
        self._advance(BuildPhase.finalizing)
        stamped = stamp(tuple(self._pages))
        if len(stamped) != len(self._pages):
            raise RuntimeError('finalize step must keep the page count')
        self._pages = list(stamped)

    def mark_serialized(self) -> None:
        self._advance(BuildPhase.serialized)


def stamp_footers(
    pages: Sequence[PageRecord],
    *,
    font: FontHandle,
    left_text: str,
    margin_left: float,
    margin_right: float,
) -> list[PageRecord]:
    """Return copies of ``pages`` with "page X / N" footers.

    N is only known once every page exists, so this runs as a second pass.
    """
    total = len(pages)
    stamped: list[PageRecord] = []
    for index, page in enumerate(pages, start=1):
        ops = footer_ops(
            font,
            page_width=page.width,
            margin_left=margin_left,
            margin_right=margin_right,
            y=FOOTER_Y,
            left_text=left_text,
            right_text=f'page {index} / {total}',
        )
        stamped.append(page.with_ops(*ops))
    return stamped


# -------------------------------------------------------------------------
# list layout
# -------------------------------------------------------------------------


def list_rows_per_page(geometry: ListGeometry = LIST_GEOMETRY) -> int:
    usable = geometry.first_row_y - geometry.margin_bottom
    return max(0, math.floor(usable / geometry.row_height))


def list_columns(geometry: ListGeometry = LIST_GEOMETRY) -> list[ColumnSpec]:
    return fit_columns(BASE_COLUMNS, geometry.usable_width)


def _list_row_values(ticket: Ticket) -> dict[str, str]:
    return {
        'no': str(ticket.no),
        'subject': ticket.subject,
        'customerName': ticket.customer_name,
        'assignee': ticket.assignee or '',
        'status': ticket.status,
        'priority': ticket.priority,
        'createdAt': ticket.created_at,
    }


def _start_list_page(
    *,
    font: FontHandle,
    columns: Sequence[ColumnSpec],
    title: str,
    app_title: str,
    logo: ImageHandle | None,
    stamp: ImageHandle | None,
    geometry: ListGeometry,
) -> tuple[PageCanvas, float]:
    page = PageCanvas(geometry.page_width, geometry.page_height, font)
    table_w = table_width(columns)
    table_right_x = geometry.margin_left + table_w

    y = geometry.page_height - geometry.margin_top
    page.text(geometry.margin_left, y, title, size=16, color=INK)
    if app_title:
        page.text(geometry.margin_left, y - 20, app_title, size=9, color=SUBTLE_INK)

    if logo is not None:
        logo_w, logo_h = fit_image_size(logo, 120, 36)
        page.image(logo, table_right_x - logo_w, y - 6, logo_w, logo_h, opacity=0.95)

    if stamp is not None:
        size = 52
        page.image(stamp, table_right_x - size, y - 64, size, size, opacity=0.14)

    header_y = y - geometry.header_height
    page.rect(
        geometry.margin_left,
        header_y,
        table_w,
        geometry.table_header_height,
        fill=TABLE_HEADER_FILL,
        stroke=TABLE_HEADER_BORDER,
        stroke_width=1,
    )
    x = geometry.margin_left
    for col in columns:
        page.text(x + geometry.cell_padding, header_y + 6, col.label, size=9, color=HEADER_LABEL_INK)
        x += col.width

    return page, header_y - geometry.body_gap


def iter_list_pages(
    tickets: Iterable[Ticket],
    *,
    font: FontHandle,
    title: str,
    app_title: str = '',
    logo: ImageHandle | None = None,
    stamp: ImageHandle | None = None,
    geometry: ListGeometry = LIST_GEOMETRY,
) -> Iterator[PageRecord]:
    """Lay tickets out as table rows, yielding each page once it is full.

    Every cell is a single line clipped with an ellipsis. An empty ticket
    sequence still yields one page carrying the header.
    """
    columns = list_columns(geometry)
    table_w = table_width(columns)

    def new_page() -> tuple[PageCanvas, float]:
        return _start_list_page(
            font=font,
            columns=columns,
            title=title,
            app_title=app_title,
            logo=logo,
            stamp=stamp,
            geometry=geometry,
        )

    page, y = new_page()
    for ticket in tickets:
        if y - geometry.row_height < geometry.margin_bottom:
            yield page.freeze()
            page, y = new_page()

        page.line(
            geometry.margin_left,
            y - 4,
            geometry.margin_left + table_w,
            y - 4,
            thickness=0.7,
            color=RULE,
        )

        values = _list_row_values(ticket)
        x = geometry.margin_left
        for col in columns:
            clipped = clip_to_width(
                values.get(col.key, ''),
                font,
                geometry.font_size,
                col.width - geometry.cell_padding * 2,
            )
            page.text(x + geometry.cell_padding, y - 1, clipped, size=geometry.font_size, color=BODY_INK)
            x += col.width

        y -= geometry.row_height

    yield page.freeze()


# -------------------------------------------------------------------------
# detail layout
# -------------------------------------------------------------------------


def _draw_detail_badges(page: PageCanvas, ticket: Ticket, *, right_x: float, y: float) -> None:
    size = 9
    pill_x = right_x - 10
    badges = (
        (f'#{ticket.no}', BADGE_NO_THEME),
        (f'Status: {ticket.status}', status_theme(ticket.status)),
        (f'Priority: {ticket.priority}', priority_theme(ticket.priority)),
    )
    # right to left, 8 units apart
    for text, theme in badges:
        pill_x -= page.measure(text, size) + 16
        draw_pill(page, x=pill_x, y=y + 6, text=text, size=size, theme=theme)
        pill_x -= 8


def _draw_detail_page(
    ticket: Ticket,
    *,
    font: FontHandle,
    title: str,
    app_title: str,
    logo: ImageHandle | None,
    stamp: ImageHandle | None,
    geometry: DetailGeometry,
) -> PageRecord:
    page = PageCanvas(geometry.page_width, geometry.page_height, font)
    content_w = geometry.content_width
    left = geometry.margin_left
    y = geometry.page_height - geometry.margin_top

    # header
    draw_header_bar(
        page,
        x=0,
        y_top=geometry.page_height,
        width=geometry.page_width,
        height=geometry.header_bar_height,
        shade=0.96,
    )
    page.text(left, y + 8, title, size=20, color=INK)
    if app_title:
        page.text(left, y - 14, app_title, size=10, color=SUBTLE_INK)

    _draw_detail_badges(page, ticket, right_x=geometry.page_width - geometry.margin_right, y=y)

    if logo is not None:
        logo_w, logo_h = fit_image_size(logo, 92, 26)
        page.image(
            logo,
            geometry.page_width - geometry.margin_right - logo_w,
            geometry.page_height - 34,
            logo_w,
            logo_h,
            opacity=0.9,
        )

    y -= geometry.header_advance

    # overview card: 2 x 2 label/value blocks
    draw_card(page, x=left, y_top=y, width=content_w, height=geometry.meta_card_height)
    draw_section_title(page, x=left + 16, y=y - 18, text='Overview')

    col_gap = 18
    col_w = (content_w - col_gap) / 2
    left_x = left + 16
    right_x = left_x + col_w + col_gap
    block_top = y - 44
    block_h = 56

    draw_label_value_block(
        page, x=left_x, y_top=block_top, width=col_w, label='Subject', value=ticket.subject, value_size=12, max_lines=2
    )
    draw_label_value_block(
        page,
        x=right_x,
        y_top=block_top,
        width=col_w,
        label='Customer',
        value=ticket.customer_name,
        value_size=12,
        max_lines=2,
    )
    draw_label_value_block(
        page,
        x=left_x,
        y_top=block_top - block_h,
        width=col_w,
        label='Assignee',
        value=ticket.assignee or '',
        value_size=12,
        max_lines=1,
    )
    draw_label_value_block(
        page,
        x=right_x,
        y_top=block_top - block_h,
        width=col_w,
        label='Created / Updated',
        value=f'{ticket.created_at} / {ticket.updated_at}',
        value_size=11,
        max_lines=1,
    )
    page.line(
        left + 16,
        block_top - block_h + 10,
        left + content_w - 16,
        block_top - block_h + 10,
        thickness=0.7,
        color=SOFT_RULE,
    )

    y -= geometry.meta_card_height + geometry.card_gap

    # message card
    body_top = y
    body_h = max(geometry.body_min_height, body_top - geometry.margin_bottom)
    draw_card(page, x=left, y_top=body_top, width=content_w, height=body_h)
    draw_section_title(page, x=left + 16, y=body_top - 18, text='Message')

    inner_x = left + 16
    inner_w = content_w - 32
    inner_top = body_top - 44
    inner_bottom = body_top - body_h + 16

    lines = wrap_text(ticket.body, font, geometry.body_font_size, inner_w)
    line_y = inner_top
    drawn = 0
    for line in lines:
        if line_y < inner_bottom:
            break
        page.text(inner_x, line_y, line, size=geometry.body_font_size, color=BODY_INK)
        line_y -= geometry.body_line_height
        drawn += 1
    if drawn < len(lines):
        # no continuation page in detail layout; the rest is left out
        logger.debug('Ticket %s body truncated: %d of %d lines drawn', ticket.no, drawn, len(lines))

    if stamp is not None:
        size = 74
        page.image(
            stamp,
            geometry.page_width - geometry.margin_right - size,
            geometry.margin_bottom + 14,
            size,
            size,
            opacity=0.07,
        )

    return page.freeze()


def iter_detail_pages(
    tickets: Iterable[Ticket],
    *,
    font: FontHandle,
    title: str,
    app_title: str = '',
    logo: ImageHandle | None = None,
    stamp: ImageHandle | None = None,
    geometry: DetailGeometry = DETAIL_GEOMETRY,
) -> Iterator[PageRecord]:
    for ticket in tickets:
        yield _draw_detail_page(
            ticket,
            font=font,
            title=title,
            app_title=app_title,
            logo=logo,
            stamp=stamp,
            geometry=geometry,
        )
