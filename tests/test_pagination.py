from __future__ import annotations

import pytest

from ticketprint.report.columns import BASE_COLUMNS, table_width
from ticketprint.report.pages import RULE, LineOp, PageRecord, RectOp, TextOp
from ticketprint.report.pagination import (
    DETAIL_GEOMETRY,
    LIST_GEOMETRY,
    BuildPhase,
    DocumentBuild,
    iter_detail_pages,
    iter_list_pages,
    list_columns,
    list_rows_per_page,
    stamp_footers,
)
from ticketprint.report.text_layout import ELLIPSIS, text_width
from ticketprint.report.theme import priority_theme, status_theme


def _row_count(page: PageRecord) -> int:
    return sum(1 for op in page.ops if isinstance(op, LineOp) and op.color is RULE)


def _list_pages(tickets, font, **kwargs):
    return list(iter_list_pages(tickets, font=font, title='Ticket List', **kwargs))


def _detail_pages(tickets, font, **kwargs):
    return list(iter_detail_pages(tickets, font=font, title='Ticket Detail', **kwargs))


class TestListLayout:
    def test_rows_per_page(self):
        assert list_rows_per_page() == 36

    def test_columns_fill_usable_width(self):
        assert table_width(list_columns()) == pytest.approx(LIST_GEOMETRY.usable_width)
        assert [col.key for col in list_columns()] == [col.key for col in BASE_COLUMNS]

    @pytest.mark.parametrize('count, expected_pages', [(0, 1), (1, 1), (36, 1), (37, 2), (72, 2), (73, 3)])
    def test_page_count(self, font, make_ticket, count, expected_pages):
        pages = _list_pages([make_ticket(no) for no in range(1, count + 1)], font)
        assert len(pages) == expected_pages

    def test_rows_are_split_at_capacity(self, font, make_ticket):
        pages = _list_pages([make_ticket(no) for no in range(1, 38)], font)
        assert [_row_count(page) for page in pages] == [36, 1]
        assert '37' in pages[1].texts()

    def test_header_is_repeated_on_every_page(self, font, make_ticket):
        pages = _list_pages([make_ticket(no) for no in range(1, 80)], font, app_title='Helpdesk')
        for page in pages:
            texts = page.texts()
            assert texts[0] == 'Ticket List'
            assert 'Helpdesk' in texts
            for col in BASE_COLUMNS:
                assert col.label in texts

    def test_empty_list_has_header_only(self, font):
        (page,) = _list_pages([], font)
        assert _row_count(page) == 0
        assert 'Subject' in page.texts()

    def test_long_subject_is_clipped(self, font, make_ticket):
        subject = 'Customer cannot log in after password reset and the SSO banner keeps reloading forever'
        (page,) = _list_pages([make_ticket(1, subject=subject)], font)
        subject_col = next(col for col in list_columns() if col.key == 'subject')

        (cell,) = [op for op in page.ops if isinstance(op, TextOp) and op.text.startswith('Customer cannot')]
        assert cell.text.endswith(ELLIPSIS)
        assert subject.startswith(cell.text[: -len(ELLIPSIS)])
        assert text_width(cell.text, font, LIST_GEOMETRY.font_size) <= subject_col.width - 8

    def test_missing_assignee_is_blank(self, font, make_ticket):
        (page,) = _list_pages([make_ticket(1, assignee=None)], font)
        assert 'Sato' not in page.texts()

    def test_rows_stay_above_bottom_margin(self, font, make_ticket):
        pages = _list_pages([make_ticket(no) for no in range(1, 40)], font)
        for page in pages:
            for op in page.ops:
                if isinstance(op, TextOp):
                    assert op.y >= LIST_GEOMETRY.margin_bottom


class TestDetailLayout:
    def test_one_page_per_ticket(self, font, make_ticket):
        pages = _detail_pages([make_ticket(no) for no in (3, 1, 2)], font)
        assert len(pages) == 3
        assert ['#3' in p.texts() for p in pages] == [True, False, False]
        assert '#2' in pages[2].texts()

    def test_no_tickets_no_pages(self, font):
        assert _detail_pages([], font) == []

    def test_badges_use_theme_colors(self, font, make_ticket):
        (page,) = _detail_pages([make_ticket(9, status='完了', priority='高')], font)
        texts = page.texts()
        assert '#9' in texts
        assert 'Status: 完了' in texts
        assert 'Priority: 高' in texts

        fills = [op.fill for op in page.ops if isinstance(op, RectOp)]
        assert any(fill is status_theme('完了').background for fill in fills)
        assert any(fill is priority_theme('高').background for fill in fills)

    def test_overview_labels_and_values(self, font, make_ticket):
        (page,) = _detail_pages([make_ticket(4, assignee='  ')], font, app_title='Helpdesk')
        texts = page.texts()
        for label in ('Overview', 'Message', 'Subject', 'Customer', 'Assignee', 'Created / Updated'):
            assert label in texts
        assert 'Acme Corp' in texts
        assert '2026-10-01 / 2026-10-02' in texts
        assert 'Helpdesk' in texts

    def test_empty_assignee_is_shown_as_dash(self, font, make_ticket):
        (page,) = _detail_pages([make_ticket(4, assignee=None)], font)
        texts = page.texts()
        assignee_at = texts.index('Assignee')
        assert texts[assignee_at + 1] == '-'

    def test_overflowing_subject_ends_with_ellipsis(self, font, make_ticket):
        subject = 'Very long subject line ' * 12
        (page,) = _detail_pages([make_ticket(1, subject=subject)], font)
        texts = page.texts()
        start = texts.index('Subject') + 1
        first, second = texts[start], texts[start + 1]
        assert subject.startswith(first)
        assert second.endswith(ELLIPSIS)

    def test_body_lines_keep_breaks(self, font, make_ticket):
        (page,) = _detail_pages([make_ticket(1, body='first line\n\nthird line')], font)
        texts = page.texts()
        at = texts.index('first line')
        assert texts[at + 1 : at + 3] == ['', 'third line']

    def test_long_body_is_truncated_inside_the_card(self, font, make_ticket):
        body = '\n'.join(f'body line {n}' for n in range(100))
        (page,) = _detail_pages([make_ticket(1, body=body)], font)
        body_ops = [op for op in page.ops if isinstance(op, TextOp) and op.text.startswith('body line')]

        assert 0 < len(body_ops) < 100
        assert body_ops[0].text == 'body line 0'
        assert min(op.y for op in body_ops) >= DETAIL_GEOMETRY.margin_bottom


class TestFooters:
    def test_stamping_returns_new_pages(self, font, make_ticket):
        pages = _list_pages([make_ticket(no) for no in range(1, 74)], font)
        stamped = stamp_footers(pages, font=font, left_text='2026-10-19 09:00:00', margin_left=48, margin_right=48)

        assert len(stamped) == 3
        for index, (before, after) in enumerate(zip(pages, stamped), start=1):
            assert f'page {index} / 3' in after.texts()
            assert '2026-10-19 09:00:00' in after.texts()
            assert not any(text.startswith('page ') for text in before.texts())
            assert after.ops[: len(before.ops)] == before.ops

    def test_right_text_is_right_aligned(self, font):
        page = PageRecord(width=595.28, height=841.89)
        (stamped,) = stamp_footers([page], font=font, left_text='x', margin_left=52, margin_right=52)
        right = next(op for op in stamped.ops if isinstance(op, TextOp) and op.text == 'page 1 / 1')
        assert right.x + text_width(right.text, font, right.size) == pytest.approx(595.28 - 52)


class TestDocumentBuild:
    def test_happy_path(self, font):
        build = DocumentBuild()
        assert build.phase is BuildPhase.empty

        page = PageRecord(width=100, height=100)
        build.extend([page, page])
        assert build.phase is BuildPhase.paginating
        assert build.page_count == 2

        build.finalize(lambda pages: stamp_footers(pages, font=font, left_text='', margin_left=0, margin_right=0))
        assert build.phase is BuildPhase.finalizing
        assert 'page 2 / 2' in build.pages[1].texts()

        build.mark_serialized()
        assert build.phase is BuildPhase.serialized

    def test_empty_build_can_finalize(self):
        build = DocumentBuild()
        build.finalize(list)
        assert build.page_count == 0
        assert build.phase is BuildPhase.finalizing

    def test_no_pages_after_finalizing(self):
        build = DocumentBuild()
        build.finalize(list)
        with pytest.raises(RuntimeError):
            build.extend([PageRecord(width=1, height=1)])

    def test_cannot_serialize_before_finalizing(self):
        build = DocumentBuild()
        build.extend([])
        with pytest.raises(RuntimeError):
            build.mark_serialized()

    def test_finalize_only_once(self):
        build = DocumentBuild()
        build.finalize(list)
        with pytest.raises(RuntimeError):
            build.finalize(list)

    def test_finalize_must_keep_page_count(self):
        build = DocumentBuild()
        build.extend([PageRecord(width=1, height=1)])
        with pytest.raises(RuntimeError):
            build.finalize(lambda pages: [])


def test_detail_badge_prints_ticket_number_zero(font, make_ticket):
    (page,) = _detail_pages([make_ticket(0)], font)
    assert '#0' in page.texts()
