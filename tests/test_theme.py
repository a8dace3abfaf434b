from __future__ import annotations

import pytest

from ticketprint.report.theme import (
    NEUTRAL_THEME,
    PRIORITY_THEMES,
    STATUS_THEMES,
    priority_theme,
    status_theme,
)
from ticketprint.types import TicketPriority, TicketStatus


@pytest.mark.parametrize('status', list(TicketStatus))
def test_known_status_values(status):
    assert status_theme(status.value) is STATUS_THEMES[status]
    assert status_theme(status) is STATUS_THEMES[status]


@pytest.mark.parametrize('priority', list(TicketPriority))
def test_known_priority_values(priority):
    assert priority_theme(priority.value) is PRIORITY_THEMES[priority]
    assert priority_theme(priority) is PRIORITY_THEMES[priority]


@pytest.mark.parametrize('value', ['', 'closed', 'done', None, 3, ['完了']])
def test_unknown_values_fall_back_to_neutral(value):
    assert status_theme(value) is NEUTRAL_THEME
    assert priority_theme(value) is NEUTRAL_THEME


def test_in_progress_and_high_are_distinguishable():
    in_progress = status_theme('対応中')
    done = status_theme('完了')
    assert in_progress.background != done.background
    assert priority_theme('高').foreground != priority_theme('低').foreground
