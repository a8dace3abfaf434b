from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping

from reportlab.lib.colors import Color

from ticketprint.types import TicketPriority, TicketStatus


@dataclass(frozen=True)
class BadgeTheme:
    background: Color
    foreground: Color


# Pale fills so badges survive grayscale printing and screenshots.
NEUTRAL_THEME = BadgeTheme(background=Color(0.96, 0.96, 0.96), foreground=Color(0.35, 0.37, 0.4))

STATUS_THEMES: Mapping[TicketStatus, BadgeTheme] = MappingProxyType(
    {
        TicketStatus.received: NEUTRAL_THEME,
        TicketStatus.in_progress: BadgeTheme(background=Color(0.92, 0.96, 1.0), foreground=Color(0.12, 0.29, 0.55)),
        TicketStatus.done: BadgeTheme(background=Color(0.9, 0.98, 0.93), foreground=Color(0.11, 0.45, 0.22)),
    }
)

PRIORITY_THEMES: Mapping[TicketPriority, BadgeTheme] = MappingProxyType(
    {
        TicketPriority.high: BadgeTheme(background=Color(1.0, 0.93, 0.93), foreground=Color(0.6, 0.12, 0.12)),
        TicketPriority.medium: BadgeTheme(background=Color(1.0, 0.97, 0.9), foreground=Color(0.55, 0.35, 0.1)),
        TicketPriority.low: BadgeTheme(background=Color(0.94, 0.99, 0.94), foreground=Color(0.16, 0.45, 0.2)),
    }
)


def status_theme(status: Any) -> BadgeTheme:
    try:
        return STATUS_THEMES[TicketStatus(status)]
    except (ValueError, KeyError, TypeError):
        return NEUTRAL_THEME


def priority_theme(priority: Any) -> BadgeTheme:
    try:
        return PRIORITY_THEMES[TicketPriority(priority)]
    except (ValueError, KeyError, TypeError):
        return NEUTRAL_THEME
