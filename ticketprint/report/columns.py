from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import Mapping, Sequence


logger = logging.getLogger(__name__)

FLEX_COLUMN_KEY = 'subject'

# The flexible column gives up width first down to this soft floor, then down
# to its hard minimum together with the other columns.
FLEX_SOFT_MIN_WIDTH = 120.0
# Lowest width the flexible column may take while absorbing rounding drift.
FLEX_RECONCILE_FLOOR = 80.0
DEFAULT_MIN_WIDTH = 40.0


@dataclass(frozen=True)
class ColumnSpec:
    key: str
    label: str
    width: float


BASE_COLUMNS: tuple[ColumnSpec, ...] = (
    ColumnSpec('no', 'No', 38),
    ColumnSpec('subject', 'Subject', 210),
    ColumnSpec('customerName', 'Customer', 95),
    ColumnSpec('assignee', 'Assignee', 70),
    ColumnSpec('status', 'Status', 70),
    ColumnSpec('priority', 'Priority', 50),
    ColumnSpec('createdAt', 'Created', 90),
)

COLUMN_MIN_WIDTHS: Mapping[str, float] = MappingProxyType(
    {
        'no': 32,
        'subject': 110,
        'customerName': 70,
        'assignee': 55,
        'status': 60,
        'priority': 45,
        'createdAt': 70,
    }
)


def _min_width(key: str) -> float:
    return float(COLUMN_MIN_WIDTHS.get(key, DEFAULT_MIN_WIDTH))


def _round_half_up(value: float) -> float:
    return float(math.floor(value + 0.5))


def fit_columns(base: Sequence[ColumnSpec], target_width: float) -> list[ColumnSpec]:
    """Return new column specs whose widths add up to ``target_width``.

    Width is taken from the flexible (subject) column first, then from every
    column in proportion to its slack above its minimum. After rounding, the
    remaining drift is absorbed by the flexible column so the table edge lines
    up with the right margin.
    """
    widths = [float(col.width) for col in base]
    keys = [col.key for col in base]
    flex_index = keys.index(FLEX_COLUMN_KEY) if FLEX_COLUMN_KEY in keys else None

    # 1) flexible column first
    overflow = sum(widths) - target_width
    if flex_index is not None and overflow > 0:
        reducible = max(0.0, widths[flex_index] - FLEX_SOFT_MIN_WIDTH)
        widths[flex_index] -= min(reducible, overflow)

    # 2) proportional squeeze above per-column minimums
    overflow = sum(widths) - target_width
    if overflow > 0:
        reducibles = [max(0.0, width - _min_width(key)) for key, width in zip(keys, widths)]
        total_reducible = sum(reducibles)
        if total_reducible > 0:
            need = min(overflow, total_reducible)
            for index, reducible in enumerate(reducibles):
                if reducible <= 0:
                    continue
                portion = reducible / total_reducible * need
                widths[index] = max(_min_width(keys[index]), widths[index] - portion)

        overflow = sum(widths) - target_width
        if overflow > 0 and flex_index is not None:
            widths[flex_index] = max(_min_width(FLEX_COLUMN_KEY), widths[flex_index] - overflow)

    # 3) round, then push the drift into one column
    widths = [_round_half_up(width) for width in widths]
    if widths:
        drift = sum(widths) - target_width
        if drift != 0:
            if flex_index is not None:
                anchor, floor = flex_index, FLEX_RECONCILE_FLOOR
            else:
                anchor, floor = 0, _min_width(keys[0])
            widths[anchor] = max(floor, widths[anchor] - drift)

    total = sum(widths)
    if widths and not math.isclose(total, target_width, abs_tol=1e-6):
        logger.warning(
            'Column minimums exceed the available width: columns=%.2f target=%.2f; table will overflow',
            total,
            target_width,
        )

    return [replace(col, width=width) for col, width in zip(base, widths)]


def table_width(columns: Sequence[ColumnSpec]) -> float:
    return sum(col.width for col in columns)
