from __future__ import annotations

import csv
import io
from datetime import datetime
from typing import Callable, Iterable

from ticketprint.types import Ticket


CSV_MEDIA_TYPE = 'text/csv; charset=utf-8'

# Spreadsheet tools use the BOM to detect UTF-8.
UTF8_BOM = '\ufeff'

CSV_COLUMNS: tuple[tuple[str, Callable[[Ticket], str]], ...] = (
    ('no', lambda t: str(t.no)),
    ('subject', lambda t: t.subject),
    ('customerName', lambda t: t.customer_name),
    ('assignee', lambda t: (t.assignee or '').strip()),
    ('status', lambda t: t.status),
    ('priority', lambda t: t.priority),
    ('createdAt', lambda t: t.created_at),
    ('updatedAt', lambda t: t.updated_at),
)


def default_csv_filename(now: datetime | None = None) -> str:
    current = now or datetime.now()
    return f"tickets_{current.strftime('%Y-%m-%d')}.csv"


def tickets_to_csv(tickets: Iterable[Ticket]) -> str:
    """Comma-separated text, CRLF line endings, header row first.

    Fields containing a quote, comma or line break are quoted and inner
    quotes are doubled; everything else is written as is.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator='\r\n')
    writer.writerow([header for header, _ in CSV_COLUMNS])
    for ticket in tickets:
        writer.writerow([getter(ticket) for _, getter in CSV_COLUMNS])
    return buffer.getvalue()


def build_tickets_csv(tickets: Iterable[Ticket]) -> bytes:
    return (UTF8_BOM + tickets_to_csv(tickets)).encode('utf-8')
