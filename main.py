from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path

from ticketprint.config import get_settings
from ticketprint.report.csv_export import build_tickets_csv, default_csv_filename
from ticketprint.report.ticket_pdf import RenderedDocument, build_ticket_pdf, build_tickets_pdf
from ticketprint.storage import export_path, read_tickets, write_bytes_atomic
from ticketprint.types import LayoutMode, RenderOptions, Ticket


logger = logging.getLogger('ticketprint.cli')

EXPORT_FAILED_MESSAGE = 'export failed'


def _print_json(payload: dict) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, str(get_settings().log_level).upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )


def _load_tickets(args: argparse.Namespace) -> list[Ticket] | None:
    records_path = Path(args.records).expanduser().resolve()
    if not records_path.exists() or not records_path.is_file():
        _print_json({'status': 'error', 'message': f'Records file not found: {records_path}'})
        return None
    try:
        return read_tickets(records_path)
    except (ValueError, json.JSONDecodeError) as exc:
        _print_json({'status': 'error', 'message': f'Invalid records file: {exc}'})
        return None


def _out_dir(args: argparse.Namespace) -> Path | None:
    if not args.out_dir:
        return None
    return Path(args.out_dir).expanduser().resolve()


def _render_options(args: argparse.Namespace, layout: LayoutMode) -> RenderOptions:
    return RenderOptions(
        layout=layout,
        title=args.title,
        app_title=args.app_title or '',
        filename=args.filename,
        font_url=args.font_url,
        logo_url=args.logo_url,
        stamp_url=args.stamp_url,
    )


def _save_document(document: RenderedDocument, out_dir: Path | None) -> int:
    target = export_path(document.filename, out_dir)
    write_bytes_atomic(target, document.content)
    _print_json(
        {
            'status': 'ok',
            'path': str(target),
            'filename': document.filename,
            'layout': document.layout.value,
            'pages': document.page_count,
            'bytes': len(document.content),
        }
    )
    return 0


def cmd_pdf(args: argparse.Namespace) -> int:
    tickets = _load_tickets(args)
    if tickets is None:
        return 2
    options = _render_options(args, LayoutMode(args.layout))
    try:
        document = asyncio.run(build_tickets_pdf(tickets, options))
        return _save_document(document, _out_dir(args))
    except Exception:
        logger.exception('PDF export failed')
        _print_json({'status': 'error', 'message': EXPORT_FAILED_MESSAGE})
        return 2


def cmd_ticket(args: argparse.Namespace) -> int:
    tickets = _load_tickets(args)
    if tickets is None:
        return 2
    ticket = next((item for item in tickets if item.no == args.no), None)
    if ticket is None:
        _print_json({'status': 'error', 'message': f'Ticket not found: {args.no}'})
        return 2
    options = _render_options(args, LayoutMode.detail)
    try:
        document = asyncio.run(build_ticket_pdf(ticket, options))
        return _save_document(document, _out_dir(args))
    except Exception:
        logger.exception('PDF export failed for ticket %s', args.no)
        _print_json({'status': 'error', 'message': EXPORT_FAILED_MESSAGE})
        return 2


def cmd_csv(args: argparse.Namespace) -> int:
    tickets = _load_tickets(args)
    if tickets is None:
        return 2
    filename = args.filename or default_csv_filename()
    try:
        content = build_tickets_csv(tickets)
        target = export_path(filename, _out_dir(args))
        write_bytes_atomic(target, content)
    except Exception:
        logger.exception('CSV export failed')
        _print_json({'status': 'error', 'message': EXPORT_FAILED_MESSAGE})
        return 2
    _print_json({'status': 'ok', 'path': str(target), 'filename': filename, 'rows': len(tickets)})
    return 0


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('--records', required=True, help='JSON file with a ticket list or {"tickets": [...]}')
    parser.add_argument('--filename', required=False, help='Output filename override')
    parser.add_argument('--out-dir', required=False, help='Output directory (default: EXPORT_DIR)')


def _add_pdf_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('--title', required=False, help='Document title')
    parser.add_argument('--app-title', required=False, help='Application label shown under the title')
    parser.add_argument('--font-url', required=False, help='TrueType font URL or asset path')
    parser.add_argument('--logo-url', required=False, help='Logo image URL or asset path')
    parser.add_argument('--stamp-url', required=False, help='Stamp image URL or asset path')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Ticket PDF / CSV export')
    sub = parser.add_subparsers(dest='command', required=True)

    pdf = sub.add_parser('pdf', help='Export tickets as a PDF document')
    _add_common_arguments(pdf)
    _add_pdf_arguments(pdf)
    pdf.add_argument('--layout', choices=[mode.value for mode in LayoutMode], default=LayoutMode.list.value)
    pdf.set_defaults(func=cmd_pdf)

    ticket = sub.add_parser('ticket', help='Export one ticket as a detail PDF')
    _add_common_arguments(ticket)
    _add_pdf_arguments(ticket)
    ticket.add_argument('--no', type=int, required=True, help='Ticket number')
    ticket.set_defaults(func=cmd_ticket)

    csv_cmd = sub.add_parser('csv', help='Export tickets as CSV')
    _add_common_arguments(csv_cmd)
    csv_cmd.set_defaults(func=cmd_csv)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging()
    return int(args.func(args))


if __name__ == '__main__':
    raise SystemExit(main())
