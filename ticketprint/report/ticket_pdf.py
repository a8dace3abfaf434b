from __future__ import annotations

import asyncio
import io
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Sequence

from reportlab.pdfgen.canvas import Canvas

from ticketprint.adapters.assets import AssetConfig, AssetLoader
from ticketprint.config import get_settings
from ticketprint.report.pages import DrawOp, ImageOp, LineOp, PageRecord, RectOp, TextOp
from ticketprint.report.pagination import (
    DETAIL_GEOMETRY,
    LIST_GEOMETRY,
    PAGE_HEIGHT,
    PAGE_WIDTH,
    DocumentBuild,
    iter_detail_pages,
    iter_list_pages,
    stamp_footers,
)
from ticketprint.types import LayoutMode, RenderOptions, Ticket


logger = logging.getLogger(__name__)

PDF_MEDIA_TYPE = 'application/pdf'


class DocumentBuildError(RuntimeError):
    """The page sequence could not be turned into a PDF byte stream."""


@dataclass(frozen=True)
class RenderedDocument:
    content: bytes
    filename: str
    page_count: int
    layout: LayoutMode
    media_type: str = PDF_MEDIA_TYPE


def build_asset_loader() -> AssetLoader:
    settings = get_settings()
    return AssetLoader(
        AssetConfig(
            base_url=settings.asset_base_url,
            root=settings.asset_root,
            timeout_seconds=settings.asset_timeout_seconds,
            fallback_font=settings.pdf_fallback_font,
        )
    )


def _iso_date(now: datetime) -> str:
    return now.astimezone(timezone.utc).date().isoformat()


def format_generated_at(now: datetime) -> str:
    return now.astimezone().strftime('%Y-%m-%d %H:%M:%S')


def default_pdf_filename(tickets: Sequence[Ticket], layout: LayoutMode, now: datetime) -> str:
    date = _iso_date(now)
    if layout is LayoutMode.detail and len(tickets) == 1:
        return f'ticket-{tickets[0].no}-{date}.pdf'
    return f'tickets-{date}-{layout.value}.pdf'


def _draw_op(pdf: Canvas, op: DrawOp) -> None:
    if isinstance(op, TextOp):
        pdf.setFillColor(op.color)
        pdf.setFont(op.font_name, op.size)
        pdf.drawString(op.x, op.y, op.text)
    elif isinstance(op, LineOp):
        pdf.setStrokeColor(op.color)
        pdf.setLineWidth(op.thickness)
        pdf.line(op.x1, op.y1, op.x2, op.y2)
    elif isinstance(op, RectOp):
        if op.fill is not None:
            pdf.setFillColor(op.fill)
        if op.stroke is not None:
            pdf.setStrokeColor(op.stroke)
            pdf.setLineWidth(op.stroke_width)
        pdf.rect(
            op.x,
            op.y,
            op.width,
            op.height,
            stroke=int(op.stroke is not None),
            fill=int(op.fill is not None),
        )
    elif isinstance(op, ImageOp):
        pdf.saveState()
        pdf.setFillAlpha(op.opacity)
        pdf.drawImage(op.image.reader, op.x, op.y, width=op.width, height=op.height, mask='auto')
        pdf.restoreState()
    else:
        raise TypeError(f'unsupported draw operation: {type(op).__name__}')


def serialize_pages(
    pages: Iterable[PageRecord],
    *,
    title: str,
    author: str,
    subject: str = '',
) -> bytes:
    buffer = io.BytesIO()
    try:
        pdf = Canvas(buffer, pagesize=(PAGE_WIDTH, PAGE_HEIGHT), pageCompression=1)
        pdf.setTitle(title)
        pdf.setAuthor(author)
        pdf.setSubject(subject)
        pdf.setProducer(get_settings().app_name)
        for page in pages:
            pdf.setPageSize((page.width, page.height))
            for op in page.ops:
                _draw_op(pdf, op)
            pdf.showPage()
        pdf.save()
    except Exception as exc:
        raise DocumentBuildError(f'failed to serialize PDF: {exc}') from exc
    return buffer.getvalue()


async def build_tickets_pdf(
    tickets: Iterable[Ticket],
    options: RenderOptions | None = None,
    *,
    loader: AssetLoader | None = None,
    now: datetime | None = None,
) -> RenderedDocument:
    """Render tickets into a PDF using the list (default) or detail layout.

    Assets are loaded once per call and degrade silently when missing.
    Serialization failures raise ``DocumentBuildError``.
    """
    settings = get_settings()
    opts = options or RenderOptions()
    layout = opts.layout
    records = list(tickets)
    generated = now or datetime.now(timezone.utc)
    # blank filenames get the generated name
    filename = opts.filename or default_pdf_filename(records, layout, generated)
    asset_loader = loader or build_asset_loader()

    font_url = opts.font_url if opts.font_url is not None else settings.pdf_default_font_url
    font, logo, stamp = await asyncio.gather(
        asset_loader.load_font(font_url),
        asset_loader.load_image(opts.logo_url),
        asset_loader.load_image(opts.stamp_url),
    )

    generated_at = format_generated_at(generated)
    build = DocumentBuild()
    if layout is LayoutMode.list:
        title = opts.title if opts.title is not None else settings.pdf_list_title
        build.extend(
            iter_list_pages(
                records,
                font=font,
                title=title,
                app_title=opts.app_title,
                logo=logo,
                stamp=stamp,
                geometry=LIST_GEOMETRY,
            )
        )
        footer_left = generated_at
        margin_left, margin_right = LIST_GEOMETRY.margin_left, LIST_GEOMETRY.margin_right
    else:
        title = opts.title if opts.title is not None else settings.pdf_detail_title
        build.extend(
            iter_detail_pages(
                records,
                font=font,
                title=title,
                app_title=opts.app_title,
                logo=logo,
                stamp=stamp,
                geometry=DETAIL_GEOMETRY,
            )
        )
        footer_left = f'Generated: {generated_at}'
        margin_left, margin_right = DETAIL_GEOMETRY.margin_left, DETAIL_GEOMETRY.margin_right

    build.finalize(
        lambda pages: stamp_footers(
            pages,
            font=font,
            left_text=footer_left,
            margin_left=margin_left,
            margin_right=margin_right,
        )
    )
    content = serialize_pages(
        build.pages,
        title=title,
        author=settings.pdf_author,
        subject=f'{len(records)} tickets ({layout.value})',
    )
    build.mark_serialized()

    logger.info(
        'Built %s PDF %s: tickets=%d pages=%d bytes=%d font=%s',
        layout.value,
        filename,
        len(records),
        build.page_count,
        len(content),
        font.name,
    )
    return RenderedDocument(content=content, filename=filename, page_count=build.page_count, layout=layout)


async def build_ticket_pdf(
    ticket: Ticket,
    options: RenderOptions | None = None,
    *,
    loader: AssetLoader | None = None,
    now: datetime | None = None,
) -> RenderedDocument:
    opts = (options or RenderOptions()).model_copy(update={'layout': LayoutMode.detail})
    return await build_tickets_pdf([ticket], opts, loader=loader, now=now)
