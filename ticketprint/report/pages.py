from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Union

from reportlab.lib.colors import Color

from ticketprint.adapters.assets import FontHandle, ImageHandle
from ticketprint.report.text_layout import clip_to_width, text_width, wrap_text
from ticketprint.report.theme import BadgeTheme


INK = Color(0.07, 0.09, 0.12)
BODY_INK = Color(0.1, 0.12, 0.16)
SUBTLE_INK = Color(0.34, 0.36, 0.4)
SECTION_INK = Color(0.2, 0.22, 0.26)
MUTED_INK = Color(0.45, 0.48, 0.52)
HEADER_LABEL_INK = Color(0.3, 0.33, 0.36)
RULE = Color(0.9, 0.91, 0.93)
SOFT_RULE = Color(0.93, 0.94, 0.96)
ACCENT_RULE = Color(0.92, 0.93, 0.95)
CARD_BORDER = Color(0.9, 0.92, 0.94)
TABLE_HEADER_FILL = Color(0.96, 0.97, 0.98)
TABLE_HEADER_BORDER = Color(0.85, 0.87, 0.9)
WHITE = Color(1, 1, 1)

FOOTER_FONT_SIZE = 9
LABEL_FONT_SIZE = 9


@dataclass(frozen=True)
class TextOp:
    x: float
    y: float
    text: str
    size: float
    font_name: str
    color: Color


@dataclass(frozen=True)
class LineOp:
    x1: float
    y1: float
    x2: float
    y2: float
    thickness: float
    color: Color


@dataclass(frozen=True)
class RectOp:
    x: float
    y: float
    width: float
    height: float
    fill: Color | None = None
    stroke: Color | None = None
    stroke_width: float = 1.0


@dataclass(frozen=True)
class ImageOp:
    image: ImageHandle
    x: float
    y: float
    width: float
    height: float
    opacity: float = 1.0


DrawOp = Union[TextOp, LineOp, RectOp, ImageOp]


@dataclass(frozen=True)
class PageRecord:
    width: float
    height: float
    ops: tuple[DrawOp, ...] = ()

    def with_ops(self, *ops: DrawOp) -> PageRecord:
        return replace(self, ops=self.ops + tuple(ops))

    def texts(self) -> list[str]:
        return [op.text for op in self.ops if isinstance(op, TextOp)]


class PageCanvas:
    """Collects draw operations for the page currently being laid out."""

    def __init__(self, width: float, height: float, font: FontHandle):
        self.width = width
        self.height = height
        self.font = font
        self._ops: list[DrawOp] = []

    def measure(self, text: str, size: float) -> float:
        return text_width(text, self.font, size)

    def text(self, x: float, y: float, text: str, *, size: float, color: Color) -> None:
        self._ops.append(TextOp(x=x, y=y, text=text, size=size, font_name=self.font.name, color=color))

    def line(self, x1: float, y1: float, x2: float, y2: float, *, thickness: float, color: Color) -> None:
        self._ops.append(LineOp(x1=x1, y1=y1, x2=x2, y2=y2, thickness=thickness, color=color))

    def rect(
        self,
        x: float,
        y: float,
        width: float,
        height: float,
        *,
        fill: Color | None = None,
        stroke: Color | None = None,
        stroke_width: float = 1.0,
    ) -> None:
        self._ops.append(
            RectOp(x=x, y=y, width=width, height=height, fill=fill, stroke=stroke, stroke_width=stroke_width)
        )

    def image(self, image: ImageHandle, x: float, y: float, width: float, height: float, *, opacity: float) -> None:
        self._ops.append(ImageOp(image=image, x=x, y=y, width=width, height=height, opacity=opacity))

    def freeze(self) -> PageRecord:
        return PageRecord(width=self.width, height=self.height, ops=tuple(self._ops))


def fit_image_size(image: ImageHandle, max_width: float, max_height: float) -> tuple[float, float]:
    scale = min(max_width / image.width, max_height / image.height, 1.0)
    return image.width * scale, image.height * scale


def draw_header_bar(page: PageCanvas, *, x: float, y_top: float, width: float, height: float, shade: float = 0.97) -> None:
    page.rect(x, y_top - height, width, height, fill=Color(shade, shade, shade))


def draw_card(page: PageCanvas, *, x: float, y_top: float, width: float, height: float) -> None:
    page.rect(x, y_top - height, width, height, fill=WHITE, stroke=CARD_BORDER, stroke_width=1)


def draw_section_title(page: PageCanvas, *, x: float, y: float, text: str) -> None:
    page.text(x, y, text, size=11, color=SECTION_INK)
    page.line(x, y - 10, x + 56, y - 10, thickness=1, color=ACCENT_RULE)


def draw_label_value_block(
    page: PageCanvas,
    *,
    x: float,
    y_top: float,
    width: float,
    label: str,
    value: str,
    value_size: float,
    max_lines: int,
) -> None:
    page.text(x, y_top, label, size=LABEL_FONT_SIZE, color=MUTED_INK)

    limit = max(1, max_lines)
    lines = wrap_text(value, page.font, value_size, width)
    shown = lines[:limit]
    if len(lines) > limit:
        rest = ' '.join(line for line in lines[limit - 1 :] if line)
        shown[-1] = clip_to_width(rest, page.font, value_size, width)

    y = y_top - 16
    for line in shown:
        page.text(x, y, line or '-', size=value_size, color=BODY_INK)
        y -= value_size + 4


def draw_pill(
    page: PageCanvas,
    *,
    x: float,
    y: float,
    text: str,
    size: float,
    theme: BadgeTheme,
    pad_x: float = 8,
    pad_y: float = 4,
) -> tuple[float, float]:
    width = page.measure(text, size) + pad_x * 2
    height = size + pad_y * 2
    page.rect(x, y - height + 2, width, height, fill=theme.background)
    page.text(x + pad_x, y - size - pad_y + 4, text, size=size, color=theme.foreground)
    return width, height


def footer_ops(
    font: FontHandle,
    *,
    page_width: float,
    margin_left: float,
    margin_right: float,
    y: float,
    left_text: str,
    right_text: str,
) -> tuple[DrawOp, ...]:
    right_width = text_width(right_text, font, FOOTER_FONT_SIZE)
    return (
        LineOp(
            x1=margin_left,
            y1=y + 12,
            x2=page_width - margin_right,
            y2=y + 12,
            thickness=0.7,
            color=SOFT_RULE,
        ),
        TextOp(x=margin_left, y=y, text=left_text, size=FOOTER_FONT_SIZE, font_name=font.name, color=MUTED_INK),
        TextOp(
            x=page_width - margin_right - right_width,
            y=y,
            text=right_text,
            size=FOOTER_FONT_SIZE,
            font_name=font.name,
            color=MUTED_INK,
        ),
    )
