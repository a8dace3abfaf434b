from __future__ import annotations

import asyncio
import hashlib
import logging
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path

import httpx
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont


logger = logging.getLogger(__name__)

BUILTIN_FALLBACK_FONT = 'Helvetica'

# Fonts and logos are swapped often while a deployment is being set up.
_NO_CACHE_HEADERS = {'Cache-Control': 'no-cache', 'Pragma': 'no-cache'}


@dataclass
class AssetConfig:
    base_url: str | None
    root: Path
    timeout_seconds: float
    fallback_font: str = BUILTIN_FALLBACK_FONT


@dataclass(frozen=True)
class FontHandle:
    name: str
    source_url: str | None = None
    embedded: bool = False


@dataclass(frozen=True)
class ImageHandle:
    reader: ImageReader
    width: int
    height: int
    source_url: str | None = None


def _is_absolute_url(url: str) -> bool:
    return url.startswith('http://') or url.startswith('https://')


def normalize_asset_url(url: str | None) -> str | None:
    token = str(url or '').strip()
    if not token:
        return None
    if _is_absolute_url(token):
        return token
    if token.startswith('/'):
        return token
    return f'/{token}'


def _register_ttf_font(data: bytes) -> str:
    """Register TrueType bytes once per distinct font and return its name.

    reportlab's registry is process-wide and never shrinks, so the name is
    derived from the font content: repeated builds reuse one entry.
    """
    font_name = f'TicketFont-{hashlib.sha256(data).hexdigest()[:16]}'
    if font_name not in pdfmetrics.getRegisteredFontNames():
        pdfmetrics.registerFont(TTFont(font_name, BytesIO(data)))
    return font_name


class AssetLoader:
    """Loads optional fonts and images for one document build.

    Every failure degrades: fonts fall back to a standard PDF font and images
    are reported as absent. Nothing here raises to the caller.
    """

    def __init__(self, cfg: AssetConfig, *, transport: httpx.AsyncBaseTransport | None = None):
        self.cfg = cfg
        self._transport = transport

    @property
    def remote_configured(self) -> bool:
        return bool(self.cfg.base_url)

    def fallback_font(self) -> FontHandle:
        name = str(self.cfg.fallback_font or '').strip() or BUILTIN_FALLBACK_FONT
        try:
            pdfmetrics.getFont(name)
        except Exception:
            logger.warning('Fallback PDF font %s is not registered; using %s', name, BUILTIN_FALLBACK_FONT)
            name = BUILTIN_FALLBACK_FONT
        return FontHandle(name=name)

    async def load_font(self, url: str | None) -> FontHandle:
        normalized = normalize_asset_url(url)
        if normalized is None:
            return self.fallback_font()

        try:
            data = await self._fetch_bytes(normalized)
            font_name = _register_ttf_font(data)
        except Exception as exc:
            fallback = self.fallback_font()
            logger.warning(
                'Failed to load PDF font from %s; using %s: %s',
                normalized,
                fallback.name,
                exc,
            )
            return fallback

        return FontHandle(name=font_name, source_url=normalized, embedded=True)

    async def load_image(self, url: str | None) -> ImageHandle | None:
        normalized = normalize_asset_url(url)
        if normalized is None:
            return None

        try:
            data = await self._fetch_bytes(normalized)
            reader = ImageReader(BytesIO(data))
            width, height = reader.getSize()
        except Exception as exc:
            logger.warning('Failed to load PDF image from %s; omitting it: %s', normalized, exc)
            return None

        if width <= 0 or height <= 0:
            logger.warning('PDF image %s has no size; omitting it', normalized)
            return None
        return ImageHandle(reader=reader, width=int(width), height=int(height), source_url=normalized)

    async def _fetch_bytes(self, url: str) -> bytes:
        if _is_absolute_url(url):
            return await self._fetch_remote(url)
        base_url = self.cfg.base_url
        if base_url:
            return await self._fetch_remote(f"{base_url.rstrip('/')}/{url.lstrip('/')}")
        return await asyncio.to_thread(self._read_local, url)

    async def _fetch_remote(self, url: str) -> bytes:
        async with httpx.AsyncClient(
            timeout=max(1.0, float(self.cfg.timeout_seconds)),
            transport=self._transport,
            follow_redirects=True,
        ) as client:
            response = await client.get(url, headers=_NO_CACHE_HEADERS)
        response.raise_for_status()
        return response.content

    def _read_local(self, url: str) -> bytes:
        root = self.cfg.root.resolve()
        path = (root / url.lstrip('/')).resolve()
        if root not in path.parents:
            raise ValueError(f'asset path escapes asset root: {url}')
        return path.read_bytes()
