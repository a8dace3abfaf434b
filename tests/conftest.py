from __future__ import annotations

import base64
import io
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest
from pypdf import PdfReader

from ticketprint.adapters.assets import AssetConfig, AssetLoader, FontHandle
from ticketprint.types import Ticket


# 1x1 RGBA PNG
PNG_1X1 = base64.b64decode(
    'iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=='
)


def read_pdf(content: bytes) -> PdfReader:
    return PdfReader(io.BytesIO(content))


@pytest.fixture
def font() -> FontHandle:
    return FontHandle(name='Helvetica')


@pytest.fixture
def make_ticket() -> Callable[..., Ticket]:
    def factory(no: int = 1, **fields: Any) -> Ticket:
        payload: dict[str, Any] = {
            'no': no,
            'subject': f'Printer on floor {no} is jammed',
            'body': 'The printer shows error E-12.\nPaper tray was refilled this morning.',
            'customerName': 'Acme Corp',
            'status': '対応中',
            'priority': '中',
            'assignee': 'Sato',
            'createdAt': '2026-10-01',
            'updatedAt': '2026-10-02',
        }
        payload.update(fields)
        return Ticket.model_validate(payload)

    return factory


@pytest.fixture
def asset_root(tmp_path: Path) -> Path:
    root = tmp_path / 'public'
    (root / 'assets').mkdir(parents=True)
    return root


@pytest.fixture
def make_loader(asset_root: Path) -> Callable[..., AssetLoader]:
    """Asset loader whose HTTP side is served from an in-memory route table."""

    def factory(routes: dict[str, tuple[int, bytes]] | None = None, *, base_url: str | None = None) -> AssetLoader:
        table = dict(routes or {})
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            status, body = table.get(str(request.url), (404, b'not found'))
            return httpx.Response(status, content=body)

        loader = AssetLoader(
            AssetConfig(base_url=base_url, root=asset_root, timeout_seconds=5),
            transport=httpx.MockTransport(handler),
        )
        loader.requests = requests  # type: ignore[attr-defined]
        return loader

    return factory


@pytest.fixture
def offline_loader(make_loader: Callable[..., AssetLoader]) -> AssetLoader:
    return make_loader()


@pytest.fixture(scope='session')
def vera_ttf() -> bytes:
    import reportlab

    return (Path(reportlab.__file__).parent / 'fonts' / 'Vera.ttf').read_bytes()
