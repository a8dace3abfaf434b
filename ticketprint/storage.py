from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .config import get_settings
from .types import Ticket


def export_dir() -> Path:
    root = get_settings().export_dir
    root.mkdir(parents=True, exist_ok=True)
    return root


def export_path(filename: str, out_dir: Path | None = None) -> Path:
    name = Path(str(filename or '').strip()).name
    if not name:
        raise ValueError('filename is required')
    root = out_dir if out_dir is not None else export_dir()
    return root / name


def write_bytes_atomic(path: Path, content: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + '.tmp')
    tmp.write_bytes(content)
    tmp.replace(path)


def read_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding='utf-8'))


def parse_tickets(payload: Any) -> list[Ticket]:
    if isinstance(payload, dict):
        payload = payload.get('tickets')
    if not isinstance(payload, list):
        raise ValueError('expected a list of tickets or an object with a "tickets" list')

    tickets: list[Ticket] = []
    for index, item in enumerate(payload):
        try:
            tickets.append(Ticket.model_validate(item))
        except ValidationError as exc:
            raise ValueError(f'invalid ticket at index {index}: {exc}') from exc
    return tickets


def read_tickets(path: Path) -> list[Ticket]:
    return parse_tickets(read_json(path))
