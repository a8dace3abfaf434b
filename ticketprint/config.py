from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore',
    )

    app_name: str = 'ticketprint'

    # Asset store. Rooted asset paths ("/assets/...") are fetched from
    # asset_base_url when it is set, otherwise read from asset_root.
    asset_base_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices('TICKETPRINT_ASSET_BASE_URL', 'ASSET_BASE_URL'),
    )
    asset_root: Path = Field(default=Path('./public'))
    asset_timeout_seconds: float = 15.0

    # PDF export
    pdf_default_font_url: str = '/assets/fonts/NotoSansJP-Regular.ttf'
    pdf_fallback_font: str = 'Helvetica'
    pdf_list_title: str = 'Ticket List'
    pdf_detail_title: str = 'Ticket Detail'
    pdf_author: str = 'ticketprint'

    # CLI
    export_dir: Path = Field(default=Path('./exports'))
    log_level: str = 'INFO'


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
