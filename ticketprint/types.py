from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class TicketStatus(str, Enum):
    received = '受付'
    in_progress = '対応中'
    done = '完了'


class TicketPriority(str, Enum):
    high = '高'
    medium = '中'
    low = '低'


class LayoutMode(str, Enum):
    list = 'list'
    detail = 'detail'


def _coerce_text(value: Any) -> str:
    if value is None:
        return ''
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


class Ticket(BaseModel):
    """A ticket record as supplied by the record source.

    Validation belongs to the record source; this model only coerces missing
    text fields to empty strings so the renderer never sees ``None``.
    """

    model_config = ConfigDict(frozen=True, extra='ignore')

    no: int
    subject: str = ''
    body: str = ''
    customer_name: str = Field(
        default='',
        validation_alias=AliasChoices('customer_name', 'customerName'),
    )
    status: str = ''
    priority: str = ''
    assignee: str | None = None
    created_at: str = Field(
        default='',
        validation_alias=AliasChoices('created_at', 'createdAt'),
    )
    updated_at: str = Field(
        default='',
        validation_alias=AliasChoices('updated_at', 'updatedAt'),
    )

    @field_validator(
        'subject',
        'body',
        'customer_name',
        'status',
        'priority',
        'created_at',
        'updated_at',
        mode='before',
    )
    @classmethod
    def _text_or_empty(cls, value: Any) -> str:
        return _coerce_text(value)

    @field_validator('assignee', mode='before')
    @classmethod
    def _optional_text(cls, value: Any) -> str | None:
        if value is None:
            return None
        return _coerce_text(value)


class RenderOptions(BaseModel):
    model_config = ConfigDict(frozen=True, extra='ignore')

    layout: LayoutMode = LayoutMode.list
    title: str | None = None
    app_title: str = Field(default='', validation_alias=AliasChoices('app_title', 'appTitle'))
    filename: str | None = None
    font_url: str | None = Field(default=None, validation_alias=AliasChoices('font_url', 'fontUrl'))
    logo_url: str | None = Field(default=None, validation_alias=AliasChoices('logo_url', 'logoUrl'))
    stamp_url: str | None = Field(default=None, validation_alias=AliasChoices('stamp_url', 'stampUrl'))

    @field_validator('app_title', mode='before')
    @classmethod
    def _app_title_or_empty(cls, value: Any) -> str:
        return _coerce_text(value)
