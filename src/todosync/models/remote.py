"""
Wire shapes for the remote to-do service.

The remote side speaks camelCase JSON with ISO-8601 UTC timestamps. Parsed
timestamps are normalized to naive UTC so they compare directly against the
naive UTC values stored locally.
"""
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class _RemoteModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class RemoteList(_RemoteModel):
    id: int
    name: str
    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at")
    @classmethod
    def naive_utc(cls, value: datetime) -> datetime:
        return _to_naive_utc(value)


class RemoteItem(_RemoteModel):
    id: int
    title: str
    description: Optional[str] = None
    is_completed: bool = False
    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at")
    @classmethod
    def naive_utc(cls, value: datetime) -> datetime:
        return _to_naive_utc(value)


class CreateRemoteList(_RemoteModel):
    name: str


class UpdateRemoteList(_RemoteModel):
    name: str


class CreateRemoteItem(_RemoteModel):
    title: str
    description: Optional[str] = None
    is_completed: bool = False


class UpdateRemoteItem(_RemoteModel):
    title: Optional[str] = None
    description: Optional[str] = None
    is_completed: Optional[bool] = None
