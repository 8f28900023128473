"""Shared schema base and the response envelope."""

from datetime import datetime, timezone
from typing import Annotated, Any

from fastapi.encoders import jsonable_encoder
from pydantic import AfterValidator, BaseModel
from pydantic.alias_generators import to_camel


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; stored values are always UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]


class CamelModel(BaseModel):
    """Wire format is camelCase; snake_case field names are accepted too."""

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "from_attributes": True,
    }


def ok(data: Any = None, message: str | None = None) -> dict:
    """Success envelope. Pydantic payloads are serialized by alias."""
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json", by_alias=True)
    elif isinstance(data, list):
        data = [
            item.model_dump(mode="json", by_alias=True) if isinstance(item, BaseModel) else item
            for item in data
        ]
    return {"success": True, "data": jsonable_encoder(data), "message": message}


def error_body(error: str) -> dict:
    """Failure envelope."""
    return {"success": False, "error": error, "message": None}
