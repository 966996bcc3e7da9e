"""Decode/encode boundary between stored documents and typed entities.

Documents keep camelCase field names and store-native timestamps (integer
epoch milliseconds). Entities are pydantic models with snake_case attributes
and timezone aware UTC datetimes. Nothing outside this module converts
between the two.
"""
import enum
from datetime import datetime, timezone
from typing import Annotated, Any, ClassVar, Dict

from pydantic import BaseModel, BeforeValidator, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from taskboard.core.exceptions import InvalidInputError, MalformedRecordError
from taskboard.db.store import DocumentSnapshot


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def to_store_timestamp(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp() * 1000)


def from_store_timestamp(value: Any) -> datetime:
    if isinstance(value, bool):
        raise ValueError("boolean is not a timestamp")
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    if isinstance(value, str):
        # Старые записи могут хранить ISO строку с 'Z'
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    raise ValueError(f"unsupported timestamp value {value!r}")


StoreDatetime = Annotated[datetime, BeforeValidator(from_store_timestamp)]


def encode_value(value: Any) -> Any:
    """Convert entity values into store-native values"""
    if isinstance(value, datetime):
        return to_store_timestamp(value)
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, BaseModel):
        return encode_value(value.model_dump(by_alias=True, exclude_none=True))
    if isinstance(value, dict):
        return {key: encode_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [encode_value(item) for item in value]
    return value


class StoreModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    __collection__: ClassVar[str] = ""
    # Fields that may not be changed through update()
    __immutable__: ClassVar[tuple] = ("id",)

    @classmethod
    def from_snapshot(cls, snapshot: DocumentSnapshot):
        try:
            return cls.model_validate({**snapshot.data, "id": snapshot.id})
        except ValidationError as e:
            error = e.errors()[0]
            location = ".".join(str(part) for part in error["loc"])
            raise MalformedRecordError(
                snapshot.collection, snapshot.id, f"{location}: {error['msg']}"
            ) from e

    def to_document(self) -> Dict[str, Any]:
        return encode_value(self.model_dump(by_alias=True, exclude={"id"}, exclude_none=True))

    @classmethod
    def encode_fields(cls, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Translate a partial update keyed by attribute names into store fields"""
        encoded = {}
        for name, value in fields.items():
            if name not in cls.model_fields or name in cls.__immutable__:
                raise InvalidInputError(f"Field '{name}' cannot be updated")
            alias = cls.model_fields[name].alias or name
            encoded[alias] = encode_value(value)
        return encoded
