"""Base Pydantic model for tracking records stored in DynamoDB.

Every record lives in one table. Subclasses provide their key layout via
``get_pk``/``get_sk`` and, when they appear in a time-ordered listing,
``get_gsi_keys``.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Self

from pydantic import BaseModel as PydanticBaseModel, ConfigDict, Field
from ulid import ULID


def generate_ulid() -> str:
    """Generate a new ULID string."""
    return str(ULID())


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)


def to_iso(value: datetime) -> str:
    """Render a datetime as a fixed-width UTC ISO string.

    Sort keys embed these strings, so every timestamp written to the table
    must go through here to keep lexicographic and temporal order aligned.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


class BaseModel(PydanticBaseModel):
    """Record with a ULID, timestamps and an optimistic-locking version."""

    model_config = ConfigDict(
        populate_by_name=True,
        use_enum_values=True,
        validate_assignment=True,
    )

    id: str = Field(default_factory=generate_ulid)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    version: int = Field(default=1, description="Bumped on every versioned update")

    def to_dynamodb(self) -> dict[str, Any]:
        """Serialize to a DynamoDB item, dropping None values."""
        return self._to_attribute(self.model_dump(by_alias=False))

    @classmethod
    def _to_attribute(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {k: cls._to_attribute(v) for k, v in value.items() if v is not None}
        if isinstance(value, list):
            return [cls._to_attribute(v) for v in value]
        if isinstance(value, datetime):
            return to_iso(value)
        if isinstance(value, float):
            # boto3 rejects floats
            return Decimal(str(value))
        return value

    @classmethod
    def from_dynamodb(cls, item: dict[str, Any]) -> Self:
        """Build a model from a DynamoDB item.

        Key attributes (PK, SK, GSI keys) are not model fields and are
        dropped by validation. Timestamp strings are left for pydantic to
        parse, since only the model knows which fields hold datetimes.
        """
        return cls.model_validate(cls._from_attribute(item))

    @classmethod
    def _from_attribute(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {k: cls._from_attribute(v) for k, v in value.items()}
        if isinstance(value, list):
            return [cls._from_attribute(v) for v in value]
        if isinstance(value, Decimal):
            return int(value) if value == value.to_integral_value() else float(value)
        return value

    def get_pk(self) -> str:
        raise NotImplementedError(f"{type(self).__name__} does not define a partition key")

    def get_sk(self) -> str:
        raise NotImplementedError(f"{type(self).__name__} does not define a sort key")

    def get_keys(self) -> dict[str, str]:
        """Primary key attributes of this record."""
        return {"PK": self.get_pk(), "SK": self.get_sk()}

    def get_gsi_keys(self) -> dict[str, str] | None:
        """Secondary index attributes, or None for records that are not listed."""
        return None

    def touch(self) -> None:
        """Stamp updated_at with the current time."""
        self.updated_at = utc_now()

    def bump_version(self) -> None:
        self.version += 1
