"""
Record model shared by both stores and the repository facade.

A record is generic over its fields: only ``id`` and the two timestamps
are structural. Everything else lives in ``data``. ``source`` tells which
store produced the record on this particular read.
"""

import logging
from datetime import date, datetime, timezone
from typing import Any, ClassVar

from pydantic import BaseModel, Field

from debtdesk.domain.models.enums import RecordSource

logger = logging.getLogger(__name__)

FIELD_ALIASES = {
    "created_date": "created_at",
    "updated_date": "updated_at",
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO string or datetime into an aware UTC datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return None


class Record(BaseModel):
    """One instance of an entity, tagged with its provenance."""

    CORE_FIELDS: ClassVar[tuple[str, ...]] = ("id", "created_at", "updated_at")

    entity: str
    id: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    data: dict[str, Any] = Field(default_factory=dict)
    source: RecordSource

    def get(self, name: str, default: Any = None) -> Any:
        name = FIELD_ALIASES.get(name, name)
        if name in self.CORE_FIELDS:
            value = getattr(self, name)
            return default if value is None else value
        return self.data.get(name, default)

    def __getitem__(self, name: str) -> Any:
        name = FIELD_ALIASES.get(name, name)
        if name in self.CORE_FIELDS:
            return getattr(self, name)
        return self.data[name]

    def __contains__(self, name: str) -> bool:
        name = FIELD_ALIASES.get(name, name)
        return name in self.CORE_FIELDS or name in self.data

    def to_storage(self) -> dict[str, Any]:
        """Flat mapping as written to either store."""
        result = dict(self.data)
        result["id"] = self.id
        result["created_at"] = self.created_at.isoformat() if self.created_at else None
        result["updated_at"] = self.updated_at.isoformat() if self.updated_at else None
        return result

    def to_dict(self) -> dict[str, Any]:
        """Flat mapping for callers, including provenance."""
        result = self.to_storage()
        result["_source"] = self.source.value
        return result

    def merged(self, fields: dict[str, Any], updated_at: datetime) -> "Record":
        """Copy with ``fields`` merged into data and ``updated_at`` bumped."""
        data = dict(self.data)
        data.update({k: v for k, v in fields.items() if k not in self.CORE_FIELDS})
        if self.created_at and updated_at < self.created_at:
            updated_at = self.created_at
        return self.model_copy(update={"data": data, "updated_at": updated_at})

    @classmethod
    def from_dict(
        cls,
        entity: str,
        payload: dict[str, Any],
        source: RecordSource,
    ) -> "Record":
        """Build a record from a flat mapping returned by a store."""
        data = {k: v for k, v in payload.items() if k not in cls.CORE_FIELDS and k != "_source"}
        created_raw = payload.get("created_at", data.pop("created_date", None))
        updated_raw = payload.get("updated_at", data.pop("updated_date", None))

        created_at = parse_timestamp(created_raw)
        updated_at = parse_timestamp(updated_raw)
        if created_raw and created_at is None:
            logger.warning(f"Unparseable created_at on {entity}/{payload.get('id')}: {created_raw!r}")

        return cls(
            entity=entity,
            id=str(payload["id"]),
            created_at=created_at,
            updated_at=updated_at,
            data=data,
            source=source,
        )
