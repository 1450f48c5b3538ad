# water_chemistry/services/records.py
import logging
import math
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel

from water_chemistry.errors import ForbiddenError, NotFoundError, ValidationError
from water_chemistry.schemas import ChemistryRecord, RecordIn, WaterReading
from water_chemistry.storage import DATA_COLUMNS, RecordStore

logger = logging.getLogger(__name__)

NUMERIC_FIELDS = (
    "ph",
    "ammonia",
    "nitrite",
    "nitrate",
    "dissolved_oxygen",
    "water_temperature",
    "confidence",
)
NON_NEGATIVE_FIELDS = ("ammonia", "nitrite", "nitrate", "dissolved_oxygen")

Payload = Union[WaterReading, RecordIn, Mapping[str, Any]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_record_date(value: Any) -> str:
    """Returns the ISO date string or raises ValidationError."""
    if value is None or value == "":
        raise ValidationError("Record date is required")
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    try:
        return date.fromisoformat(str(value).strip()).isoformat()
    except ValueError:
        raise ValidationError(f"Invalid date format: {value!r}")


def _number(name: str, value: Any) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be a number")
    try:
        x = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a number, got {value!r}")
    if not math.isfinite(x):
        raise ValidationError(f"{name} must be a finite number")
    if name in NON_NEGATIVE_FIELDS and x < 0:
        raise ValidationError(f"{name} cannot be negative")
    if name == "confidence" and not 0.0 <= x <= 1.0:
        raise ValidationError("confidence must be between 0 and 1")
    return x


def to_celsius(value: Optional[float], unit: Any) -> Optional[float]:
    if unit not in ("C", "F"):
        raise ValidationError(f"temperature_unit must be 'C' or 'F', got {unit!r}")
    if value is None or unit == "C":
        return value
    return (value - 32.0) * 5.0 / 9.0


def validate_fields(payload: Payload, require_date: bool = True) -> Dict[str, Any]:
    """
    Validates the fields the caller provided and returns them normalised,
    with water_temperature in Celsius. Nothing here touches storage.
    """
    if isinstance(payload, BaseModel):
        raw = payload.model_dump(exclude_unset=True)
    else:
        raw = dict(payload)

    unit = raw.pop("temperature_unit", "C")

    unknown = set(raw) - set(DATA_COLUMNS)
    if unknown:
        raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")

    fields: Dict[str, Any] = {}
    if require_date or "record_date" in raw:
        fields["record_date"] = parse_record_date(raw.get("record_date"))

    for name in NUMERIC_FIELDS:
        if name in raw:
            fields[name] = _number(name, raw[name])

    if "water_temperature" in fields:
        fields["water_temperature"] = to_celsius(fields["water_temperature"], unit)

    if "notes" in raw:
        notes = raw["notes"]
        if notes is not None and not isinstance(notes, str):
            raise ValidationError("notes must be text")
        fields["notes"] = notes

    return fields


class RecordService:
    """
    Daily chemistry records, one per owner per date.
    Every call is scoped by owner and needs an explicit store timeout.
    """

    def __init__(self, store: RecordStore, clock: Callable[[], datetime] = _utcnow):
        self.store = store
        self.clock = clock

    def _now(self) -> str:
        return self.clock().isoformat(timespec="microseconds")

    def save(self, owner_id: str, payload: Payload, *, timeout: float) -> Tuple[ChemistryRecord, bool]:
        fields = validate_fields(payload, require_date=True)
        record_date = fields.pop("record_date")

        row, was_insert = self.store.upsert(owner_id, record_date, fields, self._now(), timeout=timeout)
        logger.info(
            "%s water chemistry record %s for owner=%s date=%s",
            "Inserted" if was_insert else "Updated", row["id"], owner_id, record_date,
        )
        return ChemistryRecord(**row), was_insert

    def list_records(self, owner_id: str, *, timeout: float, record_date: Optional[Any] = None,
                     parameter: Optional[str] = None, search: Optional[str] = None) -> List[ChemistryRecord]:
        if record_date:
            record_date = parse_record_date(record_date)
        rows = self.store.list(
            owner_id,
            timeout=timeout,
            record_date=record_date or None,
            parameter=parameter or None,
            search=search or None,
        )
        return [ChemistryRecord(**r) for r in rows]

    def _owned(self, owner_id: str, record_id: int, timeout: float) -> Dict:
        row = self.store.get(record_id, timeout=timeout)
        if row is None:
            raise NotFoundError(f"Record {record_id} not found")
        if row["owner_id"] != owner_id:
            logger.warning("Owner %s denied access to record %s", owner_id, record_id)
            raise ForbiddenError("Access denied")
        return row

    def get_record(self, owner_id: str, record_id: int, *, timeout: float) -> ChemistryRecord:
        return ChemistryRecord(**self._owned(owner_id, record_id, timeout))

    def update_record(self, owner_id: str, record_id: int, payload: Payload, *, timeout: float) -> ChemistryRecord:
        fields = validate_fields(payload, require_date=False)
        self._owned(owner_id, record_id, timeout)

        row = self.store.update(record_id, fields, self._now(), timeout=timeout)
        logger.info("Updated water chemistry record %s for owner=%s", record_id, owner_id)
        return ChemistryRecord(**row)

    def delete_record(self, owner_id: str, record_id: int, *, timeout: float) -> None:
        self._owned(owner_id, record_id, timeout)

        if not self.store.delete(record_id, timeout=timeout):
            # removed between the ownership check and the delete
            raise NotFoundError(f"Record {record_id} not found")
        logger.info("Deleted water chemistry record %s for owner=%s", record_id, owner_id)
