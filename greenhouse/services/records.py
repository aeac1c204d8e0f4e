"""
Greenhouse Records

Typed records for readings, schedules, alerts and thresholds. All field
defaults are applied here, once, when raw data (API payloads, database rows,
generator output) is ingested.
"""

import logging
from dataclasses import dataclass, field, asdict
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

ZONES = ('A', 'B', 'C', 'D')
UNKNOWN_ZONE = 'Unknown'
UNKNOWN_CROP = 'Unknown'


class WateringStatus(str, Enum):
    PENDING = 'pending'
    IN_PROGRESS = 'in-progress'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'


class PlantingStatus(str, Enum):
    SEEDED = 'seeded'
    GROWING = 'growing'
    HARVESTED = 'harvested'


class Severity(str, Enum):
    HIGH = 'high'
    MEDIUM = 'medium'
    LOW = 'low'


class InvalidTransition(ValueError):
    """Raised when a status change is outside the allowed transition table."""


WATERING_TRANSITIONS = {
    WateringStatus.PENDING: {WateringStatus.IN_PROGRESS, WateringStatus.CANCELLED},
    WateringStatus.IN_PROGRESS: {WateringStatus.COMPLETED},
    WateringStatus.COMPLETED: set(),
    WateringStatus.CANCELLED: set(),
}

PLANTING_TRANSITIONS = {
    PlantingStatus.SEEDED: {PlantingStatus.GROWING},
    PlantingStatus.GROWING: {PlantingStatus.HARVESTED},
    PlantingStatus.HARVESTED: set(),
}


def is_legal_transition(old, new):
    """Check a status change against its transition table.

    Setting a status to its current value is always allowed.
    """
    if old == new:
        return True
    if isinstance(old, WateringStatus) and isinstance(new, WateringStatus):
        return new in WATERING_TRANSITIONS[old]
    if isinstance(old, PlantingStatus) and isinstance(new, PlantingStatus):
        return new in PLANTING_TRANSITIONS[old]
    return False


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------

def utcnow():
    return datetime.now(timezone.utc)


def parse_datetime(value) -> Optional[datetime]:
    """Parse an ISO-8601 string, date or datetime into an aware UTC datetime."""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            logger.debug('Unparseable datetime value: %r', value)
            return None
    else:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_date(value) -> Optional[date]:
    """Parse a date string (or datetime) into a calendar date."""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return parse_datetime(value).date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            dt = parse_datetime(text)
            return dt.date() if dt else None
    return None


def _pick(data, *keys, default=None):
    """Return the first non-empty value among camelCase/snake_case aliases."""
    for key in keys:
        value = data.get(key)
        if value is not None and value != '':
            return value
    return default


def _to_float(value, default=0.0):
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _to_int(value, default=0):
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _to_enum(enum_cls, value, default):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        return default


def _isoformat(value):
    if value is None:
        return None
    return value.isoformat()


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EnvironmentReading:
    temperature: float          # degC
    humidity: float             # %
    soil_moisture: float        # %
    timestamp: datetime
    zone: str = 'A'

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> 'EnvironmentReading':
        return cls(
            temperature=_to_float(data.get('temperature')),
            humidity=_to_float(data.get('humidity')),
            soil_moisture=_to_float(_pick(data, 'soil_moisture', 'soilMoisture')),
            timestamp=parse_datetime(data.get('timestamp')) or utcnow(),
            zone=str(data.get('zone') or 'A'),
        )

    @classmethod
    def from_row(cls, row) -> 'EnvironmentReading':
        return cls(
            temperature=row.temperature,
            humidity=row.humidity,
            soil_moisture=row.soil_moisture,
            timestamp=parse_datetime(row.timestamp) or utcnow(),
            zone=row.zone or 'A',
        )

    def to_dict(self):
        return {
            'temperature': self.temperature,
            'humidity': self.humidity,
            'soil_moisture': self.soil_moisture,
            'timestamp': _isoformat(self.timestamp),
            'zone': self.zone,
        }


@dataclass
class WateringSchedule:
    id: Optional[str]
    zone: str
    time: Optional[datetime]
    duration: str = '15min'
    status: WateringStatus = WateringStatus.PENDING

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> 'WateringSchedule':
        record_id = data.get('id')
        return cls(
            id=str(record_id) if record_id is not None else None,
            zone=str(data.get('zone') or UNKNOWN_ZONE),
            time=parse_datetime(data.get('time')),
            duration=str(data.get('duration') or '15min'),
            status=_to_enum(WateringStatus, data.get('status'), WateringStatus.PENDING),
        )

    @classmethod
    def from_row(cls, row) -> 'WateringSchedule':
        return cls(
            id=row.id,
            zone=row.zone or UNKNOWN_ZONE,
            time=parse_datetime(row.time),
            duration=row.duration or '15min',
            status=_to_enum(WateringStatus, row.status, WateringStatus.PENDING),
        )

    def to_dict(self):
        return {
            'id': self.id,
            'zone': self.zone,
            'time': _isoformat(self.time),
            'duration': self.duration,
            'status': self.status.value,
        }


@dataclass
class PlantingSchedule:
    id: Optional[str]
    crop: str
    zone: str
    planted_date: Optional[date]
    harvest_date: Optional[date]
    status: PlantingStatus = PlantingStatus.SEEDED
    quantity: int = 0

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> 'PlantingSchedule':
        record_id = data.get('id')
        return cls(
            id=str(record_id) if record_id is not None else None,
            crop=str(data.get('crop') or UNKNOWN_CROP),
            zone=str(data.get('zone') or UNKNOWN_ZONE),
            planted_date=parse_date(_pick(data, 'planted_date', 'plantedDate')),
            harvest_date=parse_date(_pick(data, 'harvest_date', 'harvestDate')),
            status=_to_enum(PlantingStatus, data.get('status'), PlantingStatus.SEEDED),
            quantity=_to_int(data.get('quantity')),
        )

    @classmethod
    def from_row(cls, row) -> 'PlantingSchedule':
        return cls(
            id=row.id,
            crop=row.crop or UNKNOWN_CROP,
            zone=row.zone or UNKNOWN_ZONE,
            planted_date=parse_date(row.planted_date),
            harvest_date=parse_date(row.harvest_date),
            status=_to_enum(PlantingStatus, row.status, PlantingStatus.SEEDED),
            quantity=row.quantity or 0,
        )

    def to_dict(self):
        return {
            'id': self.id,
            'crop': self.crop,
            'zone': self.zone,
            'planted_date': _isoformat(self.planted_date),
            'harvest_date': _isoformat(self.harvest_date),
            'status': self.status.value,
            'quantity': self.quantity,
        }


@dataclass(frozen=True)
class AlertDraft:
    """An alert creation request produced by the rule evaluator."""
    type: str
    message: str
    severity: Severity
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Alert:
    id: str
    type: str
    message: str
    severity: Severity
    timestamp: datetime
    read: bool = False

    @classmethod
    def from_row(cls, row) -> 'Alert':
        return cls(
            id=row.id,
            type=row.type,
            message=row.message,
            severity=_to_enum(Severity, row.severity, Severity.MEDIUM),
            timestamp=parse_datetime(row.timestamp) or utcnow(),
            read=bool(row.read),
        )

    def to_dict(self):
        return {
            'id': self.id,
            'type': self.type,
            'message': self.message,
            'severity': self.severity.value,
            'timestamp': _isoformat(self.timestamp),
            'read': self.read,
        }


DEFAULT_TEMP_LIMIT = 35.0
DEFAULT_HUMIDITY_LIMIT = 80.0
DEFAULT_MOISTURE_LIMIT = 40.0


@dataclass(frozen=True)
class Thresholds:
    temp_limit: float = DEFAULT_TEMP_LIMIT
    humidity_limit: float = DEFAULT_HUMIDITY_LIMIT
    moisture_limit: float = DEFAULT_MOISTURE_LIMIT

    @classmethod
    def from_mapping(cls, data: Optional[Dict[str, Any]]) -> 'Thresholds':
        if not data:
            return cls()
        return cls(
            temp_limit=_to_float(_pick(data, 'temp_limit', 'tempLimit'), DEFAULT_TEMP_LIMIT),
            humidity_limit=_to_float(_pick(data, 'humidity_limit', 'humidityLimit'), DEFAULT_HUMIDITY_LIMIT),
            moisture_limit=_to_float(_pick(data, 'moisture_limit', 'moistureLimit'), DEFAULT_MOISTURE_LIMIT),
        )

    def to_dict(self):
        return asdict(self)
