"""Time tracker settings stored as AppSetting rows (timesheet_* keys)."""

import logging
from dataclasses import dataclass, asdict, fields
from typing import Optional

from sqlalchemy.orm import Session

from fieldops.models.app_setting import AppSetting
from fieldops.services.hours import HoursSettings

logger = logging.getLogger(__name__)

SETTING_PREFIX = "timesheet_"
HOURS_PREFIX = "timesheet_hours_"


@dataclass(frozen=True)
class TrackerSettings:
    track_gps: bool = True
    require_photo_clock_in: bool = False
    require_photo_clock_out: bool = False
    require_photo_switch: bool = False
    alarm_enabled: bool = True
    alarm_minutes_before: int = 5


# ---------- parsing ----------

def _parse_value(row: AppSetting):
    raw = row.setting_value
    if row.setting_type == "boolean":
        return str(raw).strip().lower() == "true"
    if row.setting_type == "number":
        return float(raw)
    return raw


def _coerce(field_type, value):
    if field_type in (bool, "bool"):
        if isinstance(value, str):
            return value.strip().lower() == "true"
        return bool(value)
    if field_type in (int, "int"):
        return int(float(value))
    if field_type in (float, "float"):
        return float(value)
    return value


def _build(cls, values: dict):
    kwargs = {}
    for f in fields(cls):
        if f.name not in values:
            continue
        try:
            kwargs[f.name] = _coerce(f.type, values[f.name])
        except (TypeError, ValueError):
            logger.warning("Ignoring unparsable setting %s=%r", f.name, values[f.name])
    return cls(**kwargs)


def _rows(db: Session) -> list[AppSetting]:
    return db.query(AppSetting).filter(AppSetting.setting_key.like(f"{SETTING_PREFIX}%")).all()


def _values(db: Session) -> tuple[dict, dict]:
    tracker, hours = {}, {}
    for row in _rows(db):
        try:
            value = _parse_value(row)
        except (TypeError, ValueError):
            logger.warning("Ignoring unparsable setting %s=%r", row.setting_key, row.setting_value)
            continue
        if row.setting_key.startswith(HOURS_PREFIX):
            hours[row.setting_key[len(HOURS_PREFIX):]] = value
        else:
            tracker[row.setting_key[len(SETTING_PREFIX):]] = value
    return tracker, hours


# ---------- public ----------

def load_tracker_settings(db: Session) -> TrackerSettings:
    tracker, _ = _values(db)
    return _build(TrackerSettings, tracker)


def load_hours_settings(db: Session) -> HoursSettings:
    _, hours = _values(db)
    settings = _build(HoursSettings, hours)
    # a zero or negative working day would put every minute into overtime
    if settings.regular_hours_per_day <= 0:
        logger.warning("regular_hours_per_day=%s is not positive, using default", settings.regular_hours_per_day)
        settings = HoursSettings(
            non_payable_overtime_hours=settings.non_payable_overtime_hours,
            overtime_multiplier=settings.overtime_multiplier,
            tracking_interval_minutes=settings.tracking_interval_minutes,
        )
    if settings.non_payable_overtime_hours < 0:
        settings = HoursSettings(
            regular_hours_per_day=settings.regular_hours_per_day,
            overtime_multiplier=settings.overtime_multiplier,
            tracking_interval_minutes=settings.tracking_interval_minutes,
        )
    return settings


def settings_payload(db: Session) -> dict:
    return {
        "tracker": asdict(load_tracker_settings(db)),
        "hours": asdict(load_hours_settings(db)),
    }


def _setting_type(value) -> str:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    return "string"


def _upsert(db: Session, key: str, value, description: Optional[str] = None):
    row = db.query(AppSetting).filter(AppSetting.setting_key == key).first()
    setting_type = _setting_type(value)
    text = str(value).lower() if isinstance(value, bool) else str(value)
    if row is None:
        row = AppSetting(setting_key=key, setting_value=text, setting_type=setting_type, description=description)
        db.add(row)
    else:
        row.setting_value = text
        row.setting_type = setting_type
    return row


def update_settings(db: Session, tracker: Optional[dict] = None, hours: Optional[dict] = None) -> dict:
    """Upsert the given tracker/hours values. Unknown keys are rejected with ValueError."""
    tracker_names = {f.name for f in fields(TrackerSettings)}
    hours_names = {f.name for f in fields(HoursSettings)}

    for name, value in (tracker or {}).items():
        if name not in tracker_names:
            raise ValueError(f"Unknown tracker setting: {name}")
        _upsert(db, f"{SETTING_PREFIX}{name}", value)

    for name, value in (hours or {}).items():
        if name not in hours_names:
            raise ValueError(f"Unknown hours setting: {name}")
        if value is None or float(value) < 0:
            raise ValueError(f"{name} must be a non-negative number")
        _upsert(db, f"{HOURS_PREFIX}{name}", value)

    db.commit()
    return settings_payload(db)
