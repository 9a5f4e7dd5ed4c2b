import pytest

from fieldops.models.app_setting import AppSetting
from fieldops.seed import seed_settings
from fieldops.services.hours import HoursSettings
from fieldops.services.tracker_settings import (
    TrackerSettings,
    load_hours_settings,
    load_tracker_settings,
    update_settings,
)


def test_defaults_when_nothing_is_stored(db):
    assert load_tracker_settings(db) == TrackerSettings()
    assert load_hours_settings(db) == HoursSettings()


def test_seeded_rows_match_defaults(db):
    assert seed_settings(db) > 0
    db.commit()
    assert load_tracker_settings(db) == TrackerSettings()
    assert load_hours_settings(db) == HoursSettings()
    assert seed_settings(db) == 0


def test_update_and_reload(db):
    update_settings(
        db,
        tracker={"require_photo_clock_out": True, "alarm_minutes_before": 10},
        hours={"regular_hours_per_day": 7.5, "non_payable_overtime_hours": 1, "tracking_interval_minutes": 0},
    )
    tracker = load_tracker_settings(db)
    hours = load_hours_settings(db)
    assert tracker.require_photo_clock_out is True
    assert tracker.alarm_minutes_before == 10
    assert hours.regular_hours_per_day == 7.5
    assert hours.non_payable_overtime_hours == 1.0
    assert hours.tracking_interval_minutes == 0

    row = db.query(AppSetting).filter(AppSetting.setting_key == "timesheet_require_photo_clock_out").one()
    assert (row.setting_value, row.setting_type) == ("true", "boolean")


def test_unknown_and_negative_values_are_rejected(db):
    with pytest.raises(ValueError):
        update_settings(db, tracker={"nope": True})
    db.rollback()
    with pytest.raises(ValueError):
        update_settings(db, hours={"overtime_multiplier": -1})


def test_zero_regular_hours_falls_back_to_default(db):
    update_settings(db, hours={"regular_hours_per_day": 0, "non_payable_overtime_hours": 2})
    hours = load_hours_settings(db)
    assert hours.regular_hours_per_day == 8.0
    assert hours.non_payable_overtime_hours == 2.0


def test_unparsable_row_is_ignored(db):
    db.add(AppSetting(setting_key="timesheet_hours_overtime_multiplier", setting_value="lots", setting_type="number"))
    db.commit()
    assert load_hours_settings(db).overtime_multiplier == 1.5
