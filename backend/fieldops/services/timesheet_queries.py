"""Read-side queries over timesheet entries (per-day, per-range, latest per employee)."""

from collections import Counter
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from fieldops.models.timesheet import TimesheetEntry

MAX_ROWS = 2000


def day_bounds(d: date) -> tuple[datetime, datetime]:
    start = datetime.combine(d, time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)


def _clock_in_between(start: datetime, end: datetime):
    return and_(TimesheetEntry.clock_in_time >= start, TimesheetEntry.clock_in_time < end)


def _range_filter(q, on: Optional[date], start: Optional[date], end: Optional[date]):
    if on:
        return q.filter(_clock_in_between(*day_bounds(on)))
    if start and end:
        return q.filter(_clock_in_between(day_bounds(start)[0], day_bounds(end)[1]))
    return q


def list_for_employee_range(
    db: Session,
    employee_id,
    on: Optional[date] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> list[TimesheetEntry]:
    q = db.query(TimesheetEntry).filter(TimesheetEntry.employee_id == employee_id)
    q = _range_filter(q, on, start, end)
    return q.order_by(TimesheetEntry.clock_in_time.desc()).limit(MAX_ROWS).all()


def list_for_employee_day(
    db: Session,
    employee_id,
    on: Optional[date],
    include_all: bool = False,
    branch_id=None,
) -> list[TimesheetEntry]:
    """Entries clocked in OR clocked out on the given day (today when on is None)."""
    q = db.query(TimesheetEntry).filter(TimesheetEntry.employee_id == employee_id)
    if branch_id:
        q = q.filter(TimesheetEntry.branch_id == branch_id)
    if not include_all:
        day_start, day_end = day_bounds(on or datetime.now(timezone.utc).date())
        q = q.filter(or_(
            _clock_in_between(day_start, day_end),
            and_(TimesheetEntry.clock_out_time >= day_start, TimesheetEntry.clock_out_time < day_end),
        ))
    return q.order_by(TimesheetEntry.clock_in_time.desc()).limit(MAX_ROWS).all()


def list_all(
    db: Session,
    on: Optional[date] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    branch_id=None,
) -> list[TimesheetEntry]:
    q = db.query(TimesheetEntry)
    if branch_id:
        q = q.filter(TimesheetEntry.branch_id == branch_id)
    q = _range_filter(q, on, start, end)
    return q.order_by(TimesheetEntry.clock_in_time.desc()).limit(MAX_ROWS).all()


def latest_per_employee(entries: list[TimesheetEntry]) -> list[TimesheetEntry]:
    """Keep the most recent clock-in per employee. Input must be sorted newest first."""
    latest = {}
    for entry in entries:
        latest.setdefault(entry.employee_id, entry)
    return list(latest.values())


def session_counts(entries: list[TimesheetEntry]) -> Counter:
    return Counter(str(e.employee_id) for e in entries)


def pending_edits(db: Session, branch_id=None) -> list[TimesheetEntry]:
    q = db.query(TimesheetEntry).filter(TimesheetEntry.status == "pending_approval")
    if branch_id:
        q = q.filter(TimesheetEntry.branch_id == branch_id)
    return q.order_by(TimesheetEntry.clock_in_time.desc()).all()


def total_minutes_on(db: Session, employee_id, on: date) -> int:
    entries = list_for_employee_range(db, employee_id, on=on)
    return sum(e.total_duration_minutes or 0 for e in entries)
