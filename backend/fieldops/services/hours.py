"""
Regular / overtime split for timesheets.

Given R = regular_hours_per_day and N = non_payable_overtime_hours:

    hours <= R          -> all regular
    R < hours <= R + N  -> R regular, the rest non-paid overtime
    hours > R + N       -> R regular, N non-paid overtime, the rest paid overtime

Finalized timesheets carry the split cached at clock-out; active ones are
computed on the fly from the elapsed time.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from fieldops.services.timeutil import elapsed_minutes, utcnow


@dataclass(frozen=True)
class HoursSettings:
    regular_hours_per_day: float = 8.0
    non_payable_overtime_hours: float = 0.0
    overtime_multiplier: float = 1.5
    tracking_interval_minutes: int = 30


@dataclass(frozen=True)
class HoursBreakdown:
    total_minutes: int
    regular_hours: float
    overtime_hours_non_paid: float
    overtime_hours_paid: float

    @property
    def total_hours(self) -> float:
        return self.total_minutes / 60

    def payable_hours(self, multiplier: float) -> float:
        return self.regular_hours + self.overtime_hours_paid * multiplier

    def as_columns(self) -> dict:
        """Values for the cached *_calculated columns on TimesheetEntry."""
        return {
            "total_duration_minutes": self.total_minutes,
            "regular_hours_calculated": self.regular_hours,
            "overtime_hours_non_paid_calculated": self.overtime_hours_non_paid,
            "overtime_hours_paid_calculated": self.overtime_hours_paid,
        }


def split_hours(hours: float, regular_per_day: float, non_payable: float) -> tuple[float, float, float]:
    """Return (regular, non_paid_ot, paid_ot) for a number of hours."""
    if hours <= regular_per_day:
        return hours, 0.0, 0.0

    extra = hours - regular_per_day
    if extra <= non_payable:
        return regular_per_day, extra, 0.0
    return regular_per_day, non_payable, extra - non_payable


def calculate_hours(total_minutes: int, settings: HoursSettings) -> HoursBreakdown:
    minutes = max(int(total_minutes or 0), 0)
    regular, non_paid, paid = split_hours(
        minutes / 60,
        settings.regular_hours_per_day,
        settings.non_payable_overtime_hours,
    )
    return HoursBreakdown(
        total_minutes=minutes,
        regular_hours=regular,
        overtime_hours_non_paid=non_paid,
        overtime_hours_paid=paid,
    )


def hours_for_timesheet(entry, settings: HoursSettings, now: Optional[datetime] = None) -> HoursBreakdown:
    if not entry.is_active and entry.regular_hours_calculated is not None:
        return HoursBreakdown(
            total_minutes=entry.total_duration_minutes or 0,
            regular_hours=entry.regular_hours_calculated or 0.0,
            overtime_hours_non_paid=entry.overtime_hours_non_paid_calculated or 0.0,
            overtime_hours_paid=entry.overtime_hours_paid_calculated or 0.0,
        )

    if entry.is_active and entry.clock_in_time:
        minutes = elapsed_minutes(entry.clock_in_time, now or utcnow())
    else:
        minutes = entry.total_duration_minutes or 0
    return calculate_hours(minutes, settings)


@dataclass
class EmployeeDayTotals:
    employee_id: str
    sessions: int = 0
    total_minutes: int = 0
    regular_hours: float = 0.0
    overtime_hours_non_paid: float = 0.0
    overtime_hours_paid: float = 0.0
    is_working: bool = False

    def add(self, breakdown: HoursBreakdown, active: bool):
        self.sessions += 1
        self.total_minutes += breakdown.total_minutes
        self.regular_hours += breakdown.regular_hours
        self.overtime_hours_non_paid += breakdown.overtime_hours_non_paid
        self.overtime_hours_paid += breakdown.overtime_hours_paid
        self.is_working = self.is_working or active


def summarize_day(entries: Iterable, settings: HoursSettings, now: Optional[datetime] = None) -> list[EmployeeDayTotals]:
    """Per-employee totals, in order of first appearance."""
    totals: dict[str, EmployeeDayTotals] = {}
    for entry in entries:
        key = str(entry.employee_id)
        row = totals.setdefault(key, EmployeeDayTotals(employee_id=key))
        row.add(hours_for_timesheet(entry, settings, now), bool(entry.is_active))
    return list(totals.values())
