"""
Session transitions for TimesheetEntry.

    clock_in  -> active (field work opens one work-order segment)
    switch    -> active (closes the open segment, opens a new one)
    clock_out -> completed (closes the segment, caches duration + hours split)
    request_edit      -> pending_approval
    approve / reject  -> approved / rejected
    edit_and_approve  -> approved

Every transition runs in the caller's session and commits once, so the
close-segment/open-segment pair of a switch is written atomically. Work order
bookkeeping (assignment, start/end stamps) is best effort: a missing work order
is logged and skipped.
"""

import logging
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from fieldops.errors import Conflict, Forbidden, NotFound, ValidationFailed, WorkOrderStatusRequired
from fieldops.models.timesheet import TimesheetEntry
from fieldops.models.user import User
from fieldops.models.work_order import Department, WorkOrder
from fieldops.schemas.time_tracker import (
    AdminUpdateRequest,
    ClockInRequest,
    ClockOutRequest,
    Coords,
    EditRequest,
    SwitchRequest,
)
from fieldops.services.audit import log_action
from fieldops.services.hours import calculate_hours
from fieldops.services.timeutil import as_utc, iso, parse_iso, round_minutes, utcnow
from fieldops.services.tracker_settings import load_hours_settings, load_tracker_settings

logger = logging.getLogger(__name__)

FIELD_WORK = "field_work"
OFFICE_WORK = "office_work"


# ──────────────────────────────────────────────
# Segment helpers
# ──────────────────────────────────────────────

def open_segments(segments: list) -> list[dict]:
    return [s for s in segments or [] if not s.get("end_time")]


def close_open_segments(segments: list, end: datetime) -> tuple[list, list]:
    """Return (new_segments, closed) with every open segment ended at `end`."""
    updated, closed = [], []
    for seg in segments or []:
        seg = dict(seg)
        if not seg.get("end_time"):
            start = parse_iso(seg.get("start_time")) or end
            seg["end_time"] = iso(end)
            seg["duration_minutes"] = max(round_minutes(start, end), 0)
            closed.append(seg)
        updated.append(seg)
    return updated, closed


def new_segment(work_order_id, start: datetime) -> dict:
    return {
        "work_order_id": str(work_order_id),
        "start_time": iso(start),
        "end_time": None,
        "duration_minutes": None,
    }


def _coords_dict(coords: Optional[Coords]) -> Optional[dict]:
    return {"lat": coords.lat, "lon": coords.lon} if coords else None


def _apply_hours(db: Session, entry: TimesheetEntry, clock_out: datetime):
    total = max(round_minutes(entry.clock_in_time, clock_out), 0)
    breakdown = calculate_hours(total, load_hours_settings(db))
    for column, value in breakdown.as_columns().items():
        setattr(entry, column, value)


# ──────────────────────────────────────────────
# Work order bookkeeping
# ──────────────────────────────────────────────

def _get_work_order(db: Session, work_order_id) -> Optional[WorkOrder]:
    try:
        wo_uuid = work_order_id if isinstance(work_order_id, uuid.UUID) else uuid.UUID(str(work_order_id))
    except (ValueError, AttributeError, TypeError):
        return None
    return db.query(WorkOrder).filter(WorkOrder.id == wo_uuid).first()


def _ensure_assignment(wo: WorkOrder, user: User):
    current = list(wo.employee_ids or [])
    if str(user.id) not in current:
        wo.employee_ids = current + [str(user.id)]


def _start_work_order(db: Session, work_order_id, user: User, now: datetime, coords=None, address=None):
    wo = _get_work_order(db, work_order_id)
    if wo is None:
        logger.warning("Could not start work order %s: not found", work_order_id)
        return
    _ensure_assignment(wo, user)
    wo.start_time = now
    wo.is_active = True
    wo.updated_by = user.email or "unknown"
    if coords:
        wo.start_coords = _coords_dict(coords)
    if address:
        wo.start_address = address


def _finish_work_order(db: Session, segment: dict, user: User, now: datetime, coords=None, address=None, assign=True):
    wo = _get_work_order(db, segment.get("work_order_id"))
    if wo is None:
        logger.warning("Could not close work order %s: not found", segment.get("work_order_id"))
        return
    if assign:
        _ensure_assignment(wo, user)
    wo.end_time = now
    wo.duration_minutes = segment.get("duration_minutes")
    wo.is_active = False
    wo.updated_by = user.email or "unknown"
    if coords:
        wo.end_coords = _coords_dict(coords)
    if address:
        wo.end_address = address


def _update_work_order_status(wo: WorkOrder, status: str, notes: Optional[str], user: User, now: datetime):
    wo.status = status
    if notes and notes.strip():
        stamp = as_utc(now).strftime("%Y-%m-%d %H:%M")
        wo.work_notes = f"{wo.work_notes or ''}\n\n[{stamp}] {notes.strip()}".strip()
    if status == "closed":
        wo.completed_date = now
    wo.updated_by = user.email or "unknown"


# ──────────────────────────────────────────────
# Lookups
# ──────────────────────────────────────────────

def get_active_timesheet(db: Session, employee_id) -> Optional[TimesheetEntry]:
    return (
        db.query(TimesheetEntry)
        .filter(TimesheetEntry.employee_id == employee_id, TimesheetEntry.is_active.is_(True))
        .order_by(TimesheetEntry.clock_in_time.desc())
        .first()
    )


def get_timesheet(db: Session, timesheet_id, branch_id=None) -> TimesheetEntry:
    """Load a timesheet. With branch_id, entries of other branches are reported as missing."""
    entry = db.query(TimesheetEntry).filter(TimesheetEntry.id == timesheet_id).first()
    if entry is None or (branch_id and entry.branch_id != branch_id):
        raise NotFound("Timesheet not found")
    return entry


def get_branch_timesheet(db: Session, admin: User, timesheet_id) -> TimesheetEntry:
    return get_timesheet(db, timesheet_id, branch_id=admin.branch_id)


def _require_active(db: Session, user: User) -> TimesheetEntry:
    entry = get_active_timesheet(db, user.id)
    if entry is None:
        raise NotFound("No active timesheet found")
    return entry


def _resolve_department(db: Session, body: ClockInRequest) -> Optional[Department]:
    if body.department_id:
        return db.query(Department).filter(Department.id == body.department_id).first()
    if body.department_name and body.department_name.strip():
        return db.query(Department).filter(Department.name == body.department_name.strip()).first()
    return None


# ──────────────────────────────────────────────
# Transitions
# ──────────────────────────────────────────────

def clock_in(db: Session, user: User, body: ClockInRequest, now: Optional[datetime] = None) -> TimesheetEntry:
    now = as_utc(now) or utcnow()
    settings = load_tracker_settings(db)

    if body.timesheet_type not in (FIELD_WORK, OFFICE_WORK):
        raise ValidationFailed("Please select work type (Work Order or Office Work)")

    department = None
    work_order = None
    if body.timesheet_type == OFFICE_WORK:
        department = _resolve_department(db, body)
        if department is None:
            raise ValidationFailed("Please select a department first")
    else:
        if not body.work_order_id:
            raise ValidationFailed("Please select a work order")
        work_order = _get_work_order(db, body.work_order_id)
        if work_order is None:
            raise NotFound("Work order not found")

    if settings.require_photo_clock_in and not body.photo_url:
        raise ValidationFailed("A photo is required to clock in")

    existing = get_active_timesheet(db, user.id)
    if existing is not None:
        raise Conflict("User already has an active timesheet", active_timesheet_id=str(existing.id))

    entry = TimesheetEntry(
        employee_id=user.id,
        branch_id=user.branch_id,
        timesheet_type=body.timesheet_type,
        clock_in_time=now,
        clock_in_coords=_coords_dict(body.coords),
        clock_in_address=body.address,
        clock_in_photo_url=body.photo_url,
        is_active=True,
        status="active",
        work_order_segments=[],
        switch_photo_urls=[],
        live_tracking_points=[],
        was_edited=False,
    )

    if department is not None:
        entry.department_id = department.id

    if work_order is not None:
        entry.work_order_segments = [new_segment(work_order.id, now)]
        _start_work_order(db, work_order.id, user, now, body.coords, body.address)

    db.add(entry)
    db.flush()
    log_action(db, user.id, "clock_in", "timesheet", entry.id,
               {"timesheet_type": entry.timesheet_type}, branch_id=user.branch_id)
    db.commit()
    db.refresh(entry)

    logger.info("Clock in: employee=%s timesheet=%s type=%s", user.id, entry.id, entry.timesheet_type)
    return entry


def clock_out(db: Session, user: User, body: ClockOutRequest, now: Optional[datetime] = None) -> TimesheetEntry:
    now = as_utc(now) or utcnow()
    settings = load_tracker_settings(db)
    entry = _require_active(db, user)

    status_work_order = None
    if entry.timesheet_type == FIELD_WORK and (user.is_team_leader or user.is_admin):
        current = open_segments(entry.work_order_segments)
        if current:
            status_work_order = _get_work_order(db, current[0].get("work_order_id"))
        if status_work_order is not None and not body.work_order_status:
            raise WorkOrderStatusRequired(
                "Please update the work order status before clocking out",
                work_order_id=str(status_work_order.id),
                current_status=status_work_order.status,
            )

    if settings.require_photo_clock_out and not body.photo_url:
        raise ValidationFailed("A photo is required to clock out")

    if status_work_order is not None:
        _update_work_order_status(status_work_order, body.work_order_status, body.status_notes, user, now)

    closed = []
    if entry.timesheet_type == FIELD_WORK:
        entry.work_order_segments, closed = close_open_segments(entry.work_order_segments, now)

    entry.clock_out_time = now
    entry.clock_out_coords = _coords_dict(body.coords)
    entry.clock_out_address = body.address
    entry.clock_out_photo_url = body.photo_url
    if body.notes:
        entry.notes = body.notes
    entry.is_active = False
    entry.status = "completed"
    _apply_hours(db, entry, now)

    for seg in closed:
        _finish_work_order(db, seg, user, now, body.coords, body.address)

    log_action(db, user.id, "clock_out", "timesheet", entry.id,
               {"total_duration_minutes": entry.total_duration_minutes}, branch_id=user.branch_id)
    db.commit()
    db.refresh(entry)

    logger.info("Clock out: employee=%s timesheet=%s minutes=%s", user.id, entry.id, entry.total_duration_minutes)
    return entry


def switch_work_order(db: Session, user: User, body: SwitchRequest, now: Optional[datetime] = None) -> TimesheetEntry:
    now = as_utc(now) or utcnow()
    settings = load_tracker_settings(db)
    entry = _require_active(db, user)

    if entry.timesheet_type != FIELD_WORK:
        raise ValidationFailed("Work order switching is only available for field work")
    if not body.work_order_id:
        raise ValidationFailed("Please select a work order")
    if settings.require_photo_switch and not body.photo_url:
        raise ValidationFailed("A photo is required to switch work orders")
    if _get_work_order(db, body.work_order_id) is None:
        raise NotFound("Work order not found")

    segments, closed = close_open_segments(entry.work_order_segments, now)
    segments.append(new_segment(body.work_order_id, now))
    entry.work_order_segments = segments

    if body.photo_url:
        entry.switch_photo_urls = list(entry.switch_photo_urls or []) + [body.photo_url]

    for seg in closed:
        _finish_work_order(db, seg, user, now, body.coords, body.address)
    _start_work_order(db, body.work_order_id, user, now, body.coords, body.address)

    log_action(db, user.id, "switch_work_order", "timesheet", entry.id,
               {"work_order_id": str(body.work_order_id)}, branch_id=user.branch_id)
    db.commit()
    db.refresh(entry)

    logger.info("Switch: employee=%s timesheet=%s -> work order %s", user.id, entry.id, body.work_order_id)
    return entry


def _apply_times(db: Session, actor: User, entry: TimesheetEntry, clock_in: datetime, clock_out: datetime):
    """Set edited times, finalize the session and finish the work orders it closes."""
    if clock_out <= clock_in:
        raise ValidationFailed("Clock out time must be after clock in time")
    for seg in open_segments(entry.work_order_segments):
        start = parse_iso(seg.get("start_time"))
        if start and clock_out < start:
            raise ValidationFailed("Clock out time cannot be before the current work order started")

    entry.clock_in_time = clock_in
    entry.clock_out_time = clock_out
    entry.work_order_segments, closed = close_open_segments(entry.work_order_segments, clock_out)
    entry.is_active = False
    _apply_hours(db, entry, clock_out)

    for seg in closed:
        _finish_work_order(db, seg, actor, clock_out, assign=actor.id == entry.employee_id)


def request_edit(db: Session, user: User, timesheet_id, body: EditRequest, now: Optional[datetime] = None) -> TimesheetEntry:
    now = as_utc(now) or utcnow()
    entry = get_timesheet(db, timesheet_id)

    if entry.employee_id != user.id:
        raise Forbidden("Forbidden - You can only edit your own timesheets")
    if entry.status == "approved":
        raise Conflict("Approved timesheets cannot be edited")

    clock_in = as_utc(body.clock_in_time) or as_utc(entry.clock_in_time)
    clock_out = as_utc(body.clock_out_time) or as_utc(entry.clock_out_time) or now
    _apply_times(db, user, entry, clock_in, clock_out)

    if body.notes:
        entry.notes = body.notes
    entry.was_edited = True
    entry.status = "pending_approval"

    log_action(db, user.id, "request_edit", "timesheet", entry.id,
               {"clock_in_time": iso(clock_in), "clock_out_time": iso(clock_out)}, branch_id=entry.branch_id)
    db.commit()
    db.refresh(entry)
    return entry


def _require_finalized(entry: TimesheetEntry):
    if entry.is_active:
        raise Conflict("Active timesheets must be clocked out before approval")


def approve(db: Session, admin: User, timesheet_id, notes: Optional[str] = None) -> TimesheetEntry:
    entry = get_branch_timesheet(db, admin, timesheet_id)
    _require_finalized(entry)

    entry.status = "approved"
    entry.approval_notes = notes.strip() if notes and notes.strip() else "Approved by admin"

    log_action(db, admin.id, "approve", "timesheet", entry.id, branch_id=entry.branch_id)
    db.commit()
    db.refresh(entry)
    return entry


def reject(db: Session, admin: User, timesheet_id, notes: Optional[str]) -> TimesheetEntry:
    if not notes or not notes.strip():
        raise ValidationFailed("Rejection reason is required")

    entry = get_branch_timesheet(db, admin, timesheet_id)
    _require_finalized(entry)

    entry.status = "rejected"
    entry.approval_notes = notes.strip()

    log_action(db, admin.id, "reject", "timesheet", entry.id, {"reason": entry.approval_notes}, branch_id=entry.branch_id)
    db.commit()
    db.refresh(entry)
    return entry


def edit_and_approve(
    db: Session,
    admin: User,
    timesheet_id,
    clock_in_time: Optional[datetime],
    clock_out_time: Optional[datetime],
    now: Optional[datetime] = None,
) -> TimesheetEntry:
    if not clock_in_time:
        raise ValidationFailed("Clock in time is required")

    now = as_utc(now) or utcnow()
    entry = get_branch_timesheet(db, admin, timesheet_id)
    _apply_times(db, admin, entry, as_utc(clock_in_time), as_utc(clock_out_time) or now)

    entry.status = "approved"
    entry.approval_notes = "Edited and approved by admin"

    log_action(db, admin.id, "edit_and_approve", "timesheet", entry.id, branch_id=entry.branch_id)
    db.commit()
    db.refresh(entry)
    return entry


def add_tracking_point(db: Session, user: User, lat: float, lon: float, now: Optional[datetime] = None) -> TimesheetEntry:
    now = as_utc(now) or utcnow()
    entry = _require_active(db, user)
    if entry.timesheet_type != FIELD_WORK:
        raise ValidationFailed("GPS tracking is only available for field work")

    entry.live_tracking_points = list(entry.live_tracking_points or []) + [
        {"timestamp": iso(now), "lat": lat, "lon": lon}
    ]
    db.commit()
    db.refresh(entry)

    logger.debug("Tracking point: timesheet=%s (%s, %s)", entry.id, lat, lon)
    return entry


def admin_update(db: Session, admin: User, timesheet_id, body: AdminUpdateRequest) -> TimesheetEntry:
    entry = get_branch_timesheet(db, admin, timesheet_id)
    changes = body.model_dump(exclude_unset=True)
    if changes.get("status") is None:
        changes.pop("status", None)

    if entry.is_active and changes.get("status"):
        raise Conflict("Active timesheets must be clocked out before changing status")

    for field, value in changes.items():
        setattr(entry, field, value)

    log_action(db, admin.id, "admin_update", "timesheet", entry.id,
               {k: str(v) for k, v in changes.items()}, branch_id=entry.branch_id)
    db.commit()
    db.refresh(entry)
    return entry


def delete_timesheet(db: Session, admin: User, timesheet_id):
    entry = get_branch_timesheet(db, admin, timesheet_id)
    log_action(db, admin.id, "delete", "timesheet", entry.id, branch_id=entry.branch_id)
    db.delete(entry)
    db.commit()
