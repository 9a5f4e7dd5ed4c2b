"""Time tracker router: clock in/out, work order switching, GPS points and approvals."""

import uuid
from dataclasses import asdict
from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from fieldops.database import get_db
from fieldops.dependencies import get_current_user, require_admin
from fieldops.models.timesheet import TimesheetEntry
from fieldops.models.user import User
from fieldops.models.work_order import Department, WorkOrder
from fieldops.schemas.time_tracker import (
    AdminUpdateRequest,
    ApprovalRequest,
    ClockInRequest,
    ClockOutRequest,
    EditAndApproveRequest,
    EditRequest,
    SwitchRequest,
    TrackingPointRequest,
)
from fieldops.services import clock_engine, timesheet_queries
from fieldops.services.hours import HoursSettings, hours_for_timesheet, summarize_day
from fieldops.services.timeutil import iso, utcnow
from fieldops.services.tracker_settings import load_hours_settings, settings_payload

router = APIRouter(prefix="/api/v1/time-tracker", tags=["Time Tracker"])


# ── Serialization ──


def _work_order_lookup(db: Session, entries: list[TimesheetEntry]) -> dict[str, WorkOrder]:
    ids = set()
    for e in entries:
        for seg in e.work_order_segments or []:
            try:
                ids.add(uuid.UUID(str(seg.get("work_order_id"))))
            except (ValueError, TypeError):
                continue
    if not ids:
        return {}
    rows = db.query(WorkOrder).filter(WorkOrder.id.in_(ids)).all()
    return {str(wo.id): wo for wo in rows}


def _department_lookup(db: Session, entries: list[TimesheetEntry]) -> dict[str, str]:
    ids = {e.department_id for e in entries if e.department_id}
    if not ids:
        return {}
    return {str(d.id): d.name for d in db.query(Department).filter(Department.id.in_(ids)).all()}


def _segment_dict(seg: dict, work_orders: dict[str, WorkOrder]) -> dict:
    out = dict(seg)
    wo = work_orders.get(str(seg.get("work_order_id")))
    if wo is not None:
        out.update({
            "work_order_number": wo.work_order_number,
            "work_order_title": wo.title,
            "work_order_status": wo.status,
            "work_order_address": wo.start_address,
            "project_name": wo.project_name,
            "customer_name": wo.customer_name,
        })
    return out


def _to_dict(
    e: TimesheetEntry,
    hours_settings: HoursSettings,
    work_orders: Optional[dict] = None,
    departments: Optional[dict] = None,
    now: Optional[datetime] = None,
) -> dict:
    breakdown = hours_for_timesheet(e, hours_settings, now)
    work_orders = work_orders or {}
    return {
        "id": str(e.id),
        "employee_id": str(e.employee_id),
        "branch_id": str(e.branch_id) if e.branch_id else None,
        "timesheet_type": e.timesheet_type,
        "department_id": str(e.department_id) if e.department_id else None,
        "department_name": (departments or {}).get(str(e.department_id)) if e.department_id else None,
        "clock_in_time": iso(e.clock_in_time),
        "clock_out_time": iso(e.clock_out_time),
        "is_active": bool(e.is_active),
        "status": e.status,
        "work_order_segments": [_segment_dict(s, work_orders) for s in (e.work_order_segments or [])],
        "clock_in_coords": e.clock_in_coords,
        "clock_in_address": e.clock_in_address,
        "clock_in_photo_url": e.clock_in_photo_url,
        "clock_out_coords": e.clock_out_coords,
        "clock_out_address": e.clock_out_address,
        "clock_out_photo_url": e.clock_out_photo_url,
        "switch_photo_urls": list(e.switch_photo_urls or []),
        "live_tracking_points": list(e.live_tracking_points or []),
        "total_duration_minutes": breakdown.total_minutes,
        "regular_hours": breakdown.regular_hours,
        "overtime_hours_non_paid": breakdown.overtime_hours_non_paid,
        "overtime_hours_paid": breakdown.overtime_hours_paid,
        "payable_hours": breakdown.payable_hours(hours_settings.overtime_multiplier),
        "was_edited": bool(e.was_edited),
        "notes": e.notes,
        "approval_notes": e.approval_notes,
    }


def _serialize(db: Session, entries: list[TimesheetEntry], now: Optional[datetime] = None) -> list[dict]:
    settings = load_hours_settings(db)
    work_orders = _work_order_lookup(db, entries)
    departments = _department_lookup(db, entries)
    now = now or utcnow()
    return [_to_dict(e, settings, work_orders, departments, now) for e in entries]


def _serialize_one(db: Session, entry: Optional[TimesheetEntry]) -> Optional[dict]:
    if entry is None:
        return None
    return _serialize(db, [entry])[0]


def _check_range(start: Optional[date], end: Optional[date]):
    if (start is None) != (end is None):
        raise HTTPException(status_code=400, detail="start and end must be given together")
    if start and end and end < start:
        raise HTTPException(status_code=400, detail="end must not be before start")


# ── Current user ──


@router.get("/settings")
def get_settings(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return settings_payload(db)


@router.get("/active")
def get_active(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    entry = clock_engine.get_active_timesheet(db, user.id)
    return {"timesheet": _serialize_one(db, entry)}


@router.get("/me")
def my_timesheets(
    on: Optional[date] = Query(None, alias="date"),
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    _check_range(start, end)
    entries = timesheet_queries.list_for_employee_range(db, user.id, on=on, start=start, end=end)
    return _serialize(db, entries)


@router.post("/clock-in", status_code=201)
def clock_in(body: ClockInRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    entry = clock_engine.clock_in(db, user, body)
    return _serialize_one(db, entry)


@router.post("/clock-out")
def clock_out(body: ClockOutRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    entry = clock_engine.clock_out(db, user, body)
    return _serialize_one(db, entry)


@router.post("/switch")
def switch_work_order(body: SwitchRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    entry = clock_engine.switch_work_order(db, user, body)
    return _serialize_one(db, entry)


@router.post("/tracking-points", status_code=201)
def add_tracking_point(
    body: TrackingPointRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    entry = clock_engine.add_tracking_point(db, user, body.lat, body.lon)
    return {"ok": True, "timesheet_id": str(entry.id), "points": len(entry.live_tracking_points or [])}


# ── Admin ──


@router.get("/all")
def all_latest(
    on: Optional[date] = Query(None, alias="date"),
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Most recent session per employee, with the session count in the range."""
    _check_range(start, end)
    entries = timesheet_queries.list_all(db, on=on, start=start, end=end, branch_id=admin.branch_id)
    counts = timesheet_queries.session_counts(entries)
    rows = _serialize(db, timesheet_queries.latest_per_employee(entries))
    for row in rows:
        row["session_count"] = counts[row["employee_id"]]
    return rows


@router.get("/sessions/today")
def sessions_today(admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    entries = timesheet_queries.list_all(db, on=utcnow().date(), branch_id=admin.branch_id)
    return _serialize(db, entries)


@router.get("/employees/{employee_id}")
def employee_timesheets(
    employee_id: uuid.UUID,
    on: Optional[date] = Query(None, alias="date"),
    include_all: bool = Query(False, alias="all"),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    entries = timesheet_queries.list_for_employee_day(
        db, employee_id, on, include_all=include_all, branch_id=admin.branch_id
    )
    return _serialize(db, entries)


@router.get("/pending")
def pending(admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    return _serialize(db, timesheet_queries.pending_edits(db, branch_id=admin.branch_id))


@router.get("/summary/daily")
def daily_summary(
    on: Optional[date] = Query(None, alias="date"),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    day = on or utcnow().date()
    entries = timesheet_queries.list_all(db, on=day, branch_id=admin.branch_id)
    settings = load_hours_settings(db)
    rows = summarize_day(entries, settings)
    return {
        "date": day.isoformat(),
        "employees": [
            {**asdict(r), "payable_hours": r.regular_hours + r.overtime_hours_paid * settings.overtime_multiplier}
            for r in rows
        ],
    }


@router.get("/{timesheet_id}")
def get_timesheet(timesheet_id: uuid.UUID, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    entry = clock_engine.get_timesheet(db, timesheet_id)
    if entry.employee_id != user.id:
        if not user.is_admin:
            raise HTTPException(status_code=403, detail="Forbidden")
        entry = clock_engine.get_branch_timesheet(db, user, timesheet_id)
    return _serialize_one(db, entry)


@router.put("/{timesheet_id}/edit-request")
def request_edit(
    timesheet_id: uuid.UUID,
    body: EditRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    entry = clock_engine.request_edit(db, user, timesheet_id, body)
    return _serialize_one(db, entry)


@router.put("/{timesheet_id}/approve")
def approve(
    timesheet_id: uuid.UUID,
    body: ApprovalRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    entry = clock_engine.approve(db, admin, timesheet_id, body.approval_notes)
    return _serialize_one(db, entry)


@router.put("/{timesheet_id}/reject")
def reject(
    timesheet_id: uuid.UUID,
    body: ApprovalRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    entry = clock_engine.reject(db, admin, timesheet_id, body.approval_notes)
    return _serialize_one(db, entry)


@router.put("/{timesheet_id}/edit-and-approve")
def edit_and_approve(
    timesheet_id: uuid.UUID,
    body: EditAndApproveRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    entry = clock_engine.edit_and_approve(db, admin, timesheet_id, body.clock_in_time, body.clock_out_time)
    return _serialize_one(db, entry)


@router.put("/{timesheet_id}")
def admin_update(
    timesheet_id: uuid.UUID,
    body: AdminUpdateRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    entry = clock_engine.admin_update(db, admin, timesheet_id, body)
    return _serialize_one(db, entry)


@router.delete("/{timesheet_id}")
def delete_timesheet(timesheet_id: uuid.UUID, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    clock_engine.delete_timesheet(db, admin, timesheet_id)
    return {"ok": True, "deleted": str(timesheet_id)}
