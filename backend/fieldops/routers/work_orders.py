"""Work orders router."""

import uuid
from datetime import datetime
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from fieldops.database import get_db
from fieldops.dependencies import get_current_user, require_admin
from fieldops.models.user import User
from fieldops.models.work_order import WorkOrder
from fieldops.services.audit import log_action
from fieldops.services.timeutil import as_utc, iso, utcnow

router = APIRouter(prefix="/api/v1/work-orders", tags=["Work Orders"])


class WorkOrderCreate(BaseModel):
    title: str = Field(min_length=1, max_length=300)
    work_order_number: Optional[str] = None
    project_name: Optional[str] = None
    customer_name: Optional[str] = None
    planned_date: Optional[datetime] = None
    employee_ids: list[uuid.UUID] = []


class WorkOrderStatusUpdate(BaseModel):
    status: Literal["open", "closed"]
    notes: Optional[str] = None


def work_order_dict(wo: WorkOrder) -> dict:
    return {
        "id": str(wo.id),
        "work_order_number": wo.work_order_number,
        "title": wo.title,
        "status": wo.status,
        "project_name": wo.project_name,
        "customer_name": wo.customer_name,
        "employee_ids": list(wo.employee_ids or []),
        "planned_date": iso(wo.planned_date),
        "start_time": iso(wo.start_time),
        "end_time": iso(wo.end_time),
        "duration_minutes": wo.duration_minutes,
        "is_active": bool(wo.is_active),
        "start_coords": wo.start_coords,
        "start_address": wo.start_address,
        "end_coords": wo.end_coords,
        "end_address": wo.end_address,
        "work_notes": wo.work_notes,
        "completed_date": iso(wo.completed_date),
        "updated_by": wo.updated_by,
    }


def _get_or_404(db: Session, work_order_id: uuid.UUID) -> WorkOrder:
    wo = db.query(WorkOrder).filter(WorkOrder.id == work_order_id).first()
    if not wo:
        raise HTTPException(status_code=404, detail="Work order not found")
    return wo


@router.get("")
def list_work_orders(
    status: Optional[str] = Query(None),
    employee_id: Optional[uuid.UUID] = Query(None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    q = db.query(WorkOrder)
    if user.branch_id:
        q = q.filter(WorkOrder.branch_id == user.branch_id)
    if status:
        q = q.filter(WorkOrder.status == status)
    rows = q.order_by(WorkOrder.created_at.desc()).all()

    # JSON array membership is filtered in Python so SQLite and Postgres behave the same
    if employee_id:
        rows = [wo for wo in rows if str(employee_id) in (wo.employee_ids or [])]
    return [work_order_dict(wo) for wo in rows]


@router.get("/{work_order_id}")
def get_work_order(
    work_order_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return work_order_dict(_get_or_404(db, work_order_id))


@router.post("", status_code=201)
def create_work_order(
    body: WorkOrderCreate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    wo = WorkOrder(
        branch_id=admin.branch_id,
        title=body.title.strip(),
        work_order_number=body.work_order_number,
        project_name=body.project_name,
        customer_name=body.customer_name,
        planned_date=body.planned_date,
        employee_ids=[str(e) for e in body.employee_ids],
        status="open",
        is_active=False,
        updated_by=admin.email,
    )
    db.add(wo)
    db.flush()
    log_action(db, admin.id, "create", "work_order", wo.id, {"title": wo.title}, branch_id=admin.branch_id)
    db.commit()
    db.refresh(wo)
    return work_order_dict(wo)


@router.put("/{work_order_id}/status")
def update_work_order_status(
    work_order_id: uuid.UUID,
    body: WorkOrderStatusUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not (user.is_admin or user.is_team_leader):
        raise HTTPException(status_code=403, detail="Forbidden - Team leader or admin access required")

    wo = _get_or_404(db, work_order_id)
    now = utcnow()
    wo.status = body.status
    if body.notes and body.notes.strip():
        stamp = as_utc(now).strftime("%Y-%m-%d %H:%M")
        wo.work_notes = f"{wo.work_notes or ''}\n\n[{stamp}] {body.notes.strip()}".strip()
    wo.completed_date = now if body.status == "closed" else None
    wo.updated_by = user.email or "unknown"

    log_action(db, user.id, "status_update", "work_order", wo.id, {"status": body.status}, branch_id=wo.branch_id)
    db.commit()
    db.refresh(wo)
    return work_order_dict(wo)
