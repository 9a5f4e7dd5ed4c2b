"""Departments router (office work clocks in against a department)."""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from fieldops.database import get_db
from fieldops.dependencies import get_current_user, require_admin
from fieldops.models.user import User
from fieldops.models.work_order import Department

router = APIRouter(prefix="/api/v1/departments", tags=["Departments"])


class DepartmentCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)


def _dept_dict(d: Department) -> dict:
    return {"id": str(d.id), "name": d.name, "branch_id": str(d.branch_id) if d.branch_id else None}


@router.get("")
def list_departments(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    q = db.query(Department)
    if user.branch_id:
        q = q.filter(Department.branch_id == user.branch_id)
    return [_dept_dict(d) for d in q.order_by(Department.name).all()]


@router.post("", status_code=201)
def create_department(
    body: DepartmentCreate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    name = body.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Department name is required")

    existing = db.query(Department).filter(
        Department.name == name,
        Department.branch_id == admin.branch_id,
    ).first()
    if existing:
        raise HTTPException(status_code=409, detail="Department already exists")

    dept = Department(name=name, branch_id=admin.branch_id)
    db.add(dept)
    db.commit()
    db.refresh(dept)
    return _dept_dict(dept)
