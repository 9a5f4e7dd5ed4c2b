"""Departments and work orders that timesheets clock time against."""
import uuid

from sqlalchemy import Column, String, Text, Boolean, DateTime, Integer, ForeignKey, JSON, Uuid
from sqlalchemy.sql import func

from fieldops.database import Base

WORK_ORDER_STATUSES = ("open", "closed")


class Department(Base):
    __tablename__ = "departments"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)
    branch_id = Column(Uuid(as_uuid=True), ForeignKey("branches.id", ondelete="SET NULL"), nullable=True, index=True)
    name = Column(String(200), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class WorkOrder(Base):
    __tablename__ = "work_orders"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)
    branch_id = Column(Uuid(as_uuid=True), ForeignKey("branches.id", ondelete="SET NULL"), nullable=True, index=True)
    work_order_number = Column(String(50), nullable=True, index=True)
    title = Column(String(300), nullable=False)
    status = Column(String(20), nullable=False, default="open")
    project_name = Column(String(200), nullable=True)
    customer_name = Column(String(200), nullable=True)

    # users assigned to the work order; clocking in adds the employee
    employee_ids = Column(JSON, nullable=False, default=list)

    planned_date = Column(DateTime(timezone=True), nullable=True)
    start_time = Column(DateTime(timezone=True), nullable=True)
    end_time = Column(DateTime(timezone=True), nullable=True)
    duration_minutes = Column(Integer, nullable=True)
    is_active = Column(Boolean, default=False, nullable=False)

    start_coords = Column(JSON, nullable=True)
    start_address = Column(Text, nullable=True)
    end_coords = Column(JSON, nullable=True)
    end_address = Column(Text, nullable=True)

    work_notes = Column(Text, nullable=True)
    completed_date = Column(DateTime(timezone=True), nullable=True)
    updated_by = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
