import uuid

from sqlalchemy import Column, String, Text, Boolean, DateTime, Integer, Float, ForeignKey, JSON, Uuid
from sqlalchemy.sql import func

from fieldops.database import Base

TIMESHEET_TYPES = ("office_work", "field_work")
TIMESHEET_STATUSES = ("active", "completed", "pending_approval", "approved", "rejected")


class TimesheetEntry(Base):
    __tablename__ = "timesheet_entries"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)
    branch_id = Column(Uuid(as_uuid=True), nullable=True, index=True)
    employee_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    timesheet_type = Column(String(20), nullable=False, default="field_work")
    department_id = Column(Uuid(as_uuid=True), ForeignKey("departments.id", ondelete="SET NULL"), nullable=True)

    clock_in_time = Column(DateTime(timezone=True), nullable=False)
    clock_out_time = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, nullable=False, default=False, index=True)
    status = Column(String(20), nullable=False, default="active", index=True)

    # [{work_order_id, start_time, end_time, duration_minutes}], ISO-8601 strings
    work_order_segments = Column(JSON, nullable=False, default=list)

    clock_in_coords = Column(JSON, nullable=True)
    clock_in_address = Column(Text, nullable=True)
    clock_in_photo_url = Column(Text, nullable=True)
    clock_out_coords = Column(JSON, nullable=True)
    clock_out_address = Column(Text, nullable=True)
    clock_out_photo_url = Column(Text, nullable=True)
    switch_photo_urls = Column(JSON, nullable=False, default=list)

    # [{timestamp, lat, lon}]
    live_tracking_points = Column(JSON, nullable=False, default=list)

    # cached at clock-out
    total_duration_minutes = Column(Integer, nullable=True)
    regular_hours_calculated = Column(Float, nullable=True)
    overtime_hours_non_paid_calculated = Column(Float, nullable=True)
    overtime_hours_paid_calculated = Column(Float, nullable=True)

    was_edited = Column(Boolean, nullable=False, default=False)
    notes = Column(Text, nullable=True)
    approval_notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
