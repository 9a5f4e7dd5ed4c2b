from pydantic import BaseModel, Field
from typing import Literal, Optional
from datetime import datetime
from uuid import UUID


class Coords(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)


class ClockInRequest(BaseModel):
    # left optional so a missing selection gets the user-facing message, not a 422
    timesheet_type: Optional[str] = None
    work_order_id: Optional[UUID] = None
    department_id: Optional[UUID] = None
    department_name: Optional[str] = None
    coords: Optional[Coords] = None
    address: Optional[str] = None
    photo_url: Optional[str] = None


class ClockOutRequest(BaseModel):
    coords: Optional[Coords] = None
    address: Optional[str] = None
    photo_url: Optional[str] = None
    notes: Optional[str] = None
    work_order_status: Optional[Literal["open", "closed"]] = None
    status_notes: Optional[str] = None


class SwitchRequest(BaseModel):
    work_order_id: Optional[UUID] = None
    photo_url: Optional[str] = None
    coords: Optional[Coords] = None
    address: Optional[str] = None


class TrackingPointRequest(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)


class EditRequest(BaseModel):
    clock_in_time: Optional[datetime] = None
    clock_out_time: Optional[datetime] = None
    notes: Optional[str] = None


class ApprovalRequest(BaseModel):
    approval_notes: Optional[str] = None


class EditAndApproveRequest(BaseModel):
    clock_in_time: Optional[datetime] = None
    clock_out_time: Optional[datetime] = None


class AdminUpdateRequest(BaseModel):
    notes: Optional[str] = None
    approval_notes: Optional[str] = None
    status: Optional[Literal["completed", "pending_approval", "approved", "rejected"]] = None
    department_id: Optional[UUID] = None


class SettingsUpdate(BaseModel):
    tracker: dict = {}
    hours: dict = {}
