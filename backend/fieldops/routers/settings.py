"""Time tracker settings (tracking interval, photo requirements, overtime thresholds)."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from fieldops.database import get_db
from fieldops.dependencies import get_current_user, require_admin
from fieldops.models.user import User
from fieldops.schemas.time_tracker import SettingsUpdate
from fieldops.services.audit import log_action
from fieldops.services.tracker_settings import settings_payload, update_settings

router = APIRouter(prefix="/api/v1/settings", tags=["Settings"])


@router.get("/time-tracker")
def get_time_tracker_settings(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return settings_payload(db)


@router.put("/time-tracker")
def put_time_tracker_settings(
    body: SettingsUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        log_action(db, admin.id, "update", "settings", details={"tracker": body.tracker, "hours": body.hours},
                   branch_id=admin.branch_id)
        return update_settings(db, body.tracker, body.hours)
    except (TypeError, ValueError) as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))
