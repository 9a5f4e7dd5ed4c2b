import uuid
from typing import Any, Optional
from sqlalchemy.orm import Session

from fieldops.models.audit_log import AuditLog


def _as_uuid(value: Any) -> Optional[uuid.UUID]:
    if value is None:
        return None
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (ValueError, AttributeError):
        return None


def log_action(
    db: Session,
    user_id: Any,
    action: str,
    resource_type: str,
    resource_id: Any = None,
    details: dict | None = None,
    branch_id: Any = None,
    ip_address: str | None = None,
    commit: bool = False,
):
    """Add an audit row to the session. The caller's commit persists it unless commit=True."""
    entry = AuditLog(
        branch_id=_as_uuid(branch_id),
        user_id=_as_uuid(user_id) or uuid.UUID(int=0),
        action=action,
        resource_type=resource_type,
        resource_id=str(resource_id) if resource_id is not None else None,
        details=details.copy() if isinstance(details, dict) else {},
        ip_address=ip_address,
    )
    db.add(entry)
    if commit:
        db.commit()
    return entry
