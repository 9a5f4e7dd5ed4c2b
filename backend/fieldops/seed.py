"""
Seed script for FieldOps: default company, admin user, departments and
time tracker settings on first deploy.

Run: python -m fieldops.seed
"""
import logging
import os
import sys

from fieldops.database import SessionLocal
from fieldops.models.app_setting import AppSetting
from fieldops.models.user import Branch, User, ROLE_ADMIN
from fieldops.models.work_order import Department
from fieldops.services.auth import hash_password

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

ADMIN_EMAIL = os.getenv("SEED_ADMIN_EMAIL", "admin@fieldops.local")
ADMIN_PASSWORD = os.getenv("SEED_ADMIN_PASSWORD", "FieldOps@2026!")
ADMIN_NAME = "Field Admin"
DEFAULT_BRANCH_NAME = "Head Office"
DEFAULT_BRANCH_CODE = "hq"
DEFAULT_DEPARTMENTS = ("Administration", "Workshop", "Warehouse")

# (key, value, type, description)
DEFAULT_SETTINGS = [
    ("timesheet_track_gps", "true", "boolean", "Record GPS points during field work"),
    ("timesheet_require_photo_clock_in", "false", "boolean", "Photo required to clock in"),
    ("timesheet_require_photo_clock_out", "false", "boolean", "Photo required to clock out"),
    ("timesheet_require_photo_switch", "false", "boolean", "Photo required to switch work orders"),
    ("timesheet_alarm_enabled", "true", "boolean", "Remind users before the end of the working day"),
    ("timesheet_alarm_minutes_before", "5", "number", "Reminder lead time in minutes"),
    ("timesheet_hours_regular_hours_per_day", "8", "number", "Regular hours per day"),
    ("timesheet_hours_non_payable_overtime_hours", "0", "number", "Unpaid overtime hours before paid overtime"),
    ("timesheet_hours_overtime_multiplier", "1.5", "number", "Paid overtime multiplier"),
    ("timesheet_hours_tracking_interval_minutes", "30", "number", "GPS sampling interval (0 disables)"),
]


def seed_branch_and_admin(db) -> Branch:
    """Create the default branch and admin user if they don't exist."""
    branch = db.query(Branch).filter(Branch.code == DEFAULT_BRANCH_CODE).first()
    if not branch:
        branch = Branch(name=DEFAULT_BRANCH_NAME, code=DEFAULT_BRANCH_CODE)
        db.add(branch)
        db.flush()
        logger.info("Created default branch: %s (%s)", DEFAULT_BRANCH_NAME, DEFAULT_BRANCH_CODE)
    else:
        logger.info("Default branch already exists, skipping.")

    user = db.query(User).filter(User.email == ADMIN_EMAIL).first()
    if not user:
        db.add(User(
            email=ADMIN_EMAIL,
            password_hash=hash_password(ADMIN_PASSWORD),
            full_name=ADMIN_NAME,
            role=ROLE_ADMIN,
            branch_id=branch.id,
            is_active=True,
        ))
        logger.info("Created admin: %s (%s)", ADMIN_NAME, ADMIN_EMAIL)
        logger.info("  >>> CHANGE THIS PASSWORD AFTER FIRST LOGIN <<<")
    else:
        logger.info("Admin user already exists, skipping.")
    return branch


def seed_departments(db, branch: Branch) -> int:
    created = 0
    for name in DEFAULT_DEPARTMENTS:
        exists = db.query(Department).filter(Department.name == name, Department.branch_id == branch.id).first()
        if not exists:
            db.add(Department(name=name, branch_id=branch.id))
            created += 1
    return created


def seed_settings(db) -> int:
    created = 0
    for key, value, setting_type, description in DEFAULT_SETTINGS:
        if not db.query(AppSetting).filter(AppSetting.setting_key == key).first():
            db.add(AppSetting(setting_key=key, setting_value=value, setting_type=setting_type, description=description))
            created += 1
    return created


def run_seed():
    db = SessionLocal()
    try:
        branch = seed_branch_and_admin(db)
        logger.info("Seeded %d departments.", seed_departments(db, branch))
        logger.info("Seeded %d settings.", seed_settings(db))
        db.commit()
        logger.info("Seed complete.")
    except Exception:
        logger.exception("Seed failed")
        db.rollback()
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    run_seed()
