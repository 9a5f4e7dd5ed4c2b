import uuid

from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Uuid
from sqlalchemy.sql import func

from fieldops.database import Base


# ---------------------------------------------------
# Enums
# ---------------------------------------------------

USER_ROLE_ENUM = String(50)  # keep String to avoid enum migration issues
ROLE_ADMIN = "admin"
ROLE_USER = "user"


# ---------------------------------------------------
# Branch (company)
# ---------------------------------------------------

class Branch(Base):
    __tablename__ = "branches"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)
    name = Column(String(200), nullable=False)
    code = Column(String(50), nullable=False, unique=True, index=True)

    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


# ---------------------------------------------------
# User (employee)
# ---------------------------------------------------

class User(Base):
    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)

    # nullable because some users may exist before branch assignment
    branch_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("branches.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    email = Column(String(255), nullable=True, unique=True, index=True)
    password_hash = Column(String(255), nullable=True)
    full_name = Column(String(200), nullable=True)
    job_role = Column(String(200), nullable=True)

    role = Column(USER_ROLE_ENUM, nullable=False, default=ROLE_USER)
    is_team_leader = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN
