"""
Authentication router: login and current user.
"""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from fieldops.database import get_db
from fieldops.dependencies import get_current_user
from fieldops.models.user import Branch, User
from fieldops.services.auth import create_access_token, verify_password

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


# ---------- schemas ----------

class LoginRequest(BaseModel):
    email: str
    password: str
    branch_code: str | None = None


class UserOut(BaseModel):
    id: str
    email: str | None
    full_name: str | None
    role: str
    is_team_leader: bool
    branch_id: str | None


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut


def _user_out(user: User) -> UserOut:
    return UserOut(
        id=str(user.id),
        email=user.email,
        full_name=user.full_name,
        role=user.role,
        is_team_leader=bool(user.is_team_leader),
        branch_id=str(user.branch_id) if user.branch_id else None,
    )


# ---------- endpoints ----------

@router.post("/login", response_model=LoginResponse)
def login(body: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == body.email.strip().lower()).first()
    if not user or not verify_password(body.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or password")

    if not user.is_active:
        raise HTTPException(status_code=403, detail="Account disabled")

    if body.branch_code:
        branch = db.query(Branch).filter(Branch.code == body.branch_code.strip().lower()).first()
        if not branch:
            raise HTTPException(status_code=404, detail="Company code not found")
        if user.branch_id != branch.id:
            raise HTTPException(status_code=403, detail="You do not belong to this company")

    token = create_access_token(user.id, user.role, user.branch_id)
    return LoginResponse(access_token=token, user=_user_out(user))


@router.get("/me", response_model=UserOut)
def me(user: User = Depends(get_current_user)):
    return _user_out(user)
