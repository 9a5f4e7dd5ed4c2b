"""Password hashing and signed bearer tokens (user_id.role.branch_id.exp.signature)."""

import os
import hashlib
import hmac
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

TOKEN_SECRET = os.getenv("TOKEN_SECRET", "fieldops-dev-secret-change-in-prod")
TOKEN_EXPIRY_HOURS = int(os.getenv("TOKEN_EXPIRY_HOURS", "24"))


def hash_password(password: str) -> str:
    salt = secrets.token_hex(16)
    h = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), 100_000)
    return f"{salt}${h.hex()}"


def verify_password(password: str, stored: Optional[str]) -> bool:
    if not stored:
        return False
    try:
        salt, h = stored.split("$", 1)
    except ValueError:
        return False
    expected = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), 100_000)
    return hmac.compare_digest(expected.hex(), h)


def _sign(payload: str) -> str:
    return hmac.new(TOKEN_SECRET.encode(), payload.encode(), "sha256").hexdigest()[:32]


def create_access_token(user_id, role: str, branch_id=None, expires_delta: Optional[timedelta] = None) -> str:
    exp = datetime.now(timezone.utc) + (expires_delta or timedelta(hours=TOKEN_EXPIRY_HOURS))
    payload = f"{user_id}.{role}.{branch_id or 0}.{int(exp.timestamp())}"
    return f"{payload}.{_sign(payload)}"


def decode_access_token(token: str) -> Optional[dict]:
    """Returns {user_id, role, branch_id} or None when invalid/expired."""
    parts = token.rsplit(".", 1)
    if len(parts) != 2:
        return None
    payload, sig = parts
    if not hmac.compare_digest(sig, _sign(payload)):
        return None
    try:
        user_id, role, branch_id, exp = payload.split(".")
        if int(exp) < int(datetime.now(timezone.utc).timestamp()):
            return None
    except ValueError:
        return None
    return {"user_id": user_id, "role": role, "branch_id": None if branch_id == "0" else branch_id}
