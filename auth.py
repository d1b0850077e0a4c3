"""
Session token verification.

Tokens are issued elsewhere (login service) as HS256 JWTs carrying the
user's `id` and `role`, and travel in the `token` cookie.
"""
import os
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Cookie, Depends, HTTPException
from pydantic import BaseModel

JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret-change-me-before-deploying")
JWT_ALGORITHM = "HS256"


class CurrentUser(BaseModel):
    id: str
    role: str = "user"


def issue_token(user_id: str, role: str = "user", expires_in: timedelta = timedelta(days=1)) -> str:
    payload = {
        "id": str(user_id),
        "role": role,
        "exp": datetime.now(timezone.utc) + expires_in,
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def authenticate(token: Optional[str] = Cookie(None)) -> CurrentUser:
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except jwt.PyJWTError:
        raise HTTPException(status_code=403, detail="Invalid token")
    if not payload.get("id"):
        raise HTTPException(status_code=403, detail="Invalid token")
    return CurrentUser(id=str(payload["id"]), role=payload.get("role") or "user")


def admin_only(user: CurrentUser = Depends(authenticate)) -> CurrentUser:
    if user.role != "admin":
        raise HTTPException(status_code=403, detail="Admins only")
    return user
