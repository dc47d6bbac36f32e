import os
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import jwt, JWTError
from sqlmodel import Session

from app.errors import NotFound
from app.models.profile import Profile

SECRET_KEY = os.getenv("JWT_SECRET", "dev-secret-change-me")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 24 * 60  # 1 day


@dataclass(frozen=True)
class Actor:
    """The authenticated user a request acts for. Roles are looked up, never read from the token."""

    user_id: uuid.UUID


def create_access_token(user_id: uuid.UUID, expires_minutes: int = ACCESS_TOKEN_EXPIRE_MINUTES) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + timedelta(minutes=expires_minutes),
    }
    return jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)


def _actor_from_token(credentials: str) -> Actor:
    payload = jwt.decode(credentials, SECRET_KEY, algorithms=[ALGORITHM])

    try:
        return Actor(user_id=uuid.UUID(payload["sub"]))
    except (KeyError, ValueError):
        raise JWTError("Token subject is not a user id")


bearer_scheme_optional = HTTPBearer(auto_error=False)


def get_current_user_optional(token: HTTPAuthorizationCredentials = Depends(bearer_scheme_optional)) -> Optional[Actor]:
    if not token:
        return None

    try:
        return _actor_from_token(token.credentials)
    except JWTError:
        return None

bearer_scheme_required = HTTPBearer(auto_error=True)

def get_current_user_required(token: HTTPAuthorizationCredentials = Depends(bearer_scheme_required)) -> Actor:
    try:
        return _actor_from_token(token.credentials)
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid or expired token")


def get_db_profile(session: Session, actor: Actor) -> Profile:
    profile = session.get(Profile, actor.user_id)

    if not profile:
        raise NotFound("User not found")

    return profile
