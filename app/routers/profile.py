import uuid
from datetime import datetime, timezone
from typing import Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlmodel import Session

from app.db.db import get_session
from app.errors import NotFound
from app.models.enums import AppRole
from app.models.profile import Profile
from app.services import access, items as registry
from app.utils.auth_helper import Actor, get_current_user_required, get_db_profile


router = APIRouter()


class ProfileUpdateRequest(BaseModel):
    full_name: str = Field(min_length=2, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=20)
    avatar_url: Optional[str] = None


@router.put("/me")
def upsert_my_profile(
    payload: ProfileUpdateRequest,
    session: Session = Depends(get_session),
    current_user: Actor = Depends(get_current_user_required),
):
    profile = session.get(Profile, current_user.user_id)

    if not profile:
        profile = Profile(id=current_user.user_id, full_name=payload.full_name)

    profile.full_name = payload.full_name.strip()
    profile.phone = payload.phone
    profile.avatar_url = payload.avatar_url
    profile.updated_at = datetime.now(timezone.utc)

    session.add(profile)
    session.commit()
    session.refresh(profile)

    return profile


@router.get("/me")
def get_my_profile(
    session: Session = Depends(get_session),
    current_user: Actor = Depends(get_current_user_required),
):
    profile = get_db_profile(session, current_user)

    return {
        "profile": profile,
        "is_admin": access.has_role(session, profile.id, AppRole.admin),
    }


@router.get("/items")
def get_my_items(
    session: Session = Depends(get_session),
    current_user: Actor = Depends(get_current_user_required),
):
    profile = get_db_profile(session, current_user)

    return {
        "items": registry.list_items(session, finder_id=profile.id),
    }


@router.get("/{user_id}")
def get_profile(
    user_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    profile = session.get(Profile, user_id)

    if not profile:
        raise NotFound("User not found")

    return {
        "user": {
            "full_name": profile.full_name,
            "avatar_url": profile.avatar_url,
            "reputation_score": profile.reputation_score,
            "items_found": profile.items_found,
            "items_claimed": profile.items_claimed,
            "created_at": profile.created_at,
        },
        "items": registry.list_items(session, finder_id=profile.id),
    }
