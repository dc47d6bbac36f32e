import uuid
from typing import Optional
from sqlmodel import Field, SQLModel
from datetime import datetime, timezone

from app.models.enums import AppRole


class Profile(SQLModel, table=True):
    __tablename__ = "profiles"

    # Same id as the auth user
    id: uuid.UUID = Field(primary_key=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    full_name: str
    phone: Optional[str] = None
    avatar_url: Optional[str] = None

    # Recomputed by app.services.profile_stats
    reputation_score: int = Field(default=0)
    items_found: int = Field(default=0)
    items_claimed: int = Field(default=0)


class UserRole(SQLModel, table=True):
    __tablename__ = "user_roles"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    user_id: uuid.UUID = Field(foreign_key="profiles.id", index=True)
    role: AppRole = Field(default=AppRole.user)
