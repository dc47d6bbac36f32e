import uuid
from typing import Optional
from sqlmodel import Field, SQLModel
from datetime import datetime, timezone

from app.models.enums import OrganizationReviewStatus, OrgRole


class Organization(SQLModel, table=True):
    __tablename__ = "organizations"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    created_by: Optional[uuid.UUID] = Field(default=None, foreign_key="profiles.id")

    name: str = Field(index=True)
    type: str  # mall, college, transit, ...
    address: str
    city: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    contact_email: str
    contact_phone: str
    logo_url: Optional[str] = None
    radius_meters: Optional[int] = None
    require_location_verification: bool = Field(default=False)

    is_verified: bool = Field(default=False)
    is_active: bool = Field(default=False, index=True)
    review_status: OrganizationReviewStatus = Field(default=OrganizationReviewStatus.pending, index=True)


class OrganizationAdmin(SQLModel, table=True):
    __tablename__ = "organization_admins"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    organization_id: uuid.UUID = Field(foreign_key="organizations.id", index=True, ondelete="CASCADE")
    user_id: uuid.UUID = Field(foreign_key="profiles.id", index=True)

    role: OrgRole = Field(default=OrgRole.admin)
