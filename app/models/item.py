import os
import uuid
from typing import List, Optional
from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel
from datetime import datetime, timedelta, timezone

from app.models.enums import ItemCategory, ItemStatus


ITEM_EXPIRY_DAYS = int(os.getenv("ITEM_EXPIRY_DAYS", "30"))


def default_expiry():
    return datetime.now(timezone.utc) + timedelta(days=ITEM_EXPIRY_DAYS)


class Item(SQLModel, table=True):
    __tablename__ = "items"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), index=True)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Finder info
    finder_id: uuid.UUID = Field(foreign_key="profiles.id", index=True)
    organization_id: Optional[uuid.UUID] = Field(default=None, foreign_key="organizations.id", index=True)

    # Item fields
    title: str
    description: str
    category: ItemCategory
    date_found: datetime
    contact_method: Optional[str] = None
    image_urls: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))

    # Where it was found
    city: str = Field(index=True)
    area: str
    specific_location: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    status: ItemStatus = Field(default=ItemStatus.available, index=True)
    views: int = Field(default=0)
    expires_at: datetime = Field(default_factory=default_expiry)
