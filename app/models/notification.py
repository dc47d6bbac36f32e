from typing import Optional
import uuid
from sqlmodel import Field, SQLModel
from datetime import datetime, timezone

class Notification(SQLModel, table=True):
    __tablename__ = "notifications"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Ownership
    user_id: uuid.UUID = Field(foreign_key="profiles.id", index=True)

    # values: "claim_created", "claim_approved", "claim_rejected",
    # "organization_approved", "organization_rejected"
    type: str = Field(index=True)

    title: str
    message: str

    item_id: Optional[uuid.UUID] = Field(default=None, index=True)
    verification_request_id: Optional[uuid.UUID] = Field(default=None, index=True)

    is_read: bool = Field(default=False)
