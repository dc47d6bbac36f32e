import uuid
from typing import List, Optional
from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel
from datetime import datetime, timezone

from app.models.enums import VerificationStatus


class VerificationRequest(SQLModel, table=True):
    __tablename__ = "verification_requests"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), index=True)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Claimant
    claimant_id: uuid.UUID = Field(foreign_key="profiles.id", index=True)
    claimant_phone: Optional[str] = None  # for sending SMS

    # Claimed item
    item_id: uuid.UUID = Field(foreign_key="items.id", index=True, ondelete="CASCADE")

    # Proof of ownership
    purchase_proof_url: Optional[str] = None
    identification_marks: Optional[str] = None
    photo_with_item_urls: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    additional_proof_urls: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    security_answers: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    status: VerificationStatus = Field(default=VerificationStatus.pending, index=True)

    # Decision
    admin_notes: Optional[str] = None
    decided_by: Optional[uuid.UUID] = None
    decided_at: Optional[datetime] = None

    sms_sent: bool = Field(default=False)
    sms_sent_at: Optional[datetime] = None
