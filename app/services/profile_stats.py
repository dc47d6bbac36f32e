"""Derived profile counters, recomputed from items and verification requests."""
import uuid
from datetime import datetime, timezone

from sqlmodel import Session, func, select

from app.models.enums import ItemStatus, VerificationStatus
from app.models.item import Item
from app.models.profile import Profile
from app.models.verification_request import VerificationRequest
from app.utils import events

REPUTATION_PER_RETURN = 10


def recompute(session: Session, user_id: uuid.UUID):
    profile = session.get(Profile, user_id)
    if not profile:
        return None

    profile.items_found = session.exec(
        select(func.count(Item.id)).where(Item.finder_id == user_id)
    ).one()

    profile.items_claimed = session.exec(
        select(func.count(VerificationRequest.id))
        .where(VerificationRequest.claimant_id == user_id)
        .where(VerificationRequest.status == VerificationStatus.approved)
    ).one()

    returned = session.exec(
        select(func.count(Item.id))
        .where(Item.finder_id == user_id)
        .where(Item.status == ItemStatus.returned)
    ).one()
    profile.reputation_score = returned * REPUTATION_PER_RETURN

    profile.updated_at = datetime.now(timezone.utc)
    session.add(profile)
    session.commit()
    session.refresh(profile)

    return profile


def on_counters_changed(session: Session, event: events.DomainEvent):
    for user_id in set(event.user_ids):
        recompute(session, user_id)


def register(bus: events.EventBus):
    for name in (
        events.ITEM_CREATED,
        events.ITEM_STATUS_CHANGED,
        events.ITEM_DELETED,
        events.REQUEST_DECIDED,
    ):
        bus.subscribe(name, on_counters_changed)
