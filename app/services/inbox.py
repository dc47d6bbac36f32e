import uuid
from typing import List

from sqlmodel import Session, col, func, select

from app.errors import NotFound
from app.models.notification import Notification
from app.utils import events


def _add(session: Session, **fields):
    session.add(Notification(**fields))
    session.commit()


def on_request_submitted(session: Session, event: events.DomainEvent):
    title = event.data.get("item_title", "")
    _add(
        session,
        user_id=uuid.UUID(event.data["finder_id"]),
        type="claim_created",
        title="New claim received",
        message=f"A user has submitted a claim for your found item '{title}'.",
        item_id=event.item_id,
        verification_request_id=event.request_id,
    )


def on_request_decided(session: Session, event: events.DomainEvent):
    claimant_id = uuid.UUID(event.data["claimant_id"])
    title = event.data.get("item_title", "")

    if event.data["decision"] == "approved":
        _add(
            session,
            user_id=claimant_id,
            type="claim_approved",
            title="Your claim has been approved",
            message=f"Your claim for the item '{title}' has been approved. The finder will contact you for handover.",
            item_id=event.item_id,
            verification_request_id=event.request_id,
        )
    else:
        _add(
            session,
            user_id=claimant_id,
            type="claim_rejected",
            title="Your claim has been rejected",
            message=f"Your claim for the item '{title}' was not approved.",
            item_id=event.item_id,
            verification_request_id=event.request_id,
        )


def on_organization_reviewed(session: Session, event: events.DomainEvent):
    if not event.user_ids:
        return

    decision = event.data["decision"]
    name = event.data.get("name", "")

    _add(
        session,
        user_id=event.user_ids[0],
        type=f"organization_{decision}",
        title=f"Organization {decision}",
        message=f"Your organization '{name}' has been {decision} by the platform admins.",
    )


def register(bus: events.EventBus):
    bus.subscribe(events.REQUEST_SUBMITTED, on_request_submitted)
    bus.subscribe(events.REQUEST_DECIDED, on_request_decided)
    bus.subscribe(events.ORGANIZATION_REVIEWED, on_organization_reviewed)


def list_notifications(session: Session, user_id: uuid.UUID, limit: int = 20, unread_only: bool = False) -> List[Notification]:
    query = (
        select(Notification)
        .where(Notification.user_id == user_id)
        .order_by(col(Notification.created_at).desc())
    )

    if unread_only:
        query = query.where(Notification.is_read == False)  # noqa: E712

    return list(session.exec(query.limit(limit)).all())


def unread_count(session: Session, user_id: uuid.UUID) -> int:
    return session.exec(
        select(func.count(Notification.id))
        .where(Notification.user_id == user_id)
        .where(Notification.is_read == False)  # noqa: E712
    ).one()


def mark_read(session: Session, user_id: uuid.UUID, notification_id: uuid.UUID):
    notif = session.exec(
        select(Notification)
        .where(Notification.id == notification_id)
        .where(Notification.user_id == user_id)
    ).first()

    if not notif:
        raise NotFound("Notification not found")

    notif.is_read = True
    session.add(notif)
    session.commit()


def mark_all_read(session: Session, user_id: uuid.UUID):
    notifications = session.exec(
        select(Notification)
        .where(Notification.user_id == user_id)
        .where(Notification.is_read == False)  # noqa: E712
    ).all()

    for notif in notifications:
        notif.is_read = True
        session.add(notif)

    session.commit()
