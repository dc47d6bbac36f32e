import uuid
from datetime import datetime, timezone
from typing import List, Optional

from loguru import logger
from sqlmodel import Session, col, or_, select

from app.errors import AuthorizationError, NotFound
from app.models.enums import ItemCategory, ItemStatus
from app.models.item import Item
from app.models.organization import Organization
from app.models.verification_request import VerificationRequest
from app.services import access
from app.utils import events
from app.utils.auth_helper import Actor
from app.utils.form_validator import ValidatedCreateItem


def ensure_organization(session: Session, organization_id: Optional[uuid.UUID]):
    if organization_id and not session.get(Organization, organization_id):
        raise NotFound("Organization not found")


def create_item(
    session: Session,
    finder_id: uuid.UUID,
    fields: ValidatedCreateItem,
    image_urls: Optional[List[str]] = None,
) -> Item:
    ensure_organization(session, fields.organization_id)

    item = Item(
        finder_id=finder_id,
        image_urls=list(image_urls or []),
        **fields.model_dump(),
    )

    session.add(item)
    session.commit()
    session.refresh(item)

    logger.info(f"Item {item.id} posted by {finder_id} in {item.city}")

    events.bus.publish(session, events.DomainEvent(
        name=events.ITEM_CREATED,
        item_id=item.id,
        organization_id=item.organization_id,
        user_ids=[finder_id],
    ))

    # listeners commit, which expires item
    session.refresh(item)

    return item


def get_item(session: Session, item_id: uuid.UUID) -> Item:
    item = session.get(Item, item_id)
    if not item:
        raise NotFound("Item not found")
    return item


def record_view(session: Session, item: Item) -> Item:
    item.views = (item.views or 0) + 1
    session.add(item)
    session.commit()
    session.refresh(item)
    return item


def list_items(
    session: Session,
    text: Optional[str] = None,
    category: Optional[ItemCategory] = None,
    city: Optional[str] = None,
    created_after: Optional[datetime] = None,
    organization_id: Optional[uuid.UUID] = None,
    status: Optional[ItemStatus] = None,
    finder_id: Optional[uuid.UUID] = None,
    limit: Optional[int] = None,
    offset: int = 0,
) -> List[Item]:
    query = select(Item).order_by(col(Item.created_at).desc())

    if text:
        pattern = f"%{text.strip()}%"
        query = query.where(or_(col(Item.title).ilike(pattern), col(Item.description).ilike(pattern)))

    if category:
        query = query.where(Item.category == category)

    if city:
        query = query.where(Item.city == city)

    if created_after:
        query = query.where(Item.created_at >= created_after)

    if organization_id:
        query = query.where(Item.organization_id == organization_id)

    if status:
        query = query.where(Item.status == status)

    if finder_id:
        query = query.where(Item.finder_id == finder_id)

    if offset:
        query = query.offset(offset)

    if limit is not None:
        query = query.limit(limit)

    return list(session.exec(query).all())


def set_status(session: Session, actor: Actor, item_id: uuid.UUID, status: ItemStatus) -> Item:
    """Overwrite an item's status. Any status may follow any other."""
    item = get_item(session, item_id)

    if not access.can_manage_item(session, actor, item):
        raise AuthorizationError("Not authorized to update this item")

    previous = item.status
    item.status = status
    item.updated_at = datetime.now(timezone.utc)

    session.add(item)
    session.commit()
    session.refresh(item)

    logger.info(f"Item {item.id} status {previous.value} -> {status.value} by {actor.user_id}")

    events.bus.publish(session, events.DomainEvent(
        name=events.ITEM_STATUS_CHANGED,
        item_id=item.id,
        organization_id=item.organization_id,
        user_ids=[item.finder_id],
        data={"from": previous.value, "to": status.value},
    ))

    session.refresh(item)

    return item


def delete_item(session: Session, actor: Actor, item_id: uuid.UUID) -> List[str]:
    """
    Hard delete an item. Verification requests go with it through the
    database cascade. Returns the image URLs the caller should remove
    from storage.
    """
    item = get_item(session, item_id)

    if not access.can_delete_item(session, actor, item):
        raise AuthorizationError("Admin access required to delete items")

    image_urls = list(item.image_urls or [])
    finder_id = item.finder_id
    organization_id = item.organization_id
    claimant_ids = session.exec(
        select(VerificationRequest.claimant_id).where(VerificationRequest.item_id == item.id)
    ).all()

    session.delete(item)
    session.commit()

    logger.info(f"Item {item_id} deleted by {actor.user_id}")

    events.bus.publish(session, events.DomainEvent(
        name=events.ITEM_DELETED,
        item_id=item_id,
        organization_id=organization_id,
        user_ids=[finder_id, *set(claimant_ids)],
    ))

    return image_urls
