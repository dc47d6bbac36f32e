"""
Verification requests: claimants submit proof of ownership for a found item,
and an adjudicator (finder, organization admin or platform admin) approves
or rejects it exactly once.
"""
import uuid
from datetime import datetime, timezone
from typing import Callable, List, Optional

from loguru import logger
from sqlalchemy import update
from sqlmodel import Session, col, select

from app.errors import (
    AuthorizationError,
    InvalidState,
    ItemNotClaimable,
    LostFoundError,
    NotFound,
    ValidationError,
)
from app.models.enums import ItemStatus, VerificationStatus
from app.models.item import Item
from app.models.profile import Profile
from app.models.verification_request import VerificationRequest
from app.services import access
from app.services.items import get_item
from app.utils import events
from app.utils.auth_helper import Actor
from app.utils.form_validator import VerificationProof
from app.utils.sms_service import SMSResult, send_sms_notification


Notifier = Callable[[str, str, str], SMSResult]


def ensure_claimable(session: Session, item_id: uuid.UUID) -> Item:
    item = get_item(session, item_id)

    if item.status != ItemStatus.available:
        raise ItemNotClaimable(f"Item is {item.status.value} and cannot be claimed")

    return item


def submit_request(
    session: Session,
    item_id: uuid.UUID,
    claimant_id: uuid.UUID,
    proof: VerificationProof,
) -> VerificationRequest:
    """
    Record a claim against an available item. Several claimants, or the same
    claimant several times, may hold pending requests for one item.
    """
    item = ensure_claimable(session, item_id)

    phone = proof.claimant_phone
    if not phone:
        claimant = session.get(Profile, claimant_id)
        phone = claimant.phone if claimant else None

    request = VerificationRequest(
        item_id=item.id,
        claimant_id=claimant_id,
        claimant_phone=phone,
        purchase_proof_url=proof.purchase_proof_url,
        identification_marks=proof.identification_marks,
        photo_with_item_urls=list(proof.photo_with_item_urls),
        additional_proof_urls=list(proof.additional_proof_urls),
        security_answers=proof.security_answers.model_dump() if proof.security_answers else None,
    )

    session.add(request)
    session.commit()
    session.refresh(request)

    logger.info(f"Verification request {request.id} submitted for item {item.id} by {claimant_id}")

    events.bus.publish(session, events.DomainEvent(
        name=events.REQUEST_SUBMITTED,
        item_id=item.id,
        request_id=request.id,
        organization_id=item.organization_id,
        user_ids=[item.finder_id, claimant_id],
        data={"item_title": item.title, "finder_id": str(item.finder_id)},
    ))

    # listeners commit, which expires request
    session.refresh(request)

    return request


def get_request(session: Session, request_id: uuid.UUID) -> VerificationRequest:
    request = session.get(VerificationRequest, request_id)
    if not request:
        raise NotFound("Verification request not found")
    return request


def requests_for_item(session: Session, item_id: uuid.UUID) -> List[VerificationRequest]:
    return list(session.exec(
        select(VerificationRequest)
        .where(VerificationRequest.item_id == item_id)
        .order_by(col(VerificationRequest.created_at).desc())
    ).all())


def requests_by_claimant(session: Session, claimant_id: uuid.UUID) -> List[VerificationRequest]:
    return list(session.exec(
        select(VerificationRequest)
        .where(VerificationRequest.claimant_id == claimant_id)
        .order_by(col(VerificationRequest.created_at).desc())
    ).all())


def requests_for_finder(session: Session, finder_id: uuid.UUID) -> List[VerificationRequest]:
    return list(session.exec(
        select(VerificationRequest)
        .join(Item, VerificationRequest.item_id == Item.id)
        .where(Item.finder_id == finder_id)
        .order_by(col(VerificationRequest.created_at).desc())
    ).all())


def requests_for_organization(session: Session, org_id: uuid.UUID) -> List[VerificationRequest]:
    return list(session.exec(
        select(VerificationRequest)
        .join(Item, VerificationRequest.item_id == Item.id)
        .where(Item.organization_id == org_id)
        .order_by(col(VerificationRequest.created_at).desc())
    ).all())


def all_requests(session: Session, status: Optional[VerificationStatus] = None) -> List[VerificationRequest]:
    query = select(VerificationRequest).order_by(col(VerificationRequest.created_at).desc())

    if status:
        query = query.where(VerificationRequest.status == status)

    return list(session.exec(query).all())


def decide(
    session: Session,
    actor: Actor,
    request_id: uuid.UUID,
    decision: VerificationStatus,
    notes: Optional[str] = None,
    notify: Notifier = send_sms_notification,
) -> VerificationRequest:
    request = get_request(session, request_id)

    if not access.can_adjudicate(session, actor, request):
        raise AuthorizationError("Not authorized to decide this verification request")

    if decision not in (VerificationStatus.approved, VerificationStatus.rejected):
        raise ValidationError("Decision must be 'approved' or 'rejected'")

    if request.status != VerificationStatus.pending:
        raise InvalidState(f"Verification request is already {request.status.value}")

    now = datetime.now(timezone.utc)

    # Conditional update: only one concurrent adjudicator can move it out of pending
    result = session.exec(
        update(VerificationRequest)
        .where(VerificationRequest.id == request_id)
        .where(VerificationRequest.status == VerificationStatus.pending)
        .values(
            status=decision,
            admin_notes=notes,
            decided_by=actor.user_id,
            decided_at=now,
            updated_at=now,
        )
    )

    if result.rowcount != 1:
        session.rollback()
        raise InvalidState("Verification request was already decided")

    item = session.get(Item, request.item_id)

    if decision == VerificationStatus.approved and item:
        item.status = ItemStatus.returned
        item.updated_at = now
        session.add(item)

    session.commit()
    session.refresh(request)

    logger.info(f"Verification request {request.id} {decision.value} by {actor.user_id}")

    events.bus.publish(session, events.DomainEvent(
        name=events.REQUEST_DECIDED,
        item_id=request.item_id,
        request_id=request.id,
        organization_id=item.organization_id if item else None,
        user_ids=[u for u in (request.claimant_id, item.finder_id if item else None) if u],
        data={
            "decision": decision.value,
            "claimant_id": str(request.claimant_id),
            "item_title": item.title if item else "",
        },
    ))

    if item:
        _notify_claimant(session, request, item.title, notify)

    session.refresh(request)

    return request


def _notify_claimant(session: Session, request: VerificationRequest, item_title: str, notify: Notifier):
    """Best-effort SMS; the decision is already committed whatever happens here."""
    if not request.claimant_phone:
        logger.info(f"No phone for claimant of request {request.id}, skipping SMS")
        return

    try:
        result = notify(request.claimant_phone, item_title, request.status.value)
    except LostFoundError as e:
        logger.warning(f"SMS for request {request.id} failed: {e.detail}")
        return
    except Exception as e:
        logger.exception(f"SMS for request {request.id} failed: {e}")
        return

    if not result.success:
        logger.info(f"SMS for request {request.id} not sent: {result.message}")
        return

    request.sms_sent = True
    request.sms_sent_at = datetime.now(timezone.utc)
    session.add(request)
    session.commit()
    session.refresh(request)
