import uuid
from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from pydantic import BaseModel
from sqlmodel import Session, select

from app.db.db import get_session
from app.errors import AuthorizationError, LostFoundError, ValidationError
from app.models.enums import ItemCategory, ItemStatus, VerificationStatus
from app.models.profile import Profile
from app.models.verification_request import VerificationRequest
from app.services import access, items as registry, verifications
from app.utils.auth_helper import Actor, get_current_user_optional, get_current_user_required, get_db_profile
from app.utils.form_validator import validate_create_item_form
from app.utils.s3_service import ITEM_FOLDER, delete_s3_object, store_uploads


router = APIRouter()

MAX_IMAGES = 5


class StatusUpdateRequest(BaseModel):
    status: ItemStatus


@router.post("/create")
def add_item(
    title: str = Form(...),
    description: str = Form(...),
    category: str = Form(...),
    date_found: str = Form(...),
    city: str = Form(""),
    area: str = Form(""),
    specific_location: str = Form(""),
    latitude: Optional[float] = Form(None),
    longitude: Optional[float] = Form(None),
    organization_id: Optional[str] = Form(None),
    contact_method: Optional[str] = Form(None),
    images: Optional[List[UploadFile]] = File(None),
    session: Session = Depends(get_session),
    current_user: Actor = Depends(get_current_user_required),
):
    # user lookup
    finder = get_db_profile(session, current_user)

    # validate before touching storage
    fields = validate_create_item_form(
        title=title,
        description=description,
        category=category,
        date_found=date_found,
        city=city,
        area=area,
        specific_location=specific_location,
        latitude=latitude,
        longitude=longitude,
        organization_id=organization_id,
        contact_method=contact_method,
    )

    images = images or []

    if len(images) > MAX_IMAGES:
        raise ValidationError(f"At most {MAX_IMAGES} images per item")

    registry.ensure_organization(session, fields.organization_id)

    uploads = [(image.file.read(), image.filename) for image in images]
    image_urls = store_uploads(uploads, ITEM_FOLDER)

    try:
        item = registry.create_item(session, finder.id, fields, image_urls)
    except LostFoundError:
        # no row points at these any more
        for url in image_urls:
            delete_s3_object(url)
        raise

    return item


@router.get("/all")
def get_all_items(
    q: Optional[str] = None,
    category: Optional[ItemCategory] = None,
    city: Optional[str] = None,
    created_after: Optional[datetime] = None,
    organization_id: Optional[uuid.UUID] = None,
    status: Optional[ItemStatus] = None,
    limit: Optional[int] = Query(None, ge=1, le=100),
    offset: int = Query(0, ge=0),
    session: Session = Depends(get_session),
):
    items = registry.list_items(
        session,
        text=q,
        category=category,
        city=city,
        created_after=created_after,
        organization_id=organization_id,
        status=status,
        limit=limit,
        offset=offset,
    )

    return {
        "items": items,
    }


@router.get("/{item_id}")
def get_item(
    item_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: Optional[Actor] = Depends(get_current_user_optional),
):
    item = registry.record_view(session, registry.get_item(session, item_id))
    finder = session.get(Profile, item.finder_id)

    # check for existing claim by the viewer
    claim_status = "none"

    if current_user:
        claim = session.exec(
            select(VerificationRequest)
            .where(VerificationRequest.item_id == item.id)
            .where(VerificationRequest.claimant_id == current_user.user_id)
            .where(VerificationRequest.status != VerificationStatus.rejected)  # don't send rejection info
        ).first()

        if claim:
            claim_status = claim.status.value

    return {
        "item": item,
        "finder": {
            "id": str(finder.id),
            "full_name": finder.full_name,
            "avatar_url": finder.avatar_url,
            "reputation_score": finder.reputation_score,
        } if finder else None,
        "claim_status": claim_status,
    }


@router.patch("/{item_id}/status")
def update_item_status(
    item_id: uuid.UUID,
    payload: StatusUpdateRequest,
    session: Session = Depends(get_session),
    current_user: Actor = Depends(get_current_user_required),
):
    return registry.set_status(session, current_user, item_id, payload.status)


@router.get("/{item_id}/verifications")
def get_item_verifications(
    item_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: Actor = Depends(get_current_user_required),
):
    item = registry.get_item(session, item_id)

    if not access.can_manage_item(session, current_user, item):
        raise AuthorizationError("Not authorized to review claims for this item")

    return {"verifications": verifications.requests_for_item(session, item.id)}


@router.delete("/{item_id}")
def delete_item(
    item_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: Actor = Depends(get_current_user_required),
):
    image_urls = registry.delete_item(session, current_user, item_id)

    for url in image_urls:
        delete_s3_object(url)

    return {"ok": True}
