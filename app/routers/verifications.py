import uuid
from typing import List, Literal, Optional
from fastapi import APIRouter, Depends, File, Form, UploadFile
from pydantic import BaseModel, Field
from sqlmodel import Session

from app.db.db import get_session
from app.errors import AuthorizationError, LostFoundError, ValidationError
from app.models.enums import VerificationStatus
from app.models.item import Item
from app.models.verification_request import VerificationRequest
from app.services import access, verifications
from app.utils.auth_helper import Actor, get_current_user_required, get_db_profile
from app.utils.form_validator import parse_security_answers, validate_verification_proof
from app.utils.s3_service import PROOF_FOLDER, delete_s3_object, store_uploads
from app.utils.sms_service import send_sms_notification


router = APIRouter()

MAX_PROOF_FILES = 5


class DecisionRequest(BaseModel):
    decision: Literal["approved", "rejected"]
    notes: Optional[str] = Field(default=None, max_length=500)


def get_notifier():
    return send_sms_notification


def _with_item(session: Session, requests: List[VerificationRequest]):
    response = []

    for request in requests:
        item = session.get(Item, request.item_id)
        data = request.model_dump()
        data["item"] = {
            "id": str(item.id),
            "title": item.title,
            "category": item.category.value,
            "status": item.status.value,
            "image_urls": item.image_urls,
        } if item else None
        response.append(data)

    return response


def _read_files(files: Optional[List[UploadFile]]):
    return [(f.file.read(), f.filename) for f in (files or [])]


@router.post("/create")
def create_verification_request(
    item_id: uuid.UUID = Form(...),
    identification_marks: Optional[str] = Form(None),
    security_answers: Optional[str] = Form(None),
    claimant_phone: Optional[str] = Form(None),
    purchase_proof: Optional[UploadFile] = File(None),
    photos_with_item: Optional[List[UploadFile]] = File(None),
    additional_proofs: Optional[List[UploadFile]] = File(None),
    session: Session = Depends(get_session),
    current_user: Actor = Depends(get_current_user_required),
):
    claimant = get_db_profile(session, current_user)

    # Fail fast before uploading anything
    item = verifications.ensure_claimable(session, item_id)

    if item.finder_id == claimant.id:
        raise ValidationError("You cannot claim your own item")

    # Text fields are checked before anything is uploaded
    proof = validate_verification_proof(
        identification_marks=identification_marks,
        security_answers=parse_security_answers(security_answers),
        claimant_phone=claimant_phone,
    )

    photos = _read_files(photos_with_item)
    extras = _read_files(additional_proofs)

    if len(photos) > MAX_PROOF_FILES or len(extras) > MAX_PROOF_FILES:
        raise ValidationError(f"At most {MAX_PROOF_FILES} files per proof field")

    receipt = _read_files([purchase_proof] if purchase_proof else [])

    # Every upload finishes before the request row exists
    urls = store_uploads(receipt + photos + extras, PROOF_FOLDER)

    proof = proof.model_copy(update={
        "purchase_proof_url": urls[0] if receipt else None,
        "photo_with_item_urls": urls[len(receipt):len(receipt) + len(photos)],
        "additional_proof_urls": urls[len(receipt) + len(photos):],
    })

    try:
        request = verifications.submit_request(session, item.id, claimant.id, proof)
    except LostFoundError:
        for url in urls:
            delete_s3_object(url)
        raise

    return {
        "ok": True,
        "verification_request_id": str(request.id),
    }


@router.get("/mine")
def get_my_claims(
    session: Session = Depends(get_session),
    current_user: Actor = Depends(get_current_user_required),
):
    requests = verifications.requests_by_claimant(session, current_user.user_id)
    return {"verifications": _with_item(session, requests)}


@router.get("/finder")
def get_requests_for_my_finds(
    session: Session = Depends(get_session),
    current_user: Actor = Depends(get_current_user_required),
):
    requests = verifications.requests_for_finder(session, current_user.user_id)
    return {"verifications": _with_item(session, requests)}


@router.get("/{request_id}")
def get_verification_request(
    request_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: Actor = Depends(get_current_user_required),
):
    """
    Get a request by ID - accessible by the claimant and by anyone who may decide it.
    """
    request = verifications.get_request(session, request_id)

    if request.claimant_id != current_user.user_id and not access.can_adjudicate(session, current_user, request):
        raise AuthorizationError("Not authorized to view this verification request")

    return _with_item(session, [request])[0]


@router.post("/{request_id}/decide")
def decide_verification_request(
    request_id: uuid.UUID,
    payload: DecisionRequest,
    session: Session = Depends(get_session),
    current_user: Actor = Depends(get_current_user_required),
    notify=Depends(get_notifier),
):
    request = verifications.decide(
        session,
        current_user,
        request_id,
        VerificationStatus(payload.decision),
        payload.notes,
        notify=notify,
    )

    return request
