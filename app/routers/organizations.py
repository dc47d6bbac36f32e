import uuid
from typing import Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session, func, select

from app.db.db import get_session
from app.errors import NotFound
from app.models.enums import OrgRole, VerificationStatus
from app.models.item import Item
from app.models.organization import OrganizationAdmin
from app.models.profile import Profile
from app.models.verification_request import VerificationRequest
from app.services import access, items as registry, organizations, verifications
from app.utils.auth_helper import Actor, get_current_user_optional, get_current_user_required, get_db_profile
from app.utils.form_validator import ValidatedCreateOrganization


router = APIRouter()


class AssignAdminRequest(BaseModel):
    user_id: uuid.UUID
    role: OrgRole = OrgRole.admin


class OrgStats(BaseModel):
    total_items: int
    pending_verifications: int
    admins: int


@router.get("/")
def get_active_organizations(session: Session = Depends(get_session)):
    return {"organizations": organizations.list_active(session)}


@router.post("/register")
def register_organization(
    payload: ValidatedCreateOrganization,
    session: Session = Depends(get_session),
    current_user: Actor = Depends(get_current_user_required),
):
    registrant = get_db_profile(session, current_user)
    return organizations.register(session, payload, registrant.id)


@router.get("/mine")
def get_my_organizations(
    session: Session = Depends(get_session),
    current_user: Actor = Depends(get_current_user_required),
):
    return {"organizations": organizations.organizations_for_user(session, current_user.user_id)}


@router.get("/{org_id}")
def get_organization(
    org_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: Optional[Actor] = Depends(get_current_user_optional),
):
    org = organizations.get_organization(session, org_id)

    # pending and rejected organizations stay hidden from the public
    if not org.is_active and not (current_user and access.can_view_organization(session, current_user, org)):
        raise NotFound("Organization not found")

    return org


@router.get("/{org_id}/stats", response_model=OrgStats)
def get_organization_stats(
    org_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: Actor = Depends(get_current_user_required),
):
    organizations.get_organization(session, org_id)
    access.require_org_admin(session, current_user, org_id)

    total_items = session.exec(
        select(func.count(Item.id)).where(Item.organization_id == org_id)
    ).one()

    pending = session.exec(
        select(func.count(VerificationRequest.id))
        .join(Item, VerificationRequest.item_id == Item.id)
        .where(Item.organization_id == org_id)
        .where(VerificationRequest.status == VerificationStatus.pending)
    ).one()

    admins = session.exec(
        select(func.count(OrganizationAdmin.id)).where(OrganizationAdmin.organization_id == org_id)
    ).one()

    return OrgStats(total_items=total_items, pending_verifications=pending, admins=admins)


@router.get("/{org_id}/items")
def get_organization_items(
    org_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: Actor = Depends(get_current_user_required),
):
    organizations.get_organization(session, org_id)
    access.require_org_admin(session, current_user, org_id)

    return {"items": registry.list_items(session, organization_id=org_id)}


@router.get("/{org_id}/verifications")
def get_organization_verifications(
    org_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: Actor = Depends(get_current_user_required),
):
    organizations.get_organization(session, org_id)
    access.require_org_admin(session, current_user, org_id)

    return {"verifications": verifications.requests_for_organization(session, org_id)}


@router.get("/{org_id}/admins")
def get_organization_admins(
    org_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: Actor = Depends(get_current_user_required),
):
    organizations.get_organization(session, org_id)
    access.require_org_admin(session, current_user, org_id)

    admins = []
    for org_admin in organizations.list_admins(session, org_id):
        profile = session.get(Profile, org_admin.user_id)
        data = org_admin.model_dump()
        data["full_name"] = profile.full_name if profile else None
        admins.append(data)

    return {"admins": admins}


@router.post("/{org_id}/admins")
def assign_organization_admin(
    org_id: uuid.UUID,
    payload: AssignAdminRequest,
    session: Session = Depends(get_session),
    current_user: Actor = Depends(get_current_user_required),
):
    return organizations.assign_admin(session, current_user, org_id, payload.user_id, payload.role)
