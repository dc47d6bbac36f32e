import uuid
from typing import Optional
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlmodel import Session, col, func, select

from app.db.db import get_session
from app.errors import NotFound
from app.models.enums import AppRole, VerificationStatus
from app.models.item import Item
from app.models.profile import Profile, UserRole
from app.models.verification_request import VerificationRequest
from app.services import access, items as registry, organizations, verifications
from app.utils.auth_helper import Actor, get_current_user_required

router = APIRouter()


# Response Models
class OverviewStats(BaseModel):
    total_items: int
    total_users: int
    pending_verifications: int
    pending_organizations: int


def require_admin(
    session: Session = Depends(get_session),
    current_user: Actor = Depends(get_current_user_required),
) -> Actor:
    access.require_admin(session, current_user)
    return current_user


@router.get("/stats", response_model=OverviewStats)
def get_overview_stats(
    session: Session = Depends(get_session),
    admin: Actor = Depends(require_admin),
):
    """Get overview statistics for the admin dashboard"""
    total_items = session.exec(select(func.count(Item.id))).one()
    total_users = session.exec(select(func.count(Profile.id))).one()

    pending_verifications = session.exec(
        select(func.count(VerificationRequest.id))
        .where(VerificationRequest.status == VerificationStatus.pending)
    ).one()

    pending_organizations = len(organizations.list_pending(session))

    return OverviewStats(
        total_items=total_items,
        total_users=total_users,
        pending_verifications=pending_verifications,
        pending_organizations=pending_organizations,
    )


@router.get("/items")
def get_all_items(
    limit: Optional[int] = Query(None, ge=1, le=100),
    offset: int = Query(0, ge=0),
    session: Session = Depends(get_session),
    admin: Actor = Depends(require_admin),
):
    return {"items": registry.list_items(session, limit=limit, offset=offset)}


@router.get("/users")
def get_all_users(
    session: Session = Depends(get_session),
    admin: Actor = Depends(require_admin),
):
    users = session.exec(select(Profile).order_by(col(Profile.created_at).desc())).all()
    return {"users": users}


@router.get("/verifications")
def get_verifications_for_moderation(
    status: Optional[VerificationStatus] = None,
    session: Session = Depends(get_session),
    admin: Actor = Depends(require_admin),
):
    return {"verifications": verifications.all_requests(session, status)}


@router.get("/organizations/pending")
def get_pending_organizations(
    session: Session = Depends(get_session),
    admin: Actor = Depends(require_admin),
):
    return {"organizations": organizations.list_pending(session)}


@router.post("/organizations/{org_id}/approve")
def approve_organization(
    org_id: uuid.UUID,
    session: Session = Depends(get_session),
    admin: Actor = Depends(require_admin),
):
    return organizations.approve(session, admin, org_id)


@router.post("/organizations/{org_id}/reject")
def reject_organization(
    org_id: uuid.UUID,
    session: Session = Depends(get_session),
    admin: Actor = Depends(require_admin),
):
    return organizations.reject(session, admin, org_id)


@router.post("/users/{user_id}/admin")
def grant_admin_role(
    user_id: uuid.UUID,
    session: Session = Depends(get_session),
    admin: Actor = Depends(require_admin),
):
    if not session.get(Profile, user_id):
        raise NotFound("User not found")

    if not access.has_role(session, user_id, AppRole.admin):
        session.add(UserRole(user_id=user_id, role=AppRole.admin))
        session.commit()

    return {"ok": True}


@router.delete("/users/{user_id}/admin")
def revoke_admin_role(
    user_id: uuid.UUID,
    session: Session = Depends(get_session),
    admin: Actor = Depends(require_admin),
):
    roles = session.exec(
        select(UserRole)
        .where(UserRole.user_id == user_id)
        .where(UserRole.role == AppRole.admin)
    ).all()

    for role in roles:
        session.delete(role)

    session.commit()

    return {"ok": True}
