"""
Access scope resolution.

Three scopes grant authority over an item and the claims against it: being
its finder, administering the organization it belongs to, or holding the
global ``admin`` role. Roles are always read from the database.
"""
import uuid
from typing import Optional

from sqlmodel import Session, select

from app.errors import AuthorizationError
from app.models.enums import AppRole, OrgRole
from app.models.item import Item
from app.models.organization import Organization, OrganizationAdmin
from app.models.profile import UserRole
from app.models.verification_request import VerificationRequest
from app.utils.auth_helper import Actor


def has_role(session: Session, user_id: uuid.UUID, role: AppRole) -> bool:
    row = session.exec(
        select(UserRole)
        .where(UserRole.user_id == user_id)
        .where(UserRole.role == role)
    ).first()

    return row is not None


def is_org_admin(session: Session, user_id: uuid.UUID, org_id: Optional[uuid.UUID], role: Optional[OrgRole] = None) -> bool:
    if org_id is None:
        return False

    query = (
        select(OrganizationAdmin)
        .where(OrganizationAdmin.user_id == user_id)
        .where(OrganizationAdmin.organization_id == org_id)
    )

    if role:
        query = query.where(OrganizationAdmin.role == role)

    return session.exec(query).first() is not None


def is_global_admin(session: Session, actor: Actor) -> bool:
    return has_role(session, actor.user_id, AppRole.admin)


def can_manage_item(session: Session, actor: Actor, item: Item) -> bool:
    if item.finder_id == actor.user_id:
        return True

    if is_org_admin(session, actor.user_id, item.organization_id):
        return True

    return is_global_admin(session, actor)


def can_adjudicate(session: Session, actor: Actor, request: VerificationRequest) -> bool:
    item = session.get(Item, request.item_id)
    if not item:
        # Dangling request: only a global admin may clean it up
        return is_global_admin(session, actor)

    return can_manage_item(session, actor, item)


def can_delete_item(session: Session, actor: Actor, item: Item) -> bool:
    if is_org_admin(session, actor.user_id, item.organization_id):
        return True

    return is_global_admin(session, actor)


def can_view_organization(session: Session, actor: Actor, org: Organization) -> bool:
    """Inactive organizations are visible to their registrant, their admins and platform admins."""
    if org.is_active or org.created_by == actor.user_id:
        return True

    return is_org_admin(session, actor.user_id, org.id) or is_global_admin(session, actor)


def can_view_admin_console(session: Session, actor: Actor) -> bool:
    return is_global_admin(session, actor)


def require_admin(session: Session, actor: Actor):
    if not can_view_admin_console(session, actor):
        raise AuthorizationError("Admin access required")


def require_org_admin(session: Session, actor: Actor, org_id: uuid.UUID):
    if is_org_admin(session, actor.user_id, org_id):
        return

    if not is_global_admin(session, actor):
        raise AuthorizationError("Organization admin access required")
