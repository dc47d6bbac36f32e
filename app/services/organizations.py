import uuid
from datetime import datetime, timezone
from typing import List

from loguru import logger
from sqlmodel import Session, col, select

from app.errors import AuthorizationError, NotFound
from app.models.enums import OrganizationReviewStatus, OrgRole
from app.models.organization import Organization, OrganizationAdmin
from app.models.profile import Profile
from app.services import access
from app.utils import events
from app.utils.auth_helper import Actor
from app.utils.form_validator import ValidatedCreateOrganization


def register(session: Session, fields: ValidatedCreateOrganization, registrant_id: uuid.UUID) -> Organization:
    """Self-registration; the organization stays hidden until a platform admin approves it."""
    org = Organization(
        created_by=registrant_id,
        is_verified=False,
        is_active=False,
        review_status=OrganizationReviewStatus.pending,
        **fields.model_dump(mode="json"),
    )

    session.add(org)
    session.commit()
    session.refresh(org)

    logger.info(f"Organization {org.id} ({org.name}) registered by {registrant_id}")

    return org


def get_organization(session: Session, org_id: uuid.UUID) -> Organization:
    org = session.get(Organization, org_id)
    if not org:
        raise NotFound("Organization not found")
    return org


def _review(session: Session, actor: Actor, org_id: uuid.UUID, approved: bool) -> Organization:
    access.require_admin(session, actor)

    org = get_organization(session, org_id)

    org.is_verified = approved
    org.is_active = approved
    org.review_status = OrganizationReviewStatus.approved if approved else OrganizationReviewStatus.rejected
    org.updated_at = datetime.now(timezone.utc)

    session.add(org)
    session.commit()
    session.refresh(org)

    logger.info(f"Organization {org.id} {org.review_status.value} by {actor.user_id}")

    events.bus.publish(session, events.DomainEvent(
        name=events.ORGANIZATION_REVIEWED,
        organization_id=org.id,
        user_ids=[org.created_by] if org.created_by else [],
        data={"decision": org.review_status.value, "name": org.name},
    ))

    # listeners commit, which expires org
    session.refresh(org)

    return org


def approve(session: Session, actor: Actor, org_id: uuid.UUID) -> Organization:
    return _review(session, actor, org_id, approved=True)


def reject(session: Session, actor: Actor, org_id: uuid.UUID) -> Organization:
    return _review(session, actor, org_id, approved=False)


def assign_admin(
    session: Session,
    actor: Actor,
    org_id: uuid.UUID,
    user_id: uuid.UUID,
    role: OrgRole = OrgRole.admin,
) -> OrganizationAdmin:
    get_organization(session, org_id)

    if not (access.is_global_admin(session, actor) or access.is_org_admin(session, actor.user_id, org_id, role=OrgRole.owner)):
        raise AuthorizationError("Only platform admins or organization owners can assign admins")

    if not session.get(Profile, user_id):
        raise NotFound("User not found")

    # No duplicate check: the same user may be listed twice
    org_admin = OrganizationAdmin(organization_id=org_id, user_id=user_id, role=role)

    session.add(org_admin)
    session.commit()
    session.refresh(org_admin)

    logger.info(f"User {user_id} made {OrgRole(role).value} of organization {org_id} by {actor.user_id}")

    return org_admin


def list_admins(session: Session, org_id: uuid.UUID) -> List[OrganizationAdmin]:
    return list(session.exec(
        select(OrganizationAdmin)
        .where(OrganizationAdmin.organization_id == org_id)
        .order_by(col(OrganizationAdmin.created_at))
    ).all())


def list_active(session: Session) -> List[Organization]:
    return list(session.exec(
        select(Organization)
        .where(Organization.is_active == True)  # noqa: E712
        .order_by(col(Organization.name))
    ).all())


def list_pending(session: Session) -> List[Organization]:
    return list(session.exec(
        select(Organization)
        .where(Organization.review_status == OrganizationReviewStatus.pending)
        .order_by(col(Organization.created_at).desc())
    ).all())


def organizations_for_user(session: Session, user_id: uuid.UUID) -> List[Organization]:
    return list(session.exec(
        select(Organization)
        .join(OrganizationAdmin, OrganizationAdmin.organization_id == Organization.id)
        .where(OrganizationAdmin.user_id == user_id)
        .order_by(col(Organization.name))
        .distinct()
    ).all())
