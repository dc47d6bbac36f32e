import pytest
from sqlmodel import select

from app.errors import AuthorizationError, NotFound
from app.models.enums import OrganizationReviewStatus, OrgRole
from app.models.notification import Notification
from app.services import organizations
from app.utils.form_validator import validate_create_organization_form

from conftest import actor


def org_form(**overrides):
    fields = dict(
        name="IIT Bombay",
        type="college",
        address="Powai",
        city="Mumbai",
        contact_email="lostfound@iitb.ac.in",
        contact_phone="02225722545",
    )
    fields.update(overrides)
    return validate_create_organization_form(**fields)


def test_registration_is_pending_and_hidden(session, make_profile):
    org = organizations.register(session, org_form(), make_profile().id)

    assert org.is_verified is False
    assert org.is_active is False
    assert org.review_status == OrganizationReviewStatus.pending
    assert organizations.list_active(session) == []
    assert [o.id for o in organizations.list_pending(session)] == [org.id]


def test_approval_publishes_organization(session, make_profile):
    registrant = make_profile("Registrar")
    admin = make_profile("Admin", admin=True)
    org = organizations.register(session, org_form(), registrant.id)

    approved = organizations.approve(session, actor(admin), org.id)

    assert approved.is_verified and approved.is_active
    assert approved.review_status == OrganizationReviewStatus.approved
    assert [o.id for o in organizations.list_active(session)] == [org.id]
    assert organizations.list_pending(session) == []

    notice = session.exec(select(Notification).where(Notification.user_id == registrant.id)).one()
    assert notice.type == "organization_approved"


def test_rejection_is_distinct_from_never_reviewed(session, make_profile):
    admin = make_profile("Admin", admin=True)
    org = organizations.register(session, org_form(), make_profile().id)

    rejected = organizations.reject(session, actor(admin), org.id)

    assert rejected.is_verified is False
    assert rejected.is_active is False
    assert rejected.review_status == OrganizationReviewStatus.rejected
    assert organizations.list_pending(session) == []


def test_review_requires_global_admin(session, make_profile):
    registrant = make_profile()
    org = organizations.register(session, org_form(), registrant.id)

    with pytest.raises(AuthorizationError):
        organizations.approve(session, actor(registrant), org.id)


def test_active_listing_is_ordered_by_name(session, make_org):
    make_org(name="Phoenix Mall")
    make_org(name="Andheri Station")
    make_org(name="Closed Mall", active=False)

    assert [o.name for o in organizations.list_active(session)] == ["Andheri Station", "Phoenix Mall"]


def test_assign_admin_allows_duplicates(session, make_profile, make_org):
    admin = make_profile("Admin", admin=True)
    desk = make_profile("Desk")
    org = make_org()

    organizations.assign_admin(session, actor(admin), org.id, desk.id)
    organizations.assign_admin(session, actor(admin), org.id, desk.id)

    assert len(organizations.list_admins(session, org.id)) == 2
    assert [o.id for o in organizations.organizations_for_user(session, desk.id)] == [org.id]


def test_owner_can_assign_but_plain_admin_cannot(session, make_profile, make_org):
    admin = make_profile("Admin", admin=True)
    owner = make_profile("Owner")
    desk = make_profile("Desk")
    newcomer = make_profile("Newcomer")
    org = make_org()

    organizations.assign_admin(session, actor(admin), org.id, owner.id, role=OrgRole.owner)
    organizations.assign_admin(session, actor(owner), org.id, desk.id)

    with pytest.raises(AuthorizationError):
        organizations.assign_admin(session, actor(desk), org.id, newcomer.id)


def test_unknown_organization(session, make_profile):
    import uuid

    with pytest.raises(NotFound):
        organizations.approve(session, actor(make_profile("Admin", admin=True)), uuid.uuid4())


def test_assign_admin_unknown_user(session, make_profile, make_org):
    import uuid

    org = make_org()

    with pytest.raises(NotFound, match="User not found"):
        organizations.assign_admin(session, actor(make_profile("Admin", admin=True)), org.id, uuid.uuid4())

    assert organizations.list_admins(session, org.id) == []


def test_reviewed_organization_is_fully_loaded(session, make_profile):
    registrant = make_profile("Registrar")
    org = organizations.register(session, org_form(), registrant.id)

    reviewed = organizations.approve(session, actor(make_profile("Admin", admin=True)), org.id)

    # the registrant's inbox listener commits during review
    dumped = reviewed.model_dump()
    assert dumped["id"] == org.id
    assert dumped["review_status"] == OrganizationReviewStatus.approved
