import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["R2_PUBLIC_URL"] = "https://cdn.test"
for key in ("TWILIO_ACCOUNT_SID", "TWILIO_AUTH_TOKEN", "TWILIO_PHONE_NUMBER"):
    os.environ.pop(key, None)

import uuid  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import Session, SQLModel  # noqa: E402

from app.db.db import engine, get_session  # noqa: E402
from app.errors import StorageFailure  # noqa: E402
from app.main import app, register_listeners  # noqa: E402
from app.models.enums import AppRole  # noqa: E402
from app.models.organization import Organization, OrganizationAdmin  # noqa: E402
from app.models.profile import Profile, UserRole  # noqa: E402
from app.routers import items as items_router, verifications as verifications_router  # noqa: E402
from app.services import items as registry  # noqa: E402
from app.utils import events  # noqa: E402
from app.utils.auth_helper import Actor, create_access_token  # noqa: E402
from app.utils.form_validator import validate_create_item_form  # noqa: E402
from app.utils.sms_service import SMSResult  # noqa: E402


class FakeSMS:
    """Stands in for the Twilio dispatcher and records every call."""

    def __init__(self):
        self.calls = []
        self.result = SMSResult(success=True, message_sid="SM123")
        self.error = None

    def __call__(self, phone, item_title, status):
        self.calls.append((phone, item_title, status))
        if self.error:
            raise self.error
        return self.result


@pytest.fixture(autouse=True)
def db():
    SQLModel.metadata.create_all(engine)
    events.bus.clear()
    register_listeners(events.bus)
    yield
    events.bus.clear()
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(db):
    with Session(engine) as session:
        yield session


@pytest.fixture
def sms():
    return FakeSMS()


@pytest.fixture
def make_profile(session):
    def _make_profile(full_name="Asha Rao", phone=None, admin=False):
        profile = Profile(id=uuid.uuid4(), full_name=full_name, phone=phone)
        session.add(profile)
        if admin:
            session.add(UserRole(user_id=profile.id, role=AppRole.admin))
        session.commit()
        session.refresh(profile)
        return profile

    return _make_profile


@pytest.fixture
def make_item(session):
    def _make_item(finder, image_urls=None, **overrides):
        fields = dict(
            title="Black leather wallet",
            description="Leather wallet with a metro card and some cash",
            category="wallets_purses",
            date_found="2026-10-01T10:00:00Z",
            city="Mumbai",
            area="Andheri",
            specific_location="Metro station gate 2",
        )
        fields.update(overrides)
        return registry.create_item(session, finder.id, validate_create_item_form(**fields), image_urls)

    return _make_item


@pytest.fixture
def make_org(session):
    def _make_org(name="Phoenix Mall", active=True, admins=()):
        org = Organization(
            name=name,
            type="mall",
            address="LBS Marg",
            city="Mumbai",
            contact_email="desk@phoenix.test",
            contact_phone="0221234567",
            is_verified=active,
            is_active=active,
        )
        session.add(org)
        session.commit()
        for profile in admins:
            session.add(OrganizationAdmin(organization_id=org.id, user_id=profile.id))
        session.commit()
        session.refresh(org)
        return org

    return _make_org


def actor(profile) -> Actor:
    return Actor(user_id=profile.id)


def auth(profile) -> dict:
    return {"Authorization": f"Bearer {create_access_token(profile.id)}"}


@pytest.fixture
def removed_uploads():
    return []


@pytest.fixture
def uploads(monkeypatch, removed_uploads):
    """Replaces object storage; records every batch handed to it and every URL deleted."""
    batches = []

    def fake_store_uploads(files, folder):
        batches.append((folder, [name for _, name in files]))
        return [f"https://cdn.test/{folder}/{name}" for _, name in files]

    monkeypatch.setattr(items_router, "store_uploads", fake_store_uploads)
    monkeypatch.setattr(verifications_router, "store_uploads", fake_store_uploads)
    monkeypatch.setattr(items_router, "delete_s3_object", removed_uploads.append)
    monkeypatch.setattr(verifications_router, "delete_s3_object", removed_uploads.append)
    return batches


@pytest.fixture
def broken_storage(monkeypatch, uploads):
    def failing_store_uploads(files, folder):
        raise StorageFailure("Could not upload file")

    monkeypatch.setattr(items_router, "store_uploads", failing_store_uploads)
    monkeypatch.setattr(verifications_router, "store_uploads", failing_store_uploads)


@pytest.fixture
def client(session, sms, uploads):
    def get_session_override():
        yield session

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[verifications_router.get_notifier] = lambda: sms

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
