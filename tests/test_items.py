import uuid
from datetime import datetime, timedelta, timezone

import pytest

from app.errors import AuthorizationError, NotFound, ValidationError
from app.models.enums import ItemCategory, ItemStatus
from app.services import items as registry
from app.utils.form_validator import validate_create_item_form

from conftest import actor


def test_create_item_defaults(session, make_profile, make_item):
    finder = make_profile()

    item = make_item(finder, image_urls=["https://cdn.test/item-images/a.webp", "https://cdn.test/item-images/b.webp"])

    assert item.status == ItemStatus.available
    assert item.category == ItemCategory.wallets_purses
    assert item.finder_id == finder.id
    assert item.views == 0
    assert item.image_urls == ["https://cdn.test/item-images/a.webp", "https://cdn.test/item-images/b.webp"]
    assert item.expires_at > item.created_at


@pytest.mark.parametrize("missing", ["city", "area", "specific_location"])
def test_create_item_requires_location(make_profile, make_item, missing):
    with pytest.raises(ValidationError) as exc:
        make_item(make_profile(), **{missing: "  "})

    assert missing in exc.value.detail


def test_create_item_rejects_unknown_category(make_profile, make_item):
    with pytest.raises(ValidationError):
        make_item(make_profile(), category="furniture")


def test_create_item_rejects_bad_date(make_profile, make_item):
    with pytest.raises(ValidationError, match="Date not parseable"):
        make_item(make_profile(), date_found="last tuesday")


def test_create_item_unknown_organization(session, make_profile):
    fields = validate_create_item_form(
        title="Car keys",
        description="Honda keys with a red keychain",
        category="keys",
        date_found="2026-10-02",
        city="Pune",
        area="Kothrud",
        specific_location="Bus stop",
        organization_id=str(uuid.uuid4()),
    )

    with pytest.raises(NotFound):
        registry.create_item(session, make_profile().id, fields)


def test_get_item_not_found(session):
    with pytest.raises(NotFound):
        registry.get_item(session, uuid.uuid4())


def test_record_view_counts(session, make_profile, make_item):
    item = make_item(make_profile())

    registry.record_view(session, item)
    registry.record_view(session, item)

    assert registry.get_item(session, item.id).views == 2


def test_list_items_filters(session, make_profile, make_item, make_org):
    finder = make_profile()
    org = make_org()

    wallet = make_item(finder)
    phone = make_item(
        finder,
        title="iPhone 13 Pro",
        description="Black phone with a cracked screen protector",
        category="electronics",
        city="Bangalore",
        organization_id=str(org.id),
    )

    assert [i.id for i in registry.list_items(session)] == [phone.id, wallet.id]
    assert [i.id for i in registry.list_items(session, text="WALLET")] == [wallet.id]
    assert [i.id for i in registry.list_items(session, text="cracked")] == [phone.id]
    assert [i.id for i in registry.list_items(session, category=ItemCategory.electronics)] == [phone.id]
    assert [i.id for i in registry.list_items(session, city="Mumbai")] == [wallet.id]
    assert registry.list_items(session, city="mumbai") == []
    assert [i.id for i in registry.list_items(session, organization_id=org.id)] == [phone.id]
    assert [i.id for i in registry.list_items(session, limit=1)] == [phone.id]
    assert [i.id for i in registry.list_items(session, limit=1, offset=1)] == [wallet.id]

    tomorrow = datetime.now(timezone.utc) + timedelta(days=1)
    assert registry.list_items(session, created_after=tomorrow) == []


def test_set_status_is_read_after_write(session, make_profile, make_item):
    finder = make_profile()
    item = make_item(finder)

    for status in (ItemStatus.claimed, ItemStatus.returned, ItemStatus.available):
        registry.set_status(session, actor(finder), item.id, status)
        assert registry.get_item(session, item.id).status == status


def test_set_status_requires_scope(session, make_profile, make_item):
    item = make_item(make_profile())

    with pytest.raises(AuthorizationError):
        registry.set_status(session, actor(make_profile("Stranger")), item.id, ItemStatus.returned)


def test_delete_item_is_admin_only(session, make_profile, make_item):
    finder = make_profile()
    item = make_item(finder, image_urls=["https://cdn.test/item-images/a.webp"])

    with pytest.raises(AuthorizationError):
        registry.delete_item(session, actor(finder), item.id)

    urls = registry.delete_item(session, actor(make_profile("Admin", admin=True)), item.id)

    assert urls == ["https://cdn.test/item-images/a.webp"]
    with pytest.raises(NotFound):
        registry.get_item(session, item.id)


def test_org_admin_can_delete_org_items(session, make_profile, make_item, make_org):
    desk = make_profile("Desk")
    org = make_org(admins=[desk])
    item = make_item(make_profile(), organization_id=str(org.id))

    registry.delete_item(session, actor(desk), item.id)

    assert registry.list_items(session) == []


def test_written_items_serialize_after_listeners_run(session, make_profile, make_item):
    finder = make_profile()

    item = make_item(finder)
    assert item.model_dump()["finder_id"] == finder.id

    updated = registry.set_status(session, actor(finder), item.id, ItemStatus.claimed)
    assert updated.model_dump()["status"] == ItemStatus.claimed
