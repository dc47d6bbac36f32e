import httpx
import pytest

from app.errors import NotificationFailure
from app.utils import sms_service


@pytest.fixture
def twilio_env(monkeypatch):
    monkeypatch.setenv("TWILIO_ACCOUNT_SID", "AC123")
    monkeypatch.setenv("TWILIO_AUTH_TOKEN", "secret")
    monkeypatch.setenv("TWILIO_PHONE_NUMBER", "+15005550006")


def test_messages():
    assert sms_service.build_message("Blue bag", "approved") == (
        'Great news! Your claim for "Blue bag" has been APPROVED. '
        "The finder will contact you soon for handover. - Lost and Found"
    )
    assert sms_service.build_message("Blue bag", "rejected").startswith(
        'Unfortunately, your claim for "Blue bag" was not approved.'
    )


def test_unconfigured_degrades_without_raising(monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("must not call Twilio")

    monkeypatch.setattr(sms_service.httpx, "post", fail)

    result = sms_service.send_sms_notification("+919800000001", "Blue bag", "approved")

    assert result.success is False
    assert result.message == "SMS service not configured"


def test_sends_through_twilio(monkeypatch, twilio_env):
    captured = {}

    def fake_post(url, auth, data, timeout):
        captured.update(url=url, auth=auth, data=data)
        return httpx.Response(201, json={"sid": "SM42"})

    monkeypatch.setattr(sms_service.httpx, "post", fake_post)

    result = sms_service.send_sms_notification("+919800000001", "Blue bag", "approved")

    assert result.success is True
    assert result.message_sid == "SM42"
    assert captured["url"] == "https://api.twilio.com/2010-04-01/Accounts/AC123/Messages.json"
    assert captured["auth"] == ("AC123", "secret")
    assert captured["data"]["To"] == "+919800000001"
    assert captured["data"]["From"] == "+15005550006"
    assert "APPROVED" in captured["data"]["Body"]


def test_twilio_error_raises_notification_failure(monkeypatch, twilio_env):
    monkeypatch.setattr(sms_service.httpx, "post", lambda *a, **kw: httpx.Response(400, text="bad number"))

    with pytest.raises(NotificationFailure):
        sms_service.send_sms_notification("not-a-number", "Blue bag", "rejected")


def test_network_error_raises_notification_failure(monkeypatch, twilio_env):
    def unreachable(*args, **kwargs):
        raise httpx.ConnectError("no route")

    monkeypatch.setattr(sms_service.httpx, "post", unreachable)

    with pytest.raises(NotificationFailure):
        sms_service.send_sms_notification("+919800000001", "Blue bag", "approved")
