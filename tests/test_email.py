import aiosmtplib
import pytest

from jevah.config import settings
from jevah.utils import email as mailer


@pytest.fixture
def sent(monkeypatch):
    messages = []

    async def fake_send(message, **kwargs):
        messages.append((message, kwargs))

    monkeypatch.setattr(settings, "MAIL_ENABLED", True)
    monkeypatch.setattr(aiosmtplib, "send", fake_send)
    return messages


async def test_verification_mail_goes_through_smtp(sent):
    assert await mailer.send_verification_email("ruth@jevah.io", "Ruth", "A1B2C3") is True
    message, options = sent[0]
    assert message["To"] == "ruth@jevah.io"
    assert message["Subject"] == "Verify your Jevah account"
    assert "A1B2C3" in message.get_content()
    assert options["hostname"] == settings.MAIL_SERVER
    assert options["start_tls"] is True


async def test_smtp_failure_is_reported_not_raised(monkeypatch):
    async def failing_send(message, **kwargs):
        raise aiosmtplib.SMTPException("relay refused")

    monkeypatch.setattr(settings, "MAIL_ENABLED", True)
    monkeypatch.setattr(aiosmtplib, "send", failing_send)
    assert await mailer.send_welcome_email("ruth@jevah.io", "Ruth") is False


async def test_disabled_mail_is_skipped(monkeypatch, sent):
    monkeypatch.setattr(settings, "MAIL_ENABLED", False)
    assert await mailer.send_email_async("Hi", "ruth@jevah.io", "body") is False
    assert sent == []
