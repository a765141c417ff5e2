from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from app.actas.schemas import ActaDocument
from app.signatures.notifications import SignatureRequestNotifier
from app.utils.email_service import EmailDeliveryError, EmailService

from conftest import acta_fields

LINK = "https://actas.example.com/actas/acta-1/sign?token=abc&attendeeId=a1"


@pytest.fixture
def acta():
    fields = acta_fields()
    return ActaDocument(id="acta-1", **fields)


@pytest.fixture
def ses_client():
    client = MagicMock()
    client.send_raw_email.return_value = {"MessageId": "msg-1"}
    return client


@pytest.fixture
def email_sender(ses_client):
    return EmailService(sender="noreply@actas.example.com", ses_client=ses_client)


def test_build_message_renders_spanish_templates(acta, email_sender):
    notifier = SignatureRequestNotifier(sender=email_sender, date_format="%d/%m/%Y")

    message = notifier.build_message(acta, acta.attendees[0], LINK)

    assert message.to_address == "ana@example.com"
    assert message.subject == "Solicitud de Firma - Acta: Comité de Seguridad"
    assert "Ana Pérez" in message.body_html
    assert "14/03/2026" in message.body_html
    assert "Presidenta" in message.body_text
    assert LINK in message.body_text
    assert LINK.replace("&", "&amp;") in message.body_html


def test_build_message_escapes_html(acta, email_sender):
    attendee = acta.attendees[0].model_copy(update={"name": "<script>alert(1)</script>"})
    notifier = SignatureRequestNotifier(sender=email_sender)

    message = notifier.build_message(acta, attendee, LINK)

    assert "<script>" not in message.body_html
    assert "&lt;script&gt;" in message.body_html


@pytest.mark.asyncio
async def test_send_delivers_through_ses(acta, email_sender, ses_client):
    notifier = SignatureRequestNotifier(sender=email_sender)

    await notifier.send(acta, acta.attendees[1], LINK)

    ses_client.send_raw_email.assert_called_once()
    kwargs = ses_client.send_raw_email.call_args.kwargs
    assert kwargs["Source"] == "noreply@actas.example.com"
    assert kwargs["Destinations"] == ["bruno@example.com"]
    raw = kwargs["RawMessage"]["Data"]
    assert "To: bruno@example.com" in raw
    assert "Cc:" not in raw


@pytest.mark.asyncio
async def test_send_raises_when_ses_rejects(acta, email_sender, ses_client):
    ses_client.send_raw_email.side_effect = ClientError(
        {"Error": {"Code": "MessageRejected", "Message": "Email address is not verified."}},
        "SendRawEmail",
    )
    notifier = SignatureRequestNotifier(sender=email_sender)

    with pytest.raises(EmailDeliveryError):
        await notifier.send(acta, acta.attendees[0], LINK)


@pytest.mark.asyncio
async def test_send_without_sender_configured(acta, ses_client):
    notifier = SignatureRequestNotifier(sender=EmailService(sender="", ses_client=ses_client))

    with pytest.raises(EmailDeliveryError):
        await notifier.send(acta, acta.attendees[0], LINK)
    ses_client.send_raw_email.assert_not_called()
