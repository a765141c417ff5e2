# app/signatures/notifications.py

from dataclasses import dataclass
from typing import Optional

from app.actas.schemas import ActaDocument, Attendee
from app.core.config import settings
from app.utils.email_service import EmailService, email_service
from app.utils.logger import get_logger

logger = get_logger(__name__)

HTML_TEMPLATE = "signature_request.html"
TEXT_TEMPLATE = "signature_request.txt"


@dataclass
class SignatureRequestMessage:
    """A rendered signature-request email."""
    to_address: str
    subject: str
    body_html: str
    body_text: str


class SignatureRequestNotifier:
    """
    Delivers signing links to attendees by email.
    `send` raises when delivery fails; the caller decides how to aggregate.
    """

    def __init__(
        self,
        sender: Optional[EmailService] = None,
        date_format: Optional[str] = None,
    ):
        self.sender = sender or email_service
        self.date_format = date_format or settings.common_date_format

    def build_message(
        self, acta: ActaDocument, attendee: Attendee, signing_link: str
    ) -> SignatureRequestMessage:
        meeting_title = acta.meeting_info.title or "Reunión"
        context = {
            "attendee_name": attendee.name,
            "attendee_role": attendee.role,
            "meeting_title": meeting_title,
            "meeting_date": acta.meeting_info.date.strftime(self.date_format),
            "signing_link": signing_link,
            "sender_name": settings.aws_ses_sender_name,
        }
        return SignatureRequestMessage(
            to_address=attendee.email,
            subject=f"Solicitud de Firma - Acta: {meeting_title}",
            body_html=self.sender.render_template(HTML_TEMPLATE, context),
            body_text=self.sender.render_template(TEXT_TEMPLATE, context),
        )

    async def send(self, acta: ActaDocument, attendee: Attendee, signing_link: str) -> None:
        message = self.build_message(acta, attendee, signing_link)
        await self.sender.send_email(
            to_emails=[message.to_address],
            subject=message.subject,
            html_body=message.body_html,
            text_body=message.body_text,
        )
        logger.info("Signature request delivered", acta_id=acta.id, attendee_id=attendee.id)
