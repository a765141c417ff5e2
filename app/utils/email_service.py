# app/utils/email_service.py

import asyncio
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from pathlib import Path
from typing import Any, Dict, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from jinja2 import Environment, FileSystemLoader, select_autoescape

from app.core.config import settings
from app.utils.logger import get_logger

logger = get_logger(__name__)

TEMPLATE_DIR = Path(__file__).parent.parent / "templates" / "emails"


class EmailDeliveryError(Exception):
    """Raised when an email could not be handed over to SES."""


class EmailService:
    """
    A centralized service for sending emails via Amazon SES,
    with support for Jinja2 templating.
    """
    def __init__(self, sender: Optional[str] = None, ses_client=None):
        self.ses_client = ses_client or boto3.client(
            "ses",
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
            region_name=settings.aws_region,
        )
        self.sender = sender if sender is not None else settings.aws_ses_sender_email
        self.sender_name = settings.aws_ses_sender_name

        # HTML templates are autoescaped, plain-text ones are not
        self.jinja_env = Environment(
            loader=FileSystemLoader(TEMPLATE_DIR),
            autoescape=select_autoescape(["html"]),
        )

    def render_template(self, template_name: str, context: Dict[str, Any]) -> str:
        """Render an email template using Jinja2."""
        try:
            template = self.jinja_env.get_template(template_name)
            return template.render(context)
        except Exception as e:
            logger.error("Error rendering email template", template=template_name, error_message=str(e))
            raise

    async def send_email(
        self,
        *,
        to_emails: List[str],
        subject: str,
        html_body: str,
        text_body: Optional[str] = None,
    ) -> None:
        """
        Constructs and sends a multipart email using a synchronous boto3 call
        in an asyncio-safe manner.

        Raises:
            EmailDeliveryError: If no sender is configured or SES rejects the message.
        """
        if not self.sender:
            logger.error("Email sending is disabled: AWS_SES_SENDER_EMAIL is not configured")
            raise EmailDeliveryError("Email sending is not configured")

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = formataddr((self.sender_name, self.sender))
        msg["To"] = ", ".join(to_emails)

        # Plain text first so clients prefer the HTML part
        if text_body:
            msg.attach(MIMEText(text_body, "plain", "utf-8"))
        msg.attach(MIMEText(html_body, "html", "utf-8"))

        send_kwargs: Dict[str, Any] = {
            "Source": self.sender,
            "Destinations": to_emails,
            "RawMessage": {"Data": msg.as_string()},
        }
        if settings.aws_ses_configuration_set:
            send_kwargs["ConfigurationSetName"] = settings.aws_ses_configuration_set

        try:
            await asyncio.to_thread(self.ses_client.send_raw_email, **send_kwargs)
            logger.info("Email sent successfully", subject=subject, to=", ".join(to_emails))
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to send email", subject=subject, error_message=str(e))
            raise EmailDeliveryError(str(e)) from e


# Create a single, reusable instance of the service
email_service = EmailService()
