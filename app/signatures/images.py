# app/signatures/images.py

import asyncio
import base64
import binascii
import re
from typing import Optional, Tuple

from app.actas.exceptions import InvalidArgumentException
from app.core.config import settings
from app.utils.logger import get_logger
from app.utils.s3_utils import S3Utils, s3_utils

logger = get_logger(__name__)

DATA_URL_PATTERN = re.compile(r"^data:(?P<content_type>image/(?:png|jpeg));base64,(?P<payload>.+)$", re.DOTALL)
EXTENSIONS = {"image/png": "png", "image/jpeg": "jpg"}
S3_SCHEME = "s3://"


def parse_data_url(data_url: str) -> Tuple[str, bytes]:
    """Split a base64 image data URL into content type and raw bytes."""
    match = DATA_URL_PATTERN.match(data_url or "")
    if not match:
        raise InvalidArgumentException("signature_data_url must be a base64 PNG or JPEG data URL")
    try:
        payload = base64.b64decode(match.group("payload"), validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidArgumentException("signature_data_url is not valid base64") from e
    if not payload:
        raise InvalidArgumentException("signature_data_url is empty")
    return match.group("content_type"), payload


class SignatureImageStorage:
    """
    Stores captured signature images in S3.

    `store` returns a durable `s3://bucket/key` reference, which is what gets
    recorded on the attendee; `resolve_url` turns it into a short-lived
    presigned link each time an acta is read. Without a bucket, or when the
    upload fails, the data URL itself is returned so the signature can
    still be recorded.
    """

    def __init__(self, s3: Optional[S3Utils] = None, expiration: Optional[int] = None):
        self.s3 = s3 or s3_utils
        self.expiration = expiration or settings.signature_url_expiration

    async def store(self, acta_id: str, attendee_id: str, data_url: str) -> str:
        content_type, payload = parse_data_url(data_url)

        if not self.s3.is_configured:
            logger.info("No S3 bucket configured, keeping signature inline", acta_id=acta_id, attendee_id=attendee_id)
            return data_url

        key = f"signatures/{acta_id}/{attendee_id}.{EXTENSIONS[content_type]}"
        uploaded = await asyncio.to_thread(self.s3.upload_bytes, payload, key, content_type)
        if not uploaded:
            logger.warning("Signature upload failed, keeping signature inline", acta_id=acta_id, attendee_id=attendee_id)
            return data_url

        logger.info("Signature image stored", acta_id=acta_id, attendee_id=attendee_id, key=key)
        return f"{S3_SCHEME}{self.s3.bucket_name}/{key}"

    def resolve_url(self, signature_url: Optional[str]) -> Optional[str]:
        """Presign references to this bucket; any other URL is returned unchanged."""
        prefix = f"{S3_SCHEME}{self.s3.bucket_name}/"
        if not signature_url or not self.s3.is_configured or not signature_url.startswith(prefix):
            return signature_url
        presigned = self.s3.generate_presigned_url(signature_url[len(prefix):], self.expiration)
        return presigned or signature_url


def get_signature_image_storage() -> SignatureImageStorage:
    """Dependency to get the signature image storage."""
    return SignatureImageStorage()
