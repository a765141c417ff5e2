# app/signatures/tokens.py

import secrets
from typing import Optional
from urllib.parse import quote, urlencode

TOKEN_BYTES = 32


def generate_signature_token() -> str:
    """Return a fresh 256-bit signing token, hex encoded (64 characters)."""
    return secrets.token_hex(TOKEN_BYTES)


def tokens_match(supplied: Optional[str], stored: Optional[str]) -> bool:
    """Constant-time comparison of a supplied token with the stored one."""
    if not supplied or not stored:
        return False
    return secrets.compare_digest(supplied.encode("utf-8"), stored.encode("utf-8"))


def build_signing_link(base_url: str, acta_id: str, attendee_id: str, token: str) -> str:
    """Link an attendee follows to review and sign an acta."""
    query = urlencode({"token": token, "attendeeId": attendee_id})
    return f"{base_url.rstrip('/')}/actas/{quote(acta_id, safe='')}/sign?{query}"
