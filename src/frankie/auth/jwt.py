"""Read-only introspection of bearer tokens.

The auth token issued by the API is a JWT. We only ever *read* its payload
segment to find out when it expires; the signature is **not** verified. The
server verifies every token it receives, so a forged or tampered token can at
worst make the client skip or trigger a refresh.

Any string is accepted. Input that does not look like a JWT yields "no
expiration known" rather than an exception, and callers treat that as
already expired.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from datetime import datetime, timedelta
from typing import Any, Final

from frankie.auth.clock import Clock, default_clock, utc_from_timestamp
from frankie.auth.models import TokenClaims

_LOG = logging.getLogger("frankie.auth.jwt")

_EMAIL_CLAIMS: Final[tuple[str, ...]] = ("email", "sub")


def _b64d(data: str) -> bytes:
    """Decode base64-URL data that may lack padding."""
    pad_len = (-len(data)) % 4
    return base64.b64decode(data + "=" * pad_len, altchars=b"-_", validate=True)


def _decode_payload(token: str) -> dict[str, Any] | None:
    parts = token.split(".")
    if len(parts) != 3:
        return None
    segment = parts[1]
    # altchars decoding would still accept the standard-alphabet characters
    if not segment or any(c in "+/=" for c in segment):
        return None
    try:
        payload = json.loads(_b64d(segment).decode("utf-8"))
    except (binascii.Error, ValueError):
        _LOG.debug("Token payload segment is not base64url-encoded JSON")
        return None
    if not isinstance(payload, dict):
        return None
    return payload


def _timestamp_claim(payload: dict[str, Any], name: str) -> datetime | None:
    value = payload.get(name)
    # bool is an int subclass; a literal true/false is not a timestamp
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not value:
        return None
    try:
        return utc_from_timestamp(value)
    except (OverflowError, OSError, ValueError):
        return None


def parse_claims(token: str) -> TokenClaims | None:
    """Return the claims of *token*, or ``None`` if it is not a readable JWT."""
    payload = _decode_payload(token)
    if payload is None:
        return None
    subject = payload.get("sub")
    return TokenClaims(
        expires_at=_timestamp_claim(payload, "exp"),
        issued_at=_timestamp_claim(payload, "iat"),
        subject=subject if isinstance(subject, str) else None,
        email=_email_from_payload(payload),
    )


def parse_expiration(token: str) -> datetime | None:
    """Return the ``exp`` claim of *token* as an aware UTC datetime.

    ``None`` means the expiration is unknown: wrong segment count, invalid
    base64url, invalid JSON, or a missing/zero ``exp``.
    """
    claims = parse_claims(token)
    return claims.expires_at if claims else None


def is_expired(
    token: str,
    margin: timedelta = timedelta(0),
    *,
    clock: Clock = default_clock,
) -> bool:
    """Return *True* if ``now + margin`` is at or past the token's expiry.

    A token whose expiry cannot be read counts as expired.
    """
    expires_at = parse_expiration(token)
    if expires_at is None:
        return True
    return clock() + margin.total_seconds() >= expires_at.timestamp()


def _email_from_payload(payload: dict[str, Any]) -> str | None:
    for name in _EMAIL_CLAIMS:
        value = payload.get(name)
        if isinstance(value, str) and "@" in value:
            return value
    return None


def extract_email(token: str) -> str | None:
    """Return the first e-mail-like claim (``email``, then ``sub``)."""
    payload = _decode_payload(token)
    return _email_from_payload(payload) if payload else None
