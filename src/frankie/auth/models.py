"""Typed, immutable records used by the auth subsystem."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from frankie.auth.clock import Clock, default_clock, parse_iso_datetime


@dataclass(frozen=True, slots=True)
class Credentials:
    """The persisted auth/refresh token pair.

    ``expires_at`` is ``None`` when the auth token carried no readable
    ``exp`` claim.
    """

    auth_token: str
    refresh_token: str
    expires_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "auth_token": self.auth_token,
            "refresh_token": self.refresh_token,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Credentials:
        """Build a record from its JSON form.

        Raises ``KeyError``/``TypeError``/``ValueError`` on malformed input;
        the store turns those into :class:`~frankie.auth.errors.CredentialStoreError`.
        """
        auth_token = data["auth_token"]
        refresh_token = data["refresh_token"]
        if not isinstance(auth_token, str) or not isinstance(refresh_token, str):
            raise TypeError("tokens must be strings")
        raw_expiry = data.get("expires_at")
        if raw_expiry is not None and not isinstance(raw_expiry, str):
            raise TypeError("expires_at must be an ISO-8601 string")
        expires_at = parse_iso_datetime(raw_expiry) if raw_expiry else None
        return cls(auth_token=auth_token, refresh_token=refresh_token, expires_at=expires_at)


@dataclass(frozen=True, slots=True)
class TokenClaims:
    """Claims read (unverified) from a bearer token's payload segment."""

    expires_at: datetime | None = None
    issued_at: datetime | None = None
    subject: str | None = None
    email: str | None = None

    def seconds_remaining(self, *, clock: Clock = default_clock) -> float | None:
        """Seconds until expiry, negative once expired, ``None`` if unknown."""
        if self.expires_at is None:
            return None
        return self.expires_at.timestamp() - clock()
