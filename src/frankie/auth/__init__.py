"""Authentication and token-lifecycle package.

Sub-modules
-----------
clock
    Test-friendly time abstraction.
models
    Immutable dataclasses for the credential record and token claims.
jwt
    Unverified decoding of bearer-token claims and expiry checks.
store
    Atomic, permission-restricted JSON file holding the credential record.
service
    :class:`AuthManager`, which ties login, refresh and persistence together.
errors
    Exception types used by the auth logic.

All public objects are re-exported here for convenience.
"""

from __future__ import annotations

from .clock import Clock, default_clock  # noqa: F401
from .errors import CredentialStoreError, NotLoggedInError  # noqa: F401
from .jwt import extract_email, is_expired, parse_claims, parse_expiration  # noqa: F401
from .models import Credentials, TokenClaims  # noqa: F401
from .service import TOKEN_REFRESH_MARGIN, AuthManager, AuthState  # noqa: F401
from .store import CredentialStore, DiskCredentialStore, default_store  # noqa: F401

__all__ = [
    # clock
    "Clock",
    "default_clock",
    # errors
    "CredentialStoreError",
    "NotLoggedInError",
    # jwt
    "extract_email",
    "is_expired",
    "parse_claims",
    "parse_expiration",
    # models
    "Credentials",
    "TokenClaims",
    # service
    "TOKEN_REFRESH_MARGIN",
    "AuthManager",
    "AuthState",
    # store
    "CredentialStore",
    "DiskCredentialStore",
    "default_store",
]
