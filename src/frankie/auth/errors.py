"""Exception types raised by the auth subsystem.

They extend the transport taxonomy in :mod:`frankie.api.errors` so that a
single ``except AuthRequiredError`` covers both "the server rejected the
token" and "there is no stored login at all".
"""

from __future__ import annotations

from frankie.api.errors import AuthRequiredError, FrankieError


class NotLoggedInError(AuthRequiredError):
    """Raised when no credential record exists; the user must log in."""

    default_message = "not logged in"


class CredentialStoreError(FrankieError):
    """Raised when the credential file cannot be read, parsed or written."""

    default_message = "credential store error"
