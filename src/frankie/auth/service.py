"""AuthManager – login, expiry checks and silent refresh.

The manager sits between the credential store and the GraphQL transport.
Commands ask it for a usable bearer token; it loads the stored record,
checks the token's expiry (with a five minute margin) and, when needed,
performs **exactly one** refresh round trip before handing the token over.

Failure policy
--------------
* No stored record → :class:`~frankie.auth.errors.NotLoggedInError`, without
  touching the network.
* A failed login leaves any previous record untouched.
* A failed refresh propagates unchanged in kind (only context is added).
  There is no retry and no re-login. The stale record stays on disk, so
  the next invocation tries to refresh again until the user logs in.

Tokens are never logged in full.
"""

from __future__ import annotations

import enum
import logging
from datetime import timedelta
from typing import Final, Protocol

from frankie.api.errors import FrankieError
from frankie.auth.clock import Clock, default_clock
from frankie.auth.errors import CredentialStoreError, NotLoggedInError
from frankie.auth.jwt import is_expired, parse_expiration
from frankie.auth.models import Credentials
from frankie.auth.store import CredentialStore, default_store
from frankie.utils.logging import mask_sensitive

_LOG = logging.getLogger("frankie.auth.service")

TOKEN_REFRESH_MARGIN: Final[timedelta] = timedelta(minutes=5)


class AuthState(enum.Enum):
    NO_CREDENTIALS = "no_credentials"
    VALID_TOKEN = "valid_token"
    EXPIRED_TOKEN = "expired_token"


class TokenTransport(Protocol):
    """The slice of :class:`~frankie.api.client.FrankieClient` the manager uses."""

    def login(self, email: str, password: str) -> tuple[str, str]: ...
    def renew_token(self, auth_token: str, refresh_token: str) -> tuple[str, str]: ...
    def set_auth_token(self, token: str | None) -> None: ...


class AuthManager:
    """Produces valid bearer tokens for a transport."""

    def __init__(
        self,
        client: TokenTransport,
        store: CredentialStore | None = None,
        *,
        clock: Clock = default_clock,
        refresh_margin: timedelta = TOKEN_REFRESH_MARGIN,
    ) -> None:
        self.client = client
        self.store = store or default_store()
        self.clock = clock
        self.refresh_margin = refresh_margin

    # ------------------------------------------------------------------ #
    # Helpers                                                            #
    # ------------------------------------------------------------------ #
    def _persist(self, auth_token: str, refresh_token: str, context: str) -> Credentials:
        record = Credentials(
            auth_token=auth_token,
            refresh_token=refresh_token,
            expires_at=parse_expiration(auth_token),
        )
        try:
            self.store.save(record)
        except CredentialStoreError as exc:
            raise exc.with_context(context)
        return record

    # ------------------------------------------------------------------ #
    # Public API                                                         #
    # ------------------------------------------------------------------ #
    def login(self, email: str, password: str) -> Credentials:
        """Authenticate with e-mail/password and persist the new token pair."""
        try:
            auth_token, refresh_token = self.client.login(email, password)
        except FrankieError as exc:
            _LOG.debug("Login rejected: %s", exc)
            raise exc.with_context("login failed")

        record = self._persist(auth_token, refresh_token, "failed to save credentials")
        _LOG.info(
            "Logged in token=%s expires_at=%s",
            mask_sensitive(auth_token, 6),
            record.expires_at.isoformat() if record.expires_at else "unknown",
        )
        return record

    def logout(self) -> None:
        self.store.delete()

    def state(self) -> AuthState:
        """Classify the stored record without contacting the server."""
        record = self.store.load()
        if record is None:
            return AuthState.NO_CREDENTIALS
        if is_expired(record.auth_token, self.refresh_margin, clock=self.clock):
            return AuthState.EXPIRED_TOKEN
        return AuthState.VALID_TOKEN

    def is_logged_in(self) -> bool:
        """True if a stored token exists and has not literally expired yet."""
        try:
            record = self.store.load()
        except CredentialStoreError:
            return False
        if record is None:
            return False
        return not is_expired(record.auth_token, clock=self.clock)

    def refresh(self, record: Credentials) -> Credentials:
        """Renew *record* through the transport and persist the result."""
        new_auth, new_refresh = self.client.renew_token(record.auth_token, record.refresh_token)
        refreshed = self._persist(new_auth, new_refresh, "failed to save refreshed credentials")
        _LOG.info(
            "Refreshed auth token=%s expires_at=%s",
            mask_sensitive(new_auth, 6),
            refreshed.expires_at.isoformat() if refreshed.expires_at else "unknown",
        )
        return refreshed

    def get_valid_token(self) -> str:
        """Return a bearer token that is valid for at least the refresh margin.

        Raises
        ------
        NotLoggedInError
            No credential record is stored.
        FrankieError
            The single refresh attempt failed; the class of the underlying
            error is preserved.
        """
        record = self.store.load()
        if record is None:
            raise NotLoggedInError()

        if not is_expired(record.auth_token, self.refresh_margin, clock=self.clock):
            return record.auth_token

        _LOG.debug("Auth token expired or within %s of expiry, refreshing", self.refresh_margin)
        try:
            record = self.refresh(record)
        except FrankieError as exc:
            raise exc.with_context("token refresh failed")
        return record.auth_token

    def ensure_authenticated(self) -> str:
        """Attach a valid token to the transport and return it."""
        token = self.get_valid_token()
        self.client.set_auth_token(token)
        return token
