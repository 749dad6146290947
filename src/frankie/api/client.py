"""GraphQL transport for the Frank Energie API.

A :class:`FrankieClient` sends every request as a JSON ``POST`` to one
endpoint. It attaches the client-identity headers the API expects, plus the
bearer token once one has been set, and turns HTTP status codes and GraphQL
``errors`` payloads into :mod:`frankie.api.errors` exceptions.

Nothing is retried: a failed call surfaces immediately.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Final, Mapping

import requests

from frankie.api.errors import (
    APIError,
    FrankieError,
    GraphQLErrorItem,
    NetworkError,
    classify_graphql_errors,
    classify_status,
)
from frankie.api.queries import LOGIN_MUTATION, RENEW_TOKEN_MUTATION
from frankie.config import DEFAULT_API_URL, DEFAULT_COUNTRY
from frankie.utils.logging import mask_sensitive

if TYPE_CHECKING:  # pragma: no cover
    from frankie.config import Settings

_LOG = logging.getLogger("frankie.api.client")

DEFAULT_TIMEOUT: Final[float] = 30.0

CLIENT_VERSION: Final[str] = "4.13.3"
CLIENT_NAME: Final[str] = "frank-app"
CLIENT_OS: Final[str] = "ios/26.0.1"


@dataclass
class GraphQLResponse:
    """Decoded ``{data, errors}`` body of a GraphQL response."""

    data: dict[str, Any] = field(default_factory=dict)
    errors: list[GraphQLErrorItem] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> GraphQLResponse:
        data = payload.get("data")
        errors = payload.get("errors")
        return cls(
            data=dict(data) if isinstance(data, Mapping) else {},
            errors=[GraphQLErrorItem.from_payload(e) for e in errors] if isinstance(errors, list) else [],
        )


def _token_pair(data: Mapping[str, Any], key: str) -> tuple[str, str]:
    node = data.get(key)
    if not isinstance(node, Mapping):
        raise APIError(f"{key} response missing from data")
    auth_token = node.get("authToken")
    refresh_token = node.get("refreshToken")
    if not auth_token or not refresh_token:
        raise APIError(f"{key} response missing authToken or refreshToken")
    return str(auth_token), str(refresh_token)


class FrankieClient:
    """Synchronous GraphQL client bound to a single endpoint."""

    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        *,
        country: str = DEFAULT_COUNTRY,
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url
        self.country = country
        self.timeout = timeout
        self.session = session or requests.Session()
        self._auth_token: str | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> FrankieClient:
        return cls(settings.api_url, country=settings.country)

    # ------------------------------------------------------------------ #
    # Mutable request state                                              #
    # ------------------------------------------------------------------ #
    @property
    def auth_token(self) -> str | None:
        return self._auth_token

    def set_auth_token(self, token: str | None) -> None:
        self._auth_token = token or None

    def set_country(self, country: str) -> None:
        self.country = country

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> FrankieClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------ #
    # Request plumbing                                                   #
    # ------------------------------------------------------------------ #
    def build_headers(self, extra_headers: Mapping[str, str] | None = None) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "x-graphql-client-version": CLIENT_VERSION,
            "x-graphql-client-name": CLIENT_NAME,
            "x-graphql-client-os": CLIENT_OS,
            "skip-graphcdn": "1",
        }
        if self._auth_token:
            headers["Authorization"] = f"Bearer {self._auth_token}"
        if self.country and self.country != DEFAULT_COUNTRY:
            headers["x-country"] = self.country
        headers.update(extra_headers or {})
        return headers

    def _send(
        self,
        query: str,
        operation_name: str,
        variables: Mapping[str, Any] | None,
        extra_headers: Mapping[str, str] | None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"query": query, "operationName": operation_name}
        if variables:
            body["variables"] = dict(variables)

        _LOG.debug(
            "POST %s operation=%s auth=%s country=%s",
            self.base_url,
            operation_name or "-",
            mask_sensitive(self._auth_token, 6) or "none",
            self.country,
        )
        try:
            resp = self.session.post(
                self.base_url,
                json=body,
                headers=self.build_headers(extra_headers),
                timeout=self.timeout,
            )
        except requests.Timeout as exc:
            raise NetworkError(f"network error: request timed out after {self.timeout:g}s") from exc
        except requests.RequestException as exc:
            raise NetworkError(f"network error: {exc}") from exc

        status_error = classify_status(resp.status_code)
        if status_error is not None:
            _LOG.debug("Operation %s failed with HTTP %s", operation_name or "-", resp.status_code)
            raise status_error

        try:
            payload = resp.json()
        except ValueError as exc:
            raise APIError("failed to parse response") from exc
        if not isinstance(payload, dict):
            raise APIError("failed to parse response")
        return payload

    # ------------------------------------------------------------------ #
    # Public API                                                         #
    # ------------------------------------------------------------------ #
    def execute(
        self,
        query: str,
        operation_name: str,
        variables: Mapping[str, Any] | None = None,
        extra_headers: Mapping[str, str] | None = None,
    ) -> GraphQLResponse:
        """Run a GraphQL operation, raising on HTTP or GraphQL errors."""
        response = GraphQLResponse.from_payload(
            self._send(query, operation_name, variables, extra_headers)
        )
        error: FrankieError | None = classify_graphql_errors(response.errors)
        if error is not None:
            raise error
        return response

    def execute_raw(
        self,
        query: str,
        operation_name: str = "",
        variables: Mapping[str, Any] | None = None,
        extra_headers: Mapping[str, str] | None = None,
    ) -> dict[str, Any]:
        """Run an operation and return the JSON body as-is.

        HTTP failures still raise; GraphQL ``errors`` are left in the body
        for the caller to show.
        """
        return self._send(query, operation_name, variables, extra_headers)

    def login(self, email: str, password: str) -> tuple[str, str]:
        """Return ``(auth_token, refresh_token)`` for the given account."""
        response = self.execute(LOGIN_MUTATION, "Login", {"email": email, "password": password})
        return _token_pair(response.data, "login")

    def renew_token(self, auth_token: str, refresh_token: str) -> tuple[str, str]:
        """Exchange the current token pair for a fresh one."""
        response = self.execute(
            RENEW_TOKEN_MUTATION,
            "RenewToken",
            {"authToken": auth_token, "refreshToken": refresh_token},
        )
        return _token_pair(response.data, "renewToken")
