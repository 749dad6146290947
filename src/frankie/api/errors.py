"""Error taxonomy of the GraphQL transport.

Every failure the transport reports is a :class:`FrankieError` subclass, so
callers can match on the kind (``except SmartTradingNotEnabledError``)
while the message still carries context added on the way up.

GraphQL-level errors arrive with HTTP 200 and are mapped through the
:data:`GRAPHQL_ERROR_CODES` table. Only the first error of a response decides
the kind.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Final, Mapping, Sequence


class FrankieError(RuntimeError):
    """Base class for all errors raised by frankie."""

    default_message: str = "frankie error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)
        self.message: str = message or self.default_message
        self.context: list[str] = []

    def with_context(self, context: str) -> FrankieError:
        """Prefix *context* to the message, keeping the error's class.

        Returns ``self`` so it can be used as ``raise exc.with_context(...)``.
        """
        self.context.insert(0, context)
        return self

    def __str__(self) -> str:
        return ": ".join([*self.context, self.message])


class AuthRequiredError(FrankieError):
    default_message = "authentication required"


class InvalidCredentialsError(FrankieError):
    default_message = "invalid credentials"


class ForbiddenError(FrankieError):
    default_message = "forbidden"


class NotFoundError(FrankieError):
    default_message = "not found"


class BadRequestError(FrankieError):
    default_message = "bad request"


class ServerError(FrankieError):
    default_message = "server error"


class NetworkError(FrankieError):
    default_message = "network error"


class SmartTradingNotEnabledError(FrankieError):
    default_message = "smart trading is not enabled for this user"


class SmartChargingNotEnabledError(FrankieError):
    default_message = "smart charging is not enabled for this user"


class NotSupportedInCountryError(FrankieError):
    default_message = "request not supported in this country"


class APIError(FrankieError):
    """Any API failure without a more specific kind; carries the raw message."""

    default_message = "API error"

    def __init__(
        self,
        message: str | None = None,
        *,
        path: Sequence[Any] | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.path: list[Any] = list(path or [])
        self.code: str | None = code


@dataclass(frozen=True, slots=True)
class GraphQLErrorItem:
    """One entry of a response's ``errors`` array."""

    message: str
    path: list[Any] = field(default_factory=list)
    extensions: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, raw: Any) -> GraphQLErrorItem:
        if not isinstance(raw, Mapping):
            return cls(message=str(raw))
        path = raw.get("path")
        extensions = raw.get("extensions")
        return cls(
            message=str(raw.get("message", "")),
            path=list(path) if isinstance(path, list) else [],
            extensions=dict(extensions) if isinstance(extensions, Mapping) else {},
        )


GRAPHQL_ERROR_CODES: Final[Mapping[str, type[FrankieError]]] = {
    "user-error:password-invalid": InvalidCredentialsError,
    "user-error:auth-not-authorised": ForbiddenError,
    "user-error:auth-required": AuthRequiredError,
    "user-error:smart-trading-not-enabled": SmartTradingNotEnabledError,
    "user-error:smart-charging-not-enabled": SmartChargingNotEnabledError,
    "request-error:request-not-supported-in-country": NotSupportedInCountryError,
}

_STATUS_ERRORS: Final[Mapping[int, type[FrankieError]]] = {
    400: BadRequestError,
    401: AuthRequiredError,
    403: ForbiddenError,
    404: NotFoundError,
}


def classify_status(status_code: int) -> FrankieError | None:
    """Return the error for an HTTP status, or ``None`` to inspect the body."""
    if status_code >= 500:
        return ServerError()
    error_cls = _STATUS_ERRORS.get(status_code)
    return error_cls() if error_cls else None


def classify_graphql_errors(errors: Sequence[GraphQLErrorItem]) -> FrankieError | None:
    """Map the first GraphQL error to an error kind; ``None`` if there are none."""
    if not errors:
        return None
    first = errors[0]
    error_cls = GRAPHQL_ERROR_CODES.get(first.message)
    if error_cls is not None:
        return error_cls()
    code = first.extensions.get("code")
    return APIError(first.message or None, path=first.path, code=code if isinstance(code, str) else None)
