"""GraphQL transport and its error taxonomy."""

from __future__ import annotations

from .client import FrankieClient, GraphQLResponse  # noqa: F401
from .errors import (  # noqa: F401
    APIError,
    AuthRequiredError,
    BadRequestError,
    ForbiddenError,
    FrankieError,
    InvalidCredentialsError,
    NetworkError,
    NotFoundError,
    NotSupportedInCountryError,
    ServerError,
    SmartChargingNotEnabledError,
    SmartTradingNotEnabledError,
)

__all__ = [
    "FrankieClient",
    "GraphQLResponse",
    "FrankieError",
    "APIError",
    "AuthRequiredError",
    "BadRequestError",
    "ForbiddenError",
    "InvalidCredentialsError",
    "NetworkError",
    "NotFoundError",
    "NotSupportedInCountryError",
    "ServerError",
    "SmartChargingNotEnabledError",
    "SmartTradingNotEnabledError",
]
