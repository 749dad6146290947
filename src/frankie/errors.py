"""User-facing error formatting.

The CLI prints errors to stderr. For a handful of well-known failures it
adds a one-line hint telling the user what to do next.
"""

from __future__ import annotations

from typing import Final

_AUTH_HINT = "Run 'frankie login' to authenticate"
_NETWORK_HINT = "Check your internet connection"
_SERVER_HINT = "Frank Energie API may be temporarily unavailable"

# Checked in order; the first substring found in the lower-cased message wins.
ERROR_HINTS: Final[tuple[tuple[str, str], ...]] = (
    ("authentication required", _AUTH_HINT),
    ("not logged in", _AUTH_HINT),
    ("invalid credentials", "Check your credentials and try again"),
    ("smart trading is not enabled", "Enable smart trading in the Frank Energie app"),
    ("smart charging is not enabled", "Enable smart charging in the Frank Energie app"),
    ("connection refused", _NETWORK_HINT),
    ("name or service not known", _NETWORK_HINT),
    ("timed out", _NETWORK_HINT),
    ("network is unreachable", _NETWORK_HINT),
    ("network error", _NETWORK_HINT),
    ("server error", _SERVER_HINT),
    ("500", _SERVER_HINT),
    ("502", _SERVER_HINT),
    ("503", _SERVER_HINT),
)


def hint_for(message: str) -> str | None:
    lowered = message.lower()
    for pattern, hint in ERROR_HINTS:
        if pattern in lowered:
            return hint
    return None


def format_error(exc: BaseException) -> str:
    """Return ``str(exc)`` with a ``Hint:`` paragraph when one applies."""
    message = str(exc)
    hint = hint_for(message)
    if hint:
        return f"{message}\n\nHint: {hint}"
    return message
