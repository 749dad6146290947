"""Logging helpers shared across frankie.

Only two things live here: masking of secrets before they reach a log line,
and the one-shot handler setup performed by the CLI entry point.
"""

from __future__ import annotations

import logging
import sys

_LOG_FORMAT = "%(levelname)s %(name)s %(message)s"


def mask_sensitive(value: str | None, keep_chars: int = 4) -> str:
    """Return *value* with everything but its first *keep_chars* replaced.

    >>> mask_sensitive("eyJhbGciOiJIUzI1NiJ9.abc.def", 6)
    'eyJhbG****'
    """
    if not value:
        return ""
    if len(value) <= keep_chars:
        return "*" * len(value)
    return f"{value[:keep_chars]}****"


def setup_logging(verbose: bool = False) -> logging.Logger:
    """Attach a stderr handler to the ``frankie`` logger.

    WARNING and above are shown by default, DEBUG with ``--verbose``.
    Calling it again replaces the handler instead of adding another.
    """
    logger = logging.getLogger("frankie")
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    # sys.stderr may have been swapped since an earlier call
    for old in [h for h in logger.handlers if getattr(h, "_frankie_handler", False)]:
        logger.removeHandler(old)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    handler._frankie_handler = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    logger.propagate = False
    return logger
