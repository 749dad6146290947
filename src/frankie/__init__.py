"""frankie – command-line client for the Frank Energie GraphQL API.

This package provides:
- Login, unverified JWT expiry inspection and single-shot token refresh
- Atomic, owner-only persistence of the credential record
- A thin GraphQL transport with a typed error taxonomy
- The ``frankie`` command-line interface
"""

__version__ = "0.1.0"

__all__ = ["api", "auth", "cli", "config", "errors", "output", "prices"]
