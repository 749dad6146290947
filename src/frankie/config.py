"""Runtime configuration for frankie.

Settings come from ``FRANKIE_*`` environment variables and are overridden by
command-line flags. The resulting :class:`Settings` value is passed
explicitly to every command; nothing here is process-global.

Environment variables
---------------------
FRANKIE_OUTPUT
    ``table`` (default) or ``json``.
FRANKIE_VERBOSE
    Truthy value (``1``, ``true``, ``yes``...) enables debug logging.
FRANKIE_COUNTRY
    ``NL`` (default) or ``BE``.
FRANKIE_CONFIG_DIR
    Directory holding ``credentials.json``. Defaults to ``~/.config/frankie``.
FRANKIE_API_URL
    GraphQL endpoint override, mainly for testing.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Final

APP_NAME: Final[str] = "frankie"
DEFAULT_API_URL: Final[str] = "https://graphql.frankenergie.nl/"
DEFAULT_COUNTRY: Final[str] = "NL"
CREDENTIALS_FILENAME: Final[str] = "credentials.json"

OUTPUT_FORMATS: Final[tuple[str, ...]] = ("table", "json")
COUNTRIES: Final[tuple[str, ...]] = ("NL", "BE")

_TRUTHY: Final[tuple[str, ...]] = ("true", "1", "yes", "y", "on")

logger = logging.getLogger("frankie.config")


class ConfigError(ValueError):
    """Raised when a configuration value is not acceptable."""


def _truthy(value: str | None) -> bool:
    return (value or "").strip().lower() in _TRUTHY


def default_config_dir() -> Path:
    """Return ``$FRANKIE_CONFIG_DIR`` or ``~/.config/frankie``."""
    override = os.getenv("FRANKIE_CONFIG_DIR")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".config" / APP_NAME


@dataclass(frozen=True)
class Settings:
    """Options shared by all commands."""

    output: str = "table"
    verbose: bool = False
    country: str = DEFAULT_COUNTRY
    config_dir: Path = field(default_factory=default_config_dir)
    api_url: str = DEFAULT_API_URL

    def __post_init__(self) -> None:
        if self.output not in OUTPUT_FORMATS:
            raise ConfigError(f"unsupported output format: {self.output!r}")
        if self.country not in COUNTRIES:
            raise ConfigError(f"unsupported country: {self.country!r}")

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            output=(os.getenv("FRANKIE_OUTPUT") or "table").strip().lower(),
            verbose=_truthy(os.getenv("FRANKIE_VERBOSE")),
            country=(os.getenv("FRANKIE_COUNTRY") or DEFAULT_COUNTRY).strip().upper(),
            config_dir=default_config_dir(),
            api_url=os.getenv("FRANKIE_API_URL") or DEFAULT_API_URL,
        )

    def with_overrides(self, **overrides: Any) -> Settings:
        """Return a copy with every non-``None`` override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        if "config_dir" in changes:
            changes["config_dir"] = Path(changes["config_dir"]).expanduser()
        return replace(self, **changes)

    @property
    def credentials_path(self) -> Path:
        return self.config_dir / CREDENTIALS_FILENAME

    @property
    def is_json(self) -> bool:
        return self.output == "json"
