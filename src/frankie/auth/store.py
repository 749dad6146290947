"""On-disk storage for the single credential record.

This module defines a *narrow* persistence interface
(:class:`CredentialStore`) and a JSON-file implementation
(:class:`DiskCredentialStore`):

* **Atomicity**: writes go to a temp file in the same directory and are
  moved into place with ``os.replace``, so a reader never sees a half-written
  record.
* **Permissions**: the directory is created ``0700`` and the file ``0600``.
* **Missing is not an error**: ``load`` returns ``None`` and ``delete``
  succeeds when there is no file.

There is no locking; one local user running one CLI invocation at a time is
assumed.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol, runtime_checkable

from frankie.auth.errors import CredentialStoreError
from frankie.auth.models import Credentials
from frankie.config import CREDENTIALS_FILENAME, default_config_dir

_LOG = logging.getLogger("frankie.auth.store")

DIR_MODE = 0o700
FILE_MODE = 0o600

# --------------------------------------------------------------------------- #
# helpers                                                                     #
# --------------------------------------------------------------------------- #


def _atomic_write(path: Path, data: dict) -> None:
    path.parent.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
    # mkstemp creates the file 0600
    fd, tmp_name = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2)
        os.chmod(tmp, FILE_MODE)
        os.replace(tmp, path)  # atomic on POSIX
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise


# --------------------------------------------------------------------------- #
# public interface                                                            #
# --------------------------------------------------------------------------- #


@runtime_checkable
class CredentialStore(Protocol):
    """Persistence contract for the credential record."""

    def load(self) -> Credentials | None: ...
    def save(self, record: Credentials) -> None: ...
    def delete(self) -> None: ...
    def exists(self) -> bool: ...


# --------------------------------------------------------------------------- #
# Disk implementation                                                         #
# --------------------------------------------------------------------------- #


class DiskCredentialStore(CredentialStore):
    """JSON-file implementation of :class:`CredentialStore`."""

    def __init__(self, path: str | os.PathLike | None = None) -> None:
        self.path = Path(path or default_config_dir() / CREDENTIALS_FILENAME).expanduser()

    def load(self) -> Credentials | None:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except UnicodeDecodeError as exc:
            raise CredentialStoreError(f"failed to parse credentials: {self.path}") from exc
        except OSError as exc:
            raise CredentialStoreError(f"failed to read credentials: {exc}") from exc
        try:
            return Credentials.from_dict(json.loads(raw))
        except (ValueError, KeyError, TypeError) as exc:
            raise CredentialStoreError(f"failed to parse credentials: {self.path}") from exc

    def save(self, record: Credentials) -> None:
        try:
            _atomic_write(self.path, record.to_dict())
        except OSError as exc:
            raise CredentialStoreError(f"failed to write credentials: {exc}") from exc
        _LOG.debug("Saved credentials to %s", self.path)

    def delete(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as exc:
            raise CredentialStoreError(f"failed to delete credentials: {exc}") from exc
        _LOG.debug("Deleted credentials at %s", self.path)

    def exists(self) -> bool:
        return self.path.exists()


# --------------------------------------------------------------------------- #
# Convenience – default singleton                                            #
# --------------------------------------------------------------------------- #

_default_store: DiskCredentialStore | None = None


def default_store() -> DiskCredentialStore:
    """Return a process-wide singleton :class:`DiskCredentialStore`."""
    global _default_store  # noqa: PLW0603
    if _default_store is None:
        _default_store = DiskCredentialStore()
    return _default_store
