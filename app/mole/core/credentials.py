"""Process-wide cache of the administrator credential.

The credential is held in memory once obtained and optionally persisted
to a single owner-only file (``~/.mole/.key``, mode 0600). Any failed
elevated execution clears it: a credential that did not work once is
assumed stale and must never be retried silently.

The secret is carried as :class:`pydantic.SecretStr` so it cannot leak
through a log record or a repr.
"""

from __future__ import annotations

import logging
import os
import stat
import threading
from pathlib import Path

from pydantic import SecretStr

from mole.core.paths import get_credential_path
from mole.core.state import Published

logger = logging.getLogger(__name__)

# Owner read/write only
CREDENTIAL_FILE_MODE = stat.S_IRUSR | stat.S_IWUSR


class CredentialStore:
    """Thread-safe holder of the cached administrator credential.

    State moves ``Unset -> Cached`` on a successful :meth:`load` or
    :meth:`set`, and ``Cached -> Unset`` on :meth:`clear` or
    :meth:`invalidate`.

    Attributes:
        needs_authorization: Published flag raised when an operation is
            blocked until a credential is supplied.
    """

    def __init__(self, path: Path | None = None, *, persist: bool = True) -> None:
        """Initialize the store.

        Args:
            path: Location of the persisted credential. Defaults to ~/.mole/.key.
            persist: If False, :meth:`set` keeps the credential in memory only.
        """
        self._path = path if path is not None else get_credential_path()
        self._persist = persist
        self._lock = threading.Lock()
        self._credential: SecretStr | None = None
        self.needs_authorization: Published[bool] = Published(False)

    @property
    def path(self) -> Path:
        """Path of the persisted credential file."""
        return self._path

    @property
    def credential(self) -> SecretStr | None:
        """The cached credential, or None when unset."""
        with self._lock:
            return self._credential

    @property
    def is_cached(self) -> bool:
        """Check whether a credential is currently cached."""
        return self.credential is not None

    def load(self) -> SecretStr | None:
        """Load the persisted credential into memory.

        Absence or an unreadable file is a normal state and is not reported.

        Returns:
            The loaded credential, or None.
        """
        try:
            secret = self._path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            return None

        if not secret:
            return None

        credential = SecretStr(secret)
        with self._lock:
            self._credential = credential
        logger.debug("Loaded persisted credential from %s", self._path)
        return credential

    def save(self, credential: SecretStr) -> None:
        """Persist *credential* with owner-only permissions.

        Failure is logged, not raised; the caller keeps the in-memory copy.
        """
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            # Create with restrictive mode so the secret is never world-readable
            fd = os.open(self._path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, CREDENTIAL_FILE_MODE)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(credential.get_secret_value())
            os.chmod(self._path, CREDENTIAL_FILE_MODE)
        except OSError as e:
            logger.warning("Failed to persist credential to %s: %s", self._path, e)

    def set(self, credential: SecretStr | str) -> None:
        """Cache a credential supplied by the user and lower the request flag."""
        if isinstance(credential, str):
            credential = SecretStr(credential)
        with self._lock:
            self._credential = credential
        if self._persist:
            self.save(credential)
        self.needs_authorization.set(False)

    def clear(self) -> None:
        """Drop the in-memory credential and delete the persisted copy."""
        with self._lock:
            self._credential = None
        try:
            self._path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Failed to remove persisted credential %s: %s", self._path, e)

    def invalidate(self) -> None:
        """Clear a credential that failed and request a new one."""
        logger.info("Cached credential rejected, clearing it")
        self.clear()
        self.request_authorization()

    def request_authorization(self) -> None:
        """Signal that an operation is waiting for a credential."""
        self.needs_authorization.set(True)

    def __repr__(self) -> str:
        state = "cached" if self.is_cached else "unset"
        return f"CredentialStore(path={str(self._path)!r}, state={state})"
