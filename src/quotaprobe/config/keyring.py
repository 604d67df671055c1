"""System keyring access behind a narrow credential-store interface."""

from __future__ import annotations

import logging
from typing import Protocol

import keyring
import keyring.errors

from quotaprobe.errors.exceptions import CredentialAccessDenied

log = logging.getLogger(__name__)


class CredentialStore(Protocol):
    """Read/write access to the OS credential store.

    ``read`` returns None when no item exists and raises
    ``CredentialAccessDenied`` when the OS refuses access.
    """

    def read(self, service: str, account: str) -> bytes | None: ...

    def write(self, service: str, account: str, value: bytes) -> None: ...

    def delete(self, service: str, account: str) -> None: ...


class KeyringCredentialStore:
    """CredentialStore backed by the ``keyring`` library."""

    def read(self, service: str, account: str) -> bytes | None:
        try:
            value = keyring.get_password(service, account)
        except keyring.errors.KeyringError as e:
            log.debug("Keyring read denied for %s/%s: %s", service, account, e)
            raise CredentialAccessDenied(f"{service}: {e}") from e
        if value is None:
            return None
        return value.encode()

    def write(self, service: str, account: str, value: bytes) -> None:
        try:
            keyring.set_password(service, account, value.decode())
        except keyring.errors.KeyringError as e:
            raise CredentialAccessDenied(f"{service}: {e}") from e

    def delete(self, service: str, account: str) -> None:
        try:
            keyring.delete_password(service, account)
        except keyring.errors.PasswordDeleteError:
            return
        except keyring.errors.KeyringError as e:
            raise CredentialAccessDenied(f"{service}: {e}") from e

