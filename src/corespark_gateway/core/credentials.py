"""
In-memory credential store.

Holds one secret per vendor. Loading from and saving to persistent media is
the job of the sources in core.config and core.vault.
"""

import logging
from typing import Dict, Mapping, Optional, Set, Union

from ..models.provider import CredentialVendor

logger = logging.getLogger(__name__)

VendorKey = Union[CredentialVendor, str]


class CredentialStore:
    """
    Vendor-scoped secret mapping.

    Passed explicitly to the registry and dispatch coordinator so that
    tests and concurrent callers can hold independent credential sets.
    """

    def __init__(self, credentials: Optional[Mapping[VendorKey, str]] = None):
        self._credentials: Dict[CredentialVendor, str] = {}
        if credentials:
            self.set_credentials(credentials)

    def set_credentials(self, credentials: Mapping[VendorKey, Optional[str]]) -> None:
        """
        Merge a partial mapping into the store.

        Only the supplied vendors are overwritten; other vendors keep their
        current secret. Supplying an empty string or None for a vendor clears it.

        Args:
            credentials: Mapping of vendor (enum or its string value) to secret

        Raises:
            ValueError: If a key is not a known vendor
        """
        updates = {}
        for key, secret in credentials.items():
            updates[CredentialVendor(key)] = secret
        if not updates:
            return

        for vendor, secret in updates.items():
            if secret:
                self._credentials[vendor] = secret
            else:
                self._credentials.pop(vendor, None)

        logger.info(f"Credentials updated for: {', '.join(sorted(v.value for v in updates))}")

    def get_credential(self, vendor: VendorKey) -> Optional[str]:
        """
        Get the secret for a vendor.

        Returns:
            Non-empty secret, or None if not configured
        """
        return self._credentials.get(CredentialVendor(vendor))

    def has_credential(self, vendor: VendorKey) -> bool:
        return bool(self.get_credential(vendor))

    def configured_vendors(self) -> Set[CredentialVendor]:
        """Vendors that currently have a secret. Never exposes the secrets."""
        return set(self._credentials)

    def clear(self) -> None:
        """Remove every credential (logout/reset)."""
        self._credentials.clear()
        logger.info("Credentials cleared")

    def __repr__(self) -> str:
        vendors = sorted(v.value for v in self._credentials)
        return f"{self.__class__.__name__}(vendors={vendors!r})"


# Process-wide default store
_store: Optional[CredentialStore] = None


def get_credential_store() -> CredentialStore:
    """Get the process-wide default credential store."""
    global _store
    if _store is None:
        _store = CredentialStore()
    return _store


def reset_credential_store() -> None:
    """Drop the process-wide store. Used between test cases."""
    global _store
    _store = None
