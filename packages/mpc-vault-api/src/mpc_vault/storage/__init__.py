"""Storage module for vault metadata and export blobs."""

from __future__ import annotations

import dataclasses
import json
import logging
from pathlib import Path
from typing import Any, Protocol
from urllib.parse import quote

from ..types import ErrorCode, NotFoundError, VaultApiError, VaultMetadata

logger = logging.getLogger(__name__)


class MetadataStore(Protocol):
    """Protocol for metadata storage backends."""

    def initialize(self) -> None:
        """Prepare the backend for use."""
        ...

    def save(self, metadata: VaultMetadata) -> None:
        """Store a record, replacing any existing one."""
        ...

    def get(self, vault_id: str) -> VaultMetadata | None:
        """Load a record, or None if absent."""
        ...

    def list(self, user_id: str | None = None) -> list[VaultMetadata]:
        """List records, optionally filtered by owner."""
        ...

    def update(self, vault_id: str, **changes: Any) -> VaultMetadata:
        """Merge changes into an existing record."""
        ...

    def delete(self, vault_id: str) -> bool:
        """Delete a record."""
        ...

    def save_export(self, vault_id: str, payload: str) -> None:
        """Store the backup blob for a vault."""
        ...

    def get_export(self, vault_id: str) -> str | None:
        """Load the backup blob for a vault."""
        ...


def _merge(metadata: VaultMetadata, changes: dict[str, Any]) -> VaultMetadata:
    # Shallow merge; vault_id is the key and never changes.
    changes = {k: v for k, v in changes.items() if k != "vault_id"}
    return dataclasses.replace(metadata, **changes)


class MemoryMetadataStore:
    """In-memory store for testing."""

    def __init__(self) -> None:
        self._records: dict[str, dict[str, Any]] = {}
        self._exports: dict[str, str] = {}

    def initialize(self) -> None:
        pass

    def save(self, metadata: VaultMetadata) -> None:
        self._records[metadata.vault_id] = metadata.to_dict()

    def get(self, vault_id: str) -> VaultMetadata | None:
        data = self._records.get(vault_id)
        return VaultMetadata.from_dict(data) if data is not None else None

    def list(self, user_id: str | None = None) -> list[VaultMetadata]:
        vaults = [VaultMetadata.from_dict(d) for d in self._records.values()]
        if user_id:
            return [v for v in vaults if v.user_id == user_id]
        return vaults

    def update(self, vault_id: str, **changes: Any) -> VaultMetadata:
        existing = self.get(vault_id)
        if existing is None:
            raise NotFoundError(f"Vault {vault_id} not found")
        updated = _merge(existing, changes)
        self.save(updated)
        return updated

    def delete(self, vault_id: str) -> bool:
        return self._records.pop(vault_id, None) is not None

    def save_export(self, vault_id: str, payload: str) -> None:
        self._exports[vault_id] = payload

    def get_export(self, vault_id: str) -> str | None:
        return self._exports.get(vault_id)

    def clear(self) -> None:
        """Clear all records."""
        self._records.clear()
        self._exports.clear()


class FileMetadataStore:
    """File system store: one ``<id>.meta.json`` per vault plus an optional
    ``<id>.vault.backup`` holding the latest export.

    Writes are plain overwrites. A crash mid-write can leave a corrupt record;
    reading it raises rather than reporting the vault as absent.
    """

    META_SUFFIX = ".meta.json"
    EXPORT_SUFFIX = ".vault.backup"

    def __init__(self, base_path: str | Path) -> None:
        self._base_path = Path(base_path)

    @property
    def base_path(self) -> Path:
        return self._base_path

    def initialize(self) -> None:
        """Create the storage directory. Errors propagate to the caller."""
        try:
            self._base_path.mkdir(parents=True, exist_ok=True)
        except OSError:
            logger.error("Failed to initialize storage at %s", self._base_path)
            raise
        logger.info("Storage initialized at: %s", self._base_path)

    def _path(self, vault_id: str, suffix: str) -> Path:
        # Percent-encode ID: one file per distinct ID, never outside base_path
        return self._base_path / f"{quote(vault_id, safe='')}{suffix}"

    def _read(self, path: Path) -> VaultMetadata:
        """Parse a metadata file. FileNotFoundError passes through."""
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                raise ValueError("metadata record is not a JSON object")
            return VaultMetadata.from_dict(data)
        except (ValueError, KeyError, TypeError) as e:
            raise VaultApiError(
                ErrorCode.STORAGE, f"Corrupt vault metadata: {path.name}", cause=e
            ) from e

    def save(self, metadata: VaultMetadata) -> None:
        path = self._path(metadata.vault_id, self.META_SUFFIX)
        path.write_text(json.dumps(metadata.to_dict(), indent=2), encoding="utf-8")

    def get(self, vault_id: str) -> VaultMetadata | None:
        try:
            metadata = self._read(self._path(vault_id, self.META_SUFFIX))
        except FileNotFoundError:
            return None
        if metadata.vault_id != vault_id:
            return None
        return metadata

    def list(self, user_id: str | None = None) -> list[VaultMetadata]:
        """List all records. Any enumeration or parse failure yields an empty
        list instead of an error."""
        try:
            vaults = [
                self._read(p)
                for p in sorted(self._base_path.glob(f"*{self.META_SUFFIX}"))
            ]
        except (OSError, VaultApiError) as e:
            logger.error("Failed to list vaults: %s", e)
            return []

        if user_id:
            return [v for v in vaults if v.user_id == user_id]
        return vaults

    def update(self, vault_id: str, **changes: Any) -> VaultMetadata:
        """Read-modify-write. Not a compare-and-swap."""
        existing = self.get(vault_id)
        if existing is None:
            raise NotFoundError(f"Vault {vault_id} not found")
        updated = _merge(existing, changes)
        self.save(updated)
        return updated

    def delete(self, vault_id: str) -> bool:
        path = self._path(vault_id, self.META_SUFFIX)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        return True

    def save_export(self, vault_id: str, payload: str) -> None:
        path = self._path(vault_id, self.EXPORT_SUFFIX)
        path.write_text(payload, encoding="utf-8")

        # Set restrictive permissions
        try:
            path.chmod(0o600)
        except OSError:
            logger.debug("Could not restrict permissions on %s", path)

    def get_export(self, vault_id: str) -> str | None:
        path = self._path(vault_id, self.EXPORT_SUFFIX)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None


__all__ = [
    "MetadataStore",
    "MemoryMetadataStore",
    "FileMetadataStore",
]
