"""
Exception hierarchy for refvault.

Only structural failures raise. Data-quality problems found while loading a
document are recorded as diagnostics on the ReferenceStore instead.
"""

from __future__ import annotations

from pathlib import Path


class RefVaultError(Exception):
    """Base exception for all refvault errors."""

    pass


class DuplicateIdError(RefVaultError):
    """A reference id was added programmatically while already indexed."""

    def __init__(self, ref_id: str, existing_type: str, new_type: str) -> None:
        self.ref_id = ref_id
        self.existing_type = existing_type
        self.new_type = new_type
        super().__init__(
            f"Reference id {ref_id!r} already exists "
            f"(existing type {existing_type!r}, new type {new_type!r})"
        )


class StorageError(RefVaultError):
    """Base exception for persistence protocol violations."""

    def __init__(self, message: str, path: Path | str | None = None) -> None:
        self.path = path
        super().__init__(message)


class InvalidFileNameError(StorageError):
    """The configured file name has no extension separator."""

    pass


class AlreadyExistsError(StorageError):
    """create() was called but the primary document already exists."""

    pass


class MissingBackupChainError(StorageError):
    """write() was called before create() initialized the backup chain."""

    pass


class NotFoundError(StorageError):
    """read() was called but the primary document does not exist."""

    pass


class RotationPreconditionError(StorageError):
    """Backups cannot rotate because the latest backup does not exist."""

    pass
