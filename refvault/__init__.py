"""
refvault: a minimal embedded document store.

An in-memory indexed collection of typed references (ReferenceStore) with a
versioned JSON envelope, persisted locally through a rotating chain of
generational backups (GenerationalBackupStore).
"""

from refvault.config import BackupStoreConfig, configure_logging
from refvault.errors import (
    AlreadyExistsError,
    DuplicateIdError,
    InvalidFileNameError,
    MissingBackupChainError,
    NotFoundError,
    RefVaultError,
    RotationPreconditionError,
    StorageError,
)
from refvault.state import CURRENT_VERSION, Diagnostic, DiagnosticLevel, Reference, ReferenceStore
from refvault.storage import GenerationalBackupStore

__version__ = "0.1.0"

__all__ = [
    "AlreadyExistsError",
    "BackupStoreConfig",
    "CURRENT_VERSION",
    "Diagnostic",
    "DiagnosticLevel",
    "DuplicateIdError",
    "GenerationalBackupStore",
    "InvalidFileNameError",
    "MissingBackupChainError",
    "NotFoundError",
    "RefVaultError",
    "Reference",
    "ReferenceStore",
    "RotationPreconditionError",
    "StorageError",
    "configure_logging",
]
