"""
Persistent storage layer for refvault.

Provides:
- DocumentStore: Abstract create/read/write interface for one document
- GenerationalBackupStore: Local files with a rotating backup chain
- FileSystem: Async file-system capability (local disk or in-memory)
- Rotation: Pure planner plus executor for the generation chain
"""

from refvault.storage.backup_store import (
    GenerationalBackupStore,
    read_document,
    read_store_file,
)
from refvault.storage.document_store import DocumentStore
from refvault.storage.filesystem import FileSystem, LocalFileSystem, MemoryFileSystem
from refvault.storage.rotation import RotationAction, RotationStep, plan_rotation, rotate_backups

__all__ = [
    "DocumentStore",
    "FileSystem",
    "GenerationalBackupStore",
    "LocalFileSystem",
    "MemoryFileSystem",
    "RotationAction",
    "RotationStep",
    "plan_rotation",
    "read_document",
    "read_store_file",
    "rotate_backups",
]
