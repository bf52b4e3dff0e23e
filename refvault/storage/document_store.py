"""
Abstract document store interface.

A DocumentStore owns exactly one logical ReferenceStore document and exposes
create/read/write for it. GenerationalBackupStore is the local-disk backend.
"""

from __future__ import annotations

import random
import string
from abc import ABC, abstractmethod

from refvault.config import BackupStoreConfig
from refvault.state.reference_store import ReferenceStore


def generate_debug_id(length: int = 3) -> str:
    """Random uppercase tag used to tell store instances apart in logs."""
    return "".join(random.choice(string.ascii_uppercase) for _ in range(length))


class DocumentStore(ABC):
    """
    Abstract interface for persisting a single ReferenceStore document.

    Implementations:
    - GenerationalBackupStore: local files with a rotating backup chain
    """

    def __init__(self, config: BackupStoreConfig) -> None:
        self.config = config
        self.debug_id = generate_debug_id()

    @abstractmethod
    async def create(self) -> ReferenceStore:
        """Create and persist a new empty document."""

    @abstractmethod
    async def read(self) -> ReferenceStore:
        """Load the current document."""

    @abstractmethod
    async def write(self, store: ReferenceStore) -> None:
        """Persist ``store`` as the current document."""
