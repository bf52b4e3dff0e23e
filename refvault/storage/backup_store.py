"""
Local document store with a rotating generational backup chain.

Layout under ``config.base_dir``::

    <file_name>                                   primary document
    <backups>/<file_name>                         latest backup
    <backups>/<stem>_0<ext> .. <stem>_<N-1><ext>  generations, 0 newest

Every create/write updates the latest backup and rotates the chain before
the primary file is touched. A crash between the two leaves the primary at
its previous value while the backups already hold the new one.

Assumes a single writer per document; there is no locking.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Tuple

from refvault.config import BackupStoreConfig
from refvault.errors import (
    AlreadyExistsError,
    InvalidFileNameError,
    MissingBackupChainError,
    NotFoundError,
)
from refvault.state.models import CURRENT_VERSION
from refvault.state.reference_store import ReferenceStore
from refvault.storage.document_store import DocumentStore
from refvault.storage.filesystem import FileSystem, LocalFileSystem
from refvault.storage.rotation import rotate_backups

LOG = logging.getLogger("storage.backup_store")


async def read_document(fs: FileSystem, path: Path) -> Optional[str]:
    """Read a UTF-8 file, or None if it does not exist."""
    if not await fs.exists(path):
        return None
    return await fs.read_text(path)


async def read_store_file(fs: FileSystem, path: Path) -> Optional[ReferenceStore]:
    """Read and deserialize a store file, or None if it does not exist."""
    contents = await read_document(fs, path)
    if contents is None:
        return None
    return ReferenceStore.deserialize(contents)


class GenerationalBackupStore(DocumentStore):
    """
    Reads, writes and backs up one ReferenceStore document on disk.

    Example:
        db = GenerationalBackupStore(BackupStoreConfig(file_name="fridge.json"))
        state = await db.create()
        state.add_ref(Reference(id="milk", type="item"))
        await db.write(state)
    """

    def __init__(self, config: BackupStoreConfig, fs: Optional[FileSystem] = None) -> None:
        super().__init__(config)
        self.fs = fs or LocalFileSystem()
        self._base_dir = config.base_dir.resolve()

    # ------------------------------------------------------------------
    # path derivation
    # ------------------------------------------------------------------

    def primary_path(self) -> Path:
        return self._base_dir / self.config.file_name

    def file_name_parts(self) -> Tuple[str, str]:
        """
        Split the file name on its last ``.`` into (stem, ext).

        Raises:
            InvalidFileNameError: If the file name has no ``.``
        """
        name = self.config.file_name
        period = name.rfind(".")
        if period == -1:
            raise InvalidFileNameError(f"Bad backup file name {name!r}: no extension", path=name)
        return name[:period], name[period:]

    def backup_path(self, generation: Optional[int] = None) -> Path:
        """Latest backup path, or the path of ``generation`` when given."""
        if generation is None:
            name = self.config.file_name
        else:
            stem, ext = self.file_name_parts()
            name = f"{stem}_{generation}{ext}"
        return self._base_dir / self.config.backups_dir_name / name

    def generation_paths(self) -> List[Path]:
        return [self.backup_path(i) for i in range(self.config.backup_count)]

    # ------------------------------------------------------------------
    # internals
    # ------------------------------------------------------------------

    async def _commit(self, content: str) -> None:
        """Latest backup, then rotation, then primary. Never reordered."""
        latest = self.backup_path()
        generations = self.generation_paths()
        primary = self.primary_path()
        await self.fs.write_text(latest, content)
        await rotate_backups(self.fs, latest, generations)
        await self.fs.write_text(primary, content)

    async def read_files(self) -> Tuple[Optional[ReferenceStore], Optional[str]]:
        """Return the deserialized primary and the raw latest backup text."""
        backup = await read_document(self.fs, self.backup_path())
        primary = await read_document(self.fs, self.primary_path())
        if primary is not None and backup is not None and primary != backup:
            LOG.warning(
                "[%s] primary %s differs from latest backup %s",
                self.debug_id, self.primary_path(), self.backup_path(),
            )
        model = ReferenceStore.deserialize(primary) if primary is not None else None
        return model, backup

    # ------------------------------------------------------------------
    # DocumentStore implementation
    # ------------------------------------------------------------------

    async def create(self) -> ReferenceStore:
        """
        Create a new empty store and write it with its backup chain.

        Raises:
            AlreadyExistsError: If the primary file already exists
            InvalidFileNameError: If the file name has no extension
        """
        primary = self.primary_path()
        if await self.fs.exists(primary):
            raise AlreadyExistsError(f"Can't create store at {primary}: already exists", path=primary)

        # a bad file name must fail before any disk access
        self.generation_paths()
        await self.fs.makedirs(self.backup_path().parent)
        state = ReferenceStore(CURRENT_VERSION, [])
        await self._commit(state.serialize())
        LOG.info("[%s] created store %s", self.debug_id, primary)
        return state

    async def write(self, store: ReferenceStore) -> None:
        """
        Persist ``store`` through the backup chain.

        Raises:
            MissingBackupChainError: If create() never initialized the chain
        """
        latest = self.backup_path()
        if not await self.fs.exists(latest):
            raise MissingBackupChainError(
                f"Can't perform backup because previous base backup doesn't exist: {latest}",
                path=latest,
            )
        await self._commit(store.serialize())
        LOG.info("[%s] wrote store %s (%d refs)", self.debug_id, self.primary_path(), len(store))

    async def read(self) -> ReferenceStore:
        """
        Load the primary document.

        Raises:
            NotFoundError: If the primary file does not exist
        """
        model, _ = await self.read_files()
        if model is None:
            raise NotFoundError(f"Store not found at {self.primary_path()}", path=self.primary_path())
        LOG.debug("[%s] read store %s", self.debug_id, self.primary_path())
        return model
