"""
Async file-system capability used by the backup store.

Defines the FileSystem ABC with two implementations:
- LocalFileSystem: real disk access, blocking calls run in a worker thread
- MemoryFileSystem: dict-backed, records every mutating operation in order

The backup store only ever talks to this interface, so rotation and write
ordering can be exercised without touching a disk.
"""

from __future__ import annotations

import asyncio
import os
import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Set, Tuple


class FileSystem(ABC):
    """Minimal async file-system interface."""

    @abstractmethod
    async def exists(self, path: Path) -> bool:
        """Return True if a regular file exists at ``path``."""

    @abstractmethod
    async def read_text(self, path: Path) -> str:
        """Read a UTF-8 file. Raises FileNotFoundError if missing."""

    @abstractmethod
    async def write_text(self, path: Path, content: str) -> None:
        """Create or overwrite a UTF-8 file."""

    @abstractmethod
    async def rename(self, source: Path, target: Path) -> None:
        """Move ``source`` to ``target``, replacing ``target`` if present."""

    @abstractmethod
    async def copy(self, source: Path, target: Path) -> None:
        """Copy file contents, replacing ``target`` if present."""

    @abstractmethod
    async def makedirs(self, path: Path) -> None:
        """Create a directory and its parents; no-op if it exists."""


class LocalFileSystem(FileSystem):
    """FileSystem backed by the local disk."""

    async def exists(self, path: Path) -> bool:
        return await asyncio.to_thread(path.is_file)

    async def read_text(self, path: Path) -> str:
        return await asyncio.to_thread(path.read_text, encoding="utf-8")

    async def write_text(self, path: Path, content: str) -> None:
        await asyncio.to_thread(path.write_text, content, encoding="utf-8")

    async def rename(self, source: Path, target: Path) -> None:
        await asyncio.to_thread(os.replace, source, target)

    async def copy(self, source: Path, target: Path) -> None:
        await asyncio.to_thread(shutil.copyfile, source, target)

    async def makedirs(self, path: Path) -> None:
        await asyncio.to_thread(path.mkdir, parents=True, exist_ok=True)


class MemoryFileSystem(FileSystem):
    """
    In-memory FileSystem.

    Use cases:
    - Unit tests for rotation and write ordering
    - Fault injection via ``fail_on``

    ``operations`` lists every mutating call as ``(op, path, ...)`` tuples.
    """

    def __init__(self) -> None:
        self.files: Dict[Path, str] = {}
        self.directories: Set[Path] = set()
        self.operations: List[Tuple[str, ...]] = []
        self.fail_on: Set[Tuple[str, Path]] = set()

    def _check_fault(self, op: str, path: Path) -> None:
        if (op, path) in self.fail_on:
            raise OSError(f"Injected failure: {op} {path}")

    async def exists(self, path: Path) -> bool:
        return path in self.files

    async def read_text(self, path: Path) -> str:
        try:
            return self.files[path]
        except KeyError:
            raise FileNotFoundError(str(path)) from None

    async def write_text(self, path: Path, content: str) -> None:
        self._check_fault("write", path)
        self.files[path] = content
        self.operations.append(("write", str(path)))

    async def rename(self, source: Path, target: Path) -> None:
        self._check_fault("rename", source)
        if source not in self.files:
            raise FileNotFoundError(str(source))
        self.files[target] = self.files.pop(source)
        self.operations.append(("rename", str(source), str(target)))

    async def copy(self, source: Path, target: Path) -> None:
        self._check_fault("copy", source)
        if source not in self.files:
            raise FileNotFoundError(str(source))
        self.files[target] = self.files[source]
        self.operations.append(("copy", str(source), str(target)))

    async def makedirs(self, path: Path) -> None:
        self.directories.add(path)
        self.operations.append(("makedirs", str(path)))
