"""
Shared test fixtures and pytest configuration.

Async tests use pytest-asyncio in strict mode: mark them with
@pytest.mark.asyncio.
"""

import pytest

from refvault.storage.filesystem import MemoryFileSystem


@pytest.fixture
def memory_fs():
    """Fresh in-memory file system with an operation journal."""
    return MemoryFileSystem()
