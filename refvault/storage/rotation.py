"""
Generational backup rotation.

Given the latest backup and N generation slots (0 newest, N-1 oldest),
rotation shifts every existing generation up by one and copies the latest
backup into generation 0. Whatever occupied generation N-1 is overwritten.

For N = 4:
    1. rename gen 2 -> gen 3 (old gen 3 is evicted)
    2. rename gen 1 -> gen 2
    3. rename gen 0 -> gen 1
    4. copy latest -> gen 0 (latest stays in place)

plan_rotation() computes the steps from a snapshot of which slots exist;
rotate_backups() takes that snapshot through a FileSystem and applies them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Sequence, Tuple

from refvault.errors import RotationPreconditionError
from refvault.storage.filesystem import FileSystem

LOG = logging.getLogger("storage.rotation")


class RotationAction(str, Enum):
    RENAME = "rename"
    COPY = "copy"


@dataclass(frozen=True)
class RotationStep:
    """One file operation of a rotation."""

    action: RotationAction
    source: Path
    target: Path


def plan_rotation(latest: Path, generations: Sequence[Tuple[bool, Path]]) -> List[RotationStep]:
    """
    Compute rotation steps.

    Args:
        latest: Path of the latest backup (copied into generation 0)
        generations: ``(exists, path)`` per generation, index 0 first

    Returns:
        Steps to apply in order. Empty when there are no generation slots.
    """
    steps: List[RotationStep] = []
    for i in range(len(generations) - 1, 0, -1):
        newer_exists, newer_path = generations[i - 1]
        if newer_exists:
            steps.append(RotationStep(RotationAction.RENAME, newer_path, generations[i][1]))
        # else that generation has not been populated yet
    if generations:
        steps.append(RotationStep(RotationAction.COPY, latest, generations[0][1]))
    return steps


async def apply_rotation(fs: FileSystem, steps: Sequence[RotationStep]) -> None:
    for step in steps:
        LOG.debug("rotation: %s %s -> %s", step.action.value, step.source, step.target)
        if step.action is RotationAction.RENAME:
            await fs.rename(step.source, step.target)
        else:
            await fs.copy(step.source, step.target)


async def rotate_backups(fs: FileSystem, latest: Path, generation_paths: Sequence[Path]) -> List[RotationStep]:
    """
    Shift the generation chain by one and archive the latest backup.

    Raises:
        RotationPreconditionError: If the latest backup does not exist
    """
    if not await fs.exists(latest):
        raise RotationPreconditionError(
            f"Can't shift backups because base backup doesn't exist: {latest}",
            path=latest,
        )
    snapshot = [(await fs.exists(path), path) for path in generation_paths]
    steps = plan_rotation(latest, snapshot)
    await apply_rotation(fs, steps)
    return steps
