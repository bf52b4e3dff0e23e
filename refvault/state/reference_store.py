"""
In-memory indexed collection of references plus a diagnostic log.

The id index and type index are derived from the raw reference sequence:
the first reference seen for an id is indexed, later ones are not. Loading
untrusted data never raises; problems become diagnostics instead.
"""

from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from pydantic import TypeAdapter, ValidationError

from refvault.errors import DuplicateIdError
from refvault.state.models import (
    CURRENT_VERSION,
    Diagnostic,
    DiagnosticLevel,
    Reference,
    SerializedReferenceStore,
)

LOG = logging.getLogger("state.reference_store")

_REFERENCES = TypeAdapter(List[Reference])
_MESSAGES = TypeAdapter(List[Diagnostic])


class DuplicatePolicy(str, Enum):
    """What to do when an id is already indexed."""

    RECORD = "record"  # bulk load: diagnose and skip
    REJECT = "reject"  # add_ref: raise


class ReferenceStore:
    """
    Indexed reference collection, the unit of (de)serialization.

    Example:
        store = ReferenceStore(CURRENT_VERSION, [Reference(id="milk", type="item")])
        store.get_ref("milk")
        store.get_refs("item")
    """

    def __init__(
        self,
        version: int,
        references: Iterable[Reference],
        messages: Optional[Iterable[Diagnostic]] = None,
    ) -> None:
        self._version = version
        self._references: List[Reference] = list(references)
        self._messages: List[Diagnostic] = list(messages or [])
        self._refs_by_id: Dict[str, Reference] = {}
        self._refs_by_type: Dict[str, List[Reference]] = {}
        self._build_indices()

    # ------------------------------------------------------------------
    # indexing
    # ------------------------------------------------------------------

    def _build_indices(self) -> None:
        self._refs_by_id = {}
        self._refs_by_type = {}
        for ref in self._references:
            self._index_ref(ref, DuplicatePolicy.RECORD)

    def _index_ref(self, ref: Reference, policy: DuplicatePolicy) -> None:
        """
        Add ``ref`` to both indices unless its id is already taken.

        With RECORD, a taken id becomes a diagnostic. With REJECT, it raises
        DuplicateIdError before anything is touched.
        """
        existing = self._refs_by_id.get(ref.id)
        if existing is not None:
            if policy is DuplicatePolicy.REJECT:
                raise DuplicateIdError(ref.id, existing.type, ref.type)
            level = DiagnosticLevel.ERROR if existing.type != ref.type else DiagnosticLevel.WARNING
            self.push_message(
                level,
                f"Duplicate ref ids found. types {ref.type}, {existing.type}",
                [ref.id],
            )
            return

        self._refs_by_id[ref.id] = ref
        self._refs_by_type.setdefault(ref.type, []).append(ref)

    # ------------------------------------------------------------------
    # accessors
    # ------------------------------------------------------------------

    @property
    def version(self) -> int:
        return self._version

    @property
    def references(self) -> Tuple[Reference, ...]:
        """Raw reference sequence, including unindexed duplicates."""
        return tuple(self._references)

    @property
    def messages(self) -> Tuple[Diagnostic, ...]:
        return tuple(self._messages)

    def types(self) -> List[str]:
        """Known reference types in first-seen order."""
        return list(self._refs_by_type)

    def __len__(self) -> int:
        return len(self._refs_by_id)

    def __contains__(self, ref_id: object) -> bool:
        return ref_id in self._refs_by_id

    def get_refs(self, ref_type: str) -> List[Reference]:
        """Indexed references of ``ref_type`` in insertion order."""
        return list(self._refs_by_type.get(ref_type, []))

    def get_ref(self, ref_id: str) -> Optional[Reference]:
        return self._refs_by_id.get(ref_id)

    # ------------------------------------------------------------------
    # mutation
    # ------------------------------------------------------------------

    def add_ref(self, ref: Reference) -> None:
        """
        Add a reference to the store.

        Raises:
            DuplicateIdError: If ``ref.id`` is already indexed. The store is
                left unchanged.
        """
        self._index_ref(ref, DuplicatePolicy.REJECT)
        self._references.append(ref)

    def push_message(
        self,
        level: DiagnosticLevel | str,
        message: str,
        ref_ids: Optional[Sequence[str]] = None,
    ) -> None:
        self._messages.append(
            Diagnostic(
                level=DiagnosticLevel(level),
                message=message,
                refIds=list(ref_ids) if ref_ids is not None else None,
            )
        )

    def push_warning(self, message: str, ref_ids: Optional[Sequence[str]] = None) -> None:
        self.push_message(DiagnosticLevel.WARNING, message, ref_ids)

    def push_error(self, message: str, ref_ids: Optional[Sequence[str]] = None) -> None:
        self.push_message(DiagnosticLevel.ERROR, message, ref_ids)

    # ------------------------------------------------------------------
    # serialization
    # ------------------------------------------------------------------

    def serialize(self) -> str:
        """
        Serialize to the versioned JSON envelope.

        Only indexed (first-occurrence) references are written. Raw
        duplicates that were skipped during a bulk load are dropped; their
        ids survive only in the duplicate diagnostics.
        """
        envelope = SerializedReferenceStore(
            version=CURRENT_VERSION,
            references=list(self._refs_by_id.values()),
            messages=self._messages,
        )
        return envelope.to_json()

    @classmethod
    def _degraded(cls, level: DiagnosticLevel, message: str, serialized: str) -> "ReferenceStore":
        """Fresh empty store carrying ``message`` and the raw text."""
        state = cls(CURRENT_VERSION, [])
        state.push_message(level, message)
        state.push_message(level, serialized)
        return state

    @classmethod
    def deserialize(cls, serialized: str) -> "ReferenceStore":
        """
        Rebuild a store from its serialized form.

        Never raises for bad input. Unparseable text, an unsupported version
        or invalid references give an empty store with two ERROR diagnostics
        (detail + raw text). A missing or malformed ``messages`` field keeps
        the references and adds two WARNING diagnostics.
        """
        try:
            result: Any = json.loads(serialized)
        except (ValueError, TypeError, RecursionError) as exc:
            msg = f"Error parsing ReferenceStore string: {exc}"
            LOG.error("deserialize: %s", msg)
            return cls._degraded(DiagnosticLevel.ERROR, msg, serialized)

        if not isinstance(result, dict):
            result = {}

        version = result.get("version")
        # bool is an int subclass, and JSON false must not match version 0
        if type(version) is not int or version != CURRENT_VERSION:
            msg = (
                "Unsupported version number in serialized ReferenceStore. "
                f"Supported:{CURRENT_VERSION} Found:{version}"
            )
            LOG.error("deserialize: %s", msg)
            return cls._degraded(DiagnosticLevel.ERROR, msg, serialized)

        try:
            references = _REFERENCES.validate_python(result.get("references"))
        except ValidationError as exc:
            msg = f"Invalid references in serialized ReferenceStore: {exc}"
            LOG.error("deserialize: %s", msg)
            return cls._degraded(DiagnosticLevel.ERROR, msg, serialized)

        raw_messages = result.get("messages")
        problem: Optional[str] = None
        messages: List[Diagnostic] = []
        if not isinstance(raw_messages, list):
            problem = "deserialize passed string-object that is missing the messages array"
        else:
            try:
                messages = _MESSAGES.validate_python(raw_messages)
            except ValidationError as exc:
                problem = f"deserialize passed string-object with an invalid messages array: {exc}"

        if problem is not None:
            LOG.warning("deserialize: %s", problem)
            state = cls(CURRENT_VERSION, references, [])
            state.push_warning(problem)
            state.push_warning(serialized)
            return state

        return cls(CURRENT_VERSION, references, messages)
