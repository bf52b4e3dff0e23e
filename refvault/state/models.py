"""
Wire models for the serialized reference store document.

Pydantic models matching the on-disk JSON layout::

    {"version": 0, "references": [...], "messages": [...]}

Field names are kept in the document's camelCase (``refIds``).
"""

from __future__ import annotations

import json
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

CURRENT_VERSION = 0


class DiagnosticLevel(str, Enum):
    WARNING = "WARNING"
    ERROR = "ERROR"


class Reference(BaseModel):
    """
    A uniquely identified, typed record.

    Only ``id`` and ``type`` are interpreted by the store. Any other field is
    variant payload and is carried through serialization untouched.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    type: str


class Diagnostic(BaseModel):
    """Append-only data-quality log entry."""

    model_config = ConfigDict(frozen=True)

    level: DiagnosticLevel
    message: str
    refIds: Optional[List[str]] = None

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", exclude_none=True)


class SerializedReferenceStore(BaseModel):
    """The versioned envelope written to disk."""

    version: int
    references: List[Reference]
    messages: List[Diagnostic]

    def to_json(self) -> str:
        payload = {
            "version": self.version,
            "references": [ref.model_dump(mode="json") for ref in self.references],
            "messages": [msg.to_dict() for msg in self.messages],
        }
        return json.dumps(payload, indent=2)
