"""
In-memory reference state.

Submodules:
    - models: pydantic wire models and the current format version
    - reference_store: indexed reference collection with diagnostics
"""

from refvault.state.models import (
    CURRENT_VERSION,
    Diagnostic,
    DiagnosticLevel,
    Reference,
    SerializedReferenceStore,
)
from refvault.state.reference_store import DuplicatePolicy, ReferenceStore

__all__ = [
    "CURRENT_VERSION",
    "Diagnostic",
    "DiagnosticLevel",
    "DuplicatePolicy",
    "Reference",
    "ReferenceStore",
    "SerializedReferenceStore",
]
