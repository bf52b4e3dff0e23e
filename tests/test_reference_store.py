"""Tests for refvault.state.reference_store: indexing, diagnostics and serialization."""

import json

import pytest

from refvault.errors import DuplicateIdError
from refvault.state.models import CURRENT_VERSION, Diagnostic, DiagnosticLevel, Reference
from refvault.state.reference_store import ReferenceStore


def _ref(ref_id: str, ref_type: str = "item", **payload) -> Reference:
    return Reference(id=ref_id, type=ref_type, **payload)


@pytest.fixture
def store():
    """Store with two items and one shelf."""
    return ReferenceStore(
        CURRENT_VERSION,
        [
            _ref("milk", "item", qty=2),
            _ref("top", "shelf"),
            _ref("eggs", "item", qty=12),
        ],
    )


class TestIndexing:
    """Construction from unique references."""

    def test_every_reference_is_indexed(self, store):
        """get_ref returns each inserted record."""
        assert len(store) == 3
        assert store.get_ref("milk").qty == 2
        assert store.get_ref("top").type == "shelf"
        assert "eggs" in store

    def test_get_refs_groups_by_type_in_order(self, store):
        """get_refs keeps insertion order within a type."""
        assert [r.id for r in store.get_refs("item")] == ["milk", "eggs"]
        assert [r.id for r in store.get_refs("shelf")] == ["top"]
        assert store.types() == ["item", "shelf"]

    def test_unknown_lookups_never_fail(self, store):
        """Missing ids and types give None and an empty list."""
        assert store.get_ref("nope") is None
        assert store.get_refs("nope") == []

    def test_no_diagnostics_for_clean_input(self, store):
        assert store.messages == ()

    def test_get_refs_returns_a_copy(self, store):
        """Mutating the returned list leaves the index alone."""
        store.get_refs("item").clear()
        assert len(store.get_refs("item")) == 2


class TestBulkLoadDuplicates:
    """Duplicate ids seen during construction are diagnosed, not rejected."""

    def test_different_type_is_an_error(self):
        """Same id, different type → one ERROR, first occurrence wins."""
        first = _ref("x", "item")
        store = ReferenceStore(CURRENT_VERSION, [first, _ref("x", "shelf")])

        assert len(store.messages) == 1
        diag = store.messages[0]
        assert diag.level == DiagnosticLevel.ERROR
        assert diag.refIds == ["x"]
        assert "shelf" in diag.message and "item" in diag.message
        assert store.get_ref("x") is first
        assert store.get_refs("shelf") == []

    def test_same_type_is_a_warning(self):
        """Same id, same type → one WARNING, first occurrence wins."""
        first = _ref("x", "item", qty=1)
        store = ReferenceStore(CURRENT_VERSION, [first, _ref("x", "item", qty=2)])

        assert [d.level for d in store.messages] == [DiagnosticLevel.WARNING]
        assert store.get_ref("x").qty == 1
        assert store.get_refs("item") == [first]

    def test_raw_sequence_keeps_duplicates(self):
        """The raw sequence records every attempted insertion."""
        store = ReferenceStore(CURRENT_VERSION, [_ref("x"), _ref("x")])
        assert len(store.references) == 2
        assert len(store) == 1

    def test_duplicate_diagnostics_follow_existing_messages(self):
        """Pre-existing diagnostics are kept ahead of new ones."""
        prior = Diagnostic(level=DiagnosticLevel.WARNING, message="old")
        store = ReferenceStore(CURRENT_VERSION, [_ref("x"), _ref("x", "shelf")], [prior])
        assert [d.message for d in store.messages][0] == "old"
        assert store.messages[1].level == DiagnosticLevel.ERROR


class TestAddRef:
    """Programmatic insertion is strict about duplicate ids."""

    def test_add_new_reference(self, store):
        store.add_ref(_ref("butter", "item"))
        assert store.get_ref("butter") is not None
        assert [r.id for r in store.get_refs("item")] == ["milk", "eggs", "butter"]
        assert store.references[-1].id == "butter"

    def test_add_new_type(self, store):
        store.add_ref(_ref("door", "compartment"))
        assert [r.id for r in store.get_refs("compartment")] == ["door"]

    def test_duplicate_raises_and_leaves_store_unchanged(self, store):
        """DuplicateIdError, with raw sequence, indices and log untouched."""
        before_refs = store.references
        before_items = store.get_refs("item")

        with pytest.raises(DuplicateIdError, match="milk") as excinfo:
            store.add_ref(_ref("milk", "shelf"))

        assert excinfo.value.ref_id == "milk"
        assert excinfo.value.existing_type == "item"
        assert store.references == before_refs
        assert store.get_refs("item") == before_items
        assert store.get_refs("shelf")[0].id == "top"
        assert store.get_ref("milk").type == "item"
        assert store.messages == ()


class TestMessages:
    def test_push_helpers_append_in_order(self):
        store = ReferenceStore(CURRENT_VERSION, [])
        store.push_warning("careful", ["a"])
        store.push_error("broken")
        store.push_message("ERROR", "raw level string", ["b", "c"])

        assert [(d.level, d.message) for d in store.messages] == [
            (DiagnosticLevel.WARNING, "careful"),
            (DiagnosticLevel.ERROR, "broken"),
            (DiagnosticLevel.ERROR, "raw level string"),
        ]
        assert store.messages[0].refIds == ["a"]
        assert store.messages[1].refIds is None
        assert store.messages[2].refIds == ["b", "c"]


class TestSerialize:
    def test_envelope_layout(self, store):
        """version, references and messages at the top level."""
        store.push_warning("note")
        doc = json.loads(store.serialize())

        assert set(doc) == {"version", "references", "messages"}
        assert doc["version"] == CURRENT_VERSION
        assert [r["id"] for r in doc["references"]] == ["milk", "top", "eggs"]
        assert doc["messages"] == [{"level": "WARNING", "message": "note"}]

    def test_payload_fields_pass_through(self):
        """Unknown reference fields survive serialization."""
        store = ReferenceStore(CURRENT_VERSION, [_ref("milk", qty=2, tags=["dairy"], expires=None)])
        doc = json.loads(store.serialize())
        assert doc["references"][0] == {
            "id": "milk",
            "type": "item",
            "qty": 2,
            "tags": ["dairy"],
            "expires": None,
        }

    def test_raw_duplicates_are_dropped(self):
        """Only first-occurrence references are written."""
        store = ReferenceStore(CURRENT_VERSION, [_ref("x", qty=1), _ref("x", qty=2)])
        doc = json.loads(store.serialize())
        assert doc["references"] == [{"id": "x", "type": "item", "qty": 1}]
        assert doc["messages"][0]["refIds"] == ["x"]

    def test_round_trip(self, store):
        """deserialize(serialize()) reproduces indices and log in order."""
        store.push_error("first", ["milk"])
        store.push_warning("second")

        restored = ReferenceStore.deserialize(store.serialize())

        assert restored.version == CURRENT_VERSION
        assert [r.id for r in restored.references] == ["milk", "top", "eggs"]
        for ref_type in ("item", "shelf"):
            assert restored.get_refs(ref_type) == store.get_refs(ref_type)
        assert restored.get_ref("eggs") == store.get_ref("eggs")
        assert restored.messages == store.messages


class TestDeserializeDegradation:
    """Malformed input never raises; it yields a usable store plus diagnostics."""

    def test_invalid_json(self):
        text = "{not json"
        store = ReferenceStore.deserialize(text)

        assert store.version == CURRENT_VERSION
        assert len(store) == 0
        assert [d.level for d in store.messages] == [DiagnosticLevel.ERROR] * 2
        assert "Error parsing" in store.messages[0].message
        assert store.messages[1].message == text

    def test_deeply_nested_json(self):
        """Nesting past the recursion limit degrades like a parse failure."""
        text = "[" * 100000
        store = ReferenceStore.deserialize(text)

        assert len(store) == 0
        assert [d.level for d in store.messages] == [DiagnosticLevel.ERROR] * 2
        assert "Error parsing" in store.messages[0].message
        assert store.messages[1].message == text

    def test_oversized_integer_literal(self):
        """An integer too long to convert degrades like a parse failure."""
        text = '{"version": ' + "1" * 5000 + "}"
        store = ReferenceStore.deserialize(text)

        assert len(store) == 0
        assert [d.level for d in store.messages] == [DiagnosticLevel.ERROR] * 2
        assert store.messages[1].message == text

    def test_unsupported_version(self):
        text = json.dumps({"version": 7, "references": [{"id": "a", "type": "item"}], "messages": []})
        store = ReferenceStore.deserialize(text)

        assert len(store) == 0
        assert [d.level for d in store.messages] == [DiagnosticLevel.ERROR] * 2
        assert f"Supported:{CURRENT_VERSION}" in store.messages[0].message
        assert "Found:7" in store.messages[0].message
        assert store.messages[1].message == text

    def test_boolean_version_is_not_zero(self):
        text = json.dumps({"version": False, "references": [], "messages": []})
        store = ReferenceStore.deserialize(text)
        assert [d.level for d in store.messages] == [DiagnosticLevel.ERROR] * 2

    def test_non_object_document(self):
        """A top-level array has no version at all."""
        store = ReferenceStore.deserialize("[1, 2]")
        assert len(store.messages) == 2
        assert "Found:None" in store.messages[0].message

    def test_missing_messages_keeps_references(self):
        text = json.dumps({"version": CURRENT_VERSION, "references": [{"id": "a", "type": "item"}]})
        store = ReferenceStore.deserialize(text)

        assert store.get_ref("a") is not None
        assert [d.level for d in store.messages] == [DiagnosticLevel.WARNING] * 2
        assert "missing the messages array" in store.messages[0].message
        assert store.messages[1].message == text

    def test_messages_not_a_list(self):
        text = json.dumps({"version": CURRENT_VERSION, "references": [], "messages": "oops"})
        store = ReferenceStore.deserialize(text)
        assert [d.level for d in store.messages] == [DiagnosticLevel.WARNING] * 2

    def test_malformed_message_entries(self):
        """Entries with an unknown level are treated like a missing log."""
        text = json.dumps({
            "version": CURRENT_VERSION,
            "references": [{"id": "a", "type": "item"}],
            "messages": [{"level": "INFO", "message": "hi"}],
        })
        store = ReferenceStore.deserialize(text)
        assert store.get_ref("a") is not None
        assert [d.level for d in store.messages] == [DiagnosticLevel.WARNING] * 2

    def test_invalid_references(self):
        """A reference without a type yields an empty store with two errors."""
        text = json.dumps({"version": CURRENT_VERSION, "references": [{"id": "a"}], "messages": []})
        store = ReferenceStore.deserialize(text)

        assert len(store) == 0
        assert [d.level for d in store.messages] == [DiagnosticLevel.ERROR] * 2
        assert store.messages[1].message == text

    def test_duplicates_in_document_are_diagnosed(self):
        """A valid document still goes through duplicate detection."""
        text = json.dumps({
            "version": CURRENT_VERSION,
            "references": [{"id": "a", "type": "item"}, {"id": "a", "type": "shelf"}],
            "messages": [{"level": "WARNING", "message": "kept"}],
        })
        store = ReferenceStore.deserialize(text)

        assert store.get_ref("a").type == "item"
        assert [d.message for d in store.messages][0] == "kept"
        assert store.messages[1].level == DiagnosticLevel.ERROR
        assert store.messages[1].refIds == ["a"]

    def test_degraded_loads_are_logged(self, caplog):
        with caplog.at_level("WARNING", logger="state.reference_store"):
            ReferenceStore.deserialize("garbage")
        assert any(r.levelname == "ERROR" for r in caplog.records)
