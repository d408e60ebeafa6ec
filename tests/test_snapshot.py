from datetime import datetime, timezone

import pytest

from formbuilder.model.document import FormDocument, SnapshotError, from_snapshot, to_snapshot
from formbuilder.model.field import FieldType
from formbuilder.state.commands import MarkSaved, ReplaceDocument, UpdateField
from formbuilder.state.reducer import reduce


def test_snapshot_wire_keys(two_groups):
    snapshot = to_snapshot(two_groups)
    assert set(snapshot) == {"fieldsets", "selectedFieldId", "selectedFieldsetId", "lastSaved", "isDraft"}
    text = snapshot["fieldsets"][0]["fields"][0]
    assert text["type"] == "text"
    assert "options" not in text
    radio = snapshot["fieldsets"][1]["fields"][0]
    assert [option["value"] for option in radio["options"]] == ["option-1", "option-2"]


def test_snapshot_round_trip_through_replace_document(two_groups):
    saved_at = datetime(2024, 3, 4, 5, 6, 7, tzinfo=timezone.utc)
    state = reduce(two_groups, UpdateField("g2", "r", {"default_value": ["option-1"]}))
    state = reduce(state, MarkSaved(saved_at=saved_at, is_draft=True))

    restored = reduce(FormDocument(), ReplaceDocument(from_snapshot(to_snapshot(state))))
    assert restored == state
    assert restored.find_group("g2").find_field("r").default_value == ("option-1",)


def test_from_snapshot_accepts_trailing_z():
    document = from_snapshot({"fieldsets": [], "lastSaved": "2024-03-04T05:06:07.000Z"})
    assert document.last_saved == datetime(2024, 3, 4, 5, 6, 7, tzinfo=timezone.utc)


def test_from_snapshot_defaults_missing_keys():
    document = from_snapshot({"fieldsets": [{"id": "g", "name": "Only", "fields": [{"id": "f", "type": "label"}]}]})
    field = document.groups[0].fields[0]
    assert field.field_type is FieldType.LABEL
    assert field.required is False
    assert document.is_draft is False


def test_from_snapshot_drops_dangling_selection():
    document = from_snapshot(
        {"fieldsets": [{"id": "g", "name": "x", "fields": []}], "selectedFieldId": "gone", "selectedFieldsetId": "g"}
    )
    assert document.selected_field_id is None
    assert document.selected_group_id == "g"


@pytest.mark.parametrize(
    "payload",
    [
        None,
        [],
        {"fieldsets": ["not-a-group"]},
        {"fieldsets": [{"name": "missing id"}]},
        {"fieldsets": [{"id": "g", "fields": [{"id": "f", "type": "signature"}]}]},
        {"fieldsets": [], "lastSaved": "yesterday"},
    ],
)
def test_from_snapshot_rejects_malformed(payload):
    with pytest.raises(SnapshotError):
        from_snapshot(payload)
