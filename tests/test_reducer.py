from datetime import datetime, timezone

import pytest

from formbuilder.model.document import FormDocument, all_ids
from formbuilder.model.field import FieldOption, FieldType
from formbuilder.state.commands import (
    AddField,
    AddGroup,
    AddOption,
    DuplicateField,
    MarkSaved,
    MoveField,
    MoveGroup,
    RemoveField,
    RemoveGroup,
    RemoveOption,
    SelectField,
    SelectGroup,
    UpdateField,
    UpdateGroup,
    UpdateOption,
)
from formbuilder.state.reducer import InvalidUpdateError, insert_at, reduce


def field_ids(state: FormDocument, group_id: str) -> list[str]:
    return [field.id for field in state.find_group(group_id).fields]


def test_add_group_generates_unique_names():
    state = FormDocument()
    state = reduce(state, AddGroup(group_id="g1"))
    state = reduce(state, AddGroup(group_id="g2"))
    state = reduce(state, AddGroup(group_id="g3"))
    assert state.group_names() == ["Fieldset", "Fieldset copy", "Fieldset copy2"]


def test_add_group_with_explicit_name():
    state = reduce(FormDocument(), AddGroup(name="Contact", group_id="g1"))
    assert state.groups[0].name == "Contact"
    assert state.groups[0].fields == ()


def test_add_field_defaults_and_selection(two_groups):
    group = two_groups.find_group("g1")
    assert [field.name for field in group.fields] == ["text", "text copy", "text copy2"]
    text = group.fields[0]
    assert text.label == "Text"
    assert text.placeholder == "Enter text here"
    assert text.options is None
    assert two_groups.selected_field_id == "r"
    assert two_groups.selected_group_id == "g2"


def test_add_choice_field_has_two_options(two_groups):
    radio = two_groups.find_group("g2").find_field("r")
    assert [option.label for option in radio.options] == ["Option 1", "Option 2"]
    assert [option.value for option in radio.options] == ["option-1", "option-2"]
    assert len({option.id for option in radio.options}) == 2


def test_add_field_at_position(two_groups):
    state = reduce(two_groups, AddField(group_id="g1", field_type=FieldType.DATE, position=1, field_id="d"))
    assert field_ids(state, "g1") == ["a", "d", "b", "c"]


def test_add_field_out_of_range_position_appends(two_groups):
    state = reduce(two_groups, AddField(group_id="g1", field_type=FieldType.DATE, position=99, field_id="d"))
    assert field_ids(state, "g1") == ["a", "b", "c", "d"]


def test_add_field_unknown_group_is_noop(two_groups):
    assert reduce(two_groups, AddField(group_id="nope", field_type=FieldType.TEXT)) is two_groups


def test_reduce_does_not_mutate_input(two_groups):
    before = two_groups.find_group("g1").fields
    state = reduce(two_groups, RemoveField("g1", "b"))
    assert two_groups.find_group("g1").fields is before
    assert field_ids(two_groups, "g1") == ["a", "b", "c"]
    assert state is not two_groups
    # untouched groups are shared, not copied
    assert state.find_group("g2") is two_groups.find_group("g2")


def test_remove_field_clears_selection():
    state = reduce(FormDocument(), AddGroup(group_id="g1"))
    state = reduce(state, AddField(group_id="g1", field_type=FieldType.TEXT, field_id="a"))
    assert state.selected_field_id == "a"
    state = reduce(state, RemoveField("g1", "a"))
    assert state.selected_field_id is None
    assert state.find_group("g1").fields == ()


def test_remove_group_clears_its_selection(two_groups):
    state = reduce(two_groups, RemoveGroup("g2"))
    assert state.group_names() == ["Fieldset"]
    assert state.selected_group_id is None
    assert state.selected_field_id is None


def test_remove_other_group_keeps_selection(two_groups):
    state = reduce(two_groups, RemoveGroup("g1"))
    assert state.selected_group_id == "g2"
    assert state.selected_field_id == "r"


def test_update_field_attributes(two_groups):
    state = reduce(two_groups, UpdateField("g1", "a", {"label": "First name", "required": True}))
    field = state.find_group("g1").find_field("a")
    assert field.label == "First name"
    assert field.required is True
    assert field.name == "text"


def test_update_field_rejects_unknown_attribute(two_groups):
    with pytest.raises(InvalidUpdateError):
        reduce(two_groups, UpdateField("g1", "a", {"colour": "red"}))
    with pytest.raises(InvalidUpdateError):
        reduce(two_groups, UpdateField("g1", "a", {"id": "other"}))


def test_update_field_type_change_adjusts_options(two_groups):
    state = reduce(two_groups, UpdateField("g1", "a", {"field_type": "dropdown"}))
    assert state.find_group("g1").find_field("a").options == ()
    state = reduce(two_groups, UpdateField("g2", "r", {"field_type": FieldType.NUMBER}))
    assert state.find_group("g2").find_field("r").options is None


def test_update_field_options_recomputes_values(two_groups):
    options = (FieldOption(id="o1", label="Yes Please", value="stale"),)
    state = reduce(two_groups, UpdateField("g2", "r", {"options": options}))
    assert state.find_group("g2").find_field("r").options == (
        FieldOption(id="o1", label="Yes Please", value="yes-please"),
    )


def test_update_field_rename_is_not_deduplicated(two_groups):
    state = reduce(two_groups, UpdateField("g1", "b", {"name": "text"}))
    assert [field.name for field in state.find_group("g1").fields].count("text") == 2


def test_update_field_unknown_ids_noop(two_groups):
    assert reduce(two_groups, UpdateField("g1", "zzz", {"label": "x"})) is two_groups
    assert reduce(two_groups, UpdateField("zzz", "a", {"label": "x"})) is two_groups


def test_update_group_name(two_groups):
    state = reduce(two_groups, UpdateGroup("g2", {"name": "Contact"}))
    assert state.group_names() == ["Fieldset", "Contact"]
    with pytest.raises(InvalidUpdateError):
        reduce(two_groups, UpdateGroup("g2", {"fields": ()}))


def test_duplicate_field_mints_fresh_ids_and_name(two_groups):
    before_ids = set(all_ids(two_groups))
    state = reduce(two_groups, DuplicateField("g2", "r", clone_id="r2"))
    group = state.find_group("g2")
    clone = group.fields[-1]
    assert clone.id == "r2"
    assert clone.name == "radio copy"
    assert clone.name not in two_groups.find_group("g2").field_names()
    assert state.selected_field_id == "r2"
    clone_ids = {clone.id, *(option.id for option in clone.options)}
    assert not clone_ids & before_ids
    assert [option.label for option in clone.options] == ["Option 1", "Option 2"]


def test_duplicate_field_numbers_copies(two_groups):
    state = reduce(two_groups, DuplicateField("g2", "r", clone_id="r2"))
    state = reduce(state, DuplicateField("g2", "r", clone_id="r3"))
    assert state.find_group("g2").field_names() == ["radio", "radio copy", "radio copy2"]


def test_duplicate_unknown_field_noop(two_groups):
    assert reduce(two_groups, DuplicateField("g1", "missing")) is two_groups


def test_move_field_between_groups(two_groups):
    state = reduce(two_groups, MoveField("g1", "g2", "b", position=0))
    assert field_ids(state, "g1") == ["a", "c"]
    assert field_ids(state, "g2") == ["b", "r"]
    assert state.field_count() == two_groups.field_count()


def test_move_field_appends_without_position(two_groups):
    state = reduce(two_groups, MoveField("g1", "g2", "a"))
    assert field_ids(state, "g2") == ["r", "a"]


def test_move_field_within_group_reorders(two_groups):
    state = reduce(two_groups, MoveField("g1", "g1", "a", position=2))
    assert field_ids(state, "g1") == ["b", "c", "a"]
    state = reduce(state, MoveField("g1", "g1", "a", position=0))
    assert field_ids(state, "g1") == ["a", "b", "c"]


def test_move_field_same_group_without_position_noop(two_groups):
    assert reduce(two_groups, MoveField("g1", "g1", "a")) is two_groups


def test_move_field_to_own_index_noop(two_groups):
    assert reduce(two_groups, MoveField("g1", "g1", "b", position=1)) is two_groups


def test_move_field_never_duplicates(two_groups):
    state = two_groups
    for command in (
        MoveField("g1", "g1", "c", position=0),
        MoveField("g1", "g2", "a", position=1),
        MoveField("g2", "g1", "r", position=99),
    ):
        state = reduce(state, command)
        ids = [field.id for group in state.groups for field in group.fields]
        assert len(ids) == len(set(ids)) == 4


def test_move_field_unknown_ids_noop(two_groups):
    assert reduce(two_groups, MoveField("g1", "g2", "missing")) is two_groups
    assert reduce(two_groups, MoveField("g1", "nope", "a")) is two_groups


def test_move_group(two_groups):
    state = reduce(two_groups, MoveGroup("g2", 0))
    assert [group.id for group in state.groups] == ["g2", "g1"]


def test_move_group_noops(two_groups):
    assert reduce(two_groups, MoveGroup("g1", 0)) is two_groups
    assert reduce(two_groups, MoveGroup("g1", 5)) is two_groups
    assert reduce(two_groups, MoveGroup("g1", -1)) is two_groups
    assert reduce(two_groups, MoveGroup("missing", 0)) is two_groups


def test_add_option_numbers_from_count(two_groups):
    state = reduce(two_groups, AddOption("g2", "r", option_id="o3"))
    option = state.find_group("g2").find_field("r").options[-1]
    assert option == FieldOption(id="o3", label="Option 3", value="option-3")


def test_add_option_on_non_choice_field_noop(two_groups):
    assert reduce(two_groups, AddOption("g1", "a")) is two_groups


def test_update_option_slugifies_label(two_groups):
    option_id = two_groups.find_group("g2").find_field("r").options[0].id
    state = reduce(two_groups, UpdateOption("g2", "r", option_id, "New Label"))
    option = state.find_group("g2").find_field("r").options[0]
    assert (option.label, option.value) == ("New Label", "new-label")


def test_remove_option(two_groups):
    options = two_groups.find_group("g2").find_field("r").options
    state = reduce(two_groups, RemoveOption("g2", "r", options[0].id))
    assert state.find_group("g2").find_field("r").options == options[1:]
    assert reduce(two_groups, RemoveOption("g2", "r", "missing")) is two_groups


def test_selection_commands(two_groups):
    state = reduce(two_groups, SelectField("a"))
    state = reduce(state, SelectGroup("g1"))
    assert (state.selected_field_id, state.selected_group_id) == ("a", "g1")
    state = reduce(state, SelectField(None))
    assert state.selected_field_id is None


def test_mark_saved(two_groups):
    saved_at = datetime(2024, 5, 1, tzinfo=timezone.utc)
    state = reduce(two_groups, MarkSaved(saved_at=saved_at, is_draft=True))
    assert state.last_saved == saved_at
    assert state.is_draft is True
    assert state.groups is two_groups.groups


def test_reducer_is_deterministic(two_groups):
    command = DuplicateField("g1", "a")
    assert reduce(two_groups, command) == reduce(two_groups, command)


def test_unknown_command_raises(two_groups):
    with pytest.raises(TypeError):
        reduce(two_groups, object())


def test_insert_at():
    assert insert_at((1, 2), 9, 0) == (9, 1, 2)
    assert insert_at((1, 2), 9, 2) == (1, 2, 9)
    assert insert_at((1, 2), 9, None) == (1, 2, 9)
    assert insert_at((1, 2), 9, -3) == (1, 2, 9)


def test_add_group_with_existing_id_is_noop(two_groups):
    assert reduce(two_groups, AddGroup(group_id="g1")) is two_groups
    # ids are unique across groups, fields and options
    assert reduce(two_groups, AddGroup(group_id="a")) is two_groups


def test_add_field_replayed_or_colliding_is_noop(two_groups):
    command = AddField(group_id="g1", field_type=FieldType.TEXT)
    once = reduce(two_groups, command)
    assert reduce(once, command) is once
    assert reduce(two_groups, AddField(group_id="g2", field_type=FieldType.TEXT, field_id="a")) is two_groups
    ids = all_ids(once)
    assert len(ids) == len(set(ids))


def test_add_choice_field_with_colliding_option_id_is_noop(two_groups):
    # a radio with id "z" derives option ids "z-1" and "z-2"
    state = reduce(two_groups, AddField(group_id="g1", field_type=FieldType.TEXT, field_id="z-1"))
    assert state is not two_groups
    assert reduce(state, AddField(group_id="g1", field_type=FieldType.RADIO, field_id="z")) is state


def test_duplicate_field_with_existing_clone_id_is_noop(two_groups):
    assert reduce(two_groups, DuplicateField("g1", "a", clone_id="b")) is two_groups
    command = DuplicateField("g2", "r")
    once = reduce(two_groups, command)
    assert reduce(once, command) is once


def test_add_option_with_existing_id_is_noop(two_groups):
    existing = two_groups.find_group("g2").find_field("r").options[0].id
    assert reduce(two_groups, AddOption("g2", "r", option_id=existing)) is two_groups
    assert reduce(two_groups, AddOption("g2", "r", option_id="g1")) is two_groups


def test_field_count_tracks_successful_adds_and_removes(two_groups):
    steps = [
        (AddField(group_id="g1", field_type=FieldType.TEXT, field_id="n1"), 1),
        (AddField(group_id="missing", field_type=FieldType.TEXT, field_id="n2"), 0),
        (RemoveField("g1", "a"), -1),
        (RemoveField("g1", "a"), 0),
        (RemoveField("g2", "b"), 0),
        (AddField(group_id="g2", field_type=FieldType.CHECKBOX, field_id="n3"), 1),
        (AddField(group_id="g2", field_type=FieldType.TEXT, field_id="n3"), 0),
        (RemoveField("missing", "r"), 0),
        (RemoveField("g2", "r"), -1),
        (RemoveField("g1", "n1"), -1),
    ]
    state = two_groups
    expected = two_groups.field_count()
    for command, delta in steps:
        state = reduce(state, command)
        expected += delta
        assert state.field_count() == expected


def test_update_group_unknown_id_is_noop_before_validation(two_groups):
    assert reduce(two_groups, UpdateGroup("missing", {"fields": ()})) is two_groups


def test_update_field_unknown_type_raises_invalid_update(two_groups):
    with pytest.raises(InvalidUpdateError):
        reduce(two_groups, UpdateField("g1", "a", {"field_type": "signature"}))
