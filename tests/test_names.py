from formbuilder.model.names import (
    derive_id,
    generate_id,
    generate_name,
    is_name_unique,
    label_to_field_name,
    slugify,
)
from formbuilder.model.field import FormField, FieldType


def test_generate_name_returns_base_when_free():
    assert generate_name("Fieldset", []) == "Fieldset"


def test_generate_name_first_copy():
    assert generate_name("Fieldset", ["Fieldset"]) == "Fieldset copy"


def test_generate_name_counts_bare_copy_as_generation_one():
    assert generate_name("Fieldset", ["Fieldset", "Fieldset copy"]) == "Fieldset copy2"


def test_generate_name_uses_highest_generation():
    existing = ["text", "text copy", "text copy4", "text copy2"]
    assert generate_name("text", existing) == "text copy5"


def test_generate_name_escapes_base():
    # "a.b" must not match "axb copy"
    assert generate_name("a.b", ["a.b", "axb copy3"]) == "a.b copy"


def test_generate_id_is_unique():
    ids = {generate_id() for _ in range(2000)}
    assert len(ids) == 2000


def test_derive_id():
    assert derive_id("field", 2) == "field-2"


def test_slugify_and_field_name():
    assert slugify("New  Label") == "new-label"
    assert label_to_field_name("First Name!") == "first_name"


def test_is_name_unique_ignores_current_item():
    items = [
        FormField(id="1", field_type=FieldType.TEXT, name="text", label="Text"),
        FormField(id="2", field_type=FieldType.TEXT, name="other", label="Text"),
    ]
    assert is_name_unique("text", "1", items)
    assert not is_name_unique("text", "2", items)
    assert is_name_unique("fresh", None, items)
