from __future__ import annotations

import os

import pytest

# Qt widgets require a platform plugin. Offscreen avoids display dependencies.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from formbuilder.model.document import FormDocument  # noqa: E402
from formbuilder.model.field import FieldType  # noqa: E402
from formbuilder.state.commands import AddField, AddGroup  # noqa: E402
from formbuilder.state.reducer import reduce  # noqa: E402


@pytest.fixture
def two_groups() -> FormDocument:
    """Two fieldsets: g1 holds text fields a, b, c; g2 holds radio field r."""
    state = FormDocument()
    state = reduce(state, AddGroup(group_id="g1"))
    state = reduce(state, AddGroup(group_id="g2"))
    for field_id in ("a", "b", "c"):
        state = reduce(state, AddField(group_id="g1", field_type=FieldType.TEXT, field_id=field_id))
    state = reduce(state, AddField(group_id="g2", field_type=FieldType.RADIO, field_id="r"))
    return state
