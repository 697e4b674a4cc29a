import pytest

from brain_orchestrator.models import GeneratedSlice, SectionType
from brain_orchestrator.slice_store import SliceStore


def _slice(index: int) -> GeneratedSlice:
    return GeneratedSlice(
        url=f"data:image/png;base64,{index}",
        title=f"title {index}",
        copy=f"copy {index}",
        description=f"description {index}",
        type=SectionType.USP,
    )


@pytest.fixture
def store():
    store = SliceStore()
    for index in range(3):
        store.append(_slice(index))
    return store


def test_append_publishes_new_state_objects(store):
    seen = []
    store.subscribe(seen.append)
    before = store.state

    store.append(_slice(3))

    assert len(store) == 4
    assert seen[-1] is store.state
    assert store.state is not before
    assert len(before.slices) == 3


def test_patch_only_changes_target_slice(store):
    original = store.slices

    store.patch_fields(1, {"copy": '"카피: NEW"'})

    assert store.slices[1].copy == "NEW"
    assert store.slices[1].description == "description 1"
    assert store.slices[0] is original[0]
    assert store.slices[2] is original[2]
    assert original[1].copy == "copy 1"


def test_patch_field_updates_description(store):
    store.patch_field(2, "description", "새 설명")
    assert store.slices[2].description == "새 설명"


def test_patch_rejects_unknown_fields_and_indices(store):
    with pytest.raises(ValueError):
        store.patch_fields(0, {"url": "data:evil"})
    with pytest.raises(IndexError):
        store.patch_field(5, "copy", "x")
    with pytest.raises(IndexError):
        store.patch_field(-1, "copy", "x")


def test_set_focus_clamps_to_range(store):
    assert store.set_focus(10).focus == 2
    assert store.set_focus(-3).focus == 0
    store.set_focus(1)
    assert store.state.focused.title == "title 1"


def test_reset_clears_slices_and_focus(store):
    store.set_focus(2)
    state = store.reset()

    assert state.slices == ()
    assert state.focus == 0
    assert state.focused is None
    assert store.set_focus(4).focus == 0


def test_unsubscribe_stops_notifications(store):
    seen = []
    unsubscribe = store.subscribe(seen.append)
    store.set_focus(1)
    unsubscribe()
    store.set_focus(2)

    assert len(seen) == 1
