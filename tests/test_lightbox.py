import pytest
from conftest import make_file

from fieldgallery.services.lightbox import LightboxNavigator, RotationState


def nav_over(files):
    box = {"files": list(files)}
    return LightboxNavigator(lambda: box["files"]), box


def test_scenario_open_then_wrap_forward():
    nav, _ = nav_over([make_file(1), make_file(2), make_file(3)])
    assert nav.open(make_file(2)) == 1
    assert nav.navigate("next").id == 3
    assert nav.index == 2
    assert nav.navigate("next").id == 1
    assert nav.index == 0


def test_prev_at_start_wraps_to_end():
    nav, _ = nav_over([make_file(1), make_file(2), make_file(3)])
    nav.open(make_file(1))
    assert nav.navigate("prev").id == 3
    assert nav.position_label == "3 / 3"


@pytest.mark.parametrize("n", [1, 2, 5])
def test_next_then_prev_round_trips(n):
    files = [make_file(i) for i in range(1, n + 1)]
    nav, _ = nav_over(files)
    for f in files:
        nav.open(f)
        start = nav.index
        nav.navigate("next")
        nav.navigate("prev")
        assert nav.index == start
        assert nav.current.id == f.id


def test_single_item_navigates_to_itself():
    nav, _ = nav_over([make_file(1)])
    nav.open(make_file(1))
    assert nav.navigate("next").id == 1
    assert nav.navigate("prev").id == 1
    assert nav.index == 0
    assert nav.has_navigation is False


def test_rotate_four_times_is_identity():
    r = RotationState()
    assert [r.rotate() for _ in range(4)] == [90, 180, 270, 0]


def test_open_always_resets_rotation():
    nav, _ = nav_over([make_file(1), make_file(2)])
    for prior in range(4):
        nav.open(make_file(1))
        for _ in range(prior):
            nav.rotate()
        nav.open(make_file(2))
        assert nav.rotation.degrees == 0
        # re-opening the same item starts over too
        nav.rotate()
        nav.open(make_file(2))
        assert nav.rotation.degrees == 0


def test_navigation_resets_rotation_even_onto_same_item():
    nav, _ = nav_over([make_file(1)])
    nav.open(make_file(1))
    nav.rotate()
    nav.navigate("next")
    assert nav.rotation.degrees == 0


def test_document_is_not_in_sequence():
    nav, _ = nav_over([make_file(1), make_file(2, "video")])
    doc = make_file(3, "document")
    assert nav.open(doc) == -1
    assert nav.current is doc
    # navigating from outside the sequence starts at the edges
    assert nav.navigate("next").id == 1
    nav.open(doc)
    assert nav.navigate("prev").id == 2


def test_sequence_is_read_fresh_on_every_navigation():
    nav, box = nav_over([make_file(1), make_file(2), make_file(3)])
    nav.open(make_file(3))
    box["files"] = [make_file(1), make_file(2)]  # 3 was deleted elsewhere
    assert nav.navigate("prev").id == 2
    assert nav.total == 2


def test_empty_sequence_navigation_is_safe():
    nav, _ = nav_over([])
    doc = make_file(9, "document")
    nav.open(doc)
    assert nav.navigate("next") is doc
    assert nav.index == -1


def test_close_keeps_index():
    nav, _ = nav_over([make_file(1), make_file(2)])
    nav.open(make_file(2))
    nav.close()
    assert not nav.is_open
    assert nav.index == 1


def test_bad_direction():
    nav, _ = nav_over([make_file(1)])
    with pytest.raises(ValueError):
        nav.navigate("up")
