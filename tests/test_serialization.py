import json

import pytest

from poselock.model import Container, Entity, Lock, LockMember, Side
from poselock.serialization import (
    SceneFormatError,
    clone_container,
    deserialize_container,
    deserialize_entity,
    dumps,
    load_scene,
    loads,
    save_scene,
    serialize_container,
    serialize_entity,
)


def _scene():
    a = Entity(id="a", position=(150.0, 40.0), rotation=180.0, left_hand_rotation=15.0)
    b = Entity(id="b", position=(150.0, 220.0), scale=(1.5, 0.5), colour="blue")
    lock = Lock("l1", (LockMember("a", Side.RIGHT), LockMember("b", Side.LEFT)))
    return Container(id="panel", entities=(a, b), locks=(lock,), notes="warm-up")


def test_serialize_entity_uses_scene_keys():
    data = serialize_entity(Entity(id="a", position=(1.0, 2.0), right_elbow=(40.0, -10.0)))

    assert data["id"] == "a"
    assert (data["x"], data["y"]) == (1.0, 2.0)
    assert (data["scaleX"], data["scaleY"]) == (1.0, 1.0)
    assert data["leftHandPos"] == {"x": -30.0, "y": -40.0}
    assert data["rightElbowPos"] == {"x": 40.0, "y": -10.0}
    assert data["rightHandRotation"] == 0.0
    assert data["colour"] == "red"


def test_serialized_locks_reference_entities():
    data = serialize_container(_scene())

    assert data["locks"] == [
        {"id": "l1", "members": [{"entityId": "a", "side": "right"}, {"entityId": "b", "side": "left"}]}
    ]
    json.dumps(data)


def test_loads_keeps_ids_by_default():
    scene = _scene()

    loaded = loads(dumps(scene))

    assert loaded == scene


def test_deserialize_with_fresh_ids_remaps_locks():
    scene = _scene()

    copy = deserialize_container(serialize_container(scene))

    assert copy.id != scene.id
    assert {e.id for e in copy.entities}.isdisjoint({"a", "b"})
    assert copy.locks[0].id != "l1"
    new_a, new_b = (e.id for e in copy.entities)
    assert copy.locks[0].member_keys == (f"{new_a}:right", f"{new_b}:left")
    assert copy.entities[1].scale == (1.5, 0.5)
    assert copy.notes == "warm-up"


def test_clone_container_is_independent_copy():
    scene = _scene()

    clone = clone_container(scene)

    assert clone.id != scene.id
    assert [e.position for e in clone.entities] == [e.position for e in scene.entities]
    assert len(clone.locks) == 1


def test_missing_fields_take_figure_defaults():
    entity = deserialize_entity({"id": "x", "scaleX": 0, "rotation": "12.5", "colour": ""})

    assert entity.position == (0.0, 0.0)
    assert entity.rotation == 12.5
    assert entity.scale == (1.0, 1.0)
    assert entity.left_hand == (-30.0, -40.0)
    assert entity.right_elbow == (45.0, -12.0)
    assert entity.colour == "red"


def test_points_accept_pairs_and_ignore_garbage():
    entity = deserialize_entity(
        {"id": "x", "leftHandPos": [5, 6], "rightHandPos": {"x": "bad", "y": 7}, "leftElbowPos": "nope"}
    )

    assert entity.left_hand == (5.0, 6.0)
    assert entity.right_hand == (30.0, 7.0)
    assert entity.left_elbow == (-45.0, -12.0)


def test_invalid_lock_data_is_dropped():
    data = {
        "id": "panel",
        "entities": [{"id": "a"}, {"id": "b"}, {"id": "c"}],
        "locks": [
            "not a lock",
            {"id": "ghost", "members": [{"entityId": "a", "side": "left"}, {"entityId": "zzz", "side": "left"}]},
            {"id": "ok", "members": [{"entityId": "a", "side": "LEFT"}, {"entityId": "b", "side": "right"}]},
            {"id": "claimed", "members": [{"entityId": "a", "side": "left"}, {"entityId": "c", "side": "left"}]},
            {"id": "sides", "members": [{"entityId": "b", "side": "up"}, {"entityId": "c", "side": "right"}]},
            {"id": "nomembers"},
        ],
    }

    container = deserialize_container(data, fresh_ids=False)

    assert [lock.id for lock in container.locks] == ["ok"]
    assert container.locks[0].member_keys == ("a:left", "b:right")


def test_numeric_entity_ids_keep_their_locks():
    data = {
        "entities": [{"id": 1}, {"id": 2, "x": 60}],
        "locks": [{"id": "l", "members": [{"entityId": 1, "side": "right"}, {"entityId": 2, "side": "left"}]}],
    }

    container = deserialize_container(data, fresh_ids=False)

    assert [e.id for e in container.entities] == ["1", "2"]
    assert [lock.member_keys for lock in container.locks] == [("1:right", "2:left")]


def test_duplicate_entity_ids_keep_first():
    data = {"entities": [{"id": "a", "x": 1}, {"id": "a", "x": 2}]}

    container = deserialize_container(data, fresh_ids=False)

    assert [e.position for e in container.entities] == [(1.0, 0.0)]


@pytest.mark.parametrize("text", ["{", "[]", "42", '"panel"'])
def test_loads_rejects_non_objects(text):
    with pytest.raises(SceneFormatError):
        loads(text)


def test_non_list_sections_load_as_empty():
    container = loads(json.dumps({"id": "p", "entities": {"a": 1}, "locks": "x"}))

    assert container.entities == ()
    assert container.locks == ()


def test_save_and_load_scene(tmp_path):
    path = tmp_path / "nested" / "scene.json"

    save_scene(_scene(), path)

    assert load_scene(path) == _scene()
