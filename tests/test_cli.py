import json

import pytest

import poselock.__main__ as cli
from poselock.model import Container, Entity
from poselock.serialization import load_scene, save_scene
from poselock.transforms import to_absolute


@pytest.fixture
def scene_path(tmp_path):
    path = tmp_path / "scene.json"
    container = Container(
        id="panel",
        entities=(Entity(id="a", position=(0.0, 0.0)), Entity(id="b", position=(60.0, 0.0))),
    )
    save_scene(container, path)
    return path


def test_autolock_writes_back_to_scene(scene_path, capsys):
    cli.main(["autolock", str(scene_path)])

    container = load_scene(scene_path)
    assert [sorted(lock.member_keys) for lock in container.locks] == [["a:right", "b:left"]]
    out = capsys.readouterr().out
    assert "Linked: a:right, b:left" in out
    assert "Locks (1):" in out


def test_move_point_writes_to_output(scene_path, tmp_path):
    output = tmp_path / "out" / "moved.json"
    cli.main(["autolock", str(scene_path)])

    cli.main(["move-point", str(scene_path), "a", "right", "40", "-20", "--output", str(output)])

    moved = load_scene(output)
    b = moved.entity("b")
    assert to_absolute(b, b.left_hand) == pytest.approx((40.0, -20.0))
    assert load_scene(scene_path).entity("a").right_hand == (30.0, -40.0)


def test_transform_enforces_locks(scene_path):
    cli.main(["autolock", str(scene_path)])

    cli.main(["transform", str(scene_path), "b", "--x", "90", "--rotation", "10"])

    container = load_scene(scene_path)
    a, b = container.entities
    assert b.position == (90.0, 0.0)
    assert b.rotation == 10.0
    assert to_absolute(a, a.right_hand) == pytest.approx(to_absolute(b, b.left_hand))


def test_unlock_removes_lock(scene_path):
    cli.main(["autolock", str(scene_path)])
    lock_id = load_scene(scene_path).locks[0].id

    cli.main(["unlock", str(scene_path), lock_id])

    assert load_scene(scene_path).locks == ()


@pytest.mark.parametrize(
    "argv",
    [
        ["move-point", "{scene}", "nobody", "left", "0", "0"],
        ["transform", "{scene}", "nobody", "--rotation", "5"],
        ["unlock", "{scene}", "missing-lock"],
    ],
)
def test_unknown_ids_exit_with_error(scene_path, argv):
    before = scene_path.read_text(encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        cli.main([arg.format(scene=scene_path) for arg in argv])

    assert excinfo.value.code == 1
    assert scene_path.read_text(encoding="utf-8") == before


def test_unreadable_scene_exits_with_error(tmp_path):
    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps([1, 2, 3]), encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["autolock", str(bad)])
    assert excinfo.value.code == 1

    with pytest.raises(SystemExit):
        cli.main(["autolock", str(tmp_path / "missing.json")])
