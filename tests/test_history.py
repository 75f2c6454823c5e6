import pytest

from poselock.config import EngineConfig, get_engine_config, set_engine_config
from poselock.history import GestureHistory
from poselock.model import Container, Entity, Side
from poselock.stage import Stage


@pytest.fixture
def stage():
    container = Container(
        id="panel",
        entities=(Entity(id="a", position=(0.0, 0.0)), Entity(id="b", position=(60.0, 0.0))),
    )
    return Stage([container])


def _left_hand(stage):
    return stage.container("panel").entity("a").left_hand


def test_drag_is_a_single_undo_step(stage):
    history = GestureHistory(stage)
    start = _left_hand(stage)

    history.begin_gesture()
    for step in range(1, 11):
        stage.move_point("panel", "a", Side.LEFT, (-30.0 - step, -40.0))
    assert history.commit_gesture() is True

    assert _left_hand(stage) == (-40.0, -40.0)
    assert history.undo() is True
    assert _left_hand(stage) == start
    assert history.can_undo is False


def test_redo_reapplies_gesture(stage):
    history = GestureHistory(stage)
    history.begin_gesture()
    stage.move_point("panel", "a", Side.LEFT, (-60.0, -10.0))
    history.commit_gesture()

    history.undo()
    assert history.can_redo is True
    assert history.redo() is True

    assert _left_hand(stage) == (-60.0, -10.0)
    assert history.redo() is False


def test_gesture_without_change_records_nothing(stage):
    history = GestureHistory(stage)

    history.begin_gesture()
    assert history.paused is True
    assert history.commit_gesture() is False

    assert history.paused is False
    assert history.can_undo is False


def test_record_is_ignored_during_gesture(stage):
    history = GestureHistory(stage)
    before = stage.snapshot()
    history.begin_gesture()
    stage.lock_overlapping_points("panel")

    assert history.record(before) is False
    history.commit_gesture()

    assert history.undo() is True
    assert history.can_undo is False


def test_new_record_clears_redo(stage):
    history = GestureHistory(stage)
    before = stage.snapshot()
    stage.lock_overlapping_points("panel")
    history.record(before)
    history.undo()

    before = stage.snapshot()
    stage.update_entity("panel", "b", rotation=30.0)
    history.record(before)

    assert history.can_redo is False


def test_history_is_bounded():
    saved = get_engine_config()
    set_engine_config(EngineConfig(history_limit=3))
    try:
        stage = Stage([Container(id="panel", entities=(Entity(id="a"),))])
        history = GestureHistory(stage)
        for step in range(5):
            before = stage.snapshot()
            stage.update_entity("panel", "a", rotation=float(step + 1))
            history.record(before)

        undone = 0
        while history.undo():
            undone += 1
    finally:
        set_engine_config(saved)

    assert undone == 3
    assert stage.container("panel").entity("a").rotation == 2.0
