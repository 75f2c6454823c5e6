from .model import Container, Entity, Lock, LockMember, Point, Side, SIDES
from .config import EngineConfig, get_engine_config, set_engine_config
from .transforms import to_absolute, to_absolute_many, to_local
from .arm import (
    adjust_elbow,
    adjust_elbows,
    arm_ratio,
    elbow_angle_from_straight,
    segment_length,
    shoulder_anchor,
)
from .registry import (
    add_lock,
    find_lock_for_member,
    find_locks_touching_entity,
    lock_key,
    member_index,
    remove_lock,
)
from .clustering import find_coincident_groups, lock_overlapping_points
from .propagation import (
    add_entity,
    apply_selected_lock,
    enforce_locks_for_entity,
    move_point,
    remove_entity,
    remove_lock_by_id,
    set_elbow,
    set_hand_rotation,
    update_entity,
)
from .serialization import (
    SceneFormatError,
    clone_container,
    deserialize_container,
    dumps,
    load_scene,
    loads,
    save_scene,
    serialize_container,
)
from .stage import Stage, create_initial_container
from .history import GestureHistory

__all__ = [
    'Container',
    'Entity',
    'Lock',
    'LockMember',
    'Point',
    'Side',
    'SIDES',
    'EngineConfig',
    'get_engine_config',
    'set_engine_config',
    'to_absolute',
    'to_absolute_many',
    'to_local',
    'adjust_elbow',
    'adjust_elbows',
    'arm_ratio',
    'elbow_angle_from_straight',
    'segment_length',
    'shoulder_anchor',
    'add_lock',
    'find_lock_for_member',
    'find_locks_touching_entity',
    'lock_key',
    'member_index',
    'remove_lock',
    'find_coincident_groups',
    'lock_overlapping_points',
    'add_entity',
    'apply_selected_lock',
    'enforce_locks_for_entity',
    'move_point',
    'remove_entity',
    'remove_lock_by_id',
    'set_elbow',
    'set_hand_rotation',
    'update_entity',
    'SceneFormatError',
    'clone_container',
    'deserialize_container',
    'dumps',
    'load_scene',
    'loads',
    'save_scene',
    'serialize_container',
    'Stage',
    'create_initial_container',
    'GestureHistory',
]
