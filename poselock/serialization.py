"""Container <-> JSON-compatible dictionaries.

Loading is lenient: missing entity fields take the figure defaults, and lock
data that is malformed or points at entities that no longer exist is dropped
instead of failing the whole load.
"""

from __future__ import annotations

import json
import logging
import math
import numbers
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Set, Union

from .model import DEFAULT_ELBOW, DEFAULT_HAND, SIDES, Container, Entity, Lock, LockMember, Point, Side, new_id

logger = logging.getLogger(__name__)


class SceneFormatError(ValueError):
    """Raised when scene text cannot be decoded into a container."""


def _coerce_float(value: object, default: float) -> float:
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, numbers.Real):
        result = float(value)
    elif isinstance(value, str):
        try:
            result = float(value)
        except ValueError:
            return default
    else:
        return default
    return result if math.isfinite(result) else default


def _coerce_scale(value: object) -> float:
    # 0 and missing both load as 1
    result = _coerce_float(value, 1.0)
    return result if result != 0.0 else 1.0


def _coerce_point(value: object, default: Point) -> Point:
    if isinstance(value, Mapping):
        return (_coerce_float(value.get("x"), default[0]), _coerce_float(value.get("y"), default[1]))
    if isinstance(value, (list, tuple)) and len(value) == 2:
        return (_coerce_float(value[0], default[0]), _coerce_float(value[1], default[1]))
    return default


def _point_dict(point: Point) -> Dict[str, float]:
    return {"x": float(point[0]), "y": float(point[1])}


def serialize_entity(entity: Entity) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "id": entity.id,
        "x": float(entity.position[0]),
        "y": float(entity.position[1]),
        "rotation": float(entity.rotation),
        "scaleX": float(entity.scale[0]),
        "scaleY": float(entity.scale[1]),
        "colour": entity.colour,
    }
    for side in SIDES:
        data[f"{side.value}HandPos"] = _point_dict(entity.hand_local(side))
        data[f"{side.value}ElbowPos"] = _point_dict(entity.elbow_local(side))
        data[f"{side.value}HandRotation"] = float(entity.hand_rotation_of(side))
    return data


def deserialize_entity(data: Mapping[str, Any], entity_id: Optional[str] = None) -> Entity:
    ident = entity_id if entity_id is not None else str(data.get("id") or new_id())
    colour = data.get("colour")
    return Entity(
        id=ident,
        position=(_coerce_float(data.get("x"), 0.0), _coerce_float(data.get("y"), 0.0)),
        rotation=_coerce_float(data.get("rotation"), 0.0),
        scale=(_coerce_scale(data.get("scaleX")), _coerce_scale(data.get("scaleY"))),
        left_hand=_coerce_point(data.get("leftHandPos"), DEFAULT_HAND["left"]),
        right_hand=_coerce_point(data.get("rightHandPos"), DEFAULT_HAND["right"]),
        left_elbow=_coerce_point(data.get("leftElbowPos"), DEFAULT_ELBOW["left"]),
        right_elbow=_coerce_point(data.get("rightElbowPos"), DEFAULT_ELBOW["right"]),
        left_hand_rotation=_coerce_float(data.get("leftHandRotation"), 0.0),
        right_hand_rotation=_coerce_float(data.get("rightHandRotation"), 0.0),
        colour=colour if isinstance(colour, str) and colour else "red",
    )


def serialize_container(container: Container) -> Dict[str, Any]:
    return {
        "id": container.id,
        "notes": container.notes,
        "entities": [serialize_entity(entity) for entity in container.entities],
        "locks": [
            {
                "id": lock.id,
                "members": [{"entityId": m.entity_id, "side": m.side.value} for m in lock.members],
            }
            for lock in container.locks
        ],
    }


def _deserialize_locks(raw_locks: object, id_map: Mapping[str, str], fresh_ids: bool) -> List[Lock]:
    if not isinstance(raw_locks, list):
        return []
    valid_ids = set(id_map.values())
    claimed: Set[str] = set()
    locks: List[Lock] = []
    for raw in raw_locks:
        if not isinstance(raw, Mapping):
            logger.debug("Skipping malformed lock entry %r", raw)
            continue
        raw_members = raw.get("members")
        if not isinstance(raw_members, list):
            raw_members = []
        members: List[LockMember] = []
        for raw_member in raw_members:
            if not isinstance(raw_member, Mapping):
                continue
            side = Side.parse(raw_member.get("side"))
            old_id = raw_member.get("entityId")
            if side is None or old_id is None:
                continue
            # same normalisation as entity ids
            old_key = str(old_id)
            entity_id = id_map.get(old_key, old_key)
            if entity_id not in valid_ids:
                continue
            member = LockMember(entity_id, side)
            if member.key in claimed or any(m.key == member.key for m in members):
                continue
            members.append(member)
        if len(members) < 2:
            logger.info("Dropping lock %r with %d valid member(s)", raw.get("id"), len(members))
            continue
        claimed.update(m.key for m in members)
        raw_id = raw.get("id")
        lock_id = new_id() if fresh_ids or not isinstance(raw_id, str) else raw_id
        locks.append(Lock(lock_id, tuple(members)))
    return locks


def deserialize_container(data: Mapping[str, Any], *, fresh_ids: bool = True) -> Container:
    """Build a container from serialized ``data``.

    With ``fresh_ids`` (the default) entity, lock and container ids are
    regenerated and lock members remapped, so the result can live next to the
    container it was copied from.
    """

    raw_entities = data.get("entities")
    if not isinstance(raw_entities, list):
        raw_entities = []

    id_map: Dict[str, str] = {}
    entities: List[Entity] = []
    for raw in raw_entities:
        if not isinstance(raw, Mapping):
            continue
        old_id = raw.get("id")
        old_key = str(old_id) if old_id is not None else None
        if old_key is not None and old_key in id_map:
            logger.warning("Duplicate entity id %s in serialized container", old_key)
            continue
        new_entity_id = new_id() if fresh_ids or old_key is None else old_key
        if old_key is not None:
            id_map[old_key] = new_entity_id
        else:
            id_map[new_entity_id] = new_entity_id
        entities.append(deserialize_entity(raw, new_entity_id))

    locks = _deserialize_locks(data.get("locks"), id_map, fresh_ids)
    raw_id = data.get("id")
    container_id = new_id() if fresh_ids or not isinstance(raw_id, str) else raw_id
    notes = data.get("notes")
    logger.info(
        "Deserialized container with %d entities and %d locks", len(entities), len(locks)
    )
    return Container(
        id=container_id,
        entities=tuple(entities),
        locks=tuple(locks),
        notes=notes if isinstance(notes, str) else "",
    )


def clone_container(container: Container) -> Container:
    return deserialize_container(serialize_container(container), fresh_ids=True)


def dumps(container: Container, *, indent: Optional[int] = 2) -> str:
    return json.dumps(serialize_container(container), indent=indent)


def loads(text: str, *, fresh_ids: bool = False) -> Container:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise SceneFormatError(f"scene is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise SceneFormatError("scene must be a JSON object")
    return deserialize_container(data, fresh_ids=fresh_ids)


def load_scene(path: Union[str, Path]) -> Container:
    logger.info("Loading scene from %s", path)
    return loads(Path(path).read_text(encoding="utf-8"))


def save_scene(container: Container, path: Union[str, Path]) -> None:
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    logger.info("Writing scene to %s", output_path)
    output_path.write_text(dumps(container), encoding="utf-8")


__all__ = [
    "SceneFormatError",
    "clone_container",
    "deserialize_container",
    "deserialize_entity",
    "dumps",
    "load_scene",
    "loads",
    "save_scene",
    "serialize_container",
    "serialize_entity",
]
