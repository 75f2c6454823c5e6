"""Propagation of hand edits across locks.

Two rules keep locked hands coincident:

* a direct hand edit (:func:`move_point`) snaps every other member of the
  edited hand's locks onto the new absolute position;
* a body transform (:func:`enforce_locks_for_entity`) pulls every member of
  each touching lock to the centroid of the members' absolute positions.

Both rules recompute the elbows of every hand they touch. All functions take
a :class:`~poselock.model.Container` and return a new one; unknown ids leave
the container unchanged.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

import numpy as np

from .arm import adjust_elbows
from .logging_utils import apply_debug_logging
from .model import Container, Entity, EntityId, Lock, LockId, LockMember, Point, Side, as_point
from .registry import (
    add_lock,
    find_locks_for_member,
    find_locks_touching_entity,
    new_lock_id,
    remove_lock,
    unlocked_members,
)
from .transforms import to_absolute, to_local

logger = logging.getLogger(__name__)

_TRANSFORM_FIELDS = ("position", "rotation", "scale")
_EDITABLE_FIELDS = {
    "position",
    "rotation",
    "scale",
    "left_hand",
    "right_hand",
    "left_elbow",
    "right_elbow",
    "left_hand_rotation",
    "right_hand_rotation",
    "colour",
}


def _readjust_elbows(
    originals: Dict[EntityId, Entity],
    updated: Dict[EntityId, Entity],
    touched: Dict[EntityId, Set[Side]],
) -> Dict[EntityId, Entity]:
    result = dict(updated)
    for entity_id, sides in touched.items():
        entity = result.get(entity_id)
        original = originals.get(entity_id)
        if entity is None or original is None:
            continue
        result[entity_id] = adjust_elbows(entity, original, sorted(sides, key=lambda s: s.value))
    return result


def move_point(container: Container, entity_id: EntityId, side: Side, new_local: Point) -> Container:
    """Set a hand's local position and snap its lock partners onto it."""

    source = container.entity(entity_id)
    if source is None:
        logger.debug("move_point: unknown entity %s in %s", entity_id, container.id)
        return container
    side = Side(side)
    new_local = as_point(new_local)

    originals = {e.id: e for e in container.entities}
    updated: Dict[EntityId, Entity] = {entity_id: source.with_hand(side, new_local)}
    touched: Dict[EntityId, Set[Side]] = {entity_id: {side}}

    source_abs = to_absolute(updated[entity_id], new_local)
    groups = find_locks_for_member(container, entity_id, side)
    for lock in groups:
        for member in lock.members:
            if member.entity_id == entity_id and member.side is side:
                continue
            other = updated.get(member.entity_id) or container.entity(member.entity_id)
            if other is None:
                continue
            updated[other.id] = other.with_hand(member.side, to_local(other, source_abs))
            touched.setdefault(other.id, set()).add(member.side)

    logger.debug(
        "move_point %s:%s -> %s (abs %s), %d lock(s), %d entities touched",
        entity_id,
        side.value,
        new_local,
        source_abs,
        len(groups),
        len(touched),
    )
    return container.replace_entities(_readjust_elbows(originals, updated, touched))


def enforce_locks_for_entity(container: Container, entity_id: EntityId) -> Container:
    """Pull every lock touching ``entity_id`` to the centroid of its members."""

    groups = find_locks_touching_entity(container, entity_id)
    if not groups:
        return container

    originals = {e.id: e for e in container.entities}
    updated: Dict[EntityId, Entity] = {}
    touched: Dict[EntityId, Set[Side]] = {}

    for lock in groups:
        present: List[Tuple[LockMember, Entity]] = []
        for member in lock.members:
            entity = updated.get(member.entity_id) or container.entity(member.entity_id)
            if entity is not None:
                present.append((member, entity))
        if not present:
            continue

        absolute = np.array(
            [to_absolute(entity, entity.hand_local(member.side)) for member, entity in present],
            dtype=float,
        )
        centroid = tuple(float(v) for v in absolute.mean(axis=0))

        for member, _ in present:
            entity = updated.get(member.entity_id) or container.entity(member.entity_id)
            updated[entity.id] = entity.with_hand(member.side, to_local(entity, centroid))
            touched.setdefault(entity.id, set()).add(member.side)
        logger.debug("Lock %s centroid -> %s", lock.id, centroid)

    logger.debug(
        "Enforced %d lock(s) for %s in %s", len(groups), entity_id, container.id
    )
    return container.replace_entities(_readjust_elbows(originals, updated, touched))


def apply_selected_lock(
    container: Container, pending_members: Sequence[LockMember]
) -> Tuple[Container, Optional[Lock]]:
    """Create a lock from a manual selection.

    Duplicates, members already held by a lock, and members of unknown
    entities are dropped; fewer than two survivors is a no-op.
    """

    candidates = [m for m in pending_members if container.has_entity(m.entity_id)]
    filtered = unlocked_members(container, candidates)
    if len(filtered) < 2:
        logger.info(
            "Not creating lock in %s: %d of %d selected member(s) usable",
            container.id,
            len(filtered),
            len(pending_members),
        )
        return container, None
    lock = Lock(new_lock_id(), tuple(filtered))
    return add_lock(container, lock), lock


def remove_lock_by_id(container: Container, lock_id: LockId) -> Container:
    """Delete a lock; former members keep their current positions."""

    return remove_lock(container, lock_id)


def update_entity(container: Container, entity_id: EntityId, **changes: Any) -> Container:
    """Apply field ``changes`` to an entity.

    Changing ``position``, ``rotation`` or ``scale`` re-enforces the entity's
    locks in the same transition.
    """

    entity = container.entity(entity_id)
    if entity is None:
        return container
    unknown = set(changes) - _EDITABLE_FIELDS
    if unknown:
        raise TypeError(f"update_entity got unexpected field(s): {', '.join(sorted(unknown))}")

    transform = {key: changes.pop(key) for key in _TRANSFORM_FIELDS if key in changes}
    edited = entity.with_transform(**transform)
    for key, value in changes.items():
        if key.endswith("_rotation"):
            edited = edited.with_hand_rotation(Side(key.split("_", 1)[0]), value)
        elif key.endswith(("_hand", "_elbow")):
            side_name, part = key.split("_", 1)
            if part == "hand":
                edited = edited.with_hand(Side(side_name), value)
            else:
                edited = edited.with_elbow(Side(side_name), value)
        elif key == "colour":
            edited = replace(edited, colour=str(value))

    updated = container.replace_entities({entity_id: edited})
    if transform:
        updated = enforce_locks_for_entity(updated, entity_id)
    return updated


def set_elbow(container: Container, entity_id: EntityId, side: Side, local: Point) -> Container:
    entity = container.entity(entity_id)
    if entity is None:
        return container
    return container.replace_entities({entity_id: entity.with_elbow(side, local)})


def set_hand_rotation(container: Container, entity_id: EntityId, side: Side, rotation: float) -> Container:
    entity = container.entity(entity_id)
    if entity is None:
        return container
    return container.replace_entities({entity_id: entity.with_hand_rotation(side, rotation)})


def add_entity(container: Container, entity: Entity) -> Container:
    if container.has_entity(entity.id):
        logger.warning("Entity %s already present in %s", entity.id, container.id)
        return container
    return container.with_entities(container.entities + (entity,))


def _shrink_locks(locks: Iterable[Lock], keep: Set[EntityId]) -> List[Lock]:
    kept: List[Lock] = []
    for lock in locks:
        members = tuple(m for m in lock.members if m.entity_id in keep)
        if len(members) >= 2:
            kept.append(lock if len(members) == len(lock.members) else Lock(lock.id, members))
        else:
            logger.info("Dropping lock %s left with %d member(s)", lock.id, len(members))
    return kept


def remove_entity(container: Container, entity_id: EntityId) -> Container:
    """Delete an entity and drop it from every lock that referenced it."""

    if not container.has_entity(entity_id):
        return container
    remaining = [e for e in container.entities if e.id != entity_id]
    keep = {e.id for e in remaining}
    return container.with_entities(remaining).with_locks(_shrink_locks(container.locks, keep))


__all__ = [
    "add_entity",
    "apply_selected_lock",
    "enforce_locks_for_entity",
    "move_point",
    "remove_entity",
    "remove_lock_by_id",
    "set_elbow",
    "set_hand_rotation",
    "update_entity",
]


apply_debug_logging(globals(), logger=logger)
