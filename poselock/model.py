"""Core data structures for the lock engine.

Every value here is immutable: edits produce new ``Entity``/``Lock``/
``Container`` instances through :func:`dataclasses.replace`, so a container
held by a caller is a stable snapshot.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Iterable, Optional, Tuple

Point = Tuple[float, float]
EntityId = str
LockId = str
ContainerId = str

BODY_WIDTH = 60.0
HEAD_SIZE = 30.0

DEFAULT_HAND: Dict[str, Point] = {"left": (-30.0, -40.0), "right": (30.0, -40.0)}
DEFAULT_ELBOW: Dict[str, Point] = {"left": (-45.0, -12.0), "right": (45.0, -12.0)}


class Side(str, Enum):
    LEFT = "left"
    RIGHT = "right"

    @classmethod
    def parse(cls, value: object) -> Optional["Side"]:
        """Return the matching side for ``value`` or ``None``."""

        if isinstance(value, Side):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                return None
        return None


SIDES: Tuple[Side, Side] = (Side.LEFT, Side.RIGHT)


def new_id() -> str:
    return str(uuid.uuid4())


def as_point(value: Iterable[float]) -> Point:
    x, y = value
    return (float(x), float(y))


@dataclass(frozen=True)
class Entity:
    """A posable figure with two hand/elbow attachment points."""

    id: EntityId
    position: Point = (0.0, 0.0)
    rotation: float = 0.0
    scale: Point = (1.0, 1.0)
    left_hand: Point = DEFAULT_HAND["left"]
    right_hand: Point = DEFAULT_HAND["right"]
    left_elbow: Point = DEFAULT_ELBOW["left"]
    right_elbow: Point = DEFAULT_ELBOW["right"]
    left_hand_rotation: float = 0.0
    right_hand_rotation: float = 0.0
    colour: str = "red"

    def hand_local(self, side: Side) -> Point:
        return self.left_hand if Side(side) is Side.LEFT else self.right_hand

    def elbow_local(self, side: Side) -> Point:
        return self.left_elbow if Side(side) is Side.LEFT else self.right_elbow

    def hand_rotation_of(self, side: Side) -> float:
        if Side(side) is Side.LEFT:
            return self.left_hand_rotation
        return self.right_hand_rotation

    def with_hand(self, side: Side, point: Point) -> "Entity":
        return replace(self, **{f"{Side(side).value}_hand": as_point(point)})

    def with_elbow(self, side: Side, point: Point) -> "Entity":
        return replace(self, **{f"{Side(side).value}_elbow": as_point(point)})

    def with_hand_rotation(self, side: Side, rotation: float) -> "Entity":
        return replace(self, **{f"{Side(side).value}_hand_rotation": float(rotation)})

    def with_transform(
        self,
        *,
        position: Optional[Point] = None,
        rotation: Optional[float] = None,
        scale: Optional[Point] = None,
    ) -> "Entity":
        changes: Dict[str, object] = {}
        if position is not None:
            changes["position"] = as_point(position)
        if rotation is not None:
            changes["rotation"] = float(rotation)
        if scale is not None:
            changes["scale"] = as_point(scale)
        return replace(self, **changes) if changes else self


@dataclass(frozen=True)
class LockMember:
    entity_id: EntityId
    side: Side

    def __post_init__(self) -> None:
        object.__setattr__(self, "side", Side(self.side))

    @property
    def key(self) -> str:
        return f"{self.entity_id}:{self.side.value}"


@dataclass(frozen=True)
class Lock:
    """Group of attachment points that must stay coincident."""

    id: LockId
    members: Tuple[LockMember, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "members", tuple(self.members))

    def has_member(self, entity_id: EntityId, side: Side) -> bool:
        side = Side(side)
        return any(m.entity_id == entity_id and m.side is side for m in self.members)

    def touches(self, entity_id: EntityId) -> bool:
        return any(m.entity_id == entity_id for m in self.members)

    @property
    def member_keys(self) -> Tuple[str, ...]:
        return tuple(m.key for m in self.members)


@dataclass(frozen=True)
class Container:
    """A panel: entities plus the locks binding their hands."""

    id: ContainerId
    entities: Tuple[Entity, ...] = ()
    locks: Tuple[Lock, ...] = ()
    notes: str = ""
    _by_id: Dict[EntityId, Entity] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "entities", tuple(self.entities))
        object.__setattr__(self, "locks", tuple(self.locks))
        object.__setattr__(self, "_by_id", {e.id: e for e in self.entities})

    def entity(self, entity_id: EntityId) -> Optional[Entity]:
        return self._by_id.get(entity_id)

    def has_entity(self, entity_id: EntityId) -> bool:
        return entity_id in self._by_id

    def lock(self, lock_id: LockId) -> Optional[Lock]:
        for lock in self.locks:
            if lock.id == lock_id:
                return lock
        return None

    def with_entities(self, entities: Iterable[Entity]) -> "Container":
        return replace(self, entities=tuple(entities))

    def with_locks(self, locks: Iterable[Lock]) -> "Container":
        return replace(self, locks=tuple(locks))

    def replace_entities(self, updated: Dict[EntityId, Entity]) -> "Container":
        """Return a copy with the entities in ``updated`` swapped in by id."""

        if not updated:
            return self
        return self.with_entities(updated.get(e.id, e) for e in self.entities)


__all__ = [
    "BODY_WIDTH",
    "Container",
    "ContainerId",
    "DEFAULT_ELBOW",
    "DEFAULT_HAND",
    "Entity",
    "EntityId",
    "HEAD_SIZE",
    "Lock",
    "LockId",
    "LockMember",
    "Point",
    "SIDES",
    "Side",
    "as_point",
    "new_id",
]
