"""Lock records of a container and the lookups over them."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence

from .model import Container, EntityId, Lock, LockId, LockMember, Side, new_id

logger = logging.getLogger(__name__)


def new_lock_id() -> LockId:
    return new_id()


def lock_key(members: Iterable[LockMember]) -> str:
    """Order-independent key identifying a member set."""

    return "|".join(sorted({m.key for m in members}))


def member_index(container: Container) -> Dict[str, LockId]:
    """Map every locked member key to the id of the lock holding it."""

    index: Dict[str, LockId] = {}
    for lock in container.locks:
        for member in lock.members:
            index.setdefault(member.key, lock.id)
    return index


def _dedupe(members: Iterable[LockMember]) -> List[LockMember]:
    seen = set()
    unique: List[LockMember] = []
    for member in members:
        if member.key in seen:
            continue
        seen.add(member.key)
        unique.append(member)
    return unique


def add_lock(container: Container, lock: Lock) -> Container:
    """Append ``lock``, merging it with any existing lock that shares a member.

    A member key appears in at most one lock of a container; when the new
    lock overlaps existing ones they collapse into a single lock that keeps
    the id of the earliest overlapping lock.
    """

    members = _dedupe(lock.members)
    if len(members) < 2:
        logger.debug("Ignoring lock %s with %d distinct member(s)", lock.id, len(members))
        return container

    keys = {m.key for m in members}
    overlapping = [other for other in container.locks if keys.intersection(other.member_keys)]
    if not overlapping:
        logger.info("Adding lock %s with %d members to %s", lock.id, len(members), container.id)
        return container.with_locks(container.locks + (Lock(lock.id, tuple(members)),))

    merged_members: List[LockMember] = []
    for existing in overlapping:
        merged_members.extend(existing.members)
    merged_members.extend(members)
    merged = Lock(overlapping[0].id, tuple(_dedupe(merged_members)))
    absorbed = {other.id for other in overlapping}

    locks: List[Lock] = []
    for existing in container.locks:
        if existing.id == merged.id:
            locks.append(merged)
        elif existing.id not in absorbed:
            locks.append(existing)
    logger.info(
        "Merged lock %s into %s (%d locks absorbed, %d members)",
        lock.id,
        merged.id,
        len(overlapping),
        len(merged.members),
    )
    return container.with_locks(locks)


def remove_lock(container: Container, lock_id: LockId) -> Container:
    if container.lock(lock_id) is None:
        return container
    logger.info("Removing lock %s from %s", lock_id, container.id)
    return container.with_locks(other for other in container.locks if other.id != lock_id)


def find_lock_for_member(container: Container, entity_id: EntityId, side: Side) -> Optional[Lock]:
    for lock in container.locks:
        if lock.has_member(entity_id, side):
            return lock
    return None


def find_locks_for_member(container: Container, entity_id: EntityId, side: Side) -> List[Lock]:
    return [lock for lock in container.locks if lock.has_member(entity_id, side)]


def find_locks_touching_entity(container: Container, entity_id: EntityId) -> List[Lock]:
    return [lock for lock in container.locks if lock.touches(entity_id)]


def unlocked_members(container: Container, members: Sequence[LockMember]) -> List[LockMember]:
    """Deduplicate ``members`` and drop those already held by a lock."""

    locked = member_index(container)
    return [m for m in _dedupe(members) if m.key not in locked]


__all__ = [
    "add_lock",
    "find_lock_for_member",
    "find_locks_for_member",
    "find_locks_touching_entity",
    "lock_key",
    "member_index",
    "new_lock_id",
    "remove_lock",
    "unlocked_members",
]
