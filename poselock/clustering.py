"""Auto-locking of attachment points that currently coincide."""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

import numpy as np
from scipy.sparse import coo_matrix
from scipy.sparse.csgraph import connected_components
from scipy.spatial import cKDTree

from .config import get_engine_config
from .logging_utils import apply_debug_logging
from .model import SIDES, Container, Lock, LockMember
from .registry import add_lock, lock_key, member_index, new_lock_id
from .transforms import to_absolute_many

logger = logging.getLogger(__name__)


def attachment_points(container: Container) -> Tuple[List[LockMember], np.ndarray]:
    """Return every ``(entity, side)`` member with its absolute position."""

    members: List[LockMember] = []
    blocks: List[np.ndarray] = []
    for entity in container.entities:
        locals_ = [entity.hand_local(side) for side in SIDES]
        blocks.append(to_absolute_many(entity, locals_))
        members.extend(LockMember(entity.id, side) for side in SIDES)
    if not blocks:
        return members, np.zeros((0, 2), dtype=float)
    return members, np.vstack(blocks)


def find_coincident_groups(container: Container, tolerance: float) -> List[List[LockMember]]:
    """Group attachment points chained within ``tolerance`` of each other.

    Grouping is transitive: A-B and B-C within tolerance put A, B and C in one
    group even when A-C is farther apart.
    """

    members, coords = attachment_points(container)
    count = len(members)
    if count < 2:
        return []

    radius = max(float(tolerance), 0.0)
    pairs = cKDTree(coords).query_pairs(r=radius, output_type="ndarray")
    if len(pairs) == 0:
        return []

    data = np.ones(len(pairs), dtype=np.int8)
    graph = coo_matrix((data, (pairs[:, 0], pairs[:, 1])), shape=(count, count))
    n_components, labels = connected_components(graph, directed=False)

    ordered: List[Tuple[int, List[LockMember]]] = []
    for label in range(n_components):
        indices = np.flatnonzero(labels == label)
        if len(indices) < 2:
            continue
        ordered.append((int(indices[0]), [members[int(idx)] for idx in indices]))
    ordered.sort(key=lambda item: item[0])
    groups = [group for _, group in ordered]
    logger.debug("Found %d coincident group(s) among %d points", len(groups), count)
    return groups


def lock_overlapping_points(
    container: Container,
    tolerance: Optional[float] = None,
) -> Tuple[Container, List[Tuple[LockMember, ...]]]:
    """Create locks for coincident attachment points.

    Groups whose member set already forms a lock are skipped, so repeated
    calls on unchanged geometry are no-ops. A group that shares members with
    existing locks is merged into them through :func:`~poselock.registry.add_lock`:
    the earliest overlapping lock keeps its id and grows, and any other
    overlapping lock is absorbed and its id disappears.

    Returns the updated container and the member groups that were linked by
    this call.
    """

    if tolerance is None:
        tolerance = get_engine_config().tolerance

    groups = find_coincident_groups(container, tolerance)
    if not groups:
        return container, []

    existing = {lock_key(lock.members) for lock in container.locks}
    linked: List[Tuple[LockMember, ...]] = []
    updated = container
    for group in groups:
        if lock_key(group) in existing:
            continue
        held_by = member_index(updated)
        if len({held_by.get(m.key) for m in group}) == 1 and group[0].key in held_by:
            # already linked through a larger lock
            continue
        updated = add_lock(updated, Lock(new_lock_id(), tuple(group)))
        linked.append(tuple(group))

    logger.info(
        "Auto-lock on %s with tolerance=%s: %d group(s), %d new",
        container.id,
        tolerance,
        len(groups),
        len(linked),
    )
    return updated, linked


__all__ = ["attachment_points", "find_coincident_groups", "lock_overlapping_points"]


apply_debug_logging(globals(), logger=logger)
