"""Stage aggregate owning every container and addressing them by id.

The engine functions in :mod:`poselock.propagation`, :mod:`poselock.registry`
and :mod:`poselock.clustering` work on container values. ``Stage`` keeps the
current value per container id, swaps in each operation's result in one step
and forwards "members just linked" notifications to the flash listener.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from . import clustering, propagation, registry
from .model import Container, ContainerId, Entity, EntityId, Lock, LockId, LockMember, Point, Side, new_id
from .serialization import clone_container

logger = logging.getLogger(__name__)

FlashListener = Callable[[ContainerId, Tuple[LockMember, ...]], None]
Snapshot = Tuple[Tuple[ContainerId, Container], ...]


def create_initial_container(container_id: Optional[ContainerId] = None) -> Container:
    """Return a panel with the two default dancers facing each other."""

    return Container(
        id=container_id or new_id(),
        entities=(
            Entity(id=new_id(), position=(150.0, 40.0), rotation=180.0, colour="red"),
            Entity(id=new_id(), position=(150.0, 220.0), rotation=0.0, colour="blue"),
        ),
    )


class Stage:
    """Mutable holder of immutable containers."""

    def __init__(
        self,
        containers: Iterable[Container] = (),
        *,
        flash_listener: Optional[FlashListener] = None,
    ) -> None:
        self._containers: Dict[ContainerId, Container] = {}
        self.flash_listener = flash_listener
        for container in containers:
            self._containers[container.id] = container

    # ------------------------------------------------------------------ containers

    @property
    def container_ids(self) -> List[ContainerId]:
        return list(self._containers)

    def container(self, container_id: ContainerId) -> Container:
        try:
            return self._containers[container_id]
        except KeyError as exc:
            raise KeyError(f"Unknown container '{container_id}'") from exc

    def get(self, container_id: ContainerId) -> Optional[Container]:
        return self._containers.get(container_id)

    def add_container(self, container: Container) -> Container:
        self._containers[container.id] = container
        return container

    def create_container(self) -> Container:
        return self.add_container(create_initial_container())

    def remove_container(self, container_id: ContainerId) -> None:
        if self._containers.pop(container_id, None) is not None:
            logger.info("Removed container %s", container_id)

    def clone_container(self, container_id: ContainerId) -> Optional[Container]:
        source = self.get(container_id)
        if source is None:
            return None
        clone = clone_container(source)
        items = list(self._containers.items())
        index = [cid for cid, _ in items].index(container_id)
        items.insert(index + 1, (clone.id, clone))
        self._containers = dict(items)
        logger.info("Cloned container %s -> %s", container_id, clone.id)
        return clone

    def snapshot(self) -> Snapshot:
        return tuple(self._containers.items())

    def restore(self, snapshot: Snapshot) -> None:
        self._containers = dict(snapshot)

    # ------------------------------------------------------------------ helpers

    def _apply(
        self,
        container_id: ContainerId,
        operation: Callable[..., Container],
        *args: Any,
        **kwargs: Any,
    ) -> Optional[Container]:
        current = self._containers.get(container_id)
        if current is None:
            logger.debug("%s: unknown container %s", operation.__name__, container_id)
            return None
        updated = operation(current, *args, **kwargs)
        self._containers[container_id] = updated
        return updated

    def _flash(self, container_id: ContainerId, members: Sequence[LockMember]) -> None:
        if self.flash_listener is None or not members:
            return
        try:
            self.flash_listener(container_id, tuple(members))
        except Exception:
            logger.exception("Flash listener failed for %s", container_id)

    # ------------------------------------------------------------------ registry

    def add_lock(self, container_id: ContainerId, lock: Lock) -> None:
        self._apply(container_id, registry.add_lock, lock)

    def remove_lock(self, container_id: ContainerId, lock_id: LockId) -> None:
        self._apply(container_id, registry.remove_lock, lock_id)

    def find_lock_for_member(self, container_id: ContainerId, entity_id: EntityId, side: Side) -> Optional[Lock]:
        current = self._containers.get(container_id)
        if current is None:
            return None
        return registry.find_lock_for_member(current, entity_id, side)

    def find_locks_touching_entity(self, container_id: ContainerId, entity_id: EntityId) -> List[Lock]:
        current = self._containers.get(container_id)
        if current is None:
            return []
        return registry.find_locks_touching_entity(current, entity_id)

    # ------------------------------------------------------------------ engine

    def lock_overlapping_points(
        self, container_id: ContainerId, tolerance: Optional[float] = None
    ) -> List[Tuple[LockMember, ...]]:
        current = self._containers.get(container_id)
        if current is None:
            return []
        updated, linked = clustering.lock_overlapping_points(current, tolerance)
        self._containers[container_id] = updated
        for members in linked:
            self._flash(container_id, members)
        return linked

    def move_point(self, container_id: ContainerId, entity_id: EntityId, side: Side, new_local: Point) -> None:
        self._apply(container_id, propagation.move_point, entity_id, side, new_local)

    def enforce_locks_for_entity(self, container_id: ContainerId, entity_id: EntityId) -> None:
        self._apply(container_id, propagation.enforce_locks_for_entity, entity_id)

    def apply_selected_lock(self, container_id: ContainerId, pending_members: Sequence[LockMember]) -> Optional[Lock]:
        current = self._containers.get(container_id)
        if current is None:
            return None
        updated, lock = propagation.apply_selected_lock(current, pending_members)
        self._containers[container_id] = updated
        if lock is not None:
            self._flash(container_id, lock.members)
        return lock

    def remove_lock_by_id(self, container_id: ContainerId, lock_id: LockId) -> None:
        self._apply(container_id, propagation.remove_lock_by_id, lock_id)

    def update_entity(self, container_id: ContainerId, entity_id: EntityId, **changes: Any) -> None:
        self._apply(container_id, propagation.update_entity, entity_id, **changes)

    def set_elbow(self, container_id: ContainerId, entity_id: EntityId, side: Side, local: Point) -> None:
        self._apply(container_id, propagation.set_elbow, entity_id, side, local)

    def set_hand_rotation(self, container_id: ContainerId, entity_id: EntityId, side: Side, rotation: float) -> None:
        self._apply(container_id, propagation.set_hand_rotation, entity_id, side, rotation)

    def add_entity(self, container_id: ContainerId, entity: Entity) -> None:
        self._apply(container_id, propagation.add_entity, entity)

    def remove_entity(self, container_id: ContainerId, entity_id: EntityId) -> None:
        self._apply(container_id, propagation.remove_entity, entity_id)

    def as_dict(self) -> Mapping[ContainerId, Container]:
        return dict(self._containers)


__all__ = ["FlashListener", "Snapshot", "Stage", "create_initial_container"]
