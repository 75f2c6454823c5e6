import argparse
import logging
import sys
from typing import Optional, Sequence

from poselock import (
    SceneFormatError,
    Side,
    enforce_locks_for_entity,
    load_scene,
    lock_overlapping_points,
    move_point,
    remove_lock_by_id,
    save_scene,
    update_entity,
)
from poselock.model import Container

logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(levelname)s:%(name)s:%(message)s",
    )


def _print_summary(container: Container) -> None:
    print(f"Container: {container.id}")
    print(f"Entities: {len(container.entities)}")
    print(f"Locks ({len(container.locks)}):")
    if not container.locks:
        print("  (none)")
    for lock in container.locks:
        print(f"  {lock.id}: {', '.join(lock.member_keys)}")


def _cmd_autolock(container: Container, args: argparse.Namespace) -> Container:
    updated, linked = lock_overlapping_points(container, args.tolerance)
    for members in linked:
        print("Linked: " + ", ".join(m.key for m in members))
    return updated


def _cmd_move_point(container: Container, args: argparse.Namespace) -> Container:
    if container.entity(args.entity) is None:
        raise LookupError(f"unknown entity {args.entity}")
    return move_point(container, args.entity, Side(args.side), (args.x, args.y))


def _cmd_transform(container: Container, args: argparse.Namespace) -> Container:
    entity = container.entity(args.entity)
    if entity is None:
        raise LookupError(f"unknown entity {args.entity}")
    changes = {}
    if args.x is not None or args.y is not None:
        changes["position"] = (
            entity.position[0] if args.x is None else args.x,
            entity.position[1] if args.y is None else args.y,
        )
    if args.rotation is not None:
        changes["rotation"] = args.rotation
    if args.scale_x is not None or args.scale_y is not None:
        changes["scale"] = (
            entity.scale[0] if args.scale_x is None else args.scale_x,
            entity.scale[1] if args.scale_y is None else args.scale_y,
        )
    if not changes:
        logger.info("No transform change requested; re-enforcing locks only")
        return enforce_locks_for_entity(container, args.entity)
    return update_entity(container, args.entity, **changes)


def _cmd_unlock(container: Container, args: argparse.Namespace) -> Container:
    if container.lock(args.lock) is None:
        raise LookupError(f"unknown lock {args.lock}")
    return remove_lock_by_id(container, args.lock)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Edit hand locks of a serialized stage panel")
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (default: INFO)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    def _scene_command(name: str, help_text: str) -> argparse.ArgumentParser:
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("scene", help="Path to the serialized panel JSON")
        cmd.add_argument(
            "--output",
            help="Where to write the updated panel (default: overwrite the input)",
        )
        return cmd

    autolock = _scene_command("autolock", "Lock hands that currently overlap")
    autolock.add_argument(
        "--tolerance",
        type=float,
        default=None,
        help="Proximity radius in stage units (default: 12)",
    )
    autolock.set_defaults(handler=_cmd_autolock)

    move = _scene_command("move-point", "Move a hand and snap its lock partners")
    move.add_argument("entity", help="Entity id")
    move.add_argument("side", choices=[side.value for side in Side])
    move.add_argument("x", type=float)
    move.add_argument("y", type=float)
    move.set_defaults(handler=_cmd_move_point)

    transform = _scene_command("transform", "Move/rotate/scale an entity and enforce its locks")
    transform.add_argument("entity", help="Entity id")
    transform.add_argument("--x", type=float)
    transform.add_argument("--y", type=float)
    transform.add_argument("--rotation", type=float)
    transform.add_argument("--scale-x", type=float)
    transform.add_argument("--scale-y", type=float)
    transform.set_defaults(handler=_cmd_transform)

    unlock = _scene_command("unlock", "Remove a lock by id")
    unlock.add_argument("lock", help="Lock id")
    unlock.set_defaults(handler=_cmd_unlock)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = _build_parser().parse_args(argv)

    _configure_logging(args.log_level)

    try:
        container = load_scene(args.scene)
    except (OSError, SceneFormatError) as exc:
        logger.error("Cannot load %s: %s", args.scene, exc)
        raise SystemExit(1)

    try:
        updated = args.handler(container, args)
    except LookupError as exc:
        logger.error("%s", exc)
        raise SystemExit(1)

    _print_summary(updated)
    save_scene(updated, args.output or args.scene)


if __name__ == "__main__":
    main(sys.argv[1:])
