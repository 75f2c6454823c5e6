"""Proportional elbow placement for two-segment arms.

When a hand is forced to a new local position the elbow is recomputed so the
arm keeps its look: the elbow's projection ratio along the straight
shoulder-to-hand line and its signed perpendicular (bend) offset from that
line are carried over to the new line.
"""

from __future__ import annotations

import logging
import math
from typing import Iterable, Optional, Tuple

from .config import get_engine_config
from .model import BODY_WIDTH, HEAD_SIZE, Entity, Point, Side

logger = logging.getLogger(__name__)


def _vec2(a: Point, b: Point) -> Point:
    return b[0] - a[0], b[1] - a[1]


def _dot2(a: Point, b: Point) -> float:
    return a[0] * b[0] + a[1] * b[1]


def _cross2(a: Point, b: Point) -> float:
    return a[0] * b[1] - a[1] * b[0]


def _norm_sq2(v: Point) -> float:
    return _dot2(v, v)


def _perp_unit(v: Point) -> Point:
    angle = math.atan2(v[1], v[0]) + math.pi / 2.0
    return math.cos(angle), math.sin(angle)


def shoulder_anchor(side: Side) -> Point:
    """Fixed proximal end of the arm in the entity's local frame."""

    half_width = BODY_WIDTH / 2.0
    x = -half_width if Side(side) is Side.LEFT else half_width
    return (x, HEAD_SIZE / 4.0)


def segment_length(start: Point, end: Point) -> float:
    return math.hypot(end[0] - start[0], end[1] - start[1])


def adjust_elbow(
    shoulder: Point,
    original_elbow: Point,
    original_hand: Point,
    new_hand: Point,
    *,
    min_length: Optional[float] = None,
) -> Point:
    """Return the elbow for ``new_hand`` that preserves ratio and bend.

    Arms shorter than ``min_length`` (before or after the move) keep their
    original elbow.
    """

    if min_length is None:
        min_length = get_engine_config().min_arm_length
    eps = min_length * min_length

    ref_line = _vec2(shoulder, original_hand)
    ref_len_sq = _norm_sq2(ref_line)
    if not ref_len_sq >= eps or ref_len_sq == 0.0:
        return original_elbow

    shoulder_to_elbow = _vec2(shoulder, original_elbow)
    t = _dot2(shoulder_to_elbow, ref_line) / ref_len_sq

    on_line = (shoulder[0] + t * ref_line[0], shoulder[1] + t * ref_line[1])
    ref_perp = _perp_unit(ref_line)
    bend_offset = _dot2(_vec2(on_line, original_elbow), ref_perp)

    new_line = _vec2(shoulder, new_hand)
    new_len_sq = _norm_sq2(new_line)
    if not new_len_sq >= eps or new_len_sq == 0.0:
        return original_elbow

    new_on_line = (shoulder[0] + t * new_line[0], shoulder[1] + t * new_line[1])
    new_perp = _perp_unit(new_line)
    return (
        new_on_line[0] + bend_offset * new_perp[0],
        new_on_line[1] + bend_offset * new_perp[1],
    )


def arm_ratio(entity: Entity, side: Side) -> float:
    """Upper-arm length divided by forearm length."""

    shoulder = shoulder_anchor(side)
    elbow = entity.elbow_local(side)
    hand = entity.hand_local(side)
    lower = segment_length(elbow, hand)
    if lower == 0.0:
        return math.inf
    return segment_length(shoulder, elbow) / lower


def elbow_angle_from_straight(entity: Entity, side: Side) -> float:
    """Signed angle (radians) from the shoulder-hand line to the shoulder-elbow line."""

    shoulder = shoulder_anchor(side)
    straight = _vec2(shoulder, entity.hand_local(side))
    to_elbow = _vec2(shoulder, entity.elbow_local(side))
    return math.atan2(_cross2(straight, to_elbow), _dot2(straight, to_elbow))


def adjust_elbows(entity: Entity, original: Entity, sides: Iterable[Side]) -> Entity:
    """Recompute the elbows of ``sides`` on ``entity`` using ``original`` as reference."""

    adjusted = entity
    seen: Tuple[Side, ...] = ()
    for raw_side in sides:
        side = Side(raw_side)
        if side in seen:
            continue
        seen += (side,)
        new_elbow = adjust_elbow(
            shoulder_anchor(side),
            original.elbow_local(side),
            original.hand_local(side),
            entity.hand_local(side),
        )
        logger.debug(
            "Adjusted %s elbow of %s: %s -> %s",
            side.value,
            entity.id,
            original.elbow_local(side),
            new_elbow,
        )
        adjusted = adjusted.with_elbow(side, new_elbow)
    return adjusted


__all__ = [
    "adjust_elbow",
    "adjust_elbows",
    "arm_ratio",
    "elbow_angle_from_straight",
    "segment_length",
    "shoulder_anchor",
]
