"""Conversion between an entity's local frame and the absolute stage frame."""

from __future__ import annotations

import math
from typing import Optional, Sequence, Tuple

import numpy as np

from .config import get_engine_config
from .model import Entity, Point


def _effective_scale(entity: Entity, min_scale: Optional[float] = None) -> Tuple[float, float]:
    # a vanishing scale component falls back to 1.0 so both directions stay finite
    limit = get_engine_config().min_scale if min_scale is None else min_scale
    sx, sy = entity.scale
    if not math.isfinite(sx) or abs(sx) < limit:
        sx = 1.0
    if not math.isfinite(sy) or abs(sy) < limit:
        sy = 1.0
    return float(sx), float(sy)


def rotation_matrix(degrees: float) -> np.ndarray:
    theta = math.radians(degrees)
    cos_t = math.cos(theta)
    sin_t = math.sin(theta)
    return np.array([[cos_t, -sin_t], [sin_t, cos_t]], dtype=float)


def to_absolute(entity: Entity, local: Point) -> Point:
    """Map ``local`` (entity frame) to stage coordinates: scale, rotate, translate."""

    sx, sy = _effective_scale(entity)
    theta = math.radians(entity.rotation)
    cos_t = math.cos(theta)
    sin_t = math.sin(theta)
    lx = local[0] * sx
    ly = local[1] * sy
    rx = lx * cos_t - ly * sin_t
    ry = lx * sin_t + ly * cos_t
    return (entity.position[0] + rx, entity.position[1] + ry)


def to_local(entity: Entity, absolute: Point) -> Point:
    """Inverse of :func:`to_absolute`."""

    sx, sy = _effective_scale(entity)
    dx = absolute[0] - entity.position[0]
    dy = absolute[1] - entity.position[1]
    theta = -math.radians(entity.rotation)
    cos_t = math.cos(theta)
    sin_t = math.sin(theta)
    rx = dx * cos_t - dy * sin_t
    ry = dx * sin_t + dy * cos_t
    return (rx / sx, ry / sy)


def to_absolute_many(entity: Entity, points: Sequence[Point]) -> np.ndarray:
    """Vectorised :func:`to_absolute`; returns an ``(n, 2)`` array."""

    pts = np.asarray(points, dtype=float).reshape(-1, 2)
    scaled = pts * np.asarray(_effective_scale(entity), dtype=float)
    rotated = scaled @ rotation_matrix(entity.rotation).T
    return rotated + np.asarray(entity.position, dtype=float)


__all__ = ["rotation_matrix", "to_absolute", "to_absolute_many", "to_local"]
