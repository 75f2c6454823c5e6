import math

import numpy as np
import pytest

from poselock.model import Entity
from poselock.transforms import rotation_matrix, to_absolute, to_absolute_many, to_local


def _entity(position=(0.0, 0.0), rotation=0.0, scale=(1.0, 1.0)):
    return Entity(id="e", position=position, rotation=rotation, scale=scale)


def test_to_absolute_scales_then_rotates_then_translates():
    entity = _entity(position=(10.0, 20.0), rotation=90.0, scale=(2.0, 1.0))

    result = to_absolute(entity, (1.0, 0.0))

    assert result == pytest.approx((10.0, 22.0), abs=1e-12)


def test_to_local_of_translated_point():
    entity = _entity(position=(100.0, 0.0))

    assert to_local(entity, (-40.0, -50.0)) == pytest.approx((-140.0, -50.0))


@pytest.mark.parametrize(
    "position, rotation, scale",
    [
        ((0.0, 0.0), 0.0, (1.0, 1.0)),
        ((150.0, 40.0), 180.0, (1.0, 1.0)),
        ((-12.5, 7.0), 33.0, (1.5, 0.75)),
        ((3.0, -9.0), -271.0, (-1.0, 2.0)),
        ((0.0, 0.0), 720.5, (0.01, 40.0)),
    ],
)
@pytest.mark.parametrize("point", [(0.0, 0.0), (-30.0, -40.0), (12.25, 1e3)])
def test_round_trip(position, rotation, scale, point):
    entity = _entity(position, rotation, scale)

    back = to_local(entity, to_absolute(entity, point))

    assert back == pytest.approx(point, abs=1e-6)


def test_zero_scale_component_is_treated_as_one():
    entity = _entity(position=(5.0, 5.0), scale=(0.0, 2.0))

    absolute = to_absolute(entity, (3.0, 4.0))
    local = to_local(entity, absolute)

    assert absolute == pytest.approx((8.0, 13.0))
    assert all(math.isfinite(v) for v in local)
    assert local == pytest.approx((3.0, 4.0))


def test_to_absolute_many_matches_scalar_version():
    entity = _entity(position=(7.0, -3.0), rotation=48.0, scale=(1.2, 0.8))
    points = [(-30.0, -40.0), (30.0, -40.0), (0.0, 0.0)]

    many = to_absolute_many(entity, points)

    assert many.shape == (3, 2)
    for row, point in zip(many, points):
        assert tuple(row) == pytest.approx(to_absolute(entity, point))


def test_rotation_matrix_is_orthonormal():
    mat = rotation_matrix(37.0)

    assert np.allclose(mat @ mat.T, np.eye(2))
    assert np.linalg.det(mat) == pytest.approx(1.0)
