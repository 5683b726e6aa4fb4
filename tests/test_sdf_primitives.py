import torch
from math import pi, cos, sin
import numpy as np
import pytest

from AdaptiveDualContour.sdf_primitives import (
    CircleSDF,
    SphereSDF,
    CylinderSDF,
    PlaneSDF,
    BoxSDF,
)
from AdaptiveDualContour.SDF import TransformedSDF


@pytest.fixture
def queries():
    torch.manual_seed(42)
    return torch.rand(10, 3)


def test_sdf_primitives(queries):
    sphere = SphereSDF(center=[0.0, 0.0, 0.0], radius=0.5)
    cylinder_x = CylinderSDF(point=[0.0, 0.0, 0.0], axis="x", radius=0.3)
    plane = PlaneSDF(point=[0.0, 0.0, 0.0], normal=[0.0, 1.0, 0.0])
    box = BoxSDF(center=[0.0, 0.0, 0.0], half_widths=[0.5, 0.5, 0.5])

    primitives = [sphere, cylinder_x, plane, box]

    for sdf in primitives:
        print(f"Testing {sdf.__class__.__name__}")
        values = sdf(queries)
        assert values.shape == (10, 1)
        assert values.dtype == queries.dtype


def test_circle_distance_and_normal():
    circle = CircleSDF(center=[0.0, 0.0], radius=1.0)
    assert circle.distance([0.0, 0.0]) == pytest.approx(-1.0)
    assert circle.distance([2.0, 0.0]) == pytest.approx(1.0)
    assert circle.distance([1.0, 0.0]) == 0.0
    np.testing.assert_allclose(circle.normal([2.0, 0.0]), [1.0, 0.0])
    np.testing.assert_allclose(circle.normal([0.0, -3.0]), [0.0, -1.0])
    np.testing.assert_allclose(
        circle.normal([0.5, 0.5]), [np.sqrt(0.5), np.sqrt(0.5)], atol=1e-12
    )
    np.testing.assert_allclose(
        circle._get_domain_bounds().numpy(), [[-1.0, -1.0], [1.0, 1.0]]
    )


def test_box_sdf():
    box = BoxSDF(center=[0.0, 0.0], half_widths=[1.0, 0.5])
    assert box.distance([0.0, 0.0]) == pytest.approx(-0.5)
    assert box.distance([2.0, 0.0]) == pytest.approx(1.0)
    assert box.distance([2.0, 1.5]) == pytest.approx(np.sqrt(2.0))
    np.testing.assert_allclose(box.normal([0.0, 0.9]), [0.0, 1.0])
    np.testing.assert_allclose(box.normal([-1.5, 0.1]), [-1.0, 0.0])


def test_plane_sdf_2D():
    line = PlaneSDF(point=[0.3, 0.0], normal=[2.0, 0.0])
    assert line.geometric_dim == 2
    assert line.distance([1.0, 5.0]) == pytest.approx(0.7)
    np.testing.assert_allclose(line.normal([0.0, 0.0]), [1.0, 0.0])


def test_rotated_cylinder(queries):
    """
    Rotate a cylinder along z-axis to align with y-axis.
    It should be equivalent to a cylinder originally along y-axis.
    """
    cyl_x = CylinderSDF(point=[0, 0, 0], axis="x", radius=0.3)
    theta = pi / 2  # rotate x -> y
    R = torch.tensor(
        [[cos(theta), -sin(theta), 0], [sin(theta), cos(theta), 0], [0, 0, 1]],
        dtype=torch.float32,
    )

    rotated_cyl = TransformedSDF(cyl_x, rotation=R)
    cyl_y = CylinderSDF(point=[0, 0, 0], axis="y", radius=0.3)
    val_rot = rotated_cyl._compute(queries)
    val_ref = cyl_y._compute(queries)
    assert torch.allclose(val_rot, val_ref, atol=1e-6)


def test_scaled_sphere():
    """
    Scale a sphere and check equivalence with a sphere of different radius.
    """
    sphere_r03 = SphereSDF(center=[0, 0, 0], radius=0.3)
    sphere_r03_scaled = TransformedSDF(sphere_r03, scale=2.0)
    sphere_r06 = SphereSDF(center=[0, 0, 0], radius=0.6)
    queries = torch.tensor([[0.0, 0.0, 0.0]])
    val_r1_scaled = sphere_r03_scaled(queries)
    val_r2 = sphere_r06(queries)
    assert torch.allclose(val_r1_scaled, val_r2, atol=1e-6)


def test_translated_sphere(queries):
    """
    Translate a sphere – should be equivalent to a sphere with new center.
    """
    sphere_orig = SphereSDF(center=[0, 0, 0], radius=0.5)
    translation = torch.tensor([0.2, -0.1, 0.3])
    translated_sphere = TransformedSDF(sphere_orig, translation=translation)
    sphere_translated = SphereSDF(center=[0.2, -0.1, 0.3], radius=0.5)

    val_trans = translated_sphere._compute(queries)
    val_ref = sphere_translated._compute(queries)
    assert torch.allclose(val_trans, val_ref, atol=1e-6)


if __name__ == "__main__":
    queries = torch.rand(10, 3)
    test_sdf_primitives(queries)
    test_circle_distance_and_normal()
    test_box_sdf()
    test_rotated_cylinder(queries)
    test_scaled_sphere()
    test_translated_sphere(queries)
