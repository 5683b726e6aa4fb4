import logging

import numpy as np
import pytest
import scipy.optimize
import torch

from AdaptiveDualContour.intersection import edge_hermite_sample, find_surface_intersect
from AdaptiveDualContour.SDF import SDFfromCallable
from AdaptiveDualContour.sdf_primitives import CircleSDF


def test_linear_field_crossing():
    line = SDFfromCallable(lambda q: q[:, 0] - 0.3)
    p = find_surface_intersect([0.0, 0.0], [1.0, 0.0], line)
    np.testing.assert_allclose(p, [0.3, 0.0], atol=1e-6)
    np.testing.assert_allclose(line.normal(p), [1.0, 0.0])


@pytest.mark.parametrize(
    "field",
    [
        lambda q: 2.0 * q[:, 0] - 0.7,
        lambda q: -0.5 * q[:, 0] + 0.1,
        lambda q: (q[:, 0] + 0.2) ** 2 - 0.5,
        lambda q: 0.25 - (q[:, 0] + 0.1) ** 2,
        # monotonic without crossing, the better endpoint wins
        lambda q: q[:, 0] + 0.5,
        lambda q: -((q[:, 0] + 0.5) ** 2),
    ],
)
def test_crossing_never_worse_than_endpoints(field):
    sdf = SDFfromCallable(field)
    v1, v2 = np.array([0.0, 0.25]), np.array([1.0, 0.25])
    p = find_surface_intersect(v1, v2, sdf)
    bound = min(abs(sdf.distance(v1)), abs(sdf.distance(v2)))
    assert abs(sdf.distance(p)) <= bound + 1e-12
    # the result stays on the edge
    assert 0.0 <= p[0] <= 1.0
    assert p[1] == 0.25


def test_circle_crossing_on_diagonal_edge():
    circle = CircleSDF(center=[0.0, 0.0], radius=1.0)
    p = find_surface_intersect([0.0, 0.0], [1.0, 1.0], circle)
    np.testing.assert_allclose(p, [np.sqrt(0.5), np.sqrt(0.5)], atol=1e-6)
    n = circle.normal(p)
    np.testing.assert_allclose(n, [np.sqrt(0.5), np.sqrt(0.5)], atol=1e-6)


def test_exact_hit_at_start_is_kept():
    circle = CircleSDF(center=[0.0, 0.0], radius=1.0)
    v1, v2 = np.array([1.0, 0.0]), np.array([1.5, 0.0])
    point, normal = edge_hermite_sample(
        v1, v2, circle.distance(v1), circle.distance(v2), circle
    )
    np.testing.assert_array_equal(point, v1)
    np.testing.assert_allclose(normal, [1.0, 0.0])


def test_exact_hit_at_end_is_skipped():
    circle = CircleSDF(center=[0.0, 0.0], radius=1.0)
    v1, v2 = np.array([0.5, 0.0]), np.array([1.0, 0.0])
    assert edge_hermite_sample(v1, v2, -0.5, -0.0, circle) is None
    assert edge_hermite_sample(v1, v2, -0.5, 0.0, circle) is None


def test_sample_between_corners():
    line = SDFfromCallable(lambda q: q[:, 1] - torch.tensor(0.6, dtype=q.dtype))
    point, normal = edge_hermite_sample([0.0, 0.0], [0.0, 1.0], -0.6, 0.4, line)
    np.testing.assert_allclose(point, [0.0, 0.6], atol=1e-6)
    np.testing.assert_allclose(normal, [0.0, 1.0])


def test_known_endpoint_distances_are_not_queried_again():
    queried = []

    def field(q):
        queried.extend(q.detach().numpy().tolist())
        return q[:, 0] - 0.5

    line = SDFfromCallable(field, normal_fn=lambda p: np.array([1.0, 0.0]))
    v1, v2 = np.array([0.0, 0.0]), np.array([1.0, 0.0])
    point, normal = edge_hermite_sample(v1, v2, -0.5, 0.5, line)
    np.testing.assert_allclose(point, [0.5, 0.0], atol=1e-6)
    assert queried
    for q in queried:
        assert not np.array_equal(q, v1)
        assert not np.array_equal(q, v2)


def test_unconverged_search_warns(monkeypatch, caplog):
    def stalled(fun, bounds, method, options):
        return scipy.optimize.OptimizeResult(
            x=0.25, fun=fun(0.25), success=False, message="Maximum iterations"
        )

    monkeypatch.setattr(scipy.optimize, "minimize_scalar", stalled)
    line = SDFfromCallable(lambda q: q[:, 0] - 0.3)
    with caplog.at_level(logging.WARNING, logger="AdaptiveDualContour"):
        p = find_surface_intersect([0.0, 0.0], [1.0, 0.0], line)
    assert "did not converge" in caplog.text
    assert "Maximum iterations" in caplog.text
    # the stalled result is still the best candidate on the edge
    np.testing.assert_allclose(p, [0.25, 0.0])


if __name__ == "__main__":
    test_linear_field_crossing()
    test_circle_crossing_on_diagonal_edge()
    test_exact_hit_at_start_is_kept()
    test_exact_hit_at_end_is_skipped()
    test_sample_between_corners()
    test_known_endpoint_distances_are_not_queried_again()
