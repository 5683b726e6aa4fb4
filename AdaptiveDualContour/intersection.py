"""
Edge Crossing Search
====================

Locates where a cell edge crosses the implicit surface and samples the
Hermite data (crossing point + unit normal) there.

The edge ``v1 -> v2`` is parameterized as ``e(alpha) = v1 + alpha (v2 - v1)``
with ``alpha`` in [0, 1], and ``distance(e(alpha))**2`` is minimized with
Brent's bounded golden-section search from ``scipy.optimize``. The search
is derivative-free and tolerates non-monotonic distance profiles along
the edge.
"""

import logging

import numpy as np
import scipy.optimize

import AdaptiveDualContour
from AdaptiveDualContour.SDF import SDFBase

logger = logging.getLogger(AdaptiveDualContour.__name__)

#: Absolute tolerance of the bounded search, in units of the edge parameter.
EDGE_XATOL = 1e-10


def find_surface_intersect(v1, v2, surface: SDFBase, d1=None, d2=None) -> np.ndarray:
    """Point on the segment ``v1 -> v2`` closest to the zero level set.

    Parameters
    ----------
    v1, v2 : array-like
        Edge endpoints.
    surface : SDFBase
        Implicit surface oracle.
    d1, d2 : float, optional
        Known distances at ``v1`` and ``v2``. Missing ones are queried.

    Returns
    -------
    np.ndarray
        The crossing point. Its absolute distance never exceeds that of
        either endpoint.
    """
    v1 = np.asarray(v1, dtype=np.float64)
    v2 = np.asarray(v2, dtype=np.float64)
    direction = v2 - v1

    def line_func(alpha):
        return surface.distance(v1 + alpha * direction) ** 2

    # the parametrization keeps the search range at [0, 1]
    result = scipy.optimize.minimize_scalar(
        line_func,
        bounds=(0.0, 1.0),
        method="bounded",
        options={"xatol": EDGE_XATOL},
    )
    if not result.success:
        logger.warning(
            f"Edge search between {v1} and {v2} did not converge: {result.message}"
        )
    alpha_final, best = float(result.x), float(result.fun)

    # the bounded search never probes the endpoints themselves
    for alpha, d in ((0.0, d1), (1.0, d2)):
        value = line_func(alpha) if d is None else float(d) ** 2
        if value < best:
            alpha_final, best = alpha, value

    return v1 + alpha_final * direction


def edge_hermite_sample(v1, v2, d1: float, d2: float, surface: SDFBase):
    """Hermite sample of an edge known to cross the surface.

    Parameters
    ----------
    v1, v2 : array-like
        Edge endpoints.
    d1, d2 : float
        Oracle distances at ``v1`` and ``v2``.
    surface : SDFBase
        Implicit surface oracle.

    Returns
    -------
    tuple of (np.ndarray, np.ndarray) or None
        ``(point, normal)``. An exact hit at ``v1`` is returned as is. If
        only ``v2`` is an exact hit, None is returned: the edge starting
        at ``v2`` supplies that sample.
    """
    if d1 == 0.0:
        point = np.asarray(v1, dtype=np.float64)
    elif d2 == 0.0:
        return None
    else:
        point = find_surface_intersect(v1, v2, surface, d1, d2)
    return point, surface.normal(point)
