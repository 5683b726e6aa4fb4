"""
Hermite Data and QEF Vertex Placement
=====================================

This module builds the per-cell Hermite data and places the representative
vertex of a cell by minimizing a quadratic error function (QEF).

Every Hermite sample ``(p_i, n_i)`` contributes the plane (line in 2D)
constraint ``n_i . x = n_i . p_i``. Stacking the normals into ``A`` and the
offsets into ``b``, the vertex is the least-squares solution

.. math::

    x^* = \\arg\\min_x \\lVert A x - b \\rVert^2

Local numerical failures never raise. They are encoded as sentinels in
both ``qef_min`` and ``residual``:

- ``+inf``: definitely invalid (too few samples, vertex outside its cell)
- ``NaN``: indeterminate (rank-deficient or ill-conditioned system)

Classes
-------
CellData
    Immutable Hermite data and QEF result of one cell.

Functions
---------
crosses_surface
    Corner sign classification deciding whether a cell is sampled at all.
solve_qef
    Least-squares vertex placement with degeneracy detection.
compute_cell_data
    Full CellData construction for a box.
"""

import logging

import numpy as np

import AdaptiveDualContour
from AdaptiveDualContour.geometry import HyperRectangle, cube_edges
from AdaptiveDualContour.intersection import edge_hermite_sample
from AdaptiveDualContour.SDF import SDFBase
from AdaptiveDualContour.utils import isapprox, sign_class

logger = logging.getLogger(AdaptiveDualContour.__name__)

#: Smallest accepted ratio between the smallest and largest singular value
#: of the QEF system.
SINGULAR_RCOND = 1e-10


def _frozen(array) -> np.ndarray:
    array = np.array(array, dtype=np.float64)
    array.flags.writeable = False
    return array


class CellData:
    """Hermite samples and QEF vertex of a single cell.

    A CellData is either *empty* (the cell was classified as not crossing
    the surface, or no sample could be taken) or holds at least one
    Hermite sample together with ``qef_min`` and ``residual``, which may
    be the ``+inf`` or ``NaN`` sentinels.

    Attributes
    ----------
    edges : tuple of np.ndarray
        Sampled edges, each of shape (2, dim) holding the two corners.
    p : tuple of np.ndarray
        Crossing points, parallel to ``edges``.
    n : tuple of np.ndarray
        Unit normals at the crossing points, parallel to ``p``.
    qef_min : np.ndarray or None
        Vertex minimizing the QEF, None for empty data.
    residual : float or None
        Oracle distance at ``qef_min``, None for empty data.
    corner_values : np.ndarray or None
        Oracle distances at the cell corners, in corner-index order.
    """

    def __init__(
        self, edges=(), p=(), n=(), qef_min=None, residual=None, corner_values=None
    ):
        if not (len(edges) == len(p) == len(n)):
            raise ValueError(
                f"edges, p and n must have equal length, got {len(edges)}, {len(p)}, {len(n)}"
            )
        self._edges = tuple(_frozen(e) for e in edges)
        self._p = tuple(_frozen(x) for x in p)
        self._n = tuple(_frozen(x) for x in n)
        self._qef_min = None if qef_min is None else _frozen(qef_min)
        self._residual = None if residual is None else float(residual)
        self._corner_values = (
            None if corner_values is None else _frozen(corner_values)
        )

    @property
    def edges(self):
        return self._edges

    @property
    def p(self):
        return self._p

    @property
    def n(self):
        return self._n

    @property
    def qef_min(self):
        return self._qef_min

    @property
    def residual(self):
        return self._residual

    @property
    def corner_values(self):
        return self._corner_values

    @property
    def is_empty(self) -> bool:
        return self._qef_min is None

    @property
    def is_indeterminate(self) -> bool:
        return not self.is_empty and bool(np.isnan(self._residual))

    @property
    def is_invalid(self) -> bool:
        return not self.is_empty and bool(np.isinf(self._residual))

    @property
    def has_vertex(self) -> bool:
        """True if the data carries a finite vertex and residual."""
        return (
            not self.is_empty
            and bool(np.isfinite(self._residual))
            and bool(np.all(np.isfinite(self._qef_min)))
        )

    def __len__(self):
        return len(self._p)

    def __repr__(self):
        if self.is_empty:
            return "CellData(empty)"
        return (
            f"CellData(samples={len(self)}, qef_min={self._qef_min.tolist()}, "
            f"residual={self._residual})"
        )


def crosses_surface(values) -> bool:
    """Decide from the corner distances whether a cell should be sampled.

    - corners strictly inside and strictly outside: crossing
    - all corners strictly on one side: not crossing
    - a single corner exactly on the surface, the rest on one side: the
      surface only grazes that vertex, not crossing
    - two or more corners exactly on the surface: the surface runs along
      the cell boundary, crossing

    ``0.0`` and ``-0.0`` are treated alike.
    """
    classes = sign_class(values)
    if np.any(classes < 0) and np.any(classes > 0):
        return True
    return int(np.count_nonzero(classes == 0)) >= 2


def solve_qef(points: np.ndarray, normals: np.ndarray, rcond=SINGULAR_RCOND):
    """Least-squares solution of the stacked Hermite plane constraints.

    Parameters
    ----------
    points : np.ndarray
        Crossing points of shape (k, dim).
    normals : np.ndarray
        Unit normals of shape (k, dim).
    rcond : float, default SINGULAR_RCOND
        Systems whose smallest/largest singular value ratio falls below
        ``rcond`` are treated as singular.

    Returns
    -------
    np.ndarray
        Vertex of shape (dim,). All ``+inf`` for fewer than 2 samples, all
        ``NaN`` for singular or ill-conditioned systems.

    Examples
    --------
    >>> import numpy as np
    >>> points = np.array([[0.3, 0.0], [0.0, 0.4]])
    >>> normals = np.array([[1.0, 0.0], [0.0, 1.0]])
    >>> solve_qef(points, normals)  # array([0.3, 0.4])
    """
    points = np.asarray(points, dtype=np.float64)
    normals = np.asarray(normals, dtype=np.float64)
    dim = points.shape[1]

    if points.shape[0] < 2:
        return np.full(dim, np.inf)

    A = normals
    b = np.einsum("ij,ij->i", points, normals)
    if not (np.all(np.isfinite(A)) and np.all(np.isfinite(b))):
        return np.full(dim, np.nan)

    try:
        qef_min, _, _, singular_values = np.linalg.lstsq(A, b, rcond=None)
    except np.linalg.LinAlgError:
        return np.full(dim, np.nan)

    if (
        singular_values.shape[0] < dim
        or singular_values[0] == 0.0
        or singular_values[-1] / singular_values[0] < rcond
    ):
        return np.full(dim, np.nan)
    return qef_min


def compute_cell_data(
    boundary: HyperRectangle, surface: SDFBase, rtol: float, atol: float
) -> CellData:
    """Sample the Hermite data of a box and place its vertex.

    Parameters
    ----------
    boundary : HyperRectangle
        The cell's box.
    surface : SDFBase
        Implicit surface oracle.
    rtol, atol : float
        Tolerances for the duplicate-sample and out-of-box tests.

    Returns
    -------
    CellData
    """
    corners = boundary.vertices()
    values = np.array([surface.distance(corner) for corner in corners])

    if not crosses_surface(values):
        return CellData(corner_values=values)

    classes = sign_class(values)
    edges, p, n = [], [], []
    sampled_corners = set()
    for start, end in cube_edges(boundary.dim):
        both_zero = classes[start] == 0 and classes[end] == 0
        if classes[start] == classes[end] and not both_zero:
            continue
        if classes[start] == 0:
            # exact hits contribute their corner once per cell
            if start in sampled_corners:
                continue
            sampled_corners.add(start)
        sample = edge_hermite_sample(
            corners[start], corners[end], values[start], values[end], surface
        )
        if sample is None:
            continue
        edges.append(np.stack([corners[start], corners[end]]))
        p.append(sample[0])
        n.append(sample[1])

    if not p:
        return CellData(corner_values=values)

    qef_min = solve_qef(np.array(p), np.array(n))
    if np.all(np.isinf(qef_min)):
        residual = np.inf
    elif np.any(np.isnan(qef_min)):
        logger.debug(f"Degenerate QEF in {boundary}, normals {n}")
        residual = np.nan
    else:
        residual = surface.distance(qef_min)

        # a vertex landing on a sample comes from a cell corner aligned with
        # a surface corner
        if len(p) > 2:
            gaps = [np.linalg.norm(point - qef_min) for point in p]
            closest = int(np.argmin(gaps))
            if isapprox(p[closest], qef_min, rtol, atol):
                del edges[closest], p[closest], n[closest]

        if boundary.is_outside(qef_min, rtol, atol):
            logger.debug(f"QEF vertex {qef_min} outside of {boundary}")
            qef_min = np.full(boundary.dim, np.inf)
            residual = np.inf

    return CellData(
        edges=edges,
        p=p,
        n=n,
        qef_min=qef_min,
        residual=residual,
        corner_values=values,
    )
