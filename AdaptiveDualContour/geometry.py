"""
Axis-Aligned Boxes
==================

Dimension-agnostic axis-aligned boxes (hyperrectangles) and the corner and
edge conventions shared by the Hermite sampling and the cell tree.

Corner ordering
---------------
Corner ``k`` of a box sits at ``origin + widths * bits(k)`` where bit ``i``
of ``k`` selects the upper end of axis ``i``, i.e. the first axis varies
fastest::

    (2) ───── (3)
     |         |
     |         |
    (0) ───── (1)

Edge ordering
-------------
``cube_edges(dim)`` first walks the reflected Gray-code cycle over the
corners (2D: 0 -> 1 -> 3 -> 2 -> 0, the quad's boundary loop), then lists
the remaining edges of the d-cube in ascending order. Every corner is the
start of at least one edge of the cycle.
"""

from functools import lru_cache

import numpy as np

from AdaptiveDualContour.utils import isapprox


@lru_cache(maxsize=None)
def gray_code_cycle(dim: int) -> tuple[int, ...]:
    """Corner indices of the d-cube visited along the reflected Gray code."""
    return tuple(i ^ (i >> 1) for i in range(2**dim))


@lru_cache(maxsize=None)
def cube_edges(dim: int) -> tuple[tuple[int, int], ...]:
    """Directed corner-index pairs of all ``dim * 2**(dim-1)`` cube edges.

    The Gray-code cycle comes first, followed by the remaining edges from
    the lower to the upper corner.
    """
    cycle = gray_code_cycle(dim)
    edges = []
    seen = set()
    for start, end in zip(cycle, cycle[1:] + cycle[:1]):
        key = frozenset((start, end))
        if key not in seen:
            seen.add(key)
            edges.append((start, end))
    for corner in range(2**dim):
        for axis in range(dim):
            if corner & (1 << axis):
                continue
            other = corner | (1 << axis)
            key = frozenset((corner, other))
            if key not in seen:
                seen.add(key)
                edges.append((corner, other))
    return tuple(edges)


class HyperRectangle:
    """Axis-aligned box given by an origin and positive widths.

    Parameters
    ----------
    origin : array-like of shape (dim,)
        Lower corner of the box.
    widths : array-like of shape (dim,)
        Extent along each axis, all strictly positive.

    Raises
    ------
    ValueError
        If shapes mismatch or any width is not positive.
    """

    def __init__(self, origin, widths):
        origin = np.array(origin, dtype=np.float64).reshape(-1)
        widths = np.array(widths, dtype=np.float64).reshape(-1)
        if origin.shape != widths.shape:
            raise ValueError(
                f"Origin {origin.shape} and widths {widths.shape} must have the same shape"
            )
        if not np.all(widths > 0):
            raise ValueError(f"All widths must be positive, got {widths}")
        self._origin = origin
        self._widths = widths
        self._origin.flags.writeable = False
        self._widths.flags.writeable = False

    @property
    def origin(self) -> np.ndarray:
        return self._origin

    @property
    def widths(self) -> np.ndarray:
        return self._widths

    @property
    def dim(self) -> int:
        return self._origin.shape[0]

    @property
    def center(self) -> np.ndarray:
        return self._origin + self._widths / 2

    @property
    def bounds(self) -> np.ndarray:
        """Array of shape (2, dim): lower corner, upper corner."""
        return np.stack([self._origin, self._origin + self._widths])

    def vertices(self) -> np.ndarray:
        """Corner coordinates of shape (2**dim, dim) in corner-index order."""
        bits = (np.arange(2**self.dim)[:, None] >> np.arange(self.dim)) & 1
        return self._origin + bits * self._widths

    def child_boundary(self, indices) -> "HyperRectangle":
        """Sub-box of half the width selected by one 0/1 index per axis."""
        indices = np.asarray(indices, dtype=np.float64)
        half = self._widths / 2
        return HyperRectangle(self._origin + indices * half, half)

    def children(self) -> list["HyperRectangle"]:
        """All 2**dim equal sub-boxes, ordered like the corners."""
        bits = (np.arange(2**self.dim)[:, None] >> np.arange(self.dim)) & 1
        return [self.child_boundary(index) for index in bits]

    def contains(self, point) -> bool:
        """Closed containment test without tolerance."""
        point = np.asarray(point, dtype=np.float64)
        lower, upper = self.bounds
        return bool(np.all(point >= lower) and np.all(point <= upper))

    def is_outside(self, point, rtol: float, atol: float) -> bool:
        """Whether ``point`` lies outside the box by more than the tolerance.

        Each axis is tested separately: a coordinate beyond the min/max of
        the box counts as outside only if it is not approximately equal to
        that bound. Non-finite points are always outside.
        """
        point = np.asarray(point, dtype=np.float64)
        if not np.all(np.isfinite(point)):
            return True
        lower, upper = self.bounds
        for axis in range(self.dim):
            c = point[axis]
            if c > upper[axis] and not isapprox(upper[axis], c, rtol, atol):
                return True
            if c < lower[axis] and not isapprox(lower[axis], c, rtol, atol):
                return True
        return False

    def __repr__(self):
        return f"HyperRectangle(origin={self._origin.tolist()}, widths={self._widths.tolist()})"
