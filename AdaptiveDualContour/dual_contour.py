"""
Cell Tree and Subdivision Driver
================================

Builds the adaptive cell tree of a Hermite dual contour. The root cell
covers the requested domain; cells are split into 2^d equal children for
as long as ``DualContourRefinery.needs_refinement`` asks for it. Each
cell's CellData is computed once, when the cell is created, so a cell is
always fully evaluated before its children are.

Termination follows from the halving of the widths at every split together
with the ``atol`` size floor: no leaf is deeper than
``ceil(log2(initial_width / atol))``.

Examples
--------
>>> from AdaptiveDualContour.sdf_primitives import CircleSDF
>>> from AdaptiveDualContour.dual_contour import build
>>>
>>> root = build(CircleSDF([0, 0], 1.0), origin=[-2, -2], extent=[4, 4])
>>> leaves = list(root.allleaves())
"""

import logging

import numpy as np
import gustaf as gus

import AdaptiveDualContour
from AdaptiveDualContour.geometry import HyperRectangle
from AdaptiveDualContour.qef import CellData
from AdaptiveDualContour.refinement import DualContourRefinery
from AdaptiveDualContour.SDF import SDFBase

logger = logging.getLogger(AdaptiveDualContour.__name__)


class Cell:
    """Node of the cell tree.

    A cell owns its box, its CellData and either no children (leaf) or
    2^d equal children ordered like the box corners.
    """

    def __init__(self, boundary: HyperRectangle, data: CellData, depth: int = 0):
        self.boundary = boundary
        self.data = data
        self.depth = depth
        self.children = None

    @property
    def is_leaf(self) -> bool:
        return self.children is None

    def split(self, refinery: DualContourRefinery):
        if not self.is_leaf:
            raise RuntimeError("Cell has already been split")
        self.children = tuple(
            Cell(child, refinery.refine_data(child), self.depth + 1)
            for child in self.boundary.children()
        )
        return self.children

    def allcells(self):
        """Iterate over this cell and all its descendants, depth first."""
        stack = [self]
        while stack:
            cell = stack.pop()
            yield cell
            if not cell.is_leaf:
                stack.extend(reversed(cell.children))

    def allleaves(self):
        for cell in self.allcells():
            if cell.is_leaf:
                yield cell

    def findleaf(self, point) -> "Cell":
        """Return the leaf whose box contains ``point``.

        Points on a shared face resolve to the upper child.

        Raises
        ------
        ValueError
            If the point lies outside this cell.
        """
        point = np.asarray(point, dtype=np.float64)
        if not self.boundary.contains(point):
            raise ValueError(f"Point {point} is outside of {self.boundary}")
        cell = self
        while not cell.is_leaf:
            upper = point >= cell.boundary.center
            index = int(np.sum(upper * (1 << np.arange(cell.boundary.dim))))
            cell = cell.children[index]
        return cell

    def __repr__(self):
        return f"Cell({self.boundary}, depth={self.depth}, {self.data})"


def adaptive_sampling(root: Cell, refinery: DualContourRefinery) -> Cell:
    """Refine ``root`` top-down until no cell needs refinement."""
    stack = [root]
    while stack:
        cell = stack.pop()
        if refinery.needs_refinement(cell):
            stack.extend(reversed(cell.split(refinery)))
    return root


class HermiteDualContour:
    """Adaptive Hermite dual contour of an implicit surface.

    Parameters
    ----------
    surface_def : SDFBase
        Implicit surface oracle providing ``distance`` and ``normal``.
    origin : array-like
        Lower corner of the domain.
    extent : array-like
        Widths of the domain.
    rtol : float, default 1e-2
        Relative tolerance of the residual and geometric tests.
    atol : float, default 1e-2
        Absolute tolerance and minimum cell width.
    surfcellmax : float, default 1e-1
        Width above which cells carrying Hermite data are always split.

    Attributes
    ----------
    root : Cell
        Root of the cell tree.
    refinery : DualContourRefinery
        Refinement policy used to build the tree.

    Examples
    --------
    >>> from AdaptiveDualContour.sdf_primitives import CircleSDF
    >>> contour = HermiteDualContour(
    ...     CircleSDF([0, 0], 1.0), [-2, -2], [4, 4], rtol=0.05, atol=0.05,
    ...     surfcellmax=0.2
    ... )
    >>> contour.vertices().shape  # (n_surface_leaves, 2)
    """

    def __init__(
        self,
        surface_def: SDFBase,
        origin,
        extent,
        rtol=1e-2,
        atol=1e-2,
        surfcellmax=1e-1,
    ):
        self.refinery = DualContourRefinery(surface_def, atol, rtol, surfcellmax)
        boundary = HyperRectangle(origin, extent)
        self.root = Cell(boundary, self.refinery.refine_data(boundary))
        adaptive_sampling(self.root, self.refinery)

        n_cells = sum(1 for _ in self.root.allcells())
        logger.info(
            f"Built dual contour tree with {n_cells} cells, "
            f"{len(self.leaves())} leaves, {len(self.surface_leaves())} surface "
            f"vertices, max depth {self.max_depth}"
        )

    @property
    def surface_def(self) -> SDFBase:
        return self.refinery.surface_def

    @property
    def max_depth(self) -> int:
        return max(cell.depth for cell in self.root.allleaves())

    def leaves(self) -> list[Cell]:
        return list(self.root.allleaves())

    def surface_leaves(self) -> list[Cell]:
        """Leaves carrying a finite vertex."""
        return [cell for cell in self.root.allleaves() if cell.data.has_vertex]

    def vertices(self) -> np.ndarray:
        """Finite leaf vertices, shape (n, dim)."""
        vertices = [cell.data.qef_min for cell in self.surface_leaves()]
        if not vertices:
            return np.empty((0, self.root.boundary.dim))
        return np.stack(vertices)

    def normals(self) -> np.ndarray:
        """Oracle normals at the finite leaf vertices, shape (n, dim)."""
        vertices = self.vertices()
        if vertices.shape[0] == 0:
            return np.empty_like(vertices)
        return np.stack([self.surface_def.normal(v) for v in vertices])

    def findleaf(self, point) -> Cell:
        return self.root.findleaf(point)

    def to_gus(self) -> gus.Vertices:
        """Leaf vertices as a gustaf point cloud with residuals and normals."""
        cells = self.surface_leaves()
        vp = gus.Vertices(vertices=self.vertices())
        vp.vertex_data["residual"] = np.array(
            [cell.data.residual for cell in cells]
        ).reshape(-1, 1)
        vp.vertex_data["normal"] = self.normals()
        return vp


def build(
    oracle: SDFBase, origin, extent, rtol=1e-2, atol=1e-2, surfcellmax=1e-1
) -> Cell:
    """Build the adaptive cell tree and return its root cell."""
    return HermiteDualContour(
        oracle, origin, extent, rtol=rtol, atol=atol, surfcellmax=surfcellmax
    ).root
