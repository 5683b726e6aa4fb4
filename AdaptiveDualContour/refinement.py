"""
Refinement Criterion
====================

``DualContourRefinery`` bundles the implicit surface with the tolerances of
a contouring run and offers the two operations the subdivision driver
consumes:

- ``refine_data(boundary)``: build the CellData of a freshly created box
- ``needs_refinement(cell)``: decide whether a cell must be split further

Decision table, with ``w`` the smallest width of the cell:

=====================  ===================================================
CellData               refine if
=====================  ===================================================
any                    never once ``w <= atol`` (size floor)
finite / ``+inf``      ``w > surfcellmax`` or residual not close to zero
empty                  some corner has ``|d| <=`` half the cell diagonal
``NaN``                ``w > surfcellmax``
=====================  ===================================================
"""

import logging

import numpy as np

import AdaptiveDualContour
from AdaptiveDualContour.geometry import HyperRectangle
from AdaptiveDualContour.qef import CellData, compute_cell_data
from AdaptiveDualContour.SDF import SDFBase
from AdaptiveDualContour.utils import isapprox

logger = logging.getLogger(AdaptiveDualContour.__name__)


class DualContourRefinery:
    """Refinement policy of adaptive Hermite dual contouring.

    Parameters
    ----------
    surface_def : SDFBase
        Implicit surface oracle.
    atol : float, default 1e-2
        Absolute tolerance. Also the minimum cell width: cells this small
        are never split.
    rtol : float, default 1e-2
        Relative tolerance for the residual and the geometric tests.
    surfcellmax : float, default 1e-1
        Cells wider than this are split whenever they carry any Hermite
        data, regardless of the residual.

    Raises
    ------
    ValueError
        If ``atol`` is not positive or ``rtol``/``surfcellmax`` is negative.
    """

    def __init__(
        self, surface_def: SDFBase, atol=1e-2, rtol=1e-2, surfcellmax=1e-1
    ):
        if not atol > 0:
            raise ValueError(f"atol must be positive, got {atol}")
        if not rtol >= 0:
            raise ValueError(f"rtol must be non-negative, got {rtol}")
        if not surfcellmax >= 0:
            raise ValueError(f"surfcellmax must be non-negative, got {surfcellmax}")
        self.surface_def = surface_def
        self.atol = float(atol)
        self.rtol = float(rtol)
        self.surfcellmax = float(surfcellmax)

    def refine_data(self, boundary: HyperRectangle) -> CellData:
        return compute_cell_data(boundary, self.surface_def, self.rtol, self.atol)

    def needs_refinement(self, cell) -> bool:
        widths = cell.boundary.widths
        min_width = widths.min()
        if min_width <= self.atol:
            return False

        data = cell.data
        if data.is_empty:
            # a surface may hide in the cell without any corner sign change
            half_diagonal = np.linalg.norm(widths) / 2
            if data.corner_values is None:
                values = [
                    self.surface_def.distance(v) for v in cell.boundary.vertices()
                ]
            else:
                values = data.corner_values
            return bool(np.any(np.abs(values) <= half_diagonal))

        if data.is_indeterminate:
            return bool(min_width > self.surfcellmax)

        if min_width > self.surfcellmax:
            return True
        if not isapprox(data.residual, 0.0, self.rtol, self.atol):
            logger.debug(
                f"Refining {cell.boundary}: residual {data.residual} not within tolerance"
            )
            return True
        return False
