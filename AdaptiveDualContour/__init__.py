"""
AdaptiveDualContour - Adaptive Hermite Dual Contouring of Implicit Surfaces
===========================================================================

AdaptiveDualContour extracts a piecewise-linear approximation of an implicit
surface given by a signed distance function. The bounding region is
recursively subdivided into axis-aligned cells wherever the local geometry
cannot yet be captured by a single representative point. Every
surface-crossing leaf receives one vertex, placed by minimizing a quadratic
error function (QEF) built from Hermite data (edge crossings + normals).

Key Components
--------------

Implicit Surfaces
    - ``AdaptiveDualContour.SDF``: Abstract oracle base class and combinators
    - ``AdaptiveDualContour.sdf_primitives``: Circles, spheres, planes, boxes

Contouring Core
    - ``AdaptiveDualContour.geometry``: Axis-aligned boxes, corners and edges
    - ``AdaptiveDualContour.intersection``: Edge/surface crossing search
    - ``AdaptiveDualContour.qef``: Hermite data and QEF vertex placement
    - ``AdaptiveDualContour.refinement``: Cell refinement criterion
    - ``AdaptiveDualContour.dual_contour``: Cell tree and subdivision driver

Utilities
    - ``AdaptiveDualContour.utils``: Logging setup and tolerance helpers

Examples
--------
Contour a unit circle::

    from AdaptiveDualContour.sdf_primitives import CircleSDF
    from AdaptiveDualContour.dual_contour import HermiteDualContour

    circle = CircleSDF(center=[0, 0], radius=1.0)
    contour = HermiteDualContour(
        circle, origin=[-2, -2], extent=[4, 4], atol=0.05, rtol=0.05,
        surfcellmax=0.2
    )
    vertices = contour.vertices()
"""

import AdaptiveDualContour.utils

AdaptiveDualContour.utils.configure_logging()

__version__ = "0.1.0"
