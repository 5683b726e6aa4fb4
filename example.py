from AdaptiveDualContour.sdf_primitives import CircleSDF, CylinderSDF
from AdaptiveDualContour.dual_contour import HermiteDualContour
import numpy as np

circle = CircleSDF(center=[0.0, 0.0], radius=1.0)
contour = HermiteDualContour(
    circle,
    origin=[-2.0, -2.0],
    extent=[4.0, 4.0],
    rtol=0.05,
    atol=0.05,
    surfcellmax=0.2,
)

vertices = contour.vertices()
print(f"{vertices.shape[0]} vertices, max depth {contour.max_depth}")
print("max radial error:", np.abs(np.linalg.norm(vertices, axis=1) - 1.0).max())


# union of a circle and a slice through a cylinder
two_circles = CylinderSDF(point=(0.5, 0.0, 0.0), axis="z", radius=0.4).to2D(
    axes=[0, 1]
) + CircleSDF(center=[-0.5, 0.0], radius=0.4)
contour = HermiteDualContour(two_circles, origin=[-1.0, -1.0], extent=[2.0, 2.0])
contour.to_gus().show()
