from AdaptiveDualContour.SDF import SDFBase
import torch


class CircleSDF(SDFBase):
    def __init__(self, center, radius):
        super().__init__(geometric_dim=2)
        self.center = torch.tensor(center, dtype=torch.float64)
        self.r = radius

    def _compute(self, queries: torch.Tensor) -> torch.Tensor:
        center = self.center.to(queries)
        return (torch.linalg.norm(queries - center, dim=1) - self.r).reshape(-1, 1)

    def _get_domain_bounds(self) -> torch.Tensor:
        return torch.stack([self.center - self.r, self.center + self.r], dim=0)


class SphereSDF(SDFBase):
    def __init__(self, center, radius):
        super().__init__()
        self.center = torch.tensor(center, dtype=torch.float64)
        self.r = radius

    def _compute(self, queries: torch.Tensor) -> torch.Tensor:
        center = self.center.to(queries)
        return (torch.linalg.norm(queries - center, dim=1) - self.r).reshape(-1, 1)

    def _get_domain_bounds(self) -> torch.Tensor:
        return torch.stack([self.center - self.r, self.center + self.r], dim=0)


class CylinderSDF(SDFBase):
    def __init__(self, point, axis, radius):
        super().__init__()
        self.point = torch.tensor(point, dtype=torch.float64)
        self.axis = axis
        self.r = radius

    def _compute(self, queries: torch.Tensor) -> torch.Tensor:
        diff = queries - self.point.to(queries)
        if self.axis in ("x", 0):
            dist = torch.sqrt(diff[:, 1] ** 2 + diff[:, 2] ** 2)
        elif self.axis in ("y", 1):
            dist = torch.sqrt(diff[:, 0] ** 2 + diff[:, 2] ** 2)
        elif self.axis in ("z", 2):
            dist = torch.sqrt(diff[:, 0] ** 2 + diff[:, 1] ** 2)
        else:
            raise ValueError("Axis must be 'x', 'y', or 'z'")
        return (dist - self.r).reshape(-1, 1)

    def _get_domain_bounds(self) -> torch.Tensor:
        return torch.tensor([[-1, -1, -1], [1, 1, 1]], dtype=torch.float64)


class PlaneSDF(SDFBase):
    """Half-space bounded by a plane (a line in 2D); the normal points outside."""

    def __init__(self, point, normal):
        super().__init__(geometric_dim=len(point))
        self.point = torch.tensor(point, dtype=torch.float64)
        self.normal_vec = torch.tensor(normal, dtype=torch.float64)
        self.normal_vec = self.normal_vec / torch.linalg.norm(self.normal_vec)

    def _compute(self, queries: torch.Tensor) -> torch.Tensor:
        return torch.matmul(
            queries - self.point.to(queries), self.normal_vec.to(queries)
        ).reshape(-1, 1)

    def _get_domain_bounds(self) -> torch.Tensor:
        dim = self.point.shape[0]
        return torch.stack(
            [-torch.ones(dim, dtype=torch.float64), torch.ones(dim, dtype=torch.float64)]
        )


class BoxSDF(SDFBase):
    """Exact signed distance to an axis-aligned box.

    Parameters
    ----------
    center : array-like
        Center of the box, 2D or 3D.
    half_widths : array-like
        Half of the box extent along each axis.
    """

    def __init__(self, center, half_widths):
        super().__init__(geometric_dim=len(center))
        self.center = torch.tensor(center, dtype=torch.float64)
        self.half_widths = torch.tensor(half_widths, dtype=torch.float64)

    def _compute(self, queries: torch.Tensor) -> torch.Tensor:
        q = torch.abs(queries - self.center.to(queries)) - self.half_widths.to(queries)
        outside = torch.linalg.norm(torch.clamp(q, min=0.0), dim=1)
        inside = torch.clamp(torch.max(q, dim=1).values, max=0.0)
        return (outside + inside).reshape(-1, 1)

    def _get_domain_bounds(self) -> torch.Tensor:
        return torch.stack(
            [self.center - self.half_widths, self.center + self.half_widths], dim=0
        )
