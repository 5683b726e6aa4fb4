from abc import ABC, abstractmethod
import torch
import numpy as np

import AdaptiveDualContour

import logging

logger = logging.getLogger(AdaptiveDualContour.__name__)


def _as_query(point) -> torch.Tensor:
    """Convert a single point into a (1, dim) float64 query tensor."""
    if isinstance(point, torch.Tensor):
        point = point.detach().cpu().numpy()
    return torch.tensor(np.asarray(point, dtype=np.float64).reshape(1, -1))


class SDFBase(ABC):
    """Abstract base class for implicit surfaces given as signed distance
    functions.

    This class is the oracle consumed by the contouring core. SDFs represent
    geometry as an implicit function that returns the signed distance from
    any query point to the nearest surface. Negative values indicate points
    inside the geometry, positive values indicate points outside, and zero
    indicates points on the surface.

    Two views of the same function are offered:

    - a batched view, ``sdf(queries)``, for torch tensors of shape (N, dim)
    - a point-wise view, ``sdf.distance(point)`` and ``sdf.normal(point)``,
      used by the edge crossing search and the QEF vertex placement

    Parameters
    ----------
    geometric_dim : int, default 3
        Geometric dimension of the SDF (2 or 3).

    Notes
    -----
    Subclasses must implement:
    - ``_compute(queries)``: Calculate SDF values for query points
    - ``_get_domain_bounds()``: Return the bounding box of the geometry

    The default ``normal`` is the normalized autograd gradient of
    ``_compute``. Subclasses with a closed-form normal may override it.

    Examples
    --------
    >>> from AdaptiveDualContour.sdf_primitives import SphereSDF
    >>> import torch
    >>>
    >>> sphere = SphereSDF(center=[0, 0, 0], radius=1.0)
    >>> points = torch.tensor([[0.0, 0.0, 0.0], [2.0, 0.0, 0.0]])
    >>> distances = sphere(points)
    >>> print(distances)  # [[-1.0], [1.0]] (inside, outside)
    >>> sphere.normal([2.0, 0.0, 0.0])  # array([1., 0., 0.])
    """

    def __init__(self, geometric_dim=3):
        self.geometric_dim = geometric_dim

    def __call__(self, queries: torch.Tensor) -> torch.Tensor:
        """Evaluate the SDF at given query points.

        Parameters
        ----------
        queries : torch.Tensor
            Query points of shape (N, 2) for 2D or (N, 3) for 3D.

        Returns
        -------
        torch.Tensor
            Signed distance values of shape (N, 1).

        Raises
        ------
        ValueError
            If queries have invalid shape.
        RuntimeError
            If SDF computation returns invalid output.
        """
        self._validate_input(queries)
        sdf_values = self._compute(queries)
        if sdf_values is None:
            raise RuntimeError("Invalid SDF output")
        return sdf_values.reshape(-1, 1)

    def _validate_input(self, queries: torch.Tensor):
        if queries.ndim != 2 or (queries.shape[1] not in [2, 3]):
            raise ValueError(
                f"Expected input of shape (N, 3) or (N, 2), got {queries.shape}"
            )

    def distance(self, point) -> float:
        """Signed distance at a single point."""
        with torch.no_grad():
            value = self(_as_query(point))
        return float(value.reshape(-1)[0])

    def normal(self, point) -> np.ndarray:
        """Unit surface normal (normalized SDF gradient) at a single point.

        Where the gradient vanishes or is undefined, a zero vector is
        returned.
        """
        query = _as_query(point).requires_grad_(True)
        with torch.enable_grad():
            value = self(query).sum()
            if not value.requires_grad:
                return np.zeros(query.shape[1])
            (grad,) = torch.autograd.grad(value, query, allow_unused=True)
        if grad is None:
            return np.zeros(query.shape[1])
        grad = grad.detach().cpu().numpy().reshape(-1)
        length = np.linalg.norm(grad)
        if not np.isfinite(length) or length == 0.0:
            logger.debug(f"SDF gradient vanishes at {point}")
            return np.zeros_like(grad)
        return grad / length

    @abstractmethod
    def _compute(self, queries: torch.Tensor) -> torch.Tensor:
        """Compute SDF values for query points.

        Parameters
        ----------
        queries : torch.Tensor
            Query points of shape (N, dim) where dim is 2 or 3.

        Returns
        -------
        torch.Tensor
            Signed distance values of shape (N, 1).
        """
        pass

    @abstractmethod
    def _get_domain_bounds(self) -> torch.Tensor:
        """Return the bounding box of the SDF's domain.

        Returns
        -------
        torch.Tensor
            Array of shape (2, dim) where the first row contains minimum
            coordinates and the second row contains maximum coordinates.
        """
        pass

    def __add__(self, other):
        return SummedSDF(self, other)

    def to2D(self, axes: list[int], offset=0.0):
        """
        Converts SDF to 2D

        :param axes: list of axes that will be used for the 2D
        """
        return SDF2D(self, axes, offset=offset)


class SDFfromCallable(SDFBase):
    """Wrap plain callables as an implicit surface.

    Parameters
    ----------
    distance_fn : callable
        Maps a float64 tensor of shape (N, dim) to N signed distances.
        Numpy outputs are accepted as well.
    normal_fn : callable, optional
        Maps a single point (np.ndarray of shape (dim,)) to a normal
        vector. It is normalized before being returned. If None, the
        autograd gradient of ``distance_fn`` is used, which requires
        ``distance_fn`` to be written in torch operations.
    bounds : array-like, optional
        Domain bounds of shape (2, dim).
    geometric_dim : int, default 2
    """

    def __init__(self, distance_fn, normal_fn=None, bounds=None, geometric_dim=2):
        super().__init__(geometric_dim=geometric_dim)
        self.distance_fn = distance_fn
        self.normal_fn = normal_fn
        self.bounds = bounds

    def _compute(self, queries):
        result = self.distance_fn(queries)
        if not isinstance(result, torch.Tensor):
            result = torch.as_tensor(np.asarray(result), dtype=queries.dtype)
        return result.reshape(-1, 1)

    def _get_domain_bounds(self):
        if self.bounds is None:
            raise ValueError("No domain bounds given for this SDF.")
        return torch.as_tensor(self.bounds, dtype=torch.float64)

    def normal(self, point):
        if self.normal_fn is None:
            return super().normal(point)
        n = np.asarray(self.normal_fn(np.asarray(point, dtype=np.float64)))
        n = n.astype(np.float64).reshape(-1)
        length = np.linalg.norm(n)
        if length == 0.0:
            return n
        return n / length


class SDF2D(SDFBase):
    """Planar slice of a 3D SDF, spanned by two of its axes."""

    def __init__(self, obj: SDFBase, axes: list[int], offset=0.0):
        super().__init__(geometric_dim=2)
        self.obj = obj
        assert (
            len(axes) == 2
        ), "List of axes must be of size 2 and needs to correspond to the 2D plane"
        self.axes = axes
        self.offset = offset

    def _compute(self, queries):
        queries_3D = (
            torch.zeros(
                (queries.shape[0], 3), dtype=queries.dtype, device=queries.device
            )
            + self.offset
        )
        queries_3D[:, self.axes[0]] = queries[:, 0]
        queries_3D[:, self.axes[1]] = queries[:, 1]
        result = self.obj._compute(queries_3D)
        return result

    def _get_domain_bounds(self):
        return self.obj._get_domain_bounds()[:, self.axes]


class SummedSDF(SDFBase):
    """Union of two SDFs (pointwise minimum)."""

    def __init__(self, obj1: SDFBase, obj2: SDFBase):
        super().__init__(geometric_dim=obj1.geometric_dim)
        self.obj1 = obj1
        self.obj2 = obj2

    def _compute(self, queries):
        result1 = self.obj1._compute(queries).reshape(-1, 1)
        result2 = self.obj2._compute(queries).reshape(-1, 1)
        return torch.minimum(result1, result2)

    def _get_domain_bounds(self):
        bounds1 = self.obj1._get_domain_bounds()
        bounds2 = self.obj2._get_domain_bounds()

        lower = torch.minimum(bounds1[0], bounds2[0])
        upper = torch.maximum(bounds1[1], bounds2[1])

        return torch.stack([lower, upper], dim=0)


class TransformedSDF(SDFBase):
    """
    Generic SDF wrapper that applies a transformation to the input queries.
    Transformation can be rotation, translation, or scaling.
    """

    def __init__(self, sdf: SDFBase, rotation=None, translation=None, scale=None):
        super().__init__(geometric_dim=sdf.geometric_dim)
        self.sdf = sdf
        self.rotation = rotation
        self.translation = translation
        self.scale = scale

    def _compute(self, queries: torch.Tensor) -> torch.Tensor:
        xyz = queries

        # inverse scale
        if self.scale is not None:
            xyz = xyz / self.scale

        if self.rotation is not None:
            xyz = xyz @ torch.as_tensor(self.rotation).to(xyz).T

        if self.translation is not None:
            xyz = xyz - torch.as_tensor(self.translation).to(xyz)

        sdf_vals = self.sdf._compute(xyz)

        # rescale distances if scaled
        if self.scale is not None:
            sdf_vals = sdf_vals * self.scale
        return sdf_vals

    def _get_domain_bounds(self) -> torch.Tensor:
        return self.sdf._get_domain_bounds()
