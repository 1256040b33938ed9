"""Point transforms that add or remove lens distortion for a camera."""

import logging
import warnings

import numpy as np

from . import distortion
from .errors import DistortionInversionWarning
from .transforms import PointTransform

logger = logging.getLogger(__name__)


def pixel_to_normalized(points, intrinsics):
    p = intrinsics
    out = np.empty_like(points)
    out[:, 1] = (points[:, 1] - p.cy) / p.fy
    out[:, 0] = (points[:, 0] - p.cx - p.skew * out[:, 1]) / p.fx
    return out


def normalized_to_pixel(points, intrinsics):
    p = intrinsics
    out = np.empty_like(points)
    out[:, 0] = p.fx * points[:, 0] + p.skew * points[:, 1] + p.cx
    out[:, 1] = p.fy * points[:, 1] + p.cy
    return out


class _LensTransform(PointTransform):
    def __init__(self, intrinsics, pixel_in, pixel_out):
        self.intrinsics = intrinsics
        self.pixel_in = pixel_in
        self.pixel_out = pixel_out
        self._radial = intrinsics.radial_array

    def _to_normalized(self, points):
        return pixel_to_normalized(points, self.intrinsics) if self.pixel_in else points

    def _from_normalized(self, points):
        return normalized_to_pixel(points, self.intrinsics) if self.pixel_out else points

    def __repr__(self):
        return (f'{type(self).__name__}({self.intrinsics!r}, '
                f'pixel_in={self.pixel_in}, pixel_out={self.pixel_out})')


class DistortTransform(_LensTransform):
    """Undistorted (ideal pinhole) coordinates to distorted (observed) coordinates."""

    def apply(self, points):
        p = self.intrinsics
        pn = distortion.distort_points(self._to_normalized(points), self._radial, p.t1, p.t2)
        return self._from_normalized(pn)

    def inverse(self):
        return UndistortTransform(self.intrinsics, pixel_in=self.pixel_out, pixel_out=self.pixel_in)


class UndistortTransform(_LensTransform):
    """Distorted (observed) coordinates to undistorted (ideal pinhole) coordinates.

    The inversion is iterative. Points for which it does not converge get the
    best available estimate and a :class:`DistortionInversionWarning` is issued.
    Use :meth:`apply_with_status` to get the per-point convergence flags instead.
    """

    def __init__(self, intrinsics, pixel_in, pixel_out, n_iter_fixed_point=20, n_iter_newton=10,
                 tol=1e-10):
        super().__init__(intrinsics, pixel_in, pixel_out)
        self.n_iter_fixed_point = n_iter_fixed_point
        self.n_iter_newton = n_iter_newton
        self.tol = tol

    def apply_with_status(self, points):
        p = self.intrinsics
        pun, converged = distortion.undistort_points(
            self._to_normalized(np.asarray(points, dtype=np.float64)), self._radial, p.t1, p.t2,
            n_iter_fixed_point=self.n_iter_fixed_point, n_iter_newton=self.n_iter_newton,
            tol=self.tol, return_converged=True)
        return self._from_normalized(pun), converged

    def apply(self, points):
        result, converged = self.apply_with_status(points)
        n_failed = converged.shape[0] - np.count_nonzero(converged)
        if n_failed:
            logger.debug(f'Undistortion did not converge for {n_failed}/{converged.shape[0]} points')
            warnings.warn(
                f'Undistortion did not converge for {n_failed} points, '
                'returning best estimates', DistortionInversionWarning, stacklevel=3)
        return result

    def inverse(self):
        return DistortTransform(self.intrinsics, pixel_in=self.pixel_out, pixel_out=self.pixel_in)


class LensDistortionModel:
    """Creates transforms to and from distorted image coordinates for one camera.

    Each transform can take and produce either pixel coordinates or normalized
    camera coordinates, selected with ``pixel_in`` and ``pixel_out``.

    Args:
        intrinsics: :class:`IntrinsicParameters` of the camera.
    """

    def __init__(self, intrinsics):
        self.intrinsics = intrinsics

    def distort(self, pixel_in=True, pixel_out=True):
        return DistortTransform(self.intrinsics, pixel_in, pixel_out)

    def undistort(self, pixel_in=True, pixel_out=True, **kwargs):
        """Transform removing distortion; ``kwargs`` configure the iterative inversion."""
        return UndistortTransform(self.intrinsics, pixel_in, pixel_out, **kwargs)
