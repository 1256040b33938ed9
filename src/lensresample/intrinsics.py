"""Intrinsic camera parameters."""

import dataclasses

import numpy as np


@dataclasses.dataclass(frozen=True)
class IntrinsicParameters:
    """Pinhole intrinsics with radial-tangential lens distortion.

    Pixel coordinates relate to normalized camera coordinates (xn, yn) by::

        u = fx * xn + skew * yn + cx
        v = fy * yn + cy

    Attributes:
        fx, fy: Focal lengths in pixels.
        skew: Skew between the image axes.
        cx, cy: Principal point in pixels.
        radial: Radial distortion coefficients k1, k2, ... multiplying r^2, r^4, ...
        t1, t2: Tangential distortion coefficients (OpenCV's p1 and p2).
    """

    fx: float
    fy: float
    skew: float = 0.0
    cx: float = 0.0
    cy: float = 0.0
    radial: tuple = ()
    t1: float = 0.0
    t2: float = 0.0

    def __post_init__(self):
        for name in ('fx', 'fy', 'skew', 'cx', 'cy', 't1', 't2'):
            object.__setattr__(self, name, float(getattr(self, name)))
        object.__setattr__(self, 'radial', tuple(float(k) for k in np.ravel(self.radial)))

    @classmethod
    def from_matrix(cls, intrinsic_matrix, radial=(), t1=0.0, t2=0.0):
        """Build parameters from a 3x3 intrinsic matrix."""
        K = np.asarray(intrinsic_matrix, dtype=np.float64)
        if K.shape != (3, 3):
            raise ValueError(f"Expected a 3x3 matrix, got shape {K.shape}")
        K = K / K[2, 2]
        return cls(
            fx=K[0, 0], fy=K[1, 1], skew=K[0, 1], cx=K[0, 2], cy=K[1, 2],
            radial=radial, t1=t1, t2=t2)

    @classmethod
    def from_opencv(cls, intrinsic_matrix, dist_coeffs):
        """Build parameters from an OpenCV style (k1, k2, p1, p2[, k3]) vector."""
        d = np.ravel(np.asarray(dist_coeffs, dtype=np.float64))
        if len(d) not in (4, 5):
            raise ValueError("Only the 4 and 5 parameter OpenCV models are supported")
        radial = (d[0], d[1]) + tuple(d[4:5])
        return cls.from_matrix(intrinsic_matrix, radial=radial, t1=d[2], t2=d[3])

    @property
    def intrinsic_matrix(self):
        return np.array([
            [self.fx, self.skew, self.cx],
            [0, self.fy, self.cy],
            [0, 0, 1]], dtype=np.float64)

    @property
    def radial_array(self):
        return np.array(self.radial, dtype=np.float64)

    @property
    def has_distortion(self):
        return any(k != 0 for k in self.radial) or self.t1 != 0 or self.t2 != 0

    def without_distortion(self):
        return dataclasses.replace(self, radial=(), t1=0.0, t2=0.0)

    def adjusted(self, adjustment_matrix):
        """Intrinsics of the camera whose image is the given 3x3 transform of this one.

        The new intrinsic matrix is ``adjustment_matrix @ K``. The result describes
        an undistorted view, so it carries no distortion coefficients.
        """
        K_adj = np.asarray(adjustment_matrix, dtype=np.float64) @ self.intrinsic_matrix
        return IntrinsicParameters.from_matrix(K_adj)
