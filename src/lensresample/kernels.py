"""Continuous 1D interpolation kernels with finite discrete support.

A kernel of radius ``r`` is evaluated on the ``2r + 1`` integer positions
``floor(x) - r, ..., floor(x) + r`` around a real coordinate ``x``. For every
kernel here the weights over that window sum to one (partition of unity) and,
at integer coordinates, all weight falls on the pixel itself, so sampling a
lattice point returns the stored value.

The weight function itself lives in :func:`kernel_weight`, a numba function
dispatching on the kernel kind, so that the same code serves the Python-level
``compute`` and the jitted sampling loops.
"""

import enum

import numba
import numpy as np

NEAREST = 0
BILINEAR = 1
BICUBIC = 2


class Interpolation(enum.Enum):
    NEAREST_NEIGHBOR = "nearest"
    BILINEAR = "bilinear"
    BICUBIC = "bicubic"


@numba.njit(error_model='numpy', cache=True)
def kernel_weight(kind, a, t):
    """Weight of the kernel ``kind`` at offset ``t``; ``a`` is the bicubic parameter."""
    if kind == NEAREST:
        # half-open so that exactly one tap of the window gets the weight
        if -0.5 < t <= 0.5:
            return 1.0
        return 0.0
    t = abs(t)
    if kind == BILINEAR:
        if t < 1.0:
            return 1.0 - t
        return 0.0
    # Keys cubic convolution
    if t <= 1.0:
        return ((a + 2.0) * t - (a + 3.0)) * t * t + 1.0
    if t < 2.0:
        return ((a * t - 5.0 * a) * t + 8.0 * a) * t - 4.0 * a
    return 0.0


@numba.njit(error_model='numpy', cache=True)
def _kernel_weights(kind, a, offsets):
    out = np.empty(offsets.shape[0], dtype=np.float64)
    for i in range(offsets.shape[0]):
        out[i] = kernel_weight(kind, a, offsets[i])
    return out


class Kernel:
    """Base class of the interpolation kernels.

    Attributes:
        radius: Number of taps on each side of ``floor(x)``.
        width: Total number of taps, ``2 * radius + 1``.
    """

    kind = None
    radius = 0
    param = 0.0

    @property
    def width(self):
        return 2 * self.radius + 1

    def compute(self, offset):
        """Evaluate the kernel at a scalar offset or an array of offsets."""
        offset_arr = np.asarray(offset, dtype=np.float64)
        weights = _kernel_weights(self.kind, self.param, offset_arr.reshape(-1))
        if offset_arr.ndim == 0:
            return float(weights[0])
        return weights.reshape(offset_arr.shape)

    def window(self, x):
        """Integer positions of the support window around coordinate ``x``."""
        x_floor = int(np.floor(x))
        return np.arange(x_floor - self.radius, x_floor + self.radius + 1)

    def __repr__(self):
        return f'{type(self).__name__}()'


class NearestNeighborKernel(Kernel):
    kind = NEAREST
    radius = 1


class BilinearKernel(Kernel):
    kind = BILINEAR
    radius = 1


class BicubicKernel(Kernel):
    """Keys cubic convolution kernel.

    Args:
        a: Free parameter of the kernel. -0.5 gives the classic Catmull-Rom like
            cubic with third order accuracy.
    """

    kind = BICUBIC
    radius = 2

    def __init__(self, a=-0.5):
        self.param = float(a)

    def __repr__(self):
        return f'BicubicKernel(a={self.param})'


def create_kernel(interpolation=Interpolation.BILINEAR, bicubic_param=-0.5):
    """Create the kernel for an :class:`Interpolation` value or its string name."""
    interpolation = Interpolation(interpolation)
    if interpolation is Interpolation.NEAREST_NEIGHBOR:
        return NearestNeighborKernel()
    elif interpolation is Interpolation.BILINEAR:
        return BilinearKernel()
    return BicubicKernel(bicubic_param)
