"""Convolution-based pixel interpolation at real-valued coordinates.

The sampler convolves a separable continuous kernel (see :mod:`kernels`) with
the image. There are three lookup modes:

- ``sample_bounded``: any coordinate inside ``[0, w-1] x [0, h-1]``. Kernel taps
  outside the image are dropped and the remaining weights are renormalized,
  first within each row and then across rows, so that truncated windows near
  the border neither darken nor brighten the result.
- ``sample_with_border_extension``: any coordinate at all. Taps outside the image
  are read through the bound :class:`BorderPolicy`, no renormalization.
- ``sample_fast``: only inside the fast bounds, where the whole window lies in the
  image. No checks, no renormalization.

All modes clamp the result into the configured value range.
"""

import numba
import numpy as np

from .border import BorderType, border_coordinate, border_get, create_border
from .errors import InvalidCoordinateError, MissingBorderError
from .image import check_image, default_value_range
from .kernels import create_kernel, kernel_weight


@numba.njit(error_model='numpy', cache=True)
def _clamp(value, vmin, vmax):
    if value > vmax:
        return vmax
    if value < vmin:
        return vmin
    return value


@numba.njit(cache=True)
def in_fast_bounds(width, height, radius, x, y):
    return x - radius >= 0 and y - radius >= 0 and x + radius < width and y + radius < height


@numba.njit(error_model='numpy', cache=True)
def sample_bounded(image, kind, a, radius, x, y, vmin, vmax):
    height, width = image.shape
    xx = int(np.floor(x))
    yy = int(np.floor(y))

    x0 = max(xx - radius, 0)
    x1 = min(xx + radius + 1, width)
    y0 = max(yy - radius, 0)
    y1 = min(yy + radius + 1, height)

    value = 0.0
    total_weight_y = 0.0
    for i in range(y0, y1):
        total_weight_x = 0.0
        value_x = 0.0
        for j in range(x0, x1):
            w = kernel_weight(kind, a, j - x)
            total_weight_x += w
            value_x += w * image[i, j]
        w = kernel_weight(kind, a, i - y)
        total_weight_y += w
        value += w * value_x / total_weight_x

    value /= total_weight_y
    return _clamp(value, vmin, vmax)


@numba.njit(error_model='numpy', cache=True)
def sample_border(image, kind, a, radius, mode, border_value, x, y, vmin, vmax):
    height, width = image.shape
    x = border_coordinate(x, width, radius, mode)
    y = border_coordinate(y, height, radius, mode)
    xx = int(np.floor(x))
    yy = int(np.floor(y))

    value = 0.0
    for i in range(yy - radius, yy + radius + 1):
        value_x = 0.0
        for j in range(xx - radius, xx + radius + 1):
            w = kernel_weight(kind, a, j - x)
            if w != 0.0:
                value_x += w * border_get(image, j, i, mode, border_value)
        value += kernel_weight(kind, a, i - y) * value_x

    return _clamp(value, vmin, vmax)


@numba.njit(error_model='numpy', cache=True)
def sample_fast(image, kind, a, radius, x, y, vmin, vmax):
    xx = int(np.floor(x))
    yy = int(np.floor(y))

    value = 0.0
    for i in range(yy - radius, yy + radius + 1):
        value_x = 0.0
        for j in range(xx - radius, xx + radius + 1):
            value_x += kernel_weight(kind, a, j - x) * image[i, j]
        value += kernel_weight(kind, a, i - y) * value_x

    return _clamp(value, vmin, vmax)


class PixelSampler:
    """Looks up the intensity of a single-band image at real-valued coordinates.

    A sampler holds a reference to the image it is bound to, so an instance
    must not be shared between threads working on different images. Kernels
    and border policies carry no per-call state.

    Args:
        kernel: A :class:`kernels.Kernel`.
        value_range: (min, max) that results are clamped to.
        border: A :class:`BorderPolicy` used by ``sample_with_border_extension``,
            or None if only renormalized border handling is wanted.
    """

    def __init__(self, kernel, value_range=(-np.inf, np.inf), border=None):
        self.kernel = kernel
        self.min, self.max = (float(v) for v in value_range)
        if self.min > self.max:
            raise ValueError(f"Empty value range: {value_range}")
        self.border = border
        self.image = None

    def bind(self, image):
        """Bind the sampler (and its border policy) to a 2D image."""
        image = check_image(image, multiband=False)
        if self.border is not None:
            self.border.bind(image)
        self.image = image

    @property
    def width(self):
        return self.image.shape[1]

    @property
    def height(self):
        return self.image.shape[0]

    def _check_bound(self):
        if self.image is None:
            raise RuntimeError("PixelSampler used before bind()")

    def sample_bounded(self, x, y):
        self._check_bound()
        if not (0 <= x <= self.width - 1 and 0 <= y <= self.height - 1):
            raise InvalidCoordinateError(
                f"Pixel out of bounds: ({x}, {y}) for image of size {self.width}x{self.height}")
        return sample_bounded(
            self.image, self.kernel.kind, self.kernel.param, self.kernel.radius,
            float(x), float(y), self.min, self.max)

    def sample_with_border_extension(self, x, y):
        self._check_bound()
        if self.border is None:
            raise MissingBorderError("Border extension requested but the sampler has no border")
        if not (np.isfinite(x) and np.isfinite(y)):
            raise InvalidCoordinateError(f"Non-finite coordinate: ({x}, {y})")
        return sample_border(
            self.image, self.kernel.kind, self.kernel.param, self.kernel.radius,
            int(self.border.border_type), self.border.value, float(x), float(y),
            self.min, self.max)

    def sample_fast(self, x, y):
        """Sample without any bounds checking.

        The caller must make sure that ``is_in_fast_bounds(x, y)`` holds.
        """
        return sample_fast(
            self.image, self.kernel.kind, self.kernel.param, self.kernel.radius,
            float(x), float(y), self.min, self.max)

    def is_in_fast_bounds(self, x, y):
        self._check_bound()
        return in_fast_bounds(self.width, self.height, self.kernel.radius, float(x), float(y))

    def fast_border_margin(self):
        """Margin (x, y) from the image edge beyond which ``sample_fast`` is safe."""
        return self.kernel.radius, self.kernel.radius

    def __repr__(self):
        return f'PixelSampler({self.kernel!r}, value_range=({self.min}, {self.max}), border={self.border!r})'


def create_sampler(
        dtype=np.uint8, interpolation='bilinear', border_type=BorderType.EXTENDED,
        border_value=0, value_range=None, bicubic_param=-0.5):
    """Create a :class:`PixelSampler` suited to images of the given pixel type.

    Args:
        dtype: Pixel type of the images to be sampled. Determines the default value range.
        interpolation: An :class:`kernels.Interpolation` or its name.
        border_type: A :class:`BorderType`. None or ``NORMALIZED`` creates a sampler
            without border extension.
        border_value: Fill value for ``BorderType.VALUE``.
        value_range: Overrides the (min, max) range derived from ``dtype``.
        bicubic_param: Parameter ``a`` of the bicubic kernel.
    """
    if value_range is None:
        value_range = default_value_range(dtype)
    kernel = create_kernel(interpolation, bicubic_param=bicubic_param)
    return PixelSampler(kernel, value_range, border=create_border(border_type, border_value))
