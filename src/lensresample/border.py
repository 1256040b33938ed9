"""Pixel values for integer coordinates outside of the image.

A :class:`BorderPolicy` extends a bound image to the whole integer plane so
that a sampler can convolve its full kernel window even when part of the
window falls outside the image.
"""

import enum

import numba
import numpy as np

from .errors import MissingBorderError
from .image import check_image


class BorderType(enum.IntEnum):
    # Truncate the kernel window at the border and renormalize its weights.
    # This is handled by the sampler itself and has no BorderPolicy.
    NORMALIZED = 0
    # Replicate the closest edge pixel.
    EXTENDED = 1
    # Mirror about the edge pixel, without repeating it: -1 -> 1, w -> w - 2.
    REFLECT = 2
    # Periodic continuation: -1 -> w - 1, w -> 0.
    WRAP = 3
    # A constant value.
    VALUE = 4


@numba.njit(cache=True)
def border_index(i, n, mode):
    """Map the integer position ``i`` onto ``[0, n)`` according to ``mode``."""
    if 0 <= i < n:
        return i
    if mode == 1:
        if i < 0:
            return 0
        return n - 1
    elif mode == 2:
        if n == 1:
            return 0
        period = 2 * (n - 1)
        i = i % period
        if i < 0:
            i += period
        if i >= n:
            i = period - i
        return i
    else:
        i = i % n
        if i < 0:
            i += n
        return i


@numba.njit(error_model='numpy', cache=True)
def border_coordinate(x, n, radius, mode):
    """Move the real coordinate ``x`` near ``[0, n)`` without changing what a
    kernel window of the given radius reads around it.

    Far coordinates would otherwise overflow the integer window or lose their
    fractional part.
    """
    if mode == 2 and n > 1:
        period = 2.0 * (n - 1)
    elif mode == 3:
        period = float(n)
    else:
        # constant beyond the border: every tap of the window is outside
        if x < -radius - 1.0:
            return -radius - 1.0
        if x > n + radius:
            return float(n + radius)
        return x
    x = np.fmod(x, period)
    if x < 0.0:
        x += period
    return x


@numba.njit(cache=True)
def border_get(image, x, y, mode, value):
    height, width = image.shape
    if 0 <= x < width and 0 <= y < height:
        return float(image[y, x])
    if mode == 4:
        return value
    return float(image[border_index(y, height, mode), border_index(x, width, mode)])


class BorderPolicy:
    """Supplies a value for any integer pixel coordinate of a bound image.

    Args:
        border_type: A :class:`BorderType` other than ``NORMALIZED``.
        value: Fill value used by ``BorderType.VALUE``.
    """

    def __init__(self, border_type, value=0):
        border_type = BorderType(border_type)
        if border_type is BorderType.NORMALIZED:
            raise ValueError(
                "NORMALIZED border handling is done by the sampler, not by a border policy")
        self.border_type = border_type
        self.value = float(value)
        self.image = None

    def bind(self, image):
        self.image = check_image(image, multiband=False)

    def get(self, x, y):
        if self.image is None:
            raise MissingBorderError("BorderPolicy.get called before bind")
        return border_get(self.image, int(x), int(y), int(self.border_type), self.value)

    def __repr__(self):
        if self.border_type is BorderType.VALUE:
            return f'BorderPolicy({self.border_type.name}, value={self.value})'
        return f'BorderPolicy({self.border_type.name})'


def create_border(border_type, value=0):
    """Return a :class:`BorderPolicy`, or None for ``None`` and ``NORMALIZED``."""
    if border_type is None:
        return None
    border_type = BorderType(border_type)
    if border_type is BorderType.NORMALIZED:
        return None
    return BorderPolicy(border_type, value)
