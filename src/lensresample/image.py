"""Image conventions.

Images are plain numpy arrays. A single-band image has shape (height, width),
a multi-band image has shape (height, width, num_bands). Pixel (x, y) is
``image[y, x]``.
"""

import collections

import numpy as np

from .errors import UnsupportedImageError

SUPPORTED_DTYPES = (
    np.dtype(np.uint8),
    np.dtype(np.uint16),
    np.dtype(np.int16),
    np.dtype(np.int32),
    np.dtype(np.float32),
    np.dtype(np.float64),
)


def check_dtype(dtype):
    dtype = np.dtype(dtype)
    if dtype not in SUPPORTED_DTYPES:
        raise UnsupportedImageError(f"Unsupported pixel type: {dtype}")
    return dtype


def check_image(image, multiband=None):
    """Validate an image array and return it as a numpy array.

    Args:
        image: The image to check.
        multiband: If True, require a (H, W, C) array; if False, require (H, W);
            if None, accept either.

    Returns:
        The image as a numpy array (no copy is made).
    """
    image = np.asarray(image)
    check_dtype(image.dtype)
    if multiband is None:
        ok = image.ndim in (2, 3)
    elif multiband:
        ok = image.ndim == 3
    else:
        ok = image.ndim == 2
    if not ok:
        raise UnsupportedImageError(f"Unsupported image shape: {image.shape}")
    if image.ndim == 3 and image.shape[2] == 0:
        raise UnsupportedImageError("Multi-band image without bands")
    return image


def default_value_range(dtype):
    """Return the (min, max) range that interpolated values are clamped to."""
    dtype = check_dtype(dtype)
    if np.issubdtype(dtype, np.integer):
        info = np.iinfo(dtype)
        return float(info.min), float(info.max)
    return -np.inf, np.inf


def cast_to_dtype(values, dtype):
    """Convert float values to the given pixel type, rounding and saturating integers."""
    dtype = np.dtype(dtype)
    if np.issubdtype(dtype, np.integer):
        lo, hi = default_value_range(dtype)
        return np.clip(np.rint(values), lo, hi).astype(dtype)
    return values.astype(dtype)


class ImageType(collections.namedtuple('ImageType', ['dtype', 'num_bands'])):
    """Pixel type and band layout of images.

    ``num_bands`` is None for single-band (H, W) images and the number of bands
    for multi-band (H, W, C) images.
    """

    __slots__ = ()

    def __new__(cls, dtype, num_bands=None):
        dtype = check_dtype(dtype)
        if num_bands is not None:
            if int(num_bands) != num_bands or num_bands < 1:
                raise UnsupportedImageError(f"Invalid number of bands: {num_bands}")
            num_bands = int(num_bands)
        return super().__new__(cls, dtype, num_bands)

    @classmethod
    def of(cls, image):
        image = check_image(image)
        return cls(image.dtype, None if image.ndim == 2 else image.shape[2])
