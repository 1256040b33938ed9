"""Populate a destination image by sampling a source image through a point transform."""

import logging

import numba
import numpy as np

from .adjustment import AdjustmentType, undistortion_transform
from .border import BorderType
from .errors import UnsupportedImageError
from .image import ImageType, cast_to_dtype, check_image
from .interpolation import create_sampler, in_fast_bounds, sample_border, sample_bounded, sample_fast

logger = logging.getLogger(__name__)


@numba.njit(error_model='numpy', cache=True)
def _remap_band(
        src, coords, out, valid, kind, a, radius, has_border, border_mode, border_value,
        vmin, vmax, invalid_value):
    src_height, src_width = src.shape
    for i in range(out.shape[0]):
        for j in range(out.shape[1]):
            x = coords[i, j, 0]
            y = coords[i, j, 1]
            if not (np.isfinite(x) and np.isfinite(y)):
                out[i, j] = invalid_value
                valid[i, j] = False
            elif in_fast_bounds(src_width, src_height, radius, x, y):
                out[i, j] = sample_fast(src, kind, a, radius, x, y, vmin, vmax)
                valid[i, j] = True
            elif has_border:
                out[i, j] = sample_border(
                    src, kind, a, radius, border_mode, border_value, x, y, vmin, vmax)
                valid[i, j] = 0 <= x <= src_width - 1 and 0 <= y <= src_height - 1
            elif 0 <= x <= src_width - 1 and 0 <= y <= src_height - 1:
                out[i, j] = sample_bounded(src, kind, a, radius, x, y, vmin, vmax)
                valid[i, j] = True
            else:
                out[i, j] = invalid_value
                valid[i, j] = False


class ImageRemapper:
    """Sets every destination pixel to the source value at the transformed coordinate.

    Args:
        sampler: A :class:`PixelSampler`. If it has a border policy, destination pixels
            mapping outside the source get border-extended values, otherwise they get
            ``invalid_value``.
        transform: A :class:`PointTransform` from destination to source pixel coordinates.
        invalid_value: Value written where the source has no data.
        image_type: If given, an :class:`ImageType` that source images must match.
            Otherwise any supported pixel type and band layout is accepted.

    The sampler supplies the kernel, border policy and value range. It is not
    bound to the images passed to :meth:`apply`, so it can stay bound elsewhere.
    """

    def __init__(self, sampler, transform=None, invalid_value=0, image_type=None):
        self.sampler = sampler
        self.transform = transform
        self.invalid_value = float(invalid_value)
        self.image_type = image_type

    def set_model(self, transform):
        self.transform = transform

    def _check_images(self, src, dst_shape, dst):
        src = check_image(src)
        if self.image_type is not None and ImageType.of(src) != self.image_type:
            raise UnsupportedImageError(
                f"Expected image of type {self.image_type}, got {ImageType.of(src)}")

        if dst is not None:
            dst = check_image(dst)
            if dst.dtype != src.dtype:
                raise UnsupportedImageError(
                    f"Source and destination pixel types differ: {src.dtype} vs {dst.dtype}")
            if dst.ndim != src.ndim or (src.ndim == 3 and dst.shape[2] != src.shape[2]):
                raise UnsupportedImageError(
                    f"Band layout mismatch: source {src.shape}, destination {dst.shape}")
            dst_shape = dst.shape[:2]
        elif dst_shape is None:
            dst_shape = src.shape[:2]
        return src, tuple(dst_shape[:2]), dst

    def apply(self, src, dst=None, dst_shape=None, return_validity_mask=False):
        """Remap ``src`` into ``dst``.

        Args:
            src: Source image, (H, W) or (H, W, C).
            dst: Destination image with the same dtype and band count, written in place.
                If None, a new image is allocated.
            dst_shape: (height, width) of the allocated destination when ``dst`` is None.
                Defaults to the source size.
            return_validity_mask: Also return a boolean (height, width) mask that is True
                where the source coordinate lies inside the source image.

        Returns:
            The destination image, and the validity mask if requested.
        """
        if self.transform is None:
            raise RuntimeError("ImageRemapper has no transform, call set_model() first")
        src, dst_shape, dst = self._check_images(src, dst_shape, dst)

        height, width = dst_shape
        ys, xs = np.mgrid[:height, :width]
        grid = np.stack([xs.ravel(), ys.ravel()], axis=1).astype(np.float64)
        coords = np.ascontiguousarray(self.transform(grid).reshape(height, width, 2))

        bands = [src] if src.ndim == 2 else [src[..., c] for c in range(src.shape[2])]
        kernel = self.sampler.kernel
        border = self.sampler.border
        has_border = border is not None
        border_mode = int(border.border_type) if has_border else 0
        border_value = border.value if has_border else 0.0

        out = np.empty((height, width, len(bands)), dtype=np.float64)
        valid = np.empty((height, width), dtype=np.bool_)
        for c, band in enumerate(bands):
            _remap_band(
                band, coords, out[..., c], valid, kernel.kind, kernel.param,
                kernel.radius, has_border, border_mode, border_value,
                self.sampler.min, self.sampler.max, self.invalid_value)
        logger.debug(
            f'Remapped {len(bands)} band(s) to {width}x{height}, '
            f'{np.count_nonzero(valid)} pixels with valid source')

        result = cast_to_dtype(out if src.ndim == 3 else out[..., 0], src.dtype)
        if dst is None:
            dst = result
        else:
            dst[...] = result

        if return_validity_mask:
            return dst, valid
        return dst


def build_undistortion_remap(
        adjustment, border_type, intrinsics, imshape, dtype=np.uint8, num_bands=None,
        interpolation='bilinear', invalid_value=0, return_adjusted_intrinsics=False):
    """Create an :class:`ImageRemapper` that removes lens distortion.

    For viewing, ``BorderType.VALUE`` (or None, which leaves unobserved pixels at
    ``invalid_value``) is the natural choice. For further image processing
    ``BorderType.EXTENDED`` avoids the hard edges a constant fill creates.

    Args:
        adjustment: An :class:`AdjustmentType` selecting the view.
        border_type: A :class:`BorderType` for source pixels outside the image, or None
            to use renormalized sampling and write ``invalid_value`` outside the image.
        intrinsics: :class:`IntrinsicParameters` of the distorted camera.
        imshape: Shape of the distorted image, (height, width) or (height, width, channels).
        dtype: Pixel type of the images.
        num_bands: None for single-band (H, W) images, or the number of bands of (H, W, C)
            images.
        interpolation: An :class:`Interpolation` or its name.
        invalid_value: Value for destination pixels that have no source data.
        return_adjusted_intrinsics: Also return the intrinsics of the corrected view.

    Raises:
        UnsupportedImageError: for unsupported pixel types or band counts.
        SingularAdjustmentError: if the view adjustment is degenerate.
    """
    image_type = ImageType(dtype, num_bands)

    transform, adjusted = undistortion_transform(
        adjustment, intrinsics, imshape, adj_to_distorted=True, return_adjusted_intrinsics=True)
    sampler = create_sampler(image_type.dtype, interpolation=interpolation, border_type=border_type)
    remapper = ImageRemapper(sampler, transform, invalid_value=invalid_value, image_type=image_type)
    logger.debug(f'Built undistortion remap: {AdjustmentType(adjustment).name}, {sampler!r}')

    if return_adjusted_intrinsics:
        return remapper, adjusted
    return remapper


def remove_distortion(
        image, intrinsics, adjustment=AdjustmentType.FULL_VIEW, border_type=BorderType.VALUE,
        interpolation='bilinear', return_adjusted_intrinsics=False):
    """Undistort a single image in one call. See :func:`build_undistortion_remap`."""
    image = check_image(image)
    result = build_undistortion_remap(
        adjustment, border_type, intrinsics, image.shape, dtype=image.dtype,
        num_bands=None if image.ndim == 2 else image.shape[2], interpolation=interpolation,
        return_adjusted_intrinsics=return_adjusted_intrinsics)
    if return_adjusted_intrinsics:
        remapper, adjusted = result
        return remapper.apply(image), adjusted
    return result.apply(image)
