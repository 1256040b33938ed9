"""View adjustment for lens undistortion.

Removing lens distortion moves the image content: barrel distortion pushes the
border outward, pincushion pulls it in. The undistorted image is therefore
rescaled and shifted by a similarity matrix ``A`` (adjusted pixel to
undistorted pixel) chosen by one of these policies:

- ``NONE``: no adjustment, the undistorted view uses the original pixel grid.
- ``FULL_VIEW``: the whole original image stays visible, at the price of
  regions without any correspondence in the source.
- ``ALL_INSIDE``: every pixel of the view has a correspondence in the source,
  at the price of cropping some of the original content.
"""

import enum
import logging

import numpy as np

from .bounding_box import bound_box, bound_box_inside, round_inside
from .errors import SingularAdjustmentError
from .lens import LensDistortionModel
from .transforms import HomographyTransform, SequenceTransform

logger = logging.getLogger(__name__)


class AdjustmentType(enum.Enum):
    NONE = "none"
    FULL_VIEW = "full_view"
    ALL_INSIDE = "all_inside"


def _check_imshape(imshape):
    height, width = imshape[:2]
    if height < 2 or width < 2:
        raise ValueError(f"Image must be at least 2x2 pixels, got shape {tuple(imshape)}")
    return height, width


def full_view(intrinsics, imshape, adj_to_distorted=True, return_adjusted_intrinsics=False):
    """Adjust the view so that the entire original image is visible after undistortion.

    Args:
        intrinsics: :class:`IntrinsicParameters` of the distorted camera.
        imshape: Image shape as (height, width) or (height, width, channels).
        adj_to_distorted: If True, the returned transform maps adjusted undistorted pixels
            to distorted pixels, as needed to remap an image. If False, the reverse.
        return_adjusted_intrinsics: Also return the intrinsics of the adjusted view.
    """
    height, width = _check_imshape(imshape)
    undistort = LensDistortionModel(intrinsics).undistort()
    bound = bound_box(imshape, undistort)

    scale = max(bound.width / (width - 1), bound.height / (height - 1))
    A = np.array([
        [scale, 0, bound.x0],
        [0, scale, bound.y0],
        [0, 0, 1]], dtype=np.float64)
    logger.debug(f'Full view adjustment: scale={scale}, offset=({bound.x0}, {bound.y0})')
    return adjustment_transform(
        intrinsics, A, adj_to_distorted=adj_to_distorted,
        return_adjusted_intrinsics=return_adjusted_intrinsics)


def all_inside(intrinsics, imshape, adj_to_distorted=True, return_adjusted_intrinsics=False):
    """Adjust the view so that every pixel of it has a correspondence in the original image.

    The view is as large as possible under that constraint. Arguments are as in
    :func:`full_view`.
    """
    height, width = _check_imshape(imshape)
    undistort = LensDistortionModel(intrinsics).undistort()
    # ensure there are no strips of invalid pixels along the border
    bound = round_inside(bound_box_inside(imshape, undistort))

    scale_x = bound.width / (width - 1)
    scale_y = bound.height / (height - 1)
    scale = min(scale_x, scale_y)

    # center the axis that got the smaller scale
    delta_x = bound.x0 + (scale_x - scale) * (width - 1) / 2
    delta_y = bound.y0 + (scale_y - scale) * (height - 1) / 2
    A = np.array([
        [scale, 0, delta_x],
        [0, scale, delta_y],
        [0, 0, 1]], dtype=np.float64)
    logger.debug(f'All inside adjustment: scale={scale}, offset=({delta_x}, {delta_y})')
    return adjustment_transform(
        intrinsics, A, adj_to_distorted=adj_to_distorted,
        return_adjusted_intrinsics=return_adjusted_intrinsics)


def invert_adjustment(adjustment_matrix):
    A = np.asarray(adjustment_matrix, dtype=np.float64)
    if not np.all(np.isfinite(A)) or abs(np.linalg.det(A)) < 1e-12:
        raise SingularAdjustmentError(f"Failed to invert adjustment matrix:\n{A}")
    try:
        return np.linalg.inv(A)
    except np.linalg.LinAlgError as e:
        raise SingularAdjustmentError(f"Failed to invert adjustment matrix:\n{A}") from e


def adjustment_transform(
        intrinsics, adjustment_matrix, adj_to_distorted=True, return_adjusted_intrinsics=False):
    """Combine the lens model of the camera with a view adjustment matrix.

    Args:
        intrinsics: :class:`IntrinsicParameters` of the distorted camera.
        adjustment_matrix: 3x3 matrix mapping adjusted pixels to undistorted pixels.
        adj_to_distorted: If True, return adjusted -> distorted (``A`` then distort),
            otherwise distorted -> adjusted (undistort then ``A^-1``).
        return_adjusted_intrinsics: Also return the intrinsics of the adjusted view,
            whose intrinsic matrix is ``A^-1 K``.

    Raises:
        SingularAdjustmentError: if the matrix cannot be inverted.
    """
    A_inv = invert_adjustment(adjustment_matrix)
    lens = LensDistortionModel(intrinsics)

    if adj_to_distorted:
        transform = SequenceTransform(HomographyTransform(adjustment_matrix), lens.distort())
    else:
        transform = SequenceTransform(lens.undistort(), HomographyTransform(A_inv))

    if return_adjusted_intrinsics:
        return transform, intrinsics.adjusted(A_inv)
    return transform


def undistortion_transform(
        adjustment, intrinsics, imshape, adj_to_distorted=True, return_adjusted_intrinsics=False):
    """Transform between the distorted image and the corrected view for an :class:`AdjustmentType`."""
    adjustment = AdjustmentType(adjustment)
    if adjustment is AdjustmentType.FULL_VIEW:
        return full_view(intrinsics, imshape, adj_to_distorted, return_adjusted_intrinsics)
    elif adjustment is AdjustmentType.ALL_INSIDE:
        return all_inside(intrinsics, imshape, adj_to_distorted, return_adjusted_intrinsics)

    lens = LensDistortionModel(intrinsics)
    transform = lens.distort() if adj_to_distorted else lens.undistort()
    if return_adjusted_intrinsics:
        return transform, intrinsics.without_distortion()
    return transform
