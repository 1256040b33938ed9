"""Axis-aligned bounds of an image after a point transform.

Both searches only look at the image border, which is O(width + height)
transform evaluations. For smooth, monotonic-enough transforms such as lens
distortion the extremes lie on the border. For transforms that fold or are
strongly non-monotonic along the edges the result is only an approximation.

Coordinates follow the pixel-center convention: the source image spans
``[0, width-1] x [0, height-1]``. The view adjustment scales are ratios of
extents in this convention (``bound.width / (width - 1)``), not of the edge
based ``bound.width / width``, so an undistorted camera gets the identity.
"""

import dataclasses
import logging

import numpy as np

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class RectangleBound:
    x0: float
    y0: float
    width: float
    height: float

    @property
    def x1(self):
        return self.x0 + self.width

    @property
    def y1(self):
        return self.y0 + self.height


def _edge_points(imshape):
    height, width = imshape[:2]
    xs = np.arange(width, dtype=np.float64)
    ys = np.arange(height, dtype=np.float64)
    top = np.stack([xs, np.zeros_like(xs)], axis=1)
    bottom = np.stack([xs, np.full_like(xs, height - 1)], axis=1)
    left = np.stack([np.zeros_like(ys), ys], axis=1)
    right = np.stack([np.full_like(ys, width - 1), ys], axis=1)
    return top, bottom, left, right


def bound_box(imshape, transform):
    """Smallest rectangle containing the transformed border of the image.

    Args:
        imshape: Source image shape as (height, width) or (height, width, channels).
        transform: A :class:`PointTransform` applied to source pixel coordinates.
    """
    edges = np.concatenate(_edge_points(imshape), axis=0)
    transformed = transform(edges)
    x0, y0 = np.nanmin(transformed, axis=0)
    x1, y1 = np.nanmax(transformed, axis=0)
    bound = RectangleBound(float(x0), float(y0), float(x1 - x0), float(y1 - y0))
    logger.debug(f'Full bounding box: {bound}')
    return bound


def bound_box_inside(imshape, transform):
    """Largest rectangle inside the transformed image, judged from its border.

    Starts from the transformed corners, then tightens the top edge to the
    lowest point of the transformed top row, the bottom edge to the highest
    point of the bottom row, and likewise for the left and right columns.
    Assumes the transform does not flip the image.

    Args:
        imshape: Source image shape as (height, width) or (height, width, channels).
        transform: A :class:`PointTransform` applied to source pixel coordinates.
    """
    height, width = imshape[:2]
    corners = transform(np.array(
        [[0, 0], [width - 1, 0], [0, height - 1]], dtype=np.float64))
    x0, y0 = corners[0]
    x1 = corners[1, 0]
    y1 = corners[2, 1]

    top, bottom, left, right = _edge_points(imshape)
    y0 = max(y0, np.nanmax(transform(top)[:, 1]))
    y1 = min(y1, np.nanmin(transform(bottom)[:, 1]))
    x0 = max(x0, np.nanmax(transform(left)[:, 0]))
    x1 = min(x1, np.nanmin(transform(right)[:, 0]))

    bound = RectangleBound(float(x0), float(y0), float(x1 - x0), float(y1 - y0))
    logger.debug(f'Inside bounding box: {bound}')
    return bound


def round_inside(bound, tol=1e-6):
    """Shrink the bound to integer pixel edges so no partial pixel strip remains.

    Edges closer than ``tol`` to an integer snap to it, so that round-off in the
    transform does not cost a whole pixel.
    """
    x0 = np.ceil(bound.x0 - tol)
    y0 = np.ceil(bound.y0 - tol)
    x1 = np.floor(bound.x1 + tol)
    y1 = np.floor(bound.y1 + tol)
    return RectangleBound(float(x0), float(y0), float(x1 - x0), float(y1 - y0))
