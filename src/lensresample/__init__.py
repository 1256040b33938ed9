"""Lensresample: Sub-pixel image sampling and lens distortion removal.

This library interpolates images at real-valued coordinates with explicit
border handling, and remaps whole images through point transforms, most
importantly to remove radial-tangential lens distortion with a choice of how
the corrected view is framed.

Example:
    >>> from lensresample import AdjustmentType, BorderType, IntrinsicParameters
    >>> from lensresample import build_undistortion_remap
    >>> intr = IntrinsicParameters(fx=500, fy=500, cx=320, cy=240, radial=[-0.3, 0.1])
    >>> remapper = build_undistortion_remap(
    ...     AdjustmentType.ALL_INSIDE, BorderType.EXTENDED, intr, (480, 640))
    >>> corrected = remapper.apply(image)
"""

try:
    from ._version import version as __version__
except ImportError:
    __version__ = "0.0.0"

__all__ = [
    # Sampling
    "Interpolation",
    "BorderType",
    "BorderPolicy",
    "PixelSampler",
    "create_kernel",
    "create_sampler",
    "ImageType",
    # Transforms
    "PointTransform",
    "IdentityTransform",
    "HomographyTransform",
    "SequenceTransform",
    "FunctionTransform",
    # Lens distortion
    "IntrinsicParameters",
    "LensDistortionModel",
    "AdjustmentType",
    "RectangleBound",
    "full_view",
    "all_inside",
    "adjustment_transform",
    "undistortion_transform",
    # Remapping
    "ImageRemapper",
    "build_undistortion_remap",
    "remove_distortion",
    # Errors
    "InvalidCoordinateError",
    "SingularAdjustmentError",
    "UnsupportedImageError",
    "MissingBorderError",
    "DistortionInversionWarning",
]

from lensresample.adjustment import (
    AdjustmentType,
    adjustment_transform,
    all_inside,
    full_view,
    undistortion_transform,
)

from lensresample.border import BorderPolicy, BorderType
from lensresample.bounding_box import RectangleBound

from lensresample.errors import (
    DistortionInversionWarning,
    InvalidCoordinateError,
    MissingBorderError,
    SingularAdjustmentError,
    UnsupportedImageError,
)

from lensresample.image import ImageType
from lensresample.interpolation import PixelSampler, create_sampler
from lensresample.intrinsics import IntrinsicParameters
from lensresample.kernels import Interpolation, create_kernel
from lensresample.lens import LensDistortionModel

from lensresample.remap import (
    ImageRemapper,
    build_undistortion_remap,
    remove_distortion,
)

from lensresample.transforms import (
    FunctionTransform,
    HomographyTransform,
    IdentityTransform,
    PointTransform,
    SequenceTransform,
)

# Set the __module__ attribute of all exported functions/classes to this module,
# so that documentation refers to `lensresample.PixelSampler` rather than
# `lensresample.interpolation.PixelSampler`. The original module is kept in
# _module_original_ for resolving source links.
for _x in __all__:
    _obj = globals().get(_x)
    if _obj is not None and hasattr(_obj, "__module__"):
        _obj._module_original_ = _obj.__module__
        _obj.__module__ = __name__
