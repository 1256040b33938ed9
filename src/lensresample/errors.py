"""Exceptions and warnings raised by lensresample."""


class InvalidCoordinateError(ValueError):
    """A bounded lookup was requested outside of the image extent."""


class SingularAdjustmentError(RuntimeError):
    """The view adjustment matrix cannot be inverted."""


class UnsupportedImageError(TypeError):
    """The image dtype, dimensionality or band layout is not supported."""


class MissingBorderError(RuntimeError):
    """Border extension was requested but no border policy is available."""


class DistortionInversionWarning(RuntimeWarning):
    """Undistortion did not converge for some points; best estimates were returned."""
