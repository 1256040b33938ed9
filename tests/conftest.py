"""Shared fixtures and helpers for lensresample tests."""

import numpy as np
import pytest

import lensresample


# =============================================================================
# Sample distortion coefficients
# =============================================================================

# (radial, t1, t2) with radial = k1, k2, k3, ...
RADIAL_TANGENTIAL_COEFFS = [
    # Moderate barrel distortion
    ([-0.336, 0.160, -0.046], 1.27e-4, -7.23e-5),
    # Pincushion distortion
    ([0.15, -0.08, 0.02], 0.0, 0.0),
    # Mild distortion
    ([-0.05, 0.01], 0.0, 0.0),
    # Noticeable tangential component
    ([-0.1], 2e-3, -1e-3),
]

# Coefficients for the image level tests, where the whole image must stay in the
# region where the distortion is invertible
IMAGE_DISTORTIONS = [
    ([-0.35, 0.08], 0.0, 0.0),  # barrel
    ([0.25, 0.05], 0.0, 0.0),  # pincushion
    ([-0.2], 1e-3, -5e-4),  # barrel with tangential
]

# Small image so that remapping in tests stays fast
IMSHAPE = (120, 160)

INTERPOLATIONS = list(lensresample.Interpolation)


# =============================================================================
# Helper functions
# =============================================================================

def make_intrinsics(radial=(), t1=0.0, t2=0.0, skew=0.0):
    """Intrinsics for an IMSHAPE sized image with the principal point near the center."""
    return lensresample.IntrinsicParameters(
        fx=200, fy=210, skew=skew, cx=81.5, cy=58.0, radial=radial, t1=t1, t2=t2)


def random_points_in_disk(n, r_max):
    r = np.sqrt(np.random.uniform(0, 1, n)) * r_max
    theta = np.random.uniform(-np.pi, np.pi, n)
    return np.stack([r * np.cos(theta), r * np.sin(theta)], axis=1)


def make_test_image(imshape=IMSHAPE, dtype=np.uint8, seed=0):
    """A smooth pattern with some noise, scaled to the value range of dtype."""
    rng = np.random.default_rng(seed)
    height, width = imshape[:2]
    ys, xs = np.mgrid[:height, :width]
    pattern = 0.5 + 0.25 * np.sin(xs / 7.0) + 0.2 * np.cos(ys / 5.0)
    if len(imshape) == 3:
        pattern = np.stack([np.roll(pattern, 3 * c, axis=1) for c in range(imshape[2])], axis=2)
    pattern = pattern + rng.uniform(-0.05, 0.05, pattern.shape)
    if np.issubdtype(dtype, np.integer):
        hi = min(np.iinfo(dtype).max, 1000)
        return np.round(pattern * hi).astype(dtype)
    return pattern.astype(dtype)


def image_border_polygon(imshape):
    """Points along the border of the image in pixel coordinates, in order."""
    height, width = imshape[:2]
    xs = np.arange(width, dtype=np.float64)
    ys = np.arange(height, dtype=np.float64)
    top = np.stack([xs, np.zeros_like(xs)], axis=1)
    right = np.stack([np.full_like(ys, width - 1), ys], axis=1)
    bottom = np.stack([xs[::-1], np.full_like(xs, height - 1)], axis=1)
    left = np.stack([np.zeros_like(ys), ys[::-1]], axis=1)
    return np.concatenate([top, right, bottom, left], axis=0)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def pinhole_intrinsics():
    """Intrinsics without any distortion."""
    return make_intrinsics()


@pytest.fixture
def barrel_intrinsics():
    """Intrinsics with barrel distortion."""
    return make_intrinsics(*IMAGE_DISTORTIONS[0])


@pytest.fixture
def step_image():
    """50x60 image of intensity 210 with the region from (20, 15) on set to 52."""
    image = np.full((60, 50), 210, np.float32)
    image[15:, 20:] = 52
    return image
