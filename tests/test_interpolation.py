"""Tests for the pixel sampler."""

import numpy as np
import pytest
import scipy.ndimage

import lensresample
from lensresample import BorderType, create_sampler
from conftest import INTERPOLATIONS


def bound_sampler(image, interp='bilinear', border_type=BorderType.EXTENDED, **kwargs):
    sampler = create_sampler(image.dtype, interpolation=interp, border_type=border_type, **kwargs)
    sampler.bind(image)
    return sampler


def random_fast_coords(sampler, n=200):
    rx, ry = sampler.fast_border_margin()
    xs = np.random.uniform(rx, sampler.width - 1 - rx, n)
    ys = np.random.uniform(ry, sampler.height - 1 - ry, n)
    return [(x, y) for x, y in zip(xs, ys) if sampler.is_in_fast_bounds(x, y)]


class TestLatticePoints:
    """Sampling exactly at a pixel reproduces the pixel."""

    @pytest.mark.parametrize("interp", INTERPOLATIONS)
    def test_step_image(self, interp, step_image):
        sampler = bound_sampler(step_image, interp)
        assert sampler.sample_bounded(20, 15) == pytest.approx(52, abs=1e-9)
        assert sampler.sample_bounded(19, 14) == pytest.approx(210, abs=1e-9)
        assert sampler.sample_bounded(49, 59) == pytest.approx(52, abs=1e-9)
        assert sampler.sample_bounded(0, 0) == pytest.approx(210, abs=1e-9)

    @pytest.mark.parametrize("interp", INTERPOLATIONS)
    def test_all_pixels(self, interp):
        image = np.random.randint(0, 255, (9, 13)).astype(np.uint8)
        sampler = bound_sampler(image, interp, border_type=None)
        for y in range(image.shape[0]):
            for x in range(image.shape[1]):
                assert sampler.sample_bounded(x, y) == pytest.approx(image[y, x], abs=1e-9)


class TestModesAgree:
    """Bounded, border-extended and fast sampling agree inside the fast bounds."""

    @pytest.mark.parametrize("interp", INTERPOLATIONS)
    @pytest.mark.parametrize("border_type", [
        BorderType.EXTENDED, BorderType.REFLECT, BorderType.WRAP, BorderType.VALUE])
    def test_agreement(self, interp, border_type):
        image = np.random.uniform(0, 100, (20, 30)).astype(np.float32)
        sampler = bound_sampler(image, interp, border_type)
        coords = random_fast_coords(sampler)
        assert len(coords) > 50
        for x, y in coords:
            fast = sampler.sample_fast(x, y)
            assert sampler.sample_bounded(x, y) == pytest.approx(fast, abs=1e-4)
            assert sampler.sample_with_border_extension(x, y) == pytest.approx(fast, abs=1e-4)

    def test_bilinear_matches_scipy(self):
        image = np.random.uniform(0, 1, (25, 35))
        sampler = bound_sampler(image, 'bilinear')
        coords = np.array(random_fast_coords(sampler))
        expected = scipy.ndimage.map_coordinates(image, [coords[:, 1], coords[:, 0]], order=1)
        actual = [sampler.sample_fast(x, y) for x, y in coords]
        np.testing.assert_allclose(actual, expected, atol=1e-9)

    def test_bilinear_bounded_matches_scipy_near_border(self):
        """Within [0, w-1] bilinear renormalization reduces to plain bilinear interpolation."""
        image = np.random.uniform(0, 1, (10, 12))
        sampler = bound_sampler(image, 'bilinear', border_type=None)
        xs = np.random.uniform(0, 11, 100)
        ys = np.random.uniform(0, 9, 100)
        expected = scipy.ndimage.map_coordinates(image, [ys, xs], order=1)
        actual = [sampler.sample_bounded(x, y) for x, y in zip(xs, ys)]
        np.testing.assert_allclose(actual, expected, atol=1e-9)


class TestBoundedSampling:
    @pytest.mark.parametrize("interp", INTERPOLATIONS)
    def test_constant_image_near_border(self, interp):
        """Renormalization keeps unit gain where the kernel window is truncated."""
        image = np.full((8, 10), 100, np.uint8)
        sampler = bound_sampler(image, interp, border_type=None)
        for x, y in [(0, 0), (0.3, 0.2), (9, 7), (8.5, 0.5), (0.1, 6.9), (4.5, 7)]:
            assert sampler.sample_bounded(x, y) == pytest.approx(100, abs=1e-9)

    def test_output_within_range(self):
        """Bicubic overshoots at sharp edges; results are clamped into the value range."""
        image = np.zeros((16, 16), np.uint8)
        image[:, 8:] = 255
        image[::3, ::3] = 255
        sampler = bound_sampler(image, 'bicubic', border_type=None)
        xs = np.random.uniform(0, 15, 500)
        ys = np.random.uniform(0, 15, 500)
        values = np.array([sampler.sample_bounded(x, y) for x, y in zip(xs, ys)])
        assert values.min() >= 0
        assert values.max() <= 255

    def test_custom_value_range(self):
        image = np.random.uniform(-10, 10, (12, 12))
        sampler = bound_sampler(image, 'bilinear', value_range=(-1, 1))
        for x, y in zip(np.random.uniform(0, 11, 100), np.random.uniform(0, 11, 100)):
            assert -1 <= sampler.sample_bounded(x, y) <= 1

    @pytest.mark.parametrize("x, y", [(-0.1, 0), (0, -1e-6), (9.01, 3), (3, 7.5), (np.nan, 1)])
    def test_out_of_bounds(self, x, y):
        sampler = bound_sampler(np.zeros((8, 10), np.uint8))
        with pytest.raises(lensresample.InvalidCoordinateError):
            sampler.sample_bounded(x, y)


class TestBorderExtensionSampling:
    def test_value_far_outside(self):
        image = np.random.randint(0, 255, (10, 10)).astype(np.uint8)
        sampler = bound_sampler(image, 'bicubic', BorderType.VALUE, border_value=5)
        assert sampler.sample_with_border_extension(-100.3, -100.6) == pytest.approx(5)
        assert sampler.sample_with_border_extension(1e6, 3.2) == pytest.approx(5)

    def test_extended_far_outside(self):
        image = np.random.randint(0, 255, (10, 10)).astype(np.uint8)
        sampler = bound_sampler(image, 'bilinear', BorderType.EXTENDED)
        assert sampler.sample_with_border_extension(-100.3, -50.7) == pytest.approx(image[0, 0])
        assert sampler.sample_with_border_extension(30.5, 9.0) == pytest.approx(image[9, 9])

    @pytest.mark.parametrize("interp", INTERPOLATIONS)
    @pytest.mark.parametrize("border_type", [
        BorderType.EXTENDED, BorderType.REFLECT, BorderType.WRAP, BorderType.VALUE])
    @pytest.mark.parametrize("x, y", [
        (1e30, 3.2), (-1e30, 3.2), (1e19, -1e19), (4.5, -1e30), (-1e18 - 0.5, 1e300)])
    def test_huge_coordinates(self, interp, border_type, x, y):
        image = np.full((10, 10), 77, np.uint8)
        sampler = bound_sampler(image, interp, border_type, border_value=5)
        expected = 5 if border_type is BorderType.VALUE else 77
        assert sampler.sample_with_border_extension(x, y) == pytest.approx(expected)

    @pytest.mark.parametrize("interp", INTERPOLATIONS)
    @pytest.mark.parametrize("border_type, period", [
        (BorderType.WRAP, 10), (BorderType.REFLECT, 18)])
    def test_periodic_borders_keep_fraction(self, interp, border_type, period):
        """Shifting by whole periods, even far away, does not change the result."""
        image = np.random.uniform(0, 100, (10, 10))
        sampler = bound_sampler(image, interp, border_type)
        shift = period * 2.0 ** 40
        for x, y in [(3.25, 4.5), (-0.75, 8.625), (9.5, 0.25)]:
            expected = sampler.sample_with_border_extension(x, y)
            assert sampler.sample_with_border_extension(x + shift, y - shift) == pytest.approx(
                expected, abs=1e-9)

    def test_half_pixel_outside_blends_with_value(self):
        image = np.full((6, 6), 100.0)
        sampler = bound_sampler(image, 'bilinear', BorderType.VALUE, border_value=0)
        assert sampler.sample_with_border_extension(-0.5, 3) == pytest.approx(50)

    def test_requires_border(self):
        sampler = bound_sampler(np.zeros((5, 5)), border_type=BorderType.NORMALIZED)
        assert sampler.border is None
        with pytest.raises(lensresample.MissingBorderError):
            sampler.sample_with_border_extension(1, 1)


class TestFastBounds:
    def test_bilinear_fast_bounds(self):
        sampler = bound_sampler(np.zeros((10, 10), np.uint8), 'bilinear')
        assert sampler.fast_border_margin() == (1, 1)
        assert sampler.is_in_fast_bounds(1, 1)
        assert sampler.is_in_fast_bounds(8.99, 5)
        assert not sampler.is_in_fast_bounds(0.99, 5)
        assert not sampler.is_in_fast_bounds(9, 5)
        assert not sampler.is_in_fast_bounds(5, -3)

    def test_bicubic_margin(self):
        sampler = bound_sampler(np.zeros((10, 10), np.uint8), 'bicubic')
        assert sampler.fast_border_margin() == (2, 2)
        assert sampler.is_in_fast_bounds(2, 7.5)
        assert not sampler.is_in_fast_bounds(1.5, 5)


class TestSamplerSetup:
    def test_default_value_ranges(self):
        assert create_sampler(np.uint8).min == 0
        assert create_sampler(np.uint8).max == 255
        assert create_sampler(np.int16).min == -32768
        assert create_sampler(np.float32).max == np.inf

    def test_unbound(self):
        with pytest.raises(RuntimeError):
            create_sampler(np.uint8).sample_bounded(0, 0)

    @pytest.mark.parametrize("image", [
        np.zeros((4, 4), np.int64),
        np.zeros((4, 4, 3), np.uint8),
        np.zeros(4, np.uint8),
    ])
    def test_unsupported_images(self, image):
        with pytest.raises(lensresample.UnsupportedImageError):
            create_sampler(np.uint8).bind(image)

    def test_rebind(self):
        sampler = create_sampler(np.uint8)
        sampler.bind(np.full((5, 5), 10, np.uint8))
        assert sampler.sample_bounded(2, 2) == 10
        sampler.bind(np.full((3, 7), 20, np.uint8))
        assert sampler.sample_bounded(6, 2) == 20
        assert sampler.border.image is sampler.image
