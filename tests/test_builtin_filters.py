"""
Tests for the built-in filter kernels.

Tests verify actual pixel values to ensure filters work correctly.
"""

import numpy as np
import pytest

from instafilter import ImageBuffer, Pipeline
from instafilter.filters import ParameterKey
from instafilter.filters.blur import edges, gaussian_blur, unsharp_mask
from instafilter.filters.color import invert, noir, sepia, vignette
from instafilter.filters.distortion import twirl_distortion
from instafilter.filters.stylize import crystallize, pixellate
from instafilter.filters.utils import float_to_uint8, uint8_to_float


@pytest.fixture
def gray_f32() -> np.ndarray:
    """Mid gray float pixels, 20x30."""
    return np.full((20, 30, 4), [0.5, 0.5, 0.5, 1.0], dtype=np.float32)


@pytest.fixture
def noise_f32() -> np.ndarray:
    """Reproducible random opaque pixels, 32x32."""
    pixels = np.random.default_rng(7).random((32, 32, 4), dtype=np.float32)
    pixels[:, :, 3] = 1.0
    return pixels


class TestConversion:
    """Tests for the float working representation."""

    def test_round_trip_exact(self):
        values = np.arange(256, dtype=np.uint8).reshape(16, 16)
        assert np.array_equal(float_to_uint8(uint8_to_float(values)), values)

    def test_clipping(self):
        values = np.array([-0.5, 0.0, 1.0, 1.5], dtype=np.float32)
        assert float_to_uint8(values).tolist() == [0, 0, 255, 255]


class TestColorFilters:
    """Tests for sepia, vignette, noir and invert."""

    def test_sepia_warms(self, gray_f32):
        result = sepia(gray_f32, sepia.descriptor.defaults())
        assert result[0, 0, 0] > result[0, 0, 1] > result[0, 0, 2]
        assert result[0, 0, 3] == 1.0

    def test_sepia_blend(self, gray_f32):
        full = sepia(gray_f32, {ParameterKey.INTENSITY: 1.0})
        half = sepia(gray_f32, {ParameterKey.INTENSITY: 0.5})
        np.testing.assert_allclose(half, (full + gray_f32) / 2, atol=1e-6)

    def test_vignette_darkens_corners(self, gray_f32):
        params = {ParameterKey.INTENSITY: 1.0, ParameterKey.RADIUS: 2.0}
        result = vignette(gray_f32, params)
        assert result[0, 0, 0] < result[10, 15, 0]
        assert result[10, 15, 0] == pytest.approx(0.5, abs=0.03)
        assert np.all(result[:, :, 3] == 1.0)

    def test_vignette_negative_brightens(self, gray_f32):
        params = {ParameterKey.INTENSITY: -1.0, ParameterKey.RADIUS: 1.0}
        assert vignette(gray_f32, params)[0, 0, 0] > 0.5

    def test_noir_is_gray(self, noise_f32):
        result = noir(noise_f32, {})
        assert np.array_equal(result[:, :, 0], result[:, :, 1])
        assert np.array_equal(result[:, :, 1], result[:, :, 2])

    def test_noir_increases_contrast(self):
        pixels = np.zeros((1, 2, 4), dtype=np.float32)
        pixels[0, 0, :3] = 0.3
        pixels[0, 1, :3] = 0.7
        pixels[:, :, 3] = 1.0
        result = noir(pixels, {})
        assert result[0, 1, 0] - result[0, 0, 0] > 0.4

    def test_invert(self, noise_f32):
        result = invert(noise_f32, {})
        np.testing.assert_allclose(result[:, :, :3], 1.0 - noise_f32[:, :, :3])
        assert np.array_equal(result[:, :, 3], noise_f32[:, :, 3])


class TestBlurFilters:
    """Tests for blur, sharpen and edges."""

    def test_blur_flat_stays_flat(self, gray_f32):
        result = gaussian_blur(gray_f32, {ParameterKey.RADIUS: 3.0})
        np.testing.assert_allclose(result, gray_f32, atol=1 / 255)

    def test_blur_smooths(self, noise_f32):
        result = gaussian_blur(noise_f32, {ParameterKey.RADIUS: 3.0})
        assert result[:, :, :3].std() < noise_f32[:, :, :3].std() / 2

    def test_unsharp_increases_contrast(self, noise_f32):
        params = {ParameterKey.RADIUS: 2.0, ParameterKey.INTENSITY: 1.0}
        result = unsharp_mask(noise_f32, params)
        assert result[:, :, :3].std() > noise_f32[:, :, :3].std()

    def test_unsharp_zero(self, noise_f32):
        params = {ParameterKey.RADIUS: 0.0, ParameterKey.INTENSITY: 0.0}
        assert np.array_equal(unsharp_mask(noise_f32, params), noise_f32)

    def test_edges_flat_is_black(self, gray_f32):
        result = edges(gray_f32, {ParameterKey.INTENSITY: 1.0})
        assert np.all(result[2:-2, 2:-2, :3] < 0.01)

    def test_edges_detects_step(self):
        pixels = np.zeros((20, 20, 4), dtype=np.float32)
        pixels[:, 10:, :3] = 1.0
        pixels[:, :, 3] = 1.0
        result = edges(pixels, {ParameterKey.INTENSITY: 1.0})
        assert result[10, 10, 0] > 0.5
        assert result[10, 3, 0] < 0.01


class TestStylizeFilters:
    """Tests for pixellate and crystallize."""

    def test_pixellate_blocks(self, noise_f32):
        params = {ParameterKey.SCALE: 8.0, ParameterKey.CENTER: (0.5, 0.5)}
        result = pixellate(noise_f32, params)
        # Center 16 lies in the middle of the block 12..20
        block = result[12:20, 12:20]
        assert np.allclose(block, block[0, 0])
        np.testing.assert_allclose(block[0, 0], noise_f32[12:20, 12:20].mean(axis=(0, 1)), atol=1e-5)

    def test_pixellate_small_scale(self, noise_f32):
        params = {ParameterKey.SCALE: 1.0, ParameterKey.CENTER: (0.5, 0.5)}
        assert np.array_equal(pixellate(noise_f32, params), noise_f32)

    def test_crystallize_reduces_colors(self, noise_f32):
        params = {ParameterKey.RADIUS: 8.0, ParameterKey.CENTER: (0.5, 0.5)}
        result = crystallize(noise_f32, params)
        colors = np.unique(result.reshape(-1, 4), axis=0)
        assert len(colors) < 64
        assert result.shape == noise_f32.shape

    def test_crystallize_deterministic(self, noise_f32):
        params = {ParameterKey.RADIUS: 6.0, ParameterKey.CENTER: (0.3, 0.6)}
        assert np.array_equal(crystallize(noise_f32, params), crystallize(noise_f32, params))

    def test_crystallize_uses_input_colors(self, noise_f32):
        params = {ParameterKey.RADIUS: 8.0, ParameterKey.CENTER: (0.5, 0.5)}
        result = crystallize(noise_f32, params)
        source_colors = {tuple(c) for c in noise_f32.reshape(-1, 4)}
        assert all(tuple(c) in source_colors for c in result.reshape(-1, 4))


class TestDistortionFilters:
    """Tests for the twirl."""

    def test_twirl_moves_pixels(self, noise_f32):
        params = {ParameterKey.RADIUS: 16.0, ParameterKey.CENTER: (0.5, 0.5)}
        result = twirl_distortion(noise_f32, params)
        assert result.shape == noise_f32.shape
        assert not np.allclose(result, noise_f32)
        assert result.min() >= 0.0 and result.max() <= 1.0

    def test_twirl_zero_radius(self, noise_f32):
        params = {ParameterKey.RADIUS: 0.0, ParameterKey.CENTER: (0.5, 0.5)}
        assert np.array_equal(twirl_distortion(noise_f32, params), noise_f32)


class TestThroughPipeline:
    """Kernels driven by the pipeline's intensity mapping."""

    def test_pixellate_scale_from_intensity(self, gradient_image):
        """Intensity 0.8 maps to blocks of 8 pixels."""
        result = Pipeline().apply('pixellate', gradient_image, 0.8).to_array()
        # The 64 pixel wide image is centered on a block, blocks start at 4
        assert np.all(result[0, 4:12] == result[0, 4])
        assert not np.all(result[0, 4:13] == result[0, 4])

    def test_alpha_preserved(self):
        pixels = np.zeros((10, 10, 4), dtype=np.uint8)
        pixels[:, :, 0] = 200
        pixels[:, :, 3] = 90
        source = ImageBuffer.from_array(pixels)
        pipeline = Pipeline()
        for name in ('sepia', 'noir', 'invert', 'vignette', 'edges'):
            result = pipeline.apply(name, source, 0.6).to_array()
            assert np.all(result[:, :, 3] == 90), name
