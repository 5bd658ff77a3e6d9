"""Tests for the preview module.

This module tests:
- Gamma encoding
- Display processing
- Quantization to 8 bits
- Image export with Pillow
- RMSE comparison
"""

import os
import tempfile

import numpy as np
import pytest
from PIL import Image as PILImage


class TestApplyGamma:
    """Test gamma encoding."""

    def test_gamma_1_no_change(self):
        """Test that gamma 1.0 returns the input unchanged."""
        from pathtracer.preview.display import apply_gamma

        image = np.array([[[0.1, 0.5, 0.9]]], dtype=np.float32)
        np.testing.assert_array_equal(apply_gamma(image, gamma=1.0), image)

    def test_gamma_2_is_sqrt(self):
        """Test that the default gamma is the square root."""
        from pathtracer.preview.display import apply_gamma

        image = np.array([[[0.25, 0.04, 0.81]]], dtype=np.float32)
        np.testing.assert_allclose(apply_gamma(image), [[[0.5, 0.2, 0.9]]], atol=1e-6)

    def test_gamma_brightens_midtones(self):
        """Test that gamma > 1 brightens mid-grey."""
        from pathtracer.preview.display import apply_gamma

        image = np.full((2, 2, 3), 0.5, dtype=np.float32)
        assert np.all(apply_gamma(image, gamma=2.2) > 0.5)

    def test_gamma_clamps_out_of_range(self):
        """Test negative and over-bright values are clamped before encoding."""
        from pathtracer.preview.display import apply_gamma

        image = np.array([[[-1.0, 0.0, 4.0]]], dtype=np.float32)
        result = apply_gamma(image)
        assert not np.any(np.isnan(result))
        np.testing.assert_allclose(result, [[[0.0, 0.0, 1.0]]])

    @pytest.mark.parametrize("gamma", [0.0, -2.0])
    def test_invalid_gamma(self, gamma):
        """Test non-positive gamma raises ValueError."""
        from pathtracer.preview.display import apply_gamma

        with pytest.raises(ValueError, match="Gamma must be positive"):
            apply_gamma(np.zeros((1, 1, 3), dtype=np.float32), gamma=gamma)


class TestProcessImageForDisplay:
    """Test the display pipeline."""

    def test_output_always_valid(self):
        """Test the output is in [0, 1] for arbitrary input."""
        from pathtracer.preview.display import process_image_for_display

        rng = np.random.default_rng(0)
        image = rng.uniform(-2.0, 5.0, (8, 8, 3)).astype(np.float32)
        for gamma in (1.0, 2.0, 2.2):
            result = process_image_for_display(image, gamma=gamma)
            assert result.dtype == np.float32
            assert result.min() >= 0.0
            assert result.max() <= 1.0

    def test_does_not_modify_input(self):
        """Test the input array is left untouched."""
        from pathtracer.preview.display import process_image_for_display

        image = np.full((2, 2, 3), 4.0, dtype=np.float32)
        process_image_for_display(image)
        assert np.all(image == 4.0)


class TestImageToUint8:
    """Test conversion to uint8."""

    def test_image_to_uint8_output_type(self):
        """Test that output is uint8 with the same shape."""
        from pathtracer.preview.export import image_to_uint8

        result = image_to_uint8(np.zeros((4, 6, 3), dtype=np.float32))
        assert result.dtype == np.uint8
        assert result.shape == (4, 6, 3)

    def test_image_to_uint8_black_and_white(self):
        """Test that 0 maps to 0 and 1 maps to 255."""
        from pathtracer.preview.export import image_to_uint8

        image = np.array([[[0.0, 0.0, 0.0], [1.0, 1.0, 1.0]]], dtype=np.float32)
        result = image_to_uint8(image)
        assert np.all(result[0, 0] == 0)
        assert np.all(result[0, 1] == 255)

    def test_image_to_uint8_truncates(self):
        """Test quantization truncates: linear 0.25 -> 0.5 -> floor(127.5) = 127."""
        from pathtracer.preview.export import image_to_uint8

        image = np.full((1, 1, 3), 0.25, dtype=np.float32)
        assert np.all(image_to_uint8(image) == 127)

    def test_image_to_uint8_linear(self):
        """Test gamma 1 quantizes the linear values directly."""
        from pathtracer.preview.export import image_to_uint8

        image = np.array([[[0.5, 0.999, 2.0]]], dtype=np.float32)
        result = image_to_uint8(image, gamma=1.0)
        np.testing.assert_array_equal(result[0, 0], [127, 254, 255])


class TestSaveImage:
    """Test file export."""

    @pytest.mark.parametrize("suffix", [".png", ".tiff"])
    def test_save_from_array(self, suffix):
        """Test saving a NumPy array in different formats."""
        from pathtracer.preview.export import save_image_from_array

        # Create a gradient image
        image = np.zeros((32, 64, 3), dtype=np.float32)
        image[:, :, 0] = np.linspace(0, 1, 64)  # Red gradient

        with tempfile.NamedTemporaryFile(suffix=suffix, delete=False) as f:
            filepath = f.name

        try:
            save_image_from_array(image, filepath)

            assert os.path.exists(filepath)

            with PILImage.open(filepath) as img:
                assert img.size == (64, 32)  # PIL size is (width, height)
                assert img.mode == "RGB"
                pixels = np.asarray(img)
            assert pixels[0, -1, 0] == 255
            assert pixels[0, 0, 0] == 0
        finally:
            if os.path.exists(filepath):
                os.remove(filepath)

    def test_save_renderer_image(self):
        """Test save_image writes the renderer's current image."""
        from pathtracer.core.progressive import ProgressiveRenderer
        from pathtracer.preview.export import save_image

        renderer = ProgressiveRenderer(10, 5)

        with tempfile.NamedTemporaryFile(suffix=".png", delete=False) as f:
            filepath = f.name

        try:
            save_image(renderer, filepath)
            with PILImage.open(filepath) as img:
                assert img.size == (10, 5)
                # Nothing rendered yet: all black
                assert np.asarray(img).max() == 0
        finally:
            if os.path.exists(filepath):
                os.remove(filepath)

    def test_unknown_extension_raises(self):
        """Test an unrecognized extension raises ValueError."""
        from pathtracer.preview.export import save_image_from_array

        with tempfile.TemporaryDirectory() as tmpdir:
            with pytest.raises(ValueError):
                save_image_from_array(
                    np.zeros((2, 2, 3), dtype=np.float32),
                    os.path.join(tmpdir, "image.notaformat"),
                )


class TestComputeRmse:
    """Test RMSE computation."""

    def test_rmse_identical_images(self):
        """Test that identical images have zero RMSE."""
        from pathtracer.preview.export import compute_rmse

        image = np.random.default_rng(1).random((8, 8, 3))
        assert compute_rmse(image, image) == 0.0

    def test_rmse_different_images(self):
        """Test RMSE of a constant offset equals the offset."""
        from pathtracer.preview.export import compute_rmse

        a = np.zeros((4, 4, 3), dtype=np.float32)
        b = np.full((4, 4, 3), 0.5, dtype=np.float32)
        assert abs(compute_rmse(a, b) - 0.5) < 1e-9

    def test_rmse_shape_mismatch_raises(self):
        """Test that mismatched shapes raise ValueError."""
        from pathtracer.preview.export import compute_rmse

        with pytest.raises(ValueError, match="shapes must match"):
            compute_rmse(np.zeros((4, 4, 3)), np.zeros((4, 5, 3)))
