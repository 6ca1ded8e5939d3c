"""Tests for image preprocessing into the model input layout."""
from __future__ import annotations

import numpy as np
import pytest
from PIL import Image

from facenet_lite.core.exceptions import ValidationError
from facenet_lite.core.preprocess import (
    normalize_pixels,
    preprocess_image,
    resize_square,
    to_input_buffer,
    to_input_tensor,
)


def _solid(color, size=(160, 160), mode="RGB") -> Image.Image:
    return Image.new(mode, size, color)


class TestNormalization:
    """Tests for the channel normalization."""

    def test_endpoints_are_exact(self):
        """Test 0 and 255 map to exactly -1.0 and 1.0."""
        values = np.array([0, 255], dtype=np.uint8)
        out = normalize_pixels(values)

        assert out.dtype == np.float32
        assert out[0] == np.float32(-1.0)
        assert out[1] == np.float32(1.0)

    def test_all_values_within_bounds(self):
        """Test every possible channel value lands in [-1, 1]."""
        out = normalize_pixels(np.arange(256, dtype=np.uint8))

        assert np.all(out >= -1.0)
        assert np.all(out <= 1.0)
        assert np.all(np.diff(out) > 0)

    def test_formula(self):
        """Test the mapping is value / 127.5 - 1 in float32."""
        out = normalize_pixels(np.array([64, 128, 200], dtype=np.uint8))
        expected = np.array([64, 128, 200], dtype=np.float32) / np.float32(
            127.5
        ) - np.float32(1.0)

        np.testing.assert_array_equal(out, expected)


class TestPreprocessImage:
    """Tests for resizing and buffer layout."""

    def test_black_image_buffer(self):
        """Test a 160x160 black image becomes 307200 bytes of -1.0."""
        buf = to_input_buffer(_solid((0, 0, 0)), 160)

        assert len(buf) == 307200
        floats = np.frombuffer(buf, dtype=np.float32)
        assert floats.size == 160 * 160 * 3
        assert np.all(floats == -1.0)

    def test_white_image_buffer(self):
        """Test a white image becomes all 1.0."""
        floats = np.frombuffer(to_input_buffer(_solid((255, 255, 255)), 160), np.float32)

        assert np.all(floats == 1.0)

    def test_buffer_uses_native_byte_order(self):
        """Test the raw bytes decode as native-order float32."""
        buf = to_input_buffer(_solid((0, 0, 0), size=(4, 4)), 4)

        assert buf[:4] == np.array([-1.0], dtype=np.float32).tobytes()

    @pytest.mark.parametrize("size", [(1, 1), (37, 91), (640, 480), (160, 160)])
    def test_buffer_size_law(self, size):
        """Test buffer size is 4 * side * side * 3 for any input size."""
        img = _solid((10, 20, 30), size=size)

        assert len(to_input_buffer(img, 160)) == 4 * 160 * 160 * 3
        assert len(to_input_buffer(img, 112)) == 4 * 112 * 112 * 3

    def test_channel_order_is_rgb(self):
        """Test channels are emitted in R, G, B order per pixel."""
        x = preprocess_image(_solid((255, 0, 127)), 160)

        assert x.shape == (160, 160, 3)
        assert x[0, 0, 0] == np.float32(1.0)
        assert x[0, 0, 1] == np.float32(-1.0)
        assert x[0, 0, 2] == np.float32(127) / np.float32(127.5) - np.float32(1.0)

    def test_deterministic(self, face_image):
        """Test repeated preprocessing yields identical bytes."""
        first = to_input_buffer(face_image, 160)
        second = to_input_buffer(face_image, 160)

        assert first == second

    def test_row_major_layout(self):
        """Test pixels are laid out row by row."""
        arr = np.zeros((2, 2, 3), dtype=np.uint8)
        arr[0, 1] = (255, 255, 255)
        x = preprocess_image(arr, 2)
        flat = x.reshape(-1)

        assert np.all(flat[0:3] == -1.0)
        assert np.all(flat[3:6] == 1.0)
        assert np.all(flat[6:] == -1.0)

    def test_tensor_has_batch_dimension(self, face_image):
        """Test input tensor shape and dtype."""
        t = to_input_tensor(face_image, 160)

        assert t.shape == (1, 160, 160, 3)
        assert t.dtype == np.float32
        assert t.flags["C_CONTIGUOUS"]

    def test_resize_output_size(self, face_image):
        """Test resize produces a square RGB image."""
        resized = resize_square(face_image, 160)

        assert resized.size == (160, 160)
        assert resized.mode == "RGB"


class TestInputKinds:
    """Tests for accepted and rejected image inputs."""

    def test_rgba_alpha_is_dropped(self):
        """Test RGBA images normalize on color only."""
        img = _solid((0, 0, 0, 0), mode="RGBA")
        x = preprocess_image(img, 160)

        assert x.shape == (160, 160, 3)
        assert np.all(x == -1.0)

    def test_grayscale_array(self):
        """Test a 2D uint8 array is expanded to three channels."""
        arr = np.full((50, 60), 255, dtype=np.uint8)
        x = preprocess_image(arr, 160)

        assert x.shape == (160, 160, 3)
        assert np.all(x == 1.0)

    def test_rgb_array_matches_pil(self, face_image):
        """Test numpy and PIL inputs of the same pixels agree."""
        arr = np.asarray(face_image, dtype=np.uint8)

        assert to_input_buffer(arr, 160) == to_input_buffer(face_image, 160)

    def test_rejects_float_array(self):
        """Test non-uint8 arrays are rejected."""
        with pytest.raises(ValidationError):
            preprocess_image(np.zeros((10, 10, 3), dtype=np.float32), 160)

    def test_rejects_wrong_channel_count(self):
        """Test arrays with 2 channels are rejected."""
        with pytest.raises(ValidationError):
            preprocess_image(np.zeros((10, 10, 2), dtype=np.uint8), 160)

    def test_rejects_empty_array(self):
        """Test arrays without pixels are rejected."""
        with pytest.raises(ValidationError):
            preprocess_image(np.zeros((0, 10, 3), dtype=np.uint8), 160)

    def test_rejects_none_and_other_types(self):
        """Test None and arbitrary objects are rejected."""
        with pytest.raises(ValidationError):
            preprocess_image(None, 160)
        with pytest.raises(ValidationError):
            preprocess_image("face.jpg", 160)

    def test_rejects_invalid_side(self, face_image):
        """Test side must be a positive integer."""
        with pytest.raises(ValidationError):
            preprocess_image(face_image, 0)
