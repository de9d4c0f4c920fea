"""
Unit tests for pixel sampling.

Covers grid stride walking, outlier filtering (transparent, near-black,
near-white) and buffer validation.
"""

import numpy as np
import pytest

from conftest import make_rgba
from palettekit.services.colors.errors import ConfigurationError
from palettekit.services.colors.sampling import as_rgba_array, sample_pixels


class TestStrideWalk:
    """Test grid sampling"""

    def test_default_stride_visits_multiples_of_five(self):
        img = make_rgba(10, 10, (100, 150, 200))
        samples = sample_pixels(img)

        # (0,0), (5,0), (0,5), (5,5)
        assert samples.shape == (4, 3)
        assert samples.dtype == np.uint8
        assert np.all(samples == [100, 150, 200])

    def test_row_major_order(self):
        img = np.zeros((2, 2, 4), dtype=np.uint8)
        img[..., 3] = 255
        img[0, 0, :3] = (20, 0, 0)
        img[0, 1, :3] = (40, 0, 0)
        img[1, 0, :3] = (60, 0, 0)
        img[1, 1, :3] = (80, 0, 0)

        samples = sample_pixels(img, stride=1)

        assert samples[:, 0].tolist() == [20, 40, 60, 80]

    def test_partial_grid_includes_last_row_and_column(self):
        img = make_rgba(11, 7, (100, 100, 100))
        samples = sample_pixels(img, stride=5)

        # x in {0, 5}, y in {0, 5, 10}
        assert len(samples) == 6

    def test_flat_buffer_with_dimensions(self):
        img = make_rgba(5, 10, (90, 80, 70))
        samples = sample_pixels(img.tobytes(), width=10, height=5)

        assert samples.tolist() == [[90, 80, 70], [90, 80, 70]]


class TestOutlierFiltering:
    """Test exclusion of transparent, near-black and near-white pixels"""

    def test_excluded_pixels(self):
        img = np.array([[
            [100, 100, 100, 199],  # near-transparent
            [9, 9, 9, 255],        # near-black
            [246, 246, 246, 255],  # near-white
            [100, 100, 100, 255],  # kept
        ]], dtype=np.uint8)

        samples = sample_pixels(img, stride=1)

        assert samples.tolist() == [[100, 100, 100]]

    def test_threshold_boundaries_are_kept(self):
        img = np.array([[
            [100, 100, 100, 200],  # alpha exactly 200
            [10, 0, 0, 255],       # one channel not below 10
            [245, 250, 250, 255],  # one channel not above 245
        ]], dtype=np.uint8)

        samples = sample_pixels(img, stride=1)

        assert samples.tolist() == [[100, 100, 100], [10, 0, 0], [245, 250, 250]]

    def test_all_pixels_excluded_gives_empty_sample_set(self):
        img = make_rgba(20, 20, (255, 255, 255))
        samples = sample_pixels(img)

        assert samples.shape == (0, 3)


class TestBufferValidation:
    """Test malformed buffers are rejected"""

    def test_three_channel_buffer_rejected(self):
        with pytest.raises(ConfigurationError):
            sample_pixels(np.zeros((4, 4, 3), dtype=np.uint8))

    def test_flat_buffer_length_mismatch(self):
        with pytest.raises(ConfigurationError):
            sample_pixels(bytes(10), width=2, height=2)

    def test_flat_buffer_without_dimensions(self):
        with pytest.raises(ConfigurationError):
            as_rgba_array(bytes(16))

    def test_shape_dimension_mismatch(self):
        with pytest.raises(ConfigurationError):
            as_rgba_array(np.zeros((4, 4, 4), dtype=np.uint8), width=5, height=4)

    @pytest.mark.parametrize("stride", [0, -1, 2.5])
    def test_invalid_stride(self, stride):
        with pytest.raises(ConfigurationError):
            sample_pixels(make_rgba(4, 4, (100, 100, 100)), stride=stride)
