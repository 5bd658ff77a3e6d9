"""Unit tests for the per-stream random sampler.

Tests cover:
- Uniform draws stay in range
- Seeding reproducibility and stream independence
- Streams are distinct sequences rather than lagged copies
- Ball, disk and hemisphere sampling bounds
- Input validation
"""

import numpy as np
import pytest
import taichi as ti


class TestUniformDraws:
    """Tests for random_float / random_range via sample_uniform."""

    def test_uniform_in_unit_interval(self):
        """Test draws lie in [0, 1) and cover the interval."""
        from pathtracer.core.sampler import sample_uniform

        samples = sample_uniform(stream=0, count=10000)
        assert samples.shape == (10000,)
        assert samples.dtype == np.float32
        assert samples.min() >= 0.0
        assert samples.max() < 1.0
        assert abs(float(samples.mean()) - 0.5) < 0.02

    def test_uniform_custom_range(self):
        """Test draws respect a custom [low, high) interval."""
        from pathtracer.core.sampler import sample_uniform

        samples = sample_uniform(stream=3, count=2000, low=-1.0, high=1.0)
        assert samples.min() >= -1.0
        assert samples.max() < 1.0

    def test_zero_count_returns_empty(self):
        """Test that a zero sample count yields an empty array."""
        from pathtracer.core.sampler import sample_uniform

        assert sample_uniform(stream=0, count=0).shape == (0,)


class TestSeeding:
    """Tests for stream seeding."""

    def test_same_seed_same_sequence(self):
        """Test reseeding with the same seed repeats the sequence."""
        from pathtracer.core.sampler import sample_uniform, seed_streams

        seed_streams(1234)
        first = sample_uniform(stream=5, count=64)
        seed_streams(1234)
        second = sample_uniform(stream=5, count=64)
        np.testing.assert_array_equal(first, second)

    def test_different_seeds_differ(self):
        """Test different seeds give different sequences."""
        from pathtracer.core.sampler import sample_uniform, seed_streams

        seed_streams(1)
        first = sample_uniform(stream=0, count=64)
        seed_streams(2)
        second = sample_uniform(stream=0, count=64)
        assert not np.array_equal(first, second)

    def test_streams_are_independent(self):
        """Test drawing from one stream does not advance another."""
        from pathtracer.core.sampler import get_stream_state, sample_uniform, seed_streams

        seed_streams(7)
        before = get_stream_state(1)
        sample_uniform(stream=0, count=100)
        assert get_stream_state(1) == before

        adjacent_a = sample_uniform(stream=1, count=32)
        adjacent_b = sample_uniform(stream=2, count=32)
        assert not np.array_equal(adjacent_a, adjacent_b)

    def test_stream_increments_distinct_and_odd(self):
        """Test every stream selects its own odd increment."""
        from pathtracer.core.sampler import MAX_STREAMS, get_stream_increment, seed_streams

        seed_streams(42)
        increments = [get_stream_increment(s) for s in range(MAX_STREAMS)]
        assert all(inc % 2 == 1 for inc in increments)
        assert len(set(increments)) == MAX_STREAMS

    def test_negative_seed_rejected(self):
        """Test that negative seeds raise ValueError."""
        from pathtracer.core.sampler import seed_streams

        with pytest.raises(ValueError, match="non-negative"):
            seed_streams(-1)


class TestValidation:
    """Tests for sample_uniform argument checks."""

    def test_stream_out_of_range(self):
        """Test stream indices outside [0, MAX_STREAMS) are rejected."""
        from pathtracer.core.sampler import MAX_STREAMS, sample_uniform

        with pytest.raises(ValueError):
            sample_uniform(stream=MAX_STREAMS, count=1)
        with pytest.raises(ValueError):
            sample_uniform(stream=-1, count=1)

    def test_negative_count(self):
        """Test negative counts are rejected."""
        from pathtracer.core.sampler import sample_uniform

        with pytest.raises(ValueError):
            sample_uniform(stream=0, count=-5)


class TestDirectionSampling:
    """Tests for ball, disk and hemisphere sampling."""

    def test_random_in_unit_sphere_bounds(self):
        """Test all ball samples have length < 1 and fill the volume."""
        from pathtracer.core.sampler import random_in_unit_sphere

        n = 2000
        results = ti.Vector.field(3, dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            ti.loop_config(serialize=True)
            for k in range(n):
                results[k] = random_in_unit_sphere(0)

        test_kernel()
        points = results.to_numpy()
        lengths = np.linalg.norm(points, axis=1)
        assert np.all(lengths < 1.0)
        # Uniform in the solid ball: P(|p| < 0.5) = 1/8
        inner_fraction = float(np.mean(lengths < 0.5))
        assert 0.08 < inner_fraction < 0.17

    def test_random_unit_vector_length(self):
        """Test unit vectors have length 1."""
        from pathtracer.core.sampler import random_unit_vector

        n = 500
        results = ti.Vector.field(3, dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            ti.loop_config(serialize=True)
            for k in range(n):
                results[k] = random_unit_vector(1)

        test_kernel()
        lengths = np.linalg.norm(results.to_numpy(), axis=1)
        np.testing.assert_allclose(lengths, 1.0, atol=1e-5)

    def test_random_in_hemisphere_orientation(self):
        """Test hemisphere samples lie on the normal's side."""
        from pathtracer.core.sampler import random_in_hemisphere, vec3

        n = 500
        dots = ti.field(dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            ti.loop_config(serialize=True)
            for k in range(n):
                normal = vec3(0.0, 0.0, -1.0)
                dots[k] = ti.math.dot(random_in_hemisphere(2, normal), normal)

        test_kernel()
        assert np.all(dots.to_numpy() >= 0.0)

    def test_random_in_unit_disk_bounds(self):
        """Test disk samples lie in the xy-plane inside the unit circle."""
        from pathtracer.core.sampler import random_in_unit_disk

        n = 1000
        results = ti.Vector.field(3, dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            ti.loop_config(serialize=True)
            for k in range(n):
                results[k] = random_in_unit_disk(4)

        test_kernel()
        points = results.to_numpy()
        assert np.all(points[:, 2] == 0.0)
        assert np.all(points[:, 0] ** 2 + points[:, 1] ** 2 < 1.0)


class TestStreamIndependence:
    """Tests that row streams are distinct sequences, not lagged replicas."""

    @pytest.mark.parametrize("seed", [42, 2024])
    def test_no_stream_is_shifted_copy(self, seed):
        """Test no stream's opening draws reappear later in any row stream.

        Draws are 24-bit values, so two consecutive draws form a 48-bit
        window. A stream that replays another with a lag would contain the
        other's opening window at that lag.
        """
        from pathtracer.core.sampler import sample_uniform, seed_streams

        rows = 225
        count = 40000

        seed_streams(seed)
        draws = [sample_uniform(stream=s, count=count) for s in range(rows)]

        def windows(samples):
            ints = (samples.astype(np.float64) * 16777216.0).astype(np.int64)
            return (ints[:-1] << 24) | ints[1:]

        openings = np.array([windows(d[:2])[0] for d in draws])
        assert len(np.unique(openings)) == rows

        for s, samples in enumerate(draws):
            later = windows(samples)[1:]
            assert not np.isin(later, openings).any(), f"stream {s} replays another stream"

    def test_lagged_streams_differ(self):
        """Test a stream offset by a lag does not match a neighbouring stream."""
        from pathtracer.core.sampler import sample_uniform, seed_streams

        seed_streams(42)
        leader = sample_uniform(stream=27, count=1000)
        for lag in (0, 1, 100, 31611):
            seed_streams(42)
            follower = sample_uniform(stream=199, count=lag + 1000)[lag:]
            assert not np.array_equal(follower, leader)
