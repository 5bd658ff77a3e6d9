"""Independent random streams for Monte Carlo sampling.

Every unit of parallel work owns one stream: a 32-bit generator state kept
in a Taichi field and advanced only by that unit. The renderer parallelizes
over image rows, so row j draws exclusively from stream j. Because no two
tasks ever share a state, a fixed seed reproduces the same image regardless
of how the rows are scheduled.

The generator is 32-bit PCG (LCG state transition, RXS-M-XS output
permutation) with stream selection: every stream has its own odd increment,
so no two streams walk the same state cycle and no stream replays a shifted
copy of another. The top 24 bits of each output become a float in [0, 1).

Seeds are expanded with numpy's SeedSequence into per-stream starting
states and a base stream id; stream k uses increment 2 * (base + k) + 1, so
the increments are distinct by construction.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.sampler import random_in_unit_sphere, seed_streams
    >>> seed_streams(1234)
    >>> @ti.kernel
    ... def sample() -> ti.math.vec3:
    ...     return random_in_unit_sphere(0)
"""

import logging

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import length_squared, unit_vector

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

# One stream per image row (matches the maximum image height)
MAX_STREAMS = 2048

# Seed used when no explicit seed has been provided
DEFAULT_SEED = 42

# Upper bound on rejection-sampling attempts. Acceptance is >= 52% per
# attempt, so running out is practically impossible.
MAX_REJECTION_ATTEMPTS = 64

# PCG 32-bit LCG multiplier
_PCG_MULTIPLIER = 747796405

# PCG RXS-M-XS output permutation multiplier
_TEMPER_MULTIPLIER = 277803737

# 2^-24: maps a 24-bit integer into [0, 1)
_INV_2_24 = 1.0 / 16777216.0

_stream_state = ti.field(dtype=ti.u32, shape=MAX_STREAMS)
_stream_increment = ti.field(dtype=ti.u32, shape=MAX_STREAMS)

_seeded = False


def seed_streams(seed: int = DEFAULT_SEED) -> None:
    """Seed every random stream from a single integer seed.

    Args:
        seed: Non-negative integer seed. The same seed always yields the
            same per-stream draw sequences.

    Raises:
        ValueError: If seed is negative.
    """
    global _seeded

    if seed < 0:
        raise ValueError(f"Seed must be non-negative, got {seed}")

    words = np.random.SeedSequence(seed).generate_state(MAX_STREAMS + 1, dtype=np.uint32)
    base = np.uint64(words[MAX_STREAMS] >> np.uint32(1))
    stream_ids = base + np.arange(MAX_STREAMS, dtype=np.uint64)
    increments = ((stream_ids << np.uint64(1)) | np.uint64(1)) & np.uint64(0xFFFFFFFF)

    _stream_state.from_numpy(words[:MAX_STREAMS])
    _stream_increment.from_numpy(increments.astype(np.uint32))
    _seeded = True
    logger.debug("Seeded %d random streams with seed %d", MAX_STREAMS, seed)


def ensure_streams_seeded() -> None:
    """Seed the streams with DEFAULT_SEED unless already seeded."""
    if not _seeded:
        seed_streams(DEFAULT_SEED)


def get_stream_state(stream: int) -> int:
    """Get the raw generator state of a stream (for debugging)."""
    return int(_stream_state[stream])


def get_stream_increment(stream: int) -> int:
    """Get the odd LCG increment that selects a stream's sequence."""
    return int(_stream_increment[stream])


# =============================================================================
# Uniform Draws
# =============================================================================


@ti.func
def random_float(stream: ti.i32) -> ti.f32:
    """Draw a uniform float in [0, 1) from a stream.

    Advances the stream's state. Only the task that owns the stream may
    call this.

    Args:
        stream: Index of the stream to draw from.

    Returns:
        A uniformly distributed value in [0, 1).
    """
    state = _stream_state[stream] * ti.u32(_PCG_MULTIPLIER) + _stream_increment[stream]
    _stream_state[stream] = state

    word = ((state >> ((state >> ti.u32(28)) + ti.u32(4))) ^ state) * ti.u32(_TEMPER_MULTIPLIER)
    word = (word >> ti.u32(22)) ^ word

    return ti.cast(word >> ti.u32(8), ti.f32) * _INV_2_24


@ti.func
def random_range(stream: ti.i32, low: ti.f32, high: ti.f32) -> ti.f32:
    """Draw a uniform float in [low, high) from a stream."""
    return low + (high - low) * random_float(stream)


# =============================================================================
# Direction Sampling
# =============================================================================


@ti.func
def random_in_unit_sphere(stream: ti.i32) -> vec3:
    """Generate a random point inside the unit ball.

    Uses rejection sampling: draw each component uniformly in [-1, 1) and
    redraw until the point falls strictly inside the unit sphere. The result
    is uniform over the solid ball, not its surface.

    Args:
        stream: Index of the stream to draw from.

    Returns:
        A random point with length < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = 0
    for _ in range(MAX_REJECTION_ATTEMPTS):
        if found == 0:
            candidate = vec3(
                random_range(stream, -1.0, 1.0),
                random_range(stream, -1.0, 1.0),
                random_range(stream, -1.0, 1.0),
            )
            if length_squared(candidate) < 1.0:
                p = candidate
                found = 1
    return p


@ti.func
def random_unit_vector(stream: ti.i32) -> vec3:
    """Generate a random unit vector uniformly distributed on the sphere.

    Falls back to +z in the (practically unreachable) case where rejection
    sampling returned the origin.
    """
    p = random_in_unit_sphere(stream)
    result = vec3(0.0, 0.0, 1.0)
    if length_squared(p) > 0.0:
        result = unit_vector(p)
    return result


@ti.func
def random_in_hemisphere(stream: ti.i32, normal: vec3) -> vec3:
    """Generate a random point in the unit ball on the normal's side.

    Args:
        stream: Index of the stream to draw from.
        normal: The surface normal defining the hemisphere orientation.

    Returns:
        A point inside the unit ball with dot(point, normal) >= 0.
    """
    in_unit_sphere = random_in_unit_sphere(stream)
    result = in_unit_sphere
    if tm.dot(in_unit_sphere, normal) <= 0.0:
        result = -in_unit_sphere
    return result


@ti.func
def random_in_unit_disk(stream: ti.i32) -> vec3:
    """Generate a random point inside the unit disk in the xy-plane.

    Used to sample the camera lens aperture for depth of field.

    Args:
        stream: Index of the stream to draw from.

    Returns:
        A random point (x, y, 0) with x^2 + y^2 < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = 0
    for _ in range(MAX_REJECTION_ATTEMPTS):
        if found == 0:
            candidate = vec3(
                random_range(stream, -1.0, 1.0),
                random_range(stream, -1.0, 1.0),
                0.0,
            )
            if length_squared(candidate) < 1.0:
                p = candidate
                found = 1
    return p


# =============================================================================
# Host-side Access
# =============================================================================


@ti.kernel
def _fill_uniform(
    stream: ti.i32,
    low: ti.f32,
    high: ti.f32,
    out: ti.types.ndarray(dtype=ti.f32, ndim=1),
):
    # All draws come from a single stream, so the loop must not run in parallel
    ti.loop_config(serialize=True)
    for k in range(out.shape[0]):
        out[k] = random_range(stream, low, high)


def sample_uniform(
    stream: int,
    count: int,
    low: float = 0.0,
    high: float = 1.0,
) -> npt.NDArray[np.float32]:
    """Draw uniform samples from a stream into a NumPy array.

    Args:
        stream: Index of the stream to draw from.
        count: Number of samples.
        low: Inclusive lower bound.
        high: Exclusive upper bound.

    Returns:
        Array of shape (count,) with dtype float32.

    Raises:
        ValueError: If the stream index is out of range or count is negative.
    """
    if not 0 <= stream < MAX_STREAMS:
        raise ValueError(f"Stream index {stream} outside [0, {MAX_STREAMS})")
    if count < 0:
        raise ValueError(f"Sample count must be non-negative, got {count}")

    ensure_streams_seeded()
    out = np.zeros(count, dtype=np.float32)
    if count > 0:
        _fill_uniform(stream, low, high, out)
    return out
