"""Path tracing integrator for Monte Carlo light transport.

This module implements the radiance estimator and the rendering kernels.
A camera ray is followed through the scene, bouncing off surfaces according
to their materials, until it escapes to the sky, is absorbed, or runs out of
bounces. The estimate is the sky color seen by the escaping ray, attenuated
by the product of the albedos along the path.

Key features:
    - Material dispatch (Lambertian, Metal, Dielectric)
    - Sky gradient background (the only light source)
    - Fixed maximum path depth; exhausted paths contribute black
    - Row-parallel rendering where row j owns random stream j
    - Progressive accumulation into a running per-pixel mean

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.integrator import render_image, setup_render_target
    >>> from pathtracer.scene.spheres import create_ground_sphere_scene
    >>> from pathtracer.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = create_ground_sphere_scene()
    >>> setup_camera(camera)
    >>> setup_render_target(400, 225)
    >>> render_image(num_samples=100)
"""

import logging

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from pathtracer.camera.thin_lens import get_ray_jittered
from pathtracer.core.ray import unit_vector
from pathtracer.core.sampler import MAX_STREAMS, ensure_streams_seeded
from pathtracer.materials.dielectric import scatter_dielectric_by_id
from pathtracer.materials.lambertian import scatter_lambertian_by_id
from pathtracer.materials.metal import scatter_metal_by_id
from pathtracer.scene.intersection import intersect_scene
from pathtracer.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# Maximum ray bounces (path length)
MAX_DEPTH = 50

# Intersection interval. T_MIN keeps scattered rays from re-hitting the
# surface they left; T_MAX is effectively unbounded.
T_MIN = 0.001
T_MAX = 1e10

# Sky gradient endpoints
SKY_NADIR_COLOR = vec3(1.0, 1.0, 1.0)
SKY_ZENITH_COLOR = vec3(0.5, 0.7, 1.0)

# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = MAX_STREAMS

_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Running mean of linear radiance per pixel
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Sample count per pixel
_sample_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffers.

    Sets the active image dimensions and clears the buffers.

    Args:
        width: Image width in pixels (1 to MAX_IMAGE_WIDTH).
        height: Image height in pixels (1 to MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If a dimension is below 1 or exceeds the maximum size.
    """
    if width < 1 or height < 1:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear the render target buffers to zero."""
    _color_buffer.fill(0.0)
    _sample_count.fill(0)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions.

    Returns:
        Tuple of (width, height).
    """
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


def get_image() -> "ti.MatrixField":
    """Get the color buffer.

    Note: This returns the full preallocated buffer. Use get_image_dimensions()
    to determine the active region.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return _color_buffer


def get_sample_count() -> "ti.ScalarField":
    """Get the per-pixel sample count field.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return _sample_count


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def _scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    stream: ti.i32,
):
    """Dispatch to the appropriate material scattering function.

    Args:
        material_id: The unified material ID.
        incident_direction: The incoming ray direction.
        normal: The surface normal, oriented against the incoming ray.
        front_face: 1 if the ray hit the outward-facing side, 0 otherwise.
        stream: Index of the random stream owned by the calling task.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter). Unknown
        material IDs do not scatter.
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if mat_type == int(MaterialType.LAMBERTIAN):
        scattered_direction, attenuation, did_scatter = scatter_lambertian_by_id(
            type_index, normal, stream
        )

    elif mat_type == int(MaterialType.METAL):
        scattered_direction, attenuation, did_scatter = scatter_metal_by_id(
            type_index, incident_direction, normal, stream
        )

    elif mat_type == int(MaterialType.DIELECTRIC):
        scattered_direction, attenuation, did_scatter = scatter_dielectric_by_id(
            type_index, incident_direction, normal, front_face, stream
        )

    return scattered_direction, attenuation, did_scatter


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def background_color(direction: vec3) -> vec3:
    """Sky color seen along a direction.

    Blends linearly on the y component of the unit direction: white looking
    straight down, light blue straight up, and an even mix at the horizon.
    """
    t = 0.5 * (unit_vector(direction).y + 1.0)
    return (1.0 - t) * SKY_NADIR_COLOR + t * SKY_ZENITH_COLOR


@ti.func
def ray_color(origin: vec3, direction: vec3, max_depth: ti.i32, stream: ti.i32) -> vec3:
    """Estimate the radiance arriving along a ray.

    Each iteration consumes one unit of depth:
    - a miss returns the sky color times the accumulated attenuation;
    - an absorbing hit returns black;
    - a scattering hit multiplies the attenuation into the throughput and
      continues from the hit point along the scattered direction.
    A path still bouncing after max_depth iterations contributes black, so
    max_depth = 0 always yields zero.

    Args:
        origin: The ray origin.
        direction: The ray direction (need not be unit length).
        max_depth: Maximum number of intersection tests along the path.
        stream: Index of the random stream owned by the calling task.

    Returns:
        The estimated radiance (RGB).
    """
    radiance = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)

    # Taichi funcs cannot break out of loops with a return value pending
    active = 1

    for _ in range(max_depth):
        if active == 1:
            rec = intersect_scene(origin, direction, T_MIN, T_MAX)

            if rec.hit == 0:
                radiance = throughput * background_color(direction)
                active = 0
            else:
                scattered_direction, attenuation, did_scatter = _scatter_material(
                    rec.material_id, direction, rec.normal, rec.front_face, stream
                )

                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    origin = rec.point
                    direction = scattered_direction

    return radiance


@ti.func
def _sanitize(color: vec3) -> vec3:
    """Replace NaN/Inf components with zero."""
    result = color
    for c in ti.static(range(3)):
        if tm.isnan(color[c]) or tm.isinf(color[c]):
            result[c] = 0.0
    return result


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_pass(width: ti.i32, height: ti.i32, num_samples: ti.i32, max_depth: ti.i32):
    """Render num_samples new samples per pixel and merge them into the mean.

    The outermost loop is parallelized over rows; row j draws only from
    stream j. Each pixel's samples are summed serially and written to the
    buffer once.
    """
    for j in range(height):
        for i in range(width):
            total = vec3(0.0, 0.0, 0.0)
            for _ in range(num_samples):
                ray = get_ray_jittered(i, j, width, height, j)
                total += _sanitize(ray_color(ray.origin, ray.direction, max_depth, j))

            n = _sample_count[i, j] + num_samples
            mean = _color_buffer[i, j]
            _color_buffer[i, j] = mean + (total - ti.cast(num_samples, ti.f32) * mean) / ti.cast(
                n, ti.f32
            )
            _sample_count[i, j] = n


@ti.kernel
def _render_single_pixel(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    max_depth: ti.i32,
) -> vec3:
    """Render a single sample for a specific pixel using the row's stream."""
    ray = get_ray_jittered(pixel_i, pixel_j, width, height, pixel_j)
    return ray_color(ray.origin, ray.direction, max_depth, pixel_j)


@ti.kernel
def _trace_single_ray(origin: vec3, direction: vec3, max_depth: ti.i32, stream: ti.i32) -> vec3:
    return ray_color(origin, direction, max_depth, stream)


# =============================================================================
# Public Rendering API
# =============================================================================


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_depth: int = MAX_DEPTH,
    stream: int = 0,
) -> tuple[float, float, float]:
    """Estimate the radiance along one ray from Python.

    Args:
        origin: The ray origin as (x, y, z).
        direction: The ray direction as (x, y, z).
        max_depth: Maximum path depth. 0 always returns black.
        stream: Index of the random stream to draw from.

    Returns:
        Tuple of (R, G, B) linear radiance.

    Raises:
        ValueError: If max_depth is negative or the stream is out of range.
    """
    if max_depth < 0:
        raise ValueError(f"max_depth must be non-negative, got {max_depth}")
    if not 0 <= stream < MAX_STREAMS:
        raise ValueError(f"Stream index {stream} outside [0, {MAX_STREAMS})")

    ensure_streams_seeded()
    color = _trace_single_ray(vec3(*origin), vec3(*direction), max_depth, stream)
    return (float(color[0]), float(color[1]), float(color[2]))


def render_sample(pixel_i: int, pixel_j: int, max_depth: int = MAX_DEPTH) -> tuple[float, float, float]:
    """Render a single sample for a specific pixel.

    This is a Python-callable function for testing. For production rendering,
    use render_image() which processes all pixels in parallel.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        max_depth: Maximum path depth.

    Returns:
        Tuple of (R, G, B) color values.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    ensure_streams_seeded()

    width, height = get_image_dimensions()
    color = _render_single_pixel(pixel_i, pixel_j, width, height, max_depth)

    return (float(color[0]), float(color[1]), float(color[2]))


def render_image(num_samples: int = 1, max_depth: int = MAX_DEPTH) -> None:
    """Render num_samples more samples per pixel into the running mean.

    Can be called repeatedly to refine the image.

    Args:
        num_samples: Number of samples to add per pixel.
        max_depth: Maximum path depth.

    Raises:
        RuntimeError: If render target has not been set up.
        ValueError: If num_samples or max_depth is negative.
    """
    _check_render_target_initialized()
    if num_samples < 0:
        raise ValueError(f"num_samples must be non-negative, got {num_samples}")
    if max_depth < 0:
        raise ValueError(f"max_depth must be non-negative, got {max_depth}")
    if num_samples == 0:
        return

    ensure_streams_seeded()
    width, height = get_image_dimensions()
    logger.debug(
        "Rendering %dx%d with %d samples per pixel (max depth %d)",
        width,
        height,
        num_samples,
        max_depth,
    )
    _render_pass(width, height, num_samples, max_depth)


def get_total_samples() -> int:
    """Get the number of samples per pixel rendered so far.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return int(_sample_count[0, 0])


def get_linear_image_numpy() -> npt.NDArray[np.float32]:
    """Get the mean linear radiance as a NumPy array.

    Returns:
        Array of shape (height, width, 3), dtype float32, top row first.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    image = _color_buffer.to_numpy()[:width, :height, :]

    # (width, height, 3) -> (height, width, 3)
    image = np.transpose(image, (1, 0, 2))

    # Row 0 of the buffer is the bottom of the image
    image = np.flipud(image)

    return np.ascontiguousarray(image, dtype=np.float32)


def get_image_numpy() -> npt.NDArray[np.float32]:
    """Get the displayable image: mean radiance clamped to [0, 1], then sqrt.

    Returns:
        Array of shape (height, width, 3), dtype float32, values in [0, 1].

    Raises:
        RuntimeError: If render target has not been set up.
    """
    image = np.clip(get_linear_image_numpy(), 0.0, 1.0)
    return np.sqrt(image).astype(np.float32)
