"""Progressive renderer for iterative sample accumulation.

This module provides a convenient wrapper around the core integrator that supports:
- Progressive rendering that refines over time
- Batch rendering (multiple SPP in one kernel launch)
- Progress callbacks and a generator interface
- Easy reset and re-render functionality

RenderSettings bundles the render parameters in a validated dataclass.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.progressive import ProgressiveRenderer, RenderSettings
    >>> from pathtracer.scene.spheres import create_ground_sphere_scene
    >>> from pathtracer.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = create_ground_sphere_scene()
    >>> setup_camera(camera)
    >>>
    >>> settings = RenderSettings(width=400, samples_per_pixel=100)
    >>> renderer = ProgressiveRenderer.from_settings(settings)
    >>> renderer.render(settings.samples_per_pixel, batch_size=settings.batch_size)
    >>> image = renderer.get_image_numpy()
"""

import logging
from collections.abc import Callable, Generator
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import numpy as np
import numpy.typing as npt

from pathtracer.core.integrator import (
    MAX_DEPTH,
    MAX_IMAGE_HEIGHT,
    MAX_IMAGE_WIDTH,
    clear_render_target,
    get_image,
    get_linear_image_numpy,
    get_total_samples,
    render_image,
    setup_render_target,
)
from pathtracer.core.sampler import DEFAULT_SEED, seed_streams
from pathtracer.preview.display import apply_gamma
from pathtracer.preview.export import image_to_uint8, save_image_from_array

logger = logging.getLogger(__name__)

# Type alias for progress callback
# Callback receives (current_samples, total_target_samples)
ProgressCallback = Callable[[int, int], None]


@dataclass
class RenderSettings:
    """Configuration for a render.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels. Derived from width / aspect_ratio
            (truncated) when None.
        aspect_ratio: Width divided by height, used to derive height.
        samples_per_pixel: Number of samples averaged per pixel.
        max_depth: Maximum path depth.
        seed: Seed for the per-row random streams.
        batch_size: Samples rendered per kernel launch between progress
            updates.
    """

    width: int = 400
    height: int | None = None
    aspect_ratio: float = 16.0 / 9.0
    samples_per_pixel: int = 100
    max_depth: int = MAX_DEPTH
    seed: int = DEFAULT_SEED
    batch_size: int = 10

    def __post_init__(self) -> None:
        if self.aspect_ratio <= 0.0:
            raise ValueError(f"aspect_ratio must be positive, got {self.aspect_ratio}")
        if self.height is None:
            self.height = int(self.width / self.aspect_ratio)

        if not 1 <= self.width <= MAX_IMAGE_WIDTH:
            raise ValueError(f"width must be in [1, {MAX_IMAGE_WIDTH}], got {self.width}")
        if not 1 <= self.height <= MAX_IMAGE_HEIGHT:
            raise ValueError(f"height must be in [1, {MAX_IMAGE_HEIGHT}], got {self.height}")
        if self.samples_per_pixel < 1:
            raise ValueError(f"samples_per_pixel must be >= 1, got {self.samples_per_pixel}")
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")
        if self.seed < 0:
            raise ValueError(f"seed must be non-negative, got {self.seed}")
        if self.batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {self.batch_size}")


class ProgressiveRenderer:
    """A progressive renderer that accumulates samples over time.

    The renderer maintains its own width/height/max_depth and delegates to
    the global integrator buffers (which are Taichi fields), so only one
    renderer should be active at a time.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        max_depth: Maximum path depth used for every sample.
    """

    def __init__(self, width: int, height: int, max_depth: int = MAX_DEPTH) -> None:
        """Initialize the progressive renderer.

        Args:
            width: Image width in pixels (max 2048).
            height: Image height in pixels (max 2048).
            max_depth: Maximum path depth.

        Raises:
            ValueError: If dimensions are out of range or max_depth is negative.
        """
        if max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {max_depth}")
        self._width = width
        self._height = height
        self._max_depth = max_depth
        setup_render_target(width, height)

    @classmethod
    def from_settings(cls, settings: RenderSettings) -> "ProgressiveRenderer":
        """Create a renderer from settings, reseeding the random streams."""
        seed_streams(settings.seed)
        return cls(settings.width, settings.height, settings.max_depth)

    @property
    def width(self) -> int:
        """Get the image width."""
        return self._width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self._height

    @property
    def max_depth(self) -> int:
        """Get the maximum path depth."""
        return self._max_depth

    @property
    def sample_count(self) -> int:
        """Get the current number of accumulated samples per pixel."""
        return get_total_samples()

    def reset(self) -> None:
        """Reset the accumulator for a new render.

        Clears the color buffer and sample count, allowing a fresh render
        without changing the image dimensions.
        """
        clear_render_target()

    def resize(self, width: int, height: int) -> None:
        """Resize the render target and reset accumulator.

        Args:
            width: New image width in pixels.
            height: New image height in pixels.

        Raises:
            ValueError: If dimensions are out of range.
        """
        self._width = width
        self._height = height
        setup_render_target(width, height)

    def _batches(self, num_samples: int, batch_size: int) -> Generator[tuple[int, int], None, None]:
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        if num_samples <= 0:
            return

        target_samples = self.sample_count + num_samples

        remaining = num_samples
        while remaining > 0:
            batch = min(batch_size, remaining)
            render_image(batch, self._max_depth)
            remaining -= batch
            yield (self.sample_count, target_samples)

    def render(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Render samples progressively with optional progress callback.

        Accumulates the specified number of samples into the existing buffer.
        Can be called multiple times to continue refining the image.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Number of samples per kernel launch.
            callback: Optional callback function called after each batch.
                Receives (current_total_samples, target_total_samples).

        Raises:
            ValueError: If batch_size is less than 1.
        """
        for current, target in self._batches(num_samples, batch_size):
            if callback is not None:
                callback(current, target)
        logger.debug("Accumulated %d samples per pixel", self.sample_count)

    def render_progressive(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
    ) -> Generator[tuple[int, int], None, None]:
        """Render samples progressively, yielding progress after each batch.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Number of samples to render before each yield.

        Yields:
            Tuple of (current_total_samples, target_total_samples).

        Example:
            >>> for current, target in renderer.render_progressive(100, batch_size=10):
            ...     print(f"Progress: {current}/{target} samples")
        """
        yield from self._batches(num_samples, batch_size)

    def get_image(self) -> Any:
        """Get the raw Taichi color buffer field (linear running mean)."""
        return get_image()

    def get_image_numpy(self, gamma: float = 2.0) -> npt.NDArray[np.float32]:
        """Get the rendered image as a NumPy array.

        Args:
            gamma: Gamma value. The default 2.0 applies the square-root tone
                curve; 1.0 returns the linear image clamped to [0, 1].

        Returns:
            NumPy array of shape (height, width, 3) with dtype float32.
        """
        return apply_gamma(np.clip(get_linear_image_numpy(), 0.0, 1.0), gamma)

    def get_image_uint8(self, gamma: float = 2.0) -> npt.NDArray[np.uint8]:
        """Get the rendered image as an 8-bit NumPy array."""
        return image_to_uint8(get_linear_image_numpy(), gamma=gamma)

    def save_image(self, filepath: str | Path, gamma: float = 2.0) -> None:
        """Save the rendered image to a file.

        The format is inferred from the extension (e.g. .png, .tiff).

        Args:
            filepath: Output path.
            gamma: Gamma value applied before quantization.
        """
        save_image_from_array(get_linear_image_numpy(), filepath, gamma=gamma)

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"ProgressiveRenderer(width={self.width}, height={self.height}, "
            f"max_depth={self.max_depth}, samples={self.sample_count})"
        )
