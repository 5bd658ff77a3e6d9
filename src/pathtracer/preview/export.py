"""Image export utilities for rendered images.

This module provides functions for quantizing rendered images to 8 bits and
saving them with Pillow. The output format is chosen by Pillow from the file
extension (PNG, TIFF, ...).

Quantization truncates: a display value x in [0, 1] maps to floor(255 * x).

Example:
    >>> from pathtracer.preview.export import save_image
    >>> from pathtracer.core.progressive import ProgressiveRenderer
    >>>
    >>> renderer = ProgressiveRenderer(400, 225)
    >>> renderer.render(100)
    >>> save_image(renderer, "output.tiff")
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from pathtracer.preview.display import DEFAULT_GAMMA, process_image_for_display

if TYPE_CHECKING:
    from pathtracer.core.progressive import ProgressiveRenderer

logger = logging.getLogger(__name__)


def image_to_uint8(
    image: npt.NDArray[np.float32],
    *,
    gamma: float = DEFAULT_GAMMA,
) -> npt.NDArray[np.uint8]:
    """Convert a linear float32 image to uint8 for display/export.

    Args:
        image: Linear image array of shape (H, W, 3).
        gamma: Gamma value (default 2.0).

    Returns:
        8-bit image array of shape (H, W, 3) with dtype uint8.
    """
    processed = process_image_for_display(image, gamma=gamma)

    # astype truncates toward zero, which is floor for non-negative values
    return (processed * 255.0).astype(np.uint8)


def save_image_from_array(
    image: npt.NDArray[np.float32],
    filepath: str | Path,
    *,
    gamma: float = DEFAULT_GAMMA,
) -> None:
    """Save a linear NumPy image to a file.

    Args:
        image: Linear image array of shape (H, W, 3).
        filepath: Output file path. The extension selects the format.
        gamma: Gamma value (default 2.0).

    Raises:
        ValueError: If Pillow cannot determine a format from the extension.
    """
    image_uint8 = image_to_uint8(image, gamma=gamma)

    pil_image = PILImage.fromarray(image_uint8)
    pil_image.save(filepath)
    logger.info("Saved %dx%d image to %s", image_uint8.shape[1], image_uint8.shape[0], filepath)


def save_image(
    renderer: ProgressiveRenderer,
    filepath: str | Path,
    *,
    gamma: float = DEFAULT_GAMMA,
) -> None:
    """Save the current render of a ProgressiveRenderer.

    Args:
        renderer: The renderer whose accumulated image is saved.
        filepath: Output file path. The extension selects the format.
        gamma: Gamma value (default 2.0).
    """
    renderer.save_image(filepath, gamma=gamma)


def compute_rmse(
    image_a: npt.NDArray[np.floating[npt.NBitBase]],
    image_b: npt.NDArray[np.floating[npt.NBitBase]],
) -> float:
    """Compute root mean squared error between two images.

    Args:
        image_a: First image array.
        image_b: Second image array (must have same shape as image_a).

    Returns:
        RMSE value (lower is more similar).

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
