"""Display transforms for rendered images.

Rendered buffers hold linear mean radiance. Before display or export the
values are clamped to [0, 1] and encoded with a power-law gamma. The
default gamma of 2.0 is the square-root tone curve.

Example:
    >>> from pathtracer.preview.display import apply_gamma
    >>> display_image = apply_gamma(linear_image)
"""

import numpy as np
import numpy.typing as npt

DEFAULT_GAMMA = 2.0


def apply_gamma(
    image: npt.NDArray[np.float32],
    gamma: float = DEFAULT_GAMMA,
) -> npt.NDArray[np.float32]:
    """Apply gamma encoding for display.

    Args:
        image: Linear image array of shape (H, W, 3).
        gamma: Gamma value (default 2.0, i.e. square root). A gamma of 1.0
            returns the image unchanged.

    Returns:
        Gamma encoded image.

    Raises:
        ValueError: If gamma is not positive.
    """
    if gamma <= 0.0:
        raise ValueError(f"Gamma must be positive, got {gamma}")
    if gamma == 1.0:
        return image

    # Clamp to [0, 1] before gamma to avoid NaN from negative values
    image = np.clip(image, 0.0, 1.0)

    if gamma == 2.0:
        result = np.sqrt(image)
    else:
        result = np.power(image, 1.0 / gamma)

    return result.astype(np.float32)


def process_image_for_display(
    image: npt.NDArray[np.float32],
    gamma: float = DEFAULT_GAMMA,
) -> npt.NDArray[np.float32]:
    """Process a linear image for display.

    Applies the full display pipeline:
    1. Gamma encoding
    2. Clamping to [0, 1]

    Args:
        image: Linear image array of shape (H, W, 3).
        gamma: Gamma value (default 2.0).

    Returns:
        Processed image ready for display, in [0, 1] range.
    """
    result = apply_gamma(image.copy(), gamma)
    result = np.clip(result, 0.0, 1.0)
    return result.astype(np.float32)
