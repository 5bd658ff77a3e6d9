"""Preview module for display transforms and image export.

Components:
    display: Clamp and gamma encoding of linear images
    export: 8-bit quantization and Pillow-based file export

Example:
    >>> from pathtracer.preview import save_image
    >>> from pathtracer.core.progressive import ProgressiveRenderer
    >>>
    >>> renderer = ProgressiveRenderer(400, 225)
    >>> renderer.render(100)
    >>> save_image(renderer, "output.png")
"""

from pathtracer.preview.display import (
    DEFAULT_GAMMA,
    apply_gamma,
    process_image_for_display,
)
from pathtracer.preview.export import (
    compute_rmse,
    image_to_uint8,
    save_image,
    save_image_from_array,
)

__all__ = [
    "DEFAULT_GAMMA",
    "apply_gamma",
    "process_image_for_display",
    "save_image",
    "save_image_from_array",
    "image_to_uint8",
    "compute_rmse",
]
