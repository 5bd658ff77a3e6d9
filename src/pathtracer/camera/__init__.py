"""Camera module for primary ray generation.

Components:
    thin_lens: Perspective camera with a circular aperture (depth of field)

Ray generation uses normalized image coordinates:
    s in [0, 1]: left to right across the image
    t in [0, 1]: bottom to top across the image
"""

from .thin_lens import (
    ThinLensCamera,
    get_camera_basis,
    get_camera_info,
    get_camera_origin,
    get_lens_radius,
    get_ray,
    get_ray_jittered,
    get_ray_with_lens_sample,
    setup_camera,
)

__all__ = [
    "ThinLensCamera",
    "setup_camera",
    "get_ray",
    "get_ray_jittered",
    "get_ray_with_lens_sample",
    "get_camera_origin",
    "get_camera_basis",
    "get_lens_radius",
    "get_camera_info",
]
