"""Core rendering module.

Components:
    ray: Ray data structure and vector utilities
    sampler: Independent per-row random streams
    integrator: Radiance estimator and rendering kernels
    progressive: Progressive renderer and render settings

Only the ray module is imported here. The other modules declare Taichi
fields and must be imported directly after ti.init(), e.g.:
    from pathtracer.core.progressive import ProgressiveRenderer
"""

from .ray import (
    NEAR_ZERO_EPSILON,
    Ray,
    cross,
    dot,
    length,
    length_squared,
    make_ray,
    near_zero,
    ray_at,
    reflect,
    refract,
    schlick_reflectance,
    unit_vector,
    vec3,
)

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "unit_vector",
    "dot",
    "cross",
    "reflect",
    "refract",
    "schlick_reflectance",
    "near_zero",
    "NEAR_ZERO_EPSILON",
]
