"""Taichi-based Monte Carlo path tracer.

This package renders scenes of spheres with diffuse, metal and glass
materials by tracing randomized light paths from a thin-lens camera into
the scene and averaging many samples per pixel.

Subpackages:
    core: Ray and vector utilities, random streams, integrator, progressive rendering
    geometry: Sphere primitive and ray-sphere intersection
    materials: Lambertian, metal and dielectric scattering models
    scene: Scene storage, closest-hit search, scene manager and demo scenes
    camera: Thin-lens camera with depth of field
    preview: Display transforms and image export

Modules that declare Taichi fields must be imported after ti.init().
"""

__version__ = "0.1.0"
