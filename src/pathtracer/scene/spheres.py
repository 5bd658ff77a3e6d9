"""Sphere scene configurations.

This module provides factory functions for the standard sphere scenes:

- create_ground_sphere_scene: a single diffuse sphere resting on a huge
  diffuse "ground" sphere, seen through a wide-angle pinhole camera.
- create_material_showcase_scene: a diffuse, a hollow glass and a metal
  sphere side by side, seen through a narrow-aperture camera focused on
  the middle sphere.
- create_random_spheres_scene: the classic cover scene with a grid of
  small randomized spheres and three large feature spheres.

Each factory returns a (SceneManager, ThinLensCamera) pair. The scene is
loaded into the global scene fields; the camera still has to be passed to
setup_camera before rendering.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.scene.spheres import create_material_showcase_scene
    >>> from pathtracer.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = create_material_showcase_scene()
    >>> setup_camera(camera)
"""

import logging
import math

import numpy as np

from pathtracer.camera.thin_lens import ThinLensCamera
from pathtracer.materials.dielectric import MAX_DIELECTRIC_MATERIALS
from pathtracer.materials.lambertian import MAX_LAMBERTIAN_MATERIALS
from pathtracer.materials.metal import MAX_METAL_MATERIALS
from pathtracer.scene.intersection import MAX_SPHERES
from pathtracer.scene.manager import SceneManager

logger = logging.getLogger(__name__)

DEFAULT_ASPECT_RATIO = 16.0 / 9.0

GLASS_IOR = 1.5

# =============================================================================
# Ground + Sphere
# =============================================================================

GROUND_SPHERE_ALBEDO = (0.5, 0.5, 0.5)


def create_ground_sphere_scene(
    aspect_ratio: float = DEFAULT_ASPECT_RATIO,
) -> tuple[SceneManager, ThinLensCamera]:
    """Create a diffuse sphere resting on a large diffuse ground sphere.

    Both spheres share a 50% grey Lambertian material. The camera sits at
    the origin looking down -z with a viewport two units tall at unit
    distance (vfov = 90 degrees) and no depth of field.

    Args:
        aspect_ratio: Width divided by height of the output image.

    Returns:
        A tuple of (SceneManager, ThinLensCamera).
    """
    scene = SceneManager()

    grey = scene.add_lambertian_material(albedo=GROUND_SPHERE_ALBEDO)
    scene.add_sphere(center=(0.0, 0.0, -1.0), radius=0.5, material_id=grey)
    scene.add_sphere(center=(0.0, -100.5, -1.0), radius=100.0, material_id=grey)

    camera = ThinLensCamera(
        look_from=(0.0, 0.0, 0.0),
        look_at=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=90.0,
        aspect_ratio=aspect_ratio,
        aperture=0.0,
        focus_dist=1.0,
    )
    return scene, camera


# =============================================================================
# Material Showcase
# =============================================================================

SHOWCASE_GROUND_ALBEDO = (0.8, 0.8, 0.0)
SHOWCASE_CENTER_ALBEDO = (0.1, 0.2, 0.5)
SHOWCASE_METAL_ALBEDO = (0.8, 0.6, 0.2)
SHOWCASE_METAL_FUZZ = 0.0


def create_material_showcase_scene(
    aspect_ratio: float = DEFAULT_ASPECT_RATIO,
    aperture: float = 0.1,
) -> tuple[SceneManager, ThinLensCamera]:
    """Create the three-material showcase scene.

    Layout along the x-axis at z = -1:
    - left: hollow glass sphere (outer radius 0.5, inner radius -0.4,
      both with the same dielectric material)
    - center: blue diffuse sphere
    - right: gold mirror sphere
    All three rest on a large yellow-green diffuse ground sphere.

    The camera looks at the center sphere from above and to the left and
    is focused exactly on it.

    Args:
        aspect_ratio: Width divided by height of the output image.
        aperture: Lens diameter. 0 renders everything in focus.

    Returns:
        A tuple of (SceneManager, ThinLensCamera).
    """
    scene = SceneManager()

    ground = scene.add_lambertian_material(albedo=SHOWCASE_GROUND_ALBEDO)
    center = scene.add_lambertian_material(albedo=SHOWCASE_CENTER_ALBEDO)
    glass = scene.add_dielectric_material(ior=GLASS_IOR)
    gold = scene.add_metal_material(albedo=SHOWCASE_METAL_ALBEDO, fuzz=SHOWCASE_METAL_FUZZ)

    scene.add_sphere(center=(0.0, -100.5, -1.0), radius=100.0, material_id=ground)
    scene.add_sphere(center=(0.0, 0.0, -1.0), radius=0.5, material_id=center)
    scene.add_sphere(center=(-1.0, 0.0, -1.0), radius=0.5, material_id=glass)
    scene.add_sphere(center=(-1.0, 0.0, -1.0), radius=-0.4, material_id=glass)
    scene.add_sphere(center=(1.0, 0.0, -1.0), radius=0.5, material_id=gold)

    look_from = (-2.0, 2.0, 1.0)
    look_at = (0.0, 0.0, -1.0)
    camera = ThinLensCamera(
        look_from=look_from,
        look_at=look_at,
        vup=(0.0, 1.0, 0.0),
        vfov=20.0,
        aspect_ratio=aspect_ratio,
        aperture=aperture,
        focus_dist=math.dist(look_from, look_at),
    )
    return scene, camera


# =============================================================================
# Random Spheres
# =============================================================================

RANDOM_GROUND_ALBEDO = (0.5, 0.5, 0.5)
RANDOM_GRID_EXTENT = 11
SMALL_SPHERE_RADIUS = 0.2

# Small spheres too close to this point would intersect the big metal sphere
_CLEARANCE_POINT = np.array([4.0, 0.2, 0.0])


def _material_for(
    scene: SceneManager,
    rng: np.random.Generator,
    choose_mat: float,
    created: dict[str, list[int]],
) -> int:
    """Create a randomized material, reusing an existing one once a registry is full."""
    if choose_mat < 0.8:
        kind, capacity = "lambertian", MAX_LAMBERTIAN_MATERIALS
    elif choose_mat < 0.95:
        kind, capacity = "metal", MAX_METAL_MATERIALS
    else:
        kind, capacity = "dielectric", MAX_DIELECTRIC_MATERIALS

    # Leave room for the feature spheres' materials
    if len(created[kind]) >= capacity - 2:
        return int(created[kind][rng.integers(len(created[kind]))])

    if kind == "lambertian":
        albedo = tuple(float(x) for x in rng.random(3) * rng.random(3))
        material_id = scene.add_lambertian_material(albedo=albedo)
    elif kind == "metal":
        albedo = tuple(float(x) for x in rng.uniform(0.5, 1.0, 3))
        material_id = scene.add_metal_material(albedo=albedo, fuzz=float(rng.uniform(0.0, 0.5)))
    else:
        material_id = scene.add_dielectric_material(ior=GLASS_IOR)

    created[kind].append(material_id)
    return material_id


def create_random_spheres_scene(
    seed: int = 0,
    aspect_ratio: float = 3.0 / 2.0,
    grid_extent: int = RANDOM_GRID_EXTENT,
) -> tuple[SceneManager, ThinLensCamera]:
    """Create the classic random-spheres cover scene.

    A grid of small spheres with randomized position jitter and materials
    (80% diffuse, 15% metal, 5% glass) surrounds three large spheres:
    glass in the middle, brown diffuse behind and a mirror in front. The
    layout is fully determined by the seed.

    Args:
        seed: Seed for numpy's default_rng.
        aspect_ratio: Width divided by height of the output image.
        grid_extent: Small spheres are placed for a, b in
            [-grid_extent, grid_extent).

    Returns:
        A tuple of (SceneManager, ThinLensCamera).
    """
    rng = np.random.default_rng(seed)
    scene = SceneManager()
    created: dict[str, list[int]] = {"lambertian": [], "metal": [], "dielectric": []}

    ground = scene.add_lambertian_material(albedo=RANDOM_GROUND_ALBEDO)
    created["lambertian"].append(ground)
    scene.add_sphere(center=(0.0, -1000.0, 0.0), radius=1000.0, material_id=ground)

    # Ground + three feature spheres are always present
    small_capacity = MAX_SPHERES - 4

    for a in range(-grid_extent, grid_extent):
        for b in range(-grid_extent, grid_extent):
            choose_mat = float(rng.random())
            jitter = rng.random(2)
            center = np.array([a + 0.9 * jitter[0], SMALL_SPHERE_RADIUS, b + 0.9 * jitter[1]])

            if np.linalg.norm(center - _CLEARANCE_POINT) <= 0.9:
                continue
            if scene.get_sphere_count() - 1 >= small_capacity:
                continue

            material_id = _material_for(scene, rng, choose_mat, created)
            scene.add_sphere(
                center=(float(center[0]), float(center[1]), float(center[2])),
                radius=SMALL_SPHERE_RADIUS,
                material_id=material_id,
            )

    glass = scene.add_dielectric_material(ior=GLASS_IOR)
    scene.add_sphere(center=(0.0, 1.0, 0.0), radius=1.0, material_id=glass)

    brown = scene.add_lambertian_material(albedo=(0.4, 0.2, 0.1))
    scene.add_sphere(center=(-4.0, 1.0, 0.0), radius=1.0, material_id=brown)

    mirror = scene.add_metal_material(albedo=(0.7, 0.6, 0.5), fuzz=0.0)
    scene.add_sphere(center=(4.0, 1.0, 0.0), radius=1.0, material_id=mirror)

    logger.debug(
        "Random scene (seed %d): %d spheres, %d materials",
        seed,
        scene.get_sphere_count(),
        scene.get_material_count(),
    )

    camera = ThinLensCamera(
        look_from=(13.0, 2.0, 3.0),
        look_at=(0.0, 0.0, 0.0),
        vup=(0.0, 1.0, 0.0),
        vfov=20.0,
        aspect_ratio=aspect_ratio,
        aperture=0.1,
        focus_dist=10.0,
    )
    return scene, camera
