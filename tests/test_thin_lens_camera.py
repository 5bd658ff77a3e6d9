"""Unit tests for the thin-lens camera.

Tests cover:
- Orthonormal basis construction
- Viewport placement on the focus plane
- Pinhole behavior with zero aperture
- Depth of field: all lens samples converge on the focus plane
- Jittered ray ranges
"""

import math

import numpy as np
import pytest
import taichi as ti


def _default_camera(**overrides):
    from pathtracer.camera.thin_lens import ThinLensCamera

    params = dict(
        look_from=(0.0, 0.0, 0.0),
        look_at=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=90.0,
        aspect_ratio=16.0 / 9.0,
    )
    params.update(overrides)
    return ThinLensCamera(**params)


class TestCameraSetup:
    """Tests for setup_camera and get_camera_info."""

    def test_axis_aligned_basis(self):
        """Test the basis for a camera looking down -z."""
        from pathtracer.camera.thin_lens import get_camera_info, setup_camera

        setup_camera(_default_camera())
        info = get_camera_info()

        np.testing.assert_allclose(info["u"], (1.0, 0.0, 0.0), atol=1e-6)
        np.testing.assert_allclose(info["v"], (0.0, 1.0, 0.0), atol=1e-6)
        np.testing.assert_allclose(info["w"], (0.0, 0.0, 1.0), atol=1e-6)
        np.testing.assert_allclose(info["origin"], (0.0, 0.0, 0.0), atol=1e-6)

    def test_viewport_size(self):
        """Test viewport extents follow vfov and aspect ratio."""
        from pathtracer.camera.thin_lens import get_camera_info, setup_camera

        setup_camera(_default_camera())
        info = get_camera_info()

        # vfov 90 at focus distance 1 gives a viewport 2 units tall
        np.testing.assert_allclose(info["vertical"], (0.0, 2.0, 0.0), atol=1e-5)
        np.testing.assert_allclose(info["horizontal"], (32.0 / 9.0, 0.0, 0.0), atol=1e-5)
        np.testing.assert_allclose(info["lower_left"], (-16.0 / 9.0, -1.0, -1.0), atol=1e-5)
        assert info["lens_radius"] == 0.0

    def test_basis_orthonormal_for_oblique_view(self):
        """Test u, v, w are orthonormal for an arbitrary view."""
        from pathtracer.camera.thin_lens import get_camera_info, setup_camera

        setup_camera(_default_camera(look_from=(13.0, 2.0, 3.0), look_at=(0.0, 0.0, 0.0)))
        info = get_camera_info()
        u, v, w = (np.array(info[k]) for k in ("u", "v", "w"))

        for vec in (u, v, w):
            assert abs(np.linalg.norm(vec) - 1.0) < 1e-5
        assert abs(np.dot(u, v)) < 1e-5
        assert abs(np.dot(u, w)) < 1e-5
        assert abs(np.dot(v, w)) < 1e-5
        np.testing.assert_allclose(w, np.array([13.0, 2.0, 3.0]) / math.sqrt(182.0), atol=1e-5)

    def test_viewport_scaled_by_focus_distance(self):
        """Test the viewport lies at focus_dist along the view direction."""
        from pathtracer.camera.thin_lens import get_camera_info, setup_camera

        setup_camera(_default_camera(focus_dist=10.0, aperture=2.0))
        info = get_camera_info()

        np.testing.assert_allclose(info["vertical"], (0.0, 20.0, 0.0), atol=1e-4)
        assert abs(info["lower_left"][2] + 10.0) < 1e-4
        assert abs(info["lens_radius"] - 1.0) < 1e-6

    def test_kernel_getters_match_info(self):
        """Test the kernel-side getters return the configured origin, basis and lens."""
        from pathtracer.camera.thin_lens import (
            get_camera_basis,
            get_camera_info,
            get_camera_origin,
            get_lens_radius,
            setup_camera,
        )

        setup_camera(
            _default_camera(look_from=(13.0, 2.0, 3.0), look_at=(0.0, 0.0, 0.0), aperture=0.2)
        )
        info = get_camera_info()
        vectors = ti.Vector.field(3, dtype=ti.f32, shape=4)
        radius = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            vectors[0] = get_camera_origin()
            u, v, w = get_camera_basis()
            vectors[1] = u
            vectors[2] = v
            vectors[3] = w
            radius[None] = get_lens_radius()

        test_kernel()
        for k, key in enumerate(("origin", "u", "v", "w")):
            np.testing.assert_allclose(vectors[k].to_numpy(), info[key], atol=1e-6)
        assert abs(radius[None] - 0.1) < 1e-6


class TestRayGeneration:
    """Tests for ray generation."""

    def test_center_ray_points_at_target(self):
        """Test the ray through (0.5, 0.5) points from the origin at look_at."""
        from pathtracer.camera.thin_lens import get_ray, setup_camera

        setup_camera(_default_camera())
        origin = ti.Vector.field(3, dtype=ti.f32, shape=())
        direction = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            ray = get_ray(0.5, 0.5, 0)
            origin[None] = ray.origin
            direction[None] = ray.direction

        test_kernel()
        np.testing.assert_allclose(origin[None].to_numpy(), (0.0, 0.0, 0.0), atol=1e-6)
        np.testing.assert_allclose(direction[None].to_numpy(), (0.0, 0.0, -1.0), atol=1e-5)

    def test_corner_rays(self):
        """Test (0, 0) maps to the lower-left corner and (1, 1) to the upper right."""
        from pathtracer.camera.thin_lens import get_ray, setup_camera

        setup_camera(_default_camera())
        result = ti.Vector.field(3, dtype=ti.f32, shape=2)

        @ti.kernel
        def test_kernel():
            result[0] = get_ray(0.0, 0.0, 0).direction
            result[1] = get_ray(1.0, 1.0, 0).direction

        test_kernel()
        np.testing.assert_allclose(result[0].to_numpy(), (-16.0 / 9.0, -1.0, -1.0), atol=1e-5)
        np.testing.assert_allclose(result[1].to_numpy(), (16.0 / 9.0, 1.0, -1.0), atol=1e-5)

    @pytest.mark.parametrize("lens", [(0.0, 0.0), (1.0, 0.0), (-0.6, 0.7)])
    def test_lens_samples_converge_on_focus_plane(self, lens):
        """Test origin + direction is the same focus-plane point for any lens sample."""
        from pathtracer.camera.thin_lens import get_ray_with_lens_sample, setup_camera, vec3

        setup_camera(_default_camera(aperture=0.5, focus_dist=3.0))
        target = ti.Vector.field(3, dtype=ti.f32, shape=())
        origin = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(lx: ti.f32, ly: ti.f32):
            ray = get_ray_with_lens_sample(0.25, 0.75, vec3(lx, ly, 0.0))
            target[None] = ray.origin + ray.direction
            origin[None] = ray.origin

        test_kernel(*lens)
        # Lower-left is (-16/9*3, -3, -3); viewport is 32/9*3 by 6
        expected = (-16.0 / 3.0 + 0.25 * 32.0 / 3.0, -3.0 + 0.75 * 6.0, -3.0)
        np.testing.assert_allclose(target[None].to_numpy(), expected, atol=1e-4)
        np.testing.assert_allclose(
            origin[None].to_numpy(), (0.25 * lens[0], 0.25 * lens[1], 0.0), atol=1e-6
        )

    def test_zero_aperture_is_pinhole(self):
        """Test every ray starts at look_from when the aperture is zero."""
        from pathtracer.camera.thin_lens import get_ray, setup_camera

        setup_camera(_default_camera(look_from=(1.0, 2.0, 3.0), look_at=(1.0, 2.0, 0.0)))
        n = 100
        origins = ti.Vector.field(3, dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            ti.loop_config(serialize=True)
            for k in range(n):
                origins[k] = get_ray(0.3, 0.6, 0).origin

        test_kernel()
        np.testing.assert_allclose(origins.to_numpy(), np.tile((1.0, 2.0, 3.0), (n, 1)), atol=1e-6)

    def test_nonzero_aperture_spreads_origins(self):
        """Test origins lie within lens_radius of look_from and are not all equal."""
        from pathtracer.camera.thin_lens import get_ray, setup_camera

        setup_camera(_default_camera(aperture=1.0))
        n = 200
        origins = ti.Vector.field(3, dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            ti.loop_config(serialize=True)
            for k in range(n):
                origins[k] = get_ray(0.5, 0.5, 1).origin

        test_kernel()
        points = origins.to_numpy()
        radii = np.linalg.norm(points, axis=1)
        assert np.all(radii < 0.5 + 1e-6)
        assert radii.max() > 0.1
        # Lens is perpendicular to the view direction
        np.testing.assert_allclose(points[:, 2], 0.0, atol=1e-6)

    def test_jittered_rays_stay_in_pixel(self):
        """Test jittered rays for one pixel hit the focus plane inside that pixel."""
        from pathtracer.camera.thin_lens import get_ray_jittered, setup_camera

        setup_camera(_default_camera(aspect_ratio=1.0))
        width, height = 4, 4
        n = 200
        targets = ti.Vector.field(3, dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            ti.loop_config(serialize=True)
            for k in range(n):
                ray = get_ray_jittered(1, 2, width, height, 0)
                targets[k] = ray.origin + ray.direction

        test_kernel()
        points = targets.to_numpy()
        # Viewport spans [-1, 1] on both axes; each pixel is 0.5 wide
        assert np.all(points[:, 0] >= -0.5 - 1e-5)
        assert np.all(points[:, 0] < 0.0 + 1e-5)
        assert np.all(points[:, 1] >= 0.0 - 1e-5)
        assert np.all(points[:, 1] < 0.5 + 1e-5)
        assert points[:, 0].std() > 0.05
