"""Unit tests for the sphere primitive.

Tests cover:
- Ray hitting sphere from outside
- Ray missing sphere
- Sphere center behind the ray origin (early-out)
- Ray starting inside the sphere
- Flat and textured surface color
"""

import pytest
import taichi as ti


class TestSphereBasics:
    """Tests for Sphere dataclass and basic operations."""

    def test_make_sphere(self):
        """Test make_sphere caches the squared radius and has no texture."""
        from whitted.geometry.sphere import NO_TEXTURE, make_sphere, vec3

        center_result = ti.Vector.field(3, dtype=ti.f32, shape=())
        radius2_result = ti.field(dtype=ti.f32, shape=())
        texture_result = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            sphere = make_sphere(vec3(1.0, 2.0, 3.0), 0.5, vec3(0.2, 0.2, 0.2))
            center_result[None] = sphere.center
            radius2_result[None] = sphere.radius2
            texture_result[None] = sphere.texture_offset

        test_kernel()
        c = center_result[None]
        assert abs(c[0] - 1.0) < 1e-6
        assert abs(c[1] - 2.0) < 1e-6
        assert abs(c[2] - 3.0) < 1e-6
        assert abs(radius2_result[None] - 0.25) < 1e-6
        assert texture_result[None] == NO_TEXTURE


class TestSphereIntersection:
    """Tests for ray-sphere intersection."""

    @staticmethod
    def _intersect(center, radius, origin, direction):
        from whitted.geometry.sphere import intersect_sphere, make_sphere, vec3

        hit = ti.field(dtype=ti.i32, shape=())
        t0 = ti.field(dtype=ti.f32, shape=())
        t1 = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(
            cx: ti.f32, cy: ti.f32, cz: ti.f32, r: ti.f32,
            ox: ti.f32, oy: ti.f32, oz: ti.f32,
            dx: ti.f32, dy: ti.f32, dz: ti.f32,
        ):
            sphere = make_sphere(vec3(cx, cy, cz), r, vec3(1.0, 1.0, 1.0))
            h, a, b = intersect_sphere(sphere, vec3(ox, oy, oz), vec3(dx, dy, dz))
            hit[None] = h
            t0[None] = a
            t1[None] = b

        test_kernel(*center, radius, *origin, *direction)
        return hit[None], t0[None], t1[None]

    def test_direct_hit(self):
        """Test ray hitting sphere head-on from outside."""
        hit, t0, t1 = self._intersect((0.0, 0.0, -20.0), 4.0, (0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert hit == 1
        assert abs(t0 - 16.0) < 1e-4
        assert abs(t1 - 24.0) < 1e-4

    def test_miss(self):
        """Test ray passing beside the sphere."""
        hit, _, _ = self._intersect((0.0, 0.0, -20.0), 4.0, (0.0, 0.0, 0.0), (0.0, 1.0, 0.0))
        assert hit == 0

    def test_center_behind_origin_is_a_miss(self):
        """Test that a sphere whose center is behind the origin is never hit."""
        hit, _, _ = self._intersect((0.0, 0.0, 5.0), 4.0, (0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert hit == 0

    def test_origin_inside_sphere(self):
        """Test ray starting inside the sphere: t0 < 0 < t1."""
        hit, t0, t1 = self._intersect((0.0, 0.0, -1.0), 4.0, (0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert hit == 1
        assert t0 < 0.0
        assert abs(t1 - 5.0) < 1e-4

    def test_hits_symmetric_about_projected_center(self):
        """Test that t0 and t1 are symmetric around the center's projection."""
        hit, t0, t1 = self._intersect((0.0, 1.0, -10.0), 2.0, (0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert hit == 1
        assert t0 <= t1
        assert abs((t0 + t1) / 2.0 - 10.0) < 1e-4

    @pytest.mark.parametrize("offset", [0.0, 1.5, 3.9])
    def test_off_axis_rays_hit(self, offset):
        """Test off-axis rays inside the silhouette hit."""
        hit, _, _ = self._intersect((offset, 0.0, -20.0), 4.0, (0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert hit == 1


class TestSphereColor:
    """Tests for surface color lookup."""

    def test_flat_color_without_texture(self):
        """Test that untextured spheres return their surface color."""
        from whitted.geometry.sphere import make_sphere, sphere_color, vec3

        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            sphere = make_sphere(vec3(0.0, 0.0, 0.0), 1.0, vec3(0.9, 0.76, 0.46))
            result[None] = sphere_color(sphere, vec3(0.0, 1.0, 0.0))

        test_kernel()
        c = result[None]
        assert abs(c[0] - 0.9) < 1e-6
        assert abs(c[1] - 0.76) < 1e-6
        assert abs(c[2] - 0.46) < 1e-6

    def test_textured_color_poles(self):
        """Test that the north pole samples the top row and the south pole the bottom."""
        import numpy as np

        from whitted.geometry.sphere import Sphere, sphere_color, vec3
        from whitted.materials.texture import add_texture

        # Two rows: red on top, blue at the bottom
        pixels = np.zeros((2, 4, 3), dtype=np.float32)
        pixels[0, :, 0] = 1.0
        pixels[1, :, 2] = 1.0
        offset = add_texture(pixels)

        top = ti.Vector.field(3, dtype=ti.f32, shape=())
        bottom = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(offset: ti.i32):
            sphere = Sphere(
                center=vec3(0.0, 0.0, 0.0),
                radius=2.0,
                radius2=4.0,
                surface_color=vec3(0.0, 1.0, 0.0),
                emission_color=vec3(0.0, 0.0, 0.0),
                reflectivity=0.0,
                transparency=0.0,
                texture_offset=offset,
                texture_width=4,
                texture_height=2,
            )
            top[None] = sphere_color(sphere, vec3(0.0, 2.0, 0.0))
            # Slightly outside the surface: acos argument must be clamped
            bottom[None] = sphere_color(sphere, vec3(0.0, -2.0001, 0.0))

        test_kernel(offset)
        assert top[None][0] == pytest.approx(1.0)
        assert top[None][2] == pytest.approx(0.0)
        assert bottom[None][0] == pytest.approx(0.0)
        assert bottom[None][2] == pytest.approx(1.0)
