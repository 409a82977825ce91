"""Tests for the Whitted shading engine.

Tests cover:
- Background color for escaped rays
- Lambertian direct lighting and binary shadows
- Emission added on top of shading
- Mirror reflection and the recursion budget
- Transparent spheres, including total internal reflection
- Host-side validation of the recursion budget
"""

import math

import pytest
import taichi as ti

LIGHT_EMISSION = (3.0, 3.0, 3.0)


def _approx(color, expected, abs_tol=1e-4):
    return all(abs(c - e) < abs_tol for c, e in zip(color, expected))


class TestFresnelFactor:
    """Tests for the Fresnel blend term."""

    @pytest.mark.parametrize(
        "direction,expected",
        [
            ((0.0, 0.0, -1.0), 0.1),  # head-on
            ((1.0, 0.0, 0.0), 1.0),  # grazing
        ],
    )
    def test_fresnel_range(self, direction, expected):
        """Test that the factor runs from 0.1 head-on to 1.0 at grazing incidence."""
        from whitted.core.shading import fresnel_factor, vec3

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(dx: ti.f32, dy: ti.f32, dz: ti.f32):
            result[None] = fresnel_factor(vec3(dx, dy, dz), vec3(0.0, 0.0, 1.0))

        test_kernel(*direction)
        assert abs(result[None] - expected) < 1e-5


class TestBackground:
    """Tests for rays that escape the scene."""

    def test_empty_scene_returns_background(self):
        """Test that an empty scene yields the background color (2, 2, 2)."""
        from whitted.core.shading import trace_ray

        color = trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert _approx(color, (2.0, 2.0, 2.0))

    def test_miss_returns_background(self):
        """Test that a ray missing every sphere yields the background color."""
        from whitted.core.shading import trace_ray
        from whitted.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_sphere((0.0, 0.0, -20.0), 4.0, (1.0, 0.32, 0.36))

        color = trace_ray((0.0, 0.0, 0.0), (0.0, 1.0, 0.0))
        assert _approx(color, (2.0, 2.0, 2.0))


class TestDirectLighting:
    """Tests for diffuse shading by emissive spheres."""

    def test_lambertian_head_on(self):
        """Test color * max(0, N . L) * emission with the light straight ahead of the normal."""
        from whitted.core.shading import trace_ray
        from whitted.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_sphere((0.0, 0.0, -20.0), 4.0, (1.0, 0.32, 0.36))
        # Behind the camera, so the primary ray never reaches it
        scene.add_sphere((0.0, 0.0, 10.0), 1.0, (0.0, 0.0, 0.0), emission_color=LIGHT_EMISSION)

        color = trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert _approx(color, (3.0, 0.96, 1.08))

    def test_no_distance_falloff(self):
        """Test that moving the light farther away does not dim the surface."""
        from whitted.core.shading import trace_ray
        from whitted.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_sphere((0.0, 0.0, -20.0), 4.0, (0.5, 0.5, 0.5))
        scene.add_sphere((0.0, 0.0, 1000.0), 1.0, (0.0, 0.0, 0.0), emission_color=LIGHT_EMISSION)

        color = trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert _approx(color, (1.5, 1.5, 1.5))

    def test_light_behind_surface_contributes_nothing(self):
        """Test that N . L is clamped at zero."""
        from whitted.core.shading import trace_ray
        from whitted.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_sphere((0.0, 0.0, -20.0), 4.0, (0.5, 0.5, 0.5))
        scene.add_sphere((0.0, 0.0, -60.0), 1.0, (0.0, 0.0, 0.0), emission_color=LIGHT_EMISSION)

        color = trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert _approx(color, (0.0, 0.0, 0.0))

    def test_shadowed_point_is_black(self):
        """Test that any sphere on the shadow ray blocks the light completely."""
        from whitted.core.shading import trace_ray
        from whitted.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_sphere((0.0, 0.0, -20.0), 4.0, (0.5, 0.5, 0.5))
        scene.add_sphere((0.0, 30.0, -20.0), 1.0, (0.0, 0.0, 0.0), emission_color=LIGHT_EMISSION)

        # Looking straight down at the top of the sphere
        lit = trace_ray((0.0, 10.0, -20.0), (0.0, -1.0, 0.0))
        assert _approx(lit, (1.5, 1.5, 1.5))

        # Small blocker above the ray origin, between the surface and the light
        scene.add_sphere((0.0, 20.0, -20.0), 1.0, (0.5, 0.5, 0.5))
        shadowed = trace_ray((0.0, 10.0, -20.0), (0.0, -1.0, 0.0))
        assert _approx(shadowed, (0.0, 0.0, 0.0))

    def test_lights_need_positive_red_emission(self):
        """Test that a sphere emitting only green and blue does not light others."""
        from whitted.core.shading import trace_ray
        from whitted.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_sphere((0.0, 0.0, -20.0), 4.0, (0.5, 0.5, 0.5))
        scene.add_sphere((0.0, 0.0, 10.0), 1.0, (0.0, 0.0, 0.0), emission_color=(0.0, 3.0, 3.0))

        color = trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert _approx(color, (0.0, 0.0, 0.0))

    def test_emission_added_when_hit(self):
        """Test that hitting an emissive sphere returns its emission."""
        from whitted.core.shading import trace_ray
        from whitted.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_sphere((0.0, 20.0, -30.0), 3.0, (0.0, 0.0, 0.0), emission_color=LIGHT_EMISSION)

        color = trace_ray((0.0, 0.0, 0.0), (0.0, 20.0, -30.0))
        assert _approx(color, LIGHT_EMISSION)


class TestReflection:
    """Tests for mirror spheres and the recursion budget."""

    @staticmethod
    def _mirror_scene():
        from whitted.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_sphere((0.0, 0.0, -20.0), 4.0, (0.5, 0.5, 0.5), reflectivity=1.0)
        scene.add_sphere((0.0, 0.0, 10.0), 1.0, (0.0, 0.0, 0.0), emission_color=LIGHT_EMISSION)
        return scene

    def test_depth_zero_shades_directly(self):
        """Test that a mirror reached with no budget left is shaded diffusely."""
        from whitted.core.shading import trace_ray

        self._mirror_scene()
        color = trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), max_depth=0)
        assert _approx(color, (1.5, 1.5, 1.5))

    def test_head_on_mirror_reflects_light(self):
        """Test the reflected light: surface * fresnel(0.1) * emission."""
        from whitted.core.shading import trace_ray

        self._mirror_scene()
        color = trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), max_depth=1)
        assert _approx(color, (0.15, 0.15, 0.15))

    def test_converges_when_paths_end_early(self):
        """Test that extra budget changes nothing once every path has terminated."""
        from whitted.core.shading import trace_ray

        self._mirror_scene()
        shallow = trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), max_depth=5)
        deep = trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), max_depth=50)
        assert _approx(shallow, deep, abs_tol=1e-6)

    def test_mirror_depth_sweep_converges(self):
        """Test that a mirror's color settles once the reflected path ends on a light."""
        from whitted.core.shading import trace_ray

        self._mirror_scene()
        for direction in [(0.0, 0.0, -1.0), (0.05, 0.0, -1.0)]:
            sweep = [
                trace_ray((0.0, 0.0, 0.0), direction, max_depth=depth) for depth in (0, 1, 2, 5, 20)
            ]
            # Depth 0 is diffuse shading; from depth 1 on the value no longer moves
            assert sweep[0] != sweep[1]
            assert all(color == sweep[1] for color in sweep[2:])

    def test_mirror_reflects_background(self):
        """Test that a grazing reflection off a white mirror sees the background."""
        from whitted.core.shading import trace_ray
        from whitted.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_sphere((0.0, 0.0, -20.0), 4.0, (1.0, 1.0, 1.0), reflectivity=1.0)

        # Skims the top of the sphere; fresnel is close to 1
        color = trace_ray((0.0, 3.999, 0.0), (0.0, 0.0, -1.0))
        assert all(1.8 < c <= 2.0 + 1e-4 for c in color)


class TestDepthIndependence:
    """Tests for scenes without reflective or transparent spheres."""

    def test_all_diffuse_scene_ignores_depth(self):
        """Test that a scene with no reflection or transparency is identical at any depth."""
        from whitted.core.shading import trace_ray
        from whitted.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_sphere((0.0, -10004.0, -20.0), 10000.0, (0.2, 0.2, 0.2))
        scene.add_sphere((0.0, 0.0, -20.0), 4.0, (1.0, 0.32, 0.36))
        scene.add_sphere((5.0, -1.0, -15.0), 2.0, (0.90, 0.76, 0.46))
        scene.add_sphere((0.0, 20.0, -30.0), 3.0, (0.0, 0.0, 0.0), emission_color=LIGHT_EMISSION)

        for direction in [(0.0, 0.0, -1.0), (0.0, -0.3, -1.0), (0.3, -0.05, -1.0), (0.0, 0.6, -1.0)]:
            colors = [
                trace_ray((0.0, 0.0, 0.0), direction, max_depth=depth) for depth in (0, 5, 50)
            ]
            assert colors[0] == colors[1] == colors[2]


class TestTransparency:
    """Tests for refraction through glass spheres."""

    def test_glass_bounded_by_background(self):
        """Test that a white glass sphere never brightens the background."""
        from whitted.core.shading import trace_ray
        from whitted.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_sphere(
            (0.0, 0.0, -20.0), 4.0, (1.0, 1.0, 1.0), reflectivity=0.0, transparency=1.0
        )

        for offset in (0.0, 1.0, 2.5, 3.9):
            color = trace_ray((offset, 0.0, 0.0), (0.0, 0.0, -1.0))
            for c in color:
                assert not math.isnan(c)
                assert 0.0 < c <= 2.0 + 1e-4

    def test_total_internal_reflection_is_finite(self):
        """Test that rays trapped inside a sphere stay finite and non-negative."""
        from whitted.core.shading import trace_ray
        from whitted.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_sphere((0.0, 0.0, 0.0), 4.0, (1.0, 1.0, 1.0), transparency=1.0)

        # Starts near the top inside the sphere and meets the surface at grazing incidence
        color = trace_ray((0.0, 3.9, 0.0), (1.0, 0.0, 0.0))
        for c in color:
            assert not math.isnan(c)
            assert not math.isinf(c)
            assert c >= 0.0

    def test_total_internal_reflection_keeps_refracted_share(self):
        """Test that under TIR the refracted weight is added to the reflected ray."""
        from whitted.core.shading import FRESNEL_MIX, trace_ray
        from whitted.scene.manager import SceneManager

        surface = (0.5, 0.8, 1.0)
        transparency = 0.5
        emission = (2.0, 1.0, 0.5)

        # Ray from (0, 3.9, 0) along +x meets the inside of the sphere here
        hit_x = math.sqrt(16.0 - 3.9 * 3.9)
        nx, ny = hit_x / 4.0, 3.9 / 4.0
        reflected = (1.0 - 2.0 * nx * nx, -2.0 * nx * ny, 0.0)
        # Small emitter one unit along the reflected ray, off the primary ray
        emitter_center = (hit_x + reflected[0], 3.9 + reflected[1], 0.0)

        scene = SceneManager()
        scene.add_sphere((0.0, 0.0, 0.0), 4.0, surface, transparency=transparency)
        scene.add_sphere(emitter_center, 0.25, (0.0, 0.0, 0.0), emission_color=emission)

        fresnel = (1.0 - nx) ** 3 * (1.0 - FRESNEL_MIX) + FRESNEL_MIX
        expected = tuple(
            s * (fresnel + (1.0 - fresnel) * transparency) * e for s, e in zip(surface, emission)
        )
        reflection_only = tuple(s * fresnel * e for s, e in zip(surface, emission))

        for max_depth in (1, 5):
            color = trace_ray((0.0, 3.9, 0.0), (1.0, 0.0, 0.0), max_depth=max_depth)
            assert _approx(color, expected)
            assert not _approx(color, reflection_only, abs_tol=1e-2)

    def test_default_scene_center_pixel_is_finite(self):
        """Test the half-transparent center sphere of the demo scene."""
        from whitted.core.shading import trace_ray
        from whitted.scene.default_scene import create_default_scene

        create_default_scene()
        color = trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        for c in color:
            assert not math.isnan(c)
            assert c >= 0.0


class TestTraceRayEntryPoint:
    """Tests for the host-side trace_ray wrapper."""

    def test_direction_is_normalized(self):
        """Test that unnormalized directions give the same color."""
        from whitted.core.shading import trace_ray
        from whitted.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_sphere((0.0, 0.0, -20.0), 4.0, (0.5, 0.5, 0.5))
        scene.add_sphere((0.0, 0.0, 10.0), 1.0, (0.0, 0.0, 0.0), emission_color=LIGHT_EMISSION)

        unit = trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        scaled = trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -7.0))
        assert _approx(unit, scaled, abs_tol=1e-6)

    @pytest.mark.parametrize("max_depth", [-1, 61, 1000])
    def test_invalid_depth_rejected(self, max_depth):
        """Test that out-of-range recursion budgets raise ValueError."""
        from whitted.core.shading import trace_ray

        with pytest.raises(ValueError, match="max_depth"):
            trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), max_depth=max_depth)

    def test_depth_limit_accepted(self):
        """Test that the largest supported budget is accepted."""
        from whitted.core.shading import MAX_DEPTH_LIMIT, trace_ray

        color = trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), max_depth=MAX_DEPTH_LIMIT)
        assert _approx(color, (2.0, 2.0, 2.0))
