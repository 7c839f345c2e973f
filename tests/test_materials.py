"""Unit tests for materials.

Tests cover:
- Material validation and MaterialType coercion
- The device-side material registry
- Diffuse light evaluation
- Reflective and refractive secondary rays
"""

import pytest
import taichi as ti


class TestMaterialData:
    """Tests for the host-side Material dataclass."""

    def test_defaults(self):
        from raycaster.materials.material import Material, MaterialType

        material = Material(color=(0.5, 0.5, 0.5))

        assert material.type == MaterialType.DIFFUSE
        assert material.refractive_index == 1.0

    def test_int_type_is_coerced(self):
        """Test a plain int type becomes a MaterialType."""
        from raycaster.materials.material import Material, MaterialType

        material = Material(color=(1, 1, 1), type=2, refractive_index=1.3)

        assert material.type is MaterialType.REFRACTIVE
        assert material.color == (1.0, 1.0, 1.0)

    def test_equal_materials_hash_equal(self):
        """Test materials can be used as dictionary keys."""
        from raycaster.materials.material import Material, MaterialType

        a = Material(color=(0.2, 0.3, 0.4), type=MaterialType.REFLECTIVE)
        b = Material(color=[0.2, 0.3, 0.4], type=1)

        assert a == b
        assert hash(a) == hash(b)

    def test_negative_color_raises(self):
        from raycaster.materials.material import Material

        with pytest.raises(ValueError, match="negative"):
            Material(color=(0.5, -0.1, 0.5))

    def test_wrong_color_length_raises(self):
        from raycaster.materials.material import Material

        with pytest.raises(ValueError, match="3 components"):
            Material(color=(0.5, 0.5))

    def test_refractive_ior_below_one_raises(self):
        from raycaster.materials.material import Material, MaterialType

        with pytest.raises(ValueError, match="IOR"):
            Material(color=(1.0, 1.0, 1.0), type=MaterialType.REFRACTIVE, refractive_index=0.9)

    def test_unknown_type_raises(self):
        from raycaster.materials.material import Material

        with pytest.raises(ValueError):
            Material(color=(1.0, 1.0, 1.0), type=7)

    def test_colors_above_one_allowed(self):
        """Test colors are not clamped or rejected above 1."""
        from raycaster.materials.material import Material

        assert Material(color=(2.0, 1.5, 1.0)).color == (2.0, 1.5, 1.0)


class TestMaterialRegistry:
    """Tests for the Taichi field registry."""

    def test_add_material_assigns_sequential_ids(self):
        from raycaster.materials.material import Material, add_material, get_material_count

        assert add_material(Material(color=(1.0, 0.0, 0.0))) == 0
        assert add_material(Material(color=(0.0, 1.0, 0.0))) == 1
        assert get_material_count() == 2

    def test_registry_lookup_in_kernel(self):
        """Test color, type and IOR can be read back on the device."""
        from raycaster.materials.material import (
            Material,
            MaterialType,
            add_material,
            get_material_color,
            get_material_ior,
            get_material_type,
        )

        add_material(Material(color=(1.0, 0.0, 0.0)))
        glass = add_material(
            Material(color=(0.9, 0.8, 0.7), type=MaterialType.REFRACTIVE, refractive_index=1.5)
        )

        color = ti.field(dtype=ti.math.vec3, shape=())
        mat_type = ti.field(dtype=ti.i32, shape=())
        ior = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(material_id: ti.i32):
            color[None] = get_material_color(material_id)
            mat_type[None] = get_material_type(material_id)
            ior[None] = get_material_ior(material_id)

        test_kernel(glass)
        c = color[None]
        assert abs(c[0] - 0.9) < 1e-6
        assert abs(c[1] - 0.8) < 1e-6
        assert abs(c[2] - 0.7) < 1e-6
        assert mat_type[None] == int(MaterialType.REFRACTIVE)
        assert abs(ior[None] - 1.5) < 1e-6

    def test_invalid_material_type_is_minus_one(self):
        """Test unknown material ids report type -1."""
        from raycaster.materials.material import Material, add_material, get_material_type

        add_material(Material(color=(1.0, 1.0, 1.0)))
        result = ti.field(dtype=ti.i32, shape=2)

        @ti.kernel
        def test_kernel():
            result[0] = get_material_type(-1)
            result[1] = get_material_type(5)

        test_kernel()
        assert result[0] == -1
        assert result[1] == -1

    def test_clear_materials(self):
        from raycaster.materials.material import (
            Material,
            add_material,
            clear_materials,
            get_material_count,
        )

        add_material(Material(color=(1.0, 1.0, 1.0)))
        clear_materials()
        assert get_material_count() == 0


class TestDiffuse:
    """Tests for the diffuse lighting term."""

    def test_light_along_normal(self):
        """Test a light straight above gives color * light."""
        from raycaster.materials.diffuse import eval_diffuse, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = eval_diffuse(
                vec3(0.5, 0.4, 1.0),
                vec3(1.0, 1.0, 0.5),
                vec3(0.0, 1.0, 0.0),
                vec3(0.0, 1.0, 0.0),
            )

        test_kernel()
        c = result[None]
        assert abs(c[0] - 0.5) < 1e-6
        assert abs(c[1] - 0.4) < 1e-6
        assert abs(c[2] - 0.5) < 1e-6

    def test_cosine_falloff(self):
        """Test a light at 60 degrees gives half the intensity."""
        from raycaster.materials.diffuse import diffuse_strength, vec3

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            light_dir = vec3(ti.sqrt(3.0) / 2.0, 0.5, 0.0)
            result[None] = diffuse_strength(vec3(0.0, 1.0, 0.0), light_dir)

        test_kernel()
        assert abs(result[None] - 0.5) < 1e-6

    def test_light_behind_surface_contributes_nothing(self):
        from raycaster.materials.diffuse import eval_diffuse, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = eval_diffuse(
                vec3(1.0, 1.0, 1.0),
                vec3(1.0, 1.0, 1.0),
                vec3(0.0, 1.0, 0.0),
                vec3(0.0, -1.0, 0.0),
            )

        test_kernel()
        c = result[None]
        assert c[0] == 0.0 and c[1] == 0.0 and c[2] == 0.0

    def test_bright_light_is_not_clamped(self):
        from raycaster.materials.diffuse import eval_diffuse, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = eval_diffuse(
                vec3(1.0, 1.0, 1.0),
                vec3(3.0, 3.0, 3.0),
                vec3(0.0, 1.0, 0.0),
                vec3(0.0, 1.0, 0.0),
            )

        test_kernel()
        assert abs(result[None][0] - 3.0) < 1e-6


class TestReflective:
    """Tests for mirror secondary rays."""

    def test_scatter_reflective(self):
        """Test the reflected ray starts BIAS above the surface."""
        from raycaster.core.hit import BIAS, RayHit
        from raycaster.materials.reflective import scatter_reflective, vec3

        origin = ti.field(dtype=ti.math.vec3, shape=())
        direction = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            rec = RayHit(
                hit=1,
                t=1.0,
                position=vec3(0.0, 0.0, 0.0),
                normal=vec3(0.0, 1.0, 0.0),
                incident=ti.math.normalize(vec3(1.0, -1.0, 0.0)),
                material_id=0,
            )
            o, d = scatter_reflective(rec)
            origin[None] = o
            direction[None] = d

        test_kernel()
        assert abs(origin[None][1] - BIAS) < 1e-7
        d = direction[None]
        assert d[1] > 0.0
        assert abs(d[0] - d[1]) < 1e-5


class TestRefractive:
    """Tests for Fresnel-weighted refractive secondary rays."""

    def _scatter(self, incident, normal, ior):
        from raycaster.core.hit import RayHit
        from raycaster.materials.refractive import scatter_refractive, vec3

        kr = ti.field(dtype=ti.f32, shape=())
        vectors = ti.Vector.field(3, dtype=ti.f32, shape=4)
        has_refraction = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel(
            ix: ti.f32, iy: ti.f32, iz: ti.f32,
            nx: ti.f32, ny: ti.f32, nz: ti.f32,
            ior: ti.f32,
        ):
            rec = RayHit(
                hit=1,
                t=1.0,
                position=vec3(0.0, 0.0, 0.0),
                normal=vec3(nx, ny, nz),
                incident=ti.math.normalize(vec3(ix, iy, iz)),
                material_id=0,
            )
            k, refl_o, refl_d, refr_o, refr_d, has_refr = scatter_refractive(rec, ior)
            kr[None] = k
            vectors[0] = refl_o
            vectors[1] = refl_d
            vectors[2] = refr_o
            vectors[3] = refr_d
            has_refraction[None] = has_refr

        test_kernel(*incident, *normal, ior)
        return kr[None], vectors.to_numpy(), has_refraction[None]

    def test_entering_origins(self):
        """Test entering glass puts refraction below and reflection above."""
        from raycaster.core.hit import BIAS

        kr, v, has_refraction = self._scatter((0.0, -1.0, 0.0), (0.0, 1.0, 0.0), 1.5)

        assert abs(kr - 0.04) < 1e-5
        assert has_refraction == 1
        assert abs(v[0][1] - BIAS) < 1e-7  # reflect origin
        assert abs(v[2][1] + BIAS) < 1e-7  # refract origin
        assert v[3][1] < 0.0  # continues into the medium

    def test_exiting_origins(self):
        """Test exiting glass puts refraction outside and reflection inside."""
        from raycaster.core.hit import BIAS

        # Inside a sphere, the outward normal points along the ray
        _, v, has_refraction = self._scatter((0.0, 1.0, 0.0), (0.0, 1.0, 0.0), 1.5)

        assert has_refraction == 1
        assert abs(v[0][1] + BIAS) < 1e-7
        assert abs(v[2][1] - BIAS) < 1e-7
        assert v[3][1] > 0.0

    def test_total_internal_reflection_has_no_refraction(self):
        """Test TIR gives kr == 1 and no refracted ray."""
        kr, v, has_refraction = self._scatter((0.866025, 0.5, 0.0), (0.0, 1.0, 0.0), 1.5)

        assert kr == 1.0
        assert has_refraction == 0
        # Reflection stays inside
        assert v[1][1] < 0.0

    def test_is_outside(self):
        from raycaster.core.hit import RayHit
        from raycaster.materials.refractive import is_outside, vec3

        result = ti.field(dtype=ti.i32, shape=2)

        @ti.kernel
        def test_kernel():
            rec = RayHit(
                hit=1,
                t=1.0,
                position=vec3(0.0, 0.0, 0.0),
                normal=vec3(0.0, 1.0, 0.0),
                incident=vec3(0.0, -1.0, 0.0),
                material_id=0,
            )
            result[0] = is_outside(rec)
            rec.incident = vec3(0.0, 1.0, 0.0)
            result[1] = is_outside(rec)

        test_kernel()
        assert result[0] == 1
        assert result[1] == 0
