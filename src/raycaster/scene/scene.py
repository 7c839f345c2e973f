"""Scene container that owns entities, lights and options and drives rendering.

The Scene provides a high-level API over the Taichi field storage: it
registers materials (deduplicated, so a material shared by many entities is
stored once), adds primitives and lights, and renders with the options it
was built with.

Scene data lives in module-level Taichi fields, so there is one active scene
at a time: constructing a Scene clears whatever the previous one loaded.

While render() runs the scene is read-only; any add_* call raises
RuntimeError.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from raycaster.scene.scene import Scene
    >>> from raycaster.scene.options import SceneOptions
    >>> from raycaster.materials.material import Material, MaterialType
    >>>
    >>> scene = Scene(SceneOptions(width=320, height=240))
    >>> red = Material(color=(1.0, 0.0, 0.0))
    >>> mirror = Material(color=(1.0, 1.0, 1.0), type=MaterialType.REFLECTIVE)
    >>> scene.add_sphere((0.0, 0.0, 5.0), 1.0, red)
    >>> scene.add_plane((0.0, -1.0, 0.0), (0.0, 1.0, 0.0), mirror)
    >>> scene.add_point_light((0.0, 3.0, 3.0), (1.0, 1.0, 1.0))
    >>> image = scene.render()
"""

import logging
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt

from raycaster.camera.thin_lens import ThinLensCamera, setup_camera
from raycaster.core.image import PixelBuffer
from raycaster.core.integrator import set_aa_jitter, set_dof_samples
from raycaster.core.renderer import ProgressCallback, Renderer
from raycaster.materials.material import Material, add_material, clear_materials
from raycaster.scene.intersection import (
    add_plane,
    add_sphere,
    add_triangle,
    add_triangles,
    clear_scene,
    set_shadow_test,
)
from raycaster.scene.lights import PointLight, add_point_light, clear_lights
from raycaster.scene.options import SceneOptions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SphereInfo:
    """Information about a sphere in the scene.

    Attributes:
        sphere_index: The index in the sphere storage arrays.
        center: The center of the sphere.
        radius: The radius of the sphere.
        material_id: The material ID assigned to the sphere.
    """

    sphere_index: int
    center: tuple[float, float, float]
    radius: float
    material_id: int


@dataclass(frozen=True)
class PlaneInfo:
    """Information about a plane in the scene."""

    plane_index: int
    center: tuple[float, float, float]
    normal: tuple[float, float, float]
    material_id: int


@dataclass(frozen=True)
class TriangleInfo:
    """Information about a block of triangles (a single triangle or a mesh).

    Attributes:
        indices: The range of indices in the triangle storage arrays.
        material_id: The material ID shared by the triangles.
    """

    indices: range
    material_id: int


MaterialRef = Material | int


class Scene:
    """A renderable set of entities and lights plus its SceneOptions.

    Attributes:
        options: The render options.
        materials: Registered materials, indexed by material ID.
        spheres: Spheres added to the scene.
        planes: Planes added to the scene.
        triangles: Triangle blocks added to the scene.
        lights: Point lights added to the scene.
    """

    def __init__(self, options: SceneOptions | None = None) -> None:
        """Initialize an empty scene, clearing any previously loaded one."""
        self.options = options if options is not None else SceneOptions()
        self.materials: list[Material] = []
        self.spheres: list[SphereInfo] = []
        self.planes: list[PlaneInfo] = []
        self.triangles: list[TriangleInfo] = []
        self.lights: list[PointLight] = []
        self._material_ids: dict[Material, int] = {}
        self._rendering = False
        self._clear_all()

    def _clear_all(self) -> None:
        """Clear all scene data including Taichi fields."""
        clear_scene()
        clear_materials()
        clear_lights()
        self.materials.clear()
        self.spheres.clear()
        self.planes.clear()
        self.triangles.clear()
        self.lights.clear()
        self._material_ids.clear()

    def _check_mutable(self) -> None:
        if self._rendering:
            raise RuntimeError("Scene is read-only while rendering")

    def clear(self) -> None:
        """Remove every entity, light and material.

        Raises:
            RuntimeError: If called while rendering.
        """
        self._check_mutable()
        self._clear_all()

    @property
    def is_rendering(self) -> bool:
        """Whether a render is in progress."""
        return self._rendering

    @property
    def entity_count(self) -> int:
        """Total number of primitives (triangles counted one by one)."""
        return (
            len(self.spheres)
            + len(self.planes)
            + sum(len(block.indices) for block in self.triangles)
        )

    # =========================================================================
    # Material Management
    # =========================================================================

    def add_material(self, material: Material) -> int:
        """Register a material and return its ID.

        Registering an equal material again returns the existing ID.

        Raises:
            RuntimeError: If called while rendering or the maximum number of
                materials is exceeded.
        """
        self._check_mutable()
        existing = self._material_ids.get(material)
        if existing is not None:
            return existing

        material_id = add_material(material)
        self._material_ids[material] = material_id
        self.materials.append(material)
        logger.debug("Added material %d: %s", material_id, material)
        return material_id

    def _resolve_material(self, material: MaterialRef) -> int:
        """Turn a Material or material ID into a valid material ID."""
        if isinstance(material, Material):
            return self.add_material(material)
        material_id = int(material)
        if material_id < 0 or material_id >= len(self.materials):
            raise ValueError(f"Invalid material_id: {material_id}")
        return material_id

    # =========================================================================
    # Primitive Management
    # =========================================================================

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material: MaterialRef,
    ) -> int:
        """Add a sphere to the scene.

        Args:
            center: The center point of the sphere as (x, y, z).
            radius: The radius of the sphere.
            material: A Material or a registered material ID.

        Returns:
            The index of the added sphere.

        Raises:
            RuntimeError: If called while rendering or the maximum number of
                spheres is exceeded.
            ValueError: If material is an unknown material ID.
        """
        self._check_mutable()
        material_id = self._resolve_material(material)
        sphere_index = add_sphere(center, radius, material_id)
        self.spheres.append(
            SphereInfo(
                sphere_index=sphere_index,
                center=tuple(center),
                radius=radius,
                material_id=material_id,
            )
        )
        return sphere_index

    def add_plane(
        self,
        center: tuple[float, float, float],
        normal: tuple[float, float, float],
        material: MaterialRef,
    ) -> int:
        """Add an infinite plane to the scene.

        Args:
            center: Any point on the plane.
            normal: The plane normal (normalized on registration).
            material: A Material or a registered material ID.

        Returns:
            The index of the added plane.

        Raises:
            RuntimeError: If called while rendering or the maximum number of
                planes is exceeded.
            ValueError: If material is an unknown material ID.
        """
        self._check_mutable()
        material_id = self._resolve_material(material)
        plane_index = add_plane(center, normal, material_id)
        self.planes.append(
            PlaneInfo(
                plane_index=plane_index,
                center=tuple(center),
                normal=tuple(normal),
                material_id=material_id,
            )
        )
        return plane_index

    def add_triangle(
        self,
        v0: tuple[float, float, float],
        v1: tuple[float, float, float],
        v2: tuple[float, float, float],
        material: MaterialRef,
    ) -> int:
        """Add a triangle; the winding v0 -> v1 -> v2 defines its normal.

        Returns:
            The index of the added triangle.

        Raises:
            RuntimeError: If called while rendering or the maximum number of
                triangles is exceeded.
            ValueError: If material is an unknown material ID.
        """
        self._check_mutable()
        material_id = self._resolve_material(material)
        triangle_index = add_triangle(v0, v1, v2, material_id)
        self.triangles.append(
            TriangleInfo(
                indices=range(triangle_index, triangle_index + 1),
                material_id=material_id,
            )
        )
        return triangle_index

    def add_mesh(
        self,
        vertices: npt.ArrayLike,
        faces: npt.ArrayLike,
        material: MaterialRef,
    ) -> range:
        """Add an already-loaded triangle mesh.

        Args:
            vertices: Array of shape (num_vertices, 3).
            faces: Integer array of shape (num_faces, 3) of vertex indices.
            material: A Material or a registered material ID shared by every
                face.

        Returns:
            The range of triangle indices assigned to the mesh.

        Raises:
            RuntimeError: If called while rendering or the maximum number of
                triangles would be exceeded.
            ValueError: If the arrays are malformed or material is unknown.
        """
        self._check_mutable()
        material_id = self._resolve_material(material)
        indices = add_triangles(np.asarray(vertices), np.asarray(faces), material_id)
        self.triangles.append(TriangleInfo(indices=indices, material_id=material_id))
        logger.debug("Added mesh with %d triangles", len(indices))
        return indices

    # =========================================================================
    # Lights
    # =========================================================================

    def add_point_light(
        self,
        position: tuple[float, float, float],
        color: tuple[float, float, float],
    ) -> int:
        """Add a point light to the scene.

        Returns:
            The index of the added light.

        Raises:
            RuntimeError: If called while rendering or the maximum number of
                lights is exceeded.
            ValueError: If any color component is negative.
        """
        self._check_mutable()
        light_index = add_point_light(position, color)
        self.lights.append(PointLight(position=tuple(position), color=tuple(color)))
        return light_index

    # =========================================================================
    # Rendering
    # =========================================================================

    def _prepare(self) -> None:
        """Push the options into the camera and sampling fields."""
        setup_camera(ThinLensCamera.from_options(self.options))
        set_shadow_test(self.options.shadow_test)
        set_dof_samples(self.options.dof_samples)
        set_aa_jitter(self.options.aa_jitter)

    def render(
        self,
        output: PixelBuffer | None = None,
        callback: ProgressCallback | None = None,
        batch_rows: int | None = None,
    ) -> PixelBuffer:
        """Render the scene.

        Args:
            output: Pixel buffer to write into. Created when omitted; must
                match the options' width and height otherwise.
            callback: Optional progress callback receiving
                (rows_done, total_rows) after each batch of rows.
            batch_rows: Rows per batch. Defaults to the Renderer default.

        Returns:
            The pixel buffer holding the clamped image.
        """
        logger.debug(
            "Rendering scene: %d entities, %d lights, %d materials",
            self.entity_count,
            len(self.lights),
            len(self.materials),
        )
        self._rendering = True
        try:
            self._prepare()
            if batch_rows is None:
                renderer = Renderer(self.options.width, self.options.height)
            else:
                renderer = Renderer(self.options.width, self.options.height, batch_rows)
            return renderer.render(output=output, callback=callback)
        finally:
            self._rendering = False

    def __repr__(self) -> str:
        return (
            f"Scene(entities={self.entity_count}, lights={len(self.lights)}, "
            f"materials={len(self.materials)}, options={self.options!r})"
        )
