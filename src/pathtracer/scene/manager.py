"""Scene building: one material id space shared by every primitive.

Spheres and triangles only store an integer material id. The tables in this
module translate that id into a material kind and a slot in the matching
per-kind registry (lambertian, metal or dielectric parameters), which is
what the integrator dispatches on. SceneManager is the Python-side builder
that keeps both in step and can round-trip a scene through plain dicts.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> red = scene.add_lambertian_material(albedo=(0.7, 0.1, 0.1))
    >>> scene.add_sphere(center=(0, 0, -1), radius=0.5, material_id=red)
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

import taichi as ti
import taichi.math as tm

from src.pathtracer.materials.dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
)
from src.pathtracer.materials.lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
)
from src.pathtracer.materials.metal import (
    add_metal_material,
    clear_metal_materials,
)
from src.pathtracer.scene.intersection import (
    MAX_SPHERES,
    MAX_TRIANGLES,
    add_sphere,
    add_triangle,
    clear_scene,
    get_sphere_count,
    get_triangle_count,
)

Vec3Tuple = tuple[float, float, float]

vec3 = tm.vec3


class MaterialType(IntEnum):
    """Material kinds the integrator knows how to scatter."""

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2
    NULL = 3


MAX_MATERIALS = 1024

# Per material id: its MaterialType and its slot in that kind's registry
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def _clear_material_tracking() -> None:
    num_materials[None] = 0


@ti.func
def _lookup(table: ti.template(), material_id: ti.i32) -> ti.i32:
    value = -1
    if material_id >= 0 and material_id < num_materials[None]:
        value = table[material_id]
    return value


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """MaterialType of a material id, or -1 when the id was never registered."""
    return _lookup(material_types, material_id)


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Registry slot of a material id, or -1 when the id was never registered."""
    return _lookup(material_type_indices, material_id)


@dataclass
class MaterialInfo:
    """Host-side record of a registered material.

    Attributes:
        material_id: Id shared by all material kinds.
        material_type: Which registry the material lives in.
        type_index: Slot within that registry.
        params: Constructor arguments, kept for serialization.
    """

    material_id: int
    material_type: MaterialType
    type_index: int
    params: dict[str, Any]


@dataclass
class SphereInfo:
    sphere_index: int
    center: Vec3Tuple
    radius: float
    material_id: int


@dataclass
class TriangleInfo:
    triangle_index: int
    v0: Vec3Tuple
    v1: Vec3Tuple
    v2: Vec3Tuple
    material_id: int


@dataclass
class SceneConfig:
    """Plain-data form of a scene, one list of dicts per table."""

    materials: list[dict[str, Any]] = field(default_factory=list)
    spheres: list[dict[str, Any]] = field(default_factory=list)
    triangles: list[dict[str, Any]] = field(default_factory=list)


def _as_tuple(values: Any) -> Vec3Tuple:
    return (float(values[0]), float(values[1]), float(values[2]))


class SceneManager:
    """Builds the active scene and mirrors it on the host.

    Every add_* call writes the Taichi tables immediately and appends a
    host-side record used for queries and serialization. The tables are
    module-level, so a process has exactly one active scene and creating a
    manager wipes whatever was there before.

    Example:
        >>> scene = SceneManager()
        >>> ground = scene.add_lambertian_material(albedo=(0.1, 0.7, 0.1))
        >>> mirror = scene.add_metal_material(albedo=(0.8, 0.8, 0.8), roughness=0.0)
        >>> water = scene.add_dielectric_material(ior=1.33)
        >>> scene.add_sphere((0, -100.5, -1), 100.0, ground)
        >>> scene.add_sphere((1, 0, -1), 0.5, mirror)
        >>> scene.add_sphere((-1, 0, -1), 0.5, water)
    """

    def __init__(self) -> None:
        self.materials: list[MaterialInfo] = []
        self.spheres: list[SphereInfo] = []
        self.triangles: list[TriangleInfo] = []
        self.clear()

    def clear(self) -> None:
        """Drop all primitives and materials."""
        clear_scene()
        for clear_registry in (clear_lambertian_materials, clear_metal_materials, clear_dielectric_materials):
            clear_registry()
        _clear_material_tracking()
        self.materials.clear()
        self.spheres.clear()
        self.triangles.clear()

    # -- materials ------------------------------------------------------------

    def _register_material(
        self,
        material_type: MaterialType,
        type_index: int,
        params: dict[str, Any],
    ) -> int:
        next_id = num_materials[None]
        if next_id >= MAX_MATERIALS:
            raise RuntimeError(f"Material table is full ({MAX_MATERIALS} entries)")

        material_types[next_id] = int(material_type)
        material_type_indices[next_id] = type_index
        num_materials[None] = next_id + 1

        self.materials.append(MaterialInfo(next_id, material_type, type_index, params))
        return next_id

    def add_lambertian_material(self, albedo: Vec3Tuple) -> int:
        """Register a diffuse material and return its id.

        Raises:
            ValueError: An albedo channel lies outside [0, 1].
            RuntimeError: No material slots are left.
        """
        slot = add_lambertian_material(albedo)
        return self._register_material(MaterialType.LAMBERTIAN, slot, {"albedo": albedo})

    def add_metal_material(self, albedo: Vec3Tuple, roughness: float = 0.0) -> int:
        """Register a metal; roughness 0 is a perfect mirror, 1 the fuzziest.

        Raises:
            ValueError: An albedo channel or the roughness lies outside [0, 1].
            RuntimeError: No material slots are left.
        """
        slot = add_metal_material(albedo, roughness)
        return self._register_material(MaterialType.METAL, slot, {"albedo": albedo, "roughness": roughness})

    def add_dielectric_material(self, ior: float = 1.5) -> int:
        """Register a transparent material with refractive index ``ior``.

        Water is about 1.33, window glass 1.5 and diamond 2.4.

        Raises:
            ValueError: ``ior`` is not positive.
            RuntimeError: No material slots are left.
        """
        slot = add_dielectric_material(ior)
        return self._register_material(MaterialType.DIELECTRIC, slot, {"ior": ior})

    def add_null_material(self) -> int:
        """Register a material that absorbs every ray."""
        return self._register_material(MaterialType.NULL, 0, {})

    def get_material_count(self) -> int:
        return int(num_materials[None])

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    def get_material_type_python(self, material_id: int) -> MaterialType | None:
        """Host-side twin of get_material_type()."""
        info = self.get_material_info(material_id)
        return None if info is None else info.material_type

    # -- primitives -----------------------------------------------------------

    def _check_material_id(self, material_id: int) -> None:
        if not 0 <= material_id < num_materials[None]:
            raise ValueError(f"Unknown material id {material_id}")

    def add_sphere(self, center: Vec3Tuple, radius: float, material_id: int) -> int:
        """Add a sphere and return its index in the sphere table.

        Raises:
            ValueError: Unknown material id or a radius that is not positive.
            RuntimeError: The sphere table is full.
        """
        self._check_material_id(material_id)
        index = add_sphere(vec3(center[0], center[1], center[2]), radius, material_id)
        self.spheres.append(SphereInfo(index, center, radius, material_id))
        return index

    def add_triangle(self, v0: Vec3Tuple, v1: Vec3Tuple, v2: Vec3Tuple, material_id: int) -> int:
        """Add a triangle and return its index in the triangle table.

        The winding v0, v1, v2 fixes the geometric normal, but both faces
        are hit.

        Raises:
            ValueError: Unknown material id.
            RuntimeError: The triangle table is full.
        """
        self._check_material_id(material_id)
        index = add_triangle(
            vec3(v0[0], v0[1], v0[2]),
            vec3(v1[0], v1[1], v1[2]),
            vec3(v2[0], v2[1], v2[2]),
            material_id,
        )
        self.triangles.append(TriangleInfo(index, v0, v1, v2, material_id))
        return index

    # Shortcuts that create a fresh material for a single primitive and
    # return (primitive_index, material_id).

    def add_lambertian_sphere(self, center: Vec3Tuple, radius: float, albedo: Vec3Tuple) -> tuple[int, int]:
        material_id = self.add_lambertian_material(albedo)
        return self.add_sphere(center, radius, material_id), material_id

    def add_metal_sphere(
        self,
        center: Vec3Tuple,
        radius: float,
        albedo: Vec3Tuple,
        roughness: float = 0.0,
    ) -> tuple[int, int]:
        material_id = self.add_metal_material(albedo, roughness)
        return self.add_sphere(center, radius, material_id), material_id

    def add_dielectric_sphere(self, center: Vec3Tuple, radius: float, ior: float = 1.5) -> tuple[int, int]:
        material_id = self.add_dielectric_material(ior)
        return self.add_sphere(center, radius, material_id), material_id

    def add_lambertian_triangle(
        self,
        v0: Vec3Tuple,
        v1: Vec3Tuple,
        v2: Vec3Tuple,
        albedo: Vec3Tuple,
    ) -> tuple[int, int]:
        material_id = self.add_lambertian_material(albedo)
        return self.add_triangle(v0, v1, v2, material_id), material_id

    # -- queries --------------------------------------------------------------

    def get_sphere_count(self) -> int:
        return get_sphere_count()

    def get_triangle_count(self) -> int:
        return get_triangle_count()

    def get_primitive_count(self) -> int:
        return self.get_sphere_count() + self.get_triangle_count()

    @staticmethod
    def get_max_spheres() -> int:
        return MAX_SPHERES

    @staticmethod
    def get_max_triangles() -> int:
        return MAX_TRIANGLES

    @staticmethod
    def get_max_materials() -> int:
        return MAX_MATERIALS

    # -- serialization --------------------------------------------------------

    def to_config(self) -> SceneConfig:
        """Snapshot the scene as plain data."""
        return SceneConfig(
            materials=[{"type": info.material_type.name.lower(), **info.params} for info in self.materials],
            spheres=[
                {"center": list(s.center), "radius": s.radius, "material_id": s.material_id} for s in self.spheres
            ],
            triangles=[
                {"v0": list(t.v0), "v1": list(t.v1), "v2": list(t.v2), "material_id": t.material_id}
                for t in self.triangles
            ],
        )

    def from_config(self, config: SceneConfig) -> None:
        """Replace the current scene with ``config``.

        Materials are loaded first so that primitives can refer to them by id.

        Raises:
            ValueError: An unknown material type, or any value the add_*
                methods reject.
        """
        self.clear()

        for entry in config.materials:
            kind = entry.get("type", "").lower()
            if kind == "lambertian":
                self.add_lambertian_material(_as_tuple(entry.get("albedo", [0.5, 0.5, 0.5])))
            elif kind == "metal":
                self.add_metal_material(_as_tuple(entry.get("albedo", [0.8, 0.8, 0.8])), entry.get("roughness", 0.0))
            elif kind == "dielectric":
                self.add_dielectric_material(entry.get("ior", 1.5))
            elif kind == "null":
                self.add_null_material()
            else:
                raise ValueError(f"Unknown material type: {kind}")

        for entry in config.spheres:
            self.add_sphere(
                _as_tuple(entry.get("center", [0, 0, 0])),
                entry.get("radius", 1.0),
                entry.get("material_id", 0),
            )

        for entry in config.triangles:
            self.add_triangle(
                _as_tuple(entry.get("v0", [0, 0, 0])),
                _as_tuple(entry.get("v1", [1, 0, 0])),
                _as_tuple(entry.get("v2", [0, 1, 0])),
                entry.get("material_id", 0),
            )

    def to_dict(self) -> dict[str, Any]:
        """Scene as a JSON-ready dict with materials, spheres and triangles keys."""
        config = self.to_config()
        return {"materials": config.materials, "spheres": config.spheres, "triangles": config.triangles}

    def from_dict(self, data: dict[str, Any]) -> None:
        self.from_config(
            SceneConfig(
                materials=data.get("materials", []),
                spheres=data.get("spheres", []),
                triangles=data.get("triangles", []),
            )
        )
