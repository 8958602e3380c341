"""Scene module for primitive storage, materials and demo scenes.

Components:
    intersection: Primitive storage and nearest-hit queries
    manager: Unified scene manager coordinating primitives and materials
    presets: Ready-made demo scenes

Scene data lives in Taichi fields:
    - Structure-of-Arrays layout for spheres and triangles
    - A unified material ID space mapped onto per-type parameter tables
"""

from .intersection import (
    MAX_SPHERES,
    MAX_TRIANGLES,
    SceneHitRecord,
    add_sphere,
    add_triangle,
    clear_scene,
    get_sphere_count,
    get_triangle_count,
    intersect_scene,
)
from .manager import (
    MAX_MATERIALS,
    MaterialInfo,
    MaterialType,
    SceneConfig,
    SceneManager,
    SphereInfo,
    TriangleInfo,
    get_material_type,
    get_material_type_index,
)
from .presets import (
    SCENE_PRESETS,
    create_showcase_scene,
    create_triangle_scene,
    create_two_spheres_scene,
    load_preset,
)

__all__ = [
    # Intersection module
    "SceneHitRecord",
    "add_sphere",
    "add_triangle",
    "clear_scene",
    "get_sphere_count",
    "get_triangle_count",
    "intersect_scene",
    "MAX_SPHERES",
    "MAX_TRIANGLES",
    # Manager module
    "SceneManager",
    "MaterialType",
    "MaterialInfo",
    "SphereInfo",
    "TriangleInfo",
    "SceneConfig",
    "MAX_MATERIALS",
    "get_material_type",
    "get_material_type_index",
    # Presets
    "SCENE_PRESETS",
    "create_two_spheres_scene",
    "create_showcase_scene",
    "create_triangle_scene",
    "load_preset",
]
