"""Ready-made demo scenes.

Each factory clears the active scene, fills it, and returns the
SceneManager together with a camera that frames it. All presets are meant
to be lit by the SKY background palette.

Scenes:
    spheres: A red diffuse sphere resting on a large green diffuse sphere,
        seen through the default camera.
    showcase: Gray metal ground with red diffuse, gold metal, silver mirror
        and water-glass spheres, framed from above and to the right.
    triangles: A diffuse pyramid and a mirror panel built from triangles on
        a diffuse ground sphere.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.scene.presets import create_two_spheres_scene
    >>> from src.pathtracer.camera.pinhole import setup_camera
    >>>
    >>> scene, camera = create_two_spheres_scene()
    >>> setup_camera(camera)
"""

from collections.abc import Callable

from src.pathtracer.camera.pinhole import DEFAULT_CAMERA, PinholeCamera
from src.pathtracer.scene.manager import SceneManager

# Colors used by the presets (linear RGB)
RED = (0.7, 0.1, 0.1)
GREEN = (0.2, 0.6, 0.2)
GRAY = (0.5, 0.5, 0.5)
GOLD = (0.8, 0.6, 0.2)
SILVER = (0.8, 0.8, 0.8)
IVORY = (0.8, 0.8, 0.7)

# Index of refraction of water
WATER_IOR = 1.333


def create_two_spheres_scene(aspect_ratio: float | None = None) -> tuple[SceneManager, PinholeCamera]:
    """Create a red sphere on a green ground sphere.

    Args:
        aspect_ratio: Override for the camera aspect ratio. The default
            camera uses 2.0, which matches a 200x100 image.

    Returns:
        Tuple of (scene, camera).
    """
    scene = SceneManager()
    scene.add_lambertian_sphere(center=(0.0, 0.0, -1.0), radius=0.5, albedo=RED)
    scene.add_lambertian_sphere(center=(0.0, -100.5, -1.0), radius=100.0, albedo=GREEN)

    camera = DEFAULT_CAMERA
    if aspect_ratio is not None:
        camera = camera.with_aspect_ratio(aspect_ratio)
    return scene, camera


def create_showcase_scene(aspect_ratio: float = 16.0 / 9.0) -> tuple[SceneManager, PinholeCamera]:
    """Create the five-sphere metal and dielectric scene.

    Args:
        aspect_ratio: Camera aspect ratio (width / height).

    Returns:
        Tuple of (scene, camera).
    """
    scene = SceneManager()
    scene.add_metal_sphere(center=(0.0, -100.5, -1.0), radius=100.0, albedo=GRAY, roughness=0.5)
    scene.add_lambertian_sphere(center=(0.0, 0.0, -1.0), radius=0.5, albedo=RED)
    scene.add_metal_sphere(center=(1.0, 0.0, -1.0), radius=0.5, albedo=GOLD, roughness=0.3)
    scene.add_metal_sphere(center=(-1.0, 0.0, -1.0), radius=0.5, albedo=SILVER, roughness=0.0)
    scene.add_dielectric_sphere(center=(0.3, -0.3, -0.2), radius=0.2, ior=WATER_IOR)

    camera = PinholeCamera(
        lookfrom=(1.0, 1.5, 3.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=60.0,
        aspect_ratio=aspect_ratio,
    )
    return scene, camera


def create_triangle_scene(aspect_ratio: float = 2.0) -> tuple[SceneManager, PinholeCamera]:
    """Create a triangle pyramid and a mirror panel on a ground sphere.

    Args:
        aspect_ratio: Camera aspect ratio (width / height).

    Returns:
        Tuple of (scene, camera).
    """
    scene = SceneManager()
    scene.add_lambertian_sphere(center=(0.0, -100.5, -1.5), radius=100.0, albedo=GREEN)

    # Square pyramid, faces wound counter-clockwise seen from outside
    pyramid = scene.add_lambertian_material(IVORY)
    apex = (0.0, 0.5, -1.5)
    base = [(-0.5, -0.5, -1.0), (0.5, -0.5, -1.0), (0.5, -0.5, -2.0), (-0.5, -0.5, -2.0)]
    for k in range(4):
        scene.add_triangle(base[k], base[(k + 1) % 4], apex, pyramid)

    # Two triangles forming a vertical mirror behind and to the left
    mirror = scene.add_metal_material(SILVER, roughness=0.05)
    scene.add_triangle((-2.0, -0.5, -2.5), (-0.8, -0.5, -2.5), (-0.8, 0.9, -2.5), mirror)
    scene.add_triangle((-2.0, -0.5, -2.5), (-0.8, 0.9, -2.5), (-2.0, 0.9, -2.5), mirror)

    camera = PinholeCamera(
        lookfrom=(0.8, 0.6, 1.0),
        lookat=(0.0, 0.0, -1.5),
        vup=(0.0, 1.0, 0.0),
        vfov=60.0,
        aspect_ratio=aspect_ratio,
    )
    return scene, camera


SCENE_PRESETS: dict[str, Callable[[float], tuple[SceneManager, PinholeCamera]]] = {
    "spheres": create_two_spheres_scene,
    "showcase": create_showcase_scene,
    "triangles": create_triangle_scene,
}


def load_preset(name: str, aspect_ratio: float) -> tuple[SceneManager, PinholeCamera]:
    """Build a preset scene by name.

    Args:
        name: One of the keys of SCENE_PRESETS.
        aspect_ratio: Camera aspect ratio, usually image width / height.

    Returns:
        Tuple of (scene, camera).

    Raises:
        ValueError: If the name is unknown.
    """
    if name not in SCENE_PRESETS:
        raise ValueError(f"Unknown scene preset {name!r}; choose from {sorted(SCENE_PRESETS)}")
    return SCENE_PRESETS[name](aspect_ratio)
