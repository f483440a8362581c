"""Cornell box scene builder.

Builds the classic global illumination test scene:

- Five diffuse walls forming a box open toward the camera (red and green
  side walls, white back wall, floor and ceiling)
- A rectangular area light just below the ceiling, emitting downward and
  designated as a light for importance sampling
- Three spheres on the floor: white diffuse, brushed metal and glass

The box spans [0, box_size] along each axis. The camera sits in front of
the open side at z = -800 and looks toward +z.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.camera.camera import Camera
    >>> from pathtracer.scene.cornell_box import create_cornell_box_scene
    >>>
    >>> scene, config = create_cornell_box_scene()
    >>> camera = Camera(config)
    >>> camera.render()
"""

import math
from dataclasses import dataclass

from pathtracer.camera.thin_lens import CameraConfig
from pathtracer.scene.manager import SceneManager

Triple = tuple[float, float, float]


@dataclass
class CornellBoxParams:
    """Adjustable colors and light of the Cornell box.

    Attributes:
        light_intensity: Scalar multiplier of the light color.
        light_color: RGB color of the area light.
        left_wall_color: Albedo of the wall on the camera's left.
        right_wall_color: Albedo of the wall on the camera's right.
        back_wall_color: Albedo of the back wall, floor and ceiling.

    Example:
        >>> warm = CornellBoxParams(light_intensity=20.0, light_color=(1.0, 0.9, 0.8))
    """

    light_intensity: float = 15.0
    light_color: Triple = (1.0, 1.0, 1.0)
    left_wall_color: Triple = (0.65, 0.05, 0.05)
    right_wall_color: Triple = (0.12, 0.45, 0.15)
    back_wall_color: Triple = (0.73, 0.73, 0.73)


# =============================================================================
# Cornell Box Constants
# =============================================================================

BOX_SIZE = 555.0

# Ceiling light footprint and its gap below the ceiling
LIGHT_WIDTH = 130.0
LIGHT_DEPTH = 105.0
LIGHT_GAP = 1.0

SPHERE_RADIUS = 80.0
DIFFUSE_SPHERE_ALBEDO = (0.73, 0.73, 0.73)
METAL_SPHERE_ALBEDO = (0.95, 0.93, 0.88)
METAL_SPHERE_FUZZ = 0.3
GLASS_SPHERE_IOR = 1.5

CAMERA_DISTANCE = 800.0
CAMERA_VFOV = 40.0


def get_light_quad_info(box_size: float = BOX_SIZE) -> dict[str, Triple | float]:
    """Geometry of the ceiling light.

    The edges are ordered so that cross(edge_u, edge_v) points down, into
    the box, which makes the emitting face visible from below.

    Returns:
        Dictionary with corner, edge_u, edge_v, center and area.
    """
    x0 = (box_size - LIGHT_WIDTH) / 2.0
    z0 = (box_size - LIGHT_DEPTH) / 2.0
    y = box_size - LIGHT_GAP
    return {
        "corner": (x0, y, z0),
        "edge_u": (LIGHT_WIDTH, 0.0, 0.0),
        "edge_v": (0.0, 0.0, LIGHT_DEPTH),
        "center": (x0 + LIGHT_WIDTH / 2.0, y, z0 + LIGHT_DEPTH / 2.0),
        "area": LIGHT_WIDTH * LIGHT_DEPTH,
    }


def get_cornell_box_bounds(box_size: float = BOX_SIZE) -> dict[str, Triple]:
    """Axis-aligned bounds of the box as min, max, center and size."""
    half = box_size / 2.0
    return {
        "min": (0.0, 0.0, 0.0),
        "max": (box_size, box_size, box_size),
        "center": (half, half, half),
        "size": (box_size, box_size, box_size),
    }


def create_cornell_box_scene(
    box_size: float = BOX_SIZE,
    params: CornellBoxParams | None = None,
    image_width: int = 300,
    samples_per_pixel: int = 64,
    max_depth: int = 8,
) -> tuple[SceneManager, CameraConfig]:
    """Build the Cornell box in a fresh scene.

    Creating the scene clears any primitives and materials registered
    before.

    Args:
        box_size: Edge length of the box.
        params: Wall colors and light settings (default CornellBoxParams()).
        image_width: Width of the square output image.
        samples_per_pixel: Samples per pixel of a full render.
        max_depth: Maximum number of intersections per path.

    Returns:
        A tuple (scene, camera_config).

    Example:
        >>> scene, config = create_cornell_box_scene()
        >>> scene.get_quad_count(), scene.get_sphere_count(), scene.get_light_count()
        (6, 3, 1)
    """
    if params is None:
        params = CornellBoxParams()

    scene = SceneManager()
    s = box_size

    left_mat = scene.add_lambertian_material(albedo=params.left_wall_color)
    right_mat = scene.add_lambertian_material(albedo=params.right_wall_color)
    white_mat = scene.add_lambertian_material(albedo=params.back_wall_color)
    light_mat = scene.add_diffuse_light_material(
        emission=tuple(c * params.light_intensity for c in params.light_color)
    )

    # The camera looks toward +z, so its right-hand side is x = 0
    scene.add_quad((s, 0.0, 0.0), (0.0, s, 0.0), (0.0, 0.0, s), left_mat)
    scene.add_quad((0.0, 0.0, s), (0.0, s, 0.0), (0.0, 0.0, -s), right_mat)
    scene.add_quad((0.0, 0.0, s), (s, 0.0, 0.0), (0.0, s, 0.0), white_mat)  # back
    scene.add_quad((0.0, 0.0, 0.0), (s, 0.0, 0.0), (0.0, 0.0, s), white_mat)  # floor
    scene.add_quad((0.0, s, s), (s, 0.0, 0.0), (0.0, 0.0, -s), white_mat)  # ceiling

    light = get_light_quad_info(box_size)
    scene.add_quad(light["corner"], light["edge_u"], light["edge_v"], light_mat, is_light=True)

    r = SPHERE_RADIUS
    scene.add_lambertian_sphere((s * 0.73, r, s * 0.35), r, DIFFUSE_SPHERE_ALBEDO)
    scene.add_metal_sphere((s * 0.27, r, s * 0.35), r, METAL_SPHERE_ALBEDO, fuzz=METAL_SPHERE_FUZZ)
    scene.add_dielectric_sphere((s * 0.5, r, s * 0.65), r, ior=GLASS_SPHERE_IOR)

    lookfrom = (s / 2.0, s / 2.0, -CAMERA_DISTANCE)
    lookat = (s / 2.0, s / 2.0, s / 2.0)
    config = CameraConfig(
        aspect_ratio=1.0,
        image_width=image_width,
        vfov=CAMERA_VFOV,
        focus_dist=math.dist(lookfrom, lookat),
        defocus_angle=0.0,
        samples_per_pixel=samples_per_pixel,
        max_depth=max_depth,
        lookfrom=lookfrom,
        lookat=lookat,
        vup=(0.0, 1.0, 0.0),
        background=(0.0, 0.0, 0.0),
    )
    return scene, config
