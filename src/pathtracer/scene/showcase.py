"""Sphere field demo scene.

A large ground sphere carries three feature spheres (diffuse orange, mirror
and glass) surrounded by a grid of small spheres with randomly chosen
materials. There is no designated light: the scene is lit by the background
radiance, so diffuse bounces sample their cosine lobe only.

The grid placement and material choices come from numpy's default_rng, so a
given seed always builds the same scene.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.camera.camera import Camera
    >>> from pathtracer.scene.showcase import create_sphere_field_scene
    >>>
    >>> scene, config = create_sphere_field_scene(samples_per_pixel=16)
    >>> camera = Camera(config)
    >>> camera.render()
"""

import logging

import numpy as np

from pathtracer.camera.thin_lens import CameraConfig
from pathtracer.scene.manager import SceneManager

logger = logging.getLogger(__name__)

GROUND_CENTER = (0.0, -1000.3, -5.0)
GROUND_RADIUS = 1000.0
GROUND_ALBEDO = (0.32, 0.32, 0.4)

FEATURE_RADIUS = 0.3
DIFFUSE_ALBEDO = (0.4, 0.2, 0.0)
MIRROR_ALBEDO = (0.28, 0.4, 0.4)
GLASS_IOR = 1.5

# Small spheres on a 10 x 10 grid, jittered within each cell
GRID_I = range(-5, 5)
GRID_J = range(-7, 3)
GRID_SPACING = 0.6
GRID_HEIGHT = -0.2
SMALL_RADIUS = 0.1
SMALL_METAL_FUZZ = 0.1

# Cumulative material choice thresholds for the small spheres
GLASS_PROBABILITY = 0.2
DIFFUSE_PROBABILITY = 0.8

# Sky radiance lighting the scene
SKY_BACKGROUND = (0.7, 0.8, 1.0)


def create_sphere_field_scene(
    seed: int = 3,
    image_width: int = 400,
    samples_per_pixel: int = 150,
    max_depth: int = 8,
    background: tuple[float, float, float] = SKY_BACKGROUND,
) -> tuple[SceneManager, CameraConfig]:
    """Build the sphere field in a fresh scene.

    Args:
        seed: Seed of the random sphere placement and materials.
        image_width: Output width in pixels (16:9 aspect).
        samples_per_pixel: Samples per pixel of a full render.
        max_depth: Maximum number of intersections per path.
        background: Radiance of rays that escape the scene.

    Returns:
        A tuple (scene, camera_config).
    """
    rng = np.random.default_rng(seed)
    scene = SceneManager()

    ground = scene.add_lambertian_material(GROUND_ALBEDO)
    scene.add_sphere(GROUND_CENTER, GROUND_RADIUS, ground)

    scene.add_lambertian_sphere((0.0, 0.0, -5.0), FEATURE_RADIUS, DIFFUSE_ALBEDO)
    scene.add_metal_sphere((0.8, 0.0, -3.5), FEATURE_RADIUS, MIRROR_ALBEDO, fuzz=0.0)
    scene.add_dielectric_sphere((-0.8, 0.0, -6.0), FEATURE_RADIUS, ior=GLASS_IOR)

    for i in GRID_I:
        for j in GRID_J:
            center = (
                (rng.random() + i) * GRID_SPACING,
                GRID_HEIGHT,
                rng.random() + j,
            )
            choice = rng.random()
            if choice < GLASS_PROBABILITY:
                scene.add_dielectric_sphere(center, SMALL_RADIUS, ior=GLASS_IOR)
            else:
                color = tuple(float(c) for c in rng.uniform(0.4, 1.0, size=3))
                if choice < DIFFUSE_PROBABILITY:
                    scene.add_lambertian_sphere(center, SMALL_RADIUS, color)
                else:
                    scene.add_metal_sphere(center, SMALL_RADIUS, color, fuzz=SMALL_METAL_FUZZ)

    logger.debug("Sphere field built with %d spheres", scene.get_sphere_count())

    config = CameraConfig(
        aspect_ratio=16.0 / 9.0,
        image_width=image_width,
        vfov=30.0,
        focus_dist=5.0,
        defocus_angle=0.2,
        samples_per_pixel=samples_per_pixel,
        max_depth=max_depth,
        lookfrom=(0.0, 1.0, 0.0),
        lookat=(0.0, 0.0, -5.0),
        vup=(0.0, 1.0, 0.0),
        background=background,
    )
    return scene, config
