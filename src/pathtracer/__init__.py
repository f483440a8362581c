"""Taichi-based Monte-Carlo path tracer.

This package renders synthetic 3D scenes by stochastically sampling light
paths, with support for:
- Mixture importance sampling of area lights and material lobes
- Lambertian, metal, dielectric and emissive materials
- Geometric primitives (spheres, quads)
- Thin-lens camera with depth of field and progressive accumulation

Subpackages:
    core: Rays, intervals, random sampling, PDFs and the radiance integrator
    geometry: Shape primitives, intersection and light sampling
    materials: Material models and the unified material registry
    scene: Scene storage, scene manager and ready-made scenes
    camera: Camera configuration, primary rays and the render driver
    preview: Tone mapping, preview display and PNG export
"""

__version__ = "0.1.0"
