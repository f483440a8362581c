"""Scene building on top of the primitive storage and material registry.

SceneManager is the Python-side entry point for authoring a scene. Every
material it creates gets a unified material_id, whatever its type, and every
primitive can be flagged as a light so the integrator importance-samples it.
The manager also keeps plain records of what it added, which back the
dictionary (and therefore JSON) serialization.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> white = scene.add_lambertian_material(albedo=(0.73, 0.73, 0.73))
    >>> lamp = scene.add_diffuse_light_material(emission=(15.0, 15.0, 15.0))
    >>> scene.add_sphere(center=(0, 0, -1), radius=0.5, material_id=white)
    >>> scene.add_quad((-1, 2, -2), (2, 0, 0), (0, 0, 1), lamp, is_light=True)
"""

import logging
from dataclasses import dataclass, field
from typing import Any

import taichi.math as tm

from pathtracer.materials.dielectric import add_dielectric_material
from pathtracer.materials.diffuse_light import add_diffuse_light_material
from pathtracer.materials.lambertian import add_lambertian_material
from pathtracer.materials.material import (
    MAX_MATERIALS,
    MaterialType,
    clear_material_registry,
    get_material_count,
    register_material,
)
from pathtracer.materials.metal import add_metal_material
from pathtracer.scene import intersection

logger = logging.getLogger(__name__)

vec3 = tm.vec3

Triple = tuple[float, float, float]


def _triple(values: Any) -> Triple:
    if len(values) != 3:
        raise ValueError(f"Expected 3 components, got {len(values)}")
    return (float(values[0]), float(values[1]), float(values[2]))


# =============================================================================
# Scene Records
# =============================================================================


@dataclass
class MaterialInfo:
    """A material as it was registered.

    Attributes:
        material_id: Unified id, as stored on primitives.
        material_type: Which per-type storage holds the parameters.
        type_index: Slot within that storage.
        params: Creation parameters keyed by argument name.
    """

    material_id: int
    material_type: MaterialType
    type_index: int
    params: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        entry: dict[str, Any] = {"type": self.material_type.name.lower()}
        for key, value in self.params.items():
            entry[key] = list(value) if isinstance(value, tuple) else value
        return entry


@dataclass
class SphereInfo:
    """A sphere and the slot it occupies in the sphere storage."""

    sphere_index: int
    center: Triple
    radius: float
    material_id: int
    is_light: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "center": list(self.center),
            "radius": self.radius,
            "material_id": self.material_id,
            "is_light": self.is_light,
        }


@dataclass
class QuadInfo:
    """A quad (corner plus two edges) and its slot in the quad storage."""

    quad_index: int
    corner: Triple
    edge_u: Triple
    edge_v: Triple
    material_id: int
    is_light: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "corner": list(self.corner),
            "edge_u": list(self.edge_u),
            "edge_v": list(self.edge_v),
            "material_id": self.material_id,
            "is_light": self.is_light,
        }


@dataclass
class SceneConfig:
    """Serializable description of a whole scene.

    Each list holds plain dictionaries. Primitives refer to materials by
    their position in ``materials``.
    """

    materials: list[dict[str, Any]] = field(default_factory=list)
    spheres: list[dict[str, Any]] = field(default_factory=list)
    quads: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"materials": self.materials, "spheres": self.spheres, "quads": self.quads}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SceneConfig":
        return cls(
            materials=list(data.get("materials", [])),
            spheres=list(data.get("spheres", [])),
            quads=list(data.get("quads", [])),
        )


# =============================================================================
# Scene Manager
# =============================================================================


class SceneManager:
    """Builds the active scene.

    Scene storage is global, so constructing a SceneManager wipes whatever
    scene and materials were registered before it.

    Attributes:
        materials: Records of registered materials, indexed by material_id.
        spheres: Records of added spheres in insertion order.
        quads: Records of added quads in insertion order.

    Example:
        >>> scene = SceneManager()
        >>> red = scene.add_lambertian_material(albedo=(0.8, 0.1, 0.1))
        >>> gold = scene.add_metal_material(albedo=(0.8, 0.6, 0.2), fuzz=0.3)
        >>> scene.add_sphere((0, 0, -1), 0.5, red)
        >>> scene.add_sphere((1, 0, -1), 0.5, gold)
        >>> scene.add_dielectric_sphere((-1, 0, -1), 0.5, ior=1.5)
    """

    def __init__(self) -> None:
        self.materials: list[MaterialInfo] = []
        self.spheres: list[SphereInfo] = []
        self.quads: list[QuadInfo] = []
        self._reset_storage()

    def _reset_storage(self) -> None:
        intersection.clear_scene()
        clear_material_registry()
        self.materials = []
        self.spheres = []
        self.quads = []

    def clear(self) -> None:
        """Remove every primitive, light designation and material."""
        self._reset_storage()
        logger.debug("Scene cleared")

    # -------------------------------------------------------------------------
    # Materials
    # -------------------------------------------------------------------------

    def _register(self, material_type: MaterialType, type_index: int, **params: Any) -> int:
        material_id = register_material(material_type, type_index)
        self.materials.append(MaterialInfo(material_id, material_type, type_index, params))
        logger.debug("Registered material %d (%s)", material_id, material_type.name.lower())
        return material_id

    def add_lambertian_material(self, albedo: Triple) -> int:
        """Register a diffuse material and return its material_id.

        Raises:
            ValueError: If an albedo component lies outside [0, 1].
            RuntimeError: If the Lambertian or registry capacity is full.
        """
        albedo = _triple(albedo)
        return self._register(MaterialType.LAMBERTIAN, add_lambertian_material(albedo), albedo=albedo)

    def add_metal_material(self, albedo: Triple, fuzz: float = 0.0) -> int:
        """Register a reflective material and return its material_id.

        Args:
            albedo: Reflected color, each component in [0, 1].
            fuzz: Radius of the perturbation added to the mirror direction,
                in [0, 1]. Zero gives a perfect mirror.

        Raises:
            ValueError: If albedo or fuzz is out of range.
            RuntimeError: If the metal or registry capacity is full.
        """
        albedo = _triple(albedo)
        type_index = add_metal_material(albedo, fuzz)
        return self._register(MaterialType.METAL, type_index, albedo=albedo, fuzz=fuzz)

    def add_dielectric_material(self, ior: float = 1.5) -> int:
        """Register a refractive material with index of refraction ior > 0."""
        return self._register(MaterialType.DIELECTRIC, add_dielectric_material(ior), ior=ior)

    def add_diffuse_light_material(self, emission: Triple) -> int:
        """Register an emissive material and return its material_id.

        Emission is radiance, so components above 1 are normal for lamps.

        Raises:
            ValueError: If an emission component is negative.
            RuntimeError: If the light material or registry capacity is full.
        """
        emission = _triple(emission)
        type_index = add_diffuse_light_material(emission)
        return self._register(MaterialType.DIFFUSE_LIGHT, type_index, emission=emission)

    def get_material_count(self) -> int:
        return get_material_count()

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        """Record of a material, or None for an unknown id."""
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    def material_type(self, material_id: int) -> MaterialType | None:
        """Type of a material looked up from the Python records."""
        info = self.get_material_info(material_id)
        return None if info is None else info.material_type

    def _check_material_id(self, material_id: int) -> None:
        if not 0 <= material_id < get_material_count():
            raise ValueError(f"Invalid material_id: {material_id}")

    # -------------------------------------------------------------------------
    # Primitives
    # -------------------------------------------------------------------------

    def add_sphere(self, center: Triple, radius: float, material_id: int, is_light: bool = False) -> int:
        """Add a sphere and return its index in the sphere storage.

        Args:
            center: Sphere center.
            radius: Sphere radius, positive.
            material_id: Id returned by one of the add_*_material methods.
            is_light: Importance-sample the sphere as a light as well.

        Raises:
            ValueError: If material_id is unknown or radius is not positive.
            RuntimeError: If the sphere or light capacity is full.
        """
        self._check_material_id(material_id)
        center = _triple(center)
        sphere_index = intersection.add_sphere(vec3(*center), radius, material_id)
        if is_light:
            intersection.add_light(intersection.SHAPE_SPHERE, sphere_index)

        self.spheres.append(SphereInfo(sphere_index, center, radius, material_id, is_light))
        return sphere_index

    def add_quad(
        self,
        corner: Triple,
        edge_u: Triple,
        edge_v: Triple,
        material_id: int,
        is_light: bool = False,
    ) -> int:
        """Add a parallelogram spanned by edge_u and edge_v from corner.

        The front face is the side cross(edge_u, edge_v) points toward; a
        light quad only emits from that side.

        Returns:
            Index of the quad in the quad storage.

        Raises:
            ValueError: If material_id is unknown.
            RuntimeError: If the quad or light capacity is full.
        """
        self._check_material_id(material_id)
        corner, edge_u, edge_v = _triple(corner), _triple(edge_u), _triple(edge_v)
        quad_index = intersection.add_quad(vec3(*corner), vec3(*edge_u), vec3(*edge_v), material_id)
        if is_light:
            intersection.add_light(intersection.SHAPE_QUAD, quad_index)

        self.quads.append(QuadInfo(quad_index, corner, edge_u, edge_v, material_id, is_light))
        return quad_index

    # Shortcuts that create a material and a primitive together. Each returns
    # (primitive_index, material_id).

    def add_lambertian_sphere(self, center: Triple, radius: float, albedo: Triple) -> tuple[int, int]:
        material_id = self.add_lambertian_material(albedo)
        return self.add_sphere(center, radius, material_id), material_id

    def add_metal_sphere(
        self, center: Triple, radius: float, albedo: Triple, fuzz: float = 0.0
    ) -> tuple[int, int]:
        material_id = self.add_metal_material(albedo, fuzz)
        return self.add_sphere(center, radius, material_id), material_id

    def add_dielectric_sphere(self, center: Triple, radius: float, ior: float = 1.5) -> tuple[int, int]:
        material_id = self.add_dielectric_material(ior)
        return self.add_sphere(center, radius, material_id), material_id

    def add_lambertian_quad(
        self, corner: Triple, edge_u: Triple, edge_v: Triple, albedo: Triple
    ) -> tuple[int, int]:
        material_id = self.add_lambertian_material(albedo)
        return self.add_quad(corner, edge_u, edge_v, material_id), material_id

    def add_light_quad(
        self, corner: Triple, edge_u: Triple, edge_v: Triple, emission: Triple
    ) -> tuple[int, int]:
        """Add an emissive quad that is also designated as a light."""
        material_id = self.add_diffuse_light_material(emission)
        return self.add_quad(corner, edge_u, edge_v, material_id, is_light=True), material_id

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_sphere_count(self) -> int:
        return intersection.get_sphere_count()

    def get_quad_count(self) -> int:
        return intersection.get_quad_count()

    def get_light_count(self) -> int:
        return intersection.get_light_count()

    def get_primitive_count(self) -> int:
        return self.get_sphere_count() + self.get_quad_count()

    @staticmethod
    def get_max_spheres() -> int:
        return intersection.MAX_SPHERES

    @staticmethod
    def get_max_quads() -> int:
        return intersection.MAX_QUADS

    @staticmethod
    def get_max_lights() -> int:
        return intersection.MAX_LIGHTS

    @staticmethod
    def get_max_materials() -> int:
        return MAX_MATERIALS

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_config(self) -> SceneConfig:
        return SceneConfig(
            materials=[info.to_dict() for info in self.materials],
            spheres=[info.to_dict() for info in self.spheres],
            quads=[info.to_dict() for info in self.quads],
        )

    def _add_material_entry(self, entry: dict[str, Any]) -> int:
        kind = str(entry.get("type", "")).lower()
        if kind == "lambertian":
            return self.add_lambertian_material(entry.get("albedo", (0.5, 0.5, 0.5)))
        if kind == "metal":
            return self.add_metal_material(entry.get("albedo", (0.8, 0.8, 0.8)), entry.get("fuzz", 0.0))
        if kind == "dielectric":
            return self.add_dielectric_material(entry.get("ior", 1.5))
        if kind == "diffuse_light":
            return self.add_diffuse_light_material(entry.get("emission", (1.0, 1.0, 1.0)))
        raise ValueError(f"Unknown material type: {kind!r}")

    def from_config(self, config: SceneConfig) -> None:
        """Replace the current scene with the one described by config.

        Materials are created first, in order, so that the material_id
        stored with each primitive resolves to the same material.

        Raises:
            ValueError: If an entry has an unknown type or invalid values.
        """
        self.clear()
        for entry in config.materials:
            self._add_material_entry(entry)
        for entry in config.spheres:
            self.add_sphere(
                entry.get("center", (0.0, 0.0, 0.0)),
                entry.get("radius", 1.0),
                entry.get("material_id", 0),
                is_light=entry.get("is_light", False),
            )
        for entry in config.quads:
            self.add_quad(
                entry.get("corner", (0.0, 0.0, 0.0)),
                entry.get("edge_u", (1.0, 0.0, 0.0)),
                entry.get("edge_v", (0.0, 1.0, 0.0)),
                entry.get("material_id", 0),
                is_light=entry.get("is_light", False),
            )
        logger.debug(
            "Loaded scene with %d materials, %d spheres and %d quads",
            len(self.materials),
            len(self.spheres),
            len(self.quads),
        )

    def to_dict(self) -> dict[str, Any]:
        """Scene as a JSON-compatible dictionary."""
        return self.to_config().to_dict()

    def from_dict(self, data: dict[str, Any]) -> None:
        """Load a scene produced by to_dict()."""
        self.from_config(SceneConfig.from_dict(data))
