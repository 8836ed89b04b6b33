"""Lattice bases, 4D → 3D projection, and tiling description loading."""

import enum
import json
import logging
import math
import pathlib

import numpy as np

from .constants import DIRECTION_COUNT
from .errors import TilingError
from .models import (IntegerTiling, Material, Profile, Seed, TilingFace,
                     TilingVector)

logger = logging.getLogger(__name__)

# Integer lattice step for each of the 12 directions.  Directions 0-3 are
# the generators; the rest are their negatives and the two differences
# that complete the 12-fold star.
BASIS_COEFFICIENTS: tuple[TilingVector, ...] = (
    (1, 0, 0, 0),
    (0, 1, 0, 0),
    (0, 0, 1, 0),
    (0, 0, 0, 1),
    (-1, 0, 1, 0),
    (0, -1, 0, 1),
    (-1, 0, 0, 0),
    (0, -1, 0, 0),
    (0, 0, -1, 0),
    (0, 0, 0, -1),
    (1, 0, -1, 0),
    (0, 1, 0, -1),
)

GRAPH_PAPER_BASIS = np.array([
    (1.0, 0.0, 0.0),
    (1.0, 0.5, 0.0),
    (0.5, 1.0, 0.0),
    (0.0, 1.0, 0.0),
    (-0.5, 1.0, 0.0),
    (-1.0, 0.5, 0.0),
    (-1.0, 0.0, 0.0),
    (-1.0, -0.5, 0.0),
    (-0.5, -1.0, 0.0),
    (0.0, -1.0, 0.0),
    (0.5, -1.0, 0.0),
    (1.0, -0.5, 0.0),
], dtype=np.float64)


def _twelfth_root_basis() -> np.ndarray:
    angles = np.arange(DIRECTION_COUNT) * math.pi / 6.0
    return np.column_stack([np.cos(angles), np.sin(angles),
                            np.zeros(DIRECTION_COUNT)])


class Basis(enum.Enum):
    """Which set of 12 world directions the lattice is projected onto."""
    TWELFTH_ROOT = "TwelfthRoot"
    GRAPH_PAPER = "GraphPaper"

    @classmethod
    def from_name(cls, name: str) -> "Basis":
        for member in cls:
            if name in (member.value, member.name):
                return member
        raise TilingError(f"Unknown basis {name!r}; expected one of "
                          f"{[m.value for m in cls]}")

    def directions(self) -> np.ndarray:
        """Return the (12, 3) array of world-space direction vectors."""
        if self is Basis.TWELFTH_ROOT:
            return _twelfth_root_basis()
        return GRAPH_PAPER_BASIS.copy()

    def coefficients(self) -> tuple[TilingVector, ...]:
        # Same lattice steps for every basis
        return BASIS_COEFFICIENTS


def to_world(point: TilingVector, basis: Basis) -> tuple[float, float, float]:
    """Project a lattice point into 3D using the first four basis directions."""
    directions = basis.directions()[:4]
    world = np.asarray(point, dtype=np.float64) @ directions
    return (float(world[0]), float(world[1]), float(world[2]))


def adjacent(point: TilingVector, direction: int) -> TilingVector:
    """Lattice neighbour of *point* one step along *direction*."""
    a, b, c, d = point
    da, db, dc, dd = BASIS_COEFFICIENTS[direction % DIRECTION_COUNT]
    return (a + da, b + db, c + dc, d + dd)


def translate(point: TilingVector, translations, i: int, j: int) -> TilingVector:
    """Return ``point + i * T1 + j * T2``."""
    (a1, b1, c1, d1), (a2, b2, c2, d2) = translations
    a, b, c, d = point
    return (a + i * a1 + j * a2,
            b + i * b1 + j * b2,
            c + i * c1 + j * c2,
            d + i * d1 + j * d2)


# ── Tiling description loading ───────────────────────────────────────────

def _integer(value, what: str) -> int:
    # JSON floats and booleans are not lattice coordinates
    if not isinstance(value, int) or isinstance(value, bool):
        raise TilingError(f"{what} must be an integer, got {value!r}")
    return value


def _tiling_vector(value, what: str) -> TilingVector:
    if not isinstance(value, (list, tuple)) or len(value) != 4:
        raise TilingError(f"{what} must be a list of 4 integers, got {value!r}")
    return tuple(_integer(x, f"{what}[{k}]") for k, x in enumerate(value))


def _parse_face(raw: dict, what: str) -> TilingFace:
    if not isinstance(raw, dict):
        raise TilingError(f"{what} must be an object, got {raw!r}")
    if 'sides' not in raw:
        raise TilingError(f"{what} is missing 'sides'")
    profile = raw.get('profile')
    return TilingFace(
        sides=_integer(raw['sides'], f"{what}.sides"),
        profile=None if profile is None else _integer(profile, f"{what}.profile"),
        material=_integer(raw.get('material', 0), f"{what}.material"),
    )


def _parse_material(raw: dict, what: str) -> Material:
    if not isinstance(raw, dict):
        raise TilingError(f"{what} must be an object, got {raw!r}")
    color = raw.get('base_color', raw.get('baseColor'))
    if not isinstance(color, (list, tuple)) or len(color) != 3:
        raise TilingError(f"{what} needs a 3-component base_color")
    try:
        return Material(
            base_color=tuple(float(c) for c in color),
            metallic=float(raw.get('metallic', 0.0)),
            roughness=float(raw.get('roughness', 1.0)),
            name=raw.get('name'),
        )
    except (TypeError, ValueError) as e:
        raise TilingError(f"{what} has a non-numeric factor: {e}") from e


def parse_tiling(data: dict) -> IntegerTiling:
    """Build an :class:`IntegerTiling` from a decoded JSON document.

    Expected shape::

        {
          "basis": "TwelfthRoot",
          "translations": [[a, b, c, d], [a, b, c, d]],
          "seeds": [{"position": [a, b, c, d],
                     "faces": [{"sides": 4, "profile": 0, "material": 1}]}],
          "profiles": [{"name": "stepped", "offsets": [[0, 5], [1, 2]]}],
          "materials": [{"base_color": [r, g, b],
                         "metallic": 0.0, "roughness": 0.5}]
        }
    """
    if not isinstance(data, dict):
        raise TilingError("Tiling description must be a JSON object")

    basis = Basis.from_name(data.get('basis', Basis.TWELFTH_ROOT.value))

    translations = data.get('translations')
    if not isinstance(translations, list) or len(translations) != 2:
        raise TilingError("'translations' must hold exactly two vectors")
    t1 = _tiling_vector(translations[0], "translations[0]")
    t2 = _tiling_vector(translations[1], "translations[1]")

    seeds = []
    for i, raw in enumerate(data.get('seeds', [])):
        if not isinstance(raw, dict):
            raise TilingError(f"seeds[{i}] must be an object, got {raw!r}")
        position = _tiling_vector(raw.get('position'), f"seeds[{i}].position")
        faces = raw.get('faces')
        if faces is not None:
            if not isinstance(faces, list):
                raise TilingError(f"seeds[{i}].faces must be a list")
            faces = [_parse_face(f, f"seeds[{i}].faces[{k}]")
                     for k, f in enumerate(faces)]
        seeds.append(Seed(position=position, faces=faces))

    profiles = []
    for i, raw in enumerate(data.get('profiles', [])):
        try:
            offsets = [(int(dr), int(dh)) for dr, dh in raw.get('offsets', [])]
        except (TypeError, ValueError, AttributeError) as e:
            raise TilingError(f"profiles[{i}].offsets must be integer pairs: {e}") from e
        profiles.append(Profile(name=raw.get('name', f"profile_{i}"),
                                offsets=offsets))

    materials = [_parse_material(m, f"materials[{i}]")
                 for i, m in enumerate(data.get('materials', []))]

    tiling = IntegerTiling(basis=basis, translations=(t1, t2), seeds=seeds,
                           profiles=profiles, materials=materials)
    logger.debug(f"Parsed tiling: basis={basis.value}, {len(seeds)} seeds, "
                 f"{len(profiles)} profiles, {len(materials)} materials")
    return tiling


def load_tiling(path) -> IntegerTiling:
    """Read and parse a tiling description JSON file."""
    path = pathlib.Path(path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise TilingError(f"Invalid JSON in {path}: {e}") from e
    logger.info(f"Loaded tiling description: {path}")
    return parse_tiling(data)
