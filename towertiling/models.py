"""Data classes and path management."""

import pathlib
from dataclasses import dataclass, field
from typing import Optional

from .constants import OUTPUT_DIR, DATA_DIR

TilingVector = tuple[int, int, int, int]


class PathManager:
    """Manage paths relative to the towertiling directory."""

    @staticmethod
    def get_output_path(filename) -> pathlib.Path:
        """Get the output file path."""
        return OUTPUT_DIR / filename

    @staticmethod
    def get_data_path(filename) -> pathlib.Path:
        """Get the input file path."""
        return DATA_DIR / filename


@dataclass
class TilingFace:
    # Redundant, but helpful when reading a tiling file by hand
    sides: int
    profile: Optional[int] = None
    material: int = 0


@dataclass
class Seed:
    position: TilingVector
    faces: Optional[list[TilingFace]] = None


@dataclass
class Profile:
    name: str
    offsets: list[tuple[int, int]] = field(default_factory=list)


@dataclass
class Material:
    base_color: tuple[float, float, float]
    metallic: float = 0.0
    roughness: float = 1.0
    name: Optional[str] = None

    def to_json(self) -> dict:
        """Convert to a glTF metallic-roughness material."""
        r, g, b = self.base_color
        result = {
            "pbrMetallicRoughness": {
                "baseColorFactor": [float(r), float(g), float(b), 1.0],
                "metallicFactor": float(self.metallic),
                "roughnessFactor": float(self.roughness),
            }
        }
        if self.name:
            result["name"] = self.name
        return result


@dataclass
class IntegerTiling:
    """Parsed tiling description: basis, translations, seeds, styling."""
    basis: "Basis"  # noqa: F821 - defined in tiling.py
    translations: tuple[TilingVector, TilingVector]
    seeds: list[Seed]
    profiles: list[Profile] = field(default_factory=list)
    materials: list[Material] = field(default_factory=list)
