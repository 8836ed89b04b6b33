"""Binary glTF (GLB) writer for tower tilings.

Everything goes into a single embedded buffer.  Buffer views are packed
back to back in the order they are created; no padding is needed between
them because every element written is a float32 triple or a uint32.
"""

import datetime
import json
import logging
import os
import pathlib
import struct
import tempfile
from dataclasses import dataclass, field
from typing import Optional, Sequence

import numpy as np

from .constants import (GLB_MAGIC, GLB_VERSION, CHUNK_TYPE_JSON,
                        CHUNK_TYPE_BIN, GLTF_FLOAT, GLTF_UNSIGNED_INT,
                        TARGET_ARRAY_BUFFER, TARGET_ELEMENT_ARRAY_BUFFER,
                        GENERATOR, COPYRIGHT_HOLDER)
from .errors import GltfError, ExportError
from .mesh import Mesh
from .models import Material

logger = logging.getLogger(__name__)

INSTANCING_EXTENSION = "EXT_mesh_gpu_instancing"


@dataclass
class BufferView:
    name: str
    byte_offset: int
    byte_length: int
    target: Optional[int] = None

    def after_offset(self) -> int:
        return self.byte_offset + self.byte_length

    def to_json(self) -> dict:
        result = {
            "name": self.name,
            # Always the embedded buffer
            "buffer": 0,
            "byteOffset": self.byte_offset,
            "byteLength": self.byte_length,
        }
        if self.target is not None:
            result["target"] = self.target
        return result


@dataclass
class Accessor:
    name: str
    buffer_view: int
    accessor_type: str
    component_type: int
    count: int
    min: Optional[list[float]] = None
    max: Optional[list[float]] = None

    def to_json(self) -> dict:
        result = {
            "name": self.name,
            "bufferView": self.buffer_view,
            "type": self.accessor_type,
            "componentType": self.component_type,
            "count": self.count,
        }
        if self.min is not None and self.max is not None:
            result["min"] = self.min
            result["max"] = self.max
        return result


@dataclass
class Primitive:
    material: int
    indices: int
    attributes: dict[str, int] = field(default_factory=dict)

    def to_json(self) -> dict:
        return {
            "material": self.material,
            "attributes": dict(self.attributes),
            "indices": self.indices,
        }


def pack_vec3s(vectors) -> bytes:
    """Little-endian float32 triples."""
    return np.asarray(vectors, dtype='<f4').reshape(-1, 3).tobytes()


def pack_indices(indices) -> bytes:
    """Little-endian uint32 values."""
    return np.asarray(indices, dtype='<u4').reshape(-1).tobytes()


def get_min_max(vectors) -> tuple[list[float], list[float]]:
    """Per-axis bounds of the float32 values that will be packed."""
    packed = np.asarray(vectors, dtype=np.float32).reshape(-1, 3)
    if len(packed) == 0:
        raise GltfError("Cannot compute bounds of an empty position list")
    return ([float(x) for x in packed.min(axis=0)],
            [float(x) for x in packed.max(axis=0)])


def _copyright() -> Optional[str]:
    if not COPYRIGHT_HOLDER:
        return None
    return f"© {datetime.date.today().year} {COPYRIGHT_HOLDER}"


class Gltf:
    """Accumulates materials, primitives and buffer data for one GLB file."""

    def __init__(self, node_name: str = "Tower Tiling"):
        self.node_name = node_name
        self.materials: list[Material] = []
        self.instance_translation: Optional[int] = None
        self.primitives: list[Primitive] = []
        self.accessors: list[Accessor] = []
        self.buffer_views: list[BufferView] = []
        self.buffer_data = bytearray()

    def add_materials(self, materials: Sequence[Material]) -> None:
        self.materials = list(materials)

    # ── Buffer layout ───────────────────────────────────────────────────

    def add_buffer_view(self, name: str, data: bytes,
                        target: Optional[int] = None) -> int:
        index = len(self.buffer_views)
        byte_offset = self.buffer_views[-1].after_offset() if self.buffer_views else 0

        self.buffer_views.append(BufferView(name=name, byte_offset=byte_offset,
                                            byte_length=len(data),
                                            target=target))
        self.buffer_data.extend(data)
        return index

    def add_accessor(self, accessor: Accessor) -> int:
        index = len(self.accessors)
        self.accessors.append(accessor)
        return index

    def add_position_accessor(self, positions) -> int:
        positions = np.asarray(positions, dtype=np.float64).reshape(-1, 3)
        bounds_min, bounds_max = get_min_max(positions)
        buffer_view = self.add_buffer_view("Positions", pack_vec3s(positions),
                                           TARGET_ARRAY_BUFFER)
        return self.add_accessor(Accessor(
            name="Positions",
            buffer_view=buffer_view,
            accessor_type="VEC3",
            component_type=GLTF_FLOAT,
            count=len(positions),
            min=bounds_min,
            max=bounds_max,
        ))

    def add_normal_accessor(self, normals) -> int:
        normals = np.asarray(normals, dtype=np.float64).reshape(-1, 3)
        buffer_view = self.add_buffer_view("Normals", pack_vec3s(normals),
                                           TARGET_ARRAY_BUFFER)
        return self.add_accessor(Accessor(
            name="Normals",
            buffer_view=buffer_view,
            accessor_type="VEC3",
            component_type=GLTF_FLOAT,
            count=len(normals),
        ))

    def add_indices_accessor(self, indices) -> int:
        indices = np.asarray(indices, dtype=np.uint32).reshape(-1)
        buffer_view = self.add_buffer_view("Indices", pack_indices(indices),
                                           TARGET_ELEMENT_ARRAY_BUFFER)
        return self.add_accessor(Accessor(
            name="Indices",
            buffer_view=buffer_view,
            accessor_type="SCALAR",
            component_type=GLTF_UNSIGNED_INT,
            count=len(indices),
        ))

    def add_instances(self, translations) -> int:
        """Per-instance offsets for EXT_mesh_gpu_instancing."""
        translations = np.asarray(translations, dtype=np.float64).reshape(-1, 3)
        if len(translations) == 0:
            raise GltfError("At least one instance translation is required")
        buffer_view = self.add_buffer_view("Instance TRANSLATION",
                                           pack_vec3s(translations))
        self.instance_translation = self.add_accessor(Accessor(
            name="Instance TRANSLATION",
            buffer_view=buffer_view,
            accessor_type="VEC3",
            component_type=GLTF_FLOAT,
            count=len(translations),
        ))
        return self.instance_translation

    def add_primitive(self, mesh: Mesh, material_id: int) -> int:
        positions, normals, indices = mesh.triangulate()

        position_accessor = self.add_position_accessor(positions)
        normal_accessor = self.add_normal_accessor(normals)
        indices_accessor = self.add_indices_accessor(indices)

        self.primitives.append(Primitive(
            material=material_id,
            indices=indices_accessor,
            attributes={"POSITION": position_accessor,
                        "NORMAL": normal_accessor},
        ))
        return len(self.primitives) - 1

    # ── Serialization ───────────────────────────────────────────────────

    def to_json(self) -> dict:
        if self.instance_translation is None:
            raise GltfError("add_instances() must be called before export")
        for i, primitive in enumerate(self.primitives):
            if not 0 <= primitive.material < len(self.materials):
                raise GltfError(f"Primitive {i} uses material "
                                f"{primitive.material}, but only "
                                f"{len(self.materials)} are defined")

        asset = {"version": "2.0", "generator": GENERATOR}
        copyright_text = _copyright()
        if copyright_text:
            asset["copyright"] = copyright_text

        return {
            "asset": asset,
            "extensionsUsed": [INSTANCING_EXTENSION],
            "scene": 0,
            "scenes": [{"nodes": [0]}],
            "nodes": [
                {
                    "mesh": 0,
                    "name": self.node_name,
                    "extensions": {
                        INSTANCING_EXTENSION: {
                            "attributes": {
                                "TRANSLATION": self.instance_translation
                            }
                        }
                    },
                }
            ],
            "materials": [m.to_json() for m in self.materials],
            "meshes": [{"primitives": [p.to_json() for p in self.primitives]}],
            "accessors": [a.to_json() for a in self.accessors],
            "bufferViews": [v.to_json() for v in self.buffer_views],
            "buffers": [{"byteLength": len(self.buffer_data)}],
        }

    def to_bytes(self) -> bytes:
        """Assemble the GLB container: header, JSON chunk, BIN chunk."""
        json_bytes = json.dumps(self.to_json(), separators=(",", ":")).encode("utf-8")
        json_bytes += b" " * ((4 - len(json_bytes) % 4) % 4)

        bin_bytes = bytes(self.buffer_data)
        if len(bin_bytes) % 4 != 0:
            raise GltfError(f"Binary chunk is {len(bin_bytes)} bytes, "
                            f"not a multiple of 4")

        total_length = 12 + 8 + len(json_bytes) + 8 + len(bin_bytes)
        return b"".join([
            struct.pack("<4sII", GLB_MAGIC, GLB_VERSION, total_length),
            struct.pack("<I4s", len(json_bytes), CHUNK_TYPE_JSON),
            json_bytes,
            struct.pack("<I4s", len(bin_bytes), CHUNK_TYPE_BIN),
            bin_bytes,
        ])

    def save(self, output_path) -> pathlib.Path:
        """Write the GLB in one step; a failed write leaves no file behind."""
        output_path = pathlib.Path(output_path)
        data = self.to_bytes()

        tmp_name = None
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(dir=output_path.parent,
                                             prefix=f".{output_path.name}.",
                                             delete=False) as f:
                tmp_name = f.name
                f.write(data)
            os.replace(tmp_name, output_path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.remove(tmp_name)
            raise ExportError(output_path, "write GLB", e) from e

        logger.info(f"GLB file generated successfully: {output_path} "
                    f"({len(data)} bytes, {len(self.primitives)} primitives)")
        return output_path
