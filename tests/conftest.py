import json
import struct

import pytest

from towertiling.mesh import Mesh
from towertiling.models import IntegerTiling, Material, Profile, Seed, TilingFace
from towertiling.tiling import Basis


@pytest.fixture
def triangle_mesh():
    """Unit right triangle in the XY plane, counter-clockwise."""
    mesh = Mesh()
    a = mesh.add_vertex((0.0, 0.0, 0.0))
    b = mesh.add_vertex((1.0, 0.0, 0.0))
    c = mesh.add_vertex((0.0, 1.0, 0.0))
    mesh.add_face([a, b, c])
    return mesh


@pytest.fixture
def square_mesh():
    mesh = Mesh()
    vertices = [mesh.add_vertex(p) for p in
                [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (1.0, 1.0, 0.0), (0.0, 1.0, 0.0)]]
    mesh.add_face(vertices)
    return mesh


@pytest.fixture
def triangle_tiling():
    """Equilateral triangles: one seed, translations along 0 and 60 degrees."""
    return IntegerTiling(
        basis=Basis.TWELFTH_ROOT,
        translations=((1, 0, 0, 0), (0, 0, 1, 0)),
        seeds=[Seed(position=(0, 0, 0, 0),
                    faces=[TilingFace(sides=3, profile=0, material=1),
                           TilingFace(sides=3)])],
        profiles=[Profile(name="stepped", offsets=[(0, 5), (1, 5)])],
        materials=[Material(base_color=(0.9, 0.9, 0.9), metallic=0.0, roughness=0.5),
                   Material(base_color=(0.2, 0.3, 0.8), metallic=0.5, roughness=0.2)],
    )


@pytest.fixture
def square_tiling():
    return IntegerTiling(
        basis=Basis.GRAPH_PAPER,
        translations=((1, 0, 0, 0), (0, 0, 0, 1)),
        seeds=[Seed(position=(0, 0, 0, 0))],
    )


@pytest.fixture
def triangle_tiling_json(tmp_path):
    data = {
        "basis": "TwelfthRoot",
        "translations": [[1, 0, 0, 0], [0, 0, 1, 0]],
        "seeds": [{"position": [0, 0, 0, 0],
                   "faces": [{"sides": 3, "profile": 0, "material": 1},
                             {"sides": 3}]}],
        "profiles": [{"name": "stepped", "offsets": [[0, 5], [1, 5]]}],
        "materials": [{"base_color": [0.9, 0.9, 0.9], "metallic": 0.0, "roughness": 0.5},
                      {"base_color": [0.2, 0.3, 0.8], "metallic": 0.5, "roughness": 0.2}],
    }
    path = tmp_path / "triangle-tiling.json"
    path.write_text(json.dumps(data))
    return path


def read_glb(data: bytes):
    """Split a GLB file into (header, json_length, document, bin_length, bin)."""
    magic, version, total_length = struct.unpack_from("<4sII", data, 0)
    json_length, json_type = struct.unpack_from("<I4s", data, 12)
    json_bytes = data[20:20 + json_length]
    offset = 20 + json_length
    bin_length, bin_type = struct.unpack_from("<I4s", data, offset)
    bin_bytes = data[offset + 8:offset + 8 + bin_length]
    assert json_type == b"JSON"
    assert bin_type == b"BIN\x00"
    return ((magic, version, total_length), json_length,
            json.loads(json_bytes.decode("utf-8")), bin_length, bin_bytes)


@pytest.fixture
def glb_reader():
    return read_glb
