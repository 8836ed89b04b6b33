import numpy as np
import pytest
import trimesh

from towertiling.constants import BASE_HEIGHT, HEIGHT_UNIT
from towertiling.errors import ExportError
from towertiling.towers import TowerTiling

TRIANGLE = [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0)]


def test_triangle_tower():
    towers = TowerTiling()
    mesh = towers.add_tower(TRIANGLE, [])

    # bottom cap + top cap + 3 sides + raised top
    assert len(mesh.faces) == 6
    mesh.validate()

    assert mesh.faces[0].normal == pytest.approx((0.0, 0.0, -1.0))
    assert mesh.faces[1].normal == pytest.approx((0.0, 0.0, 1.0))
    top = np.array(mesh.face_positions(5))
    np.testing.assert_allclose(top[:, 2], BASE_HEIGHT)

    positions, normals, indices = mesh.triangulate()
    assert len(indices) == 27
    assert len(indices) // 3 == 9
    assert len(positions) == 3 + 3 + 3 * 4 + 3


def test_tower_with_profile():
    towers = TowerTiling()
    mesh = towers.add_tower(TRIANGLE, [(0, 10), (1, 0), (0, 5)], material=2)

    assert towers.materials == [2]
    assert len(mesh.faces) == 6 + 3 * 3 + 1
    assert all(face.normal is not None for face in mesh.faces)

    top = np.array(mesh.face_positions(len(mesh.faces) - 1))
    np.testing.assert_allclose(top[:, 2], BASE_HEIGHT + 15 * HEIGHT_UNIT)


def test_stats():
    towers = TowerTiling()
    towers.add_tower(TRIANGLE, [])
    towers.add_tower(TRIANGLE, [(0, 3)])
    assert towers.stats() == {'towers': 2, 'faces': 6 + 10, 'triangles': 9 + 16}


def test_save_obj(tmp_path):
    towers = TowerTiling()
    towers.add_tower(TRIANGLE, [])
    towers.add_tower(TRIANGLE, [(0, 1)])

    paths = towers.save_obj(tmp_path / "tower")
    assert [p.name for p in paths] == ["tower_0.obj", "tower_1.obj"]
    assert all(p.exists() for p in paths)


def test_save_stl(tmp_path):
    towers = TowerTiling()
    towers.add_tower(TRIANGLE, [])
    towers.add_tower([(x + 2.0, y, z) for x, y, z in TRIANGLE], [])

    path = towers.save_stl(tmp_path / "towers.stl")
    loaded = trimesh.load(str(path), process=False)
    assert len(loaded.faces) == 18


def test_save_stl_without_towers(tmp_path):
    with pytest.raises(ExportError) as excinfo:
        TowerTiling().save_stl(tmp_path / "empty.stl")
    assert "write STL" in str(excinfo.value)
    assert not (tmp_path / "empty.stl").exists()
