import json

from click.testing import CliRunner

from towertiling.cli import cli


def test_build(triangle_tiling_json, tmp_path, glb_reader):
    output = tmp_path / "towers.glb"
    base_obj = tmp_path / "base.obj"
    stl = tmp_path / "towers.stl"

    result = CliRunner().invoke(cli, [
        'build', str(triangle_tiling_json),
        '--output', str(output),
        '--base-obj', str(base_obj),
        '--obj-prefix', str(tmp_path / "tower"),
        '--stl', str(stl),
        '--repeat', '1',
    ])

    assert result.exit_code == 0, result.output
    assert "2 towers x 9 instances" in result.output
    assert base_obj.exists()
    assert stl.exists()
    assert (tmp_path / "tower_0.obj").exists()
    assert (tmp_path / "tower_1.obj").exists()

    _, _, doc, _, _ = glb_reader(output.read_bytes())
    assert [p["material"] for p in doc["meshes"][0]["primitives"]] == [1, 0]
    translation = doc["nodes"][0]["extensions"]["EXT_mesh_gpu_instancing"]["attributes"]["TRANSLATION"]
    assert doc["accessors"][translation]["count"] == 9


def test_base(triangle_tiling_json, tmp_path):
    output = tmp_path / "base.obj"
    result = CliRunner().invoke(cli, ['base', str(triangle_tiling_json), '-o', str(output)])

    assert result.exit_code == 0, result.output
    assert "Wrote 2 faces" in result.output
    assert output.read_text().count("\nf ") == 2


def test_info(triangle_tiling_json):
    result = CliRunner().invoke(cli, ['info', str(triangle_tiling_json)])

    assert result.exit_code == 0, result.output
    assert "Basis: TwelfthRoot" in result.output
    assert "star=[10, 0, 2] faces=[3, 3]" in result.output
    assert "Faces: 2" in result.output


def test_build_reports_invalid_tiling(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"translations": [[1, 0, 0, 0]]}))

    result = CliRunner().invoke(cli, ['build', str(path), '-o', str(tmp_path / "x.glb")])

    assert result.exit_code == 1
    assert "translations" in result.output
    assert not (tmp_path / "x.glb").exists()


def test_build_stl_without_towers(tmp_path):
    # Translations too long for any lattice step, so the seed has no star
    path = tmp_path / "sparse.json"
    path.write_text(json.dumps({
        "translations": [[5, 0, 0, 0], [0, 0, 5, 0]],
        "seeds": [{"position": [0, 0, 0, 0]}],
    }))

    result = CliRunner().invoke(cli, ['build', str(path), '-o', str(tmp_path / "x.glb"),
                                      '--stl', str(tmp_path / "x.stl")])

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "write STL" in result.output
    assert not (tmp_path / "x.stl").exists()


def test_build_reports_bad_face_sides(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({
        "translations": [[1, 0, 0, 0], [0, 0, 1, 0]],
        "seeds": [{"position": [0, 0, 0, 0], "faces": [{"sides": "three"}]}],
    }))

    result = CliRunner().invoke(cli, ['build', str(path), '-o', str(tmp_path / "x.glb")])

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "sides" in result.output


def test_info_reports_invalid_tiling(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"translations": [[1, 0, 0, 0], [0, 0, 1.5, 0]]}))

    result = CliRunner().invoke(cli, ['info', str(path)])

    assert result.exit_code == 1
    assert "translations[1][2]" in result.output
