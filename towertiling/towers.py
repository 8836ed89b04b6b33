"""Per-face tower construction and tower file output."""

import logging
import pathlib
from typing import Optional, Sequence

import trimesh

from .constants import BASE_HEIGHT
from .errors import ExportError
from .glb import Gltf
from .mesh import Mesh
from .models import Material, PathManager

logger = logging.getLogger(__name__)

DEFAULT_MATERIAL = Material(base_color=(0.8, 0.8, 0.8), metallic=0.0,
                            roughness=1.0, name="default")


class TowerTiling:
    """One independent mesh per tiling face, each tagged with a material."""

    def __init__(self):
        self.meshes: list[Mesh] = []
        self.materials: list[int] = []

    def __len__(self):
        return len(self.meshes)

    def add_tower(self, base: Sequence, profile: Sequence[tuple[int, int]],
                  material: int = 0) -> Mesh:
        mesh = Mesh()
        vertices = [mesh.add_vertex(position) for position in base]

        mesh.add_face(vertices[::-1])
        top_face = mesh.add_face(vertices)

        # must be called before extrude()
        mesh.compute_face_normals()
        top_face = mesh.extrude(top_face, BASE_HEIGHT)
        mesh.compute_face_normals()

        if profile:
            mesh.extrude_profile(top_face, profile)
            mesh.compute_face_normals()

        self.meshes.append(mesh)
        self.materials.append(material)
        return mesh

    def stats(self) -> dict:
        faces = sum(len(m.faces) for m in self.meshes)
        triangles = sum(m.face_degree(f) - 2
                        for m in self.meshes for f in range(len(m.faces)))
        return {'towers': len(self.meshes), 'faces': faces,
                'triangles': triangles}

    # ── Output ──────────────────────────────────────────────────────────

    def save_obj(self, fname_prefix) -> list[pathlib.Path]:
        paths = []
        for i, mesh in enumerate(self.meshes):
            paths.append(mesh.save_obj(
                PathManager.get_output_path(f"{fname_prefix}_{i}.obj")))
        logger.info(f"Wrote {len(paths)} tower OBJ files with prefix {fname_prefix}")
        return paths

    def to_gltf(self, materials: Sequence[Material],
                translations: Optional[Sequence] = None) -> Gltf:
        gltf = Gltf()
        if not materials:
            logger.warning("Tiling declares no materials; using a default grey")
            materials = [DEFAULT_MATERIAL]
        gltf.add_materials(materials)
        if translations is None:
            translations = [(0.0, 0.0, 0.0)]
        gltf.add_instances(translations)
        for mesh, material in zip(self.meshes, self.materials):
            gltf.add_primitive(mesh, material)
        return gltf

    def save_glb(self, output_path, materials: Sequence[Material],
                 translations: Optional[Sequence] = None) -> pathlib.Path:
        """Write all towers as primitives of one instanced GLB mesh."""
        output_path = PathManager.get_output_path(output_path)
        gltf = self.to_gltf(materials, translations)
        gltf.save(output_path)
        return output_path

    def save_stl(self, output_path) -> pathlib.Path:
        """Merge every tower into a single STL via trimesh."""
        output_path = PathManager.get_output_path(output_path)
        if not self.meshes:
            raise ExportError(output_path, "write STL",
                              ValueError("the tiling produced no towers"))

        combined = trimesh.util.concatenate([m.to_trimesh() for m in self.meshes])
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            combined.export(str(output_path), file_type='stl')
        except OSError as e:
            raise ExportError(output_path, "write STL", e) from e
        logger.info(f"STL file generated successfully: {output_path}")
        return output_path
