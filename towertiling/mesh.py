"""Index-addressed half-edge mesh with extrusion and triangulation.

Vertices, half-edges and faces live in three append-only lists and refer to
each other only by integer index.  Normals are a separate phase: build the
topology, call :meth:`Mesh.compute_face_normals`, then extrude.
"""

import logging
import pathlib
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np
import trimesh

from .constants import RADIAL_UNIT, HEIGHT_UNIT
from .errors import MeshError, ExportError

logger = logging.getLogger(__name__)

Vec3 = tuple[float, float, float]

# Below this the cross product of two edges is treated as zero
_DEGENERATE_EPS = 1e-12


@dataclass
class Vertex:
    position: Vec3
    half_edge: Optional[int] = None
    # Reserved for compaction, never set
    deleted: bool = False


@dataclass
class HalfEdge:
    from_vertex: int
    previous: Optional[int] = None
    next: Optional[int] = None
    twin: Optional[int] = None
    face: Optional[int] = None


@dataclass
class Face:
    half_edge: int
    normal: Optional[Vec3] = None


def _as_vec3(values) -> Vec3:
    return (float(values[0]), float(values[1]), float(values[2]))


class Mesh:
    def __init__(self):
        self.vertices: list[Vertex] = []
        self.half_edges: list[HalfEdge] = []
        self.faces: list[Face] = []

    def __repr__(self):
        return (f"Mesh(vertices={len(self.vertices)}, "
                f"half_edges={len(self.half_edges)}, faces={len(self.faces)})")

    # ── Construction ────────────────────────────────────────────────────

    def add_vertex(self, position) -> int:
        index = len(self.vertices)
        self.vertices.append(Vertex(_as_vec3(position)))
        return index

    def add_face(self, vertices: Sequence[int]) -> int:
        """Add a face whose boundary visits *vertices* in order.

        One half-edge is created per vertex and the half-edges are linked
        into a closed next/previous loop.  A vertex that has no outgoing
        half-edge yet gets the one created for it here.
        """
        n = len(vertices)
        if n < 3:
            raise MeshError(f"A face needs at least 3 vertices, got {n}")
        for v in vertices:
            if not 0 <= v < len(self.vertices):
                raise MeshError(f"Face references unknown vertex {v} "
                                f"(mesh has {len(self.vertices)})")

        face_index = len(self.faces)
        new_edges = []
        for v in vertices:
            half_edge_index = len(self.half_edges)
            new_edges.append(half_edge_index)
            self.half_edges.append(HalfEdge(from_vertex=v, face=face_index))

            if self.vertices[v].half_edge is None:
                self.vertices[v].half_edge = half_edge_index

        for i in range(n):
            current = new_edges[i]
            following = new_edges[(i + 1) % n]
            self.half_edges[current].next = following
            self.half_edges[following].previous = current

        self.faces.append(Face(half_edge=new_edges[0]))
        return face_index

    # ── Traversal ───────────────────────────────────────────────────────

    def _face(self, face: int) -> Face:
        if not 0 <= face < len(self.faces):
            raise MeshError(f"Face {face} does not exist "
                            f"(mesh has {len(self.faces)})")
        return self.faces[face]

    def face_half_edges(self, face: int) -> list[int]:
        """Half-edge indices around *face*, starting at its stored edge."""
        start = self._face(face).half_edge
        result = [start]
        current = self.half_edges[start].next
        while current != start:
            if current is None:
                raise MeshError(f"Face {face} has an unlinked half-edge")
            if len(result) > len(self.half_edges):
                raise MeshError(f"Boundary of face {face} does not close")
            result.append(current)
            current = self.half_edges[current].next
        return result

    def face_vertices(self, face: int) -> list[int]:
        return [self.half_edges[e].from_vertex
                for e in self.face_half_edges(face)]

    def face_positions(self, face: int) -> list[Vec3]:
        return [self.vertices[v].position for v in self.face_vertices(face)]

    def face_degree(self, face: int) -> int:
        return len(self.face_half_edges(face))

    def face_normal(self, face: int) -> np.ndarray:
        normal = self._face(face).normal
        if normal is None:
            raise MeshError(f"Face {face} has no normal; call "
                            f"compute_face_normals() first")
        return np.array(normal, dtype=np.float64)

    def validate(self) -> None:
        """Check that every face loop closes and is consistently linked."""
        for face_index in range(len(self.faces)):
            edges = self.face_half_edges(face_index)
            for e in edges:
                he = self.half_edges[e]
                if he.face != face_index:
                    raise MeshError(f"Half-edge {e} belongs to face {he.face}, "
                                    f"expected {face_index}")
                if self.half_edges[he.next].previous != e:
                    raise MeshError(f"Half-edge {e}: previous is not the "
                                    f"inverse of next")

    # ── Normals ─────────────────────────────────────────────────────────

    def compute_face_normals(self) -> None:
        """Compute the normal of every face that does not have one yet.

        Uses the first three boundary vertices, so faces are assumed to be
        planar.  Raises MeshError on a degenerate corner.
        """
        for face_index, face in enumerate(self.faces):
            if face.normal is not None:
                continue

            v0, v1, v2 = (np.array(p) for p in self.face_positions(face_index)[:3])
            normal = np.cross(v2 - v1, v0 - v1)
            length = np.linalg.norm(normal)
            if not np.isfinite(length) or length < _DEGENERATE_EPS:
                raise MeshError(f"Face {face_index} is degenerate; "
                                f"cannot compute its normal")
            face.normal = _as_vec3(normal / length)

    # ── Extrusion ───────────────────────────────────────────────────────

    def _add_layer(self, positions) -> list[int]:
        return [self.add_vertex(p) for p in positions]

    def _bridge(self, lower: list[int], upper: list[int]) -> None:
        """Connect two vertex rings of the same size with quads."""
        n = len(lower)
        for i in range(n):
            j = (i + 1) % n
            self.add_face([lower[i], lower[j], upper[j], upper[i]])

    def extrude(self, face: int, distance: float) -> int:
        """Extrude *face* along its normal, returning the new top face.

        The original face is kept as the base of the resulting prism.
        """
        normal = self.face_normal(face)
        base = self.face_vertices(face)
        positions = np.array([self.vertices[v].position for v in base])

        top = self._add_layer(positions + distance * normal)
        self._bridge(base, top)
        return self.add_face(top)

    def extrude_profile(self, face: int, profile: Sequence[tuple[int, int]]) -> int:
        """Extrude *face* through a stack of layers described by *profile*.

        Each ``(radial, height)`` step is added to running totals; layer k
        sits ``height_total * HEIGHT_UNIT`` above the face and is pulled
        ``radial_total * RADIAL_UNIT`` toward the face centroid.
        """
        normal = self.face_normal(face)
        base = self.face_vertices(face)
        if not profile:
            return face

        original = np.array([self.vertices[v].position for v in base])
        centroid = original.mean(axis=0)
        to_center = centroid - original
        lengths = np.linalg.norm(to_center, axis=1)
        if np.any(lengths < _DEGENERATE_EPS):
            raise MeshError(f"Face {face} has a vertex on its centroid; "
                            f"cannot extrude a profile")
        center_directions = to_center / lengths[:, np.newaxis]

        radial_steps = 0
        height_steps = 0
        previous = base
        for radial_delta, height_delta in profile:
            radial_steps += int(radial_delta)
            height_steps += int(height_delta)
            radial_distance = radial_steps * RADIAL_UNIT
            vertical_distance = height_steps * HEIGHT_UNIT

            positions = (original
                         + radial_distance * center_directions
                         + vertical_distance * normal)
            layer = self._add_layer(positions)
            self._bridge(previous, layer)
            previous = layer

        return self.add_face(previous)

    # ── Export ──────────────────────────────────────────────────────────

    def triangulate(self):
        """Fan-triangulate every face.

        Returns ``(positions, normals, indices)``: two ``(N, 3)`` float64
        arrays with per-face duplicated vertices and a flat ``uint32`` index
        array.
        """
        positions = []
        normals = []
        indices = []
        vertex_count = 0
        for face_index in range(len(self.faces)):
            normal = _as_vec3(self.face_normal(face_index))
            face_positions = self.face_positions(face_index)
            n = len(face_positions)

            positions.extend(face_positions)
            normals.extend([normal] * n)
            for k in range(1, n - 1):
                indices.extend([vertex_count, vertex_count + k,
                                vertex_count + k + 1])
            vertex_count += n

        return (np.array(positions, dtype=np.float64).reshape(-1, 3),
                np.array(normals, dtype=np.float64).reshape(-1, 3),
                np.array(indices, dtype=np.uint32))

    def to_trimesh(self) -> trimesh.Trimesh:
        """Triangulated copy of this mesh as a trimesh object."""
        positions, _, indices = self.triangulate()
        return trimesh.Trimesh(vertices=positions,
                               faces=indices.reshape(-1, 3).astype(np.int64),
                               process=False)

    def to_obj(self) -> str:
        """Plain-text dump: ``v x y z`` lines then 1-based face lines."""
        lines = []
        for vertex in self.vertices:
            x, y, z = vertex.position
            lines.append(f"v {x} {y} {z}")
        for face_index in range(len(self.faces)):
            ids = " ".join(str(v + 1) for v in self.face_vertices(face_index))
            lines.append(f"f {ids}")
        return "\n".join(lines) + "\n"

    def save_obj(self, output_path) -> pathlib.Path:
        output_path = pathlib.Path(output_path)
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(self.to_obj(), encoding='utf-8')
        except OSError as e:
            raise ExportError(output_path, "write OBJ", e) from e
        logger.debug(f"Wrote {self!r} to {output_path}")
        return output_path
