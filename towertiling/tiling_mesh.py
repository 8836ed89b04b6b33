"""Trace the faces of an integer-lattice tiling into a half-edge mesh."""

import logging
import time
from dataclasses import dataclass

from .constants import (DIRECTION_COUNT, STAR_SCAN_START, STAR_SCAN_END,
                        TURN_STEP)
from .errors import TilingError
from .mesh import Mesh
from .models import IntegerTiling, PathManager, TilingVector
from .tiling import adjacent, to_world, translate
from .towers import TowerTiling

logger = logging.getLogger(__name__)


@dataclass
class CloudVertex:
    seed: TilingVector
    # True for the halo copies around the central patch
    outside: bool
    # Index in the mesh
    index: int


class TilingMesh:
    """Base mesh of a tiling patch plus the bookkeeping to build towers.

    ``anchored_faces[f]`` is the ``(seed_index, local_face_index)`` that
    generated mesh face ``f``; per-face styling in the tiling description is
    looked up through it.
    """

    def __init__(self, tiling: IntegerTiling):
        self.tiling = tiling
        self.mesh = Mesh()
        self.cloud: dict[TilingVector, CloudVertex] = {}
        self.anchored_faces: list[tuple[int, int]] = []

    def compute_mesh(self) -> Mesh:
        _t0 = time.perf_counter()
        self.init_cloud()
        self.generate_faces()
        logger.info(f"Traced {len(self.mesh.faces)} faces from "
                    f"{len(self.tiling.seeds)} seeds over {len(self.cloud)} "
                    f"lattice points in {time.perf_counter() - _t0:.3f}s")
        return self.mesh

    def save_base(self, output_path):
        return self.mesh.save_obj(PathManager.get_output_path(output_path))

    # ── Cloud ───────────────────────────────────────────────────────────

    def init_cloud(self) -> None:
        """Instantiate every seed under a 3x3 block of translations."""
        translations = self.tiling.translations
        for seed in self.tiling.seeds:
            for i in (-1, 0, 1):
                for j in (-1, 0, 1):
                    instance = translate(seed.position, translations, i, j)
                    if instance in self.cloud:
                        continue

                    index = self.mesh.add_vertex(
                        to_world(instance, self.tiling.basis))
                    self.cloud[instance] = CloudVertex(
                        seed=seed.position,
                        outside=(i != 0 or j != 0),
                        index=index,
                    )

    def _has_neighbor(self, position: TilingVector, direction: int) -> bool:
        return adjacent(position, direction) in self.cloud

    # ── Faces ───────────────────────────────────────────────────────────

    def generate_faces(self) -> None:
        for seed_index in range(len(self.tiling.seeds)):
            self.generate_seed_faces(seed_index)

    def star_directions(self, seed_index: int) -> list[int]:
        """Directions around a seed whose neighbour is in the cloud."""
        position = self.tiling.seeds[seed_index].position
        result = []
        for k in range(STAR_SCAN_START, STAR_SCAN_END + 1):
            direction = k % DIRECTION_COUNT
            if self._has_neighbor(position, direction):
                result.append(direction)
        return result

    def generate_seed_faces(self, seed_index: int) -> list[int]:
        """Trace one face between each consecutive pair of star directions."""
        star = self.star_directions(seed_index)
        logger.debug(f"Seed {seed_index} "
                     f"{self.tiling.seeds[seed_index].position}: star={star}")

        faces = []
        for local_index, first_direction in enumerate(star[:-1]):
            faces.append(self.generate_face(seed_index, first_direction))
            self.anchored_faces.append((seed_index, local_index))
        return faces

    def _next_direction(self, position: TilingVector, direction: int) -> int:
        candidate = (direction + TURN_STEP) % DIRECTION_COUNT
        for _ in range(DIRECTION_COUNT):
            if self._has_neighbor(position, candidate):
                return candidate
            candidate = (candidate - 1) % DIRECTION_COUNT
        raise TilingError(f"Lattice point {position} has no neighbours "
                          f"in the cloud")

    def trace_face(self, seed_index: int, first_direction: int) -> list[int]:
        """Walk the boundary of one face, returning its mesh vertex indices."""
        start = self.tiling.seeds[seed_index].position
        current = start
        direction = first_direction
        face_vertices = []

        while True:
            try:
                face_vertices.append(self.cloud[current].index)
            except KeyError:
                raise TilingError(f"Face walk from seed {seed_index} stepped "
                                  f"onto {current}, which is not in the "
                                  f"cloud") from None
            if len(face_vertices) > len(self.cloud):
                raise TilingError(f"Face walk from seed {seed_index} in "
                                  f"direction {first_direction} does not "
                                  f"close")

            current = adjacent(current, direction)
            if current == start:
                break
            direction = self._next_direction(current, direction)

        return face_vertices

    def generate_face(self, seed_index: int, first_direction: int) -> int:
        return self.mesh.add_face(self.trace_face(seed_index, first_direction))

    # ── Towers ──────────────────────────────────────────────────────────

    def face_descriptor(self, face: int) -> tuple[list[tuple[int, int]], int]:
        """Return ``(profile_offsets, material)`` declared for a mesh face."""
        seed_index, local_index = self.anchored_faces[face]
        faces = self.tiling.seeds[seed_index].faces
        if not faces or local_index >= len(faces):
            return [], 0

        descriptor = faces[local_index]
        if descriptor.profile is None:
            return [], descriptor.material
        if not 0 <= descriptor.profile < len(self.tiling.profiles):
            raise TilingError(f"Seed {seed_index} face {local_index} uses "
                              f"profile {descriptor.profile}, but only "
                              f"{len(self.tiling.profiles)} are declared")
        return self.tiling.profiles[descriptor.profile].offsets, descriptor.material

    def make_towers(self) -> TowerTiling:
        _t0 = time.perf_counter()
        towers = TowerTiling()
        for face in range(len(self.mesh.faces)):
            profile, material = self.face_descriptor(face)
            base = self.mesh.face_positions(face)
            towers.add_tower(base, profile, material)
        logger.info(f"Built {len(towers)} towers in "
                    f"{time.perf_counter() - _t0:.3f}s")
        return towers

    def instance_translations(self, radius: int = 0) -> list[tuple[float, float, float]]:
        """World offsets that repeat the patch along both translations."""
        if radius < 0:
            raise TilingError(f"Instance radius must be >= 0, got {radius}")
        origin = (0, 0, 0, 0)
        return [to_world(translate(origin, self.tiling.translations, i, j),
                         self.tiling.basis)
                for i in range(-radius, radius + 1)
                for j in range(-radius, radius + 1)]
