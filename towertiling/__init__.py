"""towertiling package — quasiperiodic tower tilings exported as GLB.

Import constants FIRST so environment overrides and logging are set up
before any other module reads them.
"""

from towertiling import constants as _constants  # noqa: F401

from towertiling.mesh import Mesh
from towertiling.tiling import Basis, load_tiling
from towertiling.tiling_mesh import TilingMesh
from towertiling.towers import TowerTiling
