"""Exception types raised by the tower tiling pipeline."""


class TowerTilingError(Exception):
    """Base class for all towertiling failures."""


class MeshError(TowerTilingError, ValueError):
    """A half-edge structure precondition was violated."""


class TilingError(TowerTilingError, ValueError):
    """The tiling description is invalid or a face walk broke down."""


class GltfError(TowerTilingError, ValueError):
    """The GLB container would violate its layout rules."""


class ExportError(TowerTilingError, OSError):
    """An output file could not be written."""

    def __init__(self, path, operation: str, cause: Exception):
        self.path = str(path)
        self.operation = operation
        super().__init__(f"Failed to {operation} {self.path}: {cause}")
