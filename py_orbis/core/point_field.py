"""
Deterministic scattered point field.

Points sit on a jittered square grid with spacing ``1 / frequency``: every
grid cell holds exactly one point, displaced from the cell centre by up to
``JITTER`` of the spacing on each axis. The displacement is derived only from
``(seed, cell_x, cell_z)`` so any query, at any centre and radius, sees the
same points.
"""

import math
from typing import Generic, List, Optional, TypeVar

from .alea_prng import cell_offsets

T = TypeVar("T")

# Max deviation from the cell centre, as a fraction of the grid spacing
JITTER = 0.45

# Furthest any location can be from its closest point, in grid spacings
MAX_GRIDSCALE_DISTANCE_TO_CLOSEST_POINT = (0.5 + JITTER) * math.sqrt(2.0)


class GatheredPoint(Generic[T]):
    """A scattered point with fixed coordinates and a per-query tag."""

    __slots__ = ("_x", "_z", "_cell_x", "_cell_z", "tag")

    def __init__(self, x: float, z: float, cell_x: int, cell_z: int, tag: Optional[T] = None):
        self._x = x
        self._z = z
        self._cell_x = cell_x
        self._cell_z = cell_z
        self.tag = tag

    @property
    def x(self) -> float:
        return self._x

    @property
    def z(self) -> float:
        return self._z

    @property
    def cell(self):
        """Grid cell that owns this point, unique within one field."""
        return self._cell_x, self._cell_z

    def distance_squared(self, x: float, z: float) -> float:
        dx = self._x - x
        dz = self._z - z
        return dx * dx + dz * dz

    def __repr__(self):
        return f"GatheredPoint(x={self._x:.3f}, z={self._z:.3f}, cell={self.cell})"


class PointField:
    """Enumerates the jittered grid points around a query centre."""

    def __init__(self, frequency: float):
        """
        Initialize the point field.

        Args:
            frequency: Points per unit along each axis
        """
        if frequency <= 0:
            raise ValueError(f"Point field frequency must be positive, got {frequency}")
        self.frequency = frequency
        self.spacing = 1.0 / frequency

    @property
    def max_point_displacement(self) -> float:
        """Furthest any location can be from its closest point."""
        return MAX_GRIDSCALE_DISTANCE_TO_CLOSEST_POINT * self.spacing

    def point_in_cell(self, seed: int, cell_x: int, cell_z: int) -> GatheredPoint:
        """Get the point owned by one grid cell."""
        u, v = cell_offsets(seed, cell_x, cell_z)
        x = (cell_x + 0.5 + (u * 2.0 - 1.0) * JITTER) * self.spacing
        z = (cell_z + 0.5 + (v * 2.0 - 1.0) * JITTER) * self.spacing
        return GatheredPoint(x, z, cell_x, cell_z)

    def get_points(self, seed: int, center_x: float, center_z: float, max_radius: float) -> List[GatheredPoint]:
        """
        Get every point within ``max_radius`` of the centre.

        Args:
            seed: Field seed
            center_x: Query centre X
            center_z: Query centre Z
            max_radius: Inclusive search radius

        Returns:
            Points ordered by grid cell (row-major along Z then X)
        """
        if max_radius < 0:
            raise ValueError(f"Search radius must not be negative, got {max_radius}")

        # A point never leaves its cell, so only cells overlapping the
        # radius' bounding square can hold a match.
        min_cell_x = math.floor((center_x - max_radius) / self.spacing)
        max_cell_x = math.floor((center_x + max_radius) / self.spacing)
        min_cell_z = math.floor((center_z - max_radius) / self.spacing)
        max_cell_z = math.floor((center_z + max_radius) / self.spacing)
        radius_sq = max_radius * max_radius

        points = []
        for cell_z in range(min_cell_z, max_cell_z + 1):
            for cell_x in range(min_cell_x, max_cell_x + 1):
                point = self.point_in_cell(seed, cell_x, cell_z)
                if point.distance_squared(center_x, center_z) <= radius_sq:
                    points.append(point)
        return points
