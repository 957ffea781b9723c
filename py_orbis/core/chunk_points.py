"""Chunk-scoped point gathering with contribution radius pruning."""

import math
from typing import List

from .point_field import GatheredPoint, PointField

CHUNK_RADIUS_RATIO = math.sqrt(2.0)


class ChunkPointSet:
    """
    Gathers the points that can influence at least one cell of a chunk.

    The chunk covers the integer cells ``base .. base + chunk_width - 1`` on
    both axes. A point is kept when its distance to that cell box is at most
    ``max_point_contribution_radius``.
    """

    def __init__(self, frequency: float, max_point_contribution_radius: float, chunk_width: int):
        """
        Initialize the chunk point set.

        Args:
            frequency: Point field frequency
            max_point_contribution_radius: Distance beyond which a point
                cannot influence a cell
            chunk_width: Number of cells along each chunk axis
        """
        if chunk_width < 1:
            raise ValueError(f"Chunk width must be at least 1, got {chunk_width}")
        if max_point_contribution_radius < 0:
            raise ValueError("Contribution radius must not be negative")

        self.chunk_width = chunk_width
        self.half_extent = (chunk_width - 1) / 2.0
        self.max_point_contribution_radius = max_point_contribution_radius
        self.max_point_contribution_radius_sq = max_point_contribution_radius ** 2
        self.point_field = PointField(frequency)
        self.search_radius = max_point_contribution_radius + self.half_extent * CHUNK_RADIUS_RATIO

    def get_points_from_chunk_base(self, seed: int, chunk_base_x: int, chunk_base_z: int) -> List[GatheredPoint]:
        """Get the relevant points for the chunk whose first cell is at the given base."""
        return self.get_points_from_chunk_center(
            seed, chunk_base_x + self.half_extent, chunk_base_z + self.half_extent
        )

    def get_points_from_chunk_center(self, seed: int, chunk_center_x: float, chunk_center_z: float) -> List[GatheredPoint]:
        """Get the relevant points for the chunk centred on the given location."""
        radius = self.max_point_contribution_radius
        points = self.point_field.get_points(seed, chunk_center_x, chunk_center_z, self.search_radius)

        kept = []
        for point in points:
            # Distance outside the chunk box along each axis; negative when
            # the point lies within the box's span on that axis.
            axis_x = abs(point.x - chunk_center_x) - self.half_extent
            axis_z = abs(point.z - chunk_center_z) - self.half_extent
            if axis_x > radius or axis_z > radius:
                continue
            if axis_x > 0 and axis_z > 0 and axis_x * axis_x + axis_z * axis_z > self.max_point_contribution_radius_sq:
                continue
            kept.append(point)
        return kept

    def chunk_center(self, chunk_base_x: int, chunk_base_z: int):
        """Get the centre of the chunk with the given base."""
        return chunk_base_x + self.half_extent, chunk_base_z + self.half_extent
