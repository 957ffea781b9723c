"""
Cellular biome sampling for one chunk.

Instead of classifying raw coordinates, the chunk is covered by the
dimension's cell points (spacing ``cell_zoom``) and every location takes the
biome of its nearest cell point. Contexts of a cell point are damped towards
zero when a neighbouring point of another type, initial region or layer lies
within the matching contribution radius, by ``min(1, d² / radius²)``.

All points advance through the descent together, one level at a time, and
each grid cell owns a single evaluation. A chunk point's damped contexts are
therefore the ones its neighbours compare against at deeper levels.
"""

import math
from typing import Callable, Dict, List

import structlog

from .chunk_points import ChunkPointSet
from .errors import ConfigurationError
from .layers import RegionLayer
from .noise import round_to_precision
from .point_field import GatheredPoint, PointField
from .resolver import TYPE_CONTEXT, ContextResolver, PointEvaluation

logger = structlog.get_logger()


class ChunkBiomeSampler:
    """Classifies the cell points of one chunk with neighbourhood damping."""

    def __init__(self, resolver: ContextResolver, chunk_width: int, chunk_base_x: int, chunk_base_z: int):
        """
        Gather and classify the chunk's cell points.

        ``biome_at`` is exact for any location whose nearest cell point lies
        within the dimension's ``cell_point_contribution_radius`` of the chunk.

        Args:
            resolver: Resolver bound to the configuration graph
            chunk_width: Number of cells along each chunk axis
            chunk_base_x: World X of the chunk's first cell
            chunk_base_z: World Z of the chunk's first cell

        Raises:
            ConfigurationError: If no cell point is relevant to the chunk
        """
        self.resolver = resolver
        dimension = resolver.dimension
        self.precision = dimension.precision

        cell_frequency = 1.0 / dimension.cell_zoom
        point_set = ChunkPointSet(cell_frequency, dimension.cell_point_contribution_radius, chunk_width)
        center_x, center_z = point_set.chunk_center(chunk_base_x, chunk_base_z)

        self.chunk_points: List[GatheredPoint[PointEvaluation]] = point_set.get_points_from_chunk_base(
            dimension.seed, chunk_base_x, chunk_base_z
        )
        if not self.chunk_points:
            raise ConfigurationError(
                f"No cell points near chunk ({chunk_base_x}, {chunk_base_z}); "
                f"cell point contribution radius {dimension.cell_point_contribution_radius} is too small"
            )

        furthest = math.sqrt(max(point.distance_squared(center_x, center_z) for point in self.chunk_points))
        region_radius = max((region.contribution_radius for region in resolver.registry.regions.values()), default=0)
        damping_radius = max(dimension.type_contribution_radius, dimension.region_contribution_radius, region_radius)

        if damping_radius > 0:
            self.neighbours: List[GatheredPoint[PointEvaluation]] = PointField(cell_frequency).get_points(
                dimension.seed, center_x, center_z, furthest + damping_radius
            )
        else:
            self.neighbours = []

        # One evaluation per grid cell, shared by the chunk point and its
        # neighbourhood entry.
        evaluated = self.neighbours or self.chunk_points
        for point in evaluated:
            point.tag = PointEvaluation()
        by_cell: Dict[tuple, GatheredPoint] = {point.cell: point for point in evaluated}
        for point in self.chunk_points:
            point.tag = by_cell[point.cell].tag
        self._evaluated = evaluated

        self._assign_types()
        self._assign_initial_regions()
        self._descend()

        logger.debug(
            "Sampled chunk cell points",
            x=chunk_base_x,
            z=chunk_base_z,
            points=len(self.chunk_points),
            neighbours=len(self.neighbours),
        )

    def _damping(self, point: GatheredPoint, radius: int, differs: Callable[[PointEvaluation], bool]) -> float:
        """Damping factor from the nearest differing neighbour within ``radius``."""
        if radius <= 0:
            return 1.0
        radius_sq = radius * radius
        closest_sq = radius_sq
        for neighbour in self.neighbours:
            if neighbour.cell == point.cell or not differs(neighbour.tag):
                continue
            distance_sq = neighbour.distance_squared(point.x, point.z)
            if distance_sq < closest_sq:
                closest_sq = distance_sq
        return closest_sq / radius_sq

    def _damp_all(self, name_of: Callable[[PointEvaluation], str], factors: List[float]):
        """Apply factors computed for every chunk point in one pass."""
        for point, factor in zip(self.chunk_points, factors):
            if factor < 1.0:
                evaluation = point.tag
                name = name_of(evaluation)
                evaluation.contexts[name] = round_to_precision(evaluation.contexts[name] * factor, self.precision)

    def _assign_types(self):
        resolver = self.resolver
        for point in self._evaluated:
            resolver.classify_type(point.x, point.z, point.tag)

        radius = resolver.dimension.type_contribution_radius
        factors = [
            self._damping(point, radius, lambda other, t=point.tag.terrain_type: other.terrain_type != t)
            for point in self.chunk_points
        ]
        self._damp_all(lambda evaluation: TYPE_CONTEXT, factors)

    def _assign_initial_regions(self):
        resolver = self.resolver
        for point in self._evaluated:
            resolver.select_initial_region(point.x, point.z, point.tag)

        radius = resolver.dimension.region_contribution_radius
        factors = [
            self._damping(point, radius, lambda other, name=point.tag.layer_at(0): other.layer_at(0) != name)
            for point in self.chunk_points
        ]
        self._damp_all(lambda evaluation: evaluation.layer_at(0), factors)

    def _descend(self):
        """Advance every point level by level until each chunk point has a biome."""
        resolver = self.resolver
        level = 1
        while True:
            pending = [point for point in self.chunk_points if point.tag.biome is None]
            if not pending:
                return
            pending_cells = {point.cell for point in pending}

            # Only points sharing a parent layer with an unresolved chunk point
            # can influence damping at this level.
            active_parents = {point.tag.layer_at(level - 1) for point in pending}
            for point in self._evaluated:
                evaluation = point.tag
                if (
                    evaluation.biome is None
                    and len(evaluation.trail) == level
                    and evaluation.layer_at(level - 1) in active_parents
                ):
                    resolver.step(point.x, point.z, evaluation)

            factors = []
            for point in self.chunk_points:
                selection = point.tag.trail[level] if point.cell in pending_cells else None
                if selection is None or not isinstance(selection.layer, RegionLayer):
                    factors.append(1.0)
                    continue
                parent = point.tag.layer_at(level - 1)
                radius = resolver.registry.region(point.tag.trail[level - 1].layer.region).contribution_radius
                factors.append(
                    self._damping(
                        point,
                        radius,
                        lambda other, lvl=level, parent=parent, name=selection.name: (
                            other.layer_at(lvl - 1) == parent
                            and other.layer_at(lvl) is not None
                            and other.layer_at(lvl) != name
                        ),
                    )
                )
            self._damp_all(lambda evaluation, lvl=level: evaluation.layer_at(lvl), factors)
            level += 1

    def evaluation_at(self, x: float, z: float) -> PointEvaluation:
        """Working state of the cell point nearest to ``(x, z)``."""
        closest = min(self.chunk_points, key=lambda point: point.distance_squared(x, z))
        return closest.tag

    def biome_at(self, x: float, z: float) -> int:
        """Biome id of the cell point nearest to ``(x, z)``."""
        return self.evaluation_at(x, z).biome.id
