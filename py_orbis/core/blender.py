"""
Scattered biome blending.

Every chunk cell receives a weight per biome from the classified scattered
points around it. Each point within the kernel radius ``R`` of a cell adds
``(R² - d²)²`` to its biome at that cell, and the weights of every cell are
then normalized to sum to one.
"""

import concurrent.futures
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple

import numpy as np
import structlog

from ..config import settings
from .chunk_points import ChunkPointSet
from .layers import BiomeRegistry
from .noise import NoiseSource
from .point_field import MAX_GRIDSCALE_DISTANCE_TO_CLOSEST_POINT, GatheredPoint
from .resolver import ContextResolver

logger = structlog.get_logger()

BiomeCallback = Callable[[float, float], int]


class LinkedWeightMap:
    """
    One biome's weights over a chunk, chained to the next biome's entry.

    Weights are stored row-major: index ``zi * chunk_width + xi``.
    """

    __slots__ = ("biome", "weights", "chunk_width", "next")

    def __init__(self, biome: int, chunk_width: int, next_entry: Optional["LinkedWeightMap"] = None):
        self.biome = biome
        self.chunk_width = chunk_width
        self.weights = np.zeros(chunk_width * chunk_width, dtype=np.float64)
        self.next = next_entry

    def __iter__(self) -> Iterator["LinkedWeightMap"]:
        entry = self
        while entry is not None:
            yield entry
            entry = entry.next

    def __len__(self):
        return sum(1 for _ in self)

    def __repr__(self):
        return f"LinkedWeightMap(biomes={self.biomes()}, chunk_width={self.chunk_width})"

    def find(self, biome: int) -> Optional["LinkedWeightMap"]:
        for entry in self:
            if entry.biome == biome:
                return entry
        return None

    def biomes(self) -> List[int]:
        return [entry.biome for entry in self]

    def as_dict(self) -> Dict[int, np.ndarray]:
        """Biome id -> weights reshaped to ``(chunk_width, chunk_width)`` indexed [zi, xi]."""
        return {entry.biome: entry.weights.reshape(self.chunk_width, self.chunk_width) for entry in self}

    def weight_at(self, xi: int, zi: int) -> Dict[int, float]:
        """Weights of every biome at one cell."""
        index = zi * self.chunk_width + xi
        return {entry.biome: float(entry.weights[index]) for entry in self}


class ScatteredBiomeBlender:
    """Blends classified scattered points into per-cell biome weights."""

    def __init__(self, sampling_frequency: float, min_blend_radius: float, chunk_width: int):
        """
        Initialize the blender.

        Args:
            sampling_frequency: Frequency of the scattered blend points
            min_blend_radius: Blend radius before the grid displacement
                allowance is added
            chunk_width: Number of cells along each chunk axis
        """
        if sampling_frequency <= 0:
            raise ValueError(f"Sampling frequency must be positive, got {sampling_frequency}")
        self.chunk_width = chunk_width
        self.chunk_column_count = chunk_width * chunk_width
        self.blend_kernel_radius = min_blend_radius + MAX_GRIDSCALE_DISTANCE_TO_CLOSEST_POINT / sampling_frequency
        self.blend_kernel_radius_sq = self.blend_kernel_radius ** 2
        self.gatherer = ChunkPointSet(sampling_frequency, self.blend_kernel_radius, chunk_width)

    def get_blend_for_chunk(
        self, seed: int, chunk_base_x: int, chunk_base_z: int, callback: BiomeCallback
    ) -> Optional[LinkedWeightMap]:
        """
        Blend the biomes of one chunk.

        Args:
            seed: Seed of the blend point field
            chunk_base_x: World X of the chunk's first cell
            chunk_base_z: World Z of the chunk's first cell
            callback: Returns the biome id at a world coordinate

        Returns:
            Head of the weight map chain, one entry per distinct biome in
            first-seen order, or None when no point was gathered
        """
        points = self.gatherer.get_points_from_chunk_base(seed, chunk_base_x, chunk_base_z)
        if not points:
            return None

        head = None
        tail = None
        entries: Dict[int, LinkedWeightMap] = {}
        for point in points:
            point.tag = callback(point.x, point.z)
            if point.tag not in entries:
                entry = LinkedWeightMap(point.tag, self.chunk_width)
                entries[point.tag] = entry
                if head is None:
                    head = entry
                else:
                    tail.next = entry
                tail = entry

        # Only one biome in range: nothing to blend.
        if head.next is None:
            head.weights[:] = 1.0
            logger.debug("Single biome chunk", x=chunk_base_x, z=chunk_base_z, biome=head.biome)
            return head

        self.apply_kernel(points, head, chunk_base_x, chunk_base_z)
        logger.debug(
            "Blended chunk",
            x=chunk_base_x,
            z=chunk_base_z,
            points=len(points),
            biomes=len(entries),
        )
        return head

    def apply_kernel(self, points: List[GatheredPoint], head: LinkedWeightMap, chunk_base_x: int, chunk_base_z: int):
        """
        Fill the weights of every entry in the chain with the normalized kernel.

        Args:
            points: Gathered points tagged with their biome id
            head: Chain holding one entry per biome id among the points
            chunk_base_x: World X of the chunk's first cell
            chunk_base_z: World Z of the chunk's first cell
        """
        point_x = np.array([point.x for point in points])
        point_z = np.array([point.z for point in points])
        point_biomes = np.array([point.tag for point in points])

        cell_x = chunk_base_x + np.arange(self.chunk_width, dtype=np.float64)
        cell_z = chunk_base_z + np.arange(self.chunk_width, dtype=np.float64)
        dx_sq = (point_x[np.newaxis, :] - cell_x[:, np.newaxis]) ** 2
        dz_sq = (point_z[np.newaxis, :] - cell_z[:, np.newaxis]) ** 2

        # [zi, xi, point] -> squared distance
        dist_sq = dz_sq[:, np.newaxis, :] + dx_sq[np.newaxis, :, :]
        dist_sq = dist_sq.reshape(self.chunk_column_count, len(points))

        # Relative weight = [r^2 - (x^2 + z^2)]^2 inside the radius, 0 outside
        kernel = np.where(
            dist_sq < self.blend_kernel_radius_sq,
            (self.blend_kernel_radius_sq - dist_sq) ** 2,
            0.0,
        )
        column_total = kernel.sum(axis=1)
        covered = column_total > 0

        for entry in head:
            entry.weights = kernel[:, point_biomes == entry.biome].sum(axis=1)
            entry.weights[covered] /= column_total[covered]

    def blend_chunks(
        self,
        seed: int,
        chunk_bases: Iterable[Tuple[int, int]],
        callback: BiomeCallback,
        max_workers: Optional[int] = None,
    ) -> Dict[Tuple[int, int], Optional[LinkedWeightMap]]:
        """
        Blend many chunks on a thread pool.

        Args:
            seed: Seed of the blend point field
            chunk_bases: World (x, z) of each chunk's first cell
            callback: Returns the biome id at a world coordinate, must be
                safe to call from several threads
            max_workers: Thread count, defaults to ``settings.max_workers``

        Returns:
            Chunk base -> weight map chain
        """
        results = {}
        if max_workers is None:
            max_workers = settings.max_workers
        with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
            future_to_chunk = {
                executor.submit(self.get_blend_for_chunk, seed, base_x, base_z, callback): (base_x, base_z)
                for base_x, base_z in chunk_bases
            }
            for future in concurrent.futures.as_completed(future_to_chunk):
                chunk = future_to_chunk[future]
                try:
                    results[chunk] = future.result()
                except Exception as e:
                    logger.error("Chunk blend failed", x=chunk[0], z=chunk[1], error=str(e))
                    raise

        logger.info("Blended chunks", chunks=len(results))
        return results


def blend_chunk(
    registry: BiomeRegistry,
    seed: int,
    chunk_origin_x: int,
    chunk_origin_z: int,
    chunk_width: Optional[int] = None,
    sampling_frequency: Optional[float] = None,
    min_blend_radius: Optional[float] = None,
    noise: Optional[NoiseSource] = None,
) -> Optional[LinkedWeightMap]:
    """
    Blend the biomes of one chunk, classifying every point with the registry.

    Unset blending parameters fall back to ``settings``.
    """
    blender = ScatteredBiomeBlender(
        settings.sampling_frequency if sampling_frequency is None else sampling_frequency,
        settings.min_blend_radius if min_blend_radius is None else min_blend_radius,
        settings.chunk_width if chunk_width is None else chunk_width,
    )
    resolver = ContextResolver(registry, noise)
    return blender.get_blend_for_chunk(seed, chunk_origin_x, chunk_origin_z, resolver.classify_biome)
