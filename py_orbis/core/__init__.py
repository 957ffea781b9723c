"""
Core biome classification and blending functionality.
"""

from .errors import BiomeGenerationError, ConfigurationError, BoundsExceededError
from .noise import NoiseSource, OpenSimplexNoise, round_to_precision
from .point_field import GatheredPoint, PointField
from .chunk_points import ChunkPointSet
from .layers import (
    Band, Biome, BiomeLayer, BiomeRegistry, Context, ContextSettings,
    Dimension, Region, RegionLayer, TerrainType,
)
from .resolver import ContextResolver, PointEvaluation, band_context, build_lottery, classify_biome
from .cell_sampler import ChunkBiomeSampler
from .blender import LinkedWeightMap, ScatteredBiomeBlender, blend_chunk

__all__ = ['BiomeGenerationError', 'ConfigurationError', 'BoundsExceededError',
           'NoiseSource', 'OpenSimplexNoise', 'round_to_precision',
           'GatheredPoint', 'PointField', 'ChunkPointSet',
           'Band', 'Biome', 'BiomeLayer', 'BiomeRegistry', 'Context', 'ContextSettings',
           'Dimension', 'Region', 'RegionLayer', 'TerrainType',
           'ContextResolver', 'PointEvaluation', 'band_context', 'build_lottery', 'classify_biome',
           'ChunkBiomeSampler', 'LinkedWeightMap', 'ScatteredBiomeBlender', 'blend_chunk']
