"""
Scattered-point biome classification and chunk blending.
"""

from .core import BiomeRegistry, LinkedWeightMap, blend_chunk, classify_biome

__version__ = "0.1.0"

__all__ = ['BiomeRegistry', 'LinkedWeightMap', 'blend_chunk', 'classify_biome']
