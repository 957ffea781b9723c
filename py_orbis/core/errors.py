"""Error types raised while classifying and blending biomes."""


class BiomeGenerationError(Exception):
    """Base class for all biome generation failures."""


class ConfigurationError(BiomeGenerationError, ValueError):
    """
    The world configuration cannot classify a sample.

    Raised for bands that do not cover a sampled value, lottery candidates
    that are all excluded by their contexts, chance weights that sum to zero,
    and references to unknown regions or biomes.
    """


class BoundsExceededError(BiomeGenerationError, RuntimeError):
    """Layer descent went deeper than the configured ceiling."""
