"""Shared fixtures for biome classification tests."""

import copy

import pytest

from py_orbis.core.layers import BiomeRegistry

TYPE_SEED = 24214356315145
REGION_SEED = 1242411432511


class FixedNoise:
    """
    Noise source with scripted values per seed.

    A value may be a number (returned everywhere) or a callable of
    ``(x, z)`` receiving the already zoomed coordinates.
    """

    def __init__(self, values, default=0.0):
        self.values = values
        self.default = default
        self.calls = []

    def sample(self, seed, x, z):
        self.calls.append((seed, x, z))
        value = self.values.get(seed, self.default)
        if callable(value):
            return value(x, z)
        return value


def _band_biome(name, low, high):
    return {"biome": name, "min": low, "max": high}


WORLD_CONFIG = {
    "dimension": {
        "name": "overworld",
        "seed": 98028491293421,
        "precision": 100,
        "regionSeed": REGION_SEED,
        "regionZoom": 2500,
        "typeSeed": TYPE_SEED,
        "typeZoom": 750,
        "landMin": 0.31,
        "landMax": 1.0,
        "shoreMin": 0.12,
        "shoreMax": 0.30,
        "seaMin": -1.0,
        "seaMax": 0.11,
        "cellZoom": 16,
        "cellPointContributionRadius": 48,
        "typeContributionRadius": 24,
        "regionContributionRadius": 24,
        "regions": [
            {"region": "hot", "min": -1.0, "max": -0.33},
            {"region": "temperate", "min": -0.32, "max": 0.33},
            {"region": "cold", "min": 0.34, "max": 1.0},
        ],
    },
    "regions": [
        {
            "name": "hot",
            "seed": 11,
            "zoom": 50,
            "landBiomes": [
                _band_biome("hot_darker_red", -1.0, -0.33),
                _band_biome("hot_dark_red", -0.32, 0.33),
                _band_biome("hot_red", 0.34, 1.0),
            ],
            "shoreBiomes": [_band_biome("hot_light_yellow", -1.0, 1.0)],
            "seaBiomes": [_band_biome("hot_light_blue", -1.0, 1.0)],
        },
        {
            "name": "temperate",
            "seed": 12,
            "zoom": 60,
            "contributionRadius": 16,
            "contextSettings": {"useLandContext": True},
            "landRegions": [
                {
                    "region": "forest",
                    "index": 0,
                    "chance": 2,
                    "contexts": [{"context": "type", "min": -1.0, "max": 1.0}],
                },
            ],
            "landBiomes": [
                {"biome": "temperate_green", "index": 1, "chance": 1},
            ],
            "shoreBiomes": [_band_biome("temperate_yellow", -1.0, 1.0)],
            "seaBiomes": [_band_biome("temperate_blue", -1.0, 1.0)],
        },
        {
            "name": "forest",
            "seed": 13,
            "zoom": 40,
            "landBiomes": [
                _band_biome("temperate_dark_green", -1.0, 0.0),
                _band_biome("temperate_darker_green", 0.01, 1.0),
            ],
        },
        {
            "name": "cold",
            "seed": 14,
            "zoom": 50,
            "landBiomes": [
                _band_biome("cold_magenta", -1.0, -0.33),
                _band_biome("cold_dark_magenta", -0.32, 0.33),
                _band_biome("cold_darker_magenta", 0.34, 1.0),
            ],
            "shoreBiomes": [_band_biome("cold_dark_yellow", -1.0, 1.0)],
            "seaBiomes": [_band_biome("cold_dark_blue", -1.0, 1.0)],
        },
    ],
    "biomes": [
        {"id": 1, "name": "hot_darker_red"},
        {"id": 2, "name": "hot_dark_red"},
        {"id": 3, "name": "hot_red"},
        {"id": 4, "name": "hot_light_yellow"},
        {"id": 5, "name": "hot_light_blue"},
        {"id": 6, "name": "temperate_blue"},
        {"id": 7, "name": "temperate_yellow"},
        {"id": 8, "name": "temperate_green"},
        {"id": 9, "name": "temperate_dark_green"},
        {"id": 10, "name": "temperate_darker_green"},
        {"id": 11, "name": "cold_dark_blue"},
        {"id": 12, "name": "cold_dark_yellow"},
        {"id": 13, "name": "cold_magenta"},
        {"id": 14, "name": "cold_dark_magenta"},
        {"id": 15, "name": "cold_darker_magenta"},
    ],
}


@pytest.fixture
def world_config():
    """Plain configuration data in the camelCase layout."""
    return copy.deepcopy(WORLD_CONFIG)


@pytest.fixture
def registry(world_config):
    """Validated registry for the sample world."""
    return BiomeRegistry.from_mapping(world_config)


@pytest.fixture
def make_noise():
    """Factory for scripted noise sources."""
    return FixedNoise
