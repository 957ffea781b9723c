"""Tests for the configuration model and registry validation."""

import pytest
from pydantic import TypeAdapter, ValidationError

from py_orbis.core.errors import ConfigurationError
from py_orbis.core.layers import (
    Band,
    BiomeLayer,
    BiomeRegistry,
    Context,
    Layer,
    Region,
    RegionLayer,
    TerrainType,
)


class TestModels:
    """Test individual configuration objects."""

    def test_band_contains_is_inclusive(self):
        """Test both band edges are inside the band."""
        band = Band(min=0.12, max=0.30)
        assert band.contains(0.12)
        assert band.contains(0.30)
        assert not band.contains(0.31)

    def test_band_order_validated(self):
        """Test that min greater than max is rejected."""
        with pytest.raises(ValidationError):
            Band(min=0.5, max=0.1)

    def test_layer_band_needs_both_bounds(self):
        """Test that a half specified band is rejected."""
        with pytest.raises(ValidationError):
            BiomeLayer(biome="plains", min=0.1)

    def test_layer_name_defaults_to_target(self):
        """Test layer naming used as the context key."""
        assert RegionLayer(region="forest").layer_name == "forest"
        assert BiomeLayer(biome="plains", name="flat").layer_name == "flat"

    def test_negative_chance_rejected(self):
        """Test that chance weights cannot be negative."""
        with pytest.raises(ValidationError):
            BiomeLayer(biome="plains", chance=-1)

    def test_context_accepts(self):
        """Test context constraint checks, including missing contexts."""
        context = Context(context="type", min=-0.5, max=0.5)
        assert context.accepts({"type": 0.0})
        assert context.accepts({"type": 0.5})
        assert not context.accepts({"type": 0.51})
        assert not context.accepts({})

    def test_layer_accepts_all_contexts(self):
        """Test that every declared constraint must hold."""
        layer = BiomeLayer(
            biome="plains",
            contexts=[Context(context="type", min=0.0), Context(context="temperate", max=0.0)],
        )
        assert layer.accepts({"type": 0.3, "temperate": -0.2})
        assert not layer.accepts({"type": 0.3, "temperate": 0.2})
        assert BiomeLayer(biome="plains").accepts({})

    def test_candidate_layers_order(self):
        """Test that region layers come before biome layers."""
        region = Region(
            name="r",
            seed=1,
            zoom=10,
            land_regions=[RegionLayer(region="a", min=-1, max=0)],
            land_biomes=[BiomeLayer(biome="b", min=0.01, max=1)],
            sea_biomes=[BiomeLayer(biome="c", min=-1, max=1)],
        )
        land = region.candidate_layers(TerrainType.LAND)
        assert [layer.layer_name for layer in land] == ["a", "b"]
        assert [layer.layer_name for layer in region.candidate_layers(TerrainType.SEA)] == ["c"]
        assert region.candidate_layers(TerrainType.SHORE) == []

    def test_layer_union_tagged_by_kind(self):
        """Test that plain mappings validate to the variant named by ``kind``."""
        adapter = TypeAdapter(Layer)
        region_layer = adapter.validate_python({"kind": "region", "region": "forest", "min": -1, "max": 0})
        biome_layer = adapter.validate_python({"kind": "biome", "biome": "plains", "chance": 2})

        assert isinstance(region_layer, RegionLayer)
        assert isinstance(biome_layer, BiomeLayer)
        assert biome_layer.chance == 2
        with pytest.raises(ValidationError):
            adapter.validate_python({"kind": "lake", "biome": "plains"})

    def test_models_are_frozen(self):
        """Test that configuration objects cannot be mutated."""
        band = Band(min=0.0, max=1.0)
        with pytest.raises(ValidationError):
            band.min = 0.5

    def test_snake_case_names_accepted(self):
        """Test population by field name as well as camelCase alias."""
        region = Region.model_validate(
            {"name": "x", "seed": 1, "zoom": 5, "context_settings": {"use_sea_context": True}}
        )
        assert region.uses_context(TerrainType.SEA)
        assert not region.uses_context(TerrainType.LAND)


class TestDimension:
    """Test dimension level type classification."""

    def test_type_priority(self, registry):
        """Test that land is checked before shore and sea."""
        dimension = registry.dimension
        assert dimension.classify_type(0.31) == TerrainType.LAND
        assert dimension.classify_type(0.20) == TerrainType.SHORE
        assert dimension.classify_type(0.11) == TerrainType.SEA
        assert dimension.classify_type(-1.0) == TerrainType.SEA

    def test_overlap_resolved_by_order(self, world_config):
        """Test that overlapping bands resolve to the earlier type."""
        world_config["dimension"]["shoreMin"] = 0.0
        world_config["dimension"]["shoreMax"] = 0.5
        registry = BiomeRegistry.from_mapping(world_config)
        assert registry.dimension.classify_type(0.4) == TerrainType.LAND
        assert registry.dimension.classify_type(0.05) == TerrainType.SHORE


class TestRegistry:
    """Test registry construction and validation."""

    def test_lookup_tables(self, registry):
        """Test name and id lookups."""
        assert registry.region("forest").seed == 13
        assert registry.biome("hot_red").id == 3
        assert registry.biome_by_id(15).name == "cold_darker_magenta"
        assert registry.max_depth == len(registry.regions) + 1

    def test_unknown_lookups(self, registry):
        """Test that unknown names raise configuration errors."""
        with pytest.raises(ConfigurationError):
            registry.region("missing")
        with pytest.raises(ConfigurationError):
            registry.biome("missing")
        with pytest.raises(ConfigurationError):
            registry.biome_by_id(999)

    def test_type_band_gap(self, world_config):
        """Test that a gap between type bands is rejected at load."""
        world_config["dimension"]["landMin"] = 0.5
        with pytest.raises(ConfigurationError, match="do not cover"):
            BiomeRegistry.from_mapping(world_config)

    def test_dangling_region_reference(self, world_config):
        """Test that a layer pointing to a missing region is rejected."""
        world_config["regions"][1]["landRegions"][0]["region"] = "jungle"
        with pytest.raises(ConfigurationError, match="jungle"):
            BiomeRegistry.from_mapping(world_config)

    def test_dangling_biome_reference(self, world_config):
        """Test that a layer pointing to a missing biome is rejected."""
        world_config["biomes"] = world_config["biomes"][1:]
        with pytest.raises(ConfigurationError, match="hot_darker_red"):
            BiomeRegistry.from_mapping(world_config)

    def test_duplicate_biome_id(self, world_config):
        """Test that biome ids must be unique."""
        world_config["biomes"].append({"id": 1, "name": "other"})
        with pytest.raises(ConfigurationError, match="Duplicate biome id"):
            BiomeRegistry.from_mapping(world_config)

    def test_duplicate_region_name(self, world_config):
        """Test that region names must be unique."""
        world_config["regions"].append(dict(world_config["regions"][0]))
        with pytest.raises(ConfigurationError, match="Duplicate region"):
            BiomeRegistry.from_mapping(world_config)

    def test_missing_direct_band(self, world_config):
        """Test that band selection requires a band on every layer."""
        del world_config["regions"][0]["landBiomes"][0]["min"]
        del world_config["regions"][0]["landBiomes"][0]["max"]
        with pytest.raises(ConfigurationError, match="needs a band"):
            BiomeRegistry.from_mapping(world_config)

    def test_zero_chance_lottery(self, world_config):
        """Test that a lottery with zero total chance is rejected."""
        temperate = world_config["regions"][1]
        temperate["landRegions"][0]["chance"] = 0
        temperate["landBiomes"][0]["chance"] = 0
        with pytest.raises(ConfigurationError, match="sum to zero"):
            BiomeRegistry.from_mapping(world_config)

    def test_invalid_field_reported_as_configuration_error(self, world_config):
        """Test that model validation failures surface as configuration errors."""
        world_config["dimension"]["precision"] = 0
        with pytest.raises(ConfigurationError):
            BiomeRegistry.from_mapping(world_config)

    def test_missing_dimension(self):
        """Test that the dimension section is required."""
        with pytest.raises(ConfigurationError):
            BiomeRegistry.from_mapping({"regions": [], "biomes": []})

    def test_configuration_error_is_value_error(self, world_config):
        """Test the error taxonomy."""
        world_config["dimension"]["landMin"] = 0.5
        with pytest.raises(ValueError):
            BiomeRegistry.from_mapping(world_config)
