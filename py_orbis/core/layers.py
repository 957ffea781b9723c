"""
World configuration model.

A dimension holds the type bands (land/shore/sea) and the top-level region
layers. Regions hold, per type, an ordered list of child region layers and
biome layers. Layers refer to their targets by name; ``BiomeRegistry`` owns
the name -> Region and name/id -> Biome tables built at load time.

Field names are snake_case but the camelCase spelling (``landMin``,
``useLandContext``, ...) is accepted as well.
"""

from enum import IntEnum
from typing import Annotated, Dict, Iterable, List, Literal, Mapping, Optional, Tuple, Union

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from .errors import ConfigurationError

logger = structlog.get_logger()

MIN_NOISE = -1.0
MAX_NOISE = 1.0


class TerrainType(IntEnum):
    """Type classification of a point, checked in this order."""

    LAND = 0
    SHORE = 1
    SEA = 2


class ConfigModel(BaseModel):
    """Base for the immutable configuration objects."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class Band(ConfigModel):
    """Inclusive numeric interval a rounded noise sample is tested against."""

    min: float = Field(..., description="Lower bound")
    max: float = Field(..., description="Upper bound")

    @model_validator(mode="after")
    def _check_order(self):
        if self.min > self.max:
            raise ValueError(f"Band min {self.min} is greater than max {self.max}")
        return self

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.max


class Context(ConfigModel):
    """Constraint on a context value recorded by an ancestor selection."""

    context: str = Field(..., description="Name of the recorded context")
    min: float = Field(default=MIN_NOISE, description="Lowest accepted value")
    max: float = Field(default=MAX_NOISE, description="Highest accepted value")

    @model_validator(mode="after")
    def _check_order(self):
        if self.min > self.max:
            raise ValueError(f"Context '{self.context}' min {self.min} is greater than max {self.max}")
        return self

    def accepts(self, contexts: Mapping[str, float]) -> bool:
        """A missing context never satisfies the constraint."""
        value = contexts.get(self.context)
        return value is not None and self.min <= value <= self.max


class LayerBase(ConfigModel):
    """
    Shared fields of the two layer variants.

    ``min``/``max`` are used when the parent region selects by direct bands.
    ``chance``, ``index`` and ``contexts`` are used when it runs the
    weighted lottery.
    """

    name: Optional[str] = Field(default=None, description="Context key, defaults to the target name")
    min: Optional[float] = Field(default=None, description="Direct band lower bound")
    max: Optional[float] = Field(default=None, description="Direct band upper bound")
    index: int = Field(default=0, description="Lottery ordering key")
    chance: int = Field(default=0, ge=0, description="Lottery weight")
    contexts: List[Context] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_band(self):
        if (self.min is None) != (self.max is None):
            raise ValueError("Layer band needs both min and max")
        if self.min is not None and self.min > self.max:
            raise ValueError(f"Layer band min {self.min} is greater than max {self.max}")
        return self

    @property
    def band(self) -> Optional[Band]:
        if self.min is None:
            return None
        return Band(min=self.min, max=self.max)

    @property
    def layer_name(self) -> str:
        raise NotImplementedError

    def contains(self, value: float) -> bool:
        return self.min is not None and self.min <= value <= self.max

    def accepts(self, contexts: Mapping[str, float]) -> bool:
        """Check that every declared context constraint is satisfied."""
        return all(context.accepts(contexts) for context in self.contexts)


class RegionLayer(LayerBase):
    """Layer that descends into another region."""

    kind: Literal["region"] = "region"
    region: str = Field(..., description="Name of the child region")

    @property
    def layer_name(self) -> str:
        return self.name or self.region


class BiomeLayer(LayerBase):
    """Layer that terminates descent with a biome."""

    kind: Literal["biome"] = "biome"
    biome: str = Field(..., description="Name of the terminal biome")

    @property
    def layer_name(self) -> str:
        return self.name or self.biome


# Tagged on ``kind`` so plain mappings validate to the right variant
Layer = Annotated[Union[RegionLayer, BiomeLayer], Field(discriminator="kind")]


class ContextSettings(ConfigModel):
    """Per-type switch between direct bands and the weighted lottery."""

    use_land_context: bool = False
    use_shore_context: bool = False
    use_sea_context: bool = False

    def uses_context(self, terrain_type: TerrainType) -> bool:
        if terrain_type == TerrainType.LAND:
            return self.use_land_context
        if terrain_type == TerrainType.SHORE:
            return self.use_shore_context
        return self.use_sea_context


class Region(ConfigModel):
    """Tree node holding child layers for each terrain type."""

    name: str
    seed: int
    zoom: float = Field(..., gt=0, description="Noise zoom, coordinates are divided by it")
    context_settings: ContextSettings = Field(default_factory=ContextSettings)
    contribution_radius: int = Field(default=0, ge=0, description="Context damping radius")

    land_regions: List[RegionLayer] = Field(default_factory=list)
    land_biomes: List[BiomeLayer] = Field(default_factory=list)
    shore_regions: List[RegionLayer] = Field(default_factory=list)
    shore_biomes: List[BiomeLayer] = Field(default_factory=list)
    sea_regions: List[RegionLayer] = Field(default_factory=list)
    sea_biomes: List[BiomeLayer] = Field(default_factory=list)

    def uses_context(self, terrain_type: TerrainType) -> bool:
        return self.context_settings.uses_context(terrain_type)

    def candidate_layers(self, terrain_type: TerrainType) -> List[Layer]:
        """Region layers then biome layers for one terrain type."""
        if terrain_type == TerrainType.LAND:
            return [*self.land_regions, *self.land_biomes]
        if terrain_type == TerrainType.SHORE:
            return [*self.shore_regions, *self.shore_biomes]
        return [*self.sea_regions, *self.sea_biomes]

    def all_layers(self) -> List[Layer]:
        return [layer for terrain_type in TerrainType for layer in self.candidate_layers(terrain_type)]


class Biome(ConfigModel):
    """Terminal classification, referenced by id in weight maps."""

    id: int
    name: str
    color: Optional[Tuple[int, int, int]] = Field(default=None, description="Display colour, unused here")


class Dimension(ConfigModel):
    """Root configuration of a world."""

    name: str
    seed: int = Field(..., description="Seed of the cell point field")
    precision: int = Field(default=100, gt=0, description="Rounding steps per unit for noise comparisons")

    region_seed: int
    region_zoom: float = Field(..., gt=0)

    type_seed: int
    type_zoom: float = Field(..., gt=0)

    land_min: float
    land_max: float
    shore_min: float
    shore_max: float
    sea_min: float
    sea_max: float

    cell_zoom: float = Field(default=16.0, gt=0, description="Cell point spacing")
    cell_point_contribution_radius: int = Field(default=32, ge=0)
    type_contribution_radius: int = Field(default=0, ge=0)
    region_contribution_radius: int = Field(default=0, ge=0)

    regions: List[RegionLayer] = Field(default_factory=list, description="Top-level region layers")

    @model_validator(mode="after")
    def _check_type_bands(self):
        for terrain_type in TerrainType:
            low, high = self._type_bounds(terrain_type)
            if low > high:
                raise ValueError(f"{terrain_type.name.lower()} band min {low} is greater than max {high}")
        return self

    def _type_bounds(self, terrain_type: TerrainType) -> Tuple[float, float]:
        if terrain_type == TerrainType.LAND:
            return self.land_min, self.land_max
        if terrain_type == TerrainType.SHORE:
            return self.shore_min, self.shore_max
        return self.sea_min, self.sea_max

    def type_band(self, terrain_type: TerrainType) -> Band:
        low, high = self._type_bounds(terrain_type)
        return Band(min=low, max=high)

    def classify_type(self, value: float) -> Optional[TerrainType]:
        """First type whose band holds ``value``, checked land, shore, sea."""
        for terrain_type in TerrainType:
            low, high = self._type_bounds(terrain_type)
            if low <= value <= high:
                return terrain_type
        return None


class BiomeRegistry:
    """
    Loaded and validated configuration graph.

    Treated as read-only once constructed, so one registry can be shared by
    any number of concurrent chunk blends.
    """

    def __init__(self, dimension: Dimension, regions: Iterable[Region], biomes: Iterable[Biome]):
        """
        Build lookup tables and validate the configuration graph.

        Args:
            dimension: Root dimension
            regions: Every region the dimension can reach
            biomes: Every biome the regions can reach

        Raises:
            ConfigurationError: On duplicates, dangling references or type
                bands that leave a noise value unclassified
        """
        self.dimension = dimension
        self.regions: Dict[str, Region] = {}
        self.biomes: Dict[str, Biome] = {}
        self.biome_ids: Dict[int, Biome] = {}

        for region in regions:
            if region.name in self.regions:
                raise ConfigurationError(f"Duplicate region name '{region.name}'")
            self.regions[region.name] = region

        for biome in biomes:
            if biome.name in self.biomes:
                raise ConfigurationError(f"Duplicate biome name '{biome.name}'")
            if biome.id in self.biome_ids:
                raise ConfigurationError(f"Duplicate biome id {biome.id}")
            self.biomes[biome.name] = biome
            self.biome_ids[biome.id] = biome

        self._validate()

        logger.info(
            "Biome registry loaded",
            dimension=dimension.name,
            regions=len(self.regions),
            biomes=len(self.biomes),
        )

    @classmethod
    def from_mapping(cls, data: Mapping) -> "BiomeRegistry":
        """
        Build a registry from already-parsed data.

        Args:
            data: Mapping with ``dimension``, ``regions`` and ``biomes`` keys

        Returns:
            Validated registry
        """
        try:
            dimension = Dimension.model_validate(data["dimension"])
            regions = [Region.model_validate(item) for item in data.get("regions", [])]
            biomes = [Biome.model_validate(item) for item in data.get("biomes", [])]
        except KeyError as e:
            raise ConfigurationError(f"Configuration is missing {e}") from e
        except ValidationError as e:
            raise ConfigurationError(str(e)) from e
        return cls(dimension, regions, biomes)

    @property
    def max_depth(self) -> int:
        """Longest acyclic descent: every region visited once, then a biome."""
        return len(self.regions) + 1

    def region(self, name: str) -> Region:
        try:
            return self.regions[name]
        except KeyError:
            raise ConfigurationError(f"Unknown region '{name}'") from None

    def biome(self, name: str) -> Biome:
        try:
            return self.biomes[name]
        except KeyError:
            raise ConfigurationError(f"Unknown biome '{name}'") from None

    def biome_by_id(self, biome_id: int) -> Biome:
        try:
            return self.biome_ids[biome_id]
        except KeyError:
            raise ConfigurationError(f"Unknown biome id {biome_id}") from None

    def _validate(self):
        dimension = self.dimension
        precision = dimension.precision

        for tick in range(-precision, precision + 1):
            value = tick / precision
            if dimension.classify_type(value) is None:
                logger.error("Type bands leave a gap", dimension=dimension.name, value=value)
                raise ConfigurationError(
                    f"Type bands of dimension '{dimension.name}' do not cover noise value {value}"
                )

        if not dimension.regions:
            raise ConfigurationError(f"Dimension '{dimension.name}' has no region layers")
        for layer in dimension.regions:
            if layer.band is None:
                raise ConfigurationError(f"Top-level region layer '{layer.layer_name}' has no band")
            self.region(layer.region)

        for region in self.regions.values():
            for terrain_type in TerrainType:
                layers = region.candidate_layers(terrain_type)
                use_context = region.uses_context(terrain_type)
                for layer in layers:
                    if isinstance(layer, RegionLayer):
                        self.region(layer.region)
                    else:
                        self.biome(layer.biome)
                    if not use_context and layer.band is None:
                        raise ConfigurationError(
                            f"Layer '{layer.layer_name}' of region '{region.name}' needs a band "
                            f"for {terrain_type.name.lower()} selection"
                        )
                if use_context and layers and sum(layer.chance for layer in layers) == 0:
                    raise ConfigurationError(
                        f"Chance weights of region '{region.name}' {terrain_type.name.lower()} layers sum to zero"
                    )
