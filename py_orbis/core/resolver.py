"""
Hierarchical layer resolution.

A point is classified in three stages:

1. Type: the type noise picks land, shore or sea and records a ``"type"``
   context.
2. Initial region: the region noise picks one of the dimension's top-level
   region layers by direct band.
3. Descent: inside the current region the region's own noise picks a child
   layer, either by direct band or by a weighted lottery over the layers
   whose context constraints accept the point. Region layers continue the
   descent, a biome layer ends it.

Every selection records a context in [-1, 1] under the layer name: a linear
remap of where the sample fell inside the band that selected it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping, Optional, Sequence

import structlog

from ..config import settings
from .errors import BoundsExceededError, ConfigurationError
from .layers import (
    MAX_NOISE,
    MIN_NOISE,
    Biome,
    BiomeRegistry,
    Layer,
    Region,
    RegionLayer,
    TerrainType,
)
from .noise import NoiseSource, default_noise, round_to_precision, to_ticks

logger = structlog.get_logger()

TYPE_CONTEXT = "type"


class ResolutionState(Enum):
    """Where a point is in its classification."""

    AWAITING_TYPE = "awaiting_type"
    AWAITING_INITIAL_REGION = "awaiting_initial_region"
    DESCENDING = "descending"
    RESOLVED = "resolved"


@dataclass
class LayerSelection:
    """One step of a point's descent trail."""

    name: str
    layer: Optional[Layer]
    noise: float
    min: float
    max: float
    context: float
    level: int


@dataclass
class PointEvaluation:
    """Working state of one point's classification."""

    terrain_type: Optional[TerrainType] = None
    type_noise: Optional[float] = None
    region: Optional[Region] = None
    biome: Optional[Biome] = None
    contexts: Dict[str, float] = field(default_factory=dict)
    trail: List[LayerSelection] = field(default_factory=list)

    @property
    def state(self) -> ResolutionState:
        if self.terrain_type is None:
            return ResolutionState.AWAITING_TYPE
        if self.biome is not None:
            return ResolutionState.RESOLVED
        if self.region is None:
            return ResolutionState.AWAITING_INITIAL_REGION
        return ResolutionState.DESCENDING

    @property
    def iteration(self) -> int:
        """Descent steps taken inside regions so far."""
        return max(len(self.trail) - 1, 0)

    def layer_at(self, level: int) -> Optional[str]:
        """Name of the layer selected at a descent level, if reached."""
        if level < len(self.trail):
            return self.trail[level].name
        return None


@dataclass
class LotteryBand:
    """Sub-band of [-1, 1] won by one layer, bounds in precision ticks."""

    layer: Layer
    low: int
    high: int
    precision: int

    @property
    def min(self) -> float:
        return self.low / self.precision

    @property
    def max(self) -> float:
        return self.high / self.precision

    def contains_ticks(self, ticks: int) -> bool:
        return self.low <= ticks <= self.high


def band_context(low: float, high: float, value: float, precision: int) -> float:
    """
    Remap ``value`` from ``[low, high]`` to ``[-1, 1]``, rounded to precision.

    The band edges map to -1 and +1 and the midpoint to 0. A zero-width band
    maps everything to 0.
    """
    extent = high - low
    if extent == 0:
        return 0.0
    return round_to_precision(((value - low) / extent) * 2.0 - 1.0, precision)


def build_lottery(layers: Sequence[Layer], contexts: Mapping[str, float], precision: int) -> List[LotteryBand]:
    """
    Partition [-1, 1] between the layers whose contexts accept the point.

    Participating layers are ordered by ``index`` and each receives a share
    of the interval proportional to its chance. Consecutive bands are
    separated by one precision step; the last band always ends at 1.

    Args:
        layers: Candidate layers
        contexts: Contexts recorded so far for the point
        precision: Rounding steps per unit

    Returns:
        Lottery bands in ascending order

    Raises:
        ConfigurationError: If no layer participates, the chances sum to
            zero or the bands run past 1
    """
    participating = [layer for layer in layers if layer.accepts(contexts)]
    if not participating:
        raise ConfigurationError(
            f"Context constraints exclude every candidate layer "
            f"({', '.join(layer.layer_name for layer in layers)}) for contexts {dict(contexts)}"
        )
    participating.sort(key=lambda layer: layer.index)

    total_chance = sum(layer.chance for layer in participating)
    if total_chance <= 0:
        raise ConfigurationError(
            f"Chance weights of layers {', '.join(layer.layer_name for layer in participating)} sum to zero"
        )

    max_ticks = to_ticks(MAX_NOISE, precision)
    current = to_ticks(MIN_NOISE, precision)
    bands = []
    for i, layer in enumerate(participating):
        if current > max_ticks:
            raise ConfigurationError(
                f"Lottery band of layer '{layer.layer_name}' starts beyond {MAX_NOISE}"
            )
        share = to_ticks(layer.chance / total_chance * (MAX_NOISE - MIN_NOISE), precision)
        high = min(current + share, max_ticks)
        if i == len(participating) - 1:
            high = max_ticks
        bands.append(LotteryBand(layer, current, high, precision))
        current = high + 1
    return bands


class ContextResolver:
    """Classifies coordinates by descending a registry's layer tree."""

    def __init__(
        self,
        registry: BiomeRegistry,
        noise: Optional[NoiseSource] = None,
        max_depth: Optional[int] = None,
    ):
        """
        Initialize the resolver.

        Args:
            registry: Validated configuration graph
            noise: Noise source, OpenSimplex by default
            max_depth: Descent ceiling, defaults to the settings value or
                the registry's region count + 1
        """
        self.registry = registry
        self.dimension = registry.dimension
        self.precision = registry.dimension.precision
        self.noise = noise or default_noise()
        self.max_depth = max_depth or settings.max_descent_depth or registry.max_depth

    def sample(self, seed: int, x: float, z: float, zoom: float) -> float:
        """Sample noise at the zoomed coordinate, rounded to precision."""
        return round_to_precision(self.noise.sample(seed, x / zoom, z / zoom), self.precision)

    def context(self, low: float, high: float, value: float) -> float:
        return band_context(low, high, value, self.precision)

    def classify_type(self, x: float, z: float, evaluation: PointEvaluation) -> TerrainType:
        """Pick land, shore or sea and record the ``"type"`` context."""
        dimension = self.dimension
        value = self.sample(dimension.type_seed, x, z, dimension.type_zoom)
        terrain_type = dimension.classify_type(value)
        if terrain_type is None:
            logger.error("Unclassified type noise", dimension=dimension.name, x=x, z=z, value=value)
            raise ConfigurationError(f"Type noise {value} at ({x}, {z}) matches no type band")

        band = dimension.type_band(terrain_type)
        evaluation.terrain_type = terrain_type
        evaluation.type_noise = value
        evaluation.contexts[TYPE_CONTEXT] = self.context(band.min, band.max, value)
        return terrain_type

    def select_initial_region(self, x: float, z: float, evaluation: PointEvaluation) -> Region:
        """Pick the first top-level region layer whose band holds the region noise."""
        dimension = self.dimension
        value = self.sample(dimension.region_seed, x, z, dimension.region_zoom)
        for layer in dimension.regions:
            if layer.contains(value):
                context = self.context(layer.min, layer.max, value)
                evaluation.contexts[layer.layer_name] = context
                evaluation.trail.append(
                    LayerSelection(layer.layer_name, layer, value, layer.min, layer.max, context, 0)
                )
                evaluation.region = self.registry.region(layer.region)
                return evaluation.region

        logger.error("Unclassified region noise", dimension=dimension.name, x=x, z=z, value=value)
        raise ConfigurationError(f"Region noise {value} at ({x}, {z}) matches no top-level region layer")

    def select_layer(self, region: Region, terrain_type: TerrainType, value: float, contexts: Mapping[str, float]):
        """
        Pick the child layer of ``region`` for a rounded noise value.

        Returns:
            Tuple of (layer, band min, band max)
        """
        layers = region.candidate_layers(terrain_type)
        if not layers:
            raise ConfigurationError(
                f"Region '{region.name}' has no {terrain_type.name.lower()} layers"
            )

        if region.uses_context(terrain_type):
            ticks = to_ticks(value, self.precision)
            for band in build_lottery(layers, contexts, self.precision):
                if band.contains_ticks(ticks):
                    return band.layer, band.min, band.max
        else:
            for layer in layers:
                if layer.contains(value):
                    return layer, layer.min, layer.max

        raise ConfigurationError(
            f"Noise {value} matches no {terrain_type.name.lower()} layer of region '{region.name}'"
        )

    def step(self, x: float, z: float, evaluation: PointEvaluation) -> LayerSelection:
        """
        Run one descent iteration inside the point's current region.

        Raises:
            BoundsExceededError: If the descent is deeper than ``max_depth``
        """
        if evaluation.state != ResolutionState.DESCENDING:
            raise ValueError(f"Cannot descend a point in state {evaluation.state.value}")

        region = evaluation.region
        if evaluation.iteration >= self.max_depth:
            logger.error("Descent too deep", region=region.name, depth=evaluation.iteration, x=x, z=z)
            raise BoundsExceededError(
                f"Descent at ({x}, {z}) exceeded {self.max_depth} levels in region '{region.name}'"
            )

        value = self.sample(region.seed, x, z, region.zoom)
        layer, low, high = self.select_layer(region, evaluation.terrain_type, value, evaluation.contexts)
        context = self.context(low, high, value)
        selection = LayerSelection(layer.layer_name, layer, value, low, high, context, len(evaluation.trail))

        evaluation.contexts[layer.layer_name] = context
        evaluation.trail.append(selection)
        if isinstance(layer, RegionLayer):
            evaluation.region = self.registry.region(layer.region)
        else:
            evaluation.biome = self.registry.biome(layer.biome)
        return selection

    def descend(self, x: float, z: float, evaluation: PointEvaluation) -> Biome:
        """Step until a biome layer is selected."""
        while evaluation.biome is None:
            self.step(x, z, evaluation)
        return evaluation.biome

    def resolve(self, x: float, z: float) -> PointEvaluation:
        """Run the full classification and return the point's working state."""
        evaluation = PointEvaluation()
        self.classify_type(x, z, evaluation)
        self.select_initial_region(x, z, evaluation)
        self.descend(x, z, evaluation)
        return evaluation

    def classify_biome(self, x: float, z: float) -> int:
        """Get the biome id at a coordinate."""
        return self.resolve(x, z).biome.id


def classify_biome(registry: BiomeRegistry, x: float, z: float, noise: Optional[NoiseSource] = None) -> int:
    """
    Get the biome id at a world coordinate.

    Args:
        registry: Validated configuration graph
        x: World X
        z: World Z
        noise: Noise source, OpenSimplex by default

    Returns:
        Biome id
    """
    return ContextResolver(registry, noise).classify_biome(x, z)
