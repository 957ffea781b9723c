"""
Noise capability consumed by the layer resolver.

The resolver only ever asks for ``sample(seed, x, z)``; any object with that
method can stand in for the default OpenSimplex backend.
"""

import math
import threading
from typing import Dict, Protocol

from opensimplex import OpenSimplex


class NoiseSource(Protocol):
    """Pure 2D noise keyed by a seed."""

    def sample(self, seed: int, x: float, z: float) -> float:
        """Return the noise value in [-1, 1] at ``(x, z)`` for ``seed``."""
        ...


class OpenSimplexNoise:
    """NoiseSource backed by the ``opensimplex`` library."""

    def __init__(self):
        self._generators: Dict[int, OpenSimplex] = {}
        self._lock = threading.Lock()

    def _generator(self, seed: int) -> OpenSimplex:
        generator = self._generators.get(seed)
        if generator is None:
            with self._lock:
                generator = self._generators.get(seed)
                if generator is None:
                    generator = OpenSimplex(seed=seed)
                    self._generators[seed] = generator
        return generator

    def sample(self, seed: int, x: float, z: float) -> float:
        return self._generator(seed).noise2(x, z)


def round_to_precision(value: float, precision: int) -> float:
    """
    Round ``value`` half up to ``1 / precision`` steps.

    Args:
        value: Value to round
        precision: Number of steps per unit (100 keeps two decimals)

    Returns:
        Rounded value
    """
    return math.floor(value * precision + 0.5) / precision


def to_ticks(value: float, precision: int) -> int:
    """Convert a value to an integer count of ``1 / precision`` steps."""
    return int(math.floor(value * precision + 0.5))


_default_noise = None


def default_noise() -> OpenSimplexNoise:
    """Get the shared OpenSimplex noise source."""
    global _default_noise
    if _default_noise is None:
        _default_noise = OpenSimplexNoise()
    return _default_noise
