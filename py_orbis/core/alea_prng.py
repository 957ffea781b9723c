"""
Alea PRNG used to jitter scattered points.

Based on Johannes Baagøe's Alea algorithm. A generator seeded with
``(seed, cell_x, cell_z)`` is a pure function of those three values, which
is what keeps every point field reproducible without any shared state.
"""

from typing import Tuple


def _uint32(n):
    """Convert to unsigned 32-bit integer."""
    return int(n) & 0xFFFFFFFF


class AleaPRNG:
    """Alea PRNG seeded from one value or a sequence of values."""

    def __init__(self, seed):
        """Initialize with a seed value or an iterable of seed values."""
        if hasattr(seed, "__iter__") and not isinstance(seed, str):
            args = list(seed)
        else:
            args = [seed]

        mash_n = 0xEFC8249D

        def mash(data):
            nonlocal mash_n
            for char in str(data):
                mash_n = mash_n + ord(char)
                h = 0.02519603282416938 * mash_n
                mash_n = _uint32(h)
                h -= mash_n
                h *= mash_n
                mash_n = _uint32(h)
                h -= mash_n
                mash_n += h * 0x100000000  # 2^32
            return _uint32(mash_n) * 2.3283064365386963e-10  # 2^-32

        self.s0 = mash(" ")
        self.s1 = mash(" ")
        self.s2 = mash(" ")
        self.c = 1

        for arg in args:
            self.s0 -= mash(arg)
            if self.s0 < 0:
                self.s0 += 1
            self.s1 -= mash(arg)
            if self.s1 < 0:
                self.s1 += 1
            self.s2 -= mash(arg)
            if self.s2 < 0:
                self.s2 += 1

    def random(self) -> float:
        """Generate next random number in [0, 1)."""
        t = 2091639 * self.s0 + self.c * 2.3283064365386963e-10  # 2^-32
        self.s0 = self.s1
        self.s1 = self.s2
        self.c = int(t)
        self.s2 = t - self.c
        return self.s2


def cell_offsets(seed: int, cell_x: int, cell_z: int) -> Tuple[float, float]:
    """
    Get the two unit random values for one grid cell.

    Args:
        seed: Point field seed
        cell_x: Grid cell index along X
        cell_z: Grid cell index along Z

    Returns:
        Tuple of two values in [0, 1)
    """
    prng = AleaPRNG((seed, cell_x, cell_z))
    return prng.random(), prng.random()
