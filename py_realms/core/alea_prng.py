"""
Seeded Alea PRNG used for every random decision in a generation pass.

Based on Johannes Baagøe's Alea algorithm. The same seed always produces the
same sequence, so two passes over the same grid with the same seed claim the
same cells in the same order.
"""


def _uint32(n):
    """Convert to unsigned 32-bit integer."""
    return int(n) & 0xFFFFFFFF


class AleaPRNG:
    """
    Alea generator with the integer/range helpers the claim generator needs.

    All helpers are built on ``random()`` so the draw count stays predictable.
    """

    def __init__(self, seed):
        """Initialize with seed string or number (or an iterable of them)."""
        self.seed = seed
        self.call_count = 0

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
        self.call_count += 1
        t = 2091639 * self.s0 + self.c * 2.3283064365386963e-10  # 2^-32
        self.s0 = self.s1
        self.s1 = self.s2
        self.c = int(t)
        self.s2 = t - self.c
        return self.s2

    def next_int(self, bound: int) -> int:
        """Return an int in [0, bound). ``bound`` must be positive."""
        if bound <= 0:
            raise ValueError(f"bound must be positive, got {bound}")
        return min(int(self.random() * bound), bound - 1)

    def randint(self, low: int, high: int) -> int:
        """Return an int in [low, high], both inclusive."""
        if high < low:
            raise ValueError(f"empty range [{low}, {high}]")
        return low + self.next_int(high - low + 1)

    def uniform(self, low: float, high: float) -> float:
        """Return a float in [low, high)."""
        return low + self.random() * (high - low)

    def chance(self, probability: float) -> bool:
        """Return True with the given probability."""
        return self.random() < probability
