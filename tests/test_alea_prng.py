"""
Tests for the Alea PRNG helpers.
"""

import pytest

from py_realms.core.alea_prng import AleaPRNG
from py_realms.utils.random import resolve_prng


class TestAleaPRNG:
    """Test the seeded source."""

    def test_same_seed_same_sequence(self):
        a = AleaPRNG("hello")
        b = AleaPRNG("hello")
        assert [a.random() for _ in range(20)] == [b.random() for _ in range(20)]

    def test_different_seeds_differ(self):
        a = AleaPRNG("hello")
        b = AleaPRNG("world")
        assert [a.random() for _ in range(5)] != [b.random() for _ in range(5)]

    def test_random_range(self):
        prng = AleaPRNG("range")
        for _ in range(1000):
            value = prng.random()
            assert 0.0 <= value < 1.0

    def test_next_int_bounds(self):
        prng = AleaPRNG("ints")
        values = {prng.next_int(4) for _ in range(500)}
        assert values == {0, 1, 2, 3}
        with pytest.raises(ValueError):
            prng.next_int(0)

    def test_randint_inclusive(self):
        prng = AleaPRNG("randint")
        values = {prng.randint(3, 6) for _ in range(500)}
        assert values == {3, 4, 5, 6}
        with pytest.raises(ValueError):
            prng.randint(5, 4)

    def test_uniform_and_chance(self):
        prng = AleaPRNG("uniform")
        for _ in range(200):
            assert 0.8 <= prng.uniform(0.8, 1.2) < 1.2
        assert not any(prng.chance(0.0) for _ in range(50))
        assert all(prng.chance(1.0) for _ in range(50))

    def test_call_count(self):
        prng = AleaPRNG("count")
        prng.random()
        prng.next_int(10)
        assert prng.call_count == 2


class TestResolvePrng:
    """Test seed resolution."""

    def test_reuses_instance(self):
        prng = AleaPRNG("same")
        assert resolve_prng(prng) is prng

    def test_int_and_str_seeds_match(self):
        assert resolve_prng(42).random() == AleaPRNG("42").random()

    def test_default_seed(self):
        assert resolve_prng(None, default_seed="d").random() == AleaPRNG("d").random()

    def test_configured_default(self):
        from py_realms.config import settings

        expected = AleaPRNG(settings.default_seed).random()
        assert resolve_prng().random() == expected
