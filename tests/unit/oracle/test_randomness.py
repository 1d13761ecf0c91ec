import asyncio
import random

import pytest

from rangeoracle.oracle import PoissonPacer, child_random, coinflip, random_exp


class TestRandomExp:
    def test_values_stay_in_power_of_two_bounds(self, rng: random.Random):
        values = [random_exp(rng, 3, 6) for _ in range(2000)]

        assert min(values) >= 8
        assert max(values) <= 63

    def test_every_exponent_is_drawn(self, rng: random.Random):
        """Each exponent in the interval contributes its own power-of-two band."""
        values = [random_exp(rng, 1, 10) for _ in range(10_000)]
        bands = {value.bit_length() - 1 for value in values}

        assert bands == set(range(1, 10))
        assert max(values) >= 512

    def test_empty_interval_uses_minimum_exponent(self, rng: random.Random):
        assert random_exp(rng, 1, 1) in (2, 3)
        assert 16 <= random_exp(rng, 4, 2) < 32

    def test_zero_exponent_yields_one(self, rng: random.Random):
        assert random_exp(rng, 0, 1) == 1

    def test_negative_exponent_rejected(self, rng: random.Random):
        with pytest.raises(ValueError):
            random_exp(rng, -1, 10)


class TestSeededGenerators:
    def test_child_random_is_reproducible(self):
        """Child generators derived from the same seed produce the same stream."""
        first = child_random(random.Random(99))
        second = child_random(random.Random(99))

        assert [first.random() for _ in range(5)] == [second.random() for _ in range(5)]

    def test_coinflip_takes_both_sides(self, rng: random.Random):
        flips = {coinflip(rng) for _ in range(100)}

        assert flips == {True, False}


class TestPoissonPacer:
    def test_rate_must_be_positive(self, rng: random.Random):
        with pytest.raises(ValueError):
            PoissonPacer(0, rng)

    @pytest.mark.asyncio
    async def test_arrivals_are_monotonic(self, rng: random.Random):
        pacer = PoissonPacer(1000, rng)

        arrivals = [pacer.schedule_next() for _ in range(10)]

        assert arrivals == sorted(arrivals)

    @pytest.mark.asyncio
    async def test_wait_sleeps_until_next_arrival(self, rng: random.Random):
        pacer = PoissonPacer(200, rng)
        loop = asyncio.get_running_loop()

        arrival = pacer.schedule_next()
        await pacer.wait()

        assert loop.time() >= arrival - 0.001

    @pytest.mark.asyncio
    async def test_wait_without_schedule_returns(self, rng: random.Random):
        await PoissonPacer(1, rng).wait()
