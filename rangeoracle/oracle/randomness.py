import random


def random_exp(rng: random.Random, min_exponent: int, max_exponent: int) -> int:
    """
    Draw an exponent ``e`` uniformly from ``[min_exponent, max_exponent)``
    and return an integer uniformly from ``[2**e, 2**(e + 1))``.

    An empty exponent interval (``max_exponent <= min_exponent``) uses
    ``min_exponent``.
    """
    if min_exponent < 0:
        raise ValueError("min_exponent must not be negative")

    exponent = min_exponent
    if max_exponent > min_exponent:
        exponent = rng.randrange(min_exponent, max_exponent)

    base = 1 << exponent
    return rng.randrange(base, base * 2)


def coinflip(rng: random.Random) -> bool:
    return rng.random() < 0.5


def child_random(rng: random.Random) -> random.Random:
    """Independent generator seeded from ``rng``, for one component."""
    return random.Random(rng.getrandbits(64))
