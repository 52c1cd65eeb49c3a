"""Random source selection."""

import os
from random import Random, SystemRandom

from core.errors import RandomSourceUnavailable


def default_rng() -> Random:
    """
    Return the production random source.

    Uses the operating system CSPRNG. Tests pass a seeded ``Random``
    to the engines instead.

    Raises:
        RandomSourceUnavailable: if the OS has no entropy source
    """
    try:
        os.urandom(1)
    except NotImplementedError as exc:
        raise RandomSourceUnavailable("OS entropy source is unavailable") from exc
    return SystemRandom()


def roll_die(rng: Random) -> int:
    """Roll one six-sided die."""
    return rng.randint(1, 6)
