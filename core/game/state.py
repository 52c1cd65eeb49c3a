"""Round phase enumerations."""

from enum import Enum


class _Phase(Enum):
    """Phase whose value is the state name used by the state machine."""

    def __str__(self) -> str:
        return self.name.replace("_", " ").title()


class BlackjackPhase(_Phase):
    """
    Blackjack round phases.

    Flow: BETTING -> PLAYING -> DEALER_TURN -> RESOLVED
    (BETTING -> RESOLVED on a natural, PLAYING -> RESOLVED when every hand busts)
    """

    BETTING = "betting"
    PLAYING = "playing"
    DEALER_TURN = "dealer_turn"
    RESOLVED = "resolved"


class BaccaratPhase(_Phase):
    """Flow: BETTING -> DEALING -> RESOLVED."""

    BETTING = "betting"
    DEALING = "dealing"
    RESOLVED = "resolved"


class CrapsPhase(_Phase):
    """
    Craps table phases.

    COME_OUT and POINT alternate; ROLLING is held while one roll settles
    every bet, and no bet can be placed during it.
    """

    COME_OUT = "come_out"
    POINT = "point"
    ROLLING = "rolling"


def machine_states(phase_enum: type[Enum]) -> list[str]:
    """State names for a ``transitions.Machine``."""
    return [phase.value for phase in phase_enum]
