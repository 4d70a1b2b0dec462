from dataclasses import dataclass
from typing import Literal

from .rng import RandomSource

SlotsTier = Literal["big", "small", "none"]


def clamp_probability(p: float, upper: float = 1.0) -> float:
    """Clamp ``p`` into ``[0, upper]``."""
    return min(max(p, 0.0), upper)


def small_win_probability(
    cost: int, rtp: float, big_payout: int, p_big: float, small_payout: int
) -> float:
    """Probability of the small prize that makes the machine pay ``cost * rtp`` on average.

    Solves ``cost * rtp = big_payout * p_big + small_payout * p_small`` for
    ``p_small`` and clamps it into ``[0, 1 - p_big]``.
    """
    expected = cost * rtp
    return clamp_probability((expected - big_payout * p_big) / small_payout, 1.0 - p_big)


@dataclass(frozen=True)
class SlotsConfig:
    cost: int = 100
    rtp: float = 0.95
    p_big: float = 0.06
    big_payout: int = 800
    small_payout: int = 200

    @property
    def p_small(self) -> float:
        return small_win_probability(
            self.cost, self.rtp, self.big_payout, self.p_big, self.small_payout
        )

    def expected_payout(self) -> float:
        return self.big_payout * self.p_big + self.small_payout * self.p_small


DEFAULT_SLOTS = SlotsConfig()


@dataclass(frozen=True)
class SlotsOutcome:
    win: int
    tier: SlotsTier
    roll: float


def spin(rng: RandomSource, config: SlotsConfig = DEFAULT_SLOTS) -> SlotsOutcome:
    r = rng.uniform()
    if r < config.p_big:
        return SlotsOutcome(config.big_payout, "big", r)
    if r < config.p_big + config.p_small:
        return SlotsOutcome(config.small_payout, "small", r)
    return SlotsOutcome(0, "none", r)
