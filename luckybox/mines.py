"""Mines: a 5x5 grid with hidden mines and a cash-out-any-time payout ladder.

The payout after ``n`` safe reveals depends only on the stake, the mine count
and ``n``. Each reveal prices the next pick from the odds of it being safe,
with a 5% house margin taken at every step, so the figure shown to the player
after a reveal is exactly what ``cashout`` pays.
"""
import math
from dataclasses import dataclass, field
from typing import List, Optional, Set

from .errors import StateError, ValidationError
from .rng import RandomSource

GRID_SIZE = 25
MIN_MINES = 1
MAX_MINES = 24
HOUSE_FACTOR = 0.95
MIN_STEP_MULTIPLIER = 1.02
MIN_SAFE_CHANCE = 0.01


def safe_chance(mine_count: int, opened: int) -> float:
    """Probability that a pick is safe after ``opened`` safe cells were found.

    Domain: ``1 <= mine_count <= 24``, ``0 <= opened < 25 - mine_count``.
    Range: ``(0, 1)``.
    """
    return (GRID_SIZE - mine_count - opened) / (GRID_SIZE - opened)


def step_multiplier(mine_count: int, opened: int) -> float:
    """Fair odds of the next pick, less the house margin, never below 1.02."""
    chance = max(MIN_SAFE_CHANCE, safe_chance(mine_count, opened))
    return max(MIN_STEP_MULTIPLIER, (1 / chance) * HOUSE_FACTOR)


def total_payout(bet: int, mine_count: int, revealed: int) -> int:
    """Amount a cash-out pays after ``revealed`` safe cells, stake included."""
    if revealed <= 0:
        return bet
    multiplier = step_multiplier(mine_count, revealed - 1)
    return math.floor(bet * multiplier ** revealed)


def profit(bet: int, mine_count: int, revealed: int) -> int:
    return max(0, total_payout(bet, mine_count, revealed) - bet)


def validate_mine_count(mine_count) -> int:
    if isinstance(mine_count, bool) or not isinstance(mine_count, int):
        raise ValidationError("mineCount must be an integer")
    if not MIN_MINES <= mine_count <= MAX_MINES:
        raise ValidationError(f"mineCount must be between {MIN_MINES} and {MAX_MINES}")
    return mine_count


@dataclass(frozen=True)
class RevealOutcome:
    index: int
    mine: bool
    finished: bool
    payout: int


@dataclass
class MinesRound:
    bet: int
    mine_count: int
    mines: Set[int]
    revealed: List[int] = field(default_factory=list)
    active: bool = True
    busted: bool = False

    @classmethod
    def start(cls, rng: RandomSource, bet: int, mine_count: int) -> "MinesRound":
        validate_mine_count(mine_count)
        return cls(bet=bet, mine_count=mine_count, mines=set(rng.sample(GRID_SIZE, mine_count)))

    @property
    def safe_cells(self) -> int:
        return GRID_SIZE - self.mine_count

    @property
    def current_profit(self) -> int:
        if self.busted:
            return 0
        return profit(self.bet, self.mine_count, len(self.revealed))

    def reveal(self, index) -> RevealOutcome:
        if not self.active:
            raise StateError("round not started")
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < GRID_SIZE:
            raise ValidationError(f"cellIndex must be between 0 and {GRID_SIZE - 1}")
        if index in self.revealed:
            raise StateError("cell already revealed")

        if index in self.mines:
            self.active = False
            self.busted = True
            return RevealOutcome(index=index, mine=True, finished=True, payout=0)

        self.revealed.append(index)
        if len(self.revealed) == self.safe_cells:
            payout = self.bet + self.current_profit
            self.active = False
            return RevealOutcome(index=index, mine=False, finished=True, payout=payout)
        return RevealOutcome(index=index, mine=False, finished=False, payout=0)

    def cashout(self) -> int:
        if not self.active:
            raise StateError("round not started")
        payout = self.bet + self.current_profit
        self.active = False
        return payout

    def view(self, disclose: Optional[bool] = None) -> dict:
        """Client view of the board; mines are shown once the board has been cleared or blown."""
        if disclose is None:
            disclose = self.busted or len(self.revealed) == self.safe_cells
        opened = len(self.revealed)
        state = {
            "active": self.active,
            "bet": self.bet,
            "mineCount": self.mine_count,
            "revealed": list(self.revealed),
            "profit": self.current_profit,
            "nextMultiplier": (
                step_multiplier(self.mine_count, opened) if opened < self.safe_cells else None
            ),
        }
        if disclose:
            state["mines"] = sorted(self.mines)
        return state
