from dataclasses import dataclass
from typing import Literal

from .rng import RandomSource

Color = Literal["red", "black", "green"]

COST = 150
GREEN_WIN = 1500
COLOR_WIN = 300
DEFAULT_PICK: Color = "red"

# European wheel, clockwise from the zero pocket.
WHEEL = (
    0, 32, 15, 19, 4, 21, 2, 25, 17, 34, 6, 27, 13, 36, 11, 30, 8, 23, 10,
    5, 24, 16, 33, 1, 20, 14, 31, 9, 22, 18, 29, 7, 28, 12, 35, 3, 26,
)
RED_NUMBERS = frozenset(
    {32, 19, 21, 25, 34, 27, 36, 30, 23, 5, 16, 1, 14, 9, 18, 7, 12, 3}
)


def number_color(number: int) -> Color:
    if number == 0:
        return "green"
    return "red" if number in RED_NUMBERS else "black"


def num_color(index: int) -> Color:
    """Color of the pocket at wheel position ``index``."""
    return number_color(WHEEL[index])


def normalize_pick(pick: str | None) -> Color:
    """Anything that is not red, black or green is played as red."""
    if isinstance(pick, str):
        value = pick.strip().lower()
        if value in ("red", "black", "green"):
            return value  # type: ignore[return-value]
    return DEFAULT_PICK


def payout_for(pick: Color, color: Color) -> int:
    if pick != color:
        return 0
    return GREEN_WIN if color == "green" else COLOR_WIN


@dataclass(frozen=True)
class RouletteOutcome:
    index: int
    number: int
    color: Color
    pick: Color
    win: int


def spin(rng: RandomSource, pick: str | None) -> RouletteOutcome:
    chosen = normalize_pick(pick)
    index = rng.uniform_int(len(WHEEL))
    color = num_color(index)
    return RouletteOutcome(
        index=index,
        number=WHEEL[index],
        color=color,
        pick=chosen,
        win=payout_for(chosen, color),
    )
