from dataclasses import dataclass
from typing import Tuple

from .tiles import Color


@dataclass(frozen=True)
class Ruleset:
    num_players: int = 4
    colors: Tuple[Color, ...] = (Color.RED, Color.BLUE, Color.BLACK, Color.YELLOW)
    values: int = 13
    copies_per_tiletype: int = 2
    num_jokers: int = 2
    initial_hand_size: int = 14
    initial_meld_min_points: int = 30
    joker_points: int = 30
    max_set_size: int = 4
    turn_time_limit: int = 30
    timer_warning_at: int = 15
    timer_danger_at: int = 10
    ai_think_delay: float = 2.0

    def __post_init__(self) -> None:
        if self.num_players < 1:
            raise ValueError("at least one seat is required")

    def deck_size(self) -> int:
        normal_tiles = len(self.colors) * self.values * self.copies_per_tiletype
        return normal_tiles + self.num_jokers
