"""
Game constants and key bindings.

All lengths are in abstract field units, all speeds in field units per second.
The renderer alone maps the abstract field to pixels.
"""

from dataclasses import dataclass, field

from src.core.exceptions import InvalidSettingsError
from src.core.shared_types import Side

# Logical court, 16:9 so it fills a typical window
ABSTRACT_WIDTH = 160.0
ABSTRACT_HEIGHT = 90.0

BALL_RADIUS = 1.5
BALL_SPEED = 80.0
# every bat hit multiplies the horizontal speed so rallies escalate
BALL_SPEEDUP = 1.05
MAX_BALL_SPEED = 240.0

BAT_WIDTH = 2.0
BAT_HEIGHT = 16.0
# distance from the goal line to the bat's center
BAT_MARGIN = 6.0
BAT_SPEED = 90.0

# dt arrives in milliseconds, the engine integrates in seconds
MS_PER_SECOND = 1000

# how often positions are pushed to the peer while playing online
NETWORK_TICK_MS = 50
PROTOCOL_VERSION = 1

SPACE_KEY = 32


@dataclass(frozen=True)
class KeyBindings:
    up: int
    down: int

    def codes(self) -> frozenset[int]:
        return frozenset({self.up, self.down})


# browser `event.which` codes: W/S for the left bat, arrow keys for the right one
KEY_BINDINGS: dict[Side, KeyBindings] = {
    Side.LEFT: KeyBindings(up=87, down=83),
    Side.RIGHT: KeyBindings(up=38, down=40),
}


@dataclass(frozen=True)
class GameSettings:
    """Everything the simulation can be tuned with. Defaults are the module constants."""

    width: float = ABSTRACT_WIDTH
    height: float = ABSTRACT_HEIGHT
    ball_radius: float = BALL_RADIUS
    ball_speed: float = BALL_SPEED
    ball_speedup: float = BALL_SPEEDUP
    max_ball_speed: float = MAX_BALL_SPEED
    bat_width: float = BAT_WIDTH
    bat_height: float = BAT_HEIGHT
    bat_margin: float = BAT_MARGIN
    bat_speed: float = BAT_SPEED
    network_tick_ms: float = NETWORK_TICK_MS
    key_bindings: dict[Side, KeyBindings] = field(
        default_factory=lambda: dict(KEY_BINDINGS)
    )

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise InvalidSettingsError(
                f"Field must have a positive size, got {self.width}x{self.height}"
            )
        if self.bat_height > self.height:
            raise InvalidSettingsError(
                f"Bat ({self.bat_height}) does not fit the field height ({self.height})"
            )
        if self.network_tick_ms <= 0:
            raise InvalidSettingsError("network_tick_ms must be positive")
