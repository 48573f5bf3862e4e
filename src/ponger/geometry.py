"""
The objects on the court: the field itself, the ball and the two bats.

(placed in its own module as physics, sync and game all need to import it)
"""

from __future__ import annotations

from dataclasses import dataclass

from src.core.config import GameSettings
from src.core.shared_types import Side


@dataclass(frozen=True)
class Field:
    width: float
    height: float

    @property
    def center(self) -> tuple[float, float]:
        return self.width / 2, self.height / 2

    @classmethod
    def from_settings(cls, settings: GameSettings) -> Field:
        return cls(settings.width, settings.height)


@dataclass
class Ball:
    x: float
    y: float
    vx: float
    vy: float
    r: float

    @classmethod
    def centered(cls, field: Field, r: float) -> Ball:
        """A ball at rest in the middle of the court"""
        x, y = field.center
        return cls(x, y, 0.0, 0.0, r)


@dataclass
class Bat:
    """(x, y) is the center of the bat. x never changes after creation."""

    side: Side
    x: float
    y: float
    w: float
    h: float

    @classmethod
    def for_side(cls, side: Side, settings: GameSettings) -> Bat:
        x = (
            settings.bat_margin
            if side == Side.LEFT
            else settings.width - settings.bat_margin
        )
        return cls(side, x, settings.height / 2, settings.bat_width, settings.bat_height)

    @property
    def top(self) -> float:
        return self.y - self.h / 2

    @property
    def bottom(self) -> float:
        return self.y + self.h / 2

    @property
    def left(self) -> float:
        return self.x - self.w / 2

    @property
    def right(self) -> float:
        return self.x + self.w / 2
