"""
Boundary layer data model(s).

A renderer (or anything else outside the domain layer) can read the game through this snapshot instead of holding on
to the live, mutable simulation objects.
"""

from dataclasses import dataclass
from typing import Optional

from src.core.shared_types import Mode, SessionState

# Type aliases to make GameSnapshot easier to read
Position = tuple[float, float]
Velocity = tuple[float, float]


@dataclass(frozen=True)
class GameSnapshot:
    """Transport-safe copy of everything needed to paint one frame."""

    state: SessionState
    mode: Optional[Mode]
    room_id: Optional[str]
    width: float
    height: float
    ball: Position
    ball_velocity: Velocity
    ball_radius: float
    left_bat: Position
    right_bat: Position
    bat_size: tuple[float, float]
    points: tuple[int, int]
    running: bool
    started: bool
