"""Unit tests for src/ponger/opponent.py"""

import pytest

from src.core.config import GameSettings
from src.core.shared_types import Intent, Side
from src.ponger.geometry import Ball, Bat, Field
from src.ponger.opponent import computer_intent


@pytest.fixture
def bat(settings: GameSettings) -> Bat:
    return Bat.for_side(Side.RIGHT, settings)


@pytest.fixture
def field(settings: GameSettings) -> Field:
    return Field.from_settings(settings)


@pytest.mark.parametrize(
    "ball_y, intent", [(50.0, Intent.DOWN), (5.0, Intent.UP), (31.0, Intent.NONE)]
)
def test_follows_incoming_ball(bat: Bat, field: Field, ball_y: float, intent: Intent) -> None:
    ball = Ball(60.0, ball_y, 40.0, 0.0, 1.0)
    assert computer_intent(ball, bat, field) == intent


def test_returns_to_middle_when_ball_leaves(bat: Bat, field: Field) -> None:
    bat.y = 10.0
    ball = Ball(60.0, 5.0, -40.0, 0.0, 1.0)
    assert computer_intent(ball, bat, field) == Intent.DOWN
