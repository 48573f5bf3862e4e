"""Computer opponent for singleplayer games: follows the ball while it is coming its way."""

from src.core.shared_types import Intent
from src.ponger.geometry import Ball, Bat, Field
from src.ponger.physics import is_moving_towards

# fraction of the bat height within which the bat does not bother moving
DEAD_ZONE = 0.25


def computer_intent(ball: Ball, bat: Bat, field: Field) -> Intent:
    # ball going away: drift back to the middle
    target_y = ball.y if is_moving_towards(ball, bat) else field.height / 2
    offset = target_y - bat.y
    if abs(offset) <= bat.h * DEAD_ZONE:
        return Intent.NONE
    return Intent.DOWN if offset > 0 else Intent.UP
