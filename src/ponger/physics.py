"""
Arcade physics of the court.

Key idea: every function is a pure transformation of the objects it is handed. Nothing is retained between calls,
so the same functions can run on the authoritative side of an online game and in an offline game alike.

Collisions are discrete and frame-stepped: no time-of-impact solving, an overlap found after a step is resolved by
pushing the ball back out of the bat.
"""

import math
import random

from src.core.config import MS_PER_SECOND
from src.core.shared_types import Intent, Side
from src.ponger.geometry import Ball, Bat, Field

# serve direction is drawn within +/- this angle from the horizontal
MAX_SERVE_ANGLE = math.radians(30)


def ms_to_seconds(dt_ms: float) -> float:
    """Frame times arrive in milliseconds. A clock running backwards is treated as no time passing."""
    return max(dt_ms, 0) / MS_PER_SECOND


def advance_ball(ball: Ball, dt_ms: float) -> None:
    """Linear motion, no gravity / friction"""
    dt = ms_to_seconds(dt_ms)
    ball.x += ball.vx * dt
    ball.y += ball.vy * dt


def advance_bat(bat: Bat, intent: Intent, dt_ms: float, field: Field, speed: float) -> None:
    """Move the bat in the intent direction, clamped so the whole bat stays on the field."""
    bat.y += int(intent) * speed * ms_to_seconds(dt_ms)
    clamp_bat(bat, field)


def clamp_bat(bat: Bat, field: Field) -> None:
    half = bat.h / 2
    bat.y = min(max(bat.y, half), field.height - half)


def bounce_off_walls(ball: Ball, field: Field) -> bool:
    """Reflect vy on the top / bottom boundary. Returns True if the ball bounced."""
    if ball.y - ball.r < 0:
        ball.y = ball.r
        ball.vy = abs(ball.vy)
        return True
    if ball.y + ball.r > field.height:
        ball.y = field.height - ball.r
        ball.vy = -abs(ball.vy)
        return True
    return False


def overlaps(ball: Ball, bat: Bat) -> bool:
    """Axis aligned test between the ball's bounding box and the bat. Touching edges do not count."""
    return (
        ball.x + ball.r > bat.left
        and ball.x - ball.r < bat.right
        and ball.y + ball.r > bat.top
        and ball.y - ball.r < bat.bottom
    )


def is_moving_towards(ball: Ball, bat: Bat) -> bool:
    return ball.vx < 0 if bat.side == Side.LEFT else ball.vx > 0


def detect_collision(
    ball: Ball, bat: Bat, speedup: float = 1.0, max_speed: float = math.inf
) -> bool:
    """
    Bounce the ball off the bat
    ----

    ----
    Only a ball that overlaps the bat AND is still heading into it bounces. After the bounce the ball is placed just
    outside the bat's face and travels away from it, so running this again on the same state is a no-op.
    """
    if not (overlaps(ball, bat) and is_moving_towards(ball, bat)):
        return False

    new_speed = min(abs(ball.vx) * speedup, max_speed)
    if bat.side == Side.LEFT:
        ball.vx = new_speed
        ball.x = bat.right + ball.r
    else:
        ball.vx = -new_speed
        ball.x = bat.left - ball.r
    return True


def detect_point(ball: Ball, field: Field) -> Side | None:
    """Which side scored, if any. Leaving on the left is a point for the right and vice versa."""
    if ball.x < 0:
        return Side.RIGHT
    if ball.x > field.width:
        return Side.LEFT
    return None


def award_point(points: list[int], side: Side) -> None:
    points[side.index] += 1


def serve(ball: Ball, field: Field, towards: Side, speed: float, rng: random.Random) -> None:
    """Put the ball back on the center spot and send it towards `towards` at the base speed."""
    ball.x, ball.y = field.center
    angle = rng.uniform(-MAX_SERVE_ANGLE, MAX_SERVE_ANGLE)
    direction = -1 if towards == Side.LEFT else 1
    ball.vx = direction * speed * math.cos(angle)
    ball.vy = speed * math.sin(angle)
