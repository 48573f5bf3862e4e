"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures/variables required for testing multiple layers.
"""

from typing import Generator

import pytest

from src.core.config import GameSettings
from src.ponger.game import PongGame
from src.transport.loopback import LoopbackHub

# Small, round numbers make the expected positions easy to compute by hand
SMALL_SETTINGS = GameSettings(
    width=100.0,
    height=60.0,
    ball_radius=1.0,
    ball_speed=50.0,
    ball_speedup=1.1,
    max_ball_speed=120.0,
    bat_width=2.0,
    bat_height=10.0,
    bat_margin=5.0,
    bat_speed=40.0,
    network_tick_ms=50.0,
)

SEED = 1234
FRAME_MS = 16.0


@pytest.fixture
def settings() -> GameSettings:
    return SMALL_SETTINGS


@pytest.fixture
def hub() -> Generator[LoopbackHub, None, None]:
    """Fresh in-memory network. Rooms are removed at teardown."""
    network = LoopbackHub()
    try:
        yield network
    finally:
        network.rooms.clear()
        network.in_flight.clear()


@pytest.fixture
def online_pair(hub: LoopbackHub, settings: GameSettings) -> tuple[PongGame, PongGame]:
    """Host + guest of one room, hello exchanged: both wait for the players to start."""
    host = PongGame(hub.transport(), settings, seed=SEED)
    host.init("online")
    guest = PongGame(hub.transport(), settings, seed=SEED)
    guest.init("online", host.room_id)
    hub.deliver()
    return host, guest


@pytest.fixture
def playing_pair(
    online_pair: tuple[PongGame, PongGame], hub: LoopbackHub
) -> tuple[PongGame, PongGame]:
    """Both players pressed start: the room is playing."""
    host, guest = online_pair
    host.player_started()
    guest.player_started()
    hub.deliver()
    return host, guest
