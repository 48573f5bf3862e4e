"""Unit tests for src/ponger/game.py (offline play)"""

import math
import random
from unittest.mock import Mock, patch

import pytest

from src.core.config import GameSettings
from src.core.exceptions import GameStateError
from src.core.models import GameSnapshot
from src.core.shared_types import (
    ONLINE_STATES,
    Intent,
    Mode,
    Notification,
    SessionState,
    Side,
)
from src.ponger.game import PongGame

W_KEY, S_KEY = 87, 83
UP_ARROW, DOWN_ARROW = 38, 40
A_KEY = 65
SEED = 99


@pytest.fixture
def twoplayer(settings: GameSettings) -> PongGame:
    game = PongGame(settings=settings, seed=SEED)
    game.init(Mode.TWOPLAYER)
    return game


@pytest.fixture
def running(twoplayer: PongGame) -> PongGame:
    """Two player game with the start key pressed once."""
    twoplayer.player_started()
    return twoplayer


def place_ball(game: PongGame, x: float, y: float, vx: float, vy: float) -> None:
    game.ball.x, game.ball.y, game.ball.vx, game.ball.vy = x, y, vx, vy


# -- CREATION --
def test_pre_menu_reset(settings: GameSettings) -> None:
    """init without a mode: court reset for display, nothing can start."""
    game = PongGame(settings=settings)
    game.init()
    assert game.state == SessionState.OFFLINE
    assert game.mode is None
    assert game.points == [0, 0]
    assert (game.ball.x, game.ball.y) == (50.0, 30.0)
    assert (game.ball.vx, game.ball.vy) == (0.0, 0.0)

    game.player_started()
    assert not game.is_running


def test_renderer_facing_attributes(twoplayer: PongGame) -> None:
    assert twoplayer.states is SessionState
    assert twoplayer.abstract_width == 100.0
    assert twoplayer.abstract_height == 60.0
    assert twoplayer.left_bat.x == 5.0
    assert twoplayer.right_bat.x == 95.0


def test_default_settings_field() -> None:
    game = PongGame()
    assert game.abstract_width == 160.0
    assert game.abstract_height == 90.0


@pytest.mark.parametrize("mode", ["singleplayer", "twoplayer"])
def test_offline_game_starts_paused_with_ball_served(settings: GameSettings, mode: str) -> None:
    game = PongGame(settings=settings, seed=SEED)
    game.init(mode)
    assert game.state == SessionState.OFFLINE
    assert game.mode == Mode(mode)
    assert not game.is_running
    assert not game.started
    assert (game.ball.x, game.ball.y) == (50.0, 30.0)
    assert math.hypot(game.ball.vx, game.ball.vy) == pytest.approx(settings.ball_speed)


def test_unknown_mode(settings: GameSettings) -> None:
    with pytest.raises(GameStateError):
        PongGame(settings=settings).init("threeplayer")


def test_online_needs_a_transport(settings: GameSettings) -> None:
    with pytest.raises(GameStateError):
        PongGame(settings=settings).init(Mode.ONLINE)


def test_reinit_resets_score(running: PongGame) -> None:
    running.points[0] = 4
    running.init(Mode.TWOPLAYER)
    assert running.points == [0, 0]
    assert not running.is_running


# -- PAUSE / START --
def test_start_key_toggles_play(twoplayer: PongGame) -> None:
    twoplayer.player_started()
    assert twoplayer.is_running
    assert twoplayer.started
    twoplayer.player_started()
    assert not twoplayer.is_running


def test_focus_loss_pauses(running: PongGame) -> None:
    running.key_down(W_KEY)
    running.pause()
    assert not running.is_running
    assert running.intent(Side.LEFT) == Intent.NONE


def test_nothing_moves_while_paused(twoplayer: PongGame) -> None:
    before = twoplayer.to_snapshot()
    twoplayer.key_down(W_KEY)
    twoplayer.update_bats(100)
    twoplayer.update_ball(100)
    twoplayer.tick(100)
    assert twoplayer.to_snapshot() == before


# -- INPUT --
def test_two_players_each_drive_their_bat(running: PongGame) -> None:
    running.key_down(W_KEY)
    running.key_down(DOWN_ARROW)
    running.update_bats(100)
    assert running.left_bat.y == pytest.approx(26.0)
    assert running.right_bat.y == pytest.approx(34.0)

    running.key_up(W_KEY)
    running.key_up(DOWN_ARROW)
    running.update_bats(100)
    assert running.left_bat.y == pytest.approx(26.0)
    assert running.right_bat.y == pytest.approx(34.0)


def test_up_and_down_cancel_out(running: PongGame) -> None:
    running.key_down(W_KEY)
    running.key_down(S_KEY)
    assert running.intent(Side.LEFT) == Intent.NONE
    running.key_up(S_KEY)
    assert running.intent(Side.LEFT) == Intent.UP


def test_singleplayer_keys_all_drive_the_left_bat(settings: GameSettings) -> None:
    game = PongGame(settings=settings, seed=SEED)
    game.init(Mode.SINGLEPLAYER)
    game.key_down(UP_ARROW)
    assert game.intent(Side.LEFT) == Intent.UP
    assert game.intent(Side.RIGHT) == Intent.NONE
    game.key_up(UP_ARROW)
    game.key_down(S_KEY)
    assert game.intent(Side.LEFT) == Intent.DOWN


def test_computer_drives_right_bat_in_singleplayer(settings: GameSettings) -> None:
    game = PongGame(settings=settings, seed=SEED)
    game.init(Mode.SINGLEPLAYER)
    game.player_started()
    place_ball(game, 70.0, 50.0, 50.0, 0.0)
    game.update_bats(100)
    assert game.right_bat.y > 30.0


def test_unmapped_keys_are_ignored(running: PongGame) -> None:
    running.key_down(A_KEY)
    running.key_up(A_KEY)
    running.key_up(W_KEY)
    assert running.held == {Side.LEFT: {}, Side.RIGHT: {}}


def test_keys_before_menu_choice_are_ignored(settings: GameSettings) -> None:
    game = PongGame(settings=settings)
    game.init()
    game.key_down(W_KEY)
    assert game.held == {Side.LEFT: {}, Side.RIGHT: {}}


# -- BALL / COLLISIONS / POINTS --
def test_ball_moves_when_running(running: PongGame) -> None:
    place_ball(running, 50.0, 30.0, 20.0, -10.0)
    running.update_ball(100)
    assert running.ball.x == pytest.approx(52.0)
    assert running.ball.y == pytest.approx(29.0)


def test_collision_is_announced(running: PongGame) -> None:
    listener = Mock()
    running.on(Notification.COLLISION, listener)
    place_ball(running, 6.5, 30.0, -50.0, 0.0)

    assert running.detect_collision(running.left_bat)
    assert not running.detect_collision(running.left_bat)
    listener.assert_called_once_with()


def test_no_collision_while_paused(twoplayer: PongGame) -> None:
    place_ball(twoplayer, 6.5, 30.0, -50.0, 0.0)
    assert not twoplayer.detect_collision(twoplayer.left_bat)
    assert twoplayer.ball.vx == -50.0


def test_point_is_scored_and_ball_re_served(running: PongGame) -> None:
    listener = Mock()
    running.on(Notification.POINT, listener)
    place_ball(running, 101.0, 10.0, 50.0, 0.0)

    assert running.detect_point() == Side.LEFT
    assert running.points == [1, 0]
    assert (running.ball.x, running.ball.y) == (50.0, 30.0)
    # served towards the side that conceded
    assert running.ball.vx > 0
    listener.assert_called_once_with(Side.LEFT)


def test_tick_runs_a_whole_frame(running: PongGame) -> None:
    """Ball flying past the right bat: one frame moves it out and scores for the left player."""
    place_ball(running, 98.0, 10.0, 50.0, 0.0)
    running.tick(100)
    assert running.points == [1, 0]
    assert (running.ball.x, running.ball.y) == (50.0, 30.0)


def test_tick_bounces_off_bat(running: PongGame) -> None:
    place_ball(running, 8.0, 30.0, -50.0, 0.0)
    running.tick(40)
    assert running.ball.vx == pytest.approx(55.0)
    assert running.points == [0, 0]


def test_scores_only_ever_grow_one_point_at_a_time(running: PongGame) -> None:
    rng = random.Random(3)
    previous = list(running.points)
    for _ in range(3000):
        if rng.random() < 0.05:
            running.key_down(rng.choice([W_KEY, S_KEY, UP_ARROW, DOWN_ARROW]))
        if rng.random() < 0.05:
            running.key_up(rng.choice([W_KEY, S_KEY, UP_ARROW, DOWN_ARROW]))
        running.tick(16)

        assert running.points[0] >= previous[0]
        assert running.points[1] >= previous[1]
        assert sum(running.points) - sum(previous) <= 1
        for bat in (running.left_bat, running.right_bat):
            assert bat.top >= 0
            assert bat.bottom <= running.abstract_height
        previous = list(running.points)

    assert sum(running.points) > 0


# -- ROBUSTNESS --
def test_fault_inside_a_frame_is_contained(running: PongGame) -> None:
    with patch("src.ponger.physics.advance_ball", side_effect=RuntimeError("boom")):
        assert running.tick(16) is None
        assert running.update_ball(16) is None
    # next frame runs normally
    place_ball(running, 50.0, 30.0, 10.0, 0.0)
    running.tick(100)
    assert running.ball.x == pytest.approx(51.0)


def test_offline_never_reaches_an_online_state(settings: GameSettings) -> None:
    """Whatever the keyboard does, a local game stays a local game."""
    game = PongGame(settings=settings, seed=SEED)
    game.init(Mode.TWOPLAYER)
    rng = random.Random(11)
    for _ in range(2000):
        action = rng.randrange(5)
        code = rng.randrange(256)
        if action == 0:
            game.key_down(code)
        elif action == 1:
            game.key_up(code)
        elif action == 2:
            game.player_started()
        elif action == 3:
            game.pause()
        else:
            game.tick(rng.uniform(0, 50))
        assert game.state == SessionState.OFFLINE
        assert game.state not in ONLINE_STATES


# -- SNAPSHOT --
def test_snapshot(running: PongGame) -> None:
    place_ball(running, 20.0, 25.0, 3.0, 4.0)
    running.points[1] = 2
    snapshot = running.to_snapshot()
    assert snapshot == GameSnapshot(
        state=SessionState.OFFLINE,
        mode=Mode.TWOPLAYER,
        room_id=None,
        width=100.0,
        height=60.0,
        ball=(20.0, 25.0),
        ball_velocity=(3.0, 4.0),
        ball_radius=1.0,
        left_bat=(5.0, 30.0),
        right_bat=(95.0, 30.0),
        bat_size=(2.0, 10.0),
        points=(0, 2),
        running=True,
        started=True,
    )
