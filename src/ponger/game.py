"""
The PongGame class is the entrypoint into the domain layer for the renderer.

It owns all mutable simulation state (ball, bats, points, held keys, session) and composes the physics engine, the
session state machine and the peer synchronization. The renderer polls it once per animation frame and reads its
attributes to paint; it only changes the game through the input forwarding calls.

Order within one frame: queued peer messages are applied first, then local physics runs.
"""

import functools
import logging
import random
from typing import Any, Callable, Optional

from src.api.models import BatMessage, HelloMessage, ReadyMessage, StateMessage
from src.core.config import GameSettings
from src.core.exceptions import GameStateError, TransportError
from src.core.models import GameSnapshot
from src.core.shared_types import Intent, Mode, Notification, Role, SessionState, Side
from src.ponger import physics
from src.ponger.events import EventEmitter, Handler
from src.ponger.geometry import Ball, Bat, Field
from src.ponger.opponent import computer_intent
from src.ponger.session import Session
from src.ponger.sync import PeerSync, apply_bat_message, apply_state_message
from src.transport.transport import PeerChannel, PeerTransport

logger = logging.getLogger(__name__)


def frame_safe(method: Callable[..., Any]) -> Callable[..., Any]:
    """A fault inside a frame must not stop the render loop: log it and treat the call as a no-op."""

    @functools.wraps(method)
    def wrapper(self: "PongGame", *args: Any, **kwargs: Any) -> Any:
        try:
            return method(self, *args, **kwargs)
        except Exception:
            logger.exception("%s failed, skipped for this frame", method.__name__)
            return None

    return wrapper


class PongGame:
    # --- RENDERER API ---
    states = SessionState

    def __init__(
        self,
        transport: Optional[PeerTransport] = None,
        settings: Optional[GameSettings] = None,
        seed: Optional[int] = None,
    ) -> None:
        self.transport = transport
        self.settings = settings or GameSettings()
        self.field = Field.from_settings(self.settings)
        self.seed = seed
        self.events = EventEmitter()
        self.session = Session.offline()
        self.sync: Optional[PeerSync] = None
        # bumped on every (re)init, callbacks of an older session check it and bail out
        self._generation = 0
        self._reset_court()

    @property
    def state(self) -> SessionState:
        return self.session.state

    @property
    def mode(self) -> Optional[Mode]:
        return self.session.mode

    @property
    def room_id(self) -> Optional[str]:
        return self.session.room_id

    @property
    def abstract_width(self) -> float:
        return self.field.width

    @property
    def abstract_height(self) -> float:
        return self.field.height

    @property
    def is_running(self) -> bool:
        return self.session.is_running

    @property
    def started(self) -> bool:
        """Has play begun at least once (the view says 'continue' instead of 'start')"""
        return self.session.started

    @property
    def is_ball_authoritative(self) -> bool:
        return self.session.is_ball_authoritative

    def on(self, notification: Notification, handler: Handler) -> None:
        self.events.on(notification, handler)

    def off(self, notification: Notification, handler: Handler) -> None:
        self.events.off(notification, handler)

    def bat(self, side: Side) -> Bat:
        return self.left_bat if side == Side.LEFT else self.right_bat

    def init(self, mode: Optional[Mode | str] = None, room_hash: Optional[str] = None) -> None:
        """
        (Re)create all state.
        ----

        ----
        * no mode: reset for the pre-menu display, no session is started
        * singleplayer / twoplayer: local game, paused until the first start
        * online without a room: host a new room
        * online with a room: join it
        """
        self._end_session()
        self._reset_court()

        if mode is None:
            self.session = Session.offline()
            return

        try:
            game_mode = Mode(mode)
        except ValueError:
            raise GameStateError(
                f"Unknown game mode {mode!r}. Pick one from {','.join(m.value for m in Mode)}"
            ) from None

        room_id = (room_hash or "").lstrip("#") or None
        if game_mode != Mode.ONLINE:
            self.session = Session.offline(game_mode)
            self._serve(self._random_side())
            return

        if self.transport is None:
            raise GameStateError("Online play needs a peer transport.")
        if room_id is None:
            self._host_room()
        else:
            self._join_room(room_id)

    def key_down(self, code: int) -> None:
        binding = self._binding_for(code)
        if binding is None:
            return
        side, intent = binding
        self.held[side][code] = intent
        self._input_changed(side)

    def key_up(self, code: int) -> None:
        binding = self._binding_for(code)
        if binding is None:
            return
        side, _ = binding
        self.held[side].pop(code, None)
        self._input_changed(side)

    def intent(self, side: Side) -> Intent:
        """Direction the held keys ask for. Up and down together cancel out."""
        held = set(self.held[side].values())
        if held == {Intent.UP}:
            return Intent.UP
        if held == {Intent.DOWN}:
            return Intent.DOWN
        return Intent.NONE

    def player_started(self) -> None:
        """Local ready signal (space bar). Offline it toggles pause."""
        if self.session.state == SessionState.OFFLINE:
            self.session.toggle_pause()
            return
        if self.sync is None:
            return

        was_ready = self.session.local_ready
        began = self.session.set_local_ready()
        if self.session.local_ready and not was_ready:
            self.sync.say_ready()
        if began:
            self._begin_online_play()

    def pause(self) -> None:
        """Window lost focus. Only an offline game can be paused."""
        if self.session.pause():
            self.held = {Side.LEFT: {}, Side.RIGHT: {}}

    @frame_safe
    def tick(self, dt: float) -> None:
        """One full frame: peer messages first, then bats, ball, collisions and points."""
        self.apply_peer_messages()
        if not self.session.is_running:
            return
        self.update_bats(dt)
        self.update_ball(dt)
        if not self.session.is_online:
            self.detect_collision(self.left_bat)
            self.detect_collision(self.right_bat)
            self.detect_point()

    @frame_safe
    def update_bats(self, dt: float) -> None:
        self.apply_peer_messages()
        if not self.session.is_running:
            return

        if self.session.is_online:
            side = self.session.owned_side
            own_bat = self.bat(side)
            physics.advance_bat(own_bat, self.intent(side), dt, self.field, self.settings.bat_speed)
            if self.sync.bat_timer.is_due(dt):
                self.sync.send_bat(own_bat, self.intent(side))
            # the opponent's bat keeps its last reported direction until the next bat message
            physics.advance_bat(
                self.bat(side.opponent), self.remote_intent, dt, self.field, self.settings.bat_speed
            )
            return

        physics.advance_bat(
            self.left_bat, self.intent(Side.LEFT), dt, self.field, self.settings.bat_speed
        )
        right_intent = (
            computer_intent(self.ball, self.right_bat, self.field)
            if self.session.mode == Mode.SINGLEPLAYER
            else self.intent(Side.RIGHT)
        )
        physics.advance_bat(self.right_bat, right_intent, dt, self.field, self.settings.bat_speed)

    @frame_safe
    def update_ball(self, dt: float) -> None:
        """Full physics when we are authoritative. The guest's ball only changes through the host's messages."""
        self.apply_peer_messages()
        if not self.session.is_running or not self.session.is_ball_authoritative:
            return

        physics.advance_ball(self.ball, dt)
        physics.bounce_off_walls(self.ball, self.field)
        if not self.session.is_online:
            return

        # host: the renderer only drives the ball online, so resolve the whole court here
        hit = self.detect_collision(self.left_bat)
        hit = self.detect_collision(self.right_bat) or hit
        scored = self.detect_point() is not None
        due = self.sync.state_timer.is_due(dt)
        if hit or scored or due or self._state_pending:
            self._state_pending = False
            self.sync.send_state(self.ball, self.bat(Side.LEFT), self.points, hit=bool(hit))

    @frame_safe
    def detect_collision(self, bat: Bat) -> bool:
        if not self.session.is_running or not self.session.is_ball_authoritative:
            return False
        hit = physics.detect_collision(
            self.ball, bat, self.settings.ball_speedup, self.settings.max_ball_speed
        )
        if hit:
            self.events.emit(Notification.COLLISION)
        return hit

    @frame_safe
    def detect_point(self) -> Optional[Side]:
        """Score and re-serve towards the side that conceded."""
        if not self.session.is_running or not self.session.is_ball_authoritative:
            return None
        side = physics.detect_point(self.ball, self.field)
        if side is None:
            return None
        physics.award_point(self.points, side)
        self._serve(side.opponent)
        logger.debug("point for %s, score %s", side, self.points)
        self.events.emit(Notification.POINT, side)
        return side

    def apply_peer_messages(self) -> None:
        """Apply bat / state messages that arrived since the last frame, in arrival order. Newest wins."""
        if self.sync is None:
            return
        for message in self.sync.drain():
            if isinstance(message, BatMessage):
                opponent_bat = self.bat(self.session.owned_side.opponent)
                self.remote_intent = apply_bat_message(message, opponent_bat, self.field)
            elif isinstance(message, StateMessage):
                self._apply_state(message)

    def to_snapshot(self) -> GameSnapshot:
        return GameSnapshot(
            state=self.state,
            mode=self.mode,
            room_id=self.room_id,
            width=self.field.width,
            height=self.field.height,
            ball=(self.ball.x, self.ball.y),
            ball_velocity=(self.ball.vx, self.ball.vy),
            ball_radius=self.ball.r,
            left_bat=(self.left_bat.x, self.left_bat.y),
            right_bat=(self.right_bat.x, self.right_bat.y),
            bat_size=(self.settings.bat_width, self.settings.bat_height),
            points=(self.points[0], self.points[1]),
            running=self.is_running,
            started=self.started,
        )

    # -- PRIVATE HELPERS ---
    def _reset_court(self) -> None:
        self.rng = random.Random(self.seed)
        self.ball = Ball.centered(self.field, self.settings.ball_radius)
        self.left_bat = Bat.for_side(Side.LEFT, self.settings)
        self.right_bat = Bat.for_side(Side.RIGHT, self.settings)
        self.points = [0, 0]
        self.held: dict[Side, dict[int, Intent]] = {Side.LEFT: {}, Side.RIGHT: {}}
        self.remote_intent = Intent.NONE
        self._state_pending = False

    def _random_side(self) -> Side:
        return Side.LEFT if self.rng.random() < 0.5 else Side.RIGHT

    def _serve(self, towards: Side) -> None:
        physics.serve(self.ball, self.field, towards, self.settings.ball_speed, self.rng)

    def _binding_for(self, code: int) -> Optional[tuple[Side, Intent]]:
        """
        Which bat a key drives, and in which direction.
        ----
        Two players on one keyboard each get their own keys. Otherwise every binding drives the one local bat.
        """
        mode = self.session.mode
        if mode is None or self.session.is_terminal:
            return None
        for side, keys in self.settings.key_bindings.items():
            if code not in keys.codes():
                continue
            intent = Intent.UP if code == keys.up else Intent.DOWN
            if mode == Mode.TWOPLAYER:
                return side, intent
            if mode == Mode.SINGLEPLAYER:
                return Side.LEFT, intent
            return self.session.owned_side, intent
        return None

    def _input_changed(self, side: Side) -> None:
        if self.sync is None or self.session.state != SessionState.PLAYING:
            return
        self.sync.send_bat_if_changed(self.bat(side), self.intent(side))

    # --- online session ---
    def _host_room(self) -> None:
        self.session = Session.host()
        try:
            channel = self.transport.connect(None)
        except TransportError as error:
            logger.warning("could not open a room: %s", error)
            self.session.connection_failed()
            return
        self._attach(channel, Role.HOST)
        self._serve(self._random_side())
        self.session.open_room(channel.room_id)
        self.events.emit(Notification.OPEN_ROOM, channel.room_id)

    def _join_room(self, room_id: str) -> None:
        self.session = Session.guest(room_id)
        try:
            channel = self.transport.connect(room_id)
        except TransportError as error:
            logger.warning("could not join room %s: %s", room_id, error)
            self.session.connection_failed()
            return
        self._attach(channel, Role.GUEST)
        if not self.sync.say_hello():
            self.session.connection_failed()

    def _attach(self, channel: PeerChannel, role: Role) -> None:
        self.sync = PeerSync(channel, role, self.settings.network_tick_ms)
        generation = self._generation
        channel.on_message(lambda raw: self._on_peer_message(generation, raw))
        channel.on_disconnect(lambda: self._on_peer_disconnect(generation))

    def _end_session(self) -> None:
        self._generation += 1
        if self.sync is not None:
            self.sync.close()
            self.sync = None

    @frame_safe
    def _on_peer_message(self, generation: int, raw: Any) -> None:
        if generation != self._generation or self.sync is None:
            return
        message = self.sync.decode(raw)
        if message is None:
            return

        if isinstance(message, HelloMessage):
            self._on_hello(message)
        elif isinstance(message, ReadyMessage):
            if self.session.set_remote_ready():
                self._begin_online_play()
        elif isinstance(message, StateMessage) and self.sync.is_ball_authoritative:
            logger.warning("room %s: host ignores state sent by the guest", self.room_id)
        else:
            self.sync.queue(message)

    def _on_hello(self, message: HelloMessage) -> None:
        if message.role == self.sync.role:
            logger.warning("room %s: peer claims our role %s, ignored", self.room_id, message.role)
            return
        if self.sync.role == Role.HOST:
            if self.session.peer_joined():
                self.sync.say_hello()
        else:
            self.session.joined()

    def _on_peer_disconnect(self, generation: int) -> None:
        if generation != self._generation:
            return
        was_connecting = self.session.state == SessionState.CONNECTING
        if not self.session.disconnected():
            return
        if self.sync is not None:
            self.sync.inbox.clear()
        self.held = {Side.LEFT: {}, Side.RIGHT: {}}
        self.remote_intent = Intent.NONE
        if not was_connecting:
            self.events.emit(Notification.DISCONNECTED)

    def _begin_online_play(self) -> None:
        side = self.session.owned_side
        self.sync.send_bat(self.bat(side), self.intent(side))
        self._state_pending = self.session.is_ball_authoritative
        self.events.emit(Notification.PLAYING_ONLINE)

    def _apply_state(self, message: StateMessage) -> None:
        before = list(self.points)
        apply_state_message(message, self.ball, self.bat(Side.LEFT), self.points, self.field)
        if message.hit:
            self.events.emit(Notification.COLLISION)
        for side in (Side.LEFT, Side.RIGHT):
            if self.points[side.index] > before[side.index]:
                self.events.emit(Notification.POINT, side)
