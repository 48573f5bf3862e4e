"""
Frame driver: everything the view does besides drawing.

Feeds elapsed real time into the game once per frame, forwards keyboard / focus events, keeps the room id in the URL
fragment and tells the view which status line to show. Canvas drawing and audio stay with the caller (the
`on_sound` callback and the snapshot returned by `frame()`).
"""

import logging
import time
from typing import Callable, Optional, assert_never
from urllib.parse import urlsplit, urlunsplit

from src.core.config import SPACE_KEY
from src.core.models import GameSnapshot
from src.core.shared_types import Mode, Notification, SessionState
from src.ponger.game import PongGame

logger = logging.getLogger(__name__)

FRAME_MS = 1000 / 60


def room_from_url(url: str) -> Optional[str]:
    """The room id travels as the URL fragment. An empty fragment (or a bare '#') means no room."""
    return urlsplit(url).fragment or None


def url_with_room(url: str, room_id: str) -> str:
    return urlunsplit(urlsplit(url)._replace(fragment=room_id))


class FrameDriver:
    def __init__(
        self,
        game: PongGame,
        clock: Callable[[], float] = time.monotonic,
        on_sound: Optional[Callable[[], None]] = None,
    ) -> None:
        self.game = game
        self.clock = clock
        self.on_sound = on_sound
        self.location_hash = ""
        self.prev_time: Optional[float] = None

        self.game.on(Notification.OPEN_ROOM, self._on_open_room)
        self.game.on(Notification.COLLISION, self._on_collision)
        self.game.on(Notification.DISCONNECTED, self._on_disconnected)

    @property
    def playing(self) -> bool:
        return self.game.is_running

    def open(self, url: str) -> bool:
        """
        Page load: a room in the URL joins it straight away (returns True).
        Otherwise the game is only reset for the menu and the caller shows it (returns False).
        """
        self.game.init()
        room_id = room_from_url(url)
        if room_id is None:
            return False
        self.start(Mode.ONLINE, room_id)
        return True

    def start(self, mode: Mode | str, room_hash: Optional[str] = None) -> None:
        self.game.init(mode, room_hash)
        self.prev_time = self.clock()

    def key_down(self, code: int) -> None:
        self.game.key_down(code)

    def key_up(self, code: int) -> None:
        self.game.key_up(code)

    def key_press(self, code: int) -> None:
        """Space starts / pauses offline, and signals readiness online."""
        if code != SPACE_KEY:
            return
        if self.game.state in (
            SessionState.OFFLINE,
            SessionState.WAITING_PLAYER,
            SessionState.WAITING_OPPONENT_TO_START,
        ):
            self.game.player_started()

    def blur(self) -> None:
        self.game.pause()

    def frame(self) -> GameSnapshot:
        """Advance the game by the real time since the previous frame and return what to paint."""
        now = self.clock()
        if self.prev_time is not None:
            self.game.tick((now - self.prev_time) * 1000)
        self.prev_time = now
        return self.game.to_snapshot()

    def run(
        self,
        frames: int,
        frame_ms: float = FRAME_MS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> GameSnapshot:
        """Fixed interval loop for headless use. Returns the last snapshot."""
        snapshot = self.game.to_snapshot()
        for _ in range(frames):
            snapshot = self.frame()
            sleep(frame_ms / 1000)
        return snapshot

    def info_text(self) -> str:
        """Status line shown over the paused court"""
        state = self.game.state
        match state:
            case SessionState.CONNECTING:
                return "Connecting..."
            case SessionState.CONNECTION_FAILED:
                return "Connection failed."
            case SessionState.WAITING_OPPONENT_TO_CONNECT:
                return "Share the URL with your opponent to connect!"
            case SessionState.WAITING_OPPONENT_TO_START:
                if not self.game.session.local_ready:
                    return self._press_space_text()
                return "Waiting opponent to start."
            case SessionState.OPPONENT_DISCONNECTED:
                return "Opponent disconnected."
            case SessionState.OFFLINE | SessionState.WAITING_PLAYER | SessionState.PLAYING:
                return self._press_space_text()
            case _:
                assert_never(state)

    # -- PRIVATE HELPERS ---
    def _press_space_text(self) -> str:
        return f'Press "SPACE" to {"continue" if self.game.started else "start"}!'

    def _on_open_room(self, room_id: str) -> None:
        self.location_hash = room_id

    def _on_collision(self) -> None:
        if self.on_sound is not None:
            self.on_sound()

    def _on_disconnected(self) -> None:
        logger.info("opponent left room %s", self.game.room_id)
