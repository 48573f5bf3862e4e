"""
Type definitions used across layers
"""

from enum import IntEnum, StrEnum


class Mode(StrEnum):
    SINGLEPLAYER = "singleplayer"
    TWOPLAYER = "twoplayer"
    ONLINE = "online"


class Side(StrEnum):
    LEFT = "left"
    RIGHT = "right"

    @property
    def opponent(self) -> "Side":
        return Side.RIGHT if self == Side.LEFT else Side.LEFT

    @property
    def index(self) -> int:
        """Position of this side in the [left, right] points list"""
        return 0 if self == Side.LEFT else 1


class Role(StrEnum):
    """Which end of an online room we are. The host created the room."""

    HOST = "host"
    GUEST = "guest"


class Intent(IntEnum):
    """Bat movement direction. Screen coordinates: y grows downwards."""

    UP = -1
    NONE = 0
    DOWN = 1


class SessionState(StrEnum):
    OFFLINE = "offline"
    CONNECTING = "connecting"
    CONNECTION_FAILED = "connection failed"
    WAITING_OPPONENT_TO_CONNECT = "waiting opponent to connect"
    WAITING_OPPONENT_TO_START = "waiting opponent to start"
    WAITING_PLAYER = "waiting player"
    OPPONENT_DISCONNECTED = "opponent disconnected"
    PLAYING = "playing"


# --- Online only states. Nothing done while OFFLINE can lead into one of these.
ONLINE_STATES = frozenset(
    {
        SessionState.CONNECTING,
        SessionState.CONNECTION_FAILED,
        SessionState.WAITING_OPPONENT_TO_CONNECT,
        SessionState.WAITING_OPPONENT_TO_START,
        SessionState.WAITING_PLAYER,
        SessionState.OPPONENT_DISCONNECTED,
        SessionState.PLAYING,
    }
)

TERMINAL_STATES = frozenset(
    {SessionState.CONNECTION_FAILED, SessionState.OPPONENT_DISCONNECTED}
)


class Notification(StrEnum):
    OPEN_ROOM = "open_room"
    PLAYING_ONLINE = "playing_online"
    DISCONNECTED = "disconnected"
    COLLISION = "collision"
    POINT = "point"
