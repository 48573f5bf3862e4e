"""Protocol of the peer transport (a WebRTC data channel, a websocket relay, or the in-memory loopback)"""

from typing import Any, Callable, Optional, Protocol

MessageHandler = Callable[[Any], None]
DisconnectHandler = Callable[[], None]


class PeerChannel(Protocol):
    """One end of an ordered message channel between the two peers of a room."""

    room_id: str

    def send(self, message: dict[str, Any]) -> None:
        """Deliver a message to the other end. Raises TransportError if the channel is unusable."""
        ...

    def on_message(self, handler: MessageHandler) -> None:
        """Register the callback for incoming messages."""
        ...

    def on_disconnect(self, handler: DisconnectHandler) -> None:
        """Register the callback for the channel closing (or a join never completing)."""
        ...

    def close(self) -> None:
        """Leave the room. No callbacks fire after this."""
        ...


class PeerTransport(Protocol):
    """Rendezvous with the other peer"""

    def connect(self, room_id: Optional[str] = None) -> PeerChannel:
        """
        Without a room id: create a new room and return the host's end of it.
        With a room id: join that room. Raises TransportError if the room cannot be joined.
        """
        ...
