"""
In-memory implementation of the PeerTransport protocol.

Both peers live in the same process and share a LoopbackHub. Sent messages are JSON encoded and queued; nothing
arrives until `hub.deliver()` runs, which plays the part of the network (and of the event loop handing incoming
messages to callbacks between frames).
"""

import json
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Optional
from uuid import uuid4

from src.core.exceptions import TransportError
from src.core.shared_types import Role
from src.transport.transport import DisconnectHandler, MessageHandler

logger = logging.getLogger(__name__)


class LoopbackChannel:
    """One end of a loopback room"""

    def __init__(self, hub: "LoopbackHub", room_id: str, role: Role) -> None:
        self.hub = hub
        self.room_id = room_id
        self.role = role
        self.closed = False
        self._message_handler: Optional[MessageHandler] = None
        self._disconnect_handler: Optional[DisconnectHandler] = None

    def send(self, message: dict[str, Any]) -> None:
        if self.closed:
            raise TransportError(f"Channel to room {self.room_id} is closed.")
        peer = self.hub.peer_of(self)
        if peer is None:
            raise TransportError(f"Nobody else in room {self.room_id}.")
        self.hub.enqueue(_Delivery(peer, payload=json.dumps(message)))

    def on_message(self, handler: MessageHandler) -> None:
        self._message_handler = handler

    def on_disconnect(self, handler: DisconnectHandler) -> None:
        self._disconnect_handler = handler

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._message_handler = None
        self._disconnect_handler = None
        peer = self.hub.peer_of(self)
        if peer is not None:
            self.hub.enqueue(_Delivery(peer, payload=None))
        self.hub.leave(self)

    # -- called by the hub --
    def _receive(self, payload: Optional[str]) -> None:
        if self.closed:
            return
        if payload is None:
            self.closed = True
            handler = self._disconnect_handler
            self._message_handler = None
            self._disconnect_handler = None
            self.hub.leave(self)
            if handler is not None:
                handler()
            return
        if self._message_handler is None:
            logger.debug("room %s: %s has no message handler, dropped %s", self.room_id, self.role, payload)
            return
        self._message_handler(payload)


@dataclass
class _Delivery:
    target: LoopbackChannel
    payload: Optional[str]  # None means the other end went away


@dataclass
class _Room:
    host: Optional[LoopbackChannel] = None
    guest: Optional[LoopbackChannel] = None


@dataclass
class LoopbackHub:
    """The shared 'network': rooms and in-flight messages."""

    rooms: dict[str, _Room] = field(default_factory=dict)
    in_flight: deque[_Delivery] = field(default_factory=deque)

    def transport(self) -> "LoopbackTransport":
        return LoopbackTransport(self)

    # --- network simulation ---
    def deliver(self) -> int:
        """Hand every queued message to its receiver (including replies queued meanwhile). Returns how many."""
        delivered = 0
        while self.in_flight:
            delivery = self.in_flight.popleft()
            delivery.target._receive(delivery.payload)
            delivered += 1
        return delivered

    def drop_next(self) -> bool:
        """Lose the oldest message still in flight"""
        if not self.in_flight:
            return False
        self.in_flight.popleft()
        return True

    def inject(self, channel: LoopbackChannel, payload: Any) -> None:
        """Queue a raw payload for a channel (used to simulate garbage on the wire)."""
        self.enqueue(_Delivery(channel, payload=payload))

    def sever(self, room_id: str) -> None:
        """Cut the room: both ends receive a disconnect."""
        room = self.rooms.get(room_id)
        if room is None:
            return
        for channel in (room.host, room.guest):
            if channel is not None:
                self.enqueue(_Delivery(channel, payload=None))

    # --- room bookkeeping ---
    def enqueue(self, delivery: _Delivery) -> None:
        self.in_flight.append(delivery)

    def open_room(self) -> LoopbackChannel:
        room_id = uuid4().hex[:8]
        channel = LoopbackChannel(self, room_id, Role.HOST)
        self.rooms[room_id] = _Room(host=channel)
        logger.info("room %s opened", room_id)
        return channel

    def join_room(self, room_id: str) -> LoopbackChannel:
        room = self.rooms.get(room_id)
        if room is None or room.host is None:
            raise TransportError(f"Room {room_id} does not exist.")
        if room.guest is not None:
            raise TransportError(f"Room {room_id} is full.")
        channel = LoopbackChannel(self, room_id, Role.GUEST)
        room.guest = channel
        logger.info("room %s joined", room_id)
        return channel

    def peer_of(self, channel: LoopbackChannel) -> Optional[LoopbackChannel]:
        room = self.rooms.get(channel.room_id)
        if room is None:
            return None
        peer = room.guest if channel.role == Role.HOST else room.host
        if peer is None or peer.closed:
            return None
        return peer

    def leave(self, channel: LoopbackChannel) -> None:
        room = self.rooms.get(channel.room_id)
        if room is None:
            return
        if room.host is channel:
            room.host = None
        if room.guest is channel:
            room.guest = None
        if room.host is None and room.guest is None:
            self.rooms.pop(channel.room_id, None)


class LoopbackTransport:
    """PeerTransport for one peer, backed by a shared hub"""

    def __init__(self, hub: LoopbackHub) -> None:
        self.hub = hub

    def connect(self, room_id: Optional[str] = None) -> LoopbackChannel:
        if room_id is None:
            return self.hub.open_room()
        return self.hub.join_room(room_id)
