"""
Peer synchronization for online rooms.

Roles
---
* The host (room creator) is ball-authoritative: it runs the full physics with both bats and scores the points.
* The guest only moves its own bat locally and shows the last ball state the host sent.

Traffic
---
* Each side sends its own bat on every change of direction, then every `network_tick_ms` while playing. The
  receiver keeps moving the opponent's bat in the reported direction until the next bat message.
* The host sends the ball + score every `network_tick_ms`, and right away after a bat hit or a point.
* No sequence numbers: the channel is ordered, and the newest message always wins. A lost message is simply
  superseded by the next one.
"""

import logging
from collections import deque
from typing import Any, Optional

from src.api.models import (
    BatMessage,
    HelloMessage,
    PeerMessage,
    ReadyMessage,
    StateMessage,
    dump_message,
    parse_message,
)
from src.core.exceptions import InvalidMessageError, TransportError
from src.core.shared_types import Intent, Role
from src.ponger.geometry import Ball, Bat, Field
from src.ponger.physics import clamp_bat
from src.transport.transport import PeerChannel

logger = logging.getLogger(__name__)


class SendTimer:
    """Fixed rate sending: due once per `interval_ms` of accumulated frame time."""

    def __init__(self, interval_ms: float) -> None:
        self.interval_ms = interval_ms
        self.elapsed_ms = 0.0

    def is_due(self, dt_ms: float) -> bool:
        self.elapsed_ms += max(dt_ms, 0)
        if self.elapsed_ms < self.interval_ms:
            return False
        # a long frame does not cause a burst of catch-up messages
        self.elapsed_ms %= self.interval_ms
        return True


class PeerSync:
    """Outgoing message building + incoming message buffering for one end of a room."""

    def __init__(self, channel: PeerChannel, role: Role, tick_ms: float) -> None:
        self.channel = channel
        self.role = role
        self.bat_timer = SendTimer(tick_ms)
        self.state_timer = SendTimer(tick_ms)
        self.inbox: deque[PeerMessage] = deque()
        self._last_intent: Optional[Intent] = None

    @property
    def is_ball_authoritative(self) -> bool:
        return self.role == Role.HOST

    # --- OUTGOING ---
    def say_hello(self) -> bool:
        return self._send(HelloMessage(role=self.role))

    def say_ready(self) -> bool:
        return self._send(ReadyMessage())

    def send_bat(self, bat: Bat, intent: Intent) -> bool:
        self._last_intent = intent
        return self._send(BatMessage(y=bat.y, intent=intent))

    def send_bat_if_changed(self, bat: Bat, intent: Intent) -> bool:
        """Input changes go out immediately, they determine the latency the opponent perceives."""
        if intent == self._last_intent:
            return False
        return self.send_bat(bat, intent)

    def send_state(self, ball: Ball, bat: Bat, points: list[int], hit: bool = False) -> bool:
        message = StateMessage(
            x=ball.x,
            y=ball.y,
            vx=ball.vx,
            vy=ball.vy,
            points=(points[0], points[1]),
            bat_y=bat.y,
            hit=hit,
        )
        return self._send(message)

    # --- INCOMING ---
    def decode(self, raw: Any) -> Optional[PeerMessage]:
        """Malformed messages are dropped; the last known good state stays in place."""
        try:
            return parse_message(raw)
        except InvalidMessageError as error:
            logger.warning("room %s: ignored peer message (%s)", self.channel.room_id, error)
            return None

    def queue(self, message: PeerMessage) -> None:
        self.inbox.append(message)

    def drain(self) -> list[PeerMessage]:
        messages = list(self.inbox)
        self.inbox.clear()
        return messages

    def close(self) -> None:
        self.inbox.clear()
        self.channel.close()

    # -- PRIVATE HELPERS ---
    def _send(self, message: Any) -> bool:
        try:
            self.channel.send(dump_message(message))
        except TransportError as error:
            logger.warning("room %s: could not send %s (%s)", self.channel.room_id, message.type, error)
            return False
        return True


def apply_bat_message(message: BatMessage, bat: Bat, field: Field) -> Intent:
    """
    The opponent's bat is wherever the opponent says it is (kept on the field).
    ----
    Returns the direction it is moving in, so the bat can be carried forward until the next message.
    """
    bat.y = message.y
    clamp_bat(bat, field)
    return message.intent


def apply_state_message(message: StateMessage, ball: Ball, bat: Bat, points: list[int], field: Field) -> None:
    """Guest side: the host's ball, score and bat replace ours wholesale, clamped to our own court."""
    ball.x = message.x
    ball.y = min(max(message.y, ball.r), field.height - ball.r)
    ball.vx = message.vx
    ball.vy = message.vy
    points[0], points[1] = message.points
    bat.y = message.bat_y
    clamp_bat(bat, field)
