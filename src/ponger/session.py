"""
Session state machine: offline vs. online play, and the connect / ready handshake of an online room.

Every transition is a method. A transition that is not allowed from the current state is a no-op returning False,
terminal states (CONNECTION_FAILED, OPPONENT_DISCONNECTED) accept nothing until a fresh session is created.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from src.core.shared_types import (
    ONLINE_STATES,
    TERMINAL_STATES,
    Mode,
    Role,
    SessionState,
    Side,
)

logger = logging.getLogger(__name__)

HANDSHAKE_STATES = frozenset(
    {SessionState.WAITING_OPPONENT_TO_START, SessionState.WAITING_PLAYER}
)


@dataclass
class Session:
    state: SessionState
    mode: Optional[Mode] = None
    role: Optional[Role] = None
    room_id: Optional[str] = None
    paused: bool = True
    started: bool = False
    local_ready: bool = False
    remote_ready: bool = False
    playing_announced: bool = False

    # --- CREATION ---
    @classmethod
    def offline(cls, mode: Optional[Mode] = None) -> Session:
        """Local game. Without a mode this is the pre-menu placeholder that can never start."""
        return cls(state=SessionState.OFFLINE, mode=mode)

    @classmethod
    def host(cls) -> Session:
        return cls(
            state=SessionState.WAITING_OPPONENT_TO_CONNECT,
            mode=Mode.ONLINE,
            role=Role.HOST,
        )

    @classmethod
    def guest(cls, room_id: str) -> Session:
        return cls(
            state=SessionState.CONNECTING,
            mode=Mode.ONLINE,
            role=Role.GUEST,
            room_id=room_id,
        )

    # --- QUERIES ---
    @property
    def is_online(self) -> bool:
        return self.state in ONLINE_STATES

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def is_running(self) -> bool:
        """Should the simulation advance this frame?"""
        if self.state == SessionState.OFFLINE:
            return self.mode is not None and not self.paused
        return self.state == SessionState.PLAYING

    @property
    def is_ball_authoritative(self) -> bool:
        """The room creator runs ball physics; offline we always do."""
        return not self.is_online or self.role == Role.HOST

    @property
    def owned_side(self) -> Optional[Side]:
        """The bat this end of an online room controls. None offline (both bats are local)."""
        if self.role == Role.HOST:
            return Side.LEFT
        if self.role == Role.GUEST:
            return Side.RIGHT
        return None

    # --- OFFLINE TRANSITIONS ---
    def toggle_pause(self) -> bool:
        if self.state != SessionState.OFFLINE or self.mode is None:
            return False
        self.paused = not self.paused
        self.started = True
        return True

    def pause(self) -> bool:
        """Losing window focus pauses an offline game. Online play cannot be paused by one side."""
        if self.state != SessionState.OFFLINE or self.paused:
            return False
        self.paused = True
        return True

    # --- ONLINE TRANSITIONS ---
    def open_room(self, room_id: str) -> None:
        """Host got a room id from the transport"""
        self.room_id = room_id

    def joined(self) -> bool:
        """Guest: the host answered our hello"""
        return self._change_state(SessionState.CONNECTING, SessionState.WAITING_OPPONENT_TO_START)

    def peer_joined(self) -> bool:
        """Host: a guest said hello"""
        return self._change_state(
            SessionState.WAITING_OPPONENT_TO_CONNECT, SessionState.WAITING_OPPONENT_TO_START
        )

    def connection_failed(self) -> bool:
        """Joining a room failed (guest), or no room could be opened (host)"""
        if self.state not in (SessionState.CONNECTING, SessionState.WAITING_OPPONENT_TO_CONNECT):
            return False
        self._set_state(SessionState.CONNECTION_FAILED)
        return True

    def disconnected(self) -> bool:
        """
        The peer channel closed.
        ----
        While still connecting that means the join never completed, otherwise the opponent is gone.
        """
        if not self.is_online or self.is_terminal:
            return False
        if self.state == SessionState.CONNECTING:
            return self.connection_failed()
        self._set_state(SessionState.OPPONENT_DISCONNECTED)
        return True

    def set_local_ready(self) -> bool:
        """Local player pressed start. Returns True when this made the game start."""
        if self.state not in HANDSHAKE_STATES or self.local_ready:
            return False
        self.local_ready = True
        if self.remote_ready:
            return self._start_playing()
        self._set_state(SessionState.WAITING_OPPONENT_TO_START)
        return False

    def set_remote_ready(self) -> bool:
        """Opponent pressed start. Returns True when this made the game start."""
        if self.state not in HANDSHAKE_STATES or self.remote_ready:
            return False
        self.remote_ready = True
        if self.local_ready:
            return self._start_playing()
        # the opponent is waiting for us now
        self._set_state(SessionState.WAITING_PLAYER)
        return False

    # -- PRIVATE HELPERS ---
    def _start_playing(self) -> bool:
        self._set_state(SessionState.PLAYING)
        self.started = True
        if self.playing_announced:
            return False
        self.playing_announced = True
        return True

    def _change_state(self, expected: SessionState, new_state: SessionState) -> bool:
        if self.state != expected:
            logger.debug("ignored transition %s -> %s from %s", expected, new_state, self.state)
            return False
        self._set_state(new_state)
        return True

    def _set_state(self, new_state: SessionState) -> None:
        logger.info("session %s: %s -> %s", self.room_id or "offline", self.state, new_state)
        self.state = new_state
