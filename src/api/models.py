"""Messages exchanged between the two peers of an online room"""

import json
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError, field_validator

from src.core.config import PROTOCOL_VERSION
from src.core.exceptions import InvalidMessageError
from src.core.shared_types import Intent, Role

Coordinate = Annotated[float, Field(allow_inf_nan=False)]


class HelloMessage(BaseModel):
    """First message of each side once the channel is up. The guest says hello, the host answers."""

    type: Literal["hello"] = "hello"
    role: Role
    proto: int = PROTOCOL_VERSION

    @field_validator("proto")
    @classmethod
    def validate_proto(cls, value: int) -> int:
        if value != PROTOCOL_VERSION:
            raise InvalidMessageError(
                f"Peer speaks protocol {value}, expected {PROTOCOL_VERSION}."
            )
        return value


class ReadyMessage(BaseModel):
    type: Literal["ready"] = "ready"


class BatMessage(BaseModel):
    """Position (and current direction) of the sender's own bat."""

    type: Literal["bat"] = "bat"
    y: Coordinate
    intent: Intent = Intent.NONE


class StateMessage(BaseModel):
    """Authoritative ball + score, sent by the host. Also carries the host's bat."""

    type: Literal["state"] = "state"
    x: Coordinate
    y: Coordinate
    vx: Coordinate
    vy: Coordinate
    points: tuple[int, int]
    bat_y: Coordinate
    hit: bool = False

    @field_validator("points")
    @classmethod
    def validate_points(cls, value: tuple[int, int]) -> tuple[int, int]:
        if any(p < 0 for p in value):
            raise InvalidMessageError(f"Scores cannot be negative: {value}")
        return value


PeerMessage = Annotated[
    Union[HelloMessage, ReadyMessage, BatMessage, StateMessage],
    Field(discriminator="type"),
]

_peer_message_adapter: TypeAdapter[PeerMessage] = TypeAdapter(PeerMessage)


def parse_message(raw: Any) -> PeerMessage:
    """
    Decode whatever the transport handed over (dict, JSON str or bytes) into a message.
    ----
    Raises InvalidMessageError for anything that is not a well formed message.
    """
    try:
        if isinstance(raw, (str, bytes, bytearray)):
            raw = json.loads(raw)
        return _peer_message_adapter.validate_python(raw)
    except (ValidationError, ValueError, InvalidMessageError) as error:
        raise InvalidMessageError(f"Cannot interpret peer message: {raw!r}") from error


def dump_message(message: BaseModel) -> dict[str, Any]:
    """JSON-safe dict to hand to the transport"""
    return message.model_dump(mode="json")
