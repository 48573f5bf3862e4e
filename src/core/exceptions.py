"""Errors raised by the domain, protocol and transport layers."""


class PongerError(Exception):
    """Base class for all errors raised by this package."""


class GameStateError(PongerError):
    """Operation is not valid in the current session state."""


class InvalidSettingsError(PongerError):
    """Game settings that cannot produce a playable field."""


class InvalidMessageError(PongerError):
    """A peer message that could not be interpreted."""


class TransportError(PongerError):
    """The peer transport could not connect to a room or deliver a message."""
