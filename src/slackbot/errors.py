"""
slackbot error types.

Handshake and dial failures are raised to the caller of ``start()``.
Everything that goes wrong after the session is connected ends up on one of
the bot's two queues instead.
"""

from typing import Any, Optional


class SlackBotError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details


class TransportError(SlackBotError):
    """HTTP or connection level failure."""

    def __init__(self, message: str, code: str = "transport_error", details: Optional[dict[str, Any]] = None):
        super().__init__(code, message, details)


class NotConnectedError(TransportError):
    def __init__(self, message: str = "bot is not connected"):
        super().__init__(message, code="not_connected")


class ProtocolError(SlackBotError):
    """The handshake reported failure or returned a body we could not parse."""

    def __init__(self, message: str, error: Optional[str] = None):
        super().__init__("protocol_error", message, {"error": error} if error is not None else None)
        self.error = error


class DispatchDrop(SlackBotError):
    """An inbound frame that is dropped instead of dispatched. Never escalated."""

    def __init__(self, message: str, frame_type: Optional[str] = None, untagged: bool = False):
        super().__init__("dispatch_drop", message, {"type": frame_type} if frame_type else None)
        self.frame_type = frame_type
        # valid JSON object without a type tag, e.g. a reply to a sent message
        self.untagged = untagged


class CallbackError(SlackBotError):
    """A registered handler raised. The original exception is ``__cause__``."""

    def __init__(self, event: Any, exc: BaseException):
        event_type = getattr(event, "type", "unknown")
        super().__init__("callback_error", f"{event_type} handler failed: {exc}", {"type": event_type})
        self.event = event
        self.__cause__ = exc


class HeartbeatTimeout(SlackBotError):
    def __init__(self, last_ping: int, last_pong: int):
        super().__init__(
            "heartbeat_timeout",
            f"no pong for ping {last_ping} (last acknowledged: {last_pong})",
            {"last_ping": last_ping, "last_pong": last_pong},
        )
        self.last_ping = last_ping
        self.last_pong = last_pong


class AlreadyDisconnectedError(SlackBotError):
    def __init__(self, message: str = "bot is already disconnected"):
        super().__init__("already_disconnected", message)
