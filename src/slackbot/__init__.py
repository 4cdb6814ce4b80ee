"""
slackbot: Slack Real Time Messaging (RTM) client for Python.

Connects a bot user over a persistent websocket, dispatches incoming events to
user callbacks, keeps the session alive with the RTM heartbeat and sends chat
messages.
"""

from slackbot.bot import Disconnected, SessionState, SlackBot
from slackbot.dispatch import Handlers
from slackbot.errors import (
    AlreadyDisconnectedError,
    CallbackError,
    DispatchDrop,
    HeartbeatTimeout,
    NotConnectedError,
    ProtocolError,
    SlackBotError,
    TransportError,
)
from slackbot.models.events import (
    DndUpdatedUser,
    EventType,
    Hello,
    Message,
    Pong,
    PresenceChange,
)

__version__ = "0.1.0"
__all__ = [
    "SlackBot",
    "SessionState",
    "Disconnected",
    "Handlers",
    "SlackBotError",
    "TransportError",
    "NotConnectedError",
    "ProtocolError",
    "DispatchDrop",
    "CallbackError",
    "HeartbeatTimeout",
    "AlreadyDisconnectedError",
    "EventType",
    "Hello",
    "Message",
    "Pong",
    "PresenceChange",
    "DndUpdatedUser",
]
