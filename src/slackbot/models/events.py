"""
RTM event and frame models: https://api.slack.com/rtm

Only the variants the bot dispatches are modelled. Anything else the server
pushes is dropped after a debug record.
"""

from typing import Annotated, Literal, Optional, Union
from pydantic import BaseModel, Field


class EventType:
    HELLO = "hello"
    MESSAGE = "message"
    PONG = "pong"
    PRESENCE_CHANGE = "presence_change"
    DND_UPDATED_USER = "dnd_updated_user"


class TypeOnlyFrame(BaseModel):
    """First-pass view of an inbound frame: just the tag."""
    type: str


class Hello(BaseModel):
    """The client has successfully connected to the server."""
    type: Literal["hello"] = "hello"


class Message(BaseModel):
    """A message was sent to a channel.

    Edits and deletions arrive with ``hidden`` set and are never handed to
    ``on_message``.
    """
    type: Literal["message"] = "message"
    channel: str = ""
    user: str = ""
    text: str = ""
    ts: str = ""
    subtype: Optional[str] = None
    hidden: bool = False


class Pong(BaseModel):
    """Heartbeat acknowledgement."""
    type: Literal["pong"] = "pong"
    reply_to: int = 0


class PresenceChange(BaseModel):
    """A team member's presence changed."""
    type: Literal["presence_change"] = "presence_change"
    user: str = ""
    presence: str = ""


class DndStatus(BaseModel):
    dnd_enabled: bool = False
    next_dnd_start_ts: Optional[int] = None
    next_dnd_end_ts: Optional[int] = None


class DndUpdatedUser(BaseModel):
    """Do not disturb settings changed for a team member."""
    type: Literal["dnd_updated_user"] = "dnd_updated_user"
    user: str = ""
    dnd_status: DndStatus = Field(default_factory=DndStatus)


InboundEvent = Annotated[
    Union[Hello, Message, Pong, PresenceChange, DndUpdatedUser],
    Field(discriminator="type"),
]

REGISTERED_TYPES = frozenset({
    EventType.HELLO,
    EventType.MESSAGE,
    EventType.PONG,
    EventType.PRESENCE_CHANGE,
    EventType.DND_UPDATED_USER,
})


class OutboundMessage(BaseModel):
    id: int
    type: Literal["message"] = "message"
    channel: str
    text: str


class Ping(BaseModel):
    id: int
    type: Literal["ping"] = "ping"
