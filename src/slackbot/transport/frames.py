"""
Frame construction and parsing for the RTM connection.

Inbound frames are parsed in two passes: the first reads only the ``type``
tag, the second validates the full frame against the variant for that tag.
"""

from typing import Union

from pydantic import TypeAdapter, ValidationError

from slackbot.errors import DispatchDrop
from slackbot.models.events import (
    REGISTERED_TYPES,
    InboundEvent,
    OutboundMessage,
    Ping,
    TypeOnlyFrame,
)

_EVENT_ADAPTER: TypeAdapter[InboundEvent] = TypeAdapter(InboundEvent)


def build_message(message_id: int, channel: str, text: str) -> str:
    """Build an outbound chat message frame as JSON text."""
    return OutboundMessage(id=message_id, channel=channel, text=text).model_dump_json()


def build_ping(ping_id: int) -> str:
    return Ping(id=ping_id).model_dump_json()


def parse_frame_type(raw: Union[str, bytes]) -> str:
    try:
        return TypeOnlyFrame.model_validate_json(raw).type
    except ValidationError as e:
        if all(err["type"] == "missing" and err["loc"] == ("type",) for err in e.errors()):
            raise DispatchDrop("Frame has no type tag", untagged=True) from e
        raise DispatchDrop(f"Frame has no readable type tag: {e.error_count()} error(s)") from e


def parse_frame(raw: Union[str, bytes]) -> InboundEvent:
    """Parse an inbound frame into its event variant. Raises DispatchDrop if
    the tag is not registered or the frame does not fit the variant."""
    frame_type = parse_frame_type(raw)
    if frame_type not in REGISTERED_TYPES:
        raise DispatchDrop(f"Unregistered frame type {frame_type!r}", frame_type)
    try:
        return _EVENT_ADAPTER.validate_json(raw)
    except ValidationError as e:
        raise DispatchDrop(f"Malformed {frame_type!r} frame: {e.error_count()} error(s)", frame_type) from e
