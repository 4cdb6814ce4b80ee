"""
Event dispatch: classify an inbound frame and invoke the handler bound to
its variant.

Each frame is dispatched on its own task, so handler completion order across
frames is not guaranteed. Within a frame, parse then invoke is sequential.
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Union

from slackbot.errors import CallbackError, DispatchDrop
from slackbot.models.events import (
    REGISTERED_TYPES,
    DndUpdatedUser,
    Hello,
    Message,
    Pong,
    PresenceChange,
)
from slackbot.transport.frames import parse_frame

logger = logging.getLogger(__name__)

Handler = Callable[[Any], Union[None, Awaitable[None]]]


@dataclass
class Handlers:
    """One slot per event variant. A handler may be a plain function, run in a
    worker thread, or a coroutine function; raising signals failure."""
    on_hello: Optional[Callable[[Hello], Union[None, Awaitable[None]]]] = None
    on_message: Optional[Callable[[Message], Union[None, Awaitable[None]]]] = None
    on_presence_change: Optional[Callable[[PresenceChange], Union[None, Awaitable[None]]]] = None
    on_dnd_updated_user: Optional[Callable[[DndUpdatedUser], Union[None, Awaitable[None]]]] = None


class EventDispatcher:
    def __init__(
        self,
        handlers: Handlers,
        on_pong: Callable[[int], None],
        callback_errors: "asyncio.Queue[CallbackError]",
        logger: logging.Logger = logger,
    ):
        self.handlers = handlers
        self._on_pong = on_pong
        self._callback_errors = callback_errors
        self._logger = logger

    async def dispatch(self, raw: Union[str, bytes]) -> None:
        self._logger.debug("Received event: %s", raw)
        try:
            event = parse_frame(raw)
        except DispatchDrop as e:
            if e.untagged or (e.frame_type is not None and e.frame_type not in REGISTERED_TYPES):
                self._logger.debug("Dropping frame: %s", e)
            else:
                self._logger.warning("Dropping frame: %s", e)
            return

        handler: Optional[Handler]
        match event:
            case Pong(reply_to=reply_to):
                self._on_pong(reply_to)
                return
            case Message(hidden=True):
                # edits and deletions
                return
            case Message():
                handler = self.handlers.on_message
            case Hello():
                handler = self.handlers.on_hello
            case PresenceChange():
                handler = self.handlers.on_presence_change
            case DndUpdatedUser():
                handler = self.handlers.on_dnd_updated_user
            case _:
                self._logger.debug("No dispatch branch for %r", event)
                return

        if handler is None:
            return
        try:
            if inspect.iscoroutinefunction(handler):
                await handler(event)
            else:
                # a blocking plain function must not stall the event loop
                result = await asyncio.to_thread(handler, event)
                if inspect.isawaitable(result):
                    await result
        except Exception as e:
            self._logger.debug("Handler for %s raised: %s", event.type, e)
            self._callback_errors.put_nowait(CallbackError(event, e))
