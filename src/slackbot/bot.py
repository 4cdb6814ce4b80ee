"""
SlackBot: a single bot connection to the Slack Real Time Messaging API.

Lifecycle: CONNECTING -> CONNECTED -> DISCONNECTED (terminal). Once
connected, three kinds of task run against the same connection: the receive
loop, the heartbeat loop, and one short-lived task per inbound frame. Any of
them, or the embedding application, may trigger disconnection; exactly one
trigger closes the connection and posts to ``done``.
"""

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Any, Coroutine, Optional

import httpx
from websockets.exceptions import ConnectionClosedOK

from slackbot.counters import AtomicCounter, AtomicFlag
from slackbot.dispatch import EventDispatcher, Handlers
from slackbot.errors import (
    AlreadyDisconnectedError,
    CallbackError,
    HeartbeatTimeout,
    NotConnectedError,
    SlackBotError,
    TransportError,
)
from slackbot.handshake import Handshake
from slackbot.heartbeat import DEFAULT_INTERVAL_S, DEFAULT_MAX_MISSED, HeartbeatMonitor
from slackbot.models.connect import TeamInfo
from slackbot.transport.dialer import Dialer
from slackbot.transport.frames import build_message
from slackbot.transport.http import DEFAULT_BASE_URL, HttpClient

logger = logging.getLogger(__name__)


class SessionState(str, enum.Enum):
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


@dataclass(frozen=True)
class Disconnected:
    """Posted once on ``SlackBot.done``.

    ``reason`` is None after an explicit disconnect(). Otherwise it is the
    HeartbeatTimeout or the TransportError that ended the session.
    """
    reason: Optional[SlackBotError] = None


class SlackBot:
    """Async RTM bot. Construct, assign handlers, then ``await start(token)``.

    The embedding application drains ``callback_errors`` and ``done`` from its
    own loop.
    """

    def __init__(
        self,
        *,
        handlers: Optional[Handlers] = None,
        base_url: str = DEFAULT_BASE_URL,
        http: Optional[HttpClient] = None,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
        dialer: Optional[Dialer] = None,
        heartbeat_interval: float = DEFAULT_INTERVAL_S,
        max_missed_pongs: int = DEFAULT_MAX_MISSED,
        logger: logging.Logger = logger,
    ):
        self._logger = logger
        self._base_url = base_url
        self._http = http
        self._http_transport = http_transport
        self._dialer = dialer or Dialer(logger=logger)

        self.callback_errors: asyncio.Queue[CallbackError] = asyncio.Queue()
        self.done: asyncio.Queue[Disconnected] = asyncio.Queue()

        self.id = ""
        self.name = ""
        self.team = TeamInfo()

        self._state = SessionState.CONNECTING
        self._ws: Any = None
        self._message_id = AtomicCounter()
        self._disconnected = AtomicFlag()
        self._heartbeat = HeartbeatMonitor(
            send=self._send,
            on_timeout=self._on_heartbeat_timeout,
            interval=heartbeat_interval,
            max_missed=max_missed_pongs,
            logger=logger,
        )
        self._dispatcher = EventDispatcher(
            handlers or Handlers(),
            on_pong=self._heartbeat.acknowledge,
            callback_errors=self.callback_errors,
            logger=logger,
        )
        self._listen_task: Optional[asyncio.Task[None]] = None
        self._heartbeat_task: Optional[asyncio.Task[None]] = None
        self._dispatch_tasks: set[asyncio.Task[None]] = set()

    @property
    def handlers(self) -> Handlers:
        return self._dispatcher.handlers

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def connected(self) -> bool:
        return self._state is SessionState.CONNECTED

    @property
    def heartbeat(self) -> HeartbeatMonitor:
        return self._heartbeat

    @property
    def last_message_id(self) -> int:
        return self._message_id.value

    async def start(self, token: str) -> None:
        """Handshake, dial, then start the receive and heartbeat loops.

        Handshake and dial failures are raised here and leave the bot in
        CONNECTING, so ``start`` may be retried.
        """
        if self._state is not SessionState.CONNECTING:
            raise SlackBotError("invalid_state", f"cannot start a bot that is {self._state.value}")
        http = self._http or HttpClient(base_url=self._base_url, transport=self._http_transport)
        try:
            info = await Handshake(http, logger=self._logger).connect(token)
        finally:
            if self._http is None:
                await http.close()
        self.id = info.self_.id
        self.name = info.self_.name
        self.team = info.team
        self._ws = await self._dialer.dial(info.url)
        self._state = SessionState.CONNECTED
        self._logger.info("Connected. Listening for events.")
        self._listen_task = asyncio.create_task(self._listen(), name="slackbot-listen")
        self._heartbeat_task = asyncio.create_task(self._heartbeat.run(), name="slackbot-heartbeat")

    async def send_message(self, channel: str, text: str) -> int:
        """Send ``text`` to ``channel`` and return the message id used.

        The id is consumed even if the write fails.
        """
        message_id = self._message_id.increment()
        self._logger.info("Sending message %s to channel %s", text, channel)
        await self._send(build_message(message_id, channel, text))
        return message_id

    async def disconnect(self) -> None:
        """Close the connection and post to ``done``.

        Raises AlreadyDisconnectedError if another trigger got there first.
        """
        if self._ws is None:
            raise NotConnectedError()
        if not await self._teardown(None):
            raise AlreadyDisconnectedError()

    async def wait_dispatched(self) -> None:
        """Wait for the dispatch tasks currently in flight."""
        while self._dispatch_tasks:
            await asyncio.gather(*list(self._dispatch_tasks))

    async def _send(self, frame: str) -> None:
        ws = self._ws
        if ws is None:
            raise NotConnectedError()
        if self._disconnected.is_set():
            raise TransportError("bot is disconnected")
        try:
            await ws.send(frame)
        except Exception as e:
            raise TransportError(f"send failed: {e}") from e

    async def _listen(self) -> None:
        """Receive frames until the connection fails, spawning a dispatch task
        for each. Always ends in teardown."""
        ws = self._ws
        while True:
            try:
                raw = await ws.recv()
            except ConnectionClosedOK as e:
                self._logger.info("Connection closed: %s", e)
                reason = TransportError(f"connection closed: {e}")
                break
            except Exception as e:
                self._logger.warning("Error receiving from websocket: %s", e)
                reason = TransportError(f"receive failed: {e}")
                break
            self._spawn(self._dispatcher.dispatch(raw))
        await self._teardown_quietly(reason)

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coro)
        self._dispatch_tasks.add(task)
        task.add_done_callback(self._dispatch_tasks.discard)

    async def _on_heartbeat_timeout(self, exc: HeartbeatTimeout) -> None:
        await self._teardown_quietly(exc)

    async def _teardown_quietly(self, reason: Optional[SlackBotError]) -> None:
        # Internal triggers: losing the race is expected and not reported.
        try:
            await self._teardown(reason)
        except TransportError as e:
            self._logger.warning("Error while disconnecting: %s", e)

    async def _teardown(self, reason: Optional[SlackBotError]) -> bool:
        """Close the connection once. Returns False if already disconnected."""
        if not self._disconnected.compare_and_set(False, True):
            return False
        self._logger.info("Disconnecting.")
        self._state = SessionState.DISCONNECTED
        heartbeat = self._heartbeat_task
        if heartbeat is not None and heartbeat is not asyncio.current_task():
            heartbeat.cancel()
        try:
            await self._ws.close()
        except Exception as e:
            raise TransportError(f"close failed: {e}") from e
        finally:
            self.done.put_nowait(Disconnected(reason))
        return True
