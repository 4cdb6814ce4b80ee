"""
RTM heartbeat.

The websocket connection is opened without protocol-level pings, so liveness
rides the frame stream: a ``ping`` frame goes out once per interval and the
server answers with a ``pong`` carrying the same id. The monitor never waits
for a particular pong; it only compares counters at the next tick.
"""

import asyncio
import logging
import threading
from typing import Awaitable, Callable

from slackbot.errors import HeartbeatTimeout, TransportError
from slackbot.transport.frames import build_ping

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_S = 60.0
DEFAULT_MAX_MISSED = 2


class HeartbeatMonitor:
    def __init__(
        self,
        send: Callable[[str], Awaitable[None]],
        on_timeout: Callable[[HeartbeatTimeout], Awaitable[None]],
        interval: float = DEFAULT_INTERVAL_S,
        max_missed: int = DEFAULT_MAX_MISSED,
        logger: logging.Logger = logger,
    ):
        self._send = send
        self._on_timeout = on_timeout
        self._interval = interval
        self._max_missed = max_missed
        self._logger = logger
        # last_ping is written by the heartbeat task, last_pong by pong dispatches.
        self._lock = threading.Lock()
        self._last_ping = 0
        self._last_pong = 0

    @property
    def last_ping(self) -> int:
        with self._lock:
            return self._last_ping

    @property
    def last_pong(self) -> int:
        with self._lock:
            return self._last_pong

    def acknowledge(self, reply_to: int) -> None:
        with self._lock:
            if reply_to > self._last_pong:
                self._last_pong = reply_to

    def next_probe(self) -> int:
        """Issue the next ping id, or raise HeartbeatTimeout if too many are unanswered."""
        with self._lock:
            if self._last_ping - self._last_pong > self._max_missed:
                raise HeartbeatTimeout(self._last_ping, self._last_pong)
            self._last_ping += 1
            return self._last_ping

    async def run(self) -> None:
        while True:
            try:
                ping_id = self.next_probe()
            except HeartbeatTimeout as e:
                self._logger.warning("Heartbeat timed out: %s", e)
                await self._on_timeout(e)
                return
            try:
                await self._send(build_ping(ping_id))
            except TransportError as e:
                self._logger.info("Heartbeat stopped: %s", e)
                return
            await asyncio.sleep(self._interval)
