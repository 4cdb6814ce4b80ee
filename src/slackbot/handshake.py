"""
Handshake: exchange a bot token for an RTM session URL and the bot's identity.
"""

import logging

from pydantic import ValidationError

from slackbot.errors import ProtocolError
from slackbot.models.connect import ConnectResponse
from slackbot.transport.http import HttpClient

logger = logging.getLogger(__name__)

CONNECT_PATH = "/rtm.connect"


class Handshake:
    def __init__(self, http: HttpClient, logger: logging.Logger = logger):
        self._http = http
        self._logger = logger

    async def connect(self, token: str) -> ConnectResponse:
        """Call rtm.connect once. No retries; the caller decides whether to try again."""
        self._logger.info("Getting websocket URL from Slack web API")
        body = await self._http.get(CONNECT_PATH, params={"token": token})
        try:
            result = ConnectResponse.model_validate_json(body)
        except ValidationError as e:
            raise ProtocolError(f"Malformed rtm.connect response: {e.error_count()} error(s)") from e
        if not result.ok:
            raise ProtocolError(f"Slack error: {result.error}", error=result.error)
        if not result.url:
            raise ProtocolError("rtm.connect response carries no url")
        return result
