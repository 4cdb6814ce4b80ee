"""
Integration tests against the real Slack RTM service.

Requires environment variables:
  SLACK_BOT_TOKEN  a bot token with RTM access
  SLACK_CHANNEL    (optional) channel id to post a test message to

Run: SLACKBOT_INTEGRATION=1 pytest tests/integration/ -v
"""

import asyncio
import os

import pytest

from slackbot import Handlers, ProtocolError, SessionState, SlackBot

SKIP = not os.environ.get("SLACKBOT_INTEGRATION")
TOKEN = os.environ.get("SLACK_BOT_TOKEN", "")
CHANNEL = os.environ.get("SLACK_CHANNEL", "")

pytestmark = pytest.mark.skipif(SKIP, reason="SLACKBOT_INTEGRATION not set")


class TestConnectionLifecycle:
    @pytest.mark.asyncio
    async def test_connects_and_receives_hello(self):
        hello = asyncio.Event()
        bot = SlackBot(handlers=Handlers(on_hello=lambda _event: hello.set()))
        await bot.start(TOKEN)
        assert bot.state is SessionState.CONNECTED
        assert bot.id
        await asyncio.wait_for(hello.wait(), timeout=15)
        await bot.disconnect()
        finished = await asyncio.wait_for(bot.done.get(), timeout=5)
        assert finished.reason is None

    @pytest.mark.asyncio
    async def test_rejects_invalid_token(self):
        bot = SlackBot()
        with pytest.raises(ProtocolError):
            await bot.start("xoxb-invalid")


class TestMessaging:
    @pytest.mark.asyncio
    @pytest.mark.skipif(not CHANNEL, reason="SLACK_CHANNEL not set")
    async def test_send_message(self):
        bot = SlackBot()
        await bot.start(TOKEN)
        try:
            assert await bot.send_message(CHANNEL, "slackbot-rtm integration test") == 1
        finally:
            await bot.disconnect()
