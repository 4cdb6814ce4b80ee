"""CLI: slackbot connect, slackbot send, slackbot listen"""

import asyncio
import json
from typing import Optional
from urllib.parse import urlsplit

import click
from rich.console import Console

from slackbot.dispatch import Handlers
from slackbot.errors import SlackBotError
from slackbot.handshake import Handshake
from slackbot.models.events import Message

console = Console()


def _get_token(token: Optional[str]) -> str:
    from slackbot.cli.main import _get_token
    return _get_token(token)


def _run(coro):
    from slackbot.cli.main import _run
    return _run(coro)


token_option = click.option("--token", envvar="SLACK_BOT_TOKEN", default=None, help="Bot token")


@click.command("connect")
@token_option
@click.option("--json-output", "--json", is_flag=True)
def connect_cmd(token: Optional[str], json_output: bool):
    """Call rtm.connect and print the session details."""
    from slackbot.cli.main import _make_http

    token = _get_token(token)

    async def _connect():
        http = _make_http()
        try:
            return await Handshake(http).connect(token)
        finally:
            await http.close()

    try:
        info = _run(_connect())
    except SlackBotError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1)
    if json_output:
        click.echo(json.dumps({"host": urlsplit(info.url).hostname, "id": info.self_.id,
                               "name": info.self_.name, "team": info.team.name}))
        return
    console.print(f"[green]{info.self_.name}[/green] (ID: {info.self_.id}) on {info.team.name}")
    console.print(f"[dim]Session host: {urlsplit(info.url).hostname}[/dim]")


@click.command("send")
@click.argument("channel")
@click.argument("text")
@token_option
def send_cmd(channel: str, text: str, token: Optional[str]):
    """Send a one-shot message to CHANNEL."""
    from slackbot.cli.main import _make_bot, _make_http

    token = _get_token(token)

    async def _send():
        http = _make_http()
        bot = _make_bot(http)
        try:
            await bot.start(token)
        finally:
            await http.close()
        try:
            return await bot.send_message(channel, text)
        finally:
            if bot.connected:
                await bot.disconnect()

    try:
        message_id = _run(_send())
    except SlackBotError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1)
    console.print(f"[green]Sent message {message_id} to {channel}[/green]")


@click.command("listen")
@token_option
@click.option("--echo", is_flag=True, help="Reply to every message with its own text")
def listen_cmd(token: Optional[str], echo: bool):
    """Print incoming messages until the session ends (Ctrl+C to exit)."""
    from slackbot.cli.main import _make_bot, _make_http

    token = _get_token(token)

    async def _listen():
        handlers = Handlers()
        http = _make_http()
        bot = _make_bot(http, handlers)

        async def on_message(event: Message) -> None:
            console.print(f"[cyan]{event.channel}[/cyan] [bold]{event.user}[/bold]: {event.text}")
            if echo and event.user != bot.id:
                await bot.send_message(event.channel, event.text)

        async def report_errors() -> None:
            while True:
                err = await bot.callback_errors.get()
                console.print(f"[red]{err}[/red]")

        handlers.on_hello = lambda _event: console.print("[green]Session ready.[/green]")
        handlers.on_message = on_message
        try:
            await bot.start(token)
        finally:
            await http.close()
        console.print(f"[dim]Listening as {bot.name} (ID: {bot.id})[/dim]")
        reporter = asyncio.create_task(report_errors())
        try:
            finished = await bot.done.get()
            await bot.wait_dispatched()
        finally:
            reporter.cancel()
        return finished

    try:
        finished = _run(_listen())
    except KeyboardInterrupt:
        return
    except SlackBotError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1)
    if finished.reason is not None:
        console.print(f"[yellow]Disconnected: {finished.reason}[/yellow]")
    else:
        console.print("[dim]Disconnected.[/dim]")
