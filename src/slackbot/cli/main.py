"""
slackbot CLI: `slackbot` command.

Commands:
  slackbot auth login            Save and validate a bot token
  slackbot connect               Handshake only, print the session details
  slackbot send <channel> <text> One-shot message
  slackbot listen [--echo]       Print incoming messages until disconnected
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

try:
    import click
    from rich.console import Console
    from rich.logging import RichHandler
except ImportError:
    raise SystemExit("CLI requires extras: pip install slackbot-rtm[cli]")

from slackbot.bot import SlackBot
from slackbot.dispatch import Handlers
from slackbot.transport.dialer import Dialer
from slackbot.transport.http import HttpClient

console = Console()
CONFIG_FILE = Path.home() / ".slackbot" / "config.json"
TOKEN_ENV = "SLACK_BOT_TOKEN"


def _load_config() -> dict:
    try:
        return json.loads(CONFIG_FILE.read_text())
    except (FileNotFoundError, json.JSONDecodeError):
        return {}


def _save_config(cfg: dict) -> None:
    CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
    CONFIG_FILE.write_text(json.dumps(cfg, indent=2))


def _get_token(token: Optional[str]) -> str:
    token = token or _load_config().get("token")
    if not token:
        console.print(f"[red]No token. Run `slackbot auth login` or set {TOKEN_ENV}.[/red]")
        raise SystemExit(1)
    return token


def _make_http() -> HttpClient:
    return HttpClient()


def _make_dialer() -> Dialer:
    return Dialer()


def _make_bot(http: HttpClient, handlers: Optional[Handlers] = None) -> SlackBot:
    return SlackBot(handlers=handlers, http=http, dialer=_make_dialer())


def _run(coro):
    return asyncio.run(coro)


@click.group()
@click.version_option("0.1.0")
@click.option("-v", "--verbose", is_flag=True, help="Log connection and frame details")
def main(verbose: bool):
    """slackbot: Slack RTM bot client."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG, format="%(message)s", handlers=[RichHandler(console=console)],
        )


# Register subcommands from separate modules
from slackbot.cli.auth import auth
from slackbot.cli.session import connect_cmd, listen_cmd, send_cmd

main.add_command(auth)
main.add_command(connect_cmd)
main.add_command(send_cmd)
main.add_command(listen_cmd)


if __name__ == "__main__":
    main()
