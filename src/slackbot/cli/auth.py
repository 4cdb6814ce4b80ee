"""CLI: slackbot auth login|status|logout"""

from typing import Optional

import click
from rich.console import Console

from slackbot.errors import SlackBotError
from slackbot.handshake import Handshake

console = Console()


def _load_config() -> dict:
    from slackbot.cli.main import _load_config
    return _load_config()


def _save_config(cfg: dict) -> None:
    from slackbot.cli.main import _save_config
    _save_config(cfg)


def _run(coro):
    from slackbot.cli.main import _run
    return _run(coro)


@click.group()
def auth():
    """Token commands."""


@auth.command("login")
@click.option("--token", default=None, help="Bot token (xoxb-...)")
def auth_login(token: Optional[str]):
    """Validate a bot token with rtm.connect and save it."""
    from slackbot.cli.main import _make_http

    token = token or click.prompt("Bot token", hide_input=True)

    async def _login():
        http = _make_http()
        try:
            with console.status("Checking token..."):
                return await Handshake(http).connect(token)
        finally:
            await http.close()

    try:
        info = _run(_login())
    except SlackBotError as e:
        console.print(f"[red]Login failed: {e}[/red]")
        raise SystemExit(1)
    console.print(f"[green]Logged in as {info.self_.name} (ID: {info.self_.id}) on {info.team.name}[/green]")
    _save_config({**_load_config(), "token": token, "bot_id": info.self_.id,
                  "bot_name": info.self_.name, "team": info.team.name})
    console.print("[dim]Token saved to ~/.slackbot/config.json[/dim]")


@auth.command("status")
def auth_status():
    """Show the saved bot identity."""
    cfg = _load_config()
    if cfg.get("token"):
        console.print(f"[green]Logged in[/green] as {cfg.get('bot_name', 'unknown')} (ID: {cfg.get('bot_id')})")
    else:
        console.print("[yellow]Not logged in. Run `slackbot auth login`.[/yellow]")


@auth.command("logout")
def auth_logout():
    """Clear the saved token."""
    _save_config({})
    console.print("[green]Logged out.[/green]")
