"""
Chat Buy Sell CLI — `cbs` command.

Commands:
  cbs login [--code --state]   Facebook login (browser redirect, then callback)
  cbs rooms / open / send      Chat rooms and messages
  cbs post buy|sell CONTENT    Publish a post and show matches
  cbs search QUERY             Find matching posts
  cbs posts TYPE               Browse posts
  cbs search-chat QUERY        Full-text search over messages
  cbs classify ID TYPE         Label a message for search
"""

import asyncio
import logging

try:
    import click
    from rich.console import Console
    from rich.markup import escape
except ImportError:
    raise SystemExit("CLI requires extras: pip install chatbuysell[cli]")

from chatbuysell.client import AsyncChatBuySell
from chatbuysell.config import load_settings, save_base_url
from chatbuysell.errors import ChatBuySellError

console = Console()


def _get_client(require_login: bool = True) -> AsyncChatBuySell:
    # Commands fetch only what they print; `cbs rooms` loads the list itself
    client = AsyncChatBuySell.from_settings(load_settings(), redirect=click.launch, autoload_rooms=False)
    client.session.restore()
    if require_login and client.identity is None:
        console.print("[red]Not logged in. Run `cbs login` first.[/red]")
        raise SystemExit(1)
    return client


def _print_notifications(client: AsyncChatBuySell) -> None:
    for note in client.notifier.drain():
        style = "red" if note.level == "error" else "green"
        detail = f" [dim]({escape(str(note.error))})[/dim]" if note.error else ""
        console.print(f"[{style}]{note.message}[/{style}]{detail}")


def _run(coro):
    try:
        return asyncio.run(coro)
    except ChatBuySellError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise SystemExit(1)


@click.group()
@click.version_option("0.1.0")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging")
def main(verbose: bool):
    """Chat Buy Sell CLI — connect buyers and sellers through chat."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@main.group("config")
def config_group():
    """Client configuration."""


@config_group.command("set-url")
@click.argument("base_url")
def config_set_url(base_url: str):
    """Save the backend base URL."""
    save_base_url(base_url)
    console.print(f"[green]Base URL set to {base_url}[/green]")


# Register subcommands from separate modules
from chatbuysell.cli.auth import login, logout, whoami
from chatbuysell.cli.chat import rooms_cmd, open_cmd, send_cmd, search_chat_cmd, classify_cmd
from chatbuysell.cli.posts import post_cmd, search_cmd, posts_cmd

main.add_command(login)
main.add_command(logout)
main.add_command(whoami)
main.add_command(rooms_cmd)
main.add_command(open_cmd)
main.add_command(send_cmd)
main.add_command(search_chat_cmd)
main.add_command(classify_cmd)
main.add_command(post_cmd)
main.add_command(search_cmd)
main.add_command(posts_cmd)


if __name__ == "__main__":
    main()
