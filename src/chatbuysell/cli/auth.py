"""CLI: cbs login|logout|whoami"""

from typing import Optional

import click
from rich.console import Console

console = Console()


def _get_client(require_login: bool = True):
    from chatbuysell.cli.main import _get_client
    return _get_client(require_login)


def _print_notifications(client) -> None:
    from chatbuysell.cli.main import _print_notifications
    _print_notifications(client)


def _run(coro):
    from chatbuysell.cli.main import _run
    return _run(coro)


@click.command("login")
@click.option("--code", default=None, help="OAuth code from the callback URL")
@click.option("--state", default=None, help="OAuth state from the callback URL")
def login(code: Optional[str], state: Optional[str]):
    """Log in with Facebook.

    Without options, opens the authorization page. Run again with the
    --code and --state values from the callback URL to finish.
    """
    client = _get_client(require_login=False)

    if not code and not state:
        console.print("[cyan]Opening the login page in your browser...[/cyan]")
        client.login()
        console.print("[dim]Then run `cbs login --code CODE --state STATE`.[/dim]")
        return

    async def _complete():
        try:
            with console.status("Logging in..."):
                identity = await client.complete_login(code or "", state or "")
        finally:
            await client.close()
        console.print(f"[green]Logged in as {identity.display_name} (ID: {identity.id})[/green]")

    _run(_complete())


@click.command("logout")
def logout():
    """Forget the saved session."""
    client = _get_client(require_login=False)
    client.logout()
    console.print("[green]Logged out.[/green]")


@click.command("whoami")
def whoami():
    """Show the current session."""
    client = _get_client(require_login=False)
    identity = client.identity
    if identity is None:
        console.print("[yellow]Not logged in. Run `cbs login`.[/yellow]")
        return
    console.print(f"[green]Logged in[/green] as {identity.display_name} (ID: {identity.id}, {identity.type.value})")
