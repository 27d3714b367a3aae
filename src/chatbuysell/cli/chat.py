"""CLI: cbs rooms|open|send|search-chat|classify"""

import json

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from chatbuysell.models.chat import MessageStatus, MessageType, RoomRole

console = Console()


def _get_client():
    from chatbuysell.cli.main import _get_client
    return _get_client()


def _print_notifications(client) -> None:
    from chatbuysell.cli.main import _print_notifications
    _print_notifications(client)


def _run(coro):
    from chatbuysell.cli.main import _run
    return _run(coro)


def print_messages(messages, identity_id) -> None:
    if not messages:
        console.print("[dim]No messages yet. Start the conversation![/dim]")
        return
    for msg in messages:
        when = msg.created_at.strftime("%H:%M") if msg.created_at else "--:--"
        text = escape(msg.content)
        if msg.is_from(identity_id):
            marker = "" if msg.status is MessageStatus.SENT else f" [yellow]({msg.status.value})[/yellow]"
            console.print(f"[dim]{when}[/dim] [cyan]You:[/cyan] {text}{marker}", justify="right")
        else:
            console.print(f"[dim]{when}[/dim] [green]Them:[/green] {text}")


@click.command("rooms")
@click.option("--json-output", "--json", is_flag=True)
def rooms_cmd(json_output: bool):
    """List your chat rooms."""

    async def _rooms():
        client = _get_client()
        try:
            rooms = await client.load_rooms()
        finally:
            _print_notifications(client)
            await client.close()
        if json_output:
            click.echo(json.dumps([r.model_dump(mode="json", by_alias=True) for r in rooms], indent=2))
            return
        if not rooms:
            console.print("[dim]No chat rooms yet[/dim]")
            return
        table = Table(title=f"Chats ({len(rooms)})")
        table.add_column("ID", style="bold")
        table.add_column("Role")
        table.add_column("Title")
        table.add_column("Last message")
        table.add_column("Updated")
        for r in rooms:
            role = r.role_for(client.identity.id)
            table.add_row(
                r.id,
                {RoomRole.BUYER: "B", RoomRole.SELLER: "S"}.get(role, "?"),
                r.title or "Chat Room",
                r.last_message or "No messages yet",
                r.updated_at.date().isoformat() if r.updated_at else "",
            )
        console.print(table)

    _run(_rooms())


@click.command("open")
@click.argument("room_id")
def open_cmd(room_id: str):
    """Show a chat room's history."""

    async def _open():
        client = _get_client()
        try:
            with console.status("Loading chat..."):
                room = await client.open_room(room_id)
        finally:
            _print_notifications(client)
            await client.close()
        if room is None:
            return
        header = room.title or "Chat"
        if room.post is not None:
            header += f" [dim]({room.post.type.label})[/dim]"
        console.print(f"[bold]{header}[/bold]")
        print_messages(client.messages.messages, client.identity.id)

    _run(_open())


@click.command("send")
@click.argument("room_id")
@click.argument("message")
def send_cmd(room_id: str, message: str):
    """Send a message to a chat room."""

    async def _send():
        client = _get_client()
        try:
            await client.open_room(room_id)
            sent = await client.send(message)
        finally:
            _print_notifications(client)
            await client.close()
        console.print(f"[green]{sent.status.value}[/green] [dim]{sent.id}[/dim]")

    _run(_send())


@click.command("search-chat")
@click.argument("query")
@click.option("--page", default=1, type=int)
@click.option("--page-size", default=10, type=int)
def search_chat_cmd(query: str, page: int, page_size: int):
    """Full-text search over chat messages."""

    async def _search():
        client = _get_client()
        try:
            result = await client.chat.search_messages(query, page=page, page_size=page_size)
        finally:
            await client.close()
        table = Table(title=f"Messages ({result.total} total)")
        table.add_column("Room", style="bold")
        table.add_column("Sender")
        table.add_column("Content")
        for m in result.messages:
            table.add_row(m.room_id or "", m.sender_id, m.content)
        console.print(table)

    _run(_search())


@click.command("classify")
@click.argument("message_id")
@click.argument("message_type", type=click.Choice([t.value for t in MessageType]))
def classify_cmd(message_id: str, message_type: str):
    """Label a message (question, negotiation, agreement, inquiry, other)."""

    async def _classify():
        client = _get_client()
        try:
            await client.chat.classify_message(message_id, message_type)
        finally:
            await client.close()
        console.print(f"[green]Message {message_id} classified as {message_type}[/green]")

    _run(_classify())
