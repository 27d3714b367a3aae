"""CLI: cbs post|search|posts"""

from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from chatbuysell.models.post import PostType

console = Console()

POST_TYPES = click.Choice(["buy", "sell", "mua", "ban"], case_sensitive=False)


def _get_client():
    from chatbuysell.cli.main import _get_client
    return _get_client()


def _print_notifications(client) -> None:
    from chatbuysell.cli.main import _print_notifications
    _print_notifications(client)


def _run(coro):
    from chatbuysell.cli.main import _run
    return _run(coro)


def print_candidates(candidates) -> None:
    if not candidates:
        console.print("[dim]No matching results found[/dim]")
        return
    table = Table(title="Matching Results")
    table.add_column("#", style="bold")
    table.add_column("User")
    table.add_column("Type")
    table.add_column("Post")
    table.add_column("Details")
    table.add_column("Score", justify="right")
    for i, c in enumerate(candidates, start=1):
        post = c.post
        details = [d for d in (post.category, post.location) if d]
        if post.price:
            details.append(f"{post.price:,.0f} VND")
        table.add_row(
            str(i),
            c.user.username or "User",
            post.type.label,
            escape(post.content),
            ", ".join(details),
            f"{round(c.score * 100)}%",
        )
    console.print(table)


async def _pick(client, candidates, pick: Optional[int]) -> None:
    if pick is None or not candidates:
        return
    if not 1 <= pick <= len(candidates):
        console.print(f"[red]--pick must be between 1 and {len(candidates)}[/red]")
        return
    with console.status("Creating chat..."):
        room = await client.select(candidates[pick - 1])
    if room is not None:
        console.print(f"[green]Chat room created: {room.id}[/green]")


@click.command("post")
@click.argument("type", type=POST_TYPES)
@click.argument("content")
@click.option("--pick", type=int, default=None, help="Open a chat with the N-th match")
def post_cmd(type: str, content: str, pick: Optional[int]):
    """Publish a buying or selling post and show matches."""

    async def _post():
        client = _get_client()
        try:
            with console.status("Posting..."):
                post = await client.create_post(PostType.parse(type), content)
            _print_notifications(client)
            if post is not None:
                print_candidates(client.matching.candidates)
                await _pick(client, client.matching.candidates, pick)
        finally:
            _print_notifications(client)
            await client.close()

    _run(_post())


@click.command("search")
@click.argument("query")
@click.option("--pick", type=int, default=None, help="Open a chat with the N-th match")
def search_cmd(query: str, pick: Optional[int]):
    """Search for matching posts."""

    async def _search():
        client = _get_client()
        try:
            with console.status("Searching..."):
                candidates = await client.search(query)
            print_candidates(candidates)
            await _pick(client, candidates, pick)
        finally:
            _print_notifications(client)
            await client.close()

    _run(_search())


@click.command("posts")
@click.argument("type", type=POST_TYPES)
@click.option("--page", default=1, type=int)
@click.option("--page-size", default=10, type=int)
@click.option("--category", default=None)
@click.option("--location", default=None)
@click.option("--min-price", default=None, type=int)
@click.option("--max-price", default=None, type=int)
def posts_cmd(type, page, page_size, category, location, min_price, max_price):
    """Browse buying or selling posts, newest first."""

    async def _posts():
        client = _get_client()
        try:
            result = await client.posts.list_by_type(
                PostType.parse(type), page, page_size,
                category=category, location=location, min_price=min_price, max_price=max_price,
            )
        finally:
            await client.close()
        table = Table(title=f"Posts ({result.total} total)")
        table.add_column("ID", style="bold")
        table.add_column("Content")
        table.add_column("Category")
        table.add_column("Location")
        table.add_column("Price", justify="right")
        for p in result.posts:
            table.add_row(p.id, escape(p.content), p.category or "", p.location or "",
                          f"{p.price:,.0f}" if p.price else "")
        console.print(table)

    _run(_posts())
