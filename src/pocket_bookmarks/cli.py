"""CLI interface for pocket-bookmarks.

Commands:
    auth      - Authorize this app with a Pocket account
    list      - List items in the reading list
    search    - Find items whose URL contains a string
    add       - Add the URLs in a file, skipping ones already saved
    archive   - Archive the unread items whose URLs are in a file
    favorite  - Favorite the items whose URLs are in a file
    fixup     - Re-send favorite/archive state for every item
    status    - Show configuration status
"""

import asyncio
import os
import sys
from pathlib import Path

import click

from .config import (
    CONFIG_FILE,
    CONSUMER_KEY_ENV,
    AppConfig,
    AuthConfig,
    config_exists,
    load_config,
    save_config,
)
from .errors import PocketError
from .logging_config import setup_logging


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option("--config", type=click.Path(), default=None, help="Config file path")
@click.pass_context
def main(ctx, verbose, config):
    """Pocket Bookmarks — manage your Pocket reading list."""
    setup_logging(debug=verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = Path(config) if config else CONFIG_FILE


def _load(ctx, need_token: bool = True) -> AppConfig:
    config_path = ctx.obj["config_path"]
    try:
        config = load_config(config_path)
    except FileNotFoundError:
        click.echo(
            "Error: No config found. Run 'pocket-bookmarks auth' first.", err=True
        )
        sys.exit(1)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    if need_token and not config.auth.access_token:
        click.echo(
            "Error: Not authorized yet. Run 'pocket-bookmarks auth' first.", err=True
        )
        sys.exit(1)
    return config


def _client(config: AppConfig):
    # Lazy import so --help stays fast
    from .client import PocketClient

    return PocketClient(
        config.auth.consumer_key,
        config.auth.access_token,
        timeout=config.timeout,
    )


def _run(coro):
    try:
        return asyncio.run(coro)
    except PocketError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _read_urls(path: str) -> list[str]:
    """Non-blank, non-comment lines of a file, in order, without duplicates."""
    seen: dict[str, None] = {}
    for line in Path(path).read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if line and not line.startswith("#"):
            seen.setdefault(line, None)
    return list(seen)


def _report(results, verb: str) -> None:
    failed = [r for r in results if not r.ok]
    click.echo(f"{verb} {len(results) - len(failed)} of {len(results)} items.")
    for r in failed:
        target = getattr(r.action, "url", None) or getattr(r.action, "item_id", "?")
        click.echo(f"  Failed: {target}: {r.error}", err=True)


@main.command()
@click.option("--consumer-key", default=None, help="Pocket consumer key")
@click.option(
    "--no-browser", is_flag=True, help="Print the authorization URL instead of opening it"
)
@click.pass_context
def auth(ctx, consumer_key, no_browser):
    """Authorize this app with your Pocket account."""
    config_path = ctx.obj["config_path"]
    existing = None
    if config_exists(config_path) or os.environ.get(CONSUMER_KEY_ENV):
        existing = _load(ctx, need_token=False)

    if not consumer_key:
        default = existing.auth.consumer_key if existing else None
        consumer_key = click.prompt("consumer_key", default=default, hide_input=True)

    async def handshake():
        from .client import PocketClient

        async with PocketClient(consumer_key) as client:
            await client.request_code()
            url = client.authorization_url()

            click.echo("Open this URL and approve access:")
            click.echo(f"  {url}")
            if not no_browser:
                click.launch(url)

            while True:
                click.prompt(
                    "Press Enter after approving",
                    default="",
                    show_default=False,
                    prompt_suffix=" ",
                )
                try:
                    await client.authorize()
                    return client.access_token, client.username
                except PocketError as e:
                    click.echo(f"Not authorized yet: {e}", err=True)
                    if not click.confirm("Try again?", default=True):
                        raise

    access_token, username = _run(handshake())

    config = AppConfig(
        auth=AuthConfig(
            consumer_key=consumer_key, access_token=access_token, username=username
        ),
        timeout=existing.timeout if existing else 30.0,
        page_size=existing.page_size if existing else 30,
    )
    save_config(config, config_path)
    click.echo(f"\nAuthorized as {username or 'unknown user'}.")
    click.echo(f"Config saved to {config_path}")


@main.command(name="list")
@click.option(
    "--state",
    type=click.Choice(["unread", "archive", "all"]),
    default="unread",
    show_default=True,
)
@click.option("--tag", default=None, help="Only items with this tag")
@click.option("--untagged", is_flag=True, help="Only items without tags")
@click.option("--favorite", is_flag=True, help="Only favorites")
@click.option("--search", default=None, help="Only items whose title or URL match")
@click.option("-n", "--count", type=int, default=None, help="Maximum number of items")
@click.pass_context
def list_items(ctx, state, tag, untagged, favorite, search, count):
    """List items in the reading list."""
    config = _load(ctx)
    options = {"state": state, "tag": tag, "untagged": untagged, "search": search}
    if favorite:
        options["favorite"] = True

    async def fetch():
        items = []
        async with _client(config) as client:
            async for item in client.iter_items(page_size=config.page_size, **options):
                items.append(item)
                if count is not None and len(items) >= count:
                    break
        return items

    items = _run(fetch())

    for item in items:
        flag = "*" if item.favorite else " "
        click.echo(f"{flag} {item.item_id}\t{item.title}\t{item.url}")
    click.echo(f"{len(items)} items.", err=True)


@main.command()
@click.argument("needle")
@click.pass_context
def search(ctx, needle):
    """Show every item whose URL contains NEEDLE."""
    from .urls import cleanup_url

    config = _load(ctx)

    async def fetch():
        async with _client(config) as client:
            return await client.list_all(page_size=config.page_size)

    matches = [i for i in _run(fetch()) if needle in i.url]
    for item in matches:
        click.echo(f"Id:\t{item.item_id}")
        click.echo(f"Title:\t{item.title}")
        click.echo(f"Status:\t{item.status.name.lower()}")
        click.echo(f"Url:\t{item.url}")
        click.echo(f"Cleaned url:\t{cleanup_url(item.url)}")
        click.echo()
    click.echo(f"{len(matches)} matching items.", err=True)


async def _items_by_clean_url(client, page_size: int) -> dict:
    from .urls import cleanup_url

    items = await client.list_all(page_size=page_size)
    return {cleanup_url(i.url): i for i in items if not i.deleted}


@main.command()
@click.argument("input_file", type=click.Path(exists=True))
@click.pass_context
def add(ctx, input_file):
    """Add the URLs in INPUT_FILE (one per line) that are not saved yet."""
    from .urls import cleanup_url

    config = _load(ctx)
    urls = _read_urls(input_file)

    async def run():
        async with _client(config) as client:
            saved = await _items_by_clean_url(client, config.page_size)
            new = []
            for url in urls:
                if cleanup_url(url) in saved:
                    click.echo(f"Url {url} already there. Not adding.")
                else:
                    new.append(url)
            if not new:
                return []
            return await client.add_urls(new)

    results = _run(run())
    if not results:
        click.echo("Nothing to add.")
        return
    _report(results, "Added")


def _match_items(saved: dict, urls: list[str]) -> tuple[list, list[str]]:
    from .urls import cleanup_url

    found, missing = [], []
    for url in urls:
        item = saved.get(cleanup_url(url))
        if item is None:
            missing.append(url)
        else:
            found.append(item)
    return found, missing


@main.command()
@click.argument("input_file", type=click.Path(exists=True))
@click.pass_context
def archive(ctx, input_file):
    """Archive the unread items whose URLs are listed in INPUT_FILE."""
    config = _load(ctx)
    urls = _read_urls(input_file)

    async def run():
        async with _client(config) as client:
            saved = await _items_by_clean_url(client, config.page_size)
            found, missing = _match_items(saved, urls)
            for url in missing:
                click.echo(f"Url {url} did not match")
            to_archive = []
            for item in found:
                if item.archived:
                    click.echo(f"Url {item.url} already marked as read")
                else:
                    to_archive.append(item)
            if not to_archive:
                return []
            return await client.archive(to_archive)

    results = _run(run())
    if not results:
        click.echo("Nothing to archive.")
        return
    _report(results, "Archived")


@main.command()
@click.argument("input_file", type=click.Path(exists=True))
@click.pass_context
def favorite(ctx, input_file):
    """Favorite the items whose URLs are listed in INPUT_FILE."""
    config = _load(ctx)
    urls = _read_urls(input_file)

    async def run():
        async with _client(config) as client:
            saved = await _items_by_clean_url(client, config.page_size)
            found, missing = _match_items(saved, urls)
            for url in missing:
                click.echo(f"Url {url} did not match")
            to_favorite = [i for i in found if not i.favorite]
            if not to_favorite:
                return []
            return await client.favorite(to_favorite)

    results = _run(run())
    if not results:
        click.echo("Nothing to favorite.")
        return
    _report(results, "Favorited")


@main.command()
@click.pass_context
def fixup(ctx):
    """Re-mark every favorite as favorite and every archived item as archived.

    The items keep their state, but their last-action timestamps are reset
    to now.
    """
    from .actions import Archive, Favorite

    config = _load(ctx)

    async def run():
        async with _client(config) as client:
            items = await client.list_all(page_size=config.page_size)
            actions = [Favorite(item_id=i.item_id) for i in items if i.favorite]
            actions += [Archive(item_id=i.item_id) for i in items if i.archived]
            if not actions:
                return []
            return await client.send(actions)

    results = _run(run())
    if not results:
        click.echo("Nothing to fix up.")
        return
    _report(results, "Updated")


@main.command()
@click.pass_context
def status(ctx):
    """Show current configuration status."""
    config_path = ctx.obj["config_path"]
    has_config = config_exists(config_path)

    click.echo("Pocket Bookmarks — Status")
    click.echo("=" * 40)
    click.echo(f"Config: {'Found' if has_config else 'Not configured'} ({config_path})")

    if not has_config:
        click.echo("\nRun 'pocket-bookmarks auth' to get started.")
        return

    config = _load(ctx, need_token=False)
    if config.auth.access_token:
        click.echo(f"Authorized as: {config.auth.username or 'unknown user'}")
    else:
        click.echo("Authorized: no")
    click.echo(f"Page size: {config.page_size}")
    click.echo(f"Timeout: {config.timeout}s")
