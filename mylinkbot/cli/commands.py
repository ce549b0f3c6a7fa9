"""CLI commands for mylinkbot."""

import asyncio

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from mylinkbot import __logo__, __version__

app = typer.Typer(
    name="mylinkbot",
    help=f"{__logo__} mylinkbot - My Home Assistant links for Discord",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} mylinkbot v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
):
    """mylinkbot - My Home Assistant links for Discord."""
    pass


def _make_resolver(config, report: bool = False):
    from mylinkbot.redirects import LinkBuilder, RedirectCache, RedirectFetcher, RedirectResolver
    from mylinkbot.reporting import report_exception

    fetcher = RedirectFetcher(
        url=config.redirects_url,
        timeout=config.redirects_fetch_timeout_seconds,
    )
    return RedirectResolver(
        cache=RedirectCache(fetcher),
        links=LinkBuilder(config.my_base_url),
        report_exception=report_exception if report else None,
    )


# ============================================================================
# Bot
# ============================================================================


@app.command()
def run(
    verbose: bool = typer.Option(False, "--verbose", help="Debug logging"),
):
    """Start the Discord bot."""
    from mylinkbot.channels.discord import DiscordChannel
    from mylinkbot.config import configure_logging, load_config
    from mylinkbot.reporting import init_reporting

    config = load_config()
    configure_logging("DEBUG" if verbose else config.log_level)

    if not config.discord_bot_token:
        console.print("[red]DISCORD_BOT_TOKEN is not set.[/red]")
        raise typer.Exit(1)

    if init_reporting(config.sentry_dsn, config.sentry_environment):
        console.print(f"[green]✓[/green] Sentry: {config.sentry_environment}")

    resolver = _make_resolver(config, report=True)
    channel = DiscordChannel(
        token=config.discord_bot_token,
        resolver=resolver,
        guild_id=config.discord_guild_id,
    )

    scope = f"guild {config.discord_guild_id}" if config.discord_guild_id else "global"
    console.print(f"{__logo__} Starting mylinkbot ({scope} commands)...")

    async def _run():
        try:
            await channel.start()
        except KeyboardInterrupt:
            console.print("\nShutting down...")
            await channel.stop()

    asyncio.run(_run())


# ============================================================================
# Offline lookups
# ============================================================================


@app.command()
def lookup(
    key: str = typer.Argument(..., help="Redirect key, e.g. integrations"),
    logs: bool = typer.Option(False, "--logs/--no-logs", help="Show runtime logs"),
):
    """Resolve a redirect key the way `/my` would."""
    from mylinkbot.config import load_config
    from mylinkbot.redirects import EphemeralReply, FormRequest, RedirectListError

    if logs:
        logger.enable("mylinkbot")
    else:
        logger.disable("mylinkbot")

    resolver = _make_resolver(load_config())

    try:
        action = asyncio.run(resolver.resolve(key))
    except RedirectListError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    if isinstance(action, EphemeralReply):
        console.print(f"[yellow]{action.content}[/yellow]")
        return

    if isinstance(action, FormRequest):
        table = Table(title=f"{action.title}: {action.form_id}")
        table.add_column("Field", style="cyan")
        table.add_column("Required")
        for form_field in action.fields:
            table.add_row(form_field.label, "yes" if form_field.required else "[dim]no[/dim]")
        console.print(table)
        return

    console.print(f"[bold]{action.title}[/bold]")
    if action.description:
        console.print(action.description)
    console.print(f"[green]{action.url}[/green]")


@app.command()
def search(
    query: str = typer.Argument(..., help="Text to match against keys and names"),
):
    """Show the autocomplete suggestions for a query."""
    from mylinkbot.config import load_config

    logger.disable("mylinkbot")
    resolver = _make_resolver(load_config())
    choices = asyncio.run(resolver.autocomplete(query))

    if not choices:
        console.print("No matching redirects.")
        return

    table = Table(title=f"Redirects matching {query!r}")
    table.add_column("Key", style="cyan")
    table.add_column("Name")
    for choice in choices:
        table.add_row(choice.value, choice.label)
    console.print(table)


if __name__ == "__main__":
    app()
