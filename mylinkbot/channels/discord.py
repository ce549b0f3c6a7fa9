"""Discord channel implementation using discord.py with the `/my` slash command."""

from __future__ import annotations

import asyncio
from typing import Any

import discord
from discord import app_commands
from loguru import logger

from mylinkbot.redirects.models import Choice, FormRequest, LinkReply
from mylinkbot.redirects.resolver import RedirectResolver

COMMAND_NAME = "my"
FORM_PREFIX = "my:"
FORM_TIMEOUT = 15 * 60  # stored modal is dropped after this; submits still work
MAX_MODAL_INPUTS = 5
TEXT_INPUT_LABEL_MAX = 45
CHOICE_NAME_MAX = 100
CHOICE_VALUE_MAX = 100
EMBED_TITLE_MAX = 256
EMBED_DESC_MAX = 4096


def _truncate(text: str, max_len: int, suffix: str = "...") -> str:
    """Truncate text to max length."""
    if len(text) <= max_len:
        return text
    return text[: max_len - len(suffix)] + suffix


def form_custom_id(form_id: str, interaction_id: int) -> str:
    """Modal custom_id, unique per invoking interaction."""
    return f"{FORM_PREFIX}{form_id}:{interaction_id}"


def form_key(custom_id: str) -> str | None:
    """Redirect key encoded in a modal custom_id, or None for foreign modals."""
    if not custom_id.startswith(FORM_PREFIX):
        return None
    key, sep, _ = custom_id[len(FORM_PREFIX) :].rpartition(":")
    return key if sep and key else None


def submitted_values(data: Any) -> dict[str, str]:
    """Collect `{custom_id: value}` from a raw modal_submit payload."""
    values: dict[str, str] = {}

    def walk(node: Any) -> None:
        if isinstance(node, list):
            for child in node:
                walk(child)
        elif isinstance(node, dict):
            if "custom_id" in node and "value" in node:
                values[node["custom_id"]] = node["value"] or ""
            walk(node.get("components"))
            walk(node.get("component"))

    walk((data or {}).get("components"))
    return values


def interaction_context(interaction: discord.Interaction) -> dict[str, Any]:
    """Context attached to reported exceptions."""
    user = interaction.user
    command = interaction.command
    return {
        "interaction": {
            "id": str(interaction.id),
            "type": str(interaction.type),
            "data": interaction.data,
        },
        "user": {"id": str(user.id), "name": user.name} if user else None,
        "channel": {"id": str(interaction.channel_id)} if interaction.channel_id else None,
        "command": {"name": command.name} if command else None,
    }


class DiscordResponder:
    """Answers a single discord.py interaction on behalf of the resolver."""

    def __init__(self, interaction: discord.Interaction):
        self.interaction = interaction

    async def reply_ephemeral(self, content: str) -> None:
        await self.interaction.response.send_message(content, ephemeral=True)

    async def reply_with_link(self, reply: LinkReply) -> None:
        embed = discord.Embed(
            title=_truncate(reply.title, EMBED_TITLE_MAX),
            description=_truncate(reply.description, EMBED_DESC_MAX),
            url=reply.url,
        )
        await self.interaction.response.send_message(embed=embed)

    async def show_form(self, form: FormRequest) -> None:
        custom_id = form_custom_id(form.form_id, self.interaction.id)
        await self.interaction.response.send_modal(RedirectFormModal(form, custom_id))

    async def respond_choices(self, choices: list[Choice]) -> None:
        sent = []
        for choice in choices:
            # Discord rejects the whole response for one oversized value
            if len(choice.value) > CHOICE_VALUE_MAX:
                logger.debug(f"Skipping autocomplete choice with long value: {choice.value[:40]}...")
                continue
            sent.append(
                app_commands.Choice(name=_truncate(choice.label, CHOICE_NAME_MAX), value=choice.value)
            )
        await self.interaction.response.autocomplete(sent)


class RedirectFormModal(discord.ui.Modal):
    """
    Text inputs for the redirect parameters.

    Submissions are answered by `DiscordChannel.handle_interaction`, keyed on
    the custom_id, so they work for any number of open forms and across
    restarts.
    """

    def __init__(self, form: FormRequest, custom_id: str, timeout: float | None = FORM_TIMEOUT):
        super().__init__(title=form.title, custom_id=custom_id, timeout=timeout)
        self.form = form

        fields = form.fields
        if len(fields) > MAX_MODAL_INPUTS:
            logger.warning(
                f"Redirect {form.form_id} has {len(fields)} params, "
                f"only the first {MAX_MODAL_INPUTS} fit in a modal"
            )
            fields = fields[:MAX_MODAL_INPUTS]

        for form_field in fields:
            self.add_item(
                discord.ui.TextInput(
                    label=_truncate(form_field.label, TEXT_INPUT_LABEL_MAX),
                    custom_id=form_field.name,
                    required=form_field.required,
                    style=discord.TextStyle.short,
                )
            )


class MyLinkDiscordClient(discord.Client):
    """Discord client with the `/my` slash command, holds reference to DiscordChannel."""

    def __init__(self, channel: "DiscordChannel", intents: discord.Intents):
        super().__init__(intents=intents)
        self.tree = app_commands.CommandTree(self)
        self._channel = channel

    async def setup_hook(self) -> None:
        """Sync commands globally (can take up to 1h) or per-guild for instant sync."""
        try:
            guild_id = self._channel.guild_id
            if guild_id:
                guild_obj = discord.Object(id=guild_id)
                self.tree.copy_global_to(guild=guild_obj)
                await self.tree.sync(guild=guild_obj)
                logger.info(f"Discord slash commands synced to guild {guild_id} (instant)")
            else:
                await self.tree.sync()
                logger.info("Discord slash commands synced globally (may take up to 1h to propagate)")
        except Exception as e:
            logger.warning(f"Discord command sync failed: {e}")

    async def on_ready(self) -> None:
        """Log when bot is ready."""
        if self.user:
            logger.info(f"Discord bot logged in as {self.user} ({self.user.id})")


class DiscordChannel:
    """Runs the Discord bot that serves `/my` redirect links."""

    name = "discord"

    def __init__(self, token: str, resolver: RedirectResolver, guild_id: int | None = None):
        self.token = token
        self.resolver = resolver
        self.guild_id = guild_id
        self._bot: MyLinkDiscordClient | None = None
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    def _setup_bot(self) -> MyLinkDiscordClient:
        """Create client and register the slash command."""
        self._bot = MyLinkDiscordClient(self, discord.Intents.default())
        self.register_commands(self._bot.tree)

        @self._bot.event
        async def on_interaction(interaction: discord.Interaction) -> None:
            await self.handle_interaction(interaction)

        return self._bot

    def register_commands(self, tree: app_commands.CommandTree) -> app_commands.Command:
        resolver = self.resolver

        @tree.command(name=COMMAND_NAME, description="Returns a my link")
        @app_commands.describe(redirect="What is the name of the redirect?")
        async def my_cmd(interaction: discord.Interaction, redirect: str) -> None:
            await resolver.handle_command(
                redirect,
                DiscordResponder(interaction),
                interaction_context(interaction),
            )

        @my_cmd.autocomplete("redirect")
        async def my_autocomplete(
            interaction: discord.Interaction, current: str
        ) -> list[app_commands.Choice[str]]:
            await resolver.handle_autocomplete(
                current or "",
                DiscordResponder(interaction),
                interaction_context(interaction),
            )
            # Already answered through the responder
            return []

        return my_cmd

    async def handle_interaction(self, interaction: discord.Interaction) -> bool:
        """Answer a `/my` form submission. Returns False for anything else."""
        if interaction.type != discord.InteractionType.modal_submit:
            return False
        data = interaction.data or {}
        key = form_key(data.get("custom_id", ""))
        if key is None:
            return False

        await self.resolver.handle_form_submit(
            key,
            submitted_values(data),
            DiscordResponder(interaction),
            interaction_context(interaction),
        )
        return True

    async def start(self) -> None:
        """Start the Discord bot."""
        if not self.token:
            logger.error("Discord bot token not configured")
            return

        self._running = True
        bot = self._setup_bot()

        try:
            await bot.start(self.token)
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.error(f"Discord bot error: {e}")
        finally:
            self._running = False
            self._bot = None

    async def stop(self) -> None:
        """Stop the Discord channel."""
        self._running = False
        if self._bot:
            await self._bot.close()
        self._bot = None
