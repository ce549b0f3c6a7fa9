"""Resolve `/my` redirect keywords into links, forms and autocomplete choices."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, Protocol
from urllib.parse import quote, urlencode

from loguru import logger

from mylinkbot.redirects.cache import RedirectCache
from mylinkbot.redirects.models import (
    Choice,
    EphemeralReply,
    FormField,
    FormRequest,
    LinkReply,
    RedirectEntry,
    RedirectListError,
    ReplyAction,
)

DEFAULT_BASE_URL = "https://my.home-assistant.io"
RELOAD_KEY = "reload"
MAX_CHOICES = 25  # Discord only accepts 25 autocomplete suggestions
MAX_FORM_FIELDS = 5  # Discord modals hold at most 5 text inputs
FORM_TITLE = "Additional data"

RELOADED_MESSAGE = "My redirect list reloaded"
NOT_FOUND_MESSAGE = "Could not find information"
LOAD_FAILED_MESSAGE = "Could not load the redirect list, try again later"

ExceptionReporter = Callable[[BaseException, dict[str, Any]], None]


class Responder(Protocol):
    """What the resolver needs from the chat platform to answer an interaction."""

    async def reply_ephemeral(self, content: str) -> None: ...

    async def reply_with_link(self, reply: LinkReply) -> None: ...

    async def show_form(self, form: FormRequest) -> None: ...

    async def respond_choices(self, choices: list[Choice]) -> None: ...


class LinkBuilder:
    """Builds My Home Assistant URLs."""

    def __init__(self, base_url: str = DEFAULT_BASE_URL):
        self.base_url = base_url.rstrip("/")

    def create_link(self, key: str) -> str:
        return f"{self.base_url}/create-link/?{urlencode({'redirect': key})}"

    def redirect_link(self, key: str, params: Mapping[str, str]) -> str:
        url = f"{self.base_url}/redirect/{quote(key, safe='')}/"
        if params:
            url = f"{url}?{urlencode(dict(params))}"
        return url


def _noop_reporter(err: BaseException, data: dict[str, Any]) -> None:
    return None


class RedirectResolver:
    """
    Answers `/my` interactions from the cached redirect list.

    The pure operations (`resolve`, `autocomplete`, `complete_form`) return
    reply actions; the `handle_*` methods run them and send the result through
    a `Responder`.
    """

    def __init__(
        self,
        cache: RedirectCache,
        links: LinkBuilder | None = None,
        report_exception: ExceptionReporter | None = None,
    ):
        self.cache = cache
        self.links = links or LinkBuilder()
        self._report = report_exception or _noop_reporter

    async def ensure_loaded(self, force: bool = False) -> None:
        await self.cache.load(force=force)

    @staticmethod
    def form_fields(entry: RedirectEntry) -> list[FormField]:
        """Fields shown in the form: required ones first, capped at MAX_FORM_FIELDS."""
        fields = sorted(entry.form_fields(), key=lambda form_field: not form_field.required)
        if len(fields) > MAX_FORM_FIELDS:
            dropped = ", ".join(form_field.name for form_field in fields[MAX_FORM_FIELDS:])
            logger.warning(f"Redirect {entry.redirect} has too many params, not asking for: {dropped}")
        return fields[:MAX_FORM_FIELDS]

    async def resolve(self, key: str) -> ReplyAction:
        """Turn a redirect key into a link, a parameter form or a message."""
        if key == RELOAD_KEY:
            await self.ensure_loaded(force=True)
            return EphemeralReply(RELOADED_MESSAGE)

        await self.ensure_loaded()
        entry = self.cache.find(key)
        if entry is None:
            return EphemeralReply(NOT_FOUND_MESSAGE)

        if entry.needs_form:
            return FormRequest(
                form_id=entry.redirect,
                title=FORM_TITLE,
                fields=tuple(self.form_fields(entry)),
            )

        return LinkReply(
            title=entry.name,
            description=entry.description,
            url=self.links.create_link(entry.redirect),
        )

    async def autocomplete(
        self,
        partial: str,
        context: dict[str, Any] | None = None,
    ) -> list[Choice]:
        """Suggest non-deprecated redirects matching `partial`. Never raises."""
        if not partial:
            return []

        try:
            await self.ensure_loaded()
            needle = partial.lower()
            choices = [
                Choice(label=entry.name, value=entry.redirect)
                for entry in self.cache.get()
                if not entry.deprecated
            ]
            return [
                choice
                for choice in choices
                if needle in choice.value.lower() or needle in choice.label.lower()
            ][:MAX_CHOICES]
        except Exception as e:
            logger.warning(f"Autocomplete for {partial!r} failed: {e}")
            self._report(e, dict(context or {}))
            return []

    async def complete_form(self, key: str, fields: Mapping[str, str]) -> ReplyAction:
        """Build the redirect link from submitted form fields."""
        await self.ensure_loaded()
        entry = self.cache.find(key)
        if entry is None:
            return EphemeralReply(NOT_FOUND_MESSAGE)

        missing = [
            form_field.label
            for form_field in self.form_fields(entry)
            if form_field.required and not (fields.get(form_field.name) or "").strip()
        ]
        if missing:
            return EphemeralReply(f"Missing required fields: {', '.join(missing)}")

        params = {name: value for name, value in fields.items() if (value or "").strip()}
        return LinkReply(
            title=entry.name,
            description=entry.description,
            url=self.links.redirect_link(entry.redirect, params),
        )

    async def handle_command(
        self,
        key: str,
        responder: Responder,
        context: dict[str, Any] | None = None,
    ) -> None:
        try:
            action = await self.resolve(key)
        except RedirectListError as e:
            logger.warning(f"/my {key!r} failed to load redirects: {e}")
            self._report(e, dict(context or {}))
            action = EphemeralReply(LOAD_FAILED_MESSAGE)
        await self.dispatch(action, responder)

    async def handle_autocomplete(
        self,
        partial: str,
        responder: Responder,
        context: dict[str, Any] | None = None,
    ) -> None:
        choices = await self.autocomplete(partial, context)
        await responder.respond_choices(choices)

    async def handle_form_submit(
        self,
        key: str,
        fields: Mapping[str, str],
        responder: Responder,
        context: dict[str, Any] | None = None,
    ) -> None:
        logger.debug(f"Form submitted for {key!r}: {dict(fields)}")
        try:
            action = await self.complete_form(key, fields)
        except RedirectListError as e:
            logger.warning(f"Form for {key!r} failed to load redirects: {e}")
            self._report(e, dict(context or {}))
            action = EphemeralReply(LOAD_FAILED_MESSAGE)
        await self.dispatch(action, responder)

    @staticmethod
    async def dispatch(action: ReplyAction, responder: Responder) -> None:
        """Send a reply action through the responder."""
        if isinstance(action, LinkReply):
            await responder.reply_with_link(action)
        elif isinstance(action, FormRequest):
            await responder.show_form(action)
        else:
            await responder.reply_ephemeral(action.content)
