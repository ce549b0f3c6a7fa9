# mylinkbot.redirects: My Home Assistant redirect lookup, forms and autocomplete

from mylinkbot.redirects.cache import RedirectCache, RedirectFetcher
from mylinkbot.redirects.models import (
    Choice,
    EphemeralReply,
    FormField,
    FormRequest,
    LinkReply,
    RedirectEntry,
    RedirectListError,
)
from mylinkbot.redirects.resolver import LinkBuilder, RedirectResolver, Responder

__all__ = [
    "Choice",
    "EphemeralReply",
    "FormField",
    "FormRequest",
    "LinkBuilder",
    "LinkReply",
    "RedirectCache",
    "RedirectEntry",
    "RedirectFetcher",
    "RedirectListError",
    "RedirectResolver",
    "Responder",
]
