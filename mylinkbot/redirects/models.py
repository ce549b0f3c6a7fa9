"""Redirect list entries and the reply actions produced from them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Union

OPTIONAL_MARKER = "?"


class RedirectListError(Exception):
    """Raised when the redirect list cannot be fetched or parsed."""


@dataclass(frozen=True)
class FormField:
    """One text input of a redirect parameter form."""

    name: str
    label: str
    required: bool = True


@dataclass(frozen=True)
class RedirectEntry:
    """One row of the remote redirect keyword to deep-link mapping."""

    redirect: str
    name: str = ""
    description: str = ""
    deprecated: bool = False
    params: dict[str, str] | None = field(default=None, hash=False)
    custom: bool = False
    badge: str | None = None
    introduced: str | None = None
    component: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "RedirectEntry":
        if not isinstance(data, Mapping):
            raise RedirectListError(f"Redirect entry must be an object, got {type(data).__name__}")
        key = data.get("redirect")
        if not isinstance(key, str) or not key:
            raise RedirectListError(f"Redirect entry without a key: {dict(data)!r}")

        params = data.get("params")
        if params is not None:
            if not isinstance(params, Mapping):
                raise RedirectListError(f"Redirect '{key}' has invalid params: {params!r}")
            params = {str(name): str(hint) for name, hint in params.items()}

        return cls(
            redirect=key,
            name=str(data.get("name") or key),
            description=str(data.get("description") or ""),
            deprecated=bool(data.get("deprecated", False)),
            params=params,
            custom=bool(data.get("custom", False)),
            badge=data.get("badge"),
            introduced=data.get("introduced"),
            component=data.get("component"),
        )

    @property
    def needs_form(self) -> bool:
        return self.params is not None

    def form_fields(self) -> list[FormField]:
        """Return one form field per parameter, in declaration order.

        A parameter is optional when its type hint (or its name) ends in ``?``;
        the marker is stripped from the field name.
        """
        fields: list[FormField] = []
        for name, hint in (self.params or {}).items():
            optional = hint.endswith(OPTIONAL_MARKER) or name.endswith(OPTIONAL_MARKER)
            clean = name.rstrip(OPTIONAL_MARKER)
            fields.append(FormField(name=clean, label=clean, required=not optional))
        return fields


@dataclass(frozen=True)
class EphemeralReply:
    """Message only visible to the invoking user."""

    content: str


@dataclass(frozen=True)
class LinkReply:
    """Embed pointing at the resolved redirect."""

    title: str
    description: str
    url: str


@dataclass(frozen=True)
class FormRequest:
    """Modal collecting redirect parameters before the link is built."""

    form_id: str
    title: str
    fields: tuple[FormField, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Choice:
    """Autocomplete suggestion."""

    label: str
    value: str


ReplyAction = Union[EphemeralReply, LinkReply, FormRequest]
