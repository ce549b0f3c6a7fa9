"""Tests for the mylinkbot CLI."""

from unittest.mock import patch

from typer.testing import CliRunner

from mylinkbot import __version__
from mylinkbot.cli.commands import app
from mylinkbot.redirects.cache import RedirectCache
from mylinkbot.redirects.models import RedirectListError
from mylinkbot.redirects.resolver import LinkBuilder, RedirectResolver

runner = CliRunner()


class FakeFetcher:
    def __init__(self, error=None):
        self.error = error

    async def fetch(self):
        if self.error:
            raise self.error
        return [
            {"redirect": "integrations", "name": "Integrations", "description": "Your integrations"},
            {"redirect": "blueprint_import", "name": "Import blueprint", "params": {"blueprint_url": "url"}},
        ]


def _resolver(error=None):
    return RedirectResolver(RedirectCache(FakeFetcher(error)), LinkBuilder("https://my.home-assistant.io"))


def test_version():
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_lookup_prints_link():
    with patch("mylinkbot.cli.commands._make_resolver", return_value=_resolver()):
        result = runner.invoke(app, ["lookup", "integrations"])

    assert result.exit_code == 0
    assert "create-link/?redirect=integrations" in result.stdout


def test_lookup_prints_form_fields():
    with patch("mylinkbot.cli.commands._make_resolver", return_value=_resolver()):
        result = runner.invoke(app, ["lookup", "blueprint_import"])

    assert result.exit_code == 0
    assert "blueprint_url" in result.stdout


def test_lookup_not_found():
    with patch("mylinkbot.cli.commands._make_resolver", return_value=_resolver()):
        result = runner.invoke(app, ["lookup", "nope"])

    assert result.exit_code == 0
    assert "Could not find information" in result.stdout


def test_lookup_fetch_failure_exits_nonzero():
    resolver = _resolver(RedirectListError("offline"))
    with patch("mylinkbot.cli.commands._make_resolver", return_value=resolver):
        result = runner.invoke(app, ["lookup", "integrations"])

    assert result.exit_code == 1


def test_search_lists_choices():
    with patch("mylinkbot.cli.commands._make_resolver", return_value=_resolver()):
        result = runner.invoke(app, ["search", "blue"])

    assert result.exit_code == 0
    assert "blueprint_import" in result.stdout
