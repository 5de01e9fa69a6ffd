"""Shared fixtures: virtual clock, scripted lookup client, Constants snapshot."""

import json
import urllib.parse

import pytest

from constants import Constants


class FakeClock:
    """Virtual time: sleep() advances now instead of blocking."""

    def __init__(self, start=1_700_000_000.0):
        self.now = float(start)
        self.sleeps = []

    def time(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds

    def advance(self, seconds):
        self.now += seconds


class ScriptedClient:
    """Stands in for LookupHttpClient.

    ``searches`` maps package name -> exact-search body and ``projects`` maps
    package name -> project-by-identifier body; anything else gets ``default``.
    """

    def __init__(self, searches=None, projects=None, clock=None, default=""):
        self.searches = searches or {}
        self.projects = projects or {}
        self.default = default
        self.clock = clock
        self.calls = []
        self.call_times = []

    def fetch(self, url, params=None):
        self.calls.append(url)
        if self.clock is not None:
            self.call_times.append(self.clock.now)
        parts = urllib.parse.urlsplit(url)
        if parts.path.endswith("/projects/"):
            name = urllib.parse.parse_qs(parts.query).get("search", [""])[0]
            return self.searches.get(name, self.default)
        if "/project/" in parts.path:
            name = urllib.parse.unquote(parts.path.rsplit("/project/", 1)[1])
            return self.projects.get(name, self.default)
        return self.default

    @property
    def searched(self):
        """Package names sent to the exact-name search, in order."""
        return [
            urllib.parse.parse_qs(urllib.parse.urlsplit(u).query).get("search", [""])[0]
            for u in self.calls
            if urllib.parse.urlsplit(u).path.endswith("/projects/")
        ]

    def check_connectivity(self, url=None, timeout=None):
        return True


def search_body(project, packages):
    """Build an exact-name search response for one project."""
    return json.dumps({project: packages})


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture(autouse=True)
def restore_constants():
    """Undo any Constants mutation made by config/CLI override code under test."""
    saved = {k: v for k, v in vars(Constants).items() if k.isupper()}
    yield
    for key, value in saved.items():
        setattr(Constants, key, value)
