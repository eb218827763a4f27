"""Shared fixtures for guildsmith tests."""

import copy

import pytest

from guildsmith.testing.fakes import FakeBuildStore, FakeGuildService, FakeNotifier

CANONICAL_BLUEPRINT = {
    "style": {"emojiPrefix": "💸", "theme": "neon-gold"},
    "roles": [
        {"name": "Admin", "permissions": ["Administrator"], "color": "#FFD700"},
        {"name": "Moderator", "permissions": ["ManageMessages"]},
        {"name": "Member"},
    ],
    "categories": {
        "SERVER INFO": [
            {
                "name": "rules",
                "type": "text",
                "permissionsPreset": "public-readonly",
                "message": {"title": "Rules", "body": "1. Be kind\n2. No spam"},
            }
        ],
        "COMMUNITY": [{"name": "general", "type": "text"}],
    },
}


@pytest.fixture
def canonical_blueprint():
    """Three roles, two categories, one channel each."""
    return copy.deepcopy(CANONICAL_BLUEPRINT)


@pytest.fixture
def service():
    return FakeGuildService()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def build_store():
    return FakeBuildStore()


@pytest.fixture
def sqlite_path(tmp_path):
    return str(tmp_path / "guildsmith-test.sqlite3")
