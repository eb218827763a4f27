"""Tests for channel and category naming."""

import pytest

from guildsmith.blueprint.naming import (
    effective_emoji_prefix,
    format_category_name,
    format_channel_name,
    normalize_name,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("My Cool Channel!!", "my-cool-channel"),
        ("SERVER INFO", "server-info"),
        ("--Hello__World--", "hello-world"),
        ("general", "general"),
        ("", ""),
    ],
)
def test_normalize_name(raw, expected):
    assert normalize_name(raw) == expected


class TestFormatChannelName:

    def test_prefix_and_separator(self):
        assert format_channel_name("My Cool Channel!!", {"emojiPrefix": "💸"}) == "💸│my-cool-channel"

    def test_no_duplicate_prefix(self):
        """Formatting an already formatted name is a no-op."""
        once = format_channel_name("My Cool Channel!!", {"emojiPrefix": "💸"})
        assert format_channel_name(once, {"emojiPrefix": "💸"}) == once

    def test_branding_emoji_overrides_style(self):
        assert format_channel_name("chat", {"emojiPrefix": "💸"}, {"emoji": "🔥"}) == "🔥│chat"

    def test_without_prefix(self):
        assert format_channel_name("Server Info") == "server-info"

    def test_empty_name_passthrough(self):
        assert format_channel_name("", {"emojiPrefix": "💸"}) == ""


def test_effective_emoji_prefix_defaults_to_empty():
    assert effective_emoji_prefix(None, None) == ""


def test_categories_are_never_branded():
    assert format_category_name("SERVER INFO") == "server-info"
