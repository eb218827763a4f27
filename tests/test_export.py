"""Tests for exporting a live guild back into a blueprint."""

import discord
import pytest

from guildsmith.blueprint.engine import apply_blueprint
from guildsmith.blueprint.export import UNCATEGORIZED, export_guild, infer_preset
from guildsmith.blueprint.permissions import HISTORY, SEND, VIEW
from guildsmith.blueprint.schema import validate_blueprint
from guildsmith.blueprint.service import OverwriteInfo
from guildsmith.testing.fakes import FakeGuildService

EVERYONE = 100


def _rich_blueprint():
    return {
        "style": {"emojiPrefix": "💸", "theme": "neon-gold"},
        "branding": {"color": "#FFD700", "emoji": "💸"},
        "roles": [
            {"name": "Admin", "permissions": ["Administrator"], "color": "#FFD700"},
            {"name": "Moderator", "permissions": ["ManageMessages", "EmbedLinks"]},
            {"name": "Member"},
        ],
        "categories": {
            "SERVER INFO": [
                {"name": "rules", "permissionsPreset": "public-readonly", "message": {"title": "Rules"}},
                {"name": "announcements", "type": "announcement", "permissionsPreset": "announcement-lock"},
            ],
            "STAFF": [{"name": "staff-chat", "permissionsPreset": "staff-private"}],
            "COMMUNITY": [
                {"name": "general", "topic": "Say hi"},
                {"name": "ideas", "type": "forum", "defaultAutoArchiveDuration": 4320},
                {"name": "lounge", "type": "voice"},
            ],
        },
        "webhooks": {"announcements": {"name": "Herald"}},
    }


def _channels(exported, category):
    return {c["name"]: c for c in exported["categories"][category]}


class TestExportGuild:

    @pytest.mark.asyncio
    async def test_export_of_built_guild_validates(self, service):
        """Export of a guild built from a valid blueprint passes the validator."""
        await apply_blueprint(service, _rich_blueprint(), general_notice=False)
        exported = await export_guild(service, branding={"color": "#FFD700", "emoji": "💸"})

        report = validate_blueprint(exported)
        assert report.valid, report.errors

    @pytest.mark.asyncio
    async def test_roles(self, service):
        await apply_blueprint(service, _rich_blueprint(), general_notice=False)
        service.add_managed_role("SomeBot")
        exported = await export_guild(service)

        roles = {r["name"]: r for r in exported["roles"]}
        assert set(roles) == {"Admin", "Moderator", "Member"}
        assert roles["Admin"] == {"name": "Admin", "permissions": ["Administrator"], "color": "#ffd700"}
        assert roles["Moderator"]["permissions"] == ["ManageMessages", "EmbedLinks"]
        assert "color" not in roles["Member"]

    @pytest.mark.asyncio
    async def test_channels_and_inferred_presets(self, service):
        await apply_blueprint(service, _rich_blueprint(), general_notice=False)
        exported = await export_guild(service)

        assert list(exported["categories"]) == ["server-info", "staff", "community"]
        info = _channels(exported, "server-info")
        assert info["💸│rules"]["permissionsPreset"] == "public-readonly"
        assert info["💸│announcements"]["permissionsPreset"] == "announcement-lock"
        assert info["💸│announcements"]["type"] == "announcement"
        assert _channels(exported, "staff")["💸│staff-chat"]["permissionsPreset"] == "staff-private"

        community = _channels(exported, "community")
        assert community["💸│general"]["topic"] == "Say hi"
        assert "permissionsPreset" not in community["💸│general"]
        assert community["💸│ideas"]["defaultAutoArchiveDuration"] == 4320
        assert community["💸│lounge"]["type"] == "voice"

    @pytest.mark.asyncio
    async def test_webhooks_and_branding(self, service):
        await apply_blueprint(service, _rich_blueprint(), general_notice=False)
        exported = await export_guild(service, branding={"emoji": "💸"})

        assert exported["webhooks"] == {"💸│announcements": {"name": "Herald"}}
        assert exported["branding"] == {"emoji": "💸"}

    @pytest.mark.asyncio
    async def test_uncategorized_channels(self, service):
        await service.create_role("Member", permissions=discord.Permissions.none())
        await service.create_channel("loose", "text", category=None)
        exported = await export_guild(service)

        assert exported["categories"] == {UNCATEGORIZED: [{"name": "loose", "type": "text"}]}
        assert validate_blueprint(exported).valid

    @pytest.mark.asyncio
    async def test_reexport_is_stable(self, service):
        """Building from an export and exporting again yields the same channels."""
        await apply_blueprint(service, _rich_blueprint(), general_notice=False)
        first = await export_guild(service)

        second_service = FakeGuildService(guild_id=9000)
        await apply_blueprint(second_service, first, general_notice=False)
        second = await export_guild(second_service)

        assert second["categories"].keys() == first["categories"].keys()
        assert [r["name"] for r in second["roles"]] == [r["name"] for r in first["roles"]]


class TestInferPreset:

    def test_public_readonly(self):
        overwrites = [OverwriteInfo(EVERYONE, frozenset({VIEW, HISTORY}), frozenset({SEND}))]
        assert infer_preset(overwrites, EVERYONE) == "public-readonly"

    def test_announcement_lock(self):
        overwrites = [
            OverwriteInfo(EVERYONE, frozenset({VIEW}), frozenset({SEND})),
            OverwriteInfo(5, frozenset({SEND}), frozenset()),
        ]
        assert infer_preset(overwrites, EVERYONE) == "announcement-lock"

    def test_staff_private(self):
        overwrites = [
            OverwriteInfo(EVERYONE, frozenset(), frozenset({VIEW})),
            OverwriteInfo(5, frozenset({VIEW, SEND}), frozenset()),
        ]
        assert infer_preset(overwrites, EVERYONE) == "staff-private"

    def test_private_without_any_viewer_is_not_a_preset(self):
        overwrites = [OverwriteInfo(EVERYONE, frozenset(), frozenset({VIEW}))]
        assert infer_preset(overwrites, EVERYONE) is None

    def test_no_default_role_overwrite(self):
        assert infer_preset([OverwriteInfo(5, frozenset({SEND}), frozenset())], EVERYONE) is None
        assert infer_preset([], EVERYONE) is None

    def test_verified_viewers(self):
        overwrites = [
            OverwriteInfo(EVERYONE, frozenset(), frozenset({VIEW})),
            OverwriteInfo(7, frozenset({VIEW, SEND}), frozenset()),
        ]
        names = {EVERYONE: "@everyone", 5: "Admin", 6: "Moderator", 7: "Verified"}
        assert infer_preset(overwrites, EVERYONE, names) == "verified-only"

    def test_moderator_viewers_with_admin_present(self):
        overwrites = [
            OverwriteInfo(EVERYONE, frozenset(), frozenset({VIEW})),
            OverwriteInfo(6, frozenset({VIEW, SEND}), frozenset()),
            OverwriteInfo(5, frozenset({"administrator"}), frozenset()),
        ]
        names = {EVERYONE: "@everyone", 5: "Admin", 6: "Moderator"}
        assert infer_preset(overwrites, EVERYONE, names) == "mods-only"

    def test_unknown_viewer_falls_back_to_staff_private(self):
        overwrites = [
            OverwriteInfo(EVERYONE, frozenset(), frozenset({VIEW})),
            OverwriteInfo(99, frozenset({VIEW, SEND}), frozenset()),
        ]
        assert infer_preset(overwrites, EVERYONE, {5: "Admin"}) == "staff-private"


@pytest.mark.asyncio
@pytest.mark.parametrize("preset", ["verified-only", "mods-only", "staff-private"])
async def test_private_presets_survive_export(service, preset):
    blueprint = {
        "roles": [{"name": "Admin"}, {"name": "Moderator"}, {"name": "Verified"}],
        "categories": {"MEMBERS": [{"name": "lounge", "permissionsPreset": preset}]},
    }
    await apply_blueprint(service, blueprint, general_notice=False)
    exported = await export_guild(service)
    assert exported["categories"]["members"][0]["permissionsPreset"] == preset
