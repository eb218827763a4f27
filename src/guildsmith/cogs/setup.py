from __future__ import annotations

import io
import json
import logging
from typing import Any, Dict, Optional

import discord
from discord import app_commands
from discord.ext import commands

from ..ai.generation import generate_validated_blueprint
from ..ai.interview import DMInterview
from ..ai.templates import FAQ_TEMPLATES, RULE_TEMPLATES, infer_faq_template, infer_rule_template, inject_info_channels, render_faq
from ..blueprint.discord_service import DiscordGuildService
from ..blueprint.engine import apply_blueprint
from ..blueprint.export import export_guild
from ..blueprint.preview import build_preview
from ..blueprint.progress import DMNotifier, send_progress, truncate_message
from ..blueprint.schema import format_validation_errors, validate_blueprint
from ..errors import GenerationError
from ..services.build_store import utc_timestamp
from ..services.template_store import TemplateStore

log = logging.getLogger("guildsmith.cogs.setup")

JOIN_DM_FAILED = "⚠️ I couldn't DM the server owner. Please enable DMs and re-add me."


def _json_file(data: Dict[str, Any], filename: str) -> discord.File:
    payload = json.dumps(data, indent=2, ensure_ascii=False).encode("utf-8")
    return discord.File(io.BytesIO(payload), filename=filename)


class SetupCog(commands.Cog):
    """Guild-owner commands for building, exporting and reapplying blueprints."""

    def __init__(self, bot: commands.Bot) -> None:
        self.bot = bot  # type: ignore[assignment]

    setup = app_commands.Group(name="setup", description="Run or manage the automated server builder.")

    async def _owner_only(self, interaction: discord.Interaction) -> bool:
        if interaction.guild is None:
            await interaction.response.send_message("This command only works in a server.", ephemeral=True)
            return False
        if interaction.user.id != interaction.guild.owner_id:
            await interaction.response.send_message("Owner only.", ephemeral=True)
            return False
        return True

    async def _stored_blueprint(self, guild_id: int) -> Optional[Dict[str, Any]]:
        cfg = await self.bot.guild_config_store.get(guild_id)  # type: ignore[attr-defined]
        blueprint = cfg.get("last_blueprint")
        if blueprint:
            return blueprint
        return await self.bot.build_store.get_blueprint(guild_id)  # type: ignore[attr-defined]

    async def _build(self, guild: discord.Guild, blueprint: Dict[str, Any], user: discord.abc.User) -> Dict[str, Any]:
        result = await apply_blueprint(
            DiscordGuildService(guild),
            blueprint,
            notifier=DMNotifier(user),
            store=self.bot.build_store,  # type: ignore[attr-defined]
            general_notice=self.bot.settings.general_notice_enabled,  # type: ignore[attr-defined]
        )
        return result.metrics.to_dict()

    async def onboard(self, guild: discord.Guild, user: discord.abc.User, greeting: str) -> Optional[Dict[str, Any]]:
        """Interview ``user`` by DM, generate a blueprint and build ``guild``.

        Returns the build metrics, or ``None`` when generation or the build
        failed (the user is told by DM). Raises ``discord.Forbidden`` when the
        user does not accept DMs.
        """
        await user.send(greeting)
        notifier = DMNotifier(user)

        interview = await DMInterview(self.bot, user).run()
        await send_progress(notifier, "🧠 Generating blueprint with AI...")
        try:
            blueprint = await generate_validated_blueprint(
                self.bot.ai_gateway,  # type: ignore[attr-defined]
                interview.answers,
                notifier=notifier,
                max_attempts=self.bot.settings.ai_max_attempts,  # type: ignore[attr-defined]
            )
        except GenerationError as e:
            log.warning("Blueprint generation failed for guild %s: %s", guild.id, e)
            await send_progress(notifier, f"❌ {e}")
            return None

        if interview.wants_info_channels:
            blueprint = inject_info_channels(blueprint, interview.about, interview.template_key, guild.name)
            rules = RULE_TEMPLATES[interview.template_key or infer_rule_template(interview.about)]
            faq = FAQ_TEMPLATES[interview.template_key or infer_faq_template(interview.about)]
            await send_progress(notifier, "📋 **Generated Content Preview:**")
            await send_progress(notifier, f"**{rules.title}**\n{rules.render()}")
            await send_progress(notifier, f"**❓ FAQ Preview**\n{render_faq(faq)}")
            await send_progress(
                notifier,
                "💡 To customize: export the blueprint after build, edit the JSON, then use `/setup import` to rebuild with your changes.",
            )

        await send_progress(notifier, "✨ Blueprint validated. Building your server now...")
        try:
            metrics = await self._build(guild, blueprint, user)
        except Exception:
            log.exception("Build failed for guild %s", guild.id)
            await send_progress(notifier, "❌ An error occurred while building the server. Check bot logs.")
            return None
        await self.bot.guild_config_store.update(guild.id, last_blueprint=blueprint, last_metrics=metrics)  # type: ignore[attr-defined]
        return metrics

    @commands.Cog.listener()
    async def on_guild_join(self, guild: discord.Guild) -> None:
        log.info("Joined guild %s (%s), starting onboarding", guild.name, guild.id)
        try:
            owner = guild.owner or await guild.fetch_member(guild.owner_id)
            await self.onboard(guild, owner, f"👋 Thanks for adding me to **{guild.name}**! Let's set up your server.")
        except discord.HTTPException as e:
            log.warning("Onboarding DM failed for guild %s: %s", guild.id, e)
            if guild.system_channel is None:
                return
            try:
                await guild.system_channel.send(JOIN_DM_FAILED)
            except discord.HTTPException as notice_error:
                log.warning("System channel notice failed for guild %s: %s", guild.id, notice_error)

    @setup.command(name="run", description="Run the interview flow and build the server")
    async def run(self, interaction: discord.Interaction) -> None:
        if not await self._owner_only(interaction):
            return
        assert interaction.guild is not None
        guild = interaction.guild
        user = interaction.user

        server_wait = self.bot.server_cooldowns.remaining(guild.id)  # type: ignore[attr-defined]
        if server_wait > 0:
            await interaction.response.send_message(f"Server cooldown active. Try again in {server_wait:.0f}s.", ephemeral=True)
            return
        user_wait = self.bot.user_cooldowns.remaining(user.id)  # type: ignore[attr-defined]
        if user_wait > 0:
            await interaction.response.send_message(f"Your personal cooldown active. Try again in {user_wait:.0f}s.", ephemeral=True)
            return
        self.bot.server_cooldowns.touch(guild.id)  # type: ignore[attr-defined]
        self.bot.user_cooldowns.touch(user.id)  # type: ignore[attr-defined]

        await interaction.response.send_message("Launching interview...", ephemeral=True)
        try:
            await self.onboard(guild, user, "Re-running server setup interview.")
        except discord.Forbidden:
            await interaction.followup.send("I can't DM you. Enable DMs from server members and retry.", ephemeral=True)

    @setup.command(name="preview", description="Preview the last built blueprint")
    async def preview(self, interaction: discord.Interaction) -> None:
        if not await self._owner_only(interaction):
            return
        assert interaction.guild is not None
        blueprint = await self._stored_blueprint(interaction.guild.id)
        if not blueprint:
            await interaction.response.send_message("No blueprint stored yet.", ephemeral=True)
            return
        await interaction.response.send_message("Sending blueprint file…", ephemeral=True)
        try:
            await interaction.user.send(
                content=truncate_message("Blueprint Preview:\n" + build_preview(blueprint)),
                file=_json_file(blueprint, "blueprint.json"),
            )
        except discord.HTTPException as e:
            log.warning("Preview DM failed: %s", e)
            await interaction.followup.send("Failed to send the blueprint. Are your DMs open?", ephemeral=True)

    @setup.command(name="export", description="Export the current server into a blueprint")
    async def export(self, interaction: discord.Interaction) -> None:
        if not await self._owner_only(interaction):
            return
        assert interaction.guild is not None
        guild = interaction.guild
        await interaction.response.send_message("Exporting guild…", ephemeral=True)

        previous = await self._stored_blueprint(guild.id) or {}
        data = await export_guild(DiscordGuildService(guild), branding=previous.get("branding"))
        report = validate_blueprint(data)
        if not report.valid:
            log.warning("Export of guild %s is not a valid blueprint: %s", guild.id, format_validation_errors(report.errors))
            await interaction.followup.send(
                truncate_message("Export produced an invalid blueprint: " + format_validation_errors(report.errors)),
                ephemeral=True,
            )
            return

        await self.bot.guild_config_store.update(guild.id, last_blueprint=data, last_export=utc_timestamp())  # type: ignore[attr-defined]
        await interaction.followup.send("Export complete. DMing file.", ephemeral=True)
        try:
            await interaction.user.send(content="Guild Export Blueprint", file=_json_file(data, f"{guild.id}-export.json"))
        except discord.HTTPException as e:
            log.warning("Export DM failed: %s", e)

    @setup.command(name="reapply", description="Reapply the last stored blueprint")
    async def reapply(self, interaction: discord.Interaction) -> None:
        if not await self._owner_only(interaction):
            return
        assert interaction.guild is not None
        guild = interaction.guild
        blueprint = await self._stored_blueprint(guild.id)
        if not blueprint:
            await interaction.response.send_message("No stored blueprint. Run /setup run first or import/export.", ephemeral=True)
            return
        report = validate_blueprint(blueprint)
        if not report.valid:
            await interaction.response.send_message(
                truncate_message("Stored blueprint is invalid: " + format_validation_errors(report.errors)),
                ephemeral=True,
            )
            return

        await interaction.response.send_message("Reapplying blueprint…", ephemeral=True)
        try:
            metrics = await self._build(guild, blueprint, interaction.user)
        except Exception as e:
            log.exception("Reapply failed for guild %s", guild.id)
            await interaction.followup.send(f"Reapply failed: {e}", ephemeral=True)
            return
        await self.bot.guild_config_store.update(  # type: ignore[attr-defined]
            guild.id, last_reapply=utc_timestamp(), last_metrics=metrics
        )
        await interaction.followup.send(
            f"Reapply complete. Channels: {metrics['channel_count']}, Roles: {metrics['role_count']}",
            ephemeral=True,
        )

    @setup.command(name="import", description="Import a blueprint JSON")
    @app_commands.describe(file="Blueprint JSON file")
    async def import_blueprint(self, interaction: discord.Interaction, file: discord.Attachment) -> None:
        if not await self._owner_only(interaction):
            return
        assert interaction.guild is not None
        guild = interaction.guild
        await interaction.response.send_message("Importing blueprint…", ephemeral=True)
        try:
            data = json.loads((await file.read()).decode("utf-8"))
        except (discord.HTTPException, UnicodeDecodeError, ValueError) as e:
            log.info("Import failed for guild %s: %s", guild.id, e)
            await interaction.followup.send(f"Import failed: {e}", ephemeral=True)
            return

        report = validate_blueprint(data)
        if not report.valid:
            await interaction.followup.send(
                truncate_message("Validation errors: " + format_validation_errors(report.errors)),
                ephemeral=True,
            )
            return

        await self.bot.build_store.save_blueprint(guild.id, data)  # type: ignore[attr-defined]
        await self.bot.guild_config_store.update(guild.id, last_blueprint=data, imported_at=utc_timestamp())  # type: ignore[attr-defined]
        await interaction.followup.send("Blueprint imported. Use /setup reapply to build.", ephemeral=True)

    @setup.command(name="save-template", description="Save the last blueprint as a named template")
    @app_commands.describe(name="Template name")
    async def save_template(self, interaction: discord.Interaction, name: str) -> None:
        if not await self._owner_only(interaction):
            return
        assert interaction.guild is not None
        if not TemplateStore.is_valid_name(name):
            await interaction.response.send_message(
                "Template name must be 2-32 chars (alphanumeric, dash, underscore).", ephemeral=True
            )
            return
        blueprint = await self._stored_blueprint(interaction.guild.id)
        if not blueprint:
            await interaction.response.send_message("No blueprint stored yet to save.", ephemeral=True)
            return
        await self.bot.template_store.save(name, blueprint, created_by=interaction.user.id)  # type: ignore[attr-defined]
        await interaction.response.send_message(f"Template saved as {name.lower()}", ephemeral=True)


async def setup(bot: commands.Bot) -> None:
    await bot.add_cog(SetupCog(bot))
