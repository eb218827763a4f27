from __future__ import annotations

import logging
from typing import Any, Mapping

from .service import GuildService

log = logging.getLogger("guildsmith.builder.community")


async def apply_community_features(service: GuildService, blueprint: Mapping[str, Any], channel_map: Mapping[str, int]) -> None:
    """Community toggles for the guild.

    Intentionally partial: a declared welcome screen is only logged as a
    deferred action. Configuring it needs guild-level community state
    (rules/updates channels, verification level) that the builder does not
    manage.
    """
    if not blueprint.get("community"):
        return
    log.info("Applying community features for guild %s", service.guild_id)

    welcome = blueprint.get("welcomeScreen")
    if welcome:
        prompts = welcome.get("prompts") or []
        linked = [p.get("channel") for p in prompts if p.get("channel") in channel_map]
        log.info(
            "Welcome screen configuration deferred (%d prompt(s), %d linked to created channels)",
            len(prompts), len(linked),
        )
