from __future__ import annotations

import logging
from typing import Any, Mapping

from .embeds import build_styled_embed
from .safety import nonfatal
from .service import GuildService

log = logging.getLogger("guildsmith.builder.messages")


async def _post_one(service: GuildService, channel_id: int, message: Mapping[str, Any], blueprint: Mapping[str, Any]) -> bool:
    channel = service.get_channel(channel_id)
    if channel is None:
        channel = await service.fetch_channel(channel_id)
    embed = build_styled_embed(message, blueprint.get("style"), blueprint.get("branding"))
    await service.send_embed(channel, embed)
    return True


async def post_messages(service: GuildService, channel_map: Mapping[str, int], blueprint: Mapping[str, Any]) -> int:
    """Post an embed into every created channel that declares a ``message``.

    Returns the number of messages posted; per-channel failures are logged.
    """
    posted = 0
    for channel_defs in (blueprint.get("categories") or {}).values():
        for channel_def in channel_defs or []:
            message = channel_def.get("message")
            if not message:
                continue
            name = channel_def.get("name")
            channel_id = channel_map.get(name)
            if channel_id is None:
                continue
            ok = await nonfatal(f"Post message ({name})", _post_one(service, channel_id, message, blueprint), logger=log)
            if ok:
                posted += 1
    return posted
