from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..constants import CHANNEL_TYPES
from .naming import format_category_name, format_channel_name
from .permissions import category_preset_grants, channel_grants, threads_lock_grant
from .progress import Notifier, send_progress
from .safety import nonfatal
from .service import GuildService

log = logging.getLogger("guildsmith.builder.channels")


@dataclass
class ChannelBuildResult:
    # keyed by the names the blueprint author used, before normalization
    channel_map: Dict[str, int] = field(default_factory=dict)
    category_map: Dict[str, int] = field(default_factory=dict)
    failures: List[str] = field(default_factory=list)


def resolve_channel_kind(channel_def: Mapping[str, Any]) -> str:
    kind = channel_def.get("type") or "text"
    return kind if kind in CHANNEL_TYPES else "text"


async def _apply_category_preset(
    service: GuildService,
    category: Any,
    category_name: str,
    preset: str,
    role_map: Mapping[str, int],
) -> None:
    grants = category_preset_grants(preset, role_map, service.default_role_id)
    if not grants:
        log.debug("Category %s: preset %r has no category variant", category_name, preset)
        return
    await nonfatal(
        f"Category preset {preset} ({category_name})",
        service.set_permission_overwrites(category, grants),
        logger=log,
    )


async def _create_one_channel(
    service: GuildService,
    blueprint: Mapping[str, Any],
    category: Any,
    channel_def: Mapping[str, Any],
    role_map: Mapping[str, int],
    notifier: Optional[Notifier],
) -> Optional[Any]:
    original_name = channel_def.get("name")
    channel_name = format_channel_name(original_name, blueprint.get("style"), blueprint.get("branding"))
    kind = resolve_channel_kind(channel_def)

    channel = await nonfatal(
        f"Channel create ({channel_name})",
        service.create_channel(
            channel_name,
            kind,
            category=category,
            topic=channel_def.get("topic") or None,
            default_auto_archive_duration=channel_def.get("defaultAutoArchiveDuration") if kind == "forum" else None,
        ),
        logger=log,
    )
    if channel is None:
        return None

    grants = channel_grants(channel_def, role_map, service.default_role_id)
    if channel_def.get("threadsLocked"):
        grants.append(threads_lock_grant(service.default_role_id))
    if grants:
        await nonfatal(
            f"Permission overwrite ({channel_name})",
            service.set_permission_overwrites(channel, grants),
            logger=log,
        )

    await send_progress(notifier, f"✅ Created {channel_name}")

    webhook_def = (blueprint.get("webhooks") or {}).get(original_name)
    if webhook_def is not None:
        hook = await nonfatal(
            f"Webhook create ({channel_name})",
            service.create_webhook(channel, webhook_def.get("name") or original_name, webhook_def.get("avatar") or None),
            logger=log,
        )
        if hook is not None:
            await send_progress(notifier, f"🔗 Webhook created for {channel_name}")

    return channel


async def create_channels(
    service: GuildService,
    blueprint: Mapping[str, Any],
    role_map: Mapping[str, int],
    notifier: Optional[Notifier] = None,
) -> ChannelBuildResult:
    """Create categories and their channels, then reconcile declared order.

    Categories are processed in the blueprint's key order and channels in list
    order. A failed category skips its channels; a failed channel skips only
    itself.
    """
    result = ChannelBuildResult()
    category_privacy = blueprint.get("categoryPrivacy") or {}
    ordering: Dict[str, List[Tuple[Any, int]]] = {}

    for category_name, channel_defs in (blueprint.get("categories") or {}).items():
        category = await nonfatal(
            f"Category create ({category_name})",
            service.create_category(format_category_name(category_name)),
            logger=log,
        )
        if category is None:
            result.failures.append(f"category:{category_name}")
            continue
        result.category_map[category_name] = category.id

        preset = category_privacy.get(category_name)
        if preset:
            await _apply_category_preset(service, category, category_name, preset, role_map)

        for channel_def in channel_defs or []:
            channel = await _create_one_channel(service, blueprint, category, channel_def, role_map, notifier)
            if channel is None:
                result.failures.append(f"channel:{channel_def.get('name')}")
                continue
            result.channel_map[channel_def.get("name")] = channel.id

            order = channel_def.get("order")
            if isinstance(order, (int, float)) and not isinstance(order, bool):
                ordering.setdefault(category_name, []).append((channel, order))

    for category_name, items in ordering.items():
        ranked = sorted(items, key=lambda item: item[1])
        for position, (channel, _order) in enumerate(ranked):
            await nonfatal(
                f"Set position ({category_name}/{channel.name})",
                service.set_channel_position(channel, position),
                logger=log,
            )

    log.info(
        "Created %d categories and %d channels (%d failures)",
        len(result.category_map), len(result.channel_map), len(result.failures),
    )
    return result
