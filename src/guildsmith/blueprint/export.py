"""
Export a live guild back into blueprint form.

The result always goes through the same validator as any other blueprint, so
an export can be imported, stored as a template or reapplied unchanged.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..constants import AUTO_ARCHIVE_DURATIONS, CHANNEL_TYPES, ROLE_PATTERNS
from .permissions import SEND, VIEW, Preset, permission_names
from .service import ChannelInfo, GuildService, OverwriteInfo, RoleInfo

log = logging.getLogger("guildsmith.blueprint.export")

UNCATEGORIZED = "uncategorized"


def infer_preset(
    overwrites: Sequence[OverwriteInfo],
    default_role_id: int,
    role_names: Optional[Mapping[int, str]] = None,
) -> Optional[str]:
    """Best guess at the preset that produced a channel's overwrites.

    Checked in order: public-readonly, announcement-lock, then the private
    presets. Private channels are told apart by the names of the roles that
    may view and send: all verified roles means verified-only, moderator roles
    only (while an admin or staff role exists) means mods-only. Without
    ``role_names`` every private channel maps to staff-private, so the
    mapping is lossy for the other two.
    """
    default = next((o for o in overwrites if o.target_id == default_role_id), None)
    if default is None:
        return None
    others = [o for o in overwrites if o.target_id != default_role_id]

    if VIEW in default.allow and SEND in default.deny and not any(SEND in o.allow for o in others):
        return Preset.PUBLIC_READONLY.value
    if SEND in default.deny and any(SEND in o.allow for o in others):
        return Preset.ANNOUNCEMENT_LOCK.value
    if VIEW in default.deny and any(VIEW in o.allow for o in others):
        return _private_preset(others, role_names or {}).value
    return None


def _private_preset(others: Sequence[OverwriteInfo], role_names: Mapping[int, str]) -> Preset:
    viewers = [role_names.get(o.target_id, "") for o in others if {VIEW, SEND} <= o.allow]
    if not viewers or not all(viewers):
        return Preset.STAFF_PRIVATE

    def matches(name: str, key: str) -> bool:
        return ROLE_PATTERNS[key].search(name) is not None

    if all(matches(n, "verified") and not matches(n, "staff") for n in viewers):
        return Preset.VERIFIED_ONLY
    staff_only = [n for n in role_names.values() if matches(n, "staff") and not matches(n, "mod")]
    if all(matches(n, "mod") for n in viewers) and staff_only:
        return Preset.MODS_ONLY
    return Preset.STAFF_PRIVATE


def _color_hex(value: int) -> Optional[str]:
    return f"#{value:06x}" if value else None


def export_role(role: RoleInfo) -> Dict[str, Any]:
    data: Dict[str, Any] = {"name": role.name, "permissions": permission_names(role.permissions)}
    color = _color_hex(role.color)
    if color:
        data["color"] = color
    return data


def export_channel(
    channel: ChannelInfo,
    default_role_id: int,
    role_names: Optional[Mapping[int, str]] = None,
) -> Dict[str, Any]:
    kind = channel.kind if channel.kind in CHANNEL_TYPES else "text"
    data: Dict[str, Any] = {"name": channel.name, "type": kind}
    if channel.topic:
        data["topic"] = channel.topic
    if kind == "forum" and channel.default_auto_archive_duration in AUTO_ARCHIVE_DURATIONS:
        data["defaultAutoArchiveDuration"] = channel.default_auto_archive_duration
    preset = infer_preset(channel.overwrites, default_role_id, role_names)
    if preset:
        data["permissionsPreset"] = preset
    return data


async def _export_webhooks(service: GuildService, channels: List[ChannelInfo]) -> Dict[str, Dict[str, str]]:
    webhooks: Dict[str, Dict[str, str]] = {}
    for channel in channels:
        if channel.kind not in ("text", "announcement", "forum"):
            continue
        try:
            names = await service.list_webhook_names(channel.id)
        except Exception as e:
            log.debug("Webhook listing failed for %s: %s", channel.name, e)
            continue
        if names:
            # blueprints hold one webhook per channel
            webhooks[channel.name] = {"name": names[0]}
    return webhooks


async def export_guild(service: GuildService, *, branding: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """Reconstruct a blueprint from the guild's current roles and channels.

    Default and bot-managed roles are skipped. Channels without a category are
    collected under an ``uncategorized`` key. ``branding`` is carried over from
    the last stored blueprint when given.
    """
    default_role_id = service.default_role_id

    live_roles = await service.list_roles()
    role_names = {r.id: r.name for r in live_roles}
    roles = sorted(
        (r for r in live_roles if not r.is_default and not r.managed),
        key=lambda r: r.position,
        reverse=True,
    )

    live_channels = await service.list_channels()
    category_names = {c.id: c.name for c in live_channels if c.is_category}
    categories: Dict[str, List[Dict[str, Any]]] = {name: [] for name in category_names.values()}
    plain_channels = [c for c in live_channels if not c.is_category]

    for channel in plain_channels:
        key = category_names.get(channel.category_id, UNCATEGORIZED) if channel.category_id else UNCATEGORIZED
        categories.setdefault(key, []).append(export_channel(channel, default_role_id, role_names))

    blueprint: Dict[str, Any] = {
        "roles": [export_role(r) for r in roles],
        "categories": categories,
    }
    webhooks = await _export_webhooks(service, plain_channels)
    if webhooks:
        blueprint["webhooks"] = webhooks
    if branding:
        blueprint["branding"] = dict(branding)

    log.info(
        "Exported guild %s: %d roles, %d categories, %d channels",
        service.guild_id, len(roles), len(categories), len(plain_channels),
    )
    return blueprint
