from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

from ..constants import GENERAL_NOTICE
from .channels import create_channels
from .community import apply_community_features
from .messages import post_messages
from .progress import Notifier, send_progress
from .roles import create_roles
from .service import ChannelInfo, GuildService

if TYPE_CHECKING:
    from ..services.build_store import BuildStore

log = logging.getLogger("guildsmith.blueprint_engine")


@dataclass(frozen=True)
class BuildMetrics:
    build_seconds: float
    category_count: int
    channel_count: int
    role_count: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BuildResult:
    role_map: Dict[str, int]
    channel_map: Dict[str, int]
    metrics: BuildMetrics


def compute_metrics(blueprint: Mapping[str, Any], elapsed: float) -> BuildMetrics:
    """Counts come from the blueprint, not from what was actually created."""
    categories = blueprint.get("categories") or {}
    return BuildMetrics(
        build_seconds=round(elapsed, 2),
        category_count=len(categories),
        channel_count=sum(len(channels or []) for channels in categories.values()),
        role_count=len(blueprint.get("roles") or []),
    )


def summary_message(metrics: BuildMetrics) -> str:
    return (
        "🎉 Your server is ready!\n"
        f"⏱️ Build time: {metrics.build_seconds:.2f} seconds\n"
        f"📁 Categories: {metrics.category_count}\n"
        f"📄 Channels: {metrics.channel_count}\n"
        f"🧩 Roles: {metrics.role_count}\n\n"
        "Rerun: /setup run\n"
        "Save as template: /setup save-template <name>"
    )


def _pick_general_channel(channels: list[ChannelInfo]) -> Optional[ChannelInfo]:
    text_channels = [c for c in channels if c.kind == "text"]
    for channel in text_channels:
        if "general" in channel.name:
            return channel
    return text_channels[0] if text_channels else None


async def _post_general_notice(service: GuildService) -> None:
    try:
        target = _pick_general_channel(await service.list_channels())
        if target is None:
            return
        channel = service.get_channel(target.id) or await service.fetch_channel(target.id)
        await service.send_text(channel, GENERAL_NOTICE)
    except Exception as e:
        log.warning("General channel post failed: %s", e)


async def _persist(store: "BuildStore", guild_id: int, blueprint: Mapping[str, Any], metrics: BuildMetrics) -> None:
    try:
        await store.save_blueprint(guild_id, dict(blueprint))
        await store.save_build(guild_id, metrics.to_dict())
        log.info("Persisted blueprint & build metrics for guild %s", guild_id)
    except Exception as e:
        log.error("Persist failed for guild %s: %s", guild_id, e)
    try:
        await store.append_usage(guild_id, metrics.to_dict())
    except Exception as e:
        log.error("Usage log failed for guild %s: %s", guild_id, e)


async def apply_blueprint(
    service: GuildService,
    blueprint: Mapping[str, Any],
    *,
    notifier: Optional[Notifier] = None,
    store: Optional["BuildStore"] = None,
    general_notice: bool = True,
) -> BuildResult:
    """Build a guild from an already validated blueprint.

    Stages run strictly in order: roles, categories and channels, messages,
    community features. Per-item failures are logged inside each stage and
    never abort the build. Nothing is rolled back: artifacts of earlier stages
    stay in place if a later stage fails.
    """
    start = time.monotonic()
    log.info("Starting blueprint build for guild %s", service.guild_id)

    await send_progress(notifier, "Creating roles…")
    role_map = await create_roles(service, blueprint.get("roles") or [])

    # categories are created together with their channels
    await send_progress(notifier, "Creating categories…")
    await send_progress(notifier, "Building channels…")
    channels = await create_channels(service, blueprint, role_map, notifier)

    await send_progress(notifier, "Posting about/rules/FAQ…")
    await post_messages(service, channels.channel_map, blueprint)

    await send_progress(notifier, "Applying community features…")
    await apply_community_features(service, blueprint, channels.channel_map)

    await send_progress(notifier, "Finalizing setup…")
    metrics = compute_metrics(blueprint, time.monotonic() - start)

    if store is not None:
        await _persist(store, service.guild_id, blueprint, metrics)

    await send_progress(notifier, summary_message(metrics))

    if general_notice:
        await _post_general_notice(service)

    log.info(
        "Blueprint build complete for guild %s in %.2fs (%d failures)",
        service.guild_id, metrics.build_seconds, len(channels.failures),
    )
    return BuildResult(role_map=role_map, channel_map=channels.channel_map, metrics=metrics)
