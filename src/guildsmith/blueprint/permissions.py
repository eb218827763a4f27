"""
Permission presets and per-channel overwrite assembly.

Grants are plain values (target id + allow/deny sets of discord.py permission
attribute names). Every stage returns a fresh list; callers concatenate them
and hand the result to the Guild Service, which merges grants that share a
target (see ``merge_grants``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import discord

from ..constants import PERMISSION_NAMES, ROLE_PATTERNS

log = logging.getLogger("guildsmith.blueprint.permissions")

VIEW = "view_channel"
SEND = "send_messages"
HISTORY = "read_message_history"
MANAGE_MESSAGES = "manage_messages"
MANAGE_THREADS = "manage_threads"
ADMINISTRATOR = "administrator"
THREAD_PERMISSIONS = ("create_public_threads", "create_private_threads", "send_messages_in_threads")

RoleMap = Mapping[str, int]


@dataclass(frozen=True)
class Grant:
    """A (target, allow-set, deny-set) overwrite triple."""
    target_id: int
    allow: frozenset = frozenset()
    deny: frozenset = frozenset()


def grant(target_id: int, allow: Iterable[str] = (), deny: Iterable[str] = ()) -> Grant:
    return Grant(target_id, frozenset(allow), frozenset(deny))


class Preset(str, Enum):
    """Closed set of named permission presets."""
    PUBLIC_READONLY = "public-readonly"
    MODS_ONLY = "mods-only"
    VERIFIED_ONLY = "verified-only"
    STAFF_PRIVATE = "staff-private"
    ANNOUNCEMENT_LOCK = "announcement-lock"

    @classmethod
    def parse(cls, name: Any) -> Optional["Preset"]:
        """Return the preset for ``name`` or ``None`` for anything unknown."""
        if isinstance(name, cls):
            return name
        if not isinstance(name, str):
            return None
        try:
            return cls(name.strip())
        except ValueError:
            return None


CATEGORY_PRESETS = frozenset({Preset.STAFF_PRIVATE, Preset.MODS_ONLY, Preset.PUBLIC_READONLY})


def roles_matching(role_map: RoleMap, pattern_key: str) -> List[int]:
    """Role ids whose names match one of the shared role-name patterns."""
    pattern = ROLE_PATTERNS[pattern_key]
    return [role_id for name, role_id in role_map.items() if pattern.search(name)]


def _readonly(default_role_id: int) -> Grant:
    return grant(default_role_id, allow=(VIEW, HISTORY), deny=(SEND,))


def preset_grants(name: Any, role_map: RoleMap, default_role_id: int) -> List[Grant]:
    """Grants for a channel-level preset. Unknown names yield no grants."""
    preset = Preset.parse(name)
    if preset is None:
        if name:
            log.debug("Ignoring unknown permission preset %r", name)
        return []

    if preset is Preset.PUBLIC_READONLY:
        return [_readonly(default_role_id)]

    if preset is Preset.ANNOUNCEMENT_LOCK:
        grants = [_readonly(default_role_id)]
        grants += [grant(rid, allow=(SEND,)) for rid in roles_matching(role_map, "announcer")]
        return grants

    pattern_key = {
        Preset.MODS_ONLY: "mod",
        Preset.VERIFIED_ONLY: "verified",
        Preset.STAFF_PRIVATE: "staff",
    }[preset]
    grants = [grant(default_role_id, deny=(VIEW,))]
    grants += [grant(rid, allow=(VIEW, SEND)) for rid in roles_matching(role_map, pattern_key)]
    return grants


def apply_preset(name: Any, accumulator: List[Grant], role_map: RoleMap, default_role_id: int) -> None:
    """Extend ``accumulator`` with the grants of ``name``."""
    accumulator.extend(preset_grants(name, role_map, default_role_id))


def category_preset_grants(name: Any, role_map: RoleMap, default_role_id: int) -> List[Grant]:
    """Category-level variant: private presets only open viewing to the matched roles."""
    preset = Preset.parse(name)
    if preset not in CATEGORY_PRESETS:
        return []
    if preset is Preset.PUBLIC_READONLY:
        return [_readonly(default_role_id)]
    pattern_key = "staff" if preset is Preset.STAFF_PRIVATE else "mod"
    grants = [grant(default_role_id, deny=(VIEW,))]
    grants += [grant(rid, allow=(VIEW,)) for rid in roles_matching(role_map, pattern_key)]
    return grants


def channel_preset_name(channel_def: Mapping[str, Any]) -> Optional[str]:
    """``permissionsPreset`` wins over a legacy string-typed ``permissions``."""
    preset = channel_def.get("permissionsPreset")
    if preset:
        return preset
    legacy = channel_def.get("permissions")
    return legacy if isinstance(legacy, str) and legacy else None


def channel_grants(channel_def: Mapping[str, Any], role_map: RoleMap, default_role_id: int) -> List[Grant]:
    """Assemble a channel's overwrite grants in stage order.

    1. ``private`` denies view to the default role; otherwise ``readOnly``
       makes it read-only.
    2. The channel's preset.
    3. ``allowedRoles`` may view.
    4. Convenience grants for moderator and admin roles.
    """
    grants: List[Grant] = []

    if channel_def.get("private"):
        grants.append(grant(default_role_id, deny=(VIEW,)))
    elif channel_def.get("readOnly"):
        grants.append(_readonly(default_role_id))

    apply_preset(channel_preset_name(channel_def), grants, role_map, default_role_id)

    for role_name in channel_def.get("allowedRoles") or []:
        role_id = role_map.get(role_name)
        if role_id is None:
            continue
        grants.append(grant(role_id, allow=(VIEW,)))

    for role_id in roles_matching(role_map, "mod"):
        grants.append(grant(role_id, allow=(MANAGE_MESSAGES, HISTORY, MANAGE_THREADS)))
    for role_id in roles_matching(role_map, "admin"):
        grants.append(grant(role_id, allow=(ADMINISTRATOR,)))

    return grants


def threads_lock_grant(default_role_id: int) -> Grant:
    return grant(default_role_id, deny=THREAD_PERMISSIONS)


def merge_grants(grants: Iterable[Grant]) -> Dict[int, Tuple[frozenset, frozenset]]:
    """Merge grants per target.

    Allow and deny sets are unioned across grants for the same target. When a
    permission ends up both allowed and denied, the grant that came later wins
    for that permission. Targets keep first-seen order.
    """
    merged: Dict[int, Tuple[set, set]] = {}
    for g in grants:
        allow, deny = merged.setdefault(g.target_id, (set(), set()))
        allow.difference_update(g.deny)
        deny.difference_update(g.allow)
        allow.update(g.allow)
        deny.update(g.deny)
    return {tid: (frozenset(a), frozenset(d)) for tid, (a, d) in merged.items()}


def to_overwrite(allow: Iterable[str], deny: Iterable[str]) -> discord.PermissionOverwrite:
    values: Dict[str, bool] = {name: False for name in deny}
    values.update({name: True for name in allow})
    return discord.PermissionOverwrite(**values)


def resolve_permission_names(names: Optional[Iterable[str]]) -> discord.Permissions:
    """Map blueprint permission names (``ManageMessages``) to ``discord.Permissions``.

    Unknown names are dropped.
    """
    values = {}
    for name in names or []:
        attr = PERMISSION_NAMES.get(name)
        if attr:
            values[attr] = True
    return discord.Permissions(**values)


def permission_names(permissions: discord.Permissions) -> List[str]:
    """Inverse of ``resolve_permission_names`` limited to the known names."""
    return [name for name, attr in PERMISSION_NAMES.items() if getattr(permissions, attr, False)]
