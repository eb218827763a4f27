from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..constants import (
    ADMIN_DEFAULT_PERMISSIONS,
    ADMIN_ROLE_NAMES,
    MODERATOR_DEFAULT_PERMISSIONS,
    MODERATOR_ROLE_NAMES,
)
from .permissions import resolve_permission_names
from .safety import nonfatal
from .service import GuildService

log = logging.getLogger("guildsmith.builder.roles")


def infer_permission_names(role_def: Mapping[str, Any]) -> List[str]:
    """Explicit permissions, else a default set for well-known role names."""
    explicit = list(role_def.get("permissions") or [])
    if explicit:
        return explicit
    lower = str(role_def.get("name", "")).strip().lower()
    if lower in ADMIN_ROLE_NAMES:
        return list(ADMIN_DEFAULT_PERMISSIONS)
    if lower in MODERATOR_ROLE_NAMES:
        return list(MODERATOR_DEFAULT_PERMISSIONS)
    return []


def parse_hex_color(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    try:
        return int(value.lstrip("#"), 16)
    except ValueError:
        return None


async def create_roles(service: GuildService, role_defs: Iterable[Mapping[str, Any]]) -> Dict[str, int]:
    """Create every role in declaration order and return ``name -> id``.

    A failing role is logged and skipped. Duplicate names overwrite the
    earlier map entry (last one wins).
    """
    role_map: Dict[str, int] = {}
    for role_def in role_defs or []:
        name = role_def.get("name")
        if not name:
            continue
        permissions = resolve_permission_names(infer_permission_names(role_def))
        role = await nonfatal(
            f"Role create ({name})",
            service.create_role(name, permissions=permissions, color=parse_hex_color(role_def.get("color"))),
            logger=log,
        )
        if role is None:
            continue
        if name in role_map:
            log.info("Duplicate role name %r, keeping the newest id", name)
        role_map[name] = role.id
    log.info("Created %d role(s)", len(role_map))
    return role_map
