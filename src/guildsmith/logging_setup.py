from __future__ import annotations

import logging
import sys

_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger once; repeated calls only adjust the level."""
    root = logging.getLogger()
    resolved = getattr(logging, str(level).upper(), logging.INFO)

    if not any(getattr(h, "_guildsmith", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(_FORMAT))
        handler._guildsmith = True  # type: ignore[attr-defined]
        root.addHandler(handler)

    root.setLevel(resolved)

    # discord.py is chatty at INFO (gateway heartbeats, shard events)
    for name in ("discord", "discord.http", "discord.gateway"):
        logging.getLogger(name).setLevel(max(resolved, logging.WARNING))
