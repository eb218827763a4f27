"""Validate a blueprint file without touching Discord."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from collections import Counter
from typing import Any, Dict, Optional, Sequence

from .blueprint.permissions import channel_preset_name
from .blueprint.preview import build_preview
from .blueprint.schema import validate_blueprint
from .logging_setup import setup_logging

log = logging.getLogger("guildsmith.cli")

EXIT_OK = 0
EXIT_UNREADABLE = 1
EXIT_INVALID = 2


def summarize(blueprint: Dict[str, Any]) -> Dict[str, Any]:
    categories = blueprint.get("categories") or {}
    presets: Counter = Counter()
    for channels in categories.values():
        for channel in channels or []:
            name = channel_preset_name(channel)
            if name:
                presets[name] += 1
    for name in (blueprint.get("categoryPrivacy") or {}).values():
        presets[name] += 1
    return {
        "roles": len(blueprint.get("roles") or []),
        "categories": len(categories),
        "channels": sum(len(c or []) for c in categories.values()),
        "presets": dict(presets),
    }


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="guildsmith-check", description="Validate a guild blueprint JSON file")
    parser.add_argument("path", help="Blueprint JSON file")
    parser.add_argument("--preview", action="store_true", help="Print the channel/role outline as well")
    parser.add_argument("--log-level", default="WARNING")
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    try:
        with open(args.path, "r", encoding="utf-8") as fh:
            blueprint = json.load(fh)
    except (OSError, ValueError) as e:
        print(f"Cannot read {args.path}: {e}", file=sys.stderr)
        return EXIT_UNREADABLE

    report = validate_blueprint(blueprint)
    if not report.valid:
        print(f"{args.path}: {len(report.errors)} validation error(s)", file=sys.stderr)
        for issue in report.errors:
            print(f"  {issue}", file=sys.stderr)
        return EXIT_INVALID

    summary = summarize(blueprint)
    print(f"{args.path}: OK")
    print(f"  roles: {summary['roles']}")
    print(f"  categories: {summary['categories']}")
    print(f"  channels: {summary['channels']}")
    if summary["presets"]:
        print("  presets: " + ", ".join(f"{k}={v}" for k, v in sorted(summary["presets"].items())))
    if args.preview:
        print(build_preview(blueprint))
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
