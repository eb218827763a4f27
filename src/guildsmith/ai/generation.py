"""
Interview answers -> validated blueprint.

The model is prompted with three valid blueprints and one invalid/corrected
pair. Its reply goes through ``heal_json`` and the schema validator; schema
failures get one repair round-trip per attempt, and the whole
regenerate-then-revalidate cycle is bounded by ``max_attempts``.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence

from ..blueprint.heal import heal_json
from ..blueprint.progress import Notifier, send_progress
from ..blueprint.schema import ValidationIssue, build_repair_prompt, format_validation_errors, validate_blueprint
from ..errors import AIGatewayError, GenerationError

log = logging.getLogger("guildsmith.ai.generation")


class TextGenerator(Protocol):
    async def generate(self, messages: List[Dict[str, str]], *, model: Optional[str] = None, max_tokens: Optional[int] = None) -> str: ...


FEW_SHOT_VALID: Sequence[Dict[str, Any]] = (
    {
        "style": {"emojiPrefix": "💸", "theme": "neon-gold"},
        "roles": [
            {"name": "Admin", "permissions": ["Administrator"], "color": "#FFD700"},
            {"name": "Moderator", "permissions": ["ManageMessages", "EmbedLinks"], "color": "#DAA520"},
            {"name": "Member", "color": "#5865F2"},
        ],
        "categories": {
            "SERVER INFO": [
                {"name": "welcome", "type": "text", "message": {"title": "Welcome", "body": "Welcome to the server!"}},
                {
                    "name": "rules",
                    "type": "text",
                    "permissionsPreset": "public-readonly",
                    "message": {"title": "Rules", "body": "1. Be kind\n2. No spam"},
                },
            ],
            "COMMUNITY": [{"name": "chat", "type": "text"}, {"name": "clips", "type": "media"}],
        },
    },
    {
        "style": {"theme": "streamer-dark", "emojiPrefix": "🎥"},
        "roles": [
            {"name": "Admin", "permissions": ["Administrator"], "color": "#E91E63"},
            {"name": "Mod", "permissions": ["ManageMessages"], "color": "#9C27B0"},
            {"name": "Subscriber"},
        ],
        "categories": {
            "INFO": [{"name": "welcome", "type": "text"}],
            "LIVE": [{"name": "live-chat", "type": "text"}, {"name": "voice-lounge", "type": "voice"}],
        },
    },
    {
        "style": {"theme": "minimal-clean"},
        "roles": [
            {"name": "Admin", "permissions": ["Administrator"]},
            {"name": "Moderator", "permissions": ["ManageMessages"]},
            {"name": "Verified"},
        ],
        "categories": {
            "SERVER INFO": [{"name": "welcome", "type": "text"}],
            "COMMUNITY": [
                {"name": "chat", "type": "text"},
                {"name": "forum-topics", "type": "forum", "defaultAutoArchiveDuration": 1440},
            ],
        },
    },
)

INVALID_EXAMPLE = '{ roles: [ { name: Admin } ], categories: { INFO: [ "welcome" ] } }'
CORRECTED_EXAMPLE: Dict[str, Any] = {
    "roles": [{"name": "Admin", "permissions": ["Administrator"]}],
    "categories": {"INFO": [{"name": "welcome", "type": "text"}]},
}


def build_generation_messages(answers: Sequence[str]) -> List[Dict[str, str]]:
    examples = "\n\n".join(json.dumps(bp, ensure_ascii=False) for bp in FEW_SHOT_VALID)
    return [
        {
            "role": "system",
            "content": " \n".join(
                (
                    "You convert interview answers into a STRICT JSON blueprint.",
                    "Return ONLY JSON (no prose, no backticks).",
                    "If unsure, make conservative choices.",
                )
            ),
        },
        {
            "role": "system",
            "content": (
                f"Valid examples:\n{examples}"
                f"\n\nInvalid example (do NOT emulate):\n{INVALID_EXAMPLE}"
                f"\n\nCorrected form:\n{json.dumps(CORRECTED_EXAMPLE)}"
            ),
        },
        {"role": "user", "content": "\n".join(answers)},
    ]


async def generate_blueprint(gateway: TextGenerator, answers: Sequence[str]) -> Optional[Dict[str, Any]]:
    """One generation round. ``None`` when the reply holds no usable JSON object."""
    raw = await gateway.generate(build_generation_messages(answers))
    parsed = heal_json(raw)
    if parsed is None:
        log.info("AI JSON parse failed (%d chars of output)", len(raw or ""))
    return parsed


async def repair_blueprint(
    gateway: TextGenerator,
    blueprint: Dict[str, Any],
    issues: Sequence[ValidationIssue],
) -> Optional[Dict[str, Any]]:
    raw = await gateway.generate(
        [
            {"role": "system", "content": build_repair_prompt(issues)},
            {"role": "user", "content": json.dumps(blueprint, ensure_ascii=False)},
        ]
    )
    return heal_json(raw)


async def generate_validated_blueprint(
    gateway: TextGenerator,
    answers: Sequence[str],
    *,
    notifier: Optional[Notifier] = None,
    max_attempts: int = 3,
) -> Dict[str, Any]:
    """Generate until a blueprint passes validation or attempts run out.

    Raises ``GenerationError`` carrying the last validation issues when no
    attempt produced a valid blueprint.
    """
    issues: List[ValidationIssue] = []
    for attempt in range(1, max(1, max_attempts) + 1):
        if attempt > 1:
            await send_progress(notifier, f"🔁 Attempt {attempt} fixing blueprint...")

        try:
            blueprint = await generate_blueprint(gateway, answers)
        except AIGatewayError as e:
            log.warning("Generation attempt %d failed: %s", attempt, e)
            await send_progress(notifier, "⚠️ AI request failed. Retrying...")
            continue
        if blueprint is None:
            await send_progress(notifier, "⚠️ AI returned empty or invalid JSON. Retrying...")
            continue

        report = validate_blueprint(blueprint)
        if report.valid:
            return blueprint
        issues = report.errors
        log.info("Attempt %d invalid: %s", attempt, format_validation_errors(issues))

        try:
            repaired = await repair_blueprint(gateway, blueprint, issues)
        except AIGatewayError as e:
            log.warning("Repair request failed on attempt %d: %s", attempt, e)
            continue
        report = validate_blueprint(repaired if repaired is not None else {})
        if report.valid and repaired is not None:
            return repaired
        issues = report.errors

    raise GenerationError(
        f"Could not produce a valid blueprint after {max_attempts} attempts. Errors: {format_validation_errors(issues)}",
        issues,
    )
