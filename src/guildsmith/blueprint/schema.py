"""
Blueprint schema and validation.

A blueprint is the declarative JSON document that describes the roles,
categories, channels and welcome content of a guild. Every producer (AI
generation, file import, export of a live guild, manual edit) goes through
``validate_blueprint`` before anything is applied.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List

from jsonschema import Draft202012Validator

from ..constants import AUTO_ARCHIVE_DURATIONS, CHANNEL_TYPES
from ..errors import BlueprintValidationError

HEX_COLOR_PATTERN = "^#?[0-9A-Fa-f]{6}$"

ROLE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "name": {"type": "string", "minLength": 1},
        "color": {"type": "string", "pattern": HEX_COLOR_PATTERN},
        "permissions": {"type": "array", "items": {"type": "string"}},
        "isStaff": {"type": "boolean"},
        "isModerator": {"type": "boolean"},
    },
    "required": ["name"],
    "additionalProperties": False,
}

MESSAGE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "title": {"type": "string"},
        "body": {"type": "string"},
        "sections": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "header": {"type": "string"},
                    "content": {"type": "string"},
                    "bullets": {"type": "array", "items": {"type": "string"}},
                },
                "additionalProperties": False,
            },
        },
    },
    "additionalProperties": False,
}

CHANNEL_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "name": {"type": "string", "minLength": 1},
        "type": {"type": "string", "enum": list(CHANNEL_TYPES)},
        "topic": {"type": "string"},
        "readOnly": {"type": "boolean"},
        "private": {"type": "boolean"},
        "allowedRoles": {"type": "array", "items": {"type": "string"}},
        "permissions": {
            "anyOf": [
                {"type": "string"},
                {"type": "array", "items": {"type": "string"}},
            ]
        },
        "permissionsPreset": {"type": "string"},
        "order": {"type": "integer", "minimum": 0},
        "threadsLocked": {"type": "boolean"},
        "defaultAutoArchiveDuration": {"type": "integer", "enum": list(AUTO_ARCHIVE_DURATIONS)},
        "message": MESSAGE_SCHEMA,
        "emoji": {"type": "string"},
    },
    "required": ["name"],
    "additionalProperties": False,
}

WELCOME_SCREEN_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "description": {"type": "string"},
        "prompts": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "title": {"type": "string"},
                    "channel": {"type": "string"},
                    "emoji": {"type": "string"},
                    "description": {"type": "string"},
                },
                "required": ["title"],
                "additionalProperties": False,
            },
        },
    },
    "additionalProperties": False,
}

BLUEPRINT_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "properties": {
        "style": {
            "type": "object",
            "properties": {
                "emojiPrefix": {"type": "string"},
                "theme": {"type": "string"},
            },
            "additionalProperties": False,
        },
        "branding": {
            "type": "object",
            "properties": {
                "color": {"type": "string", "pattern": HEX_COLOR_PATTERN},
                "accent": {"type": "string", "pattern": HEX_COLOR_PATTERN},
                "emoji": {"type": "string"},
            },
            "additionalProperties": False,
        },
        "community": {"type": "boolean"},
        "roles": {"type": "array", "items": ROLE_SCHEMA, "minItems": 1},
        "categories": {
            "type": "object",
            "minProperties": 1,
            "additionalProperties": {"type": "array", "items": CHANNEL_SCHEMA},
        },
        "private": {
            "type": "object",
            "additionalProperties": {"type": "array", "items": {"type": "string"}},
        },
        "welcomeScreen": WELCOME_SCREEN_SCHEMA,
        # preset name per category
        "categoryPrivacy": {"type": "object", "additionalProperties": {"type": "string"}},
        "webhooks": {
            "type": "object",
            "additionalProperties": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "avatar": {"type": "string"},
                },
                "additionalProperties": False,
            },
        },
    },
    "required": ["roles", "categories"],
    "additionalProperties": False,
}

_validator = Draft202012Validator(BLUEPRINT_SCHEMA)
_REQUIRED_RE = re.compile(r"^'(?P<name>[^']+)' is a required property")


@dataclass(frozen=True)
class ValidationIssue:
    """One schema violation: a JSON-pointer path and a message."""
    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path} {self.message}"


@dataclass
class ValidationReport:
    valid: bool
    errors: List[ValidationIssue] = field(default_factory=list)

    def raise_for_errors(self) -> None:
        if not self.valid:
            raise BlueprintValidationError(self.errors)


def _pointer(parts: Iterable[Any]) -> str:
    escaped = [str(p).replace("~", "~0").replace("/", "~1") for p in parts]
    return "/" + "/".join(escaped) if escaped else "/"


def _issue_from_error(error: Any) -> ValidationIssue:
    parts = list(error.absolute_path)
    if error.validator == "required":
        # point at the missing field rather than its parent object
        match = _REQUIRED_RE.match(error.message)
        if match:
            parts.append(match.group("name"))
    return ValidationIssue(path=_pointer(parts), message=error.message)


def validate_blueprint(blueprint: Any) -> ValidationReport:
    """Validate a blueprint, collecting every violation in one pass."""
    errors = sorted(
        _validator.iter_errors(blueprint),
        key=lambda e: [str(p) for p in e.absolute_path],
    )
    issues = [_issue_from_error(e) for e in errors]
    return ValidationReport(valid=not issues, errors=issues)


def format_validation_errors(errors: Iterable[ValidationIssue]) -> str:
    """Join issues into a single ``path message; path message`` string."""
    parts = [str(e) for e in errors]
    if not parts:
        return "No errors"
    return "; ".join(parts)


def build_repair_prompt(errors: Iterable[ValidationIssue]) -> str:
    """Instruction asking the model to return only a corrected JSON object."""
    return (
        "The JSON you produced did not match the required schema. "
        "Please ONLY return a corrected JSON object (no commentary). Errors: "
        + format_validation_errors(errors)
    )
