from __future__ import annotations

from typing import List, TYPE_CHECKING

if TYPE_CHECKING:
    from .blueprint.schema import ValidationIssue


class GuildsmithError(Exception):
    """Base class for errors raised by guildsmith."""


class BlueprintValidationError(GuildsmithError):
    """A blueprint failed structural validation."""

    def __init__(self, issues: List["ValidationIssue"]) -> None:
        self.issues = list(issues)
        from .blueprint.schema import format_validation_errors

        super().__init__(format_validation_errors(self.issues))


class AIGatewayError(GuildsmithError):
    """The AI gateway failed after exhausting its retries."""


class GenerationError(GuildsmithError):
    """No valid blueprint could be produced within the attempt budget."""

    def __init__(self, message: str, issues: List["ValidationIssue"] | None = None) -> None:
        super().__init__(message)
        self.issues = list(issues or [])
