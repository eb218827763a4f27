"""
Blueprint package

Validation, repair, building and export of declarative guild blueprints.
"""

from .schema import BLUEPRINT_SCHEMA, ValidationIssue, ValidationReport, validate_blueprint, format_validation_errors
from .heal import heal_json
from .engine import BuildMetrics, BuildResult, apply_blueprint
from .export import export_guild
from .preview import build_preview

__all__ = [
    "BLUEPRINT_SCHEMA",
    "ValidationIssue",
    "ValidationReport",
    "validate_blueprint",
    "format_validation_errors",
    "heal_json",
    "BuildMetrics",
    "BuildResult",
    "apply_blueprint",
    "export_guild",
    "build_preview",
]
