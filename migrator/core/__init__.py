"""
Modelos e exceções centrais do Converge Migrator
"""

from migrator.core.models import (
    MigratorError,
    ConfigLoadError,
    MappingLoadError,
    SourceLoadError,
    ValidationError,
    Gateway,
    PatternCategory,
    EndpointType,
    SuggestionType,
    Level,
    Detection,
    CodeContext,
    MigrationSuggestion,
    SemanticAnalysis,
    FileError,
    endpoint_type_for_category,
)

__all__ = [
    "MigratorError",
    "ConfigLoadError",
    "MappingLoadError",
    "SourceLoadError",
    "ValidationError",
    "Gateway",
    "PatternCategory",
    "EndpointType",
    "SuggestionType",
    "Level",
    "Detection",
    "CodeContext",
    "MigrationSuggestion",
    "SemanticAnalysis",
    "FileError",
    "endpoint_type_for_category",
]
