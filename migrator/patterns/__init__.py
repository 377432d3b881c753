"""
Tabelas de padrões e o matcher de regex
"""

from migrator.patterns.pattern_config import (
    DEFAULT_PATTERN_CONFIG,
    CompiledTemplate,
    PatternConfig,
    PatternConfigManager,
    default_pattern_config,
    http_client_for_template,
    merge_pattern_config,
)
from migrator.patterns.matcher import (
    PatternAnalysis,
    PatternMatcher,
    coerce_text,
    normalize_field_name,
)

__all__ = [
    "DEFAULT_PATTERN_CONFIG",
    "CompiledTemplate",
    "PatternConfig",
    "PatternConfigManager",
    "default_pattern_config",
    "http_client_for_template",
    "merge_pattern_config",
    "PatternAnalysis",
    "PatternMatcher",
    "coerce_text",
    "normalize_field_name",
]
