"""
Dicionário de mapeamento de endpoints e resolução de campos
"""

from migrator.mapping.dictionary import (
    EndpointMapping,
    MappingDictionary,
    MappingStore,
    load_mapping_dictionary,
)
from migrator.mapping.mapper import (
    STANDARD_FIELDS,
    CodeTransform,
    FieldSubstitution,
    MigrationComplexity,
    MigrationMapper,
    ReverseMapping,
    RewriteResult,
    SearchResult,
    is_standard_field,
)

__all__ = [
    "EndpointMapping",
    "MappingDictionary",
    "MappingStore",
    "load_mapping_dictionary",
    "STANDARD_FIELDS",
    "CodeTransform",
    "FieldSubstitution",
    "MigrationComplexity",
    "MigrationMapper",
    "ReverseMapping",
    "RewriteResult",
    "SearchResult",
    "is_standard_field",
]
