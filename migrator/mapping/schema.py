"""
Schema para o arquivo de dicionário de mapeamento de endpoints
"""

import re
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

HTTP_METHODS = ('GET', 'POST', 'PUT', 'DELETE', 'PATCH')
FIELD_NAME_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")


class EndpointMappingDocument(BaseModel):
    """Entrada de um endpoint; convergeEndpoint/elavonEndpoint são aceitos como aliases"""
    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    source_endpoint: str = Field(
        validation_alias=AliasChoices('sourceEndpoint', 'convergeEndpoint', 'source_endpoint'),
    )
    target_endpoint: str = Field(
        validation_alias=AliasChoices('targetEndpoint', 'elavonEndpoint', 'target_endpoint'),
    )
    method: str
    field_mappings: Dict[str, str] = Field(
        validation_alias=AliasChoices('fieldMappings', 'field_mappings'),
    )
    description: str = ""

    @field_validator('source_endpoint', 'target_endpoint', 'method')
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must be a non-empty string")
        return value

    @field_validator('method')
    @classmethod
    def _known_method(cls, value: str) -> str:
        value = value.upper()
        if value not in HTTP_METHODS:
            raise ValueError(f"method must be one of {list(HTTP_METHODS)}")
        return value

    @field_validator('field_mappings')
    @classmethod
    def _field_names(cls, value: Dict[str, str]) -> Dict[str, str]:
        for source, target in value.items():
            if not FIELD_NAME_RE.match(source):
                raise ValueError(f"invalid source field name {source!r}")
            if not target.strip():
                raise ValueError(f"empty target for field {source!r}")
        return value


class MappingMetadata(BaseModel):
    model_config = ConfigDict(extra='allow')

    author: Optional[str] = None
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)


class MappingDictionaryDocument(BaseModel):
    """Arquivo de dicionário de mapeamento (nível raiz)"""
    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    version: str
    last_updated: Optional[datetime] = Field(default=None, alias='lastUpdated')
    mappings: List[EndpointMappingDocument]
    transformation_rules: Dict[str, str] = Field(default_factory=dict, alias='transformationRules')
    deprecated_fields: List[str] = Field(default_factory=list, alias='deprecatedFields')
    metadata: Optional[MappingMetadata] = None

    @field_validator('version')
    @classmethod
    def _version_present(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("version must be a non-empty string")
        return value.strip()
