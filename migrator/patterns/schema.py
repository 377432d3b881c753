"""
Schema para documentos de configuração de padrões (JSON ou YAML)
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SslFieldsDocument(BaseModel):
    """Formato legado de campos de credencial: um padrão principal mais variações"""
    model_config = ConfigDict(extra='forbid')

    core: Optional[str] = Field(default=None, description="Padrão principal de nome de campo")
    variations: List[str] = Field(default_factory=list, description="Padrões adicionais de nome de campo")


class GatewayPatternsDocument(BaseModel):
    """Padrões de um gateway. Todas as chaves são opcionais para que arquivos sobrescrevam um subconjunto."""
    model_config = ConfigDict(extra='forbid', populate_by_name=True)

    endpoints: Optional[Dict[str, List[str]]] = Field(
        default=None,
        description="Nome da categoria de endpoint -> padrões de URL/identificador"
    )
    credential_fields: Optional[List[str]] = Field(default=None, alias='credentialFields')
    ssl_fields: Optional[SslFieldsDocument] = Field(default=None, alias='sslFields')
    urls: Optional[List[str]] = None
    api_calls: Optional[List[str]] = Field(default=None, alias='apiCalls')
    field_prefix: Optional[str] = Field(default=None, alias='fieldPrefix', min_length=1)

    def to_updates(self) -> Dict[str, Any]:
        """Retorna apenas as chaves presentes no documento, em forma canônica"""
        updates: Dict[str, Any] = {}
        if self.endpoints is not None:
            updates['endpoints'] = {name: list(patterns) for name, patterns in self.endpoints.items()}

        credential_fields = None
        if self.ssl_fields is not None:
            credential_fields = []
            if self.ssl_fields.core:
                credential_fields.append(self.ssl_fields.core)
            credential_fields.extend(self.ssl_fields.variations)
        if self.credential_fields is not None:
            credential_fields = (credential_fields or []) + list(self.credential_fields)
        if credential_fields is not None:
            updates['credentialFields'] = credential_fields

        if self.urls is not None:
            updates['urls'] = list(self.urls)
        if self.api_calls is not None:
            updates['apiCalls'] = list(self.api_calls)
        if self.field_prefix is not None:
            updates['fieldPrefix'] = self.field_prefix
        return updates


class PatternConfigDocument(BaseModel):
    """Arquivo de configuração de padrões (nível raiz)"""
    model_config = ConfigDict(extra='forbid', populate_by_name=True)

    converge: Optional[GatewayPatternsDocument] = None
    elavon: Optional[GatewayPatternsDocument] = None
    supported_extensions: Optional[List[str]] = Field(default=None, alias='supportedExtensions')
    ignore_patterns: Optional[List[str]] = Field(default=None, alias='ignorePatterns')
    max_file_size: Optional[int] = Field(default=None, alias='maxFileSize', gt=0)

    @field_validator('supported_extensions')
    @classmethod
    def _normalize_extensions(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        if value is None:
            return value
        return [ext.lower() if ext.startswith('.') else f".{ext.lower()}" for ext in value]

    def to_updates(self) -> Dict[str, Any]:
        """Retorna apenas as chaves presentes no documento, em forma canônica"""
        updates: Dict[str, Any] = {}
        if self.converge is not None:
            updates['converge'] = self.converge.to_updates()
        if self.elavon is not None:
            updates['elavon'] = self.elavon.to_updates()
        if self.supported_extensions is not None:
            updates['supportedExtensions'] = self.supported_extensions
        if self.ignore_patterns is not None:
            updates['ignorePatterns'] = list(self.ignore_patterns)
        if self.max_file_size is not None:
            updates['maxFileSize'] = self.max_file_size
        return updates
