"""
Carga e recarga do dicionário de mapeamento de endpoints
"""

import json
import logging
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError as PydanticValidationError

from migrator.core.models import MappingLoadError
from migrator.mapping.schema import MappingDictionaryDocument

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EndpointMapping:
    """Endpoint de origem, seu destino e a tabela de renomeação de campos (em ordem de inserção)"""
    source_endpoint: str
    target_endpoint: str
    http_method: str
    field_mappings: Mapping[str, str]
    description: str = ""

    def matches_endpoint(self, endpoint: str) -> bool:
        """True quando ``endpoint`` é este endpoint de origem ou o contém"""
        return endpoint == self.source_endpoint or self.source_endpoint in endpoint

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sourceEndpoint": self.source_endpoint,
            "targetEndpoint": self.target_endpoint,
            "method": self.http_method,
            "fieldMappings": dict(self.field_mappings),
            "description": self.description,
        }


@dataclass(frozen=True)
class MappingDictionary:
    """
    Dicionário de mapeamento imutável e validado

    ``version`` é a string de versão do próprio documento. ``revision`` é definida pelo
    MappingStore e incrementa a cada troca, independente do documento.
    """
    version: str
    mappings: Tuple[EndpointMapping, ...]
    last_updated: Optional[datetime] = None
    transformation_rules: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    deprecated_fields: Tuple[str, ...] = ()
    source_path: Optional[str] = None
    revision: int = field(default=0, compare=False)

    def __iter__(self) -> Iterator[EndpointMapping]:
        return iter(self.mappings)

    def __len__(self) -> int:
        return len(self.mappings)

    def with_revision(self, revision: int) -> 'MappingDictionary':
        return replace(self, revision=revision)

    @property
    def total_field_mappings(self) -> int:
        return sum(len(m.field_mappings) for m in self.mappings)

    def statistics(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
            "total_endpoints": len(self.mappings),
            "total_field_mappings": self.total_field_mappings,
            "transformation_rules": len(self.transformation_rules),
            "deprecated_fields": len(self.deprecated_fields),
        }

    @classmethod
    def from_document(cls, document: MappingDictionaryDocument,
                      source_path: Optional[str] = None) -> 'MappingDictionary':
        mappings = tuple(
            EndpointMapping(
                source_endpoint=entry.source_endpoint,
                target_endpoint=entry.target_endpoint,
                http_method=entry.method,
                field_mappings=MappingProxyType(dict(entry.field_mappings)),
                description=entry.description,
            )
            for entry in document.mappings
        )
        return cls(
            version=document.version,
            mappings=mappings,
            last_updated=document.last_updated,
            transformation_rules=MappingProxyType(dict(document.transformation_rules)),
            deprecated_fields=tuple(document.deprecated_fields),
            source_path=source_path,
        )

    @classmethod
    def from_dict(cls, data: Any, source_path: Optional[str] = None) -> 'MappingDictionary':
        """
        Valida documento de mapeamento já interpretado

        Raises:
            MappingLoadError: Se o documento falhar na validação do schema
        """
        if not isinstance(data, dict):
            raise MappingLoadError("mapping dictionary must be an object", source_path)
        try:
            document = MappingDictionaryDocument.model_validate(data)
        except PydanticValidationError as e:
            raise MappingLoadError(f"invalid mapping dictionary: {e}", source_path)
        return cls.from_document(document, source_path)


def _reject_duplicate_keys(pairs: List[Tuple[str, Any]]) -> Dict[str, Any]:
    result: Dict[str, Any] = {}
    for key, value in pairs:
        if key in result:
            raise ValueError(f"duplicate key {key!r}")
        result[key] = value
    return result


def load_mapping_dictionary(file_path: Union[str, Path]) -> MappingDictionary:
    """
    Lê e valida arquivo de dicionário de mapeamento

    Args:
        file_path: Caminho do arquivo JSON

    Returns:
        MappingDictionary

    Raises:
        MappingLoadError: Se o arquivo não puder ser lido, interpretado ou validado
    """
    path = Path(file_path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            content = f.read()
    except OSError as e:
        raise MappingLoadError(f"could not read mapping dictionary: {e}", str(path))

    try:
        data = json.loads(content, object_pairs_hook=_reject_duplicate_keys)
    except ValueError as e:
        # JSONDecodeError e chave duplicada são ValueError
        raise MappingLoadError(f"could not parse mapping dictionary: {e}", str(path))

    dictionary = MappingDictionary.from_dict(data, str(path))
    logger.info(f"Dicionário de mapeamento v{dictionary.version} carregado com {len(dictionary)} mapeamentos de {path}")
    return dictionary


class MappingStore:
    """
    Mantém o MappingDictionary ativo

    Recargas constroem um dicionário novo completo antes da troca; recarga com falha
    levanta MappingLoadError e mantém o dicionário anterior.
    """

    def __init__(self, file_path: Optional[Union[str, Path]] = None,
                 dictionary: Optional[MappingDictionary] = None):
        self._lock = threading.Lock()
        self.file_path = str(file_path) if file_path else None
        if dictionary is None:
            if self.file_path:
                dictionary = load_mapping_dictionary(self.file_path)
            else:
                dictionary = MappingDictionary(version="0.0.0", mappings=())
        self._dictionary = dictionary.with_revision(1)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MappingStore':
        return cls(dictionary=MappingDictionary.from_dict(data))

    @property
    def dictionary(self) -> MappingDictionary:
        """Dicionário ativo. Obtenha uma vez por operação para uma visão consistente."""
        return self._dictionary

    @property
    def revision(self) -> int:
        """Contador de trocas: 1 para o dicionário inicial, +1 a cada load, reload ou replace"""
        return self._dictionary.revision

    def load(self, file_path: Union[str, Path]) -> MappingDictionary:
        """
        Carrega novo arquivo de dicionário e o torna ativo

        Raises:
            MappingLoadError: Se o arquivo for inválido; o dicionário ativo não muda
        """
        try:
            dictionary = load_mapping_dictionary(file_path)
        except MappingLoadError as e:
            logger.error(f"Dicionário de mapeamento rejeitado, mantendo v{self._dictionary.version}: {e}")
            raise
        with self._lock:
            installed = self._install(dictionary)
            self.file_path = str(file_path)
        return installed

    def reload(self) -> MappingDictionary:
        """
        Relê o arquivo atual

        Raises:
            MappingLoadError: Se não houver arquivo ou ele for inválido
        """
        if not self.file_path:
            raise MappingLoadError("no mapping file to reload")
        return self.load(self.file_path)

    def replace(self, data: Dict[str, Any]) -> MappingDictionary:
        """Valida documento em memória e o torna ativo"""
        dictionary = MappingDictionary.from_dict(data)
        with self._lock:
            return self._install(dictionary)

    def _install(self, dictionary: MappingDictionary) -> MappingDictionary:
        # chamador detém self._lock
        self._dictionary = dictionary.with_revision(self._dictionary.revision + 1)
        logger.debug(f"Dicionário de mapeamento v{dictionary.version} ativo (revisão {self._dictionary.revision})")
        return self._dictionary

    def export(self) -> str:
        """Dicionário ativo como documento JSON"""
        dictionary = self._dictionary
        document = {
            "version": dictionary.version,
            "lastUpdated": dictionary.last_updated.isoformat() if dictionary.last_updated else None,
            "mappings": [m.to_dict() for m in dictionary.mappings],
        }
        if dictionary.transformation_rules:
            document["transformationRules"] = dict(dictionary.transformation_rules)
        if dictionary.deprecated_fields:
            document["deprecatedFields"] = list(dictionary.deprecated_fields)
        return json.dumps(document, indent=2, ensure_ascii=False)
