"""
Modelos e exceções centrais do Converge Migrator
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import List, Optional, Tuple
from datetime import datetime


# Exceções customizadas
class MigratorError(Exception):
    """Exceção base do Converge Migrator"""
    pass


class ConfigLoadError(MigratorError):
    """Arquivo de padrões ou de mapeamento rejeitado na carga"""

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        if path:
            message = f"{path}: {message}"
        super().__init__(message)


class MappingLoadError(ConfigLoadError):
    """Dicionário de mapeamento falhou na validação do schema"""
    pass


class SourceLoadError(MigratorError):
    """Erro ao localizar ou ler arquivos fonte"""
    pass


class ValidationError(MigratorError):
    """Argumento ou opção inválida"""
    pass


class Gateway(str, Enum):
    """Gateways de pagamento conhecidos pelas tabelas de padrões"""
    CONVERGE = "converge"
    ELAVON = "elavon"

    @property
    def is_source(self) -> bool:
        return self is Gateway.CONVERGE

    @classmethod
    def from_string(cls, value: str) -> 'Gateway':
        """Cria gateway a partir de string com validação"""
        try:
            return cls(value.lower())
        except ValueError:
            valid = [g.value for g in cls]
            raise ValidationError(f"Gateway inválido: {value}. Válidos: {valid}")


class PatternCategory(str, Enum):
    """Tipos de padrões estruturais"""
    ENDPOINT_URL = "endpointUrl"
    CREDENTIAL_FIELD = "credentialField"
    API_URL = "apiUrl"
    HTTP_CALL = "httpCall"


class EndpointType(str, Enum):
    """Famílias de endpoints Converge que podem ser migradas"""
    HOSTED_PAYMENTS = "hosted-payments"
    CHECKOUT = "Checkout.js"
    PROCESS_TRANSACTION = "ProcessTransactionOnline"
    BATCH_PROCESSING = "batch-processing"
    DEVICE_MANAGEMENT = "NonElavonCertifiedDevice"


# Nome da categoria (como nos arquivos de padrões) -> tipo de endpoint
ENDPOINT_CATEGORY_TYPES = {
    "hostedPayments": EndpointType.HOSTED_PAYMENTS,
    "checkout": EndpointType.CHECKOUT,
    "processTransaction": EndpointType.PROCESS_TRANSACTION,
    "batchProcessing": EndpointType.BATCH_PROCESSING,
    "deviceManagement": EndpointType.DEVICE_MANAGEMENT,
}


def endpoint_type_for_category(category: str) -> Optional[EndpointType]:
    """Retorna o tipo de endpoint da categoria, ou None quando desconhecida"""
    return ENDPOINT_CATEGORY_TYPES.get(category)


class SuggestionType(str, Enum):
    """Tipos de sugestão de migração"""
    ENDPOINT = "endpoint"
    FIELD = "field"
    PATTERN = "pattern"
    OPTIMIZATION = "optimization"


class Level(str, Enum):
    """Faixa de impacto/esforço"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class Detection:
    """Match bruto de um padrão estrutural, ainda sem confiança"""
    category: PatternCategory
    matched_text: str
    offset: int  # posição no texto analisado
    line_number: int  # base 1
    gateway: Gateway
    kind: Optional[str] = None  # categoria do endpoint, cliente http ou nome do gateway
    endpoint_type: Optional[EndpointType] = None
    template: str = ""

    @property
    def end(self) -> int:
        return self.offset + len(self.matched_text)


@dataclass
class CodeContext:
    """Sinais extraídos do código de um arquivo, com score de confiança"""
    file_path: str
    language: str
    imports: List[str] = field(default_factory=list)
    dependencies: List[str] = field(default_factory=list)
    business_logic: List[str] = field(default_factory=list)
    credential_fields: List[str] = field(default_factory=list)
    function_name: str = ""
    class_name: str = ""
    confidence: float = 0.0
    config_version: int = 0


@dataclass(frozen=True)
class MigrationSuggestion:
    """Recomendação de migração ranqueada, para leitura humana"""
    id: str
    type: SuggestionType
    title: str
    description: str
    confidence: float
    impact: Level
    effort: Level
    code_snippet: str
    suggested_replacement: str
    reasoning: Tuple[str, ...] = ()
    dependencies: Tuple[str, ...] = ()


@dataclass
class SemanticAnalysis:
    """Leitura de negócio de um CodeContext"""
    business_context: str
    data_flow: List[str] = field(default_factory=list)
    error_handling: List[str] = field(default_factory=list)
    security_patterns: List[str] = field(default_factory=list)
    performance_considerations: List[str] = field(default_factory=list)
    integration_points: List[str] = field(default_factory=list)


@dataclass
class FileError:
    """Arquivo ignorado durante um lote, com o motivo"""
    file_path: str
    error: str
    timestamp: datetime = field(default_factory=datetime.now)
