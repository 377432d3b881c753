"""
Tabelas de padrões orientadas a dados para detecção de gateway

As tabelas embutidas podem ser sobrescritas por arquivo JSON ou YAML. Todo template
é compilado ao construir a configuração, então uma regex malformada falha no carregamento
e não numa varredura posterior. Uma configuração carregada é um snapshot imutável; o
manager troca snapshots sob lock e os leitores mantêm o snapshot obtido
no início de cada chamada.
"""

import copy
import json
import logging
import re
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Pattern, Tuple, Union

import yaml
from pydantic import ValidationError as PydanticValidationError

from migrator.core.models import ConfigLoadError, Gateway, PatternCategory
from migrator.patterns.schema import PatternConfigDocument

logger = logging.getLogger(__name__)


DEFAULT_PATTERN_CONFIG: Dict[str, Any] = {
    "converge": {
        "endpoints": {
            "hostedPayments": [
                r"/hosted-payments/transaction_token",
                r"hosted-payments/transaction_token",
                r"hostedpayments/transactiontoken",
                r"hosted_payments_transaction_token",
            ],
            "checkout": [
                r"/Checkout.js",
                r"Checkout.js",
                r"checkout.js",
                r"converge.*checkout",
                r"checkout.*converge",
            ],
            "processTransaction": [
                r"/ProcessTransactionOnline\b",
                r"ProcessTransactionOnline\b.*\(",
                r"process_transaction_online",
                r"processtransaction",
                r"transaction.*process.*\(",
                r"\.ProcessTransactionOnline",
                r"ProcessTransactionOnline.*http",
                r"ProcessTransactionOnline.*api",
                r"processxml\.do",
                r"processxml",
                r"ssl_transaction_type",
                r"ssl_merchant_ID",
                r"ssl_user_id",
                r"ssl_pin",
                r"convergepay\.com",
                r"VirtualMerchantDemo",
            ],
            "batchProcessing": [
                r"/batch-processing",
                r"batch-processing",
                r"batch_processing",
                r"batchprocessing",
                r"batch.*process",
            ],
            "deviceManagement": [
                r"/NonElavonCertifiedDevice",
                r"NonElavonCertifiedDevice",
                r"non_elavon_certified_device",
                r"device.*management",
                r"terminal.*management",
            ],
        },
        "credentialFields": [
            r"ssl_[a-zA-Z_][a-zA-Z0-9_]*",
            r"SSL_[a-zA-Z_][a-zA-Z0-9_]*",
            r"ssl[A-Z][a-zA-Z0-9]*",
            r"\"ssl_[a-zA-Z_][a-zA-Z0-9_]*\"",
            r"'ssl_[a-zA-Z_][a-zA-Z0-9_]*'",
            r"\$ssl_[a-zA-Z_][a-zA-Z0-9_]*",
            r"ssl\[[\"'][a-zA-Z_][a-zA-Z0-9_]*[\"']\]",
            r":ssl_[a-zA-Z_][a-zA-Z0-9_]*",
            r"ssl_[a-zA-Z_][a-zA-Z0-9_]*:",
            r"@XmlElement\(name\s*=\s*[\"']ssl_[a-zA-Z_][a-zA-Z0-9_]*[\"']\)",
            r"ssl_merchant_ID",
            r"ssl_user_id",
            r"ssl_pin",
            r"ssl_transaction_type",
            r"ssl_card_number",
            r"ssl_exp_date",
            r"ssl_amount",
            r"ssl_first_name",
            r"ssl_last_name",
            r"ssl_cvv2cvc2",
            r"ssl_avs_address",
            r"ssl_avs_zip",
            r"ssl_invoice_number",
        ],
        "urls": [
            r"https?:\/\/[^\s]*converge[^\s]*",
            r"https?:\/\/api\.converge\.com[^\s]*",
            r"https?:\/\/[^\s]*\.converge\.com[^\s]*",
            r"converge\.com[^\s]*",
            r"convergepay\.com[^\s]*",
            r"api\.demo\.convergepay\.com[^\s]*",
            r"VirtualMerchantDemo[^\s]*",
            r"processxml\.do",
        ],
        "apiCalls": [
            r"fetch\s*\(\s*[\"'][^\"']*converge[^\"']*[\"']",
            r"fetch\s*\(\s*[\"'][^\"']*\/hosted-payments[^\"']*[\"']",
            r"fetch\s*\(\s*[\"'][^\"']*ProcessTransaction[^\"']*[\"']",
            r"axios\.(get|post|put|delete)\s*\([^)]*converge[^)]*",
            r"axios\s*\(\s*\{[^}]*url[^}]*converge[^}]*\}",
            r"curl_setopt\s*\([^)]*CURLOPT_URL[^)]*converge[^)]*",
            r"curl\s+[^\n]*converge",
            r"restTemplate\.postForObject[^)]*converge[^)]*",
            r"restTemplate\.(get|post|put|delete)ForObject[^)]*converge[^)]*",
            r"HttpEntity[^)]*converge[^)]*",
            r"ResponseEntity[^)]*converge[^)]*",
            r"RestTemplate[^)]*converge[^)]*",
        ],
        "fieldPrefix": "ssl_",
    },
    "elavon": {
        "endpoints": {
            "hostedPayments": [
                r"/api/v1/payments/hosted",
                r"api/v1/payments/hosted",
                r"payments/hosted",
                r"hosted_payments",
            ],
            "checkout": [
                r"/api/v1/checkout",
                r"api/v1/checkout",
                r"checkout",
                r"elavon.*checkout",
                r"checkout.*elavon",
            ],
            "processTransaction": [
                r"/api/v1/transactions/process",
                r"api/v1/transactions/process",
                r"transactions/process",
                r"process.*transaction",
                r"transaction.*process",
            ],
            "batchProcessing": [
                r"/api/v1/batch",
                r"api/v1/batch",
                r"batch",
                r"batch.*process",
            ],
            "deviceManagement": [
                r"/api/v1/devices",
                r"api/v1/devices",
                r"devices",
                r"device.*management",
            ],
        },
        "credentialFields": [
            r"api_[a-zA-Z_][a-zA-Z0-9_]*",
            r"API_[a-zA-Z_][a-zA-Z0-9_]*",
            r"api[A-Z][a-zA-Z0-9]*",
            r"\"api_[a-zA-Z_][a-zA-Z0-9_]*\"",
            r"'api_[a-zA-Z_][a-zA-Z0-9_]*'",
            r"\$api_[a-zA-Z_][a-zA-Z0-9_]*",
            r"api\[[\"'][a-zA-Z_][a-zA-Z0-9_]*[\"']\]",
            r":api_[a-zA-Z_][a-zA-Z0-9_]*",
            r"api_[a-zA-Z_][a-zA-Z0-9_]*:",
        ],
        "urls": [
            r"https?:\/\/[^\s]*elavon[^\s]*",
            r"https?:\/\/api\.elavon\.com[^\s]*",
            r"https?:\/\/[^\s]*\.elavon\.com[^\s]*",
            r"elavon\.com[^\s]*",
        ],
        "apiCalls": [
            r"fetch\s*\(\s*[\"'][^\"']*elavon[^\"']*[\"']",
            r"fetch\s*\(\s*[\"'][^\"']*\/api\/v1[^\"']*[\"']",
            r"axios\.(get|post|put|delete)\s*\([^)]*elavon[^)]*",
            r"axios\s*\(\s*\{[^}]*url[^}]*elavon[^}]*\}",
            r"curl_setopt\s*\([^)]*CURLOPT_URL[^)]*elavon[^)]*",
            r"curl\s+[^\n]*elavon",
        ],
        "fieldPrefix": "api_",
    },
    "supportedExtensions": [
        ".js", ".ts", ".php", ".py", ".java", ".cs", ".rb",
        ".jsx", ".tsx", ".vue", ".svelte", ".html", ".htm",
    ],
    "ignorePatterns": [
        "**/node_modules/**",
        "**/vendor/**",
        "**/dist/**",
        "**/build/**",
        "**/out/**",
        "**/.git/**",
        "**/coverage/**",
        "**/.nyc_output/**",
        "**/*.min.js",
        "**/*.bundle.js",
        "**/*.map",
        "**/package-lock.json",
        "**/yarn.lock",
        "**/.DS_Store",
        "**/Thumbs.db",
    ],
    "maxFileSize": 1024 * 1024,
}

# Nomes de campo diferenciam maiúsculas, o restante ignora
CATEGORY_FLAGS = {
    PatternCategory.ENDPOINT_URL: re.IGNORECASE,
    PatternCategory.CREDENTIAL_FIELD: 0,
    PatternCategory.API_URL: re.IGNORECASE,
    PatternCategory.HTTP_CALL: re.IGNORECASE,
}

HTTP_CLIENTS = ("fetch", "axios", "curl", "resttemplate")


def default_pattern_config() -> Dict[str, Any]:
    """Retorna cópia privada do documento de padrões embutido"""
    return copy.deepcopy(DEFAULT_PATTERN_CONFIG)


def http_client_for_template(template: str) -> str:
    """
    Identifica o estilo de cliente HTTP descrito por um template de chamada

    Args:
        template: Fonte da regex do template

    Returns:
        fetch, axios, curl, resttemplate, ou http para os demais
    """
    lowered = template.lower()
    for client in HTTP_CLIENTS:
        if client in lowered:
            return client
    return "http"


def merge_pattern_config(base: Dict[str, Any], updates: Dict[str, Any]) -> Dict[str, Any]:
    """
    Mescla documento parcial canônico sobre um completo

    Seções de gateway são mescladas chave a chave e tabelas de endpoint categoria a
    categoria; qualquer lista em ``updates`` substitui a lista em ``base``.

    Args:
        base: Documento de padrões completo
        updates: Documento parcial (saída de PatternConfigDocument.to_updates)

    Returns:
        Novo documento mesclado; nenhum argumento é modificado
    """
    merged = copy.deepcopy(base)
    for key, value in updates.items():
        if key in (Gateway.CONVERGE.value, Gateway.ELAVON.value):
            section = merged.setdefault(key, {})
            for section_key, section_value in value.items():
                if section_key == "endpoints":
                    endpoints = section.setdefault("endpoints", {})
                    for category, patterns in section_value.items():
                        endpoints[category] = list(patterns)
                else:
                    section[section_key] = copy.deepcopy(section_value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def validate_pattern_document(raw: Any, source: Optional[str] = None) -> Dict[str, Any]:
    """
    Valida documento de padrões bruto e retorna sua forma parcial canônica

    Raises:
        ConfigLoadError: Se o documento não corresponder ao schema
    """
    if not isinstance(raw, dict):
        raise ConfigLoadError("pattern config must be a mapping at the top level", source)
    try:
        document = PatternConfigDocument.model_validate(raw)
    except PydanticValidationError as e:
        raise ConfigLoadError(f"invalid pattern config: {e}", source)
    return document.to_updates()


@dataclass(frozen=True)
class CompiledTemplate:
    """Template de regex compilado com o subtipo a que pertence"""
    kind: Optional[str]
    source: str
    regex: Pattern


class PatternConfig:
    """
    Snapshot imutável e compilado de um documento de padrões

    Args:
        document: Documento de padrões completo (ver DEFAULT_PATTERN_CONFIG)
        version: Versão do snapshot, incrementa a cada recarga

    Raises:
        ConfigLoadError: Se algum template não compilar
    """

    def __init__(self, document: Dict[str, Any], version: int = 1):
        self._document = copy.deepcopy(document)
        self.version = version
        self._tables: Dict[Gateway, Dict[PatternCategory, Tuple[CompiledTemplate, ...]]] = {}

        for gateway in Gateway:
            section = self._document.get(gateway.value, {})
            self._tables[gateway] = {
                PatternCategory.ENDPOINT_URL: tuple(
                    self._compile(gateway, PatternCategory.ENDPOINT_URL, source, category)
                    for category, patterns in section.get("endpoints", {}).items()
                    for source in patterns
                ),
                PatternCategory.CREDENTIAL_FIELD: tuple(
                    self._compile(gateway, PatternCategory.CREDENTIAL_FIELD, source, None)
                    for source in section.get("credentialFields", [])
                ),
                PatternCategory.API_URL: tuple(
                    self._compile(gateway, PatternCategory.API_URL, source, gateway.value)
                    for source in section.get("urls", [])
                ),
                PatternCategory.HTTP_CALL: tuple(
                    self._compile(gateway, PatternCategory.HTTP_CALL, source, http_client_for_template(source))
                    for source in section.get("apiCalls", [])
                ),
            }

    @staticmethod
    def _compile(gateway: Gateway, category: PatternCategory, source: str,
                 kind: Optional[str]) -> CompiledTemplate:
        if not isinstance(source, str) or not source:
            raise ConfigLoadError(f"{gateway.value}.{category.value}: empty or non-string pattern")
        try:
            regex = re.compile(source, CATEGORY_FLAGS[category])
        except re.error as e:
            raise ConfigLoadError(
                f"{gateway.value}.{category.value}: invalid regular expression {source!r}: {e}"
            )
        return CompiledTemplate(kind=kind, source=source, regex=regex)

    def templates(self, gateway: Gateway, category: PatternCategory) -> Tuple[CompiledTemplate, ...]:
        """Templates compilados de um gateway e categoria, na ordem configurada"""
        return self._tables[gateway][category]

    def field_prefix(self, gateway: Gateway) -> str:
        return self._document.get(gateway.value, {}).get(
            "fieldPrefix", DEFAULT_PATTERN_CONFIG[gateway.value]["fieldPrefix"]
        )

    def endpoint_categories(self, gateway: Gateway = Gateway.CONVERGE) -> List[str]:
        return list(self._document.get(gateway.value, {}).get("endpoints", {}).keys())

    @property
    def supported_extensions(self) -> List[str]:
        return list(self._document.get("supportedExtensions", []))

    @property
    def ignore_patterns(self) -> List[str]:
        return list(self._document.get("ignorePatterns", []))

    @property
    def max_file_size(self) -> int:
        return int(self._document.get("maxFileSize", DEFAULT_PATTERN_CONFIG["maxFileSize"]))

    def to_dict(self) -> Dict[str, Any]:
        """Retorna cópia do documento subjacente"""
        return copy.deepcopy(self._document)

    def __repr__(self) -> str:
        counts = {
            category.value: len(self._tables[Gateway.CONVERGE][category])
            for category in PatternCategory
        }
        return f"PatternConfig(version={self.version}, converge={counts})"


class PatternConfigManager:
    """
    Mantém o snapshot PatternConfig ativo e trata recargas

    Carga ou atualização com falha levanta ConfigLoadError e mantém o snapshot
    ativo intacto.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None, config_file: Optional[str] = None):
        """
        Args:
            config: Documento parcial opcional mesclado sobre os padrões embutidos
            config_file: Arquivo JSON/YAML opcional mesclado sobre os padrões embutidos

        Raises:
            ConfigLoadError: Se as sobrescritas iniciais forem inválidas
        """
        self._lock = threading.Lock()
        document = default_pattern_config()
        if config:
            document = merge_pattern_config(document, validate_pattern_document(config))
        self._snapshot = PatternConfig(document, version=1)
        self.config_file = config_file
        if config_file:
            self.load_from_file(config_file)

    @property
    def snapshot(self) -> PatternConfig:
        """Snapshot ativo. Obtenha uma vez por operação para uma visão consistente."""
        return self._snapshot

    @property
    def version(self) -> int:
        return self._snapshot.version

    def get_config(self) -> Dict[str, Any]:
        """Retorna cópia do documento ativo"""
        return self._snapshot.to_dict()

    def get_patterns(self, gateway: Union[Gateway, str]) -> Dict[str, Any]:
        """Retorna cópia da seção de padrões de um gateway"""
        gateway = Gateway.from_string(gateway) if isinstance(gateway, str) else gateway
        return self._snapshot.to_dict().get(gateway.value, {})

    def get_supported_extensions(self) -> List[str]:
        return self._snapshot.supported_extensions

    def get_ignore_patterns(self) -> List[str]:
        return self._snapshot.ignore_patterns

    def get_max_file_size(self) -> int:
        return self._snapshot.max_file_size

    def load_from_file(self, file_path: Union[str, Path]) -> PatternConfig:
        """
        Carrega arquivo de padrões e mescla sobre os padrões embutidos

        Args:
            file_path: Arquivo .json, .yaml ou .yml

        Returns:
            Novo snapshot ativo

        Raises:
            ConfigLoadError: Se o arquivo não puder ser lido, interpretado, validado ou compilado
        """
        path = Path(file_path)
        raw = read_pattern_file(path)
        updates = validate_pattern_document(raw, str(path))
        snapshot = self._swap(merge_pattern_config(default_pattern_config(), updates), str(path))
        self.config_file = str(path)
        logger.info(f"Config de padrões carregada de {path} (versão {snapshot.version})")
        return snapshot

    def update_config(self, updates: Dict[str, Any]) -> PatternConfig:
        """
        Mescla documento parcial sobre a configuração ativa

        Raises:
            ConfigLoadError: Se a atualização for inválida
        """
        canonical = validate_pattern_document(updates)
        with self._lock:
            snapshot = self._install(merge_pattern_config(self._snapshot.to_dict(), canonical))
        logger.debug(f"Config de padrões atualizada (versão {snapshot.version})")
        return snapshot

    def replace_config(self, document: Dict[str, Any]) -> PatternConfig:
        """
        Substitui a configuração ativa por completo (sobre os padrões embutidos)

        Raises:
            ConfigLoadError: Se o documento for inválido
        """
        canonical = validate_pattern_document(document)
        return self._swap(merge_pattern_config(default_pattern_config(), canonical))

    def reset(self) -> PatternConfig:
        """Restaura os padrões embutidos"""
        return self._swap(default_pattern_config())

    def save_to_file(self, file_path: Union[str, Path]) -> None:
        """
        Grava o documento ativo como JSON ou YAML (pela extensão)

        Raises:
            ConfigLoadError: Se o arquivo não puder ser gravado
        """
        path = Path(file_path)
        document = self._snapshot.to_dict()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, 'w', encoding='utf-8') as f:
                if path.suffix.lower() in ('.yaml', '.yml'):
                    yaml.safe_dump(document, f, sort_keys=False, allow_unicode=True)
                else:
                    json.dump(document, f, indent=2, ensure_ascii=False)
        except OSError as e:
            raise ConfigLoadError(f"could not write pattern config: {e}", str(path))
        logger.info(f"Config de padrões salva em {path}")

    def _swap(self, document: Dict[str, Any], source: Optional[str] = None) -> PatternConfig:
        with self._lock:
            return self._install(document, source)

    def _install(self, document: Dict[str, Any], source: Optional[str] = None) -> PatternConfig:
        # chamador detém self._lock
        try:
            snapshot = PatternConfig(document, version=self._snapshot.version + 1)
        except ConfigLoadError as e:
            logger.error(f"Config de padrões rejeitada, mantendo versão {self._snapshot.version}: {e}")
            if source and not e.path:
                raise ConfigLoadError(str(e), source)
            raise
        self._snapshot = snapshot
        return snapshot


def read_pattern_file(path: Path) -> Any:
    """
    Lê e interpreta arquivo de padrões

    Raises:
        ConfigLoadError: Se o arquivo não existir ou não puder ser interpretado
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            content = f.read()
    except OSError as e:
        raise ConfigLoadError(f"could not read pattern config: {e}", str(path))

    try:
        if path.suffix.lower() in ('.yaml', '.yml'):
            return yaml.safe_load(content)
        return json.loads(content)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigLoadError(f"could not parse pattern config: {e}", str(path))
