"""
Detecção de uso de gateway em texto fonte baseada em regex

O casamento é puramente léxico. Cada template configurado é aplicado com
semântica de ``finditer``, então um template pode casar várias vezes e ocorrências de
templates diferentes podem se sobrepor; nada é deduplicado nesta etapa.
"""

import logging
import re
from bisect import bisect_left
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence

from migrator.core.models import Detection, Gateway, PatternCategory, endpoint_type_for_category
from migrator.patterns.pattern_config import CompiledTemplate, PatternConfig, PatternConfigManager

logger = logging.getLogger(__name__)

IDENTIFIER_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def coerce_text(buffer: Any) -> str:
    """
    Converte entrada arbitrária em texto analisável

    Bytes são decodificados como UTF-8 com substituição para que conteúdo truncado ou binário
    ainda seja analisado; None vira string vazia.
    """
    if buffer is None:
        return ""
    if isinstance(buffer, str):
        return buffer
    if isinstance(buffer, (bytes, bytearray, memoryview)):
        return bytes(buffer).decode('utf-8', errors='replace')
    return str(buffer)


def normalize_field_name(matched_text: str, prefix: str = "ssl_") -> str:
    """
    Reduz uma ocorrência de campo de credencial ao nome do campo

    ``"ssl_amount"``, ``$ssl_amount``, ``ssl_amount:`` e
    ``@XmlElement(name = "ssl_amount")`` resultam em ``ssl_amount``;
    ``ssl["amount"]`` resulta em ``ssl_amount``.

    Args:
        matched_text: Texto casado por um template de campo de credencial
        prefix: Prefixo de campo do gateway

    Returns:
        Nome do campo, ou o texto casado sem espaços quando não há identificador
    """
    tokens = IDENTIFIER_RE.findall(matched_text)
    if not tokens:
        return matched_text.strip()

    lowered_prefix = prefix.lower()
    bare_prefix = lowered_prefix.rstrip('_')
    for index, token in enumerate(tokens):
        lowered = token.lower()
        if bare_prefix and lowered == bare_prefix and index + 1 < len(tokens):
            return f"{token}_{tokens[index + 1]}"
        if lowered.startswith(lowered_prefix):
            return token
    return tokens[-1]


class LineIndex:
    """Mapeia offsets para números de linha (base 1) com uma passada pelo texto"""

    def __init__(self, text: str):
        self._newlines = [i for i, ch in enumerate(text) if ch == '\n']

    def line_number(self, offset: int) -> int:
        # quebras de linha antes do offset, mais um
        return bisect_left(self._newlines, offset) + 1


@dataclass
class PatternAnalysis:
    """As quatro listas de detecção de um buffer"""
    endpoints: List[Detection] = field(default_factory=list)
    credential_fields: List[Detection] = field(default_factory=list)
    api_urls: List[Detection] = field(default_factory=list)
    http_calls: List[Detection] = field(default_factory=list)
    config_version: int = 0

    def all(self) -> List[Detection]:
        return self.endpoints + self.credential_fields + self.api_urls + self.http_calls

    @property
    def total(self) -> int:
        return len(self.endpoints) + len(self.credential_fields) + len(self.api_urls) + len(self.http_calls)

    def is_empty(self) -> bool:
        return self.total == 0


class PatternMatcher:
    """
    Aplica o snapshot de padrões ativo a buffers de texto

    O matcher não guarda estado entre chamadas além da referência ao
    config manager. Cada chamada lê o snapshot do manager uma vez, ou usa o
    snapshot recebido para que várias chamadas compartilhem uma versão de config.
    """

    def __init__(self, config_manager: Optional[PatternConfigManager] = None):
        self.config_manager = config_manager or PatternConfigManager()

    @property
    def config(self) -> PatternConfig:
        return self.config_manager.snapshot

    def detect(self, buffer: Any, gateway: Gateway = Gateway.CONVERGE,
               snapshot: Optional[PatternConfig] = None) -> List[Detection]:
        """
        Todas as ocorrências estruturais do buffer: endpoints (incluindo categorias
        não reconhecidas) primeiro, depois campos de credencial, URLs de API e chamadas HTTP
        """
        text = coerce_text(buffer)
        if not text:
            return []
        snapshot = snapshot or self.config
        lines = LineIndex(text)
        detections = self._scan(text, lines, snapshot, gateway, PatternCategory.ENDPOINT_URL)
        detections.extend(self._scan(text, lines, snapshot, gateway, PatternCategory.CREDENTIAL_FIELD))
        for url_gateway in Gateway:
            detections.extend(self._scan(text, lines, snapshot, url_gateway, PatternCategory.API_URL))
        detections.extend(self._scan(text, lines, snapshot, gateway, PatternCategory.HTTP_CALL))
        return detections

    def detect_endpoints(self, buffer: Any, gateway: Gateway = Gateway.CONVERGE,
                         snapshot: Optional[PatternConfig] = None) -> List[Detection]:
        """Ocorrências de endpoint cuja categoria resolve para um tipo conhecido"""
        text = coerce_text(buffer)
        if not text:
            return []
        detections = self._scan(text, LineIndex(text), snapshot or self.config, gateway,
                                PatternCategory.ENDPOINT_URL)
        return [d for d in detections if d.endpoint_type is not None]

    def detect_credential_fields(self, buffer: Any, gateway: Gateway = Gateway.CONVERGE,
                                 snapshot: Optional[PatternConfig] = None) -> List[Detection]:
        text = coerce_text(buffer)
        if not text:
            return []
        return self._scan(text, LineIndex(text), snapshot or self.config, gateway,
                          PatternCategory.CREDENTIAL_FIELD)

    def detect_api_urls(self, buffer: Any, gateways: Optional[Sequence[Gateway]] = None,
                        snapshot: Optional[PatternConfig] = None) -> List[Detection]:
        """Ocorrências de URL de API dos gateways informados (ambos por padrão); kind é o nome do gateway"""
        text = coerce_text(buffer)
        if not text:
            return []
        snapshot = snapshot or self.config
        lines = LineIndex(text)
        detections: List[Detection] = []
        for gateway in (gateways or list(Gateway)):
            detections.extend(self._scan(text, lines, snapshot, gateway, PatternCategory.API_URL))
        return detections

    def detect_http_calls(self, buffer: Any, gateway: Gateway = Gateway.CONVERGE,
                          snapshot: Optional[PatternConfig] = None) -> List[Detection]:
        """Chamadas HTTP; kind é o estilo de cliente (fetch, axios, curl, resttemplate, http)"""
        text = coerce_text(buffer)
        if not text:
            return []
        return self._scan(text, LineIndex(text), snapshot or self.config, gateway,
                          PatternCategory.HTTP_CALL)

    def analyze(self, buffer: Any, gateway: Gateway = Gateway.CONVERGE,
                snapshot: Optional[PatternConfig] = None) -> PatternAnalysis:
        """
        Executa as quatro varreduras de categoria contra um único snapshot

        Args:
            buffer: Texto, bytes ou None
            gateway: Gateway cujas tabelas de endpoint, campo e chamada são usadas
            snapshot: Snapshot usado no casamento (o ativo por padrão)

        Returns:
            PatternAnalysis com as quatro listas; listas vazias para entrada vazia
        """
        snapshot = snapshot or self.config
        text = coerce_text(buffer)
        if not text:
            return PatternAnalysis(config_version=snapshot.version)

        lines = LineIndex(text)
        endpoints = self._scan(text, lines, snapshot, gateway, PatternCategory.ENDPOINT_URL)
        api_urls: List[Detection] = []
        for url_gateway in Gateway:
            api_urls.extend(self._scan(text, lines, snapshot, url_gateway, PatternCategory.API_URL))

        return PatternAnalysis(
            endpoints=[d for d in endpoints if d.endpoint_type is not None],
            credential_fields=self._scan(text, lines, snapshot, gateway, PatternCategory.CREDENTIAL_FIELD),
            api_urls=api_urls,
            http_calls=self._scan(text, lines, snapshot, gateway, PatternCategory.HTTP_CALL),
            config_version=snapshot.version,
        )

    def credential_field_names(self, buffer: Any, gateway: Gateway = Gateway.CONVERGE,
                               snapshot: Optional[PatternConfig] = None) -> List[str]:
        """Nomes de campo de credencial normalizados, sem duplicatas, na ordem de aparição"""
        snapshot = snapshot or self.config
        prefix = snapshot.field_prefix(gateway)
        names: List[str] = []
        seen = set()
        for detection in self.detect_credential_fields(buffer, gateway, snapshot):
            name = normalize_field_name(detection.matched_text, prefix)
            if name and name not in seen:
                seen.add(name)
                names.append(name)
        return names

    @staticmethod
    def _scan(text: str, lines: LineIndex, snapshot: PatternConfig, gateway: Gateway,
              category: PatternCategory) -> List[Detection]:
        detections: List[Detection] = []
        for template in snapshot.templates(gateway, category):
            detections.extend(PatternMatcher._apply(text, lines, template, gateway, category))
        return detections

    @staticmethod
    def _apply(text: str, lines: LineIndex, template: CompiledTemplate, gateway: Gateway,
               category: PatternCategory) -> List[Detection]:
        endpoint_type = None
        if category == PatternCategory.ENDPOINT_URL and template.kind:
            endpoint_type = endpoint_type_for_category(template.kind)

        results = []
        for match in template.regex.finditer(text):
            if match.start() == match.end():
                continue
            results.append(Detection(
                category=category,
                matched_text=match.group(0),
                offset=match.start(),
                line_number=lines.line_number(match.start()),
                gateway=gateway,
                kind=template.kind,
                endpoint_type=endpoint_type,
                template=template.source,
            ))
        return results
