"""
Serviço de análise: recebe uma requisição e devolve contexto e sugestões ordenadas
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from migrator.analysis.context_analyzer import CodeContextAnalyzer
from migrator.analysis.suggestions import SuggestionEngine
from migrator.core.models import CodeContext, Detection, MigrationSuggestion, SemanticAnalysis
from migrator.mapping.dictionary import MappingDictionary
from migrator.mapping.mapper import MigrationMapper
from migrator.patterns.matcher import PatternAnalysis, PatternMatcher, coerce_text
from migrator.patterns.pattern_config import PatternConfig, PatternConfigManager

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisRequest:
    file_path: str
    source_text: Any
    endpoint: Optional[str] = None


@dataclass
class AnalysisResponse:
    """
    Contexto, sugestões ordenadas e as detecções brutas de origem

    Os três são calculados a partir de um único snapshot de padrões e um único
    dicionário de mapeamento, identificados por config_version e mapping_revision.
    """
    context: CodeContext
    suggestions: List[MigrationSuggestion] = field(default_factory=list)
    detections: PatternAnalysis = field(default_factory=PatternAnalysis)
    mapping_revision: int = 0

    @property
    def config_version(self) -> int:
        return self.detections.config_version

    @property
    def has_gateway_usage(self) -> bool:
        return bool(self.context.credential_fields) or not self.detections.is_empty()

    def to_dict(self) -> Dict[str, Any]:
        context = self.context
        return {
            "file_path": context.file_path,
            "language": context.language,
            "confidence": context.confidence,
            "imports": list(context.imports),
            "dependencies": list(context.dependencies),
            "business_logic": list(context.business_logic),
            "credential_fields": list(context.credential_fields),
            "function_name": context.function_name,
            "class_name": context.class_name,
            "config_version": self.config_version,
            "mapping_revision": self.mapping_revision,
            "detections": [_detection_dict(d) for d in self.detections.all()],
            "suggestions": [
                {
                    "id": s.id,
                    "type": s.type.value,
                    "title": s.title,
                    "confidence": s.confidence,
                    "impact": s.impact.value,
                    "effort": s.effort.value,
                    "code_snippet": s.code_snippet,
                    "suggested_replacement": s.suggested_replacement,
                    "reasoning": list(s.reasoning),
                }
                for s in self.suggestions
            ],
        }


def _detection_dict(detection: Detection) -> Dict[str, Any]:
    return {
        "category": detection.category.value,
        "matched_text": detection.matched_text,
        "offset": detection.offset,
        "line_number": detection.line_number,
        "gateway": detection.gateway.value,
        "kind": detection.kind,
        "endpoint_type": detection.endpoint_type.value if detection.endpoint_type else None,
    }


class AnalysisService:
    """
    Integra matcher, analisador de contexto, motor de sugestões e mapper

    Args:
        config_manager: Gerenciador de config de padrões (padrões embutidos por padrão)
        mapper: Mapper de migração (dicionário de mapeamento do pacote por padrão)
    """

    def __init__(self, config_manager: Optional[PatternConfigManager] = None,
                 mapper: Optional[MigrationMapper] = None):
        self.config_manager = config_manager or PatternConfigManager()
        self.matcher = PatternMatcher(self.config_manager)
        self.context_analyzer = CodeContextAnalyzer(self.matcher)
        self.mapper = mapper or MigrationMapper()
        self.suggestion_engine = SuggestionEngine(self.matcher, self.mapper)

    @property
    def config_version(self) -> int:
        return self.config_manager.version

    def analyze(self, request: AnalysisRequest, snapshot: Optional[PatternConfig] = None,
                dictionary: Optional[MappingDictionary] = None) -> AnalysisResponse:
        """
        Analisa um arquivo

        O snapshot de padrões e o dicionário de mapeamento são obtidos uma vez, então uma recarga
        durante a requisição nunca mistura duas versões na mesma resposta.

        Args:
            request: Caminho do arquivo (para detectar a linguagem) e seu texto
            snapshot: Snapshot de padrões a usar (o ativo por padrão)
            dictionary: Dicionário de mapeamento a usar (o ativo por padrão)

        Returns:
            AnalysisResponse
        """
        if snapshot is None:
            snapshot = self.config_manager.snapshot
        if dictionary is None:
            dictionary = self.mapper.dictionary

        text = coerce_text(request.source_text)
        context = self.context_analyzer.analyze(request.file_path, text, snapshot)
        detections = self.matcher.analyze(text, snapshot=snapshot)
        suggestions = self.suggestion_engine.generate(context, text, request.endpoint, snapshot, dictionary)
        return AnalysisResponse(context=context, suggestions=suggestions, detections=detections,
                                mapping_revision=dictionary.revision)

    def analyze_text(self, file_path: str, source_text: Any, endpoint: Optional[str] = None) -> AnalysisResponse:
        return self.analyze(AnalysisRequest(file_path, source_text, endpoint))

    def semantic_analysis(self, file_path: str, source_text: Any) -> SemanticAnalysis:
        context = self.context_analyzer.analyze(file_path, source_text)
        return self.context_analyzer.semantic_analysis(context, source_text)
