"""
Motor de sugestões de migração
Reúne sugestões de endpoint, campo, padrão, otimização e implementação customizada
de um arquivo e as ordena por confiança
"""

import logging
import re
from typing import Any, List, Optional

from migrator.core.models import (
    CodeContext,
    Detection,
    Level,
    MigrationSuggestion,
    SuggestionType,
)
from migrator.mapping.dictionary import MappingDictionary
from migrator.mapping.mapper import MigrationMapper, is_standard_field
from migrator.patterns.matcher import PatternMatcher, coerce_text
from migrator.patterns.pattern_config import PatternConfig

logger = logging.getLogger(__name__)

ERROR_HANDLING_RE = re.compile(r"\b(?:try|catch|except|rescue|throw|raise)\b")
ASYNC_RE = re.compile(r"\b(?:async|await|promise)\b|\.then\(", re.IGNORECASE)

HARDCODED_PATTERNS = (
    re.compile(r"['\"](https?://[^'\"\s]+)['\"]"),
    re.compile(r"['\"](pk_[a-zA-Z0-9_]+)['\"]"),
    re.compile(r"['\"](sk_[a-zA-Z0-9_]+)['\"]"),
)


def rank_suggestions(suggestions: List[MigrationSuggestion]) -> List[MigrationSuggestion]:
    """Ordena por confiança decrescente; empates mantêm a ordem de geração"""
    return sorted(suggestions, key=lambda s: s.confidence, reverse=True)


class SuggestionEngine:
    """Monta a lista ordenada de sugestões de um arquivo"""

    def __init__(self, matcher: Optional[PatternMatcher] = None, mapper: Optional[MigrationMapper] = None):
        self.matcher = matcher or PatternMatcher()
        self.mapper = mapper or MigrationMapper()

    def generate(self, context: CodeContext, source_text: Any = "", endpoint: Optional[str] = None,
                 snapshot: Optional[PatternConfig] = None,
                 dictionary: Optional[MappingDictionary] = None) -> List[MigrationSuggestion]:
        """
        Todas as sugestões de um arquivo, ordenadas

        Args:
            context: Contexto produzido por CodeContextAnalyzer
            source_text: O mesmo texto usado para construir o contexto
            endpoint: Endpoint opcional ao qual a resolução de campos se restringe
            snapshot: Snapshot de padrões usado no contexto (o ativo por padrão)
            dictionary: Dicionário de mapeamento usado na resolução (o ativo por padrão)

        Returns:
            Sugestões ordenadas por confiança (estável)
        """
        text = coerce_text(source_text)
        if dictionary is None:
            dictionary = self.mapper.dictionary
        endpoints = self.matcher.detect_endpoints(text, snapshot=snapshot)

        suggestions: List[MigrationSuggestion] = []
        suggestions.extend(self.endpoint_suggestions(endpoints, dictionary))
        suggestions.extend(self.mapper.map_suggestions_for_context(context, endpoint, dictionary))

        if context.credential_fields or endpoints:
            suggestions.extend(self.pattern_suggestions(context, text))
            suggestions.extend(self.optimization_suggestions(text))
        suggestions.extend(self.custom_implementation_suggestions(context))

        ranked = rank_suggestions(suggestions)
        logger.debug(f"{len(ranked)} sugestões para {context.file_path}")
        return ranked

    def endpoint_suggestions(self, detections: List[Detection],
                             dictionary: Optional[MappingDictionary] = None) -> List[MigrationSuggestion]:
        """Uma sugestão por (tipo de endpoint, linha); vale a primeira ocorrência na linha"""
        seen = set()
        suggestions = []
        for detection in detections:
            if detection.endpoint_type is None:
                continue
            key = (detection.endpoint_type, detection.line_number)
            if key in seen:
                continue
            seen.add(key)

            endpoint_type = detection.endpoint_type
            mapping = self.mapper.mapping_for_endpoint_type(endpoint_type, dictionary)
            named = endpoint_type.value.lower() in detection.matched_text.lower()
            suggestions.append(MigrationSuggestion(
                id=f"endpoint-{endpoint_type.name.lower()}-{detection.line_number}",
                type=SuggestionType.ENDPOINT,
                title=f"Migrate {endpoint_type.value} to Elavon",
                description=f"Convert {endpoint_type.value} (line {detection.line_number}) "
                            f"to the equivalent Elavon endpoint",
                confidence=0.95 if named else 0.75,
                impact=Level.HIGH,
                effort=Level.MEDIUM,
                code_snippet=detection.matched_text,
                suggested_replacement=mapping.target_endpoint if mapping else "Elavon equivalent endpoint",
                reasoning=(
                    "Converge endpoint detected",
                    "Direct mapping available" if mapping else "No endpoint mapping in dictionary",
                ),
                dependencies=(mapping.target_endpoint,) if mapping else (),
            ))
        return suggestions

    def pattern_suggestions(self, context: CodeContext, text: str) -> List[MigrationSuggestion]:
        suggestions = []
        if not ERROR_HANDLING_RE.search(text):
            suggestions.append(MigrationSuggestion(
                id="error-handling",
                type=SuggestionType.PATTERN,
                title="Add error handling for Elavon API calls",
                description="Elavon API calls should include proper error handling",
                confidence=0.8,
                impact=Level.HIGH,
                effort=Level.MEDIUM,
                code_snippet="API call without error handling",
                suggested_replacement="Wrap gateway calls in error handling",
                reasoning=("Error handling is critical for payment APIs",
                           "Elavon APIs return a different error format"),
            ))

        if context.language in ('javascript', 'typescript') and \
                not ASYNC_RE.search(text):
            suggestions.append(MigrationSuggestion(
                id="async-pattern",
                type=SuggestionType.PATTERN,
                title="Use async/await for Elavon API calls",
                description="Elavon API calls should use the async/await pattern",
                confidence=0.7,
                impact=Level.MEDIUM,
                effort=Level.LOW,
                code_snippet="Synchronous API call",
                suggested_replacement="Convert to async/await pattern",
                reasoning=("Clearer error propagation", "Non-blocking network calls"),
            ))
        return suggestions

    def optimization_suggestions(self, text: str) -> List[MigrationSuggestion]:
        values: List[str] = []
        for pattern in HARDCODED_PATTERNS:
            for match in pattern.finditer(text):
                if match.group(1) not in values:
                    values.append(match.group(1))
        if not values:
            return []
        return [MigrationSuggestion(
            id="hardcoded-values",
            type=SuggestionType.OPTIMIZATION,
            title="Replace hardcoded values with configuration",
            description=f"Move {len(values)} hardcoded URL(s) and key(s) to configuration",
            confidence=0.9,
            impact=Level.MEDIUM,
            effort=Level.LOW,
            code_snippet=", ".join(values),
            suggested_replacement="Use configuration variables",
            reasoning=("Keeps secrets out of source", "Environment-specific values"),
        )]

    def custom_implementation_suggestions(self, context: CodeContext) -> List[MigrationSuggestion]:
        custom = [f for f in context.credential_fields if not is_standard_field(f)]
        if not custom:
            return []
        return [MigrationSuggestion(
            id="custom-ssl-fields",
            type=SuggestionType.FIELD,
            title="Custom SSL field patterns detected",
            description=f"Found {len(custom)} non-standard credential field(s) that may need special handling",
            confidence=0.8,
            impact=Level.MEDIUM,
            effort=Level.MEDIUM,
            code_snippet=", ".join(custom),
            suggested_replacement="Map to equivalent Elavon fields",
            reasoning=("Custom fields require manual mapping", "May need custom transformation logic"),
        )]
