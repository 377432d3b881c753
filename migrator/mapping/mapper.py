"""
Mapper de Migração
Resolve nomes de campos e endpoints Converge para seus equivalentes Elavon usando
o dicionário de mapeamento ativo
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from migrator.config.config import DEFAULT_MAPPING_FILE
from migrator.core.models import (
    CodeContext,
    EndpointType,
    Level,
    MigrationSuggestion,
    SuggestionType,
)
from migrator.mapping.dictionary import EndpointMapping, MappingDictionary, MappingStore
from migrator.patterns.matcher import LineIndex

logger = logging.getLogger(__name__)

# Campos Converge esperados em toda integração; os demais são customizados
STANDARD_FIELDS = frozenset({
    'ssl_account_id', 'ssl_merchant_id', 'ssl_user_id', 'ssl_pin', 'ssl_vendor_id',
    'ssl_transaction_type', 'ssl_amount', 'ssl_currency_code', 'ssl_invoice_number',
    'ssl_merchant_txn_id', 'ssl_card_number', 'ssl_exp_date', 'ssl_cvv2cvc2',
    'ssl_cvv2cvc2_indicator', 'ssl_first_name', 'ssl_last_name', 'ssl_avs_address',
    'ssl_avs_zip', 'ssl_city', 'ssl_state', 'ssl_country', 'ssl_email', 'ssl_phone',
    'ssl_txn_id', 'ssl_token', 'ssl_result_format', 'ssl_show_form', 'ssl_description',
})

DIRECT_MAPPING_CONFIDENCE = 0.9
CUSTOM_FIELD_CONFIDENCE = 0.6
EQUIVALENT_FIELD = "equivalent Elavon field"
CUSTOM_MAPPING_REQUIRED = "Custom Elavon field mapping required"


def strip_prefix(field_name: str, prefix: str = "ssl_") -> str:
    if field_name.lower().startswith(prefix.lower()):
        return field_name[len(prefix):]
    return field_name


def is_standard_field(field_name: str) -> bool:
    """
    Verifica um campo contra a lista de campos Converge padrão

    Independe do dicionário de mapeamento: um campo pode ser padrão e
    não mapeado, ou mapeado e não padrão.
    """
    return field_name.strip().lower() in STANDARD_FIELDS


@dataclass(frozen=True)
class ReverseMapping:
    """Campo de origem que mapeia para um campo de destino"""
    endpoint: str
    source_field: str
    target_endpoint: str


@dataclass(frozen=True)
class SearchResult:
    type: str  # 'field' ou 'endpoint'
    source_item: str
    target_item: str
    endpoint: str
    confidence: float


@dataclass(frozen=True)
class MigrationComplexity:
    """Score de 0 (difícil) a 100 (trivial) para migrar um conjunto de campos"""
    score: float
    complexity: Level
    total_fields: int
    mapped_fields: int
    unmapped_fields: int
    deprecated_fields: int
    transformation_required: int


@dataclass(frozen=True)
class CodeTransform:
    """Trechos antes/depois para migrar um campo em uma linguagem"""
    language: str
    source_field: str
    target_field: str
    before: str
    after: str
    transformation: Optional[str] = None


@dataclass(frozen=True)
class FieldSubstitution:
    source_field: str
    target_field: str
    offset: int
    line_number: int


@dataclass
class RewriteResult:
    """Saída de rewrite_fields: novo texto e todas as substituições feitas"""
    text: str
    substitutions: List[FieldSubstitution] = field(default_factory=list)
    unmapped_fields: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.substitutions)


@dataclass(frozen=True)
class _CodeTemplate:
    comment: str
    access: str
    assign: str
    transform: str


CODE_TEMPLATES: Dict[str, _CodeTemplate] = {
    "javascript": _CodeTemplate("//", "convergeData.{source}",
                                "const {target} = {access};", "const {target} = transform{source}({access});"),
    "typescript": _CodeTemplate("//", "convergeData.{source}",
                                "const {target} = {access};", "const {target} = transform{source}({access});"),
    "php": _CodeTemplate("//", "$convergeData['{source}']",
                         "${target} = {access};", "${target} = transform_{source}({access});"),
    "python": _CodeTemplate("#", "converge_data['{source}']",
                            "{target} = {access}", "{target} = transform_{source}({access})"),
    "java": _CodeTemplate("//", "convergeData.get{source}()",
                          "String {target} = {access};", "String {target} = transform{source}({access});"),
    "csharp": _CodeTemplate("//", "convergeData.{source}",
                            "var {target} = {access};", "var {target} = Transform{source}({access});"),
    "ruby": _CodeTemplate("#", "converge_data[:{source}]",
                          "{target} = {access}", "{target} = transform_{source}({access})"),
}


class MigrationMapper:
    """
    Resolução de campos e endpoints sobre um MappingStore

    Cada chamada pública lê o dicionário do store uma vez, então uma recarga
    concorrente nunca mistura duas versões de dicionário.
    """

    def __init__(self, store: Optional[MappingStore] = None, field_prefix: str = "ssl_"):
        self.store = store or MappingStore(DEFAULT_MAPPING_FILE)
        self.field_prefix = field_prefix

    @classmethod
    def from_dict(cls, data: Dict) -> 'MigrationMapper':
        return cls(MappingStore.from_dict(data))

    @property
    def dictionary(self) -> MappingDictionary:
        return self.store.dictionary

    def _candidates(self, dictionary: MappingDictionary, endpoint: str) -> List[EndpointMapping]:
        exact = [m for m in dictionary.mappings if m.source_endpoint == endpoint]
        contained = [m for m in dictionary.mappings
                     if m.source_endpoint != endpoint and m.source_endpoint in endpoint]
        return exact + contained

    def find_endpoint_mapping(self, endpoint: str) -> Optional[EndpointMapping]:
        """
        Mapeamento de um endpoint: correspondência exata primeiro, depois o primeiro
        mapeamento cujo endpoint de origem está contido em ``endpoint``
        """
        if not endpoint:
            return None
        candidates = self._candidates(self.dictionary, endpoint)
        return candidates[0] if candidates else None

    def mapping_for_endpoint_type(self, endpoint_type: EndpointType,
                                  dictionary: Optional[MappingDictionary] = None) -> Optional[EndpointMapping]:
        """Primeiro mapeamento cujo endpoint de origem cita a família do endpoint"""
        if dictionary is None:
            dictionary = self.dictionary
        needle = endpoint_type.value.lower()
        for mapping in dictionary.mappings:
            if needle in mapping.source_endpoint.lower():
                return mapping
        return None

    def map_field(self, endpoint: str, source_field: str) -> Optional[str]:
        """
        Campo de destino de um campo de origem sob um endpoint

        Args:
            endpoint: Endpoint Converge (exato, ou contendo um endpoint mapeado)
            source_field: Nome exato do campo de origem

        Returns:
            Campo de destino configurado, ou None quando endpoint ou campo não está mapeado
        """
        if not endpoint or not source_field:
            return None
        for mapping in self._candidates(self.dictionary, endpoint):
            target = mapping.field_mappings.get(source_field)
            if target is not None:
                return target
        return None

    def resolve_field(self, source_field: str, endpoint: Optional[str] = None,
                      dictionary: Optional[MappingDictionary] = None
                      ) -> Optional[Tuple[EndpointMapping, Optional[str]]]:
        """
        Encontra o mapeamento que cobre um campo

        Um mapeamento cobre o campo quando sua tabela contém o nome exato, ou uma
        chave que contém o nome sem o prefixo de campo. O destino é
        None no caso de substring.

        Args:
            source_field: Nome do campo como detectado
            endpoint: Endpoint opcional que restringe os mapeamentos candidatos
            dictionary: Dicionário a pesquisar (o ativo por padrão)

        Returns:
            (mapeamento, destino exato ou None), ou None quando nada cobre o campo
        """
        if dictionary is None:
            dictionary = self.dictionary
        mappings = self._candidates(dictionary, endpoint) if endpoint else list(dictionary.mappings)
        bare_name = strip_prefix(source_field, self.field_prefix)

        for mapping in mappings:
            target = mapping.field_mappings.get(source_field)
            if target is not None:
                return mapping, target
            if bare_name and any(bare_name in key for key in mapping.field_mappings):
                return mapping, None
        return None

    def map_suggestions_for_context(self, context: CodeContext, endpoint: Optional[str] = None,
                                    dictionary: Optional[MappingDictionary] = None
                                    ) -> List[MigrationSuggestion]:
        """
        Uma sugestão por campo de credencial, ordenadas por confiança (estável)

        Campos mapeados geram sugestão de mapeamento direto (confiança 0.9, esforço
        baixo); não mapeados geram sugestão de campo customizado (0.6, esforço alto).
        Todos os campos são resolvidos contra o mesmo dicionário.
        """
        if dictionary is None:
            dictionary = self.dictionary
        suggestions = [self.field_suggestion(name, endpoint, dictionary) for name in context.credential_fields]
        return sorted(suggestions, key=lambda s: s.confidence, reverse=True)

    def field_suggestion(self, source_field: str, endpoint: Optional[str] = None,
                         dictionary: Optional[MappingDictionary] = None) -> MigrationSuggestion:
        resolved = self.resolve_field(source_field, endpoint, dictionary)
        if resolved is not None:
            mapping, target = resolved
            replacement = target or EQUIVALENT_FIELD
            return MigrationSuggestion(
                id=f"field-{source_field}",
                type=SuggestionType.FIELD,
                title=f"Map {source_field} to Elavon field",
                description=f"Convert {source_field} to {replacement}",
                confidence=DIRECT_MAPPING_CONFIDENCE,
                impact=Level.MEDIUM,
                effort=Level.LOW,
                code_snippet=source_field,
                suggested_replacement=replacement,
                reasoning=("Direct mapping available in dictionary", "Standard field conversion"),
                dependencies=(mapping.target_endpoint,),
            )
        return MigrationSuggestion(
            id=f"field-{source_field}-custom",
            type=SuggestionType.FIELD,
            title=f"Custom field {source_field} needs mapping",
            description=f"No direct mapping found for {source_field}, requires manual mapping",
            confidence=CUSTOM_FIELD_CONFIDENCE,
            impact=Level.MEDIUM,
            effort=Level.HIGH,
            code_snippet=source_field,
            suggested_replacement=CUSTOM_MAPPING_REQUIRED,
            reasoning=("No direct mapping available", "May require custom transformation"),
        )

    def reverse_lookup(self, target_field: str) -> List[ReverseMapping]:
        """Todos os pares (endpoint, campo de origem) que mapeiam para ``target_field``, na ordem do dicionário"""
        results = []
        for mapping in self.dictionary.mappings:
            for source, target in mapping.field_mappings.items():
                if target == target_field:
                    results.append(ReverseMapping(mapping.source_endpoint, source, mapping.target_endpoint))
        return results

    def is_standard_field(self, field_name: str) -> bool:
        return is_standard_field(field_name)

    def lookup_field(self, source_field: str) -> Optional[Tuple[EndpointMapping, str]]:
        """Primeiro mapeamento que contém o campo, sem diferenciar maiúsculas"""
        lowered = source_field.lower()
        for mapping in self.dictionary.mappings:
            for source, target in mapping.field_mappings.items():
                if source.lower() == lowered:
                    return mapping, target
        return None

    def search_mappings(self, query: str) -> List[SearchResult]:
        """
        Busca aproximada em campos e endpoints

        Faixas de campo: 1.0 exato, 0.8 prefixo, 0.6 substring, 0.4 palavra parcial.
        Faixas de endpoint: 1.0 exato, 0.7 substring. Resultados ordenados por
        confiança e sem duplicatas em (origem, destino).

        Args:
            query: Texto de busca, sem diferenciar maiúsculas

        Returns:
            Lista de SearchResult
        """
        query_lower = query.strip().lower()
        if not query_lower:
            return []

        results: List[SearchResult] = []
        for mapping in self.dictionary.mappings:
            for source, target in mapping.field_mappings.items():
                confidence = _field_match_confidence(source.lower(), target.lower(), query_lower)
                if confidence > 0:
                    results.append(SearchResult('field', source, target, mapping.source_endpoint, confidence))

        for mapping in self.dictionary.mappings:
            source_lower = mapping.source_endpoint.lower()
            target_lower = mapping.target_endpoint.lower()
            if query_lower in source_lower or query_lower in target_lower:
                confidence = 1.0 if query_lower in (source_lower, target_lower) else 0.7
                results.append(SearchResult('endpoint', mapping.source_endpoint, mapping.target_endpoint,
                                            mapping.source_endpoint, confidence))

        seen = set()
        unique = []
        for result in sorted(results, key=lambda r: r.confidence, reverse=True):
            key = (result.source_item, result.target_item)
            if key not in seen:
                seen.add(key)
                unique.append(result)
        return unique

    def migration_complexity(self, source_fields: List[str]) -> MigrationComplexity:
        """
        Pontua a dificuldade de migrar um conjunto de campos

        Começa em 100 e perde até 40 por campos não mapeados, 30 por campos
        depreciados e 20 por campos que exigem transformação. 70 ou mais é baixa,
        40 ou mais média, o restante alta.
        """
        dictionary = self.dictionary
        total = len(source_fields)
        if total == 0:
            return MigrationComplexity(100.0, Level.LOW, 0, 0, 0, 0, 0)

        mapped = [f for f in source_fields if self.lookup_field(f) is not None]
        deprecated = {d.lower() for d in dictionary.deprecated_fields}
        deprecated_count = sum(1 for f in source_fields if f.lower() in deprecated)
        transformations = sum(1 for f in mapped if f in dictionary.transformation_rules)
        unmapped = total - len(mapped)

        score = 100.0
        score -= (unmapped / total) * 40
        score -= (deprecated_count / total) * 30
        score -= (transformations / total) * 20
        score = round(max(0.0, min(100.0, score)), 2)

        if score >= 70:
            complexity = Level.LOW
        elif score >= 40:
            complexity = Level.MEDIUM
        else:
            complexity = Level.HIGH

        return MigrationComplexity(score, complexity, total, len(mapped), unmapped,
                                   deprecated_count, transformations)

    def generate_migration_code(self, source_field: str, language: str = "javascript",
                                endpoint: Optional[str] = None) -> Optional[CodeTransform]:
        """
        Trecho antes/depois para um campo

        Args:
            source_field: Nome do campo Converge
            language: javascript, typescript, php, python, java, csharp ou ruby
            endpoint: Endpoint opcional para resolver o campo

        Returns:
            CodeTransform, ou None quando o campo não está mapeado ou a linguagem
            não tem template
        """
        template = CODE_TEMPLATES.get(language)
        if template is None:
            return None

        if endpoint:
            target = self.map_field(endpoint, source_field)
        else:
            found = self.lookup_field(source_field)
            target = found[1] if found else None
        if target is None:
            return None

        rule = self.dictionary.transformation_rules.get(source_field)
        access = template.access.format(source=source_field)
        header = f"{template.comment} Migration: {source_field} -> {target}\n"
        if rule:
            header += f"{template.comment} Transformation required: {rule}\n"
            body = template.transform.format(source=source_field, target=target, access=access)
        else:
            body = template.assign.format(source=source_field, target=target, access=access)

        before = template.assign.format(source=source_field, target=source_field, access=access)
        return CodeTransform(language, source_field, target, before, header + body, rule)

    def rewrite_fields(self, source_text: str, endpoint: Optional[str] = None) -> RewriteResult:
        """
        Substitui nomes de campos de origem mapeados por seus destinos

        Nomes são substituídos apenas em limites de identificador. Com endpoint,
        apenas os mapeamentos dele valem; caso contrário vale o primeiro mapeamento
        que contém o campo.

        Args:
            source_text: Texto a reescrever
            endpoint: Endpoint opcional

        Returns:
            RewriteResult com o novo texto, todas as substituições (posições no
            texto original) e campos prefixados não mapeados
        """
        if not source_text:
            return RewriteResult(text=source_text or "")

        dictionary = self.dictionary
        mappings = self._candidates(dictionary, endpoint) if endpoint else list(dictionary.mappings)
        table: Dict[str, str] = {}
        for mapping in mappings:
            for source, target in mapping.field_mappings.items():
                table.setdefault(source, target)

        unmapped = _unmapped_fields(source_text, table, self.field_prefix)
        if not table:
            return RewriteResult(text=source_text, unmapped_fields=unmapped)

        names = sorted(table, key=len, reverse=True)
        pattern = re.compile(r"(?<![A-Za-z0-9_])(" + "|".join(re.escape(n) for n in names) + r")(?![A-Za-z0-9_])")
        lines = LineIndex(source_text)
        substitutions: List[FieldSubstitution] = []

        def _replace(match: re.Match) -> str:
            source = match.group(1)
            substitutions.append(FieldSubstitution(source, table[source], match.start(),
                                                   lines.line_number(match.start())))
            return table[source]

        text = pattern.sub(_replace, source_text)
        logger.debug(f"{len(substitutions)} referências de campo reescritas")
        return RewriteResult(text=text, substitutions=substitutions, unmapped_fields=unmapped)


def _partial_word_match(text: str, query: str) -> bool:
    text_words = [w for w in re.split(r"[_\s-]+", text) if w]
    query_words = [w for w in re.split(r"[_\s-]+", query) if w]
    return any(q in t or t in q for q in query_words for t in text_words)


def _field_match_confidence(source: str, target: str, query: str) -> float:
    if query in (source, target):
        return 1.0
    if source.startswith(query) or target.startswith(query):
        return 0.8
    if query in source or query in target:
        return 0.6
    if _partial_word_match(source, query) or _partial_word_match(target, query):
        return 0.4
    return 0.0


def _unmapped_fields(text: str, table: Dict[str, str], prefix: str) -> List[str]:
    if not prefix:
        return []
    pattern = re.compile(r"(?<![A-Za-z0-9_])" + re.escape(prefix) + r"[A-Za-z0-9_]+")
    unmapped: List[str] = []
    for match in pattern.finditer(text):
        name = match.group(0)
        if name not in table and name not in unmapped:
            unmapped.append(name)
    return unmapped
