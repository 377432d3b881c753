"""
Analisador de Contexto de Código
Extrai sinais por arquivo (linguagem, imports, dependências, palavras de negócio,
campos de credencial) e pontua a probabilidade de uso real do gateway
"""

import logging
from typing import Any, List, Optional

from migrator.analysis.language import (
    extract_first_name,
    extract_imports,
    language_for_path,
    syntax_for,
)
from migrator.core.models import CodeContext, Gateway, SemanticAnalysis
from migrator.patterns.matcher import PatternMatcher, coerce_text
from migrator.patterns.pattern_config import PatternConfig

logger = logging.getLogger(__name__)


def calculate_confidence(credential_fields: List[str], business_logic: List[str],
                         imports: List[str]) -> float:
    """
    Score de confiança aditivo de um arquivo

    +0.4 com qualquer campo de credencial e +0.2 acima de cinco campos;
    +0.2 com qualquer palavra de negócio e +0.1 acima de três;
    +0.2 quando um import cita biblioteca HTTP/pagamento conhecida. Limitado a 1.0.

    Args:
        credential_fields: Nomes distintos de campos de credencial
        business_logic: Palavras de negócio distintas encontradas
        imports: Nomes de módulos importados

    Returns:
        Confiança em [0.0, 1.0]
    """
    confidence = 0.0

    if credential_fields:
        confidence += 0.4
    if len(credential_fields) > 5:
        confidence += 0.2

    if business_logic:
        confidence += 0.2
    if len(business_logic) > 3:
        confidence += 0.1

    if any(lib in imp.lower() for imp in imports for lib in CodeContextAnalyzer.PAYMENT_LIBRARIES):
        confidence += 0.2

    return round(min(confidence, 1.0), 4)


class CodeContextAnalyzer:
    """
    Constrói um CodeContext a partir do caminho e do texto do arquivo

    Computação pura sobre o snapshot ativo do matcher; instâncias podem ser
    compartilhadas entre threads.
    """

    # Imports que contam como biblioteca HTTP/pagamento na confiança
    PAYMENT_LIBRARIES = ('axios', 'fetch', 'request', 'curl', 'http')

    # Substrings (sem diferenciar maiúsculas) reportadas como dependências
    DEPENDENCY_KEYWORDS = (
        'axios', 'fetch', 'request', 'http', 'https', 'curl', 'urllib',
        'jquery', 'restclient', 'faraday', 'httparty', 'net::http',
        'webrequest', 'httpclient', 'restsharp', 'webclient',
    )

    BUSINESS_KEYWORDS = (
        'transaction', 'payment', 'order', 'customer', 'invoice',
        'refund', 'void', 'capture', 'authorize', 'settle',
    )

    def __init__(self, matcher: Optional[PatternMatcher] = None):
        self.matcher = matcher or PatternMatcher()

    def analyze(self, file_path: str, source_text: Any,
                snapshot: Optional[PatternConfig] = None) -> CodeContext:
        """
        Analisa um arquivo

        Args:
            file_path: Caminho usado apenas para detectar a linguagem (nunca lido)
            source_text: Conteúdo do arquivo; bytes e None são tolerados
            snapshot: Snapshot de padrões para detecção de campos (o ativo por padrão)

        Returns:
            CodeContext; language é "unknown" para extensões não reconhecidas
        """
        text = coerce_text(source_text)
        snapshot = snapshot or self.matcher.config
        language = language_for_path(file_path)
        syntax = syntax_for(language)

        credential_fields = self.matcher.credential_field_names(text, Gateway.CONVERGE, snapshot)
        imports = extract_imports(text, language)
        business_logic = self.extract_business_logic(text)

        context = CodeContext(
            file_path=file_path,
            language=language,
            imports=imports,
            dependencies=self.extract_dependencies(text),
            business_logic=business_logic,
            credential_fields=credential_fields,
            function_name=extract_first_name(text, syntax.function_pattern),
            class_name=extract_first_name(text, syntax.class_pattern),
            confidence=calculate_confidence(credential_fields, business_logic, imports),
            config_version=snapshot.version,
        )
        logger.debug(f"Contexto de {file_path}: linguagem={language}, "
                     f"campos={len(credential_fields)}, confiança={context.confidence}")
        return context

    def extract_dependencies(self, text: str) -> List[str]:
        lowered = text.lower()
        return [keyword for keyword in self.DEPENDENCY_KEYWORDS if keyword in lowered]

    def extract_business_logic(self, text: str) -> List[str]:
        lowered = text.lower()
        return [keyword for keyword in self.BUSINESS_KEYWORDS if keyword in lowered]

    def semantic_analysis(self, context: CodeContext, source_text: Any = "") -> SemanticAnalysis:
        """
        Extrai o significado de negócio de um contexto

        Args:
            context: Contexto produzido por analyze()
            source_text: Texto opcional do arquivo, usado para sinais de tratamento de erro
                e desempenho que o contexto não carrega

        Returns:
            SemanticAnalysis
        """
        text = coerce_text(source_text).lower()
        fields = [f.lower() for f in context.credential_fields]

        business = [k for k in ('payment', 'transaction', 'order', 'customer', 'invoice')
                    if k in context.business_logic]
        if business:
            business_context = f"Payment processing system with {', '.join(business)} functionality"
        else:
            business_context = "General API integration"

        data_flow = []
        if any('amount' in f for f in fields):
            data_flow.append("Amount processing")
        if any('customer' in f or 'first_name' in f or 'last_name' in f for f in fields):
            data_flow.append("Customer data handling")
        if any('card' in f for f in fields):
            data_flow.append("Card data processing")

        error_handling = [k for k in ('try', 'catch', 'error', 'exception', 'throw', 'rescue', 'except')
                          if k in text]

        security = []
        if any('pin' in f or 'key' in f or 'user_id' in f for f in fields):
            security.append("Credential handling")
        if any('card' in f or 'cvv' in f for f in fields):
            security.append("PCI compliance required")
        if any('token' in f for f in fields):
            security.append("Token-based authentication")

        performance = []
        if 'batch' in text:
            performance.append("Batch processing optimization")
        if 'async' in text or 'await' in text:
            performance.append("Asynchronous processing")

        integrations = []
        if any('http' in dep for dep in context.dependencies):
            integrations.append("HTTP API integration")
        if any('curl' in dep for dep in context.dependencies):
            integrations.append("cURL-based integration")

        return SemanticAnalysis(
            business_context=business_context,
            data_flow=data_flow,
            error_handling=error_handling,
            security_patterns=security,
            performance_considerations=performance,
            integration_points=integrations,
        )
