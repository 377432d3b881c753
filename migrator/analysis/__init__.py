"""
Análise de contexto por arquivo, sugestões e varredura em lote
"""

from migrator.analysis.language import EXTENSION_LANGUAGES, LanguageSyntax, language_for_path
from migrator.analysis.context_analyzer import CodeContextAnalyzer, calculate_confidence
from migrator.analysis.suggestions import SuggestionEngine, rank_suggestions
from migrator.analysis.service import AnalysisRequest, AnalysisResponse, AnalysisService
from migrator.analysis.cache import AnalysisCache, content_fingerprint
from migrator.analysis.batch import BatchAnalyzer, BatchResult

__all__ = [
    "EXTENSION_LANGUAGES",
    "LanguageSyntax",
    "language_for_path",
    "CodeContextAnalyzer",
    "calculate_confidence",
    "SuggestionEngine",
    "rank_suggestions",
    "AnalysisRequest",
    "AnalysisResponse",
    "AnalysisService",
    "AnalysisCache",
    "content_fingerprint",
    "BatchAnalyzer",
    "BatchResult",
]
