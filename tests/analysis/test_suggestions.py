"""
Testes para SuggestionEngine e AnalysisService
"""

import pytest
from unittest.mock import patch

from migrator.analysis.service import AnalysisRequest, AnalysisResponse
from migrator.analysis.suggestions import SuggestionEngine, rank_suggestions
from migrator.core.models import CodeContext, Level, MigrationSuggestion, SuggestionType


def make_suggestion(suggestion_id, confidence):
    return MigrationSuggestion(
        id=suggestion_id,
        type=SuggestionType.FIELD,
        title=suggestion_id,
        description="",
        confidence=confidence,
        impact=Level.LOW,
        effort=Level.LOW,
        code_snippet="",
        suggested_replacement="",
    )


class TestRankSuggestions:
    """Testes para rank_suggestions"""

    def test_sorted_descending(self):
        ranked = rank_suggestions([make_suggestion("a", 0.6), make_suggestion("b", 0.95),
                                   make_suggestion("c", 0.8)])
        assert [s.id for s in ranked] == ["b", "c", "a"]

    def test_stable_for_ties(self):
        """Testa que confianças iguais mantêm a ordem de geração"""
        ranked = rank_suggestions([make_suggestion("first", 0.9), make_suggestion("low", 0.6),
                                   make_suggestion("second", 0.9), make_suggestion("third", 0.9)])
        assert [s.id for s in ranked] == ["first", "second", "third", "low"]


class TestSuggestionEngine:
    """Testes para SuggestionEngine.generate"""

    @pytest.fixture
    def engine(self, matcher, mapper):
        return SuggestionEngine(matcher, mapper)

    def test_endpoint_and_field_suggestions(self, service, sample_js_source):
        response = service.analyze_text("src/pay.js", sample_js_source)
        suggestions = response.suggestions
        ids = [s.id for s in suggestions]

        assert suggestions[0].type == SuggestionType.ENDPOINT
        assert suggestions[0].confidence == 0.95
        assert suggestions[0].suggested_replacement == "/api/v1/transactions"
        assert suggestions[0].impact == Level.HIGH
        assert len([s for s in suggestions if s.type == SuggestionType.ENDPOINT]) == 1
        assert "field-ssl_amount" in ids
        assert "field-ssl_card_number" in ids
        assert "error-handling" in ids
        assert "async-pattern" in ids
        assert "custom-ssl-fields" not in ids

    def test_confidence_non_increasing(self, service, sample_js_source):
        confidences = [s.confidence for s in service.analyze_text("pay.js", sample_js_source).suggestions]
        assert confidences == sorted(confidences, reverse=True)

    def test_no_gateway_usage(self, service):
        """Testa que arquivos sem uso do Converge não recebem sugestões"""
        response = service.analyze_text("hello.js", "console.log('https://example.com')")
        assert response.suggestions == []
        assert response.has_gateway_usage is False

    def test_error_handling_present(self, service):
        source = "async function pay() {\n  try { await send({ ssl_amount: 1 }); } catch (e) {}\n}\n"
        ids = [s.id for s in service.analyze_text("pay.js", source).suggestions]
        assert "error-handling" not in ids
        assert "async-pattern" not in ids

    def test_async_only_for_javascript(self, service):
        ids = [s.id for s in service.analyze_text("pay.py", "data = {'ssl_amount': 1}").suggestions]
        assert "async-pattern" not in ids
        assert "error-handling" in ids

    def test_hardcoded_values(self, service):
        source = "fetch('https://api.converge.com/pay', { body: 'ssl_amount=1' })"
        suggestions = service.analyze_text("pay.js", source).suggestions
        hardcoded = [s for s in suggestions if s.id == "hardcoded-values"]

        assert len(hardcoded) == 1
        assert hardcoded[0].type == SuggestionType.OPTIMIZATION
        assert hardcoded[0].confidence == 0.9
        assert "https://api.converge.com/pay" in hardcoded[0].code_snippet

    def test_custom_fields(self, engine):
        context = CodeContext(file_path="pay.js", language="javascript",
                              credential_fields=["ssl_amount", "ssl_loyalty_points"])
        suggestions = engine.generate(context, "ssl_amount ssl_loyalty_points")
        by_id = {s.id: s for s in suggestions}

        assert by_id["custom-ssl-fields"].code_snippet == "ssl_loyalty_points"
        assert by_id["field-ssl_loyalty_points-custom"].effort == Level.HIGH
        assert by_id["field-ssl_loyalty_points-custom"].confidence == 0.6
        assert by_id["field-ssl_amount"].effort == Level.LOW

    def test_endpoint_restricts_field_resolution(self, engine):
        context = CodeContext(file_path="pay.js", language="javascript",
                              credential_fields=["ssl_amount"])
        suggestions = engine.generate(context, "ssl_amount", endpoint="/ProcessTransactionOnline")
        field = [s for s in suggestions if s.id == "field-ssl_amount"][0]
        assert field.suggested_replacement == "total"

    def test_endpoint_dedup_per_line(self, engine, matcher):
        """Testa que vários templates na mesma linha geram uma sugestão de endpoint"""
        detections = matcher.detect_endpoints("url = '/batch-processing'\nother = 'batch_processing'")
        suggestions = engine.endpoint_suggestions(detections)

        assert len(detections) > 2
        assert [s.id for s in suggestions] == ["endpoint-batch_processing-1", "endpoint-batch_processing-2"]
        assert suggestions[1].confidence == 0.75
        assert suggestions[0].suggested_replacement == "Elavon equivalent endpoint"


class TestAnalysisService:
    """Testes para AnalysisService"""

    def test_analyze_request(self, service, sample_js_source):
        response = service.analyze(AnalysisRequest("pay.js", sample_js_source))

        assert isinstance(response, AnalysisResponse)
        assert response.has_gateway_usage is True
        assert response.detections.endpoints
        assert response.detections.config_version == service.config_version

    def test_to_dict(self, service, sample_js_source):
        data = service.analyze_text("pay.js", sample_js_source).to_dict()

        assert data["language"] == "javascript"
        assert data["credential_fields"] == ["ssl_amount", "ssl_card_number"]
        assert data["suggestions"][0]["type"] == "endpoint"
        assert data["detections"][0]["category"] == "endpointUrl"
        assert data["detections"][0]["endpoint_type"] == "ProcessTransactionOnline"

    def test_semantic_analysis(self, service, sample_js_source):
        analysis = service.semantic_analysis("pay.js", sample_js_source)
        assert "Amount processing" in analysis.data_flow

    def test_reload_during_request_keeps_one_snapshot(self, service, sample_js_source):
        """Testa que recargas de padrões e mapeamento durante a requisição não vazam para a resposta"""
        build_context = service.context_analyzer.analyze

        def analyze_then_reload(*args, **kwargs):
            context = build_context(*args, **kwargs)
            service.config_manager.update_config({"converge": {"credentialFields": ["zzz_never"]}})
            service.mapper.store.replace({"version": "9.9.9", "mappings": []})
            return context

        with patch.object(service.context_analyzer, 'analyze', side_effect=analyze_then_reload):
            response = service.analyze(AnalysisRequest("pay.js", sample_js_source))

        assert service.config_version == 2
        assert response.context.config_version == 1
        assert response.config_version == 1
        assert response.context.credential_fields == ["ssl_amount", "ssl_card_number"]
        assert response.detections.credential_fields
        assert response.mapping_revision == 1
        replacements = {s.id: s.suggested_replacement for s in response.suggestions}
        assert replacements["field-ssl_amount"] == "amount"
        assert replacements["endpoint-process_transaction-1"] == "/api/v1/transactions"

    def test_response_versions_in_to_dict(self, service, sample_js_source):
        data = service.analyze_text("pay.js", sample_js_source).to_dict()
        assert data["config_version"] == 1
        assert data["mapping_revision"] == 1
