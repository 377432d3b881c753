"""
Testes para PatternMatcher
"""

import pytest

from migrator.core.models import EndpointType, Gateway, PatternCategory
from migrator.patterns.matcher import (
    LineIndex,
    PatternMatcher,
    coerce_text,
    normalize_field_name,
)


class TestCredentialFields:
    """Testes para detecção de campos de credencial"""

    def test_query_string_fields(self, matcher):
        """Testa que campos em query string são detectados e normalizados"""
        buffer = "ssl_amount=10.00&ssl_card_number=4111111111111111"

        detections = matcher.detect_credential_fields(buffer)
        names = matcher.credential_field_names(buffer)

        assert all(d.category == PatternCategory.CREDENTIAL_FIELD for d in detections)
        assert "ssl_amount" in names
        assert "ssl_card_number" in names

    def test_field_names_deduplicated(self, matcher):
        """Testa que o mesmo campo casado por vários templates é reportado uma vez"""
        names = matcher.credential_field_names('$data = ["ssl_amount" => 1, "ssl_pin" => 2, "ssl_amount" => 3];')
        assert names == ["ssl_amount", "ssl_pin"]

    def test_case_sensitive(self, matcher):
        """Testa que templates de campo de credencial diferenciam maiúsculas"""
        assert matcher.credential_field_names("Ssl_Amount = 1") == []

    def test_bracket_access(self, matcher):
        names = matcher.credential_field_names("total = ssl['amount']")
        assert names == ["ssl_amount"]

    def test_line_numbers_in_large_buffer(self, matcher):
        """Testa números de linha exatos em buffer de 10.000 linhas"""
        lines = ["let value = compute();"] * 10000
        lines[0] = "ssl_amount = 1"
        lines[4999] = "ssl_pin = 2"
        lines[9998] = "ssl_exp_date = 3"
        buffer = "\n".join(lines)

        detections = matcher.detect_credential_fields(buffer)

        by_line = {}
        for detection in detections:
            by_line.setdefault(detection.line_number, set()).add(
                normalize_field_name(detection.matched_text)
            )
        assert by_line == {1: {"ssl_amount"}, 5000: {"ssl_pin"}, 9999: {"ssl_exp_date"}}

    def test_line_numbers_single_template(self, pattern_manager):
        """Testa que um template gera exatamente uma ocorrência por aparição"""
        pattern_manager.update_config({"converge": {"credentialFields": [r"ssl_[a-zA-Z_][a-zA-Z0-9_]*"]}})
        matcher = PatternMatcher(pattern_manager)
        lines = ["x = 1"] * 10000
        lines[0] = "ssl_amount"
        lines[4999] = "ssl_pin"
        lines[9998] = "ssl_exp_date"

        detections = matcher.detect_credential_fields("\n".join(lines))

        assert [d.line_number for d in detections] == [1, 5000, 9999]
        assert [d.matched_text for d in detections] == ["ssl_amount", "ssl_pin", "ssl_exp_date"]

    def test_elavon_fields(self, matcher):
        names = matcher.credential_field_names("payload.api_key = key", Gateway.ELAVON)
        assert names == ["api_key"]


class TestEndpoints:
    """Testes para detecção de endpoints"""

    def test_hosted_payments_line_number(self, pattern_manager):
        """Testa que URL de hosted payments gera uma detecção na linha correta"""
        pattern_manager.update_config({
            "converge": {"endpoints": {"hostedPayments": ["/hosted-payments/transaction_token"]}}
        })
        matcher = PatternMatcher(pattern_manager)
        buffer = (
            "// token request\n"
            "const base = 'https://api.example.com';\n"
            "const url = base + '/hosted-payments/transaction_token';\n"
        )

        detections = [d for d in matcher.detect_endpoints(buffer)
                      if d.endpoint_type == EndpointType.HOSTED_PAYMENTS]

        assert len(detections) == 1
        assert detections[0].line_number == 3
        assert detections[0].kind == "hostedPayments"
        assert detections[0].category == PatternCategory.ENDPOINT_URL
        assert buffer[detections[0].offset:detections[0].end] == "/hosted-payments/transaction_token"

    def test_endpoint_types(self, matcher):
        detections = matcher.detect_endpoints("<script src='https://demo.example.com/Checkout.js'></script>")
        assert EndpointType.CHECKOUT in {d.endpoint_type for d in detections}

    def test_unknown_category(self, pattern_manager):
        """Testa que categorias sem tipo de endpoint aparecem apenas em detect()"""
        pattern_manager.update_config({
            "converge": {"endpoints": {"legacyGateway": [r"/VirtualMerchant/process\.do"]}}
        })
        matcher = PatternMatcher(pattern_manager)
        buffer = "post('/VirtualMerchant/process.do')"

        detected = [d for d in matcher.detect(buffer) if d.kind == "legacyGateway"]
        assert len(detected) == 1
        assert detected[0].endpoint_type is None
        assert all(d.kind != "legacyGateway" for d in matcher.detect_endpoints(buffer))
        assert all(d.kind != "legacyGateway" for d in matcher.analyze(buffer).endpoints)


class TestUrlsAndCalls:
    """Testes para detecção de URLs de API e chamadas HTTP"""

    def test_api_urls_both_gateways(self, matcher):
        buffer = "old = https://api.converge.com/pay\nnew = https://api.elavon.com/v1"
        kinds = {d.kind for d in matcher.detect_api_urls(buffer)}
        assert kinds == {"converge", "elavon"}

    def test_api_urls_single_gateway(self, matcher):
        buffer = "old = https://api.converge.com/pay\nnew = https://api.elavon.com/v1"
        detections = matcher.detect_api_urls(buffer, [Gateway.ELAVON])
        assert detections
        assert {d.gateway for d in detections} == {Gateway.ELAVON}

    def test_fetch_call(self, matcher):
        detections = matcher.detect_http_calls("fetch('https://api.converge.com/pay')")
        assert {d.kind for d in detections} == {"fetch"}

    def test_axios_call(self, matcher):
        detections = matcher.detect_http_calls("axios.post('https://converge.com/pay', data)")
        assert "axios" in {d.kind for d in detections}


class TestDetectAndAnalyze:
    """Testes para detect(), analyze() e tratamento de entrada"""

    def test_empty_inputs(self, matcher):
        assert matcher.detect("") == []
        assert matcher.detect(None) == []
        assert matcher.detect_endpoints(None) == []
        assert matcher.credential_field_names(None) == []

    def test_analyze_empty(self, matcher):
        analysis = matcher.analyze("")
        assert analysis.is_empty()
        assert analysis.config_version == 1

    def test_bytes_input(self, matcher):
        names = matcher.credential_field_names(b"ssl_amount=1\xff")
        assert names == ["ssl_amount"]

    def test_analyze_idempotent(self, matcher, sample_js_source):
        """Testa que chamadas repetidas no mesmo buffer dão resultados idênticos"""
        first = matcher.analyze(sample_js_source)
        second = matcher.analyze(sample_js_source)
        assert first == second
        assert first.total == len(first.all())

    def test_detect_contains_all_categories(self, matcher):
        buffer = "fetch('https://api.converge.com/ProcessTransactionOnline?ssl_amount=1')"
        categories = {d.category for d in matcher.detect(buffer)}
        assert categories == set(PatternCategory)

    def test_analyze_reports_config_version(self, pattern_manager):
        matcher = PatternMatcher(pattern_manager)
        pattern_manager.update_config({"maxFileSize": 10})
        assert matcher.analyze("ssl_amount").config_version == 2


class TestHelpers:
    """Testes para funções auxiliares do módulo"""

    @pytest.mark.parametrize("matched, expected", [
        ("ssl_amount", "ssl_amount"),
        ('"ssl_amount"', "ssl_amount"),
        ("$ssl_amount", "ssl_amount"),
        ("ssl_amount:", "ssl_amount"),
        ('ssl["amount"]', "ssl_amount"),
        ('@XmlElement(name = "ssl_amount")', "ssl_amount"),
        ("sslAmount", "sslAmount"),
    ])
    def test_normalize_field_name(self, matched, expected):
        assert normalize_field_name(matched) == expected

    def test_normalize_with_prefix(self):
        assert normalize_field_name("'api_key'", "api_") == "api_key"

    def test_coerce_text(self):
        assert coerce_text(None) == ""
        assert coerce_text("abc") == "abc"
        assert coerce_text(b"abc") == "abc"
        assert coerce_text(42) == "42"

    def test_line_index(self):
        index = LineIndex("a\nb\n\nc")
        assert index.line_number(0) == 1
        assert index.line_number(1) == 1
        assert index.line_number(2) == 2
        assert index.line_number(4) == 3
        assert index.line_number(5) == 4
