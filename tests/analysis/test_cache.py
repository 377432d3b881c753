"""
Testes para AnalysisCache
"""

import pytest
from unittest.mock import Mock

from migrator.analysis.cache import AnalysisCache, content_fingerprint


class TestContentFingerprint:

    def test_stable(self):
        assert content_fingerprint("ssl_amount") == content_fingerprint("ssl_amount")
        assert len(content_fingerprint("")) == 64

    def test_changes_with_content(self):
        assert content_fingerprint("ssl_amount") != content_fingerprint("ssl_amount ")


class TestAnalysisCache:
    """Testes para AnalysisCache"""

    @pytest.fixture
    def cache(self):
        return AnalysisCache()

    def test_miss_then_hit(self, cache):
        key = AnalysisCache.make_key("a.js", "ssl_amount", 1, 1)
        response = Mock()

        assert cache.get(key) is None
        cache.put(key, response)

        assert cache.get(key) is response
        assert cache.hits == 1
        assert cache.misses == 1
        assert len(cache) == 1

    def test_changed_content_misses(self, cache):
        cache.put(AnalysisCache.make_key("a.js", "ssl_amount", 1), Mock())
        assert cache.get(AnalysisCache.make_key("a.js", "ssl_pin", 1)) is None

    def test_config_reload_misses(self, cache):
        """Testa que nova versão de padrões ou revisão de mapeamento invalida a entrada"""
        cache.put(AnalysisCache.make_key("a.js", "ssl_amount", 1, 1), Mock())

        assert cache.get(AnalysisCache.make_key("a.js", "ssl_amount", 2, 1)) is None
        assert cache.get(AnalysisCache.make_key("a.js", "ssl_amount", 1, 2)) is None

    def test_one_entry_per_path(self, cache):
        cache.put(AnalysisCache.make_key("a.js", "v1", 1), Mock())
        newer = Mock()
        key = AnalysisCache.make_key("a.js", "v2", 1)
        cache.put(key, newer)

        assert len(cache) == 1
        assert cache.get(key) is newer

    def test_invalidate(self, cache):
        key = AnalysisCache.make_key("a.js", "ssl_amount", 1)
        cache.put(key, Mock())
        cache.invalidate("a.js")
        cache.invalidate("missing.js")

        assert cache.get(key) is None

    def test_clear(self, cache):
        key = AnalysisCache.make_key("a.js", "ssl_amount", 1)
        cache.put(key, Mock())
        cache.get(key)
        cache.clear()

        assert len(cache) == 0
        assert cache.hits == 0
        assert cache.misses == 0
