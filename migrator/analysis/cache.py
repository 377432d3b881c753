"""
Cache em memória de resultados de análise indexado por fingerprint do conteúdo
"""

import hashlib
import logging
import threading
from typing import Dict, Optional, Tuple

from migrator.analysis.service import AnalysisResponse

logger = logging.getLogger(__name__)

CacheKey = Tuple[str, str, int, int]


def content_fingerprint(content: str) -> str:
    """Digest SHA-256 (hex) do texto"""
    return hashlib.sha256(content.encode('utf-8', errors='replace')).hexdigest()


class AnalysisCache:
    """
    Resultados indexados por (caminho, fingerprint do conteúdo, versão da config de padrões,
    revisão do mapping store)

    Arquivo alterado, recarga de padrões ou de mapeamento geram nova chave,
    então entradas obsoletas nunca são retornadas. Entradas antigas do mesmo caminho são
    descartadas quando uma nova é gravada.
    """

    def __init__(self):
        self._entries: Dict[str, Tuple[CacheKey, AnalysisResponse]] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    @staticmethod
    def make_key(file_path: str, content: str, config_version: int, mapping_revision: int = 0) -> CacheKey:
        return (file_path, content_fingerprint(content), config_version, mapping_revision)

    def get(self, key: CacheKey) -> Optional[AnalysisResponse]:
        with self._lock:
            entry = self._entries.get(key[0])
            if entry is not None and entry[0] == key:
                self.hits += 1
                return entry[1]
            self.misses += 1
            return None

    def put(self, key: CacheKey, response: AnalysisResponse) -> None:
        with self._lock:
            self._entries[key[0]] = (key, response)

    def invalidate(self, file_path: str) -> None:
        with self._lock:
            self._entries.pop(file_path, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0
        logger.debug("Cache de análise limpo")

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
