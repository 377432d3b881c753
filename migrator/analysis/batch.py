"""
Análise em lote de uma árvore de diretórios
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from tqdm import tqdm

from migrator.analysis.cache import AnalysisCache
from migrator.analysis.service import AnalysisRequest, AnalysisResponse, AnalysisService
from migrator.core.models import FileError, MigratorError
from migrator.io.file_loader import SourceFileLoader

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    """Resultado de um lote; arquivos com falha ficam em errors, nunca são levantados"""
    results: Dict[str, AnalysisResponse] = field(default_factory=dict)
    processed_files: int = 0
    skipped_files: int = 0
    total_files: int = 0
    cache_hits: int = 0
    duration: float = 0.0
    errors: List[FileError] = field(default_factory=list)

    def files_with_usage(self) -> List[AnalysisResponse]:
        """Respostas com uso de gateway, maior confiança primeiro"""
        found = [r for r in self.results.values() if r.has_gateway_usage]
        return sorted(found, key=lambda r: r.context.confidence, reverse=True)


class BatchAnalyzer:
    """
    Analisa muitos arquivos em paralelo

    Cada arquivo é analisado contra um snapshot de padrões e um dicionário de
    mapeamento obtidos no início do arquivo; uma recarga durante o lote vale para
    arquivos iniciados após a troca.
    """

    def __init__(self, service: Optional[AnalysisService] = None, max_workers: int = 4,
                 cache: Optional[AnalysisCache] = None, max_file_size: Optional[int] = None):
        """
        Args:
            service: Serviço de análise (padrões e mapeamentos padrão quando omitido)
            max_workers: Threads de trabalho
            cache: Cache de resultados opcional; omita para desabilitar
            max_file_size: Limite de tamanho que sobrescreve o maxFileSize da config de padrões
        """
        self.service = service or AnalysisService()
        self.max_workers = max(1, max_workers)
        self.cache = cache
        self.max_file_size = max_file_size

    def analyze_directory(self, root_path: str, show_progress: bool = True) -> BatchResult:
        """
        Descobre e analisa todos os arquivos suportados sob ``root_path``

        Args:
            root_path: Diretório (ou arquivo único) a analisar
            show_progress: Exibe barra de progresso tqdm

        Returns:
            BatchResult; raiz inexistente ou ilegível é reportada em errors
        """
        snapshot = self.service.config_manager.snapshot
        try:
            loader = SourceFileLoader(
                root_path,
                supported_extensions=snapshot.supported_extensions,
                ignore_patterns=snapshot.ignore_patterns,
                max_file_size=self.max_file_size or snapshot.max_file_size,
            )
            files, oversized = loader.discover()
        except MigratorError as e:
            logger.error(f"Não foi possível analisar {root_path}: {e}")
            return BatchResult(errors=[FileError(str(root_path), str(e))])

        result = self.analyze_files(files, show_progress=show_progress)
        result.total_files += len(oversized)
        result.skipped_files += len(oversized)
        result.errors = oversized + result.errors
        return result

    def analyze_files(self, files: List[Path], show_progress: bool = True) -> BatchResult:
        """
        Analisa os arquivos informados; falhas de leitura ou análise são registradas por arquivo

        Args:
            files: Arquivos a analisar
            show_progress: Exibe barra de progresso tqdm

        Returns:
            BatchResult
        """
        start = time.monotonic()
        result = BatchResult(total_files=len(files))
        if not files:
            return result

        logger.info(f"Analisando {len(files)} arquivos com {self.max_workers} workers "
                    f"(config de padrões v{self.service.config_version})")

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            future_to_path = {
                executor.submit(self._analyze_file, path): path
                for path in files
            }

            progress_bar = tqdm(total=len(files), desc="Analisando arquivos", unit="arquivo", disable=not show_progress)
            for future in as_completed(future_to_path):
                path = future_to_path[future]
                try:
                    response, cached = future.result()
                    result.results[str(path)] = response
                    result.processed_files += 1
                    if cached:
                        result.cache_hits += 1
                except MigratorError as e:
                    logger.error(f"Ignorando {path}: {e}")
                    result.skipped_files += 1
                    result.errors.append(FileError(str(path), str(e)))
                except Exception as e:
                    logger.error(f"Erro inesperado ao analisar {path}: {e}")
                    result.skipped_files += 1
                    result.errors.append(FileError(str(path), f"{type(e).__name__}: {e}"))
                progress_bar.update(1)
            progress_bar.close()

        # ordem de conclusão é arbitrária; reporta em ordem de caminho
        result.results = dict(sorted(result.results.items()))
        result.errors.sort(key=lambda e: e.file_path)
        result.duration = time.monotonic() - start
        logger.info(f"Lote concluído: {result.processed_files} processados, {result.skipped_files} ignorados, "
                    f"{result.cache_hits} hits de cache em {result.duration:.2f}s")
        return result

    def _analyze_file(self, path: Path) -> Tuple[AnalysisResponse, bool]:
        snapshot = self.service.config_manager.snapshot
        dictionary = self.service.mapper.dictionary
        content = SourceFileLoader.read(path)
        key = None
        if self.cache is not None:
            key = AnalysisCache.make_key(str(path), content, snapshot.version, dictionary.revision)
            cached = self.cache.get(key)
            if cached is not None:
                return cached, True

        response = self.service.analyze(AnalysisRequest(str(path), content), snapshot, dictionary)
        if key is not None:
            self.cache.put(key, response)
        return response, False
