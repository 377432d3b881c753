"""
Descoberta e leitura de arquivos fonte
"""

import fnmatch
import logging
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from migrator.core.models import FileError, SourceLoadError, ValidationError

logger = logging.getLogger(__name__)


class SourceFileLoader:
    """Localiza arquivos fonte analisáveis sob um caminho e os lê"""

    def __init__(self, root_path: str, supported_extensions: Sequence[str],
                 ignore_patterns: Sequence[str] = (), max_file_size: Optional[int] = None):
        """
        Args:
            root_path: Diretório a percorrer, ou um único arquivo
            supported_extensions: Extensões incluídas (".js" ou "js")
            ignore_patterns: Padrões glob comparados ao caminho relativo a root_path
            max_file_size: Arquivos maiores que isso (bytes) são ignorados
        """
        if not supported_extensions:
            raise ValidationError("At least one file extension is required")
        if max_file_size is not None and max_file_size <= 0:
            raise ValidationError("max_file_size must be positive")

        self.root_path = root_path
        self.supported_extensions = {
            ext.lower() if ext.startswith('.') else f".{ext.lower()}" for ext in supported_extensions
        }
        self.ignore_patterns = list(ignore_patterns)
        self.max_file_size = max_file_size

    def is_ignored(self, relative_path: str) -> bool:
        """Verifica um caminho POSIX relativo à raiz contra os globs de exclusão"""
        candidates = (relative_path, f"/{relative_path}")
        return any(fnmatch.fnmatch(candidate, pattern)
                   for pattern in self.ignore_patterns for candidate in candidates)

    def discover(self) -> Tuple[List[Path], List[FileError]]:
        """
        Lista arquivos a analisar

        Returns:
            (arquivos em ordem, arquivos ignorados por tamanho)

        Raises:
            SourceLoadError: Se a raiz não existir
        """
        root = Path(self.root_path)
        if not root.exists():
            raise SourceLoadError(f"Path not found: {self.root_path}")

        if root.is_file():
            candidates = [root]
            base = root.parent
        else:
            candidates = sorted(p for p in root.rglob("*") if p.is_file())
            base = root

        files: List[Path] = []
        skipped: List[FileError] = []
        for path in candidates:
            if path.suffix.lower() not in self.supported_extensions:
                continue
            if self.is_ignored(path.relative_to(base).as_posix()):
                continue
            if self.max_file_size is not None:
                size = path.stat().st_size
                if size > self.max_file_size:
                    logger.warning(f"Ignorando {path}: {size} bytes excede {self.max_file_size}")
                    skipped.append(FileError(str(path), f"File size {size} exceeds limit {self.max_file_size}"))
                    continue
            files.append(path)

        logger.info(f"Encontrados {len(files)} arquivos fonte em {self.root_path}")
        return files, skipped

    @staticmethod
    def read(file_path: Path) -> str:
        """
        Lê arquivo como UTF-8, substituindo bytes não decodificáveis

        Raises:
            SourceLoadError: Se o arquivo não puder ser lido
        """
        try:
            with open(file_path, 'r', encoding='utf-8', errors='replace') as f:
                return f.read()
        except OSError as e:
            logger.error(f"Erro ao ler arquivo {file_path}: {e}")
            raise SourceLoadError(f"Error reading file {file_path}: {e}")
