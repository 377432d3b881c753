"""
Leitura de arquivos fonte
"""

from migrator.io.file_loader import SourceFileLoader

__all__ = ["SourceFileLoader"]
