"""
Módulo de configuração para Converge Migrator
Suporta configuração via variáveis de ambiente e arquivo .env
"""

import os
import threading
from typing import Optional
from pathlib import Path

from dotenv import load_dotenv

PACKAGE_ROOT = Path(__file__).parent.parent
DEFAULT_MAPPING_FILE = PACKAGE_ROOT / "resources" / "mapping.json"


class DefaultConfig:
    """Valores padrão das configurações"""
    # Arquivos de entrada
    PATTERN_CONFIG = None  # padrões embutidos quando não definido
    MAPPING_FILE = str(DEFAULT_MAPPING_FILE)

    # Caminhos
    OUTPUT_DIR = './output'

    # Logging
    LOG_LEVEL = 'INFO'
    LOG_DIR = './logs'
    AUTO_LOG_ENABLED = True

    # Varredura em lote
    MAX_PARALLEL_WORKERS = 4
    MAX_FILE_SIZE = None  # maxFileSize da config de padrões quando não definido
    USE_CACHE = True


class Config:
    """
    Configurações do Converge Migrator (Singleton Thread-Safe)

    Uso:
        config = Config.get_instance()
        # ou
        config = get_config()
    """

    _instance: Optional['Config'] = None
    _lock: threading.Lock = threading.Lock()
    _initialized: bool = False

    def __new__(cls) -> 'Config':
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        """
        Inicializa configurações (executado apenas uma vez)

        Construções seguintes retornam a instância já inicializada.
        """
        if Config._initialized:
            return

        with Config._lock:
            if Config._initialized:
                return

            # .env do diretório atual tem precedência sobre o do pacote
            env_path = Path.cwd() / '.env'
            if not env_path.exists():
                env_path = PACKAGE_ROOT.parent / '.env'

            if env_path.exists():
                load_dotenv(env_path)
                self._env_loaded = True
            else:
                self._env_loaded = False

            # Arquivos de entrada
            self.pattern_config = os.getenv('MIGRATOR_PATTERN_CONFIG', DefaultConfig.PATTERN_CONFIG)
            self.mapping_file = os.getenv('MIGRATOR_MAPPING_FILE', DefaultConfig.MAPPING_FILE)

            # Caminhos
            self.output_dir = os.getenv('MIGRATOR_OUTPUT_DIR', DefaultConfig.OUTPUT_DIR)

            # Logging
            self.log_level = os.getenv('MIGRATOR_LOG_LEVEL', DefaultConfig.LOG_LEVEL)
            self.log_file = os.getenv('MIGRATOR_LOG_FILE')
            self.log_dir = os.getenv('MIGRATOR_LOG_DIR', DefaultConfig.LOG_DIR)
            self.auto_log_enabled = self._getenv_bool('MIGRATOR_AUTO_LOG_ENABLED', DefaultConfig.AUTO_LOG_ENABLED)

            # Varredura em lote
            self.max_parallel_workers = self._getenv_int('MIGRATOR_MAX_PARALLEL_WORKERS',
                                                         DefaultConfig.MAX_PARALLEL_WORKERS)
            self.max_file_size = self._getenv_optional_int('MIGRATOR_MAX_FILE_SIZE', DefaultConfig.MAX_FILE_SIZE)
            self.use_cache = self._getenv_bool('MIGRATOR_USE_CACHE', DefaultConfig.USE_CACHE)

            self._validate()

            Config._initialized = True

    @classmethod
    def get_instance(cls) -> 'Config':
        """
        Retorna instância singleton da configuração (método recomendado)

        Returns:
            Instância única de Config
        """
        return cls()

    @classmethod
    def reset_instance(cls) -> None:
        """
        Reseta instância singleton (útil para testes)

        WARNING: Use apenas em testes.
        """
        with cls._lock:
            cls._instance = None
            cls._initialized = False

    @staticmethod
    def _getenv_int(key: str, default: int) -> int:
        """Obtém variável de ambiente como int"""
        try:
            return int(os.getenv(key, str(default)))
        except ValueError:
            return default

    @staticmethod
    def _getenv_optional_int(key: str, default: Optional[int] = None) -> Optional[int]:
        """Obtém variável de ambiente como int opcional (vazia retorna o default)"""
        value = os.getenv(key, '').strip()
        if not value:
            return default
        try:
            return int(value)
        except ValueError:
            return default

    @staticmethod
    def _getenv_bool(key: str, default: bool = False) -> bool:
        """Obtém variável de ambiente como bool"""
        value = os.getenv(key, '').lower()
        if not value:
            return default
        return value in ('true', '1', 'yes', 'on')

    def _validate(self) -> None:
        """Valida configurações"""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if self.log_level.upper() not in valid_levels:
            raise ValueError(f"Log level deve ser um de: {valid_levels}")

        if self.max_parallel_workers < 1:
            raise ValueError("MIGRATOR_MAX_PARALLEL_WORKERS deve ser no mínimo 1")

        if self.max_file_size is not None and self.max_file_size <= 0:
            raise ValueError("MIGRATOR_MAX_FILE_SIZE deve ser positivo")

    def has_pattern_config(self) -> bool:
        """Verifica se há config de padrões customizada"""
        return bool(self.pattern_config)

    def __repr__(self) -> str:
        return (f"Config(pattern_config={self.pattern_config}, mapping_file={self.mapping_file}, "
                f"output_dir={self.output_dir}, workers={self.max_parallel_workers}, "
                f"env_loaded={self._env_loaded})")


def get_config() -> Config:
    """
    Retorna instância singleton da configuração

    Returns:
        Instância única de Config
    """
    return Config.get_instance()


def reload_config() -> Config:
    """
    Recarrega configurações do ambiente e .env

    Returns:
        Nova instância de Config
    """
    Config.reset_instance()
    return Config.get_instance()
