"""
Configuração do Converge Migrator
"""

from migrator.config.config import Config, DefaultConfig, get_config, reload_config

__all__ = ["Config", "DefaultConfig", "get_config", "reload_config"]
