"""
Validação em modo dry-run de arquivos de padrões, dicionários de mapeamento e alvos de varredura.

Tudo é verificado sem analisar nem reescrever arquivos fonte.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any
from pathlib import Path
import logging

from migrator.core.models import ConfigLoadError, MigratorError, endpoint_type_for_category
from migrator.config.config import Config, get_config
from migrator.mapping.dictionary import load_mapping_dictionary
from migrator.mapping.mapper import is_standard_field
from migrator.patterns.pattern_config import PatternConfigManager

logger = logging.getLogger(__name__)


@dataclass
class DryRunResult:
    """Resultado de validação dry-run"""
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    info: List[str] = field(default_factory=list)
    estimated_operations: Dict[str, Any] = field(default_factory=dict)

    def add_error(self, message: str) -> None:
        self.errors.append(message)
        self.is_valid = False

    def add_warning(self, message: str) -> None:
        self.warnings.append(message)

    def add_info(self, message: str) -> None:
        self.info.append(message)

    def merge(self, other: 'DryRunResult') -> None:
        """Mescla outro resultado neste"""
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
        self.info.extend(other.info)
        self.estimated_operations.update(other.estimated_operations)
        self.is_valid = len(self.errors) == 0


class DryRunValidator:
    """Validador para modo dry-run"""

    def __init__(self, config: Optional[Config] = None):
        """
        Args:
            config: Configuração do migrator (singleton quando omitido)
        """
        self.config = config or get_config()

    def validate_pattern_config(self, file_path: Optional[str]) -> DryRunResult:
        """
        Carrega arquivo de padrões em um manager descartável

        Args:
            file_path: Arquivo de padrões; None valida as tabelas embutidas

        Returns:
            DryRunResult
        """
        result = DryRunResult()
        try:
            manager = PatternConfigManager(config_file=file_path)
        except ConfigLoadError as e:
            result.add_error(str(e))
            return result

        snapshot = manager.snapshot
        source = file_path or "padrões embutidos"
        result.add_info(f"Config de padrões válida: {source}")
        categories = snapshot.endpoint_categories()
        result.add_info(f"Categorias de endpoint: {', '.join(categories)}")
        unknown = [c for c in categories if endpoint_type_for_category(c) is None]
        if unknown:
            result.add_warning(
                f"Categorias sem tipo de endpoint (reportadas apenas pelo scan): {', '.join(unknown)}"
            )
        result.estimated_operations["supported_extensions"] = snapshot.supported_extensions
        return result

    def validate_mapping_file(self, file_path: Optional[str]) -> DryRunResult:
        """
        Valida arquivo de dicionário de mapeamento

        Args:
            file_path: Arquivo de mapeamento; None usa o configurado

        Returns:
            DryRunResult
        """
        result = DryRunResult()
        path = file_path or self.config.mapping_file
        try:
            dictionary = load_mapping_dictionary(path)
        except MigratorError as e:
            result.add_error(str(e))
            return result

        result.add_info(f"Dicionário de mapeamento v{dictionary.version}: {len(dictionary)} endpoints, "
                        f"{dictionary.total_field_mappings} mapeamentos de campo")
        if len(dictionary) == 0:
            result.add_warning("Dicionário de mapeamento vazio; todo campo será reportado como customizado")

        for mapping in dictionary.mappings:
            if not mapping.field_mappings:
                result.add_warning(f"{mapping.source_endpoint} não tem mapeamentos de campo")
            nonstandard = [f for f in mapping.field_mappings if not is_standard_field(f)]
            if nonstandard:
                result.add_info(f"{mapping.source_endpoint}: campos não padrão {', '.join(nonstandard)}")
        result.estimated_operations["mappings"] = len(dictionary)
        return result

    def validate_scan_target(self, path: str, output_dir: Optional[str] = None) -> DryRunResult:
        """
        Valida caminho de varredura e diretório de saída

        Args:
            path: Diretório ou arquivo a analisar
            output_dir: Diretório de relatórios (padrão configurado quando omitido)

        Returns:
            DryRunResult
        """
        result = DryRunResult()
        target = Path(path)
        if not target.exists():
            result.add_error(f"Caminho de varredura não encontrado: {path}")
        elif target.is_dir():
            result.add_info(f"Diretório de varredura: {target}")
        else:
            result.add_info(f"Arquivo de varredura: {target}")

        output_path = Path(output_dir or self.config.output_dir)
        if not output_path.exists():
            result.add_info(f"Diretório de saída será criado: {output_path}")
        elif not output_path.is_dir():
            result.add_error(f"Caminho de saída não é um diretório: {output_path}")
        else:
            test_file = output_path / '.migrator_test'
            try:
                test_file.touch()
                test_file.unlink()
                result.add_info("Diretório de saída tem permissão de escrita")
            except PermissionError:
                result.add_error(f"Sem permissão de escrita em: {output_path}")

        result.estimated_operations["workers"] = self.config.max_parallel_workers
        return result

    def validate_all(self, scan_path: Optional[str] = None, pattern_file: Optional[str] = None,
                     mapping_file: Optional[str] = None, output_dir: Optional[str] = None) -> DryRunResult:
        """
        Validação completa

        Returns:
            DryRunResult consolidado
        """
        result = DryRunResult()
        result.merge(self.validate_pattern_config(pattern_file))
        result.merge(self.validate_mapping_file(mapping_file))
        if scan_path:
            result.merge(self.validate_scan_target(scan_path, output_dir))
        logger.debug(f"Dry run: {len(result.errors)} erros, {len(result.warnings)} avisos")
        return result
