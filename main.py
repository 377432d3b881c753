"""
CLI para Converge Migrator usando Click
"""

import json
import logging
import sys
from pathlib import Path
from typing import Optional
from datetime import datetime

import click

from migrator.analysis.batch import BatchAnalyzer
from migrator.analysis.cache import AnalysisCache
from migrator.analysis.service import AnalysisService
from migrator.core.dry_mode import DryRunValidator, DryRunResult
from migrator.core.models import MigratorError
from migrator.io.file_loader import SourceFileLoader
from migrator.mapping.dictionary import MappingStore
from migrator.mapping.mapper import MigrationMapper
from migrator.patterns.pattern_config import PatternConfigManager
from migrator.config import get_config


class TeeFileHandler(logging.Handler):
    """Handler que escreve em arquivo e stdout simultaneamente"""

    def __init__(self, file_path: Path):
        super().__init__()
        self.file_path = file_path
        self.file = None
        self.stdout = sys.stdout
        try:
            self.file = open(self.file_path, 'a', encoding='utf-8')
        except OSError as e:
            # continua logando apenas no stdout
            logging.getLogger(__name__).warning(f"Não foi possível abrir arquivo de log: {e}")
            self.file = None

    def close(self):
        if self.file:
            try:
                self.file.close()
            except OSError:
                pass
            self.file = None
        super().close()

    def emit(self, record):
        try:
            msg = self.format(record) + '\n'
            if self.file:
                try:
                    self.file.write(msg)
                    self.file.flush()
                except OSError:
                    pass
            self.stdout.write(msg)
            self.stdout.flush()
        except Exception:
            self.handleError(record)


def generate_log_filename(command_name: str, log_dir: Path) -> Path:
    """
    Gera nome de arquivo de log com timestamp para um comando

    Args:
        command_name: Nome do comando executado
        log_dir: Diretório do log

    Returns:
        Caminho completo do arquivo de log
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    safe_command = command_name.replace('-', '_')
    return log_dir / f"{safe_command}_{timestamp}.log"


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    auto_log: bool = False,
    command_name: Optional[str] = None,
    log_dir: Optional[str] = None
) -> Optional[Path]:
    """
    Configura logging, opcionalmente duplicando para arquivo de log

    Args:
        log_level: DEBUG, INFO, WARNING ou ERROR
        log_file: Arquivo de log explícito (tem precedência sobre o log automático)
        auto_log: Cria arquivo de log por comando automaticamente
        command_name: Nome do comando para o log automático
        log_dir: Diretório dos logs automáticos

    Returns:
        Caminho do arquivo de log, se criado
    """
    handlers = []
    log_file_path = None

    if log_file:
        log_file_path = Path(log_file)
        log_file_path.parent.mkdir(parents=True, exist_ok=True)
    elif auto_log and command_name and log_dir:
        try:
            log_dir_path = Path(log_dir)
            log_dir_path.mkdir(parents=True, exist_ok=True)
            log_file_path = generate_log_filename(command_name, log_dir_path)
        except OSError as e:
            logging.getLogger(__name__).warning(f"Não foi possível criar arquivo de log automático: {e}")
            log_file_path = None

    if log_file_path:
        handlers.append(TeeFileHandler(log_file_path))
    else:
        handlers.append(logging.StreamHandler(sys.stdout))

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True
    )

    return log_file_path


def print_dry_run_result(result: DryRunResult) -> None:
    if result.errors:
        click.echo("\n❌ Erros:")
        for error in result.errors:
            click.echo(f"   - {error}", err=True)

    if result.warnings:
        click.echo("\n⚠️  Avisos:")
        for warning in result.warnings:
            click.echo(f"   - {warning}")

    if result.info:
        click.echo("\n✅ Informações:")
        for info in result.info:
            click.echo(f"   - {info}")

    if result.estimated_operations:
        click.echo("\n📊 Estimativas:")
        for key, value in result.estimated_operations.items():
            click.echo(f"   - {key}: {value}")


def build_mapper(ctx) -> MigrationMapper:
    return MigrationMapper(MappingStore(ctx.obj['mapping_file']))


def build_service(ctx) -> AnalysisService:
    return AnalysisService(PatternConfigManager(config_file=ctx.obj['pattern_config']), build_mapper(ctx))


@click.group(invoke_without_command=True)
@click.option('--verbose', '-v', is_flag=True, help='Modo verboso (DEBUG)')
@click.option('--log-file', type=click.Path(), help='Arquivo de log (sobrescreve log automático)')
@click.option('--no-auto-log', is_flag=True, default=False, help='Desabilita logs automáticos')
@click.option('--pattern-config', type=click.Path(), default=None,
              help='Arquivo de config de padrões (JSON/YAML) mesclado sobre os padrões embutidos')
@click.option('--mapping-file', type=click.Path(), default=None, help='Arquivo de dicionário de mapeamento')
@click.pass_context
def cli(ctx, verbose, log_file, no_auto_log, pattern_config, mapping_file):
    """Converge Migrator - localiza uso do gateway Converge e mapeia para Elavon"""
    ctx.ensure_object(dict)
    config = get_config()
    ctx.obj['config'] = config
    ctx.obj['pattern_config'] = pattern_config or config.pattern_config
    ctx.obj['mapping_file'] = mapping_file or config.mapping_file

    command_name = ctx.invoked_subcommand or 'cli'
    use_auto_log = not log_file and not no_auto_log and config.auto_log_enabled

    log_level = "DEBUG" if verbose else config.log_level
    log_file_path = setup_logging(
        log_level=log_level,
        log_file=log_file,
        auto_log=use_auto_log,
        command_name=command_name,
        log_dir=config.log_dir
    )
    ctx.obj['log_file_path'] = log_file_path

    if log_file_path:
        logging.getLogger(__name__).info(f"Log salvo em: {log_file_path}")

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.argument('path', type=click.Path(exists=True))
@click.option('--output-dir', '-o', type=click.Path(), help='Diretório de relatórios (padrão: ./output)')
@click.option('--workers', type=int, default=None, help='Workers paralelos (padrão: MIGRATOR_MAX_PARALLEL_WORKERS)')
@click.option('--min-confidence', type=float, default=0.0, help='Lista apenas arquivos com confiança igual ou maior')
@click.option('--no-cache', is_flag=True, default=False, help='Não reutiliza resultados de arquivos inalterados')
@click.option('--no-progress', is_flag=True, default=False, help='Oculta a barra de progresso')
@click.option('--dry-run', is_flag=True, default=False, help='Valida entradas sem analisar')
@click.pass_context
def scan(ctx, path, output_dir, workers, min_confidence, no_cache, no_progress, dry_run):
    """Analisa diretório em busca de uso do Converge e grava relatório JSON"""
    config = ctx.obj['config']
    logger = logging.getLogger(__name__)

    try:
        if dry_run:
            click.echo("\n" + "=" * 60)
            click.echo("🔍 MODO DRY-RUN - Validação de configuração")
            click.echo("=" * 60)
            result = DryRunValidator(config).validate_all(
                scan_path=path,
                pattern_file=ctx.obj['pattern_config'],
                mapping_file=ctx.obj['mapping_file'],
                output_dir=output_dir,
            )
            print_dry_run_result(result)
            click.echo("\n" + "=" * 60)
            if result.is_valid:
                click.echo("✅ Validação concluída com sucesso!")
                sys.exit(0)
            click.echo("❌ Validação falhou!")
            sys.exit(1)

        if workers is not None and workers < 1:
            click.echo("❌ Erro: --workers deve ser no mínimo 1", err=True)
            sys.exit(1)

        service = build_service(ctx)
        cache = None if (no_cache or not config.use_cache) else AnalysisCache()
        batch = BatchAnalyzer(
            service,
            max_workers=workers or config.max_parallel_workers,
            cache=cache,
            max_file_size=config.max_file_size,
        )

        click.echo(f"Analisando {path}...")
        result = batch.analyze_directory(path, show_progress=not no_progress)

        found = [r for r in result.files_with_usage() if r.context.confidence >= min_confidence]

        output_path = Path(output_dir) if output_dir else Path(config.output_dir)
        output_path.mkdir(parents=True, exist_ok=True)
        report_file = output_path / "scan_report.json"
        report = {
            "scanned_path": str(path),
            "generated_at": datetime.now().isoformat(),
            "pattern_config_version": service.config_version,
            "mapping_version": service.mapper.dictionary.version,
            "total_files": result.total_files,
            "processed_files": result.processed_files,
            "skipped_files": result.skipped_files,
            "cache_hits": result.cache_hits,
            "duration_seconds": round(result.duration, 3),
            "errors": [
                {"file_path": e.file_path, "error": e.error, "timestamp": e.timestamp.isoformat()}
                for e in result.errors
            ],
            "files": [r.to_dict() for r in found],
        }
        with open(report_file, 'w', encoding='utf-8') as f:
            json.dump(report, f, indent=2, ensure_ascii=False)

        click.echo("\n" + "=" * 60)
        click.echo("RESUMO DA VARREDURA")
        click.echo("=" * 60)
        click.echo(f"Arquivos: {result.processed_files} processados, {result.skipped_files} ignorados "
                   f"de {result.total_files}")
        click.echo(f"Arquivos com uso do Converge: {len(found)}")
        for response in found:
            context = response.context
            click.echo(f"  {context.file_path} [{context.language}] confidence={context.confidence:.2f} "
                       f"fields={len(context.credential_fields)} suggestions={len(response.suggestions)}")
        for error in result.errors:
            click.echo(f"  ⚠️  {error.file_path}: {error.error}")
        click.echo(f"\n✓ Relatório gravado: {report_file}")

    except MigratorError as e:
        click.echo(f"❌ Erro: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        logger.exception("Erro inesperado")
        click.echo(f"❌ Erro inesperado: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.argument('file', type=click.Path(exists=True, dir_okay=False))
@click.option('--endpoint', default=None, help='Restringe o mapeamento de campos a este endpoint Converge')
@click.option('--semantic', is_flag=True, default=False, help='Inclui análise semântica')
@click.option('--json', 'as_json', is_flag=True, default=False, help='Imprime o resultado como JSON')
@click.pass_context
def analyze(ctx, file, endpoint, semantic, as_json):
    """Analisa um único arquivo e lista sugestões de migração"""
    logger = logging.getLogger(__name__)

    try:
        service = build_service(ctx)
        source_text = SourceFileLoader.read(Path(file))
        response = service.analyze_text(file, source_text, endpoint)

        if as_json:
            data = response.to_dict()
            if semantic:
                analysis = service.context_analyzer.semantic_analysis(response.context, source_text)
                data["semantic"] = {
                    "business_context": analysis.business_context,
                    "data_flow": analysis.data_flow,
                    "error_handling": analysis.error_handling,
                    "security_patterns": analysis.security_patterns,
                    "performance_considerations": analysis.performance_considerations,
                    "integration_points": analysis.integration_points,
                }
            click.echo(json.dumps(data, indent=2, ensure_ascii=False))
            return

        context = response.context
        click.echo(f"Arquivo: {context.file_path}")
        click.echo(f"Linguagem: {context.language}")
        click.echo(f"Confiança: {context.confidence:.2f}")
        if context.credential_fields:
            click.echo(f"Campos de credencial: {', '.join(context.credential_fields)}")
        if context.imports:
            click.echo(f"Imports: {', '.join(context.imports)}")

        for detection in response.detections.endpoints:
            click.echo(f"  linha {detection.line_number}: {detection.endpoint_type.value} "
                       f"({detection.matched_text})")

        click.echo(f"\nSugestões ({len(response.suggestions)}):")
        for suggestion in response.suggestions:
            click.echo(f"  [{suggestion.confidence:.2f}] {suggestion.title} "
                       f"(impact={suggestion.impact.value}, effort={suggestion.effort.value})")
            click.echo(f"      -> {suggestion.suggested_replacement}")

        if semantic:
            analysis = service.context_analyzer.semantic_analysis(context, source_text)
            click.echo(f"\nContexto de negócio: {analysis.business_context}")
            for label, values in (("Fluxo de dados", analysis.data_flow),
                                  ("Segurança", analysis.security_patterns),
                                  ("Desempenho", analysis.performance_considerations),
                                  ("Integrações", analysis.integration_points)):
                if values:
                    click.echo(f"{label}: {', '.join(values)}")

    except MigratorError as e:
        click.echo(f"❌ Erro: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        logger.exception("Erro inesperado")
        click.echo(f"❌ Erro inesperado: {e}", err=True)
        sys.exit(1)


@cli.command('map-field')
@click.argument('endpoint')
@click.argument('field')
@click.pass_context
def map_field(ctx, endpoint, field):
    """Mostra o campo Elavon de um campo Converge sob um endpoint"""
    try:
        mapper = build_mapper(ctx)
        target = mapper.map_field(endpoint, field)
        if target is not None:
            click.echo(f"{field} -> {target}")
        else:
            suggestion = mapper.field_suggestion(field, endpoint)
            click.echo(f"Sem mapeamento para {field} em {endpoint}")
            click.echo(f"  {suggestion.suggested_replacement} (effort={suggestion.effort.value})")
        if not mapper.is_standard_field(field):
            click.echo(f"  nota: {field} não é um campo Converge padrão")
    except MigratorError as e:
        click.echo(f"❌ Erro: {e}", err=True)
        sys.exit(1)


@cli.command('reverse-map')
@click.argument('target_field')
@click.pass_context
def reverse_map(ctx, target_field):
    """Lista todos os campos Converge que mapeiam para um campo Elavon"""
    try:
        matches = build_mapper(ctx).reverse_lookup(target_field)
        if not matches:
            click.echo(f"Nenhum campo Converge mapeia para {target_field}")
            return
        for match in matches:
            click.echo(f"{match.endpoint}: {match.source_field} -> {target_field} ({match.target_endpoint})")
    except MigratorError as e:
        click.echo(f"❌ Erro: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.argument('query')
@click.option('--limit', type=int, default=20, help='Máximo de resultados')
@click.pass_context
def search(ctx, query, limit):
    """Busca aproximada em campos e endpoints mapeados"""
    try:
        results = build_mapper(ctx).search_mappings(query)
        if not results:
            click.echo(f"Nenhum mapeamento corresponde a '{query}'")
            return
        for result in results[:limit]:
            click.echo(f"[{result.confidence:.1f}] {result.type}: {result.source_item} -> {result.target_item}"
                       + (f" ({result.endpoint})" if result.type == 'field' else ""))
    except MigratorError as e:
        click.echo(f"❌ Erro: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.argument('file', type=click.Path(exists=True, dir_okay=False))
@click.option('--endpoint', default=None, help='Usa apenas os mapeamentos deste endpoint Converge')
@click.option('--output-dir', '-o', type=click.Path(), help='Onde gravar o arquivo migrado (padrão: ./output)')
@click.option('--in-place', is_flag=True, default=False, help='Sobrescreve o arquivo fonte')
@click.option('--language', default=None, help='Também imprime trecho antes/depois por campo nesta linguagem')
@click.option('--dry-run', is_flag=True, default=False, help='Reporta substituições sem gravar')
@click.pass_context
def migrate(ctx, file, endpoint, output_dir, in_place, language, dry_run):
    """Reescreve nomes de campos Converge mapeados em um arquivo para os nomes Elavon"""
    config = ctx.obj['config']
    logger = logging.getLogger(__name__)

    try:
        mapper = build_mapper(ctx)
        source_path = Path(file)
        source_text = SourceFileLoader.read(source_path)
        result = mapper.rewrite_fields(source_text, endpoint)

        for sub in result.substitutions:
            click.echo(f"  linha {sub.line_number}: {sub.source_field} -> {sub.target_field}")
        if result.unmapped_fields:
            click.echo(f"⚠️  Campos não mapeados (migração manual): {', '.join(result.unmapped_fields)}")

        if language:
            for source_field in dict.fromkeys(s.source_field for s in result.substitutions):
                transform = mapper.generate_migration_code(source_field, language, endpoint)
                if transform is not None:
                    click.echo(f"\n{transform.after}")

        if not result.changed:
            click.echo("Nenhum campo mapeado encontrado; nada a gravar.")
            return
        if dry_run:
            click.echo(f"\n{len(result.substitutions)} substituições (dry run, nada gravado)")
            return

        if in_place:
            target = source_path
        else:
            output_path = Path(output_dir) if output_dir else Path(config.output_dir)
            output_path.mkdir(parents=True, exist_ok=True)
            target = output_path / source_path.name
        with open(target, 'w', encoding='utf-8') as f:
            f.write(result.text)
        click.echo(f"\n✓ {len(result.substitutions)} substituições gravadas em {target}")

    except MigratorError as e:
        click.echo(f"❌ Erro: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        logger.exception("Erro inesperado")
        click.echo(f"❌ Erro inesperado: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option('--path', 'scan_path', type=click.Path(), default=None, help='Alvo de varredura a verificar')
@click.option('--output-dir', '-o', type=click.Path(), default=None, help='Diretório de saída a verificar')
@click.pass_context
def validate(ctx, scan_path, output_dir):
    """Valida config de padrões, arquivo de mapeamento e alvo de varredura"""
    result = DryRunValidator(ctx.obj['config']).validate_all(
        scan_path=scan_path,
        pattern_file=ctx.obj['pattern_config'],
        mapping_file=ctx.obj['mapping_file'],
        output_dir=output_dir,
    )
    print_dry_run_result(result)
    click.echo("\n" + "=" * 60)
    if result.is_valid:
        click.echo("✅ Validação concluída com sucesso!")
    else:
        click.echo("❌ Validação falhou!")
        sys.exit(1)


if __name__ == '__main__':
    cli()
