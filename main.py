#!/usr/bin/env python3
"""Gateway API Docs - Entry point."""
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import click
from colorama import Fore, Style, init

from config import app_config
from gateway_docs import __version__
from gateway_docs.builder.endpoint_assembler import EndpointAssembler
from gateway_docs.errors import DocumentationError, ErrorCode
from gateway_docs.exporter.json_exporter import JsonExporter
from gateway_docs.introspection.schema_graph import SchemaGraph
from gateway_docs.builder.example_synthesizer import ExampleSynthesizer
from gateway_docs.service import ApiDocumentationService
from gateway_docs.stats.invocation_stats import InvocationStatsAggregator
from gateway_docs.store.counter_store import FileCounterStore

# Initialize colorama
init(autoreset=True)

exporter = JsonExporter()


def print_header(title: str):
    """Print a section header."""
    click.echo(f"{Fore.CYAN}{'=' * 44}")
    click.echo(f"{Fore.CYAN}{title}")
    click.echo(f"{Fore.CYAN}{'=' * 44}{Style.RESET_ALL}")


def load_document(doc_path: Path) -> Dict[str, Any]:
    """Read a local Swagger document."""
    try:
        document = json.loads(doc_path.read_text(encoding="utf-8"))
    except ValueError:
        raise DocumentationError(ErrorCode.PARSE_JSON, str(doc_path))
    if not isinstance(document, dict):
        raise DocumentationError(ErrorCode.PARSE_JSON, str(doc_path))
    return document


def emit(result: Any, output: Optional[Path], source: Optional[str] = None):
    """Print JSON, or write it to the output file."""
    if output:
        exporter.export(output, result, source=source)
        click.echo(f"{Fore.GREEN}✅ Saved to {output}")
    else:
        click.echo(exporter.dumps(result))


def fail(error: DocumentationError):
    """Report a domain error and exit non-zero."""
    click.echo(f"{Fore.RED}❌ {error.code.value} {list(error.params)}: {error.message}", err=True)
    raise click.exceptions.Exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose):
    """Gateway API Docs - inspect service documentation and invocation stats."""
    level = logging.DEBUG if verbose else getattr(logging, app_config.log_level.upper(), logging.WARNING)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@cli.command()
@click.argument("doc_path", type=click.Path(exists=True, path_type=Path))
@click.option("--entity", default=None, help="Render a single definition")
def examples(doc_path, entity):
    """Print example bodies of a local Swagger document."""
    try:
        graph = SchemaGraph.parse(load_document(doc_path))
    except DocumentationError as e:
        fail(e)

    synthesizer = ExampleSynthesizer()
    names = [entity] if entity else list(graph)
    if entity and entity not in graph:
        click.echo(f"{Fore.RED}❌ Definition not found: {entity}", err=True)
        raise click.exceptions.Exit(1)

    for name in names:
        click.echo(f"{Fore.YELLOW}# {name}")
        click.echo(synthesizer.render(name, graph))


@cli.command()
@click.argument("doc_path", type=click.Path(exists=True, path_type=Path))
@click.option("--service", required=True, help="Service (route) name used in permission codes")
@click.option("-o", "--output", type=click.Path(path_type=Path), default=None, help="Output JSON file")
def endpoints(doc_path, service, output):
    """Print documented endpoints of a local Swagger document."""
    try:
        document = load_document(doc_path)
    except DocumentationError as e:
        fail(e)
    assembler = EndpointAssembler(service, extra_data_field=app_config.extra_data_field)
    emit(assembler.assemble(document), output, source=str(doc_path))


@cli.command()
@click.argument("doc_path", type=click.Path(exists=True, path_type=Path))
@click.option("--service", required=True, help="Service (route) name used in permission codes")
@click.option("-o", "--output", type=click.Path(path_type=Path), default=None, help="Output JSON file")
def controllers(doc_path, service, output):
    """Print controllers and their endpoints from a local Swagger document."""
    try:
        document = load_document(doc_path)
    except DocumentationError as e:
        fail(e)
    assembler = EndpointAssembler(service, extra_data_field=app_config.extra_data_field)
    emit(assembler.controllers(document), output, source=str(doc_path))


@cli.command()
@click.option("-o", "--output", type=click.Path(path_type=Path), default=None, help="Output JSON file")
def tree(output):
    """Print the documentation tree of every service behind the gateway."""
    print_header(f"Gateway: {app_config.documents.base_url}")
    service = ApiDocumentationService.from_config(app_config)
    emit(service.query_tree_menu(), output, source=app_config.documents.base_url)


@cli.command()
def api_count():
    """Print the number of documented APIs per service."""
    service = ApiDocumentationService.from_config(app_config)
    emit(service.query_instances_and_api_count(), None)


@cli.command()
@click.argument("begin")
@click.argument("end")
@click.argument("service")
@click.option("--counters-dir", type=click.Path(path_type=Path), default=None, help="Counter files directory")
def api_invoke(begin, end, service, counters_dir):
    """Print daily API invocation counts of one service."""
    store = FileCounterStore(counters_dir or Path(app_config.counters_dir))
    try:
        result = InvocationStatsAggregator(store).query_api_invoke(begin, end, service)
    except DocumentationError as e:
        fail(e)
    emit(result, None)


@cli.command()
@click.argument("begin")
@click.argument("end")
@click.argument("services", nargs=-1, required=True)
@click.option("--counters-dir", type=click.Path(path_type=Path), default=None, help="Counter files directory")
def service_invoke(begin, end, services, counters_dir):
    """Print daily invocation counts of the given services."""
    store = FileCounterStore(counters_dir or Path(app_config.counters_dir))
    try:
        result = InvocationStatsAggregator(store).query_service_invoke(begin, end, list(services))
    except DocumentationError as e:
        fail(e)
    emit(result, None)


if __name__ == "__main__":
    cli()
