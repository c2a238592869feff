#!/usr/bin/env python3

import json
import logging
import os
import sys
from pathlib import Path

import click

from . import __version__
from .config import load_config
from .cross_file import CrossFileAnalyzer
from .exceptions import UmlscopeError
from .import_index import ImportIndex
from .models import AnalysisMode, BidirectionalAnalysisResult
from .providers import LocalFileProvider
from .treesitter.exceptions import TreeSitterError


def print_version(ctx, param, value):
    if not value or ctx.resilient_parsing:
        return
    click.echo(f"umlscope {__version__}")
    ctx.exit()


def _fail(ctx, error: Exception) -> None:
    click.echo(f"Error: {error}", err=True)
    if ctx.obj and ctx.obj.get('verbose'):
        import traceback
        traceback.print_exc()
    sys.exit(1)


def _display_path(path: str, root: Path) -> str:
    try:
        return Path(path).relative_to(root).as_posix()
    except ValueError:
        return path


def _echo_file(result, root: Path) -> None:
    click.echo(f"{_display_path(result.file_path, root)} (depth {result.depth}, {result.language})")
    for cls in result.classes:
        click.echo(f"  {cls.kind} {cls.name}")
    for rel in result.relationships:
        line = f"    {rel.from_class} --{rel.type}--> {rel.to}"
        if rel.cardinality:
            line += f" [{rel.cardinality}]"
        if rel.context:
            line += f" ({rel.context})"
        click.echo(line)


@click.group()
@click.option('--version', is_flag=True, callback=print_version,
              expose_value=False, is_eager=True, help='Show version and exit.')
@click.option('--verbose', '-v', is_flag=True, help='Show debug logging and full tracebacks.')
@click.pass_context
def main(ctx, verbose):
    """Extract class relationships for UML diagrams from source files."""
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def _build_analyzer(root: Path, use_index: bool) -> CrossFileAnalyzer:
    config = load_config(root)
    provider = LocalFileProvider(root, config)
    import_index = None
    if use_index:
        click.echo("Building import index...", err=True)
        import_index = ImportIndex(provider, config).build()
    return CrossFileAnalyzer(provider, import_index=import_index, config=config)


@main.command()
@click.argument('file_path', type=click.Path(dir_okay=False))
@click.option('--depth', '-d', default=3, show_default=True, type=int, help='Maximum traversal depth.')
@click.option('--mode', '-m', type=click.Choice([m.value for m in AnalysisMode]), default='forward',
              show_default=True, help='Follow dependencies, dependents or both.')
@click.option('--root', '-r', type=click.Path(file_okay=False), default=None,
              help='Project root (defaults to the current directory).')
@click.option('--use-index', is_flag=True, help='Build a class name index before the traversal.')
@click.option('--json', 'as_json', is_flag=True, help='Print the result as JSON.')
@click.pass_context
def analyze(ctx, file_path, depth, mode, root, use_index, as_json):
    """Analyze FILE_PATH and the files its classes are connected to."""
    root = Path(os.path.abspath(root or os.getcwd()))
    try:
        analyzer = _build_analyzer(root, use_index)
        context = analyzer.new_context()
        result = analyzer.analyze(os.path.abspath(file_path), depth, AnalysisMode(mode), context)
    except (UmlscopeError, TreeSitterError) as e:
        _fail(ctx, e)
        return

    if ctx.obj.get('verbose') and context.unresolved:
        click.echo("Unresolved class names:", err=True)
        for name, referrers in sorted(context.unresolved.items()):
            click.echo(f"  {name} (from {', '.join(_display_path(p, root) for p in referrers)})", err=True)

    if isinstance(result, BidirectionalAnalysisResult):
        if as_json:
            click.echo(result.model_dump_json(indent=2, by_alias=True))
            return
        for file_result in result.files.values():
            _echo_file(file_result, root)
        stats = result.stats
        click.echo(
            f"\n{stats.total_files} files, {stats.total_classes} classes, "
            f"{stats.total_relationships} relationships "
            f"({len(result.forward_deps)} dependencies, {len(result.reverse_deps)} dependents)"
        )
        return

    if as_json:
        payload = {path: r.model_dump(mode="json", by_alias=True) for path, r in result.items()}
        click.echo(json.dumps(payload, indent=2))
        return
    for file_result in sorted(result.values(), key=lambda r: (r.depth, r.file_path)):
        _echo_file(file_result, root)


@main.command()
@click.argument('file_path', type=click.Path(exists=True, dir_okay=False))
@click.option('--json', 'as_json', is_flag=True, help='Print the result as JSON.')
@click.pass_context
def inspect(ctx, file_path, as_json):
    """Show the classes and relationships of a single file."""
    root = Path(os.getcwd())
    try:
        result = CrossFileAnalyzer(LocalFileProvider(root, load_config(root))).analyze_file(os.path.abspath(file_path))
    except (UmlscopeError, TreeSitterError) as e:
        _fail(ctx, e)
        return
    if as_json:
        click.echo(result.model_dump_json(indent=2, by_alias=True))
    else:
        _echo_file(result, root)


@main.command()
@click.argument('root', type=click.Path(exists=True, file_okay=False), default='.')
@click.option('--json', 'as_json', is_flag=True, help='Print the class name map as JSON.')
@click.pass_context
def index(ctx, root, as_json):
    """Build the class name index for ROOT and report what it found."""
    root = Path(os.path.abspath(root))
    try:
        config = load_config(root)
        import_index = ImportIndex(LocalFileProvider(root, config), config).build()
    except UmlscopeError as e:
        _fail(ctx, e)
        return

    if as_json:
        payload = {
            name: [_display_path(p, root) for p in import_index.resolve(name)]
            for name in import_index.class_names()
        }
        click.echo(json.dumps(payload, indent=2))
        return
    stats = import_index.stats()
    click.echo(f"Indexed {stats.class_count} classes in {stats.file_count} files.")
    for name in import_index.class_names():
        paths = ", ".join(_display_path(p, root) for p in import_index.resolve(name))
        click.echo(f"  {name}: {paths}")


if __name__ == '__main__':
    main()
