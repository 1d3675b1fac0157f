"""CLI entry point for apidesign."""

import logging
from pathlib import Path

import click

from apidesign.config import load_config
from apidesign.design.base import DesignGraph
from apidesign.design.errors import ConfigurationError, DesignError, DesignErrors
from apidesign.design.loader import load_design
from apidesign.generator.locales import LocaleDriver


def _load_design(ref: str) -> DesignGraph:
    """Load the design or turn its errors into a CLI failure."""
    try:
        return load_design(ref)
    except DesignErrors as e:
        for err in e.errors:
            click.echo(f"  {err}", err=True)
        raise click.ClickException(f"{len(e.errors)} design error(s) in {ref}")
    except DesignError as e:
        raise click.ClickException(str(e))


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def main(verbose: bool):
    """apidesign: compile API designs into OpenAPI documents."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.argument("design")
@click.option("-o", "--output", default=None, type=click.Path(path_type=Path), help="Output directory for the generated documents.")
@click.option("--locales", default=None, help="Comma-separated locale list, first is the default locale.")
@click.option("--format", "formats", multiple=True, type=click.Choice(["json", "yaml"]), help="Output format (repeatable, default both).")
@click.option("--config", "config_path", default=None, type=click.Path(exists=True, path_type=Path), help="YAML configuration file.")
@click.option("--workers", default=None, type=click.IntRange(min=1), help="Worker threads (default one per locale).")
def gen(design: str, output: Path | None, locales: str | None, formats: tuple[str, ...], config_path: Path | None, workers: int | None):
    """Generate openapi.json/yaml (and openapi_{locale}.*) from DESIGN."""
    try:
        config = load_config(config_path, locales=locales, output_dir=output, formats=list(formats))
    except ConfigurationError as e:
        raise click.UsageError(str(e))

    click.echo(f"Loading design {design}...")
    graph = _load_design(design)
    click.echo(f"Found {len(graph.services)} services, locales: {', '.join(config.locales)}")

    result = LocaleDriver(max_workers=workers).run(config.locales, graph)
    if not result.documents and result.ok:
        click.echo("No HTTP services, nothing to generate.")
        return

    config.output_dir.mkdir(parents=True, exist_ok=True)
    for pair in result.documents.values():
        for filename, content in pair.files.items():
            if filename.rsplit(".", 1)[1] not in config.formats:
                continue
            file_path = config.output_dir / filename
            file_path.write_text(content, encoding="utf-8")
            click.echo(f"  Created {file_path}")

    for locale, err in result.errors.items():
        click.echo(f"  {locale}: {err}", err=True)
    if not result.ok:
        raise click.ClickException(f"generation failed for locale(s): {', '.join(result.errors)}")

    click.echo(f"Done! Generated {len(result.documents)} document(s) in {config.output_dir}")


@main.command()
@click.argument("design")
def check(design: str):
    """Evaluate DESIGN and report design errors."""
    graph = _load_design(design)
    routes = sum(len(m.routes) for s in graph.services for m in s.methods)
    click.echo(f"{graph.api.name}: {len(graph.services)} services, {routes} routes, {len(graph.schemes)} security schemes")
