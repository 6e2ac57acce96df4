"""Main CLI entry point for Chordbook."""

from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from chordbook import __version__
from chordbook.config import get_settings

console = Console()


@click.group()
@click.version_option(version=__version__, prog_name="chordbook")
def main() -> None:
    """Chordbook - Songbook builder for chord-annotated lyrics.

    Parse songs written in ChordPro-style markup, transpose them, and
    render songbooks and song sheets through templates.
    """
    pass


@main.command()
@click.argument("manifest", type=click.Path(path_type=Path))
@click.option(
    "-o",
    "--output",
    type=click.Path(path_type=Path),
    help="Output directory (default: settings output_dir)",
)
@click.option(
    "--best-effort/--fail-fast",
    "best_effort",
    default=None,
    help="Skip failing songs and renders instead of failing the build",
)
@click.option(
    "-j",
    "--jobs",
    type=click.IntRange(min=1),
    help="Number of parallel workers",
)
def build(
    manifest: Path,
    output: Path | None,
    best_effort: bool | None,
    jobs: int | None,
) -> None:
    """Build every output target of a project.

    Reads MANIFEST (TOML or JSON), then:

    \b
    1. Collect song sources
    2. Parse each song once
    3. Compute numbering, contents and index
    4. Render every target and write the artifacts
    """
    from chordbook.errors import ManifestError
    from chordbook.manifest import load_manifest
    from chordbook.pipeline import create_default_pipeline, write_artifacts

    if not manifest.exists():
        console.print(f"[red]Error: File not found: {manifest}[/red]")
        raise SystemExit(1)

    settings = get_settings()

    # Apply CLI overrides
    if best_effort is not None:
        settings.failure_policy = "best-effort" if best_effort else "fail-fast"
    if jobs is not None:
        settings.max_workers = jobs

    try:
        project = load_manifest(manifest)
    except ManifestError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise SystemExit(1) from None

    # A policy given on the command line beats the manifest's own
    if best_effort is not None:
        project = project.model_copy(update={"failure_policy": settings.failure_policy})

    output = output or settings.output_dir

    console.print(f"[bold blue]Chordbook[/bold blue] v{__version__}")
    console.print(f"Project: [green]{manifest}[/green]")
    console.print(f"Output: [green]{output}[/green]")
    console.print()

    pipeline = create_default_pipeline(settings)
    result = pipeline.run(project)

    failures = result.failures()
    if failures:
        console.print("[yellow]Failures:[/yellow]")
        for outcome in failures:
            console.print(f"  [red]{escape(outcome.label)}[/red]: {escape(outcome.error or '')}")

    # Display results
    if result.success:
        written = write_artifacts(result, output)
        console.print("[bold green]Build complete![/bold green]")
        console.print(
            f"Songs parsed: {result.parsed} (reused {result.parse_reused}), "
            f"artifacts rendered: {result.rendered} (reused {result.render_reused})"
        )
        for path in written:
            console.print(f"  {escape(str(path))}")
    else:
        console.print("[bold red]Build failed![/bold red]")
        for error in result.errors:
            console.print(f"[red]Error: {escape(error)}[/red]")
        raise SystemExit(1)


@main.command()
def info() -> None:
    """Show current configuration and notation systems."""
    from chordbook.models.pitch import NOTATIONS, Note, spell

    settings = get_settings()

    console.print("[bold]Configuration[/bold]")
    console.print(f"  Output directory: {settings.output_dir}")
    console.print(f"  Template directory: {settings.template_dir}")
    console.print(f"  Max workers: {settings.max_workers or 'CPU count'}")
    console.print(f"  Failure policy: {settings.failure_policy}")
    console.print(f"  Default notation: {settings.default_notation}")
    console.print(
        f"  Markup: {settings.directive_open}directive{settings.directive_close} "
        f"{settings.chord_open}chord{settings.chord_close} "
        f"{settings.comment_prefix}comment"
    )
    console.print()

    table = Table(title="Notation systems")
    table.add_column("Name")
    table.add_column("Chromatic scale")
    for name, system in NOTATIONS.items():
        scale = " ".join(spell(Note(pc), system) for pc in range(12))
        table.add_row(name, scale)
    console.print(table)


if __name__ == "__main__":
    main()
