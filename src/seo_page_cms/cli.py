"""
Command-line interface for SEO Page CMS.

Provides commands to extract pages into the store, score them, render or
patch component files, run bulk edits and export archives.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .bulk_edit import TARGET_FIELDS, BulkEditEngine, BulkEditError, BulkEditValidationError
from .config import DEFAULT_DATABASE_PATH, CmsConfig
from .export import ExportError, build_export_archive
from .extractor import extract_file, extract_files
from .keyword_loader import KeywordLoadError, keyword_spec, load_keywords
from .models import AnalysisReport
from .reconstructor import patch_file, render
from .scoring import score
from .storage import PAGE_STATUSES, PageRepository, StorageError

console = Console()

STATUS_STYLES = {"green": "green", "yellow": "yellow", "red": "red"}

db_option = click.option(
    "--db",
    "db_path",
    type=click.Path(path_type=Path),
    envvar="SEO_CMS_DATABASE",
    default=DEFAULT_DATABASE_PATH,
    show_default=True,
    help="SQLite database file. Can also be set via SEO_CMS_DATABASE env var.",
)


def _fail(label: str, error: Exception) -> None:
    console.print(f"[red]{label}:[/red] {error}")
    sys.exit(1)


@click.group()
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Enable verbose output.",
)
def main(verbose: bool) -> None:
    """
    SEO Page CMS - Extract, score, edit and rebuild page components.

    Examples:

        seo-cms extract pages/*.tsx

        seo-cms analyze about-us

        seo-cms bulk-edit --find "Houston" --replace "Houston Heights" --all --commit
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


@main.command()
@click.argument("files", nargs=-1, required=True, type=click.Path(path_type=Path))
@db_option
@click.option("--save/--no-save", default=True, help="Store extracted pages (default: save).")
@click.option(
    "--status",
    type=click.Choice(PAGE_STATUSES),
    default="draft",
    show_default=True,
    help="Status for stored pages.",
)
def extract(files: tuple[Path, ...], db_path: Path, save: bool, status: str) -> None:
    """Extract content from page component FILES."""
    result = extract_files(files)

    table = Table(title="Extracted Pages", show_header=True)
    table.add_column("Slug", style="cyan")
    table.add_column("Type", style="green")
    table.add_column("Sections", justify="right")
    table.add_column("Title")
    for tree in result.trees:
        table.add_row(tree.slug, tree.document_type, str(len(tree.nodes)), tree.seo_meta.title)
    console.print(table)

    for name, error in result.failures:
        console.print(f"[red]Failed:[/red] {name}: {error}")

    if save and result.trees:
        try:
            with PageRepository(db_path) as repository:
                for tree in result.trees:
                    version = repository.save(tree, status=status)
                    console.print(f"  Saved [cyan]{tree.slug}[/cyan] (version {version})")
        except StorageError as e:
            _fail("Storage error", e)

    console.print(
        f"\n[bold]{result.successful}/{result.total}[/bold] files extracted successfully."
    )
    if result.failures:
        sys.exit(1)


@main.command()
@click.argument("slug", required=False)
@db_option
@click.option(
    "--source",
    type=click.Path(exists=True, path_type=Path),
    help="Analyze a component file directly instead of a stored page.",
)
@click.option(
    "--keywords",
    "-k",
    "keywords_file",
    type=click.Path(exists=True, path_type=Path),
    help="Keyword file (CSV or Excel). Defaults to the stored keyword list.",
)
def analyze(
    slug: Optional[str],
    db_path: Path,
    source: Optional[Path],
    keywords_file: Optional[Path],
) -> None:
    """Score a stored page (SLUG) or a component file against target keywords."""
    if not slug and not source:
        console.print("[red]Error:[/red] Must provide either SLUG or --source")
        sys.exit(1)

    try:
        keywords: list[str] = []
        if keywords_file:
            keywords = keyword_spec(load_keywords(keywords_file))

        if source:
            tree = extract_file(source)
            if not keywords_file:
                with PageRepository(db_path) as repository:
                    keywords = repository.get_active_keywords()
        else:
            with PageRepository(db_path) as repository:
                tree = repository.load(slug)
                if tree is None:
                    console.print(f"[red]Error:[/red] Page not found: {slug}")
                    sys.exit(1)
                if not keywords_file:
                    keywords = repository.get_active_keywords()
    except KeywordLoadError as e:
        _fail("Keyword loading error", e)
    except StorageError as e:
        _fail("Storage error", e)
    except OSError as e:
        _fail("File error", e)

    report = score(tree, keywords, CmsConfig.from_env())
    _display_report(tree.slug, report)


def _display_report(slug: str, report: AnalysisReport) -> None:
    """Display an analysis report."""
    console.print(Panel.fit(
        f"[bold blue]{slug}[/bold blue]\n"
        f"Overall score: [bold]{report.overall_score}/100[/bold]  "
        f"Words: {report.word_count}  Readability: {report.readability_score}",
        border_style="blue",
    ))

    table = Table(title="Score Breakdown", show_header=True)
    table.add_column("Category", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Issues")
    for item in report.category_breakdown:
        style = STATUS_STYLES[item.status]
        table.add_row(
            item.category,
            f"[{style}]{item.score}/{item.max_score}[/{style}]",
            "\n".join(item.issues),
        )
    console.print(table)

    if report.keyword_density:
        density_table = Table(title="Keyword Density", show_header=True)
        density_table.add_column("Keyword", style="green")
        density_table.add_column("Density", justify="right")
        for keyword, density in report.keyword_density.items():
            density_table.add_row(keyword, f"{density}%")
        console.print(density_table)

    for alert in report.stuffing_alerts:
        console.print(
            f"[red]Stuffing ({alert.penalty_risk} risk):[/red] \"{alert.keyword}\" at "
            f"{alert.density}% ({alert.current_count} uses, recommended {alert.recommended_count})"
        )


@main.command("render")
@click.argument("slug")
@db_option
@click.option(
    "--original",
    type=click.Path(path_type=Path),
    help="Existing component file to patch. Falls back to a full render if missing.",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    help="Output path. Prints to stdout when omitted.",
)
def render_command(slug: str, db_path: Path, original: Optional[Path], output: Optional[Path]) -> None:
    """Render a stored page, or patch an existing component file with it."""
    try:
        with PageRepository(db_path) as repository:
            tree = repository.load(slug)
    except StorageError as e:
        _fail("Storage error", e)

    if tree is None:
        console.print(f"[red]Error:[/red] Page not found: {slug}")
        sys.exit(1)

    text = patch_file(original, tree) if original else render(tree)

    if output:
        output.write_text(text, encoding="utf-8")
        console.print(f"[bold green]Success![/bold green] Output saved to: {output}")
    else:
        click.echo(text, nl=False)


@main.command("bulk-edit")
@db_option
@click.option("--find", "find_text", required=True, help="Literal text to find.")
@click.option("--replace", "replace_text", required=True, help="Replacement text.")
@click.option(
    "--field",
    "fields",
    multiple=True,
    type=click.Choice(TARGET_FIELDS),
    default=TARGET_FIELDS,
    show_default=True,
    help="Fields to edit (repeatable).",
)
@click.option("--slug", "slugs", multiple=True, help="Page to edit (repeatable).")
@click.option("--all", "all_pages", is_flag=True, default=False, help="Edit every stored page.")
@click.option("--commit", is_flag=True, default=False, help="Save changes (default is a dry run).")
def bulk_edit(
    db_path: Path,
    find_text: str,
    replace_text: str,
    fields: tuple[str, ...],
    slugs: tuple[str, ...],
    all_pages: bool,
    commit: bool,
) -> None:
    """Find and replace literal text across pages."""
    try:
        with PageRepository(db_path) as repository:
            selected = [record.slug for record in repository.list()] if all_pages else list(slugs)
            result = BulkEditEngine(repository).execute(
                selected, find_text, replace_text, fields, dry_run=not commit
            )
    except BulkEditValidationError as e:
        _fail("Invalid bulk edit", e)
    except BulkEditError as e:
        _fail("Bulk edit failed", e)
    except StorageError as e:
        _fail("Storage error", e)

    table = Table(title="Dry Run" if result.dry_run else "Committed Changes", show_header=True)
    table.add_column("Page", style="cyan")
    table.add_column("Changed Fields", style="yellow")
    for change in result.per_document_changes:
        table.add_row(change.slug, "\n".join(change.changed_field_paths))
    console.print(table)

    verb = "would change" if result.dry_run else "changed"
    console.print(f"\n[bold]{result.total_affected}[/bold] pages {verb}.")


@main.command("export")
@db_option
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    required=True,
    help="Output path for the ZIP archive.",
)
@click.option("--slug", "slugs", multiple=True, help="Page to export (repeatable). Default: all.")
def export_command(db_path: Path, output: Path, slugs: tuple[str, ...]) -> None:
    """Export stored pages as rendered components in a ZIP archive."""
    try:
        with PageRepository(db_path) as repository:
            if slugs:
                trees = [tree for tree in (repository.load(s) for s in slugs) if tree is not None]
            else:
                trees = [record.tree for record in repository.list()]
        output.write_bytes(build_export_archive(trees))
    except ExportError as e:
        _fail("Export error", e)
    except StorageError as e:
        _fail("Storage error", e)

    console.print(f"[bold green]Success![/bold green] Exported {len(trees)} pages to: {output}")


@main.command()
@click.argument("keywords_file", type=click.Path(exists=True, path_type=Path))
@db_option
def keywords(keywords_file: Path, db_path: Path) -> None:
    """Replace the stored target keywords with those in KEYWORDS_FILE."""
    try:
        keyword_list = load_keywords(keywords_file)
        with PageRepository(db_path) as repository:
            repository.set_keywords(keyword_list)
            active = repository.get_active_keywords()
    except KeywordLoadError as e:
        _fail("Keyword loading error", e)
    except StorageError as e:
        _fail("Storage error", e)

    console.print(f"Loaded {len(active)} keywords: {', '.join(active)}")


def run_cli() -> None:
    """Entry point for the CLI."""
    main()


if __name__ == "__main__":
    run_cli()
