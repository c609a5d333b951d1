"""CLI interface for the AMA Archiver."""

import logging
from pathlib import Path

import click

from .config import ArchiverConfig
from .errors import ArchiverError
from .exporter import export_tree
from .fetcher import PageFetcher
from .locator import LocatorCodec
from .pipeline import compile_enriched, compile_index
from .store import ArchiveStore


@click.group()
@click.option(
    '--output-dir',
    default=None,
    type=click.Path(file_okay=False, path_type=Path),
    help='Directory holding the cached index and the database'
)
@click.option(
    '-v', '--verbose',
    is_flag=True,
    help='Enable debug logging'
)
@click.pass_context
def main(ctx, output_dir, verbose):
    """AMA Archiver - archive an AMA thread's questions and answers."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    ctx.obj = ArchiverConfig().with_overrides(output_dir=output_dir)


@main.command()
@click.option(
    '--start-marker',
    default=None,
    help='Exact text of the first creator heading (e.g. "Daron Nefcy:")'
)
@click.pass_obj
def index(config, start_marker):
    """Extract the creator/fan index and save it to a new database."""
    config = config.with_overrides(start_marker=start_marker)
    store = ArchiveStore(config.db_path)
    try:
        with PageFetcher(config.request_timeout, config.user_agent) as fetcher:
            records = compile_index(config, fetcher, store)
    except ArchiverError as e:
        raise click.ClickException(str(e)) from e
    finally:
        store.close()
    click.echo(f"{len(records)} index records saved to {config.db_path}")


@main.command()
@click.option(
    '--max-attempts',
    default=None,
    type=click.IntRange(min=1),
    help='Fetch attempts per record before giving up'
)
@click.option(
    '--backoff',
    default=None,
    type=click.FloatRange(min=0),
    help='Initial delay in seconds between attempts (doubles each retry)'
)
@click.option(
    '--no-progress',
    is_flag=True,
    help='Hide the progress bar'
)
@click.pass_obj
def enrich(config, max_attempts, backoff, no_progress):
    """Fetch question and answer text for every record not archived yet."""
    config = config.with_overrides(max_attempts=max_attempts, initial_backoff=backoff)
    store = ArchiveStore(config.db_path)
    try:
        with PageFetcher(config.request_timeout, config.user_agent) as fetcher:
            summary = compile_enriched(config, fetcher, store, show_progress=not no_progress)
    except ArchiverError as e:
        raise click.ClickException(str(e)) from e
    finally:
        store.close()

    click.echo(f"All {summary.total} queries processed: "
               f"{summary.enriched} enriched, {summary.skipped} already archived")
    if summary.failed:
        click.echo(f"Gave up on {len(summary.failed)}: {', '.join(summary.failed)}")
    if summary.save_errors:
        click.echo(f"Could not save {len(summary.save_errors)}: {', '.join(summary.save_errors)}")
    if summary.failed or summary.save_errors:
        raise SystemExit(1)


@main.command()
@click.option(
    '--export-dir',
    default=None,
    type=click.Path(file_okay=False, path_type=Path),
    help='Target directory (defaults to <output-dir>/archive)'
)
@click.pass_obj
def export(config, export_dir):
    """Write the archive as one JSON file per question."""
    target = export_dir or config.export_dir
    store = ArchiveStore(config.db_path)
    try:
        written = export_tree(store, LocatorCodec(config.locator_template), target)
    except ArchiverError as e:
        raise click.ClickException(str(e)) from e
    finally:
        store.close()
    click.echo(f"{written} records exported to {target}")


@main.command()
@click.pass_obj
def stats(config):
    """Show how many records are indexed and enriched."""
    store = ArchiveStore(config.db_path)
    try:
        counts = store.counts()
    except ArchiverError as e:
        raise click.ClickException(str(e)) from e
    finally:
        store.close()

    click.echo("=" * 60)
    click.echo("AMA Archiver Statistics")
    click.echo("=" * 60)
    click.echo(f"Indexed questions:  {counts['index']}")
    click.echo(f"Enriched questions: {counts['enriched']}")
    click.echo(f"Remaining:          {max(counts['index'] - counts['enriched'], 0)}")
    click.echo("=" * 60)


@main.command()
@click.pass_obj
def duplicates(config):
    """List index rows that share a reference id."""
    store = ArchiveStore(config.db_path)
    try:
        report = store.duplicate_reference_ids()
    except ArchiverError as e:
        raise click.ClickException(str(e)) from e
    finally:
        store.close()

    if not report:
        click.echo("No duplicate reference ids.")
        return
    for reference_id, records in report.items():
        click.echo(f"{reference_id}:")
        for record in records:
            click.echo(f"  {record.group_label} <- {record.item_label}")


if __name__ == '__main__':
    main()
