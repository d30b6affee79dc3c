"""CLI interface for ESG Champions.

This module provides a command-line interface for managing the review
engine, including initialization, server management, status checks and
data export.
"""
import asyncio
import sys
from pathlib import Path

import click
import uvicorn

from . import __version__
from .core.config.settings import ChampionsConfig, configure_logging, init_config
from .core.models import SubmissionStatus
from .core.schemas import ChampionCreate
from .core.services import Catalog, CreditLedger, SubmissionManager, approved_review_rows, render_csv
from .core.storage.database import init_db


@click.group()
@click.version_option(version=__version__)
def cli():
    """ESG Champions - review submission and moderation workflow.

    Champions review ESG indicator panels; moderators approve or reject
    submissions and award credits.
    """
    pass


@cli.command()
@click.option(
    "--config-path",
    "-c",
    type=click.Path(dir_okay=False),
    default="champions.yaml",
    help="Path to configuration file",
)
@click.option("--force", "-f", is_flag=True, help="Force overwrite existing config")
def init(config_path: str, force: bool):
    """Initialize configuration and database.

    Creates a default configuration file and the database tables.
    """
    config_file = Path(config_path)

    if config_file.exists() and not force:
        click.echo(f"Configuration file already exists: {config_path}")
        click.echo("Use --force to overwrite")
        return

    try:
        config = ChampionsConfig.create_default_config(config_file)

        async def create_tables():
            db = init_db(config.get_database_url())
            try:
                await db.create_tables()
            finally:
                await db.close()

        asyncio.run(create_tables())

        click.echo(f"✓ Created configuration file: {config_path}")
        click.echo("\nDefault configuration:")
        click.echo(f"  API Server: {config.api_host}:{config.api_port}")
        click.echo(f"  Database: {config.get_database_url()}")
        click.echo(f"  Credits per accepted review: {config.review_credit}")
        click.echo(f"\nEdit {config_path} to customize settings.")

    except Exception as e:
        click.echo(f"Error creating configuration: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to configuration file",
)
@click.option("--host", help="Override API host")
@click.option("--port", type=int, help="Override API port")
def start(config: str, host: str, port: int):
    """Start the ESG Champions API server."""
    try:
        app_config = init_config(config) if config else init_config()
        configure_logging(app_config)

        # Override with CLI options
        if host:
            app_config.api_host = host
        if port:
            app_config.api_port = port

        click.echo("🚀 Starting ESG Champions...")
        click.echo(f"   API: http://{app_config.api_host}:{app_config.api_port}")
        click.echo("\nPress Ctrl+C to stop\n")

        uvicorn.run(
            "esgchampions.api.app:app",
            host=app_config.api_host,
            port=app_config.api_port,
            log_level=app_config.log_level.lower(),
        )

    except KeyboardInterrupt:
        click.echo("\n\nStopping ESG Champions...")
    except Exception as e:
        click.echo(f"Error starting server: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to configuration file",
)
def status(config: str):
    """Check system status.

    Displays configuration and platform statistics.
    """
    try:
        app_config = init_config(config) if config else init_config()

        click.echo("ESG Champions Status")
        click.echo("=" * 50)
        click.echo(f"Configuration: {config or 'default'}")
        click.echo(f"Database URL: {app_config.get_database_url()}")
        click.echo(f"API Server: {app_config.api_host}:{app_config.api_port}")
        click.echo(f"Log Level: {app_config.log_level}")

        db = init_db(app_config.get_database_url())

        async def get_stats():
            try:
                await db.create_tables()
                return await Catalog(db).platform_stats()
            finally:
                await db.close()

        stats = asyncio.run(get_stats())
        click.echo("\n✓ Database connection successful")
        click.echo(f"\nChampions: {stats.total_champions}")
        click.echo(f"Panels: {stats.total_panels} ({stats.total_indicators} indicators)")
        click.echo(
            f"Submissions: {stats.total_submissions} total, {stats.pending_submissions} pending, "
            f"{stats.approved_submissions} approved, {stats.rejected_submissions} rejected"
        )
        click.echo(f"Reviews: {stats.total_reviews} total, {stats.pending_reviews} pending")

    except Exception as e:
        click.echo(f"Error checking status: {e}", err=True)
        sys.exit(1)


@cli.command("create-admin")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to configuration file",
)
@click.option("--email", required=True, help="Moderator email")
@click.option("--name", "full_name", required=True, help="Moderator display name")
@click.option("--company", default=None, help="Company or organisation")
def create_admin(config: str, email: str, full_name: str, company: str):
    """Register a moderator account.

    Self-registration never grants moderator rights; use this to create the
    first admin, who can then grant the role to others.
    """
    try:
        app_config = init_config(config) if config else init_config()
        db = init_db(app_config.get_database_url())

        async def register():
            try:
                await db.create_tables()
                return await Catalog(db).register_champion(
                    ChampionCreate(email=email, full_name=full_name, company=company),
                    is_admin=True,
                )
            finally:
                await db.close()

        champion = asyncio.run(register())
        click.echo(f"✓ Created admin #{champion.id}: {champion.full_name} <{champion.email}>")

    except Exception as e:
        click.echo(f"Error creating admin: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to configuration file",
)
@click.option("--limit", "-n", type=int, default=20, help="Number of submissions to show")
@click.option(
    "--status-filter",
    type=click.Choice([s.value for s in SubmissionStatus]),
    help="Filter by status",
)
def submissions(config: str, limit: int, status_filter: str):
    """View recent panel review submissions."""
    try:
        app_config = init_config(config) if config else init_config()
        db = init_db(app_config.get_database_url())

        async def get_recent():
            try:
                return await SubmissionManager(db).list_for_admin(status=status_filter, limit=limit)
            finally:
                await db.close()

        rows = asyncio.run(get_recent())

        if not rows:
            click.echo("No submissions found")
            return

        click.echo(f"\nRecent Submissions (showing {len(rows)}):")
        click.echo("=" * 80)

        for submission in rows:
            status_icon = {
                SubmissionStatus.DRAFT.value: "📝",
                SubmissionStatus.PENDING.value: "⏳",
                SubmissionStatus.APPROVED.value: "✅",
                SubmissionStatus.REJECTED.value: "❌",
            }.get(submission.status, "❓")

            click.echo(
                f"\n{status_icon} Submission #{submission.id} - panel {submission.panel_id} "
                f"[{submission.status.upper()}]"
            )
            click.echo(f"   Champion: {submission.champion_id}")
            click.echo(f"   Created: {submission.created_at.strftime('%Y-%m-%d %H:%M:%S')}")
            if submission.admin_notes:
                click.echo(f"   Notes: {submission.admin_notes[:100]}")

    except Exception as e:
        click.echo(f"Error retrieving submissions: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to configuration file",
)
@click.option("--limit", "-n", type=int, default=None, help="Number of champions to show")
def leaderboard(config: str, limit: int):
    """Show champions ranked by credits."""
    try:
        app_config = init_config(config) if config else init_config()
        db = init_db(app_config.get_database_url())

        async def get_entries():
            try:
                return await CreditLedger(db, app_config).leaderboard(limit)
            finally:
                await db.close()

        entries = asyncio.run(get_entries())

        if not entries:
            click.echo("No champions yet")
            return

        click.echo(f"{'Rank':>4}  {'Champion':<30} {'Credits':>8} {'Accepted':>9}")
        click.echo("-" * 56)
        for entry in entries:
            click.echo(
                f"{entry.rank:>4}  {entry.full_name[:30]:<30} {entry.credits:>8} "
                f"{entry.accepted_reviews_count:>9}"
            )

    except Exception as e:
        click.echo(f"Error retrieving leaderboard: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to configuration file",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, writable=True),
    default="approved-indicator-reviews.csv",
    help="CSV file to write",
)
def export(config: str, output: str):
    """Export approved indicator reviews to CSV."""
    try:
        app_config = init_config(config) if config else init_config()
        db = init_db(app_config.get_database_url())

        async def get_rows():
            try:
                return await approved_review_rows(db)
            finally:
                await db.close()

        rows = asyncio.run(get_rows())

        if not rows:
            click.echo("No approved reviews found to export")
            return

        Path(output).write_text(render_csv(rows), encoding="utf-8", newline="")
        click.echo(f"✓ Exported {len(rows)} approved indicator reviews to {output}")

    except Exception as e:
        click.echo(f"Error exporting reviews: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    cli()
