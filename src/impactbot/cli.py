"""Command-line interface for impactbot."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from impactbot import __version__
from impactbot.config import COLUMN_MATCH_MODES, load_config
from impactbot.exceptions import ConfigError
from impactbot.ui.console import Console
from impactbot.ui.log import configure_logging, in_github_actions

console = Console()
logger = logging.getLogger("impactbot")


@click.group()
@click.version_option(version=__version__, prog_name="impactbot")
def main():
    """impactbot - downstream lineage impact of dbt model changes."""
    pass


@main.command()
@click.option("--changed-files", default=None, help="Comma-separated files (skips the event payload).")
@click.option("--base-url", default=None, help="Lineage service base URL.")
@click.option("--link-base-url", default=None, help="Base URL for links in the report.")
@click.option(
    "--column-match",
    type=click.Choice(COLUMN_MATCH_MODES),
    default=None,
    help="Column name matching: permissive (substring) or strict.",
)
@click.option("--no-comment", is_flag=True, help="Do not comment on the pull request.")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging.")
def run(
    changed_files: str | None,
    base_url: str | None,
    link_base_url: str | None,
    column_match: str | None,
    no_comment: bool,
    verbose: bool,
):
    """Analyze changed dbt models and publish the impact report.

    Inputs are read from the GitHub Actions INPUT_* environment variables;
    options given here take precedence.

    Examples:

        impactbot run

        impactbot run --changed-files models/orders.sql --no-comment
    """
    configure_logging(verbose)

    from impactbot.github.event import EventContext
    from impactbot.github.impact_bot import run_impact_analysis
    from impactbot.github.notifier import publish_report

    try:
        config = load_config(
            changed_files_list=changed_files,
            base_url=base_url,
            link_base_url=link_base_url,
            column_match=column_match,
        )
    except ConfigError as e:
        console.error(f"Invalid configuration: {e}")
        sys.exit(1)

    try:
        context = EventContext.from_environ()
        report = run_impact_analysis(config, context)
        published = publish_report(
            report.markdown, context, token=config.github_token, comment=not no_comment
        )
    except Exception as e:
        logger.exception(f"[MAIN] Unhandled error: {e}")
        sys.exit(1)

    if not in_github_actions():
        console.markdown(report.markdown)
        console.show_run_stats({
            "Changed files": len(report.changed_files),
            "Matched tasks": len(report.matched_tasks),
            "Directly impacted": report.total_direct,
            "Indirectly impacted": report.total_indirect,
        })
    if published["comment"]:
        console.success("Posted impact comment to PR")


@main.command()
@click.argument("file_path")
@click.option("--rev", "-r", default=None, help="Read the file at this git revision.")
def columns(file_path: str, rev: str | None):
    """Show the columns impactbot extracts from a model SQL or schema YAML file."""
    from impactbot.github.event import file_kind
    from impactbot.github.revisions import get_file_content
    from impactbot.parser import extract_columns_from_sql, extract_columns_from_yml

    kind = file_kind(file_path)
    if kind == "other":
        console.error(f"Not a .sql or .yml file: {file_path}")
        sys.exit(1)

    if rev:
        content = get_file_content(rev, file_path)
        if content is None:
            console.error(f"{file_path} not found at {rev}")
            sys.exit(1)
    else:
        path = Path(file_path)
        if not path.exists():
            console.error(f"Path does not exist: {file_path}")
            sys.exit(1)
        content = path.read_text(encoding="utf-8")

    if kind == "sql":
        found = extract_columns_from_sql(content)
    else:
        found = extract_columns_from_yml(content, file_path)

    if not found:
        console.warning(f"No columns found in {file_path}")
        return
    console.show_columns(file_path, found)


if __name__ == "__main__":
    main()
