"""CLI entry point — command definitions using Click.

Commands:
    init      Generate a template config file
    publish   Publish a JSON analysis report as a GitHub check run
"""

import functools
import logging
import sys

import click

from analysis_publisher import __version__


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _handle_errors(func):
    """Decorator that catches config, report and transport errors and exits cleanly."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        from analysis_publisher.client import CheckRunClientError, NetworkError
        from analysis_publisher.config import ConfigError
        from analysis_publisher.report import ReportError

        try:
            return func(*args, **kwargs)
        except ConfigError as exc:
            click.echo(f"Configuration error: {exc}", err=True)
            sys.exit(1)
        except ReportError as exc:
            click.echo(f"Report error: {exc}", err=True)
            sys.exit(1)
        except NetworkError as exc:
            click.echo(f"Network error: {exc}", err=True)
            sys.exit(1)
        except CheckRunClientError as exc:
            click.echo(f"GitHub error: {exc}", err=True)
            sys.exit(1)

    return wrapper


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------

@click.group()
@click.option("--config", "config_path", default="analysis-publisher.yaml", show_default=True,
              help="Path to the configuration file.")
@click.option("--verbose", is_flag=True, default=False,
              help="Enable debug logging.")
@click.version_option(__version__, prog_name="analysis-publisher")
@click.pass_context
def cli(ctx: click.Context, config_path: str, verbose: bool) -> None:
    """Publish static-analysis findings as GitHub check-run annotations."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose


# ---------------------------------------------------------------------------
# init
# ---------------------------------------------------------------------------

@cli.command("init")
@click.option("--output", "output_path", default="analysis-publisher.yaml", show_default=True,
              help="Path where the template config file will be written.")
def init_command(output_path: str) -> None:
    """Generate a template analysis-publisher.yaml file."""
    from analysis_publisher.config import ConfigError, generate_template
    try:
        generate_template(output_path)
        click.echo(f"Template written to '{output_path}'.")
        click.echo("Edit it with your repository, token and check name.")
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


# ---------------------------------------------------------------------------
# publish
# ---------------------------------------------------------------------------

@cli.command("publish")
@click.argument("report_path", metavar="REPORT")
@click.option("--sha", "head_sha", default=None, help="Commit SHA (overrides config and GITHUB_SHA).")
@click.option("--workspace", "workspace_path", default=None,
              help="Workspace root stripped from absolute file paths.")
@click.option("--name", "check_name", default=None, help="Check run name.")
@click.option("--title", "check_title", default=None, help="Check run title.")
@click.pass_context
@_handle_errors
def publish_command(ctx: click.Context, report_path: str, head_sha: str | None,
                    workspace_path: str | None, check_name: str | None,
                    check_title: str | None) -> None:
    """Publish the JSON analysis report REPORT as a check run."""
    from analysis_publisher.config import load
    from analysis_publisher.publisher import CheckPublisher
    from analysis_publisher.report import load_report

    config = load(
        ctx.obj["config_path"],
        head_sha=head_sha,
        workspace_path=workspace_path,
        check_name=check_name,
        check_title=check_title,
    )

    report = load_report(report_path)
    if ctx.obj["verbose"]:
        click.echo(f"[verbose] Loaded {len(report)} issues from '{report_path}'", err=True)

    CheckPublisher(config).publish(report)
