# === FILE: goal_scout/cli.py ===
#!/usr/bin/env python3
"""
Command-line entry point for GoalScout.

Commands:
  crawl     Run a goal-directed crawl and print/save the reports
  config    Show the effective configuration

Global options:
  --config PATH       Path to a YAML/JSON config (default: configs/default.yaml)
  --limit INT         Max pages to extract (overrides max_pages)
  --goal TEXT         Scraping goal (overrides scraping_goal)
  --log-level LEVEL   Logging level (DEBUG, INFO, ...)
  --log-file PATH     Log file (stdout only if omitted)
  --log-format FORMAT Logging format string

crawl options:
  --json PATH         Save the JSON report to a file
  --html PATH         Save the HTML report to a file
  --template DIR      Directory with the Jinja2 template
  --pretty            Indent JSON output
  --crawl-timeout SEC Wall-clock budget of the crawl (seconds)

Example:
  goal-scout --config configs/default.yaml --limit 10 crawl --json report.json
"""
import asyncio
import sys
from pathlib import Path

import click

from goal_scout import __version__
from goal_scout.config import load_config
from goal_scout.engine import start_scan
from goal_scout.logger import init_logging, logger
from goal_scout.report.html_report import render_html
from goal_scout.report.json_report import render_json

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='GoalScout, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default='configs/default.yaml',
    show_default=True,
    type=click.Path(dir_okay=False, path_type=Path),
    help='Path to the YAML or JSON configuration file.'
)
@click.option(
    '--limit', '-l', 'limit',
    type=click.IntRange(min=1),
    default=None,
    help='Max pages to extract (overrides max_pages)'
)
@click.option(
    '--goal', '-g', 'goal',
    default=None,
    help='Scraping goal (overrides scraping_goal)'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Logging level'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Log file (stdout only if omitted)'
)
@click.option(
    '--log-format', 'log_format',
    default='%(asctime)s %(levelname)s %(message)s',
    show_default=True,
    help='Logging format string'
)
@click.pass_context
def cli(ctx, config_path, limit, goal, log_level, log_file, log_format):
    """GoalScout command group."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format,
    )
    try:
        cfg = load_config(config_path)
    except Exception as e:
        print_error(f'Failed to load configuration: {e}')
    overrides = {}
    if limit is not None:
        overrides['max_pages'] = limit
    if goal:
        overrides['scraping_goal'] = goal.strip()
    if overrides:
        cfg = cfg.model_copy(update=overrides)
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


@cli.command('crawl', context_settings=CONTEXT_SETTINGS)
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Save the JSON report to a file'
)
@click.option(
    '--html', '-h', 'html_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Save the HTML report to a file'
)
@click.option(
    '--template', '-t', 'template_dir',
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help='Directory with report.html.j2 (bundled template if omitted)'
)
@click.option(
    '--pretty', is_flag=True,
    help='Indent JSON output'
)
@click.option(
    '--crawl-timeout', 'crawl_timeout',
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help='Wall-clock budget of the crawl (seconds)'
)
@click.pass_context
def crawl(ctx, json_output, html_output, template_dir, pretty, crawl_timeout):
    """Run a crawl and produce the reports."""
    cfg = ctx.obj['config']
    if crawl_timeout:
        guard = cfg.guard.model_copy(update={'max_execution_time_ms': int(crawl_timeout * 1000)})
        cfg = cfg.model_copy(update={'guard': guard})
    logger.info('Crawling %s for: %s', cfg.seed_url, cfg.scraping_goal)
    try:
        output = asyncio.run(start_scan(cfg))
    except Exception as e:
        print_error(f'Crawl failed: {e}')

    # no report files requested: print to stdout
    if not json_output and not html_output:
        click.echo(output.json(pretty=pretty))
        return

    if json_output:
        try:
            saved_json = render_json(output, json_output, pretty=pretty)
            click.echo(f'JSON report: {saved_json}')
        except Exception as e:
            print_error(f'Failed to save JSON report: {e}')

    if html_output:
        try:
            saved_html = render_html(output, template_dir, html_output)
            click.echo(f'HTML report: {saved_html}')
        except Exception as e:
            print_error(f'Failed to save HTML report: {e}')


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Show the effective configuration as JSON."""
    cfg = ctx.obj['config']
    click.echo(cfg.model_dump_json(indent=2, by_alias=True))


if __name__ == "__main__":
    cli()
