"""CLI entry point for api-health-monitor."""

import logging
from pathlib import Path

import click

from api_health_monitor.config import DEFAULT_SERVING_URL, MonitorConfig, dump_config, load_config
from api_health_monitor.errors import HealthCheckError
from api_health_monitor.generator.config import build_monitor_config
from api_health_monitor.notify import LoggingNotifier
from api_health_monitor.parser.detect import detect_format
from api_health_monitor.runner.checker import ApiMonitor


def _load_monitor_config(doc_path: Path) -> MonitorConfig:
    """Load a monitor config, or wrap a bare schema into one."""
    if detect_format(doc_path) == "config":
        return load_config(doc_path)
    return MonitorConfig(schema_path=doc_path)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def main(verbose: bool):
    """API Health Monitor: probe every documented endpoint of a service."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.argument("schema_path", type=click.Path(exists=True, path_type=Path))
@click.option("-o", "--output", default=None, type=click.Path(path_type=Path), help="Output file path for the config YAML. Prints to stdout when omitted.")
@click.option("--include-opt-params/--no-include-opt-params", default=True, help="Resolve optional parameters too.")
@click.option("--request-builder", default=None, help="Name of the HTTP request builder to record in the config.")
@click.option("--serving-url", default=DEFAULT_SERVING_URL, envvar="API_HEALTH_SERVING_URL", help="URL of the serving application, used when the schema has no scheme or host.")
@click.option("--strict", is_flag=True, help="Fail on unknown parameter locations and unresolvable optional parameters.")
def gen_config(schema_path: Path, output: Path | None, include_opt_params: bool, request_builder: str | None, serving_url: str, strict: bool):
    """Generate an ApiMonitor config with pre-expanded API calls from a schema."""
    try:
        config = build_monitor_config(
            schema_path,
            serving_url=serving_url,
            include_optional=include_opt_params,
            request_builder=request_builder,
            strict=strict,
        )
    except HealthCheckError as e:
        raise click.ClickException(str(e)) from e

    text = dump_config(config)
    if output is None:
        click.echo(text, nl=False)
        return

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text, encoding="utf-8")
    click.echo(f"Config with {len(config.targets[0].apis)} API calls saved to {output}")


@main.command()
@click.argument("doc_path", type=click.Path(exists=True, path_type=Path))
@click.option("--serving-url", default=None, envvar="API_HEALTH_SERVING_URL", help="URL of the serving application.")
@click.option("--concurrency", default=None, type=click.IntRange(min=1), help="Maximum number of requests in flight.")
@click.option("--include-opt-params/--no-include-opt-params", default=None, help="Resolve optional parameters too.")
@click.option("--timeout", default=None, type=float, help="Per-request timeout in seconds.")
@click.pass_context
def check(ctx: click.Context, doc_path: Path, serving_url: str | None, concurrency: int | None, include_opt_params: bool | None, timeout: float | None):
    """Probe every API of a schema or monitor config and report the verdict."""
    try:
        config = _load_monitor_config(doc_path)
        if serving_url is not None:
            config.serving_url = serving_url
        if concurrency is not None:
            config.concurrency = concurrency
        if include_opt_params is not None:
            config.include_optional_parameters = include_opt_params
        if timeout is not None:
            config.timeout = timeout
        monitor = ApiMonitor(config, notifier=LoggingNotifier())
    except HealthCheckError as e:
        raise click.ClickException(str(e)) from e

    results = monitor.check_targets()
    if not results:
        raise click.ClickException(f"Nothing to check in {doc_path}: no targets configured")
    for name, result in results.items():
        if result.healthy:
            click.echo(f"[{name}] OK")
        else:
            click.echo(f"[{name}] FAILED\n{result.message}")

    if not all(result.healthy for result in results.values()):
        ctx.exit(1)
