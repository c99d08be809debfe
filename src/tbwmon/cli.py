"""
Command line entry point for tbwmon.
"""

import json
import logging
import sys
from typing import Optional

import click
import yaml

from .config import dump_config, load_config
from .core.exceptions import TbwmonError
from .service import TbwService
from .storage.smart import Unavailable

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str) -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)


@click.group()
@click.option("--config", "config_path", type=click.Path(dir_okay=False), default=None,
              help="Path to the YAML configuration file.")
@click.option("--log-level", default=None, help="Override the configured log level.")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[str], log_level: Optional[str]) -> None:
    """Monitor SSD Total Bytes Written."""
    try:
        config = load_config(config_path)
    except TbwmonError as e:
        raise click.ClickException(str(e))

    configure_logging(log_level or config.log_level)
    ctx.obj = {"config": config, "config_path": config_path}


def _service(ctx: click.Context) -> TbwService:
    return TbwService.from_config(ctx.obj["config"])


@cli.command()
@click.option("--host", default=None, help="Bind address (defaults to api.host).")
@click.option("--port", default=None, type=int, help="Port (defaults to api.port).")
@click.pass_context
def serve(ctx: click.Context, host: Optional[str], port: Optional[int]) -> None:
    """Run the API server and the TBW scheduler."""
    import uvicorn

    from .api.dependencies import set_config

    config = ctx.obj["config"]
    set_config(config)
    uvicorn.run(
        "tbwmon.api.main:create_app",
        factory=True,
        host=host or config.api.host,
        port=port or config.api.port,
        log_level=config.log_level.lower()
    )


@cli.command()
@click.option("--register", is_flag=True, help="Register new drives (unmonitored).")
@click.pass_context
def detect(ctx: click.Context, register: bool) -> None:
    """Detect attached drives."""
    service = _service(ctx)
    try:
        if register:
            summary = service.registry.detect_and_register(monitor_new_by_default=False)
            click.echo(json.dumps(summary.to_dict(), indent=2))
            return

        for info in service.prober.enumerate():
            click.echo(f"{info.path}\t{info.model}\t{info.serial}\t{info.capacity_gb} GB")
    finally:
        service.close()


@cli.command()
@click.argument("model")
@click.option("--serial", default=None, help="Serial number, to tell identical drives apart.")
@click.pass_context
def tbw(ctx: click.Context, model: str, serial: Optional[str]) -> None:
    """Read the current TBW of a drive, in GB."""
    service = _service(ctx)
    try:
        reading = service.prober.read_cumulative_writes(model, serial)
    finally:
        service.close()
    if isinstance(reading, Unavailable):
        click.echo(f"Unavailable: {reading.reason}", err=True)
        sys.exit(1)
    click.echo(reading)


@cli.command()
@click.pass_context
def tick(ctx: click.Context) -> None:
    """Run a single scheduling pass."""
    service = _service(ctx)
    try:
        service.scheduler.initialize()
        outcome = service.scheduler.run_tick()
        click.echo(outcome.value)
    finally:
        service.close()


@cli.command("show-config")
@click.pass_context
def show_config(ctx: click.Context) -> None:
    """Print the effective configuration."""
    click.echo(yaml.safe_dump(dump_config(ctx.obj["config"]), sort_keys=False))


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
