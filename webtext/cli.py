"""
Entrypoint: load .env and config, init logging, run one command.
"""

from pathlib import Path
from typing import Optional

import structlog
import typer
from dotenv import find_dotenv, load_dotenv

from .config import Config
from .errors import WebtextError
from .fetcher import fetch_url_content
from .log import configure_logging
from .url_utils import is_valid_url, sanitize_and_clip_url, validate_url

logger = structlog.get_logger(__name__)

DEFAULT_MAX_NAME_LENGTH = 100

cli = typer.Typer(help="webtext - fetch web pages as readable text")


@cli.callback()
def main(
    ctx: typer.Context,
    config_path: Optional[Path] = typer.Option(
        None, "--config", help="Path to a config.yaml (default: packaged config)"
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Override the configured log level"
    ),
):
    load_dotenv(find_dotenv(usecwd=True))

    try:
        config = Config(config_path)
    except (FileNotFoundError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    log_config = config.logging
    configure_logging(
        level=log_level or log_config.get('level', 'INFO'),
        fmt=log_config.get('format', 'json'),
    )
    ctx.obj = config


@cli.command("fetch", help="Fetch a URL and print or save its text")
def fetch(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="URL to fetch"),
    output_dir: Optional[Path] = typer.Option(
        None, "--output-dir", "-o", help="Write the text to a file named after the URL"
    ),
    max_name_length: Optional[int] = typer.Option(
        None, "--max-name-length", min=1, help="Clip the file name to this many characters"
    ),
):
    config: Config = ctx.obj

    if not is_valid_url(url):
        typer.echo(f"Error: invalid URL: {url}", err=True)
        raise typer.Exit(1)

    try:
        text = fetch_url_content(url, config)
    except WebtextError as e:
        logger.error("fetch_command_failed", url=url, error=str(e))
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if output_dir is None:
        typer.echo(text)
        return

    if max_name_length is None:
        max_name_length = config.output.get('max_name_length', DEFAULT_MAX_NAME_LENGTH)

    path = output_dir / f"{sanitize_and_clip_url(url, max_name_length)}.txt"
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    except OSError as e:
        logger.error("content_save_failed", url=url, path=str(path), error=str(e))
        typer.echo(f"Error: cannot write {path}: {e}", err=True)
        raise typer.Exit(1)
    logger.info("content_saved", url=url, path=str(path), chars=len(text))
    typer.echo(str(path))


@cli.command("validate", help="Check that a URL is a fetchable web page")
def validate(
    url: str = typer.Argument(..., help="URL to check"),
    probe: bool = typer.Option(
        False, "--probe", help="Send a HEAD request and require an HTML content type"
    ),
):
    result = validate_url(url, probe=probe)
    status = "valid" if result['valid'] else "invalid"
    typer.echo(f"{status}: {result['reason']}")
    if not result['valid']:
        raise typer.Exit(1)


@cli.command("sanitize", help="Print the file-safe name for a URL")
def sanitize(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="URL to sanitize"),
    max_length: Optional[int] = typer.Option(
        None, "--max-length", min=0, help="Clip the name to this many characters"
    ),
):
    config: Config = ctx.obj
    if max_length is None:
        max_length = config.output.get('max_name_length', DEFAULT_MAX_NAME_LENGTH)
    typer.echo(sanitize_and_clip_url(url, max_length))


if __name__ == "__main__":
    cli()
