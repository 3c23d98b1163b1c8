"""CLI entry point for local-tts."""

import asyncio
import logging
import sys
from typing import Optional

import click

from localtts import __version__

logger = logging.getLogger(__name__)


def _load(config_path: Optional[str], log_level: Optional[str]):
    """Load config and set up logging, exiting on a bad config."""
    from localtts.core.config import AppConfig
    from localtts.core.exceptions import ConfigError
    from localtts.core.logging import setup_logging

    try:
        app_config = AppConfig.load(config_path=config_path)
    except ConfigError as e:
        click.echo(f"Error loading config: {e}", err=True)
        sys.exit(1)

    log_cfg = app_config.logging
    setup_logging(
        level=log_level or log_cfg.get("level", "INFO"),
        log_file=log_cfg.get("file", "localtts.log"),
        log_dir=log_cfg.get("dir"),
    )
    return app_config


async def _call_tool(app_config, name: str, arguments: dict):
    from localtts.server import build_context, shutdown_context
    from localtts.tools import registry

    context = await build_context(app_config)
    try:
        return await registry.execute(name, arguments, context)
    finally:
        await shutdown_context(context)


def _run_tool(app_config, name: str, arguments: dict) -> None:
    result = asyncio.run(_call_tool(app_config, name, arguments))
    click.echo(result.to_text())
    if not result.success:
        sys.exit(1)


config_option = click.option("--config", "-c", "config_path", default=None,
                             help="Path to custom config YAML")
log_level_option = click.option("--log-level", default=None,
                                type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"],
                                                  case_sensitive=False),
                                help="Override the configured log level")


@click.group()
@click.version_option(version=__version__)
def main():
    """local-tts: local text-to-speech over the Model Context Protocol."""
    pass


@main.command()
@config_option
@log_level_option
def serve(config_path, log_level):
    """Run the MCP server on stdio."""
    app_config = _load(config_path, log_level)
    from localtts.server import run_server

    try:
        asyncio.run(run_server(app_config))
    except KeyboardInterrupt:
        pass


@main.command()
@click.argument("text")
@click.option("--voice", "-v", default=None, help="Voice name or id")
@click.option("--engine", "-e", default=None,
              type=click.Choice(["auto", "macos", "kokoro"]), help="TTS engine")
@click.option("--format", "-f", "output_format", default=None,
              type=click.Choice(["wav", "mp3", "m4a", "aiff"]), help="Audio output format")
@click.option("--speed", "-s", default=1.0, type=float, show_default=True,
              help="Speech speed multiplier")
@config_option
@log_level_option
def speak(text, voice, engine, output_format, speed, config_path, log_level):
    """Synthesize TEXT once and print the result."""
    app_config = _load(config_path, log_level)
    arguments = {"text": text, "speed": speed}
    if voice:
        arguments["voice"] = voice
    if engine:
        arguments["engine"] = engine
    if output_format:
        arguments["outputFormat"] = output_format
    _run_tool(app_config, "synthesize_text", arguments)


@main.command()
@click.option("--engine", "-e", default="all",
              type=click.Choice(["all", "macos", "kokoro"]), show_default=True)
@click.option("--language", "-l", default=None, help='Language code, e.g. "en-us"')
@click.option("--gender", "-g", default=None,
              type=click.Choice(["male", "female", "neutral"]))
@config_option
@log_level_option
def voices(engine, language, gender, config_path, log_level):
    """List available voices."""
    app_config = _load(config_path, log_level)
    arguments = {"engine": engine}
    if language:
        arguments["language"] = language
    if gender:
        arguments["gender"] = gender
    _run_tool(app_config, "list_voices", arguments)


@main.command()
@config_option
@log_level_option
def health(config_path, log_level):
    """Check which TTS engines work on this machine."""
    app_config = _load(config_path, log_level)
    _run_tool(app_config, "health_check", {})


if __name__ == "__main__":
    main()
