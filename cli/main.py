import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer

from application.lifecycle import Orchestrator
from application.services import CommandRouter, RateBotHandler, build_command_table
from config.logging import setup_logging
from config.settings import Settings, load_settings, render_default_config, validate_settings
from domain.exceptions.errors import ChiguiError, ConfigError
from infrastructure.providers.fxrates import FXRatesClient
from infrastructure.telegram import TelegramTransport

logger = logging.getLogger(__name__)

app = typer.Typer(add_completion=False, help='Chigui exchange-rate Telegram bot')


def build_orchestrator(settings: Settings) -> Orchestrator:
	rates = FXRatesClient(settings.FXRATES_URL, timeout=settings.FXRATES_TIMEOUT)
	transport = TelegramTransport(token=settings.TELEGRAM_TOKEN)
	router = CommandRouter(build_command_table())
	handler = RateBotHandler(router=router, rates=rates, transport=transport)
	return Orchestrator(settings=settings, transport=transport, handler=handler, rates=rates)


@app.command('serve')
def serve(
	config: Optional[Path] = typer.Option(None, '--config', help='Path to the TOML configuration file'),
	listen: Optional[str] = typer.Option(None, '--listen', help='Listen address for webhook mode (host:port)'),
	log_level: str = typer.Option('INFO', '--log-level', help='Logging level'),
):
	"""Run the bot in webhook or polling mode, depending on the configuration."""
	setup_logging(log_level)

	try:
		settings = load_settings(config_path=config, listen_address=listen)
		validate_settings(settings)
	except ConfigError as e:
		typer.secho(f'Configuration error: {e}', fg=typer.colors.RED, err=True)
		raise typer.Exit(code=1)

	orchestrator = build_orchestrator(settings)

	try:
		asyncio.run(orchestrator.run())
	except ChiguiError as e:
		logger.error(f'Bot stopped with an error: {e}')
		raise typer.Exit(code=1)


@app.command('generate')
def generate(
	output_path: str = typer.Option('./config.toml', '--output-path', help='Where to write the TOML configuration'),
):
	"""Write the default configuration as TOML."""
	if not output_path.strip():
		typer.secho('output path not set', fg=typer.colors.RED, err=True)
		raise typer.Exit(code=1)

	try:
		Path(output_path).write_text(render_default_config(), encoding='utf-8')
	except OSError as e:
		typer.secho(f'unable to write output file: {e}', fg=typer.colors.RED, err=True)
		raise typer.Exit(code=1)

	typer.echo(f'Configuration written to {output_path}')


if __name__ == '__main__':
	app()
