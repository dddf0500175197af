import re
import tomllib
from datetime import timedelta
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from domain.exceptions.errors import ConfigError
from domain.models.events import RunMode

DEFAULT_LISTEN_ADDRESS = '0.0.0.0:8080'
DEFAULT_FXRATES_URL = 'https://api.ojoporciento.com'
DEFAULT_FXRATES_TIMEOUT = timedelta(seconds=10)

ENV_PREFIX = 'CHIGUI_'

# (section, key) in the TOML file -> settings field
_FILE_FIELDS = {
	(None, 'listen_address'): 'WEBHOOK_LISTEN_ADDR',
	('telegram', 'token'): 'TELEGRAM_TOKEN',
	('telegram', 'webhook_url'): 'WEBHOOK_URL',
	('telegram', 'webhook_secret_token'): 'WEBHOOK_SECRET_TOKEN',
	('fxrates', 'base_url'): 'FXRATES_URL',
	('fxrates', 'timeout'): 'FXRATES_TIMEOUT',
}

_DURATION_PART = re.compile(r'(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)')
_DURATION_UNITS = {
	'ns': 1e-9,
	'us': 1e-6,
	'µs': 1e-6,
	'ms': 1e-3,
	's': 1.0,
	'm': 60.0,
	'h': 3600.0,
}


def _to_timedelta(seconds: float, value: Any) -> timedelta:
	try:
		return timedelta(seconds=seconds)
	except (OverflowError, ValueError) as e:
		# inf, nan and values past timedelta.max
		raise ValueError(f'invalid duration: {value!r}') from e


def parse_duration(value: Any) -> timedelta:
	"""Parse ``10s``, ``1m30s``, ``500ms`` or a plain number of seconds."""
	if isinstance(value, timedelta):
		return value
	if isinstance(value, bool):
		raise ValueError(f'invalid duration: {value!r}')
	if isinstance(value, int | float):
		return _to_timedelta(value, value)
	if not isinstance(value, str):
		raise ValueError(f'invalid duration: {value!r}')

	text = value.strip()
	sign = 1
	if text[:1] in ('+', '-'):
		sign = -1 if text[0] == '-' else 1
		text = text[1:]

	if text == '0':
		return timedelta(0)

	try:
		number = float(text)
	except ValueError:
		number = None
	if number is not None:
		return _to_timedelta(sign * number, value)

	seconds = 0.0
	position = 0
	for match in _DURATION_PART.finditer(text):
		if match.start() != position:
			break
		seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
		position = match.end()

	if position == 0 or position != len(text):
		raise ValueError(f'invalid duration: {value!r}')

	return _to_timedelta(sign * seconds, value)


def format_duration(value: timedelta) -> str:
	milliseconds = round(value.total_seconds() * 1000)
	if milliseconds % 1000 == 0:
		return f'{milliseconds // 1000}s'
	return f'{milliseconds}ms'


def parse_listen_address(address: str) -> tuple[str, int]:
	host, sep, port = address.strip().rpartition(':')
	if not sep:
		raise ValueError(f'missing port in address: {address!r}')

	if host.startswith('[') and host.endswith(']'):
		host = host[1:-1]
	elif ':' in host:
		raise ValueError(f'too many colons in address: {address!r}')

	if not port.isdigit() or int(port) > 65535:
		raise ValueError(f'invalid port in address: {address!r}')

	return host, int(port)


class Settings(BaseSettings):
	# Telegram
	TELEGRAM_TOKEN: str = ''
	WEBHOOK_URL: str = ''
	WEBHOOK_SECRET_TOKEN: str = ''
	WEBHOOK_LISTEN_ADDR: str = DEFAULT_LISTEN_ADDRESS

	# Upstream rates API
	FXRATES_URL: str = DEFAULT_FXRATES_URL
	FXRATES_TIMEOUT: timedelta = DEFAULT_FXRATES_TIMEOUT

	model_config = SettingsConfigDict(
		env_prefix=ENV_PREFIX,
		env_file='.env',
		case_sensitive=False,
		extra='ignore',
		frozen=True,
	)

	@field_validator('FXRATES_TIMEOUT', mode='before')
	@classmethod
	def parse_timeout(cls, v: Any) -> timedelta:
		return parse_duration(v)

	@classmethod
	def settings_customise_sources(
		cls,
		settings_cls: type[BaseSettings],
		init_settings: PydanticBaseSettingsSource,
		env_settings: PydanticBaseSettingsSource,
		dotenv_settings: PydanticBaseSettingsSource,
		file_secret_settings: PydanticBaseSettingsSource,
	) -> tuple[PydanticBaseSettingsSource, ...]:
		# Init values carry the config file, so the environment must win over them.
		return env_settings, dotenv_settings, init_settings, file_secret_settings

	@property
	def run_mode(self) -> RunMode:
		if self.WEBHOOK_URL.strip():
			return RunMode.WEBHOOK
		return RunMode.POLLING

	@property
	def webhook_path(self) -> str:
		return urlsplit(self.WEBHOOK_URL.strip()).path or '/'

	@property
	def listen_host_port(self) -> tuple[str, int]:
		return parse_listen_address(self.WEBHOOK_LISTEN_ADDR)


def read_config_file(path: str | Path) -> dict[str, Any]:
	"""Read a TOML config file and flatten it onto settings field names."""
	try:
		with open(path, 'rb') as f:
			document = tomllib.load(f)
	except (OSError, tomllib.TOMLDecodeError) as e:
		raise ConfigError(f'unable to read server config, {e}') from e

	values: dict[str, Any] = {}
	for (section, key), field_name in _FILE_FIELDS.items():
		table = document if section is None else document.get(section, {})
		if isinstance(table, dict) and key in table:
			values[field_name] = table[key]

	return values


def load_settings(config_path: str | Path | None = None, listen_address: str | None = None) -> Settings:
	"""Defaults, then the config file, then ``.env`` and the environment."""
	file_values = read_config_file(config_path) if config_path else {}

	try:
		settings = Settings(**file_values)
	except ValidationError as e:
		raise ConfigError(f'invalid configuration: {e}') from e

	if listen_address:
		settings = settings.model_copy(update={'WEBHOOK_LISTEN_ADDR': listen_address})

	return settings


def validate_settings(settings: Settings) -> None:
	if not settings.TELEGRAM_TOKEN.strip():
		raise ConfigError('missing telegram token')

	if not settings.WEBHOOK_LISTEN_ADDR.strip():
		raise ConfigError('missing listen address')

	try:
		parse_listen_address(settings.WEBHOOK_LISTEN_ADDR)
	except ValueError as e:
		raise ConfigError(f'invalid listen address: {settings.WEBHOOK_LISTEN_ADDR!r}') from e

	if not settings.FXRATES_URL.strip():
		raise ConfigError('missing fxrates base url')

	fx_url = urlsplit(settings.FXRATES_URL)
	if not fx_url.scheme or not fx_url.netloc:
		raise ConfigError(f'invalid fxrates base url: {settings.FXRATES_URL!r}')

	if fx_url.scheme not in ('http', 'https'):
		raise ConfigError(f'fxrates base url must use http or https: {settings.FXRATES_URL!r}')

	if settings.FXRATES_TIMEOUT <= timedelta(0):
		raise ConfigError('fxrates timeout must be positive')

	if settings.run_mode is RunMode.POLLING:
		return

	webhook_url = urlsplit(settings.WEBHOOK_URL.strip())
	if not webhook_url.scheme or not webhook_url.netloc:
		raise ConfigError(f'invalid webhook url: {settings.WEBHOOK_URL!r}')

	if webhook_url.scheme != 'https':
		raise ConfigError(f'webhook url must use https: {settings.WEBHOOK_URL!r}')

	if not settings.WEBHOOK_SECRET_TOKEN.strip():
		raise ConfigError('missing webhook secret token')


def render_default_config() -> str:
	defaults = Settings.model_construct()
	return (
		f'listen_address = "{defaults.WEBHOOK_LISTEN_ADDR}"\n'
		'\n'
		'[telegram]\n'
		'token = ""\n'
		'webhook_url = ""\n'
		'webhook_secret_token = ""\n'
		'\n'
		'[fxrates]\n'
		f'base_url = "{defaults.FXRATES_URL}"\n'
		f'timeout = "{format_duration(defaults.FXRATES_TIMEOUT)}"\n'
	)
