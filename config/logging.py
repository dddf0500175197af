import logging
import sys

_CONSOLE_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s'
_DATE_FORMAT = '%H:%M:%S'

_NOISY_LOGGERS = ('httpx', 'httpcore', 'telegram', 'uvicorn.access')


def setup_logging(level: str = 'INFO') -> None:
	"""Configure the root logger with a single console handler."""
	root_logger = logging.getLogger()
	root_logger.handlers.clear()
	root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

	console_handler = logging.StreamHandler(sys.stdout)
	console_handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT, datefmt=_DATE_FORMAT))
	root_logger.addHandler(console_handler)

	for name in _NOISY_LOGGERS:
		logging.getLogger(name).setLevel(logging.WARNING)
