import asyncio
import contextlib
import logging

import uvicorn
from fastapi import FastAPI

from domain.exceptions.errors import ListenerError, ShutdownError

logger = logging.getLogger(__name__)


class _EmbeddedServer(uvicorn.Server):
	"""uvicorn server that leaves signal handling to the caller's event loop."""

	@contextlib.contextmanager
	def capture_signals(self):
		yield

	def install_signal_handlers(self) -> None:
		pass


class WebhookListener:
	"""Runs the webhook app on uvicorn inside the caller's task group."""

	def __init__(self, app: FastAPI, host: str, port: int):
		self.host = host
		self.port = port
		config = uvicorn.Config(
			app,
			host=host,
			port=port,
			lifespan='off',
			access_log=False,
			log_config=None,
		)
		self.server = _EmbeddedServer(config)
		self._stopped = asyncio.Event()

	async def serve(self) -> None:
		logger.info(f'HTTP listener starting on {self.host}:{self.port}')
		try:
			await self.server.serve()
		except SystemExit as e:
			# uvicorn exits the process when it cannot bind
			raise ListenerError(f'unable to start listener on {self.host}:{self.port}') from e
		finally:
			self._stopped.set()
		logger.info('HTTP listener stopped')

	async def shutdown(self, timeout: float) -> None:
		self.server.should_exit = True
		try:
			await asyncio.wait_for(self._stopped.wait(), timeout)
		except TimeoutError as e:
			self.server.force_exit = True
			raise ShutdownError(f'listener did not stop within {timeout:g}s') from e
