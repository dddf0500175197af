import asyncio
import logging
import signal
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

from fastapi import FastAPI

from api.main import create_app
from api.server import WebhookListener
from application.services.rate_bot import RateBotHandler
from config.settings import Settings
from domain.exceptions.errors import TransportError, UpstreamError
from domain.models.events import InboundEvent, RunMode
from infrastructure.providers.fxrates import FXRatesClient
from infrastructure.telegram import TelegramTransport, to_inbound_event

logger = logging.getLogger(__name__)

SHUTDOWN_TIMEOUT = 5.0
POLL_TIMEOUT = 30
POLL_ERROR_DELAY = 1.0

_STOP_SIGNALS = tuple(
	sig for sig in (signal.SIGINT, signal.SIGTERM, getattr(signal, 'SIGQUIT', None)) if sig is not None
)


class Listener(Protocol):
	async def serve(self) -> None: ...

	async def shutdown(self, timeout: float) -> None: ...


ListenerFactory = Callable[[FastAPI, str, int], Listener]


def select_mode(settings: Settings) -> RunMode:
	return settings.run_mode


def _first_error(group: BaseExceptionGroup) -> BaseException:
	exc = group.exceptions[0]
	if isinstance(exc, BaseExceptionGroup):
		return _first_error(exc)
	return exc


async def _until_stopped(stop: asyncio.Event, aw: Awaitable[Any]) -> tuple[bool, Any]:
	"""Await ``aw`` unless ``stop`` is set first; returns (completed, result)."""
	task = asyncio.ensure_future(aw)
	stopper = asyncio.ensure_future(stop.wait())
	try:
		await asyncio.wait({task, stopper}, return_when=asyncio.FIRST_COMPLETED)
	except BaseException:
		task.cancel()
		raise
	finally:
		stopper.cancel()

	if task.done():
		return True, task.result()

	task.cancel()
	await asyncio.wait({task})
	return False, None


class Orchestrator:
	"""
	Owns the process lifecycle: picks webhook or polling mode once, runs the
	long-lived tasks in one task group and stops them all on a signal.

	Every inbound event is handled in its own task. Pending handlers are
	cancelled when the loop that spawned them exits.
	"""

	def __init__(
		self,
		settings: Settings,
		transport: TelegramTransport,
		handler: RateBotHandler,
		rates: FXRatesClient,
		listener_factory: ListenerFactory = WebhookListener,
		poll_timeout: int = POLL_TIMEOUT,
	):
		self.settings = settings
		self.transport = transport
		self.handler = handler
		self.rates = rates
		self.listener_factory = listener_factory
		self.poll_timeout = poll_timeout
		self.mode = select_mode(settings)

	async def run(self, stop: asyncio.Event | None = None) -> None:
		stop = stop or asyncio.Event()
		installed = self._install_signal_handlers(stop)
		logger.info(f'Starting in {self.mode.value} mode')

		try:
			await self.transport.initialize()
			await self._probe_upstream()

			if self.mode is RunMode.WEBHOOK:
				await self._run_webhook(stop)
			else:
				await self._run_polling(stop)
		except BaseExceptionGroup as group:
			raise _first_error(group) from None
		finally:
			self._remove_signal_handlers(installed)
			await self.transport.shutdown()
			await self.rates.close()

		logger.info('Shutdown complete')

	def _install_signal_handlers(self, stop: asyncio.Event) -> list[signal.Signals]:
		loop = asyncio.get_running_loop()
		installed = []
		for sig in _STOP_SIGNALS:
			try:
				loop.add_signal_handler(sig, self._on_signal, sig, stop)
			except (NotImplementedError, RuntimeError):
				# Not supported on this platform or outside the main thread
				continue
			installed.append(sig)
		return installed

	def _remove_signal_handlers(self, installed: list[signal.Signals]) -> None:
		loop = asyncio.get_running_loop()
		for sig in installed:
			loop.remove_signal_handler(sig)

	@staticmethod
	def _on_signal(sig: signal.Signals, stop: asyncio.Event) -> None:
		logger.info(f'Received {sig.name}, shutting down')
		stop.set()

	async def _probe_upstream(self) -> None:
		try:
			await self.rates.health()
		except UpstreamError as e:
			logger.warning(f'fxrates health check failed: {e}')
		else:
			logger.info('fxrates API is healthy')

	async def _run_webhook(self, stop: asyncio.Event) -> None:
		try:
			await self.transport.delete_webhook()
		except TransportError as e:
			logger.warning(f'Could not delete existing webhook: {e}')

		url = self.settings.WEBHOOK_URL.strip()
		await self.transport.set_webhook(url, self.settings.WEBHOOK_SECRET_TOKEN)
		logger.info(f'Webhook registered at {url}')

		events: asyncio.Queue[InboundEvent] = asyncio.Queue()
		app = create_app(self.settings.webhook_path, self.settings.WEBHOOK_SECRET_TOKEN, self.transport, events)
		host, port = self.settings.listen_host_port
		listener = self.listener_factory(app, host, port)

		async with asyncio.TaskGroup() as tg:
			tg.create_task(listener.serve(), name='listener')
			tg.create_task(self._dispatch_loop(events, stop), name='dispatch')
			tg.create_task(self._watch_shutdown(listener, stop), name='shutdown-watcher')

	async def _run_polling(self, stop: asyncio.Event) -> None:
		await self.transport.delete_webhook(drop_pending_updates=True)
		logger.info('Webhook removed, long polling for updates')

		async with asyncio.TaskGroup() as tg:
			tg.create_task(self._poll_loop(stop), name='poll')

	async def _watch_shutdown(self, listener: Listener, stop: asyncio.Event) -> None:
		try:
			await stop.wait()
		finally:
			logger.info('Stopping HTTP listener')
			await listener.shutdown(SHUTDOWN_TIMEOUT)

	async def _dispatch_loop(self, events: asyncio.Queue[InboundEvent], stop: asyncio.Event) -> None:
		inflight: set[asyncio.Task] = set()
		try:
			while not stop.is_set():
				completed, event = await _until_stopped(stop, events.get())
				if not completed:
					break
				self._spawn(event, inflight)
		finally:
			await self._cancel_inflight(inflight)

	async def _poll_loop(self, stop: asyncio.Event) -> None:
		offset: int | None = None
		inflight: set[asyncio.Task] = set()
		try:
			while not stop.is_set():
				try:
					completed, updates = await _until_stopped(
						stop, self.transport.get_updates(offset, self.poll_timeout)
					)
				except TransportError as e:
					logger.warning(f'Polling failed: {e}')
					await _until_stopped(stop, asyncio.sleep(POLL_ERROR_DELAY))
					continue

				if not completed:
					break

				for update in updates:
					offset = update.update_id + 1
					event = to_inbound_event(update)
					if event is not None:
						self._spawn(event, inflight)
		finally:
			await self._cancel_inflight(inflight)

	def _spawn(self, event: InboundEvent, inflight: set[asyncio.Task]) -> None:
		task = asyncio.create_task(self._dispatch(event))
		inflight.add(task)
		task.add_done_callback(inflight.discard)

	async def _dispatch(self, event: InboundEvent) -> None:
		try:
			await self.handler.handle(event)
		except Exception:
			logger.exception(f'Unhandled error while handling {event.kind} event')

	@staticmethod
	async def _cancel_inflight(inflight: set[asyncio.Task]) -> None:
		pending = list(inflight)
		for task in pending:
			task.cancel()
		if pending:
			await asyncio.wait(pending)
