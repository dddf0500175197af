import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Protocol

from application import messages
from application.messages import InlineArticle
from application.services.command_router import CommandRouter
from domain.exceptions.errors import TransportError, UpstreamError, UsageError
from domain.models.events import Command, InboundEvent, Route
from domain.models.rates import SETTLEMENT_CURRENCY, Currency, RateQuoteSet, normalize_currency
from domain.services.rate_resolver import select_preferred

logger = logging.getLogger(__name__)


class RateSource(Protocol):
	async def query_pair(self, base: Currency, target: Currency) -> RateQuoteSet: ...

	async def query_all_for_base(self, base: Currency) -> RateQuoteSet: ...

	async def list_currencies(self) -> list[Currency]: ...


class ReplyTransport(Protocol):
	async def send_text(self, chat_id: int, text: str) -> None: ...

	async def answer_inline(self, query_id: str, articles: Sequence[InlineArticle]) -> None: ...


class RateBotHandler:
	"""
	Handles one inbound event end to end: route, query upstream, pick, reply.

	Holds no per-event state, so events can be handled concurrently.
	Upstream and usage failures become locale-matched replies.
	"""

	def __init__(self, router: CommandRouter, rates: RateSource, transport: ReplyTransport):
		self.router = router
		self.rates = rates
		self.transport = transport
		self._handlers: dict[Command, Callable[[Route], Awaitable[None]]] = {
			Command.START: self._start,
			Command.HELP: self._help,
			Command.RATE: self._rate,
			Command.RATES: self._rates,
			Command.CURRENCIES: self._currencies,
			Command.INLINE_RATE: self._inline_rate,
			Command.INLINE_HELP: self._inline_help,
			Command.UNKNOWN: self._default,
		}

	async def handle(self, event: InboundEvent) -> None:
		try:
			route = self.router.route(event)
		except UsageError as e:
			await self._reply(event, messages.invalid_usage_message(e.usage, e.locale))
			return

		logger.debug(f'Dispatching {route.command.value} args={route.args} locale={route.locale.value}')
		await self._handlers[route.command](route)

	async def _start(self, route: Route) -> None:
		await self._reply(route.event, messages.start_message(route.locale))

	async def _help(self, route: Route) -> None:
		await self._reply(route.event, messages.help_message(route.locale))

	async def _rate(self, route: Route) -> None:
		base = normalize_currency(route.args[0])
		target = normalize_currency(route.args[1]) if len(route.args) > 1 else SETTLEMENT_CURRENCY

		try:
			quotes = await self.rates.query_pair(base, target)
		except UpstreamError as e:
			logger.warning(f'Rate query {base}/{target} failed: {e}')
			await self._reply(route.event, messages.error_message(e, route.locale))
			return

		rate = select_preferred(quotes)
		if rate is None:
			await self._reply(route.event, messages.no_rates_message(route.locale, base, target))
			return

		await self._reply(route.event, messages.format_rate(rate, route.locale))

	async def _rates(self, route: Route) -> None:
		base = normalize_currency(route.args[0])

		try:
			quotes = await self.rates.query_all_for_base(base)
		except UpstreamError as e:
			logger.warning(f'Rates query for {base} failed: {e}')
			await self._reply(route.event, messages.error_message(e, route.locale))
			return

		if len(quotes) == 0:
			await self._reply(route.event, messages.no_rates_message(route.locale, base))
			return

		await self._reply(route.event, messages.format_rates(quotes.candidates, route.locale))

	async def _currencies(self, route: Route) -> None:
		try:
			currencies = await self.rates.list_currencies()
		except UpstreamError as e:
			logger.warning(f'Currency list query failed: {e}')
			await self._reply(route.event, messages.error_message(e, route.locale))
			return

		await self._reply(route.event, messages.format_currencies(currencies, route.locale))

	async def _inline_help(self, route: Route) -> None:
		await self._answer(route, messages.inline_help_article(route.locale))

	async def _inline_rate(self, route: Route) -> None:
		base, target = route.args

		try:
			quotes = await self.rates.query_pair(base, target)
		except UpstreamError as e:
			logger.warning(f'Inline rate query {base}/{target} failed: {e}')
			await self._answer(route, messages.inline_error_article(route.locale))
			return

		rate = select_preferred(quotes)
		if rate is None:
			await self._answer(route, messages.inline_empty_article(route.locale, base, target))
			return

		await self._answer(route, messages.inline_rate_article(rate, route.locale))

	async def _default(self, route: Route) -> None:
		logger.debug('Ignoring message without a recognised command')

	async def _reply(self, event: InboundEvent, text: str) -> None:
		if event.kind != 'message':
			return
		try:
			await self.transport.send_text(event.chat_id, text)
		except TransportError as e:
			logger.error(f'Failed to send reply to chat {event.chat_id}: {e}')

	async def _answer(self, route: Route, article: InlineArticle) -> None:
		if route.event.kind != 'inline_query':
			return
		try:
			await self.transport.answer_inline(route.event.query_id, [article])
		except TransportError as e:
			logger.error(f'Failed to answer inline query {route.event.query_id}: {e}')
