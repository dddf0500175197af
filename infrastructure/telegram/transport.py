import logging
from collections.abc import Sequence

from telegram import Bot, InlineQueryResultArticle, InputTextMessageContent, Update
from telegram.error import TelegramError

from application.messages import InlineArticle
from domain.exceptions.errors import TransportError, TransportRegistrationError
from domain.models.events import CommandMessage, InboundEvent, InlineQuery

logger = logging.getLogger(__name__)

INLINE_CACHE_SECONDS = 5


def to_inbound_event(update: Update) -> InboundEvent | None:
	"""Convert a Telegram update into an inbound event, or None when unsupported."""
	if update.inline_query is not None:
		query = update.inline_query
		language = query.from_user.language_code if query.from_user else None
		return InlineQuery(query_id=query.id, query=query.query or '', language_code=language)

	message = update.message
	if message is not None and message.text:
		return CommandMessage(chat_id=message.chat_id, text=message.text)

	return None


class TelegramTransport:
	"""Thin async wrapper over the Bot API with errors mapped to domain exceptions."""

	def __init__(self, token: str | None = None, bot: Bot | None = None):
		if bot is None and not token:
			raise ValueError('either a token or a bot is required')
		self.bot = bot or Bot(token=token)

	async def initialize(self) -> None:
		try:
			await self.bot.initialize()
		except TelegramError as e:
			raise TransportError(f'unable to initialize bot: {e}') from e
		logger.info(f'Connected to Telegram as @{self.bot.username}')

	async def shutdown(self) -> None:
		try:
			await self.bot.shutdown()
		except TelegramError as e:
			logger.warning(f'Error while shutting down the bot: {e}')

	async def set_webhook(self, url: str, secret_token: str) -> None:
		try:
			await self.bot.set_webhook(url=url, secret_token=secret_token)
		except TelegramError as e:
			raise TransportRegistrationError(f'unable to set webhook: {e}') from e

	async def delete_webhook(self, drop_pending_updates: bool = False) -> None:
		try:
			await self.bot.delete_webhook(drop_pending_updates=drop_pending_updates)
		except TelegramError as e:
			raise TransportRegistrationError(f'unable to delete webhook: {e}') from e

	async def get_updates(self, offset: int | None, timeout: int) -> tuple[Update, ...]:
		try:
			return await self.bot.get_updates(offset=offset, timeout=timeout)
		except TelegramError as e:
			raise TransportError(f'unable to get updates: {e}') from e

	def parse_update(self, data: dict) -> Update:
		return Update.de_json(data, self.bot)

	async def send_text(self, chat_id: int, text: str) -> None:
		try:
			await self.bot.send_message(chat_id=chat_id, text=text)
		except TelegramError as e:
			raise TransportError(f'unable to send message: {e}') from e

	async def answer_inline(self, query_id: str, articles: Sequence[InlineArticle]) -> None:
		results = [
			InlineQueryResultArticle(
				id=article.id,
				title=article.title,
				description=article.description,
				input_message_content=InputTextMessageContent(article.message),
			)
			for article in articles
		]
		try:
			await self.bot.answer_inline_query(
				query_id,
				results,
				cache_time=INLINE_CACHE_SECONDS,
				is_personal=True,
			)
		except TelegramError as e:
			raise TransportError(f'unable to answer inline query: {e}') from e
