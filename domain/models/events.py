from dataclasses import dataclass, field
from enum import Enum
from typing import Literal


class Locale(str, Enum):
	EN = 'en'
	ES = 'es'


class Command(str, Enum):
	START = 'start'
	HELP = 'help'
	RATE = 'rate'
	RATES = 'rates'
	CURRENCIES = 'currencies'
	INLINE_RATE = 'inline_rate'
	INLINE_HELP = 'inline_help'
	UNKNOWN = 'unknown'


class RunMode(str, Enum):
	WEBHOOK = 'webhook'
	POLLING = 'polling'


@dataclass(frozen=True)
class CommandMessage:
	chat_id: int
	text: str
	kind: Literal['message'] = field(default='message', init=False)


@dataclass(frozen=True)
class InlineQuery:
	query_id: str
	query: str
	language_code: str | None = None
	kind: Literal['inline_query'] = field(default='inline_query', init=False)


InboundEvent = CommandMessage | InlineQuery


@dataclass(frozen=True)
class Route:
	command: Command
	args: tuple[str, ...]
	locale: Locale
	event: InboundEvent
