import re
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from domain.exceptions.errors import UsageError
from domain.models.events import Command, CommandMessage, InboundEvent, InlineQuery, Locale, Route
from domain.models.rates import CNY, EUR, RUB, SETTLEMENT_CURRENCY, TRY, USD, USDT, Currency

_INLINE_SEPARATORS = re.compile(r'[/-]')


@dataclass(frozen=True)
class CommandAlias:
	command: Command
	locale: Locale
	# Shortcut commands carry their base currency and ignore user arguments
	base: Currency | None = None


@dataclass(frozen=True)
class CommandTable:
	aliases: Mapping[str, CommandAlias]
	usage_args: Mapping[tuple[Command, Locale], str]

	def alias_for(self, command: Command, locale: Locale) -> str | None:
		for name, alias in self.aliases.items():
			if alias.command is command and alias.locale is locale and alias.base is None:
				return name
		return None


def build_command_table() -> CommandTable:
	"""Build the immutable alias table used by the router."""
	aliases = {
		'/start': CommandAlias(Command.START, Locale.EN),
		'/inicio': CommandAlias(Command.START, Locale.ES),
		'/help': CommandAlias(Command.HELP, Locale.EN),
		'/ayuda': CommandAlias(Command.HELP, Locale.ES),
		'/rate': CommandAlias(Command.RATE, Locale.EN),
		'/tasa': CommandAlias(Command.RATE, Locale.ES),
		'/rates': CommandAlias(Command.RATES, Locale.EN),
		'/tasas': CommandAlias(Command.RATES, Locale.ES),
		'/currencies': CommandAlias(Command.CURRENCIES, Locale.EN),
		'/monedas': CommandAlias(Command.CURRENCIES, Locale.ES),
		# Settlement shortcuts
		'/dolar': CommandAlias(Command.RATE, Locale.ES, base=USD),
		'/euro': CommandAlias(Command.RATE, Locale.ES, base=EUR),
		'/usdt': CommandAlias(Command.RATE, Locale.ES, base=USDT),
		'/rublo': CommandAlias(Command.RATE, Locale.ES, base=RUB),
		'/lira': CommandAlias(Command.RATE, Locale.ES, base=TRY),
		'/yuan': CommandAlias(Command.RATE, Locale.ES, base=CNY),
	}
	usage_args = {
		(Command.RATE, Locale.EN): '<base> [target]',
		(Command.RATE, Locale.ES): '<base> [destino]',
		(Command.RATES, Locale.EN): '<base>',
		(Command.RATES, Locale.ES): '<base>',
	}
	return CommandTable(aliases=MappingProxyType(aliases), usage_args=MappingProxyType(usage_args))


def command_name(text: str) -> str:
	parts = text.split()
	if not parts:
		return ''

	name = parts[0].lower()
	at = name.find('@')
	if at != -1:
		name = name[:at]
	return name


def command_args(text: str) -> tuple[str, ...]:
	return tuple(text.split()[1:])


def language_for_inline(language_code: str | None) -> Locale:
	if language_code and language_code.lower().startswith('en'):
		return Locale.EN
	return Locale.ES


def parse_inline_query(query: str) -> tuple[Currency, Currency, bool]:
	normalized = query.strip().upper()
	if not normalized:
		return '', '', False

	parts = _INLINE_SEPARATORS.sub(' ', normalized).split()
	if not parts:
		return '', '', False

	base = parts[0]
	target = parts[1] if len(parts) > 1 else SETTLEMENT_CURRENCY
	return base, target, True


class CommandRouter:
	"""Turns inbound events into a command, its arguments and the reply locale."""

	REQUIRES_ARGUMENT = frozenset({Command.RATE, Command.RATES})

	def __init__(self, table: CommandTable):
		self.table = table

	def route(self, event: InboundEvent) -> Route:
		if event.kind == 'message':
			return self._route_message(event)
		if event.kind == 'inline_query':
			return self._route_inline(event)
		raise TypeError(f'unsupported event kind: {event.kind!r}')

	def usage(self, command: Command, locale: Locale) -> str:
		alias = self.table.alias_for(command, locale)
		args = self.table.usage_args.get((command, locale), '')
		return f'{alias} {args}'.strip()

	def _route_message(self, event: CommandMessage) -> Route:
		name = command_name(event.text)
		alias = self.table.aliases.get(name)

		if alias is None:
			return Route(Command.UNKNOWN, command_args(event.text), Locale.ES, event)

		if alias.base is not None:
			return Route(alias.command, (alias.base, SETTLEMENT_CURRENCY), alias.locale, event)

		args = command_args(event.text)
		if alias.command in self.REQUIRES_ARGUMENT and not args:
			raise UsageError(self.usage(alias.command, alias.locale), alias.locale)

		return Route(alias.command, args, alias.locale, event)

	def _route_inline(self, event: InlineQuery) -> Route:
		locale = language_for_inline(event.language_code)
		base, target, ok = parse_inline_query(event.query)
		if not ok:
			return Route(Command.INLINE_HELP, (), locale, event)
		return Route(Command.INLINE_RATE, (base, target), locale, event)
