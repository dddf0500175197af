from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from domain.models.events import Locale
from domain.models.rates import CNY, EUR, RUB, TRY, USD, USDT, VES, Currency, RateCandidate

CARACAS_TZ = timezone(timedelta(hours=-4), 'VET')

_CURRENCY_EMOJI = {
	USD: '\U0001F4B5',
	EUR: '\U0001F4B6',
	VES: '\U0001F1FB\U0001F1EA',
	USDT: '\U0001F4B2',
	RUB: '\U0001F1F7\U0001F1FA',
	TRY: '\U0001F1F9\U0001F1F7',
	CNY: '\U0001F1E8\U0001F1F3',
}
_GENERIC_EMOJI = '\U0001F4B1'

_SHORTCUT_LINES = ['• /dolar\tUSD/VES', '• /euro\tEUR/VES', '• /usdt\tUSDT/VES', '• /rublo\tRUB/VES', '• /lira\tTRY/VES', '• /yuan\tCNY/VES']


@dataclass(frozen=True)
class InlineArticle:
	id: str
	title: str
	message: str
	description: str | None = None


def currency_emoji(currency: Currency) -> str:
	return _CURRENCY_EMOJI.get(currency, _GENERIC_EMOJI)


def format_time(value: datetime) -> str:
	if value.tzinfo is None:
		value = value.replace(tzinfo=timezone.utc)
	return value.astimezone(CARACAS_TZ).strftime('%Y-%m-%d %H:%M %Z')


def tabulate(lines: Sequence[str], padding: int = 2) -> str:
	"""Align tab-separated cells; the last cell of a line is never padded."""
	rows = [line.split('\t') for line in lines]
	widths: dict[int, int] = {}
	for row in rows:
		for index, cell in enumerate(row[:-1]):
			widths[index] = max(widths.get(index, 0), len(cell))

	aligned = []
	for row in rows:
		cells = [cell.ljust(widths[index] + padding) for index, cell in enumerate(row[:-1])]
		aligned.append(''.join(cells) + row[-1])
	return '\n'.join(aligned)


def format_rate(rate: RateCandidate, locale: Locale) -> str:
	header = f'{currency_emoji(rate.base)} {rate.base} → {rate.target}\n\n'

	if locale is Locale.EN:
		details = [f'Rate:\t{rate.rate:.4f}', f'Source:\t{rate.source}', f'Type:\t{rate.rate_type}']
		times = [f'📅 As of:\t{format_time(rate.as_of)}', f'🔄 Fetched:\t{format_time(rate.fetched_at)}']
	else:
		details = [f'Tasa:\t{rate.rate:.4f}', f'Fuente:\t{rate.source}', f'Tipo:\t{rate.rate_type}']
		times = [f'📅 Fecha:\t{format_time(rate.as_of)}', f'🔄 Actualizado:\t{format_time(rate.fetched_at)}']

	return header + tabulate(details) + '\n\n' + tabulate(times)


def format_rates(rates: Sequence[RateCandidate], locale: Locale) -> str:
	if not rates:
		return 'No rates found' if locale is Locale.EN else 'No se encontraron tasas'

	base = rates[0].base
	if locale is Locale.EN:
		header = f'{currency_emoji(base)} Rates for {base}\n\n'
		columns = 'Target\tRate\tSource\tType'
		footer = f'\n📅 As of: {format_time(rates[0].as_of)}'
	else:
		header = f'{currency_emoji(base)} Tasas de {base}\n\n'
		columns = 'Destino\tTasa\tFuente\tTipo'
		footer = f'\n📅 Fecha: {format_time(rates[0].as_of)}'

	lines = [columns] + [f'{r.target}\t{r.rate:.4f}\t{r.source}\t{r.rate_type}' for r in rates]
	return header + tabulate(lines) + footer


def format_currencies(currencies: Sequence[Currency], locale: Locale) -> str:
	if locale is Locale.EN:
		header, columns = '💱 Supported currencies\n\n', 'Currency\tEmoji'
	else:
		header, columns = '💱 Monedas soportadas\n\n', 'Moneda\tEmoji'

	lines = [columns] + [f'{currency}\t{currency_emoji(currency)}' for currency in currencies]
	return header + tabulate(lines)


def start_message(locale: Locale) -> str:
	if locale is Locale.EN:
		return (
			'👋 Hello!\n\n'
			'I provide real-time exchange rates for VES (Venezuelan Bolivar).\n\n'
			'Quick commands:\n'
			+ tabulate(['• /dolar\tUSD/VES rate', '• /euro\tEUR/VES rate', '• /usdt\tUSDT/VES rate'])
			+ '\n\nMore options:\n'
			+ tabulate([
				'• /rate <base> [target]\tGet a specific rate',
				'• /rates <base>\tAll rates for a currency',
				'• /currencies\tList available currencies',
			])
			+ '\n\nType /help to see all commands.'
		)

	return (
		'👋 ¡Hola!\n\n'
		'Ofrezco tasas de cambio en tiempo real para VES (Bolívar venezolano).\n\n'
		'Comandos rápidos:\n'
		+ tabulate(['• /dolar\tTasa USD/VES', '• /euro\tTasa EUR/VES', '• /usdt\tTasa USDT/VES'])
		+ '\n\nMás opciones:\n'
		+ tabulate([
			'• /tasa <base> [destino]\tObtener una tasa específica',
			'• /tasas <base>\tTodas las tasas de una moneda',
			'• /monedas\tListar monedas disponibles',
		])
		+ '\n\nEscribe /ayuda para ver todos los comandos.'
	)


def help_message(locale: Locale) -> str:
	if locale is Locale.EN:
		return (
			'📖 ChiguiCifras Commands\n\n'
			'Rate queries:\n'
			+ tabulate([
				'• /rate <base> [target]\tGet an exchange rate',
				'• /rates <base>\tList all rates for a currency',
				'• /currencies\tList available currencies',
			])
			+ '\n\nVES shortcuts:\n'
			+ tabulate(_SHORTCUT_LINES)
			+ '\n\nExamples:\n'
			+ '• /rate USD VES'
		)

	return (
		'📖 Comandos de ChiguiCifras\n\n'
		'Consultas de tasas:\n'
		+ tabulate([
			'• /tasa <base> [destino]\tObtener una tasa de cambio',
			'• /tasas <base>\tListar todas las tasas de una moneda',
			'• /monedas\tListar monedas disponibles',
		])
		+ '\n\nAtajos VES:\n'
		+ tabulate(_SHORTCUT_LINES)
		+ '\n\nEjemplos:\n'
		+ '• /tasa USD VES'
	)


def error_message(error: Exception, locale: Locale) -> str:
	# Same copy in both locales; only the error's own message is shown.
	return f'❌ Error: {error}'


def invalid_usage_message(usage: str, locale: Locale) -> str:
	if locale is Locale.EN:
		return f'❌ Invalid usage.\n\nUsage: {usage}'
	return f'❌ Uso inválido.\n\nUso: {usage}'


def no_rates_message(locale: Locale, base: Currency, target: Currency | None = None) -> str:
	pair = f'{base}/{target}' if target else base
	if locale is Locale.EN:
		return f'No rates found for {pair}'
	return f'No se encontraron tasas para {pair}'


def inline_result_id(title: str) -> str:
	return title.lower().replace('/', '-')


def inline_rate_article(rate: RateCandidate, locale: Locale) -> InlineArticle:
	title = f'{rate.base}/{rate.target}'
	return InlineArticle(
		id=inline_result_id(title),
		title=title,
		description=f'{rate.rate:.4f} ({rate.source}, {rate.rate_type})',
		message=format_rate(rate, locale),
	)


def inline_help_article(locale: Locale) -> InlineArticle:
	if locale is Locale.EN:
		return InlineArticle(
			id='help',
			title='Help',
			description='Type: USD VES (default target VES)',
			message='Use: USD VES or just USD',
		)
	return InlineArticle(
		id='help',
		title='Ayuda',
		description='Escribe: USD VES (destino VES por defecto)',
		message='Usa: USD VES o solo USD',
	)


def inline_empty_article(locale: Locale, base: Currency, target: Currency) -> InlineArticle:
	title = 'No results' if locale is Locale.EN else 'Sin resultados'
	return InlineArticle(id='empty', title=title, message=no_rates_message(locale, base, target))


def inline_error_article(locale: Locale) -> InlineArticle:
	message = 'Unable to fetch the rate' if locale is Locale.EN else 'No se pudo obtener la tasa'
	return InlineArticle(id='error', title='Error', message=message)
