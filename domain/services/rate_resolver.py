from collections.abc import Sequence

from domain.models.rates import (
	CNY,
	EUR,
	RATE_TYPE_MID,
	RUB,
	SOURCE_BCV,
	TRY,
	USD,
	Currency,
	RateCandidate,
)

# Government-issued bases that prefer the central bank midpoint.
# Must be updated together with the shortcut commands when upstream adds currencies.
FIAT_CURRENCIES: frozenset[Currency] = frozenset({USD, EUR, RUB, TRY, CNY})

AUTHORITATIVE_SOURCE = SOURCE_BCV


def is_fiat(currency: Currency) -> bool:
	return currency in FIAT_CURRENCIES


def select_preferred(candidates: Sequence[RateCandidate]) -> RateCandidate | None:
	"""
	Pick the quote to present for a pair.

	Fiat bases prefer the authoritative MID quote, then any MID quote.
	Everything else falls back to the first candidate in upstream order.
	"""
	if len(candidates) == 0:
		return None

	if len(candidates) == 1:
		return candidates[0]

	if is_fiat(candidates[0].base):
		for candidate in candidates:
			if candidate.source == AUTHORITATIVE_SOURCE and candidate.rate_type == RATE_TYPE_MID:
				return candidate

		for candidate in candidates:
			if candidate.rate_type == RATE_TYPE_MID:
				return candidate

	return candidates[0]
