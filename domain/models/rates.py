from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime

Currency = str

VES: Currency = 'VES'
USD: Currency = 'USD'
EUR: Currency = 'EUR'
USDT: Currency = 'USDT'
RUB: Currency = 'RUB'
TRY: Currency = 'TRY'
CNY: Currency = 'CNY'

SETTLEMENT_CURRENCY: Currency = VES

RATE_TYPE_MID = 'MID'
SOURCE_BCV = 'BCV'


def normalize_currency(code: str) -> Currency:
	return code.strip().upper()


@dataclass(frozen=True)
class RateCandidate:
	base: Currency
	target: Currency
	rate: float
	rate_type: str
	source: str
	as_of: datetime
	fetched_at: datetime


@dataclass(frozen=True)
class RateQuoteSet:
	"""Candidates in the order the upstream returned them."""

	candidates: tuple[RateCandidate, ...] = ()
	total: int = 0

	def __iter__(self) -> Iterator[RateCandidate]:
		return iter(self.candidates)

	def __len__(self) -> int:
		return len(self.candidates)

	def __getitem__(self, index: int) -> RateCandidate:
		return self.candidates[index]

	@property
	def base(self) -> Currency | None:
		return self.candidates[0].base if self.candidates else None
