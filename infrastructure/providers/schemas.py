from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from domain.models.rates import RateCandidate, RateQuoteSet, normalize_currency


class ExchangeRatePayload(BaseModel):
	base: str = Field(..., min_length=1)
	target: str = Field(..., min_length=1)
	rate: float = Field(..., gt=0)
	rate_type: str
	source: str
	as_of: datetime
	fetched_at: datetime

	@field_validator('base', 'target', 'rate_type', 'source')
	@classmethod
	def uppercase(cls, v: str):
		return v.strip().upper()

	def to_domain(self) -> RateCandidate:
		return RateCandidate(
			base=self.base,
			target=self.target,
			rate=self.rate,
			rate_type=self.rate_type,
			source=self.source,
			as_of=self.as_of,
			fetched_at=self.fetched_at,
		)


class ExchangeRatePage(BaseModel):
	results: list[ExchangeRatePayload] | None = None
	total: int = 0

	def to_domain(self) -> RateQuoteSet:
		candidates = tuple(r.to_domain() for r in self.results or [])
		return RateQuoteSet(candidates=candidates, total=self.total or len(candidates))


class CurrenciesPayload(BaseModel):
	results: list[str] | None = None

	def to_domain(self) -> list[str]:
		return [normalize_currency(code) for code in self.results or []]
