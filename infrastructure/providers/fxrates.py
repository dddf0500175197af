import logging
from datetime import timedelta
from typing import TypeVar

import httpx
from pydantic import BaseModel

from domain.exceptions.errors import UpstreamError
from domain.models.rates import Currency, RateQuoteSet, normalize_currency
from infrastructure.providers.schemas import CurrenciesPayload, ExchangeRatePage

logger = logging.getLogger(__name__)

PayloadT = TypeVar('PayloadT', bound=BaseModel)


class FXRatesClient:
	"""Read-only client for the fxrates API. No retries, one timeout per call."""

	def __init__(
		self,
		base_url: str,
		timeout: timedelta | float = 10,
		client: httpx.AsyncClient | None = None,
	):
		self.base_url = base_url.rstrip('/')
		self.timeout = timeout.total_seconds() if isinstance(timeout, timedelta) else float(timeout)
		self._client = client or httpx.AsyncClient(
			timeout=httpx.Timeout(self.timeout),
			headers={'accept': 'application/json'},
		)

	async def _get(self, path: str) -> httpx.Response:
		url = f'{self.base_url}{path}'
		try:
			return await self._client.get(url)
		except httpx.TimeoutException as e:
			logger.error(f'fxrates request to {path} timed out after {self.timeout:g}s')
			raise UpstreamError(f'request timed out after {self.timeout:g}s') from e
		except httpx.RequestError as e:
			logger.error(f'fxrates request to {path} failed: {e.__class__.__name__}')
			raise UpstreamError(f'unable to execute request: {e.__class__.__name__}') from e
		except httpx.InvalidURL as e:
			logger.error(f'fxrates request path {path!r} is not a valid url: {e}')
			raise UpstreamError('unable to parse url') from e

	async def _request(self, path: str, model: type[PayloadT]) -> PayloadT:
		response = await self._get(path)

		if response.status_code != httpx.codes.OK:
			logger.error(f'fxrates {path} returned HTTP {response.status_code}')
			raise UpstreamError(f'unexpected status code: {response.status_code}')

		try:
			return model.model_validate(response.json())
		except ValueError as e:
			logger.error(f'fxrates {path} returned an undecodable payload: {e}')
			raise UpstreamError('unable to decode response') from e

	async def query_pair(self, base: Currency, target: Currency) -> RateQuoteSet:
		path = f'/v1/rates/{normalize_currency(base)}/{normalize_currency(target)}'
		page = await self._request(path, ExchangeRatePage)
		return page.to_domain()

	async def query_all_for_base(self, base: Currency) -> RateQuoteSet:
		page = await self._request(f'/v1/rates/{normalize_currency(base)}', ExchangeRatePage)
		return page.to_domain()

	async def list_currencies(self) -> list[Currency]:
		payload = await self._request('/v1/currencies', CurrenciesPayload)
		return payload.to_domain()

	async def health(self) -> None:
		response = await self._get('/health')
		if response.status_code != httpx.codes.OK:
			raise UpstreamError(f'unhealthy status code: {response.status_code}')

	async def close(self) -> None:
		await self._client.aclose()
