# nosec B101


from datetime import timedelta
from unittest.mock import AsyncMock, Mock

import httpx
import pytest

from domain.exceptions.errors import UpstreamError
from infrastructure.providers.fxrates import FXRatesClient


BASE_URL = 'https://fx.example.com/'


def _rate(source='BCV', rate_type='MID', target='VES', rate=52.1):
    return {
        'base': 'usd',
        'target': target,
        'rate': rate,
        'rate_type': rate_type,
        'source': source,
        'as_of': '2025-01-15T16:00:00Z',
        'fetched_at': '2025-01-15T16:05:00Z',
    }


def _client_returning(status_code=200, payload=None):
    mock_client = AsyncMock(spec=httpx.AsyncClient)
    mock_response = Mock()
    mock_response.status_code = status_code
    mock_response.json.return_value = payload
    mock_client.get.return_value = mock_response
    return mock_client


@pytest.mark.asyncio
async def test_query_pair_preserves_upstream_order():
    mock_client = _client_returning(payload={
        'results': [_rate(source='YADIO'), _rate(source='BCV')],
        'total': 2,
    })
    client = FXRatesClient(BASE_URL, client=mock_client)

    quotes = await client.query_pair('usd', 'ves')

    mock_client.get.assert_called_once_with('https://fx.example.com/v1/rates/USD/VES')
    assert [q.source for q in quotes] == ['YADIO', 'BCV']
    assert quotes.total == 2
    assert quotes[0].base == 'USD'
    assert quotes[0].as_of.tzinfo is not None


@pytest.mark.asyncio
async def test_query_all_for_base():
    mock_client = _client_returning(payload={
        'results': [_rate(target='VES'), _rate(target='EUR', rate=0.9)],
        'total': 2,
    })
    client = FXRatesClient(BASE_URL, client=mock_client)

    quotes = await client.query_all_for_base('USD')

    mock_client.get.assert_called_once_with('https://fx.example.com/v1/rates/USD')
    assert [q.target for q in quotes] == ['VES', 'EUR']


@pytest.mark.asyncio
async def test_empty_results_is_not_an_error():
    client = FXRatesClient(BASE_URL, client=_client_returning(payload={'results': None, 'total': 0}))

    quotes = await client.query_pair('XYZ', 'VES')

    assert len(quotes) == 0


@pytest.mark.asyncio
async def test_list_currencies():
    client = FXRatesClient(BASE_URL, client=_client_returning(payload={'results': ['usd', 'VES']}))

    assert await client.list_currencies() == ['USD', 'VES']


@pytest.mark.asyncio
async def test_non_200_raises_upstream_error():
    client = FXRatesClient(BASE_URL, client=_client_returning(status_code=500))

    with pytest.raises(UpstreamError) as exc_info:
        await client.query_pair('USD', 'VES')

    assert str(exc_info.value) == 'unexpected status code: 500'


@pytest.mark.asyncio
async def test_undecodable_body_raises_upstream_error():
    mock_client = _client_returning()
    mock_client.get.return_value.json.side_effect = ValueError('Expecting value')
    client = FXRatesClient(BASE_URL, client=mock_client)

    with pytest.raises(UpstreamError) as exc_info:
        await client.query_all_for_base('USD')

    assert str(exc_info.value) == 'unable to decode response'


@pytest.mark.asyncio
async def test_invalid_payload_raises_upstream_error():
    client = FXRatesClient(BASE_URL, client=_client_returning(payload={'results': [{'base': 'USD'}]}))

    with pytest.raises(UpstreamError):
        await client.query_pair('USD', 'VES')


@pytest.mark.asyncio
async def test_timeout_raises_upstream_error():
    mock_client = AsyncMock(spec=httpx.AsyncClient)
    mock_client.get.side_effect = httpx.ReadTimeout('timed out')
    client = FXRatesClient(BASE_URL, timeout=timedelta(seconds=3), client=mock_client)

    with pytest.raises(UpstreamError) as exc_info:
        await client.query_pair('USD', 'VES')

    assert str(exc_info.value) == 'request timed out after 3s'


@pytest.mark.asyncio
async def test_connection_error_raises_upstream_error():
    mock_client = AsyncMock(spec=httpx.AsyncClient)
    mock_client.get.side_effect = httpx.ConnectError('refused')
    client = FXRatesClient(BASE_URL, client=mock_client)

    with pytest.raises(UpstreamError) as exc_info:
        await client.list_currencies()

    assert str(exc_info.value) == 'unable to execute request: ConnectError'


@pytest.mark.asyncio
async def test_health():
    mock_client = _client_returning(status_code=200)
    client = FXRatesClient(BASE_URL, client=mock_client)

    await client.health()

    mock_client.get.assert_called_once_with('https://fx.example.com/health')


@pytest.mark.asyncio
async def test_unhealthy_raises_upstream_error():
    client = FXRatesClient(BASE_URL, client=_client_returning(status_code=503))

    with pytest.raises(UpstreamError):
        await client.health()


@pytest.mark.asyncio
async def test_close_closes_client():
    mock_client = AsyncMock(spec=httpx.AsyncClient)
    client = FXRatesClient(BASE_URL, client=mock_client)

    await client.close()

    mock_client.aclose.assert_awaited_once()


@pytest.mark.asyncio
async def test_invalid_url_raises_upstream_error():
    mock_client = AsyncMock(spec=httpx.AsyncClient)
    mock_client.get.side_effect = httpx.InvalidURL("Invalid non-printable ASCII character in URL, '\\x7f'")
    client = FXRatesClient(BASE_URL, client=mock_client)

    with pytest.raises(UpstreamError) as exc_info:
        await client.query_pair('US\x7fD', 'VES')

    assert str(exc_info.value) == 'unable to parse url'


@pytest.mark.asyncio
async def test_non_printable_currency_code_never_reaches_the_network():
    requests = []
    transport = httpx.MockTransport(lambda request: requests.append(request) or httpx.Response(200))
    client = FXRatesClient(BASE_URL, client=httpx.AsyncClient(transport=transport))

    with pytest.raises(UpstreamError):
        await client.query_all_for_base('US\x7fD')

    assert requests == []
    await client.close()
