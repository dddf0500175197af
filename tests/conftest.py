from datetime import datetime, UTC

import pytest

from domain.models.rates import RateCandidate


AS_OF = datetime(2025, 1, 15, 16, 0, tzinfo=UTC)
FETCHED_AT = datetime(2025, 1, 15, 16, 5, tzinfo=UTC)


@pytest.fixture
def make_rate():
    def _make(base='USD', target='VES', rate=52.1234, rate_type='MID', source='BCV'):
        return RateCandidate(
            base=base,
            target=target,
            rate=rate,
            rate_type=rate_type,
            source=source,
            as_of=AS_OF,
            fetched_at=FETCHED_AT,
        )
    return _make
