"""Integration-test fixtures.

The app runs in-process through httpx's ASGITransport, which does not fire
the lifespan, so nothing connects to an RPC node or Redis. Each test gets
a fresh Container behind ``app.dependency_overrides[get_container]``: the
listing stack (service, store, state engine, scheduler) is real; the chain
repository, action service and referral ledger are mocks.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.container import Container, get_container
from src.lp_common.enums import PricingModel
from src.lp_listing.application.scheduler import RefreshScheduler
from src.lp_listing.application.service import ListingApplicationService
from src.lp_listing.application.store import ListingStore
from src.lp_listing.domain.models import (
    Caller,
    Listing,
    ListingFetchResult,
    ScanResult,
    TokenInfo,
)
from src.lp_listing.domain.state import ListingStateEngine
from src.main import app

NOW = 1_700_000_000
E18 = 10**18
SELLER = "0x" + "11" * 20
BUYER = "0x" + "22" * 20


def make_listing(listing_id: int, **kwargs) -> Listing:
    defaults = dict(
        id=listing_id,
        model=PricingModel.FIXED_PRICE,
        seller=SELLER,
        token=TokenInfo(
            address=f"0x{listing_id + 0xA0:040x}",
            name=f"Token {listing_id}",
            symbol=f"TK{listing_id}",
            decimals=18,
            total_supply_raw=1000 * E18,
        ),
        payment_token=TokenInfo(address="0x" + "55" * 20, name="USD Coin", symbol="USDC", decimals=6),
        initial_amount_raw=100 * E18,
        sold_amount_raw=40 * E18,
        active=True,
        end_time=NOW + 3600,
        price_per_share_raw=2 * E18,
    )
    defaults.update(kwargs)
    return Listing(**defaults)


def make_scan() -> ScanResult:
    listings = [
        make_listing(0),
        make_listing(1, price_per_share_raw=5 * E18),
        make_listing(2, end_time=NOW - 1),
    ]
    return ScanResult(
        results=[ListingFetchResult(listing.id, listing=listing) for listing in listings],
        caller=Caller(),
        fetched_at=NOW,
    )


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def repo() -> MagicMock:
    r = MagicMock()
    r.scan = AsyncMock(return_value=make_scan())
    r.fetch_one = AsyncMock()
    return r


@pytest.fixture
def listing_factory():
    return make_listing


@pytest.fixture
def container(repo) -> Container:
    listings = ListingApplicationService(repo, ListingStore(ListingStateEngine(), clock=lambda: NOW))
    gateway = MagicMock()
    gateway.signer_address = AsyncMock(return_value=BUYER)
    actions = MagicMock()
    actions.dispatch = AsyncMock()
    actions.list_token = AsyncMock()
    ledger = MagicMock()
    ledger.cached_codes = AsyncMock(return_value=[])
    c = Container(
        gateway=gateway,
        listings=listings,
        scheduler=RefreshScheduler(listings.refresh, 3600),
        ledger=ledger,
        actions=actions,
    )
    app.dependency_overrides[get_container] = lambda: c
    yield c
    app.dependency_overrides.pop(get_container, None)
