"""ListingRepository: full scan of the marketplace with per-listing isolation.

Scan protocol:
  listingCount() -> for every index, concurrently (bounded by a semaphore):
    detail views (basic + additional + metadata, or getListingDetails +
    metadata on bonding-curve deployments), then token info for the listed
    and payment tokens, then the caller's buyer position.

A failure on one index becomes a ListingFetchResult carrying a
ListingFetchError; the rest of the batch is unaffected. Token info is
fetched once per token per scan and shared across listings.
"""

import asyncio
import logging
from typing import Callable

from config.settings import settings
from src.lp_chain.domain.models import TokenInfo as ChainTokenInfo
from src.lp_chain.domain.models import ZERO_BYTES32
from src.lp_chain.domain.repository import ChainGatewayProtocol
from src.lp_common.address import same_address
from src.lp_common.datetime_utils import now_ts
from src.lp_common.enums import PricingModel
from src.lp_common.errors import ListingFetchError, ListingNotFoundError
from src.lp_listing.domain.models import (
    BuyerPosition,
    Caller,
    Listing,
    ListingFetchResult,
    ListingMetadata,
    ScanResult,
    TokenInfo,
)

logger = logging.getLogger(__name__)

_TokenTasks = dict[str, "asyncio.Future[ChainTokenInfo]"]


def _domain_token(info: ChainTokenInfo) -> TokenInfo:
    return TokenInfo(
        address=info.address,
        name=info.name,
        symbol=info.symbol,
        decimals=info.decimals,
        total_supply_raw=info.total_supply,
    )


class ListingRepository:
    def __init__(
        self,
        gateway: ChainGatewayProtocol,
        model: PricingModel | None = None,
        concurrency: int | None = None,
        clock: Callable[[], int] = now_ts,
    ) -> None:
        self._gateway = gateway
        self._model = model or PricingModel(settings.MARKETPLACE_MODEL)
        self._concurrency = concurrency or settings.FETCH_CONCURRENCY
        self._clock = clock

    async def resolve_caller(self, caller_address: str | None = None) -> Caller:
        address = caller_address or await self._gateway.signer_address()
        if not address:
            return Caller()
        try:
            operator = await self._gateway.owner()
        except Exception as exc:  # advisory only
            logger.warning("Could not read marketplace owner: %s", exc)
            operator = None
        return Caller(address=address, is_operator=same_address(operator, address))

    async def scan(self, caller_address: str | None = None) -> ScanResult:
        count = await self._gateway.listing_count()
        caller = await self.resolve_caller(caller_address)
        semaphore = asyncio.Semaphore(self._concurrency)
        tokens: _TokenTasks = {}

        async def bounded(listing_id: int) -> ListingFetchResult:
            async with semaphore:
                return await self._fetch_result(listing_id, caller.address, tokens)

        results = await asyncio.gather(*(bounded(i) for i in range(count)))
        scan = ScanResult(results=list(results), caller=caller, fetched_at=self._clock())
        if scan.failures:
            logger.warning("Scan loaded %d/%d listings", len(scan.listings), count)
        else:
            logger.info("Scan loaded %d listings", count)
        return scan

    async def fetch_one(self, listing_id: int, caller_address: str | None = None) -> Listing:
        count = await self._gateway.listing_count()
        if not 0 <= listing_id < count:
            raise ListingNotFoundError(listing_id)
        result = await self._fetch_result(listing_id, caller_address, {})
        if result.error is not None:
            raise result.error
        return result.listing

    async def _fetch_result(
        self, listing_id: int, caller_address: str | None, tokens: _TokenTasks
    ) -> ListingFetchResult:
        try:
            if self._model == PricingModel.BONDING_CURVE:
                listing = await self._fetch_bonding(listing_id, caller_address, tokens)
            else:
                listing = await self._fetch_fixed(listing_id, caller_address, tokens)
        except Exception as exc:
            error = ListingFetchError(listing_id, str(exc) or type(exc).__name__)
            logger.warning("%s", error.message)
            return ListingFetchResult(listing_id, error=error)
        return ListingFetchResult(listing_id, listing=listing)

    async def _token(self, address: str, tokens: _TokenTasks) -> TokenInfo:
        key = address.lower()
        task = tokens.get(key)
        if task is None:
            task = asyncio.ensure_future(self._gateway.token_info(address))
            tokens[key] = task
        return _domain_token(await task)

    async def _position(self, listing_id: int, caller_address: str | None) -> BuyerPosition | None:
        if not caller_address:
            return None
        info = await self._gateway.buyer_info(listing_id, caller_address)
        return BuyerPosition(
            total_paid_raw=info.total_paid,
            refunded=info.refunded,
            locked_tokens_raw=info.locked_tokens,
        )

    async def _fetch_fixed(
        self, listing_id: int, caller_address: str | None, tokens: _TokenTasks
    ) -> Listing:
        basic, additional, metadata = await asyncio.gather(
            self._gateway.basic_details(listing_id),
            self._gateway.additional_details(listing_id),
            self._gateway.metadata(listing_id),
        )
        token, payment, position = await asyncio.gather(
            self._token(basic.token_address, tokens),
            self._token(basic.payment_token, tokens),
            self._position(listing_id, caller_address),
        )
        return Listing(
            id=listing_id,
            model=PricingModel.FIXED_PRICE,
            seller=basic.seller,
            token=token,
            payment_token=payment,
            initial_amount_raw=additional.initial_amount,
            sold_amount_raw=basic.sold_amount,
            remaining_amount_raw=basic.amount,
            active=additional.active,
            end_time=additional.end_time,
            price_per_share_raw=basic.price_per_share,
            referral_active=additional.referral_active,
            referral_percent=additional.referral_percent,
            referral_code=None if additional.referral_code == ZERO_BYTES32 else additional.referral_code,
            metadata=ListingMetadata(**metadata.model_dump()),
            buyer=position,
        )

    async def _fetch_bonding(
        self, listing_id: int, caller_address: str | None, tokens: _TokenTasks
    ) -> Listing:
        details, metadata = await asyncio.gather(
            self._gateway.bonding_details(listing_id),
            self._gateway.metadata(listing_id),
        )
        token, payment, position = await asyncio.gather(
            self._token(details.token_address, tokens),
            self._token(details.payment_token, tokens),
            self._position(listing_id, caller_address),
        )
        return Listing(
            id=listing_id,
            model=PricingModel.BONDING_CURVE,
            seller=details.seller,
            token=token,
            payment_token=payment,
            initial_amount_raw=details.tradable_amount,
            sold_amount_raw=details.sold_amount,
            active=details.active,
            end_time=details.end_time,
            price_initial_raw=details.price_initial,
            current_price_raw=details.current_price,
            fdmc_raw=details.fdmc,
            market_cap_raw=details.market_cap,
            metadata=ListingMetadata(**metadata.model_dump()),
            buyer=position,
        )
