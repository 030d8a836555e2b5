"""ReferralLedger: at most one generateBuyerReferralCode per (listing, wallet).

Lookup order:
  1. Per-wallet in-memory cache (lazily loaded from the store).
  2. Otherwise submit generateBuyerReferralCode, wait for the receipt and
     take the code from its ReferralCodeGenerated event. A confirmed
     receipt without that event is a hard error.
  3. Cache the code (insertion-order eviction at capacity) and persist the
     wallet's map. Persistence is best-effort: a storage failure is logged
     and the freshly generated code is still returned.

Requests for the same (wallet, listing) are serialised so concurrent misses
submit a single generation transaction.
"""

import asyncio
import logging
from dataclasses import dataclass

from config.settings import settings
from src.lp_chain.domain.models import ContractCall, ContractKind
from src.lp_chain.domain.repository import ChainGatewayProtocol
from src.lp_common.enums import ActionKind, PricingModel
from src.lp_common.errors import ReferralEventMissingError, StoragePersistError
from src.lp_referral.domain.cache import ReferralCodeCache
from src.lp_referral.domain.codes import build_referral_link
from src.lp_referral.domain.repository import ReferralStoreProtocol
from src.lp_tx.application.orchestrator import TransactionOrchestrator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReferralOutcome:
    listing_id: int
    code: str
    link: str
    cached: bool
    tx_hash: str | None = None


class ReferralLedger:
    def __init__(
        self,
        gateway: ChainGatewayProtocol,
        orchestrator: TransactionOrchestrator,
        store: ReferralStoreProtocol,
        model: PricingModel = PricingModel.FIXED_PRICE,
        capacity: int | None = None,
        link_origin: str | None = None,
    ) -> None:
        self._gateway = gateway
        self._orchestrator = orchestrator
        self._store = store
        self._model = model
        self._capacity = capacity or settings.REFERRAL_CACHE_CAPACITY
        self._origin = link_origin or settings.REFERRAL_LINK_ORIGIN
        self._caches: dict[str, ReferralCodeCache] = {}
        self._locks: dict[tuple[str, int], asyncio.Lock] = {}

    def link(self, listing_id: int, code: str) -> str:
        return build_referral_link(self._origin, listing_id, code)

    async def cache_for(self, wallet: str) -> ReferralCodeCache:
        key = wallet.lower()
        cache = self._caches.get(key)
        if cache is None:
            stored = await self._store.load(key)
            # Another request for this wallet may have loaded it meanwhile
            cache = self._caches.setdefault(key, ReferralCodeCache.from_dict(stored, self._capacity))
        return cache

    async def cached_codes(self, wallet: str) -> list[ReferralOutcome]:
        cache = await self.cache_for(wallet)
        return [
            ReferralOutcome(listing_id=lid, code=code, link=self.link(lid, code), cached=True)
            for lid, code in cache.items()
        ]

    async def get_or_generate(
        self, listing_id: int, expected_wallet: str | None = None
    ) -> ReferralOutcome:
        wallet = await self._orchestrator.current_signer(expected_wallet)
        key = (wallet.lower(), listing_id)
        async with self._locks.setdefault(key, asyncio.Lock()):
            # Checked under the lock: a concurrent request may have just generated it
            cache = await self.cache_for(wallet)
            code = cache.get(listing_id)
            if code is not None:
                return ReferralOutcome(listing_id, code, self.link(listing_id, code), cached=True)
            return await self._generate(wallet, cache, listing_id)

    async def _generate(
        self, wallet: str, cache: ReferralCodeCache, listing_id: int
    ) -> ReferralOutcome:
        kind = (
            ContractKind.BONDING_CURVE
            if self._model == PricingModel.BONDING_CURVE
            else ContractKind.MARKETPLACE
        )
        call = ContractCall(
            kind, self._gateway.marketplace_address, "generateBuyerReferralCode", (listing_id,)
        )
        receipt = await self._orchestrator.execute(
            ActionKind.GENERATE_REFERRAL, listing_id, call, expected_wallet=wallet
        )
        events = [e for e in self._gateway.referral_events(receipt) if e.listing_id == listing_id]
        if not events:
            raise ReferralEventMissingError(listing_id, receipt.tx_hash)
        code = events[0].code
        logger.info("Generated referral code for listing %s (%s)", listing_id, receipt.tx_hash)

        cache.put(listing_id, code)
        try:
            await self._store.save(wallet.lower(), cache.to_dict())
        except StoragePersistError as exc:
            logger.warning("Referral code kept in memory only: %s", exc.message)
        return ReferralOutcome(
            listing_id, code, self.link(listing_id, code), cached=False, tx_hash=receipt.tx_hash
        )
