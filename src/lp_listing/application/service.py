"""ListingApplicationService: thin composition of repository and store.

The store is only ever replaced wholesale under ``_scan_lock``; nothing else
in the application writes listing state. Scans never overlap: a caller that
needs the first snapshot waits for a scan already in flight and reuses it.
"""

import asyncio

from src.lp_common.enums import ListingCollection, SortKey
from src.lp_listing.application.schemas import (
    FetchFailureOut,
    ListingListResponse,
    ListingView,
)
from src.lp_listing.application.store import ListingStore
from src.lp_listing.domain.models import ScanResult
from src.lp_listing.domain.repository import ListingRepositoryProtocol


class ListingApplicationService:
    def __init__(self, repo: ListingRepositoryProtocol, store: ListingStore) -> None:
        self._repo = repo
        self._store = store
        self._scan_lock = asyncio.Lock()

    @property
    def store(self) -> ListingStore:
        return self._store

    async def refresh(self) -> ScanResult:
        async with self._scan_lock:
            return await self._scan_into_store()

    async def ensure_loaded(self) -> None:
        """Load the first snapshot; later calls return without scanning."""
        if self._store.loaded:
            return
        async with self._scan_lock:
            if not self._store.loaded:
                await self._scan_into_store()

    async def _scan_into_store(self) -> ScanResult:
        scan = await self._repo.scan()
        self._store.replace(scan)
        return scan

    async def list_listings(
        self,
        collection: ListingCollection,
        search: str | None = None,
        sort_by: SortKey | None = None,
        descending: bool = False,
    ) -> ListingListResponse:
        await self.ensure_loaded()
        entries = self._store.query(collection, search, sort_by, descending)
        items = [ListingView.from_entry(e) for e in entries]
        return ListingListResponse(
            collection=collection.value,
            items=items,
            total=len(items),
            fetched_at=self._store.fetched_at,
            failures=[
                FetchFailureOut(listing_id=f.listing_id, message=f.message)
                for f in self._store.failures
            ],
        )

    async def get_listing(self, listing_id: int) -> ListingView:
        listing = self._store.get(listing_id)
        if listing is None:
            listing = await self._repo.fetch_one(listing_id, self._store.caller.address)
        return ListingView.from_entry(self._store.classify(listing))
