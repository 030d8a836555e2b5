"""ListingStore: injectable in-memory snapshot of the last scan.

Listings are stored raw; phase and allowed actions are re-derived from the
clock at read time, so a listing crossing its endTime between refreshes is
reported correctly without another scan.

Collections:
  active   = phase ACTIVE with strictly positive remaining amount
  terminal = everything else
"""

from dataclasses import dataclass
from typing import Callable

from src.lp_common.datetime_utils import now_ts
from src.lp_common.enums import ListingCollection, Phase, SortKey
from src.lp_common.errors import ListingFetchError
from src.lp_listing.domain.models import Caller, Listing, ListingState, ScanResult
from src.lp_listing.domain.state import ListingStateEngine


@dataclass(frozen=True)
class ClassifiedListing:
    listing: Listing
    state: ListingState


def is_active_entry(entry: ClassifiedListing) -> bool:
    return entry.state.phase == Phase.ACTIVE and (entry.listing.remaining_amount_raw or 0) > 0


def _price_key(entry: ClassifiedListing) -> int:
    listing = entry.listing
    return listing.current_price_raw or listing.price_per_share_raw


_SORT_KEYS: dict[SortKey, Callable[[ClassifiedListing], object]] = {
    SortKey.PRICE: _price_key,
    SortKey.NAME: lambda e: e.listing.token.name.lower(),
    SortKey.PERCENTAGE_SOLD: lambda e: e.state.percentage_sold,
    SortKey.END_TIME: lambda e: e.listing.end_time,
}


class ListingStore:
    def __init__(self, engine: ListingStateEngine, clock: Callable[[], int] = now_ts) -> None:
        self._engine = engine
        self._clock = clock
        self._scan: ScanResult | None = None
        self._by_id: dict[int, Listing] = {}

    @property
    def loaded(self) -> bool:
        return self._scan is not None

    @property
    def fetched_at(self) -> int | None:
        return self._scan.fetched_at if self._scan else None

    @property
    def caller(self) -> Caller:
        return self._scan.caller if self._scan else Caller()

    @property
    def failures(self) -> list[ListingFetchError]:
        return self._scan.failures if self._scan else []

    def replace(self, scan: ScanResult) -> None:
        self._scan = scan
        self._by_id = {listing.id: listing for listing in scan.listings}

    def get(self, listing_id: int) -> Listing | None:
        return self._by_id.get(listing_id)

    def classify(self, listing: Listing) -> ClassifiedListing:
        return ClassifiedListing(listing, self._engine.classify(listing, self._clock(), self.caller))

    def partition(self) -> tuple[list[ClassifiedListing], list[ClassifiedListing]]:
        active: list[ClassifiedListing] = []
        terminal: list[ClassifiedListing] = []
        for listing in self._by_id.values():
            entry = self.classify(listing)
            (active if is_active_entry(entry) else terminal).append(entry)
        return active, terminal

    def query(
        self,
        collection: ListingCollection = ListingCollection.ACTIVE,
        search: str | None = None,
        sort_by: SortKey | None = None,
        descending: bool = False,
    ) -> list[ClassifiedListing]:
        active, terminal = self.partition()
        entries = active if collection == ListingCollection.ACTIVE else terminal
        if search:
            needle = search.strip().lower()
            entries = [
                e for e in entries
                if needle in e.listing.token.name.lower()
                or needle in e.listing.token.symbol.lower()
                or needle in e.listing.token.address.lower()
            ]
        if sort_by is not None:
            entries.sort(key=_SORT_KEYS[sort_by], reverse=descending)
        else:
            entries.sort(key=lambda e: e.listing.id, reverse=descending)
        return entries
