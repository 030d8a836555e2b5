# src/lp_listing/domain/repository.py
"""Listing source Protocol: the application layer never sees web3."""

from typing import Protocol

from src.lp_listing.domain.models import Caller, Listing, ScanResult


class ListingRepositoryProtocol(Protocol):
    async def resolve_caller(self, caller_address: str | None = None) -> Caller: ...

    async def scan(self, caller_address: str | None = None) -> ScanResult: ...

    async def fetch_one(self, listing_id: int, caller_address: str | None = None) -> Listing: ...
