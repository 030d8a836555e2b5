# src/lp_referral/domain/repository.py
"""Referral store Protocol: unit tests inject an AsyncMock conforming to it."""

from typing import Protocol


class ReferralStoreProtocol(Protocol):
    async def load(self, wallet: str) -> dict[str, str]: ...

    async def save(self, wallet: str, codes: dict[str, str]) -> None: ...
