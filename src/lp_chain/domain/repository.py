# src/lp_chain/domain/repository.py
"""Gateway Protocol: dependency inversion for testability.

Unit tests inject an AsyncMock that conforms to this Protocol.
The infrastructure layer provides the web3 implementation.
"""

from typing import Protocol

from src.lp_chain.domain.models import (
    AdditionalDetails,
    BasicDetails,
    BondingDetails,
    BuyerInfo,
    ContractCall,
    ListingMetadata,
    ReferralCodeEvent,
    TokenInfo,
    TxReceipt,
)


class ChainGatewayProtocol(Protocol):
    marketplace_address: str

    # --- Reads ---
    async def listing_count(self) -> int: ...

    async def owner(self) -> str: ...

    async def basic_details(self, listing_id: int) -> BasicDetails: ...

    async def additional_details(self, listing_id: int) -> AdditionalDetails: ...

    async def metadata(self, listing_id: int) -> ListingMetadata: ...

    async def bonding_details(self, listing_id: int) -> BondingDetails: ...

    async def buy_cost(self, listing_id: int, amount_raw: int) -> int: ...

    async def buyer_info(self, listing_id: int, buyer: str) -> BuyerInfo: ...

    async def token_info(self, token: str) -> TokenInfo: ...

    async def balance_of(self, token: str, owner: str) -> int: ...

    async def allowance(self, token: str, owner: str, spender: str) -> int: ...

    # --- Signer ---
    async def signer_address(self) -> str | None: ...

    # --- Writes ---
    async def estimate_gas(self, call: ContractCall) -> int: ...

    async def send(self, call: ContractCall, gas_limit: int) -> str: ...

    async def wait_for_receipt(self, tx_hash: str) -> TxReceipt: ...

    def referral_events(self, receipt: TxReceipt) -> list[ReferralCodeEvent]: ...
