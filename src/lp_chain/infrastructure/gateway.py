"""Web3 implementation of ChainGatewayProtocol.

Every view result is validated into a typed struct before it is returned.
Mutating calls are signed locally with an eth-account LocalAccount; without
a configured key the gateway is read-only and any write raises
SignerUnavailableError. Provider and contract exceptions propagate
unchanged; lp_tx.domain.classifier maps them into the error taxonomy.
"""

import asyncio
import logging
from typing import Any

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import AsyncWeb3, Web3
from web3.logs import DISCARD

from config.settings import settings
from src.lp_chain.domain.models import (
    AdditionalDetails,
    BasicDetails,
    BondingDetails,
    BuyerInfo,
    ContractCall,
    ContractKind,
    ListingMetadata,
    ReferralCodeEvent,
    TokenInfo,
    TxReceipt,
    bytes32_hex,
)
from src.lp_chain.infrastructure.abi import BONDING_CURVE_ABI, ERC20_ABI, MARKETPLACE_ABI
from src.lp_common.address import is_address
from src.lp_common.enums import PricingModel
from src.lp_common.errors import SignerUnavailableError

logger = logging.getLogger(__name__)

_ABIS = {
    ContractKind.MARKETPLACE: MARKETPLACE_ABI,
    ContractKind.BONDING_CURVE: BONDING_CURVE_ABI,
    ContractKind.ERC20: ERC20_ABI,
}


def _to_web3_arg(value: Any) -> Any:
    if is_address(value):
        return Web3.to_checksum_address(value)
    if isinstance(value, tuple):
        return tuple(_to_web3_arg(v) for v in value)
    return value


class Web3MarketplaceGateway:
    def __init__(
        self,
        w3: AsyncWeb3,
        marketplace_address: str,
        model: PricingModel = PricingModel.FIXED_PRICE,
        account: LocalAccount | None = None,
        chain_id: int | None = None,
    ) -> None:
        self._w3 = w3
        self.marketplace_address = Web3.to_checksum_address(marketplace_address)
        self._model = model
        self._account = account
        self._chain_id = chain_id
        self._contracts: dict[tuple[ContractKind, str], Any] = {}

    @classmethod
    def from_settings(cls) -> "Web3MarketplaceGateway":
        w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(settings.RPC_URL))
        account = (
            Account.from_key(settings.SIGNER_PRIVATE_KEY) if settings.SIGNER_PRIVATE_KEY else None
        )
        if account is None:
            logger.info("No signer configured; chain gateway is read-only")
        return cls(
            w3,
            settings.MARKETPLACE_ADDRESS,
            PricingModel(settings.MARKETPLACE_MODEL),
            account,
            settings.CHAIN_ID,
        )

    @property
    def _marketplace_kind(self) -> ContractKind:
        if self._model == PricingModel.BONDING_CURVE:
            return ContractKind.BONDING_CURVE
        return ContractKind.MARKETPLACE

    def _contract(self, kind: ContractKind, address: str) -> Any:
        key = (kind, address.lower())
        contract = self._contracts.get(key)
        if contract is None:
            contract = self._w3.eth.contract(
                address=Web3.to_checksum_address(address), abi=_ABIS[kind]
            )
            self._contracts[key] = contract
        return contract

    def _marketplace(self) -> Any:
        return self._contract(self._marketplace_kind, self.marketplace_address)

    def _erc20(self, token: str) -> Any:
        return self._contract(ContractKind.ERC20, token)

    # --- Reads ---

    async def listing_count(self) -> int:
        return int(await self._marketplace().functions.listingCount().call())

    async def owner(self) -> str:
        return await self._marketplace().functions.owner().call()

    async def basic_details(self, listing_id: int) -> BasicDetails:
        raw = await self._marketplace().functions.getListingBasicDetails(listing_id).call()
        return BasicDetails.from_tuple(raw)

    async def additional_details(self, listing_id: int) -> AdditionalDetails:
        raw = await self._marketplace().functions.getListingAdditionalDetails(listing_id).call()
        return AdditionalDetails.from_tuple(raw)

    async def metadata(self, listing_id: int) -> ListingMetadata:
        functions = self._marketplace().functions
        if self._model == PricingModel.BONDING_CURVE:
            # Bonding-curve deployments only expose metadata inside listings(id)
            raw = (await functions.listings(listing_id).call())[-1]
        else:
            raw = await functions.getListingMetadata(listing_id).call()
        return ListingMetadata.from_tuple(raw)

    async def bonding_details(self, listing_id: int) -> BondingDetails:
        raw = await self._marketplace().functions.getListingDetails(listing_id).call()
        return BondingDetails.from_tuple(raw)

    async def buy_cost(self, listing_id: int, amount_raw: int) -> int:
        return int(await self._marketplace().functions.calculateBuyCost(listing_id, amount_raw).call())

    async def buyer_info(self, listing_id: int, buyer: str) -> BuyerInfo:
        buyer = Web3.to_checksum_address(buyer)
        functions = self._marketplace().functions
        info, locked = await asyncio.gather(
            functions.getBuyerInfo(listing_id, buyer).call(),
            functions.lockedTokens(listing_id, buyer).call(),
        )
        # (paid, refunded, ts) or (paid, bought, refunded, ts) depending on deployment
        total_paid, refunded = info[0], info[-2]
        return BuyerInfo(total_paid=total_paid, refunded=refunded, locked_tokens=locked)

    async def token_info(self, token: str) -> TokenInfo:
        functions = self._erc20(token).functions
        name, symbol, decimals, total_supply = await asyncio.gather(
            functions.name().call(),
            functions.symbol().call(),
            functions.decimals().call(),
            functions.totalSupply().call(),
        )
        return TokenInfo(
            address=Web3.to_checksum_address(token),
            name=name,
            symbol=symbol,
            decimals=decimals,
            total_supply=total_supply,
        )

    async def balance_of(self, token: str, owner: str) -> int:
        return int(
            await self._erc20(token).functions.balanceOf(Web3.to_checksum_address(owner)).call()
        )

    async def allowance(self, token: str, owner: str, spender: str) -> int:
        return int(
            await self._erc20(token)
            .functions.allowance(
                Web3.to_checksum_address(owner), Web3.to_checksum_address(spender)
            )
            .call()
        )

    # --- Signer ---

    async def signer_address(self) -> str | None:
        return self._account.address if self._account is not None else None

    def _require_account(self) -> LocalAccount:
        if self._account is None:
            raise SignerUnavailableError()
        return self._account

    # --- Writes ---

    def _bound_function(self, call: ContractCall) -> Any:
        contract = self._contract(call.kind, call.address)
        args = [_to_web3_arg(a) for a in call.args]
        return getattr(contract.functions, call.function)(*args)

    async def estimate_gas(self, call: ContractCall) -> int:
        account = self._require_account()
        return int(await self._bound_function(call).estimate_gas({"from": account.address}))

    async def send(self, call: ContractCall, gas_limit: int) -> str:
        account = self._require_account()
        nonce = await self._w3.eth.get_transaction_count(account.address, "pending")
        chain_id = self._chain_id or await self._w3.eth.chain_id
        tx = await self._bound_function(call).build_transaction(
            {
                "from": account.address,
                "nonce": nonce,
                "gas": gas_limit,
                "chainId": chain_id,
            }
        )
        signed = account.sign_transaction(tx)
        tx_hash = await self._w3.eth.send_raw_transaction(signed.raw_transaction)
        return Web3.to_hex(tx_hash)

    async def wait_for_receipt(self, tx_hash: str) -> TxReceipt:
        receipt = await self._w3.eth.wait_for_transaction_receipt(tx_hash)
        return TxReceipt(
            tx_hash=tx_hash,
            status=int(receipt["status"]),
            block_number=int(receipt["blockNumber"]),
            gas_used=int(receipt["gasUsed"]),
            raw=receipt,
        )

    def referral_events(self, receipt: TxReceipt) -> list[ReferralCodeEvent]:
        marketplace = self._contract(ContractKind.MARKETPLACE, self.marketplace_address)
        decoded = marketplace.events.ReferralCodeGenerated().process_receipt(
            receipt.raw, errors=DISCARD
        )
        return [
            ReferralCodeEvent(
                listing_id=int(event["args"]["listingId"]),
                code=bytes32_hex(event["args"]["referralCode"]),
                referrer=event["args"]["referralAddress"],
            )
            for event in decoded
        ]

    async def close(self) -> None:
        disconnect = getattr(self._w3.provider, "disconnect", None)
        if disconnect is not None:
            await disconnect()
