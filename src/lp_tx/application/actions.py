"""ActionService: single dispatch entry per action kind.

Every dispatched action re-reads its listing from chain, checks the action
against the state engine for the current signer, builds the contract call
and hands it to the orchestrator. The outcome is always a definite
ActionResult: any error becomes a failed result carrying code and message.

The listing store is never written here; callers refresh after success.
"""

import logging
from typing import Awaitable, Callable

from config.settings import settings
from src.lp_chain.domain.models import ContractCall, ContractKind
from src.lp_chain.domain.repository import ChainGatewayProtocol
from src.lp_common.address import is_address
from src.lp_common.datetime_utils import now_ts
from src.lp_common.enums import ActionKind, PricingModel, TxState
from src.lp_common.errors import (
    ActionNotAllowedError,
    InvalidAddressError,
    InvalidAmountError,
    InvalidListingParamsError,
    NothingToWithdrawError,
    UnsupportedActionError,
)
from src.lp_common.units import to_display, to_raw
from src.lp_listing.domain.models import Listing
from src.lp_listing.domain.repository import ListingRepositoryProtocol
from src.lp_listing.domain.state import ListingStateEngine
from src.lp_pricing.domain.pricing import PRICE_DECIMALS, fixed_price_cost
from src.lp_referral.application.service import ReferralLedger
from src.lp_referral.domain.codes import encode_referral_code
from src.lp_tx.application.orchestrator import TransactionOrchestrator
from src.lp_tx.domain.classifier import classify_error
from src.lp_tx.domain.models import (
    ActionRequest,
    ActionResult,
    ApprovalRequirement,
    ListTokenCommand,
)

logger = logging.getLogger(__name__)

Handler = Callable[[Listing, ActionRequest, str], Awaitable[ActionResult]]

# Listing-id-only calls per pricing model
_SIMPLE_CALLS: dict[PricingModel, dict[ActionKind, str]] = {
    PricingModel.FIXED_PRICE: {
        ActionKind.CANCEL: "cancelListing",
        ActionKind.CLAIM_REFUND: "claimRefund",
        ActionKind.CLAIM_TOKENS: "claimTokens",
        ActionKind.WITHDRAW_UNSOLD: "withdrawUnsoldTokens",
        ActionKind.CLAIM_POOL_FUNDS: "claimPoolFunds",
    },
    PricingModel.BONDING_CURVE: {
        ActionKind.CLAIM_REFUND: "claimRefund",
        ActionKind.CLAIM_TOKENS: "claimTokens",
        ActionKind.WITHDRAW_UNSOLD: "withdrawExpiredFundsAndTokens",
        ActionKind.CLAIM_POOL_FUNDS: "withdrawExpiredFundsAndTokens",
    },
}

_SUCCESS_MESSAGES = {
    ActionKind.CANCEL: "Listing cancelled",
    ActionKind.CLAIM_REFUND: "Refund claimed",
    ActionKind.CLAIM_TOKENS: "Tokens claimed",
    ActionKind.WITHDRAW_UNSOLD: "Unsold tokens withdrawn",
    ActionKind.CLAIM_POOL_FUNDS: "Pool funds claimed",
}


class ActionService:
    def __init__(
        self,
        gateway: ChainGatewayProtocol,
        orchestrator: TransactionOrchestrator,
        ledger: ReferralLedger,
        repo: ListingRepositoryProtocol,
        engine: ListingStateEngine,
        model: PricingModel | None = None,
        clock: Callable[[], int] = now_ts,
        min_duration_seconds: int | None = None,
    ) -> None:
        self._gateway = gateway
        self._orchestrator = orchestrator
        self._ledger = ledger
        self._repo = repo
        self._engine = engine
        self._model = model or PricingModel(settings.MARKETPLACE_MODEL)
        self._clock = clock
        self._min_duration = (
            settings.MIN_LISTING_DURATION_SECONDS
            if min_duration_seconds is None
            else min_duration_seconds
        )
        self._handlers: dict[ActionKind, Handler] = {ActionKind.BUY: self._buy}
        if self._model == PricingModel.FIXED_PRICE:
            self._handlers.update({
                ActionKind.GENERATE_REFERRAL: self._generate_referral,
                ActionKind.WITHDRAW_EXPIRED_FUNDS: self._withdraw_payment_tokens,
                ActionKind.WITHDRAW_TOKENS: self._withdraw_listed_tokens,
            })
        for kind in _SIMPLE_CALLS[self._model]:
            self._handlers[kind] = self._simple

    @property
    def _marketplace_kind(self) -> ContractKind:
        if self._model == PricingModel.BONDING_CURVE:
            return ContractKind.BONDING_CURVE
        return ContractKind.MARKETPLACE

    def _marketplace_call(self, function: str, *args) -> ContractCall:
        return ContractCall(self._marketplace_kind, self._gateway.marketplace_address, function, args)

    # --- Entry points ---

    async def dispatch(self, request: ActionRequest) -> ActionResult:
        try:
            return await self._dispatch(request)
        except Exception as exc:
            return self._failed(request.kind, request.listing_id, exc)

    async def list_token(self, command: ListTokenCommand) -> ActionResult:
        try:
            return await self._list_token(command)
        except Exception as exc:
            return self._failed(ActionKind.LIST, None, exc)

    @staticmethod
    def _failed(kind: ActionKind, listing_id: int | None, exc: Exception) -> ActionResult:
        err = classify_error(exc, kind.value, TxState.IDLE)
        if err is not exc:
            logger.warning("%s listing=%s failed: %r", kind.value, listing_id, exc)
        return ActionResult.failed(kind, listing_id, err.code, err.message, err.http_status)

    # --- Dispatch ---

    async def _dispatch(self, request: ActionRequest) -> ActionResult:
        handler = self._handlers.get(request.kind)
        if handler is None:
            if request.kind in (ActionKind.LIST, ActionKind.APPROVE):
                raise UnsupportedActionError(request.kind.value, "as a listing action")
            raise UnsupportedActionError(request.kind.value, f"on {self._model.value} deployments")

        signer = await self._orchestrator.current_signer(request.expected_wallet)
        caller = await self._repo.resolve_caller(signer)
        listing = await self._repo.fetch_one(request.listing_id, signer)
        state = self._engine.classify(listing, self._clock(), caller)
        if not state.allows(request.kind):
            raise ActionNotAllowedError(request.kind.value, listing.id, state.phase.value)
        return await handler(listing, request, signer)

    async def _buy(self, listing: Listing, request: ActionRequest, signer: str) -> ActionResult:
        token, payment = listing.token, listing.payment_token
        amount_raw = to_raw(request.amount or "", token.decimals)
        if amount_raw <= 0:
            raise InvalidAmountError(request.amount, "must be greater than zero")
        remaining = listing.remaining_amount_raw or 0
        if amount_raw > remaining:
            raise InvalidAmountError(
                request.amount, f"exceeds the {to_display(remaining, token.decimals)} available"
            )

        if listing.model == PricingModel.BONDING_CURVE:
            cost_raw = await self._gateway.buy_cost(listing.id, amount_raw)
            call = self._marketplace_call("buyToken", listing.id, amount_raw)
        else:
            cost_raw = fixed_price_cost(
                amount_raw, listing.price_per_share_raw, payment.decimals, token.decimals
            )
            code = encode_referral_code(request.referral_code)
            call = self._marketplace_call("buyToken", listing.id, amount_raw, code)

        approval = ApprovalRequirement(
            token=payment.address,
            spender=self._gateway.marketplace_address,
            amount_raw=cost_raw,
            symbol=payment.symbol,
            decimals=payment.decimals,
        )
        receipt = await self._orchestrator.execute(
            ActionKind.BUY, listing.id, call, approval=approval, expected_wallet=signer
        )
        cost = to_display(cost_raw, payment.decimals)
        return ActionResult.ok(
            ActionKind.BUY,
            listing.id,
            receipt.tx_hash,
            f"Purchased {to_display(amount_raw, token.decimals)} {token.symbol} for {cost} {payment.symbol}",
            amount_raw=str(amount_raw),
            cost_raw=str(cost_raw),
        )

    async def _simple(self, listing: Listing, request: ActionRequest, signer: str) -> ActionResult:
        function = _SIMPLE_CALLS[self._model][request.kind]
        receipt = await self._orchestrator.execute(
            request.kind, listing.id, self._marketplace_call(function, listing.id), expected_wallet=signer
        )
        return ActionResult.ok(request.kind, listing.id, receipt.tx_hash, _SUCCESS_MESSAGES[request.kind])

    async def _withdraw_balance(
        self, kind: ActionKind, listing: Listing, token_address: str, symbol: str, decimals: int,
        function: str, signer: str,
    ) -> ActionResult:
        balance = await self._gateway.balance_of(token_address, self._gateway.marketplace_address)
        if balance == 0:
            raise NothingToWithdrawError(f"{symbol} balance")
        call = self._marketplace_call(function, token_address, balance, signer)
        receipt = await self._orchestrator.execute(kind, listing.id, call, expected_wallet=signer)
        return ActionResult.ok(
            kind,
            listing.id,
            receipt.tx_hash,
            f"Withdrew {to_display(balance, decimals)} {symbol}",
            amount_raw=str(balance),
        )

    async def _withdraw_payment_tokens(
        self, listing: Listing, request: ActionRequest, signer: str
    ) -> ActionResult:
        payment = listing.payment_token
        return await self._withdraw_balance(
            request.kind, listing, payment.address, payment.symbol, payment.decimals,
            "withdrawPaymentTokens", signer,
        )

    async def _withdraw_listed_tokens(
        self, listing: Listing, request: ActionRequest, signer: str
    ) -> ActionResult:
        token = listing.token
        return await self._withdraw_balance(
            request.kind, listing, token.address, token.symbol, token.decimals,
            "withdrawTokens", signer,
        )

    async def _generate_referral(
        self, listing: Listing, request: ActionRequest, signer: str
    ) -> ActionResult:
        outcome = await self._ledger.get_or_generate(listing.id, expected_wallet=signer)
        return ActionResult(
            kind=ActionKind.GENERATE_REFERRAL,
            listing_id=listing.id,
            success=True,
            tx_hash=outcome.tx_hash,
            message="Referral code ready" if outcome.cached else "Referral code generated",
            data={"code": outcome.code, "link": outcome.link, "cached": outcome.cached},
        )

    # --- Listing creation ---

    def _validate_listing(self, command: ListTokenCommand) -> None:
        for value in (command.token_address, command.payment_token):
            if not is_address(value):
                raise InvalidAddressError(value)
        if command.referral_active and self._model == PricingModel.BONDING_CURVE:
            raise InvalidListingParamsError("referral rewards are not available on bonding-curve listings")
        if command.referral_active and not 1 <= command.referral_percent <= 100:
            raise InvalidListingParamsError(
                f"referral percent must be between 1 and 100, got {command.referral_percent}"
            )
        if command.duration_seconds < self._min_duration:
            raise InvalidListingParamsError(
                f"duration must be at least {self._min_duration} seconds"
            )

    @staticmethod
    def _listing_price(command: ListTokenCommand, decimals: int) -> int:
        price_raw = to_raw(command.price_per_share, decimals)
        if price_raw <= 0:
            raise InvalidAmountError(command.price_per_share, "price must be greater than zero")
        return price_raw

    async def _list_token(self, command: ListTokenCommand) -> ActionResult:
        self._validate_listing(command)

        token = await self._gateway.token_info(command.token_address)
        amount_raw = to_raw(command.amount, token.decimals)
        if amount_raw <= 0:
            raise InvalidAmountError(command.amount, "must be greater than zero")

        if self._model == PricingModel.BONDING_CURVE:
            # Initial curve price is quoted in payment-token units
            payment = await self._gateway.token_info(command.payment_token)
            price_raw = self._listing_price(command, payment.decimals)
            call = self._marketplace_call(
                "listToken",
                command.token_address,
                amount_raw,
                price_raw,
                command.payment_token,
                command.duration_seconds,
                command.metadata_tuple(),
            )
        else:
            price_raw = self._listing_price(command, PRICE_DECIMALS)
            call = self._marketplace_call(
                "listToken",
                command.token_address,
                amount_raw,
                price_raw,
                command.payment_token,
                command.referral_active,
                command.referral_percent if command.referral_active else 0,
                command.metadata_tuple(),
                command.duration_seconds,
            )
        approval = ApprovalRequirement(
            token=command.token_address,
            spender=self._gateway.marketplace_address,
            amount_raw=amount_raw,
            symbol=token.symbol,
            decimals=token.decimals,
        )
        receipt = await self._orchestrator.execute(
            ActionKind.LIST, None, call, approval=approval, expected_wallet=command.expected_wallet
        )
        listing_id: int | None
        try:
            listing_id = await self._gateway.listing_count() - 1
        except Exception:
            # The listing is on chain; only its id could not be read back
            logger.warning("Listed in %s but listingCount() failed", receipt.tx_hash, exc_info=True)
            listing_id = None
        logger.info("Listed %s %s as listing %s", command.amount, token.symbol, listing_id)
        return ActionResult.ok(
            ActionKind.LIST,
            listing_id,
            receipt.tx_hash,
            f"Listed {to_display(amount_raw, token.decimals)} {token.symbol} at {command.price_per_share}",
            amount_raw=str(amount_raw),
            price_per_share_raw=str(price_raw),
        )
