"""TransactionOrchestrator: approve-if-needed -> estimate gas -> submit -> confirm.

Sequencing per mutating call:
  1. Stale-wallet check: the signer must still be the wallet the request was
     prepared for.
  2. For calls that pull tokens from the signer (buy, list): balance check,
     then allowance read; if short, approve MAX_UINT256, wait for the
     approval receipt, and re-read the allowance before going on.
  3. Estimate gas with the final arguments; gas limit = estimate * (100 + buffer) / 100.
  4. Sign, submit, wait for one confirmation. status == 0 is a revert.

The orchestrator never touches the listing store; callers refresh after a
confirmed call. Allowance is always re-read from chain, so a retry after a
failed approval never double-approves.
"""

import logging

from config.settings import settings
from src.lp_chain.domain.models import ContractCall, ContractKind, TxReceipt
from src.lp_chain.domain.repository import ChainGatewayProtocol
from src.lp_common.address import same_address
from src.lp_common.enums import ActionKind, TxState
from src.lp_common.errors import (
    ContractRevertedError,
    InsufficientAllowanceError,
    InsufficientBalanceError,
    SignerUnavailableError,
    StaleWalletAddressError,
    UserRejectedError,
)
from src.lp_common.units import MAX_UINT256, to_display
from src.lp_tx.domain.classifier import classify_error
from src.lp_tx.domain.models import ApprovalRequirement, PendingTransaction

logger = logging.getLogger(__name__)


def apply_gas_buffer(estimate: int, buffer_pct: int) -> int:
    return estimate * (100 + buffer_pct) // 100


class TransactionOrchestrator:
    def __init__(self, gateway: ChainGatewayProtocol, gas_buffer_pct: int | None = None) -> None:
        self._gateway = gateway
        self._gas_buffer_pct = settings.GAS_BUFFER_PCT if gas_buffer_pct is None else gas_buffer_pct

    async def current_signer(self, expected_wallet: str | None = None) -> str:
        address = await self._gateway.signer_address()
        if not address:
            raise SignerUnavailableError()
        if expected_wallet and not same_address(expected_wallet, address):
            raise StaleWalletAddressError(expected_wallet, address)
        return address

    async def execute(
        self,
        kind: ActionKind,
        listing_id: int | None,
        call: ContractCall,
        *,
        approval: ApprovalRequirement | None = None,
        expected_wallet: str | None = None,
    ) -> TxReceipt:
        pending = PendingTransaction(
            kind=kind,
            listing_id=listing_id,
            amount_raw=approval.amount_raw if approval else 0,
        )
        stage = TxState.IDLE
        try:
            owner = await self.current_signer(expected_wallet)
            if approval is not None:
                await self._check_balance(approval, owner)
                await self._ensure_allowance(pending, approval, owner)

            stage = TxState.ESTIMATING_GAS
            pending.transition(TxState.ESTIMATING_GAS)
            pending.gas_estimate = await self._gateway.estimate_gas(call)
            pending.gas_limit = apply_gas_buffer(pending.gas_estimate, self._gas_buffer_pct)

            stage = TxState.SUBMITTED
            pending.tx_hash = await self._gateway.send(call, pending.gas_limit)
            pending.transition(TxState.SUBMITTED)

            receipt = await self._gateway.wait_for_receipt(pending.tx_hash)
            if not receipt.succeeded:
                raise ContractRevertedError(kind.value, f"transaction {receipt.tx_hash} reverted on-chain")
            pending.transition(TxState.CONFIRMED)
            logger.info(
                "tx %s listing=%s confirmed in block %s (gas %s/%s)",
                kind.value, listing_id, receipt.block_number, receipt.gas_used, pending.gas_limit,
            )
            return receipt
        except Exception as exc:
            err = classify_error(exc, kind.value, stage)
            if not pending.settled:
                pending.transition(TxState.FAILED)
            logger.warning("tx %s listing=%s failed: %s", kind.value, listing_id, err.message)
            if err is exc:
                raise
            raise err from exc

    async def _check_balance(self, req: ApprovalRequirement, owner: str) -> None:
        balance = await self._gateway.balance_of(req.token, owner)
        if balance < req.amount_raw:
            raise InsufficientBalanceError(
                to_display(req.amount_raw, req.decimals),
                to_display(balance, req.decimals),
                req.symbol,
            )

    async def _ensure_allowance(
        self, pending: PendingTransaction, req: ApprovalRequirement, owner: str
    ) -> None:
        allowance = await self._gateway.allowance(req.token, owner, req.spender)
        if allowance >= req.amount_raw:
            logger.debug("Allowance %s covers %s; approval skipped", allowance, req.amount_raw)
            return

        pending.transition(TxState.APPROVING)
        approve = ContractCall(ContractKind.ERC20, req.token, "approve", (req.spender, MAX_UINT256))
        try:
            estimate = await self._gateway.estimate_gas(approve)
            tx_hash = await self._gateway.send(
                approve, apply_gas_buffer(estimate, self._gas_buffer_pct)
            )
            logger.info("Approval submitted for %s: %s", req.token, tx_hash)
            receipt = await self._gateway.wait_for_receipt(tx_hash)
        except Exception as exc:
            err = classify_error(exc, ActionKind.APPROVE.value, TxState.SUBMITTED)
            if isinstance(err, UserRejectedError):
                if err is exc:
                    raise
                raise err from exc
            raise InsufficientAllowanceError(getattr(err, "reason", err.message)) from exc
        if not receipt.succeeded:
            raise InsufficientAllowanceError(f"approval {receipt.tx_hash} reverted")

        allowance = await self._gateway.allowance(req.token, owner, req.spender)
        if allowance < req.amount_raw:
            raise InsufficientAllowanceError(
                f"allowance {allowance} still below {req.amount_raw} after approval"
            )

