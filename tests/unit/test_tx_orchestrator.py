# tests/unit/test_tx_orchestrator.py
"""Unit tests for TransactionOrchestrator using a mock gateway."""
from unittest.mock import AsyncMock, MagicMock

import pytest
from web3.exceptions import ContractLogicError

from src.lp_chain.domain.models import ContractCall, ContractKind, TxReceipt
from src.lp_common.enums import ActionKind
from src.lp_common.errors import (
    ContractRevertedError,
    GasEstimationFailedError,
    InsufficientAllowanceError,
    InsufficientBalanceError,
    SignerUnavailableError,
    StaleWalletAddressError,
    UserRejectedError,
)
from src.lp_common.units import MAX_UINT256
from src.lp_tx.application.orchestrator import TransactionOrchestrator, apply_gas_buffer
from src.lp_tx.domain.models import ApprovalRequirement

MARKET = "0x" + "66" * 20
USDC = "0x" + "55" * 20
BUYER = "0x" + "22" * 20

BUY_CALL = ContractCall(ContractKind.MARKETPLACE, MARKET, "buyToken", (1, 10**18, bytes(32)))
APPROVAL = ApprovalRequirement(token=USDC, spender=MARKET, amount_raw=20_000_000, symbol="USDC", decimals=6)


def _receipt(tx_hash: str = "0xmain", status: int = 1) -> TxReceipt:
    return TxReceipt(tx_hash=tx_hash, status=status, block_number=100, gas_used=90_000)


@pytest.fixture
def gateway():
    gw = MagicMock()
    gw.signer_address = AsyncMock(return_value=BUYER)
    gw.balance_of = AsyncMock(return_value=50_000_000)
    gw.allowance = AsyncMock(return_value=MAX_UINT256)
    gw.estimate_gas = AsyncMock(return_value=100_000)
    gw.send = AsyncMock(return_value="0xmain")
    gw.wait_for_receipt = AsyncMock(return_value=_receipt())
    return gw


class TestGasBuffer:
    def test_twenty_percent(self):
        assert apply_gas_buffer(100_000, 20) == 120_000

    def test_rounds_down(self):
        assert apply_gas_buffer(21_001, 20) == 25_201


class TestExecute:
    @pytest.mark.asyncio
    async def test_plain_call(self, gateway):
        orch = TransactionOrchestrator(gateway, gas_buffer_pct=20)

        receipt = await orch.execute(ActionKind.CANCEL, 1, BUY_CALL)

        assert receipt.tx_hash == "0xmain"
        gateway.send.assert_awaited_once_with(BUY_CALL, 120_000)
        gateway.allowance.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_approval_skipped_when_allowance_covers(self, gateway):
        orch = TransactionOrchestrator(gateway, gas_buffer_pct=20)

        await orch.execute(ActionKind.BUY, 1, BUY_CALL, approval=APPROVAL)

        assert gateway.send.await_count == 1
        assert gateway.allowance.await_count == 1

    @pytest.mark.asyncio
    async def test_approval_then_reread(self, gateway):
        gateway.allowance = AsyncMock(side_effect=[0, MAX_UINT256])
        gateway.send = AsyncMock(side_effect=["0xapprove", "0xmain"])
        gateway.wait_for_receipt = AsyncMock(side_effect=[_receipt("0xapprove"), _receipt("0xmain")])
        orch = TransactionOrchestrator(gateway, gas_buffer_pct=20)

        receipt = await orch.execute(ActionKind.BUY, 1, BUY_CALL, approval=APPROVAL)

        assert receipt.tx_hash == "0xmain"
        approve_call = gateway.send.await_args_list[0].args[0]
        assert approve_call.kind == ContractKind.ERC20
        assert approve_call.address == USDC
        assert approve_call.function == "approve"
        assert approve_call.args == (MARKET, MAX_UINT256)
        assert gateway.send.await_args_list[1].args[0] is BUY_CALL
        assert gateway.allowance.await_count == 2

    @pytest.mark.asyncio
    async def test_allowance_still_short_after_approval(self, gateway):
        gateway.allowance = AsyncMock(side_effect=[0, 10])
        orch = TransactionOrchestrator(gateway)

        with pytest.raises(InsufficientAllowanceError):
            await orch.execute(ActionKind.BUY, 1, BUY_CALL, approval=APPROVAL)
        assert gateway.send.await_count == 1

    @pytest.mark.asyncio
    async def test_approval_rejected_by_user(self, gateway):
        gateway.allowance = AsyncMock(return_value=0)
        gateway.send = AsyncMock(side_effect=RuntimeError("User denied transaction signature"))
        orch = TransactionOrchestrator(gateway)

        with pytest.raises(UserRejectedError):
            await orch.execute(ActionKind.BUY, 1, BUY_CALL, approval=APPROVAL)

    @pytest.mark.asyncio
    async def test_insufficient_balance_stops_before_approval(self, gateway):
        gateway.balance_of = AsyncMock(return_value=1_000_000)
        orch = TransactionOrchestrator(gateway)

        with pytest.raises(InsufficientBalanceError) as exc_info:
            await orch.execute(ActionKind.BUY, 1, BUY_CALL, approval=APPROVAL)
        assert "20.0 USDC" in exc_info.value.message
        gateway.allowance.assert_not_awaited()
        gateway.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_stale_wallet(self, gateway):
        orch = TransactionOrchestrator(gateway)

        with pytest.raises(StaleWalletAddressError):
            await orch.execute(ActionKind.BUY, 1, BUY_CALL, expected_wallet="0x" + "99" * 20)
        gateway.estimate_gas.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_expected_wallet_case_insensitive(self, gateway):
        gateway.signer_address = AsyncMock(return_value="0x" + "AB" * 20)
        orch = TransactionOrchestrator(gateway)

        await orch.execute(ActionKind.CANCEL, 1, BUY_CALL, expected_wallet="0x" + "ab" * 20)

        gateway.send.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_no_signer(self, gateway):
        gateway.signer_address = AsyncMock(return_value=None)
        orch = TransactionOrchestrator(gateway)

        with pytest.raises(SignerUnavailableError):
            await orch.execute(ActionKind.CANCEL, 1, BUY_CALL)

    @pytest.mark.asyncio
    async def test_estimation_revert_carries_reason(self, gateway):
        gateway.estimate_gas = AsyncMock(
            side_effect=ContractLogicError("execution reverted: Listing has ended")
        )
        orch = TransactionOrchestrator(gateway)

        with pytest.raises(GasEstimationFailedError) as exc_info:
            await orch.execute(ActionKind.BUY, 1, BUY_CALL)
        assert "Listing has ended" in exc_info.value.message
        gateway.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_status_zero_receipt_is_revert(self, gateway):
        gateway.wait_for_receipt = AsyncMock(return_value=_receipt(status=0))
        orch = TransactionOrchestrator(gateway)

        with pytest.raises(ContractRevertedError):
            await orch.execute(ActionKind.CLAIM_TOKENS, 1, BUY_CALL)
