# tests/unit/test_actions.py
"""Unit tests for ActionService dispatch and listing creation."""
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.lp_chain.domain.models import ContractKind, TxReceipt
from src.lp_chain.domain.models import TokenInfo as ChainTokenInfo
from src.lp_common.enums import ActionKind, PricingModel
from src.lp_common.errors import StaleWalletAddressError
from src.lp_listing.domain.models import BuyerPosition, Caller, Listing, TokenInfo
from src.lp_listing.domain.state import ListingStateEngine
from src.lp_referral.application.service import ReferralOutcome
from src.lp_referral.domain.codes import ZERO_CODE
from src.lp_tx.application.actions import ActionService
from src.lp_tx.domain.models import ActionRequest, ListTokenCommand

NOW = 1_700_000_000
E18 = 10**18
MARKET = "0x" + "66" * 20
SELLER = "0x" + "11" * 20
BUYER = "0x" + "22" * 20
OPERATOR = "0x" + "33" * 20
TOKEN = "0x" + "44" * 20
USDC = "0x" + "55" * 20


def _make_listing(**kwargs) -> Listing:
    defaults = dict(
        id=3,
        model=PricingModel.FIXED_PRICE,
        seller=SELLER,
        token=TokenInfo(address=TOKEN, name="Alpha", symbol="ALP", decimals=18),
        payment_token=TokenInfo(address=USDC, name="USD Coin", symbol="USDC", decimals=6),
        initial_amount_raw=100 * E18,
        sold_amount_raw=40 * E18,
        active=True,
        end_time=NOW + 3600,
        price_per_share_raw=2 * E18,
    )
    defaults.update(kwargs)
    return Listing(**defaults)


@pytest.fixture
def gateway():
    gw = MagicMock()
    gw.marketplace_address = MARKET
    gw.balance_of = AsyncMock(return_value=0)
    gw.buy_cost = AsyncMock(return_value=7_000_000)
    gw.listing_count = AsyncMock(return_value=5)
    gw.token_info = AsyncMock(
        return_value=ChainTokenInfo(address=TOKEN, name="Alpha", symbol="ALP", decimals=18, total_supply=10**24)
    )
    return gw


@pytest.fixture
def orchestrator():
    orch = MagicMock()
    orch.current_signer = AsyncMock(return_value=BUYER)
    orch.execute = AsyncMock(return_value=TxReceipt("0xtx", 1, 10, 50_000))
    return orch


@pytest.fixture
def repo():
    r = MagicMock()
    r.resolve_caller = AsyncMock(side_effect=lambda address: Caller(address=address))
    r.fetch_one = AsyncMock(return_value=_make_listing())
    return r


@pytest.fixture
def ledger():
    return MagicMock()


def _service(gateway, orchestrator, ledger, repo, model=PricingModel.FIXED_PRICE) -> ActionService:
    return ActionService(
        gateway, orchestrator, ledger, repo, ListingStateEngine(), model,
        clock=lambda: NOW, min_duration_seconds=600,
    )


class TestBuy:
    @pytest.mark.asyncio
    async def test_fixed_price_buy(self, gateway, orchestrator, ledger, repo):
        svc = _service(gateway, orchestrator, ledger, repo)

        result = await svc.dispatch(ActionRequest(ActionKind.BUY, 3, amount="10"))

        assert result.success is True
        assert result.tx_hash == "0xtx"
        assert result.data["cost_raw"] == "20000000"
        kind, listing_id, call = orchestrator.execute.await_args.args
        assert (kind, listing_id) == (ActionKind.BUY, 3)
        assert call.kind == ContractKind.MARKETPLACE
        assert call.function == "buyToken"
        assert call.args == (3, 10 * E18, ZERO_CODE)
        approval = orchestrator.execute.await_args.kwargs["approval"]
        assert approval.token == USDC
        assert approval.spender == MARKET
        assert approval.amount_raw == 20_000_000

    @pytest.mark.asyncio
    async def test_referral_code_encoded(self, gateway, orchestrator, ledger, repo):
        svc = _service(gateway, orchestrator, ledger, repo)
        code = "0x" + "ab" * 32

        await svc.dispatch(ActionRequest(ActionKind.BUY, 3, amount="1", referral_code=code))

        call = orchestrator.execute.await_args.args[2]
        assert call.args[2] == bytes.fromhex("ab" * 32)

    @pytest.mark.asyncio
    async def test_bonding_curve_cost_from_contract(self, gateway, orchestrator, ledger, repo):
        repo.fetch_one = AsyncMock(return_value=_make_listing(model=PricingModel.BONDING_CURVE))
        svc = _service(gateway, orchestrator, ledger, repo, PricingModel.BONDING_CURVE)

        result = await svc.dispatch(ActionRequest(ActionKind.BUY, 3, amount="5"))

        assert result.success is True
        gateway.buy_cost.assert_awaited_once_with(3, 5 * E18)
        call = orchestrator.execute.await_args.args[2]
        assert call.kind == ContractKind.BONDING_CURVE
        assert call.args == (3, 5 * E18)
        assert orchestrator.execute.await_args.kwargs["approval"].amount_raw == 7_000_000

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", ["0", "61", "abc", None])
    async def test_invalid_amount(self, gateway, orchestrator, ledger, repo, amount):
        svc = _service(gateway, orchestrator, ledger, repo)

        result = await svc.dispatch(ActionRequest(ActionKind.BUY, 3, amount=amount))

        assert result.success is False
        assert result.error_code == 1001
        orchestrator.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_buy_after_end_not_allowed(self, gateway, orchestrator, ledger, repo):
        repo.fetch_one = AsyncMock(return_value=_make_listing(end_time=NOW - 1))
        svc = _service(gateway, orchestrator, ledger, repo)

        result = await svc.dispatch(ActionRequest(ActionKind.BUY, 3, amount="1"))

        assert result.success is False
        assert result.error_code == 3003
        assert result.http_status == 422
        assert "REFUNDABLE" in result.message
        orchestrator.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_seller_cannot_buy(self, gateway, orchestrator, ledger, repo):
        orchestrator.current_signer = AsyncMock(return_value=SELLER)
        svc = _service(gateway, orchestrator, ledger, repo)

        result = await svc.dispatch(ActionRequest(ActionKind.BUY, 3, amount="1"))

        assert result.error_code == 3003

    @pytest.mark.asyncio
    async def test_stale_wallet(self, gateway, orchestrator, ledger, repo):
        orchestrator.current_signer = AsyncMock(side_effect=StaleWalletAddressError(BUYER, SELLER))
        svc = _service(gateway, orchestrator, ledger, repo)

        result = await svc.dispatch(ActionRequest(ActionKind.BUY, 3, amount="1", expected_wallet=BUYER))

        assert result.error_code == 4004
        assert result.http_status == 409
        repo.fetch_one.assert_not_awaited()


class TestSimpleActions:
    @pytest.mark.asyncio
    async def test_claim_refund(self, gateway, orchestrator, ledger, repo):
        repo.fetch_one = AsyncMock(
            return_value=_make_listing(end_time=NOW - 1, buyer=BuyerPosition(total_paid_raw=10))
        )
        svc = _service(gateway, orchestrator, ledger, repo)

        result = await svc.dispatch(ActionRequest(ActionKind.CLAIM_REFUND, 3))

        assert result.success is True
        assert result.message == "Refund claimed"
        call = orchestrator.execute.await_args.args[2]
        assert (call.function, call.args) == ("claimRefund", (3,))

    @pytest.mark.asyncio
    async def test_seller_cancel(self, gateway, orchestrator, ledger, repo):
        orchestrator.current_signer = AsyncMock(return_value=SELLER)
        svc = _service(gateway, orchestrator, ledger, repo)

        result = await svc.dispatch(ActionRequest(ActionKind.CANCEL, 3))

        assert result.success is True
        assert orchestrator.execute.await_args.args[2].function == "cancelListing"

    @pytest.mark.asyncio
    async def test_bonding_withdraw_unsold(self, gateway, orchestrator, ledger, repo):
        orchestrator.current_signer = AsyncMock(return_value=SELLER)
        repo.fetch_one = AsyncMock(
            return_value=_make_listing(model=PricingModel.BONDING_CURVE, end_time=NOW - 1)
        )
        svc = _service(gateway, orchestrator, ledger, repo, PricingModel.BONDING_CURVE)

        result = await svc.dispatch(ActionRequest(ActionKind.WITHDRAW_UNSOLD, 3))

        assert result.success is True
        assert orchestrator.execute.await_args.args[2].function == "withdrawExpiredFundsAndTokens"

    @pytest.mark.asyncio
    async def test_cancel_unsupported_on_bonding_curve(self, gateway, orchestrator, ledger, repo):
        svc = _service(gateway, orchestrator, ledger, repo, PricingModel.BONDING_CURVE)

        result = await svc.dispatch(ActionRequest(ActionKind.CANCEL, 3))

        assert result.error_code == 4007
        orchestrator.current_signer.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_list_is_not_a_listing_action(self, gateway, orchestrator, ledger, repo):
        svc = _service(gateway, orchestrator, ledger, repo)
        result = await svc.dispatch(ActionRequest(ActionKind.LIST, 3))
        assert result.error_code == 4007


class TestOperatorWithdraw:
    @pytest.fixture
    def expired_repo(self, repo):
        repo.resolve_caller = AsyncMock(return_value=Caller(address=OPERATOR, is_operator=True))
        repo.fetch_one = AsyncMock(return_value=_make_listing(end_time=NOW - 3600))
        return repo

    @pytest.mark.asyncio
    async def test_nothing_to_withdraw(self, gateway, orchestrator, ledger, expired_repo):
        orchestrator.current_signer = AsyncMock(return_value=OPERATOR)
        svc = _service(gateway, orchestrator, ledger, expired_repo)

        result = await svc.dispatch(ActionRequest(ActionKind.WITHDRAW_EXPIRED_FUNDS, 3))

        assert result.error_code == 3004
        orchestrator.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_withdraws_marketplace_balance(self, gateway, orchestrator, ledger, expired_repo):
        orchestrator.current_signer = AsyncMock(return_value=OPERATOR)
        gateway.balance_of = AsyncMock(return_value=5_000_000)
        svc = _service(gateway, orchestrator, ledger, expired_repo)

        result = await svc.dispatch(ActionRequest(ActionKind.WITHDRAW_EXPIRED_FUNDS, 3))

        assert result.success is True
        assert result.message == "Withdrew 5.0 USDC"
        gateway.balance_of.assert_awaited_once_with(USDC, MARKET)
        call = orchestrator.execute.await_args.args[2]
        assert (call.function, call.args) == ("withdrawPaymentTokens", (USDC, 5_000_000, OPERATOR))


class TestGenerateReferral:
    @pytest.mark.asyncio
    async def test_delegates_to_ledger(self, gateway, orchestrator, ledger, repo):
        repo.fetch_one = AsyncMock(return_value=_make_listing(referral_active=True, referral_percent=5))
        ledger.get_or_generate = AsyncMock(
            return_value=ReferralOutcome(3, "0xcode", "https://x?listingId=3&referral=0xcode", cached=True)
        )
        svc = _service(gateway, orchestrator, ledger, repo)

        result = await svc.dispatch(ActionRequest(ActionKind.GENERATE_REFERRAL, 3))

        assert result.success is True
        assert result.tx_hash is None
        assert result.data == {
            "code": "0xcode",
            "link": "https://x?listingId=3&referral=0xcode",
            "cached": True,
        }
        ledger.get_or_generate.assert_awaited_once_with(3, expected_wallet=BUYER)


def _command(**kwargs) -> ListTokenCommand:
    defaults = dict(
        token_address=TOKEN,
        amount="1000",
        price_per_share="0.5",
        payment_token=USDC,
        duration_seconds=7 * 24 * 3600,
        project_website="https://alpha.example",
    )
    defaults.update(kwargs)
    return ListTokenCommand(**defaults)


class TestListToken:
    @pytest.mark.asyncio
    async def test_lists_and_reports_new_id(self, gateway, orchestrator, ledger, repo):
        svc = _service(gateway, orchestrator, ledger, repo)

        result = await svc.list_token(_command(referral_active=True, referral_percent=5))

        assert result.success is True
        assert result.listing_id == 4
        call = orchestrator.execute.await_args.args[2]
        assert call.function == "listToken"
        assert call.args[:6] == (TOKEN, 1000 * E18, E18 // 2, USDC, True, 5)
        assert call.args[6] == ("https://alpha.example", "", "", "", "")
        assert call.args[7] == 7 * 24 * 3600
        approval = orchestrator.execute.await_args.kwargs["approval"]
        assert (approval.token, approval.amount_raw) == (TOKEN, 1000 * E18)

    @pytest.mark.asyncio
    async def test_referral_percent_zeroed_when_inactive(self, gateway, orchestrator, ledger, repo):
        svc = _service(gateway, orchestrator, ledger, repo)
        await svc.list_token(_command(referral_percent=30))
        assert orchestrator.execute.await_args.args[2].args[5] == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "overrides,code",
        [
            ({"token_address": "0x1234"}, 1002),
            ({"payment_token": "not-an-address"}, 1002),
            ({"referral_active": True, "referral_percent": 0}, 1003),
            ({"duration_seconds": 60}, 1003),
            ({"amount": "0"}, 1001),
            ({"price_per_share": "0"}, 1001),
        ],
    )
    async def test_validation(self, gateway, orchestrator, ledger, repo, overrides, code):
        svc = _service(gateway, orchestrator, ledger, repo)

        result = await svc.list_token(_command(**overrides))

        assert result.success is False
        assert result.error_code == code
        orchestrator.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_bonding_curve_listing(self, gateway, orchestrator, ledger, repo):
        gateway.token_info = AsyncMock(side_effect=[
            ChainTokenInfo(address=TOKEN, name="Alpha", symbol="ALP", decimals=18),
            ChainTokenInfo(address=USDC, name="USD Coin", symbol="USDC", decimals=6),
        ])
        svc = _service(gateway, orchestrator, ledger, repo, PricingModel.BONDING_CURVE)

        result = await svc.list_token(_command())

        assert result.success is True
        assert result.listing_id == 4
        call = orchestrator.execute.await_args.args[2]
        assert call.kind == ContractKind.BONDING_CURVE
        assert call.function == "listToken"
        assert call.args == (
            TOKEN, 1000 * E18, 500_000, USDC, 7 * 24 * 3600, ("https://alpha.example", "", "", "", ""),
        )

    @pytest.mark.asyncio
    async def test_bonding_curve_rejects_referral(self, gateway, orchestrator, ledger, repo):
        svc = _service(gateway, orchestrator, ledger, repo, PricingModel.BONDING_CURVE)

        result = await svc.list_token(_command(referral_active=True, referral_percent=5))

        assert result.error_code == 1003
        orchestrator.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_confirmed_listing_succeeds_without_new_id(self, gateway, orchestrator, ledger, repo):
        gateway.listing_count = AsyncMock(side_effect=ConnectionError("rpc down"))
        svc = _service(gateway, orchestrator, ledger, repo)

        result = await svc.list_token(_command())

        assert result.success is True
        assert result.tx_hash == "0xtx"
        assert result.listing_id is None

    @pytest.mark.asyncio
    async def test_token_read_failure_is_a_failed_result(self, gateway, orchestrator, ledger, repo):
        gateway.token_info = AsyncMock(side_effect=ConnectionError("rpc down"))
        svc = _service(gateway, orchestrator, ledger, repo)

        result = await svc.list_token(_command())

        assert result.success is False
        assert result.error_code == 4005
        assert "rpc down" in result.message


class TestFailuresBecomeResults:
    @pytest.mark.asyncio
    async def test_operator_balance_read_failure(self, gateway, orchestrator, ledger, repo):
        orchestrator.current_signer = AsyncMock(return_value=OPERATOR)
        repo.resolve_caller = AsyncMock(return_value=Caller(address=OPERATOR, is_operator=True))
        repo.fetch_one = AsyncMock(return_value=_make_listing(end_time=NOW - 3600))
        gateway.balance_of = AsyncMock(side_effect=ConnectionError("rpc down"))
        svc = _service(gateway, orchestrator, ledger, repo)

        result = await svc.dispatch(ActionRequest(ActionKind.WITHDRAW_EXPIRED_FUNDS, 3))

        assert result.success is False
        assert result.error_code == 4005
        assert "rpc down" in result.message
        orchestrator.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_bonding_quote_failure(self, gateway, orchestrator, ledger, repo):
        repo.fetch_one = AsyncMock(return_value=_make_listing(model=PricingModel.BONDING_CURVE))
        gateway.buy_cost = AsyncMock(side_effect=TimeoutError("read timed out"))
        svc = _service(gateway, orchestrator, ledger, repo, PricingModel.BONDING_CURVE)

        result = await svc.dispatch(ActionRequest(ActionKind.BUY, 3, amount="1"))

        assert result.success is False
        assert result.listing_id == 3
        assert result.error_code == 4005

    @pytest.mark.asyncio
    async def test_listing_read_failure(self, gateway, orchestrator, ledger, repo):
        repo.fetch_one = AsyncMock(side_effect=OSError("connection reset"))
        svc = _service(gateway, orchestrator, ledger, repo)

        result = await svc.dispatch(ActionRequest(ActionKind.CLAIM_REFUND, 3))

        assert result.success is False
        assert result.http_status == 502

    @pytest.mark.asyncio
    async def test_malformed_referral_code(self, gateway, orchestrator, ledger, repo):
        svc = _service(gateway, orchestrator, ledger, repo)

        result = await svc.dispatch(ActionRequest(ActionKind.BUY, 3, amount="1", referral_code="0xzz"))

        assert result.error_code == 1004
        assert result.message.startswith("Invalid referral code")
        orchestrator.execute.assert_not_awaited()
