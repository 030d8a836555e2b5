"""Application container: the single place services are wired together.

Routers reach services through the ``get_container`` dependency; tests
swap the whole graph with ``app.dependency_overrides[get_container]``.
"""

from dataclasses import dataclass

from config.settings import settings
from src.lp_chain.infrastructure.gateway import Web3MarketplaceGateway
from src.lp_common.enums import PricingModel
from src.lp_common.errors import InternalError
from src.lp_listing.application.scheduler import RefreshScheduler
from src.lp_listing.application.service import ListingApplicationService
from src.lp_listing.application.store import ListingStore
from src.lp_listing.domain.state import ListingStateEngine, StateConfig
from src.lp_listing.infrastructure.chain_repository import ListingRepository
from src.lp_referral.application.service import ReferralLedger
from src.lp_referral.infrastructure.store import RedisReferralStore
from src.lp_tx.application.actions import ActionService
from src.lp_tx.application.orchestrator import TransactionOrchestrator


@dataclass
class Container:
    gateway: Web3MarketplaceGateway
    listings: ListingApplicationService
    scheduler: RefreshScheduler
    ledger: ReferralLedger
    actions: ActionService


def build_container() -> Container:
    model = PricingModel(settings.MARKETPLACE_MODEL)
    gateway = Web3MarketplaceGateway.from_settings()
    engine = ListingStateEngine(StateConfig.from_settings())
    repo = ListingRepository(gateway, model)
    listings = ListingApplicationService(repo, ListingStore(engine))
    orchestrator = TransactionOrchestrator(gateway)
    ledger = ReferralLedger(gateway, orchestrator, RedisReferralStore(), model)
    return Container(
        gateway=gateway,
        listings=listings,
        scheduler=RefreshScheduler(listings.refresh, settings.REFRESH_INTERVAL_SECONDS),
        ledger=ledger,
        actions=ActionService(gateway, orchestrator, ledger, repo, engine, model),
    )


_container: Container | None = None


def set_container(container: Container | None) -> None:
    global _container  # noqa: PLW0603
    _container = container


def get_container() -> Container:
    if _container is None:
        raise InternalError("Application container not initialised")
    return _container
