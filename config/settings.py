from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Chain (defaults target Base mainnet)
    RPC_URL: str = "https://mainnet.base.org"
    CHAIN_ID: int = 8453
    MARKETPLACE_ADDRESS: str = "0x338a419639cD3c2089DB55aDEA4b9c47739596f0"
    MARKETPLACE_MODEL: str = "FIXED_PRICE"  # FIXED_PRICE | BONDING_CURVE

    # Signer is optional; without it the client is read-only
    SIGNER_PRIVATE_KEY: str | None = None

    # Redis (referral-code persistence)
    REDIS_URL: str = "redis://localhost:6379/0"
    REFERRAL_KEY_PREFIX: str = "referralCodes"
    REFERRAL_CACHE_CAPACITY: int = 50
    REFERRAL_LINK_ORIGIN: str = "http://localhost:3000/marketplace"

    # Lifecycle thresholds differ per deployment (85/100 vs 85/98.5, 22 min vs 30 days)
    GRADUATION_THRESHOLD_PCT: str = "85"
    MASTER_THRESHOLD_PCT: str = "100"
    REFUND_WINDOW_SECONDS: int = 30 * 24 * 3600
    OPERATOR_WITHDRAW_DELAY_SECONDS: int = 22 * 60

    # Transactions
    GAS_BUFFER_PCT: int = 20
    MIN_LISTING_DURATION_SECONDS: int = 600

    # Listing scan
    REFRESH_INTERVAL_SECONDS: float = 240.0
    FETCH_CONCURRENCY: int = 8

    # App
    APP_NAME: str = "Presale Launchpad Client"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"


settings = Settings()
