from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
SOL_MINT = "So11111111111111111111111111111111111111112"


class Settings(BaseSettings):
    """Runtime configuration, read from the environment and an optional .env file."""

    ENV: Literal["dev", "prod"] = "dev"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    LOG_TO_FILE: bool = True
    SLACK_WEBHOOK_URL: str | None = None

    # API docs: None follows ENV
    DOCS_ENABLED: bool | None = None

    # Upstream endpoints
    TOKEN_LIST_URL: str = "https://token.jup.ag/all"
    QUOTE_API_URL: str = "https://quote-api.jup.ag/v6"
    RPC_URLS: list[str] = [
        "https://api.mainnet-beta.solana.com",
        "https://rpc.ankr.com/solana",
        "https://solana-api.projectserum.com",
    ]

    # Quote currency (prices are expressed in it) and bridging asset
    QUOTE_MINT: str = USDC_MINT
    QUOTE_SYMBOL: str = "USDC"
    QUOTE_DECIMALS: int = 6
    NATIVE_MINT: str = SOL_MINT
    NATIVE_SYMBOL: str = "SOL"
    NATIVE_DECIMALS: int = 9

    # Cache freshness windows
    CATALOG_TTL_SECONDS: int = 60 * 60
    CATALOG_RETRY_SECONDS: int = 60  # fallback catalog is retried sooner
    SNAPSHOT_PATH: str = "token_cache.json"
    SNAPSHOT_TTL_SECONDS: int = 60 * 60
    PRICE_CACHE_TTL_SECONDS: int = 5 * 60
    FALLBACK_CACHE_MAX_ENTRIES: int = 1000

    # Outbound HTTP
    HTTP_TIMEOUT_SECONDS: float = 15.0
    HTTP_MAX_RETRIES: int = 3
    HTTP_BACKOFF_BASE_SECONDS: float = 2.0  # 2s, 4s, 8s
    HTTP_USER_AGENT: str = "SolanaTokenPricer/1.0"
    DIAGNOSTIC_TIMEOUT_SECONDS: float = 5.0

    # Slippage tolerance per cascade stage, in basis points
    DIRECT_SLIPPAGE_BPS: int = 50
    BRIDGE_SLIPPAGE_BPS: int = 100
    RELAXED_SLIPPAGE_BPS: list[int] = [100, 200, 500]

    # Request shaping
    BATCH_MAX_ITEMS: int = 10
    BATCH_ITEM_DELAY_SECONDS: float = 0.2
    SEARCH_DEFAULT_LIMIT: int = 10
    SEARCH_MIN_QUERY_LENGTH: int = 2
    PAGE_DEFAULT_SIZE: int = 100
    REQUEST_DEADLINE_SECONDS: float | None = None
    HEALTH_PROBE_MINT: str | None = None

    # HTTP API edge
    CORS_ORIGINS: list[str] = ["*"]
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT: str = "30/minute"  # per client IP, /api routes only

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def is_production(self) -> bool:
        return self.ENV == "prod"

    @property
    def debug_enabled(self) -> bool:
        return not self.is_production

    @property
    def effective_log_level(self) -> str:
        """LOG_LEVEL, floored at INFO in prod."""
        if self.is_production and self.LOG_LEVEL.upper() in {"TRACE", "DEBUG"}:
            return "INFO"
        return self.LOG_LEVEL

    @property
    def docs_enabled(self) -> bool:
        return self.DOCS_ENABLED if self.DOCS_ENABLED is not None else not self.is_production

    @property
    def health_probe_mint(self) -> str:
        """Token priced by the status probe; the quote currency unless overridden."""
        return self.HEALTH_PROBE_MINT or self.QUOTE_MINT


settings = Settings()
