from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment with defaults.

    Environment variable mapping follows pydantic's rules (e.g., APP_NAME, DEBUG,
    PRICE_CACHE_TTL_SECONDS, SAME_ASSET_POLICY, MIXED_INR_SHARE).
    """

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Basic app metadata
    app_name: str = "UTP Gateway"
    debug: bool = False
    version: str = "0.1.0"

    # Price oracle
    # Allowed: 'simulated' (base table with +/-0.1% jitter), 'static' (base table as-is)
    price_provider: str = "simulated"
    price_cache_ttl_seconds: float = 30.0

    # Conversion engine
    conversion_fee_rate: float = 0.0005  # 0.05%
    max_slippage: float = 0.002  # 0.2%
    slippage_protection: bool = True
    quote_validity_seconds: float = 5.0
    conversion_history_limit: int = 10000
    # 'reject' raises SameAssetError, 'passthrough' returns the amount at rate 1
    same_asset_policy: str = "reject"

    # Settlement engine
    settlement_store_limit: int = 10000
    # Share of a mixed settlement paid out over the INR leg; remainder goes to BINR
    mixed_inr_share: float = 0.5
    neft_settlement_status: str = "processing"
    simulated_latency_scale: float = 1.0
    dispatch_timeout_seconds: Optional[float] = 30.0

    def init_post_load(self) -> None:
        """Validate enumerated choices and ranges."""
        providers = {"simulated", "static"}
        if self.price_provider not in providers:
            raise ValueError(
                f"Unsupported price_provider '{self.price_provider}'. Allowed: {providers}"
            )
        policies = {"reject", "passthrough"}
        if self.same_asset_policy not in policies:
            raise ValueError(
                f"Unsupported same_asset_policy '{self.same_asset_policy}'. Allowed: {policies}"
            )
        neft_statuses = {"processing", "completed"}
        if self.neft_settlement_status not in neft_statuses:
            raise ValueError(
                f"Unsupported neft_settlement_status '{self.neft_settlement_status}'. Allowed: {neft_statuses}"
            )
        if not (0.0 <= self.mixed_inr_share <= 1.0):
            raise ValueError("mixed_inr_share must be within 0..1")
        if self.conversion_history_limit <= 0 or self.settlement_store_limit <= 0:
            raise ValueError("store limits must be positive")
        if self.simulated_latency_scale < 0:
            raise ValueError("simulated_latency_scale cannot be negative")


@lru_cache
def get_settings() -> Settings:
    settings = Settings()
    settings.init_post_load()
    return settings
