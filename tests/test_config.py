import pytest

from utp_gateway.core.config import Settings
from utp_gateway.services.container import build_container


def test_defaults():
    settings = Settings(_env_file=None)
    settings.init_post_load()
    assert settings.price_cache_ttl_seconds == 30.0
    assert settings.conversion_fee_rate == 0.0005
    assert settings.same_asset_policy == "reject"
    assert settings.mixed_inr_share == 0.5
    assert settings.neft_settlement_status == "processing"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("SAME_ASSET_POLICY", "passthrough")
    monkeypatch.setenv("MIXED_INR_SHARE", "0.7")
    settings = Settings(_env_file=None)
    settings.init_post_load()
    assert settings.same_asset_policy == "passthrough"
    assert settings.mixed_inr_share == 0.7


@pytest.mark.parametrize(
    "overrides",
    [
        {"price_provider": "bloomberg"},
        {"same_asset_policy": "ignore"},
        {"neft_settlement_status": "queued"},
        {"mixed_inr_share": 1.2},
        {"conversion_history_limit": 0},
        {"simulated_latency_scale": -1},
    ],
)
def test_invalid_choices(overrides):
    settings = Settings(_env_file=None, **overrides)
    with pytest.raises(ValueError):
        settings.init_post_load()


def test_container_follows_settings():
    settings = Settings(
        _env_file=None, price_provider="static", same_asset_policy="passthrough"
    )
    services = build_container(settings)
    assert services.oracle.status()["provider"] == "static"
    assert services.conversion.status()["same_asset_policy"] == "passthrough"
    assert services.conversion.history.limit == settings.conversion_history_limit
