"""Shared test fixtures for the fund dashboard."""

import pytest

from fundboard.config import (
    AppSettings,
    AssetSettings,
    SessionSettings,
    UpstreamSettings,
)


@pytest.fixture
def upstream_settings() -> UpstreamSettings:
    """Upstream settings with a dummy API key and default identifiers."""
    return UpstreamSettings(
        api_key="test-api-key",  # type: ignore[arg-type]
        base_url="https://breeze.test",
        user_id="default-user",
        fund_id="default-fund",
    )


@pytest.fixture
def bare_upstream_settings() -> UpstreamSettings:
    """Upstream settings with no default identifiers at all."""
    return UpstreamSettings(
        api_key="test-api-key",  # type: ignore[arg-type]
        base_url="https://breeze.test",
        user_id=None,
        user_key=None,
        fund_id=None,
        payer_key=None,
    )


@pytest.fixture
def asset_settings() -> AssetSettings:
    """USDC base asset with SOL as an extra balance mint."""
    return AssetSettings()


@pytest.fixture
def session_settings() -> SessionSettings:
    return SessionSettings(bff_base_url="http://bff.test/api", settle_delay_seconds=0.01)


@pytest.fixture
def mock_settings(
    upstream_settings: UpstreamSettings,
    asset_settings: AssetSettings,
    session_settings: SessionSettings,
) -> AppSettings:
    """Return AppSettings with test defaults (dummy API key, default user and fund)."""
    return AppSettings(
        log_level="DEBUG",
        upstream=upstream_settings,
        asset=asset_settings,
        session=session_settings,
    )
