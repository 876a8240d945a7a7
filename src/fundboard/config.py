"""Configuration system using pydantic-settings with environment variable loading."""

from dataclasses import dataclass

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

USDC_MINT_ADDRESS = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
SOLANA_MINT_ADDRESS = "So11111111111111111111111111111111111111112"
USDC_DECIMALS = 6


@dataclass(frozen=True)
class DefaultContext:
    """Identifiers used when a request does not carry its own."""

    user_id: str | None
    user_key: str | None
    fund_id: str | None
    payer_key: str | None


class UpstreamSettings(BaseSettings):
    """Breeze fund API connection settings and default identifiers."""

    model_config = SettingsConfigDict(env_prefix="BREEZE_")

    api_key: SecretStr = SecretStr("")
    base_url: str = "https://api.breeze.baby"
    api_timeout_ms: int | None = None
    user_id: str | None = None
    user_key: str | None = None
    fund_id: str | None = None
    payer_key: str | None = None

    def default_context(self) -> DefaultContext:
        """Resolve default identifiers.

        user_key falls back to user_id, payer_key falls back to user_key.
        Blank values count as missing.
        """
        user_id = _blank_to_none(self.user_id)
        user_key = _blank_to_none(self.user_key) or user_id
        return DefaultContext(
            user_id=user_id,
            user_key=user_key,
            fund_id=_blank_to_none(self.fund_id),
            payer_key=_blank_to_none(self.payer_key) or user_key,
        )


class AssetSettings(BaseSettings):
    """Base asset the fund is denominated in."""

    model_config = SettingsConfigDict(env_prefix="ASSET_")

    base_mint: str = USDC_MINT_ADDRESS
    base_symbol: str = "USDC"
    base_decimals: int = USDC_DECIMALS
    # Additional mints whose wallet balances are reported by /metrics
    extra_balance_mints: list[str] = [SOLANA_MINT_ADDRESS]


class ServerSettings(BaseSettings):
    """BFF HTTP server configuration."""

    model_config = SettingsConfigDict(env_prefix="SERVER_")

    host: str = "0.0.0.0"
    port: int = 8080


class SessionSettings(BaseSettings):
    """Client-side session configuration."""

    model_config = SettingsConfigDict(env_prefix="SESSION_")

    bff_base_url: str = "http://localhost:8080/api"
    settle_delay_seconds: float = 0.5  # wait before refetching after a signed transaction
    request_timeout_seconds: float = 30.0


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    upstream: UpstreamSettings = UpstreamSettings()
    asset: AssetSettings = AssetSettings()
    server: ServerSettings = ServerSettings()
    session: SessionSettings = SessionSettings()


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None
