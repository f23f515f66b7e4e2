"""Discord API configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import require_env_vars
from .http_resilience import RateLimit, ResilienceConfig

DISCORD_API_BASE_URL = "https://discord.com/api/v10"
DISCORD_GATEWAY_URL = "wss://gateway.discord.gg/?v=10&encoding=json"
DISCORD_TIMEOUT_SECONDS = 15.0
# Discord rejects bot requests without a "DiscordBot (url, version)" user agent.
DISCORD_USER_AGENT = "DiscordBot (https://pypi.org/project/rolesync, 0.1)"


@dataclass(frozen=True)
class DiscordConfig:
    """Holds Discord bot configuration values."""

    token: str
    resilience: ResilienceConfig
    gateway_url: str = DISCORD_GATEWAY_URL

    @property
    def authorization(self) -> str:
        return f"Bot {self.token}"


def default_discord_resilience() -> ResilienceConfig:
    return ResilienceConfig(
        name="discord",
        base_url=DISCORD_API_BASE_URL,
        timeout_seconds=DISCORD_TIMEOUT_SECONDS,
        ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
        default_headers={"User-Agent": DISCORD_USER_AGENT},
    )


def get_discord_config(*, resilience: ResilienceConfig | None = None) -> DiscordConfig:
    values = require_env_vars(("DISCORD_TOKEN",))
    return DiscordConfig(
        token=values["DISCORD_TOKEN"],
        resilience=resilience or default_discord_resilience(),
    )
