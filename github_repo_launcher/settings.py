"""Plugin settings loaded from environment variables and .env file."""

from dataclasses import dataclass, field
from functools import lru_cache
from typing import Annotated

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_API_URL = "https://api.github.com"
MIN_RESULT_NUMBER = 30
MAX_RESULT_NUMBER = 100


def _split_lines(value):
    """Accept a list, or a newline/comma separated string as the settings UI stores it."""
    if value is None:
        return []
    if isinstance(value, str):
        value = value.replace(",", "\n").splitlines()
    return [item.strip() for item in value if item and item.strip()]


def _split_positional(value):
    """Like _split_lines, but blank entries keep their slot so pairing by position holds."""
    if value is None:
        return []
    if isinstance(value, str):
        value = value.replace(",", "\n").split("\n")
    return [(item or "").strip() for item in value]


class Settings(BaseSettings):
    """Settings for the repository launcher."""

    model_config = SettingsConfigDict(
        env_prefix="GH_REPO_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_users: Annotated[list[str], NoDecode] = []
    # Paired with default_users by position
    auth_tokens: Annotated[list[str], NoDecode] = []
    result_number: int = MIN_RESULT_NUMBER
    self_host_url: str | None = None

    @field_validator("default_users", mode="before")
    @classmethod
    def _parse_multiline(cls, value):
        return _split_lines(value)

    @field_validator("auth_tokens", mode="before")
    @classmethod
    def _parse_tokens(cls, value):
        return _split_positional(value)

    @field_validator("result_number", mode="before")
    @classmethod
    def _clamp_result_number(cls, value):
        if value is None or value == "":
            return MIN_RESULT_NUMBER
        return max(MIN_RESULT_NUMBER, min(MAX_RESULT_NUMBER, int(value)))


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


@dataclass(frozen=True)
class ClientConfig:
    """Immutable snapshot of everything a fetch needs.

    Replaced wholesale on settings updates, so a request that captured a
    snapshot keeps using it until it finishes.
    """

    default_users: tuple[str, ...] = ()
    tokens: dict[str, str] = field(default_factory=dict)
    fallback_token: str | None = None
    page_size: int = MIN_RESULT_NUMBER
    api_url: str = DEFAULT_API_URL

    @classmethod
    def from_settings(cls, settings: Settings) -> "ClientConfig":
        users = tuple(settings.default_users)
        tokens = {
            user.lower(): token
            for user, token in zip(users, settings.auth_tokens)
            if token
        }
        url = (settings.self_host_url or "").strip().rstrip("/")
        return cls(
            default_users=users,
            tokens=tokens,
            fallback_token=next((token for token in settings.auth_tokens if token), None),
            page_size=settings.result_number,
            api_url=url or DEFAULT_API_URL,
        )

    def credential_for(self, user: str | None) -> str | None:
        """Token paired with `user`, else the first configured token."""
        if user is not None:
            token = self.tokens.get(user.lower())
            if token:
                return token
        return self.fallback_token

    def owns_token(self, user: str) -> bool:
        return user.lower() in self.tokens
