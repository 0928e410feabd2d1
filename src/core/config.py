from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Credentials and endpoints, read from the environment or ``.env``."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "sentinel-agent"
    env: str = "development"

    GITHUB_API_URL: str = "https://api.github.com"
    GITHUB_TOKEN: Optional[str] = None
    GITHUB_APP_ID: Optional[str] = None
    GITHUB_APP_PRIVATE_KEY: Optional[str] = None
    GITHUB_WEBHOOK_SECRET: Optional[str] = None

    ANTHROPIC_API_KEY: Optional[str] = None
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_API_BASE_URL: str = "https://api.openai.com/v1"
    OPENAI_API_ORG: Optional[str] = None

    @property
    def github_auth_mode(self) -> Optional[str]:
        """How GitHub calls authenticate: a static token, App installation tokens, or None."""
        if self.GITHUB_TOKEN:
            return "token"
        if self.GITHUB_APP_ID and self.GITHUB_APP_PRIVATE_KEY:
            return "app"
        return None


settings = Settings()
