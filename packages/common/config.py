from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Strongly-typed settings model loaded from env / .env.

    Notes:
        - The database DSN and identity-provider secrets come from the environment.
        - No insecure defaults are shipped for secrets; verifier construction
          fails fast when neither a JWT key nor a provider URL is configured.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        protected_namespaces=()
    )

    ENV: str = Field(..., description="Deployment environment, e.g. dev/staging/prod")
    SERVICE_NAME: str = Field(default="softai", description="Service name")
    LOG_LEVEL: str = Field(default="INFO", description="Root log level")

    DATABASE_DSN: str = Field(..., description="SQLAlchemy async DSN, e.g. postgresql+asyncpg://...")

    JWT_KEY: str | None = Field(default=None, description="Identity provider JWT secret or public key")
    JWT_ALGORITHMS: list[str] = Field(default=["RS256"], description="Accepted JWT algorithms")
    OIDC_AUDIENCE: str | None = Field(default=None, description="Expected token audience")
    OIDC_ISSUER: str | None = Field(default=None, description="Expected token issuer")

    IDENTITY_PROVIDER_URL: str | None = Field(default=None, description="Base URL of the identity provider")
    IDENTITY_PROVIDER_API_KEY: str | None = Field(default=None, description="API key sent to the identity provider")
    IDENTITY_PROVIDER_TIMEOUT: float = Field(default=10.0, description="Seconds before a provider call fails")

    CERTIFICATE_PREFIX: str = Field(default="SOFTAI", description="Product prefix of certificate codes")


@lru_cache()
def get_settings() -> Settings:
    """Return a cached singleton `Settings` instance."""
    return Settings()
