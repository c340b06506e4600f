"""Environment-driven settings for the payment services.

Each service process loads settings once at startup via `load_settings()` and
passes the resulting object into its components. Missing merchant credentials
fail the process immediately (see `.env.example`).
"""

from pydantic import Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from storepay.common.errors import ConfigurationError


class GatewaySettings(BaseSettings):
    """Typed view of runtime configuration from environment variables."""

    service_name: str = "storepay"
    log_level: str = "INFO"
    postgres_dsn: str
    db_statement_timeout_ms: int = Field(default=5000, gt=0)
    merchant_address: str
    payment_secret_key: SecretStr
    site_url: str
    gateway_pay_url: str = "https://capitalist.net/merchant/payGate/createorder"
    webhook_url: str | None = None
    default_language: str = "ru"
    otel_exporter_otlp_endpoint: str = "http://otel-collector:4318/v1/traces"
    tracing_enabled: bool = True
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @field_validator("merchant_address", "site_url", "postgres_dsn")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value.strip()

    @field_validator("payment_secret_key")
    @classmethod
    def _secret_not_blank(cls, value: SecretStr) -> SecretStr:
        if not value.get_secret_value():
            raise ValueError("must not be empty")
        return value

    @field_validator("default_language")
    @classmethod
    def _supported_language(cls, value: str) -> str:
        if value not in ("ru", "en"):
            raise ValueError("must be 'ru' or 'en'")
        return value

    @property
    def interaction_url(self) -> str:
        """Webhook URL handed to the gateway with every payment request."""

        return self.webhook_url or f"{self.site_url.rstrip('/')}/api/payment-webhook"


def load_settings(**overrides) -> GatewaySettings:
    """Build and validate settings, turning validation errors into `ConfigurationError`."""

    try:
        return GatewaySettings(**overrides)
    except ValidationError as exc:
        fields = sorted({".".join(str(part) for part in err["loc"]) for err in exc.errors()})
        raise ConfigurationError(f"invalid or missing settings: {', '.join(fields)}") from exc
