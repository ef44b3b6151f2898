from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    """
    Application configuration settings.

    Shared by the gateway and the resolver processes; each reads only what
    it needs. The downstream URL, weather key and collector endpoint keep
    their conventional unprefixed variable names.
    """
    model_config = SettingsConfigDict(
        env_prefix="CEP_WEATHER_", env_file=".env", extra="ignore", populate_by_name=True
    )

    # Service Info
    gateway_service_name: str = "cep-gateway"
    resolver_service_name: str = "cep-resolver"
    log_level: str = "INFO"

    # API
    api_host: str = "0.0.0.0"
    gateway_port: int = 8080
    resolver_port: int = 8081

    # Downstream
    resolver_url: str = Field(
        default="http://service-b:8081",
        validation_alias=AliasChoices("SERVICE_B_URL", "CEP_WEATHER_RESOLVER_URL"),
    )
    http_timeout_seconds: float = 5.0

    # Weather API
    weather_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("WEATHER_API_KEY", "CEP_WEATHER_WEATHER_API_KEY"),
    )

    # Tracing
    tracing_enabled: bool = True
    trace_exporter: str = "otlp"  # otlp | logging | json
    otel_exporter_otlp_endpoint: str = Field(
        default="http://otel-collector:4318",
        validation_alias=AliasChoices("OTEL_EXPORTER_OTLP_ENDPOINT", "CEP_WEATHER_OTLP_ENDPOINT"),
    )
    export_batch_size: int = 512
    export_schedule_delay_seconds: float = 5.0
    shutdown_timeout_seconds: float = 5.0

settings = Settings()
