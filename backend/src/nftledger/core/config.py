"""Application configuration using Pydantic BaseSettings."""

import logging

import structlog
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file="../.env", env_file_encoding="utf-8", extra="ignore")

    # Database Configuration
    database_url: str = Field(alias="DATABASE_URL")
    db_pool_size: int = Field(default=20, alias="DB_POOL_SIZE")

    # Application Environment
    app_env: str = Field(default="development", alias="APP_ENV")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Chain Access
    rpc_url: str = Field(default="", alias="RPC_URL")
    contract_address: str = Field(default="", alias="CONTRACT_ADDRESS")
    start_block: int = Field(default=0, ge=0, alias="START_BLOCK")
    log_batch_size: int = Field(default=1000, gt=0, alias="LOG_BATCH_SIZE")

    # Token Metadata Resolution
    ipfs_gateway: str = Field(default="https://ipfs.io", alias="IPFS_GATEWAY")
    arweave_gateway: str = Field(default="https://arweave.net", alias="ARWEAVE_GATEWAY")
    metadata_fetch_enabled: bool = Field(default=True, alias="METADATA_FETCH_ENABLED")
    metadata_fetch_timeout_seconds: float = Field(
        default=10.0, gt=0, alias="METADATA_FETCH_TIMEOUT_SECONDS"
    )

    @model_validator(mode="after")
    def validate_required_config(self) -> "Settings":
        """Validate required configuration on startup.

        Fails fast with one aggregated message if the indexer cannot reach the chain.
        Validation is skipped in test environments.
        """
        if self.app_env in ("test", "testing"):
            return self

        missing = []

        if not self.rpc_url:
            missing.append("RPC_URL: JSON-RPC endpoint of the chain to index")

        if not self.contract_address:
            missing.append("CONTRACT_ADDRESS: Address of the ERC-721 contract to index")

        if missing:
            error_msg = "CRITICAL: Missing required environment variables:\n\n" + "\n".join(
                f"  - {m}" for m in missing
            )
            error_msg += "\n\nThe indexer cannot start without these variables."
            error_msg += "\nPlease update your .env file and restart."
            raise ValueError(error_msg)

        return self


def configure_logging(settings: Settings) -> None:
    """Configure structlog based on application environment.

    - Production: JSON output for log aggregation
    - Development: Console output for human readability

    Events below settings.log_level are dropped.
    """
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    if settings.app_env == "production":
        renderer_processors = [
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        renderer_processors = [structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            *renderer_processors,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
