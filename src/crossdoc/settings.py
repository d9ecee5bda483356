"""Settings for CrossDoc."""

from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class CrossDocSettings(BaseSettings):
    """CrossDoc configuration settings."""

    # DynamoDB
    AWS_REGION: str = "us-east-1"
    AWS_ACCESS_KEY_ID: Optional[str] = None
    AWS_SECRET_ACCESS_KEY: Optional[str] = None
    DYNAMODB_ENDPOINT_URL: Optional[str] = None

    # Cosmos DB
    COSMOS_CONNECTION_STRING: Optional[str] = None
    COSMOS_DATABASE: Optional[str] = None

    # Query settings
    DEFAULT_PAGE_SIZE: int = 100
    WRITE_POLICY: Literal["checked", "unchecked"] = "checked"
    # Cosmos only: compile endsWith to ENDSWITH instead of the CONTAINS approximation
    EXACT_SUFFIX_MATCH: bool = False
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


settings = CrossDocSettings()
