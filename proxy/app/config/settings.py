"""Settings for the HTTP front end."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    host: str = Field("0.0.0.0", validation_alias="HOST")
    port: int = Field(3000, validation_alias="PORT")

    upstream_timeout_seconds: float = Field(3.0, ge=0, validation_alias="UPSTREAM_TIMEOUT_SECONDS")
