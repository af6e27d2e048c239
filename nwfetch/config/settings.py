"""Settings for the fetch client."""

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # 0 means no client-level timeout; the engine default applies.
    timeout_seconds: float = Field(0.0, ge=0, validation_alias="NWFETCH_TIMEOUT_SECONDS")

    engine_backend: str = Field("loopback", validation_alias="NWFETCH_ENGINE_BACKEND")

    # Hex-encoded 32-byte seed. Empty means an ephemeral identity per client.
    identity_seed: SecretStr = Field(SecretStr(""), validation_alias="NWFETCH_IDENTITY_SEED")

    max_streams: int = Field(0, ge=0, validation_alias="NWFETCH_MAX_STREAMS")
    max_message_size: int = Field(0, ge=0, validation_alias="NWFETCH_MAX_MESSAGE_SIZE")
    compression: str = Field("", validation_alias="NWFETCH_COMPRESSION")

    pool_size: int = Field(0, ge=0, validation_alias="NWFETCH_POOL_SIZE")
