"""Configuration management."""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Runtime settings pulled from ``ORBIS_*`` environment variables."""

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(default="json", description="Logging format (plain or json)")

    # Chunk blending
    chunk_width: int = Field(default=16, ge=1, description="Chunk width in cells")
    sampling_frequency: float = Field(
        default=0.02, gt=0, description="Frequency of the blend point field"
    )
    min_blend_radius: float = Field(
        default=32.0, ge=0, description="Minimum blend kernel radius"
    )

    # Layer descent
    max_descent_depth: Optional[int] = Field(
        default=None,
        ge=1,
        description="Descent depth ceiling (defaults to region count + 1)",
    )

    # Performance
    max_workers: int = Field(default=4, ge=1, description="Threads used for multi-chunk blending")

    class Config:
        env_prefix = "ORBIS_"
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
