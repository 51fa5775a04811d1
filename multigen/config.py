"""
Pipeline Configuration

Settings for batch runs, loaded from MULTIGEN_* environment variables
or a .env file. Command-line flags override them.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic_settings import BaseSettings


class PipelineSettings(BaseSettings):
    """
    Batch pipeline settings.

    Settings can be overridden with environment variables or .env file.
    """

    # Which multigenerational definition feeds the aggregates
    multigen_definition: Literal['any', 'adjacent'] = 'any'

    # Households whose members disagree on weight/multigen status
    on_inconsistent: Literal['warn', 'raise'] = 'warn'

    # Paths
    output_dir: Path = Path("./output")
    cache_dir: Path = Path("./reference_cache")

    # Result store (optional)
    database_url: Optional[str] = None

    # Logging
    log_level: str = "INFO"

    class Config:
        env_prefix = "MULTIGEN_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


@lru_cache()
def get_settings() -> PipelineSettings:
    """
    Get cached settings instance.
    """
    return PipelineSettings()
