from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, Dict, Any
from pathlib import Path


class Settings(BaseSettings):
    # Dataset inputs
    GMDB_DATA_DIR: str = "data"  # Directory holding *.tsv.gz dumps
    GMDB_CHUNK_SIZE: int = Field(
        default=64 * 1024,
        gt=0,
        description="Read size in bytes for file chunk sources",
    )
    GMDB_DECOMPRESS: str = "auto"  # auto|gzip|none
    GMDB_PROGRESS_EVERY: int = Field(
        default=100_000,
        gt=0,
        description="Values between progress ticks in stats events",
    )

    # Observability & UI
    GMDB_LOG_DIR: str = "var/logs"  # Root for events.ndjson files
    LOG_FORMAT: str = "auto"  # json|plain|auto
    LOG_LEVEL: str = "info"
    NO_COLOR: bool = False  # Disable colored output

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @classmethod
    def load_config(cls, config_file: Optional[str] = None) -> "Settings":
        """Load settings with config file -> env -> CLI precedence."""
        config_data: Dict[str, Any] = {}

        if config_file:
            config_path: Optional[Path] = Path(config_file)
        else:
            # Auto-discover .gmdb.{yaml,yml,toml}
            for ext in ["yaml", "yml", "toml"]:
                config_path = Path(f".gmdb.{ext}")
                if config_path.exists():
                    break
            else:
                config_path = None

        if config_path and config_path.exists():
            if config_path.suffix in [".yaml", ".yml"]:
                import yaml  # type: ignore[import-untyped]

                with open(config_path) as f:
                    config_data = yaml.safe_load(f) or {}
            elif config_path.suffix == ".toml":
                import tomllib

                with open(config_path, "rb") as f:
                    config_data = tomllib.load(f)

        # Environment variables (and .env) override file values
        from_env = cls().model_fields_set
        overrides = {k.upper(): v for k, v in config_data.items()}
        return cls(**{k: v for k, v in overrides.items() if k not in from_env})


# Default settings - replaced by load_config() during CLI startup
SETTINGS = Settings()
