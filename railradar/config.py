"""Runtime configuration."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Default data paths
DATA_DIR = Path(__file__).parent.parent / "data"
RAIL_DATA_FILE = DATA_DIR / "precomputed_rail_data.json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="RAILRADAR_",
        env_file=".env",
        extra="ignore",
    )

    # Data
    data_file: Path = RAIL_DATA_FILE

    # Logging
    log_level: str = "INFO"
    log_file: str | None = None

    # Geo lookups
    nearest_limit: int = 5
    closest_radius_km: float = 1.0


settings = Settings()
