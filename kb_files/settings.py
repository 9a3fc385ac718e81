from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path
from typing import Optional


class Settings(BaseSettings):
    # storage root; one subdirectory per upload date is created below it
    DATA_DIR: Path = Path("data/kb-files")
    MAX_UPLOAD_BYTES: Optional[int] = None

    LOG_DIR: Path = Path("./logs")
    LOG_LEVEL: str = "INFO"

    # Support either a full DATABASE_URL or individual PG_* settings
    DATABASE_URL: Optional[str] = None
    PG_USER: str = "postgres"
    PG_PASSWORD: str = "password"
    PG_HOST: str = "postgres"
    PG_PORT: int = 5432
    PG_DB: str = "kbfiles"

    model_config = SettingsConfigDict({"env_file": ".env", "extra": "ignore"})

    def __init__(self, **values):
        super().__init__(**values)
        # Build a Postgres URL when DATABASE_URL not provided
        if not self.DATABASE_URL:
            self.DATABASE_URL = (
                f"postgresql+psycopg2://{self.PG_USER}:"
                f"{self.PG_PASSWORD}@{self.PG_HOST}:{self.PG_PORT}/{self.PG_DB}"
            )


settings = Settings()
