from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
from functools import lru_cache


class Settings(BaseSettings):
    # Environment
    environment: str = Field(default="development", alias="ENVIRONMENT")
    
    # Database - PostgreSQL for production, SQLite for development
    database_url: str = Field(
        default="sqlite:///./channel_sync.db",
        alias="DATABASE_URL"
    )
    database_echo: bool = Field(default=False, alias="DATABASE_ECHO")
    
    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_json: bool = Field(default=False, alias="LOG_JSON")
    
    # ==============================================
    # Sync Queue Settings
    # ==============================================
    # Seconds between two drains of the sync queue
    sync_drain_interval_seconds: int = Field(default=60, alias="SYNC_DRAIN_INTERVAL")
    
    # Max pending items picked up by one drain
    sync_batch_size: int = Field(default=100, alias="SYNC_BATCH_SIZE")
    
    # Failed attempts before an item becomes terminal
    sync_max_retries: int = Field(default=3, alias="SYNC_MAX_RETRIES")
    
    # Start the interval scheduler inside the API process
    sync_scheduler_enabled: bool = Field(default=True, alias="SYNC_SCHEDULER_ENABLED")
    
    # ==============================================
    # Channel Provider Settings
    # ==============================================
    # HTTP timeout for provider requests
    channel_timeout_seconds: float = Field(default=30.0, alias="CHANNEL_TIMEOUT_SECONDS")
    
    # Currency sent along with rate pushes
    channel_default_currency: str = Field(default="USD", alias="CHANNEL_DEFAULT_CURRENCY")
    
    @field_validator('sync_drain_interval_seconds', 'sync_batch_size', 'sync_max_retries')
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v
    
    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"
    
    @property
    def sqlalchemy_url(self) -> str:
        """Hosted Postgres hands out postgres:// but SQLAlchemy needs postgresql://"""
        if self.database_url.startswith("postgres://"):
            return self.database_url.replace("postgres://", "postgresql://", 1)
        return self.database_url
    
    class Config:
        env_file = ".env"
        extra = "ignore"
        populate_by_name = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


# Initialize settings on module load
settings = get_settings()
