from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import PostgresDsn, RedisDsn, computed_field
from typing import Optional, Literal

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_ignore_empty=True, extra="ignore")

    # Security: Remove default credentials - require them to be set in .env
    POSTGRES_USER: str
    POSTGRES_PASSWORD: str
    POSTGRES_DB: str = "match_engine"
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432

    @computed_field
    def DATABASE_URL(self) -> PostgresDsn:
        return PostgresDsn.build(
            scheme="postgresql+asyncpg",
            username=self.POSTGRES_USER,
            password=self.POSTGRES_PASSWORD,
            host=self.POSTGRES_HOST,
            port=self.POSTGRES_PORT,
            path=self.POSTGRES_DB,
        )

    REDIS_URL: RedisDsn = "redis://localhost:6379/0"

    APP_DOMAIN: Optional[str] = None

    # Likes
    FREE_DAILY_LIKES: int = 10

    # Candidates
    LOCAL_RADIUS_KM: float = 50.0
    RANKING_BASIS: Literal["relationship", "distance"] = "relationship"

    # Notifications
    NOTIFICATION_DEDUP_SECONDS: int = 5  # Delivery de-dup window per match/message
    PUSH_API_URL: str = "https://fcm.googleapis.com/fcm/send"
    PUSH_SERVER_KEY: Optional[str] = None

settings = Settings()
