from typing import List, Optional
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    database_url: str = "sqlite:///./telecare.db"
    secret_key: str = "change-me"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 24 * 60
    payment_webhook_secret: Optional[str] = None
    log_level: str = "INFO"
    cors_origins: List[str] = []

    model_config = {
        "env_file": ".env",
        "extra": "forbid"
    }

settings = Settings()
