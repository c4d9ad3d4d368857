from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional

class Settings(BaseSettings):
    API_BASE_URL: str = "http://localhost:3000"
    CUSTOMERS_PATH: str = "/api/customers"
    # None disables the transport timeout
    HTTP_TIMEOUT_SEC: Optional[float] = 10.0
    SERVICE_NAME: str = "customer-directory"
    SERVICE_VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

@lru_cache
def get_settings() -> Settings:
    return Settings()
