from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional

class Settings(BaseSettings):
    DATABASE_URL: Optional[str] = None
    POSTGRES_HOST: str = "postgres"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "storefront"
    POSTGRES_USER: str = "storefront"
    POSTGRES_PASSWORD: str = "storefront"

    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    SERVICE_VERSION: str = "1.0.0"
    FRONTEND_URL: str = "http://localhost:3000"
    BACKEND_URL: str = "http://localhost:8000"

    # Payment collaborator
    RAZORPAY_KEY_ID: str = ""
    RAZORPAY_KEY_SECRET: str = ""
    RAZORPAY_BASE_URL: str = "https://api.razorpay.com/v1"

    # Shipping / checkout collaborator
    SHIPROCKET_API_KEY: str = ""
    SHIPROCKET_API_SECRET: str = ""
    SHIPROCKET_BASE_URL: str = "https://apiv2.shiprocket.in/v1/external"
    SHIPROCKET_CHECKOUT_BASE_URL: str = "https://checkout-api.shiprocket.com"
    # Tokens are issued for ~10 days, refresh a day early
    SHIPROCKET_TOKEN_TTL_SECONDS: int = 9 * 24 * 60 * 60
    COLLABORATOR_TIMEOUT_SECONDS: float = 15.0

    # Admin auth
    JWT_SECRET: str = "change-me"
    JWT_ALG: str = "HS256"
    JWT_EXPIRES_MINUTES: int = 7 * 24 * 60
    ADMIN_PASSWORD: str = ""

    DEFAULT_CURRENCY: str = "INR"
    DEFAULT_PICKUP_LOCATION: str = "Primary"
    PARTNER_VENDOR: str = "DrinkBrewy"
    PARTNER_PRODUCT_TYPE: str = "Beverages"
    ORDER_ID_PREFIX: str = "BREWY"
    TRACKING_URL_TEMPLATE: str = "https://shiprocket.co/tracking/{awb}"

    class Config:
        env_file = ".env"

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql+psycopg2://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

@lru_cache
def get_settings() -> Settings:
    return Settings()
