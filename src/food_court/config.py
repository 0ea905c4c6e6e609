from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str
    DB_ECHO: bool = False
    REDIS_URL: str = "redis://redis:6379/0"

    # Razorpay
    RAZORPAY_KEY_ID: str = ""
    RAZORPAY_KEY_SECRET: str = ""
    RAZORPAY_API_URL: str = "https://api.razorpay.com/v1"
    PAYMENT_CURRENCY: str = "INR"
    PAYMENT_TIMEOUT_SECONDS: float = 10.0

    # токены выдаёт внешний сервис, здесь только проверка
    JWT_SECRET_KEY: str = "CHANGE_ME_IN_PRODUCTION"
    JWT_ALGORITHM: str = "HS256"

    DASHBOARD_TIMEZONE: str = "Asia/Kolkata"
    ORDER_HISTORY_LIMIT: int = 10
    DEFAULT_ESTIMATED_TIME_MINUTES: int = 15

    ESTIMATED_TIME_TICK_SECONDS: int = 60
    ESTIMATED_TIME_TICK_ENABLED: bool = True

    NOTIFICATION_CHANNEL_PREFIX: str = "orders:"
    SSE_KEEPALIVE_SECONDS: int = 15
    HEALTH_CHECK_TIMEOUT: float = 5.0

    LOG_LEVEL: str = "INFO"


settings = Settings()
