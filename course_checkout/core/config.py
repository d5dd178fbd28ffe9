from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "course-checkout"
    version: str = "0.1.0"
    DEBUG: bool = False
    APP_DOMAIN: str = "example.com"
    APP_URL: str = "http://localhost:3000"
    API_URL: str = "http://localhost:8000"
    APP_DATABASE_DSN: str = "sqlite:////tmp/database.db"
    REDIS_URL: str = "redis://localhost:6379"

    # Sessions are issued by the auth service
    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"

    # MercadoPago
    mercadopago_access_token: str = ""
    mercadopago_webhook_secret: str = ""
    mercadopago_sandbox: bool = True
    mercadopago_api_url: str = "https://api.mercadopago.com"

    # Orders
    ORDER_NUMBER_PREFIX: str = "TA"
    OPEN_ENROLLMENT_STATUSES: str = "announced,enrolling"

    # Notification dispatcher (transactional email service)
    NOTIFICATION_DISPATCH_URL: str = ""
    NOTIFICATION_MAX_ATTEMPTS: int = 5

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    @property
    def open_enrollment_statuses(self) -> frozenset[str]:
        return frozenset(
            s.strip() for s in self.OPEN_ENROLLMENT_STATUSES.split(",") if s.strip()
        )


settings = Settings()
