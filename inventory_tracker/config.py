from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    APP_NAME: str = "Inventory Tracker"
    DATABASE_URL: str = "sqlite:///./inventory.db"

    # Auth tokens
    SECRET_KEY: str = "change-me-in-production"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    # Seeded when the users table is empty
    DEFAULT_ADMIN_NAME: str = "Admin"
    DEFAULT_ADMIN_EMAIL: str = "admin@example.com"
    DEFAULT_ADMIN_PASSWORD: str = "admin"

    # Reference time zone for calendar-day history filters
    TIMEZONE: str = "UTC"

    DEFAULT_PAGE_SIZE: int = 10
    DEFAULT_HISTORY_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 1000
    SEARCH_RESULT_LIMIT: int = 20

    # CSV import
    IMPORT_MAX_BYTES: int = 5 * 1024 * 1024
    IMPORT_ERROR_PREVIEW: int = 10
    IMPORT_DUPLICATE_PREVIEW: int = 20

    # Allowed CORS origins (comma-separated)
    FRONTEND_URL: str = "http://localhost:3000"

    LOG_LEVEL: str = "INFO"

    model_config = {"env_file": ".env"}


settings = Settings()
