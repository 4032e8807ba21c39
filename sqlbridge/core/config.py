from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    APP_NAME: str = "SQL Bridge API"
    LOG_LEVEL: str = "INFO"
    SQL_ECHO: bool = False

    # Async driver used when a bare postgres:// URL comes in
    DATABASE_DRIVER: str = "asyncpg"
    HEALTH_CHECK_QUERY: str = "SELECT version()"

    # This tells Pydantic to read from the .env file
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


# Create a single instance of the settings to use everywhere
settings = Settings()
