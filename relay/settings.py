from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(case_sensitive=True)

    ENVIRONMENT: str = "development"

    # Server settings
    HOST: str = "0.0.0.0"
    PORT: int = 8080

    # Directory with the browser frontend, mounted at "/" when it exists
    STATIC_DIR: str = "public"

    # Upper bound for a single delivery during broadcast. A send that takes
    # longer is treated as a failed delivery and the connection is pruned.
    WS_SEND_TIMEOUT_SECONDS: float | None = 5.0

    # Logging settings
    LOG_LEVEL: str = "INFO"
    LOG_FILE_PATH: str = "logs/logging_errors.log"
    # Paths to exclude from access logs (e.g., /metrics, /health)
    LOG_EXCLUDED_PATHS: list[str] = ["/metrics", "/health"]


app_settings = Settings()
