"""Application configuration."""
import sys
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "postgresql+psycopg2://grc_user:grc_pass@db:5432/grc_db"

    # Environment configuration
    ENVIRONMENT: str = "development"  # "development" or "production"

    # CORS configuration - comma-separated origins
    CORS_ORIGINS: str = "http://localhost:5173,http://localhost:5174"

    LOG_LEVEL: str = "INFO"

    # Used when the upstream gateway does not forward X-Organization-Id
    DEFAULT_ORGANIZATION_ID: str = "org-default-001"

    # Human-readable risk codes, e.g. RISK-007
    RISK_CODE_PREFIX: str = "RISK"
    RISK_CODE_WIDTH: int = 3

    class Config:
        env_file = ".env"

    def get_cors_origins(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    def validate_production_settings(self) -> None:
        """Validate settings for production environment.

        Raises SystemExit if the database still points at SQLite.
        """
        if self.ENVIRONMENT == "production":
            if self.DATABASE_URL.startswith("sqlite"):
                print("FATAL: SQLite is not supported in production!", file=sys.stderr)
                print("Set DATABASE_URL to a PostgreSQL connection string.", file=sys.stderr)
                sys.exit(1)


settings = Settings()
# Validate on startup
settings.validate_production_settings()
