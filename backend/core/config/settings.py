# ------------------------------ IMPORTS ------------------------------
import os
import logging
from typing import List, Tuple
from dataclasses import dataclass, field
from dotenv import load_dotenv

load_dotenv()

# ------------------------------ CONFIGURATION CLASSES ------------------------------
@dataclass
class DatabaseConfig:
    """Database configuration."""
    url: str = os.getenv("DATABASE_URL", "")
    use_sqlite: bool = os.getenv("USE_SQLITE", "false").lower() == "true"
    pool_size: int = int(os.getenv("DB_POOL_SIZE", "5"))
    max_overflow: int = int(os.getenv("DB_MAX_OVERFLOW", "10"))
    run_migrations_on_startup: bool = os.getenv("RUN_MIGRATIONS_ON_STARTUP", "true").lower() == "true"

    def __post_init__(self):
        if not self.url and not self.use_sqlite:
            self.use_sqlite = True

    @property
    def database_url(self) -> str:
        """Get the appropriate database URL."""
        if self.use_sqlite and not self.url:
            return "sqlite:///./ev_catalog.db"
        return self.url

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

@dataclass
class CORSConfig:
    """CORS configuration."""
    origins: str = os.getenv("CORS_ORIGINS", "*")
    credentials: bool = os.getenv("CORS_CREDENTIALS", "true").lower() == "true"

    def get_origins_list(self) -> List[str]:
        """Get CORS origins as a list."""
        if self.origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.origins.split(",")]

@dataclass
class APIConfig:
    """API configuration."""
    host: str = os.getenv("API_HOST", "0.0.0.0")
    port: int = int(os.getenv("API_PORT", "8000"))
    debug: bool = os.getenv("API_DEBUG", "false").lower() == "true"

@dataclass
class ModerationConfig:
    """Contribution moderation rules."""
    contribution_reward: int = int(os.getenv("CONTRIBUTION_REWARD", "10"))
    rejection_comment_min_length: int = int(os.getenv("REJECTION_COMMENT_MIN_LENGTH", "10"))
    related_year_window: int = int(os.getenv("RELATED_YEAR_WINDOW", "2"))
    duplicate_year_tolerance: int = int(os.getenv("DUPLICATE_YEAR_TOLERANCE", "2"))
    duplicate_battery_tolerance_pct: float = float(os.getenv("DUPLICATE_BATTERY_TOLERANCE_PCT", "0.05"))
    duplicate_range_tolerance_km: float = float(os.getenv("DUPLICATE_RANGE_TOLERANCE_KM", "25"))
    duplicate_charging_tolerance_kw: float = float(os.getenv("DUPLICATE_CHARGING_TOLERANCE_KW", "10"))
    allow_self_moderation: bool = os.getenv("ALLOW_SELF_MODERATION", "true").lower() == "true"
    reject_stale_updates: bool = os.getenv("REJECT_STALE_UPDATES", "false").lower() == "true"
    recent_window_days: int = int(os.getenv("RECENT_WINDOW_DAYS", "7"))

@dataclass
class StorageConfig:
    """Image storage configuration."""
    backend: str = os.getenv("STORAGE_BACKEND", "local")
    uploads_dir: str = os.getenv("UPLOADS_DIR", "uploads")
    staged_prefix: str = os.getenv("STAGED_PREFIX", "temp/")
    durable_prefix: str = os.getenv("DURABLE_PREFIX", "vehicles/")
    public_base_url: str = os.getenv("PUBLIC_BASE_URL", "http://localhost:8000")
    max_image_bytes: int = int(os.getenv("MAX_IMAGE_BYTES", str(10 * 1024 * 1024)))
    allowed_content_types: Tuple[str, ...] = field(
        default_factory=lambda: ("image/jpeg", "image/jpg", "image/png", "image/webp")
    )

    # S3
    bucket_name: str = os.getenv("AWS_S3_BUCKET", "")
    access_key_id: str = os.getenv("AWS_ACCESS_KEY_ID", "")
    secret_access_key: str = os.getenv("AWS_SECRET_ACCESS_KEY", "")
    region: str = os.getenv("AWS_REGION", "us-east-1")

# ------------------------------ MAIN SETTINGS CLASS ------------------------------

class Settings:
    """Main application settings."""

    APP_NAME: str = "EV Catalog Moderation API"
    APP_VERSION: str = "1.0.0"

    def __init__(self):
        self.database = DatabaseConfig()
        self.cors = CORSConfig()
        self.api = APIConfig()
        self.moderation = ModerationConfig()
        self.storage = StorageConfig()

        self._setup_logging()
        self._validate_config()

    def _setup_logging(self):
        """Configure application logging."""
        log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        logging.basicConfig(
            level=getattr(logging, log_level),
            format="%(asctime)s [%(levelname)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )

    def _validate_config(self):
        logger = logging.getLogger(__name__)

        if self.api.debug and self.cors.get_origins_list() == ["*"]:
            logger.warning("CORS is set to allow all origins in DEBUG mode")

        if self.storage.backend == "s3" and not self.storage.bucket_name:
            logger.warning("STORAGE_BACKEND=s3 but AWS_S3_BUCKET is not set")

# ------------------------------ GLOBAL SETTINGS INSTANCE ------------------------------
settings = Settings()

# ------------------------------ END OF FILE ------------------------------
